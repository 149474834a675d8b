import warnings

import numpy as np
import pandas as pd
import polars as pl
import pytest

from denoiser import kalman_filter
from denoiser.exceptions import ConfigurationError, InputTypeError, InsufficientDataWarning
from denoiser.models import ConstantVelocity
from denoiser.utilities import mean_absolute_deviation


@pytest.mark.parametrize("data", [np.zeros((10, 2)), np.zeros(10), ["a"] * 10, [True] * 10])
def test_not_a_dataframe(data):
    with pytest.raises(InputTypeError):
        kalman_filter(data)


@pytest.mark.parametrize("cols", [
    {"time": "time", "x": "x", "test": "test"},
    ["time", "x", "test"],
    [1, 2, 3],
])
def test_invalid_cols(cols):
    data = pd.DataFrame({"time": np.arange(1, 11), "x": np.arange(1, 11), "y": np.arange(1, 11)})
    with pytest.raises(ConfigurationError):
        kalman_filter(data, cols=cols)


def test_unknown_model(linear_data):
    with pytest.raises(ConfigurationError, match="constant_velocity"):
        kalman_filter(linear_data, model="constant_acceleration")


def test_model_instance_rejects_keyword_arguments(linear_data):
    with pytest.raises(ConfigurationError):
        kalman_filter(linear_data, model=ConstantVelocity(), error=1)


def test_negative_minimum(linear_data):
    with pytest.raises(ConfigurationError):
        kalman_filter(linear_data, N_min=-1)


def test_too_few_datapoints():
    rng = np.random.default_rng(5)
    data = pd.DataFrame({"time": np.arange(1, 10), "x": rng.normal(size=9), "y": rng.normal(size=9)})

    with pytest.warns(InsufficientDataWarning, match="too few datapoints"):
        tst = kalman_filter(data, N_min=10)

    pd.testing.assert_frame_equal(tst, data)


def test_minimum_is_inclusive():
    data = pd.DataFrame({"time": np.arange(5.0), "x": np.arange(5.0), "y": np.arange(5.0)})
    with pytest.warns(InsufficientDataWarning):
        kalman_filter(data)


def test_only_small_groups_pass_through(grouped_observed, circle_cols):
    small = pd.DataFrame({"seconds": [1, 2, 3], "X": [0.5, 0.7, 0.9], "Y": [1.0, 1.1, 1.2], "tag": 3})
    data = pd.concat([grouped_observed, small], ignore_index=True)

    with pytest.warns(InsufficientDataWarning, match="1 group") as record:
        tst = kalman_filter(data, cols=circle_cols, by="tag", error=1)

    insufficient = [w for w in record if issubclass(w.category, InsufficientDataWarning)]
    assert len(insufficient) == 1
    assert "3" in str(insufficient[0].message)
    pd.testing.assert_frame_equal(tst[tst["tag"] == 3], data[data["tag"] == 3])
    assert not np.allclose(tst.loc[tst["tag"] == 1, "X"], data.loc[data["tag"] == 1, "X"])


def test_single_participant(circle_reference, circle_observed, circle_cols):
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        tst = kalman_filter(circle_observed, model="constant_velocity", cols=circle_cols, error=1)

    assert list(tst.columns) == ["seconds", "X", "Y"]

    filtered = mean_absolute_deviation(tst, circle_reference, cols=("X", "Y"))
    observed = mean_absolute_deviation(circle_observed, circle_reference, cols=("X", "Y"))
    assert filtered["X"] < observed["X"]
    assert filtered["Y"] < observed["Y"]


def test_multiple_participants(grouped_reference, grouped_observed, circle_cols):
    tst = kalman_filter(grouped_observed, model="constant_velocity", cols=circle_cols, by="tag", error=1)

    assert "tag" in tst.columns
    pd.testing.assert_series_equal(tst["tag"], grouped_observed["tag"])

    for tag in (1, 2):
        filtered = mean_absolute_deviation(
            tst[tst["tag"] == tag], grouped_reference[grouped_reference["tag"] == tag], cols=("X", "Y")
        )
        observed = mean_absolute_deviation(
            grouped_observed[grouped_observed["tag"] == tag],
            grouped_reference[grouped_reference["tag"] == tag],
            cols=("X", "Y"),
        )
        assert filtered["X"] < observed["X"]
        assert filtered["Y"] < observed["Y"]


def test_groups_are_filtered_independently(grouped_observed, circle_cols):
    together = kalman_filter(grouped_observed, cols=circle_cols, by="tag", error=1)
    alone = kalman_filter(grouped_observed[grouped_observed["tag"] == 2], cols=circle_cols, by="tag", error=1)

    pd.testing.assert_frame_equal(together[together["tag"] == 2], alone)


def test_row_order_is_preserved(circle_observed, circle_cols):
    shuffled = circle_observed.sample(frac=1, random_state=2)

    ordered = kalman_filter(circle_observed, cols=circle_cols, error=1)
    tst = kalman_filter(shuffled, cols=circle_cols, error=1)

    assert list(tst.index) == list(shuffled.index)
    pd.testing.assert_frame_equal(tst.sort_index(), ordered)


def test_extra_columns_are_dropped(circle_observed, circle_cols):
    data = circle_observed.assign(speed=1.0)
    tst = kalman_filter(data, cols=circle_cols, error=1)
    assert "speed" not in tst.columns


def test_polars_input(circle_observed, circle_cols):
    tst = kalman_filter(pl.from_pandas(circle_observed), cols=circle_cols, error=1)
    expected = kalman_filter(circle_observed, cols=circle_cols, error=1)

    assert isinstance(tst, pl.DataFrame)
    np.testing.assert_allclose(tst["X"].to_numpy(), expected["X"].to_numpy())


def test_deterministic(circle_observed, circle_cols):
    first = kalman_filter(circle_observed, cols=circle_cols, error=1)
    second = kalman_filter(circle_observed, cols=circle_cols, error=1)
    pd.testing.assert_frame_equal(first, second)


def test_model_instance_and_function(circle_observed, circle_cols):
    by_name = kalman_filter(circle_observed, cols=circle_cols, error=1)
    by_instance = kalman_filter(circle_observed, model=ConstantVelocity(error=1), cols=circle_cols)
    by_class = kalman_filter(circle_observed, model=ConstantVelocity, cols=circle_cols, error=1)

    calls = []

    def build(data, error):
        calls.append(len(data))
        return ConstantVelocity(error=error).build(data)

    by_function = kalman_filter(circle_observed, model=build, cols=circle_cols, error=1)

    pd.testing.assert_frame_equal(by_name, by_instance)
    pd.testing.assert_frame_equal(by_name, by_class)
    pd.testing.assert_frame_equal(by_name, by_function)
    assert calls == [100]


def test_custom_registry(circle_observed, circle_cols):
    registry = {"pedestrian": ConstantVelocity}
    tst = kalman_filter(circle_observed, model="pedestrian", cols=circle_cols, registry=registry, error=1)
    expected = kalman_filter(circle_observed, cols=circle_cols, error=1)
    pd.testing.assert_frame_equal(tst, expected)

    with pytest.raises(ConfigurationError):
        kalman_filter(circle_observed, model="constant_velocity", cols=circle_cols, registry=registry)


def test_missing_group_keys_are_filtered(grouped_reference, grouped_observed, circle_cols):
    data = grouped_observed.assign(tag=grouped_observed["tag"].where(grouped_observed["tag"] == 1))

    tst = kalman_filter(data, cols=circle_cols, by="tag", error=1)

    missing = data["tag"].isna()
    filtered = mean_absolute_deviation(tst[missing], grouped_reference[missing], cols=("X", "Y"))
    observed = mean_absolute_deviation(data[missing], grouped_reference[missing], cols=("X", "Y"))
    assert filtered["X"] < observed["X"]
    assert filtered["Y"] < observed["Y"]


def test_passed_through_groups_become_float(grouped_observed, circle_cols):
    small = pd.DataFrame({"seconds": [1, 2, 3], "X": [5, 6, 7], "Y": [1, 1, 2], "tag": 3})
    data = pd.concat([grouped_observed, small], ignore_index=True)
    data_int = data.assign(X=data["X"].round().astype("int64"), Y=data["Y"].round().astype("int64"))

    with pytest.warns(InsufficientDataWarning):
        tst = kalman_filter(data_int, cols=circle_cols, by="tag", error=1)

    assert tst["X"].dtype == np.float64
    pd.testing.assert_frame_equal(tst[tst["tag"] == 3], data_int[data_int["tag"] == 3], check_dtype=False)
