import numpy as np
import pandas as pd
import polars as pl
import pytest
from numpy.testing import assert_allclose

from denoiser.exceptions import DimensionError, InputTypeError
from denoiser.utilities import fit_var1, mean_absolute_deviation, root_mean_squared_error


@pytest.fixture
def truth():
    return pd.DataFrame({"x": [0.0, 0.0, 0.0, 0.0], "y": [1.0, 1.0, 1.0, 1.0]})


@pytest.fixture
def estimate():
    return pd.DataFrame({"x": [1.0, -1.0, 3.0, -3.0], "y": [1.0, 1.0, 1.0, 3.0]})


def test_mean_absolute_deviation(estimate, truth):
    assert mean_absolute_deviation(estimate, truth) == {"x": 2.0, "y": 0.5}


def test_root_mean_squared_error(estimate, truth):
    rmse = root_mean_squared_error(estimate, truth)
    assert rmse["x"] == pytest.approx(np.sqrt(5.0))
    assert rmse["y"] == pytest.approx(1.0)


def test_selected_columns(estimate, truth):
    assert list(mean_absolute_deviation(estimate, truth, cols=("y",))) == ["y"]


def test_mixed_frame_types(estimate, truth):
    assert mean_absolute_deviation(pl.from_pandas(estimate), truth) == {"x": 2.0, "y": 0.5}


def test_row_mismatch(estimate, truth):
    with pytest.raises(DimensionError):
        mean_absolute_deviation(estimate.iloc[:2], truth)


def test_not_a_dataframe(truth):
    with pytest.raises(InputTypeError):
        root_mean_squared_error(np.zeros((4, 2)), truth)


def test_fit_var1_recovers_parameters():
    rng = np.random.default_rng(8)
    intercept = np.array([0.5, -0.2])
    transition = np.array([[0.6, 0.1], [0.0, 0.3]])
    covariance = np.array([[0.2, 0.05], [0.05, 0.1]])
    chol = np.linalg.cholesky(covariance)

    N = 20000
    residuals = np.zeros((N, 2))
    for i in range(1, N):
        residuals[i] = intercept + transition @ residuals[i - 1] + chol @ rng.standard_normal(2)

    fit = fit_var1(residuals)

    assert_allclose(fit.intercept, intercept, atol=0.03)
    assert_allclose(fit.transition, transition, atol=0.03)
    assert_allclose(fit.covariance, covariance, atol=0.02)


@pytest.mark.parametrize("residuals", [np.zeros(10), np.zeros((3, 2))])
def test_fit_var1_dimensions(residuals):
    with pytest.raises(DimensionError):
        fit_var1(residuals)
