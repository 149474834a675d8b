import numpy as np
import pandas as pd
import pytest


def circle(n=100, radius=10.0, turns=2):
    """Coordinates of circular movement, `turns` full circles over `n` points."""
    angles = np.linspace(0, 2 * turns * np.pi, n)
    return radius * np.cos(angles), radius * np.sin(angles)


@pytest.fixture
def rng():
    return np.random.default_rng(1)


@pytest.fixture
def linear_data(rng):
    """Linear movement at 1 unit per second with 0.1 measurement noise."""
    steps = np.arange(1, 101, dtype=float)
    return pd.DataFrame({
        "time": steps,
        "x": rng.normal(steps, 0.1),
        "y": rng.normal(steps, 0.1),
    })


@pytest.fixture
def circle_reference():
    x, y = circle()
    return pd.DataFrame({"seconds": np.arange(1, 101), "X": x, "Y": y})


@pytest.fixture
def circle_observed(circle_reference, rng):
    data = circle_reference.copy()
    data["X"] = data["X"] + rng.normal(0, 1, len(data))
    data["Y"] = data["Y"] + rng.normal(0, 1, len(data))
    return data


@pytest.fixture
def grouped_reference():
    x, y = circle()
    return pd.DataFrame({
        "seconds": np.tile(np.arange(1, 51), 2),
        "X": x,
        "Y": y,
        "tag": np.repeat([1, 2], 50),
    })


@pytest.fixture
def grouped_observed(grouped_reference, rng):
    data = grouped_reference.copy()
    data["X"] = data["X"] + rng.normal(0, 1, len(data))
    data["Y"] = data["Y"] + rng.normal(0, 1, len(data))
    return data


@pytest.fixture
def circle_cols():
    return {"time": "seconds", "x": "X", "y": "Y"}
