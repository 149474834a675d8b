import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from denoiser.exceptions import NumericalError
from denoiser.filtering import kf_innovation, kf_predict, kf_update, run_kalman_filter
from denoiser.models import ConstantVelocity, ConstantVelocityNoise, ConstantVelocityTransition

H = np.array([[1.0, 0.0, 0.0, 0.0],
              [0.0, 1.0, 0.0, 0.0]])


def test_predict():
    F = ConstantVelocityTransition().at(2.0)
    W = ConstantVelocityNoise(var_x=0.1, var_y=0.2).at(2.0)
    x0 = np.array([0.0, 0.0, 1.0, 2.0])
    P0 = np.eye(4)

    x, P = kf_predict(x0, P0, F, W)

    assert_array_equal(x, [2.0, 4.0, 1.0, 2.0])
    assert_allclose(P, F @ F.T + W)


def test_predict_with_external_variables():
    B = np.array([[1.0], [0.0], [0.0], [0.0]])
    x, _ = kf_predict(np.zeros(4), np.eye(4), np.eye(4), np.zeros((4, 4)), u=np.array([3.0]), B=B)
    assert_array_equal(x, [3.0, 0.0, 0.0, 0.0])


def test_innovation():
    z = np.array([1.0, 2.0])
    x = np.array([0.0, 0.0, 5.0, 5.0])
    P = np.eye(4)
    R = np.eye(2)

    y, S_factor, K = kf_innovation(z, x, P, H, R)

    assert_array_equal(y, [1.0, 2.0])
    assert_allclose(S_factor @ S_factor.T, 2 * np.eye(2))
    assert_allclose(K, np.vstack((0.5 * np.eye(2), np.zeros((2, 2)))))


def test_innovation_uses_cholesky_factor_of_measurement_covariance():
    P = np.diag([3.0, 3.0, 1.0, 1.0])
    R = np.eye(2) * 0.5
    _, S_factor, K = kf_innovation(np.zeros(2), np.zeros(4), P, H, R)

    # R R^T = 0.25 I, so S = 3.25 I
    assert_allclose(S_factor, np.eye(2) * np.sqrt(3.25))
    assert_allclose(K[:2], np.eye(2) * 3 / 3.25)


def test_innovation_not_positive_definite():
    with pytest.raises(NumericalError):
        kf_innovation(np.zeros(2), np.zeros(4), np.zeros((4, 4)), H, np.zeros((2, 2)))


def test_update():
    x = np.array([0.0, 0.0, 1.0, 1.0])
    P = np.eye(4)
    y = np.array([2.0, -2.0])
    K = np.vstack((0.5 * np.eye(2), np.zeros((2, 2))))

    x_new, P_new = kf_update(x, P, y, H, K)

    assert_array_equal(x_new, [1.0, -1.0, 1.0, 1.0])
    assert_allclose(P_new, np.diag([0.5, 0.5, 1.0, 1.0]))


def test_run_returns_one_estimate_per_observation(linear_data):
    parameters = ConstantVelocity(error=0.1 ** 2).build(linear_data)
    result = run_kalman_filter(parameters)

    assert result.positions.shape == (100, 2)
    assert result.states.shape == (100, 4)
    assert_array_equal(result.index, parameters.data.index)
    assert result.gains is None


def test_run_diagnostics(linear_data):
    parameters = ConstantVelocity(error=0.1 ** 2).build(linear_data)
    result = run_kalman_filter(parameters, return_diagnostics=True)

    assert len(result.covariances) == 100
    assert len(result.gains) == 100
    assert len(result.innovations) == 100
    assert len(result.innovation_factors) == 100
    assert result.gains[0].shape == (4, 2)


def test_first_step_uses_initial_conditions():
    data = pd.DataFrame({"time": np.arange(10.0), "x": np.arange(10.0), "y": np.zeros(10)})
    parameters = ConstantVelocity(error=1.0).build(data)
    result = run_kalman_filter(parameters, return_diagnostics=True)

    # No prediction at the first step: the innovation is measured from x0
    assert_allclose(result.innovations[0], data.loc[0, ["x", "y"]].to_numpy(dtype=float) - parameters.x0[:2])


def test_run_tracks_linear_movement(linear_data):
    parameters = ConstantVelocity(error=0.1 ** 2).build(linear_data)
    result = run_kalman_filter(parameters)

    truth = np.arange(1.0, 101.0)
    filtered_error = np.mean(np.abs(result.positions[10:, 0] - truth[10:]))
    observed_error = np.mean(np.abs(linear_data["x"].to_numpy()[10:] - truth[10:]))
    assert filtered_error < observed_error
    assert_allclose(result.states[-1, 2:], [1.0, 1.0], atol=0.05)
