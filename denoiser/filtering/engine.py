"""
Kalman filter engine for denoiser.

The filter recovers the latent positions of one entity from noisy
observations by repeating three steps for every observation:

1. Prediction (:func:`kf_predict`): use the movement equation to predict the
   next latent state and its covariance.
2. Innovation (:func:`kf_innovation`): compare the prediction with the actual
   measurement and compute the Kalman gain.
3. Update (:func:`kf_update`): combine prediction and measurement, weighted by
   the Kalman gain, into the filtered state.

The measurement covariance R is handed over as its lower Cholesky factor. The
innovation covariance S is factorised with a Cholesky decomposition to solve
for the Kalman gain instead of inverting it explicitly.

State Vector: [x, y, vx, vy]  (position and velocity)
Observation: [x, y]
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import scipy.linalg as sla

from denoiser.exceptions import NumericalError
from denoiser.models.kalman_models import ModelParameters


def kf_predict(
    x0: np.ndarray,
    P0: np.ndarray,
    F: np.ndarray,
    W: np.ndarray,
    u: Optional[np.ndarray] = None,
    B: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Prediction step of the Kalman filter.

    Computes ``x = F x0 + B u`` and ``P = F P0 F^T + W``.

    Parameters
    ----------
    x0 : np.ndarray
        State at the previous time point, shape (n,).
    P0 : np.ndarray
        Covariance of `x0`, shape (n, n).
    F : np.ndarray
        Transition matrix for the elapsed time, shape (n, n).
    W : np.ndarray
        Process noise covariance for the elapsed time, shape (n, n).
    u : np.ndarray, optional
        External variables at the current time point, shape (k,). Defaults to
        no external influence.
    B : np.ndarray, optional
        Influence of the external variables on the state, shape (n, k).

    Returns
    -------
    tuple of np.ndarray
        Predicted state and its covariance.
    """
    x = F @ x0
    if u is not None and B is not None:
        x = x + B @ np.ravel(u)
    P = F @ P0 @ F.T + W
    return x, P


def kf_innovation(
    z: np.ndarray,
    x: np.ndarray,
    P: np.ndarray,
    H: np.ndarray,
    R: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Innovation step of the Kalman filter.

    Computes the innovation ``y = z - H x``, its covariance
    ``S = H P H^T + R R^T`` and the Kalman gain ``K = P H^T S^-1``.

    Parameters
    ----------
    z : np.ndarray
        Measurement, shape (m,).
    x : np.ndarray
        Predicted state, shape (n,).
    P : np.ndarray
        Predicted state covariance, shape (n, n).
    H : np.ndarray
        Measurement matrix, shape (m, n).
    R : np.ndarray
        Lower Cholesky factor of the measurement covariance, shape (m, m).

    Returns
    -------
    tuple of np.ndarray
        Innovation y, lower Cholesky factor of S, and Kalman gain K.

    Raises
    ------
    NumericalError
        If S is not positive definite.
    """
    R_cov = R @ R.T

    y = z - H @ x
    S = H @ P @ H.T + R_cov
    S = 0.5 * (S + S.T)

    try:
        factor = sla.cho_factor(S, lower=True)
    except np.linalg.LinAlgError as exc:
        raise NumericalError(f"Innovation covariance is not positive definite:\n{S}") from exc

    # K = P H^T S^-1  <=>  S K^T = H P^T, S being symmetric
    K = sla.cho_solve(factor, H @ P.T).T
    return y, np.tril(factor[0]), K


def kf_update(
    x: np.ndarray,
    P: np.ndarray,
    y: np.ndarray,
    H: np.ndarray,
    K: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Update step of the Kalman filter.

    Computes the filtered state ``x + K y`` and its covariance ``(I - K H) P``.
    Both serve as initial conditions of the next prediction step.
    """
    x_new = x + K @ y
    P_new = (np.eye(P.shape[0]) - K @ H) @ P
    return x_new, P_new


@dataclass(frozen=True)
class KalmanResult:
    """
    Output of :func:`run_kalman_filter`.

    Attributes
    ----------
    positions : np.ndarray
        Filtered positions, shape (T, 2), in chronological order.
    states : np.ndarray
        Full filtered states, shape (T, n).
    index : pd.Index
        Row labels of the observations, in the same order as `positions`.
    covariances, gains, innovations, innovation_factors : list of np.ndarray or None
        Per-step state covariance, Kalman gain, innovation and Cholesky factor
        of the innovation covariance. Only kept when diagnostics were asked for.
    """
    positions: np.ndarray
    states: np.ndarray
    index: pd.Index
    covariances: Optional[List[np.ndarray]] = None
    gains: Optional[List[np.ndarray]] = None
    innovations: Optional[List[np.ndarray]] = None
    innovation_factors: Optional[List[np.ndarray]] = None


def run_kalman_filter(parameters: ModelParameters, return_diagnostics: bool = False) -> KalmanResult:
    """
    Filter the observations of a single group.

    Runs predict, innovate and update over the chronologically ordered
    observations held by `parameters`. The prediction step is skipped for the
    first observation, where the initial conditions serve as the prediction.

    Parameters
    ----------
    parameters : ModelParameters
        Output of a state-space model's ``build`` for this group.
    return_diagnostics : bool, default=False
        Keep the covariance, gain and innovation of every step.

    Returns
    -------
    KalmanResult
        Filtered positions and states, plus diagnostics when requested.
    """
    data = parameters.data
    n = len(data)
    dim = len(parameters.x0)

    times = data["time"].to_numpy(dtype=float)
    Z = data[["x", "y"]].to_numpy(dtype=float)
    u = np.asarray(parameters.u, dtype=float)

    states = np.zeros((n, dim))
    covariances, gains, innovations, factors = [], [], [], []

    x_prev = np.asarray(parameters.x0, dtype=float)
    P_prev = np.asarray(parameters.P0, dtype=float)

    for i in range(n):
        # ========== PREDICTION STEP ==========
        if i == 0:
            x_pred, P_pred = x_prev, P_prev
        else:
            dt = times[i] - times[i - 1]
            x_pred, P_pred = kf_predict(
                x_prev,
                P_prev,
                parameters.F(dt),
                parameters.W(dt),
                u=u[i],
                B=parameters.B,
            )

        # ========== INNOVATION STEP ==========
        y, S_factor, K = kf_innovation(Z[i], x_pred, P_pred, parameters.H, parameters.R)

        # ========== UPDATE STEP ==========
        x_prev, P_prev = kf_update(x_pred, P_pred, y, parameters.H, K)
        states[i] = x_prev

        if return_diagnostics:
            covariances.append(P_prev)
            gains.append(K)
            innovations.append(y)
            factors.append(S_factor)

    return KalmanResult(
        positions=states[:, :2].copy(),
        states=states,
        index=data.index,
        covariances=covariances if return_diagnostics else None,
        gains=gains if return_diagnostics else None,
        innovations=innovations if return_diagnostics else None,
        innovation_factors=factors if return_diagnostics else None,
    )
