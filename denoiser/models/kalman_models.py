"""
State-space models for the denoiser Kalman filter.

A state-space model turns the observations of one entity into the full set of
parameters the Kalman filter needs:

- x0, P0: initial state and its covariance
- F(dt), W(dt): movement transition and process noise, both depending on the
  time elapsed between two observations
- B, u: influence and values of external variables
- H, R: measurement matrix and Cholesky factor of the measurement covariance

Models are small objects exposing ``build(data) -> ModelParameters``. The
available models are listed in the read-only :data:`KALMAN_MODELS` mapping,
which the dispatcher receives explicitly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from denoiser.models.validation import as_pair, cholesky_factor, positive_scalar

# Measurement error variance obtained experimentally in the calibration study
DEFAULT_ERROR = 0.031 ** 2

# Lower bound on the estimated velocity variances
MIN_VARIANCE = 1e-10


@dataclass(frozen=True)
class ConstantVelocityTransition:
    """
    Movement transition matrix F of the constant velocity model.

    Positions advance by velocity times dt, velocities are carried over::

        F(dt) = [[1, 0, dt, 0],
                 [0, 1, 0, dt],
                 [0, 0, 1,  0],
                 [0, 0, 0,  1]]
    """

    def at(self, delta_t: float) -> np.ndarray:
        F = np.eye(4)
        F[0, 2] = delta_t
        F[1, 3] = delta_t
        return F

    def __call__(self, delta_t: float) -> np.ndarray:
        return self.at(delta_t)


@dataclass(frozen=True)
class ConstantVelocityNoise:
    """
    Process noise covariance W of the constant velocity model.

    Holds the fitted velocity variances of both axes. There is no covariance
    between the x- and y-dimension.
    """
    var_x: float
    var_y: float

    def at(self, delta_t: float) -> np.ndarray:
        W = np.zeros((4, 4))
        for pos, vel, var in ((0, 2, self.var_x), (1, 3, self.var_y)):
            W[pos, pos] = delta_t ** 2 * var
            W[pos, vel] = delta_t * var
            W[vel, pos] = delta_t * var
            W[vel, vel] = var
        return W

    def __call__(self, delta_t: float) -> np.ndarray:
        return self.at(delta_t)


@dataclass(frozen=True, eq=False)
class ModelParameters:
    """
    Parameters of a linear-Gaussian state-space model for one group.

    Attributes
    ----------
    data : pd.DataFrame
        Chronologically ordered observations the parameters were derived from.
    x0 : np.ndarray
        Initial state, shape (n,).
    P0 : np.ndarray
        Initial state covariance, shape (n, n).
    F : callable
        ``F(dt)`` or ``F.at(dt)`` returns the (n, n) transition matrix.
    W : callable
        ``W(dt)`` or ``W.at(dt)`` returns the (n, n) process noise covariance.
    B : np.ndarray
        Influence of the external variables, shape (n, k).
    u : np.ndarray
        External variables per observation, shape (T, k).
    H : np.ndarray
        Measurement matrix, shape (2, n).
    R : np.ndarray
        Lower Cholesky factor of the measurement covariance, shape (2, 2).
    """
    data: pd.DataFrame
    x0: np.ndarray
    P0: np.ndarray
    F: Callable[[float], np.ndarray]
    W: Callable[[float], np.ndarray]
    B: np.ndarray
    u: np.ndarray
    H: np.ndarray
    R: np.ndarray


class StateSpaceModel(ABC):
    """Interface of the models used by :func:`denoiser.filtering.kalman_filter`."""

    @abstractmethod
    def build(self, data: pd.DataFrame) -> ModelParameters:
        """Derive the model parameters from the canonical observations of one group."""


def _with_differences(data: pd.DataFrame) -> pd.DataFrame:
    """Sort by time and add time/position differences and speeds."""
    data = data.sort_values("time", kind="mergesort")

    delta_t = data["time"].diff().fillna(0.0).to_numpy(dtype=float)
    delta_x = data["x"].diff().fillna(0.0).to_numpy(dtype=float)
    delta_y = data["y"].diff().fillna(0.0).to_numpy(dtype=float)

    # Speeds are undefined for the first row and for repeated timestamps
    with np.errstate(divide="ignore", invalid="ignore"):
        speed_x = np.where(delta_t > 0, delta_x / delta_t, np.nan)
        speed_y = np.where(delta_t > 0, delta_y / delta_t, np.nan)
    speed_x[0] = np.nan
    speed_y[0] = np.nan

    return data.assign(
        delta_t=delta_t,
        delta_x=delta_x,
        delta_y=delta_y,
        speed_x=speed_x,
        speed_y=speed_y,
    )


class ConstantVelocity(StateSpaceModel):
    r"""
    Constant velocity model.

    Movement is assumed to occur at a constant velocity, so that changes in
    acceleration are treated as noise. This model performed reasonably well on
    simulated and observed pedestrian data.

    The latent state holds the position and the velocity in both dimensions,
    :math:`\mathbf{x} = (x, y, v_x, v_y)`. Velocity variances are estimated
    from the data as the observed variance of the speeds corrected for the
    assumed measurement error:

    .. math::

        \sigma_{v_x}^2 = \mathrm{Var}[v_x]^{obs} - \frac{2}{E[\Delta t]^2} \sigma_{\epsilon, x}^2

    floored at ``1e-10``. External influences are set to zero. The initial
    state holds the observed mean positions and speeds, and the initial
    covariance the observed variances of these variables (kept diagonal for
    faster convergence).

    Parameters
    ----------
    error : float or sequence of float, default=0.031**2
        Assumed measurement error variance in the x- and y-direction. A single
        value is used for both dimensions; only the first two values of a
        longer sequence are used.

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from denoiser.models import ConstantVelocity
    >>> angles = np.linspace(0, 4 * np.pi, 100)
    >>> data = pd.DataFrame({'time': np.arange(100.0), 'x': 10 * np.cos(angles), 'y': 10 * np.sin(angles)})
    >>> parameters = ConstantVelocity(error=0.1 ** 2).build(data)
    >>> parameters.F(1.0)[0, 2]
    1.0
    """

    def __init__(self, error: Union[float, Sequence[float]] = DEFAULT_ERROR):
        error = as_pair(error, "error")
        self.error = np.array([positive_scalar(value, "error") for value in error])

    def __repr__(self) -> str:
        return f"ConstantVelocity(error={self.error.tolist()})"

    def build(self, data: pd.DataFrame) -> ModelParameters:
        data = _with_differences(data)
        n = len(data)

        # ========== Movement Equation ==========
        # Error-corrected velocity variances. The mean interval excludes the
        # artificial 0 of the first observation.
        denom = data["delta_t"].iloc[1:].mean() ** 2
        var_x = data["speed_x"].var() - 2 * self.error[0] / denom
        var_y = data["speed_y"].var() - 2 * self.error[1] / denom

        # NaN estimates (too few valid speeds) are floored as well
        var_x = var_x if var_x > MIN_VARIANCE else MIN_VARIANCE
        var_y = var_y if var_y > MIN_VARIANCE else MIN_VARIANCE

        B = np.zeros((4, 1))
        u = np.zeros((n, 1))

        # ========== Measurement Equation ==========
        H = np.array([[1.0, 0.0, 0.0, 0.0],
                      [0.0, 1.0, 0.0, 0.0]])
        R = cholesky_factor(np.diag(self.error), "measurement error")

        # ========== Initial Conditions ==========
        # Vague yet data-driven; undefined speed statistics start at 0
        columns = ["x", "y", "speed_x", "speed_y"]
        x0 = np.nan_to_num(data[columns].mean().to_numpy(dtype=float), nan=0.0)
        P0 = np.diag(np.nan_to_num(data[columns].var().to_numpy(dtype=float), nan=0.0))

        return ModelParameters(
            data=data,
            x0=x0,
            P0=P0,
            F=ConstantVelocityTransition(),
            W=ConstantVelocityNoise(var_x=float(var_x), var_y=float(var_y)),
            B=B,
            u=u,
            H=H,
            R=R,
        )


class CallableStateSpaceModel(StateSpaceModel):
    """Wrap a plain function ``f(data, **kwargs) -> ModelParameters`` as a model."""

    def __init__(self, function: Callable[..., ModelParameters], **kwargs):
        self.function = function
        self.kwargs = kwargs

    def __repr__(self) -> str:
        name = getattr(self.function, "__name__", repr(self.function))
        return f"CallableStateSpaceModel({name})"

    def build(self, data: pd.DataFrame) -> ModelParameters:
        return self.function(data, **self.kwargs)


KALMAN_MODELS: Mapping[str, Callable[..., StateSpaceModel]] = MappingProxyType({
    "constant_velocity": ConstantVelocity,
})
