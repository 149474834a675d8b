"""
Measurement error models for denoiser.

A measurement model perturbs the ``x`` and ``y`` columns of a chronologically
ordered trajectory with synthetic measurement error. Two models are provided:

- :class:`Independent`: errors are drawn independently for every observation
  from a bivariate normal distribution.
- :class:`Temporal`: errors follow a first-order vector autoregression, so that
  the error at one observation carries over to the next.

Both validate their parameters on construction and draw from an explicit
``numpy.random.Generator`` so that results are reproducible under a seed. The
default parameters are the means found across the four days of the
calibration study that informed this project.
"""

import inspect
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
import scipy.linalg as sla

from denoiser.exceptions import NumericalError
from denoiser.models.validation import (
    as_pair,
    as_square_matrix,
    cholesky_factor,
    positive_scalar,
)
from denoiser.preprocessing.sampling_rate import get_sampling_frequency

# Standard deviations 0.031 and 0.027 with a correlation of 0.02 between the axes
DEFAULT_COVARIANCE = np.array([[0.031 ** 2, 0.02 * 0.031 * 0.027],
                               [0.02 * 0.031 * 0.027, 0.027 ** 2]])
DEFAULT_TRANSITION = np.array([[0.925, 0.085],
                               [0.085, 0.87]])

# Mean sampling rate (Hz) of the calibration data the defaults were fitted on
DEFAULT_SAMPLING_RATE = 6.13

RandomState = Union[None, int, np.random.Generator]


class NoiseModel(ABC):
    """Interface of the models used by :func:`denoiser.filtering.noiser`."""

    @abstractmethod
    def apply(self, data: pd.DataFrame, rng: RandomState = None) -> pd.DataFrame:
        """Return a copy of `data` with measurement error added to ``x`` and ``y``."""


def _standard_draws(rng: RandomState, n: int) -> np.ndarray:
    return np.random.default_rng(rng).standard_normal((n, 2))


class Independent(NoiseModel):
    """
    Add independent error to data.

    Residuals are drawn from a bivariate normal distribution with the given
    `mean` and `covariance`, independently for every observation::

        y_i = x_i + eps_i,    eps_i ~ N(mean, covariance)

    Parameters
    ----------
    mean : float or sequence of float, default=(0, 0)
        Mean of the error in the x- and y-dimension. A single value is used for
        both dimensions; longer sequences are truncated to two values.
    covariance : array-like of shape (2, 2)
        Covariance of the errors. Must be a symmetric positive definite 2 x 2
        matrix; scalars and vectors are refused.

    Raises
    ------
    DimensionError
        If `covariance` is not a 2 x 2 matrix.
    NumericalError
        If `covariance` is not symmetric positive definite.

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from denoiser.models import Independent
    >>> data = pd.DataFrame({'time': np.arange(5.0), 'x': 0.0, 'y': 0.0})
    >>> noised = Independent(covariance=np.eye(2) * 0.01).apply(data, rng=1)
    >>> len(noised)
    5
    """

    def __init__(self,
                 mean: Union[float, Sequence[float]] = (0.0, 0.0),
                 covariance=DEFAULT_COVARIANCE):
        self.mean = as_pair(mean, "mean")
        self.covariance = as_square_matrix(covariance, "covariance")
        self._cholesky = cholesky_factor(self.covariance, "covariance")

    def __repr__(self) -> str:
        return f"Independent(mean={self.mean.tolist()}, covariance={self.covariance.tolist()})"

    def residuals(self, n: int, rng: RandomState = None) -> np.ndarray:
        """Draw `n` residuals, shape (n, 2)."""
        return self.mean + _standard_draws(rng, n) @ self._cholesky.T

    def apply(self, data: pd.DataFrame, rng: RandomState = None) -> pd.DataFrame:
        data = data.sort_values("time", kind="mergesort")
        residuals = self.residuals(len(data), rng)
        return data.assign(
            x=data["x"].to_numpy(dtype=float) + residuals[:, 0],
            y=data["y"].to_numpy(dtype=float) + residuals[:, 1],
        )


def _scale_transition(transition: np.ndarray, exponent: float) -> np.ndarray:
    """Real matrix power ``transition ** exponent``."""
    if exponent == 1.0:
        return transition.copy()

    scaled = np.real_if_close(sla.fractional_matrix_power(transition, exponent), tol=1000)
    if np.iscomplexobj(scaled):
        raise NumericalError(
            f"Transition matrix raised to the power {exponent} has no real-valued solution:\n{transition}"
        )
    return np.asarray(scaled, dtype=float)


class Temporal(NoiseModel):
    r"""
    Add temporally dependent error to data.

    Residuals follow a first-order vector autoregressive process::

        eps_1 = omega_1
        eps_i = intercept + Theta * eps_{i-1} + omega_i,    omega_i ~ N(0, covariance)
        y_i   = x_i + eps_i

    The transition matrix is defined at the reference sampling rate and adapted
    to the sampling rate of the data through the real matrix power
    :math:`\Theta^{r_{ref} / r}`.

    Parameters
    ----------
    intercept : float or sequence of float, default=(0, 0)
        Intercept of the autoregression. A single value is used for both
        dimensions; longer sequences are truncated to two values.
    transition : array-like of shape (2, 2)
        Autoregressive effects on the diagonal, cross-regressive effects on the
        off-diagonal.
    covariance : array-like of shape (2, 2)
        Covariance of the innovations omega. Must be symmetric positive definite.
    sampling_rate : float or None, default=6.13
        Sampling rate of the data in Hz. ``None`` derives it from the time
        column of each trajectory. When you change `transition`, leave this
        equal to `reference_rate`.
    reference_rate : float, default=6.13
        Sampling rate in Hz at which `transition` is defined.

    Raises
    ------
    DimensionError
        If `transition` or `covariance` is not a 2 x 2 matrix.
    NumericalError
        If `covariance` is not symmetric positive definite.
    ConfigurationError
        If a sampling rate is not positive.

    Examples
    --------
    >>> import numpy as np
    >>> from denoiser.models import Temporal
    >>> model = Temporal(intercept=(5, 5), transition=np.eye(2) * 0.5, covariance=np.eye(2) * 0.1)
    >>> model.stationary_mean()
    array([10., 10.])
    """

    def __init__(self,
                 intercept: Union[float, Sequence[float]] = (0.0, 0.0),
                 transition=DEFAULT_TRANSITION,
                 covariance=DEFAULT_COVARIANCE,
                 sampling_rate: Optional[float] = DEFAULT_SAMPLING_RATE,
                 reference_rate: float = DEFAULT_SAMPLING_RATE):
        self.intercept = as_pair(intercept, "intercept")
        self.covariance = as_square_matrix(covariance, "covariance")
        self.transition = as_square_matrix(transition, "transition")
        self._cholesky = cholesky_factor(self.covariance, "covariance")
        self.reference_rate = positive_scalar(reference_rate, "reference_rate")
        self.sampling_rate = None if sampling_rate is None else positive_scalar(sampling_rate, "sampling_rate")

    def __repr__(self) -> str:
        return (f"Temporal(intercept={self.intercept.tolist()}, transition={self.transition.tolist()}, "
                f"covariance={self.covariance.tolist()}, sampling_rate={self.sampling_rate}, "
                f"reference_rate={self.reference_rate})")

    def scaled_transition(self, sampling_rate: Optional[float] = None) -> np.ndarray:
        """
        Transition matrix adapted to `sampling_rate` (Hz).

        Defaults to the model's own sampling rate, or to the reference rate when
        the model infers its rate from the data.
        """
        rate = sampling_rate if sampling_rate is not None else self.sampling_rate
        if rate is None:
            rate = self.reference_rate
        rate = positive_scalar(rate, "sampling_rate")
        return _scale_transition(self.transition, self.reference_rate / rate)

    def stationary_mean(self, sampling_rate: Optional[float] = None) -> np.ndarray:
        """Long-run mean of the residuals, ``(I - Theta)^-1 intercept``."""
        theta = self.scaled_transition(sampling_rate)
        try:
            return np.linalg.solve(np.eye(2) - theta, self.intercept)
        except np.linalg.LinAlgError as exc:
            raise NumericalError("The process has a unit root; its stationary mean is undefined.") from exc

    def stationary_covariance(self, sampling_rate: Optional[float] = None) -> np.ndarray:
        """Long-run covariance G of the residuals, solving ``G = Theta G Theta^T + covariance``."""
        theta = self.scaled_transition(sampling_rate)
        return sla.solve_discrete_lyapunov(theta, self.covariance)

    def innovation_covariance(self, stationary: np.ndarray, sampling_rate: Optional[float] = None) -> np.ndarray:
        """
        Innovation covariance producing a given stationary covariance.

        Inverse of :meth:`stationary_covariance`: ``stationary - Theta stationary Theta^T``.
        Useful to choose `covariance` from a known spread of the residuals.
        """
        theta = self.scaled_transition(sampling_rate)
        stationary = as_square_matrix(stationary, "stationary covariance")
        return stationary - theta @ stationary @ theta.T

    def residuals(self, n: int, rng: RandomState = None, sampling_rate: Optional[float] = None) -> np.ndarray:
        """Simulate `n` residuals of the autoregressive process, shape (n, 2)."""
        theta = self.scaled_transition(sampling_rate)
        innovations = _standard_draws(rng, n) @ self._cholesky.T

        residuals = np.empty((n, 2))
        for i in range(n):
            if i == 0:
                residuals[i] = innovations[i]
            else:
                residuals[i] = self.intercept + theta @ residuals[i - 1] + innovations[i]
        return residuals

    def apply(self, data: pd.DataFrame, rng: RandomState = None) -> pd.DataFrame:
        data = data.sort_values("time", kind="mergesort")

        sampling_rate = self.sampling_rate
        if sampling_rate is None:
            # A single observation or tied timestamps carry no rate information
            if data["time"].nunique() > 1:
                sampling_rate = get_sampling_frequency(data, time_col="time")
            else:
                sampling_rate = self.reference_rate

        residuals = self.residuals(len(data), rng, sampling_rate=sampling_rate)
        return data.assign(
            x=data["x"].to_numpy(dtype=float) + residuals[:, 0],
            y=data["y"].to_numpy(dtype=float) + residuals[:, 1],
        )


class CallableNoiseModel(NoiseModel):
    """
    Wrap a plain function ``f(data, **kwargs) -> DataFrame`` as a noise model.

    When the function has an ``rng`` parameter it receives the generator of
    the call, so that it follows the dispatcher's `seed`. Otherwise the
    function is responsible for its own randomness.
    """

    def __init__(self, function: Callable[..., pd.DataFrame], **kwargs):
        self.function = function
        self.kwargs = kwargs
        self.takes_rng = "rng" not in kwargs and _has_parameter(function, "rng")

    def __repr__(self) -> str:
        name = getattr(self.function, "__name__", repr(self.function))
        return f"CallableNoiseModel({name})"

    def apply(self, data: pd.DataFrame, rng: RandomState = None) -> pd.DataFrame:
        if self.takes_rng:
            return self.function(data, rng=rng, **self.kwargs)
        return self.function(data, **self.kwargs)


def _has_parameter(function: Callable, name: str) -> bool:
    try:
        parameters = inspect.signature(function).parameters
    except (TypeError, ValueError):
        # Builtins without an introspectable signature
        return False
    return name in parameters


MEASUREMENT_MODELS: Mapping[str, Callable[..., NoiseModel]] = MappingProxyType({
    "independent": Independent,
    "temporal": Temporal,
})
