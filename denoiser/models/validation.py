"""
Argument checks shared by the measurement and state-space models.

All checks run when a model is constructed, before any random draw or filter
step, so that malformed parameters abort the call immediately.
"""

from typing import Sequence, Union

import numpy as np
import scipy.linalg as sla

from denoiser.exceptions import ConfigurationError, DimensionError, NumericalError


def as_pair(value: Union[float, Sequence[float], np.ndarray], name: str) -> np.ndarray:
    """
    Return `value` as a float vector of length 2.

    A single number is used for both dimensions; longer inputs are truncated to
    their first two values.
    """
    arr = np.asarray(value, dtype=float).ravel()
    if arr.size == 0:
        raise ConfigurationError(f"Argument `{name}` should contain 1 or 2 values, got none.")
    if arr.size == 1:
        return np.repeat(arr, 2)
    return arr[:2].copy()


def as_square_matrix(value, name: str, size: int = 2) -> np.ndarray:
    """
    Return `value` as a ``size x size`` float matrix.

    Scalars and vectors are refused rather than broadcast: the caller has to be
    explicit about the (co)variance structure it wants.
    """
    if value is None:
        raise DimensionError(f"Provided {name} is missing. A {size} x {size} matrix is required.")

    arr = np.asarray(value)
    if arr.ndim != 2:
        raise DimensionError(
            f"Provided {name} is not a matrix (got an array of shape {arr.shape}). "
            f"A {size} x {size} matrix is required."
        )
    if arr.shape != (size, size):
        raise DimensionError(
            f"Provided {name} matrix does not have the right dimensionality. "
            f"A {arr.shape[0]} x {arr.shape[1]} matrix is provided instead of the "
            f"required {size} x {size} matrix."
        )
    if not np.issubdtype(arr.dtype, np.number) or np.issubdtype(arr.dtype, np.bool_):
        raise DimensionError(f"Provided {name} matrix should be numeric, got dtype {arr.dtype}.")

    return arr.astype(float)


def cholesky_factor(matrix: np.ndarray, name: str) -> np.ndarray:
    """
    Lower-triangular Cholesky factor of a symmetric positive definite matrix.

    Raises
    ------
    NumericalError
        If the matrix is not symmetric or not strictly positive definite. Rank
        deficient (semi-definite) matrices are rejected as well.
    """
    if not np.all(np.isfinite(matrix)):
        raise NumericalError(f"Provided {name} matrix contains infinite or missing values:\n{matrix}")
    if not np.allclose(matrix, matrix.T):
        raise NumericalError(f"Provided {name} matrix is not symmetric:\n{matrix}")
    try:
        return sla.cholesky(matrix, lower=True)
    except np.linalg.LinAlgError as exc:
        raise NumericalError(f"Provided {name} matrix is not positive definite:\n{matrix}") from exc


def positive_scalar(value, name: str) -> float:
    """Return `value` as a float, refusing non-positive and non-finite values."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Argument `{name}` should be a number, got {value!r}.") from exc
    if not np.isfinite(number) or number <= 0:
        raise ConfigurationError(
            f"Argument `{name}` is lower than or equal to 0 ({number}), which is impossible."
        )
    return number
