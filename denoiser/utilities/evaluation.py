"""
Evaluation helpers for denoiser.

Metrics comparing an estimated trajectory with its ground truth, and a
least-squares fit of a VAR(1) process to residuals, which recovers the
parameters of the temporal measurement model from data.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Union

import numpy as np
import pandas as pd
import polars as pl

from denoiser.exceptions import DimensionError, InputTypeError


def _coordinates(df: Union[pd.DataFrame, pl.DataFrame], cols: Sequence[str]) -> np.ndarray:
    if isinstance(df, pl.DataFrame):
        return df.select(list(cols)).to_numpy().astype(float)
    if isinstance(df, pd.DataFrame):
        return df[list(cols)].to_numpy(dtype=float)
    raise InputTypeError("df must be either a pandas DataFrame or a polars DataFrame.")


def _paired(estimate, truth, cols: Sequence[str]):
    est = _coordinates(estimate, cols)
    ref = _coordinates(truth, cols)
    if est.shape != ref.shape:
        raise DimensionError(
            f"Estimate and truth should have the same number of rows, got {est.shape[0]} and {ref.shape[0]}."
        )
    return est, ref


def mean_absolute_deviation(
    estimate: Union[pd.DataFrame, pl.DataFrame],
    truth: Union[pd.DataFrame, pl.DataFrame],
    cols: Sequence[str] = ("x", "y"),
) -> Dict[str, float]:
    """
    Mean absolute deviation between an estimated and a true trajectory.

    Rows are compared pairwise, so both tables must be in the same order.

    Returns
    -------
    dict
        Mean absolute deviation per column.
    """
    est, ref = _paired(estimate, truth, cols)
    deviation = np.mean(np.abs(est - ref), axis=0)
    return {col: float(value) for col, value in zip(cols, deviation)}


def root_mean_squared_error(
    estimate: Union[pd.DataFrame, pl.DataFrame],
    truth: Union[pd.DataFrame, pl.DataFrame],
    cols: Sequence[str] = ("x", "y"),
) -> Dict[str, float]:
    """Root mean squared error per column between an estimated and a true trajectory."""
    est, ref = _paired(estimate, truth, cols)
    rmse = np.sqrt(np.mean((est - ref) ** 2, axis=0))
    return {col: float(value) for col, value in zip(cols, rmse)}


@dataclass(frozen=True)
class VAR1Fit:
    """Least-squares estimates of a VAR(1) process ``e_i = intercept + transition e_{i-1} + w_i``."""
    intercept: np.ndarray
    transition: np.ndarray
    covariance: np.ndarray


def fit_var1(residuals: np.ndarray) -> VAR1Fit:
    """
    Fit a first-order vector autoregression by ordinary least squares.

    Parameters
    ----------
    residuals : np.ndarray
        Residual series, shape (T, k) with T > k + 1.

    Returns
    -------
    VAR1Fit
        Estimated intercept (k,), transition (k, k) and innovation covariance
        (k, k).
    """
    residuals = np.asarray(residuals, dtype=float)
    if residuals.ndim != 2:
        raise DimensionError(f"Residuals should be a (T, k) array, got shape {residuals.shape}.")

    T, k = residuals.shape
    if T <= k + 1:
        raise DimensionError(f"At least {k + 2} residuals are needed to fit a VAR(1), got {T}.")

    # Regress e_i on [1, e_{i-1}]
    X = np.column_stack((np.ones(T - 1), residuals[:-1]))
    Y = residuals[1:]
    coef, *_ = np.linalg.lstsq(X, Y, rcond=None)

    fitted = X @ coef
    innovations = Y - fitted
    covariance = innovations.T @ innovations / (T - 1 - (k + 1))

    return VAR1Fit(
        intercept=coef[0],
        transition=coef[1:].T,
        covariance=covariance,
    )
