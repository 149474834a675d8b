"""
Sampling rate analysis module for denoiser.

This module provides utilities to analyze the temporal sampling characteristics
of trajectories. The temporal measurement model rescales its transition matrix
with the sampling frequency returned here.
"""

from typing import Union

import numpy as np
import pandas as pd
import polars as pl

from denoiser.exceptions import ConfigurationError, InputTypeError


def _time_differences(df: Union[pd.DataFrame, pl.DataFrame], time_col: str) -> np.ndarray:
    """Return the time differences (seconds) between consecutive rows."""
    if isinstance(df, pl.DataFrame):
        df = df.select(time_col).to_pandas()
    elif not isinstance(df, pd.DataFrame):
        raise InputTypeError("df must be either a pandas DataFrame or a polars DataFrame.")

    time_data = df[time_col]

    # Numeric time columns are already expressed in seconds
    if pd.api.types.is_numeric_dtype(time_data):
        return np.diff(time_data.to_numpy(dtype=float))

    # Strings, datetimes and timezone-aware datetimes all go through pandas
    if not (pd.api.types.is_datetime64_any_dtype(time_data) or isinstance(time_data.dtype, pd.DatetimeTZDtype)):
        time_data = pd.to_datetime(time_data)

    # .diff() computes time[i] - time[i-1], so first value is NaT
    return time_data.diff().dt.total_seconds().to_numpy()[1:]


def get_sampling_rate(
    df: Union[pd.DataFrame, pl.DataFrame],
    time_col: str = 'time'
) -> float:
    """
    Calculate the average sampling rate (time interval) of a trajectory.

    Parameters
    ----------
    df : pd.DataFrame or pl.DataFrame
        The DataFrame containing trajectory data with timestamps.
    time_col : str, default='time'
        The column name for time values. Numeric values are interpreted as
        seconds; anything else is parsed by pandas.to_datetime().

    Returns
    -------
    float
        The average interval between consecutive observations in seconds,
        rounded to 3 decimal places. Returns -1.0 if the DataFrame has fewer
        than 2 rows (cannot calculate rate).

    Raises
    ------
    ConfigurationError
        If the specified time column is not found in the DataFrame.

    Examples
    --------
    >>> import pandas as pd
    >>> from denoiser.preprocessing import get_sampling_rate
    >>> df = pd.DataFrame({'time': [0.0, 0.5, 1.0, 1.5], 'x': 0.0, 'y': 0.0})
    >>> get_sampling_rate(df)
    0.5

    Notes
    -----
    The function computes mean(time[i+1] - time[i]) over all consecutive pairs
    and assumes the time column is in chronological order (not validated).
    """
    if time_col not in df.columns:
        raise ConfigurationError(f"Column '{time_col}' not found in DataFrame.")

    # Early exit for insufficient data
    if len(df) < 2:
        return -1.0

    time_diffs = _time_differences(df, time_col)
    average_sampling_rate = float(np.mean(time_diffs))
    return round(average_sampling_rate, 3)


def get_sampling_frequency(
    df: Union[pd.DataFrame, pl.DataFrame],
    time_col: str = 'time'
) -> float:
    """
    Calculate the average sampling frequency of a trajectory in Hz.

    This is the reciprocal of the mean interval between observations (computed
    without rounding), the unit in which the temporal measurement model
    expresses its sampling rate.

    Returns
    -------
    float
        Observations per second. Returns -1.0 if the DataFrame has fewer than
        2 rows.

    Raises
    ------
    ConfigurationError
        If the time column is missing or the mean interval is not positive.
    """
    if time_col not in df.columns:
        raise ConfigurationError(f"Column '{time_col}' not found in DataFrame.")

    if len(df) < 2:
        return -1.0

    mean_interval = float(np.mean(_time_differences(df, time_col)))
    if not mean_interval > 0:
        raise ConfigurationError(
            "Cannot derive a sampling frequency: the mean time between observations "
            f"is {mean_interval}, which is not positive."
        )
    return 1.0 / mean_interval
