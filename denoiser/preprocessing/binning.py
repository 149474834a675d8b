"""
Time-window binning module for denoiser.

Summarizes observations within fixed time windows so that a trajectory holds
(at most) a single observation per window. Pedestrian models commonly assume
one walking decision every 0.5 seconds, which is the default window here.

Only the canonical columns survive binning: it is not possible to aggregate
arbitrary user columns meaningfully.
"""

from typing import Callable, Mapping, Optional, Union

import numpy as np
import pandas as pd
import polars as pl

from denoiser.exceptions import ConfigurationError
from denoiser.preprocessing.prepare import finalize, group_rows, prepare

# Offset given to the first observation of a group so that it falls in bin 1
_FIRST_OFFSET = 1e-2


def bin_observations(
    data: Union[pd.DataFrame, pl.DataFrame],
    span: float = 0.5,
    fx: Callable = np.mean,
    cols: Optional[Mapping[str, str]] = None,
    by: Optional[str] = None,
) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Aggregate observations that fall within the same time window.

    Parameters
    ----------
    data : pd.DataFrame or pl.DataFrame
        Trajectory data with time, x- and y-coordinates.
    span : float, default=0.5
        Width of the bins, in the units of the time column.
    fx : callable, default=np.mean
        Aggregation applied to the x and y values of each bin separately. Must
        return a single value.
    cols : mapping, optional
        Mapping from ``'time'``, ``'x'`` and ``'y'`` to the column names in
        `data`.
    by : str, optional
        Grouping column; each group is binned on its own time axis.

    Returns
    -------
    pd.DataFrame or pl.DataFrame
        One row per non-empty bin with the mean time of the bin and the
        aggregated coordinates. Same type and column names as the input.

    Raises
    ------
    ConfigurationError
        If `span` is not positive.

    Examples
    --------
    >>> import pandas as pd
    >>> from denoiser.preprocessing import bin_observations
    >>> df = pd.DataFrame({'time': [0.0, 0.2, 0.4, 0.6], 'x': [0., 1., 2., 3.], 'y': 0.})
    >>> binned = bin_observations(df, span=0.5)
    >>> binned['x'].tolist()
    [1.0, 3.0]

    Notes
    -----
    Bins are numbered ``ceil((time - min(time)) / span)`` within each group,
    with the first observation nudged into bin 1. Bins are right-closed: an
    observation exactly on a bin edge belongs to the earlier bin.
    """
    if not span > 0:
        raise ConfigurationError(f"Argument `span` should be positive, got {span}.")

    preparation = prepare(data, cols=cols, by=by)
    canonical = preparation.data

    binned = []
    for group_id, rows in group_rows(canonical["id"]):
        data_i = canonical.iloc[rows]

        abs_time = (data_i["time"] - data_i["time"].min()).astype(float)
        abs_time = abs_time.mask(abs_time == 0, _FIRST_OFFSET)
        bin_number = np.ceil(abs_time / span)

        # groupby keeps bins in ascending order, which is chronological
        grouped = data_i.groupby(bin_number, sort=True)
        summary = pd.DataFrame({
            "time": grouped["time"].mean(),
            "x": grouped["x"].agg(fx),
            "y": grouped["y"].agg(fx),
        })
        summary["id"] = group_id
        binned.append(summary)

    out = pd.concat(binned, ignore_index=True)
    return finalize(out, preparation)
