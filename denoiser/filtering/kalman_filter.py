"""
Kalman filter smoothing of grouped trajectories.

:func:`kalman_filter` is the high-level entry point: it prepares the data,
resolves the state-space model once, and filters every group (entity) on its
own. Groups that are too small to filter are passed through unchanged with an
:class:`~denoiser.exceptions.InsufficientDataWarning`.
"""

import warnings
from typing import Callable, Mapping, Optional, Union

import pandas as pd
import polars as pl
from tqdm import tqdm

from denoiser.exceptions import ConfigurationError, InsufficientDataWarning
from denoiser.filtering.engine import run_kalman_filter
from denoiser.models.kalman_models import StateSpaceModel
from denoiser.models.registry import resolve_kalman_model
from denoiser.preprocessing.prepare import finalize, group_rows, prepare


def kalman_filter(
    data: Union[pd.DataFrame, pl.DataFrame],
    model: Union[str, StateSpaceModel, Callable] = "constant_velocity",
    cols: Optional[Mapping[str, str]] = None,
    by: Optional[str] = None,
    N_min: int = 5,
    registry: Optional[Mapping[str, Callable[..., StateSpaceModel]]] = None,
    verbose: bool = False,
    **model_kwargs,
) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Smooth trajectories with a Kalman filter.

    The data are split by the grouping column and every group is filtered
    independently: the state-space model derives its parameters from the
    group's observations, after which the filter runs over them in
    chronological order. The filtered positions replace the observed ones.

    Parameters
    ----------
    data : pd.DataFrame or pl.DataFrame
        Trajectory data with time, x- and y-coordinates.
    model : str, StateSpaceModel or callable, default="constant_velocity"
        Name of a model in `registry`, a model instance with a ``build``
        method, or a function ``f(data, **model_kwargs) -> ModelParameters``.
    cols : mapping, optional
        Mapping from ``'time'``, ``'x'`` and ``'y'`` to the column names in
        `data`.
    by : str, optional
        Grouping column (e.g. a tag id). Each group is filtered on its own.
    N_min : int, default=5
        Groups with ``N_min`` or fewer observations are returned unfiltered.
    registry : mapping, optional
        Mapping of model names to model classes. Defaults to
        :data:`denoiser.models.KALMAN_MODELS`.
    verbose : bool, default=False
        Show a progress bar over the groups.
    **model_kwargs
        Passed to the model, e.g. ``error`` for
        :class:`~denoiser.models.ConstantVelocity`.

    Returns
    -------
    pd.DataFrame or pl.DataFrame
        Smoothed data with the same type, columns and row order as the
        canonical selection of `data`. Groups that were too small keep their
        values; when any group is filtered, the coordinate columns become
        float64 for all rows, passed-through groups included.

    Warns
    -----
    InsufficientDataWarning
        When at least one group has ``N_min`` or fewer observations.

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from denoiser.filtering import kalman_filter
    >>> angles = np.linspace(0, 4 * np.pi, 100)
    >>> rng = np.random.default_rng(1)
    >>> data = pd.DataFrame({
    ...     'seconds': np.tile(np.arange(1, 51), 2),
    ...     'X': 10 * np.cos(angles) + rng.normal(0, 0.1, 100),
    ...     'Y': 10 * np.sin(angles) + rng.normal(0, 0.1, 100),
    ...     'tag': np.repeat([1, 2], 50),
    ... })
    >>> smoothed = kalman_filter(
    ...     data,
    ...     cols={'time': 'seconds', 'x': 'X', 'y': 'Y'},
    ...     by='tag',
    ...     error=0.01,
    ... )
    """
    if N_min < 0:
        raise ConfigurationError(f"Argument `N_min` should be non-negative, got {N_min}.")

    preparation = prepare(data, cols=cols, by=by)
    equation = resolve_kalman_model(model, registry=registry, **model_kwargs)

    canonical = preparation.data
    groups = group_rows(canonical["id"])

    # ========== Minimum Sample Check ==========
    # The filter cannot operate properly on very few observations; such groups
    # are returned as they are.
    too_small = [group_id for group_id, rows in groups if len(rows) <= N_min]
    to_filter = [(group_id, rows) for group_id, rows in groups if len(rows) > N_min]
    if too_small:
        if by is None:
            target = "this dataset."
        else:
            target = (f"{len(too_small)} group(s) defined through the `by` argument: "
                      f"{', '.join(map(str, too_small))}.")
        warnings.warn(
            "Some of the data contain too few datapoints to perform the Kalman filter. "
            f"Returning the data as-is for {target}",
            InsufficientDataWarning,
            stacklevel=2,
        )

    if not to_filter:
        return finalize(canonical, preparation)

    # Filtered positions are floats, so passed-through groups share that dtype
    smoothed_x = canonical["x"].to_numpy(dtype=float, copy=True)
    smoothed_y = canonical["y"].to_numpy(dtype=float, copy=True)

    group_iter = tqdm(to_filter, desc="kalman groups") if verbose else to_filter

    for _, rows in group_iter:
        # Label rows by their position so that results can be written back
        data_i = canonical.iloc[rows].set_axis(rows)

        parameters = equation.build(data_i)
        result = run_kalman_filter(parameters)

        target_rows = result.index.to_numpy()
        smoothed_x[target_rows] = result.positions[:, 0]
        smoothed_y[target_rows] = result.positions[:, 1]

    out = canonical.assign(x=smoothed_x, y=smoothed_y)
    return finalize(out, preparation)
