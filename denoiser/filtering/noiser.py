"""
Adding synthetic measurement error to grouped trajectories.

:func:`noiser` is the counterpart of :func:`~denoiser.filtering.kalman_filter`:
instead of removing measurement error it adds it, using one of the
measurement models of :mod:`denoiser.models`.
"""

from typing import Callable, Mapping, Optional, Union

import numpy as np
import pandas as pd
import polars as pl
from tqdm import tqdm

from denoiser.models.measurement_models import NoiseModel, RandomState
from denoiser.models.registry import resolve_noise_model
from denoiser.preprocessing.prepare import finalize, group_rows, prepare


def noiser(
    data: Union[pd.DataFrame, pl.DataFrame],
    model: Union[str, NoiseModel, Callable] = "temporal",
    cols: Optional[Mapping[str, str]] = None,
    by: Optional[str] = None,
    seed: RandomState = None,
    registry: Optional[Mapping[str, Callable[..., NoiseModel]]] = None,
    verbose: bool = False,
    **model_kwargs,
) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Add measurement error to trajectories.

    Every group is put in chronological order and handed to the measurement
    model, which perturbs its x- and y-coordinates. All groups draw from a
    single random generator, so that they receive distinct errors while the
    whole call stays reproducible under `seed`.

    Parameters
    ----------
    data : pd.DataFrame or pl.DataFrame
        Trajectory data with time, x- and y-coordinates.
    model : str, NoiseModel or callable, default="temporal"
        ``"independent"`` or ``"temporal"`` (or another name in `registry`),
        a model instance with an ``apply`` method, or a function
        ``f(data, **model_kwargs) -> DataFrame``. A function with an ``rng``
        parameter receives the generator seeded by `seed`.
    cols : mapping, optional
        Mapping from ``'time'``, ``'x'`` and ``'y'`` to the column names in
        `data`.
    by : str, optional
        Grouping column; every group is noised independently.
    seed : int or np.random.Generator, optional
        Seed or generator for the random draws. The same seed and inputs
        reproduce the output exactly.
    registry : mapping, optional
        Mapping of model names to model classes. Defaults to
        :data:`denoiser.models.MEASUREMENT_MODELS`.
    verbose : bool, default=False
        Show a progress bar over the groups.
    **model_kwargs
        Passed to the model, e.g. ``covariance`` or ``transition``.

    Returns
    -------
    pd.DataFrame or pl.DataFrame
        Noised data with the same type, columns and row order as the canonical
        selection of `data`.

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> from denoiser.filtering import noiser
    >>> angles = np.linspace(0, 4 * np.pi, 100)
    >>> data = pd.DataFrame({
    ...     'seconds': np.tile(np.arange(1, 51), 2),
    ...     'X': 10 * np.cos(angles),
    ...     'Y': 10 * np.sin(angles),
    ...     'tag': np.repeat([1, 2], 50),
    ... })
    >>> noised = noiser(
    ...     data,
    ...     cols={'time': 'seconds', 'x': 'X', 'y': 'Y'},
    ...     by='tag',
    ...     model='independent',
    ...     covariance=np.eye(2) * 0.01,
    ...     seed=1,
    ... )
    """
    preparation = prepare(data, cols=cols, by=by)
    error = resolve_noise_model(model, registry=registry, **model_kwargs)
    rng = np.random.default_rng(seed)

    canonical = preparation.data
    groups = group_rows(canonical["id"])

    noised_x = canonical["x"].to_numpy(dtype=float, copy=True)
    noised_y = canonical["y"].to_numpy(dtype=float, copy=True)

    group_iter = tqdm(groups, desc="noiser groups") if verbose else groups

    for _, rows in group_iter:
        data_i = canonical.iloc[rows].set_axis(rows)
        data_i = data_i.sort_values("time", kind="mergesort")

        result = error.apply(data_i, rng=rng)

        target_rows = result.index.to_numpy()
        noised_x[target_rows] = result["x"].to_numpy(dtype=float)
        noised_y[target_rows] = result["y"].to_numpy(dtype=float)

    out = canonical.assign(x=noised_x, y=noised_y)
    return finalize(out, preparation)
