"""
Column preparation and finalization for denoiser.

Every public entry point of denoiser works on a canonical table with the
columns ``time``, ``x``, ``y`` and ``id``. This module maps a user-shaped
DataFrame onto that canonical layout (:func:`prepare`) and maps a result back
onto the user's column names (:func:`finalize`).

Both pandas and polars DataFrames are accepted. Internally everything runs on
pandas; the original type is remembered and restored on the way out.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
import polars as pl

from denoiser.exceptions import ConfigurationError, InputTypeError

# Canonical column names used throughout the package
CANONICAL_COLUMNS = ("time", "x", "y", "id")
REQUIRED_COLUMNS = ("time", "x", "y")

# Value of the synthetic grouping column when no `by` is given
DEFAULT_GROUP = 1


@dataclass(frozen=True)
class Preparation:
    """
    Result of :func:`prepare`.

    Attributes
    ----------
    data : pd.DataFrame
        Canonical table with columns ``time``, ``x``, ``y`` and ``id``.
    cols : dict
        Mapping from canonical column name to the user's column name.
    group : list
        Unique group identifiers in order of first appearance.
    by : str or None
        Name of the user's grouping column, None when no grouping was asked for.
    was_polars : bool
        Whether the input was a polars DataFrame.
    """
    data: pd.DataFrame
    cols: Dict[str, str]
    group: List[Any]
    by: Optional[str] = None
    was_polars: bool = False


def _to_pandas_preserve(df: Union[pd.DataFrame, pl.DataFrame]) -> Tuple[pd.DataFrame, bool]:
    """
    Convert input DataFrame to pandas and track original type.

    Returns: (pandas_df, was_polars_flag)
    """
    if isinstance(df, pl.DataFrame):
        return df.to_pandas(), True
    if isinstance(df, pd.DataFrame):
        return df.copy(), False
    raise InputTypeError(
        f"Argument `data` should be a pandas or polars DataFrame, got {type(df).__name__}."
    )


def _from_pandas_preserve(pdf: pd.DataFrame, was_polars: bool) -> Union[pd.DataFrame, pl.DataFrame]:
    """Convert pandas DataFrame back to polars when the input was polars."""
    return pl.from_pandas(pdf) if was_polars else pdf


def _check_cols(cols: Optional[Mapping[str, str]]) -> Dict[str, str]:
    # Default: the data already uses the canonical names
    if cols is None:
        return {name: name for name in REQUIRED_COLUMNS}

    if not isinstance(cols, Mapping):
        raise ConfigurationError(
            "Argument `cols` should be a mapping of 'time', 'x' and 'y' to column names "
            f"in the data, got {type(cols).__name__}."
        )

    missing = [name for name in REQUIRED_COLUMNS if name not in cols]
    if missing:
        raise ConfigurationError(
            "Names of the `cols` argument do not contain the required names "
            f"(missing: {', '.join(missing)}). Please make sure the labels are "
            "'time', 'x', and 'y' or change your data's column names."
        )

    return {name: cols[name] for name in REQUIRED_COLUMNS}


def prepare(
    data: Union[pd.DataFrame, pl.DataFrame],
    cols: Optional[Mapping[str, str]] = None,
    by: Optional[str] = None,
) -> Preparation:
    """
    Map a user-shaped trajectory table onto the canonical denoiser layout.

    Parameters
    ----------
    data : pd.DataFrame or pl.DataFrame
        Trajectory data containing time, x- and y-coordinates and optionally a
        grouping column.
    cols : mapping, optional
        Mapping from the canonical names ``'time'``, ``'x'`` and ``'y'`` to the
        column names used in `data`. Defaults to the canonical names.
    by : str, optional
        Name of the column identifying separate entities (e.g. a tag id). When
        omitted, all rows form a single group.

    Returns
    -------
    Preparation
        Canonical data, the column mapping, the group identifiers and the
        information needed by :func:`finalize`.

    Raises
    ------
    InputTypeError
        If `data` is not a DataFrame.
    ConfigurationError
        If `cols` is malformed or names columns that are not in `data`.

    Examples
    --------
    >>> import pandas as pd
    >>> from denoiser.preprocessing import prepare
    >>> df = pd.DataFrame({'seconds': [1, 2], 'X': [0.0, 1.0], 'Y': [0.0, 1.0], 'tag': [1, 1]})
    >>> prepared = prepare(df, cols={'time': 'seconds', 'x': 'X', 'y': 'Y'}, by='tag')
    >>> list(prepared.data.columns)
    ['time', 'x', 'y', 'id']
    """
    pdf, was_polars = _to_pandas_preserve(data)
    mapping = _check_cols(cols)

    if by is not None:
        mapping["id"] = by
    else:
        pdf["id"] = DEFAULT_GROUP
        mapping["id"] = "id"

    absent = [column for column in mapping.values() if column not in pdf.columns]
    if absent:
        raise ConfigurationError(f"Column(s) {', '.join(map(repr, absent))} not found in DataFrame.")

    canonical = pdf[[mapping[name] for name in CANONICAL_COLUMNS]].copy()
    canonical.columns = list(CANONICAL_COLUMNS)

    group = list(pd.unique(canonical["id"]))

    return Preparation(
        data=canonical,
        cols=mapping,
        group=group,
        by=by,
        was_polars=was_polars,
    )


def finalize(data: pd.DataFrame, preparation: Preparation) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Map a canonical result table back onto the user's column names.

    The synthetic ``id`` column is dropped when no grouping column was given,
    and the table is converted back to polars when the input was polars.

    Parameters
    ----------
    data : pd.DataFrame
        Canonical table with columns ``time``, ``x``, ``y`` and ``id``.
    preparation : Preparation
        The object returned by :func:`prepare` for the same call.

    Returns
    -------
    pd.DataFrame or pl.DataFrame
        Table with the user's column names, same type as the original input.
    """
    cols = preparation.cols
    out = data[list(CANONICAL_COLUMNS)].copy()
    out.columns = [cols[name] for name in CANONICAL_COLUMNS]

    if preparation.by is None:
        out = out.drop(columns=[cols["id"]])

    return _from_pandas_preserve(out, preparation.was_polars)


def group_rows(ids: pd.Series) -> List[Tuple[Any, np.ndarray]]:
    """
    Row positions of every group, in order of first appearance.

    Missing keys (NaN, None) form a group of their own. Positions within a
    group keep their original order.

    Parameters
    ----------
    ids : pd.Series
        Group identifier per row, e.g. the canonical ``id`` column.

    Returns
    -------
    list of (group_id, np.ndarray)
        One entry per group with the integer positions of its rows.

    Examples
    --------
    >>> import pandas as pd
    >>> from denoiser.preprocessing import group_rows
    >>> [(key, rows.tolist()) for key, rows in group_rows(pd.Series(['b', 'a', 'b']))]
    [('b', [0, 2]), ('a', [1])]
    """
    codes, uniques = pd.factorize(ids, use_na_sentinel=False)
    order = np.argsort(codes, kind="stable")
    bounds = np.cumsum(np.bincount(codes, minlength=len(uniques)))[:-1]
    return list(zip(uniques, np.split(order, bounds)))
