"""Input compatibility layer for optional Polars support.

:func:`~bayes_glm_models.glm` accepts pandas DataFrames as the ``data``
argument of a formula model.  This module adds transparent support for
Polars DataFrames: when a user passes a ``polars.DataFrame`` (or
``polars.LazyFrame``) it is converted to ``pandas.DataFrame`` at the
boundary so that patsy, which only understands pandas-like objects,
sees a uniform input.  Plain mappings of column name to values (e.g.
``{"y": y, "x": x}``) are accepted as well.

Polars is **not** a required dependency.  If it is not installed, the
converter simply passes pandas objects through untouched.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, TypeAlias

import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame | Mapping
else:
    DataFrameLike: TypeAlias = pd.DataFrame | Mapping

# Polars is optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "data") -> pd.DataFrame:
    """Convert *obj* to a :class:`pandas.DataFrame` if necessary.

    Accepted types:
        * ``pandas.DataFrame`` — returned as-is.
        * ``polars.DataFrame`` — converted via ``.to_pandas()``.
        * ``polars.LazyFrame`` — collected then converted.
        * any ``Mapping`` of column name to 1-D values.

    Args:
        obj: A pandas or Polars DataFrame (or LazyFrame), or a mapping.
        name: Label used in error messages.

    Returns:
        A pandas ``DataFrame``.

    Raises:
        TypeError: If *obj* is not a recognised table type.
    """
    if isinstance(obj, pd.DataFrame):
        return obj

    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            return obj.collect().to_pandas()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()

    if isinstance(obj, Mapping):
        return pd.DataFrame(dict(obj))

    raise TypeError(
        f"'{name}' must be a pandas DataFrame"
        + (", Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
        + f" or a mapping of columns, got {type(obj).__name__}."
    )
