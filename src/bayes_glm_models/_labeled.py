"""Labeled N-dimensional array.

Every accessor in the package (parameter draws, predictions, metric
tables) returns a :class:`LabeledArray`: a thin wrapper over an
:class:`xarray.DataArray` whose every axis carries a dimension
coordinate.  Axis names used across the package:

``"draw"``
    Posterior draw.  Before chains are collapsed the labels are the
    sampler iteration indices; after collapsing they are
    ``(iteration, chain)`` tuples; after a reduction the single label
    is the reducing function's name.
``"parameter"``
    Parameter display name (``"alpha"``, predictor names, ``"sigma"``,
    sampler internals such as ``"step_size"``).
``"chain"``
    Chain index, starting at 0.
``"row"``
    Observation index of a design matrix.
``"metric"``
    Metric name.

Selection, transposition, reduction and squeezing are xarray's.  The
wrapper keeps the package's conventions on top: labels are exposed as
tuples, scalar selections drop their coordinate, a reduction keeps a
length-1 axis named after the reducing function, and tuple draw labels
become a ``(iteration, chain)`` :class:`pandas.MultiIndex` on export.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Hashable, Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd
import xarray as xr


def _coordinate(labels: Sequence[Hashable]) -> Any:
    # Tuple labels (collapsed draws) must stay scalar objects, not a
    # second array axis.
    if any(isinstance(lab, tuple) for lab in labels):
        column = np.empty(len(labels), dtype=object)
        for i, lab in enumerate(labels):
            column[i] = lab
        return column
    return list(labels)


def _accepts_axis(func: Callable[..., Any]) -> bool:
    """Whether *func* can be called as ``func(values, axis=k)``."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(
        p.name == "axis" or p.kind is inspect.Parameter.VAR_KEYWORD for p in params
    )


class LabeledArray:
    """Array with named axes and per-axis labels.

    Args:
        values: Array data.
        dims: Axis names, one per dimension of *values*.
        coords: Mapping of axis name to a sequence of labels whose
            length matches the axis.  Axes without an entry are
            labelled by position.

    Raises:
        ValueError: If *dims* does not match the number of axes, names
            a dimension twice, or a label sequence has the wrong length.
    """

    __slots__ = ("_data",)

    def __init__(
        self,
        values: Any,
        dims: Sequence[str],
        coords: Mapping[str, Sequence[Hashable]] | None = None,
    ) -> None:
        values = np.asarray(values)
        dims = tuple(dims)
        coords = coords or {}
        if values.ndim != len(dims):
            msg = (
                f"LabeledArray has {values.ndim} axes but {len(dims)} "
                f"dimension names {dims}."
            )
            raise ValueError(msg)
        if len(set(dims)) != len(dims):
            msg = f"Dimension names must be unique, got {dims}."
            raise ValueError(msg)
        xr_coords = {}
        for axis, dim in enumerate(dims):
            labels = coords.get(dim)
            if labels is None:
                labels = range(values.shape[axis])
            labels = tuple(labels)
            if len(labels) != values.shape[axis]:
                msg = (
                    f"Axis '{dim}' has length {values.shape[axis]} but "
                    f"{len(labels)} labels."
                )
                raise ValueError(msg)
            xr_coords[dim] = _coordinate(labels)
        self._data = xr.DataArray(values, dims=dims, coords=xr_coords)

    @classmethod
    def from_xarray(cls, data: xr.DataArray) -> LabeledArray:
        """Wrap *data*, dropping coordinates that are not dimensions."""
        obj = cls.__new__(cls)
        obj._data = data.reset_coords(drop=True)
        return obj

    def to_xarray(self) -> xr.DataArray:
        """The underlying :class:`xarray.DataArray`."""
        return self._data

    # ---- Basic properties ------------------------------------------

    @property
    def values(self) -> np.ndarray:
        return self._data.values

    @property
    def dims(self) -> tuple[str, ...]:
        return tuple(str(d) for d in self._data.dims)

    @property
    def coords(self) -> dict[str, tuple[Hashable, ...]]:
        """Labels of every axis, as tuples."""
        return {dim: tuple(self._data.indexes[dim]) for dim in self.dims}

    @property
    def shape(self) -> tuple[int, ...]:
        return self._data.shape

    @property
    def ndim(self) -> int:
        return self._data.ndim

    @property
    def size(self) -> int:
        return self._data.size

    def __len__(self) -> int:
        return self.shape[0] if self.ndim else 0

    def __array__(self, dtype: Any = None, copy: bool | None = None) -> np.ndarray:
        if dtype is None:
            return self.values if not copy else self.values.copy()
        return self.values.astype(dtype, copy=bool(copy))

    def __repr__(self) -> str:
        dims = ", ".join(f"{d}: {n}" for d, n in zip(self.dims, self.shape))
        return f"LabeledArray({dims})\n{self.values!r}"

    # ---- Label lookup ----------------------------------------------

    def axis(self, dim: str) -> int:
        """Return the positional axis of *dim*.

        Raises:
            KeyError: If *dim* is not one of :attr:`dims`.
        """
        try:
            return self.dims.index(dim)
        except ValueError:
            raise KeyError(f"No dimension '{dim}' in {self.dims}.") from None

    def labels(self, dim: str) -> tuple[Hashable, ...]:
        """Return the labels along *dim*."""
        self.axis(dim)
        return tuple(self._data.indexes[dim])

    def index(self, dim: str, label: Hashable) -> int:
        """Return the position of *label* along *dim*.

        Raises:
            KeyError: If *label* is not present exactly once.
        """
        self.axis(dim)
        try:
            position = self._data.indexes[dim].get_loc(label)
        except (KeyError, TypeError):
            raise KeyError(f"Label {label!r} not found along '{dim}'.") from None
        if not isinstance(position, (int, np.integer)):
            raise KeyError(f"Label {label!r} is not unique along '{dim}'.")
        return int(position)

    # ---- Selection -------------------------------------------------

    def isel(self, **indexers: int | slice | Sequence[int] | np.ndarray) -> LabeledArray:
        """Select by position.  Integer indexers drop their axis."""
        for dim in indexers:
            self.axis(dim)
        positional = {
            dim: int(idx) if isinstance(idx, (int, np.integer)) else idx
            for dim, idx in indexers.items()
        }
        return LabeledArray.from_xarray(self._data.isel(positional, drop=True))

    def sel(self, **indexers: Hashable | Sequence[Hashable]) -> LabeledArray:
        """Select by label.

        A list (or 1-D array) of labels keeps the axis; a single label
        drops it.  Tuple labels (collapsed draws) must be wrapped in a
        list to be selected.
        """
        positional: dict[str, Any] = {}
        for dim, label in indexers.items():
            if isinstance(label, list) or (
                isinstance(label, np.ndarray) and label.ndim == 1
            ):
                positional[dim] = [self.index(dim, lab) for lab in label]
            else:
                positional[dim] = self.index(dim, label)
        return self.isel(**positional)

    def transpose(self, *dims: str) -> LabeledArray:
        """Reorder axes to *dims*."""
        order = [self.axis(d) for d in dims]
        if sorted(order) != list(range(self.ndim)):
            msg = f"transpose() needs every dimension of {self.dims}, got {dims}."
            raise ValueError(msg)
        return LabeledArray.from_xarray(self._data.transpose(*dims))

    # ---- Reduction -------------------------------------------------

    def reduce(
        self,
        func: Callable[..., Any],
        dim: str,
        label: Hashable | None = None,
    ) -> LabeledArray:
        """Reduce along *dim*, keeping it as a length-1 axis.

        *func* is called as ``func(values, axis=k)`` when its signature
        has an ``axis`` parameter (all NumPy reductions do); otherwise
        it is applied to each 1-D slice along *dim*.  The remaining
        label is *label*, defaulting to ``func.__name__``.

        Raises:
            ValueError: If a slice-wise *func* does not return a scalar.
        """
        axis = self.axis(dim)
        if _accepts_axis(func):
            reduced = self._data.reduce(func, dim=dim)
        else:

            def along_last(values: np.ndarray) -> np.ndarray:
                out = np.apply_along_axis(func, -1, values)
                if out.ndim != values.ndim - 1:
                    msg = (
                        f"Reducing function {func!r} must return a scalar for "
                        f"each slice along '{dim}'."
                    )
                    raise ValueError(msg)
                return out

            reduced = xr.apply_ufunc(along_last, self._data, input_core_dims=[[dim]])
        name = label if label is not None else getattr(func, "__name__", "reduced")
        reduced = reduced.reset_coords(drop=True).expand_dims({dim: [name]}, axis=axis)
        return LabeledArray.from_xarray(reduced)

    def squeeze(self, keep: Sequence[str] = ()) -> LabeledArray:
        """Drop every length-1 axis not listed in *keep*."""
        drop = [
            dim
            for dim, size in zip(self.dims, self.shape)
            if size == 1 and dim not in keep
        ]
        if not drop:
            return self
        return LabeledArray.from_xarray(self._data.squeeze(dim=drop, drop=True))

    # ---- Conversion ------------------------------------------------

    def to_pandas(self) -> pd.Series | pd.DataFrame | Any:
        """Convert a 0-, 1- or 2-D array to pandas.

        Tuple labels become a :class:`pandas.MultiIndex`.

        Raises:
            ValueError: For arrays with more than two axes.
        """
        if self.ndim == 0:
            return self.values.item()
        if self.ndim > 2:
            msg = f"to_pandas() supports at most 2 dimensions, got {self.ndim}."
            raise ValueError(msg)
        result = self._data.to_pandas()
        result.index = _to_index(result.index)
        if self.ndim == 2:
            result.columns = _to_index(result.columns)
        return result


def _to_index(index: pd.Index) -> pd.Index:
    if len(index) and all(isinstance(lab, tuple) for lab in index):
        return pd.MultiIndex.from_tuples(list(index), names=["iteration", "chain"])
    return index
