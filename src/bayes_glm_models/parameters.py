"""Parameter accessors.

Every accessor shares one signature::

    accessor(model, reduce_fn=None, *, standardized=False,
             drop_warmup=200, n_draws=-1, collapse=True,
             drop_singleton_dims=True)

and returns a :class:`~bayes_glm_models._labeled.LabeledArray` with
dims ``("draw", "parameter")`` (or ``("draw", "parameter", "chain")``
when ``collapse=False``).  The draws pass through
:func:`~bayes_glm_models.draws.select_draws`; *reduce_fn*, when given,
is applied along the draw axis; length-1 axes are then dropped unless
``drop_singleton_dims=False``.

Parameters are addressed by canonical label (``"alpha"``,
``"beta[0]"``, ``"sigma"``) or by predictor name; results are always
labelled with predictor names in place of coefficient slots.
*standardized* picks the native sample store instead of the
back-transformed one.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from ._labeled import LabeledArray
from ._typing import ReduceFn
from .draws import DEFAULT_DROP_WARMUP, reduce_draws, select_draws, squeeze_dims
from .standardize import destandardize

if TYPE_CHECKING:
    from .model import GLMModel

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Names
# ------------------------------------------------------------------ #


def _display_name(model: GLMModel, label: str) -> str:
    return model.coef_names.get(label, label)


def _canonical_name(model: GLMModel, name: str) -> str:
    for slot, predictor in model.coef_names.items():
        if predictor == name:
            return slot
    return name


def parameter_names(model: GLMModel, params: Sequence[str] | None = None) -> tuple[str, ...]:
    """Display labels of *params* (default: all model parameters).

    Coefficient slots ``beta[k]`` are replaced by predictor names;
    every other label is returned unchanged.
    """
    if params is None:
        params = model.samples().parameters
    return tuple(_display_name(model, p) for p in params)


# ------------------------------------------------------------------ #
# Core accessor
# ------------------------------------------------------------------ #


def get_parameters(
    model: GLMModel,
    names: str | Sequence[str],
    *,
    standardized: bool = False,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
) -> LabeledArray:
    """Select parameters by name and run them through the draw pipeline.

    Singleton axes are kept: the result is always
    ``("draw", "parameter")`` or ``("draw", "parameter", "chain")``.

    Args:
        model: A fitted model.
        names: One name or a sequence of names, canonical or predictor.
        standardized: Read the native (standardized-scale) store.
        drop_warmup: Leading draws to drop from every chain.
        n_draws: Draws to keep per chain after the drop (``<= 0``
            keeps all).
        collapse: Merge draws and chains into one ``"draw"`` axis.

    Raises:
        NotFittedError: If *model* has not been fitted.
        KeyError: If a name is not a parameter or internal of *model*.
        ValueError: On a contradictory draw selection.
    """
    store = model.samples(standardized)
    if isinstance(names, str):
        names = [names]
    canonical = [_canonical_name(model, n) for n in names]
    missing = [n for n, c in zip(names, canonical) if c not in store]
    if missing:
        available = parameter_names(model, store.parameters + store.internals)
        raise KeyError(f"Unknown parameter(s) {missing}; available: {list(available)}.")

    selected = select_draws(
        store.array.sel(parameter=canonical),
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    coords = dict(selected.coords)
    coords["parameter"] = tuple(_display_name(model, c) for c in canonical)
    return LabeledArray(selected.values, selected.dims, coords)


def _accessor(
    model: GLMModel,
    names: Sequence[str],
    reduce_fn: ReduceFn | None,
    *,
    standardized: bool,
    drop_warmup: int,
    n_draws: int,
    collapse: bool,
    drop_singleton_dims: bool,
) -> LabeledArray:
    selected = get_parameters(
        model,
        names,
        standardized=standardized,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    return squeeze_dims(reduce_draws(selected, reduce_fn), drop_singleton_dims)


# ------------------------------------------------------------------ #
# Public accessors
# ------------------------------------------------------------------ #


def parameters(
    model: GLMModel,
    reduce_fn: ReduceFn | None = None,
    *,
    standardized: bool = False,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """All model parameters: intercept, coefficients and auxiliaries."""
    return _accessor(
        model,
        model.samples(standardized).parameters,
        reduce_fn,
        standardized=standardized,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )


def fixed_effects(
    model: GLMModel,
    reduce_fn: ReduceFn | None = None,
    *,
    standardized: bool = False,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Intercept and coefficients."""
    return _accessor(
        model,
        ["alpha", *model.coef_names],
        reduce_fn,
        standardized=standardized,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )


def coefficients(
    model: GLMModel,
    reduce_fn: ReduceFn | None = None,
    *,
    standardized: bool = False,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Slope coefficients only."""
    return _accessor(
        model,
        list(model.coef_names),
        reduce_fn,
        standardized=standardized,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )


def internals(
    model: GLMModel,
    reduce_fn: ReduceFn | None = None,
    *,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Sampler diagnostics (log density, step size, tree depth, ...).

    Always read from the native store; internals are never rescaled.
    """
    return _accessor(
        model,
        model.samples(standardized=True).internals,
        reduce_fn,
        standardized=True,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )


def point_estimate(
    model: GLMModel,
    reduce_fn: ReduceFn = np.median,
    *,
    standardized: bool = False,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Fixed effects reduced over the draw axis (default: median)."""
    logger.info(
        "Point estimate of the fixed effects using %s.",
        getattr(reduce_fn, "__name__", repr(reduce_fn)),
    )
    return fixed_effects(
        model,
        reduce_fn,
        standardized=standardized,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )


# ------------------------------------------------------------------ #
# Data views
# ------------------------------------------------------------------ #


def outcome(model: GLMModel, *, standardized: bool = False) -> LabeledArray:
    """The outcome vector on the requested scale, dims ``("row",)``."""
    y = model.y if standardized else destandardize(model.y, model.mu_y, model.sigma_y)
    return LabeledArray(np.asarray(y, dtype=float), ("row",), {})


def predictors(model: GLMModel, *, standardized: bool = False) -> LabeledArray:
    """The design matrix on the requested scale, dims ``("row", "predictor")``."""
    X = model.X if standardized else destandardize(model.X, model.mu_X, model.sigma_X)
    return LabeledArray(
        np.asarray(X, dtype=float),
        ("row", "predictor"),
        {"predictor": model.predictor_names},
    )
