"""Prediction engine.

Three derived quantities, each a function of the previous one:

1. **Linear predictor** ``eta = alpha + X_new . beta``, computed per
   draw (and chain) from the native standardized-scale draws.  New data
   are standardized with the model's stored ``mu_X`` / ``sigma_X``
   first, unless the caller asserts they already are
   (``transform_input=False``).
2. **Expected value** ``mu = inverse_link(eta)``.
3. **Posterior predictive**: one simulated observation per row, draw
   and chain from the family's noise model, using ``mu`` and the
   auxiliary draws.

Results have dims ``("row", "draw")`` (or ``("row", "draw", "chain")``
when ``collapse=False``).  Unless ``standardized_output=True``, outputs
of Normal and Student-t models are mapped back to the outcome's scale
(``raw = std * sigma_y + mu_y``); other outcomes are never standardized
and are returned as computed.

Posterior-predictive noise comes from a module-level NumPy generator
unless an ``rng`` (seed or ``numpy.random.Generator``) is passed;
:func:`seed_predictive` re-seeds the shared generator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from ._labeled import LabeledArray
from ._typing import ArrayLike, ReduceFn
from .draws import DEFAULT_DROP_WARMUP, reduce_draws, squeeze_dims
from .families import auxiliary_parameters, inverse_link
from .parameters import get_parameters
from .standardize import apply_standardization, destandardize

if TYPE_CHECKING:
    from .model import GLMModel

_PREDICTION_TYPES = ("posterior", "epred", "linpred")

_rng = np.random.default_rng()


def seed_predictive(seed: int | None = None) -> None:
    """Re-seed the generator shared by posterior-predictive calls."""
    global _rng
    _rng = np.random.default_rng(seed)


def _resolve_rng(
    rng: int | np.random.SeedSequence | np.random.Generator | None,
) -> np.random.Generator:
    if rng is None:
        return _rng
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _design(
    model: GLMModel,
    X_new: ArrayLike | None,
    transform_input: bool | None,
) -> np.ndarray:
    """Standardized design matrix for a prediction call."""
    if X_new is None:
        # The stored design is already on the sampler's scale.
        if transform_input:
            msg = "transform_input=True would standardize the training design twice."
            raise ValueError(msg)
        return model.X
    if isinstance(X_new, pd.DataFrame) and set(model.predictor_names) <= set(X_new.columns):
        X_new = X_new[list(model.predictor_names)]
    X = np.asarray(X_new, dtype=float)
    if X.ndim == 1:
        X = X[:, None] if model.n_predictors == 1 else X[None, :]
    if X.ndim != 2 or X.shape[1] != model.n_predictors:
        msg = (
            f"X_new must have {model.n_predictors} columns "
            f"({list(model.predictor_names)}), got shape {X.shape}."
        )
        raise ValueError(msg)
    if transform_input is None or transform_input:
        X = apply_standardization(X, model.mu_X, model.sigma_X)
    return X


def _native_linear_predictor(
    model: GLMModel,
    X_new: ArrayLike | None,
    *,
    transform_input: bool | None,
    drop_warmup: int,
    n_draws: int,
    collapse: bool,
) -> LabeledArray:
    """``alpha + X . beta`` on the sampler's scale, dims ("row", "draw"[, "chain"])."""
    X = _design(model, X_new, transform_input)
    effects = get_parameters(
        model,
        ["alpha", *model.coef_names],
        standardized=True,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    alpha = effects.values[:, 0]  # (draw[, chain])
    beta = effects.values[:, 1:]  # (draw, p[, chain])
    eta = alpha[None, ...] + np.einsum("rp,dp...->rd...", X, beta)
    dims = ("row", "draw") if collapse else ("row", "draw", "chain")
    coords = {d: effects.coords[d] for d in dims[1:]}
    return LabeledArray(eta, dims, coords)


def _auxiliary_draws(
    model: GLMModel,
    *,
    drop_warmup: int,
    n_draws: int,
    collapse: bool,
) -> dict[str, np.ndarray]:
    """Auxiliary draws shaped to broadcast against ``(row, draw[, chain])``."""
    names = auxiliary_parameters(model.family)
    if not names:
        return {}
    aux = get_parameters(
        model,
        list(names),
        standardized=True,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    return {name: aux.values[None, :, k] for k, name in enumerate(names)}


def _finish(
    model: GLMModel,
    native: LabeledArray,
    values: np.ndarray,
    reduce_fn: ReduceFn | None,
    *,
    standardized_output: bool,
    drop_singleton_dims: bool,
) -> LabeledArray:
    if not standardized_output and model.outcome_standardized:
        values = destandardize(values, model.mu_y, model.sigma_y)
    result = LabeledArray(values, native.dims, native.coords)
    return squeeze_dims(reduce_draws(result, reduce_fn), drop_singleton_dims)


# ------------------------------------------------------------------ #
# Public predictions
# ------------------------------------------------------------------ #


def linear_predictor(
    model: GLMModel,
    X_new: ArrayLike | None = None,
    reduce_fn: ReduceFn | None = None,
    *,
    standardized_output: bool = False,
    transform_input: bool | None = None,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Linear predictor ``alpha + X_new . beta`` for every draw.

    Args:
        model: A fitted model.
        X_new: New predictor rows ``(m, p)``; a data frame is matched
            to the model's predictors by column name.  ``None`` uses
            the training design.
        reduce_fn: Optional reduction along the draw axis.
        standardized_output: Return values on the sampler's outcome
            scale instead of the original one.
        transform_input: Standardize *X_new* with the model's stored
            statistics.  Defaults to ``True`` for new data and must not
            be ``True`` when *X_new* is ``None``.
        drop_warmup, n_draws, collapse: Draw selection.
        drop_singleton_dims: Drop length-1 axes of the result.

    Returns:
        ``("row", "draw")`` or ``("row", "draw", "chain")`` array.
    """
    native = _native_linear_predictor(
        model,
        X_new,
        transform_input=transform_input,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    return _finish(
        model,
        native,
        native.values,
        reduce_fn,
        standardized_output=standardized_output,
        drop_singleton_dims=drop_singleton_dims,
    )


def expected_value(
    model: GLMModel,
    X_new: ArrayLike | None = None,
    reduce_fn: ReduceFn | None = None,
    *,
    standardized_output: bool = False,
    transform_input: bool | None = None,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Expected outcome ``inverse_link(eta)`` for every draw.

    Arguments as for :func:`linear_predictor`.
    """
    native = _native_linear_predictor(
        model,
        X_new,
        transform_input=transform_input,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    return _finish(
        model,
        native,
        inverse_link(model.family, native.values),
        reduce_fn,
        standardized_output=standardized_output,
        drop_singleton_dims=drop_singleton_dims,
    )


def posterior_predictive(
    model: GLMModel,
    X_new: ArrayLike | None = None,
    reduce_fn: ReduceFn | None = None,
    *,
    standardized_output: bool = False,
    transform_input: bool | None = None,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
    rng: int | np.random.SeedSequence | np.random.Generator | None = None,
) -> LabeledArray:
    """Simulated observations, one per row, draw and chain.

    Each call draws fresh noise; pass *rng* (or call
    :func:`seed_predictive`) for reproducible output.  Other arguments
    as for :func:`linear_predictor`.
    """
    native = _native_linear_predictor(
        model,
        X_new,
        transform_input=transform_input,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
    )
    mu = inverse_link(model.family, native.values)
    aux = _auxiliary_draws(
        model, drop_warmup=drop_warmup, n_draws=n_draws, collapse=collapse
    )
    simulated = np.asarray(
        model.family.sample_predictive(mu, aux, _resolve_rng(rng)), dtype=float
    )
    return _finish(
        model,
        native,
        simulated.reshape(mu.shape),
        reduce_fn,
        standardized_output=standardized_output,
        drop_singleton_dims=drop_singleton_dims,
    )


def predict(
    model: GLMModel,
    X_new: ArrayLike | None = None,
    reduce_fn: ReduceFn | None = None,
    *,
    type: str = "posterior",
    standardized_output: bool = False,
    transform_input: bool | None = None,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
    rng: int | np.random.SeedSequence | np.random.Generator | None = None,
) -> LabeledArray:
    """Unified prediction entry point.

    Args:
        type: ``"posterior"`` (posterior predictive, default),
            ``"epred"`` (expected value) or ``"linpred"`` (linear
            predictor).
        rng: Noise source for ``type="posterior"``; ignored otherwise.

    Other arguments as for :func:`linear_predictor`.

    Raises:
        ValueError: If *type* is not recognised.
    """
    if type not in _PREDICTION_TYPES:
        msg = f"Unknown prediction type {type!r}. Choose from: {list(_PREDICTION_TYPES)}."
        raise ValueError(msg)
    kwargs = dict(
        standardized_output=standardized_output,
        transform_input=transform_input,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )
    if type == "linpred":
        return linear_predictor(model, X_new, reduce_fn, **kwargs)
    if type == "epred":
        return expected_value(model, X_new, reduce_fn, **kwargs)
    return posterior_predictive(model, X_new, reduce_fn, rng=rng, **kwargs)
