"""Draw selection pipeline shared by every posterior accessor.

Posterior draws are stored as a ``("draw", "parameter", "chain")``
:class:`~bayes_glm_models._labeled.LabeledArray`.  Accessors never
slice that array directly; they go through :func:`select_draws`, which
applies the same four steps everywhere:

1. **Warmup drop** — remove the first ``drop_warmup`` iterations of
   every chain (default 200).
2. **Subset** — keep the first ``n_draws`` remaining iterations of
   every chain (``n_draws <= 0`` keeps all).
3. **Collapse** — merge the draw and chain axes into one ``"draw"``
   axis of length ``draws_per_chain * n_chains``.  Ordering is
   chain-major: all of chain 0's draws in iteration order, then
   chain 1's, and so on.  Labels become ``(iteration, chain)`` tuples
   so a collapsed draw can always be traced back to its chain.
4. **Singleton drop** — performed by the accessors, not here, via
   :func:`squeeze_dims`.

Selections that leave nothing are not errors: the pipeline warns and
returns a zero-length draw axis, and callers check the length.  The one
hard error is an explicit ``n_draws`` request on a chain that the
warmup drop has already exhausted; no reading of that
request that could be satisfied.
"""

from __future__ import annotations

import warnings

from ._labeled import LabeledArray
from ._typing import ReduceFn

DEFAULT_DROP_WARMUP = 200

_EMPTY_SELECTION_MSG = (
    "No draws remain after dropping {drop_warmup} warmup draws from "
    "{total} draws per chain; check drop_warmup / n_draws."
)


def select_draws(
    array: LabeledArray,
    *,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
) -> LabeledArray:
    """Apply warmup drop, subsetting and optional chain collapse.

    Args:
        array: ``("draw", "parameter", "chain")`` array.
        drop_warmup: Leading iterations to discard from every chain.
        n_draws: Iterations to keep per chain after the warmup drop;
            ``<= 0`` keeps all of them.
        collapse: Merge draws and chains into a single ``"draw"`` axis.

    Returns:
        ``("draw", "parameter")`` when *collapse* is true, otherwise
        ``("draw", "parameter", "chain")``.

    Raises:
        ValueError: If *drop_warmup* is negative, or if *n_draws* is
            positive while *drop_warmup* already removes every draw.
    """
    if drop_warmup < 0:
        msg = f"drop_warmup must be non-negative, got {drop_warmup}."
        raise ValueError(msg)

    total = array.shape[array.axis("draw")]
    remaining = total - drop_warmup
    if remaining <= 0 and n_draws > 0:
        msg = (
            f"Requested n_draws={n_draws} but drop_warmup={drop_warmup} "
            f"already removes all {total} draws per chain."
        )
        raise ValueError(msg)
    if remaining <= 0:
        warnings.warn(
            _EMPTY_SELECTION_MSG.format(drop_warmup=drop_warmup, total=total),
            UserWarning,
            stacklevel=3,
        )

    stop = total if n_draws <= 0 else min(total, drop_warmup + n_draws)
    selected = array.isel(draw=slice(drop_warmup, stop))
    if not collapse:
        return selected
    return collapse_chains(selected)


def collapse_chains(array: LabeledArray) -> LabeledArray:
    """Merge the ``"draw"`` and ``"chain"`` axes, chain-major.

    The result has ``len(draw) * len(chain)`` draws labelled
    ``(iteration, chain)``.
    """
    ordered = array.transpose("chain", "draw", "parameter")
    n_chains, n_draws, n_params = ordered.shape
    values = ordered.values.reshape(n_chains * n_draws, n_params)
    labels = tuple(
        (iteration, chain)
        for chain in ordered.coords["chain"]
        for iteration in ordered.coords["draw"]
    )
    return LabeledArray(
        values,
        ("draw", "parameter"),
        {"draw": labels, "parameter": array.coords["parameter"]},
    )


def reduce_draws(
    array: LabeledArray,
    reduce_fn: ReduceFn | None,
    dim: str = "draw",
) -> LabeledArray:
    """Reduce along *dim* with *reduce_fn*; no-op when it is ``None``."""
    if reduce_fn is None:
        return array
    return array.reduce(reduce_fn, dim)


def squeeze_dims(array: LabeledArray, drop_singleton_dims: bool = True) -> LabeledArray:
    """Drop length-1 axes when *drop_singleton_dims* is true."""
    return array.squeeze() if drop_singleton_dims else array
