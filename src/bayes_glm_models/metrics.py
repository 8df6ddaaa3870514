"""In-sample prediction metrics.

:func:`calculate_metrics` scores the expected-value predictions of every
posterior draw against the observed outcome (on its original scale),
producing one row per metric and one column per draw.  Scoring
functions come from :mod:`sklearn.metrics` and follow its argument
order, ``func(y_true, y_pred)``.

For Bernoulli models the predicted probabilities are thresholded into
hard classes (``p > threshold``) before class metrics such as accuracy
or Cohen's kappa; metrics flagged ``uses_probabilities`` (AUC) receive
the raw probabilities instead.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

import numpy as np
from sklearn import metrics as skm

from ._labeled import LabeledArray
from ._typing import ReduceFn
from .draws import DEFAULT_DROP_WARMUP, reduce_draws, squeeze_dims
from .parameters import outcome
from .predict import expected_value

if TYPE_CHECKING:
    from .model import GLMModel


@dataclass(frozen=True)
class Metric:
    """A named scoring function.

    Attributes:
        name: Row label in the metrics table.
        func: ``func(y_true, y_pred) -> float``.
        uses_probabilities: For Bernoulli models, score raw
            probabilities instead of thresholded classes.
    """

    name: str
    func: Callable[[np.ndarray, np.ndarray], float]
    uses_probabilities: bool = False


def _rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    return float(np.sqrt(skm.mean_squared_error(y_true, y_pred)))


REGRESSION_METRICS = (
    Metric("r2", skm.r2_score),
    Metric("rmse", _rmse),
    Metric("mae", skm.mean_absolute_error),
)

CLASSIFICATION_METRICS = (
    Metric("accuracy", skm.accuracy_score),
    Metric("kappa", skm.cohen_kappa_score),
    Metric("tpr", partial(skm.recall_score, pos_label=1, zero_division=0.0)),
    Metric("tnr", partial(skm.recall_score, pos_label=0, zero_division=0.0)),
    Metric("auc", skm.roc_auc_score, uses_probabilities=True),
)


def _as_metrics(
    metrics: Sequence[Metric | Callable] | Mapping[str, Callable],
) -> list[Metric]:
    if isinstance(metrics, Mapping):
        return [Metric(str(name), func) for name, func in metrics.items()]
    resolved = []
    for m in metrics:
        if isinstance(m, Metric):
            resolved.append(m)
        elif callable(m):
            resolved.append(Metric(getattr(m, "__name__", repr(m)), m))
        else:
            msg = f"Metrics must be Metric objects or callables, got {m!r}."
            raise TypeError(msg)
    if not resolved:
        msg = "At least one metric is required."
        raise ValueError(msg)
    return resolved


def calculate_metrics(
    model: GLMModel,
    metrics: Sequence[Metric | Callable] | Mapping[str, Callable],
    reduce_fn: ReduceFn | None = None,
    *,
    threshold: float = 0.5,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Score every draw's expected-value predictions on the training data.

    Args:
        model: A fitted model.
        metrics: :class:`Metric` objects, plain ``(y_true, y_pred)``
            callables (named after ``__name__``), or a mapping of name
            to callable.
        reduce_fn: Optional reduction along the draw axis, e.g.
            ``np.median``.
        threshold: Probability above which a Bernoulli prediction is
            class 1.
        drop_warmup, n_draws, collapse: Draw selection.
        drop_singleton_dims: Drop length-1 axes of the result.

    Returns:
        ``("metric", "draw")`` or ``("metric", "draw", "chain")`` array.
    """
    resolved = _as_metrics(metrics)
    predictions = expected_value(
        model,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=False,
    )
    y_true = outcome(model).values
    is_binary = model.family.name == "bernoulli"
    if is_binary:
        y_true = y_true.astype(int)

    draw_shape = predictions.shape[1:]
    flat = predictions.values.reshape(predictions.shape[0], -1)
    scores = np.empty((len(resolved), flat.shape[1]))
    for j in range(flat.shape[1]):
        probabilities = flat[:, j]
        classes = (probabilities > threshold).astype(int) if is_binary else None
        for i, metric in enumerate(resolved):
            y_pred = classes if is_binary and not metric.uses_probabilities else probabilities
            scores[i, j] = metric.func(y_true, y_pred)

    result = LabeledArray(
        scores.reshape(len(resolved), *draw_shape),
        ("metric", *predictions.dims[1:]),
        {
            "metric": tuple(m.name for m in resolved),
            **{d: predictions.coords[d] for d in predictions.dims[1:]},
        },
    )
    return squeeze_dims(reduce_draws(result, reduce_fn), drop_singleton_dims)


def default_metrics(
    model: GLMModel,
    reduce_fn: ReduceFn | None = None,
    *,
    threshold: float = 0.5,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    collapse: bool = True,
    drop_singleton_dims: bool = True,
) -> LabeledArray:
    """Family-appropriate metrics.

    Bernoulli: accuracy, kappa, TPR, TNR and AUC.  Every other family:
    R², RMSE and MAE.
    """
    chosen = (
        CLASSIFICATION_METRICS if model.family.name == "bernoulli" else REGRESSION_METRICS
    )
    return calculate_metrics(
        model,
        chosen,
        reduce_fn,
        threshold=threshold,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=collapse,
        drop_singleton_dims=drop_singleton_dims,
    )
