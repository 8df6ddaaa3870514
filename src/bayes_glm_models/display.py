"""Text rendering of fitted models.

:func:`describe` produces the short model description used by
``str(model)``; :func:`print_summary_table` prints it together with
a fixed-effects table and an in-sample metrics table in an 80-column
ASCII layout.
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from .diagnostics import check_convergence, summarize
from .metrics import default_metrics
from .parameters import fixed_effects

if TYPE_CHECKING:
    from .model import GLMModel

WIDTH = 80

# Short chains cannot spare the usual warmup drop in the summary table.
_SHORT_RUN = 400


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _wrap(text: str, width: int = WIDTH, indent: int = 16) -> str:
    """Word-wrap *text*, indenting continuation lines only."""
    return textwrap.fill(
        text,
        width=width,
        subsequent_indent=" " * indent,
        break_long_words=False,
        break_on_hyphens=False,
    )


def _fmt(value: object) -> str:
    """Format a table cell; NaN renders as ``N/A``."""
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            return "N/A"
        return f"{value:.4g}" if abs(value) < 1e5 else f"{value:.3e}"
    return str(value)


# ------------------------------------------------------------------ #
# Description
# ------------------------------------------------------------------ #


def describe(model: GLMModel, *, warnings: bool = True) -> str:
    """Describe *model*: family, link, formula, priors and samples.

    Args:
        model: A fitted or unfit model.
        warnings: Re-emit convergence findings of a fitted model
            (warning tier as ``ConvergenceWarning``, info tier via
            logging).

    Returns:
        Multi-line description.
    """
    family = model.family
    if model.outcome_standardized:
        scale = "yes (predictors and outcome)"
    elif model.standardized:
        scale = "yes (predictors only)"
    else:
        scale = "no"

    if model.posterior_samples is None:
        samples = "empty"
    else:
        draws = model.posterior_samples
        samples = (
            f"{draws.n_draws * draws.n_chains} samples across "
            f"{draws.n_chains} chain{'s' if draws.n_chains != 1 else ''}"
        )
        if warnings:
            check_convergence(model, stacklevel=2)

    lines = [
        f"{'Family:':<16}{family.display_name}",
        f"{'Link:':<16}{family.link}",
        _wrap(f"{'Formula:':<16}{model.formula}"),
        f"{'Observations:':<16}{model.n_observations}",
        f"{'Standardized:':<16}{scale}",
        f"{'Samples:':<16}{samples}",
        "Priors:",
        str(model.prior),
    ]
    return "\n".join(lines)


# ------------------------------------------------------------------ #
# Summary table
# ------------------------------------------------------------------ #


def _quantile_label(q: float) -> str:
    return f"{100 * q:g}%"


def _fixed_effects_table(
    model: GLMModel,
    funcs: Sequence[Callable[..., np.ndarray]],
    quantiles: Sequence[float],
    *,
    standardized: bool,
    drop_warmup: int,
) -> pd.DataFrame:
    effects = fixed_effects(
        model,
        standardized=standardized,
        drop_warmup=drop_warmup,
        drop_singleton_dims=False,
    )
    names = [str(n) for n in effects.coords["parameter"]]
    columns: dict[str, np.ndarray] = {}
    for func in funcs:
        columns[func.__name__] = np.asarray(func(effects.values, axis=0))
    for q in quantiles:
        columns[_quantile_label(q)] = np.quantile(effects.values, q, axis=0)
    table = pd.DataFrame(columns, index=names)

    diag = summarize(model, standardized=standardized, drop_warmup=drop_warmup)
    for column in ("mcse_mean", "ess_bulk", "ess_tail", "r_hat"):
        table[column] = diag[column].reindex(names).to_numpy()
    return table


def _metrics_table(
    model: GLMModel,
    funcs: Sequence[Callable[..., np.ndarray]],
    *,
    drop_warmup: int,
) -> pd.DataFrame:
    scores = default_metrics(model, drop_warmup=drop_warmup, drop_singleton_dims=False)
    columns = {
        func.__name__: np.asarray(func(scores.values, axis=1)) for func in funcs
    }
    return pd.DataFrame(columns, index=[str(m) for m in scores.coords["metric"]])


def _print_table(title: str, table: pd.DataFrame) -> None:
    first = 16
    cell = max(8, min(12, (WIDTH - first) // max(len(table.columns), 1)))
    print("-" * WIDTH)
    print(title)
    print("-" * WIDTH)
    header = "".join(f"{_truncate(str(c), cell - 1):>{cell}}" for c in table.columns)
    print(f"{'':<{first}}{header}")
    for name, row in table.iterrows():
        cells = "".join(f"{_fmt(v):>{cell}}" for v in row)
        print(f"{_truncate(str(name), first - 1):<{first}}{cells}")


def print_summary_table(
    model: GLMModel,
    *,
    funcs: Sequence[Callable[..., np.ndarray]] = (np.median, np.std),
    quantiles: Sequence[float] = (0.025, 0.975),
    standardized: bool = False,
    title: str = "Bayesian GLM Summary",
    return_table: bool = False,
) -> tuple[pd.DataFrame, pd.DataFrame] | None:
    """Print the description, fixed effects and prediction metrics.

    The warmup drop is 200 draws per chain, or none for runs shorter
    than 400 draws per chain.

    Args:
        model: A fitted model.
        funcs: Reductions over draws (each called as
            ``func(values, axis=k)``), one column each.
        quantiles: Posterior quantiles shown for each fixed effect.
        standardized: Report coefficients on the standardized scale.
        title: Title line.
        return_table: Also return ``(fixed_effects, metrics)`` frames.

    Raises:
        NotFittedError: If *model* has not been fitted.
    """
    draws = model.samples(standardized)
    drop_warmup = 0 if draws.n_draws < _SHORT_RUN else 200

    fixed = _fixed_effects_table(
        model, funcs, quantiles, standardized=standardized, drop_warmup=drop_warmup
    )
    metrics = _metrics_table(model, funcs, drop_warmup=drop_warmup)

    print("=" * WIDTH)
    for line in textwrap.wrap(title, width=WIDTH - 2):
        print(f"{line:^{WIDTH}}")
    print("=" * WIDTH)
    print(describe(model))
    _print_table("Fixed Effects", fixed)
    _print_table("Prediction Metrics", metrics)
    print("=" * WIDTH)
    if return_table:
        return fixed, metrics
    return None
