"""Convergence diagnostics for fitted models.

The statistics come from :func:`arviz.summary`; this module selects
the draws, labels the parameters and turns the numbers into findings.
Each diagnostic has two tiers:

==============================  =============  =============
Diagnostic                      Warning        Info
==============================  =============  =============
Split R-hat                     > 1.05         > 1.01
Bulk effective sample size      < 100          < 250
Tail effective sample size      < 100          < 250
MCSE of the mean / posterior SD > 5%           > 1%
==============================  =============  =============

Warning-tier findings are emitted as :class:`ConvergenceWarning`
(a ``UserWarning`` subclass) and info-tier findings are logged at INFO.
Neither is fatal: a poorly converged model remains usable.  Findings
are recomputed from the current draws after every fit and on every
display call.

* **R-hat** compares between-chain and within-chain variance (rank
  normalised, split chains).  Values well above 1 mean the chains have
  not mixed.  Each chain is split in half, so a single chain is checked
  against itself.
* **ESS** estimates the number of independent draws the autocorrelated
  chain is worth, separately for the centre (bulk) and the 5% / 95%
  quantiles (tail) of the posterior.
* **MCSE / SD** is the Monte Carlo error of the posterior mean relative
  to the posterior spread.
"""

from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING

import arviz as az
import numpy as np
import pandas as pd

from .parameters import get_parameters

if TYPE_CHECKING:
    from .model import GLMModel

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["mean", "sd", "mcse_mean", "ess_bulk", "ess_tail", "r_hat"]

RHAT_WARN, RHAT_INFO = 1.05, 1.01
ESS_WARN, ESS_INFO = 100.0, 250.0
MCSE_WARN, MCSE_INFO = 0.05, 0.01


class ConvergenceWarning(UserWarning):
    """An MCMC convergence diagnostic crossed its warning threshold."""


# ------------------------------------------------------------------ #
# Summary statistics
# ------------------------------------------------------------------ #


def summarize(
    model: GLMModel,
    *,
    standardized: bool = False,
    drop_warmup: int = 0,
) -> pd.DataFrame:
    """Per-parameter posterior summary and convergence statistics.

    Args:
        model: A fitted model.
        standardized: Summarise the native (standardized-scale) draws.
        drop_warmup: Leading draws to drop from every chain.  The
            sampler already discards its own warmup, so the default
            keeps everything.

    Returns:
        DataFrame indexed by display parameter name with columns
        ``mean``, ``sd``, ``mcse_mean``, ``ess_bulk``, ``ess_tail`` and
        ``r_hat``.  All-NaN rows when no draws are selected.
    """
    selected = get_parameters(
        model,
        list(model.samples(standardized).parameters),
        standardized=standardized,
        drop_warmup=drop_warmup,
        collapse=False,
    )
    names = [str(n) for n in selected.coords["parameter"]]
    if selected.shape[0] == 0:
        return pd.DataFrame(np.nan, index=names, columns=SUMMARY_COLUMNS)

    # ArviZ expects one (chain, draw) variable per parameter.
    posterior = selected.to_xarray().to_dataset(dim="parameter").transpose("chain", "draw")
    with warnings.catch_warnings():
        # Too few draws for split R-hat / ESS yields NaN, which is reported.
        warnings.simplefilter("ignore", RuntimeWarning)
        table = az.summary(posterior, round_to="none")
    return table.reindex(index=names, columns=SUMMARY_COLUMNS)


# ------------------------------------------------------------------ #
# Findings
# ------------------------------------------------------------------ #


def _flagged(values: pd.Series, threshold: float, above: bool) -> list[str]:
    hits = values > threshold if above else values < threshold
    return [str(name) for name in values.index[hits.to_numpy(dtype=bool)]]


def convergence_findings(summary: pd.DataFrame) -> list[tuple[str, str]]:
    """Turn a :func:`summarize` table into ``(level, message)`` findings.

    *level* is ``"warning"`` or ``"info"``.  A parameter is reported in
    at most one tier per diagnostic.
    """
    relative_mcse = summary["mcse_mean"] / summary["sd"].replace(0.0, np.nan)
    checks = [
        ("R-hat", summary["r_hat"], RHAT_WARN, RHAT_INFO, True),
        ("Bulk ESS", summary["ess_bulk"], ESS_WARN, ESS_INFO, False),
        ("Tail ESS", summary["ess_tail"], ESS_WARN, ESS_INFO, False),
        ("MCSE/SD", relative_mcse, MCSE_WARN, MCSE_INFO, True),
    ]
    findings: list[tuple[str, str]] = []
    for label, values, warn_at, info_at, above in checks:
        relation = ">" if above else "<"
        warned = _flagged(values, warn_at, above)
        noted = [n for n in _flagged(values, info_at, above) if n not in warned]
        if warned:
            findings.append(
                ("warning", f"{label} {relation} {warn_at:g} for: {', '.join(warned)}.")
            )
        if noted:
            findings.append(
                ("info", f"{label} {relation} {info_at:g} for: {', '.join(noted)}.")
            )
    return findings


def check_convergence(model: GLMModel, *, stacklevel: int = 1) -> list[tuple[str, str]]:
    """Emit the convergence findings of *model*'s current draws.

    Warning-tier findings are issued as :class:`ConvergenceWarning`,
    info-tier findings are logged at INFO.
    *stacklevel* counts from the caller of this function, as for
    :func:`warnings.warn`.

    Returns:
        The findings, as from :func:`convergence_findings`.
    """
    findings = convergence_findings(summarize(model, standardized=True))
    for level, message in findings:
        if level == "warning":
            warnings.warn(message, ConvergenceWarning, stacklevel=stacklevel + 1)
        else:
            logger.info(message)
    return findings
