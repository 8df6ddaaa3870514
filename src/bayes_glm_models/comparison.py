"""PSIS-LOO cross-validation and model comparison.

The Pareto-smoothed importance sampling itself is ArviZ's
(:func:`arviz.loo`, :func:`arviz.compare`).  This module only builds
the input ArviZ expects: the pointwise log-likelihood of every
observation under every selected draw, computed from the NumPyro model
on the sampler's data, expressed on the outcome's own scale and
wrapped as a ``(chain=1, draw, obs)`` log likelihood group.  A single
chain axis marks that chains have already been merged into the draw
axis, so ArviZ uses a relative efficiency of one.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import arviz as az
import numpy as np
import pandas as pd

from ._labeled import LabeledArray
from .draws import DEFAULT_DROP_WARMUP
from .parameters import get_parameters
from .sampling import pointwise_log_likelihood

if TYPE_CHECKING:
    from .model import GLMModel


def log_likelihood_matrix(
    model: GLMModel,
    *,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
) -> np.ndarray:
    """``(n_draws, n_observations)`` pointwise log-likelihood.

    Draws are selected and collapsed across chains first.  When the
    outcome was standardized the Jacobian ``-log(sigma_y)`` is added, so
    the densities are always those of the outcome on its own scale.
    """
    native = model.samples(standardized=True)
    selected = get_parameters(
        model,
        list(native.parameters),
        standardized=True,
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=True,
    )
    # Relabel to canonical slots for the NumPyro sample sites.
    canonical = LabeledArray(
        selected.values, selected.dims, {**selected.coords, "parameter": native.parameters}
    )
    loglik = pointwise_log_likelihood(
        model.X, model.y, canonical, family=model.family, prior=model.prior
    )
    if model.outcome_standardized:
        loglik = loglik - np.log(model.sigma_y)
    return loglik


def to_inference_data(
    model: GLMModel,
    *,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
) -> az.InferenceData:
    """ArviZ ``InferenceData`` with posterior and log-likelihood groups.

    Both groups carry one merged chain.
    """
    loglik = log_likelihood_matrix(model, drop_warmup=drop_warmup, n_draws=n_draws)
    params = get_parameters(
        model,
        list(model.samples().parameters),
        drop_warmup=drop_warmup,
        n_draws=n_draws,
        collapse=True,
    )
    posterior = {
        str(name): params.values[None, :, k]
        for k, name in enumerate(params.coords["parameter"])
    }
    return az.from_dict(
        posterior=posterior,
        log_likelihood={"y": loglik[None, ...]},
        dims={"y": ["obs"]},
    )


def psis_loo(
    model: GLMModel,
    *,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    **kwargs: Any,
) -> az.ELPDData:
    """PSIS-LOO of a fitted model.

    Args:
        model: A fitted model.
        drop_warmup, n_draws: Draw selection (chains are merged).
        **kwargs: Forwarded to :func:`arviz.loo`.

    Returns:
        ArviZ ``ELPDData`` with pointwise results.
    """
    kwargs.setdefault("pointwise", True)
    idata = to_inference_data(model, drop_warmup=drop_warmup, n_draws=n_draws)
    return az.loo(idata, **kwargs)


def loo_compare(
    models: Sequence[GLMModel],
    names: Sequence[str] | None = None,
    *,
    drop_warmup: int = DEFAULT_DROP_WARMUP,
    n_draws: int = -1,
    **kwargs: Any,
) -> pd.DataFrame:
    """Rank models by PSIS-LOO expected log predictive density.

    Args:
        models: Fitted models sharing the same observations.
        names: Display names; defaults to ``model_1 .. model_k``.
        drop_warmup, n_draws: Draw selection applied to every model.
        **kwargs: Forwarded to :func:`arviz.compare`.

    Returns:
        The :func:`arviz.compare` table, best model first.

    Raises:
        ValueError: If fewer than two models are given or *names* has
            the wrong length.
    """
    models = list(models)
    if len(models) < 2:
        msg = f"loo_compare needs at least two models, got {len(models)}."
        raise ValueError(msg)
    if names is None:
        names = [f"model_{k}" for k in range(1, len(models) + 1)]
    if len(names) != len(models):
        msg = f"Got {len(names)} names for {len(models)} models."
        raise ValueError(msg)
    if len(set(names)) != len(names):
        msg = f"Model names must be unique, got {list(names)}."
        raise ValueError(msg)
    loos = {
        str(name): psis_loo(m, drop_warmup=drop_warmup, n_draws=n_draws)
        for name, m in zip(names, models)
    }
    return az.compare(loos, **kwargs)
