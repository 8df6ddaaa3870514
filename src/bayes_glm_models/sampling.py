"""NumPyro model and MCMC driver.

:func:`glm_model` is the probabilistic model every fit samples from::

    alpha   ~ prior.intercept
    beta[k] ~ prior.predictors                 k = 0 .. p-1
    aux     ~ prior.auxiliary                  (sigma | phi_inv, if any)
    nu      ~ prior.shape                      (Student-t only)
    y_i     ~ family.likelihood(alpha + X_i . beta, {aux, nu})

:func:`run_mcmc` runs it under ``numpyro.infer.MCMC`` and
:func:`collect_draws` turns the result into the
``("draw", "parameter", "chain")`` array stored on the model, appending
the sampler internals gathered through ``extra_fields``:

==================  =====================================================
Label               Source
==================  =====================================================
``lp``              ``-potential_energy`` (log joint, unconstrained space)
``acceptance_rate`` ``accept_prob``
``n_steps``         ``num_steps`` (leapfrog steps)
``tree_depth``      ``ceil(log2(num_steps + 1))``
``numerical_error`` ``diverging`` as 0.0 / 1.0
``energy``          Hamiltonian ``energy``
``step_size``       ``adapt_state.step_size``
==================  =====================================================
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np
import numpyro
from numpyro.infer import HMC, MCMC, NUTS
from numpyro.infer.mcmc import MCMCKernel
from numpyro.infer.util import log_likelihood

from ._labeled import LabeledArray
from ._results import PosteriorDraws
from .families import GLMFamily, auxiliary_parameters
from .priors import Prior

logger = logging.getLogger(__name__)

INTERNAL_NAMES = (
    "lp",
    "acceptance_rate",
    "n_steps",
    "tree_depth",
    "numerical_error",
    "energy",
    "step_size",
)

_EXTRA_FIELDS = (
    "potential_energy",
    "accept_prob",
    "num_steps",
    "energy",
    "adapt_state.step_size",
)

_SAMPLERS: dict[str, type[MCMCKernel]] = {"nuts": NUTS, "hmc": HMC}


def coefficient_slots(n_predictors: int) -> tuple[str, ...]:
    """Canonical coefficient labels ``beta[0] .. beta[p-1]``."""
    return tuple(f"beta[{k}]" for k in range(n_predictors))


def parameter_slots(family: GLMFamily, n_predictors: int) -> tuple[str, ...]:
    """Canonical model-parameter labels in storage order."""
    return ("alpha", *coefficient_slots(n_predictors), *auxiliary_parameters(family))


# ------------------------------------------------------------------ #
# Model
# ------------------------------------------------------------------ #


def glm_model(
    X: Any,
    y: Any = None,
    *,
    family: GLMFamily,
    prior: Prior,
) -> None:
    """NumPyro model of a fixed-effects GLM.

    Args:
        X: Design matrix ``(n, p)`` without an intercept column.
        y: Observed outcome ``(n,)``, or ``None`` to sample it.
        family: Resolved GLM family.
        prior: Completed prior; auxiliary and shape slots must be set
            when *family* has those parameters.
    """
    n, p = X.shape
    alpha = numpyro.sample("alpha", prior.intercept)
    beta = numpyro.sample("beta", prior.predictors.expand([p]).to_event(1))
    params = {}
    if family.auxiliary is not None:
        params[family.auxiliary] = numpyro.sample(family.auxiliary, prior.auxiliary)
    if family.shape is not None:
        params[family.shape] = numpyro.sample(family.shape, prior.shape)
    eta = alpha + jnp.matmul(X, beta)
    with numpyro.plate("obs", n):
        numpyro.sample("y", family.likelihood(eta, params), obs=y)


# ------------------------------------------------------------------ #
# Sampling
# ------------------------------------------------------------------ #


def _resolve_kernel(
    sampler: str | type[MCMCKernel] | MCMCKernel,
    kernel_kwargs: Mapping[str, Any],
) -> MCMCKernel:
    if isinstance(sampler, str):
        key = sampler.strip().lower()
        if key not in _SAMPLERS:
            msg = f"Unknown sampler {sampler!r}. Choose from: {sorted(_SAMPLERS)}."
            raise ValueError(msg)
        return _SAMPLERS[key](glm_model, **kernel_kwargs)
    if isinstance(sampler, type) and issubclass(sampler, MCMCKernel):
        return sampler(glm_model, **kernel_kwargs)
    if isinstance(sampler, MCMCKernel):
        if kernel_kwargs:
            msg = (
                "Kernel arguments cannot be combined with a kernel instance; "
                f"got {sorted(kernel_kwargs)}."
            )
            raise ValueError(msg)
        return sampler
    msg = (
        "sampler must be 'nuts', 'hmc', an MCMCKernel subclass or a kernel "
        f"built on glm_model, got {sampler!r}."
    )
    raise ValueError(msg)


def run_mcmc(
    X: np.ndarray,
    y: np.ndarray,
    *,
    family: GLMFamily,
    prior: Prior,
    sampler: str | type[MCMCKernel] | MCMCKernel = "nuts",
    chain_method: str = "sequential",
    draws: int = 2000,
    chains: int = 4,
    warmup: int = 1000,
    quiet: bool = True,
    seed: int | None = None,
    **kernel_kwargs: Any,
) -> MCMC:
    """Sample :func:`glm_model` on *X*, *y*.

    Args:
        X, y: Data as handed to the sampler.
        family, prior: Model definition.
        sampler: ``"nuts"``, ``"hmc"``, a NumPyro kernel class, or a
            kernel instance built on :func:`glm_model`.
        chain_method: ``"parallel"``, ``"sequential"`` or
            ``"vectorized"``.
        draws: Draws kept per chain.
        chains: Number of chains.
        warmup: Adaptation iterations NumPyro discards before *draws*.
        quiet: Hide the progress bar and NumPyro's warnings.
        seed: PRNG seed; ``None`` draws one from NumPy's entropy pool.
        **kernel_kwargs: Forwarded to the kernel constructor
            (e.g. ``target_accept_prob``, ``max_tree_depth``).

    Returns:
        The finished ``numpyro.infer.MCMC`` object.

    Raises:
        ValueError: On an unknown sampler or non-positive counts.
    """
    if draws < 1 or chains < 1 or warmup < 0:
        msg = (
            "draws and chains must be positive and warmup non-negative, got "
            f"draws={draws}, chains={chains}, warmup={warmup}."
        )
        raise ValueError(msg)
    kernel = _resolve_kernel(sampler, kernel_kwargs)
    if seed is None:
        seed = int(np.random.default_rng().integers(2**31 - 1))

    logger.debug(
        "Sampling %s with %s: %d chains x %d draws (+%d warmup), chain_method=%s, seed=%d",
        family.name,
        type(kernel).__name__,
        chains,
        draws,
        warmup,
        chain_method,
        seed,
    )
    mcmc = MCMC(
        kernel,
        num_warmup=warmup,
        num_samples=draws,
        num_chains=chains,
        chain_method=chain_method,
        progress_bar=not quiet,
    )
    with warnings.catch_warnings():
        if quiet:
            warnings.filterwarnings("ignore", module=r"numpyro(\.|$)")
        mcmc.run(
            jax.random.PRNGKey(seed),
            jnp.asarray(X),
            jnp.asarray(y),
            family=family,
            prior=prior,
            extra_fields=_EXTRA_FIELDS,
        )
    return mcmc


def collect_draws(mcmc: MCMC, family: GLMFamily, n_predictors: int) -> PosteriorDraws:
    """Stack the samples and internals of *mcmc* into a labeled array."""
    samples = {k: np.asarray(v) for k, v in mcmc.get_samples(group_by_chain=True).items()}
    extra = {k: np.asarray(v) for k, v in mcmc.get_extra_fields(group_by_chain=True).items()}

    # Every block is (chain, draw, k).
    blocks = [samples["alpha"][..., None], samples["beta"].reshape(*samples["alpha"].shape, -1)]
    blocks += [samples[name][..., None] for name in auxiliary_parameters(family)]

    num_steps = extra["num_steps"].astype(float)
    internals = {
        "lp": -extra["potential_energy"],
        "acceptance_rate": extra["accept_prob"],
        "n_steps": num_steps,
        "tree_depth": np.ceil(np.log2(num_steps + 1.0)),
        "numerical_error": extra["diverging"].astype(float),
        "energy": extra["energy"],
        "step_size": extra["adapt_state.step_size"],
    }
    blocks += [np.asarray(internals[name], dtype=float)[..., None] for name in INTERNAL_NAMES]

    stacked = np.concatenate([np.asarray(b, dtype=float) for b in blocks], axis=-1)
    values = np.transpose(stacked, (1, 2, 0))
    parameters = parameter_slots(family, n_predictors)
    array = LabeledArray(
        values,
        ("draw", "parameter", "chain"),
        {"parameter": parameters + INTERNAL_NAMES},
    )
    return PosteriorDraws(array, {"parameters": parameters, "internals": INTERNAL_NAMES})


# ------------------------------------------------------------------ #
# Log-likelihood
# ------------------------------------------------------------------ #


def sample_dict(draws: LabeledArray, family: GLMFamily, n_predictors: int) -> dict[str, jnp.ndarray]:
    """Rebuild NumPyro sample sites from a ``("draw", "parameter")`` array."""
    def column(name: str) -> np.ndarray:
        return draws.values[:, draws.index("parameter", name)]

    sites = {
        "alpha": column("alpha"),
        "beta": np.stack([column(s) for s in coefficient_slots(n_predictors)], axis=-1),
    }
    for name in auxiliary_parameters(family):
        sites[name] = column(name)
    return {k: jnp.asarray(v) for k, v in sites.items()}


def pointwise_log_likelihood(
    X: np.ndarray,
    y: np.ndarray,
    draws: LabeledArray,
    *,
    family: GLMFamily,
    prior: Prior,
) -> np.ndarray:
    """Log-likelihood of every observation under every draw.

    Args:
        X, y: Data as handed to the sampler.
        draws: Standardized-scale ``("draw", "parameter")`` array.
        family, prior: Model definition.

    Returns:
        ``(n_draws, n_observations)`` array.
    """
    sites = sample_dict(draws, family, X.shape[1])
    loglik = log_likelihood(
        glm_model, sites, jnp.asarray(X), jnp.asarray(y), family=family, prior=prior
    )
    return np.asarray(loglik["y"], dtype=float)
