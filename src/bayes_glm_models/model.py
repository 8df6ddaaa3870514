"""Model container and lifecycle.

:func:`glm` builds an unfit :class:`GLMModel` from either a formula and
a data frame or a raw ``(y, X)`` pair; :meth:`GLMModel.fit` samples it
and is the container's only mutation.  Construction does all the work
that can fail without sampling:

1. reject random-effects terms;
2. build ``y`` and the design matrix ``X`` (via patsy for formulas,
   auto-naming ``X1 .. Xn`` for raw arrays);
3. resolve the family and validate ``y`` against it;
4. standardize (predictors always when requested, the outcome only for
   Normal and Student-t);
5. complete the prior from the family defaults.

Fitting stores two :class:`~bayes_glm_models._results.PosteriorDraws`
snapshots, the native standardized-scale draws and their
back-transformed twin, then reports convergence findings.

Example::

    >>> from bayes_glm_models import glm, fixed_effects
    >>> model = glm("mpg ~ hp + wt", mtcars, "normal").fit(seed=1)
    >>> fixed_effects(model, np.median)
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
from sklearn.exceptions import NotFittedError

from . import _config
from ._compat import DataFrameLike, _ensure_pandas_df
from ._results import PosteriorDraws
from ._typing import ArrayLike
from .families import GLMFamily, resolve_family
from .formula import (
    check_random_effects,
    default_names,
    formula_from_names,
    parse_formula,
)
from .priors import Prior, complete_prior
from .sampling import INTERNAL_NAMES, coefficient_slots, collect_draws, run_mcmc
from .standardize import identity_transform, unstandardize_draws
from .standardize import standardize as _standardize

if TYPE_CHECKING:
    from numpyro.infer.mcmc import MCMCKernel

logger = logging.getLogger(__name__)

_RESERVED_NAMES = frozenset({"alpha", "sigma", "nu", "phi_inv", *INTERNAL_NAMES})


@dataclass(eq=False, repr=False)
class GLMModel:
    """A Bayesian GLM and, once fitted, its posterior draws.

    Build instances with :func:`glm`.  All attributes except the two
    sample stores are fixed at construction.

    Attributes:
        formula: Patsy formula ``response ~ predictors``.
        family: Resolved GLM family.
        prior: Completed prior.
        y: Outcome as handed to the sampler.
        X: Design matrix as handed to the sampler (no intercept column).
        mu_X, sigma_X: Predictor standardization, one entry per column.
        mu_y, sigma_y: Outcome standardization.
        predictor_names: One name per column of ``X``.
        standardized: Whether the predictors were standardized.
        coef_names: Ordered map ``"beta[k]" -> predictor name``.
        posterior_samples: Native (standardized-scale) draws, or
            ``None`` before :meth:`fit`.
        unstandardized_samples: Draws on the original data scale;
            set together with *posterior_samples*.
    """

    formula: str
    family: GLMFamily
    prior: Prior
    y: np.ndarray
    X: np.ndarray
    mu_X: np.ndarray
    sigma_X: np.ndarray
    mu_y: float
    sigma_y: float
    predictor_names: tuple[str, ...]
    standardized: bool
    coef_names: dict[str, str] = field(init=False)
    posterior_samples: PosteriorDraws | None = field(default=None, init=False)
    unstandardized_samples: PosteriorDraws | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.X.shape != (self.y.shape[0], len(self.predictor_names)):
            msg = (
                f"Design matrix of shape {self.X.shape} does not match "
                f"{self.y.shape[0]} observations and "
                f"{len(self.predictor_names)} predictor names."
            )
            raise ValueError(msg)
        slots = coefficient_slots(len(self.predictor_names))
        self.coef_names = dict(zip(slots, self.predictor_names))

    # ---- Derived properties ----------------------------------------

    @property
    def link(self) -> str:
        return self.family.link

    @property
    def outcome_standardized(self) -> bool:
        """True when ``y`` was standardized (Normal / Student-t only)."""
        return self.standardized and self.family.standardize_outcome

    @property
    def n_observations(self) -> int:
        return int(self.y.shape[0])

    @property
    def n_predictors(self) -> int:
        return len(self.predictor_names)

    @property
    def is_fitted(self) -> bool:
        return self.posterior_samples is not None

    def check_is_fitted(self) -> None:
        """Raise ``NotFittedError`` unless :meth:`fit` has run."""
        if self.posterior_samples is None or self.unstandardized_samples is None:
            msg = "This GLMModel has no posterior draws yet; call fit() first."
            raise NotFittedError(msg)

    def samples(self, standardized: bool = False) -> PosteriorDraws:
        """The native or the back-transformed sample store."""
        self.check_is_fitted()
        store = self.posterior_samples if standardized else self.unstandardized_samples
        assert store is not None
        return store

    # ---- Lifecycle -------------------------------------------------

    def fit(
        self,
        *,
        sampler: str | type[MCMCKernel] | MCMCKernel = "nuts",
        chain_method: str | None = None,
        draws: int = 2000,
        chains: int = 4,
        warmup: int = 1000,
        quiet: bool = True,
        seed: int | None = None,
        **kernel_kwargs: Any,
    ) -> GLMModel:
        """Sample the posterior and store both sample stores.

        Re-fitting overwrites the previous draws.

        Args:
            sampler: ``"nuts"`` (default), ``"hmc"``, a NumPyro kernel
                class, or a kernel instance such as
                ``NUTS(glm_model, max_tree_depth=8)`` (see
                :func:`~bayes_glm_models.sampling.glm_model`).
            chain_method: ``"parallel"``, ``"sequential"`` or
                ``"vectorized"``; ``None`` uses the configured default
                (see :func:`~bayes_glm_models.set_chain_method`).
            draws: Draws kept per chain.
            chains: Number of chains.
            warmup: NumPyro adaptation iterations, discarded by the
                sampler before *draws*.
            quiet: Hide the progress bar and sampler warnings.
            seed: PRNG seed for reproducible runs.
            **kernel_kwargs: Forwarded to the kernel, e.g.
                ``target_accept_prob=0.9``.

        Returns:
            ``self``, to allow ``glm(...).fit()`` chaining.

        Raises:
            ValueError: On an unknown sampler or chain method.
        """
        from .diagnostics import check_convergence

        method = (
            _config.get_chain_method(chains)
            if chain_method is None
            else _config.resolve_chain_method(chain_method)
        )
        mcmc = run_mcmc(
            self.X,
            self.y,
            family=self.family,
            prior=self.prior,
            sampler=sampler,
            chain_method=method,
            draws=draws,
            chains=chains,
            warmup=warmup,
            quiet=quiet,
            seed=seed,
            **kernel_kwargs,
        )
        native = collect_draws(mcmc, self.family, self.n_predictors)
        self.posterior_samples = native
        self.unstandardized_samples = self._unstandardize(native)
        logger.info(
            "Fitted %s model %r: %d draws x %d chains (%s).",
            self.family.display_name,
            self.formula,
            native.n_draws,
            native.n_chains,
            method,
        )
        check_convergence(self, stacklevel=2)
        return self

    def _unstandardize(self, native: PosteriorDraws) -> PosteriorDraws:
        array = unstandardize_draws(
            native.array,
            intercept="alpha",
            coefficients=tuple(self.coef_names),
            scale_parameters=self.family.scale_parameters,
            mu_X=self.mu_X,
            sigma_X=self.sigma_X,
            mu_y=self.mu_y,
            sigma_y=self.sigma_y,
        )
        return PosteriorDraws(array, native.name_map)

    # ---- Display ---------------------------------------------------

    def __str__(self) -> str:
        from .display import describe

        return describe(self, warnings=False)

    def __repr__(self) -> str:
        state = "fitted" if self.is_fitted else "unfit"
        return f"GLMModel({self.formula!r}, family={self.family.name!r}, {state})"


# ------------------------------------------------------------------ #
# Construction
# ------------------------------------------------------------------ #


def _check_names(names: Sequence[str]) -> None:
    clashes = sorted(
        n for n in names if n in _RESERVED_NAMES or n.startswith("beta[")
    )
    if clashes:
        msg = (
            f"Predictor names {clashes} collide with reserved parameter "
            "names; rename these columns."
        )
        raise ValueError(msg)
    if len(set(names)) != len(names):
        msg = f"Predictor names must be unique, got {list(names)}."
        raise ValueError(msg)


def _from_arrays(
    y: ArrayLike,
    X: ArrayLike,
    names: Sequence[str] | None,
) -> tuple[str, np.ndarray, np.ndarray, tuple[str, ...]]:
    y_arr = np.asarray(y)
    if y_arr.ndim == 2 and y_arr.shape[1] == 1:
        y_arr = y_arr[:, 0]
    if y_arr.ndim != 1:
        msg = f"y must be one-dimensional, got shape {y_arr.shape}."
        raise ValueError(msg)
    X_arr = np.asarray(X, dtype=float)
    if X_arr.ndim == 1:
        X_arr = X_arr[:, None]
    if X_arr.ndim != 2:
        msg = f"X must be a 1-D or 2-D array, got shape {X_arr.shape}."
        raise ValueError(msg)
    if X_arr.shape[0] != y_arr.shape[0]:
        msg = (
            f"y has {y_arr.shape[0]} observations but X has "
            f"{X_arr.shape[0]} rows."
        )
        raise ValueError(msg)
    if names:
        predictor_names = tuple(str(n) for n in names)
        if len(predictor_names) != X_arr.shape[1]:
            msg = (
                f"Got {len(predictor_names)} names for {X_arr.shape[1]} "
                "predictor columns."
            )
            raise ValueError(msg)
    else:
        predictor_names = default_names(X_arr.shape[1])
    return formula_from_names("y", predictor_names), y_arr, X_arr, predictor_names


def glm(
    formula_or_y: str | ArrayLike,
    data_or_X: DataFrameLike | ArrayLike,
    family: str | GLMFamily = "normal",
    *,
    priors: Prior | None = None,
    standardize: bool = True,
    names: Sequence[str] | None = None,
) -> GLMModel:
    """Build an unfit Bayesian GLM.

    Two call forms are accepted::

        glm("mpg ~ hp + wt", df, "normal")     # formula + data frame
        glm(y, X, "poisson", names=["dose"])    # raw arrays

    Args:
        formula_or_y: Patsy formula, or the outcome vector.
        data_or_X: pandas / Polars data frame (or a mapping of columns)
            for a formula, or the ``(n, p)`` predictor matrix.
        family: Family name or instance (``"normal"``, ``"student_t"``,
            ``"bernoulli"``, ``"poisson"``, ``"negative_binomial"``).
        priors: Custom :class:`~bayes_glm_models.Prior`; missing
            auxiliary / shape slots are filled with the defaults.
        standardize: Standardize the predictors (and, for Normal and
            Student-t, the outcome) before sampling.
        names: Predictor names for the raw-array form; defaults to
            ``X1 .. Xn``.

    Returns:
        An unfit :class:`GLMModel`.

    Raises:
        ValueError: On random-effects terms, an unknown family, an
            invalid outcome, mismatched shapes, reserved or duplicate
            predictor names, or a constant predictor when
            standardizing.
    """
    if isinstance(formula_or_y, str):
        check_random_effects(formula_or_y)
        data = _ensure_pandas_df(data_or_X, name="data")
        y, X, _, predictor_names = parse_formula(formula_or_y, data)
        formula = formula_or_y
    else:
        formula, y, X, predictor_names = _from_arrays(formula_or_y, data_or_X, names)

    resolved = resolve_family(family)
    resolved.validate_y(y)
    y = np.asarray(y, dtype=float)
    _check_names(predictor_names)

    if standardize:
        mu_X, sigma_X, X_std = _standardize(X)
        if resolved.standardize_outcome:
            mu_y, sigma_y, y_std = _standardize(y)
        else:
            mu_y, sigma_y, y_std = 0.0, 1.0, y
    else:
        warnings.warn(
            "Fitting on unstandardized data; NUTS adapts poorly to "
            "badly scaled predictors.  Pass standardize=True unless the "
            "data are already on a unit scale.",
            UserWarning,
            stacklevel=2,
        )
        mu_X, sigma_X = identity_transform(X.shape[1])
        X_std = X
        mu_y, sigma_y, y_std = 0.0, 1.0, y

    model = GLMModel(
        formula=formula,
        family=resolved,
        prior=complete_prior(priors, resolved, y_std),
        y=y_std,
        X=X_std,
        mu_X=np.atleast_1d(np.asarray(mu_X, dtype=float)),
        sigma_X=np.atleast_1d(np.asarray(sigma_X, dtype=float)),
        mu_y=float(mu_y),
        sigma_y=float(sigma_y),
        predictor_names=predictor_names,
        standardized=standardize,
    )
    logger.debug(
        "Built %s model %r on %d observations (standardized=%s).",
        resolved.display_name,
        formula,
        model.n_observations,
        standardize,
    )
    return model

