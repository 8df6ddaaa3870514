"""GLM family protocol and the family table.

The ``GLMFamily`` protocol collects everything that differs between
outcome distributions, so that no other module branches on the family
type:

* the link function and its inverse (``identity`` / ``logit`` / ``log``);
* whether the outcome is standardized before sampling (only for
  continuous-unbounded outcomes);
* which auxiliary parameters the likelihood carries, which of them are
  scale-type (rescaled when draws are un-standardized) and which are
  shape-type (scale invariant, copied unchanged);
* the NumPyro likelihood used to build the model's log density;
* the noise model used to draw posterior-predictive observations.

Each concrete family is a frozen ``@dataclass`` that carries no state;
``resolve_family`` maps a user-facing string (``"normal"``,
``"student_t"``, ``"bernoulli"``, ``"poisson"``,
``"negative_binomial"`` and a few aliases) to an instance.  The set of
families is closed: the back-transform in ``standardize.py``, the
likelihood in ``sampling.py`` and the noise models in ``predict.py``
are only defined for these five.

Parameterisations
~~~~~~~~~~~~~~~~~
==================  ========  ====================================
Family              Link      Likelihood
==================  ========  ====================================
Normal              identity  Normal(η, σ)
StudentT            identity  StudentT(ν, η, σ)
Bernoulli           logit     Bernoulli(p = logistic(η))
Poisson             log       Poisson(λ = exp(η))
NegativeBinomial    log       NB2(mean = exp(η), concentration = 1/φ⁻¹)
==================  ========  ====================================

The negative binomial is the NB2 form with ``Var(Y) = μ + φ⁻¹ μ²``; the
sampled auxiliary is the inverse concentration ``phi_inv`` so that an
``Exponential`` prior shrinks towards the Poisson limit.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import jax.numpy as jnp
import numpy as np
import numpyro.distributions as dist
from scipy import special, stats

# ------------------------------------------------------------------ #
# Link functions
# ------------------------------------------------------------------ #
#
# Links act on NumPy arrays (predictions, display).  The NumPyro
# likelihoods below apply their inverse links with jax.numpy, which
# keeps the traced model differentiable.

_LINKS: dict[str, tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    "identity": (lambda mu: np.asarray(mu, dtype=float), lambda eta: np.asarray(eta, dtype=float)),
    "logit": (special.logit, special.expit),
    "log": (np.log, np.exp),
}


def link_functions(link: str) -> tuple[Callable[[Any], Any], Callable[[Any], Any]]:
    """Return ``(link, inverse_link)`` for a link name.

    Raises:
        ValueError: If *link* is unknown.
    """
    try:
        return _LINKS[link]
    except KeyError:
        msg = f"Unknown link {link!r}. Available links: {sorted(_LINKS)}."
        raise ValueError(msg) from None


# ------------------------------------------------------------------ #
# GLMFamily protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class GLMFamily(Protocol):
    """Interface that every outcome family implements.

    Attributes:
        name: Short identifier (e.g. ``"normal"``, ``"bernoulli"``).
        display_name: Label used in model descriptions
            (e.g. ``"Normal"``, ``"NegativeBinomial"``).
        link: Link-function name: ``"identity"``, ``"logit"`` or
            ``"log"``.
        standardize_outcome: Whether the outcome is standardized before
            sampling when standardization is requested.
        auxiliary: Name of the auxiliary parameter governed by the
            prior's ``auxiliary`` slot (``"sigma"``, ``"phi_inv"``), or
            ``None``.
        shape: Name of the parameter governed by the prior's ``shape``
            slot (``"nu"`` for Student-t), or ``None``.
        scale_parameters: Auxiliaries multiplied by σ_y when draws are
            un-standardized.
    """

    @property
    def name(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    @property
    def link(self) -> str: ...

    @property
    def standardize_outcome(self) -> bool: ...

    @property
    def auxiliary(self) -> str | None: ...

    @property
    def shape(self) -> str | None: ...

    @property
    def scale_parameters(self) -> tuple[str, ...]: ...

    def validate_y(self, y: np.ndarray) -> None:
        """Raise ``ValueError`` if *y* is not a valid outcome."""
        ...

    def likelihood(self, eta: Any, params: Mapping[str, Any]) -> dist.Distribution:
        """NumPyro observation distribution given the linear predictor.

        Args:
            eta: Linear predictor (a JAX array while tracing).
            params: Sampled auxiliary parameters keyed by name.
        """
        ...

    def sample_predictive(
        self,
        mu: np.ndarray,
        params: Mapping[str, np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Draw one observation per element of the expected value *mu*.

        Args:
            mu: Expected values on the response scale.
            params: Auxiliary draws, broadcastable against *mu*.
            rng: Source of randomness.
        """
        ...


def auxiliary_parameters(family: GLMFamily) -> tuple[str, ...]:
    """All auxiliary parameter names of *family*, auxiliary first."""
    return tuple(p for p in (family.auxiliary, family.shape) if p is not None)


def inverse_link(family: GLMFamily, eta: Any) -> np.ndarray:
    """Apply *family*'s inverse link element-wise."""
    return link_functions(family.link)[1](eta)


def apply_link(family: GLMFamily, mu: Any) -> np.ndarray:
    """Apply *family*'s link element-wise."""
    return link_functions(family.link)[0](mu)


# ------------------------------------------------------------------ #
# Shared validation
# ------------------------------------------------------------------ #


def _validate_numeric(y: np.ndarray, label: str) -> None:
    if not np.issubdtype(y.dtype, np.number):
        msg = f"{label} requires numeric Y values."
        raise ValueError(msg)
    if np.any(np.isnan(y)):
        msg = f"{label} does not accept NaN values in Y."
        raise ValueError(msg)


def _validate_counts(y: np.ndarray, label: str) -> None:
    _validate_numeric(y, label)
    if np.any(y < 0):
        msg = f"{label} requires non-negative Y values."
        raise ValueError(msg)
    # Allow floats that happen to be whole numbers (e.g. 3.0),
    # but reject genuinely fractional values like 3.5.
    if not np.allclose(y, np.round(y)):
        msg = f"{label} requires integer-valued Y. Got non-integer values."
        raise ValueError(msg)


# ------------------------------------------------------------------ #
# Continuous families
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class NormalFamily:
    """Gaussian outcome with identity link.

    The outcome is standardized together with the predictors, so the
    residual scale σ is sampled on the unit scale and multiplied by σ_y
    when draws are un-standardized.
    """

    @property
    def name(self) -> str:
        return "normal"

    @property
    def display_name(self) -> str:
        return "Normal"

    @property
    def link(self) -> str:
        return "identity"

    @property
    def standardize_outcome(self) -> bool:
        return True

    @property
    def auxiliary(self) -> str | None:
        return "sigma"

    @property
    def shape(self) -> str | None:
        return None

    @property
    def scale_parameters(self) -> tuple[str, ...]:
        return ("sigma",)

    def validate_y(self, y: np.ndarray) -> None:
        """Check that *y* is numeric and non-constant."""
        _validate_numeric(y, "NormalFamily")
        if np.ptp(y) == 0:
            msg = "NormalFamily requires non-constant Y (zero variance)."
            raise ValueError(msg)

    def likelihood(self, eta: Any, params: Mapping[str, Any]) -> dist.Distribution:
        return dist.Normal(eta, params["sigma"])

    def sample_predictive(
        self,
        mu: np.ndarray,
        params: Mapping[str, np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        return stats.norm.rvs(loc=mu, scale=params["sigma"], random_state=rng)


@dataclass(frozen=True)
class StudentTFamily:
    """Heavy-tailed continuous outcome with identity link.

    Adds a degrees-of-freedom parameter ν (prior slot ``shape``), which
    is scale invariant and therefore untouched by un-standardization.
    """

    @property
    def name(self) -> str:
        return "student_t"

    @property
    def display_name(self) -> str:
        return "StudentT"

    @property
    def link(self) -> str:
        return "identity"

    @property
    def standardize_outcome(self) -> bool:
        return True

    @property
    def auxiliary(self) -> str | None:
        return "sigma"

    @property
    def shape(self) -> str | None:
        return "nu"

    @property
    def scale_parameters(self) -> tuple[str, ...]:
        return ("sigma",)

    def validate_y(self, y: np.ndarray) -> None:
        """Check that *y* is numeric and non-constant."""
        _validate_numeric(y, "StudentTFamily")
        if np.ptp(y) == 0:
            msg = "StudentTFamily requires non-constant Y (zero variance)."
            raise ValueError(msg)

    def likelihood(self, eta: Any, params: Mapping[str, Any]) -> dist.Distribution:
        return dist.StudentT(params["nu"], eta, params["sigma"])

    def sample_predictive(
        self,
        mu: np.ndarray,
        params: Mapping[str, np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        return stats.t.rvs(
            df=params["nu"], loc=mu, scale=params["sigma"], random_state=rng
        )


# ------------------------------------------------------------------ #
# Discrete families
# ------------------------------------------------------------------ #
#
# Discrete outcomes are never standardized: a centred and scaled 0/1
# indicator or count is no longer in the support of its likelihood.
# Only the predictors are standardized, so μ_y = 0 and σ_y = 1.


@dataclass(frozen=True)
class BernoulliFamily:
    """Binary outcome Y ∈ {0, 1} with logit link."""

    @property
    def name(self) -> str:
        return "bernoulli"

    @property
    def display_name(self) -> str:
        return "Bernoulli"

    @property
    def link(self) -> str:
        return "logit"

    @property
    def standardize_outcome(self) -> bool:
        return False

    @property
    def auxiliary(self) -> str | None:
        return None

    @property
    def shape(self) -> str | None:
        return None

    @property
    def scale_parameters(self) -> tuple[str, ...]:
        return ()

    def validate_y(self, y: np.ndarray) -> None:
        """Check that every value of *y* is 0 or 1."""
        _validate_numeric(y, "BernoulliFamily")
        if not np.all(np.isin(y, [0, 1])):
            msg = "BernoulliFamily requires binary Y with values in {0, 1}."
            raise ValueError(msg)

    def likelihood(self, eta: Any, params: Mapping[str, Any]) -> dist.Distribution:
        return dist.BernoulliLogits(eta)

    def sample_predictive(
        self,
        mu: np.ndarray,
        params: Mapping[str, np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        return stats.bernoulli.rvs(mu, random_state=rng)


@dataclass(frozen=True)
class PoissonFamily:
    """Count outcome with log link and equidispersion."""

    @property
    def name(self) -> str:
        return "poisson"

    @property
    def display_name(self) -> str:
        return "Poisson"

    @property
    def link(self) -> str:
        return "log"

    @property
    def standardize_outcome(self) -> bool:
        return False

    @property
    def auxiliary(self) -> str | None:
        return None

    @property
    def shape(self) -> str | None:
        return None

    @property
    def scale_parameters(self) -> tuple[str, ...]:
        return ()

    def validate_y(self, y: np.ndarray) -> None:
        """Check that *y* contains non-negative integer-valued data."""
        _validate_counts(y, "PoissonFamily")

    def likelihood(self, eta: Any, params: Mapping[str, Any]) -> dist.Distribution:
        return dist.Poisson(rate=jnp.exp(eta))

    def sample_predictive(
        self,
        mu: np.ndarray,
        params: Mapping[str, np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        return stats.poisson.rvs(mu, random_state=rng)


@dataclass(frozen=True)
class NegativeBinomialFamily:
    """Overdispersed count outcome with log link (NB2).

    The sampled auxiliary ``phi_inv`` is the inverse concentration;
    the likelihood uses ``concentration = 1 / phi_inv`` and the
    predictive noise model uses the identical parameterisation.
    """

    @property
    def name(self) -> str:
        return "negative_binomial"

    @property
    def display_name(self) -> str:
        return "NegativeBinomial"

    @property
    def link(self) -> str:
        return "log"

    @property
    def standardize_outcome(self) -> bool:
        return False

    @property
    def auxiliary(self) -> str | None:
        return "phi_inv"

    @property
    def shape(self) -> str | None:
        return None

    @property
    def scale_parameters(self) -> tuple[str, ...]:
        return ()

    def validate_y(self, y: np.ndarray) -> None:
        """Check that *y* contains non-negative integer-valued data."""
        _validate_counts(y, "NegativeBinomialFamily")

    def likelihood(self, eta: Any, params: Mapping[str, Any]) -> dist.Distribution:
        return dist.NegativeBinomial2(jnp.exp(eta), 1.0 / params["phi_inv"])

    def sample_predictive(
        self,
        mu: np.ndarray,
        params: Mapping[str, np.ndarray],
        rng: np.random.Generator,
    ) -> np.ndarray:
        # scipy's nbinom(n, p) has mean n(1 − p)/p; with n = φ and
        # p = φ / (φ + μ) that mean is μ and the variance μ + μ²/φ.
        concentration = 1.0 / np.asarray(params["phi_inv"], dtype=float)
        p = concentration / (concentration + mu)
        return stats.nbinom.rvs(concentration, p, random_state=rng)


# ------------------------------------------------------------------ #
# Family resolution
# ------------------------------------------------------------------ #

_FAMILIES: dict[str, type] = {
    "normal": NormalFamily,
    "gaussian": NormalFamily,
    "student_t": StudentTFamily,
    "studentt": StudentTFamily,
    "t": StudentTFamily,
    "bernoulli": BernoulliFamily,
    "binary": BernoulliFamily,
    "poisson": PoissonFamily,
    "negative_binomial": NegativeBinomialFamily,
    "negativebinomial": NegativeBinomialFamily,
    "negbin": NegativeBinomialFamily,
}
"""Mapping of accepted family names (and aliases) to family classes."""


def resolve_family(family: str | GLMFamily) -> GLMFamily:
    """Resolve a family string or instance to a concrete ``GLMFamily``.

    Instances of the five built-in families are returned as-is.  Strings
    are matched case-insensitively against the names and aliases in the
    family table (``"normal"``/``"gaussian"``, ``"student_t"``/``"t"``,
    ``"bernoulli"``, ``"poisson"``, ``"negative_binomial"``/``"negbin"``).

    Args:
        family: Family identifier string **or** a family instance.

    Returns:
        A ``GLMFamily`` instance.

    Raises:
        ValueError: If *family* is not one of the supported families.
    """
    if isinstance(family, tuple(set(_FAMILIES.values()))):
        return family  # type: ignore[return-value]
    if isinstance(family, str):
        key = family.strip().lower().replace("-", "_")
        if key in _FAMILIES:
            instance: GLMFamily = _FAMILIES[key]()
            return instance
    available = ", ".join(sorted({cls().name for cls in _FAMILIES.values()}))
    msg = f"Unknown family {family!r}.  Available families: {available}."
    raise ValueError(msg)
