"""Chain-method configuration for the bayes_glm_models package.

Controls how NumPyro runs multiple MCMC chains when
:meth:`~bayes_glm_models.GLMModel.fit` is called without an explicit
``chain_method``.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_chain_method`.
    2. The ``BAYES_GLM_CHAIN_METHOD`` environment variable.
    3. Auto-detection: ``"parallel"`` if JAX exposes at least as many
       host devices as requested chains, else ``"sequential"``.

Valid names are ``"parallel"``, ``"sequential"`` and ``"vectorized"``
(case-insensitive), plus ``"auto"`` which restores the default order.

``"parallel"`` maps each chain to its own JAX device (threads on a CPU
host).  JAX reports a single CPU device unless
``numpyro.set_host_device_count`` is called before JAX initialises, so
the auto-detected default is usually ``"sequential"``.

Examples:
    Force serial chains from the shell::

        export BAYES_GLM_CHAIN_METHOD=sequential

    Force vectorised chains programmatically::

        import bayes_glm_models
        bayes_glm_models.set_chain_method("vectorized")

    Re-enable auto-detection::

        bayes_glm_models.set_chain_method("auto")
"""

from __future__ import annotations

import os

_CHAIN_METHODS = {"parallel", "sequential", "vectorized"}
_VALID_CHAIN_METHODS = _CHAIN_METHODS | {"auto"}

_ENV_VAR = "BAYES_GLM_CHAIN_METHOD"

# Sentinel indicating "no programmatic override has been set".
_chain_method_override: str | None = None


def _host_device_count() -> int:
    """Return the number of devices JAX can run chains on."""
    import jax

    return int(jax.local_device_count())


def get_chain_method(chains: int = 1) -> str:
    """Return the active chain method for a run of *chains* chains.

    Resolution order:
        1. Value set by :func:`set_chain_method` (unless ``"auto"``).
        2. ``BAYES_GLM_CHAIN_METHOD`` environment variable.
        3. ``"parallel"`` if enough devices exist, else ``"sequential"``.

    Args:
        chains: Number of chains about to be sampled.  Only used by the
            auto-detection step.

    Returns:
        ``"parallel"``, ``"sequential"`` or ``"vectorized"``.
    """
    # 1. Programmatic override
    if _chain_method_override is not None and _chain_method_override != "auto":
        return _chain_method_override

    # 2. Environment variable
    env = os.environ.get(_ENV_VAR, "").strip().lower()
    if env in _CHAIN_METHODS:
        return env

    # 3. Auto-detect
    if chains > 1 and _host_device_count() >= chains:
        return "parallel"
    return "sequential"


def set_chain_method(name: str) -> None:
    """Override the default chain method.

    Args:
        name: One of ``"parallel"``, ``"sequential"``, ``"vectorized"``
            or ``"auto"`` (case-insensitive).  ``"auto"`` restores the
            default resolution order.

    Raises:
        ValueError: If *name* is not a recognised chain method.
    """
    global _chain_method_override
    normalised = resolve_chain_method(name, allow_auto=True)
    _chain_method_override = normalised


def resolve_chain_method(name: str, *, allow_auto: bool = False) -> str:
    """Normalise and validate a chain-method name.

    Raises:
        ValueError: If *name* is not recognised.
    """
    normalised = name.strip().lower()
    valid = _VALID_CHAIN_METHODS if allow_auto else _CHAIN_METHODS
    if normalised not in valid:
        raise ValueError(
            f"Unknown chain method '{name}'. Choose from: {sorted(valid)}"
        )
    return normalised
