"""Typed container for posterior draws.

:class:`PosteriorDraws` is the frozen snapshot a fit produces.  It
provides:

* **Attribute access**: ``draws.array``, ``draws.parameters``,
  ``draws.n_chains``.
* **Membership**: ``"alpha" in draws`` tests whether a canonical
  label is stored.

A fitted model holds two of these, the native (standardized-scale)
draws and their back-transformed twin, always built together.  Labels
along the ``"parameter"`` axis are canonical: ``alpha``, ``beta[k]``,
the family's auxiliary parameters, then sampler internals.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ._labeled import LabeledArray

# ------------------------------------------------------------------ #
# PosteriorDraws
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class PosteriorDraws:
    """Posterior draws of one fit, on one scale.

    Attributes:
        array: ``("draw", "parameter", "chain")`` labeled array.
        name_map: ``{"parameters": [...], "internals": [...]}``
            separating model parameters from sampler diagnostics.
            Every label in *array* appears in exactly one group.
    """

    array: LabeledArray
    name_map: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.array.dims != ("draw", "parameter", "chain"):
            msg = (
                "PosteriorDraws needs a ('draw', 'parameter', 'chain') array, "
                f"got {self.array.dims}."
            )
            raise ValueError(msg)
        name_map = {
            "parameters": tuple(self.name_map.get("parameters", ())),
            "internals": tuple(self.name_map.get("internals", ())),
        }
        grouped = name_map["parameters"] + name_map["internals"]
        if sorted(grouped) != sorted(self.array.coords["parameter"]):
            msg = (
                "name_map must partition the parameter labels "
                f"{self.array.coords['parameter']}, got {name_map}."
            )
            raise ValueError(msg)
        object.__setattr__(self, "name_map", name_map)

    # ---- Shape -----------------------------------------------------

    @property
    def n_draws(self) -> int:
        """Draws per chain."""
        return self.array.shape[0]

    @property
    def n_chains(self) -> int:
        return self.array.shape[2]

    @property
    def parameters(self) -> tuple[str, ...]:
        return self.name_map["parameters"]

    @property
    def internals(self) -> tuple[str, ...]:
        return self.name_map["internals"]

    # ---- Membership ------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self.array.coords["parameter"]

