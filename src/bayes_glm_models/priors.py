"""Prior specification for GLM models.

A :class:`Prior` bundles up to four NumPyro distributions:

* ``predictors`` — shared by every slope ``beta[k]``;
* ``intercept`` — the intercept ``alpha``;
* ``auxiliary`` — the family's auxiliary parameter (``sigma`` for
  Normal and Student-t, ``phi_inv`` for the negative binomial);
* ``shape`` — the Student-t degrees of freedom ``nu``.

The priors apply on the scale the sampler sees, i.e. to standardized
data when the model is standardized.  :func:`default_prior` builds the
family defaults from the outcome vector handed to the sampler:

==============  =========================================  ===============
Slot            Normal / Student-t                         Other families
==============  =========================================  ===============
predictors      StudentT(3, 0, 2.5)                        StudentT(3, 0, 2.5)
intercept       StudentT(3, median(y), mad(y))             StudentT(3, 0, 2.5)
auxiliary       Exponential(1)                             Exponential(1) (NB only)
shape           LogNormal(2, 1) (Student-t only)           --
==============  =========================================  ===============

The median absolute deviation is ``statsmodels.robust.scale.mad``
(normalised to be consistent with the standard deviation under
normality).  A zero MAD falls back to a scale of 2.5.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np
import numpyro.distributions as dist
from statsmodels.robust.scale import mad

from .families import GLMFamily

_DEFAULT_SCALE = 2.5
_DEFAULT_DF = 3.0


@dataclass(frozen=True)
class Prior:
    """Prior distributions for the parameters of a GLM.

    Attributes:
        predictors: Prior shared by all slope coefficients.
        intercept: Prior for the intercept.
        auxiliary: Prior for the family's auxiliary parameter, or
            ``None`` to use the family default.
        shape: Prior for the family's shape parameter, or ``None`` to
            use the family default.
    """

    predictors: dist.Distribution
    intercept: dist.Distribution
    auxiliary: dist.Distribution | None = None
    shape: dist.Distribution | None = None

    def __str__(self) -> str:
        parts = [
            f"  predictors: {render_distribution(self.predictors)}",
            f"  intercept:  {render_distribution(self.intercept)}",
        ]
        if self.auxiliary is not None:
            parts.append(f"  auxiliary:  {render_distribution(self.auxiliary)}")
        if self.shape is not None:
            parts.append(f"  shape:      {render_distribution(self.shape)}")
        return "\n".join(parts)


def render_distribution(distribution: dist.Distribution) -> str:
    """Render a distribution as ``Name(arg=value, ...)``.

    Arguments are the distribution's declared constrained parameters,
    in declaration order.  Scalars print with ``%g``.
    """
    args = []
    for name in distribution.arg_constraints:
        value = np.asarray(getattr(distribution, name, np.nan))
        if value.ndim == 0:
            args.append(f"{name}={float(value):g}")
        else:
            args.append(f"{name}={value.tolist()}")
    return f"{type(distribution).__name__}({', '.join(args)})"


def default_prior(family: GLMFamily, y: np.ndarray) -> Prior:
    """Build the default prior for *family* given the sampler's outcome.

    Args:
        family: Resolved GLM family.
        y: Outcome vector as handed to the sampler (standardized when
            the outcome is standardized).

    Returns:
        A fully populated :class:`Prior` (auxiliary and shape set only
        when the family has them).
    """
    predictors = dist.StudentT(_DEFAULT_DF, 0.0, _DEFAULT_SCALE)
    if family.link == "identity":
        y = np.asarray(y, dtype=float)
        scale = float(mad(y))
        if not np.isfinite(scale) or scale <= 0:
            scale = _DEFAULT_SCALE
        intercept = dist.StudentT(_DEFAULT_DF, float(np.median(y)), scale)
    else:
        intercept = dist.StudentT(_DEFAULT_DF, 0.0, _DEFAULT_SCALE)
    auxiliary = dist.Exponential(1.0) if family.auxiliary is not None else None
    shape = dist.LogNormal(2.0, 1.0) if family.shape is not None else None
    return Prior(predictors, intercept, auxiliary, shape)


def complete_prior(prior: Prior | None, family: GLMFamily, y: np.ndarray) -> Prior:
    """Fill the slots of a user *prior* that *family* needs but lacks.

    ``None`` returns :func:`default_prior`.  Auxiliary or shape priors
    supplied for a family that has no such parameter are dropped so
    that the display only lists priors that are actually used.
    """
    defaults = default_prior(family, y)
    if prior is None:
        return defaults
    if not isinstance(prior, Prior):
        msg = f"priors must be a Prior instance or None, got {type(prior).__name__}."
        raise TypeError(msg)
    auxiliary = prior.auxiliary if family.auxiliary is not None else None
    shape = prior.shape if family.shape is not None else None
    return replace(
        prior,
        auxiliary=auxiliary if auxiliary is not None else defaults.auxiliary,
        shape=shape if shape is not None else defaults.shape,
    )
