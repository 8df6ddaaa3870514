"""Standardization of model inputs and back-transformation of draws.

The sampler always sees standardized data: predictors are centred and
scaled column by column, and for continuous-unbounded families
(Normal, Student-t) so is the outcome.  NUTS adapts its step size and
mass matrix far more reliably on unit-scale data, so this is the
default.

Forward map (applied to the data)::

    x* = (x − μ_X) / σ_X          y* = (y − μ_y) / σ_y

Because the linear predictor on the standardized scale is

    y* = α* + Σ_k β*_k x*_k

substituting the forward map and solving for the raw-scale regression
``y = α + Σ_k β_k x_k`` gives the back-transform applied once per fit,
per draw and per chain:

    β_k = β*_k · σ_y / σ_X[k]
    α   = μ_y + σ_y · (α* − Σ_k β*_k · μ_X[k] / σ_X[k])
    σ   = σ* · σ_y                  (scale-type auxiliaries only)

Shape parameters (Student-t ν, negative-binomial φ⁻¹) are scale
invariant and are copied unchanged, as are all sampler internals.
For families whose outcome is never standardized, μ_y = 0 and σ_y = 1,
so only the predictor part of the map is active.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from ._labeled import LabeledArray
from ._typing import ArrayLike


def standardize(
    data: ArrayLike,
) -> tuple[np.ndarray | float, np.ndarray | float, np.ndarray]:
    """Centre and scale *data* column-wise.

    Args:
        data: Vector ``(n,)`` or matrix ``(n, p)``.

    Returns:
        ``(mean, std, standardized)``.  For a vector, *mean* and *std*
        are floats; for a matrix they are arrays of shape ``(p,)``.
        *std* is the sample standard deviation (``ddof=1``).

    Raises:
        ValueError: If any column is constant (zero standard deviation)
            or there are fewer than two observations.
    """
    values = np.asarray(data, dtype=float)
    if values.shape[0] < 2:
        msg = "Standardization requires at least two observations."
        raise ValueError(msg)
    mean = values.mean(axis=0)
    std = values.std(axis=0, ddof=1)
    if np.any(std == 0):
        msg = (
            "Cannot standardize a constant column (zero standard "
            "deviation).  Remove it or fit with standardize=False."
        )
        raise ValueError(msg)
    standardized = (values - mean) / std
    if values.ndim == 1:
        return float(mean), float(std), standardized
    return mean, std, standardized


def destandardize(
    data: ArrayLike,
    mean: np.ndarray | float,
    std: np.ndarray | float,
) -> np.ndarray:
    """Invert :func:`standardize`: ``raw = standardized * std + mean``.

    *mean* and *std* broadcast over the trailing (column) axis.
    """
    return np.asarray(data, dtype=float) * std + mean


def apply_standardization(
    data: ArrayLike,
    mean: np.ndarray | float,
    std: np.ndarray | float,
) -> np.ndarray:
    """Standardize new *data* with previously computed *mean* / *std*."""
    return (np.asarray(data, dtype=float) - mean) / std


def identity_transform(n_columns: int) -> tuple[np.ndarray, np.ndarray]:
    """Return the ``(mean, std)`` pair that leaves data unchanged."""
    return np.zeros(n_columns), np.ones(n_columns)


# ------------------------------------------------------------------ #
# Draw back-transformation
# ------------------------------------------------------------------ #
#
# Both maps below operate on the full ("draw", "parameter", "chain")
# array in one vectorised step.  The coefficient block is a
# (draws, p, chains) slab; the intercept correction is the
# contraction of that slab with μ_X / σ_X over the parameter axis,
# which is exactly the per-draw, per-chain dot product.


def _blocks(
    draws: LabeledArray,
    intercept: str,
    coefficients: Sequence[str],
) -> tuple[int, list[int]]:
    alpha_idx = draws.index("parameter", intercept)
    beta_idx = [draws.index("parameter", name) for name in coefficients]
    return alpha_idx, beta_idx


def unstandardize_draws(
    draws: LabeledArray,
    *,
    intercept: str,
    coefficients: Sequence[str],
    scale_parameters: Sequence[str],
    mu_X: np.ndarray,
    sigma_X: np.ndarray,
    mu_y: float,
    sigma_y: float,
) -> LabeledArray:
    """Map standardized-scale draws back to the original data scale.

    Args:
        draws: ``("draw", "parameter", "chain")`` array of
            standardized-scale draws.
        intercept: Parameter label of the intercept.
        coefficients: Parameter labels of the slopes, in design-matrix
            column order.
        scale_parameters: Labels of scale-type auxiliaries (multiplied
            by σ_y).  Labels not present in *draws* are ignored.
        mu_X, sigma_X: Predictor standardization, shape ``(p,)``.
        mu_y, sigma_y: Outcome standardization.

    Returns:
        A new array with the same labels; untouched parameters are
        copied verbatim.
    """
    values = np.array(draws.values, dtype=float, copy=True)
    alpha_idx, beta_idx = _blocks(draws, intercept, coefficients)
    mu_X = np.asarray(mu_X, dtype=float)
    sigma_X = np.asarray(sigma_X, dtype=float)

    beta_std = values[:, beta_idx, :]  # (draws, p, chains)
    correction = np.einsum("dpc,p->dc", beta_std, mu_X / sigma_X)
    values[:, alpha_idx, :] = mu_y + sigma_y * (values[:, alpha_idx, :] - correction)
    values[:, beta_idx, :] = beta_std * (sigma_y / sigma_X)[None, :, None]
    for name in scale_parameters:
        if name in draws.coords["parameter"]:
            values[:, draws.index("parameter", name), :] *= sigma_y
    return LabeledArray(values, draws.dims, draws.coords)


def restandardize_draws(
    draws: LabeledArray,
    *,
    intercept: str,
    coefficients: Sequence[str],
    scale_parameters: Sequence[str],
    mu_X: np.ndarray,
    sigma_X: np.ndarray,
    mu_y: float,
    sigma_y: float,
) -> LabeledArray:
    """Inverse of :func:`unstandardize_draws`.

    β*_k = β_k · σ_X[k] / σ_y and α* = (α − μ_y) / σ_y + Σ_k β*_k μ_X[k] / σ_X[k].
    """
    values = np.array(draws.values, dtype=float, copy=True)
    alpha_idx, beta_idx = _blocks(draws, intercept, coefficients)
    mu_X = np.asarray(mu_X, dtype=float)
    sigma_X = np.asarray(sigma_X, dtype=float)

    beta_std = values[:, beta_idx, :] * (sigma_X / sigma_y)[None, :, None]
    correction = np.einsum("dpc,p->dc", beta_std, mu_X / sigma_X)
    values[:, alpha_idx, :] = (values[:, alpha_idx, :] - mu_y) / sigma_y + correction
    values[:, beta_idx, :] = beta_std
    for name in scale_parameters:
        if name in draws.coords["parameter"]:
            values[:, draws.index("parameter", name), :] /= sigma_y
    return LabeledArray(values, draws.dims, draws.coords)
