"""
Example 1: Linear Regression (Continuous Outcome)
Longley macroeconomic data (statsmodels.datasets.longley)

Demonstrates:
- ``glm(formula, data)`` with the default ``family="normal"``
- Standardized sampling and the back-transformed parameter store
- Parameter accessors with ``reduce_fn`` and draw selection
- Posterior predictions on new rows (``predict``)
- ``family="student_t"`` as a robust alternative, ranked with
  ``loo_compare``

The Longley data (16 annual observations, 1947-1962) are notoriously
collinear; with standardized predictors NUTS still adapts well, and the
fitted coefficients are reported on the original units.
"""

import numpy as np
import statsmodels.api as sm

from bayes_glm_models import (
    fixed_effects,
    glm,
    internals,
    loo_compare,
    point_estimate,
    predict,
    print_summary_table,
)

# ============================================================================
# Load data
# ============================================================================

longley = sm.datasets.longley.load_pandas().data
formula = "TOTEMP ~ GNP + UNEMP + ARMED + POP"

# ============================================================================
# Normal model
# ============================================================================

normal = glm(formula, longley, "normal").fit(draws=1000, chains=4, warmup=1000, seed=1)
print_summary_table(normal, title="Longley: Normal GLM")

# Medians on the data scale agree with least squares.
ols = sm.OLS.from_formula(formula, longley).fit()
bayes = point_estimate(normal).values
print("OLS vs posterior median:")
for name, b_ols, b_bayes in zip(["alpha", *normal.predictor_names], ols.params, bayes):
    print(f"  {name:<10}{b_ols:>14.4f}{b_bayes:>14.4f}")

# Standardized coefficients are directly comparable across predictors.
print(fixed_effects(normal, np.median, standardized=True).to_pandas())

# Sampler internals: any divergent transitions?
divergent = internals(normal).sel(parameter="numerical_error").values
print(f"Divergent transitions: {int(divergent.sum())}")

# ============================================================================
# Predictions
# ============================================================================

new_rows = longley[list(normal.predictor_names)].iloc[-3:]
y_rep = predict(normal, new_rows, rng=0)
intervals = np.quantile(y_rep.values, [0.05, 0.95], axis=1).T
print("90% predictive intervals for the last three years:")
for year, (lo, hi) in zip(longley["YEAR"].iloc[-3:], intervals):
    print(f"  {int(year)}: [{lo:,.0f}, {hi:,.0f}]")

# ============================================================================
# Robust alternative
# ============================================================================

robust = glm(formula, longley, "student_t").fit(draws=1000, chains=4, warmup=1000, seed=2)
print(loo_compare([normal, robust], ["normal", "student_t"]))
