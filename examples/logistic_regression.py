"""
Example 2: Logistic Regression (Binary Outcome)
Spector & Mazzeo (1980) teaching-method data (statsmodels.datasets.spector)

Demonstrates:
- ``family="bernoulli"`` with the logit link
- Expected probabilities vs posterior-predictive classes
- Classification metrics per draw (accuracy, kappa, TPR, TNR, AUC)
- Custom metrics through ``calculate_metrics``

*GRADE* records whether a student's grade improved after a new
teaching method (*PSI*) was introduced, controlling for grade point
average and a pre-test score (*TUCE*).  Only 32 students took part, so
the posterior is wide and the prior matters.
"""

import numpy as np
import statsmodels.api as sm
from sklearn.metrics import brier_score_loss

from bayes_glm_models import (
    Metric,
    calculate_metrics,
    default_metrics,
    expected_value,
    glm,
    print_summary_table,
)

# ============================================================================
# Load data
# ============================================================================

spector = sm.datasets.spector.load_pandas().data

# ============================================================================
# Fit
# ============================================================================

model = glm("GRADE ~ GPA + TUCE + PSI", spector, "bernoulli").fit(seed=3)
print_summary_table(model, title="Spector: Bernoulli GLM")
assert model.link == "logit"
assert not model.outcome_standardized

# ============================================================================
# Predictions and metrics
# ============================================================================

p_improve = expected_value(model, reduce_fn=np.median)
print("Median P(GRADE = 1) for the first five students:")
print(np.round(p_improve.values[:5], 3))

print(default_metrics(model, np.median).to_pandas())

# Probability-scale metrics receive the raw probabilities.
brier = Metric("brier", brier_score_loss, uses_probabilities=True)
scores = calculate_metrics(model, [brier], np.mean)
print(f"Posterior-mean Brier score: {float(scores.values):.3f}")
