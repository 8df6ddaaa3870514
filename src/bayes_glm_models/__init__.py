"""bayes_glm_models — Bayesian generalised linear models on NumPyro.

Builds fixed-effects GLMs (Normal, Student-t, Bernoulli, Poisson and
negative-binomial outcomes) from a patsy formula or raw arrays, samples
them with NUTS, and returns labelled posterior draws, predictions,
in-sample metrics and PSIS-LOO comparisons.  Inputs are standardized
before sampling and the draws are mapped back to the data's scale.

Public API:
    .. autosummary::
        glm
        GLMModel
        Prior
        default_prior
        parameter_names
        get_parameters
        parameters
        fixed_effects
        coefficients
        internals
        point_estimate
        outcome
        predictors
        linear_predictor
        expected_value
        posterior_predictive
        predict
        seed_predictive
        Metric
        calculate_metrics
        default_metrics
        psis_loo
        loo_compare
        describe
        print_summary_table
        summarize
        check_convergence
        convergence_findings
        ConvergenceWarning
        GLMFamily
        NormalFamily
        StudentTFamily
        BernoulliFamily
        PoissonFamily
        NegativeBinomialFamily
        resolve_family
        LabeledArray
        PosteriorDraws
        get_chain_method
        set_chain_method
"""

from ._config import get_chain_method, set_chain_method
from ._labeled import LabeledArray
from ._results import PosteriorDraws
from .comparison import loo_compare, psis_loo
from .diagnostics import (
    ConvergenceWarning,
    check_convergence,
    convergence_findings,
    summarize,
)
from .display import describe, print_summary_table
from .families import (
    BernoulliFamily,
    GLMFamily,
    NegativeBinomialFamily,
    NormalFamily,
    PoissonFamily,
    StudentTFamily,
    resolve_family,
)
from .metrics import Metric, calculate_metrics, default_metrics
from .model import GLMModel, glm
from .parameters import (
    coefficients,
    fixed_effects,
    get_parameters,
    internals,
    outcome,
    parameter_names,
    parameters,
    point_estimate,
    predictors,
)
from .predict import (
    expected_value,
    linear_predictor,
    posterior_predictive,
    predict,
    seed_predictive,
)
from .priors import Prior, default_prior

__all__ = [
    "glm",
    "GLMModel",
    "Prior",
    "default_prior",
    "parameter_names",
    "get_parameters",
    "parameters",
    "fixed_effects",
    "coefficients",
    "internals",
    "point_estimate",
    "outcome",
    "predictors",
    "linear_predictor",
    "expected_value",
    "posterior_predictive",
    "predict",
    "seed_predictive",
    "Metric",
    "calculate_metrics",
    "default_metrics",
    "psis_loo",
    "loo_compare",
    "describe",
    "print_summary_table",
    "summarize",
    "check_convergence",
    "convergence_findings",
    "ConvergenceWarning",
    "GLMFamily",
    "NormalFamily",
    "StudentTFamily",
    "BernoulliFamily",
    "PoissonFamily",
    "NegativeBinomialFamily",
    "resolve_family",
    "LabeledArray",
    "PosteriorDraws",
    "get_chain_method",
    "set_chain_method",
]

__version__ = "0.1.0"
