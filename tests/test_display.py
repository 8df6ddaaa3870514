"""Tests for model descriptions and the summary table."""

import warnings

import numpy as np
import pandas as pd
import pytest
from sklearn.exceptions import NotFittedError

from bayes_glm_models import describe, fixed_effects, glm, print_summary_table
from bayes_glm_models.display import WIDTH, _fmt, _truncate, _wrap


class TestHelpers:
    def test_truncate(self):
        assert _truncate("short", 10) == "short"
        assert _truncate("a_very_long_predictor_name", 10) == "a_very_..."

    def test_fmt_nan(self):
        assert _fmt(float("nan")) == "N/A"
        assert _fmt(np.float64(0.123456)) == "0.1235"
        assert _fmt(123456.0) == "1.235e+05"
        assert _fmt("x") == "x"

    def test_wrap_indents_continuations(self):
        text = _wrap("Formula:       " + " + ".join(f"x{k}" for k in range(40)))
        lines = text.splitlines()
        assert len(lines) > 1
        assert all(len(line) <= WIDTH for line in lines)
        assert lines[1].startswith(" " * 16)


class TestDescribe:
    def test_unfit(self, mtcars):
        text = describe(glm("mpg ~ hp + wt", mtcars))
        assert "Family:         Normal" in text
        assert "Link:           identity" in text
        assert "Formula:        mpg ~ hp + wt" in text
        assert "Observations:   32" in text
        assert "Standardized:   yes (predictors and outcome)" in text
        assert "Samples:        empty" in text
        assert "predictors: StudentT(df=3, loc=0, scale=2.5)" in text

    def test_predictors_only(self, mtcars):
        text = describe(glm("carb ~ hp", mtcars, "poisson"))
        assert "Standardized:   yes (predictors only)" in text
        assert "Link:           log" in text
        assert "auxiliary" not in text

    def test_not_standardized(self, mtcars):
        with pytest.warns(UserWarning):
            model = glm("mpg ~ hp", mtcars, standardize=False)
        assert "Standardized:   no" in describe(model)

    def test_fitted(self, negative_binomial_fit, fit_kwargs):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            text = describe(negative_binomial_fit)
        total = fit_kwargs["draws"] * fit_kwargs["chains"]
        assert f"Samples:        {total} samples across {fit_kwargs['chains']} chains" in text
        assert "Family:         NegativeBinomial" in text
        assert "auxiliary:  Exponential(rate=1)" in text

    def test_str_never_warns(self, normal_fit):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            str(normal_fit)


class TestSummaryTable:
    def test_sections(self, normal_fit, capsys):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            print_summary_table(normal_fit)
        out = capsys.readouterr().out
        assert "Bayesian GLM Summary" in out
        assert "Fixed Effects" in out
        assert "Prediction Metrics" in out
        assert "rmse" in out
        assert "=" * WIDTH in out.splitlines()

    def test_return_table(self, bernoulli_fit, capsys):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fixed, metrics = print_summary_table(bernoulli_fit, return_table=True)
        capsys.readouterr()
        assert isinstance(fixed, pd.DataFrame)
        assert list(fixed.index) == ["alpha", "wt"]
        assert list(fixed.columns[:4]) == ["median", "std", "2.5%", "97.5%"]
        assert "r_hat" in fixed.columns
        assert list(metrics.index) == ["accuracy", "kappa", "tpr", "tnr", "auc"]

    def test_median_column_matches_accessor(self, poisson_fit, capsys):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fixed, _ = print_summary_table(poisson_fit, return_table=True)
        capsys.readouterr()
        np.testing.assert_allclose(
            fixed["median"].to_numpy(), fixed_effects(poisson_fit, np.median).values
        )

    def test_unfit_raises(self, mtcars):
        with pytest.raises(NotFittedError):
            print_summary_table(glm("mpg ~ hp", mtcars))
