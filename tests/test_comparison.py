"""Tests for PSIS-LOO and model comparison."""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from bayes_glm_models import glm, loo_compare, parameters, psis_loo
from bayes_glm_models.comparison import log_likelihood_matrix, to_inference_data


class TestLogLikelihood:
    def test_shape(self, normal_fit, fit_kwargs):
        loglik = log_likelihood_matrix(normal_fit, n_draws=20)
        assert loglik.shape == (20 * fit_kwargs["chains"], 32)
        assert np.all(np.isfinite(loglik))

    def test_poisson_matches_scipy(self, poisson_fit, mtcars):
        loglik = log_likelihood_matrix(poisson_fit, n_draws=5)
        effects = parameters(poisson_fit, n_draws=5).values
        eta = effects[:, 0][:, None] + effects[:, 1][:, None] * mtcars["hp"].to_numpy()[None, :]
        expected = stats.poisson.logpmf(mtcars["carb"].to_numpy()[None, :], np.exp(eta))
        np.testing.assert_allclose(loglik, expected, rtol=1e-4, atol=1e-4)

    def test_normal_on_outcome_scale(self, normal_fit, mtcars):
        loglik = log_likelihood_matrix(normal_fit, n_draws=5)
        draws = parameters(normal_fit, n_draws=5).values
        X = mtcars[["hp", "wt"]].to_numpy()
        mu = draws[:, [0]] + draws[:, 1:3] @ X.T
        expected = stats.norm.logpdf(mtcars["mpg"].to_numpy()[None, :], mu, draws[:, [3]])
        np.testing.assert_allclose(loglik, expected, rtol=1e-4, atol=1e-4)

    def test_inference_data_groups(self, normal_fit):
        idata = to_inference_data(normal_fit, n_draws=10)
        assert "posterior" in idata.groups()
        assert "log_likelihood" in idata.groups()
        assert idata.log_likelihood["y"].shape == (1, 10 * normal_fit.posterior_samples.n_chains, 32)
        assert set(idata.posterior.data_vars) == {"alpha", "hp", "wt", "sigma"}


class TestPsisLoo:
    def test_pointwise_by_default(self, normal_fit):
        loo = psis_loo(normal_fit)
        assert np.isfinite(loo["elpd_loo"])
        assert loo["loo_i"].shape == (32,)
        assert loo["pareto_k"].shape == (32,)

    def test_elpd_below_in_sample_fit(self, normal_fit):
        loo = psis_loo(normal_fit)
        lppd = np.sum(np.log(np.mean(np.exp(log_likelihood_matrix(normal_fit)), axis=0)))
        assert loo["elpd_loo"] < lppd

    def test_invariant_to_standardization(self, mtcars, fit_kwargs):
        standardized = glm("mpg ~ wt", mtcars).fit(**fit_kwargs)
        with pytest.warns(UserWarning, match="unstandardized"):
            raw = glm("mpg ~ wt", mtcars, standardize=False)
        raw.fit(**fit_kwargs)
        elpd_std = psis_loo(standardized)["elpd_loo"]
        elpd_raw = psis_loo(raw)["elpd_loo"]
        assert abs(elpd_std - elpd_raw) < 3.0

    def test_kwargs_forwarded(self, poisson_fit):
        loo = psis_loo(poisson_fit, pointwise=False)
        assert "loo_i" not in loo


class TestLooCompare:
    def test_table(self, normal_fit, student_t_fit):
        table = loo_compare([normal_fit, student_t_fit], ["normal", "student_t"])
        assert isinstance(table, pd.DataFrame)
        assert set(table.index) == {"normal", "student_t"}
        assert "elpd_loo" in table.columns
        assert table["elpd_diff"].iloc[0] == pytest.approx(0.0)

    def test_default_names(self, poisson_fit, negative_binomial_fit):
        table = loo_compare([poisson_fit, negative_binomial_fit])
        assert set(table.index) == {"model_1", "model_2"}

    def test_needs_two_models(self, normal_fit):
        with pytest.raises(ValueError, match="at least two"):
            loo_compare([normal_fit])

    def test_name_count(self, normal_fit, student_t_fit):
        with pytest.raises(ValueError, match="names"):
            loo_compare([normal_fit, student_t_fit], ["only_one"])

    def test_unique_names(self, normal_fit, student_t_fit):
        with pytest.raises(ValueError, match="unique"):
            loo_compare([normal_fit, student_t_fit], ["m", "m"])
