"""Tests for the prediction engine."""

import numpy as np
import pytest
from scipy.special import expit

from bayes_glm_models import (
    expected_value,
    fixed_effects,
    linear_predictor,
    posterior_predictive,
    predict,
    seed_predictive,
)
from bayes_glm_models.families import inverse_link

# ------------------------------------------------------------------ #
# Shapes
# ------------------------------------------------------------------ #


class TestShapes:
    def test_training_design(self, normal_fit, fit_kwargs):
        eta = linear_predictor(normal_fit)
        n_kept = (fit_kwargs["draws"] - 200) * fit_kwargs["chains"]
        assert eta.dims == ("row", "draw")
        assert eta.shape == (32, n_kept)

    def test_uncollapsed(self, normal_fit, fit_kwargs):
        eta = linear_predictor(normal_fit, collapse=False, n_draws=10)
        assert eta.dims == ("row", "draw", "chain")
        assert eta.shape == (32, 10, fit_kwargs["chains"])

    def test_reduce_fn(self, normal_fit):
        mean = expected_value(normal_fit, reduce_fn=np.mean)
        assert mean.dims == ("row",)
        assert mean.shape == (32,)

    def test_single_row_squeezed(self, normal_fit):
        out = expected_value(normal_fit, np.array([[110.0, 2.6]]), np.median)
        assert out.ndim == 0

    def test_wrong_width_raises(self, normal_fit):
        with pytest.raises(ValueError, match="2 columns"):
            linear_predictor(normal_fit, np.ones((3, 3)))

    def test_transform_training_design_twice_raises(self, normal_fit):
        with pytest.raises(ValueError, match="twice"):
            linear_predictor(normal_fit, transform_input=True)


# ------------------------------------------------------------------ #
# Consistency with the parameter draws
# ------------------------------------------------------------------ #


class TestConsistency:
    def test_linear_predictor_matches_raw_effects(self, normal_fit, mtcars):
        X_new = mtcars[["hp", "wt"]].to_numpy()[:5]
        eta = linear_predictor(normal_fit, X_new, n_draws=50)
        effects = fixed_effects(normal_fit, n_draws=50).values
        manual = effects[:, 0][None, :] + X_new @ effects[:, 1:].T
        np.testing.assert_allclose(eta.values, manual, rtol=1e-6)

    def test_training_design_equals_new_data(self, poisson_fit, mtcars):
        a = linear_predictor(poisson_fit, n_draws=20)
        b = linear_predictor(poisson_fit, mtcars[["hp"]], n_draws=20)
        np.testing.assert_allclose(a.values, b.values, rtol=1e-9, atol=1e-9)

    def test_dataframe_columns_reordered(self, normal_fit, mtcars):
        a = linear_predictor(normal_fit, mtcars[["hp", "wt"]], n_draws=20)
        b = linear_predictor(normal_fit, mtcars[["wt", "hp", "mpg"]], n_draws=20)
        np.testing.assert_allclose(a.values, b.values)

    def test_pre_standardized_input(self, normal_fit):
        a = linear_predictor(normal_fit, n_draws=20)
        b = linear_predictor(normal_fit, normal_fit.X, transform_input=False, n_draws=20)
        np.testing.assert_allclose(a.values, b.values)

    def test_standardized_output(self, normal_fit):
        raw = linear_predictor(normal_fit, n_draws=20)
        std = linear_predictor(normal_fit, n_draws=20, standardized_output=True)
        np.testing.assert_allclose(
            raw.values, std.values * normal_fit.sigma_y + normal_fit.mu_y, rtol=1e-9
        )


# ------------------------------------------------------------------ #
# Link functions
# ------------------------------------------------------------------ #


class TestLinks:
    def test_identity(self, normal_fit):
        np.testing.assert_allclose(
            expected_value(normal_fit, n_draws=20).values,
            linear_predictor(normal_fit, n_draws=20).values,
        )

    def test_logit(self, bernoulli_fit):
        mu = expected_value(bernoulli_fit, n_draws=20).values
        eta = linear_predictor(bernoulli_fit, n_draws=20).values
        np.testing.assert_allclose(mu, expit(eta))
        assert np.all((mu > 0) & (mu < 1))

    @pytest.mark.parametrize("fit", ["poisson_fit", "negative_binomial_fit"])
    def test_log(self, fit, request):
        model = request.getfixturevalue(fit)
        mu = expected_value(model, n_draws=20).values
        eta = linear_predictor(model, n_draws=20).values
        np.testing.assert_allclose(mu, np.exp(eta))

    def test_inverse_link_of_linear_predictor(self, any_fit):
        eta = linear_predictor(any_fit, n_draws=20, standardized_output=True)
        mu = expected_value(any_fit, n_draws=20, standardized_output=True)
        np.testing.assert_allclose(mu.values, inverse_link(any_fit.family, eta.values))


# ------------------------------------------------------------------ #
# Posterior predictive
# ------------------------------------------------------------------ #


class TestPosteriorPredictive:
    def test_more_spread_than_expected_value(self, any_fit):
        """Predictive draws add observation noise on top of mu."""
        mu = expected_value(any_fit)
        y_rep = posterior_predictive(any_fit, rng=0)
        assert y_rep.shape == mu.shape
        assert np.mean(y_rep.values.var(axis=1)) > np.mean(mu.values.var(axis=1))

    def test_bernoulli_outcomes_binary(self, bernoulli_fit):
        y_rep = posterior_predictive(bernoulli_fit, rng=1)
        assert set(np.unique(y_rep.values)) <= {0.0, 1.0}

    @pytest.mark.parametrize("fit", ["poisson_fit", "negative_binomial_fit"])
    def test_counts_non_negative_integers(self, fit, request):
        y_rep = posterior_predictive(request.getfixturevalue(fit), rng=2)
        assert np.all(y_rep.values >= 0)
        np.testing.assert_array_equal(y_rep.values, np.round(y_rep.values))

    def test_normal_centred_on_data(self, normal_fit, mtcars):
        y_rep = posterior_predictive(normal_fit, reduce_fn=np.mean, rng=3)
        assert abs(y_rep.values.mean() - mtcars["mpg"].mean()) < 1.0

    def test_rng_reproducible(self, normal_fit):
        a = posterior_predictive(normal_fit, n_draws=10, rng=123)
        b = posterior_predictive(normal_fit, n_draws=10, rng=123)
        np.testing.assert_array_equal(a.values, b.values)

    def test_seed_predictive(self, normal_fit):
        seed_predictive(9)
        a = posterior_predictive(normal_fit, n_draws=10)
        seed_predictive(9)
        b = posterior_predictive(normal_fit, n_draws=10)
        np.testing.assert_array_equal(a.values, b.values)

    def test_fresh_noise_each_call(self, normal_fit):
        a = posterior_predictive(normal_fit, n_draws=10)
        b = posterior_predictive(normal_fit, n_draws=10)
        assert not np.array_equal(a.values, b.values)


# ------------------------------------------------------------------ #
# predict()
# ------------------------------------------------------------------ #


class TestPredict:
    def test_dispatch(self, poisson_fit):
        np.testing.assert_allclose(
            predict(poisson_fit, type="linpred", n_draws=5).values,
            linear_predictor(poisson_fit, n_draws=5).values,
        )
        np.testing.assert_allclose(
            predict(poisson_fit, type="epred", n_draws=5).values,
            expected_value(poisson_fit, n_draws=5).values,
        )
        np.testing.assert_array_equal(
            predict(poisson_fit, n_draws=5, rng=4).values,
            posterior_predictive(poisson_fit, n_draws=5, rng=4).values,
        )

    def test_unknown_type(self, normal_fit):
        with pytest.raises(ValueError, match="Unknown prediction type"):
            predict(normal_fit, type="response")
