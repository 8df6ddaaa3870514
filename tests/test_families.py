"""Tests for the GLMFamily protocol and the family table."""

import numpy as np
import numpyro.distributions as dist
import pytest
from scipy.special import expit

from bayes_glm_models.families import (
    BernoulliFamily,
    GLMFamily,
    NegativeBinomialFamily,
    NormalFamily,
    PoissonFamily,
    StudentTFamily,
    apply_link,
    auxiliary_parameters,
    inverse_link,
    link_functions,
    resolve_family,
)

ALL_FAMILIES = [
    NormalFamily(),
    StudentTFamily(),
    BernoulliFamily(),
    PoissonFamily(),
    NegativeBinomialFamily(),
]


# ------------------------------------------------------------------ #
# Protocol conformance
# ------------------------------------------------------------------ #


class TestProtocolConformance:
    @pytest.mark.parametrize("family", ALL_FAMILIES, ids=lambda f: f.name)
    def test_isinstance_check(self, family):
        assert isinstance(family, GLMFamily)

    @pytest.mark.parametrize(
        "family, link, standardize_outcome, aux",
        [
            (NormalFamily(), "identity", True, ("sigma",)),
            (StudentTFamily(), "identity", True, ("sigma", "nu")),
            (BernoulliFamily(), "logit", False, ()),
            (PoissonFamily(), "log", False, ()),
            (NegativeBinomialFamily(), "log", False, ("phi_inv",)),
        ],
        ids=lambda v: getattr(v, "name", None),
    )
    def test_table(self, family, link, standardize_outcome, aux):
        assert family.link == link
        assert family.standardize_outcome is standardize_outcome
        assert auxiliary_parameters(family) == aux

    def test_only_sigma_is_scale_type(self):
        assert NormalFamily().scale_parameters == ("sigma",)
        assert StudentTFamily().scale_parameters == ("sigma",)
        assert NegativeBinomialFamily().scale_parameters == ()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            NormalFamily().name = "gaussian"


# ------------------------------------------------------------------ #
# Links
# ------------------------------------------------------------------ #


class TestLinks:
    eta = np.linspace(-3.0, 3.0, 13)

    def test_identity(self):
        np.testing.assert_allclose(inverse_link(NormalFamily(), self.eta), self.eta)

    def test_logit(self):
        np.testing.assert_allclose(inverse_link(BernoulliFamily(), self.eta), expit(self.eta))

    def test_log(self):
        np.testing.assert_allclose(inverse_link(PoissonFamily(), self.eta), np.exp(self.eta))

    @pytest.mark.parametrize("family", ALL_FAMILIES, ids=lambda f: f.name)
    def test_link_inverts(self, family):
        mu = inverse_link(family, self.eta)
        np.testing.assert_allclose(apply_link(family, mu), self.eta, atol=1e-10)

    def test_unknown_link(self):
        with pytest.raises(ValueError, match="Unknown link"):
            link_functions("probit")


# ------------------------------------------------------------------ #
# validate_y
# ------------------------------------------------------------------ #


class TestValidateY:
    def test_normal_accepts_continuous(self, rng):
        NormalFamily().validate_y(rng.standard_normal(20))

    def test_normal_rejects_constant(self):
        with pytest.raises(ValueError, match="non-constant"):
            NormalFamily().validate_y(np.ones(10))

    def test_rejects_non_numeric(self):
        with pytest.raises(ValueError, match="numeric"):
            StudentTFamily().validate_y(np.array(["a", "b", "c"]))

    def test_rejects_nan(self):
        with pytest.raises(ValueError, match="NaN"):
            PoissonFamily().validate_y(np.array([1.0, np.nan, 2.0]))

    def test_bernoulli_rejects_non_binary(self):
        with pytest.raises(ValueError, match="binary"):
            BernoulliFamily().validate_y(np.array([0, 1, 2]))

    def test_bernoulli_accepts_float_binary(self):
        BernoulliFamily().validate_y(np.array([0.0, 1.0, 1.0, 0.0]))

    @pytest.mark.parametrize("family", [PoissonFamily(), NegativeBinomialFamily()])
    def test_counts_reject_negative(self, family):
        with pytest.raises(ValueError, match="non-negative"):
            family.validate_y(np.array([1, -1, 3]))

    @pytest.mark.parametrize("family", [PoissonFamily(), NegativeBinomialFamily()])
    def test_counts_reject_fractional(self, family):
        with pytest.raises(ValueError, match="integer-valued"):
            family.validate_y(np.array([1.0, 2.5, 3.0]))


# ------------------------------------------------------------------ #
# Likelihoods
# ------------------------------------------------------------------ #


class TestLikelihood:
    eta = np.array([-1.0, 0.0, 0.5])

    def test_normal(self):
        d = NormalFamily().likelihood(self.eta, {"sigma": 2.0})
        assert isinstance(d, dist.Normal)
        np.testing.assert_allclose(d.mean, self.eta)

    def test_student_t(self):
        d = StudentTFamily().likelihood(self.eta, {"sigma": 1.0, "nu": 5.0})
        assert isinstance(d, dist.StudentT)
        np.testing.assert_allclose(np.asarray(d.df), 5.0)

    def test_bernoulli_mean(self):
        d = BernoulliFamily().likelihood(self.eta, {})
        np.testing.assert_allclose(d.mean, expit(self.eta), rtol=1e-5)

    def test_poisson_mean(self):
        d = PoissonFamily().likelihood(self.eta, {})
        np.testing.assert_allclose(d.mean, np.exp(self.eta), rtol=1e-5)

    def test_negative_binomial_moments(self):
        d = NegativeBinomialFamily().likelihood(self.eta, {"phi_inv": 0.5})
        mu = np.exp(self.eta)
        np.testing.assert_allclose(d.mean, mu, rtol=1e-5)
        np.testing.assert_allclose(d.variance, mu + 0.5 * mu**2, rtol=1e-5)


# ------------------------------------------------------------------ #
# Posterior-predictive noise
# ------------------------------------------------------------------ #


class TestSamplePredictive:
    n = 200_000

    def test_normal_moments(self, rng):
        y = NormalFamily().sample_predictive(np.full(self.n, 3.0), {"sigma": 2.0}, rng)
        assert abs(y.mean() - 3.0) < 0.05
        assert abs(y.std() - 2.0) < 0.05

    def test_bernoulli_rate(self, rng):
        y = BernoulliFamily().sample_predictive(np.full(self.n, 0.3), {}, rng)
        assert set(np.unique(y)) <= {0, 1}
        assert abs(y.mean() - 0.3) < 0.01

    def test_poisson_moments(self, rng):
        y = PoissonFamily().sample_predictive(np.full(self.n, 4.0), {}, rng)
        assert abs(y.mean() - 4.0) < 0.05
        assert abs(y.var() - 4.0) < 0.15

    def test_negative_binomial_matches_likelihood(self, rng):
        """Predictive noise uses the same NB2 form as the model."""
        mu, phi_inv = 4.0, 0.5
        y = NegativeBinomialFamily().sample_predictive(
            np.full(self.n, mu), {"phi_inv": phi_inv}, rng
        )
        assert abs(y.mean() - mu) < 0.05
        assert abs(y.var() - (mu + phi_inv * mu**2)) < 0.4

    def test_broadcasts_auxiliaries(self, rng):
        mu = np.zeros((5, 8))
        sigma = np.linspace(0.5, 2.0, 8)[None, :]
        y = NormalFamily().sample_predictive(mu, {"sigma": sigma}, rng)
        assert y.shape == (5, 8)


# ------------------------------------------------------------------ #
# resolve_family
# ------------------------------------------------------------------ #


class TestResolveFamily:
    @pytest.mark.parametrize(
        "name, cls",
        [
            ("normal", NormalFamily),
            ("Gaussian", NormalFamily),
            ("student_t", StudentTFamily),
            ("student-t", StudentTFamily),
            ("bernoulli", BernoulliFamily),
            ("poisson", PoissonFamily),
            ("negative_binomial", NegativeBinomialFamily),
            ("negbin", NegativeBinomialFamily),
        ],
    )
    def test_names(self, name, cls):
        assert isinstance(resolve_family(name), cls)

    def test_instance_passthrough(self):
        family = PoissonFamily()
        assert resolve_family(family) is family

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown family"):
            resolve_family("gamma")
