"""Tests for the PosteriorDraws container."""

import numpy as np
import pytest

from bayes_glm_models._labeled import LabeledArray
from bayes_glm_models._results import PosteriorDraws

NAMES = ("alpha", "beta[0]", "sigma", "lp")


@pytest.fixture()
def draws():
    values = np.arange(6 * 4 * 2, dtype=float).reshape(6, 4, 2)
    array = LabeledArray(values, ("draw", "parameter", "chain"), {"parameter": NAMES})
    return PosteriorDraws(
        array, {"parameters": ("alpha", "beta[0]", "sigma"), "internals": ("lp",)}
    )


class TestPosteriorDraws:
    def test_shape_properties(self, draws):
        assert draws.n_draws == 6
        assert draws.n_chains == 2
        assert draws.parameters == ("alpha", "beta[0]", "sigma")
        assert draws.internals == ("lp",)

    def test_contains(self, draws):
        assert "lp" in draws
        assert "nu" not in draws

    def test_frozen(self, draws):
        with pytest.raises(AttributeError):
            draws.array = None

    def test_rejects_wrong_dims(self):
        array = LabeledArray(np.zeros((2, 1)), ("draw", "parameter"), {"parameter": ("alpha",)})
        with pytest.raises(ValueError, match="'chain'"):
            PosteriorDraws(array, {"parameters": ("alpha",)})

    def test_name_map_must_partition(self, draws):
        with pytest.raises(ValueError, match="partition"):
            PosteriorDraws(draws.array, {"parameters": ("alpha", "sigma"), "internals": ("lp",)})

    def test_missing_group_defaults_empty(self):
        array = LabeledArray(
            np.zeros((2, 1, 1)), ("draw", "parameter", "chain"), {"parameter": ("alpha",)}
        )
        assert PosteriorDraws(array, {"parameters": ("alpha",)}).internals == ()
