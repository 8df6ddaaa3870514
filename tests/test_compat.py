"""Tests for data-frame input compatibility."""

import numpy as np
import pandas as pd
import pytest

from bayes_glm_models._compat import _ensure_pandas_df


class TestEnsurePandasDf:
    """Tests for the _ensure_pandas_df converter."""

    def test_pandas_passthrough(self):
        df = pd.DataFrame({"a": [1, 2, 3]})
        result = _ensure_pandas_df(df)
        assert result is df  # exact same object, no copy

    def test_mapping_converted(self):
        result = _ensure_pandas_df({"y": np.arange(3.0), "x": [4, 5, 6]})
        assert isinstance(result, pd.DataFrame)
        assert list(result.columns) == ["y", "x"]

    def test_rejects_invalid_type(self):
        with pytest.raises(TypeError, match="must be a pandas DataFrame"):
            _ensure_pandas_df([1, 2, 3])

    def test_error_includes_name(self):
        with pytest.raises(TypeError, match="'frame'"):
            _ensure_pandas_df(np.zeros((2, 2)), name="frame")


class TestPolars:
    """Polars frames are converted at the boundary."""

    @pytest.fixture(autouse=True)
    def _polars(self):
        self.pl = pytest.importorskip("polars")

    def test_polars_converted(self):
        pl_df = self.pl.DataFrame({"a": [1, 2, 3]})
        result = _ensure_pandas_df(pl_df)
        assert isinstance(result, pd.DataFrame)
        assert list(result.columns) == ["a"]
        assert result["a"].tolist() == [1, 2, 3]

    def test_polars_lazyframe_collected_and_converted(self):
        lf = self.pl.DataFrame({"a": [1, 2, 3]}).lazy()
        result = _ensure_pandas_df(lf)
        assert isinstance(result, pd.DataFrame)
        assert result["a"].tolist() == [1, 2, 3]

    def test_formula_model_from_polars(self, mtcars):
        from bayes_glm_models import glm

        model = glm("mpg ~ hp + wt", self.pl.from_pandas(mtcars))
        assert model.predictor_names == ("hp", "wt")
        assert model.n_observations == 32
