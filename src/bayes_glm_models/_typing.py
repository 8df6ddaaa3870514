"""Shared type aliases for the bayes_glm_models package."""

from collections.abc import Callable

import numpy as np
import pandas as pd

# Array-like inputs accepted by the public API.
ArrayLike = np.ndarray | pd.DataFrame | pd.Series | list

# Reducing functions applied along the draw axis, e.g. ``np.median``.
ReduceFn = Callable[..., np.ndarray]
