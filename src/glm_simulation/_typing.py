"""Shared type aliases for the glm_simulation package."""

from collections.abc import Sequence

import numpy as np
import pandas as pd

# Vector-like inputs accepted by the public API.
ArrayLike = np.ndarray | pd.Series | pd.DataFrame | Sequence[float]

# Anything ``np.random.default_rng`` accepts.
SeedLike = np.random.Generator | int | None
