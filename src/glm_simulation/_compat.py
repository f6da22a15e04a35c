"""Input compatibility layer for vector arguments.

The public API works on 1-D float64 NumPy arrays internally.  This
module converts what users actually pass (lists, NumPy arrays, pandas
Series, single-column DataFrames) at the boundary so that the
synthesizer and fitter never branch on input type.

Polars is **not** a required dependency.  When it is installed,
``polars.Series`` and single-column ``polars.DataFrame`` inputs are
converted as well; otherwise they are rejected like any other unknown
type.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

# Polars is optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _as_vector(obj: object, *, name: str = "input") -> np.ndarray:
    """Convert *obj* to a 1-D ``float64`` array.

    Accepted types:
        * ``numpy.ndarray`` of shape ``(n,)`` or ``(n, 1)``.
        * ``pandas.Series`` and single-column ``pandas.DataFrame``.
        * ``polars.Series`` and single-column ``polars.DataFrame``
          (when Polars is installed).
        * Python sequences of numbers.

    Finiteness and emptiness are **not** checked here; callers raise
    their own domain errors for those.

    Args:
        obj: The object to convert.
        name: Label used in error messages (e.g. ``"predictor"``).

    Returns:
        A new or borrowed ``float64`` array of shape ``(n,)``.

    Raises:
        TypeError: If *obj* is a string, a mapping, a multi-column
            frame, or cannot be interpreted as numeric.
    """
    if isinstance(obj, (str, bytes, dict)):
        msg = f"'{name}' must be a numeric vector, got {type(obj).__name__}."
        raise TypeError(msg)

    if _HAS_POLARS:
        if isinstance(obj, pl.DataFrame):
            if obj.width != 1:
                msg = f"'{name}' must have exactly one column, got {obj.width}."
                raise TypeError(msg)
            obj = obj.to_series(0).to_numpy()
        elif isinstance(obj, pl.Series):
            obj = obj.to_numpy()

    if isinstance(obj, pd.DataFrame):
        if obj.shape[1] != 1:
            msg = (
                f"'{name}' must have exactly one column, "
                f"got {obj.shape[1]}."
            )
            raise TypeError(msg)
        obj = obj.iloc[:, 0]

    if isinstance(obj, pd.Series):
        obj = obj.to_numpy()

    try:
        arr = np.asarray(obj, dtype=np.float64)
    except (TypeError, ValueError):
        msg = f"'{name}' must be numeric, got {type(obj).__name__}."
        raise TypeError(msg) from None

    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr[:, 0]
    if arr.ndim != 1:
        msg = f"'{name}' must be 1-dimensional, got shape {arr.shape}."
        raise TypeError(msg)
    return arr
