"""Prediction helper: fitted mean curves with confidence bounds.

For each ``x`` the fitted linear predictor and its standard error are

    η̂(x)   = b₀ + b₁ x
    se(η̂)² = [1, x] Σ [1, x]ᵀ

with Σ the estimated coefficient covariance.  Bounds are built on the
link scale and mapped through the inverse link,

    [g⁻¹(η̂ − z·se),  g⁻¹(η̂ + z·se)],

which keeps them inside the family's support (positive for log links,
inside (0, 1) for logit).  The delta-method standard error on the mean
scale, ``|dμ/dη| · se(η̂)``, is reported alongside.
"""

from __future__ import annotations

import numpy as np

from ._compat import _as_vector
from ._results import FittedModel, PredictionCurve, _z_value
from ._typing import ArrayLike


def _linear_predictor(model: FittedModel, x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(η̂, se(η̂))`` at *x*."""
    design = np.column_stack([np.ones_like(x), x])
    eta = design @ model.params
    # Row-wise quadratic form diag(D Σ Dᵀ) without the n × n product.
    var_eta = np.einsum("ij,jk,ik->i", design, model.cov_params, design)
    return eta, np.sqrt(np.maximum(var_eta, 0.0))


def predict_mean(model: FittedModel, x: ArrayLike) -> np.ndarray:
    """Fitted mean ``g⁻¹(b₀ + b₁ x)`` at each *x*."""
    xv = _as_vector(x, name="x")
    return model.link.inverse(model.params[0] + model.params[1] * xv)


def predict_curve(
    model: FittedModel,
    predictor: ArrayLike | None = None,
    *,
    n_points: int | None = None,
    confidence_level: float = 0.95,
) -> PredictionCurve:
    """Predicted mean curve with pointwise confidence bounds.

    Args:
        model: A fitted model.
        predictor: Points to evaluate.  When *n_points* is also given,
            an evenly spaced grid of *n_points* spanning
            ``[min(predictor), max(predictor)]`` is used instead.
            When ``None``, the grid spans the model's
            ``predictor_range``.
        n_points: Grid size for smooth curves.  Defaults to 100 when
            *predictor* is ``None``.
        confidence_level: Coverage of the pointwise bounds.

    Returns:
        A :class:`PredictionCurve` sorted by ``x``.

    Raises:
        ValueError: If *confidence_level* is not in (0, 1), *n_points*
            is below 2, or *predictor* is empty or non-finite.
    """
    z = _z_value(confidence_level)

    if predictor is None:
        lo, hi = model.predictor_range
        x = np.linspace(lo, hi, 100 if n_points is None else _check_points(n_points))
    else:
        x = _as_vector(predictor, name="predictor")
        if x.size == 0 or not np.all(np.isfinite(x)):
            msg = "predictor must be non-empty and finite."
            raise ValueError(msg)
        if n_points is not None:
            x = np.linspace(x.min(), x.max(), _check_points(n_points))
        else:
            x = np.sort(x)

    eta, se_eta = _linear_predictor(model, x)
    inverse = model.link.inverse
    return PredictionCurve(
        x=x,
        eta=eta,
        mean=inverse(eta),
        lower=inverse(eta - z * se_eta),
        upper=inverse(eta + z * se_eta),
        std_error=np.abs(model.link.mu_eta(eta)) * se_eta,
        confidence_level=confidence_level,
    )


def _check_points(n_points: int) -> int:
    if int(n_points) != n_points or n_points < 2:
        msg = f"n_points must be an integer >= 2, got {n_points!r}."
        raise ValueError(msg)
    return int(n_points)
