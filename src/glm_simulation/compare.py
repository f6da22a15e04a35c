"""Comparison of a fitted model against the truth that generated it."""

from __future__ import annotations

import logging
import warnings

import numpy as np

from ._results import ComparisonResult, FittedModel, PredictionCurve, SimulatedData
from .predict import predict_curve
from .simulate import true_mean

logger = logging.getLogger(__name__)


def approximate_probability_slope(logit_slope: float) -> float:
    """Divide-by-4 rule for logistic regression.

    The logistic curve is steepest at ``η = 0`` where ``dp/dη = 1/4``,
    so ``logit_slope / 4`` bounds the change in probability per unit of
    the predictor.  It is an approximation valid near the curve's
    midpoint, not an exact marginal effect.
    """
    return logit_slope / 4


def compare(
    model: FittedModel,
    data: SimulatedData,
    *,
    curve: PredictionCurve | None = None,
    confidence_level: float = 0.95,
) -> ComparisonResult:
    """Set a fitted model against the simulation's true parameters.

    Args:
        model: Model fit to ``data.predictor`` and ``data.response``.
        data: The simulated dataset and its truth.
        curve: Prediction curve to score against the true mean.
            Defaults to ``predict_curve(model, data.predictor)``.
        confidence_level: Level for coefficient intervals and, when
            *curve* is omitted, for the band.

    Returns:
        A :class:`ComparisonResult`.

    Warns:
        UserWarning: When the model's family differs from the family
            that generated the data.
    """
    if model.family.name != data.family.name:
        warnings.warn(
            f"Model family {model.family.name!r} differs from the "
            f"generating family {data.family.name!r}; the comparison "
            "measures misspecification as well as sampling error.",
            UserWarning,
            stacklevel=2,
        )

    if curve is None:
        curve = predict_curve(model, data.predictor, confidence_level=confidence_level)

    mu_true = true_mean(curve.x, data.intercept, data.slope, data.family)
    gap = curve.mean - mu_true
    inside = (curve.lower <= mu_true) & (mu_true <= curve.upper)

    ci = model.conf_int(confidence_level)
    truth = np.array([data.intercept, data.slope])
    covered = (ci[:, 0] <= truth) & (truth <= ci[:, 1])

    result = ComparisonResult(
        family=data.family.name,
        fitted_family=model.family.name,
        true_intercept=data.intercept,
        true_slope=data.slope,
        estimated_intercept=model.intercept,
        estimated_slope=model.slope,
        intercept_error=model.intercept - data.intercept,
        slope_error=model.slope - data.slope,
        intercept_covered=bool(covered[0]),
        slope_covered=bool(covered[1]),
        confidence_level=confidence_level,
        true_dispersion=data.dispersion,
        estimated_dispersion=model.dispersion,
        curve_rmse=float(np.sqrt(np.mean(gap**2))),
        max_curve_error=float(np.max(np.abs(gap))),
        band_coverage=float(np.mean(inside)),
    )
    logger.debug(
        "Compared %s fit: intercept error %.4g, slope error %.4g, curve RMSE %.4g",
        result.family,
        result.intercept_error,
        result.slope_error,
        result.curve_rmse,
    )
    return result
