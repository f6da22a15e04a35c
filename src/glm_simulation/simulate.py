"""Data synthesizer: predictor draws and family-specific responses.

Every sampling function takes an explicit ``rng``.  Passing the same
``numpy.random.Generator`` to successive calls shares one seeded
stream across them, so a fixed seed reproduces a whole walkthrough
as long as the calls happen in the same order.  An integer seed
creates a fresh generator; ``None`` draws OS entropy.

Pipeline for one run::

    x   ~ Uniform[low, high)                    draw_predictor
    η   = intercept + slope · x                 true_mean
    μ   = g⁻¹(η)
    y_i ~ family(μ_i, dispersion)               synthesize
"""

from __future__ import annotations

import logging
import math

import numpy as np

from ._compat import _as_vector
from ._results import SimulatedData
from ._typing import ArrayLike, SeedLike
from .exceptions import InvalidParameterError
from .families import GLMFamily, resolve_family

logger = logging.getLogger(__name__)


def _as_generator(rng: SeedLike) -> np.random.Generator:
    """Pass generators through; seed a new one otherwise."""
    return np.random.default_rng(rng)


def _check_finite_scalar(value: float, name: str) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        msg = f"'{name}' must be a real number, got {value!r}."
        raise InvalidParameterError(msg) from None
    if not math.isfinite(out):
        msg = f"'{name}' must be finite, got {value!r}."
        raise InvalidParameterError(msg)
    return out


def _check_predictor(predictor: ArrayLike) -> np.ndarray:
    x = _as_vector(predictor, name="predictor")
    if x.size == 0:
        msg = "predictor must contain at least one value."
        raise InvalidParameterError(msg)
    if not np.all(np.isfinite(x)):
        msg = "predictor contains NaN or infinite values."
        raise InvalidParameterError(msg)
    return x


def draw_predictor(
    n: int,
    low: float = -1.0,
    high: float = 1.0,
    rng: SeedLike = None,
) -> np.ndarray:
    """Draw *n* predictor values uniformly from ``[low, high)``.

    Raises:
        InvalidParameterError: If ``n < 1`` or ``low >= high``.
    """
    if isinstance(n, bool) or int(n) != n or n < 1:
        msg = f"n must be a positive integer, got {n!r}."
        raise InvalidParameterError(msg)
    low = _check_finite_scalar(low, "low")
    high = _check_finite_scalar(high, "high")
    if low >= high:
        msg = f"low must be below high, got low={low}, high={high}."
        raise InvalidParameterError(msg)
    return _as_generator(rng).uniform(low, high, size=int(n))


def true_mean(
    predictor: ArrayLike,
    intercept: float,
    slope: float,
    family: str | GLMFamily,
) -> np.ndarray:
    """Noise-free mean ``g⁻¹(intercept + slope · x)`` under *family*'s link."""
    fam = resolve_family(family)
    x = _check_predictor(predictor)
    intercept = _check_finite_scalar(intercept, "intercept")
    slope = _check_finite_scalar(slope, "slope")
    return fam.default_link.inverse(intercept + slope * x)


def synthesize(
    predictor: ArrayLike,
    intercept: float,
    slope: float,
    family: str | GLMFamily,
    dispersion: float | None = None,
    rng: SeedLike = None,
) -> np.ndarray:
    """Sample one response per predictor value from *family*.

    Args:
        predictor: Non-empty, finite predictor vector.
        intercept: True intercept on the link scale.
        slope: True slope on the link scale.
        family: Family name or instance.
        dispersion: Gamma shape or negative-binomial θ.  Required and
            strictly positive for those two families; ignored for
            Poisson and Bernoulli.
        rng: Generator (shared stream) or seed.

    Returns:
        Float array with the same length as *predictor*.

    Raises:
        InvalidParameterError: If the dispersion is missing or not
            positive where required, the predictor or parameters are
            empty or non-finite, or the true mean is too large for the
            family's sampler.
    """
    fam = resolve_family(family)
    # Validate before any draw so a failed call leaves the stream untouched.
    disp = fam.validate_dispersion(dispersion)
    with np.errstate(over="ignore"):
        mu = true_mean(predictor, intercept, slope, fam)
    if not np.all(np.isfinite(mu)):
        msg = (
            f"The {fam.name} mean overflows for intercept={intercept!r}, "
            f"slope={slope!r}; the true mean is too large to sample."
        )
        raise InvalidParameterError(msg)
    y = fam.sample(mu, _as_generator(rng), disp)
    logger.debug(
        "Synthesized %d %s responses (dispersion=%s, mean y=%.4f)",
        y.shape[0],
        fam.name,
        disp,
        float(np.mean(y)),
    )
    return y


def simulate(
    n: int,
    intercept: float,
    slope: float,
    family: str | GLMFamily,
    dispersion: float | None = None,
    *,
    low: float = -1.0,
    high: float = 1.0,
    rng: SeedLike = None,
) -> SimulatedData:
    """Draw a predictor vector and synthesize a response on it.

    Both draws come from the same generator, predictor first.

    Returns:
        A :class:`SimulatedData` bundling the data with the truth.
    """
    fam = resolve_family(family)
    fam.validate_dispersion(dispersion)
    gen = _as_generator(rng)
    x = draw_predictor(n, low, high, rng=gen)
    y = synthesize(x, intercept, slope, fam, dispersion, rng=gen)
    eta = float(intercept) + float(slope) * x
    return SimulatedData(
        predictor=x,
        response=y,
        intercept=float(intercept),
        slope=float(slope),
        family=fam,
        link=fam.default_link,
        dispersion=fam.validate_dispersion(dispersion),
        true_eta=eta,
        true_mean=fam.default_link.inverse(eta),
    )
