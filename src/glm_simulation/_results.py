"""Typed result objects for the simulate → fit → compare pipeline.

Frozen dataclasses that provide:

* **Attribute access** — ``model.slope``, ``data.response``, etc.
* **Dict-like access** — ``model["slope"]``, ``model.get("key")``,
  ``"key" in model`` for consumers that prefer bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.
* **Tabular export** — ``.to_frame()`` / ``.summary_frame()`` return
  ``pandas.DataFrame`` objects ready for a plotting library.

All types are frozen: simulated data, fitted models and prediction
curves are snapshots and are never mutated after creation.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

if TYPE_CHECKING:
    from .families import GLMFamily
    from .links import Link

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types.

    Handles nested dicts, lists, np.ndarray, np.integer, and
    np.floating so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


def _z_value(confidence_level: float) -> float:
    """Two-sided normal quantile for *confidence_level*."""
    if not 0.0 < confidence_level < 1.0:
        msg = f"confidence_level must be in (0, 1), got {confidence_level!r}."
        raise ValueError(msg)
    return float(sp_stats.norm.ppf(0.5 + confidence_level / 2.0))


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``     — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``   — membership test

    ``family`` and ``link`` fields serialise to their names.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "family": lambda f: f.name,
        "link": lambda lk: lk.name,
    }

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset()

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Applies per-field serializers from ``_SERIALIZERS``, then runs
        :func:`_numpy_to_python` on every value so the returned dict
        is fully JSON-serialisable.
        """
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            val = getattr(self, f.name)
            if f.name in self._SERIALIZERS and val is not None:
                val = self._SERIALIZERS[f.name](val)
            result[f.name] = _numpy_to_python(val)
        return result


# ------------------------------------------------------------------ #
# SimulatedData
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class SimulatedData(_DictAccessMixin):
    """One synthetic dataset together with the truth that produced it.

    Returned by :func:`~glm_simulation.simulate.simulate`.
    """

    predictor: np.ndarray
    """Predictor vector ``x``, shape ``(n,)``."""

    response: np.ndarray
    """Sampled response vector ``y``, shape ``(n,)``."""

    intercept: float
    """True intercept on the link scale."""

    slope: float
    """True slope on the link scale."""

    family: GLMFamily
    """Generating family."""

    link: Link
    """Link whose inverse produced the true mean."""

    dispersion: float | None
    """True dispersion (Gamma shape, NB θ) or ``None``."""

    true_eta: np.ndarray
    """True linear predictor ``intercept + slope · x``."""

    true_mean: np.ndarray
    """True mean ``g⁻¹(η)``."""

    @property
    def n(self) -> int:
        return int(self.predictor.shape[0])

    def to_frame(self) -> pd.DataFrame:
        """Return columns ``x``, ``y``, ``eta``, ``mu``."""
        return pd.DataFrame(
            {
                "x": self.predictor,
                "y": self.response,
                "eta": self.true_eta,
                "mu": self.true_mean,
            }
        )


# ------------------------------------------------------------------ #
# FittedModel
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class FittedModel(_DictAccessMixin):
    """Maximum-likelihood fit of ``g(μ) = intercept + slope · x``.

    Returned by :func:`~glm_simulation.fit.fit`.  ``params``,
    ``std_errors`` and the rows/columns of ``cov_params`` are ordered
    ``(intercept, slope)``.
    """

    family: GLMFamily
    link: Link

    params: np.ndarray
    """Coefficient estimates ``[intercept, slope]``."""

    std_errors: np.ndarray
    """Standard errors of ``params``."""

    cov_params: np.ndarray
    """Estimated covariance of ``params``, shape ``(2, 2)``."""

    dispersion: float | None
    """Estimated Gamma shape or NB θ; ``None`` for other families."""

    dispersion_std_error: float | None
    """Standard error of ``dispersion`` when the backend reports it."""

    scale: float
    """GLM scale φ used for the covariance (1 unless estimated)."""

    n_observations: int
    df_residual: int
    deviance: float
    null_deviance: float
    log_likelihood: float
    aic: float
    bic: float
    n_iterations: int

    backend: str
    """Solver that produced the fit (``"statsmodels"`` or ``"numpy"``)."""

    predictor_range: tuple[float, float]
    """``(min, max)`` of the predictor the model was fit on."""

    @property
    def intercept(self) -> float:
        return float(self.params[0])

    @property
    def slope(self) -> float:
        return float(self.params[1])

    @property
    def intercept_std_error(self) -> float:
        return float(self.std_errors[0])

    @property
    def slope_std_error(self) -> float:
        return float(self.std_errors[1])

    def conf_int(self, confidence_level: float = 0.95) -> np.ndarray:
        """Wald intervals, shape ``(2, 2)``: rows are coefficients,
        columns ``(lower, upper)``."""
        z = _z_value(confidence_level)
        return np.column_stack(
            [self.params - z * self.std_errors, self.params + z * self.std_errors]
        )

    def summary_frame(self, confidence_level: float = 0.95) -> pd.DataFrame:
        """Coefficient table with Wald z statistics and intervals."""
        z_stat = self.params / self.std_errors
        p_values = 2.0 * sp_stats.norm.sf(np.abs(z_stat))
        ci = self.conf_int(confidence_level)
        return pd.DataFrame(
            {
                "estimate": self.params,
                "std_error": self.std_errors,
                "z": z_stat,
                "p_value": p_values,
                "ci_lower": ci[:, 0],
                "ci_upper": ci[:, 1],
            },
            index=pd.Index(["intercept", "slope"], name="term"),
        )


# ------------------------------------------------------------------ #
# PredictionCurve
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class PredictionCurve(_DictAccessMixin):
    """Model-implied mean with pointwise confidence bounds.

    Iterating yields ``(x, mean, lower, upper)`` tuples in ``x`` order.
    """

    x: np.ndarray
    eta: np.ndarray
    """Fitted linear predictor at each ``x``."""

    mean: np.ndarray
    lower: np.ndarray
    upper: np.ndarray

    std_error: np.ndarray
    """Delta-method standard error of the mean, ``|dμ/dη| · se(η)``."""

    confidence_level: float

    def __len__(self) -> int:
        return int(self.x.shape[0])

    def __iter__(self) -> Iterator[tuple[float, float, float, float]]:
        for row in zip(self.x, self.mean, self.lower, self.upper, strict=True):
            yield tuple(float(v) for v in row)  # type: ignore[misc]

    def to_frame(self) -> pd.DataFrame:
        """Return columns ``x``, ``eta``, ``mean``, ``lower``,
        ``upper``, ``std_error``."""
        return pd.DataFrame(
            {
                "x": self.x,
                "eta": self.eta,
                "mean": self.mean,
                "lower": self.lower,
                "upper": self.upper,
                "std_error": self.std_error,
            }
        )


# ------------------------------------------------------------------ #
# ComparisonResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ComparisonResult(_DictAccessMixin):
    """Fitted model set against the parameters that generated the data.

    Returned by :func:`~glm_simulation.compare.compare`.
    """

    family: str
    """Generating family name."""

    fitted_family: str
    """Family the model was fit with."""

    true_intercept: float
    true_slope: float
    estimated_intercept: float
    estimated_slope: float

    intercept_error: float
    """``estimated_intercept − true_intercept``."""

    slope_error: float
    """``estimated_slope − true_slope``."""

    intercept_covered: bool
    """True intercept lies inside its Wald interval."""

    slope_covered: bool
    """True slope lies inside its Wald interval."""

    confidence_level: float

    true_dispersion: float | None
    estimated_dispersion: float | None

    curve_rmse: float
    """Root mean squared gap between predicted and true mean."""

    max_curve_error: float
    """Largest absolute gap between predicted and true mean."""

    band_coverage: float
    """Fraction of true-mean points inside the confidence band."""

    @property
    def family_matches(self) -> bool:
        return self.family == self.fitted_family


# ------------------------------------------------------------------ #
# RecoveryStudyResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class RecoveryStudyResult(_DictAccessMixin):
    """Repeated simulate → fit runs under fixed true parameters.

    Returned by :func:`~glm_simulation.validation.recovery_study`.
    Summary statistics are computed from the successful replications:

    * Bias: ``E[θ̂] − θ``
    * RMSE: ``sqrt(E[(θ̂ − θ)²])``
    * Coverage: share of Wald intervals containing ``θ``
    """

    family: str
    n: int
    n_replications: int

    n_failed: int
    """Replications dropped after a ``NonConvergenceError``."""

    true_values: dict[str, float]
    """``{"intercept": ..., "slope": ...}``."""

    estimates: np.ndarray
    """Successful estimates, shape ``(k, 2)``."""

    std_errors: np.ndarray
    """Matching standard errors, shape ``(k, 2)``."""

    dispersions: np.ndarray | None
    """Estimated dispersion per successful run, or ``None``."""

    confidence_level: float = 0.95

    _PARAMS: ClassVar[tuple[str, str]] = ("intercept", "slope")

    @property
    def n_successful(self) -> int:
        return int(self.estimates.shape[0])

    @property
    def _truth(self) -> np.ndarray:
        return np.array([self.true_values[p] for p in self._PARAMS])

    @property
    def mean_estimate(self) -> np.ndarray:
        return self.estimates.mean(axis=0)

    @property
    def bias(self) -> np.ndarray:
        return self.mean_estimate - self._truth

    @property
    def rmse(self) -> np.ndarray:
        return np.sqrt(np.mean((self.estimates - self._truth) ** 2, axis=0))

    @property
    def empirical_se(self) -> np.ndarray:
        ddof = 1 if self.n_successful > 1 else 0
        return self.estimates.std(axis=0, ddof=ddof)

    @property
    def mean_se(self) -> np.ndarray:
        return self.std_errors.mean(axis=0)

    @property
    def coverage(self) -> np.ndarray:
        z = _z_value(self.confidence_level)
        lower = self.estimates - z * self.std_errors
        upper = self.estimates + z * self.std_errors
        covered = (lower <= self._truth) & (self._truth <= upper)
        return covered.mean(axis=0)

    def summary_frame(self) -> pd.DataFrame:
        """One row per coefficient with bias, RMSE, SEs and coverage."""
        return pd.DataFrame(
            {
                "true_value": self._truth,
                "mean_estimate": self.mean_estimate,
                "bias": self.bias,
                "rmse": self.rmse,
                "empirical_se": self.empirical_se,
                "mean_se": self.mean_se,
                "coverage": self.coverage,
            },
            index=pd.Index(list(self._PARAMS), name="term"),
        )


# ------------------------------------------------------------------ #
# ScenarioResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ScenarioResult(_DictAccessMixin):
    """Everything one walkthrough step produces.

    Returned by :func:`~glm_simulation.scenarios.run_scenario`.
    """

    name: str
    data: SimulatedData
    model: FittedModel
    curve: PredictionCurve
    comparison: ComparisonResult

    # Arrays stay out of the dict; the comparison is summarised.
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset(
        {"data", "model", "curve"}
    )
    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "comparison": lambda c: c.to_dict(),
    }

    extras: dict[str, Any] = field(default_factory=dict)
    """Family-specific extras (e.g. the divide-by-4 slope for
    Bernoulli scenarios)."""
