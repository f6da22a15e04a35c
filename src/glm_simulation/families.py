"""GLM family protocol, concrete families, and resolution logic.

The ``GLMFamily`` protocol collects everything that differs between
error distributions so that the synthesizer, both fitting backends,
and the prediction helpers dispatch through generic method calls
instead of branching on the family name:

* **Support** — which response values the family can produce and fit
  (:meth:`GLMFamily.validate_response`).
* **Sampling** — the noise model used by the synthesizer, given the
  true mean (:meth:`GLMFamily.sample`).
* **Likelihood pieces** — variance function, unit deviance and
  log-likelihood, used by the NumPy IRLS backend and for the
  fit statistics reported on every :class:`FittedModel`.
* **statsmodels bridge** — :meth:`GLMFamily.sm_family` builds the
  matching ``sm.families`` object for the statsmodels backend.

Each concrete family is a frozen ``@dataclass`` that carries no state.
The auxiliary dispersion parameter (Gamma shape, negative-binomial θ)
is always passed explicitly, because it is an input to the
synthesizer and an *output* of the fitter.

Extensibility
~~~~~~~~~~~~~
New families are added by implementing the protocol in this module
and registering them with :func:`register_family`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
import statsmodels.api as sm
from scipy import special
from scipy import stats as sp_stats

from .exceptions import (
    DegenerateInputError,
    InvalidParameterError,
    NonConvergenceError,
)
from .links import Link, LogitLink, LogLink

# ------------------------------------------------------------------ #
# GLMFamily protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class GLMFamily(Protocol):
    """Interface that every error family must implement.

    Attributes:
        name: Short identifier used in results and display headers
            (e.g. ``"poisson"``).
        default_link: The link used when the caller does not pass one.
        supported_links: Names of the links the family accepts.
        dispersion_label: Name of the auxiliary parameter
            (``"shape"``, ``"theta"``) or ``None`` when the family has
            none.
        scale_is_estimated: ``True`` when the GLM scale must be
            estimated from the data (Pearson χ² / df) rather than
            fixed at 1.
    """

    @property
    def name(self) -> str: ...

    @property
    def default_link(self) -> Link: ...

    @property
    def supported_links(self) -> frozenset[str]: ...

    @property
    def dispersion_label(self) -> str | None: ...

    @property
    def scale_is_estimated(self) -> bool: ...

    def check_link(self, link: Link) -> None:
        """Raise ``InvalidParameterError`` if *link* is unsupported."""
        ...

    def validate_dispersion(self, dispersion: float | None) -> float | None:
        """Return the validated dispersion, or ``None`` if unused.

        Raises:
            InvalidParameterError: If the family needs a dispersion
                and *dispersion* is missing, non-finite, or not
                strictly positive.
        """
        ...

    def validate_response(self, y: np.ndarray) -> None:
        """Check *y* before fitting.

        Raises:
            DegenerateInputError: If *y* is outside the support.
            NonConvergenceError: If *y* is inside the support but no
                finite maximum-likelihood estimate exists (all-zero
                counts, a single Bernoulli outcome).
        """
        ...

    def sample(
        self,
        mu: np.ndarray,
        rng: np.random.Generator,
        dispersion: float | None = None,
    ) -> np.ndarray:
        """Draw one observation per mean from the noise model."""
        ...

    def variance(self, mu: np.ndarray, theta: float | None = None) -> np.ndarray:
        """Variance function ``V(μ)`` (up to the GLM scale)."""
        ...

    def unit_deviance(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        theta: float | None = None,
    ) -> np.ndarray:
        """Per-observation deviance contributions."""
        ...

    def loglike(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        dispersion: float | None = None,
    ) -> float:
        """Full log-likelihood of *y* at mean *mu*."""
        ...

    def start_mu(self, y: np.ndarray) -> np.ndarray:
        """Starting means for the IRLS iteration."""
        ...

    def sm_family(
        self,
        link: Link,
        theta: float | None = None,
    ) -> sm.families.Family:
        """Return the matching statsmodels family object."""
        ...


# ------------------------------------------------------------------ #
# Shared validation helpers
# ------------------------------------------------------------------ #


def _check_link(family_name: str, supported: frozenset[str], link: Link) -> None:
    if link.name not in supported:
        allowed = ", ".join(sorted(supported))
        msg = (
            f"Link {link.name!r} is not supported by the {family_name} "
            f"family.  Supported links: {allowed}."
        )
        raise InvalidParameterError(msg)


def _require_positive_dispersion(
    family_name: str,
    label: str,
    dispersion: float | None,
) -> float:
    if dispersion is None:
        msg = f"The {family_name} family requires a dispersion ({label}) value."
        raise InvalidParameterError(msg)
    try:
        value = float(dispersion)
    except (TypeError, ValueError):
        msg = f"Dispersion ({label}) must be a real number, got {dispersion!r}."
        raise InvalidParameterError(msg) from None
    if not math.isfinite(value) or value <= 0:
        msg = (
            f"Dispersion ({label}) for the {family_name} family must be "
            f"finite and strictly positive, got {dispersion!r}."
        )
        raise InvalidParameterError(msg)
    return value


def _sampler_overflow(
    family_name: str,
    mu: np.ndarray,
    exc: ValueError,
) -> InvalidParameterError:
    """Translate numpy's refusal to sample a huge mean into a domain error."""
    msg = (
        f"The {family_name} mean is too large to sample "
        f"(max μ = {float(np.max(mu)):.4g}): {exc}"
    )
    return InvalidParameterError(msg)


def _require_counts(family_name: str, y: np.ndarray) -> None:
    """Shared support check for the two count families."""
    if np.any(y < 0):
        msg = f"The {family_name} family requires non-negative response values."
        raise DegenerateInputError(msg)
    if not np.allclose(y, np.round(y)):
        msg = (
            f"The {family_name} family requires integer-valued responses. "
            "Got non-integer values."
        )
        raise DegenerateInputError(msg)
    # All-zero counts push the intercept MLE to −∞.
    if not np.any(y > 0):
        msg = (
            f"{family_name} GLM fit did not converge: every count is zero, "
            "so the maximum-likelihood intercept is −∞."
        )
        raise NonConvergenceError(msg, n_iterations=0)


# ------------------------------------------------------------------ #
# GammaFamily
# ------------------------------------------------------------------ #
#
# Mean-parameterised Gamma: shape k, rate k / μ, so E[Y] = μ and
# Var[Y] = μ² / k.  The GLM scale φ equals 1 / k, which the fitter
# estimates with the Pearson statistic and reports back as a shape.


@dataclass(frozen=True)
class GammaFamily:
    """Gamma family with log link for positive continuous outcomes."""

    @property
    def name(self) -> str:
        return "gamma"

    @property
    def default_link(self) -> Link:
        return LogLink()

    @property
    def supported_links(self) -> frozenset[str]:
        return frozenset({"log"})

    @property
    def dispersion_label(self) -> str | None:
        return "shape"

    @property
    def scale_is_estimated(self) -> bool:
        return True

    def check_link(self, link: Link) -> None:
        _check_link(self.name, self.supported_links, link)

    def validate_dispersion(self, dispersion: float | None) -> float | None:
        return _require_positive_dispersion(self.name, "shape", dispersion)

    def validate_response(self, y: np.ndarray) -> None:
        if np.any(y <= 0):
            msg = "The gamma family requires strictly positive response values."
            raise DegenerateInputError(msg)

    def sample(
        self,
        mu: np.ndarray,
        rng: np.random.Generator,
        dispersion: float | None = None,
    ) -> np.ndarray:
        shape = _require_positive_dispersion(self.name, "shape", dispersion)
        # numpy parameterises by scale = 1 / rate = μ / k.
        return rng.gamma(shape=shape, scale=mu / shape).astype(np.float64)

    def variance(self, mu: np.ndarray, theta: float | None = None) -> np.ndarray:  # noqa: ARG002
        return mu**2

    def unit_deviance(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        theta: float | None = None,  # noqa: ARG002
    ) -> np.ndarray:
        return 2.0 * (-np.log(y / mu) + (y - mu) / mu)

    def loglike(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        dispersion: float | None = None,
    ) -> float:
        shape = _require_positive_dispersion(self.name, "shape", dispersion)
        return float(np.sum(sp_stats.gamma.logpdf(y, a=shape, scale=mu / shape)))

    def start_mu(self, y: np.ndarray) -> np.ndarray:
        return y.astype(np.float64, copy=True)

    def sm_family(self, link: Link, theta: float | None = None) -> sm.families.Family:  # noqa: ARG002
        return sm.families.Gamma(link=link.sm_link())


# ------------------------------------------------------------------ #
# PoissonFamily
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class PoissonFamily:
    """Poisson family with log link for count outcomes.

    Equi-dispersed: ``Var(Y) = μ``, so there is no auxiliary
    parameter and the GLM scale is fixed at 1.
    """

    @property
    def name(self) -> str:
        return "poisson"

    @property
    def default_link(self) -> Link:
        return LogLink()

    @property
    def supported_links(self) -> frozenset[str]:
        return frozenset({"log"})

    @property
    def dispersion_label(self) -> str | None:
        return None

    @property
    def scale_is_estimated(self) -> bool:
        return False

    def check_link(self, link: Link) -> None:
        _check_link(self.name, self.supported_links, link)

    def validate_dispersion(self, dispersion: float | None) -> float | None:  # noqa: ARG002
        return None

    def validate_response(self, y: np.ndarray) -> None:
        _require_counts(self.name, y)

    def sample(
        self,
        mu: np.ndarray,
        rng: np.random.Generator,
        dispersion: float | None = None,  # noqa: ARG002
    ) -> np.ndarray:
        try:
            draws = rng.poisson(mu)
        except ValueError as exc:
            raise _sampler_overflow(self.name, mu, exc) from exc
        return draws.astype(np.float64)

    def variance(self, mu: np.ndarray, theta: float | None = None) -> np.ndarray:  # noqa: ARG002
        return mu

    def unit_deviance(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        theta: float | None = None,  # noqa: ARG002
    ) -> np.ndarray:
        # xlogy gives the 0·log(0) = 0 convention for zero counts.
        return 2.0 * (special.xlogy(y, y / mu) - (y - mu))

    def loglike(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        dispersion: float | None = None,  # noqa: ARG002
    ) -> float:
        return float(np.sum(sp_stats.poisson.logpmf(y, mu)))

    def start_mu(self, y: np.ndarray) -> np.ndarray:
        return y + 0.1

    def sm_family(self, link: Link, theta: float | None = None) -> sm.families.Family:  # noqa: ARG002
        return sm.families.Poisson(link=link.sm_link())


# ------------------------------------------------------------------ #
# NegativeBinomialFamily
# ------------------------------------------------------------------ #
#
# NB2 parameterisation with size θ:
#
#   E[Y] = μ,   Var(Y) = μ + μ² / θ
#
# statsmodels uses α = 1 / θ.  As θ → ∞ the model reduces to Poisson.
# θ is the synthesizer's dispersion input and is re-estimated by the
# fitter (see ``_backends``).


@dataclass(frozen=True)
class NegativeBinomialFamily:
    """Negative binomial family with log link for overdispersed counts."""

    @property
    def name(self) -> str:
        return "negative_binomial"

    @property
    def default_link(self) -> Link:
        return LogLink()

    @property
    def supported_links(self) -> frozenset[str]:
        return frozenset({"log"})

    @property
    def dispersion_label(self) -> str | None:
        return "theta"

    @property
    def scale_is_estimated(self) -> bool:
        return False

    def check_link(self, link: Link) -> None:
        _check_link(self.name, self.supported_links, link)

    def validate_dispersion(self, dispersion: float | None) -> float | None:
        return _require_positive_dispersion(self.name, "theta", dispersion)

    def validate_response(self, y: np.ndarray) -> None:
        _require_counts(self.name, y)

    def sample(
        self,
        mu: np.ndarray,
        rng: np.random.Generator,
        dispersion: float | None = None,
    ) -> np.ndarray:
        theta = _require_positive_dispersion(self.name, "theta", dispersion)
        # numpy's (n, p) form: n = θ successes, p = θ / (θ + μ).
        try:
            draws = rng.negative_binomial(theta, theta / (theta + mu))
        except ValueError as exc:
            raise _sampler_overflow(self.name, mu, exc) from exc
        return draws.astype(np.float64)

    def variance(self, mu: np.ndarray, theta: float | None = None) -> np.ndarray:
        theta = _require_positive_dispersion(self.name, "theta", theta)
        return mu + mu**2 / theta

    def unit_deviance(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        theta: float | None = None,
    ) -> np.ndarray:
        theta = _require_positive_dispersion(self.name, "theta", theta)
        return 2.0 * (
            special.xlogy(y, y / mu)
            - (y + theta) * np.log((y + theta) / (mu + theta))
        )

    def loglike(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        dispersion: float | None = None,
    ) -> float:
        theta = _require_positive_dispersion(self.name, "theta", dispersion)
        return float(np.sum(sp_stats.nbinom.logpmf(y, theta, theta / (theta + mu))))

    def start_mu(self, y: np.ndarray) -> np.ndarray:
        return y + (y == 0) / 6.0

    def sm_family(self, link: Link, theta: float | None = None) -> sm.families.Family:
        theta = _require_positive_dispersion(self.name, "theta", theta)
        return sm.families.NegativeBinomial(link=link.sm_link(), alpha=1.0 / theta)


# ------------------------------------------------------------------ #
# BernoulliFamily
# ------------------------------------------------------------------ #
#
# Single-trial binomial with logit link.  A response with only one
# class is degenerate: the log-likelihood has no finite maximiser.


@dataclass(frozen=True)
class BernoulliFamily:
    """Bernoulli (binomial, one trial) family with logit link."""

    @property
    def name(self) -> str:
        return "bernoulli"

    @property
    def default_link(self) -> Link:
        return LogitLink()

    @property
    def supported_links(self) -> frozenset[str]:
        return frozenset({"logit"})

    @property
    def dispersion_label(self) -> str | None:
        return None

    @property
    def scale_is_estimated(self) -> bool:
        return False

    def check_link(self, link: Link) -> None:
        _check_link(self.name, self.supported_links, link)

    def validate_dispersion(self, dispersion: float | None) -> float | None:  # noqa: ARG002
        return None

    def validate_response(self, y: np.ndarray) -> None:
        if not np.all(np.isin(y, [0.0, 1.0])):
            msg = "The bernoulli family requires response values in {0, 1}."
            raise DegenerateInputError(msg)
        # One class is the limiting case of perfect separation.
        if np.unique(y).size < 2:
            msg = (
                "bernoulli GLM fit did not converge: only one outcome is "
                "present, so the maximum-likelihood intercept is infinite."
            )
            raise NonConvergenceError(msg, n_iterations=0)

    def sample(
        self,
        mu: np.ndarray,
        rng: np.random.Generator,
        dispersion: float | None = None,  # noqa: ARG002
    ) -> np.ndarray:
        return rng.binomial(1, mu).astype(np.float64)

    def variance(self, mu: np.ndarray, theta: float | None = None) -> np.ndarray:  # noqa: ARG002
        return mu * (1.0 - mu)

    def unit_deviance(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        theta: float | None = None,  # noqa: ARG002
    ) -> np.ndarray:
        return 2.0 * (
            special.xlogy(y, y / mu) + special.xlogy(1.0 - y, (1.0 - y) / (1.0 - mu))
        )

    def loglike(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        dispersion: float | None = None,  # noqa: ARG002
    ) -> float:
        return float(np.sum(sp_stats.bernoulli.logpmf(y, mu)))

    def start_mu(self, y: np.ndarray) -> np.ndarray:
        return (y + 0.5) / 2.0

    def sm_family(self, link: Link, theta: float | None = None) -> sm.families.Family:  # noqa: ARG002
        return sm.families.Binomial(link=link.sm_link())


# ------------------------------------------------------------------ #
# Family resolution
# ------------------------------------------------------------------ #

_FAMILIES: dict[str, type] = {}
"""Registry mapping family name strings to concrete GLMFamily classes."""


def register_family(name: str, cls: type) -> None:
    """Register a concrete ``GLMFamily`` class under *name*.

    Args:
        name: Lookup key (e.g. ``"poisson"``).
        cls: A class implementing the ``GLMFamily`` protocol.

    Raises:
        TypeError: If *cls* does not satisfy the ``GLMFamily``
            protocol.
    """
    # runtime_checkable protocols with non-method members do not
    # support issubclass(); use isinstance() on a sentinel instance.
    try:
        instance = cls()
    except Exception:  # noqa: BLE001
        msg = f"{cls!r} could not be instantiated for protocol check."
        raise TypeError(msg) from None
    if not isinstance(instance, GLMFamily):
        msg = f"{cls!r} does not implement the GLMFamily protocol."
        raise TypeError(msg)
    _FAMILIES[name] = cls


def resolve_family(family: str | GLMFamily) -> GLMFamily:
    """Resolve a family string or instance to a concrete ``GLMFamily``.

    Instances are returned as-is.  Strings are matched
    case-insensitively against the registry; ``"binomial"`` is an
    alias for ``"bernoulli"``.

    Raises:
        ValueError: If *family* is a string not found in the registry.
    """
    if isinstance(family, GLMFamily):
        return family
    key = str(family).strip().lower()
    if key not in _FAMILIES:
        available = ", ".join(sorted(_FAMILIES)) or "(none registered)"
        msg = f"Unknown family {family!r}.  Available families: {available}."
        raise ValueError(msg)
    instance: GLMFamily = _FAMILIES[key]()
    return instance


# ------------------------------------------------------------------ #
# Register built-in families
# ------------------------------------------------------------------ #

register_family("gamma", GammaFamily)
register_family("poisson", PoissonFamily)
register_family("negative_binomial", NegativeBinomialFamily)
register_family("bernoulli", BernoulliFamily)
register_family("binomial", BernoulliFamily)
