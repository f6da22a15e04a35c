"""Link functions for the GLM families.

A link ``g`` maps a distribution's mean onto the scale on which it is
linear in the predictor::

    g(μ) = η = intercept + slope · x

and its inverse maps the linear predictor back to the mean.  Two links
cover every supported family:

=========  ==================  ===================  =====================
Link       g(μ)                g⁻¹(η)               dμ/dη
=========  ==================  ===================  =====================
``log``    log μ               exp η                exp η
``logit``  log(μ / (1 − μ))    1 / (1 + exp(−η))    μ(1 − μ)
=========  ==================  ===================  =====================

Each link is a frozen, stateless dataclass implementing the
:class:`Link` protocol.  The statsmodels counterpart is available via
:meth:`Link.sm_link` so the statsmodels backend and the NumPy IRLS
backend always agree on the transform.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
import statsmodels.api as sm
from scipy import special

# Floor for dμ/dη so IRLS weights never collapse to exactly zero.
_EPS = np.finfo(np.float64).eps


@runtime_checkable
class Link(Protocol):
    """Interface every link function implements."""

    @property
    def name(self) -> str: ...

    def link(self, mu: np.ndarray) -> np.ndarray:
        """Forward transform ``η = g(μ)``."""
        ...

    def inverse(self, eta: np.ndarray) -> np.ndarray:
        """Inverse transform ``μ = g⁻¹(η)``."""
        ...

    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        """Derivative ``dμ/dη`` evaluated at *eta*."""
        ...

    def sm_link(self) -> sm.families.links.Link:
        """Return the equivalent statsmodels link instance."""
        ...


@dataclass(frozen=True)
class LogLink:
    """Log link, the canonical choice for positive means."""

    @property
    def name(self) -> str:
        return "log"

    def link(self, mu: np.ndarray) -> np.ndarray:
        return np.log(mu)

    def inverse(self, eta: np.ndarray) -> np.ndarray:
        return np.exp(eta)

    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        return np.maximum(np.exp(eta), _EPS)

    def sm_link(self) -> sm.families.links.Link:
        return sm.families.links.Log()


@dataclass(frozen=True)
class LogitLink:
    """Logit link for probabilities in (0, 1).

    The inverse uses ``scipy.special.expit``, which is stable for
    large ``|η|`` where the naive ``1 / (1 + exp(−η))`` overflows.
    """

    @property
    def name(self) -> str:
        return "logit"

    def link(self, mu: np.ndarray) -> np.ndarray:
        return special.logit(mu)

    def inverse(self, eta: np.ndarray) -> np.ndarray:
        return special.expit(eta)

    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        p = special.expit(eta)
        return np.maximum(p * (1.0 - p), _EPS)

    def sm_link(self) -> sm.families.links.Link:
        return sm.families.links.Logit()


# ------------------------------------------------------------------ #
# Link resolution
# ------------------------------------------------------------------ #

_LINKS: dict[str, type] = {
    "log": LogLink,
    "logit": LogitLink,
}


def resolve_link(link: str | Link) -> Link:
    """Resolve a link name or instance to a :class:`Link`.

    Instances are returned as-is.

    Raises:
        ValueError: If *link* is a string that names no known link.
    """
    if isinstance(link, Link):
        return link
    key = str(link).strip().lower()
    if key not in _LINKS:
        available = ", ".join(sorted(_LINKS))
        msg = f"Unknown link {link!r}.  Available links: {available}."
        raise ValueError(msg)
    instance: Link = _LINKS[key]()
    return instance
