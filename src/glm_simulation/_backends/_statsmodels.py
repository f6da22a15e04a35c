"""statsmodels backend (default).

Fits every family with ``sm.GLM`` and IRLS.  The negative-binomial
dispersion is not a GLM parameter, so it is estimated first:

1. ``sm.NegativeBinomial(y, X, loglike_method="nb2")`` jointly
   estimates β and α by maximum likelihood.
2. ``α̂`` is held fixed in ``sm.GLM(family=NegativeBinomial(alpha=α̂))``,
   which reports the coefficients and their covariance.

θ = 1 / α̂, and its standard error follows from the delta method,
``se(θ) = se(α) / α²``.

Warning handling
~~~~~~~~~~~~~~~~
``ConvergenceWarning`` and ``PerfectSeparationWarning`` are promoted to
errors inside the fit and reported as ``converged=False`` so that the
caller can raise ``NonConvergenceError``.  A singular design inside the
solver (``LinAlgError``) is reported the same way.  ``RuntimeWarning`` from
overflow in intermediate iterations is ignored; a fit that ends in
non-finite coefficients is still reported as non-converged.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as SmConvergenceWarning,
)
from statsmodels.tools.sm_exceptions import (
    PerfectSeparationWarning,
)

from . import GLMFitOutput

if TYPE_CHECKING:
    from ..families import GLMFamily
    from ..links import Link

logger = logging.getLogger(__name__)


def _failed(p: int, n: int, message: str, n_iterations: int = 0) -> GLMFitOutput:
    """Sentinel output for a fit that stopped early."""
    return GLMFitOutput(
        params=np.full(p, np.nan),
        cov_params=np.full((p, p), np.nan),
        mu=np.full(n, np.nan),
        scale=float("nan"),
        theta=None,
        theta_std_error=None,
        converged=False,
        n_iterations=n_iterations,
        message=message,
    )


@dataclass(frozen=True)
class StatsmodelsBackend:
    """statsmodels compute backend.

    Stateless frozen dataclass, safe to cache in the module-level
    ``_BACKEND_CACHE`` singleton.
    """

    @property
    def name(self) -> str:
        return "statsmodels"

    def _estimate_theta(
        self,
        X: np.ndarray,
        y: np.ndarray,
        maxiter: int,
    ) -> tuple[float, float | None]:
        """Joint NB2 MLE; returns ``(θ̂, se(θ̂))``."""
        nb_model = sm.NegativeBinomial(y, X, loglike_method="nb2").fit(
            disp=0, maxiter=max(maxiter, 200)
        )
        if not nb_model.mle_retvals.get("converged", True):
            msg = "Negative binomial dispersion estimation did not converge."
            raise SmConvergenceWarning(msg)
        alpha_hat = float(np.exp(nb_model.lnalpha))
        alpha_se = float(np.asarray(nb_model.bse)[-1])
        theta_hat = 1.0 / alpha_hat
        theta_se = alpha_se / alpha_hat**2 if np.isfinite(alpha_se) else None
        logger.debug("NB2 MLE: alpha=%.6g, theta=%.6g", alpha_hat, theta_hat)
        return theta_hat, theta_se

    def fit_glm(
        self,
        X: np.ndarray,
        y: np.ndarray,
        family: GLMFamily,
        link: Link,
        *,
        maxiter: int = 100,
        tol: float = 1e-8,
    ) -> GLMFitOutput:
        n, p = X.shape
        theta: float | None = None
        theta_se: float | None = None
        with warnings.catch_warnings():
            warnings.filterwarnings("error", category=SmConvergenceWarning)
            warnings.filterwarnings("error", category=PerfectSeparationWarning)
            warnings.filterwarnings("ignore", category=RuntimeWarning)
            try:
                if family.dispersion_label == "theta":
                    theta, theta_se = self._estimate_theta(X, y, maxiter)
                model = sm.GLM(y, X, family=family.sm_family(link, theta))
                res = model.fit(maxiter=maxiter, tol=tol)
            except (
                SmConvergenceWarning,
                PerfectSeparationWarning,
                np.linalg.LinAlgError,
            ) as exc:
                logger.debug("statsmodels fit stopped: %s", exc)
                return _failed(p, n, str(exc))

        n_iterations = int(res.fit_history.get("iteration", 0))
        params = np.asarray(res.params, dtype=np.float64)
        converged = bool(getattr(res, "converged", True))
        message = ""
        if not converged:
            message = f"IRLS did not converge within {maxiter} iterations."
        elif not np.all(np.isfinite(params)):
            converged = False
            message = "IRLS produced non-finite coefficients."

        return GLMFitOutput(
            params=params,
            cov_params=np.asarray(res.cov_params(), dtype=np.float64),
            mu=np.asarray(res.fittedvalues, dtype=np.float64),
            scale=float(res.scale),
            theta=theta,
            theta_std_error=theta_se,
            converged=converged,
            n_iterations=n_iterations,
            message=message,
        )
