"""NumPy backend: iteratively reweighted least squares.

Each IRLS step solves the weighted least-squares problem

    z = η + (y − μ) / (dμ/dη),    w = (dμ/dη)² / V(μ)
    β ← argmin Σ w_i (z_i − x_i β)²

and stops with R's ``glm.fit`` criterion

    |D − D_old| / (|D| + 0.1) < tol

where D is the deviance.  At convergence the covariance is
``φ · (Xᵀ W X)⁻¹`` with φ the Pearson scale for families that estimate
it (Gamma) and 1 otherwise.

Negative-binomial θ
~~~~~~~~~~~~~~~~~~~
θ is not a GLM parameter.  Following the alternating scheme of
``MASS::glm.nb``:

1. Start from a Poisson IRLS fit.
2. Maximise the profile log-likelihood in θ at the current μ with
   Newton steps (:func:`_theta_ml`).
3. Refit β by IRLS with θ fixed, warm-started from the previous β.
4. Repeat 2–3 until the log-likelihood and θ settle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy import optimize, special

from ..families import PoissonFamily
from . import GLMFitOutput

if TYPE_CHECKING:
    from ..families import GLMFamily
    from ..links import Link

logger = logging.getLogger(__name__)

_EPS = np.finfo(np.float64).eps
_THETA_MAX = 1e8


def _clip_mu(mu: np.ndarray, link: Link) -> np.ndarray:
    """Keep μ strictly inside the link's range."""
    if link.name == "logit":
        return np.clip(mu, _EPS, 1.0 - _EPS)
    return np.maximum(mu, _EPS)


@dataclass(frozen=True)
class _IRLSState:
    beta: np.ndarray
    eta: np.ndarray
    mu: np.ndarray
    deviance: float
    converged: bool
    n_iterations: int
    message: str = ""


def _irls(
    X: np.ndarray,
    y: np.ndarray,
    family: GLMFamily,
    link: Link,
    theta: float | None,
    maxiter: int,
    tol: float,
    beta_start: np.ndarray | None = None,
) -> _IRLSState:
    """Run IRLS to convergence for fixed θ."""
    if beta_start is None:
        mu = family.start_mu(y)
        eta = link.link(mu)
    else:
        eta = X @ beta_start
        mu = _clip_mu(link.inverse(eta), link)
    dev_old = float(np.sum(family.unit_deviance(y, mu, theta)))
    beta = np.zeros(X.shape[1]) if beta_start is None else beta_start

    for iteration in range(1, maxiter + 1):
        d = link.mu_eta(eta)
        w = d**2 / family.variance(mu, theta)
        z = eta + (y - mu) / d
        sw = np.sqrt(w)
        beta, *_ = np.linalg.lstsq(X * sw[:, None], z * sw, rcond=None)
        eta = X @ beta
        mu = _clip_mu(link.inverse(eta), link)
        dev = float(np.sum(family.unit_deviance(y, mu, theta)))

        if not np.isfinite(dev) or not np.all(np.isfinite(beta)):
            return _IRLSState(
                beta, eta, mu, dev, False, iteration,
                "IRLS produced non-finite deviance or coefficients.",
            )
        if np.allclose(mu - y, 0.0):
            return _IRLSState(
                beta, eta, mu, dev, False, iteration,
                "Perfect separation or prediction detected; "
                "coefficients are not identified.",
            )
        if abs(dev - dev_old) / (abs(dev) + 0.1) < tol:
            logger.debug("IRLS converged after %d iterations", iteration)
            return _IRLSState(beta, eta, mu, dev, True, iteration)
        dev_old = dev

    return _IRLSState(
        beta, eta, mu, dev_old, False, maxiter,
        f"IRLS did not converge within {maxiter} iterations.",
    )


# ------------------------------------------------------------------ #
# θ profile likelihood
# ------------------------------------------------------------------ #


def _theta_loglike(theta: float, y: np.ndarray, mu: np.ndarray) -> float:
    """NB2 log-likelihood as a function of θ at fixed μ."""
    return float(
        np.sum(
            special.gammaln(theta + y)
            - special.gammaln(theta)
            - special.gammaln(y + 1.0)
            + theta * np.log(theta / (theta + mu))
            + special.xlogy(y, mu / (theta + mu))
        )
    )


def _theta_score(theta: float, y: np.ndarray, mu: np.ndarray) -> float:
    """∂ℓ/∂θ of the NB2 log-likelihood at fixed μ."""
    return float(
        np.sum(
            special.digamma(theta + y)
            - special.digamma(theta)
            + np.log(theta)
            + 1.0
            - np.log(theta + mu)
            - (y + theta) / (mu + theta)
        )
    )


def _theta_info(theta: float, y: np.ndarray, mu: np.ndarray) -> float:
    """Observed information −∂²ℓ/∂θ² at fixed μ."""
    return float(
        np.sum(
            -special.polygamma(1, theta + y)
            + special.polygamma(1, theta)
            - 1.0 / theta
            + 2.0 / (mu + theta)
            - (y + theta) / (mu + theta) ** 2
        )
    )


def _theta_ml(
    y: np.ndarray,
    mu: np.ndarray,
    theta_start: float | None = None,
    maxiter: int = 50,
    tol: float = _EPS**0.25,
) -> tuple[float, float | None, bool]:
    """Maximise the NB2 likelihood in θ for fixed means.

    Returns:
        ``(θ̂, se(θ̂), converged)``.  ``se`` is ``None`` when the
        information is not positive.
    """
    n = y.shape[0]
    if theta_start is None:
        # Moment start: n / Σ (y/μ − 1)².
        denom = float(np.sum((y / mu - 1.0) ** 2))
        theta_start = n / denom if denom > 0 else 1.0
    theta = float(min(max(theta_start, 1e-4), _THETA_MAX))

    converged = False
    for _ in range(maxiter):
        info = _theta_info(theta, y, mu)
        if not np.isfinite(info) or info <= 0:
            break
        step = _theta_score(theta, y, mu) / info
        new_theta = theta + step
        # Newton can overshoot below zero on flat profiles; halve instead.
        if new_theta <= 0:
            new_theta = theta / 2.0
        new_theta = min(new_theta, _THETA_MAX)
        if abs(new_theta - theta) <= tol * max(theta, 1.0):
            theta = new_theta
            converged = True
            break
        theta = new_theta

    if not converged:
        # Newton left the concave region; fall back to a bounded search
        # on log θ, which needs no curvature.
        res = optimize.minimize_scalar(
            lambda log_t: -_theta_loglike(float(np.exp(log_t)), y, mu),
            bounds=(np.log(1e-4), np.log(_THETA_MAX)),
            method="bounded",
            options={"xatol": 1e-10},
        )
        theta = float(np.exp(res.x))
        converged = bool(res.success)

    info = _theta_info(theta, y, mu)
    se = float(1.0 / np.sqrt(info)) if np.isfinite(info) and info > 0 else None
    return theta, se, converged


# ------------------------------------------------------------------ #
# Backend
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class NumpyBackend:
    """In-package IRLS compute backend.

    Stateless frozen dataclass, safe to cache in the module-level
    ``_BACKEND_CACHE`` singleton.
    """

    @property
    def name(self) -> str:
        return "numpy"

    def _finish(
        self,
        X: np.ndarray,
        y: np.ndarray,
        family: GLMFamily,
        link: Link,
        state: _IRLSState,
        theta: float | None,
        theta_se: float | None,
        n_iterations: int,
    ) -> GLMFitOutput:
        """Attach the covariance and scale to a converged IRLS state."""
        n, p = X.shape
        d = link.mu_eta(state.eta)
        var = family.variance(state.mu, theta)
        w = d**2 / var
        xtwx = X.T @ (X * w[:, None])
        scale = 1.0
        if family.scale_is_estimated:
            scale = float(np.sum((y - state.mu) ** 2 / var) / (n - p))
        try:
            cov = np.linalg.inv(xtwx) * scale
        except np.linalg.LinAlgError:
            return GLMFitOutput(
                params=state.beta,
                cov_params=np.full((p, p), np.nan),
                mu=state.mu,
                scale=scale,
                theta=theta,
                theta_std_error=theta_se,
                converged=False,
                n_iterations=n_iterations,
                message="Information matrix is singular.",
            )
        return GLMFitOutput(
            params=state.beta,
            cov_params=cov,
            mu=state.mu,
            scale=scale,
            theta=theta,
            theta_std_error=theta_se,
            converged=True,
            n_iterations=n_iterations,
        )

    def _failed(self, X: np.ndarray, state: _IRLSState, n_iterations: int) -> GLMFitOutput:
        p = X.shape[1]
        return GLMFitOutput(
            params=state.beta,
            cov_params=np.full((p, p), np.nan),
            mu=state.mu,
            scale=float("nan"),
            theta=None,
            theta_std_error=None,
            converged=False,
            n_iterations=n_iterations,
            message=state.message,
        )

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
        if family.dispersion_label != "theta":
            state = _irls(X, y, family, link, None, maxiter, tol)
            if not state.converged:
                return self._failed(X, state, state.n_iterations)
            return self._finish(X, y, family, link, state, None, None, state.n_iterations)

        # ---- Negative binomial: alternate θ and β -------------------
        state = _irls(X, y, PoissonFamily(), link, None, maxiter, tol)
        total_iterations = state.n_iterations
        if not state.converged:
            return self._failed(X, state, total_iterations)

        theta, theta_se, theta_ok = _theta_ml(y, state.mu)
        loglike_old = family.loglike(y, state.mu, theta)

        for outer in range(1, maxiter + 1):
            state = _irls(X, y, family, link, theta, maxiter, tol, state.beta)
            total_iterations += state.n_iterations
            if not state.converged:
                return self._failed(X, state, total_iterations)
            theta_old = theta
            theta, theta_se, theta_ok = _theta_ml(y, state.mu, theta)
            loglike = family.loglike(y, state.mu, theta)
            logger.debug(
                "NB alternation %d: theta=%.6g, loglike=%.8g", outer, theta, loglike
            )
            settled = (
                abs(loglike - loglike_old) / (abs(loglike) + 0.1) < tol
                and abs(theta - theta_old) <= np.sqrt(tol) * max(theta_old, 1.0)
            )
            if settled and theta_ok:
                return self._finish(
                    X, y, family, link, state, theta, theta_se, total_iterations
                )
            loglike_old = loglike

        failed = _IRLSState(
            state.beta, state.eta, state.mu, state.deviance, False, maxiter,
            f"Negative binomial theta did not settle within {maxiter} "
            "alternations.",
        )
        return self._failed(X, failed, total_iterations)
