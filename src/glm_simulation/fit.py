"""Model fitter: maximum-likelihood GLM fits of a single predictor.

:func:`fit` owns everything that does not depend on the solver:

* coercing and validating inputs (lengths, finiteness, the family's
  support, a non-constant predictor);
* checking that the link is one the family supports;
* dispatching to the active backend (see :mod:`._backends`);
* translating a non-converged solve into :class:`NonConvergenceError`;
* attaching fit statistics (deviance, null deviance, log-likelihood,
  AIC, BIC) computed the same way for every backend.

The fitter does **not** check that its family matches the family that
generated the data.  Fitting a deliberately misspecified model (e.g.
Poisson to overdispersed counts) is a legitimate exercise;
:func:`~glm_simulation.compare.compare` warns about the mismatch
instead.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from ._backends import resolve_backend
from ._compat import _as_vector
from ._results import FittedModel
from ._typing import ArrayLike
from .exceptions import DegenerateInputError, NonConvergenceError
from .families import GLMFamily, resolve_family
from .links import Link, resolve_link

logger = logging.getLogger(__name__)


def _prepare_inputs(
    predictor: ArrayLike,
    response: ArrayLike,
    family: GLMFamily,
) -> tuple[np.ndarray, np.ndarray]:
    """Coerce and validate ``(x, y)``; raises ``DegenerateInputError``."""
    try:
        x = _as_vector(predictor, name="predictor")
        y = _as_vector(response, name="response")
    except TypeError as exc:
        raise DegenerateInputError(str(exc)) from exc

    if x.size == 0:
        msg = "fit() requires at least one observation."
        raise DegenerateInputError(msg)
    if x.shape[0] != y.shape[0]:
        msg = (
            f"predictor and response lengths differ: "
            f"{x.shape[0]} vs {y.shape[0]}."
        )
        raise DegenerateInputError(msg)
    if not np.all(np.isfinite(x)):
        msg = "predictor contains NaN or infinite values."
        raise DegenerateInputError(msg)
    if not np.all(np.isfinite(y)):
        msg = "response contains NaN or infinite values."
        raise DegenerateInputError(msg)
    if x.shape[0] < 3:
        msg = f"fit() requires at least 3 observations, got {x.shape[0]}."
        raise DegenerateInputError(msg)
    if np.ptp(x) == 0:
        msg = "predictor is constant; the slope is not identified."
        raise DegenerateInputError(msg)

    family.validate_response(y)
    return x, y


def fit(
    predictor: ArrayLike,
    response: ArrayLike,
    family: str | GLMFamily,
    link: str | Link | None = None,
    *,
    backend: str | None = None,
    maxiter: int = 100,
    tol: float = 1e-8,
) -> FittedModel:
    """Fit ``g(μ_i) = intercept + slope · x_i`` by maximum likelihood.

    Args:
        predictor: Predictor vector ``x``.
        response: Response vector ``y``, same length as *predictor*.
        family: Family name or instance (``"gamma"``, ``"poisson"``,
            ``"negative_binomial"``, ``"bernoulli"``).
        link: Link name or instance.  Defaults to the family's link;
            must be one the family supports.
        backend: ``"statsmodels"`` or ``"numpy"``; ``None`` uses the
            configured default (see :func:`~glm_simulation.get_backend`).
        maxiter: Iteration cap for the solver.
        tol: Convergence tolerance.

    Returns:
        A frozen :class:`FittedModel`.  For the negative-binomial
        family ``dispersion`` is the estimated θ; for Gamma it is the
        estimated shape ``1 / φ``.

    Raises:
        InvalidParameterError: If *link* is not supported by *family*.
        DegenerateInputError: If the inputs are empty, of different
            lengths, non-finite, outside the family's support, or the
            predictor is constant.
        NonConvergenceError: If the solver does not converge within
            *maxiter* iterations, detects perfect separation, or the
            response has no finite maximum-likelihood estimate (all-zero
            counts, a single Bernoulli outcome).
    """
    fam = resolve_family(family)
    lnk = fam.default_link if link is None else resolve_link(link)
    fam.check_link(lnk)
    x, y = _prepare_inputs(predictor, response, fam)

    solver = resolve_backend(backend)
    n = x.shape[0]
    X = np.column_stack([np.ones(n), x])
    out = solver.fit_glm(X, y, fam, lnk, maxiter=maxiter, tol=tol)

    if not out.converged:
        msg = (
            f"{fam.name} GLM fit ({solver.name} backend) did not converge: "
            f"{out.message or 'no further detail'}"
        )
        raise NonConvergenceError(msg, n_iterations=out.n_iterations)
    # A solver can stop "converged" while the coefficients run off to
    # infinity (separated Bernoulli data); the fitted means then match y.
    if np.allclose(out.mu, y, rtol=0.0, atol=1e-6):
        msg = (
            f"{fam.name} GLM fit ({solver.name} backend) reproduces the "
            "response exactly: perfect separation or prediction, so the "
            "coefficients are not identified."
        )
        raise NonConvergenceError(msg, n_iterations=out.n_iterations)

    std_errors = np.sqrt(np.diag(out.cov_params))

    # Dispersion reported in the synthesizer's parameterisation.
    dispersion: float | None = None
    dispersion_se: float | None = None
    if fam.dispersion_label == "theta":
        dispersion = out.theta
        dispersion_se = out.theta_std_error
    elif fam.dispersion_label == "shape":
        dispersion = 1.0 / out.scale

    mu = out.mu
    deviance = float(np.sum(fam.unit_deviance(y, mu, out.theta)))
    mu_null = np.full(n, np.mean(y))
    null_deviance = float(np.sum(fam.unit_deviance(y, mu_null, out.theta)))
    log_likelihood = fam.loglike(y, mu, dispersion)

    # Estimated dispersion counts as a parameter in the information criteria.
    k = X.shape[1] + (1 if dispersion is not None else 0)
    aic = -2.0 * log_likelihood + 2.0 * k
    bic = -2.0 * log_likelihood + k * math.log(n)

    logger.debug(
        "Fitted %s/%s with %s backend in %d iterations: "
        "intercept=%.6g slope=%.6g dispersion=%s",
        fam.name,
        lnk.name,
        solver.name,
        out.n_iterations,
        out.params[0],
        out.params[1],
        dispersion,
    )

    return FittedModel(
        family=fam,
        link=lnk,
        params=out.params,
        std_errors=std_errors,
        cov_params=out.cov_params,
        dispersion=dispersion,
        dispersion_std_error=dispersion_se,
        scale=out.scale,
        n_observations=n,
        df_residual=n - X.shape[1],
        deviance=deviance,
        null_deviance=null_deviance,
        log_likelihood=log_likelihood,
        aic=aic,
        bic=bic,
        n_iterations=out.n_iterations,
        backend=solver.name,
        predictor_range=(float(x.min()), float(x.max())),
    )
