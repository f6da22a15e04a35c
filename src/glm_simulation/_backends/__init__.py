"""Backend abstraction layer for maximum-likelihood GLM fitting.

Each backend implements the :class:`BackendProtocol` interface: given
a design matrix with an intercept column, a validated response, a
family and a link, it returns a :class:`GLMFitOutput`.  The public
:func:`~glm_simulation.fit.fit` function dispatches to the active
backend via :func:`resolve_backend` and owns everything that does not
depend on the solver (input validation, fit statistics, error
translation).

Resolution follows the policy set by :mod:`.._config`:

1. Programmatic override via :func:`~glm_simulation.set_backend`.
2. ``GLM_SIMULATION_BACKEND`` environment variable.
3. ``"statsmodels"``.

Backends:

* ``"statsmodels"`` — ``sm.GLM`` with IRLS; the negative-binomial θ
  comes from the joint NB2 maximum-likelihood fit
  ``sm.NegativeBinomial`` and is then held fixed in the GLM.
* ``"numpy"`` — in-package IRLS with R's deviance-based stopping rule;
  θ is re-estimated between IRLS passes by Newton steps on its profile
  log-likelihood.

Adding a new backend requires a module implementing
:class:`BackendProtocol`, a branch in :func:`resolve_backend`, and the
new name in ``_VALID_BACKENDS`` in :mod:`.._config`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

from .._config import get_backend

if TYPE_CHECKING:
    from ..families import GLMFamily
    from ..links import Link


@dataclass(frozen=True)
class GLMFitOutput:
    """Raw solver output, before fit statistics are attached."""

    params: np.ndarray
    """Coefficients, shape ``(p,)``."""

    cov_params: np.ndarray
    """Scaled covariance of ``params``, shape ``(p, p)``."""

    mu: np.ndarray
    """Fitted means, shape ``(n,)``."""

    scale: float
    """GLM scale φ (1.0 unless the family estimates it)."""

    theta: float | None
    """Estimated negative-binomial θ, else ``None``."""

    theta_std_error: float | None

    converged: bool
    n_iterations: int

    message: str = ""
    """Reason for non-convergence, empty when converged."""


# ------------------------------------------------------------------ #
# BackendProtocol
# ------------------------------------------------------------------ #


@runtime_checkable
class BackendProtocol(Protocol):
    """Interface that every fitting backend must implement.

    Attributes:
        name: Short identifier (e.g. ``"statsmodels"``, ``"numpy"``).
    """

    @property
    def name(self) -> str: ...

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
        """Fit one GLM by maximum likelihood.

        Args:
            X: Design matrix ``(n, p)`` **including** the intercept
                column.
            y: Response vector ``(n,)`` already checked against the
                family's support.
            family: Error family.
            link: Link function supported by *family*.
            maxiter: Iteration cap for the solver (and for each
                θ update loop).
            tol: Convergence tolerance.

        Returns:
            A :class:`GLMFitOutput`.  Non-convergence is reported via
            ``converged=False`` and ``message`` rather than raised, so
            the caller translates it uniformly.
        """
        ...


# ------------------------------------------------------------------ #
# Backend resolution
# ------------------------------------------------------------------ #

# One instance per backend name.
_BACKEND_CACHE: dict[str, BackendProtocol] = {}


def resolve_backend(name: str | None = None) -> BackendProtocol:
    """Return a :class:`BackendProtocol` instance for *name*.

    When *name* is ``None`` (the default), the policy from
    :func:`~glm_simulation._config.get_backend` is used.

    Args:
        name: ``"statsmodels"``, ``"numpy"``, or ``None`` for policy
            default.

    Returns:
        A backend instance ready for fitting.

    Raises:
        ValueError: If *name* is not a recognised backend.
    """
    if name is None:
        name = get_backend()
    name = name.strip().lower()

    if name in _BACKEND_CACHE:
        return _BACKEND_CACHE[name]

    if name == "statsmodels":
        from ._statsmodels import StatsmodelsBackend

        backend: BackendProtocol = StatsmodelsBackend()

    elif name == "numpy":
        from ._numpy import NumpyBackend

        backend = NumpyBackend()

    else:
        msg = f"Unknown backend {name!r}.  Choose 'statsmodels' or 'numpy'."
        raise ValueError(msg)

    _BACKEND_CACHE[name] = backend
    return backend
