"""Error taxonomy for the simulate → fit → compare pipeline.

Every error raised by the package derives from
:class:`GLMSimulationError`.  The concrete classes also subclass the
matching built-in (``ValueError`` or ``RuntimeError``) so that callers
who already catch the built-ins keep working.

* :class:`InvalidParameterError` — a malformed or missing
  distribution parameter (e.g. a non-positive Gamma shape) reached
  the synthesizer, or a link that the family does not support
  reached the fitter.
* :class:`DegenerateInputError` — the data handed to the fitter
  cannot be fit: values outside the family's support, mismatched
  lengths, empty or non-finite vectors, a constant predictor.
* :class:`NonConvergenceError` — the maximum-likelihood iteration
  stopped without converging.  The fitter never retries.
"""

from __future__ import annotations


class GLMSimulationError(Exception):
    """Base class for all package errors."""


class InvalidParameterError(GLMSimulationError, ValueError):
    """A distribution or model parameter is missing or out of range."""


class DegenerateInputError(GLMSimulationError, ValueError):
    """Input data lies outside what the declared family can fit."""


class NonConvergenceError(GLMSimulationError, RuntimeError):
    """The fitting iteration did not converge.

    Attributes:
        n_iterations: Iterations performed before giving up, when
            known.
    """

    def __init__(self, message: str, n_iterations: int | None = None) -> None:
        super().__init__(message)
        self.n_iterations = n_iterations
