"""Tests for the error taxonomy."""

import pytest

from glm_simulation import (
    DegenerateInputError,
    GLMSimulationError,
    InvalidParameterError,
    NonConvergenceError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("cls", "builtin"),
        [
            (InvalidParameterError, ValueError),
            (DegenerateInputError, ValueError),
            (NonConvergenceError, RuntimeError),
        ],
    )
    def test_subclasses(self, cls, builtin):
        assert issubclass(cls, GLMSimulationError)
        assert issubclass(cls, builtin)

    def test_non_convergence_iterations(self):
        err = NonConvergenceError("stopped", n_iterations=12)
        assert err.n_iterations == 12
        assert str(err) == "stopped"

    def test_non_convergence_default(self):
        assert NonConvergenceError("stopped").n_iterations is None
