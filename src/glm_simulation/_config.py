"""Backend configuration for the glm_simulation package.

Controls which solver performs the maximum-likelihood GLM fit.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_backend`.
    2. The ``GLM_SIMULATION_BACKEND`` environment variable.
    3. The default, ``"statsmodels"``.

Valid backend names are ``"statsmodels"`` and ``"numpy"``
(case-insensitive).  ``"numpy"`` selects the in-package iteratively
reweighted least squares solver.

Examples:
    Use the NumPy solver globally from the shell::

        export GLM_SIMULATION_BACKEND=numpy

    Use it programmatically::

        import glm_simulation
        glm_simulation.set_backend("numpy")

    Restore the default::

        glm_simulation.set_backend("auto")
"""

from __future__ import annotations

import os

_VALID_BACKENDS = {"statsmodels", "numpy", "auto"}

_DEFAULT_BACKEND = "statsmodels"

# Sentinel indicating "no programmatic override has been set".
_backend_override: str | None = None


def get_backend() -> str:
    """Return the active backend name (``"statsmodels"`` or ``"numpy"``).

    Resolution order:
        1. Value set by :func:`set_backend` (unless ``"auto"``).
        2. ``GLM_SIMULATION_BACKEND`` environment variable.
        3. ``"statsmodels"``.

    Returns:
        ``"statsmodels"`` or ``"numpy"``.
    """
    # 1. Programmatic override
    if _backend_override is not None and _backend_override != "auto":
        return _backend_override

    # 2. Environment variable
    env = os.environ.get("GLM_SIMULATION_BACKEND", "").strip().lower()
    if env in ("statsmodels", "numpy"):
        return env

    # 3. Default
    return _DEFAULT_BACKEND


def set_backend(name: str) -> None:
    """Override the backend selection.

    Args:
        name: One of ``"statsmodels"``, ``"numpy"``, or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised backend.
    """
    global _backend_override
    normalised = name.strip().lower()
    if normalised not in _VALID_BACKENDS:
        msg = f"Unknown backend '{name}'. Choose from: {sorted(_VALID_BACKENDS)}"
        raise ValueError(msg)
    _backend_override = normalised
