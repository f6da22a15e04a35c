"""
Walkthrough 2: Poisson Regression (Count Outcome)
Simulated data, eta = 0.5 + 1.3 * x

Demonstrates:
- ``simulate`` for an equi-dispersed count outcome
- Fitting with both backends (``"statsmodels"`` and ``"numpy"``) and
  checking that they agree
- ``DegenerateInputError`` when a count vector contains a negative
  value
"""

import numpy as np

from glm_simulation import (
    DegenerateInputError,
    compare,
    fit,
    print_comparison_table,
    print_fit_table,
    print_simulation_table,
    simulate,
)

rng = np.random.default_rng(2024)

data = simulate(200, 0.5, 1.3, "poisson", rng=rng)
print_simulation_table(data, title="Poisson / log: simulated data")

# ============================================================================
# Fit with both backends
# ============================================================================

sm_model = fit(data.predictor, data.response, "poisson", backend="statsmodels")
np_model = fit(data.predictor, data.response, "poisson", backend="numpy")

print_fit_table(sm_model, truth=data)
print_fit_table(np_model, truth=data, title="Poisson GLM (numpy IRLS backend)")

gap = np.max(np.abs(sm_model.params - np_model.params))
print(f"Largest coefficient difference between backends: {gap:.2e}\n")

print_comparison_table(compare(sm_model, data))

# ============================================================================
# Invalid input is rejected, not silently fit
# ============================================================================

bad = data.response.copy()
bad[0] = -1.0
try:
    fit(data.predictor, bad, "poisson")
except DegenerateInputError as exc:
    print(f"DegenerateInputError: {exc}")
