"""
Walkthrough 4: Logistic Regression (Binary Outcome)
Simulated data, eta = 0.5 + 1.3 * x

Demonstrates:
- ``simulate`` for a Bernoulli outcome with the logit link
- ``predict_curve`` bounds that stay inside (0, 1)
- ``approximate_probability_slope``: the divide-by-4 rule, an upper
  bound on the change in probability per unit of x, reached where the
  curve is steepest (p = 0.5)
"""

import numpy as np
from scipy import special

from glm_simulation import (
    approximate_probability_slope,
    compare,
    fit,
    predict_curve,
    print_comparison_table,
    print_fit_table,
    print_simulation_table,
    simulate,
)

rng = np.random.default_rng(2024)

data = simulate(200, 0.5, 1.3, "bernoulli", rng=rng)
print_simulation_table(data, title="Bernoulli / logit: simulated data")

model = fit(data.predictor, data.response, "bernoulli")
print_fit_table(model, truth=data)

curve = predict_curve(model, n_points=50)
print_comparison_table(compare(model, data, curve=curve))

# ============================================================================
# Divide-by-4 rule
# ============================================================================

approx = approximate_probability_slope(model.slope)
p = special.expit(model.intercept + model.slope * curve.x)
steepest = float(np.max(np.gradient(p, curve.x)))

print(f"Fitted logit slope:              {model.slope:.4f}")
print(f"Divide-by-4 probability slope:   {approx:.4f}")
print(f"Steepest slope on fitted curve:  {steepest:.4f}")
print(
    f"Bounds lie in (0, 1): {bool(curve.lower.min() > 0 and curve.upper.max() < 1)}"
)
