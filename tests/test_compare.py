"""Tests for comparing fits with the truth and the divide-by-4 rule."""

import warnings

import numpy as np
import pytest

from glm_simulation import (
    ComparisonResult,
    approximate_probability_slope,
    compare,
    fit,
    predict_curve,
    simulate,
)


class TestApproximateProbabilitySlope:
    @pytest.mark.parametrize("slope", [1.3, -2.0, 0.0, 4.0, 0.37])
    def test_divides_by_four(self, slope):
        assert approximate_probability_slope(slope) == slope / 4

    def test_on_fitted_slope(self):
        data = simulate(500, 0.5, 1.3, "bernoulli", rng=1)
        model = fit(data.predictor, data.response, "bernoulli")
        assert approximate_probability_slope(model.slope) == model.slope / 4

    def test_bounds_true_probability_change(self):
        # The steepest point of the logistic curve has slope b / 4.
        b = 1.3
        eta = np.linspace(-6, 6, 2001)
        p = 1.0 / (1.0 + np.exp(-eta))
        assert np.max(np.gradient(p, eta)) * b == pytest.approx(
            approximate_probability_slope(b), rel=1e-4
        )


class TestCompare:
    @pytest.fixture(scope="class")
    def matched(self):
        data = simulate(200, 0.5, 1.3, "poisson", rng=42)
        model = fit(data.predictor, data.response, "poisson")
        return data, model

    def test_errors_are_estimate_minus_truth(self, matched):
        data, model = matched
        result = compare(model, data)
        assert isinstance(result, ComparisonResult)
        assert result.intercept_error == pytest.approx(model.intercept - 0.5)
        assert result.slope_error == pytest.approx(model.slope - 1.3)
        assert result.family_matches

    def test_coverage_flags_agree_with_intervals(self, matched):
        data, model = matched
        result = compare(model, data)
        ci = model.conf_int(0.95)
        assert result.intercept_covered == bool(ci[0, 0] <= 0.5 <= ci[0, 1])
        assert result.slope_covered == bool(ci[1, 0] <= 1.3 <= ci[1, 1])

    def test_curve_metrics(self, matched):
        data, model = matched
        result = compare(model, data)
        assert 0.0 <= result.band_coverage <= 1.0
        assert 0.0 <= result.curve_rmse <= result.max_curve_error
        assert result.curve_rmse < 0.5

    def test_uses_supplied_curve(self, matched):
        data, model = matched
        curve = predict_curve(model, [0.0])
        result = compare(model, data, curve=curve)
        expected = abs(np.exp(model.intercept) - np.exp(0.5))
        assert result.max_curve_error == pytest.approx(expected)
        assert result.curve_rmse == pytest.approx(expected)

    def test_no_warning_for_matching_family(self, matched):
        data, model = matched
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compare(model, data)

    def test_warns_on_family_mismatch(self):
        data = simulate(300, 0.5, 1.3, "negative_binomial", 2.0, rng=5)
        model = fit(data.predictor, data.response, "poisson")
        with pytest.warns(UserWarning, match="differs from the generating family"):
            result = compare(model, data)
        assert not result.family_matches
        assert result.family == "negative_binomial"
        assert result.fitted_family == "poisson"
        assert result.true_dispersion == 2.0
        assert result.estimated_dispersion is None

    def test_dispersion_reported(self):
        data = simulate(300, 0.5, 1.3, "gamma", 8.0, rng=5)
        model = fit(data.predictor, data.response, "gamma")
        result = compare(model, data)
        assert result.true_dispersion == 8.0
        assert result.estimated_dispersion == pytest.approx(model.dispersion)

    def test_to_dict(self, matched):
        data, model = matched
        d = compare(model, data).to_dict()
        assert d["family"] == "poisson"
        assert isinstance(d["slope_covered"], bool)
