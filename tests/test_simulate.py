"""Tests for the data synthesizer."""

import numpy as np
import pandas as pd
import pytest
from scipy import special

from glm_simulation import SimulatedData, draw_predictor, simulate, synthesize, true_mean
from glm_simulation.exceptions import InvalidParameterError

DISPERSION = {"gamma": 8.0, "poisson": None, "negative_binomial": 2.0, "bernoulli": None}


@pytest.fixture
def predictor():
    return np.random.default_rng(42).uniform(-1.0, 1.0, 200)


class TestDrawPredictor:
    def test_length_and_range(self):
        x = draw_predictor(500, rng=0)
        assert x.shape == (500,)
        assert np.all(x >= -1.0)
        assert np.all(x < 1.0)

    def test_custom_interval(self):
        x = draw_predictor(100, low=2.0, high=3.0, rng=0)
        assert x.min() >= 2.0
        assert x.max() < 3.0

    def test_matches_generator_uniform(self):
        expected = np.random.default_rng(7).uniform(-1.0, 1.0, 10)
        np.testing.assert_array_equal(draw_predictor(10, rng=7), expected)

    @pytest.mark.parametrize("n", [0, -5, 2.5, True])
    def test_invalid_n(self, n):
        with pytest.raises(InvalidParameterError, match="positive integer"):
            draw_predictor(n)

    def test_low_not_below_high(self):
        with pytest.raises(InvalidParameterError, match="low must be below high"):
            draw_predictor(10, low=1.0, high=1.0)

    def test_non_finite_bound(self):
        with pytest.raises(InvalidParameterError, match="finite"):
            draw_predictor(10, low=-np.inf)


class TestTrueMean:
    def test_log_link(self, predictor):
        np.testing.assert_allclose(
            true_mean(predictor, 0.5, 1.3, "poisson"), np.exp(0.5 + 1.3 * predictor)
        )

    def test_logit_link(self, predictor):
        np.testing.assert_allclose(
            true_mean(predictor, 0.5, 1.3, "bernoulli"),
            special.expit(0.5 + 1.3 * predictor),
        )

    def test_non_finite_coefficient(self, predictor):
        with pytest.raises(InvalidParameterError, match="'slope' must be finite"):
            true_mean(predictor, 0.5, np.nan, "poisson")


class TestSynthesize:
    @pytest.mark.parametrize("family", list(DISPERSION))
    def test_length_matches_predictor(self, family, predictor):
        y = synthesize(predictor, 0.5, 1.3, family, DISPERSION[family], rng=1)
        assert y.shape == predictor.shape

    def test_gamma_strictly_positive(self, predictor):
        y = synthesize(predictor, 0.5, 1.3, "gamma", 8.0, rng=1)
        assert np.all(y > 0)

    @pytest.mark.parametrize("family", ["poisson", "negative_binomial"])
    def test_counts_are_non_negative_integers(self, family, predictor):
        y = synthesize(predictor, 0.5, 1.3, family, DISPERSION[family], rng=1)
        assert np.all(y >= 0)
        np.testing.assert_array_equal(y, np.round(y))

    def test_bernoulli_binary(self, predictor):
        y = synthesize(predictor, 0.5, 1.3, "bernoulli", rng=1)
        assert set(np.unique(y)) <= {0.0, 1.0}

    def test_same_seed_reproduces(self, predictor):
        a = synthesize(predictor, 0.5, 1.3, "negative_binomial", 2.0, rng=123)
        b = synthesize(predictor, 0.5, 1.3, "negative_binomial", 2.0, rng=123)
        np.testing.assert_array_equal(a, b)

    def test_different_seeds_differ(self, predictor):
        a = synthesize(predictor, 0.5, 1.3, "poisson", rng=1)
        b = synthesize(predictor, 0.5, 1.3, "poisson", rng=2)
        assert not np.array_equal(a, b)

    def test_shared_generator_is_sequential(self, predictor):
        gen = np.random.default_rng(99)
        first = synthesize(predictor, 0.5, 1.3, "poisson", rng=gen)
        second = synthesize(predictor, 0.5, 1.3, "poisson", rng=gen)
        assert not np.array_equal(first, second)

        replay = np.random.default_rng(99)
        np.testing.assert_array_equal(
            synthesize(predictor, 0.5, 1.3, "poisson", rng=replay), first
        )
        np.testing.assert_array_equal(
            synthesize(predictor, 0.5, 1.3, "poisson", rng=replay), second
        )

    @pytest.mark.parametrize("family", ["gamma", "negative_binomial"])
    def test_missing_dispersion(self, family, predictor):
        with pytest.raises(InvalidParameterError, match="requires a dispersion"):
            synthesize(predictor, 0.5, 1.3, family, None, rng=1)

    @pytest.mark.parametrize("bad", [0.0, -2.0])
    def test_non_positive_gamma_shape(self, bad, predictor):
        with pytest.raises(InvalidParameterError, match="strictly positive"):
            synthesize(predictor, 0.5, 1.3, "gamma", bad, rng=1)

    def test_dispersion_ignored_for_poisson(self, predictor):
        a = synthesize(predictor, 0.5, 1.3, "poisson", -1.0, rng=5)
        b = synthesize(predictor, 0.5, 1.3, "poisson", None, rng=5)
        np.testing.assert_array_equal(a, b)

    def test_failed_call_leaves_stream_untouched(self, predictor):
        gen = np.random.default_rng(0)
        with pytest.raises(InvalidParameterError):
            synthesize(predictor, 0.5, 1.3, "gamma", None, rng=gen)
        assert gen.uniform() == np.random.default_rng(0).uniform()

    def test_empty_predictor(self):
        with pytest.raises(InvalidParameterError, match="at least one value"):
            synthesize([], 0.5, 1.3, "poisson", rng=1)

    def test_nan_predictor(self):
        with pytest.raises(InvalidParameterError, match="NaN or infinite"):
            synthesize([0.1, np.nan], 0.5, 1.3, "poisson", rng=1)

    @pytest.mark.parametrize(
        ("family", "dispersion"),
        [("poisson", None), ("negative_binomial", 2.0)],
    )
    def test_mean_too_large_to_sample(self, family, dispersion):
        with pytest.raises(InvalidParameterError, match="too large to sample"):
            synthesize([0.0, 1.0], 50.0, 0.0, family, dispersion, rng=0)

    def test_overflowing_mean(self):
        with pytest.raises(InvalidParameterError, match="overflows"):
            synthesize([0.0, 1.0], 0.5, 1000.0, "gamma", 2.0, rng=0)

    def test_accepts_list_and_series(self, predictor):
        from_list = synthesize(list(predictor), 0.5, 1.3, "poisson", rng=3)
        from_series = synthesize(pd.Series(predictor), 0.5, 1.3, "poisson", rng=3)
        np.testing.assert_array_equal(from_list, from_series)

    def test_large_sample_mean_tracks_truth(self):
        x = np.zeros(40_000)
        y = synthesize(x, 0.5, 1.3, "gamma", 8.0, rng=11)
        assert np.mean(y) == pytest.approx(np.exp(0.5), rel=0.01)


class TestSimulate:
    def test_returns_simulated_data(self):
        data = simulate(200, 0.5, 1.3, "gamma", 8.0, rng=2024)
        assert isinstance(data, SimulatedData)
        assert data.n == 200
        assert data.response.shape == (200,)
        assert data.intercept == 0.5
        assert data.slope == 1.3
        assert data.family.name == "gamma"
        assert data.link.name == "log"
        assert data.dispersion == 8.0

    def test_truth_arrays(self):
        data = simulate(50, 0.5, 1.3, "bernoulli", rng=1)
        np.testing.assert_allclose(data.true_eta, 0.5 + 1.3 * data.predictor)
        np.testing.assert_allclose(data.true_mean, special.expit(data.true_eta))
        assert data.dispersion is None

    def test_predictor_drawn_first(self):
        data = simulate(30, 0.5, 1.3, "poisson", rng=8)
        gen = np.random.default_rng(8)
        x = gen.uniform(-1.0, 1.0, 30)
        np.testing.assert_array_equal(data.predictor, x)
        np.testing.assert_array_equal(
            data.response, synthesize(x, 0.5, 1.3, "poisson", rng=gen)
        )

    def test_reproducible(self):
        a = simulate(100, 0.5, 1.3, "negative_binomial", 2.0, rng=3)
        b = simulate(100, 0.5, 1.3, "negative_binomial", 2.0, rng=3)
        np.testing.assert_array_equal(a.predictor, b.predictor)
        np.testing.assert_array_equal(a.response, b.response)

    def test_invalid_dispersion_draws_nothing(self):
        gen = np.random.default_rng(4)
        with pytest.raises(InvalidParameterError):
            simulate(100, 0.5, 1.3, "negative_binomial", 0.0, rng=gen)
        assert gen.uniform() == np.random.default_rng(4).uniform()

    def test_to_frame(self):
        frame = simulate(20, 0.5, 1.3, "poisson", rng=0).to_frame()
        assert list(frame.columns) == ["x", "y", "eta", "mu"]
        assert len(frame) == 20

    def test_to_dict_uses_names(self):
        d = simulate(5, 0.5, 1.3, "poisson", rng=0).to_dict()
        assert d["family"] == "poisson"
        assert d["link"] == "log"
        assert isinstance(d["predictor"], list)
