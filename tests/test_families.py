"""Tests for the GLM family protocol and the four concrete families."""

import numpy as np
import pytest
import statsmodels.api as sm
from scipy import stats as sp_stats

from glm_simulation.exceptions import (
    DegenerateInputError,
    InvalidParameterError,
    NonConvergenceError,
)
from glm_simulation.families import (
    BernoulliFamily,
    GammaFamily,
    GLMFamily,
    NegativeBinomialFamily,
    PoissonFamily,
    register_family,
    resolve_family,
)
from glm_simulation.links import LogitLink, LogLink

ALL_FAMILIES = [GammaFamily(), PoissonFamily(), NegativeBinomialFamily(), BernoulliFamily()]


@pytest.fixture
def rng():
    return np.random.default_rng(42)


# ------------------------------------------------------------------ #
# Protocol and registry
# ------------------------------------------------------------------ #


class TestProtocolConformance:
    @pytest.mark.parametrize("family", ALL_FAMILIES, ids=lambda f: f.name)
    def test_isinstance_check(self, family):
        assert isinstance(family, GLMFamily)

    def test_default_links(self):
        assert isinstance(GammaFamily().default_link, LogLink)
        assert isinstance(PoissonFamily().default_link, LogLink)
        assert isinstance(NegativeBinomialFamily().default_link, LogLink)
        assert isinstance(BernoulliFamily().default_link, LogitLink)

    def test_dispersion_labels(self):
        assert GammaFamily().dispersion_label == "shape"
        assert NegativeBinomialFamily().dispersion_label == "theta"
        assert PoissonFamily().dispersion_label is None
        assert BernoulliFamily().dispersion_label is None

    def test_only_gamma_estimates_scale(self):
        assert [f.scale_is_estimated for f in ALL_FAMILIES] == [True, False, False, False]


class TestResolveFamily:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("gamma", GammaFamily),
            ("poisson", PoissonFamily),
            ("negative_binomial", NegativeBinomialFamily),
            ("bernoulli", BernoulliFamily),
        ],
    )
    def test_by_name(self, name, cls):
        assert isinstance(resolve_family(name), cls)

    def test_binomial_alias(self):
        assert isinstance(resolve_family("binomial"), BernoulliFamily)

    def test_case_and_whitespace(self):
        assert isinstance(resolve_family("  Poisson "), PoissonFamily)

    def test_instance_passthrough(self):
        fam = GammaFamily()
        assert resolve_family(fam) is fam

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown family"):
            resolve_family("tweedie")

    def test_register_rejects_non_family(self):
        class NotAFamily:
            pass

        with pytest.raises(TypeError, match="does not implement"):
            register_family("bogus", NotAFamily)


# ------------------------------------------------------------------ #
# Link and dispersion validation
# ------------------------------------------------------------------ #


class TestCheckLink:
    def test_supported_link_passes(self):
        GammaFamily().check_link(LogLink())
        BernoulliFamily().check_link(LogitLink())

    def test_log_family_rejects_logit(self):
        with pytest.raises(InvalidParameterError, match="not supported by the gamma"):
            GammaFamily().check_link(LogitLink())

    def test_bernoulli_rejects_log(self):
        with pytest.raises(InvalidParameterError, match="Supported links: logit"):
            BernoulliFamily().check_link(LogLink())


class TestValidateDispersion:
    @pytest.mark.parametrize("family", [GammaFamily(), NegativeBinomialFamily()], ids=lambda f: f.name)
    def test_missing_raises(self, family):
        with pytest.raises(InvalidParameterError, match="requires a dispersion"):
            family.validate_dispersion(None)

    @pytest.mark.parametrize("bad", [0.0, -1.0, float("nan"), float("inf")])
    @pytest.mark.parametrize("family", [GammaFamily(), NegativeBinomialFamily()], ids=lambda f: f.name)
    def test_non_positive_or_non_finite_raises(self, family, bad):
        with pytest.raises(InvalidParameterError, match="finite and strictly positive"):
            family.validate_dispersion(bad)

    def test_non_numeric_raises(self):
        with pytest.raises(InvalidParameterError, match="real number"):
            GammaFamily().validate_dispersion("eight")

    def test_valid_returns_float(self):
        assert GammaFamily().validate_dispersion(8) == 8.0

    @pytest.mark.parametrize("family", [PoissonFamily(), BernoulliFamily()], ids=lambda f: f.name)
    def test_ignored_when_unused(self, family):
        assert family.validate_dispersion(None) is None
        assert family.validate_dispersion(-3.0) is None


# ------------------------------------------------------------------ #
# Response support
# ------------------------------------------------------------------ #


class TestValidateResponse:
    def test_gamma_rejects_zero(self):
        with pytest.raises(DegenerateInputError, match="strictly positive"):
            GammaFamily().validate_response(np.array([1.0, 0.0, 2.0]))

    @pytest.mark.parametrize("family", [PoissonFamily(), NegativeBinomialFamily()], ids=lambda f: f.name)
    def test_counts_reject_negative(self, family):
        with pytest.raises(DegenerateInputError, match="non-negative"):
            family.validate_response(np.array([1.0, -1.0, 3.0]))

    @pytest.mark.parametrize("family", [PoissonFamily(), NegativeBinomialFamily()], ids=lambda f: f.name)
    def test_counts_reject_fractions(self, family):
        with pytest.raises(DegenerateInputError, match="integer-valued"):
            family.validate_response(np.array([1.0, 2.5, 3.0]))

    @pytest.mark.parametrize("family", [PoissonFamily(), NegativeBinomialFamily()])
    def test_all_zero_counts_have_no_mle(self, family):
        with pytest.raises(NonConvergenceError, match="every count is zero"):
            family.validate_response(np.zeros(5))

    def test_bernoulli_rejects_other_values(self):
        with pytest.raises(DegenerateInputError, match=r"\{0, 1\}"):
            BernoulliFamily().validate_response(np.array([0.0, 1.0, 2.0]))

    @pytest.mark.parametrize("value", [0.0, 1.0])
    def test_bernoulli_single_outcome_has_no_mle(self, value):
        with pytest.raises(NonConvergenceError, match="only one outcome") as excinfo:
            BernoulliFamily().validate_response(np.full(10, value))
        assert excinfo.value.n_iterations == 0

    def test_valid_responses_pass(self):
        GammaFamily().validate_response(np.array([0.1, 2.0]))
        PoissonFamily().validate_response(np.array([0.0, 3.0]))
        BernoulliFamily().validate_response(np.array([0.0, 1.0, 1.0]))


# ------------------------------------------------------------------ #
# Sampling
# ------------------------------------------------------------------ #


class TestSampling:
    def test_gamma_moments(self, rng):
        mu = np.full(50_000, 2.0)
        y = GammaFamily().sample(mu, rng, 8.0)
        assert np.all(y > 0)
        assert np.mean(y) == pytest.approx(2.0, abs=0.05)
        # Var = μ² / shape = 0.5
        assert np.var(y) == pytest.approx(0.5, abs=0.05)

    def test_poisson_moments(self, rng):
        y = PoissonFamily().sample(np.full(20_000, 3.0), rng)
        np.testing.assert_array_equal(y, np.round(y))
        assert np.mean(y) == pytest.approx(3.0, abs=0.1)
        assert np.var(y) == pytest.approx(3.0, abs=0.2)

    def test_negative_binomial_overdispersion(self, rng):
        y = NegativeBinomialFamily().sample(np.full(100_000, 3.0), rng, 2.0)
        assert np.all(y >= 0)
        assert np.mean(y) == pytest.approx(3.0, abs=0.05)
        # Var = μ + μ² / θ = 7.5
        assert np.var(y) == pytest.approx(7.5, abs=0.5)

    def test_bernoulli_support_and_rate(self, rng):
        y = BernoulliFamily().sample(np.full(20_000, 0.3), rng)
        assert set(np.unique(y)) <= {0.0, 1.0}
        assert np.mean(y) == pytest.approx(0.3, abs=0.02)

    @pytest.mark.parametrize("family", [GammaFamily(), NegativeBinomialFamily()], ids=lambda f: f.name)
    def test_sample_requires_dispersion(self, family, rng):
        with pytest.raises(InvalidParameterError):
            family.sample(np.ones(3), rng, None)

    @pytest.mark.parametrize("family", ALL_FAMILIES, ids=lambda f: f.name)
    def test_sample_is_float64(self, family, rng):
        mu = np.full(10, 0.5)
        y = family.sample(mu, rng, 2.0)
        assert y.dtype == np.float64
        assert y.shape == (10,)


# ------------------------------------------------------------------ #
# Likelihood pieces
# ------------------------------------------------------------------ #


class TestVariance:
    def test_variance_functions(self):
        mu = np.array([0.5, 2.0])
        np.testing.assert_allclose(GammaFamily().variance(mu), mu**2)
        np.testing.assert_allclose(PoissonFamily().variance(mu), mu)
        np.testing.assert_allclose(
            NegativeBinomialFamily().variance(mu, 2.0), mu + mu**2 / 2.0
        )
        p = np.array([0.2, 0.5])
        np.testing.assert_allclose(BernoulliFamily().variance(p), p * (1 - p))


class TestUnitDeviance:
    def test_zero_at_saturation(self):
        y = np.array([1.0, 3.0, 7.0])
        for fam in (GammaFamily(), PoissonFamily()):
            np.testing.assert_allclose(fam.unit_deviance(y, y), 0.0, atol=1e-12)
        np.testing.assert_allclose(
            NegativeBinomialFamily().unit_deviance(y, y, 2.0), 0.0, atol=1e-12
        )

    def test_poisson_zero_count(self):
        dev = PoissonFamily().unit_deviance(np.array([0.0]), np.array([1.5]))
        assert dev[0] == pytest.approx(3.0)

    def test_bernoulli_matches_minus_two_loglike(self):
        y = np.array([0.0, 1.0, 1.0])
        mu = np.array([0.2, 0.6, 0.9])
        expected = -2.0 * sp_stats.bernoulli.logpmf(y, mu)
        np.testing.assert_allclose(BernoulliFamily().unit_deviance(y, mu), expected)

    def test_negative_binomial_is_twice_loglike_gap(self):
        y = np.array([0.0, 2.0, 5.0, 1.0])
        mu = np.array([0.8, 1.7, 4.1, 1.2])
        saturated = sp_stats.nbinom.logpmf(y, 2.0, 2.0 / (2.0 + y))
        fitted = sp_stats.nbinom.logpmf(y, 2.0, 2.0 / (2.0 + mu))
        np.testing.assert_allclose(
            NegativeBinomialFamily().unit_deviance(y, mu, 2.0),
            2.0 * (saturated - fitted),
            rtol=1e-8,
            atol=1e-12,
        )


class TestLoglike:
    def test_poisson_matches_scipy(self):
        y = np.array([0.0, 1.0, 4.0])
        mu = np.array([0.5, 1.0, 3.0])
        assert PoissonFamily().loglike(y, mu) == pytest.approx(
            np.sum(sp_stats.poisson.logpmf(y, mu))
        )

    def test_gamma_matches_scipy(self):
        y = np.array([0.5, 1.5, 2.5])
        mu = np.array([1.0, 1.0, 2.0])
        expected = np.sum(sp_stats.gamma.logpdf(y, a=4.0, scale=mu / 4.0))
        assert GammaFamily().loglike(y, mu, 4.0) == pytest.approx(expected)

    def test_negative_binomial_approaches_poisson(self):
        y = np.array([0.0, 2.0, 5.0])
        mu = np.array([1.0, 2.0, 4.0])
        ll_nb = NegativeBinomialFamily().loglike(y, mu, 1e6)
        assert ll_nb == pytest.approx(PoissonFamily().loglike(y, mu), rel=1e-4)


class TestStatsmodelsBridge:
    def test_family_types(self):
        assert isinstance(GammaFamily().sm_family(LogLink()), sm.families.Gamma)
        assert isinstance(PoissonFamily().sm_family(LogLink()), sm.families.Poisson)
        assert isinstance(BernoulliFamily().sm_family(LogitLink()), sm.families.Binomial)

    def test_negative_binomial_alpha_is_inverse_theta(self):
        fam = NegativeBinomialFamily().sm_family(LogLink(), 2.0)
        assert isinstance(fam, sm.families.NegativeBinomial)
        assert fam.alpha == pytest.approx(0.5)

    def test_negative_binomial_requires_theta(self):
        with pytest.raises(InvalidParameterError):
            NegativeBinomialFamily().sm_family(LogLink(), None)
