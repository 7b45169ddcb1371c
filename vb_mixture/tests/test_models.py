"""
Unit Tests for Conjugate Models

Tests for the component and mixing-model implementations the VB engine
dispatches to.
Run with: pytest vb_mixture/tests/test_models.py -v
"""

import copy

import pytest
import numpy as np
from scipy.special import digamma

from vb_mixture.models import NormalGammaComponent, DirichletMixing, check_weights


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def gaussian_data():
    """Two-dimensional Gaussian sample."""
    np.random.seed(42)
    return np.random.randn(200, 2) * np.array([0.5, 2.0]) + np.array([3.0, -1.0])


@pytest.fixture
def prior(gaussian_data):
    """Normal-Gamma prior seeded from the data."""
    return NormalGammaComponent().initialize(gaussian_data)


def assert_same_component(a, b, rtol=1e-7, atol=1e-9):
    for name in ('mean', 'kappa', 'shape', 'rate'):
        assert np.allclose(getattr(a, name), getattr(b, name), rtol=rtol, atol=atol), \
            f"{name} differs: {getattr(a, name)} vs {getattr(b, name)}"


# =============================================================================
# Normal-Gamma Component Tests
# =============================================================================

class TestNormalGammaComponent:
    """Tests for NormalGammaComponent."""

    def test_initialize(self, gaussian_data):
        """Test prior hyperparameters are seeded from the data."""
        comp = NormalGammaComponent(mean_kappa=0.5, precision_shape=2.0).initialize(gaussian_data)

        assert comp.n_dimensions == 2
        assert np.allclose(comp.mean, gaussian_data.mean(axis=0))
        assert np.allclose(comp.kappa, 0.5)
        assert np.allclose(comp.rate, 2.0 * gaussian_data.var(axis=0))

    def test_initialize_dimension_mismatch(self, gaussian_data):
        """Test declared dimensionality is enforced."""
        with pytest.raises(ValueError):
            NormalGammaComponent(n_dimensions=3).initialize(gaussian_data)

    def test_invalid_prior(self):
        """Test non-positive prior settings are rejected."""
        with pytest.raises(ValueError):
            NormalGammaComponent(mean_kappa=0)
        with pytest.raises(ValueError):
            NormalGammaComponent(precision_rate=-1.0)

    def test_update_recovers_moments(self, prior, gaussian_data):
        """Test posterior mean and precision approach the sample moments."""
        post = prior.weighted_conjugate_update(prior, gaussian_data, None)

        assert np.allclose(post.mean, gaussian_data.mean(axis=0), atol=1e-3)
        assert np.allclose(1.0 / post.expected_precision, gaussian_data.var(axis=0), rtol=0.05)

    def test_zero_weights_return_prior(self, prior, gaussian_data):
        """Test zero weights leave the prior unchanged."""
        post = prior.weighted_conjugate_update(prior, gaussian_data, np.zeros(len(gaussian_data)))
        assert_same_component(post, prior)

    def test_weights_act_as_counts(self, prior, gaussian_data):
        """Test a weight of 2 matches duplicating the rows."""
        weighted = prior.weighted_conjugate_update(
            prior, gaussian_data, 2 * np.ones(len(gaussian_data))
        )
        duplicated = prior.weighted_conjugate_update(
            prior, np.vstack([gaussian_data, gaussian_data]), None
        )
        assert_same_component(weighted, duplicated)

    def test_update_is_pure(self, prior, gaussian_data):
        """Test updating does not modify self or the prior."""
        before = copy.deepcopy(prior)
        prior.weighted_conjugate_update(prior, gaussian_data, np.random.rand(len(gaussian_data)))
        assert_same_component(prior, before, rtol=0, atol=0)

    def test_log_likelihood(self, prior, gaussian_data):
        """Test expected log-likelihood shape and ordering."""
        post = prior.weighted_conjugate_update(prior, gaussian_data, None)
        ll = post.conjugate_variational_average_log_likelihood(gaussian_data)

        assert ll.shape == (len(gaussian_data),)
        assert np.all(np.isfinite(ll))

        near = post.conjugate_variational_average_log_likelihood(post.mean[np.newaxis, :])
        far = post.conjugate_variational_average_log_likelihood(post.mean[np.newaxis, :] + 10)
        assert near[0] > far[0]

    def test_kld(self, prior, gaussian_data):
        """Test KLD is zero against itself and positive otherwise."""
        post = prior.weighted_conjugate_update(prior, gaussian_data, None)

        assert abs(prior.conjugate_kld(prior)) < 1e-10
        assert abs(post.conjugate_kld(post)) < 1e-10
        assert post.conjugate_kld(prior) > 0

    def test_online_full_step_is_conjugate_update(self, prior, gaussian_data):
        """Test learning_rate=1 with D=batch size equals the conjugate update."""
        weights = np.random.rand(len(gaussian_data))
        previous = prior.weighted_conjugate_update(prior, gaussian_data[:20], None)

        online = prior.vb_online_weighted_update(
            prior, gaussian_data, weights, 1.0, len(gaussian_data), previous
        )
        exact = prior.weighted_conjugate_update(prior, gaussian_data, weights)

        assert_same_component(online, exact, rtol=1e-6)

    def test_online_small_step_keeps_previous(self, prior, gaussian_data):
        """Test learning_rate -> 0 leaves the previous posterior unchanged."""
        previous = prior.weighted_conjugate_update(prior, gaussian_data[:20], None)

        online = prior.vb_online_weighted_update(
            prior, gaussian_data, None, 1e-12, len(gaussian_data), previous
        )

        assert_same_component(online, previous, rtol=1e-6)

    def test_online_initialize(self, gaussian_data):
        """Test streaming start moves the mean onto an observation."""
        comp = NormalGammaComponent().initialize(gaussian_data)
        start = comp.vb_online_initialize(gaussian_data, random_state=0)

        assert any(np.array_equal(start.mean, row) for row in gaussian_data)
        assert np.allclose(comp.mean, gaussian_data.mean(axis=0)), "Original must be untouched"

        again = comp.vb_online_initialize(gaussian_data, random_state=0)
        assert np.array_equal(start.mean, again.mean), "Same seed, same start"


# =============================================================================
# Dirichlet Mixing Tests
# =============================================================================

class TestDirichletMixing:
    """Tests for DirichletMixing."""

    @pytest.fixture
    def mixing(self):
        return DirichletMixing(concentration=1.0).initialize(np.zeros((1, 3)))

    def test_initialize(self, mixing):
        """Test one category per column."""
        assert mixing.n_dimensions == 3
        assert np.allclose(mixing.alpha, 1.0)
        assert np.allclose(mixing.posterior_mean, 1 / 3)

    def test_invalid_concentration(self):
        """Test non-positive concentration is rejected."""
        with pytest.raises(ValueError):
            DirichletMixing(concentration=0.0)

    def test_conjugate_update(self, mixing):
        """Test pseudo-counts add to the prior concentration."""
        post = mixing.conjugate_update(mixing, np.array([10.0, 5.0, 0.0]))

        assert np.allclose(post.alpha, [11.0, 6.0, 1.0])
        assert np.allclose(mixing.alpha, 1.0), "Prior must be untouched"

    def test_weighted_update_uses_responsibilities(self, mixing):
        """Test counts are weighted column sums of the responsibilities."""
        resp = np.array([[1.0, 0.0, 0.0], [0.5, 0.5, 0.0], [0.0, 0.2, 0.8]])
        weights = np.array([1.0, 2.0, 1.0])

        post = mixing.weighted_conjugate_update(mixing, resp, weights)
        assert np.allclose(post.alpha, 1.0 + np.array([2.0, 1.2, 0.8]))

    def test_expected_log_mean(self, mixing):
        """Test E[log pi] = psi(alpha) - psi(sum alpha)."""
        post = mixing.conjugate_update(mixing, np.array([3.0, 1.0, 0.0]))
        expected = digamma(post.alpha) - digamma(post.alpha.sum())
        assert np.allclose(post.expected_log_mean, expected)

    def test_kld(self, mixing):
        """Test Dirichlet KLD properties."""
        post = mixing.conjugate_update(mixing, np.array([30.0, 2.0, 1.0]))

        assert abs(mixing.conjugate_kld(mixing)) < 1e-10
        assert post.conjugate_kld(mixing) > 0

    def test_online_full_step(self, mixing):
        """Test learning_rate=1 with D=batch size gives alpha0 + counts."""
        resp = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        previous = mixing.conjugate_update(mixing, np.array([50.0, 50.0, 50.0]))

        post = mixing.vb_online_weighted_update(mixing, resp, None, 1.0, 2, previous)
        assert np.allclose(post.alpha, [2.0, 2.0, 1.0])


# =============================================================================
# Weight Validation Tests
# =============================================================================

class TestCheckWeights:
    """Tests for check_weights."""

    def test_none_is_ones(self):
        assert np.array_equal(check_weights(None, 4), np.ones(4))

    def test_column_vector_flattened(self):
        assert check_weights(np.ones((5, 1)), 5).shape == (5,)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            check_weights(np.ones(3), 4)

    def test_negative_weights(self):
        with pytest.raises(ValueError):
            check_weights(np.array([1.0, -0.1]), 2)


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
