"""
Normal-Gamma Gaussian Component

A Gaussian observation model with an independent Normal-Gamma prior on
the mean and precision of every feature dimension (diagonal precision):

    lambda_j ~ Gamma(a_j, b_j)                (shape-rate)
    mu_j | lambda_j ~ N(m_j, 1 / (kappa_j * lambda_j))
    x_nj | mu_j, lambda_j ~ N(mu_j, 1 / lambda_j)

The class implements the full component contract of `models.base`, so it
can be dropped into `VBMixture` as one cluster.

Example usage:
    >>> comp = NormalGammaComponent(mean_kappa=0.01).initialize(X)
    >>> post = comp.weighted_conjugate_update(comp, X, resp[:, 0])
    >>> ll = post.conjugate_variational_average_log_likelihood(X)
"""

import numpy as np
from scipy.special import digamma, gammaln
from sklearn.utils import check_random_state
from typing import Any, Optional, Tuple

from vb_mixture.models.base import ConjugateComponent, check_weights


LOG_2PI = np.log(2 * np.pi)


class NormalGammaComponent(ConjugateComponent):
    """
    Diagonal Gaussian component with Normal-Gamma conjugate prior.

    Attributes:
        mean: Posterior mean location m, shape (d,).
        kappa: Mean precision scaling kappa, shape (d,).
        shape: Gamma shape a, shape (d,).
        rate: Gamma rate b, shape (d,).
        mean_kappa: Prior kappa used by `initialize`.
        precision_shape: Prior Gamma shape used by `initialize`.
        precision_rate: Prior Gamma rate; None scales it to the data variance.
        prior_mean: Prior mean location; None uses the data mean.
        min_rate: Floor applied to the Gamma rate after blending.

    Example:
        >>> comp = NormalGammaComponent().initialize(X)
        >>> comp.n_dimensions == X.shape[1]
        True
    """

    def __init__(
        self,
        n_dimensions: Optional[int] = None,
        mean_kappa: float = 0.01,
        precision_shape: float = 1.0,
        precision_rate: Optional[float] = None,
        prior_mean: Optional[np.ndarray] = None,
        min_rate: float = 1e-10
    ):
        """
        Initialize an (unseeded) Normal-Gamma component.

        Args:
            n_dimensions: Expected feature dimensionality, or None to take it
                          from the data passed to `initialize`.
            mean_kappa: Prior pseudo-count on the mean (> 0).
            precision_shape: Prior Gamma shape (> 0).
            precision_rate: Prior Gamma rate (> 0). None sets
                            rate = shape * var(x) per dimension.
            prior_mean: Prior mean location. None uses the data mean.
            min_rate: Lower bound on the Gamma rate.

        Raises:
            ValueError: If a prior setting is not positive.
        """
        if mean_kappa <= 0:
            raise ValueError(f"mean_kappa must be > 0, got {mean_kappa}")
        if precision_shape <= 0:
            raise ValueError(f"precision_shape must be > 0, got {precision_shape}")
        if precision_rate is not None and precision_rate <= 0:
            raise ValueError(f"precision_rate must be > 0, got {precision_rate}")

        self._n_dimensions = n_dimensions
        self.mean_kappa = mean_kappa
        self.precision_shape = precision_shape
        self.precision_rate = precision_rate
        self.prior_mean = None if prior_mean is None else np.asarray(prior_mean, dtype=float)
        self.min_rate = min_rate

        self.mean: Optional[np.ndarray] = None
        self.kappa: Optional[np.ndarray] = None
        self.shape: Optional[np.ndarray] = None
        self.rate: Optional[np.ndarray] = None

    @property
    def n_dimensions(self) -> Optional[int]:
        return self._n_dimensions

    @property
    def is_initialized(self) -> bool:
        return self.mean is not None

    @property
    def expected_precision(self) -> np.ndarray:
        """E_q[lambda] per dimension."""
        return self.shape / self.rate

    # =========================================================================
    # Batch Methods
    # =========================================================================

    def initialize(self, x: np.ndarray) -> 'NormalGammaComponent':
        """
        Seed the prior hyperparameters from the data scale.

        Args:
            x: Observations of shape (n_samples, n_dimensions).

        Returns:
            New component whose posterior equals its prior.
        """
        x = np.asarray(x, dtype=float)
        d = x.shape[1]
        if self._n_dimensions is not None and self._n_dimensions != d:
            raise ValueError(
                f"Component expects {self._n_dimensions} dimensions, data has {d}"
            )

        if self.prior_mean is not None:
            mean = np.broadcast_to(self.prior_mean, (d,)).astype(float)
        else:
            mean = x.mean(axis=0) if x.shape[0] > 0 else np.zeros(d)

        shape = np.full(d, float(self.precision_shape))
        if self.precision_rate is not None:
            rate = np.full(d, float(self.precision_rate))
        else:
            var = x.var(axis=0) if x.shape[0] > 1 else np.ones(d)
            var = np.where(var > 0, var, 1.0)
            rate = shape * var

        return self._replace(
            _n_dimensions=d,
            mean=mean,
            kappa=np.full(d, float(self.mean_kappa)),
            shape=shape,
            rate=rate
        )

    def weighted_conjugate_update(
        self,
        prior: 'NormalGammaComponent',
        x: np.ndarray,
        weights: Optional[np.ndarray]
    ) -> 'NormalGammaComponent':
        """
        Exact weighted Normal-Gamma posterior update.

        Uses the centred form of the rate update:
            b' = b0 + 0.5 * S2 + 0.5 * kappa0 * N * (xbar - m0)^2 / kappa'

        Args:
            prior: Component supplying the prior hyperparameters.
            x: Observations of shape (n_samples, d).
            weights: Per-sample weights (None means all ones).

        Returns:
            New posterior component.
        """
        x = np.asarray(x, dtype=float)
        w = check_weights(weights, x.shape[0])

        n_eff = w.sum()
        if n_eff > 0:
            xbar = np.dot(w, x) / n_eff
            scatter = np.dot(w, (x - xbar) ** 2)
        else:
            xbar = np.zeros(prior.mean.shape)
            scatter = np.zeros(prior.mean.shape)

        kappa = prior.kappa + n_eff
        mean = (prior.kappa * prior.mean + n_eff * xbar) / kappa
        shape = prior.shape + 0.5 * n_eff
        rate = (prior.rate + 0.5 * scatter
                + 0.5 * prior.kappa * n_eff * (xbar - prior.mean) ** 2 / kappa)

        return self._replace(
            _n_dimensions=prior.n_dimensions,
            mean=mean,
            kappa=kappa,
            shape=shape,
            rate=rate
        )

    def conjugate_variational_average_log_likelihood(self, x: np.ndarray) -> np.ndarray:
        """
        Expected Gaussian log-likelihood under the Normal-Gamma posterior.

        E[log N(x | mu, 1/lambda)] = 0.5 * (E[log lambda] - log 2pi)
                                     - 0.5 * (E[lambda] (x - m)^2 + 1 / kappa)

        Args:
            x: Observations of shape (n_samples, d).

        Returns:
            Vector of shape (n_samples,).
        """
        x = np.asarray(x, dtype=float)
        e_log_precision = digamma(self.shape) - np.log(self.rate)
        e_precision = self.shape / self.rate

        quad = (x - self.mean) ** 2 * e_precision + 1.0 / self.kappa
        per_dim = 0.5 * (e_log_precision - LOG_2PI) - 0.5 * quad

        return per_dim.sum(axis=1)

    def conjugate_kld(self, prior: 'NormalGammaComponent') -> float:
        """
        KL divergence KL(q_self || q_prior), summed over dimensions.

        Args:
            prior: Reference Normal-Gamma distribution.

        Returns:
            Non-negative scalar.
        """
        a, b = self.shape, self.rate
        a0, b0 = prior.shape, prior.rate

        kl_gamma = ((a - a0) * digamma(a) - gammaln(a) + gammaln(a0)
                    + a0 * (np.log(b) - np.log(b0)) + a * (b0 - b) / b)

        kappa_ratio = prior.kappa / self.kappa
        kl_mean = 0.5 * (kappa_ratio - 1.0 - np.log(kappa_ratio)
                         + prior.kappa * (a / b) * (self.mean - prior.mean) ** 2)

        return float(np.sum(kl_gamma + kl_mean))

    # =========================================================================
    # Online Methods
    # =========================================================================

    def vb_online_initialize(
        self,
        x: np.ndarray,
        random_state: Any = None
    ) -> 'NormalGammaComponent':
        """
        Starting posterior for streaming inference.

        The posterior mean is moved onto a randomly drawn observation so that
        identically initialized components do not stay identical.

        Args:
            x: Observations used for seeding.
            random_state: Seed or RandomState for the draw.

        Returns:
            New component.
        """
        x = np.asarray(x, dtype=float)
        comp = self if self.is_initialized else self.initialize(x)
        if x.shape[0] == 0:
            return comp

        rng = check_random_state(random_state)
        return comp._replace(mean=x[rng.randint(x.shape[0])].copy())

    def vb_online_weighted_update(
        self,
        prior: 'NormalGammaComponent',
        x: np.ndarray,
        weights: Optional[np.ndarray],
        learning_rate: float,
        D: float,
        previous: 'NormalGammaComponent'
    ) -> 'NormalGammaComponent':
        """
        Stochastic VB step in natural-parameter coordinates.

        eta = (1 - rho) * eta_previous + rho * (eta_prior + (D / S) * T(x, w))

        Args:
            prior: Long-run prior component.
            x: Batch of observations, S = x.shape[0] rows.
            weights: Per-sample weights (None means all ones).
            learning_rate: Step size rho in (0, 1].
            D: Effective sample size the batch is scaled to.
            previous: Component to blend from.

        Returns:
            New component.
        """
        x = np.asarray(x, dtype=float)
        w = check_weights(weights, x.shape[0])
        scale = D / x.shape[0] if x.shape[0] > 0 else 0.0

        stats = self._sufficient_statistics(x, w)
        eta_prior = self._to_natural(prior)
        eta_previous = self._to_natural(previous)

        eta = tuple(
            (1.0 - learning_rate) * e_prev + learning_rate * (e_prior + scale * t)
            for e_prev, e_prior, t in zip(eta_previous, eta_prior, stats)
        )
        return self._from_natural(eta, prior.n_dimensions)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _sufficient_statistics(
        x: np.ndarray,
        w: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Weighted statistics matching the natural coordinates below."""
        n_eff = np.full(x.shape[1], w.sum())
        return n_eff, np.dot(w, x), 0.5 * n_eff, 0.5 * np.dot(w, x ** 2)

    @staticmethod
    def _to_natural(comp: 'NormalGammaComponent') -> Tuple[np.ndarray, ...]:
        """(kappa, kappa * m, a, b + 0.5 * kappa * m^2)"""
        return (
            comp.kappa,
            comp.kappa * comp.mean,
            comp.shape,
            comp.rate + 0.5 * comp.kappa * comp.mean ** 2,
        )

    def _from_natural(
        self,
        eta: Tuple[np.ndarray, ...],
        n_dimensions: Optional[int]
    ) -> 'NormalGammaComponent':
        kappa, kappa_mean, shape, rate_plus = eta
        mean = kappa_mean / kappa
        rate = np.maximum(rate_plus - 0.5 * kappa * mean ** 2, self.min_rate)

        return self._replace(
            _n_dimensions=n_dimensions,
            mean=mean,
            kappa=kappa,
            shape=shape,
            rate=rate
        )

    def __repr__(self) -> str:
        return (f"NormalGammaComponent(n_dimensions={self._n_dimensions}, "
                f"mean_kappa={self.mean_kappa}, precision_shape={self.precision_shape})")


# =============================================================================
# Unit Tests
# =============================================================================

def test_normal_gamma_update():
    """Test posterior mean moves to the data mean."""
    print("Testing NormalGammaComponent update...")

    np.random.seed(42)
    X = np.random.randn(500, 2) * 0.5 + np.array([3.0, -1.0])

    prior = NormalGammaComponent().initialize(X)
    post = prior.weighted_conjugate_update(prior, X, None)

    assert np.allclose(post.mean, X.mean(axis=0), atol=1e-3), "Mean should match data"
    assert np.allclose(1.0 / post.expected_precision, X.var(axis=0), rtol=0.1), \
        "Precision should match data variance"

    print("  PASSED")


def test_normal_gamma_kld():
    """Test KLD is zero against itself and positive otherwise."""
    print("Testing NormalGammaComponent KLD...")

    np.random.seed(0)
    X = np.random.randn(100, 3)

    prior = NormalGammaComponent().initialize(X)
    post = prior.weighted_conjugate_update(prior, X, None)

    assert abs(prior.conjugate_kld(prior)) < 1e-10, "KLD with itself should be 0"
    assert post.conjugate_kld(prior) > 0, "KLD should be positive"

    print("  PASSED")


def run_all_tests():
    """Run all unit tests."""
    print("=" * 60)
    print("Running normal_gamma.py unit tests")
    print("=" * 60)

    test_normal_gamma_update()
    test_normal_gamma_kld()

    print("=" * 60)
    print("All tests passed!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()
