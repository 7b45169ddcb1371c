"""
Dirichlet Mixing Model

Posterior over the mixing proportions of a mixture,
q(pi) = Dir(alpha). Pseudo-counts are the column sums of the
responsibility matrix.

Example usage:
    >>> mixing = DirichletMixing(concentration=1.0).initialize(np.zeros((1, 3)))
    >>> post = mixing.conjugate_update(mixing, resp.sum(axis=0))
    >>> post.expected_log_mean
"""

import numpy as np
from scipy.special import digamma, gammaln
from typing import Any, Optional

from vb_mixture.models.base import MixingModel, check_weights


class DirichletMixing(MixingModel):
    """
    Dirichlet posterior over mixing proportions.

    Attributes:
        alpha: Posterior concentration, shape (n_components,).
        concentration: Prior concentration per component used by `initialize`.
    """

    def __init__(
        self,
        n_components: Optional[int] = None,
        concentration: float = 1.0
    ):
        """
        Args:
            n_components: Number of mixture components, or None to take it
                          from the data passed to `initialize`.
            concentration: Symmetric prior concentration (> 0).

        Raises:
            ValueError: If concentration is not positive.
        """
        if concentration <= 0:
            raise ValueError(f"concentration must be > 0, got {concentration}")

        self._n_components = n_components
        self.concentration = concentration
        self.alpha: Optional[np.ndarray] = None

    @property
    def n_dimensions(self) -> Optional[int]:
        return self._n_components

    @property
    def expected_log_mean(self) -> np.ndarray:
        return digamma(self.alpha) - digamma(self.alpha.sum())

    @property
    def posterior_mean(self) -> np.ndarray:
        return self.alpha / self.alpha.sum()

    def initialize(self, x: np.ndarray) -> 'DirichletMixing':
        """
        Seed a symmetric prior with one category per column of `x`.

        Args:
            x: Any array whose last axis has length n_components
               (the engine passes zeros((1, K))).
        """
        n_components = np.asarray(x).shape[-1]
        return self._replace(
            _n_components=n_components,
            alpha=np.full(n_components, float(self.concentration))
        )

    def conjugate_update(self, prior: 'DirichletMixing', counts: np.ndarray) -> 'DirichletMixing':
        counts = np.asarray(counts, dtype=float).reshape(-1)
        return self._replace(
            _n_components=prior.n_dimensions,
            alpha=prior.alpha + counts
        )

    def weighted_conjugate_update(
        self,
        prior: 'DirichletMixing',
        x: np.ndarray,
        weights: Optional[np.ndarray]
    ) -> 'DirichletMixing':
        """
        Posterior given a responsibility matrix `x` and per-sample weights.
        """
        x = np.atleast_2d(np.asarray(x, dtype=float))
        w = check_weights(weights, x.shape[0])
        return self.conjugate_update(prior, np.dot(w, x))

    def conjugate_variational_average_log_likelihood(self, x: np.ndarray) -> np.ndarray:
        """E_q[log p(z_n | pi)] for each one-hot or soft assignment row."""
        x = np.atleast_2d(np.asarray(x, dtype=float))
        return np.dot(x, self.expected_log_mean)

    def conjugate_kld(self, prior: 'DirichletMixing') -> float:
        """KL(Dir(alpha) || Dir(alpha0))."""
        alpha, alpha0 = self.alpha, prior.alpha
        alpha_sum = alpha.sum()

        kld = (gammaln(alpha_sum) - gammaln(alpha).sum()
               - gammaln(alpha0.sum()) + gammaln(alpha0).sum()
               + np.dot(alpha - alpha0, digamma(alpha) - digamma(alpha_sum)))
        return float(kld)

    def vb_online_initialize(self, x: Optional[np.ndarray], random_state: Any = None) -> 'DirichletMixing':
        """The streaming start is the (already initialized) prior itself."""
        if self.alpha is None:
            if x is None:
                raise ValueError("DirichletMixing must be initialized before streaming")
            return self.initialize(x)
        return self._replace(alpha=self.alpha.copy())

    def vb_online_weighted_update(
        self,
        prior: 'DirichletMixing',
        x: np.ndarray,
        weights: Optional[np.ndarray],
        learning_rate: float,
        D: float,
        previous: 'DirichletMixing'
    ) -> 'DirichletMixing':
        """
        alpha = (1 - rho) * alpha_previous + rho * (alpha0 + (D / S) * counts)
        """
        x = np.atleast_2d(np.asarray(x, dtype=float))
        w = check_weights(weights, x.shape[0])
        scale = D / x.shape[0] if x.shape[0] > 0 else 0.0

        alpha = ((1.0 - learning_rate) * previous.alpha
                 + learning_rate * (prior.alpha + scale * np.dot(w, x)))
        return self._replace(_n_components=prior.n_dimensions, alpha=alpha)

    def __repr__(self) -> str:
        return (f"DirichletMixing(n_components={self._n_components}, "
                f"concentration={self.concentration})")
