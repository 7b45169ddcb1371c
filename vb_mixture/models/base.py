"""
Component Contract for VB Mixture Models

The VB engine talks to its components and to its mixing model only through
the operations declared here. Implementations are free to subclass these
base classes or to provide the same methods by duck typing; the engine
never checks concrete types.

All update operations are pure: they return a new object and leave both
`self` and the `prior`/`previous` arguments untouched.

Example usage:
    >>> comp = NormalGammaComponent().initialize(X)
    >>> post = comp.weighted_conjugate_update(comp, X, np.ones(len(X)))
    >>> kld = post.conjugate_kld(comp)
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Optional

import numpy as np


# Operations the engine calls on every component
COMPONENT_OPERATIONS = (
    'initialize',
    'weighted_conjugate_update',
    'conjugate_variational_average_log_likelihood',
    'conjugate_kld',
    'vb_online_initialize',
    'vb_online_weighted_update',
)

# Operations the engine calls on the mixing model
MIXING_OPERATIONS = (
    'initialize',
    'conjugate_update',
    'weighted_conjugate_update',
    'conjugate_kld',
    'vb_online_initialize',
    'vb_online_weighted_update',
)


class ConjugateComponent(ABC):
    """
    Conjugate exponential-family observation model used as one mixture
    component.

    Subclasses hold their hyperparameters as numpy arrays and implement
    every update by building a new instance (see `_replace`).
    """

    @property
    @abstractmethod
    def n_dimensions(self) -> Optional[int]:
        """Observation dimensionality, or None before `initialize`."""

    @abstractmethod
    def initialize(self, x: np.ndarray) -> 'ConjugateComponent':
        """Seed prior hyperparameters from raw observations."""

    @abstractmethod
    def weighted_conjugate_update(
        self,
        prior: 'ConjugateComponent',
        x: np.ndarray,
        weights: Optional[np.ndarray]
    ) -> 'ConjugateComponent':
        """
        Exact conjugate posterior of `prior` given `x` with per-sample
        non-negative weights (None means all ones).
        """

    @abstractmethod
    def conjugate_variational_average_log_likelihood(self, x: np.ndarray) -> np.ndarray:
        """E_q[log p(x_n | theta)] for every row of `x`."""

    @abstractmethod
    def conjugate_kld(self, prior: 'ConjugateComponent') -> float:
        """KL(q_self || q_prior)."""

    @abstractmethod
    def vb_online_initialize(
        self,
        x: np.ndarray,
        random_state: Any = None
    ) -> 'ConjugateComponent':
        """Starting posterior for streaming inference."""

    @abstractmethod
    def vb_online_weighted_update(
        self,
        prior: 'ConjugateComponent',
        x: np.ndarray,
        weights: Optional[np.ndarray],
        learning_rate: float,
        D: float,
        previous: 'ConjugateComponent'
    ) -> 'ConjugateComponent':
        """
        Stochastic VB step: blend `previous` with the prior updated by the
        batch statistics scaled up to an effective sample size `D`.
        """

    def _replace(self, **params) -> 'ConjugateComponent':
        """Shallow copy of self with the given attributes swapped in."""
        new = copy.copy(self)
        for name, value in params.items():
            setattr(new, name, value)
        return new


class MixingModel(ConjugateComponent):
    """
    Posterior over mixing proportions.

    For the mixing model the `x` passed to `weighted_conjugate_update` and
    `vb_online_weighted_update` is the (n_samples, n_components)
    responsibility matrix; pseudo-counts are its weighted column sums.
    """

    @property
    @abstractmethod
    def expected_log_mean(self) -> np.ndarray:
        """E_q[log pi_k] for every component k."""

    @property
    @abstractmethod
    def posterior_mean(self) -> np.ndarray:
        """E_q[pi]."""

    @abstractmethod
    def conjugate_update(self, prior: 'MixingModel', counts: np.ndarray) -> 'MixingModel':
        """Posterior of `prior` given per-component pseudo-counts."""


def check_weights(weights: Optional[np.ndarray], n_samples: int) -> np.ndarray:
    """
    Validate per-sample weights, returning a float vector of length n_samples.

    Args:
        weights: Weight vector, (n, 1) column, or None for all ones.
        n_samples: Number of rows the weights must match.

    Returns:
        Weights of shape (n_samples,).
    """
    if weights is None:
        return np.ones(n_samples)

    weights = np.asarray(weights, dtype=float).reshape(-1)
    if weights.shape[0] != n_samples:
        raise ValueError(
            f"weights must have {n_samples} entries, got {weights.shape[0]}"
        )
    if np.any(weights < 0):
        raise ValueError("weights must be non-negative")
    return weights
