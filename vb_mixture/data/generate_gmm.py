"""
Synthetic Mixture Data Generation

Generates observation matrices for exercising the VB mixture engine:
- generate_gmm_data: K diagonal Gaussian clusters
- generate_cluster_data: Gaussian clusters at given centers
- generate_two_class_data: background/target data with one-hot labels
- generate_drifting_stream: mini-batches whose cluster means drift over time

All generators take a seed or RandomState and never touch the global
numpy random state.
"""

import numpy as np
from sklearn.utils import check_random_state
from typing import Any, Dict, List, Optional, Sequence, Tuple


def generate_gmm_data(
    n: int,
    K: int,
    d: int,
    separation: float = 2.0,
    sigma: float = 1.0,
    seed: Any = None
) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
    """
    Generate data from a diagonal Gaussian mixture.

    Args:
        n: Number of samples
        K: Number of mixture components
        d: Number of dimensions
        separation: Minimum distance between component means
        sigma: Standard deviation of every component
        seed: Seed or RandomState

    Returns:
        Tuple of:
        - X: (n, d) array of observations
        - z: (n,) array of true component assignments
        - theta_true: dict with keys 'pi', 'mu', 'sigma'
    """
    rng = check_random_state(seed)

    pi = np.abs(np.ones(K) / K + 0.1 * rng.randn(K))
    pi = pi / pi.sum()

    mu = np.zeros((K, d))
    for k in range(1, K):
        # Rejection sampling for well-separated means
        for _ in range(100):
            candidate = rng.randn(d) * separation * np.sqrt(K)
            if min(np.linalg.norm(candidate - mu[j]) for j in range(k)) > separation:
                break
        mu[k] = candidate
    mu = mu - mu.mean(axis=0)

    sigma_arr = np.full((K, d), sigma ** 2)

    z = rng.choice(K, size=n, p=pi)
    X = mu[z] + rng.randn(n, d) * sigma

    theta_true = {
        'pi': pi,
        'mu': mu,
        'sigma': sigma_arr
    }

    return X, z, theta_true


def generate_cluster_data(
    centers: Sequence[Sequence[float]],
    n: int,
    sigma: float = 0.5,
    seed: Any = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate n samples split evenly across Gaussian clusters at `centers`.

    Args:
        centers: (K, d) cluster centers
        n: Total number of samples
        sigma: Standard deviation of every cluster
        seed: Seed or RandomState

    Returns:
        Tuple of (X, z) with z the true cluster of every row.

    Example:
        >>> X, z = generate_cluster_data([[0, 0], [10, 10]], n=500, sigma=0.5, seed=0)
    """
    rng = check_random_state(seed)
    centers = np.asarray(centers, dtype=float)
    K, d = centers.shape

    z = np.arange(n) % K
    X = centers[z] + sigma * rng.randn(n, d)

    return X, z


def generate_two_class_data(
    n_negative: int,
    n_positive: int,
    d: int = 2,
    offset: float = 4.0,
    seed: Any = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Background (negative) samples around the origin plus target (positive)
    samples shifted by `offset` in every dimension.

    Returns:
        Tuple of:
        - X: (n_negative + n_positive, d) observations, negatives first
        - labels: one-hot (n, 2) matrix, column 0 negative, column 1 positive
    """
    rng = check_random_state(seed)

    X = np.vstack([
        rng.randn(n_negative, d),
        rng.randn(n_positive, d) + offset
    ])

    labels = np.zeros((n_negative + n_positive, 2))
    labels[:n_negative, 0] = 1
    labels[n_negative:, 1] = 1

    return X, labels


def generate_drifting_stream(
    n_batches: int,
    batch_size: int,
    d: int = 1,
    start: float = 0.0,
    drift: float = 0.5,
    sigma: float = 0.3,
    seed: Any = None
) -> Tuple[List[np.ndarray], np.ndarray]:
    """
    Mini-batches from a single cluster whose mean moves by `drift` per batch.

    Args:
        n_batches: Number of mini-batches
        batch_size: Rows per mini-batch
        d: Number of dimensions
        start: Mean of the first batch (every dimension)
        drift: Mean shift between consecutive batches
        sigma: Standard deviation around the moving mean
        seed: Seed or RandomState

    Returns:
        Tuple of:
        - batches: list of (batch_size, d) arrays
        - means: (n_batches, d) true mean of every batch
    """
    rng = check_random_state(seed)

    means = start + drift * np.arange(n_batches)[:, np.newaxis] * np.ones((1, d))
    batches = [m + sigma * rng.randn(batch_size, d) for m in means]

    return batches, means


# ============================================================
# Unit Tests
# ============================================================

def test_generate_gmm_data():
    """Test basic GMM data generation."""
    X, z, theta_true = generate_gmm_data(n=100, K=3, d=2, seed=42)

    assert X.shape == (100, 2), "X shape mismatch"
    assert z.shape == (100,), "z shape mismatch"
    assert theta_true['mu'].shape == (3, 2), "mu shape mismatch"
    assert np.abs(theta_true['pi'].sum() - 1.0) < 1e-10, "pi doesn't sum to 1"

    print("  PASSED")


def test_generate_cluster_data():
    """Test fixed-center generation is balanced and reproducible."""
    X1, z1 = generate_cluster_data([[0, 0], [10, 10]], n=500, seed=3)
    X2, _ = generate_cluster_data([[0, 0], [10, 10]], n=500, seed=3)

    assert X1.shape == (500, 2), f"X shape: {X1.shape}"
    assert np.bincount(z1).tolist() == [250, 250], "Clusters should be balanced"
    assert np.array_equal(X1, X2), "Same seed should give same data"

    print("  PASSED")


def test_generate_drifting_stream():
    """Test drifting stream means."""
    batches, means = generate_drifting_stream(n_batches=5, batch_size=20, drift=1.0, seed=0)

    assert len(batches) == 5, "Batch count mismatch"
    assert np.allclose(means[:, 0], [0, 1, 2, 3, 4]), "Means should drift linearly"

    print("  PASSED")


def run_all_tests():
    """Run all unit tests."""
    print("=" * 60)
    print("Running generate_gmm.py unit tests")
    print("=" * 60)

    print("Testing generate_gmm_data...")
    test_generate_gmm_data()

    print("Testing generate_cluster_data...")
    test_generate_cluster_data()

    print("Testing generate_drifting_stream...")
    test_generate_drifting_stream()

    print("=" * 60)
    print("All tests passed!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()
