"""
Metrics Utilities for VB Mixture Evaluation

Functions for checking the invariants of a VB run and scoring the
recovered clustering.

Example usage:
    >>> is_mono, violations = check_monotonicity(training.iterations.negative_free_energy)
    >>> ok, bad_rows = check_responsibilities(training.component_memberships)
    >>> agreement, mapping = cluster_agreement(z_true, model.predict(X))
"""

import numpy as np
from scipy.optimize import linear_sum_assignment
from typing import Any, Dict, List, Tuple


def check_monotonicity(
    nfe_history: List[float],
    tol: float = 1e-6
) -> Tuple[bool, List[int]]:
    """
    Check if the negative free energy is monotonically non-decreasing.

    Args:
        nfe_history: NFE value at each iteration.
        tol: Decreases smaller than tol are ignored.

    Returns:
        Tuple of:
            - is_monotonic: True if no violations found
            - violations: Indices where the NFE decreased

    Example:
        >>> check_monotonicity([-100.0, -95.0, -96.0, -90.0])
        (False, [2])
    """
    if len(nfe_history) < 2:
        return True, []

    history = np.asarray(nfe_history, dtype=float)
    violations = [i for i in range(1, len(history)) if history[i] < history[i - 1] - tol]

    return len(violations) == 0, violations


def check_responsibilities(
    memberships: np.ndarray,
    atol: float = 1e-9
) -> Tuple[bool, List[int]]:
    """
    Check every responsibility row is a probability distribution.

    Args:
        memberships: (n_samples, n_components) responsibility matrix.
        atol: Tolerance on the row sums.

    Returns:
        Tuple of (all rows valid, indices of invalid rows).
    """
    memberships = np.asarray(memberships, dtype=float)
    row_ok = (np.abs(memberships.sum(axis=1) - 1.0) <= atol) & np.all(memberships >= 0, axis=1)
    return bool(row_ok.all()), np.flatnonzero(~row_ok).tolist()


def cluster_agreement(
    true_labels: np.ndarray,
    predicted_labels: np.ndarray
) -> Tuple[float, Dict[int, int]]:
    """
    Fraction of samples whose predicted component matches the true cluster
    under the best one-to-one relabeling (Hungarian assignment).

    Args:
        true_labels: (n,) integer ground-truth clusters.
        predicted_labels: (n,) integer predicted components.

    Returns:
        Tuple of (agreement in [0, 1], mapping true cluster -> component).

    Raises:
        ValueError: If the label vectors differ in length.
    """
    true_labels = np.asarray(true_labels, dtype=int)
    predicted_labels = np.asarray(predicted_labels, dtype=int)
    if true_labels.shape != predicted_labels.shape:
        raise ValueError(
            f"Label vectors differ in shape: {true_labels.shape} vs {predicted_labels.shape}"
        )
    if true_labels.size == 0:
        return 1.0, {}

    n_true = true_labels.max() + 1
    n_pred = predicted_labels.max() + 1
    confusion = np.zeros((n_true, n_pred))
    np.add.at(confusion, (true_labels, predicted_labels), 1)

    rows, cols = linear_sum_assignment(-confusion)
    agreement = confusion[rows, cols].sum() / true_labels.size

    return float(agreement), {int(r): int(c) for r, c in zip(rows, cols)}


def per_cluster_recall(
    true_labels: np.ndarray,
    predicted_labels: np.ndarray
) -> np.ndarray:
    """
    For each true cluster, the fraction of its samples assigned to the
    component it is matched with by `cluster_agreement`.
    """
    true_labels = np.asarray(true_labels, dtype=int)
    predicted_labels = np.asarray(predicted_labels, dtype=int)
    _, mapping = cluster_agreement(true_labels, predicted_labels)

    recall = np.zeros(true_labels.max() + 1)
    for k in range(recall.size):
        mask = true_labels == k
        if mask.any() and k in mapping:
            recall[k] = np.mean(predicted_labels[mask] == mapping[k])
    return recall


def summarize_runs(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Aggregate statistics over logged run records.

    Args:
        results: Records as produced by TrainingState.to_dict().

    Returns:
        Dictionary with n_runs, convergence/error rates and mean/std of
        iterations, elapsed time and final NFE.
    """
    if not results:
        return {'n_runs': 0}

    def stats(key):
        values = np.array([r[key] for r in results if r.get(key) is not None], dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0:
            return None, None
        return float(values.mean()), float(values.std())

    mean_iter, std_iter = stats('n_iterations')
    mean_time, std_time = stats('elapsed_seconds')
    mean_nfe, std_nfe = stats('negative_free_energy')

    return {
        'n_runs': len(results),
        'converged_rate': float(np.mean([bool(r.get('converged')) for r in results])),
        'error_rate': float(np.mean([bool(r.get('err')) for r in results])),
        'mean_iterations': mean_iter,
        'std_iterations': std_iter,
        'mean_time': mean_time,
        'std_time': std_time,
        'mean_final_nfe': mean_nfe,
        'std_final_nfe': std_nfe,
    }
