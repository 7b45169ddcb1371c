"""
Training State for VB Mixture Inference

TrainingState is the record accumulated across VB iterations: the
responsibility matrix, per-sample log-likelihood terms, the negative free
energy (NFE) history and run bookkeeping. Observers and loggers receive
read-only snapshots of it.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass
class IterationHistory:
    """Per-iteration objective values."""
    negative_free_energy: List[float] = field(default_factory=list)
    e_log_likelihood: List[float] = field(default_factory=list)
    kld: List[float] = field(default_factory=list)

    def append(self, nfe: float, e_log_likelihood: float, kld: float) -> None:
        self.negative_free_energy.append(float(nfe))
        self.e_log_likelihood.append(float(e_log_likelihood))
        self.kld.append(float(kld))

    def __len__(self) -> int:
        return len(self.negative_free_energy)


@dataclass
class KldDetails:
    """Breakdown of the KLD term of the most recent NFE."""
    sources: np.ndarray
    mixing: float
    entropy: float


@dataclass
class TrainingState:
    """
    Mutable record of a VB run.

    Attributes:
        component_memberships: Responsibilities, shape (n_samples, n_components).
        variational_cluster_log_likelihoods: Expected component log-likelihoods.
        variational_log_likelihood_by_sample: Unnormalized log-responsibilities.
        n_samples_per_component: Column sums of the (weighted) responsibilities.
        negative_free_energy: NFE of the latest iteration.
        previous_negative_free_energy: NFE of the iteration before.
        iterations: Per-iteration NFE / expected log-likelihood / KLD.
        kld_details: KLD breakdown of the latest NFE.
        n_iterations: Iterations completed.
        start_time: Wall-clock start.
        end_time: Wall-clock end (None while running).
        converged: Whether the NFE change fell below tolerance.
        err: Whether the run stopped on a numerical failure.
        stopping_reason: 'running', 'converged', 'max_iterations',
                         'numerical_error' or 'nfe_decrease'.
        elapsed_seconds: Run time measured by the resource monitor.
        peak_memory_mb: Peak resident memory during the run.
    """
    component_memberships: Optional[np.ndarray] = None
    variational_cluster_log_likelihoods: Optional[np.ndarray] = None
    variational_log_likelihood_by_sample: Optional[np.ndarray] = None
    n_samples_per_component: Optional[np.ndarray] = None
    negative_free_energy: float = -np.inf
    previous_negative_free_energy: float = -np.inf
    iterations: IterationHistory = field(default_factory=IterationHistory)
    kld_details: Optional[KldDetails] = None
    n_iterations: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    converged: bool = False
    err: bool = False
    stopping_reason: str = 'running'
    elapsed_seconds: float = 0.0
    peak_memory_mb: float = 0.0

    def record_iteration(
        self,
        iteration: int,
        nfe: float,
        e_log_likelihood: float,
        kld: float
    ) -> None:
        """Shift the NFE pair and append to the history."""
        self.previous_negative_free_energy = self.negative_free_energy
        self.negative_free_energy = float(nfe)
        self.iterations.append(nfe, e_log_likelihood, kld)
        self.n_iterations = iteration

    def finish(self, stopping_reason: str, resource_stats: Optional[Dict[str, float]] = None) -> None:
        """Stamp the end of the run."""
        self.stopping_reason = stopping_reason
        self.end_time = datetime.now()
        if resource_stats is not None:
            self.elapsed_seconds = resource_stats['elapsed_time']
            self.peak_memory_mb = resource_stats['peak_memory_mb']

    def snapshot(self) -> 'TrainingState':
        """Deep copy with read-only arrays, for observers."""
        snap = copy.deepcopy(self)
        for name in ('component_memberships',
                     'variational_cluster_log_likelihoods',
                     'variational_log_likelihood_by_sample',
                     'n_samples_per_component'):
            value = getattr(snap, name)
            if isinstance(value, np.ndarray):
                value.setflags(write=False)
        return snap

    def to_dict(self, include_memberships: bool = False) -> Dict[str, Any]:
        """
        JSON-friendly summary of the run.

        Args:
            include_memberships: Also include the responsibility matrix.
        """
        result = {
            'n_iterations': self.n_iterations,
            'converged': self.converged,
            'err': self.err,
            'stopping_reason': self.stopping_reason,
            'negative_free_energy': self.negative_free_energy,
            'nfe_history': list(self.iterations.negative_free_energy),
            'e_log_likelihood_history': list(self.iterations.e_log_likelihood),
            'kld_history': list(self.iterations.kld),
            'n_samples_per_component': self.n_samples_per_component,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'elapsed_seconds': self.elapsed_seconds,
            'peak_memory_mb': self.peak_memory_mb,
        }
        if include_memberships:
            result['component_memberships'] = self.component_memberships
        return result
