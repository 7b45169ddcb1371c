"""
Engine Configuration

VBConfig collects every option recognised by the VB mixture engine.
Values are validated on construction.

Example usage:
    >>> config = VBConfig(max_iterations=50, convergence_tolerance=1e-4)
    >>> config = config.replace(verbose_text=True)
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional


INIT_METHODS = ('random', 'kmeans')


@dataclass(frozen=True)
class VBConfig:
    """
    Configuration for VBMixture.

    Attributes:
        max_iterations: Maximum batch VB iterations.
        check_convergence: Whether to test the NFE change each iteration.
        convergence_tolerance: Absolute NFE change below which batch VB
                               is declared converged.
        decrease_tolerance: Allowed NFE decrease, relative to
                            max(1, |previous NFE|), before the run is
                            flagged as a numerical failure. This is a
                            relative slack, not an absolute one; 0 flags
                            any decrease.
        verbose_text: Print progress messages.
        verbose_plot_every_n_iterations: Call the observer on iterations
                                         1, 1+n, 1+2n, ... (0 = never).
        online_learning_rate: Default learning rate for vb_online_update.
        online_forgetting_horizon: Default effective sample size D for
                                   vb_online_update (None = batch size).
        nonstationary_lambda: Learning rate for vb_nonstationary_update.
        nonstationary_d: Effective horizon D for vb_nonstationary_update.
        init_method: Hard-assignment seeding, 'random' or 'kmeans'.
        random_state: Seed or RandomState for initialization.
        n_jobs: Threads used for per-component updates.
    """
    max_iterations: int = 100
    check_convergence: bool = True
    convergence_tolerance: float = 1e-6
    decrease_tolerance: float = 1e-6
    verbose_text: bool = False
    verbose_plot_every_n_iterations: int = 1
    online_learning_rate: float = 0.1
    online_forgetting_horizon: Optional[float] = None
    nonstationary_lambda: float = 0.1
    nonstationary_d: float = 100.0
    init_method: str = 'random'
    random_state: Any = None
    n_jobs: int = 1

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be > 0, got {self.max_iterations}")
        if self.convergence_tolerance <= 0:
            raise ValueError(
                f"convergence_tolerance must be > 0, got {self.convergence_tolerance}"
            )
        if self.decrease_tolerance < 0:
            raise ValueError(
                f"decrease_tolerance must be >= 0, got {self.decrease_tolerance}"
            )
        if self.verbose_plot_every_n_iterations < 0:
            raise ValueError(
                "verbose_plot_every_n_iterations must be >= 0, "
                f"got {self.verbose_plot_every_n_iterations}"
            )
        check_learning_rate(self.online_learning_rate, 'online_learning_rate')
        if self.online_forgetting_horizon is not None:
            check_horizon(self.online_forgetting_horizon, 'online_forgetting_horizon')
        check_learning_rate(self.nonstationary_lambda, 'nonstationary_lambda')
        check_horizon(self.nonstationary_d, 'nonstationary_d')
        if self.init_method not in INIT_METHODS:
            raise ValueError(
                f"init_method must be one of {INIT_METHODS}, got {self.init_method!r}"
            )
        if self.n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {self.n_jobs}")

    def replace(self, **changes) -> 'VBConfig':
        """Return a validated copy with the given fields changed."""
        return dataclasses.replace(self, **changes)


def check_learning_rate(value: float, name: str = 'learning_rate') -> float:
    """Raise ValueError unless value is in (0, 1]."""
    if not 0 < value <= 1:
        raise ValueError(f"{name} must be in (0, 1], got {value}")
    return value


def check_horizon(value: float, name: str = 'D') -> float:
    """Raise ValueError unless value is > 0."""
    if not value > 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value
