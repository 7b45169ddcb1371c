"""
Learning-Rate Schedules for Online VB

A schedule maps the mini-batch index t to the step size rho_t used by
`VBMixture.vb_online_update`:
    eta_t = (1 - rho_t) * eta_{t-1} + rho_t * eta_hat_t

- FixedLearningRate: Constant rho
- RobbinsMonroLearningRate: rho_t = (tau + t) ** -kappa, the usual
  stochastic VB schedule (sum rho = inf, sum rho^2 < inf for kappa in (0.5, 1])

Example usage:
    >>> schedule = RobbinsMonroLearningRate(tau=1.0, kappa=0.7)
    >>> for t, batch in enumerate(batches):
    ...     rho = schedule.get_learning_rate(t)
"""

from abc import ABC, abstractmethod
from typing import List, Union


class LearningRateSchedule(ABC):
    """
    Abstract base class for online learning-rate schedules.

    Values lie in (0, 1]. Smaller values weight the history more heavily.
    """

    @abstractmethod
    def get_learning_rate(self, t: int) -> float:
        """
        Learning rate for mini-batch t (0-indexed).
        """

    def get_schedule(self, n_batches: int) -> List[float]:
        return [self.get_learning_rate(t) for t in range(n_batches)]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class FixedLearningRate(LearningRateSchedule):
    """
    Constant learning rate.

    Example:
        >>> FixedLearningRate(0.2).get_learning_rate(50)
        0.2
    """

    def __init__(self, learning_rate: float = 0.1):
        """
        Raises:
            ValueError: If learning_rate is outside (0, 1].
        """
        if not 0 < learning_rate <= 1:
            raise ValueError(f"learning_rate must be in (0, 1], got {learning_rate}")

        self.learning_rate = learning_rate

    def get_learning_rate(self, t: int) -> float:
        return self.learning_rate

    def __repr__(self) -> str:
        return f"FixedLearningRate(learning_rate={self.learning_rate})"


class RobbinsMonroLearningRate(LearningRateSchedule):
    """
    Decaying learning rate rho_t = min(1, (tau + t) ** -kappa).

    Attributes:
        tau: Delay; larger values slow down early iterations.
        kappa: Forgetting rate in (0.5, 1].

    Example:
        >>> schedule = RobbinsMonroLearningRate(tau=1.0, kappa=1.0)
        >>> schedule.get_learning_rate(0)
        1.0
        >>> schedule.get_learning_rate(3)
        0.25
    """

    def __init__(self, tau: float = 1.0, kappa: float = 0.7):
        """
        Raises:
            ValueError: If tau < 0 or kappa outside (0.5, 1].
        """
        if tau < 0:
            raise ValueError(f"tau must be >= 0, got {tau}")
        if not 0.5 < kappa <= 1:
            raise ValueError(f"kappa must be in (0.5, 1], got {kappa}")

        self.tau = tau
        self.kappa = kappa

    def get_learning_rate(self, t: int) -> float:
        base = self.tau + t
        if base <= 1:
            return 1.0
        return base ** -self.kappa

    def __repr__(self) -> str:
        return f"RobbinsMonroLearningRate(tau={self.tau}, kappa={self.kappa})"


def create_schedule(
    learning_rate: Union[float, str, LearningRateSchedule],
    tau: float = 1.0,
    kappa: float = 0.7
) -> LearningRateSchedule:
    """
    Factory for learning-rate schedules.

    Args:
        learning_rate: A schedule (returned unchanged), a float (FixedLearningRate)
                       or one of 'fixed', 'robbins_monro'.
        tau: Delay for the Robbins-Monro schedule.
        kappa: Forgetting rate for the Robbins-Monro schedule.

    Returns:
        LearningRateSchedule instance.

    Example:
        >>> schedule = create_schedule('robbins_monro', kappa=0.9)
        >>> schedule = create_schedule(0.05)
    """
    if isinstance(learning_rate, LearningRateSchedule):
        return learning_rate
    if isinstance(learning_rate, (int, float)):
        return FixedLearningRate(float(learning_rate))

    name = learning_rate.lower()
    if name == 'fixed':
        return FixedLearningRate()
    elif name in ('robbins_monro', 'decaying'):
        return RobbinsMonroLearningRate(tau=tau, kappa=kappa)
    else:
        raise ValueError(f"Unknown learning-rate schedule: {learning_rate}")
