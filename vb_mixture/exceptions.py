"""
Error Types for VB Mixture Inference

- InputValidationError: bad observations, labels or component collections
- ContractError: a component or mixing model lacks a required operation
- NumericalError: responsibilities or the negative free energy break down
"""


class VBMixtureError(Exception):
    """Base class for all errors raised by vb_mixture."""


class InputValidationError(VBMixtureError, ValueError):
    """Observation matrix, labels or component collection are invalid."""


class ContractError(VBMixtureError, TypeError):
    """A component or mixing model does not implement a required operation."""

    def __init__(self, obj, operation: str):
        self.obj = obj
        self.operation = operation
        super().__init__(
            f"{type(obj).__name__} does not implement required operation "
            f"'{operation}'"
        )


class NumericalError(VBMixtureError, FloatingPointError):
    """Responsibilities could not be normalized or the NFE is not finite."""
