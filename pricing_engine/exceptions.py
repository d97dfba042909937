"""
Pricing Engine Exceptions

Error kinds raised at the public boundary of the pricing engine:
- InvalidParameterError: option inputs or configuration out of range
- DimensionMismatchError: grid shapes that do not line up
- InvalidLatticeProbabilityError: CRR risk-neutral probability outside [0, 1]
- NonConvergenceError: implied volatility solver failed to converge
"""

from typing import Any, Optional, Tuple


class PricingError(Exception):
    """Base exception for all pricing engine errors."""

    pass


class InvalidParameterError(PricingError, ValueError):
    """Raised when an input parameter is outside its valid domain."""

    def __init__(self, parameter: str, value: Any, reason: str = "") -> None:
        self.parameter = parameter
        self.value = value
        message = f"Invalid {parameter}: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DimensionMismatchError(PricingError, ValueError):
    """Raised when grid dimensions do not match."""

    def __init__(self, expected: Tuple[int, ...], actual: Tuple[int, ...], operation: str = "") -> None:
        self.expected = expected
        self.actual = actual
        message = f"Dimension mismatch: expected {expected}, got {actual}"
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message)


class InvalidLatticeProbabilityError(PricingError):
    """Raised when the risk-neutral up probability of a lattice leaves [0, 1]."""

    def __init__(self, probability: float, up: float, down: float, growth: float) -> None:
        self.probability = probability
        self.up = up
        self.down = down
        self.growth = growth
        super().__init__(
            f"Risk-neutral probability p={probability:.6f} not in [0, 1] "
            f"(u={up:.6f}, d={down:.6f}, a={growth:.6f}); "
            f"increase volatility or the number of time steps"
        )


class NonConvergenceError(PricingError):
    """Raised when the implied volatility solver does not converge."""

    def __init__(self, result: Optional[Any] = None, message: str = "") -> None:
        self.result = result
        if not message and result is not None:
            message = getattr(result, "message", "")
        super().__init__(message or "Implied volatility did not converge")
