"""
Exception Types.

All failures raised by skyframe derive from SkyframeError and carry the
offending value so batch callers can decide whether to skip or abort.
"""

from typing import Any


class SkyframeError(Exception):
    """Base class for all skyframe errors."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class InvalidCoordinate(SkyframeError, ValueError):
    """Angle or coordinate value outside its domain."""


class InvalidPosition(SkyframeError, ValueError):
    """Non-finite or degenerate position input."""


class ConvergenceFailure(SkyframeError, ArithmeticError):
    """Iterative conversion exceeded its iteration budget."""

    def __init__(self, message: str, value: Any = None, iterations: int = 0):
        super().__init__(message, value)
        self.iterations = iterations


class SingularMatrix(SkyframeError, ArithmeticError):
    """Inverse requested on a (near-)singular Jones matrix."""

    def __init__(self, message: str, value: Any = None, determinant: complex = 0j):
        super().__init__(message, value)
        self.determinant = determinant


class TimeScaleError(SkyframeError, ValueError):
    """Unknown time scale, or epochs in different scales were mixed."""
