"""
Error handling for RML.

Every failure raised by the library is an :class:`RMLError` carrying a
numeric error code. The concrete subclasses also derive from the matching
builtin exception so callers may catch either.
"""

from __future__ import annotations

import operator
from typing import Optional


# =============================================================================
# Error Codes
# =============================================================================

# General errors (1-9)
RML_ERROR_INVARIANT_VIOLATION = 3

# Argument errors (10-19)
RML_ERROR_INVALID_ARGUMENT = 10
RML_ERROR_DIMENSION_MISMATCH = 11
RML_ERROR_RANGE_ERROR = 13
RML_ERROR_INDEX_OUT_OF_BOUNDS = 14
RML_ERROR_BUFFER_TOO_SMALL = 15

# Operation errors (20-29)
RML_ERROR_INVALID_OPERATION = 20
RML_ERROR_NOT_SQUARE = 21

# Numerical errors (50-59)
RML_ERROR_SINGULAR_MATRIX = 51


# Error code to message mapping
_ERROR_MESSAGES = {
    RML_ERROR_INVARIANT_VIOLATION: "Invariant violation",
    RML_ERROR_INVALID_ARGUMENT: "Invalid argument",
    RML_ERROR_DIMENSION_MISMATCH: "Dimension mismatch",
    RML_ERROR_RANGE_ERROR: "Argument out of range",
    RML_ERROR_INDEX_OUT_OF_BOUNDS: "Index out of bounds",
    RML_ERROR_BUFFER_TOO_SMALL: "Buffer too small",
    RML_ERROR_INVALID_OPERATION: "Invalid operation",
    RML_ERROR_NOT_SQUARE: "Matrix is not square",
    RML_ERROR_SINGULAR_MATRIX: "Singular matrix",
}


# =============================================================================
# Exception Classes
# =============================================================================

class RMLError(Exception):
    """
    Base exception for all RML errors.
    """

    default_code = RML_ERROR_INVALID_OPERATION

    def __init__(self, code: Optional[int] = None, message: Optional[str] = None):
        """
        Create RML exception.

        Args:
            code: Error code (the class default if omitted)
            message: Optional detailed message (looked up from the code if not provided)
        """
        if code is None:
            code = self.default_code
        self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(code, f"Unknown error (code={code})")
        self.message = message
        super().__init__(f"RML Error {code}: {message}")

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "RMLError":
        """Create exception from error code with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        exc_type = _CODE_TO_EXCEPTION.get(code, cls) if cls is RMLError else cls
        return exc_type(code, msg)

    def __reduce__(self):
        return (type(self), (self.code, self.message))


class ArgumentError(RMLError, ValueError):
    """Invalid argument: bad buffer, bad sub-matrix range, bad operand layout."""
    default_code = RML_ERROR_INVALID_ARGUMENT


class ArgumentRangeError(ArgumentError):
    """Argument outside its admissible range (e.g. a non-positive dimension)."""
    default_code = RML_ERROR_RANGE_ERROR


class DimensionMismatchError(ArgumentError):
    """Operand shapes are incompatible for the requested operation."""
    default_code = RML_ERROR_DIMENSION_MISMATCH


class IndexOutOfBoundsError(RMLError, IndexError):
    """Element, row or column index outside the logical extents."""
    default_code = RML_ERROR_INDEX_OUT_OF_BOUNDS


class InvalidOperationError(RMLError, RuntimeError):
    """Operation precondition not met (e.g. trace of a non-square matrix)."""
    default_code = RML_ERROR_INVALID_OPERATION


class InvariantViolationError(RMLError, AssertionError):
    """An internal switch reached an arm that should be unreachable."""
    default_code = RML_ERROR_INVARIANT_VIOLATION


_CODE_TO_EXCEPTION = {
    RML_ERROR_INVALID_ARGUMENT: ArgumentError,
    RML_ERROR_BUFFER_TOO_SMALL: ArgumentError,
    RML_ERROR_RANGE_ERROR: ArgumentRangeError,
    RML_ERROR_DIMENSION_MISMATCH: DimensionMismatchError,
    RML_ERROR_INDEX_OUT_OF_BOUNDS: IndexOutOfBoundsError,
    RML_ERROR_INVALID_OPERATION: InvalidOperationError,
    RML_ERROR_NOT_SQUARE: InvalidOperationError,
    RML_ERROR_SINGULAR_MATRIX: InvalidOperationError,
    RML_ERROR_INVARIANT_VIOLATION: InvariantViolationError,
}


# =============================================================================
# Validation
# =============================================================================

def _as_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise ArgumentError(RML_ERROR_INVALID_ARGUMENT, f"{name} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        raise ArgumentError(RML_ERROR_INVALID_ARGUMENT, f"{name} must be an integer, got {value!r}") from None


def check_positive(value: int, name: str) -> int:
    """Validate a dimension-like integer argument (``>= 1``)."""
    value = _as_int(value, name)
    if value < 1:
        raise ArgumentRangeError(RML_ERROR_RANGE_ERROR, f"{name} must be positive, got {value}")
    return value


def check_non_negative(value: int, name: str) -> int:
    """Validate a count-like integer argument (``>= 0``)."""
    value = _as_int(value, name)
    if value < 0:
        raise ArgumentRangeError(RML_ERROR_RANGE_ERROR, f"{name} must be non-negative, got {value}")
    return value


__all__ = [
    'RMLError',
    'ArgumentError',
    'ArgumentRangeError',
    'DimensionMismatchError',
    'IndexOutOfBoundsError',
    'InvalidOperationError',
    'InvariantViolationError',
    'check_positive',
    'check_non_negative',
    # Error codes
    'RML_ERROR_INVARIANT_VIOLATION',
    'RML_ERROR_INVALID_ARGUMENT',
    'RML_ERROR_DIMENSION_MISMATCH',
    'RML_ERROR_RANGE_ERROR',
    'RML_ERROR_INDEX_OUT_OF_BOUNDS',
    'RML_ERROR_BUFFER_TOO_SMALL',
    'RML_ERROR_INVALID_OPERATION',
    'RML_ERROR_NOT_SQUARE',
    'RML_ERROR_SINGULAR_MATRIX',
]
