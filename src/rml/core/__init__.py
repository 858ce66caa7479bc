"""
RML Core: configuration and error handling shared by the whole package.
"""

from .error import (
    RMLError,
    ArgumentError,
    ArgumentRangeError,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InvalidOperationError,
    InvariantViolationError,
)
from .config import (
    KernelType,
    get_config,
    get_kernel,
    get_kernel_type,
    set_kernel,
    get_symmetry_tolerance,
    set_symmetry_tolerance,
)

__all__ = [
    # Errors
    'RMLError',
    'ArgumentError',
    'ArgumentRangeError',
    'DimensionMismatchError',
    'IndexOutOfBoundsError',
    'InvalidOperationError',
    'InvariantViolationError',
    # Config
    'KernelType',
    'get_config',
    'get_kernel',
    'get_kernel_type',
    'set_kernel',
    'get_symmetry_tolerance',
    'set_symmetry_tolerance',
]
