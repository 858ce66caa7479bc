"""
Global configuration for RML.

Provides:
- Primitive library selection (native SciPy BLAS or NumPy build-in)
- Default tolerance for symmetry checks
- Lazy library loading

Environment variables (read once, when the configuration is created):
- ``RML_KERNEL``: ``native`` (default) or ``builtin``
- ``RML_SYMMETRY_TOLERANCE``: default tolerance of ``is_symmetric()``
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from types import ModuleType
from typing import Optional, Union

import numpy as np

from .error import ArgumentError, ArgumentRangeError

logger = logging.getLogger("rml.config")


# =============================================================================
# Kernel Types
# =============================================================================

class KernelType(Enum):
    """Primitive vector/matrix library used by the matrix layer."""
    NATIVE = "native"
    BUILTIN = "builtin"

    @classmethod
    def parse(cls, value: Union["KernelType", str]) -> "KernelType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ArgumentError(
                message=f"Invalid kernel: {value!r}. Must be one of "
                        f"{', '.join(k.value for k in cls)}"
            ) from None


DEFAULT_KERNEL = KernelType.NATIVE
DEFAULT_SYMMETRY_TOLERANCE = float(np.finfo(np.float64).eps)


# =============================================================================
# Global Configuration State
# =============================================================================

class _Config:
    """
    Global configuration singleton.

    Manages the active primitive library and numerical defaults.
    """

    def __init__(self):
        self._kernel_type = self._kernel_from_env()
        self._symmetry_tolerance = self._tolerance_from_env()

    @staticmethod
    def _kernel_from_env() -> KernelType:
        value = os.environ.get('RML_KERNEL')
        if not value:
            return DEFAULT_KERNEL
        try:
            return KernelType.parse(value)
        except ArgumentError:
            logger.warning(
                "Ignoring RML_KERNEL=%r, falling back to the %s primitive library",
                value, DEFAULT_KERNEL.value,
            )
            return DEFAULT_KERNEL

    @staticmethod
    def _tolerance_from_env() -> float:
        value = os.environ.get('RML_SYMMETRY_TOLERANCE')
        if not value:
            return DEFAULT_SYMMETRY_TOLERANCE
        try:
            tolerance = float(value)
        except ValueError:
            tolerance = -1.0
        if not tolerance >= 0.0:
            logger.warning("Ignoring RML_SYMMETRY_TOLERANCE=%r, using machine epsilon", value)
            return DEFAULT_SYMMETRY_TOLERANCE
        return tolerance

    @property
    def kernel_type(self) -> KernelType:
        """Get the active primitive library type."""
        return self._kernel_type

    @kernel_type.setter
    def kernel_type(self, value: Union[KernelType, str]):
        """Set the active primitive library type."""
        value = KernelType.parse(value)
        if value is not self._kernel_type:
            logger.debug("Switching primitive library: %s -> %s",
                         self._kernel_type.value, value.value)
        self._kernel_type = value

    @property
    def symmetry_tolerance(self) -> float:
        """Get the default tolerance of ``is_symmetric()``."""
        return self._symmetry_tolerance

    @symmetry_tolerance.setter
    def symmetry_tolerance(self, value: float):
        """Set the default tolerance of ``is_symmetric()``."""
        value = float(value)
        if not value >= 0.0:
            raise ArgumentRangeError(message=f"Tolerance must be non-negative, got {value}")
        self._symmetry_tolerance = value

    def get_kernel(self, kernel: Optional[Union[KernelType, str]] = None) -> ModuleType:
        """
        Get a primitive library (lazy loaded).

        Args:
            kernel: Library type. If None, uses the configured one.

        Returns:
            Library module (see :mod:`rml._kernel.native`)
        """
        kernel = self._kernel_type if kernel is None else KernelType.parse(kernel)
        from .._kernel.lib_loader import load_kernel
        return load_kernel(kernel.value)

    def reset(self) -> None:
        """Restore defaults (environment variables are read again)."""
        self._kernel_type = self._kernel_from_env()
        self._symmetry_tolerance = self._tolerance_from_env()


# Global singleton
_config = _Config()


# =============================================================================
# Public API
# =============================================================================

def get_config() -> _Config:
    """Get global configuration object."""
    return _config


def get_kernel(kernel: Optional[Union[KernelType, str]] = None) -> ModuleType:
    """Get the active primitive library (or the one named by ``kernel``)."""
    return _config.get_kernel(kernel)


def get_kernel_type() -> KernelType:
    """Get the active primitive library type."""
    return _config.kernel_type


def set_kernel(kernel: Union[KernelType, str]) -> None:
    """
    Select the primitive library used by all subsequent matrix operations.

    Args:
        kernel: KernelType or its name ("native", "builtin")

    Example:
        >>> import rml
        >>> rml.set_kernel("builtin")
    """
    _config.kernel_type = kernel


def get_symmetry_tolerance() -> float:
    """Get the default tolerance of ``is_symmetric()``."""
    return _config.symmetry_tolerance


def set_symmetry_tolerance(tolerance: float) -> None:
    """Set the default tolerance of ``is_symmetric()``."""
    _config.symmetry_tolerance = tolerance


__all__ = [
    'KernelType',
    'DEFAULT_KERNEL',
    'DEFAULT_SYMMETRY_TOLERANCE',
    'get_config',
    'get_kernel',
    'get_kernel_type',
    'set_kernel',
    'get_symmetry_tolerance',
    'set_symmetry_tolerance',
]
