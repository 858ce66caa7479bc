"""Primitive library loader for the RML matrix layer.

Two interchangeable primitive libraries exist:

    - ``native``: BLAS routines shipped with SciPy (:mod:`rml._kernel.native`)
    - ``builtin``: pure NumPy strided slicing (:mod:`rml._kernel.builtin`)

Libraries are imported lazily on first use and cached.
"""

import importlib
import logging
from types import ModuleType
from typing import Dict

__all__ = ['load_kernel', 'available_kernels', 'LibraryNotFoundError']

logger = logging.getLogger("rml.kernel")

_KERNEL_MODULES = {
    'native': 'rml._kernel.native',
    'builtin': 'rml._kernel.builtin',
}

# Global library cache
_lib_cache: Dict[str, ModuleType] = {}


class LibraryNotFoundError(Exception):
    """Raised when a primitive library cannot be found or loaded."""
    pass


def available_kernels():
    """Names of the primitive libraries that can be requested."""
    return tuple(_KERNEL_MODULES)


def load_kernel(name: str) -> ModuleType:
    """Get a primitive library with lazy initialization.

    Args:
        name: Library name ('native' or 'builtin').

    Returns:
        The library module; all libraries expose the same functions.

    Raises:
        LibraryNotFoundError: If the name is unknown or the import fails.

    Example:
        >>> blas = load_kernel('native')
        >>> blas.ddot(3, x, y)
    """
    if name in _lib_cache:
        return _lib_cache[name]

    module_name = _KERNEL_MODULES.get(name)
    if module_name is None:
        raise LibraryNotFoundError(
            f"Unknown primitive library: {name!r}. "
            f"Available: {', '.join(_KERNEL_MODULES)}"
        )

    try:
        lib = importlib.import_module(module_name)
    except ImportError as e:
        raise LibraryNotFoundError(f"Failed to load primitive library {name!r}: {e}")

    logger.debug("Loaded primitive library %r from %s", name, module_name)
    _lib_cache[name] = lib
    return lib
