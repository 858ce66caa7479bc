"""RML Private Kernel Bindings (_kernel).

This is a private package that provides the primitive vector/matrix math
routines the matrix layer calls into.

Architecture:
    - BLAS-style functions over 1D column-major float64 buffers
    - Explicit length/stride/offset arguments, results written in place
    - Two interchangeable libraries (native SciPy BLAS, NumPy build-in)

Modules:
    - lib_loader: Library selection and caching
    - native: Level 1/2/3 routines backed by scipy.linalg.blas
    - builtin: The same routines in NumPy
    - lapack: SVD, banded solve and matrix norm drivers

Usage (Internal only):
    >>> from rml.core.config import get_kernel
    >>> blas = get_kernel()
    >>> blas.dscal(n, 2.0, buffer)
"""

from . import lib_loader
from . import lapack
from .lib_loader import load_kernel, available_kernels, LibraryNotFoundError

__all__ = [
    'lib_loader',
    'lapack',
    'load_kernel',
    'available_kernels',
    'LibraryNotFoundError',
]
