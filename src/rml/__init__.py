"""
RML - Real Matrix Library

In-memory real-valued matrices in several storage layouts with:
- Dense column-major, diagonal and general band representations
- O(1) virtual transposition sharing the underlying buffer
- Cross-representation arithmetic (scale, add, multiply)
- BLAS/LAPACK primitives from SciPy, or a pure NumPy build-in kernel

Modules:
- matrix: Matrix representations and arithmetic
- core: Configuration and error handling

Architecture:
    ┌──────────────────────────────────────────────┐
    │  DenseMatrix / DiagonalMatrix / BandMatrix   │
    ├──────────────────────────────────────────────┤
    │  Transpose: NO_TRANSPOSE | TRANSPOSE         │
    │  Ownership: OWNED | BORROWED | VIEW          │
    ├──────────────────────────────────────────────┤
    │  Kernel: NATIVE (scipy BLAS) | BUILTIN       │
    └──────────────────────────────────────────────┘

Example:
    >>> import rml
    >>> from rml import DenseMatrix, GeneralBandMatrix
    >>>
    >>> a = DenseMatrix.from_rows([[1, 2], [3, 4]])
    >>> a.get_trace()
    5.0
    >>>
    >>> # Transposition is a view, not a copy
    >>> a.T[0, 1]
    3.0
    >>>
    >>> # Tridiagonal matrix in band storage
    >>> band = GeneralBandMatrix.from_dense_rows(
    ...     [[2, -1, 0], [-1, 2, -1], [0, -1, 2]], 1, 1)
    >>> (band @ band).sub_diagonal_count
    2
"""

__version__ = '0.1.0'

from . import core
from . import matrix

from .core import (
    # Errors
    RMLError,
    ArgumentError,
    ArgumentRangeError,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InvalidOperationError,
    InvariantViolationError,

    # Config
    KernelType,
    get_config,
    get_kernel,
    get_kernel_type,
    set_kernel,
    get_symmetry_tolerance,
    set_symmetry_tolerance,
)

from .matrix import (
    TransposeState,
    MatrixNormType,
    Ownership,
    MatrixBase,
    DenseMatrix,
    DiagonalMatrix,
    Unity,
    GeneralBandMatrix,
    add,
    subtract,
    multiply,
    scale,
)

__all__ = [
    '__version__',
    'core',
    'matrix',

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

    # Matrices
    'TransposeState',
    'MatrixNormType',
    'Ownership',
    'MatrixBase',
    'DenseMatrix',
    'DiagonalMatrix',
    'Unity',
    'GeneralBandMatrix',

    # Operations
    'add',
    'subtract',
    'multiply',
    'scale',
]
