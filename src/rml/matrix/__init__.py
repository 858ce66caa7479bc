"""RML Matrix Module.

In-memory real matrices in several physical storage layouts behind one
logical contract.

Representations:
    - DenseMatrix: column-major buffer with O(1) virtual transpose
    - DiagonalMatrix: diagonal coefficients only (plus ``Unity`` factory)
    - GeneralBandMatrix: compact band storage with O(1) virtual transpose

Storage:
    - BufferHandle: shared 1D float64 buffer with ownership tracking
    - Ownership: OWNED | BORROWED | VIEW

Operations:
    - Operators: ``+``, ``-``, scalar ``*``, matrix ``@``
    - In-place: scale, add_assignment, left/right diagonal scaling
    - Functional: scale, add, subtract, multiply, add_product_assignment

Example:
    >>> from rml.matrix import DenseMatrix, DiagonalMatrix
    >>> a = DenseMatrix.from_rows([[1, 2], [3, 4]])
    >>> d = DiagonalMatrix(2, [2.0, 3.0])
    >>> (d @ a).to_numpy()
    array([[ 2.,  4.],
           [ 9., 12.]])
"""

from ._types import TransposeState, MatrixNormType, Ownership
from ._buffer import BufferHandle
from ._base import (
    MatrixBase,
    TransposableMatrix,
    resolve_norm_type,
    check_addition_input,
    check_multiplication_input,
)
from ._dense import DenseMatrix
from ._diagonal import DiagonalMatrix, Unity
from ._band import GeneralBandMatrix
from ._ops import (
    scale_assignment,
    add_assignment,
    left_multiply_diagonal_assignment,
    right_multiply_diagonal_assignment,
    add_product_assignment,
    scale,
    add,
    subtract,
    multiply,
)

__all__ = [
    # Enums
    'TransposeState',
    'MatrixNormType',
    'Ownership',

    # Storage
    'BufferHandle',

    # Base classes
    'MatrixBase',
    'TransposableMatrix',

    # Representations
    'DenseMatrix',
    'DiagonalMatrix',
    'Unity',
    'GeneralBandMatrix',

    # Validation
    'resolve_norm_type',
    'check_addition_input',
    'check_multiplication_input',

    # Operations
    'scale_assignment',
    'add_assignment',
    'left_multiply_diagonal_assignment',
    'right_multiply_diagonal_assignment',
    'add_product_assignment',
    'scale',
    'add',
    'subtract',
    'multiply',
]
