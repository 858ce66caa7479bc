"""Enumerations shared by all matrix representations.

Transpose State:
    - NO_TRANSPOSE: logical matrix equals the physical buffer layout
    - TRANSPOSE: logical matrix is the transpose of the physical buffer

Norm Types:
    - LARGEST_ABSOLUTE_VALUE: max |a_ij|
    - ONE_NORM: maximum absolute column sum
    - INFINITY: maximum absolute row sum
    - FROBENIUS: square root of the sum of squares

Ownership:
    - OWNED: the matrix allocated its buffer
    - BORROWED: the buffer was supplied by the caller
    - VIEW: the buffer is shared with another matrix (e.g. a transpose view)
"""

from enum import Enum

__all__ = [
    'TransposeState',
    'MatrixNormType',
    'Ownership',
]


# =============================================================================
# Enumerations
# =============================================================================

class TransposeState(Enum):
    """Virtual transpose flag of Dense and Band matrices.

    The physical row/column counts of a matrix always describe the
    untransposed buffer; the flag tells how to read it.

    Example:
        >>> TransposeState.NO_TRANSPOSE.flip()
        <TransposeState.TRANSPOSE: 't'>
    """
    NO_TRANSPOSE = 'n'
    TRANSPOSE = 't'

    @property
    def is_transposed(self) -> bool:
        return self is TransposeState.TRANSPOSE

    def flip(self) -> 'TransposeState':
        """The state of the transpose view."""
        if self is TransposeState.NO_TRANSPOSE:
            return TransposeState.TRANSPOSE
        return TransposeState.NO_TRANSPOSE


class MatrixNormType(Enum):
    """Matrix norm selector.

    Values are the LAPACK norm characters used by ``dlange``/``dlangb``.
    """
    LARGEST_ABSOLUTE_VALUE = 'M'
    ONE_NORM = '1'
    INFINITY = 'I'
    FROBENIUS = 'F'

    @property
    def lapack_char(self) -> str:
        return self.value


class Ownership(Enum):
    """Buffer ownership model.

    Attributes:
        OWNED: Matrix owns its buffer.
               Created by: constructors without a buffer, copy(), to_dense()

        BORROWED: Matrix uses a caller-supplied float64 array in place.
                  Writes through the matrix are visible to the caller.

        VIEW: Matrix shares the buffer of another matrix.
              Created by: .T, in-place operators returning views

    Memory Safety:
        - OWNED: the buffer was allocated here. Views taken from the matrix
          (``.T``) still share it, so OWNED does not rule out aliasing.
        - BORROWED / VIEW: mutations are visible through every holder;
          call ``to_owned()`` before handing the matrix elsewhere
    """
    OWNED = 'owned'
    BORROWED = 'borrowed'
    VIEW = 'view'
