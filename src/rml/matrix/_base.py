"""
Matrix Base Classes

This module defines the capability contract shared by every matrix
representation, together with the transpose logic shared by the Dense and
General Band representations.

Type Hierarchy:

    MatrixBase (ABC) - logical read contract + operators
    ├── DiagonalMatrix
    └── TransposableMatrix (ABC) - virtual transpose, offset-based reads
        ├── DenseMatrix
        └── GeneralBandMatrix

Design Philosophy:

1. Identical observable behaviour: every representation answers the same
   questions (element, column, row, sub-matrix, trace, norm, symmetry) with
   the same result for the same logical matrix.

2. Physical vs logical: Dense and Band store row/column counts of the
   untransposed buffer; a transpose flag decides how a logical ``(row, col)``
   maps onto the buffer. That mapping, and the swap of the 1-norm and the
   infinity norm under transposition, live in :class:`TransposableMatrix` only.

3. Arithmetic is not virtual: operators delegate to the case tables in
   :mod:`rml.matrix._ops`, keyed on the concrete operand pair.

Example:

    for mat in [dense, dense.T, band, diagonal]:
        print(mat.shape, mat.get_norm(MatrixNormType.ONE_NORM))
"""

import numbers
from abc import ABC, abstractmethod
from typing import Optional, Tuple, TYPE_CHECKING

import numpy as np

from ..core.config import get_symmetry_tolerance
from ..core.error import (
    ArgumentError,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InvalidOperationError,
    InvariantViolationError,
    RML_ERROR_NOT_SQUARE,
)
from ._buffer import BufferHandle
from ._types import MatrixNormType, Ownership, TransposeState

if TYPE_CHECKING:
    from ._dense import DenseMatrix

__all__ = [
    'MatrixBase',
    'TransposableMatrix',
    'resolve_norm_type',
    'check_addition_input',
    'check_multiplication_input',
]


# =============================================================================
# Shared Transpose Rules
# =============================================================================

def resolve_norm_type(norm_type: MatrixNormType, transpose_state: TransposeState) -> MatrixNormType:
    """Norm to evaluate on the physical buffer for a logical ``norm_type``.

    Row sums and column sums trade places under transposition, so the
    1-norm and the infinity norm swap; the largest absolute value and the
    Frobenius norm are invariant.

    Raises:
        InvariantViolationError: For values outside the enumerations.
    """
    if transpose_state is TransposeState.NO_TRANSPOSE:
        if isinstance(norm_type, MatrixNormType):
            return norm_type
    elif transpose_state is TransposeState.TRANSPOSE:
        if norm_type is MatrixNormType.ONE_NORM:
            return MatrixNormType.INFINITY
        if norm_type is MatrixNormType.INFINITY:
            return MatrixNormType.ONE_NORM
        if norm_type in (MatrixNormType.LARGEST_ABSOLUTE_VALUE, MatrixNormType.FROBENIUS):
            return norm_type
    else:
        raise InvariantViolationError(message=f"Unknown transpose state: {transpose_state!r}")
    raise InvariantViolationError(message=f"Unknown norm type: {norm_type!r}")


def check_addition_input(a: 'MatrixBase', b: 'MatrixBase') -> None:
    """Raise if ``a`` and ``b`` cannot be added."""
    if a.shape != b.shape:
        raise DimensionMismatchError(
            message=f"Cannot add matrices of shape {a.shape} and {b.shape}"
        )


def check_multiplication_input(a: 'MatrixBase', b: 'MatrixBase') -> None:
    """Raise if ``a @ b`` is undefined."""
    if a.column_count != b.row_count:
        raise DimensionMismatchError(
            message=f"Cannot multiply matrices of shape {a.shape} and {b.shape}"
        )


# =============================================================================
# Matrix Base
# =============================================================================

class MatrixBase(ABC):
    """
    Abstract base class for all matrix representations.

    Required (subclasses must implement):
        row_count, column_count: logical dimensions
        _get(row, col): unchecked element read
        to_dense, get_column, get_transposed_row
        is_symmetric, get_trace, get_norm
        T, copy, buffer

    Provided:
        shape, is_quadratic, indexing with bounds checks, sub-matrices,
        ownership queries, to_owned, to_numpy, operators
    """

    _buffer: BufferHandle

    # -------------------------------------------------------------------------
    # Dimensions
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def row_count(self) -> int:
        """Number of (logical) rows."""
        ...

    @property
    @abstractmethod
    def column_count(self) -> int:
        """Number of (logical) columns."""
        ...

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.row_count, self.column_count)

    @property
    def is_quadratic(self) -> bool:
        return self.row_count == self.column_count

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    @property
    def buffer(self) -> BufferHandle:
        """Handle of the underlying storage."""
        return self._buffer

    @property
    def data(self) -> np.ndarray:
        """The underlying 1D float64 array (shared, not copied)."""
        return self._buffer.data

    @property
    def ownership(self) -> Ownership:
        return self._buffer.ownership

    @property
    def is_view(self) -> bool:
        return self._buffer.is_view

    def shares_buffer_with(self, other: 'MatrixBase') -> bool:
        return self._buffer.is_shared_with(other._buffer)

    @abstractmethod
    def copy(self) -> 'MatrixBase':
        """Deep copy with OWNED storage (same representation and layout)."""
        ...

    def to_owned(self) -> 'MatrixBase':
        """Return self if storage is owned, otherwise an owned copy.

        An owned matrix is returned as is even when views of it exist.
        """
        if self._buffer.is_owned:
            return self
        return self.copy()

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    @abstractmethod
    def _get(self, row: int, col: int) -> float:
        """Element read without bounds checks."""
        ...

    def _check_index(self, key) -> Tuple[int, int]:
        if not isinstance(key, tuple) or len(key) != 2:
            raise TypeError(f"Matrix indices must be a (row, column) pair, got {key!r}")
        row, col = key
        if not isinstance(row, numbers.Integral) or not isinstance(col, numbers.Integral):
            raise TypeError(f"Matrix indices must be integers, got {key!r}")
        row, col = int(row), int(col)
        if not 0 <= row < self.row_count:
            raise IndexOutOfBoundsError(
                message=f"Row index {row} out of range [0, {self.row_count})"
            )
        if not 0 <= col < self.column_count:
            raise IndexOutOfBoundsError(
                message=f"Column index {col} out of range [0, {self.column_count})"
            )
        return row, col

    def _check_row_index(self, index: int) -> int:
        if not 0 <= index < self.row_count:
            raise IndexOutOfBoundsError(
                message=f"Row index {index} out of range [0, {self.row_count})"
            )
        return int(index)

    def _check_column_index(self, index: int) -> int:
        if not 0 <= index < self.column_count:
            raise IndexOutOfBoundsError(
                message=f"Column index {index} out of range [0, {self.column_count})"
            )
        return int(index)

    def __getitem__(self, key) -> float:
        row, col = self._check_index(key)
        return self._get(row, col)

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------

    @abstractmethod
    def to_dense(self, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        """Dense, untransposed copy of the logical matrix.

        Args:
            out: Optional buffer, used if it holds at least
                ``row_count * column_count`` values.
        """
        ...

    @abstractmethod
    def get_column(self, index: int, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        """Column ``index`` as a new ``row_count x 1`` dense matrix."""
        ...

    @abstractmethod
    def get_transposed_row(self, index: int, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        """Row ``index`` as a new ``column_count x 1`` dense matrix."""
        ...

    def _check_sub_matrix_range(self, start_row: int, end_row: int,
                                start_column: int, end_column: int) -> Tuple[int, int]:
        if not (0 <= start_row <= end_row < self.row_count
                and 0 <= start_column <= end_column < self.column_count):
            raise ArgumentError(
                message=f"Sub-matrix range rows [{start_row}, {end_row}], "
                        f"columns [{start_column}, {end_column}] exceeds shape {self.shape}"
            )
        return end_row - start_row + 1, end_column - start_column + 1

    def get_sub_matrix(self, start_row: int, end_row: int, start_column: int, end_column: int,
                       out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        """Dense copy of the closed range ``[start_row, end_row] x [start_column, end_column]``.

        Raises:
            ArgumentError: If the range is empty or exceeds the logical extents.
        """
        from ._dense import DenseMatrix

        sub_rows, sub_cols = self._check_sub_matrix_range(start_row, end_row, start_column, end_column)
        handle = BufferHandle.for_output(out, sub_rows * sub_cols)
        data = handle.data
        k = 0
        for col in range(start_column, end_column + 1):
            for row in range(start_row, end_row + 1):
                data[k] = self._get(row, col)
                k += 1
        return DenseMatrix._wrap(sub_rows, sub_cols, handle, TransposeState.NO_TRANSPOSE)

    def _resolve_tolerance(self, tolerance: Optional[float]) -> float:
        if tolerance is None:
            return get_symmetry_tolerance()
        return float(tolerance)

    def _require_square(self, operation: str) -> int:
        if not self.is_quadratic:
            raise InvalidOperationError(
                RML_ERROR_NOT_SQUARE,
                f"{operation} requires a square matrix, got shape {self.shape}",
            )
        return self.row_count

    @abstractmethod
    def is_symmetric(self, tolerance: Optional[float] = None) -> bool:
        """Whether ``|a_ij - a_ji| <= tolerance`` for all ``i, j``."""
        ...

    @abstractmethod
    def get_trace(self) -> float:
        """Sum of the diagonal entries.

        Raises:
            InvalidOperationError: If the matrix is not square.
        """
        ...

    @abstractmethod
    def get_norm(self, norm_type: MatrixNormType = MatrixNormType.FROBENIUS) -> float:
        ...

    def to_numpy(self) -> np.ndarray:
        """New 2D array holding the logical matrix."""
        dense = self.to_dense()
        rows, cols = dense.shape
        return dense.data[:rows * cols].reshape((cols, rows)).T.copy()

    # -------------------------------------------------------------------------
    # Transposition
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def T(self) -> 'MatrixBase':
        """Transpose view, O(1), sharing the buffer."""
        ...

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def __add__(self, other):
        if not isinstance(other, MatrixBase):
            return NotImplemented
        from . import _ops
        return _ops.add(self, other)

    def __sub__(self, other):
        if not isinstance(other, MatrixBase):
            return NotImplemented
        from . import _ops
        return _ops.subtract(self, other)

    def __neg__(self):
        from . import _ops
        return _ops.scale(self, -1.0)

    def __mul__(self, other):
        if isinstance(other, MatrixBase):
            raise TypeError("Use the @ operator for matrix products")
        if not isinstance(other, numbers.Real):
            return NotImplemented
        from . import _ops
        return _ops.scale(self, float(other))

    def __rmul__(self, other):
        if not isinstance(other, numbers.Real):
            return NotImplemented
        from . import _ops
        return _ops.scale(self, float(other))

    def __matmul__(self, other):
        if not isinstance(other, MatrixBase):
            return NotImplemented
        from . import _ops
        return _ops.multiply(self, other)


# =============================================================================
# Transposable Matrix
# =============================================================================

class TransposableMatrix(MatrixBase):
    """
    Base class of representations with a virtual transpose flag.

    ``_rows``/``_cols`` always describe the untransposed (physical) buffer.
    Subclasses provide :meth:`_offset`, the storage offset of a *physical*
    cell; element reads and the norm-type swap are derived here once.
    """

    _rows: int
    _cols: int
    _transpose_state: TransposeState

    def _setup(self, rows: int, cols: int, handle: BufferHandle,
               transpose_state: TransposeState) -> None:
        if not isinstance(transpose_state, TransposeState):
            raise ArgumentError(message=f"Invalid transpose state: {transpose_state!r}")
        self._rows = rows
        self._cols = cols
        self._buffer = handle
        self._transpose_state = transpose_state

    @property
    def transpose_state(self) -> TransposeState:
        return self._transpose_state

    @property
    def is_transposed(self) -> bool:
        return self._transpose_state is TransposeState.TRANSPOSE

    @property
    def physical_row_count(self) -> int:
        return self._rows

    @property
    def physical_column_count(self) -> int:
        return self._cols

    @property
    def row_count(self) -> int:
        return self._cols if self.is_transposed else self._rows

    @property
    def column_count(self) -> int:
        return self._rows if self.is_transposed else self._cols

    def physical_index(self, row: int, col: int) -> Tuple[int, int]:
        """Physical ``(i, j)`` of the logical cell ``(row, col)``."""
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            return row, col
        if self._transpose_state is TransposeState.TRANSPOSE:
            return col, row
        raise InvariantViolationError(message=f"Unknown transpose state: {self._transpose_state!r}")

    @abstractmethod
    def _offset(self, i: int, j: int) -> int:
        """Buffer offset of physical cell ``(i, j)``, or -1 if it is not stored."""
        ...

    def _get(self, row: int, col: int) -> float:
        i, j = self.physical_index(row, col)
        offset = self._offset(i, j)
        if offset < 0:
            return 0.0
        return float(self._buffer.data[offset])

    def _physical_norm_type(self, norm_type: MatrixNormType) -> MatrixNormType:
        return resolve_norm_type(norm_type, self._transpose_state)
