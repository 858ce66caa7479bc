"""Dense Matrix Representation.

A dense matrix stores all ``rows * cols`` entries column-major in a 1D
float64 buffer: entry ``(i, j)`` of the physical matrix lives at
``data[i + rows * j]``. The ``T`` property returns an O(1) view that shares
the buffer and flips the transpose flag.

Example:
    >>> a = DenseMatrix.from_rows([[1, 2], [3, 4]])
    >>> a[0, 1]
    2.0
    >>> a.T[0, 1]
    3.0
    >>> a.get_trace()
    5.0
"""

import logging
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.config import get_kernel
from ..core.error import ArgumentError, DimensionMismatchError, check_positive
from .._kernel import lapack
from ._base import TransposableMatrix
from ._buffer import BufferHandle, product_target
from ._types import MatrixNormType, TransposeState

__all__ = ['DenseMatrix']

logger = logging.getLogger("rml.matrix")


class DenseMatrix(TransposableMatrix):
    """Column-major dense matrix with a virtual transpose.

    Args:
        row_count: Rows of the physical (untransposed) buffer.
        column_count: Columns of the physical buffer.
        data: Optional column-major values (at least ``row_count * column_count``).
            A contiguous 1D float64 array is used in place (BORROWED) unless
            ``copy`` is set; anything else is converted into owned storage.
            If omitted, the matrix is zero-filled.
        transpose_state: How the buffer is read; with ``TRANSPOSE`` the
            logical shape is ``(column_count, row_count)``.
        copy: Force a deep copy of ``data``.

    Raises:
        ArgumentRangeError: If a dimension is not positive.
        ArgumentError: If ``data`` is not one-dimensional or too short.
    """

    def __init__(self, row_count: int, column_count: int, data: Any = None,
                 transpose_state: TransposeState = TransposeState.NO_TRANSPOSE,
                 copy: bool = False):
        rows = check_positive(row_count, 'row_count')
        cols = check_positive(column_count, 'column_count')
        if data is None:
            handle = BufferHandle.allocate(rows * cols)
        else:
            handle = BufferHandle.from_values(data, rows * cols, copy=copy)
        self._setup(rows, cols, handle, transpose_state)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def _wrap(cls, rows: int, cols: int, handle: BufferHandle,
              transpose_state: TransposeState) -> 'DenseMatrix':
        """Build around an existing handle without validation."""
        obj = cls.__new__(cls)
        obj._setup(rows, cols, handle, transpose_state)
        return obj

    @classmethod
    def from_rows(cls, rows: Union[Sequence[Sequence[float]], np.ndarray]) -> 'DenseMatrix':
        """Create from a row-major 2D layout (nested lists or 2D array).

        Example:
            >>> DenseMatrix.from_rows([[1, 2, 3], [4, 5, 6]]).shape
            (2, 3)
        """
        try:
            array = np.asarray(rows, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ArgumentError(message=f"Rows must form a rectangular 2D layout: {e}") from None
        if array.ndim != 2:
            raise ArgumentError(message=f"Rows must form a 2D layout, got ndim={array.ndim}")
        row_count, column_count = array.shape
        return cls(row_count, column_count, array.ravel(order='F'), copy=True)

    @classmethod
    def zeros(cls, row_count: int, column_count: int) -> 'DenseMatrix':
        return cls(row_count, column_count)

    def copy(self) -> 'DenseMatrix':
        size = self._rows * self._cols
        return DenseMatrix._wrap(self._rows, self._cols, self._buffer.clone(size), self._transpose_state)

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _offset(self, i: int, j: int) -> int:
        return i + self._rows * j

    def __setitem__(self, key, value: float) -> None:
        row, col = self._check_index(key)
        i, j = self.physical_index(row, col)
        self._buffer.data[self._offset(i, j)] = float(value)

    @property
    def T(self) -> 'DenseMatrix':
        return DenseMatrix._wrap(self._rows, self._cols, self._buffer.share(),
                                 self._transpose_state.flip())

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------

    def to_dense(self, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        blas = get_kernel()
        rows, cols = self._rows, self._cols
        handle = BufferHandle.for_output(out, rows * cols)

        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            blas.dcopy(rows * cols, self._buffer.data, handle.data)
            return DenseMatrix._wrap(rows, cols, handle, TransposeState.NO_TRANSPOSE)

        # logical column k is physical row k
        for k in range(rows):
            blas.dcopy(cols, self._buffer.data, handle.data, incx=rows, incy=1, offx=k, offy=k * cols)
        return DenseMatrix._wrap(cols, rows, handle, TransposeState.NO_TRANSPOSE)

    def get_column(self, index: int, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        index = self._check_column_index(index)
        blas = get_kernel()
        row_count = self.row_count
        handle = BufferHandle.for_output(out, row_count)

        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            blas.dcopy(row_count, self._buffer.data, handle.data, offx=self._rows * index)
        else:
            blas.dcopy(row_count, self._buffer.data, handle.data, incx=self._rows, offx=index)
        return DenseMatrix._wrap(row_count, 1, handle, TransposeState.NO_TRANSPOSE)

    def get_transposed_row(self, index: int, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        index = self._check_row_index(index)
        blas = get_kernel()
        column_count = self.column_count
        handle = BufferHandle.for_output(out, column_count)

        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            blas.dcopy(column_count, self._buffer.data, handle.data, incx=self._rows, offx=index)
        else:
            blas.dcopy(column_count, self._buffer.data, handle.data, offx=self._rows * index)
        return DenseMatrix._wrap(column_count, 1, handle, TransposeState.NO_TRANSPOSE)

    def get_sub_matrix(self, start_row: int, end_row: int, start_column: int, end_column: int,
                       out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        sub_rows, sub_cols = self._check_sub_matrix_range(start_row, end_row, start_column, end_column)
        blas = get_kernel()
        rows = self._rows
        handle = BufferHandle.for_output(out, sub_rows * sub_cols)

        for k in range(sub_cols):
            col = start_column + k
            if self._transpose_state is TransposeState.NO_TRANSPOSE:
                blas.dcopy(sub_rows, self._buffer.data, handle.data,
                           offx=start_row + rows * col, offy=k * sub_rows)
            else:
                blas.dcopy(sub_rows, self._buffer.data, handle.data, incx=rows,
                           offx=col + rows * start_row, offy=k * sub_rows)
        return DenseMatrix._wrap(sub_rows, sub_cols, handle, TransposeState.NO_TRANSPOSE)

    def is_symmetric(self, tolerance: Optional[float] = None) -> bool:
        if not self.is_quadratic:
            return False
        tolerance = self._resolve_tolerance(tolerance)
        n = self._rows
        data = self._buffer.data
        for j in range(1, n):
            upper = data[n * j:n * j + j]        # (k, j), k < j
            lower = data[j:j + n * j:n]          # (j, k), k < j
            if np.any(np.abs(upper - lower) > tolerance):
                return False
        return True

    def get_trace(self) -> float:
        n = self._require_square("Trace")
        return float(np.sum(self._buffer.data[:n * n:n + 1]))

    def get_norm(self, norm_type: MatrixNormType = MatrixNormType.FROBENIUS) -> float:
        physical = self._physical_norm_type(norm_type)
        return lapack.dlange(physical.lapack_char, self._rows, self._cols, self._buffer.data)

    def to_numpy(self) -> np.ndarray:
        array = self._buffer.data[:self._rows * self._cols].reshape((self._cols, self._rows)).T
        if self.is_transposed:
            array = array.T
        return array.copy()

    # -------------------------------------------------------------------------
    # Layout Changes and Decompositions
    # -------------------------------------------------------------------------

    def transpose_in_place(self) -> 'DenseMatrix':
        """Physically transpose the buffer, swap the stored counts and clear the flag.

        For a transpose view the logical matrix is unchanged and afterwards
        stored without the flag; for an untransposed matrix the logical
        matrix becomes its transpose. Every matrix sharing the buffer sees
        the new physical layout.

        Returns:
            self
        """
        logger.debug("Physical transposition of a %dx%d dense buffer", self._rows, self._cols)
        get_kernel().dgetrans(self._rows, self._cols, self._buffer.data)
        self._rows, self._cols = self._cols, self._rows
        self._transpose_state = TransposeState.NO_TRANSPOSE
        return self

    def get_singular_value_decomposition(self) -> Tuple['DenseMatrix', np.ndarray, 'DenseMatrix']:
        """Singular value decomposition ``A = U * diag(s) * V^t``.

        Returns:
            Tuple ``(u, s, vt)``: ``u`` is ``row_count x row_count``, ``vt`` is
            ``column_count x column_count`` and ``s`` holds the singular
            values in descending order. For a transpose view the physical
            factors swap roles, since ``A^t = V * diag(s) * U^t``.
        """
        u, s, vt = lapack.dgesvd(self._rows, self._cols, self._buffer.data)
        rows, cols = self._rows, self._cols
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            return (DenseMatrix._wrap(rows, rows, BufferHandle(u), TransposeState.NO_TRANSPOSE), s,
                    DenseMatrix._wrap(cols, cols, BufferHandle(vt), TransposeState.NO_TRANSPOSE))
        return (DenseMatrix._wrap(cols, cols, BufferHandle(vt), TransposeState.TRANSPOSE), s,
                DenseMatrix._wrap(rows, rows, BufferHandle(u), TransposeState.TRANSPOSE))

    # -------------------------------------------------------------------------
    # In-place Arithmetic
    # -------------------------------------------------------------------------

    def scale(self, alpha: float) -> 'DenseMatrix':
        """A = alpha * A, in place."""
        from . import _ops
        return _ops.scale_assignment(self, alpha)

    def add_assignment(self, other, alpha: float = 1.0) -> 'DenseMatrix':
        """A = A + alpha * B, in place, for a Dense, Band or Diagonal ``B``."""
        from . import _ops
        return _ops.add_assignment(self, other, alpha)

    def add_product_assignment(self, a: 'DenseMatrix', b: 'DenseMatrix',
                               alpha: float = 1.0, beta: float = 1.0) -> 'DenseMatrix':
        """C = alpha * A * B + beta * C, in place.

        A transposed target is physically re-laid out first.
        """
        from . import _ops
        return _ops.add_product_assignment(self, a, b, alpha, beta)

    def left_multiply_diagonal_assignment(self, diagonal) -> 'DenseMatrix':
        """A = D * A, in place (scales row ``i`` by ``d_i``)."""
        from . import _ops
        return _ops.left_multiply_diagonal_assignment(self, diagonal)

    def right_multiply_diagonal_assignment(self, diagonal) -> 'DenseMatrix':
        """A = A * D, in place (scales column ``j`` by ``d_j``)."""
        from . import _ops
        return _ops.right_multiply_diagonal_assignment(self, diagonal)

    # -------------------------------------------------------------------------
    # Vector Products
    # -------------------------------------------------------------------------

    def get_vector_product(self, x, alpha: float = 1.0, beta: float = 0.0,
                           y: Optional[np.ndarray] = None) -> np.ndarray:
        """y = alpha * A * x + beta * y.

        ``y`` is updated in place when it is a float64 vector, otherwise a new
        vector is returned.
        """
        x = np.ascontiguousarray(x, dtype=np.float64).ravel()
        if x.shape[0] != self.column_count:
            raise DimensionMismatchError(
                message=f"Vector of length {x.shape[0]} does not match {self.column_count} columns"
            )
        y = product_target(y, self.row_count, beta)
        get_kernel().dgemv(self._rows, self._cols, alpha, self._buffer.data, x, beta, y,
                           trans=self.is_transposed)
        return y

    def get_bilinear_form(self, x) -> float:
        """x^t * A * x for a square matrix."""
        n = self._require_square("Bilinear form")
        x = np.ascontiguousarray(x, dtype=np.float64).ravel()
        if x.shape[0] != n:
            raise DimensionMismatchError(
                message=f"Vector of length {x.shape[0]} does not match dimension {n}"
            )
        blas = get_kernel()
        data = self._buffer.data
        value = 0.0
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            for i in range(n):
                value += x[i] * blas.ddot(n, x, data, incy=n, offy=i)
        else:
            for i in range(n):
                value += x[i] * blas.ddot(n, x, data, offy=i * n)
        return value

    def __repr__(self) -> str:
        return (f"DenseMatrix(shape={self.shape}, transpose_state={self._transpose_state.name}, "
                f"ownership={self.ownership.value})")
