"""General Band Matrix Representation.

A band matrix stores only the ``sub + super + 1`` diagonals around the main
diagonal, column by column. For the physical (untransposed) matrix, cell
``(i, j)`` is stored iff ``i - j <= sub`` and ``j - i <= super``, at offset::

    i - j + super + j * (sub + super + 1)

The sub/super-diagonal counts always describe the physical buffer; a
transpose view swaps their observable roles.

Two walks over the buffer recur:
    - a physical column ``j`` is contiguous (rows ``j - super .. j + sub``)
    - a physical row ``i`` has stride ``sub + super`` (columns ``i - sub .. i + super``)

Example:
    >>> band = GeneralBandMatrix.from_dense_rows(
    ...     [[2, -1, 0], [-1, 2, -1], [0, -1, 2]], 1, 1)
    >>> band[0, 2], band.T[1, 0]
    (0.0, -1.0)
"""

import logging
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.config import get_kernel
from ..core.error import (
    ArgumentError,
    DimensionMismatchError,
    InvariantViolationError,
    RMLError,
    RML_ERROR_SINGULAR_MATRIX,
    check_non_negative,
    check_positive,
)
from .._kernel import lapack
from ._base import TransposableMatrix
from ._buffer import BufferHandle, as_target_vector, product_target
from ._conversion import (
    band_offset,
    band_row_range,
    band_to_dense_buffer,
    band_width,
    dense_to_band_buffer,
)
from ._dense import DenseMatrix
from ._types import MatrixNormType, TransposeState

__all__ = ['GeneralBandMatrix']

logger = logging.getLogger("rml.matrix")


class GeneralBandMatrix(TransposableMatrix):
    """Band matrix in compact column-major band storage.

    Args:
        row_count: Rows of the physical (untransposed) matrix.
        column_count: Columns of the physical matrix.
        sub_diagonal_count: Stored diagonals below the main diagonal.
        super_diagonal_count: Stored diagonals above the main diagonal.
        data: Optional band buffer of at least
            ``column_count * (sub + super + 1)`` values; a contiguous 1D
            float64 array is used in place unless ``copy``. If omitted, the
            matrix is zero.
        transpose_state: How the buffer is read.
        copy: Force a deep copy of ``data``.

    Raises:
        ArgumentRangeError: If a dimension is not positive or a diagonal
            count is negative.
        ArgumentError: If ``data`` is not one-dimensional or too short.
    """

    def __init__(self, row_count: int, column_count: int,
                 sub_diagonal_count: int, super_diagonal_count: int,
                 data: Any = None,
                 transpose_state: TransposeState = TransposeState.NO_TRANSPOSE,
                 copy: bool = False):
        rows = check_positive(row_count, 'row_count')
        cols = check_positive(column_count, 'column_count')
        sub = check_non_negative(sub_diagonal_count, 'sub_diagonal_count')
        sup = check_non_negative(super_diagonal_count, 'super_diagonal_count')
        length = cols * band_width(sub, sup)
        if data is None:
            handle = BufferHandle.allocate(length)
        else:
            handle = BufferHandle.from_values(data, length, copy=copy)
        self._sub = sub
        self._sup = sup
        self._setup(rows, cols, handle, transpose_state)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def _wrap(cls, rows: int, cols: int, sub: int, sup: int, handle: BufferHandle,
              transpose_state: TransposeState) -> 'GeneralBandMatrix':
        obj = cls.__new__(cls)
        obj._sub = sub
        obj._sup = sup
        obj._setup(rows, cols, handle, transpose_state)
        return obj

    @classmethod
    def from_dense_rows(cls, rows: Union[Sequence[Sequence[float]], np.ndarray],
                        sub_diagonal_count: int, super_diagonal_count: int) -> 'GeneralBandMatrix':
        """Create from a row-major 2D layout; entries outside the band are ignored."""
        try:
            array = np.asarray(rows, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ArgumentError(message=f"Rows must form a rectangular 2D layout: {e}") from None
        if array.ndim != 2:
            raise ArgumentError(message=f"Rows must form a 2D layout, got ndim={array.ndim}")
        row_count, column_count = array.shape
        band = cls(row_count, column_count, sub_diagonal_count, super_diagonal_count)
        dense_to_band_buffer(array, band._sub, band._sup, band._buffer.data)
        return band

    @classmethod
    def zeros(cls, row_count: int, column_count: int,
              sub_diagonal_count: int, super_diagonal_count: int) -> 'GeneralBandMatrix':
        return cls(row_count, column_count, sub_diagonal_count, super_diagonal_count)

    def copy(self) -> 'GeneralBandMatrix':
        return GeneralBandMatrix._wrap(self._rows, self._cols, self._sub, self._sup,
                                       self._buffer.clone(self.data_length), self._transpose_state)

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    @property
    def sub_diagonal_count(self) -> int:
        """Sub-diagonals of the logical matrix."""
        return self._sup if self.is_transposed else self._sub

    @property
    def super_diagonal_count(self) -> int:
        """Super-diagonals of the logical matrix."""
        return self._sub if self.is_transposed else self._sup

    @property
    def physical_sub_diagonal_count(self) -> int:
        return self._sub

    @property
    def physical_super_diagonal_count(self) -> int:
        return self._sup

    @property
    def band_width(self) -> int:
        return band_width(self._sub, self._sup)

    @property
    def data_length(self) -> int:
        """Number of buffer slots the band occupies."""
        return self._cols * self.band_width

    def _offset(self, i: int, j: int) -> int:
        if i - j > self._sub or j - i > self._sup:
            return -1
        return band_offset(i, j, self._sub, self._sup)

    def _column_range(self, i: int) -> Tuple[int, int]:
        """Closed range of stored columns in physical row ``i``."""
        return max(0, i - self._sub), min(self._cols - 1, i + self._sup)

    @property
    def T(self) -> 'GeneralBandMatrix':
        return GeneralBandMatrix._wrap(self._rows, self._cols, self._sub, self._sup,
                                       self._buffer.share(), self._transpose_state.flip())

    # -------------------------------------------------------------------------
    # Physical Walks
    # -------------------------------------------------------------------------

    def _copy_physical_column(self, j: int, out: np.ndarray) -> None:
        """out[i] = A[i, j] for the stored rows of column ``j``."""
        lo, hi = band_row_range(j, self._rows, self._sub, self._sup)
        if hi < lo:
            return
        get_kernel().dcopy(hi - lo + 1, self._buffer.data, out,
                           offx=band_offset(lo, j, self._sub, self._sup), offy=lo)

    def _copy_physical_row(self, i: int, out: np.ndarray, offy: int = 0) -> None:
        """out[offy + j] = A[i, j] for the stored columns of row ``i``."""
        lo, hi = self._column_range(i)
        if hi < lo:
            return
        get_kernel().dcopy(hi - lo + 1, self._buffer.data, out,
                           incx=self.band_width - 1, incy=1,
                           offx=band_offset(i, lo, self._sub, self._sup), offy=offy + lo)

    def _scale_physical_rows(self, factors: np.ndarray) -> None:
        blas = get_kernel()
        stride = self.band_width - 1
        for i in range(self._rows):
            lo, hi = self._column_range(i)
            if hi < lo:
                continue
            blas.dscal(hi - lo + 1, factors[i], self._buffer.data, incx=stride,
                       offx=band_offset(i, lo, self._sub, self._sup))

    def _scale_physical_columns(self, factors: np.ndarray) -> None:
        blas = get_kernel()
        for j in range(self._cols):
            lo, hi = band_row_range(j, self._rows, self._sub, self._sup)
            if hi < lo:
                continue
            blas.dscal(hi - lo + 1, factors[j], self._buffer.data,
                       offx=band_offset(lo, j, self._sub, self._sup))

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------

    def to_dense(self, out: Optional[np.ndarray] = None) -> DenseMatrix:
        rows, cols = self._rows, self._cols
        handle = BufferHandle.for_output(out, rows * cols, zero=True)

        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            band_to_dense_buffer(rows, cols, self._sub, self._sup, self._buffer.data, handle.data)
            return DenseMatrix._wrap(rows, cols, handle, TransposeState.NO_TRANSPOSE)

        # logical column k is physical row k
        for k in range(rows):
            self._copy_physical_row(k, handle.data, offy=k * cols)
        return DenseMatrix._wrap(cols, rows, handle, TransposeState.NO_TRANSPOSE)

    def get_column(self, index: int, out: Optional[np.ndarray] = None) -> DenseMatrix:
        index = self._check_column_index(index)
        row_count = self.row_count
        handle = BufferHandle.for_output(out, row_count, zero=True)
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            self._copy_physical_column(index, handle.data)
        else:
            self._copy_physical_row(index, handle.data)
        return DenseMatrix._wrap(row_count, 1, handle, TransposeState.NO_TRANSPOSE)

    def get_transposed_row(self, index: int, out: Optional[np.ndarray] = None) -> DenseMatrix:
        index = self._check_row_index(index)
        column_count = self.column_count
        handle = BufferHandle.for_output(out, column_count, zero=True)
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            self._copy_physical_row(index, handle.data)
        else:
            self._copy_physical_column(index, handle.data)
        return DenseMatrix._wrap(column_count, 1, handle, TransposeState.NO_TRANSPOSE)

    def _diagonal_slice(self, d: int) -> np.ndarray:
        """Stored entries of physical diagonal ``d`` (``d > 0`` above, ``d < 0`` below).

        Consecutive entries of a diagonal are ``sub + super + 1`` slots apart.
        """
        if d >= 0:
            count = min(self._rows, self._cols - d)
            start = band_offset(0, d, self._sub, self._sup)
        else:
            count = min(self._rows + d, self._cols)
            start = band_offset(-d, 0, self._sub, self._sup)
        if count <= 0:
            return self._buffer.data[:0]
        width = self.band_width
        return self._buffer.data[start:start + (count - 1) * width + 1:width]

    def _row_slice(self, i: int) -> np.ndarray:
        """Stored entries of physical row ``i`` (stride ``sub + super``)."""
        lo, hi = self._column_range(i)
        if hi < lo:
            return self._buffer.data[:0]
        start = band_offset(i, lo, self._sub, self._sup)
        if hi == lo:
            return self._buffer.data[start:start + 1]
        stride = self.band_width - 1
        return self._buffer.data[start:start + (hi - lo) * stride + 1:stride]

    def _column_slice(self, j: int) -> np.ndarray:
        """Stored entries of physical column ``j`` (contiguous)."""
        lo, hi = band_row_range(j, self._rows, self._sub, self._sup)
        if hi < lo:
            return self._buffer.data[:0]
        start = band_offset(lo, j, self._sub, self._sup)
        return self._buffer.data[start:start + hi - lo + 1]

    def is_symmetric(self, tolerance: Optional[float] = None) -> bool:
        if not self.is_quadratic:
            return False
        tolerance = self._resolve_tolerance(tolerance)
        for d in range(1, max(self._sub, self._sup) + 1):
            if d >= self._rows:
                break
            upper = self._diagonal_slice(d) if d <= self._sup else 0.0
            lower = self._diagonal_slice(-d) if d <= self._sub else 0.0
            if np.any(np.abs(upper - lower) > tolerance):
                return False
        return True

    def get_trace(self) -> float:
        self._require_square("Trace")
        return float(np.sum(self._diagonal_slice(0)))

    def get_norm(self, norm_type: MatrixNormType = MatrixNormType.FROBENIUS) -> float:
        physical = self._physical_norm_type(norm_type)
        if self._rows == self._cols:
            return lapack.dlangb(physical.lapack_char, self._rows, self._sub, self._sup,
                                 self._buffer.data)
        return self._rectangular_norm(physical)

    def _rectangular_norm(self, norm_type: MatrixNormType) -> float:
        """Norm of the physical matrix, folding over the stored region only."""
        if norm_type is MatrixNormType.INFINITY:
            return max(float(np.sum(np.abs(self._row_slice(i)))) for i in range(self._rows))

        columns = [np.abs(self._column_slice(j)) for j in range(self._cols)]
        if norm_type is MatrixNormType.ONE_NORM:
            return max(float(np.sum(column)) for column in columns)
        if norm_type is MatrixNormType.LARGEST_ABSOLUTE_VALUE:
            return max((float(np.max(column)) for column in columns if column.size), default=0.0)
        if norm_type is MatrixNormType.FROBENIUS:
            values = np.concatenate(columns)
            return get_kernel().dnrm2(values.shape[0], values)
        raise InvariantViolationError(message=f"Unknown norm type: {norm_type!r}")

    def to_numpy(self) -> np.ndarray:
        return self.to_dense().to_numpy()

    def get_singular_value_decomposition(self) -> Tuple[DenseMatrix, np.ndarray, DenseMatrix]:
        """Singular value decomposition ``A = U * diag(s) * V^t`` (dense factors)."""
        rows, cols = self._rows, self._cols
        u, s, vt = lapack.dgbsvd(rows, cols, self._sub, self._sup, self._buffer.data)
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            return (DenseMatrix._wrap(rows, rows, BufferHandle(u), TransposeState.NO_TRANSPOSE), s,
                    DenseMatrix._wrap(cols, cols, BufferHandle(vt), TransposeState.NO_TRANSPOSE))
        return (DenseMatrix._wrap(cols, cols, BufferHandle(vt), TransposeState.TRANSPOSE), s,
                DenseMatrix._wrap(rows, rows, BufferHandle(u), TransposeState.TRANSPOSE))

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def scale(self, alpha: float) -> 'GeneralBandMatrix':
        """A = alpha * A, in place."""
        from . import _ops
        return _ops.scale_assignment(self, alpha)

    def add_assignment(self, other, alpha: float = 1.0) -> 'GeneralBandMatrix':
        """A = A + alpha * B, in place.

        ``B`` must be a Band or Diagonal matrix whose band fits inside this one.
        """
        from . import _ops
        return _ops.add_assignment(self, other, alpha)

    def left_multiply_diagonal_assignment(self, diagonal) -> 'GeneralBandMatrix':
        """A = D * A, in place (scales row ``i`` by ``d_i``)."""
        from . import _ops
        return _ops.left_multiply_diagonal_assignment(self, diagonal)

    def right_multiply_diagonal_assignment(self, diagonal) -> 'GeneralBandMatrix':
        """A = A * D, in place (scales column ``j`` by ``d_j``)."""
        from . import _ops
        return _ops.right_multiply_diagonal_assignment(self, diagonal)

    def untransposed(self) -> 'GeneralBandMatrix':
        """The logical matrix stored without a transpose flag (self if already so)."""
        if self._transpose_state is TransposeState.NO_TRANSPOSE:
            return self
        from . import _ops
        result = GeneralBandMatrix.zeros(self.row_count, self.column_count,
                                         self.sub_diagonal_count, self.super_diagonal_count)
        return _ops.add_assignment(result, self, 1.0)

    def solve_system_of_linear_equations(self, b) -> np.ndarray:
        """Solve ``A x = b`` with a banded LU factorisation (partial pivoting).

        The matrix itself is never modified. ``b`` is overwritten with the
        solution when it is a contiguous float64 vector, otherwise the
        solution is returned in a new vector.

        Raises:
            InvalidOperationError: If the matrix is not square or singular.
            DimensionMismatchError: If ``b`` is shorter than the dimension.
        """
        n = self._require_square("Linear solve")
        if b is None:
            raise ArgumentError(message="A right-hand side is required")
        b = as_target_vector(b, n)
        source = self.untransposed()
        logger.debug("Banded LU solve: n=%d, sub=%d, super=%d", n, source._sub, source._sup)
        try:
            lapack.dgbsv(n, source._sub, source._sup, source._buffer.data, b)
        except np.linalg.LinAlgError as e:
            raise RMLError.from_code(RML_ERROR_SINGULAR_MATRIX, f"Linear solve ({e})") from e
        return b

    def get_vector_product(self, x, alpha: float = 1.0, beta: float = 0.0,
                           y: Optional[np.ndarray] = None) -> np.ndarray:
        """y = alpha * A * x + beta * y."""
        x = np.ascontiguousarray(x, dtype=np.float64).ravel()
        if x.shape[0] != self.column_count:
            raise DimensionMismatchError(
                message=f"Vector of length {x.shape[0]} does not match {self.column_count} columns"
            )
        y = product_target(y, self.row_count, beta)
        get_kernel().dgbmv(self._rows, self._cols, self._sub, self._sup, alpha,
                           self._buffer.data, x, beta, y, trans=self.is_transposed)
        return y

    def __repr__(self) -> str:
        return (f"GeneralBandMatrix(shape={self.shape}, sub={self.sub_diagonal_count}, "
                f"super={self.super_diagonal_count}, "
                f"transpose_state={self._transpose_state.name}, ownership={self.ownership.value})")
