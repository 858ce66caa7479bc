"""Diagonal Matrix Representation.

Only the ``dimension`` diagonal coefficients are stored; every off-diagonal
entry reads as exactly ``0.0``. Diagonal matrices are always square and
symmetric, and their own transpose.
"""

from typing import Any, Optional, TYPE_CHECKING

import numpy as np

from ..core.config import get_kernel
from ..core.error import InvariantViolationError, check_positive
from ._base import MatrixBase
from ._buffer import BufferHandle, as_float_buffer
from ._conversion import diagonal_to_dense_buffer
from ._types import MatrixNormType, TransposeState

if TYPE_CHECKING:
    from ._dense import DenseMatrix

__all__ = ['DiagonalMatrix', 'Unity']


class DiagonalMatrix(MatrixBase):
    """Square matrix given by its diagonal coefficients.

    Args:
        dimension: Number of rows (and columns).
        data: Diagonal coefficients (at least ``dimension`` values); a
            contiguous 1D float64 array is used in place unless ``copy``.
            If omitted, the matrix is zero.
        copy: Force a deep copy of ``data``.

    Example:
        >>> d = DiagonalMatrix(3, [1.0, 2.0, 3.0])
        >>> d[1, 1], d[0, 2]
        (2.0, 0.0)
    """

    def __init__(self, dimension: int, data: Any = None, copy: bool = False):
        n = check_positive(dimension, 'dimension')
        if data is None:
            self._buffer = BufferHandle.allocate(n)
        else:
            self._buffer = BufferHandle.from_values(data, n, copy=copy)
        self._dimension = n

    @classmethod
    def _wrap(cls, dimension: int, handle: BufferHandle) -> 'DiagonalMatrix':
        obj = cls.__new__(cls)
        obj._dimension = dimension
        obj._buffer = handle
        return obj

    @classmethod
    def from_values(cls, values) -> 'DiagonalMatrix':
        """Owned diagonal matrix holding a copy of ``values``."""
        array, _ = as_float_buffer(values, copy=True)
        return cls(array.shape[0], array)

    def copy(self) -> 'DiagonalMatrix':
        return DiagonalMatrix._wrap(self._dimension, self._buffer.clone(self._dimension))

    # -------------------------------------------------------------------------
    # Dimensions and Access
    # -------------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def row_count(self) -> int:
        return self._dimension

    @property
    def column_count(self) -> int:
        return self._dimension

    @property
    def diagonal(self) -> np.ndarray:
        """The ``dimension`` stored coefficients (a view, not a copy)."""
        return self._buffer.data[:self._dimension]

    def _get(self, row: int, col: int) -> float:
        if row != col:
            return 0.0
        return float(self._buffer.data[row])

    @property
    def T(self) -> 'DiagonalMatrix':
        return DiagonalMatrix._wrap(self._dimension, self._buffer.share())

    # -------------------------------------------------------------------------
    # Derived Values
    # -------------------------------------------------------------------------

    def to_dense(self, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        from ._dense import DenseMatrix

        n = self._dimension
        handle = BufferHandle.for_output(out, n * n, zero=True)
        diagonal_to_dense_buffer(n, self._buffer.data, handle.data)
        return DenseMatrix._wrap(n, n, handle, TransposeState.NO_TRANSPOSE)

    def get_column(self, index: int, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        from ._dense import DenseMatrix

        index = self._check_column_index(index)
        handle = BufferHandle.for_output(out, self._dimension, zero=True)
        handle.data[index] = self._buffer.data[index]
        return DenseMatrix._wrap(self._dimension, 1, handle, TransposeState.NO_TRANSPOSE)

    def get_transposed_row(self, index: int, out: Optional[np.ndarray] = None) -> 'DenseMatrix':
        from ._dense import DenseMatrix

        index = self._check_row_index(index)
        handle = BufferHandle.for_output(out, self._dimension, zero=True)
        handle.data[index] = self._buffer.data[index]
        return DenseMatrix._wrap(self._dimension, 1, handle, TransposeState.NO_TRANSPOSE)

    def is_symmetric(self, tolerance: Optional[float] = None) -> bool:
        return True

    def get_trace(self) -> float:
        return float(np.sum(self.diagonal))

    def get_norm(self, norm_type: MatrixNormType = MatrixNormType.FROBENIUS) -> float:
        blas = get_kernel()
        n = self._dimension
        data = self._buffer.data
        if norm_type in (MatrixNormType.LARGEST_ABSOLUTE_VALUE,
                         MatrixNormType.ONE_NORM,
                         MatrixNormType.INFINITY):
            # every row and every column holds exactly one entry
            return abs(float(data[blas.idamax(n, data)]))
        if norm_type is MatrixNormType.FROBENIUS:
            return blas.dnrm2(n, data)
        raise InvariantViolationError(message=f"Unknown norm type: {norm_type!r}")

    def to_numpy(self) -> np.ndarray:
        return np.diag(self.diagonal)

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def scale(self, alpha: float) -> 'DiagonalMatrix':
        """D = alpha * D, in place."""
        from . import _ops
        return _ops.scale_assignment(self, alpha)

    def _scale_coefficients(self, factors: np.ndarray) -> None:
        blas = get_kernel()
        for i in range(self._dimension):
            blas.dscal(1, factors[i], self._buffer.data, offx=i)

    def add_assignment(self, other: 'DiagonalMatrix', alpha: float = 1.0) -> 'DiagonalMatrix':
        """D = D + alpha * E, in place, for a diagonal ``E``."""
        from . import _ops
        return _ops.add_assignment(self, other, alpha)

    def __repr__(self) -> str:
        return f"DiagonalMatrix(dimension={self._dimension}, ownership={self.ownership.value})"


class Unity:
    """Factory for identity matrices.

    Example:
        >>> Unity.create(3)[2, 2]
        1.0
    """

    @staticmethod
    def create(dimension: int) -> DiagonalMatrix:
        """The ``dimension x dimension`` identity as a diagonal matrix."""
        n = check_positive(dimension, 'dimension')
        return DiagonalMatrix(n, np.ones(n))
