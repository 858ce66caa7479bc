"""Cross-Representation Arithmetic.

This module provides the arithmetic shared by all representations:
- In-place scaling and accumulation (``scale_assignment``, ``add_assignment``)
- Diagonal scaling of rows/columns
- New-value operators (``scale``, ``add``, ``subtract``, ``multiply``)
- Dense product accumulation (``add_product_assignment``)

Dispatch is an explicit case table keyed on the concrete pair of operand
representations. Within Dense and Band cases, a second table keyed on the
pair of transpose states selects the index arithmetic; each arm spells out
its own offsets and strides.

Result representations:

    +----------+--------------+-------------------+----------------------+
    | a \\ b    | Dense        | Diagonal          | Band                 |
    +----------+--------------+-------------------+----------------------+
    | Dense  ± | Dense        | Dense             | Dense                |
    | Diag   ± | Dense        | Diagonal          | Band                 |
    | Band   ± | Dense        | Band              | Band (union band)    |
    | Dense  @ | Dense        | Dense             | Dense                |
    | Diag   @ | Dense        | Diagonal          | Band                 |
    | Band   @ | Dense        | Band              | Band (widened band)  |
    +----------+--------------+-------------------+----------------------+

Example:
    >>> c = a @ b           # multiply(a, b)
    >>> a.add_assignment(b, 2.0)   # a += 2 * b in place
"""

import logging
from typing import Callable, Dict, Tuple, Type

import numpy as np

from ..core.config import get_kernel
from ..core.error import ArgumentError, DimensionMismatchError, InvariantViolationError
from ._band import GeneralBandMatrix
from ._base import MatrixBase, check_addition_input, check_multiplication_input
from ._buffer import as_float_buffer
from ._conversion import band_offset, band_row_range
from ._dense import DenseMatrix
from ._diagonal import DiagonalMatrix
from ._types import TransposeState

__all__ = [
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

logger = logging.getLogger("rml.matrix")

N = TransposeState.NO_TRANSPOSE
T = TransposeState.TRANSPOSE


def _dispatch(table: Dict[Tuple[Type, Type], Callable], a, b, operation: str) -> Callable:
    """Case of ``table`` for the concrete pair ``(type(a), type(b))``."""
    for (type_a, type_b), case in table.items():
        if isinstance(a, type_a) and isinstance(b, type_b):
            return case
    raise TypeError(
        f"Unsupported operand types for {operation}: "
        f"{type(a).__name__} and {type(b).__name__}"
    )


def _diagonal_factors(diagonal, length: int) -> np.ndarray:
    """Coefficients of a diagonal operand (DiagonalMatrix or sequence)."""
    if isinstance(diagonal, DiagonalMatrix):
        if diagonal.dimension != length:
            raise DimensionMismatchError(
                message=f"Diagonal matrix of dimension {diagonal.dimension} does not match {length}"
            )
        return diagonal.diagonal
    values, _ = as_float_buffer(diagonal)
    if values.shape[0] < length:
        raise DimensionMismatchError(
            message=f"Diagonal of length {values.shape[0]} is shorter than {length}"
        )
    return values


# =============================================================================
# Scaling
# =============================================================================

def scale_assignment(matrix: MatrixBase, alpha: float):
    """A = alpha * A, in place; returns ``matrix``."""
    blas = get_kernel()
    if isinstance(matrix, DenseMatrix):
        blas.dscal(matrix.physical_row_count * matrix.physical_column_count, alpha, matrix.data)
    elif isinstance(matrix, GeneralBandMatrix):
        blas.dscal(matrix.data_length, alpha, matrix.data)
    elif isinstance(matrix, DiagonalMatrix):
        blas.dscal(matrix.dimension, alpha, matrix.data)
    else:
        raise TypeError(f"Cannot scale {type(matrix).__name__}")
    return matrix


def scale(matrix: MatrixBase, alpha: float):
    """New value ``alpha * A`` in the representation of ``A``."""
    return scale_assignment(matrix.copy(), alpha)


# =============================================================================
# Accumulation: target += alpha * other
# =============================================================================

def _dense_add_dense(target: DenseMatrix, other: DenseMatrix, alpha: float) -> None:
    blas = get_kernel()
    rows, cols = target.physical_row_count, target.physical_column_count
    state = (target.transpose_state, other.transpose_state)

    if state == (N, N):
        blas.daxpy(rows * cols, alpha, other.data, target.data)
    elif state == (T, T):
        # same physical layout on both sides
        blas.daxpy(rows * cols, alpha, other.data, target.data)
    elif state == (N, T):
        # target(i, j) += other_phys(j, i)
        for j in range(cols):
            blas.daxpy(rows, alpha, other.data, target.data,
                       incx=other.physical_row_count, incy=1, offx=j, offy=j * rows)
    elif state == (T, N):
        # target_phys(i, j) = target(j, i) += other(j, i) = other_phys(j, i)
        for j in range(cols):
            blas.daxpy(rows, alpha, other.data, target.data,
                       incx=other.physical_row_count, incy=1, offx=j, offy=j * rows)
    else:
        raise InvariantViolationError(message=f"Unknown transpose states: {state!r}")


def _dense_add_band(target: DenseMatrix, other: GeneralBandMatrix, alpha: float) -> None:
    blas = get_kernel()
    rows = target.physical_row_count
    sub, sup = other.physical_sub_diagonal_count, other.physical_super_diagonal_count
    state = (target.transpose_state, other.transpose_state)

    # walk the stored band columns jb; band_phys(i, jb) for i in [lo, hi]
    for jb in range(other.physical_column_count):
        lo, hi = band_row_range(jb, other.physical_row_count, sub, sup)
        if hi < lo:
            continue
        count = hi - lo + 1
        offx = band_offset(lo, jb, sub, sup)
        if state == (N, N):
            # logical (i, jb) -> target_phys(i, jb)
            blas.daxpy(count, alpha, other.data, target.data, offx=offx, offy=lo + rows * jb)
        elif state == (T, N):
            # logical (i, jb) -> target_phys(jb, i)
            blas.daxpy(count, alpha, other.data, target.data,
                       incy=rows, offx=offx, offy=jb + rows * lo)
        elif state == (N, T):
            # logical (jb, i) -> target_phys(jb, i)
            blas.daxpy(count, alpha, other.data, target.data,
                       incy=rows, offx=offx, offy=jb + rows * lo)
        elif state == (T, T):
            # logical (jb, i) -> target_phys(i, jb)
            blas.daxpy(count, alpha, other.data, target.data, offx=offx, offy=lo + rows * jb)
        else:
            raise InvariantViolationError(message=f"Unknown transpose states: {state!r}")


def _dense_add_diagonal(target: DenseMatrix, other: DiagonalMatrix, alpha: float) -> None:
    n = other.dimension
    get_kernel().daxpy(n, alpha, other.data, target.data, incy=n + 1)


def _band_add_band(target: GeneralBandMatrix, other: GeneralBandMatrix, alpha: float) -> None:
    if (other.sub_diagonal_count > target.sub_diagonal_count
            or other.super_diagonal_count > target.super_diagonal_count):
        raise ArgumentError(
            message=f"Band ({other.sub_diagonal_count}, {other.super_diagonal_count}) does not fit "
                    f"into band ({target.sub_diagonal_count}, {target.super_diagonal_count})"
        )
    blas = get_kernel()
    t_sub, t_sup = target.physical_sub_diagonal_count, target.physical_super_diagonal_count
    o_sub, o_sup = other.physical_sub_diagonal_count, other.physical_super_diagonal_count
    row_stride = target.band_width - 1
    state = (target.transpose_state, other.transpose_state)

    for j in range(other.physical_column_count):
        lo, hi = band_row_range(j, other.physical_row_count, o_sub, o_sup)
        if hi < lo:
            continue
        count = hi - lo + 1
        offx = band_offset(lo, j, o_sub, o_sup)
        if state == (N, N):
            # other_phys column j -> target_phys column j
            blas.daxpy(count, alpha, other.data, target.data,
                       offx=offx, offy=band_offset(lo, j, t_sub, t_sup))
        elif state == (T, T):
            # identical physical orientation
            blas.daxpy(count, alpha, other.data, target.data,
                       offx=offx, offy=band_offset(lo, j, t_sub, t_sup))
        elif state == (N, T):
            # other_phys(i, j) = other(j, i) -> target_phys(j, i), a row walk
            blas.daxpy(count, alpha, other.data, target.data, incy=row_stride,
                       offx=offx, offy=band_offset(j, lo, t_sub, t_sup))
        elif state == (T, N):
            # other(i, j) -> target_phys(j, i), a row walk
            blas.daxpy(count, alpha, other.data, target.data, incy=row_stride,
                       offx=offx, offy=band_offset(j, lo, t_sub, t_sup))
        else:
            raise InvariantViolationError(message=f"Unknown transpose states: {state!r}")


def _band_add_diagonal(target: GeneralBandMatrix, other: DiagonalMatrix, alpha: float) -> None:
    get_kernel().daxpy(other.dimension, alpha, other.data, target.data,
                       incy=target.band_width, offy=target.physical_super_diagonal_count)


def _diagonal_add_diagonal(target: DiagonalMatrix, other: DiagonalMatrix, alpha: float) -> None:
    get_kernel().daxpy(target.dimension, alpha, other.data, target.data)


def _cannot_hold(target, other, alpha):
    raise ArgumentError(
        message=f"{type(target).__name__} cannot hold the sum with {type(other).__name__}; "
                f"use the + operator for a new value"
    )


_ADD_ASSIGNMENT_CASES = {
    (DenseMatrix, DenseMatrix): _dense_add_dense,
    (DenseMatrix, GeneralBandMatrix): _dense_add_band,
    (DenseMatrix, DiagonalMatrix): _dense_add_diagonal,
    (GeneralBandMatrix, GeneralBandMatrix): _band_add_band,
    (GeneralBandMatrix, DiagonalMatrix): _band_add_diagonal,
    (GeneralBandMatrix, DenseMatrix): _cannot_hold,
    (DiagonalMatrix, DiagonalMatrix): _diagonal_add_diagonal,
    (DiagonalMatrix, DenseMatrix): _cannot_hold,
    (DiagonalMatrix, GeneralBandMatrix): _cannot_hold,
}


def add_assignment(target: MatrixBase, other: MatrixBase, alpha: float = 1.0):
    """A = A + alpha * B, in place; returns ``target``.

    Raises:
        DimensionMismatchError: If the shapes differ.
        ArgumentError: If ``target``'s storage cannot represent the sum.
    """
    case = _dispatch(_ADD_ASSIGNMENT_CASES, target, other, "add_assignment")
    check_addition_input(target, other)
    # column walks would read entries already written
    if other.shares_buffer_with(target):
        other = other.copy()
    case(target, other, float(alpha))
    return target


# =============================================================================
# Diagonal Scaling
# =============================================================================

def left_multiply_diagonal_assignment(target: MatrixBase, diagonal):
    """A = D * A, in place: row ``i`` is scaled by ``d_i``."""
    factors = _diagonal_factors(diagonal, target.row_count)
    blas = get_kernel()
    if isinstance(target, DenseMatrix):
        rows, cols = target.physical_row_count, target.physical_column_count
        if target.transpose_state is N:
            for i in range(rows):
                blas.dscal(cols, factors[i], target.data, incx=rows, offx=i)
        else:
            # logical row i is physical column i
            for i in range(cols):
                blas.dscal(rows, factors[i], target.data, offx=i * rows)
    elif isinstance(target, GeneralBandMatrix):
        if target.transpose_state is N:
            target._scale_physical_rows(factors)
        else:
            target._scale_physical_columns(factors)
    elif isinstance(target, DiagonalMatrix):
        target._scale_coefficients(factors)
    else:
        raise TypeError(f"Cannot scale rows of {type(target).__name__}")
    return target


def right_multiply_diagonal_assignment(target: MatrixBase, diagonal):
    """A = A * D, in place: column ``j`` is scaled by ``d_j``."""
    factors = _diagonal_factors(diagonal, target.column_count)
    blas = get_kernel()
    if isinstance(target, DenseMatrix):
        rows, cols = target.physical_row_count, target.physical_column_count
        if target.transpose_state is N:
            for j in range(cols):
                blas.dscal(rows, factors[j], target.data, offx=j * rows)
        else:
            # logical column j is physical row j
            for j in range(rows):
                blas.dscal(cols, factors[j], target.data, incx=rows, offx=j)
    elif isinstance(target, GeneralBandMatrix):
        if target.transpose_state is N:
            target._scale_physical_columns(factors)
        else:
            target._scale_physical_rows(factors)
    elif isinstance(target, DiagonalMatrix):
        target._scale_coefficients(factors)
    else:
        raise TypeError(f"Cannot scale columns of {type(target).__name__}")
    return target


# =============================================================================
# Addition (new values)
# =============================================================================

def _add_into_copy_of_first(a, b, beta):
    return add_assignment(a.copy(), b, beta)


def _add_into_copy_of_second(a, b, beta):
    result = scale_assignment(b.copy(), beta)
    return add_assignment(result, a, 1.0)


def _add_band_band(a: GeneralBandMatrix, b: GeneralBandMatrix, beta):
    sub = max(a.sub_diagonal_count, b.sub_diagonal_count)
    sup = max(a.super_diagonal_count, b.super_diagonal_count)
    result = GeneralBandMatrix.zeros(a.row_count, a.column_count, sub, sup)
    add_assignment(result, a, 1.0)
    return add_assignment(result, b, beta)


_ADD_CASES = {
    (DenseMatrix, MatrixBase): _add_into_copy_of_first,
    (DiagonalMatrix, DenseMatrix): _add_into_copy_of_second,
    (DiagonalMatrix, DiagonalMatrix): _add_into_copy_of_first,
    (DiagonalMatrix, GeneralBandMatrix): _add_into_copy_of_second,
    (GeneralBandMatrix, DenseMatrix): _add_into_copy_of_second,
    (GeneralBandMatrix, DiagonalMatrix): _add_into_copy_of_first,
    (GeneralBandMatrix, GeneralBandMatrix): _add_band_band,
}


def add(a: MatrixBase, b: MatrixBase, beta: float = 1.0):
    """New value ``A + beta * B``; operands are left unchanged."""
    case = _dispatch(_ADD_CASES, a, b, "+")
    check_addition_input(a, b)
    return case(a, b, float(beta))


def subtract(a: MatrixBase, b: MatrixBase):
    """New value ``A - B``."""
    return add(a, b, -1.0)


# =============================================================================
# Multiplication (new values)
# =============================================================================

def _dense_times_dense(a: DenseMatrix, b: DenseMatrix) -> DenseMatrix:
    m, k, n = a.row_count, a.column_count, b.column_count
    result = DenseMatrix(m, n)
    get_kernel().dgemm(m, n, k, 1.0, a.data, b.data, 0.0, result.data,
                       trans_a=a.is_transposed, trans_b=b.is_transposed)
    return result


def _dense_times_diagonal(a: DenseMatrix, b: DiagonalMatrix) -> DenseMatrix:
    return right_multiply_diagonal_assignment(a.to_dense(), b)


def _diagonal_times_dense(a: DiagonalMatrix, b: DenseMatrix) -> DenseMatrix:
    return left_multiply_diagonal_assignment(b.to_dense(), a)


def _diagonal_times_diagonal(a: DiagonalMatrix, b: DiagonalMatrix) -> DiagonalMatrix:
    return left_multiply_diagonal_assignment(b.copy(), a)


def _diagonal_times_band(a: DiagonalMatrix, b: GeneralBandMatrix) -> GeneralBandMatrix:
    return left_multiply_diagonal_assignment(b.copy(), a)


def _band_times_diagonal(a: GeneralBandMatrix, b: DiagonalMatrix) -> GeneralBandMatrix:
    return right_multiply_diagonal_assignment(a.copy(), b)


def _band_times_dense(a: GeneralBandMatrix, b: DenseMatrix) -> DenseMatrix:
    blas = get_kernel()
    m, k, n = a.row_count, a.column_count, b.column_count
    result = DenseMatrix(m, n)
    column = np.zeros(k)
    for j in range(n):
        b.get_column(j, out=column)
        blas.dgbmv(a.physical_row_count, a.physical_column_count,
                   a.physical_sub_diagonal_count, a.physical_super_diagonal_count,
                   1.0, a.data, column, 0.0, result.data[j * m:(j + 1) * m],
                   trans=a.is_transposed)
    return result


def _dense_times_band(a: DenseMatrix, b: GeneralBandMatrix) -> DenseMatrix:
    # row i of A * B is (B^t * a_i)^t
    blas = get_kernel()
    m, k, n = a.row_count, a.column_count, b.column_count
    result = DenseMatrix(m, n)
    row = np.zeros(k)
    product = np.zeros(n)
    for i in range(m):
        a.get_transposed_row(i, out=row)
        blas.dgbmv(b.physical_row_count, b.physical_column_count,
                   b.physical_sub_diagonal_count, b.physical_super_diagonal_count,
                   1.0, b.data, row, 0.0, product, trans=not b.is_transposed)
        blas.dcopy(n, product, result.data, incy=m, offy=i)
    return result


# Offsets of A(i, s) and B(s, j) for s = lo, lo + 1, ... in band storage,
# keyed on (A transposed?, B transposed?). Each walk returns (offset, stride).

def _band_row_walk(band: GeneralBandMatrix, row: int, lo: int):
    """Physical row ``row`` from column ``lo`` on (stride ``sub + super``)."""
    sub, sup = band.physical_sub_diagonal_count, band.physical_super_diagonal_count
    return band_offset(row, lo, sub, sup), band.band_width - 1


def _band_column_walk(band: GeneralBandMatrix, col: int, lo: int):
    """Physical column ``col`` from row ``lo`` on (contiguous)."""
    sub, sup = band.physical_sub_diagonal_count, band.physical_super_diagonal_count
    return band_offset(lo, col, sub, sup), 1


_BAND_PRODUCT_WALKS = {
    # A(i, s) = A_phys(i, s) is a row walk, B(s, j) = B_phys(s, j) a column walk
    (N, N): (_band_row_walk, _band_column_walk),
    # B(s, j) = B_phys(j, s) is a row walk of B_phys
    (N, T): (_band_row_walk, _band_row_walk),
    # A(i, s) = A_phys(s, i) is a column walk of A_phys
    (T, N): (_band_column_walk, _band_column_walk),
    (T, T): (_band_column_walk, _band_row_walk),
}


def _band_times_band(a: GeneralBandMatrix, b: GeneralBandMatrix) -> GeneralBandMatrix:
    m, k, n = a.row_count, a.column_count, b.column_count
    a_sub, a_sup = a.sub_diagonal_count, a.super_diagonal_count
    b_sub, b_sup = b.sub_diagonal_count, b.super_diagonal_count

    # C(i, j) needs some s with i - a_sub <= s <= i + a_sup and j - b_sup <= s <= j + b_sub
    r_sub = min(m - 1, a_sub + b_sub)
    r_sup = min(n - 1, a_sup + b_sup)
    result = GeneralBandMatrix.zeros(m, n, r_sub, r_sup)

    state = (a.transpose_state, b.transpose_state)
    if state not in _BAND_PRODUCT_WALKS:
        raise InvariantViolationError(message=f"Unknown transpose states: {state!r}")
    walk_a, walk_b = _BAND_PRODUCT_WALKS[state]

    blas = get_kernel()
    for j in range(n):
        for i in range(max(0, j - r_sup), min(m - 1, j + r_sub) + 1):
            lo = max(0, i - a_sub, j - b_sup)
            hi = min(k - 1, i + a_sup, j + b_sub)
            if hi < lo:
                continue
            offx, incx = walk_a(a, i, lo)
            offy, incy = walk_b(b, j, lo)
            result.data[band_offset(i, j, r_sub, r_sup)] = blas.ddot(
                hi - lo + 1, a.data, b.data, incx=incx, incy=incy, offx=offx, offy=offy)
    logger.debug("Band product: (%d, %d) x (%d, %d) -> (%d, %d)",
                 a_sub, a_sup, b_sub, b_sup, r_sub, r_sup)
    return result


_MULTIPLY_CASES = {
    (DenseMatrix, DenseMatrix): _dense_times_dense,
    (DenseMatrix, DiagonalMatrix): _dense_times_diagonal,
    (DenseMatrix, GeneralBandMatrix): _dense_times_band,
    (DiagonalMatrix, DenseMatrix): _diagonal_times_dense,
    (DiagonalMatrix, DiagonalMatrix): _diagonal_times_diagonal,
    (DiagonalMatrix, GeneralBandMatrix): _diagonal_times_band,
    (GeneralBandMatrix, DenseMatrix): _band_times_dense,
    (GeneralBandMatrix, DiagonalMatrix): _band_times_diagonal,
    (GeneralBandMatrix, GeneralBandMatrix): _band_times_band,
}


def multiply(a: MatrixBase, b: MatrixBase):
    """New value ``A * B`` (matrix product).

    Raises:
        DimensionMismatchError: If ``a.column_count != b.row_count``.
    """
    case = _dispatch(_MULTIPLY_CASES, a, b, "@")
    check_multiplication_input(a, b)
    return case(a, b)


# =============================================================================
# Product Accumulation
# =============================================================================

def add_product_assignment(target: DenseMatrix, a: DenseMatrix, b: DenseMatrix,
                           alpha: float = 1.0, beta: float = 1.0) -> DenseMatrix:
    """C = alpha * A * B + beta * C, in place; returns ``target``.

    A transposed target is physically transposed first (its logical value is
    kept) because the product is written column-major.
    """
    for operand in (target, a, b):
        if not isinstance(operand, DenseMatrix):
            raise TypeError(f"Product accumulation needs dense operands, got {type(operand).__name__}")
    check_multiplication_input(a, b)
    m, k, n = a.row_count, a.column_count, b.column_count
    if target.shape != (m, n):
        raise DimensionMismatchError(
            message=f"Target of shape {target.shape} cannot hold a {m}x{n} product"
        )
    # operands must not alias the buffer being written
    if a.shares_buffer_with(target):
        a = a.copy()
    if b.shares_buffer_with(target):
        b = b.copy()
    if target.is_transposed:
        target.transpose_in_place()
    get_kernel().dgemm(m, n, k, float(alpha), a.data, b.data, float(beta), target.data,
                       trans_a=a.is_transposed, trans_b=b.is_transposed)
    return target
