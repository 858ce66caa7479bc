"""Native primitive library backed by the BLAS shipped with SciPy.

Every routine works on one-dimensional, contiguous ``float64`` buffers that
hold matrices in column-major order, with BLAS-style explicit length, stride
and offset arguments. Results are always written into the caller's buffer;
the f2py wrappers in :mod:`scipy.linalg.blas` may hand back a fresh array
when they cannot work in place, so every call copies the returned result back
when it is not the caller's own array.

Only positive strides are used by the matrix layer.
"""

import numpy as np
from scipy.linalg import blas

__all__ = [
    'NAME',
    'dcopy',
    'dscal',
    'daxpy',
    'ddot',
    'dnrm2',
    'idamax',
    'dgemv',
    'dgbmv',
    'dgemm',
    'dgetrans',
]

NAME = 'native'


# =============================================================================
# Helpers
# =============================================================================

def _strided(buf: np.ndarray, n: int, inc: int, off: int) -> np.ndarray:
    """Strided view of ``n`` elements starting at ``off`` with step ``inc``."""
    if n == 1:
        return buf[off:off + 1]
    return buf[off:off + (n - 1) * inc + 1:inc]


def _as_matrix(buf: np.ndarray, rows: int, cols: int) -> np.ndarray:
    """Fortran-ordered 2D view of a column-major buffer (no copy)."""
    return buf[:rows * cols].reshape((cols, rows)).T


# =============================================================================
# Level 1
# =============================================================================

# The BLAS wrappers reject zero increments; a single element has no stride.

def dcopy(n: int, x: np.ndarray, y: np.ndarray,
          incx: int = 1, incy: int = 1, offx: int = 0, offy: int = 0) -> None:
    """y[offy + k*incy] = x[offx + k*incx] for k in [0, n)."""
    if n <= 0:
        return
    if n == 1:
        incx = incy = 1
    result = blas.dcopy(x, y, n=n, offx=offx, incx=incx, offy=offy, incy=incy)
    if result is not y:
        _strided(y, n, incy, offy)[:] = _strided(result, n, incy, offy)


def dscal(n: int, alpha: float, x: np.ndarray, incx: int = 1, offx: int = 0) -> None:
    """x[offx + k*incx] *= alpha for k in [0, n)."""
    if n <= 0:
        return
    if n == 1:
        incx = 1
    result = blas.dscal(alpha, x, n=n, offx=offx, incx=incx)
    if result is not x:
        _strided(x, n, incx, offx)[:] = _strided(result, n, incx, offx)


def daxpy(n: int, alpha: float, x: np.ndarray, y: np.ndarray,
          incx: int = 1, incy: int = 1, offx: int = 0, offy: int = 0) -> None:
    """y[offy + k*incy] += alpha * x[offx + k*incx] for k in [0, n)."""
    if n <= 0:
        return
    if n == 1:
        incx = incy = 1
    result = blas.daxpy(x, y, n=n, a=alpha, offx=offx, incx=incx, offy=offy, incy=incy)
    if result is not y:
        _strided(y, n, incy, offy)[:] = _strided(result, n, incy, offy)


def ddot(n: int, x: np.ndarray, y: np.ndarray,
         incx: int = 1, incy: int = 1, offx: int = 0, offy: int = 0) -> float:
    """Dot product of two strided vectors."""
    if n <= 0:
        return 0.0
    if n == 1:
        return float(x[offx] * y[offy])
    return float(blas.ddot(x, y, n=n, offx=offx, incx=incx, offy=offy, incy=incy))


def dnrm2(n: int, x: np.ndarray, incx: int = 1, offx: int = 0) -> float:
    """Euclidean norm of a strided vector."""
    if n <= 0:
        return 0.0
    if n == 1:
        incx = 1
    return float(blas.dnrm2(x, n=n, offx=offx, incx=incx))


def idamax(n: int, x: np.ndarray, incx: int = 1, offx: int = 0) -> int:
    """Zero-based position (within the strided vector) of the largest |x|.

    The f2py wrappers disagree across SciPy releases on whether the returned
    index is zero- or one-based, so the search itself runs in NumPy.
    """
    if n <= 0:
        return -1
    return int(np.argmax(np.abs(_strided(x, n, incx, offx))))


# =============================================================================
# Level 2
# =============================================================================

def dgemv(m: int, n: int, alpha: float, a: np.ndarray, x: np.ndarray,
          beta: float, y: np.ndarray, trans: bool = False) -> None:
    """y = alpha * op(A) * x + beta * y for a column-major m x n matrix A."""
    len_x, len_y = (m, n) if trans else (n, m)
    if len_y <= 0:
        return
    if len_x <= 0:
        y[:len_y] *= beta
        return
    result = blas.dgemv(alpha, _as_matrix(a, m, n), x[:len_x], beta=beta,
                        y=np.array(y[:len_y]), trans=1 if trans else 0)
    y[:len_y] = result


def dgbmv(m: int, n: int, kl: int, ku: int, alpha: float, a: np.ndarray,
          x: np.ndarray, beta: float, y: np.ndarray, trans: bool = False) -> None:
    """y = alpha * op(A) * x + beta * y for an m x n band matrix A.

    ``a`` holds ``kl + ku + 1`` stored rows per column, column-major.
    """
    len_x, len_y = (m, n) if trans else (n, m)
    if len_y <= 0:
        return
    if len_x <= 0:
        y[:len_y] *= beta
        return
    band = _as_matrix(a, kl + ku + 1, n)
    result = blas.dgbmv(m, n, kl, ku, alpha, band, x[:len_x], beta=beta,
                        y=np.array(y[:len_y]), trans=1 if trans else 0)
    y[:len_y] = result


# =============================================================================
# Level 3
# =============================================================================

def dgemm(m: int, n: int, k: int, alpha: float, a: np.ndarray, b: np.ndarray,
          beta: float, c: np.ndarray, trans_a: bool = False, trans_b: bool = False) -> None:
    """C = alpha * op(A) * op(B) + beta * C.

    ``op(A)`` is m x k and ``op(B)`` is k x n; C is m x n. A transposed
    operand is stored physically as k x m (resp. n x k).
    """
    if m <= 0 or n <= 0:
        return
    if k <= 0:
        c[:m * n] *= beta
        return
    a2 = _as_matrix(a, k, m) if trans_a else _as_matrix(a, m, k)
    b2 = _as_matrix(b, n, k) if trans_b else _as_matrix(b, k, n)
    result = blas.dgemm(alpha, a2, b2, beta=beta, c=np.array(_as_matrix(c, m, n), order='F'),
                        trans_a=1 if trans_a else 0, trans_b=1 if trans_b else 0)
    c[:m * n] = result.ravel(order='F')


def dgetrans(rows: int, cols: int, a: np.ndarray) -> None:
    """Physically transpose a column-major rows x cols buffer in place.

    Afterwards ``a`` holds the cols x rows transpose, column-major.
    """
    size = rows * cols
    if size <= 0:
        return
    a[:size] = a[:size].reshape((cols, rows)).T.ravel()
