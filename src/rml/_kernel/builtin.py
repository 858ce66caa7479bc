"""Build-in primitive library implemented with NumPy strided slicing.

Mirrors :mod:`rml._kernel.native` function by function (same argument order,
same in-place contract) so the matrix layer can switch between them through
:func:`rml.core.config.set_kernel` without any change in results beyond
floating-point rounding.
"""

import numpy as np

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

NAME = 'builtin'


def _strided(buf: np.ndarray, n: int, inc: int, off: int) -> np.ndarray:
    if n == 1:
        return buf[off:off + 1]
    return buf[off:off + (n - 1) * inc + 1:inc]


def _as_matrix(buf: np.ndarray, rows: int, cols: int) -> np.ndarray:
    return buf[:rows * cols].reshape((cols, rows)).T


# =============================================================================
# Level 1
# =============================================================================

def dcopy(n, x, y, incx=1, incy=1, offx=0, offy=0):
    if n <= 0:
        return
    _strided(y, n, incy, offy)[:] = _strided(x, n, incx, offx)


def dscal(n, alpha, x, incx=1, offx=0):
    if n <= 0:
        return
    _strided(x, n, incx, offx)[:] *= alpha


def daxpy(n, alpha, x, y, incx=1, incy=1, offx=0, offy=0):
    if n <= 0:
        return
    _strided(y, n, incy, offy)[:] += alpha * _strided(x, n, incx, offx)


def ddot(n, x, y, incx=1, incy=1, offx=0, offy=0):
    if n <= 0:
        return 0.0
    return float(np.dot(_strided(x, n, incx, offx), _strided(y, n, incy, offy)))


def dnrm2(n, x, incx=1, offx=0):
    if n <= 0:
        return 0.0
    return float(np.linalg.norm(_strided(x, n, incx, offx)))


def idamax(n, x, incx=1, offx=0):
    if n <= 0:
        return -1
    return int(np.argmax(np.abs(_strided(x, n, incx, offx))))


# =============================================================================
# Level 2
# =============================================================================

def dgemv(m, n, alpha, a, x, beta, y, trans=False):
    len_x, len_y = (m, n) if trans else (n, m)
    if len_y <= 0:
        return
    op_a = _as_matrix(a, m, n)
    if trans:
        op_a = op_a.T
    product = op_a @ x[:len_x] if len_x > 0 else 0.0
    y[:len_y] = alpha * product + (beta * y[:len_y] if beta != 0.0 else 0.0)


def dgbmv(m, n, kl, ku, alpha, a, x, beta, y, trans=False):
    """Band matrix-vector product, one stored column at a time."""
    len_x, len_y = (m, n) if trans else (n, m)
    if len_y <= 0:
        return
    width = kl + ku + 1
    acc = np.zeros(len_y)
    for j in range(min(n, m + ku)):
        lo = max(0, j - ku)
        hi = min(m - 1, j + kl)
        if hi < lo:
            continue
        start = ku + lo - j + j * width
        column = a[start:start + hi - lo + 1]
        if trans:
            acc[j] = np.dot(column, x[lo:hi + 1])
        else:
            acc[lo:hi + 1] += x[j] * column
    y[:len_y] = alpha * acc + (beta * y[:len_y] if beta != 0.0 else 0.0)


# =============================================================================
# Level 3
# =============================================================================

def dgemm(m, n, k, alpha, a, b, beta, c, trans_a=False, trans_b=False):
    if m <= 0 or n <= 0:
        return
    op_a = _as_matrix(a, k, m).T if trans_a else _as_matrix(a, m, k)
    op_b = _as_matrix(b, n, k).T if trans_b else _as_matrix(b, k, n)
    product = op_a @ op_b if k > 0 else np.zeros((m, n))
    current = _as_matrix(c, m, n)
    result = alpha * product + (beta * current if beta != 0.0 else 0.0)
    c[:m * n] = result.ravel(order='F')


def dgetrans(rows, cols, a):
    size = rows * cols
    if size <= 0:
        return
    a[:size] = a[:size].reshape((cols, rows)).T.ravel()
