"""LAPACK-style drivers used by the matrix layer.

Wraps :mod:`scipy.linalg` for singular value decompositions, banded LU
solves and dense matrix norms. SciPy does not expose ``dlangb``, so the band
norm is evaluated over the band storage with NumPy.

Norm selectors follow LAPACK: ``'M'`` (largest absolute value), ``'1'``
(maximum column sum), ``'I'`` (maximum row sum) and ``'F'`` (Frobenius).
"""

from typing import Tuple

import numpy as np
from scipy.linalg import get_lapack_funcs, solve_banded, svd

__all__ = [
    'dgesvd',
    'dgbsvd',
    'dgbsv',
    'dlange',
    'dlangb',
    'band_to_dense',
]

_NORM_SELECTORS = ('M', '1', 'I', 'F')


def _as_matrix(buf: np.ndarray, rows: int, cols: int) -> np.ndarray:
    return buf[:rows * cols].reshape((cols, rows)).T


def _check_norm(norm: str) -> str:
    norm = norm.upper()
    if norm == 'O':
        norm = '1'
    if norm not in _NORM_SELECTORS:
        raise ValueError(f"Invalid norm selector: {norm!r}")
    return norm


def band_to_dense(m: int, n: int, kl: int, ku: int, ab: np.ndarray) -> np.ndarray:
    """Expand band storage into a 2D ``m x n`` array (out-of-band cells are 0)."""
    width = kl + ku + 1
    dense = np.zeros((m, n))
    for j in range(n):
        lo = max(0, j - ku)
        hi = min(m - 1, j + kl)
        if hi < lo:
            continue
        start = ku + lo - j + j * width
        dense[lo:hi + 1, j] = ab[start:start + hi - lo + 1]
    return dense


# =============================================================================
# Decompositions
# =============================================================================

def dgesvd(m: int, n: int, a: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Full singular value decomposition of a column-major m x n matrix.

    Returns:
        Tuple ``(u, s, vt)`` where ``u`` is an m x m and ``vt`` an n x n
        column-major buffer and ``s`` holds the ``min(m, n)`` singular values
        in descending order.
    """
    u, s, vt = svd(_as_matrix(a, m, n), full_matrices=True, lapack_driver='gesvd')
    return u.ravel(order='F'), np.ascontiguousarray(s), vt.ravel(order='F')


def dgbsvd(m: int, n: int, kl: int, ku: int,
           ab: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Singular value decomposition of an m x n band matrix."""
    dense = band_to_dense(m, n, kl, ku, ab)
    return dgesvd(m, n, dense.ravel(order='F'))


# =============================================================================
# Solvers
# =============================================================================

def dgbsv(n: int, kl: int, ku: int, ab: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve ``A x = b`` for an n x n band matrix via LU with partial pivoting.

    ``ab`` is copied before factorisation; the solution overwrites ``b`` and
    is returned.

    Raises:
        numpy.linalg.LinAlgError: If the matrix is singular.
    """
    band = np.array(_as_matrix(ab, kl + ku + 1, n))
    solution = solve_banded((kl, ku), band, b[:n], overwrite_ab=True, check_finite=True)
    b[:n] = solution
    return b


# =============================================================================
# Norms
# =============================================================================

def dlange(norm: str, m: int, n: int, a: np.ndarray) -> float:
    """Norm of a column-major m x n dense matrix."""
    matrix = _as_matrix(a, m, n)
    lange, = get_lapack_funcs(('lange',), (matrix,))
    return float(lange(_check_norm(norm), matrix))


def dlangb(norm: str, n: int, kl: int, ku: int, ab: np.ndarray) -> float:
    """Norm of an n x n band matrix, touching only the stored band cells."""
    norm = _check_norm(norm)
    width = kl + ku + 1
    band = np.abs(_as_matrix(ab, width, n))
    # band[r, j] stores A[r - ku + j, j]
    rows = np.arange(width)[:, None] - ku + np.arange(n)[None, :]
    inside = (rows >= 0) & (rows < n)
    values = np.where(inside, band, 0.0)

    if norm == 'M':
        return float(values.max())
    if norm == '1':
        return float(values.sum(axis=0).max())
    if norm == 'I':
        row_sums = np.zeros(n)
        np.add.at(row_sums, rows[inside], values[inside])
        return float(row_sums.max())
    return float(np.sqrt(np.sum(values * values)))
