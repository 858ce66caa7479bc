"""Storage Conversions.

Helpers that move coefficients between the dense column-major layout and
the compact band layout. In band storage, physical cell ``(i, j)`` with
``j - super <= i <= j + sub`` lives at::

    i - j + super + j * (sub + super + 1)

Slots of the band buffer that fall outside the matrix (above row 0 or
below the last row) are never read.
"""

import numpy as np

from ..core.config import get_kernel

__all__ = [
    'band_width',
    'band_offset',
    'band_row_range',
    'dense_to_band_buffer',
    'band_to_dense_buffer',
    'diagonal_to_dense_buffer',
]


def band_width(sub: int, sup: int) -> int:
    """Stored rows per column."""
    return sub + sup + 1


def band_offset(i: int, j: int, sub: int, sup: int) -> int:
    """Buffer offset of the stored physical cell ``(i, j)``."""
    return i - j + sup + j * (sub + sup + 1)


def band_row_range(j: int, row_count: int, sub: int, sup: int):
    """Closed range ``(lo, hi)`` of stored rows in column ``j``; empty if ``hi < lo``."""
    return max(0, j - sup), min(row_count - 1, j + sub)


def dense_to_band_buffer(dense: np.ndarray, sub: int, sup: int, out: np.ndarray) -> np.ndarray:
    """Pack the in-band cells of a 2D array into a band buffer.

    Cells of ``dense`` outside the band are ignored; unused slots of ``out``
    are set to zero.
    """
    rows, cols = dense.shape
    out[:cols * band_width(sub, sup)] = 0.0
    for j in range(cols):
        lo, hi = band_row_range(j, rows, sub, sup)
        if hi < lo:
            continue
        start = band_offset(lo, j, sub, sup)
        out[start:start + hi - lo + 1] = dense[lo:hi + 1, j]
    return out


def band_to_dense_buffer(rows: int, cols: int, sub: int, sup: int,
                         band: np.ndarray, out: np.ndarray) -> np.ndarray:
    """Expand a band buffer into a zero-filled, column-major dense buffer."""
    blas = get_kernel()
    for j in range(cols):
        lo, hi = band_row_range(j, rows, sub, sup)
        if hi < lo:
            continue
        blas.dcopy(hi - lo + 1, band, out, offx=band_offset(lo, j, sub, sup), offy=lo + rows * j)
    return out


def diagonal_to_dense_buffer(n: int, diagonal: np.ndarray, out: np.ndarray) -> np.ndarray:
    """Write ``n`` diagonal coefficients into a zero-filled ``n x n`` dense buffer."""
    get_kernel().dcopy(n, diagonal, out, incx=1, incy=n + 1)
    return out
