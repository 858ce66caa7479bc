"""Shared Buffer Handles.

Every matrix stores its coefficients in a :class:`BufferHandle`: a
one-dimensional, C-contiguous ``float64`` array plus the ownership model
under which the matrix holds it.

Aliasing Contract:
    - Transpose views share the handle's array with their source; a write
      through any holder is visible through all of them.
    - A float64 1D array passed to a constructor is BORROWED, not copied.
    - ``clone()`` (and ``to_owned()`` on matrices) produces OWNED storage
      that no other holder can observe.

NumPy reference counting keeps a shared array alive for as long as any
handle refers to it, so views never dangle.
"""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ..core.error import ArgumentError, DimensionMismatchError, RML_ERROR_BUFFER_TOO_SMALL
from ._types import Ownership

__all__ = [
    'BufferHandle',
    'as_float_buffer',
    'as_target_vector',
    'product_target',
]


def as_float_buffer(values: Any, copy: bool = False):
    """Convert ``values`` into a 1D float64 array.

    Returns:
        Tuple ``(array, borrowed)``; ``borrowed`` is True when ``values``
        itself is used without copying.

    Raises:
        ArgumentError: If the values are missing, not one-dimensional or not
            convertible to float64.
    """
    if values is None:
        raise ArgumentError(message="Buffer must not be None")
    if (not copy and isinstance(values, np.ndarray) and values.dtype == np.float64
            and values.ndim == 1 and values.flags.c_contiguous and values.flags.writeable):
        return values, True
    try:
        array = np.array(values, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        raise ArgumentError(message=f"Buffer is not convertible to float64: {e}") from None
    if array.ndim != 1:
        raise ArgumentError(message=f"Buffer must be one-dimensional, got ndim={array.ndim}")
    return array, False


@dataclass(eq=False)
class BufferHandle:
    """Column-major coefficient storage of one matrix.

    Attributes:
        data: 1D float64 array (may be longer than the matrix needs).
        ownership: How the holding matrix relates to ``data``.
        source: Handle this one was shared from (VIEW only).
    """
    data: np.ndarray
    ownership: Ownership = Ownership.OWNED
    source: Optional['BufferHandle'] = None

    @classmethod
    def allocate(cls, length: int) -> 'BufferHandle':
        """Zero-filled OWNED buffer."""
        return cls(np.zeros(length, dtype=np.float64), Ownership.OWNED)

    @classmethod
    def from_values(cls, values: Any, min_length: int, copy: bool = False) -> 'BufferHandle':
        """Wrap caller data, validating that it holds at least ``min_length`` values."""
        array, borrowed = as_float_buffer(values, copy=copy)
        if array.shape[0] < min_length:
            raise ArgumentError(
                RML_ERROR_BUFFER_TOO_SMALL,
                f"Buffer holds {array.shape[0]} values, at least {min_length} required",
            )
        return cls(array, Ownership.BORROWED if borrowed else Ownership.OWNED)

    @classmethod
    def for_output(cls, out: Optional[np.ndarray], length: int, zero: bool = False) -> 'BufferHandle':
        """Buffer for a result of ``length`` values.

        ``out`` is used in place when it is a writeable, contiguous 1D float64
        array with room for ``length`` values; otherwise a new buffer is
        allocated. With ``zero=True`` the used part of ``out`` is cleared.
        """
        if (isinstance(out, np.ndarray) and out.dtype == np.float64 and out.ndim == 1
                and out.flags.c_contiguous and out.flags.writeable and out.shape[0] >= length):
            if zero:
                out[:length] = 0.0
            return cls(out, Ownership.BORROWED)
        return cls.allocate(length)

    @property
    def is_owned(self) -> bool:
        return self.ownership is Ownership.OWNED

    @property
    def is_view(self) -> bool:
        return self.ownership is Ownership.VIEW

    def share(self) -> 'BufferHandle':
        """Handle on the same array, for a view of the holding matrix."""
        return BufferHandle(self.data, Ownership.VIEW, self)

    def clone(self, length: Optional[int] = None) -> 'BufferHandle':
        """OWNED deep copy (of the first ``length`` values, if given)."""
        data = self.data if length is None else self.data[:length]
        return BufferHandle(data.copy(), Ownership.OWNED)

    def is_shared_with(self, other: 'BufferHandle') -> bool:
        return np.shares_memory(self.data, other.data)

    def __len__(self) -> int:
        return self.data.shape[0]

    def __repr__(self) -> str:
        return f"BufferHandle(length={len(self)}, ownership={self.ownership.value})"


def as_target_vector(values: Any, length: int) -> np.ndarray:
    """Vector that an operation may overwrite with ``length`` results.

    A writeable, contiguous 1D float64 array is returned as is, so results
    land in the caller's array; anything else is copied.

    Raises:
        DimensionMismatchError: If fewer than ``length`` values are given.
    """
    if (isinstance(values, np.ndarray) and values.dtype == np.float64 and values.ndim == 1
            and values.flags.c_contiguous and values.flags.writeable):
        target = values
    else:
        target, _ = as_float_buffer(np.ravel(np.asarray(values, dtype=np.float64)), copy=True)
    if target.shape[0] < length:
        raise DimensionMismatchError(
            message=f"Vector of length {target.shape[0]} is shorter than {length}"
        )
    return target


def product_target(y: Optional[np.ndarray], length: int, beta: float) -> np.ndarray:
    """Result vector for ``y = alpha * op(A) * x + beta * y``."""
    if y is None:
        if beta != 0.0:
            raise ArgumentError(message="beta != 0 requires an input vector y")
        return np.zeros(length)
    return as_target_vector(y, length)
