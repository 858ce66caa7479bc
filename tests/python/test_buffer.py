"""
Tests for buffer handles and layout conversions.
"""

import pytest
import numpy as np

from rml import ArgumentError, DimensionMismatchError, MatrixNormType, Ownership, TransposeState
from rml.core.error import RML_ERROR_BUFFER_TOO_SMALL, InvariantViolationError
from rml.matrix import BufferHandle, resolve_norm_type
from rml.matrix._buffer import as_float_buffer, as_target_vector, product_target
from rml.matrix._conversion import band_offset, band_row_range, dense_to_band_buffer


class TestBufferHandle:
    """Ownership tracking of coefficient buffers."""

    def test_allocate(self):
        handle = BufferHandle.allocate(4)
        assert handle.is_owned
        assert len(handle) == 4
        assert not np.any(handle.data)

    def test_borrow_float64(self):
        values = np.arange(3, dtype=np.float64)
        handle = BufferHandle.from_values(values, 3)
        assert handle.data is values
        assert handle.ownership is Ownership.BORROWED

    @pytest.mark.parametrize("values", [
        [1, 2, 3],
        np.arange(3, dtype=np.int64),
        np.arange(6, dtype=np.float64)[::2],
    ])
    def test_copy_otherwise(self, values):
        handle = BufferHandle.from_values(values, 3)
        assert handle.is_owned
        assert handle.data.dtype == np.float64
        assert handle.data.flags.c_contiguous

    def test_too_small(self):
        with pytest.raises(ArgumentError) as info:
            BufferHandle.from_values([1.0], 2)
        assert info.value.code == RML_ERROR_BUFFER_TOO_SMALL

    def test_share_and_clone(self):
        handle = BufferHandle.allocate(3)
        view = handle.share()
        assert view.is_view
        assert view.source is handle
        assert view.is_shared_with(handle)
        clone = handle.clone(2)
        assert clone.is_owned
        assert len(clone) == 2
        assert not clone.is_shared_with(handle)

    def test_for_output(self):
        out = np.full(5, 3.0)
        handle = BufferHandle.for_output(out, 4, zero=True)
        assert handle.data is out
        np.testing.assert_array_equal(out, [0, 0, 0, 0, 3])
        # too short: a fresh buffer is allocated
        assert BufferHandle.for_output(np.zeros(2), 4).data.shape == (4,)

    def test_none_rejected(self):
        with pytest.raises(ArgumentError):
            as_float_buffer(None)


class TestTargetVectors:
    """Vectors that operations write results into."""

    def test_in_place(self):
        y = np.zeros(3)
        assert as_target_vector(y, 3) is y

    def test_copied(self):
        y = [1, 2, 3]
        target = as_target_vector(y, 3)
        assert target.dtype == np.float64
        np.testing.assert_array_equal(target, [1.0, 2.0, 3.0])

    def test_too_short(self):
        with pytest.raises(DimensionMismatchError):
            as_target_vector(np.zeros(2), 3)

    def test_product_target(self):
        np.testing.assert_array_equal(product_target(None, 2, 0.0), [0.0, 0.0])
        with pytest.raises(ArgumentError):
            product_target(None, 2, 1.0)


class TestConversion:
    """Band storage index arithmetic."""

    def test_band_offset(self):
        # rows=4, cols=3, sub=2, super=1: width 4
        assert band_offset(0, 0, 2, 1) == 1
        assert band_offset(3, 1, 2, 1) == 7
        assert band_offset(1, 2, 2, 1) == 8

    def test_band_row_range(self):
        assert band_row_range(0, 4, 2, 1) == (0, 2)
        assert band_row_range(2, 4, 2, 1) == (1, 3)

    def test_dense_to_band(self):
        dense = np.array([[1.0, 4.0, 0.0], [2.0, 5.0, 8.0], [3.0, 6.0, 9.0], [0.0, 7.0, 10.0]])
        out = np.full(12, -1.0)
        dense_to_band_buffer(dense, 2, 1, out)
        np.testing.assert_array_equal(out, [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 0])


class TestNormResolution:
    """One and infinity norms swap under transposition."""

    @pytest.mark.parametrize("norm_type, expected", [
        (MatrixNormType.ONE_NORM, MatrixNormType.INFINITY),
        (MatrixNormType.INFINITY, MatrixNormType.ONE_NORM),
        (MatrixNormType.FROBENIUS, MatrixNormType.FROBENIUS),
        (MatrixNormType.LARGEST_ABSOLUTE_VALUE, MatrixNormType.LARGEST_ABSOLUTE_VALUE),
    ])
    def test_transposed(self, norm_type, expected):
        assert resolve_norm_type(norm_type, TransposeState.TRANSPOSE) is expected
        assert resolve_norm_type(norm_type, TransposeState.NO_TRANSPOSE) is norm_type

    def test_unknown(self):
        with pytest.raises(InvariantViolationError):
            resolve_norm_type("spectral", TransposeState.TRANSPOSE)
