"""
Tests for DenseMatrix.

Covers construction and ownership, element access, transpose views,
extraction (dense copy, columns, rows, sub-matrices), symmetry, trace,
norms, SVD, physical transposition and vector products.
"""

import pytest
import numpy as np

from rml import (
    ArgumentError,
    ArgumentRangeError,
    DenseMatrix,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InvalidOperationError,
    MatrixNormType,
    Ownership,
    TransposeState,
)

from conftest import assert_matrix_equal


# =============================================================================
# Construction and Ownership
# =============================================================================

class TestConstruction:
    """Test DenseMatrix construction."""

    def test_column_major_buffer(self):
        """Element (i, j) sits at data[i + rows * j]."""
        a = DenseMatrix(2, 3, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        assert a.shape == (2, 3)
        assert a[0, 0] == 1.0
        assert a[1, 0] == 2.0
        assert a[0, 1] == 3.0
        assert a[1, 2] == 6.0

    def test_from_rows(self, square_dense):
        assert_matrix_equal(square_dense, [[1, 2], [3, 4]])
        np.testing.assert_array_equal(square_dense.data, [1.0, 3.0, 2.0, 4.0])

    @pytest.mark.parametrize("source", [
        np.array([[1.0, 2.0, 3.0]]),
        np.array([[1.0], [2.0], [3.0]]),
        np.asfortranarray([[1.0, 2.0], [3.0, 4.0]]),
        np.array([[1.0, 2.0], [3.0, 4.0]]),
    ])
    def test_from_rows_never_borrows(self, source):
        """Rows are always copied, whatever the memory order of the input."""
        before = source.copy()
        a = DenseMatrix.from_rows(source)
        assert a.ownership is Ownership.OWNED
        a[0, 0] = 99.0
        a.scale(10.0)
        np.testing.assert_array_equal(source, before)

    def test_zeros(self):
        a = DenseMatrix.zeros(3, 2)
        assert a.shape == (3, 2)
        assert not np.any(a.to_numpy())

    def test_borrowed_buffer(self):
        """A float64 array is used in place."""
        buf = np.array([1.0, 2.0, 3.0, 4.0])
        a = DenseMatrix(2, 2, buf)
        assert a.ownership is Ownership.BORROWED
        buf[3] = 10.0
        assert a[1, 1] == 10.0

    def test_copied_buffer(self):
        """Lists and forced copies are owned."""
        buf = np.array([1.0, 2.0, 3.0, 4.0])
        a = DenseMatrix(2, 2, buf, copy=True)
        assert a.ownership is Ownership.OWNED
        buf[0] = -1.0
        assert a[0, 0] == 1.0
        assert DenseMatrix(2, 2, [1, 2, 3, 4]).ownership is Ownership.OWNED

    def test_buffer_may_be_longer(self):
        a = DenseMatrix(1, 2, np.arange(5, dtype=np.float64))
        assert_matrix_equal(a, [[0, 1]])

    def test_buffer_too_small(self):
        with pytest.raises(ArgumentError):
            DenseMatrix(2, 2, [1.0, 2.0, 3.0])

    @pytest.mark.parametrize("rows, cols", [(0, 2), (2, -1)])
    def test_invalid_dimensions(self, rows, cols):
        with pytest.raises(ArgumentRangeError):
            DenseMatrix(rows, cols)

    def test_not_one_dimensional(self):
        with pytest.raises(ArgumentError):
            DenseMatrix(2, 2, np.ones((2, 2)))

    def test_ragged_rows(self):
        with pytest.raises(ArgumentError):
            DenseMatrix.from_rows([[1.0, 2.0], [3.0]])

    def test_copy_is_independent(self, square_dense):
        c = square_dense.copy()
        c[0, 0] = 100.0
        assert square_dense[0, 0] == 1.0
        assert c.ownership is Ownership.OWNED

    def test_to_owned(self):
        buf = np.array([1.0, 2.0])
        a = DenseMatrix(2, 1, buf)
        owned = a.to_owned()
        assert owned.ownership is Ownership.OWNED
        assert not owned.shares_buffer_with(a)

    def test_to_owned_keeps_owned_matrix(self, square_dense):
        """An owned matrix is returned as is; its transpose view is copied."""
        t = square_dense.T
        assert square_dense.ownership is Ownership.OWNED
        assert square_dense.to_owned() is square_dense
        owned = t.to_owned()
        assert owned is not t
        assert not owned.shares_buffer_with(square_dense)
        assert_matrix_equal(owned, [[1, 3], [2, 4]])

    def test_repr(self, square_dense):
        assert "DenseMatrix" in repr(square_dense)
        assert "(2, 2)" in repr(square_dense)


# =============================================================================
# Element Access
# =============================================================================

class TestElementAccess:
    """Indexing, bounds checks and assignment."""

    def test_getitem(self, square_dense):
        assert square_dense[0, 1] == 2.0
        assert square_dense[1, 0] == 3.0

    @pytest.mark.parametrize("key", [(2, 0), (0, 2), (-1, 0)])
    def test_out_of_bounds(self, square_dense, key):
        with pytest.raises(IndexOutOfBoundsError):
            square_dense[key]

    def test_bad_key(self, square_dense):
        with pytest.raises(TypeError):
            square_dense[0]
        with pytest.raises(TypeError):
            square_dense[0.5, 1]

    def test_setitem(self, square_dense):
        square_dense[1, 0] = 7.0
        assert square_dense[1, 0] == 7.0
        assert square_dense.data[1] == 7.0

    def test_setitem_through_view(self, square_dense):
        """Writes through a transpose view land in the shared buffer."""
        square_dense.T[0, 1] = -3.0
        assert square_dense[1, 0] == -3.0


# =============================================================================
# Transpose Views
# =============================================================================

class TestTranspose:
    """Transposition is an O(1) view."""

    def test_view_shares_buffer(self, rect_dense):
        t = rect_dense.T
        assert t.shape == (4, 3)
        assert t.transpose_state is TransposeState.TRANSPOSE
        assert t.ownership is Ownership.VIEW
        assert t.is_view
        assert t.shares_buffer_with(rect_dense)
        assert t.physical_row_count == 3

    def test_view_entries(self, rect_dense):
        expected = rect_dense.to_numpy().T
        assert_matrix_equal(rect_dense.T, expected)

    def test_double_transpose(self, rect_dense):
        tt = rect_dense.T.T
        assert tt.transpose_state is TransposeState.NO_TRANSPOSE
        assert_matrix_equal(tt, rect_dense.to_numpy())

    def test_mutation_visible(self, square_dense):
        t = square_dense.T
        square_dense[0, 1] = 42.0
        assert t[1, 0] == 42.0


# =============================================================================
# Extraction
# =============================================================================

class TestExtraction:
    """Dense copies, columns, rows and sub-matrices."""

    def test_to_dense(self, kernel, rect_dense):
        d = rect_dense.to_dense()
        assert d.ownership is Ownership.OWNED
        assert not d.shares_buffer_with(rect_dense)
        assert_matrix_equal(d, rect_dense.to_numpy())

    def test_to_dense_of_view(self, kernel, rect_dense):
        d = rect_dense.T.to_dense()
        assert d.transpose_state is TransposeState.NO_TRANSPOSE
        assert d.shape == (4, 3)
        assert_matrix_equal(d, rect_dense.to_numpy().T)

    def test_to_dense_into_buffer(self, kernel, square_dense):
        out = np.zeros(4)
        d = square_dense.to_dense(out=out)
        assert d.data is out
        np.testing.assert_array_equal(out, [1.0, 3.0, 2.0, 4.0])

    @pytest.mark.parametrize("transposed", [False, True])
    def test_get_column(self, kernel, rect_dense, transposed):
        m = rect_dense.T if transposed else rect_dense
        expected = m.to_numpy()
        for j in range(m.column_count):
            column = m.get_column(j)
            assert column.shape == (m.row_count, 1)
            np.testing.assert_allclose(column.data, expected[:, j])

    @pytest.mark.parametrize("transposed", [False, True])
    def test_get_transposed_row(self, kernel, rect_dense, transposed):
        m = rect_dense.T if transposed else rect_dense
        expected = m.to_numpy()
        for i in range(m.row_count):
            row = m.get_transposed_row(i)
            assert row.shape == (m.column_count, 1)
            np.testing.assert_allclose(row.data, expected[i, :])

    def test_column_out_of_range(self, rect_dense):
        with pytest.raises(IndexOutOfBoundsError):
            rect_dense.get_column(4)
        with pytest.raises(IndexOutOfBoundsError):
            rect_dense.get_transposed_row(3)

    @pytest.mark.parametrize("transposed", [False, True])
    def test_get_sub_matrix(self, kernel, rect_dense, transposed):
        m = rect_dense.T if transposed else rect_dense
        expected = m.to_numpy()[1:3, 0:2]
        sub = m.get_sub_matrix(1, 2, 0, 1)
        assert_matrix_equal(sub, expected)

    def test_single_element_sub_matrix(self, rect_dense):
        sub = rect_dense.get_sub_matrix(2, 2, 3, 3)
        assert_matrix_equal(sub, [[1.5]])

    @pytest.mark.parametrize("bounds", [(0, 3, 0, 0), (1, 0, 0, 0), (0, 0, 2, 4), (-1, 0, 0, 0)])
    def test_sub_matrix_out_of_range(self, rect_dense, bounds):
        with pytest.raises(ArgumentError):
            rect_dense.get_sub_matrix(*bounds)


# =============================================================================
# Properties
# =============================================================================

class TestProperties:
    """Symmetry, trace and norms."""

    def test_trace(self, square_dense):
        assert square_dense.get_trace() == 5.0
        assert square_dense.T.get_trace() == 5.0

    def test_trace_not_square(self, rect_dense):
        with pytest.raises(InvalidOperationError):
            rect_dense.get_trace()

    def test_symmetric(self):
        s = DenseMatrix.from_rows([[1.0, 2.0, 3.0], [2.0, 5.0, 6.0], [3.0, 6.0, 9.0]])
        assert s.is_symmetric()
        assert s.T.is_symmetric()

    def test_not_symmetric(self, square_dense, rect_dense):
        assert not square_dense.is_symmetric()
        assert not rect_dense.is_symmetric()

    def test_symmetry_tolerance(self):
        s = DenseMatrix.from_rows([[1.0, 2.0], [2.0 + 1e-9, 1.0]])
        assert not s.is_symmetric()
        assert s.is_symmetric(tolerance=1e-8)

    @pytest.mark.parametrize("norm_type", list(MatrixNormType))
    def test_norms(self, rect_dense, norm_type):
        a = rect_dense.to_numpy()
        expected = {
            MatrixNormType.LARGEST_ABSOLUTE_VALUE: np.abs(a).max(),
            MatrixNormType.ONE_NORM: np.linalg.norm(a, 1),
            MatrixNormType.INFINITY: np.linalg.norm(a, np.inf),
            MatrixNormType.FROBENIUS: np.linalg.norm(a, "fro"),
        }[norm_type]
        assert rect_dense.get_norm(norm_type) == pytest.approx(expected)

    def test_norm_swap_under_transpose(self, rect_dense):
        """The one-norm of A^t is the infinity norm of A."""
        t = rect_dense.T
        assert t.get_norm(MatrixNormType.ONE_NORM) == pytest.approx(
            rect_dense.get_norm(MatrixNormType.INFINITY))
        assert t.get_norm(MatrixNormType.INFINITY) == pytest.approx(
            rect_dense.get_norm(MatrixNormType.ONE_NORM))
        assert t.get_norm() == pytest.approx(rect_dense.get_norm())

    def test_default_norm_is_frobenius(self, square_dense):
        assert square_dense.get_norm() == pytest.approx(np.sqrt(30.0))


# =============================================================================
# Layout Changes and Decompositions
# =============================================================================

class TestTransposeInPlace:
    """Physical transposition."""

    def test_untransposed_becomes_transpose(self, kernel, rect_dense):
        expected = rect_dense.to_numpy().T
        result = rect_dense.transpose_in_place()
        assert result is rect_dense
        assert rect_dense.shape == (4, 3)
        assert rect_dense.transpose_state is TransposeState.NO_TRANSPOSE
        assert_matrix_equal(rect_dense, expected)

    def test_view_keeps_logical_value(self, kernel, rect_dense):
        t = rect_dense.T
        expected = t.to_numpy()
        t.transpose_in_place()
        assert t.transpose_state is TransposeState.NO_TRANSPOSE
        assert t.physical_row_count == 4
        assert_matrix_equal(t, expected)


class TestSingularValueDecomposition:
    """A = U * diag(s) * V^t."""

    @pytest.mark.parametrize("transposed", [False, True])
    def test_reconstruction(self, rect_dense, transposed):
        m = rect_dense.T if transposed else rect_dense
        a = m.to_numpy()
        u, s, vt = m.get_singular_value_decomposition()
        assert u.shape == (m.row_count, m.row_count)
        assert vt.shape == (m.column_count, m.column_count)
        sigma = np.zeros(m.shape)
        sigma[:len(s), :len(s)] = np.diag(s)
        np.testing.assert_allclose(u.to_numpy() @ sigma @ vt.to_numpy(), a, atol=1e-10)
        np.testing.assert_allclose(s, np.linalg.svd(a, compute_uv=False))

    def test_input_unchanged(self, square_dense):
        before = square_dense.to_numpy()
        square_dense.get_singular_value_decomposition()
        np.testing.assert_array_equal(square_dense.to_numpy(), before)


# =============================================================================
# Vector Products
# =============================================================================

class TestVectorProducts:
    """Matrix-vector products and bilinear forms."""

    @pytest.mark.parametrize("transposed", [False, True])
    def test_vector_product(self, kernel, rect_dense, transposed):
        m = rect_dense.T if transposed else rect_dense
        x = np.arange(1.0, m.column_count + 1)
        np.testing.assert_allclose(m.get_vector_product(x), m.to_numpy() @ x)

    def test_vector_product_accumulates(self, kernel, square_dense):
        y = np.array([1.0, 1.0])
        result = square_dense.get_vector_product([1.0, 1.0], alpha=2.0, beta=3.0, y=y)
        assert result is y
        np.testing.assert_allclose(y, [9.0, 17.0])

    def test_vector_product_needs_y(self, square_dense):
        with pytest.raises(ArgumentError):
            square_dense.get_vector_product([1.0, 1.0], beta=1.0)

    def test_vector_length_mismatch(self, rect_dense):
        with pytest.raises(DimensionMismatchError):
            rect_dense.get_vector_product([1.0, 2.0])

    @pytest.mark.parametrize("transposed", [False, True])
    def test_bilinear_form(self, kernel, square_dense, transposed):
        m = square_dense.T if transposed else square_dense
        x = np.array([1.0, -2.0])
        assert m.get_bilinear_form(x) == pytest.approx(x @ m.to_numpy() @ x)

    def test_bilinear_form_not_square(self, rect_dense):
        with pytest.raises(InvalidOperationError):
            rect_dense.get_bilinear_form([1.0, 2.0, 3.0])
