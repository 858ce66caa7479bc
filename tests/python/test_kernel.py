"""
Tests for the primitive libraries.

Both libraries must produce the same results for the same strided calls;
the LAPACK drivers are tested once.
"""

import pytest
import numpy as np

from rml._kernel import lapack
from rml._kernel.lib_loader import LibraryNotFoundError, available_kernels, load_kernel


class TestLibraryLoader:
    """Test library loading functionality."""

    def test_available(self):
        """Both libraries are registered."""
        assert set(available_kernels()) == {"native", "builtin"}

    def test_load_cached(self):
        """Repeated loads return the same module."""
        assert load_kernel("builtin") is load_kernel("builtin")
        assert load_kernel("native").NAME == "native"

    def test_unknown_library(self):
        """Unknown names raise LibraryNotFoundError."""
        with pytest.raises(LibraryNotFoundError):
            load_kernel("mkl")


class TestLevel1:
    """Vector routines with explicit strides and offsets."""

    def test_dcopy_strided(self, kernel):
        """Copy every second element into a strided target."""
        x = np.arange(10, dtype=np.float64)
        y = np.zeros(9)
        kernel.dcopy(3, x, y, incx=2, incy=3, offx=1, offy=2)
        np.testing.assert_array_equal(y, [0, 0, 1, 0, 0, 3, 0, 0, 5])

    def test_dcopy_single_element(self, kernel):
        """A single element ignores the strides."""
        x = np.array([1.0, 2.0, 3.0])
        y = np.zeros(3)
        kernel.dcopy(1, x, y, incx=0, incy=0, offx=2, offy=1)
        np.testing.assert_array_equal(y, [0, 3, 0])

    def test_dscal(self, kernel):
        """Scale a strided slice in place."""
        x = np.ones(6)
        kernel.dscal(3, -2.0, x, incx=2, offx=1)
        np.testing.assert_array_equal(x, [1, -2, 1, -2, 1, -2])

    def test_daxpy(self, kernel):
        """y += alpha * x over strided slices."""
        x = np.array([1.0, 2.0, 3.0, 4.0])
        y = np.array([10.0, 20.0, 30.0])
        kernel.daxpy(2, 0.5, x, y, incx=2, incy=2, offx=0, offy=0)
        np.testing.assert_array_equal(y, [10.5, 20.0, 31.5])

    def test_ddot(self, kernel):
        """Dot product with a strided second vector."""
        x = np.array([1.0, 2.0, 3.0])
        y = np.array([4.0, 0.0, 5.0, 0.0, 6.0])
        assert kernel.ddot(3, x, y, incy=2) == pytest.approx(32.0)

    def test_ddot_empty(self, kernel):
        assert kernel.ddot(0, np.zeros(1), np.zeros(1)) == 0.0

    def test_dnrm2(self, kernel):
        """Euclidean norm."""
        assert kernel.dnrm2(2, np.array([3.0, 4.0])) == pytest.approx(5.0)

    def test_idamax(self, kernel):
        """Zero-based position of the largest absolute value."""
        x = np.array([1.0, -7.0, 3.0, 9.0, 2.0])
        assert kernel.idamax(5, x) == 3
        assert kernel.idamax(2, x, incx=2) == 1
        assert kernel.idamax(2, x, incx=3, offx=1) == 0


class TestLevel2And3:
    """Matrix routines on column-major buffers."""

    def test_dgemv(self, kernel, rng):
        """y = alpha * A * x + beta * y, plain and transposed."""
        a = rng.standard_normal((3, 4))
        buf = a.ravel(order="F")
        x = rng.standard_normal(4)
        y = np.ones(3)
        kernel.dgemv(3, 4, 2.0, buf, x, 0.5, y)
        np.testing.assert_allclose(y, 2.0 * a @ x + 0.5)

        z = rng.standard_normal(3)
        out = np.zeros(4)
        kernel.dgemv(3, 4, 1.0, buf, z, 0.0, out, trans=True)
        np.testing.assert_allclose(out, a.T @ z)

    def test_dgbmv(self, kernel):
        """Band matrix-vector product matches the dense product."""
        dense = np.array([[1.0, 4.0, 0.0], [2.0, 5.0, 8.0], [3.0, 6.0, 9.0], [0.0, 7.0, 10.0]])
        band = np.array([0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 0], dtype=np.float64)
        x = np.array([1.0, -1.0, 2.0])
        y = np.zeros(4)
        kernel.dgbmv(4, 3, 2, 1, 1.0, band, x, 0.0, y)
        np.testing.assert_allclose(y, dense @ x)

        v = np.array([1.0, 2.0, 3.0, 4.0])
        w = np.zeros(3)
        kernel.dgbmv(4, 3, 2, 1, 1.0, band, v, 0.0, w, trans=True)
        np.testing.assert_allclose(w, dense.T @ v)

    @pytest.mark.parametrize("trans_a", [False, True])
    @pytest.mark.parametrize("trans_b", [False, True])
    def test_dgemm(self, kernel, rng, trans_a, trans_b):
        """C = alpha * op(A) * op(B) + beta * C for all operand layouts."""
        m, n, k = 3, 2, 4
        op_a = rng.standard_normal((m, k))
        op_b = rng.standard_normal((k, n))
        a = (op_a.T if trans_a else op_a).ravel(order="F")
        b = (op_b.T if trans_b else op_b).ravel(order="F")
        c0 = rng.standard_normal((m, n))
        c = c0.ravel(order="F").copy()
        kernel.dgemm(m, n, k, 1.5, a, b, -1.0, c, trans_a=trans_a, trans_b=trans_b)
        expected = 1.5 * op_a @ op_b - c0
        np.testing.assert_allclose(c, expected.ravel(order="F"))

    def test_dgetrans(self, kernel):
        """Column-major 2x3 becomes its column-major 3x2 transpose."""
        a = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        buf = a.ravel(order="F")
        kernel.dgetrans(2, 3, buf)
        np.testing.assert_array_equal(buf, a.T.ravel(order="F"))


class TestLapack:
    """LAPACK-style drivers."""

    def test_dlange(self):
        a = np.array([[1.0, -2.0], [3.0, 4.0]])
        buf = a.ravel(order="F")
        assert lapack.dlange("M", 2, 2, buf) == pytest.approx(4.0)
        assert lapack.dlange("1", 2, 2, buf) == pytest.approx(6.0)
        assert lapack.dlange("O", 2, 2, buf) == pytest.approx(6.0)
        assert lapack.dlange("I", 2, 2, buf) == pytest.approx(7.0)
        assert lapack.dlange("F", 2, 2, buf) == pytest.approx(np.sqrt(30.0))

    def test_dlange_invalid(self):
        with pytest.raises(ValueError):
            lapack.dlange("X", 1, 1, np.ones(1))

    def test_dlangb_ignores_unused_slots(self):
        """Padding slots of the band buffer never enter the norm."""
        # 3x3 tridiagonal [[1, 2, 0], [3, 4, 5], [0, 6, 7]]
        band = np.array([99.0, 1.0, 3.0, 2.0, 4.0, 6.0, 5.0, 7.0, -99.0])
        dense = np.array([[1.0, 2.0, 0.0], [3.0, 4.0, 5.0], [0.0, 6.0, 7.0]])
        assert lapack.dlangb("M", 3, 1, 1, band) == pytest.approx(7.0)
        assert lapack.dlangb("1", 3, 1, 1, band) == pytest.approx(np.abs(dense).sum(axis=0).max())
        assert lapack.dlangb("I", 3, 1, 1, band) == pytest.approx(np.abs(dense).sum(axis=1).max())
        assert lapack.dlangb("F", 3, 1, 1, band) == pytest.approx(np.linalg.norm(dense))

    def test_band_to_dense(self):
        band = np.array([99.0, 1.0, 3.0, 2.0, 4.0, 6.0, 5.0, 7.0, -99.0])
        expected = np.array([[1.0, 2.0, 0.0], [3.0, 4.0, 5.0], [0.0, 6.0, 7.0]])
        np.testing.assert_array_equal(lapack.band_to_dense(3, 3, 1, 1, band), expected)

    def test_dgbsv(self):
        """Solution overwrites b; the band buffer is left untouched."""
        band = np.array([0.0, 4.0, 1.0, 1.0, 4.0, 1.0, 1.0, 4.0, 0.0])
        original = band.copy()
        dense = np.array([[4.0, 1.0, 0.0], [1.0, 4.0, 1.0], [0.0, 1.0, 4.0]])
        b = np.array([1.0, 2.0, 3.0])
        result = lapack.dgbsv(3, 1, 1, band, b)
        assert result is b
        np.testing.assert_allclose(dense @ b, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(band, original)

    def test_dgesvd(self, rng):
        """u * diag(s) * vt reproduces the input."""
        a = rng.standard_normal((3, 2))
        u, s, vt = lapack.dgesvd(3, 2, a.ravel(order="F"))
        u = u.reshape((3, 3), order="F")
        vt = vt.reshape((2, 2), order="F")
        sigma = np.zeros((3, 2))
        sigma[:2, :2] = np.diag(s)
        np.testing.assert_allclose(u @ sigma @ vt, a, atol=1e-12)
        assert s[0] >= s[1]
