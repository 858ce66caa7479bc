"""
Pytest configuration and shared fixtures for RML tests.

Every matrix test can run against both primitive libraries through the
``kernel`` fixture.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import rml
from rml import (
    DenseMatrix,
    DiagonalMatrix,
    GeneralBandMatrix,
    get_config,
)


# =============================================================================
# Test Data
# =============================================================================

# Band buffer with padding slots: rows=4, cols=3, sub=2, super=1. Only
# -999, -42, -88, ... sit outside the stored band.
BAND_TEST_ENTRIES = [
    -999, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, -42.0, 11, 12, 13, 14, -88, 15, 16, -123, -456
]

BAND_TEST_DENSE = np.array([
    [1, 4, 0],
    [2, 5, 8],
    [3, 6, 9],
    [0, 7, 10],
], dtype=np.float64)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(params=["native", "builtin"])
def kernel(request):
    """Run the test once per primitive library."""
    rml.set_kernel(request.param)
    yield rml.get_kernel()
    get_config().reset()


@pytest.fixture(autouse=True)
def restore_config():
    """Undo config changes made by a test."""
    yield
    get_config().reset()


@pytest.fixture
def square_dense():
    """
    Matrix:
    [[1, 2],
     [3, 4]]
    """
    return DenseMatrix.from_rows([[1.0, 2.0], [3.0, 4.0]])


@pytest.fixture
def rect_dense():
    """A 3x4 dense matrix without any symmetry."""
    return DenseMatrix.from_rows([
        [1.0, -2.0, 3.0, 0.5],
        [4.0, 5.0, -6.0, 2.0],
        [-7.0, 8.0, 9.0, 1.5],
    ])


@pytest.fixture
def tridiagonal():
    """
    4x4 tridiagonal matrix:
    [[2, -1,  0,  0],
     [-1, 2, -1,  0],
     [0, -1,  2, -1],
     [0,  0, -1,  2]]
    """
    rows = [[2, -1, 0, 0], [-1, 2, -1, 0], [0, -1, 2, -1], [0, 0, -1, 2]]
    return GeneralBandMatrix.from_dense_rows(rows, 1, 1)


@pytest.fixture
def rect_band():
    """The 4x3 band matrix BAND_TEST_DENSE (sub=2, super=1) over a padded buffer."""
    return GeneralBandMatrix(4, 3, 2, 1, BAND_TEST_ENTRIES)


@pytest.fixture
def diagonal():
    return DiagonalMatrix(3, [2.0, -5.0, 1.0])


@pytest.fixture
def rng():
    return np.random.default_rng(42)


# =============================================================================
# Helper Functions
# =============================================================================

def assert_matrix_equal(matrix, expected, rtol=1e-10, atol=1e-12):
    """Assert that a matrix reads as ``expected`` element by element."""
    expected = np.asarray(expected, dtype=np.float64)
    assert matrix.shape == expected.shape
    actual = np.array([[matrix[i, j] for j in range(matrix.column_count)]
                       for i in range(matrix.row_count)])
    np.testing.assert_allclose(actual, expected, rtol=rtol, atol=atol)


def random_band(rng, rows, cols, sub, sup):
    """Random band matrix together with its dense 2D counterpart."""
    dense = rng.standard_normal((rows, cols))
    mask = np.fromfunction(lambda i, j: (i - j <= sub) & (j - i <= sup), (rows, cols))
    dense = np.where(mask, dense, 0.0)
    return GeneralBandMatrix.from_dense_rows(dense, sub, sup), dense
