# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from densela.exceptions import WrongSizeError
from densela.matrix import Matrix

TEST_ITERATIONS = 20
logger = logging.getLogger(__name__)


def _random(rows, columns, seed):
    return Matrix.create_with_uniform_random_values(rows, columns, -1.0, 1.0, seed)


def test_new_matrix_is_zero_filled():
    m = Matrix(3, 4)
    assert m.shape == (3, 4)
    assert m.rows == 3 and m.columns == 4
    assert np.all(m.buffer == 0.0)
    np.testing.assert_array_equal(m.column_index, [0, 3, 6, 9])


@pytest.mark.parametrize("rows,columns", [(0, 1), (1, 0), (-2, 3)])
def test_non_positive_size_raises(rows, columns):
    with pytest.raises(WrongSizeError):
        Matrix(rows, columns)


def test_storage_is_column_major():
    values = np.arange(6, dtype=float).reshape(2, 3)
    m = Matrix.from_ndarray(values)
    # column 0 = (0, 3), column 1 = (1, 4), column 2 = (2, 5)
    np.testing.assert_array_equal(m.buffer, [0, 3, 1, 4, 2, 5])
    for r in range(2):
        for c in range(3):
            assert m.get_element_at(r, c) == values[r, c]
            assert m[r, c] == values[r, c]
            assert m.buffer[m.get_index(r, c)] == values[r, c]


def test_element_setters_and_index_access():
    m = Matrix(2, 3)
    m.set_element_at(1, 2, 7.0)
    m[0, 1] = -1.0
    assert m.get_element_at_index(m.get_index(1, 2)) == 7.0
    # row-major index of (0, 1) in a 2x3 matrix is 1
    assert m.get_element_at_index(1, column_order=False) == -1.0

    m.set_element_at_index(0, 5.0)
    m.set_element_at_index(5, 9.0, column_order=False)
    assert m[0, 0] == 5.0
    assert m[1, 2] == 9.0


def test_clone_is_independent():
    m = _random(3, 3, 0)
    c = m.clone()
    assert c.equals(m)
    c[0, 0] = 100.0
    assert not c.equals(m)


def test_copy_to_and_copy_from_resize_only_when_needed():
    m = _random(2, 5, 1)
    target = Matrix(2, 5)
    buffer = target.buffer
    m.copy_to(target)
    assert target.buffer is buffer
    assert target.equals(m)

    other = Matrix(4, 4)
    other.copy_from(m)
    assert other.shape == (2, 5)
    assert other.equals(m)


def test_add_subtract_product_three_forms():
    a = _random(3, 2, 2)
    b = _random(3, 2, 3)
    A, B = a.to_ndarray(), b.to_ndarray()

    np.testing.assert_allclose(a.add_and_return_new(b).to_ndarray(), A + B)
    np.testing.assert_allclose(a.subtract_and_return_new(b).to_ndarray(), A - B)
    np.testing.assert_allclose(
        a.element_by_element_product_and_return_new(b).to_ndarray(), A * B
    )

    result = Matrix(1, 1)
    a.add(b, result)
    assert result.shape == (3, 2)
    np.testing.assert_allclose(result.to_ndarray(), A + B)

    a.subtract(b)
    np.testing.assert_allclose(a.to_ndarray(), A - B)


def test_elementwise_shape_mismatch_raises():
    a = Matrix(2, 3)
    b = Matrix(3, 2)
    with pytest.raises(WrongSizeError):
        a.add(b)
    with pytest.raises(WrongSizeError):
        a.element_by_element_product_and_return_new(b)
    # WrongSizeError is also a ValueError
    with pytest.raises(ValueError):
        a.subtract(b)


def test_multiply_by_scalar():
    a = _random(2, 2, 4)
    A = a.to_ndarray()
    np.testing.assert_allclose(a.multiply_by_scalar_and_return_new(-3.0).to_ndarray(), -3.0 * A)
    a.multiply_by_scalar(0.5)
    np.testing.assert_allclose(a.to_ndarray(), 0.5 * A)


@pytest.mark.parametrize("rows,columns", [(1, 1), (3, 2), (4, 6)])
def test_add_then_subtract_restores_matrix(rows, columns):
    for i in range(TEST_ITERATIONS):
        a = _random(rows, columns, 2 * i)
        b = _random(rows, columns, 2 * i + 1)
        original = a.clone()

        a.add(b)
        a.subtract(b)
        assert a.equals(original, 1e-12)

        restored = original.add_and_return_new(b).subtract_and_return_new(b)
        assert restored.equals(original, 1e-12)


@pytest.mark.parametrize("p,q,r,s", [(1, 1, 1, 1), (2, 3, 4, 5), (5, 1, 3, 2), (4, 4, 4, 4)])
def test_multiply_is_associative(p, q, r, s):
    for i in range(TEST_ITERATIONS):
        a = _random(p, q, 3 * i)
        b = _random(q, r, 3 * i + 1)
        c = _random(r, s, 3 * i + 2)

        left = a.multiply_and_return_new(b).multiply_and_return_new(c)
        right = a.multiply_and_return_new(b.multiply_and_return_new(c))
        assert left.shape == (p, s)
        assert left.equals(right, 1e-10)

        # in place forms
        ab = a.clone()
        ab.multiply(b)
        ab.multiply(c)
        bc = b.clone()
        bc.multiply(c)
        a.multiply(bc)
        assert ab.equals(a, 1e-10)


@pytest.mark.parametrize("p,q,r", [(1, 1, 1), (3, 4, 2), (5, 2, 6)])
def test_multiply_matches_numpy(p, q, r):
    a = _random(p, q, p)
    b = _random(q, r, r)
    expected = a.to_ndarray() @ b.to_ndarray()

    np.testing.assert_allclose(a.multiply_and_return_new(b).to_ndarray(), expected)

    result = Matrix(1, 1)
    a.multiply(b, result)
    np.testing.assert_allclose(result.to_ndarray(), expected)

    a.multiply(b)
    assert a.shape == (p, r)
    np.testing.assert_array_equal(a.column_index, np.arange(r) * p)
    np.testing.assert_allclose(a.to_ndarray(), expected)


def test_multiply_wrong_size_raises():
    with pytest.raises(WrongSizeError):
        Matrix(2, 3).multiply(Matrix(2, 3))
    with pytest.raises(WrongSizeError):
        Matrix(2, 3).multiply_and_return_new(Matrix(4, 1))


def test_kronecker_product():
    a = Matrix.from_ndarray([[1.0, 2.0], [3.0, 4.0]])
    b = Matrix.from_ndarray([[0.0, 1.0, 2.0]])
    expected = np.kron(a.to_ndarray(), b.to_ndarray())
    np.testing.assert_array_equal(a.multiply_kronecker_and_return_new(b).to_ndarray(), expected)
    a.multiply_kronecker(b)
    assert a.shape == (2, 6)
    np.testing.assert_array_equal(a.to_ndarray(), expected)


def test_transpose_is_exact_and_involutive():
    for i in range(TEST_ITERATIONS):
        rows, columns = 1 + i % 4, 1 + (i * 7) % 5
        m = _random(rows, columns, i)
        t = m.transpose_and_return_new()
        assert t.shape == (columns, rows)
        np.testing.assert_array_equal(t.to_ndarray(), m.to_ndarray().T)

        result = Matrix(1, 1)
        t.transpose(result)
        assert result == m

        original = m.clone()
        m.transpose()
        m.transpose()
        assert m == original


def test_transpose_into_itself():
    m = _random(2, 3, 5)
    expected = m.to_ndarray().T
    m.transpose(m)
    assert m.shape == (3, 2)
    np.testing.assert_array_equal(m.to_ndarray(), expected)


def test_symmetrize():
    m = Matrix.from_ndarray([[1.0, 2.0], [4.0, 3.0]])
    s = m.symmetrize_and_return_new()
    np.testing.assert_array_equal(s.to_ndarray(), [[1.0, 3.0], [3.0, 3.0]])
    m.symmetrize()
    assert m == s

    with pytest.raises(WrongSizeError):
        Matrix(2, 3).symmetrize()
    with pytest.raises(WrongSizeError):
        m.symmetrize(Matrix(3, 3))


def test_equals_with_threshold():
    a = Matrix.from_ndarray([[1.0, 2.0]])
    b = Matrix.from_ndarray([[1.0, 2.001]])
    assert not a.equals(b)
    assert a.equals(b, 0.01)
    assert not a.equals(None)
    assert not a.equals(Matrix(2, 1))
    assert a != b
    assert a == a.clone()


def test_resize_initialize_reset():
    m = _random(2, 2, 5)
    m.resize(3, 1)
    assert m.shape == (3, 1)
    assert np.all(m.buffer == 0.0)
    m.initialize(2.5)
    assert np.all(m.buffer == 2.5)
    m.reset(2, 4, -1.0)
    assert m.shape == (2, 4)
    assert np.all(m.to_ndarray() == -1.0)
    with pytest.raises(WrongSizeError):
        m.resize(0, 4)


def test_array_conversions():
    values = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    m = Matrix.from_ndarray(values)
    np.testing.assert_array_equal(m.to_array(), [1, 4, 2, 5, 3, 6])
    np.testing.assert_array_equal(m.to_array(column_order=False), [1, 2, 3, 4, 5, 6])

    out = np.empty(6)
    assert m.to_array(result=out) is out
    with pytest.raises(WrongSizeError):
        m.to_array(result=np.empty(5))

    n = Matrix(2, 3)
    n.from_array([1, 2, 3, 4, 5, 6], column_order=False)
    assert n == m
    with pytest.raises(WrongSizeError):
        n.from_array([1.0, 2.0])


def test_new_from_array_vectors():
    col = Matrix.new_from_array([1.0, 2.0, 3.0])
    row = Matrix.new_from_array([1.0, 2.0, 3.0], column_order=False)
    assert col.shape == (3, 1)
    assert row.shape == (1, 3)
    np.testing.assert_array_equal(row.to_ndarray(), [[1.0, 2.0, 3.0]])


def test_from_ndarray_copies_and_rejects_3d():
    values = np.ones((2, 2))
    m = Matrix.from_ndarray(values)
    values[0, 0] = 5.0
    assert m[0, 0] == 1.0
    out = m.to_ndarray()
    out[1, 1] = 9.0
    assert m[1, 1] == 1.0
    assert Matrix.from_ndarray([1.0, 2.0]).shape == (2, 1)
    with pytest.raises(ValueError):
        Matrix.from_ndarray(np.zeros((2, 2, 2)))


def test_get_submatrix_and_as_array():
    values = np.arange(20, dtype=float).reshape(4, 5)
    m = Matrix.from_ndarray(values)
    sub = m.get_submatrix(1, 2, 3, 3)
    np.testing.assert_array_equal(sub.to_ndarray(), values[1:4, 2:4])

    np.testing.assert_array_equal(
        m.get_submatrix_as_array(1, 2, 3, 3), values[1:4, 2:4].flatten(order="F")
    )
    np.testing.assert_array_equal(
        m.get_submatrix_as_array(1, 2, 3, 3, column_order=False), values[1:4, 2:4].ravel()
    )

    result = Matrix(1, 1)
    m.get_submatrix(0, 0, 0, 4, result)
    np.testing.assert_array_equal(result.to_ndarray(), values[:1, :])


@pytest.mark.parametrize(
    "corners",
    [(-1, 0, 1, 1), (0, 0, 4, 1), (0, 0, 1, 5), (2, 0, 1, 1), (0, 3, 1, 2)],
)
def test_invalid_submatrix_corners_raise(corners):
    m = Matrix(4, 5)
    with pytest.raises(ValueError):
        m.get_submatrix(*corners)
    with pytest.raises(ValueError):
        m.fill_submatrix(*corners, 1.0)


def test_set_and_fill_submatrix():
    m = Matrix(4, 4)
    source = Matrix.from_ndarray(np.arange(9, dtype=float).reshape(3, 3))
    m.set_submatrix(0, 0, 1, 1, source, 1, 1, 2, 2)
    np.testing.assert_array_equal(m.to_ndarray()[:2, :2], [[4.0, 5.0], [7.0, 8.0]])

    m.set_submatrix(1, 1, 3, 3, source)
    np.testing.assert_array_equal(m.to_ndarray()[1:, 1:], source.to_ndarray())

    with pytest.raises(WrongSizeError):
        m.set_submatrix(0, 0, 1, 1, source)

    m.fill_submatrix(2, 0, 3, 1, -1.0)
    assert np.all(m.to_ndarray()[2:, :2] == -1.0)


def test_set_submatrix_from_array():
    m = Matrix(3, 3)
    values = [9.0, 1.0, 2.0, 3.0, 4.0]
    m.set_submatrix_from_array(0, 0, 1, 1, values, 1, 4)
    np.testing.assert_array_equal(m.to_ndarray()[:2, :2], [[1.0, 3.0], [2.0, 4.0]])

    m.set_submatrix_from_array(1, 1, 2, 2, values, 1, 4, column_order=False)
    np.testing.assert_array_equal(m.to_ndarray()[1:, 1:], [[1.0, 2.0], [3.0, 4.0]])

    with pytest.raises(ValueError):
        m.set_submatrix_from_array(0, 0, 1, 1, values, 3, 1)
    with pytest.raises(WrongSizeError):
        m.set_submatrix_from_array(0, 0, 1, 1, values)


def test_identity_and_diagonal():
    np.testing.assert_array_equal(Matrix.identity(2, 3).to_ndarray(), np.eye(2, 3))
    d = Matrix.diagonal([1.0, 2.0, 3.0])
    np.testing.assert_array_equal(d.to_ndarray(), np.diag([1.0, 2.0, 3.0]))

    m = _random(3, 2, 6)
    m.set_diagonal([5.0, 6.0])
    np.testing.assert_array_equal(m.to_ndarray(), [[5.0, 0.0], [0.0, 6.0], [0.0, 0.0]])
    with pytest.raises(WrongSizeError):
        m.set_diagonal([1.0, 2.0, 3.0])


def test_random_fills_are_seeded_and_bounded():
    a = Matrix.create_with_uniform_random_values(10, 10, -2.0, 3.0, rng=42)
    b = Matrix.create_with_uniform_random_values(10, 10, -2.0, 3.0, rng=42)
    assert a == b
    assert np.all(a.buffer >= -2.0) and np.all(a.buffer < 3.0)

    rng = np.random.default_rng(7)
    g = Matrix.create_with_gaussian_random_values(200, 50, 1.0, 2.0, rng=rng)
    logger.debug(f"gaussian mean {g.buffer.mean()}, std {g.buffer.std()}")
    assert abs(g.buffer.mean() - 1.0) < 0.1
    assert abs(g.buffer.std() - 2.0) < 0.1
