# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from densela.exceptions import (
    DecomposerError,
    NotAvailableError,
    RankDeficientMatrixError,
    WrongSizeError,
)
from densela.matrix import Matrix
from densela.qr import EconomyQRDecomposer, QRDecomposer, householder_qr
from densela.utils import random_nonsingular_upper, random_singular

TEST_ITERATIONS = 20
logger = logging.getLogger(__name__)


def test_orthogonality_householder_qr():
    V = np.random.default_rng(0).standard_normal((100, 10))
    Q, R = householder_qr(V)
    assert Q.shape == (100, 100)
    assert R.shape == (100, 10)
    assert np.allclose(Q.T @ Q, np.eye(100), atol=1e-10)
    assert np.allclose(Q @ R, V, atol=1e-10)
    assert np.all(np.tril(R, -1) == 0.0)


@pytest.mark.parametrize("m,n", [(1, 1), (5, 5), (12, 4)])
def test_full_qr_factors(m, n):
    a = Matrix.create_with_gaussian_random_values(m, n, 0.0, 1.0, rng=m + n)
    qr = QRDecomposer(a)
    qr.decompose()
    Q = qr.q.to_ndarray()
    R = qr.r.to_ndarray()

    assert Q.shape == (m, m)
    assert R.shape == (m, n)
    np.testing.assert_allclose(Q @ R, a.to_ndarray(), atol=1e-10)
    np.testing.assert_allclose(Q.T @ Q, np.eye(m), atol=1e-10)
    assert np.all(R[n:, :] == 0.0)
    assert qr.is_full_rank()


def test_least_squares_qr():
    for i in range(TEST_ITERATIONS):
        logger.debug("==============================")
        rng = np.random.default_rng(i)
        A = rng.normal(size=(15, 6))
        b = rng.normal(size=(15, 1))

        x_np, *_ = np.linalg.lstsq(A, b, rcond=None)
        qr = QRDecomposer(Matrix.from_ndarray(A))
        qr.decompose()
        x_ours = qr.solve(Matrix.from_ndarray(b)).to_ndarray()

        res_np = np.linalg.norm(A @ x_np - b, ord=np.inf)
        res_ours = np.linalg.norm(A @ x_ours - b, ord=np.inf)
        logger.debug(f"residuals: numpy {res_np}, ours {res_ours}")
        assert res_ours <= res_np * (1 + 1e-8)
        np.testing.assert_allclose(x_ours, x_np, rtol=1e-8, atol=1e-10)


def test_full_qr_rank_deficient():
    a = Matrix.from_ndarray([[1.0, 2.0], [2.0, 4.0], [3.0, 6.0]])
    qr = QRDecomposer(a)
    qr.decompose()
    assert not qr.is_full_rank()
    with pytest.raises(RankDeficientMatrixError):
        qr.solve(Matrix(3, 1))
    with pytest.raises(ValueError):
        qr.is_full_rank(-1.0)


def test_full_qr_shape_checks():
    qr = QRDecomposer(Matrix(2, 3))
    with pytest.raises(DecomposerError):
        qr.decompose()
    assert not qr.is_decomposition_available
    with pytest.raises(NotAvailableError):
        qr.q

    qr.input_matrix = Matrix.identity(3, 2)
    qr.decompose()
    with pytest.raises(WrongSizeError):
        qr.solve(Matrix(2, 1))


@pytest.mark.parametrize("m,n", [(1, 1), (6, 6), (20, 7)])
def test_economy_qr_factors(m, n):
    a = Matrix.create_with_uniform_random_values(m, n, -1.0, 1.0, rng=2 * m + n)
    qr = EconomyQRDecomposer(a)
    qr.decompose()
    Q = qr.get_q().to_ndarray()
    R = qr.get_r().to_ndarray()
    H = qr.get_h().to_ndarray()

    assert Q.shape == (m, n)
    assert R.shape == (n, n)
    assert H.shape == (m, n)
    np.testing.assert_allclose(Q @ R, a.to_ndarray(), atol=1e-12)
    np.testing.assert_allclose(Q.T @ Q, np.eye(n), atol=1e-12)
    assert np.all(np.tril(R, -1) == 0.0)
    assert np.all(np.triu(H, 1) == 0.0)
    assert qr.is_full_rank()


def test_economy_qr_solve_matches_lstsq():
    rng = np.random.default_rng(3)
    A = rng.normal(size=(30, 5))
    B = rng.normal(size=(30, 3))
    qr = EconomyQRDecomposer(Matrix.from_ndarray(A))
    qr.decompose()

    result = Matrix(1, 1)
    X = qr.solve(Matrix.from_ndarray(B), result=result)
    assert X is result
    x_np, *_ = np.linalg.lstsq(A, B, rcond=None)
    np.testing.assert_allclose(X.to_ndarray(), x_np, rtol=1e-8, atol=1e-10)


def test_economy_qr_square_solve():
    a = random_nonsingular_upper(8, seed=4)
    x_true = np.arange(1.0, 9.0)
    b = Matrix.new_from_array(a.to_ndarray() @ x_true)
    qr = EconomyQRDecomposer(a)
    qr.decompose()
    np.testing.assert_allclose(qr.solve(b).to_array(), x_true, rtol=1e-6)


def test_economy_qr_rank_deficient():
    qr = EconomyQRDecomposer(Matrix.from_ndarray([[1.0, 0.0], [0.0, 0.0], [0.0, 0.0]]))
    qr.decompose()
    assert not qr.is_full_rank()
    with pytest.raises(RankDeficientMatrixError):
        qr.solve(Matrix(3, 1))

    singular = EconomyQRDecomposer(random_singular(4, 4, seed=0))
    singular.decompose()
    assert not singular.is_full_rank(1e-10)


def test_economy_qr_wide_input():
    qr = EconomyQRDecomposer(Matrix.create_with_uniform_random_values(2, 4, 0.0, 1.0, rng=1))
    qr.decompose()
    assert qr.get_r().shape == (4, 4)
    assert qr.get_h().shape == (2, 4)
    with pytest.raises(WrongSizeError):
        qr.is_full_rank()
    with pytest.raises(WrongSizeError):
        qr.get_q()
    with pytest.raises(WrongSizeError):
        qr.solve(Matrix(2, 1))
