# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Convenience functions on Matrix instances built on top of the decomposers.
"""

import logging
from typing import Optional, Tuple, Union

import numpy as np

from .cholesky import CholeskyDecomposer
from .exceptions import (
    NonSymmetricPositiveDefiniteMatrixError,
    RankDeficientMatrixError,
    WrongSizeError,
)
from .lu import LUDecomposer
from .matrix import Matrix
from .norms import FrobeniusNormComputer, InfinityNormComputer, OneNormComputer
from .qr import EconomyQRDecomposer
from .svd import SingularValueDecomposer
from .utils import scale_tol, to_matrix

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 1e-12


def trace(m: Matrix) -> float:
    """Sum of the leading diagonal."""
    return float(np.trace(m.to_ndarray()))


def det(m: Matrix) -> float:
    """
    Calculate the determinant of n-by-n matrix m using LU decomposition
    """
    if m.rows != m.columns:
        raise WrongSizeError("The determinant is undefined for non-square matrices.")
    decomposer = LUDecomposer(m)
    decomposer.decompose()
    return decomposer.determinant()


def _svd(m: Matrix) -> SingularValueDecomposer:
    decomposer = SingularValueDecomposer(m)
    decomposer.decompose()
    return decomposer


def cond(m: Matrix) -> float:
    return _svd(m).condition_number


def rank(m: Matrix) -> int:
    return _svd(m).get_rank()


def norm_f(value: Union[Matrix, np.ndarray]) -> float:
    return FrobeniusNormComputer.norm(value)


def norm_1(value: Union[Matrix, np.ndarray]) -> float:
    return OneNormComputer.norm(value)


def norm_inf(value: Union[Matrix, np.ndarray]) -> float:
    return InfinityNormComputer.norm(value)


def norm_2(value: Union[Matrix, np.ndarray]) -> float:
    """Largest singular value (Euclidean length for arrays)."""
    if isinstance(value, Matrix):
        return _svd(value).norm2
    return FrobeniusNormComputer.norm(value)


def solve(a: Matrix, b: Union[Matrix, np.ndarray],
          result: Optional[Matrix] = None):
    """
    Solve a x = b: exactly via LU for square ``a``, in the least squares
    sense via economy QR for tall ``a``.

    Parameters
    ----------
    a : Matrix                  (m, n), m >= n
    b : Matrix | np.ndarray     (m, k) or (m,)

    Returns
    -------
    x : Matrix (n, k), or ndarray (n,) when b is 1-D.

    Raises
    ------
    WrongSizeError
        ``a`` is wide or ``b`` has the wrong number of rows.
    RankDeficientMatrixError
        ``a`` is singular / rank deficient.
    """
    rows, columns = a.shape
    vector_b = not isinstance(b, Matrix)
    if vector_b:
        b = Matrix.new_from_array(b)
    if rows < columns:
        raise WrongSizeError("a must have rows >= columns")
    if b.rows != rows:
        raise WrongSizeError(f"b must have {rows} rows, got {b.rows}")

    if rows == columns:
        decomposer = LUDecomposer(a)
        decomposer.decompose()
        rounding_error = scale_tol(a)
        if decomposer.is_singular(rounding_error):
            raise RankDeficientMatrixError("matrix is singular")
        x = decomposer.solve(b, rounding_error, None if vector_b else result)
    else:
        decomposer = EconomyQRDecomposer(a)
        decomposer.decompose()
        x = decomposer.solve(b, scale_tol(a), None if vector_b else result)

    return x.to_array() if vector_b else x


def inverse(m: Matrix, result: Optional[Matrix] = None) -> Matrix:
    """
    Inverse of a square matrix, or least squares pseudo-inverse
    (n-by-m, with inv @ m = I) of a tall one.
    """
    rows, columns = m.shape
    if rows < columns:
        raise WrongSizeError("matrix must have rows >= columns")

    identity = Matrix.identity(rows, rows)
    if rows == columns:
        return solve(m, identity, result)

    decomposer = EconomyQRDecomposer(m)
    decomposer.decompose()
    if not decomposer.is_full_rank(scale_tol(m)):
        logger.debug("inverse(): tall matrix is rank deficient, falling back to SVD pseudo-inverse")
        return pseudo_inverse(m, result)
    return decomposer.solve(identity, result=result)


def pseudo_inverse(m: Matrix, result: Optional[Matrix] = None) -> Matrix:
    """Moore-Penrose pseudo-inverse V diag(1/w) U' through SVD (any shape)."""
    rows, columns = m.shape
    if rows < columns:
        # pinv(M) = pinv(M')', keeps U with orthonormal columns
        transposed = pseudo_inverse(m.transpose_and_return_new())
        if result is None:
            return transposed.transpose_and_return_new()
        transposed.transpose(result)
        return result
    decomposer = _svd(m)
    return decomposer.solve(Matrix.identity(rows, rows), result=result)


def skew_matrix(v: Union[Matrix, np.ndarray], result: Optional[Matrix] = None) -> Matrix:
    """
    3-by-3 skew symmetric matrix [v]x such that [v]x @ w = v x w.
    """
    v = v.to_array() if isinstance(v, Matrix) else np.asarray(v, dtype=float).ravel()
    if len(v) != 3:
        raise WrongSizeError("skew matrices are only defined for 3-vectors")
    values = np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0],
    ])
    return to_matrix(values, result)


def cross_product(a: np.ndarray, b: Union[np.ndarray, Matrix],
                  jacobian_a: Optional[Matrix] = None,
                  jacobian_b: Optional[Matrix] = None):
    """
    a x b for 3-vectors. If ``b`` is a 3-by-n Matrix each column is crossed
    with ``a`` and a 3-by-n Matrix is returned.

    Optional 3-by-3 jacobians receive d(a x b)/da = -[b]x and
    d(a x b)/db = [a]x (vector ``b`` only).
    """
    a = np.asarray(a, dtype=float).ravel()
    if len(a) != 3:
        raise WrongSizeError("a must have length 3")

    if isinstance(b, Matrix):
        if b.rows != 3:
            raise WrongSizeError("b must have 3 rows")
        return Matrix.from_ndarray(skew_matrix(a).to_ndarray() @ b.to_ndarray())

    b = np.asarray(b, dtype=float).ravel()
    if len(b) != 3:
        raise WrongSizeError("b must have length 3")
    for jacobian in (jacobian_a, jacobian_b):
        if jacobian is not None and jacobian.shape != (3, 3):
            raise WrongSizeError("jacobians must be 3x3")

    if jacobian_a is not None:
        skew_matrix(b, jacobian_a)
        jacobian_a.multiply_by_scalar(-1.0)
    if jacobian_b is not None:
        skew_matrix(a, jacobian_b)
    return np.cross(a, b)


def _check_threshold(threshold: float) -> None:
    if threshold < 0.0:
        raise ValueError("threshold must be non-negative")


def is_symmetric(m: Matrix, threshold: float = DEFAULT_THRESHOLD) -> bool:
    _check_threshold(threshold)
    if m.rows != m.columns:
        return False
    return m.equals(m.transpose_and_return_new(), threshold)


def is_orthogonal(m: Matrix, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """
    Square with mutually orthogonal, non-zero columns (M' M diagonal).
    """
    _check_threshold(threshold)
    if m.rows != m.columns:
        return False
    values = m.to_ndarray()
    gram = values.T @ values
    off_diagonal = gram - np.diag(np.diag(gram))
    if np.any(np.abs(off_diagonal) > threshold):
        return False
    return bool(np.all(np.diag(gram) > threshold))


def is_orthonormal(m: Matrix, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """M' M = I within threshold."""
    _check_threshold(threshold)
    if m.rows != m.columns:
        return False
    values = m.to_ndarray()
    gram = values.T @ values
    return not np.any(np.abs(gram - np.eye(m.columns)) > threshold)


def dot_product(a: Matrix, b: Matrix) -> float:
    """(1 x n) times (n x 1)."""
    if a.rows != 1 or b.columns != 1 or a.columns != b.rows:
        raise WrongSizeError("dot product needs a 1xN and an Nx1 matrix")
    return float(a.to_array() @ b.to_array())


def schurc(m: Matrix, pos: int, from_start: bool = True, sqrt: bool = False,
           result: Optional[Matrix] = None,
           inverse_block: Optional[Matrix] = None) -> Tuple[Matrix, Matrix]:
    """
    Schur complement of a block of the square matrix

        M = | A  B |
            | C  D |     (A is pos-by-pos)

    With ``from_start`` the complement of A, D - C A^-1 B, is computed;
    otherwise the complement of D, A - B D^-1 C.

    Parameters
    ----------
    sqrt : bool
        Return the upper Cholesky factor R of the complement (R' R equals
        the complement) instead of the complement itself.

    Returns
    -------
    (complement, inverse of the eliminated block)
    """
    n = m.rows
    if m.columns != n:
        raise WrongSizeError("matrix must be square")
    if pos < 1 or pos >= n:
        raise ValueError(f"pos must be in [1, {n - 1}], got {pos}")

    values = m.to_ndarray()
    A = values[:pos, :pos]
    B = values[:pos, pos:]
    C = values[pos:, :pos]
    D = values[pos:, pos:]

    if from_start:
        eliminated, keep, left, right = A, D, C, B
    else:
        eliminated, keep, left, right = D, A, B, C

    inv = inverse(Matrix.from_ndarray(eliminated), inverse_block)
    complement = Matrix.from_ndarray(keep - left @ inv.to_ndarray() @ right)

    if sqrt:
        decomposer = CholeskyDecomposer(complement.symmetrize_and_return_new())
        decomposer.decompose()
        if not decomposer.is_spd:
            raise NonSymmetricPositiveDefiniteMatrixError(
                "Schur complement is not positive definite"
            )
        complement = decomposer.r

    if result is not None:
        complement.copy_to(result)
        complement = result
    return complement, inv
