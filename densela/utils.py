# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np

from .matrix import Matrix

EPS: float = 1e-12


def scale_tol(m: Matrix) -> float:
    """Return an absolute tolerance scaled to the matrix magnitude."""
    return EPS * max(1.0, np.linalg.norm(m.to_ndarray(), ord=np.inf))


def pythag(a: float, b: float) -> float:
    """Return sqrt(a² + b²) without destructive underflow or overflow."""
    absa = np.abs(np.float64(a))
    absb = np.abs(np.float64(b))
    if absa > absb:
        return absa * np.sqrt(1.0 + (absb / absa) ** 2)
    if absb == 0.0:
        return np.float64(0.0)
    return absb * np.sqrt(1.0 + (absa / absb) ** 2)


def sign(a: float, b: float) -> float:
    """Return |a| carrying the sign of b (b == 0 counts as positive)."""
    if b >= 0.0:
        return a if a >= 0.0 else -a
    return -a if a >= 0.0 else a


def random_nonsingular_upper(n, low=-100, high=100, seed=None):
    """
    Build an n-by-n Matrix that is upper-triangular with random entries
    everywhere and only non-zero values on its diagonal
    """
    rng = np.random.default_rng(seed)
    U = rng.uniform(low, high, size=(n, n))
    # enforce upper-triangular
    U = np.triu(U)
    # replace any accidental zeros on the diagonal
    diag = rng.uniform(low if low != 0 else 1, high, size=n)
    U[np.diag_indices(n)] = diag
    return Matrix.from_ndarray(U)


def random_singular(rows, columns, low=1.0, high=100.0, seed=None):
    """
    Random rows-by-columns Matrix whose row ``row2`` duplicates row ``row1``,
    so it is rank deficient by construction (rows >= 2).
    """
    if rows < 2:
        raise ValueError("at least two rows are needed to repeat one")
    rng = np.random.default_rng(seed)
    A = rng.uniform(low, high, size=(rows, columns))
    row1, row2 = rng.choice(rows, size=2, replace=False)
    A[row2] = A[row1]
    return Matrix.from_ndarray(A)


def to_matrix(values: np.ndarray, result=None) -> Matrix:
    """Copy a 2-D array into ``result`` (resized if needed) or a new Matrix."""
    if result is None:
        return Matrix.from_ndarray(values)
    if result.shape != values.shape:
        result.resize(*values.shape)
    result.from_array(values, column_order=False)
    return result
