# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Optional

import numpy as np

from .decomposer import Decomposer, DecomposerType
from .elimination import back_substitute, forward_substitute
from .exceptions import (
    DecomposerError,
    NonSymmetricPositiveDefiniteMatrixError,
    WrongSizeError,
)
from .matrix import Matrix
from .utils import to_matrix


class CholeskyDecomposer(Decomposer):
    """
    Cholesky factorization A = R' R = L L' of a square matrix.

    Decomposing never fails on a square input: whether A is symmetric
    positive definite is recorded in ``is_spd`` and only ``solve`` refuses
    a non-SPD matrix.
    """

    def __init__(self, input_matrix: Optional[Matrix] = None):
        super().__init__(input_matrix)
        self._r: Optional[np.ndarray] = None
        self._spd = False

    @property
    def decomposer_type(self) -> DecomposerType:
        return DecomposerType.CHOLESKY

    @property
    def is_decomposition_available(self) -> bool:
        return self._r is not None

    def _reset(self) -> None:
        self._r = None
        self._spd = False

    def _check_input(self, a: Matrix) -> None:
        if a.rows != a.columns:
            raise DecomposerError("Cholesky needs a square matrix")

    def _decompose(self, a: Matrix) -> None:
        A = a.to_ndarray()
        n = A.shape[0]
        R = np.zeros((n, n))
        spd = True

        with np.errstate(divide="ignore", invalid="ignore"):
            for j in range(n):
                for k in range(j):
                    R[k, j] = (A[k, j] - R[:k, k] @ R[:k, j]) / R[k, k]
                d = A[j, j] - R[:j, j] @ R[:j, j]
                spd = spd and bool(np.all(A[:j, j] == A[j, :j])) and d > 0.0
                R[j, j] = np.sqrt(d) if d > 0.0 else 0.0

        self._r = R
        self._spd = spd

    @property
    def r(self) -> Matrix:
        """Upper triangular factor."""
        self._check_available()
        return Matrix.from_ndarray(self._r)

    @property
    def l(self) -> Matrix:
        """Lower triangular factor, R'."""
        self._check_available()
        return Matrix.from_ndarray(self._r.T)

    @property
    def is_spd(self) -> bool:
        self._check_available()
        return self._spd

    def solve(self, b: Matrix, result: Optional[Matrix] = None) -> Matrix:
        """
        Solve A X = B by a forward solve with L followed by a back solve
        with L'.
        """
        self._check_available()
        if b.rows != self._input_matrix.rows:
            raise WrongSizeError(f"b must have {self._input_matrix.rows} rows")
        if not self._spd:
            raise NonSymmetricPositiveDefiniteMatrixError(
                "matrix is not symmetric positive definite"
            )
        y = forward_substitute(self._r.T, b.to_ndarray())
        return to_matrix(back_substitute(self._r, y), result)
