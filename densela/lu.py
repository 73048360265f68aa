# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Optional

import numpy as np

from .decomposer import Decomposer, DecomposerType
from .exceptions import DecomposerError, SingularMatrixError, WrongSizeError
from .matrix import Matrix
from .utils import to_matrix


class LUDecomposer(Decomposer):
    """
    Doolittle LU factorization with partial (row) pivoting, P A = L U.

    Works for m-by-n inputs with m >= n: L is m-by-n unit lower-trapezoidal
    and U is n-by-n upper-triangular. Determinant, singularity and solve
    require a square input.
    """

    DEFAULT_ROUND_ERROR = 0.0
    MIN_ROUND_ERROR = 0.0

    def __init__(self, input_matrix: Optional[Matrix] = None):
        super().__init__(input_matrix)
        self._lu: Optional[np.ndarray] = None
        self._piv: Optional[np.ndarray] = None
        self._piv_sign = 1

    @property
    def decomposer_type(self) -> DecomposerType:
        return DecomposerType.LU

    @property
    def is_decomposition_available(self) -> bool:
        return self._lu is not None

    def _reset(self) -> None:
        self._lu = None
        self._piv = None

    def _check_input(self, a: Matrix) -> None:
        if a.columns > a.rows:
            raise DecomposerError("LU needs rows >= columns")

    def _decompose(self, a: Matrix) -> None:
        lu = a.to_ndarray()
        rows, columns = lu.shape
        piv = np.arange(rows)
        piv_sign = 1

        for k in range(columns):
            # ---- partial pivoting ----------------------------------------
            p = k + int(np.argmax(np.abs(lu[k:, k])))
            if p != k:
                lu[[p, k], :] = lu[[k, p], :]
                piv[[p, k]] = piv[[k, p]]
                piv_sign = -piv_sign

            # ---- multipliers and elimination of column k -----------------
            if lu[k, k] != 0.0:
                lu[k + 1:, k] /= lu[k, k]
                lu[k + 1:, k + 1:] -= np.outer(lu[k + 1:, k], lu[k, k + 1:])

        self._lu = lu
        self._piv = piv
        self._piv_sign = piv_sign

    def _check_round_error(self, rounding_error: float) -> None:
        if rounding_error < self.MIN_ROUND_ERROR:
            raise ValueError(f"rounding_error must be >= {self.MIN_ROUND_ERROR}")

    def _check_square(self) -> None:
        rows, columns = self._input_matrix.shape
        if rows != columns:
            raise WrongSizeError("operation requires a square matrix")

    def is_singular(self, rounding_error: float = DEFAULT_ROUND_ERROR) -> bool:
        """True when some pivot satisfies |u_jj| <= rounding_error."""
        self._check_available()
        self._check_round_error(rounding_error)
        self._check_square()
        return bool(np.any(np.abs(np.diag(self._lu)) <= rounding_error))

    def _lower(self) -> np.ndarray:
        rows, columns = self._lu.shape
        lower = np.tril(self._lu, -1)
        lower[np.arange(columns), np.arange(columns)] = 1.0
        return lower

    def get_pivotted_l(self, result: Optional[Matrix] = None) -> Matrix:
        """Unit lower factor of the row-permuted input (P A = L U)."""
        self._check_available()
        return to_matrix(self._lower(), result)

    def get_l(self, result: Optional[Matrix] = None) -> Matrix:
        """Lower factor with the permutation folded in, so A = L U."""
        self._check_available()
        lower = self._lower()
        out = np.empty_like(lower)
        out[self._piv] = lower
        return to_matrix(out, result)

    def get_u(self, result: Optional[Matrix] = None) -> Matrix:
        self._check_available()
        columns = self._lu.shape[1]
        return to_matrix(np.triu(self._lu[:columns, :]), result)

    @property
    def pivot(self) -> np.ndarray:
        self._check_available()
        return self._piv

    def determinant(self) -> float:
        self._check_available()
        self._check_square()
        return float(self._piv_sign * np.prod(np.diag(self._lu)))

    def solve(self, b: Matrix, rounding_error: float = DEFAULT_ROUND_ERROR,
              result: Optional[Matrix] = None) -> Matrix:
        """
        Solve A X = B for square A.

        Raises
        ------
        WrongSizeError
            ``b`` does not have as many rows as A, or A is not square.
        SingularMatrixError
            A pivot is within rounding_error of zero.
        """
        self._check_available()
        if b.rows != self._input_matrix.rows:
            raise WrongSizeError(f"b must have {self._input_matrix.rows} rows")
        self._check_round_error(rounding_error)
        self._check_square()
        if self.is_singular(rounding_error):
            raise SingularMatrixError("matrix is singular")

        lu = self._lu
        n = lu.shape[1]
        x = b.to_ndarray()[self._piv, :]

        # Step-1: L Y = B(piv, :)
        for k in range(n):
            x[k + 1:] -= np.outer(lu[k + 1:, k], x[k])

        # Step-2: U X = Y
        for k in range(n - 1, -1, -1):
            x[k] /= lu[k, k]
            x[:k] -= np.outer(lu[:k, k], x[k])

        return to_matrix(x, result)
