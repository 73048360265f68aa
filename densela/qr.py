# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Optional

import numpy as np

from .decomposer import Decomposer, DecomposerType
from .elimination import back_substitute
from .exceptions import DecomposerError, RankDeficientMatrixError, WrongSizeError
from .matrix import Matrix
from .utils import EPS, to_matrix


def householder_qr(A: np.ndarray):
    """
    Compute the full QR decomposition of an m-by-n matrix A using
    Householder transformations. (m ≥ n)

    A = QR
    H = I - tau * w * transpose(w)
    tau = 2 / transpose(w) * w

    Parameters
    ----------
    A : (m, n) ndarray, m >= n

    Returns
    -------
    Q : (m, m) ndarray | orthogonal
    R : (m, n) ndarray | upper-trapezoidal
    """
    R = np.array(A, dtype=float)
    m, n = R.shape
    Q = np.eye(m)

    for j in range(min(n, m - 1)):
        # ---- build the reflector for column j --------------------------------
        x = R[j:, j]
        norm_x = np.linalg.norm(x)
        if norm_x < EPS:  # already zero
            continue
        # w = x + sign(x0) ‖x‖ e₁
        w = x.copy()
        w[0] += np.copysign(norm_x, x[0])
        w /= np.linalg.norm(w)  # ‖w‖ = 1
        w = w.reshape(-1, 1)  # column
        tau = 2  # because w is unit-norm

        # ---- apply H = I – τ w wᵀ  to R (from the left) ----------------------
        R[j:, :] -= tau * w @ (w.T @ R[j:, :])
        # ---- accumulate Q = Q Hᵀ (Hᵀ = H)  -----------------------------------
        Q[:, j:] -= Q[:, j:] @ w @ (tau * w).T

    # force exact upper-trapezoidal shape / zero tiny noise
    R[np.tril_indices(m, -1, n)] = 0.0
    return Q, R


class QRDecomposer(Decomposer):
    """
    Full QR decomposition A = Q R of an m-by-n matrix with m >= n.

    Q is m-by-m orthogonal and R is m-by-n upper-trapezoidal, so the last
    m - n rows of R are zero. Solving is a least squares fit for m > n.
    """

    DEFAULT_ROUND_ERROR = 1e-8
    MIN_ROUND_ERROR = 0.0

    def __init__(self, input_matrix: Optional[Matrix] = None):
        super().__init__(input_matrix)
        self._q: Optional[Matrix] = None
        self._r: Optional[Matrix] = None

    @property
    def decomposer_type(self) -> DecomposerType:
        return DecomposerType.QR

    @property
    def is_decomposition_available(self) -> bool:
        return self._q is not None or self._r is not None

    def _reset(self) -> None:
        self._q = None
        self._r = None

    def _check_input(self, a: Matrix) -> None:
        if a.rows < a.columns:
            raise DecomposerError("QR needs rows >= columns")

    def _decompose(self, a: Matrix) -> None:
        Q, R = householder_qr(a.to_ndarray())
        self._q = Matrix.from_ndarray(Q)
        self._r = Matrix.from_ndarray(R)

    @property
    def q(self) -> Matrix:
        self._check_available()
        return self._q

    @property
    def r(self) -> Matrix:
        self._check_available()
        return self._r

    def is_full_rank(self, rounding_error: float = DEFAULT_ROUND_ERROR) -> bool:
        self._check_available()
        if rounding_error < self.MIN_ROUND_ERROR:
            raise ValueError(f"rounding_error must be >= {self.MIN_ROUND_ERROR}")
        diag = np.diag(self._r.to_ndarray())
        return not np.any(np.abs(diag) <= rounding_error)

    def solve(self, b: Matrix, rounding_error: float = DEFAULT_ROUND_ERROR,
              result: Optional[Matrix] = None) -> Matrix:
        """
        Least squares solution of A X = B.

        Raises
        ------
        WrongSizeError
            ``b`` does not have as many rows as A.
        RankDeficientMatrixError
            Some |r_jj| <= rounding_error.
        """
        self._check_available()
        rows, columns = self._input_matrix.shape
        if b.rows != rows:
            raise WrongSizeError(f"b must have {rows} rows, got {b.rows}")
        if rounding_error < self.MIN_ROUND_ERROR:
            raise ValueError(f"rounding_error must be >= {self.MIN_ROUND_ERROR}")
        if not self.is_full_rank(rounding_error):
            raise RankDeficientMatrixError("matrix is rank deficient")

        # Y = Q' B, then R X = Y on the leading n rows
        y = self._q.to_ndarray().T @ b.to_ndarray()
        R = self._r.to_ndarray()
        x = back_substitute(R[:columns, :], y[:columns])
        return to_matrix(x, result)


class EconomyQRDecomposer(Decomposer):
    """
    Economy-size Householder QR in compact form.

    Reflector vectors are stored below (and on) the diagonal of ``H``; the
    strict upper triangle holds R and its diagonal is kept apart. Q is only
    materialised on request as an m-by-n matrix with orthonormal columns.
    """

    DEFAULT_ROUND_ERROR = 0.0
    MIN_ROUND_ERROR = 0.0

    def __init__(self, input_matrix: Optional[Matrix] = None):
        super().__init__(input_matrix)
        self._qr: Optional[np.ndarray] = None
        self._r_diag: Optional[np.ndarray] = None

    @property
    def decomposer_type(self) -> DecomposerType:
        return DecomposerType.QR_ECONOMY

    @property
    def is_decomposition_available(self) -> bool:
        return self._qr is not None

    def _reset(self) -> None:
        self._qr = None
        self._r_diag = None

    def _decompose(self, a: Matrix) -> None:
        qr = a.to_ndarray()
        rows, columns = qr.shape
        r_diag = np.zeros(columns)

        for k in range(columns):
            nrm = np.hypot.reduce(qr[k:, k]) if k < rows else 0.0
            if nrm != 0.0:
                # form the k-th Householder vector
                if qr[k, k] < 0.0:
                    nrm = -nrm
                qr[k:, k] /= nrm
                qr[k, k] += 1.0
                # apply it to the remaining columns
                s = -(qr[k:, k] @ qr[k:, k + 1:]) / qr[k, k]
                qr[k:, k + 1:] += np.outer(qr[k:, k], s)
            r_diag[k] = -nrm

        self._qr = qr
        self._r_diag = r_diag

    def _check_tall(self) -> None:
        rows, columns = self._input_matrix.shape
        if rows < columns:
            raise WrongSizeError("operation needs rows >= columns")

    def is_full_rank(self, rounding_error: float = DEFAULT_ROUND_ERROR) -> bool:
        self._check_available()
        if rounding_error < self.MIN_ROUND_ERROR:
            raise ValueError(f"rounding_error must be >= {self.MIN_ROUND_ERROR}")
        self._check_tall()
        return not np.any(np.abs(self._r_diag) <= rounding_error)

    def get_h(self, result: Optional[Matrix] = None) -> Matrix:
        """Householder vectors, lower-trapezoidal (rows x columns)."""
        self._check_available()
        return to_matrix(np.tril(self._qr), result)

    def get_r(self, result: Optional[Matrix] = None) -> Matrix:
        """Upper triangular factor (columns x columns)."""
        self._check_available()
        rows, columns = self._qr.shape
        r = np.zeros((columns, columns))
        top = min(rows, columns)
        r[:top, :] = np.triu(self._qr[:top, :], 1)
        r[np.arange(top), np.arange(top)] = self._r_diag[:top]
        return to_matrix(r, result)

    def get_q(self, result: Optional[Matrix] = None) -> Matrix:
        """Orthonormal factor (rows x columns)."""
        self._check_available()
        self._check_tall()
        qr = self._qr
        rows, columns = qr.shape
        q = np.zeros((rows, columns))
        for k in range(columns - 1, -1, -1):
            q[k, k] = 1.0
            if qr[k, k] != 0.0:
                s = -(qr[k:, k] @ q[k:, k:]) / qr[k, k]
                q[k:, k:] += np.outer(qr[k:, k], s)
        return to_matrix(q, result)

    def solve(self, b: Matrix, rounding_error: float = DEFAULT_ROUND_ERROR,
              result: Optional[Matrix] = None) -> Matrix:
        """Least squares solution of A X = B."""
        self._check_available()
        rows, columns = self._qr.shape
        if b.rows != rows:
            raise WrongSizeError(f"b must have {rows} rows, got {b.rows}")
        if rounding_error < self.MIN_ROUND_ERROR:
            raise ValueError(f"rounding_error must be >= {self.MIN_ROUND_ERROR}")
        self._check_tall()
        if not self.is_full_rank(rounding_error):
            raise RankDeficientMatrixError("matrix is rank deficient")

        qr = self._qr
        x = b.to_ndarray()

        # Y = Q' B
        for k in range(columns):
            s = -(qr[k:, k] @ x[k:]) / qr[k, k]
            x[k:] += np.outer(qr[k:, k], s)

        # R X = Y
        r = np.triu(qr[:columns, :], 1)
        r[np.arange(columns), np.arange(columns)] = self._r_diag
        return to_matrix(back_substitute(r, x[:columns]), result)
