# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Singular Value Decomposition A = U * diag(w) * V' of an m-by-n matrix.

    U : m-by-n matrix whose columns are orthonormal (for m >= n)
    w : length-n vector of singular values, sorted in descending order
    V : n-by-n orthogonal matrix

Algorithm outline (Golub-Reinsch)
---------------------------------
1.  Householder reflections alternately from the left and the right reduce
    A to upper-bidiagonal form (diagonal in w, superdiagonal in rv1).
2.  The right reflectors are accumulated into V, the left ones into U.
3.  Implicit-shift QR sweeps (Givens rotation chains) drive the
    superdiagonal to zero one singular value at a time, bottom up.
4.  Singular values are sorted descending together with their U and V
    columns, and each (u, v) pair is flipped so most components are >= 0.
"""

import logging
from typing import Optional, Union

import numpy as np

from .decomposer import Decomposer, DecomposerType
from .exceptions import NoConvergenceError, NotAvailableError, WrongSizeError
from .matrix import Matrix
from .utils import pythag, sign

logger = logging.getLogger(__name__)


class SingularValueDecomposer(Decomposer):
    DEFAULT_MAX_ITERS = 30
    MIN_ITERS = 1
    MIN_THRESH = 0.0
    EPS = 1e-12

    def __init__(self, input_matrix: Optional[Matrix] = None,
                 max_iters: int = DEFAULT_MAX_ITERS):
        if max_iters < self.MIN_ITERS:
            raise ValueError(f"max_iters must be >= {self.MIN_ITERS}, got {max_iters}")
        super().__init__(input_matrix)
        self._max_iters = max_iters
        self._eps = self.EPS
        self._u: Optional[Matrix] = None
        self._v: Optional[Matrix] = None
        self._w: Optional[np.ndarray] = None
        self._tsh = 0.0

    @property
    def decomposer_type(self) -> DecomposerType:
        return DecomposerType.SVD

    @property
    def is_decomposition_available(self) -> bool:
        return self._u is not None and self._v is not None and self._w is not None

    def _reset(self) -> None:
        self._u = None
        self._v = None
        self._w = None

    @property
    def max_iterations(self) -> int:
        """Iteration cap per singular value."""
        return self._max_iters

    @max_iterations.setter
    def max_iterations(self, value: int) -> None:
        self._check_locked()
        if value < self.MIN_ITERS:
            raise ValueError(f"max_iterations must be >= {self.MIN_ITERS}, got {value}")
        self._max_iters = value

    # ------------------------------------------------------------------
    # Decomposition
    # ------------------------------------------------------------------
    def _decompose(self, a: Matrix) -> None:
        m, n = a.shape
        self._u = a.clone()
        self._v = Matrix(n, n)
        self._w = np.zeros(n)

        try:
            with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
                self._bidiagonalize_and_diagonalize()
        except NoConvergenceError:
            logger.warning(
                "SVD of %dx%d matrix did not converge within %d iterations",
                m, n, self._max_iters,
            )
            raise
        self._reorder()
        self._tsh = 0.5 * np.sqrt(m + n + 1.0) * self._w[0] * self._eps

    def _bidiagonalize_and_diagonalize(self) -> None:
        m, n = self._u.shape
        a = self._u._view()
        v = self._v._view()
        w = self._w
        eps = self._eps
        rv1 = np.zeros(n)

        # ---- Step-1: Householder reduction to bidiagonal form ------------
        g = scale = anorm = np.float64(0.0)
        for i in range(n):
            l = i + 1
            rv1[i] = scale * g
            g = scale = np.float64(0.0)
            if i < m:
                scale = np.sum(np.abs(a[i:, i]))
                if scale != 0.0:
                    a[i:, i] /= scale
                    s = a[i:, i] @ a[i:, i]
                    f = a[i, i]
                    g = -sign(np.sqrt(s), f)
                    h = f * g - s
                    a[i, i] = f - g
                    if l < n:
                        proj = a[i:, i] @ a[i:, l:]
                        a[i:, l:] += np.outer(a[i:, i], proj / h)
                    a[i:, i] *= scale
            w[i] = scale * g

            g = scale = np.float64(0.0)
            if i + 1 <= m and i + 1 != n:
                scale = np.sum(np.abs(a[i, l:]))
                if scale != 0.0:
                    a[i, l:] /= scale
                    s = a[i, l:] @ a[i, l:]
                    f = a[i, l]
                    g = -sign(np.sqrt(s), f)
                    h = f * g - s
                    a[i, l] = f - g
                    rv1[l:] = a[i, l:] / h
                    if l < m:
                        proj = a[l:, l:] @ a[i, l:]
                        a[l:, l:] += np.outer(proj, rv1[l:])
                    a[i, l:] *= scale
            anorm = max(anorm, abs(w[i]) + abs(rv1[i]))

        # ---- Step-2a: accumulate right-hand transformations into V -------
        l = n
        for i in range(n - 1, -1, -1):
            if i < n - 1:
                if g != 0.0:
                    # double division avoids possible underflow
                    v[l:, i] = (a[i, l:] / a[i, l]) / g
                    proj = a[i, l:] @ v[l:, l:]
                    v[l:, l:] += np.outer(v[l:, i], proj)
                v[i, l:] = 0.0
                v[l:, i] = 0.0
            v[i, i] = 1.0
            g = rv1[i]
            l = i

        # ---- Step-2b: accumulate left-hand transformations into U --------
        for i in range(min(m, n) - 1, -1, -1):
            l = i + 1
            g = w[i]
            a[i, l:] = 0.0
            if g != 0.0:
                g = 1.0 / g
                if l < n:
                    proj = a[l:, i] @ a[l:, l:]
                    a[i:, l:] += np.outer(a[i:, i], (proj / a[i, i]) * g)
                a[i:, i] *= g
            else:
                a[i:, i] = 0.0
            a[i, i] += 1.0

        # ---- Step-3: diagonalization of the bidiagonal form --------------
        tol = eps * anorm
        for k in range(n - 1, -1, -1):
            for its in range(self._max_iters):
                # test for splitting; rv1[0] is always zero
                split_at_zero_w = True
                nm = k - 1
                for l in range(k, -1, -1):
                    nm = l - 1
                    if l == 0 or abs(rv1[l]) <= tol:
                        split_at_zero_w = False
                        break
                    if abs(w[nm]) <= tol:
                        break

                if split_at_zero_w:
                    # cancellation of rv1[l] when w[l - 1] is negligible
                    c = np.float64(0.0)
                    s = np.float64(1.0)
                    for i in range(l, k + 1):
                        f = s * rv1[i]
                        rv1[i] = c * rv1[i]
                        if abs(f) <= tol:
                            break
                        g = w[i]
                        h = pythag(f, g)
                        w[i] = h
                        h = 1.0 / h
                        c = g * h
                        s = -f * h
                        _rotate(a, nm, i, c, s)

                z = w[k]
                if l == k:
                    # converged; make the singular value non-negative
                    if z < 0.0:
                        w[k] = -z
                        v[:, k] = -v[:, k]
                    logger.debug("singular value %d converged after %d iterations", k, its)
                    break
                if its == self._max_iters - 1:
                    raise NoConvergenceError(
                        f"no convergence for singular value {k} "
                        f"in {self._max_iters} iterations"
                    )

                # shift from the bottom 2-by-2 minor
                x = w[l]
                nm = k - 1
                y = w[nm]
                g = rv1[nm]
                h = rv1[k]
                f = ((y - z) * (y + z) + (g - h) * (g + h)) / (2.0 * h * y)
                g = pythag(f, 1.0)
                f = ((x - z) * (x + z) + h * ((y / (f + sign(g, f))) - h)) / x

                # next QR transformation
                c = s = np.float64(1.0)
                for j in range(l, nm + 1):
                    i = j + 1
                    g = rv1[i]
                    y = w[i]
                    h = s * g
                    g = c * g
                    z = pythag(f, h)
                    rv1[j] = z
                    c = f / z
                    s = h / z
                    f = x * c + g * s
                    g = g * c - x * s
                    h = y * s
                    y *= c
                    _rotate(v, j, i, c, s)
                    z = pythag(f, h)
                    # rotation can be arbitrary if z == 0
                    w[j] = z
                    if z != 0.0:
                        z = 1.0 / z
                        c = f * z
                        s = h * z
                    f = c * g + s * y
                    x = c * y - s * g
                    _rotate(a, j, i, c, s)
                rv1[l] = 0.0
                rv1[k] = f
                w[k] = x

    def _reorder(self) -> None:
        """Shell sort of w (descending), carrying U and V columns along."""
        m, n = self._u.shape
        a = self._u._view()
        v = self._v._view()
        w = self._w

        inc = 1
        while True:
            inc = 3 * inc + 1
            if inc > n:
                break
        while True:
            inc //= 3
            for i in range(inc, n):
                sw = w[i]
                su = a[:, i].copy()
                sv = v[:, i].copy()
                j = i
                while w[j - inc] < sw:
                    w[j] = w[j - inc]
                    a[:, j] = a[:, j - inc]
                    v[:, j] = v[:, j - inc]
                    j -= inc
                    if j < inc:
                        break
                w[j] = sw
                a[:, j] = su
                v[:, j] = sv
            if inc <= 1:
                break

        # flip signs so that most components of each (u, v) pair are >= 0
        for k in range(n):
            negatives = np.count_nonzero(a[:, k] < 0.0) + np.count_nonzero(v[:, k] < 0.0)
            if negatives > (m + n) // 2:
                a[:, k] = -a[:, k]
                v[:, k] = -v[:, k]

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    @property
    def u(self) -> Matrix:
        self._check_available()
        return self._u

    @property
    def v(self) -> Matrix:
        self._check_available()
        return self._v

    @property
    def singular_values(self) -> np.ndarray:
        self._check_available()
        return self._w

    def get_w(self, result: Optional[Matrix] = None) -> Matrix:
        """Singular values as an n-by-n diagonal matrix."""
        self._check_available()
        n = len(self._w)
        if result is None:
            result = Matrix(n, n)
        elif result.shape != (n, n):
            result.resize(n, n)
        result.set_diagonal(self._w)
        return result

    @property
    def norm2(self) -> float:
        self._check_available()
        return float(self._w[0])

    @property
    def negligible_singular_value_threshold(self) -> float:
        self._check_available()
        return float(self._tsh)

    @property
    def reciprocal_condition_number(self) -> float:
        self._check_available()
        w_max, w_min = self._w[0], self._w[-1]
        if w_max <= 0.0 or w_min <= 0.0:
            return 0.0
        return float(w_min / w_max)

    @property
    def condition_number(self) -> float:
        """w[0] / w[-1]; infinite for a singular input."""
        rcond = self.reciprocal_condition_number
        return np.inf if rcond == 0.0 else 1.0 / rcond

    def _threshold(self, threshold: Optional[float]) -> float:
        if threshold is None:
            return self._tsh
        if threshold < self.MIN_THRESH:
            raise ValueError(f"threshold must be >= {self.MIN_THRESH}, got {threshold}")
        return threshold

    def get_rank(self, threshold: Optional[float] = None) -> int:
        """Number of singular values above the threshold (default: tsh)."""
        self._check_available()
        threshold = self._threshold(threshold)
        return int(np.count_nonzero(self._w > threshold))

    def get_nullity(self, threshold: Optional[float] = None) -> int:
        self._check_available()
        threshold = self._threshold(threshold)
        return len(self._w) - int(np.count_nonzero(self._w > threshold))

    def get_range(self, threshold: Optional[float] = None,
                  result: Optional[Matrix] = None) -> Matrix:
        """
        Columns of U paired with non-negligible singular values.

        Raises
        ------
        NotAvailableError
            Before decomposing, or when the rank is zero.
        """
        self._check_available()
        threshold = self._threshold(threshold)
        selected = self._w > threshold
        if not np.any(selected):
            raise NotAvailableError("range space is empty (rank is zero)")
        return _columns_into(self._u, selected, result)

    def get_nullspace(self, threshold: Optional[float] = None,
                      result: Optional[Matrix] = None) -> Matrix:
        """
        Columns of V paired with negligible singular values.

        Raises
        ------
        NotAvailableError
            Before decomposing, or when the matrix has full column rank.
        """
        self._check_available()
        threshold = self._threshold(threshold)
        selected = self._w <= threshold
        if not np.any(selected):
            raise NotAvailableError("nullspace is empty (nullity is zero)")
        return _columns_into(self._v, selected, result)

    def solve(self, b: Union[Matrix, np.ndarray], threshold: Optional[float] = None,
              result=None):
        """
        Least squares solution of A x = b through the truncated pseudo-inverse
        x = V diag(1/w_j, or 0 when w_j <= threshold) U' b.

        Parameters
        ----------
        b : Matrix or 1-D ndarray
            Right-hand side(s); each column of a Matrix is solved on its own.
        threshold : float, optional
            Singular values at or below it are dropped (default: tsh).
        result : Matrix or ndarray, optional
            Output container. A Matrix is resized if needed, an array must
            have length n.

        Returns
        -------
        Matrix (n-by-p) for a Matrix b, ndarray (n,) for an array b.
        """
        self._check_available()
        m, n = self._u.shape

        if isinstance(b, Matrix):
            if b.rows != m:
                raise WrongSizeError(f"b must have {m} rows, got {b.rows}")
            threshold = self._threshold(threshold)
            x = self._pseudo_inverse_apply(b._view(), threshold)
            if result is None:
                result = Matrix(n, b.columns)
            elif result.shape != (n, b.columns):
                result.resize(n, b.columns)
            result._view()[:, :] = x
            return result

        b = np.asarray(b, dtype=float)
        if b.ndim != 1 or len(b) != m:
            raise WrongSizeError(f"b must have length {m}")
        if result is not None and len(result) != n:
            raise WrongSizeError(f"result must have length {n}")
        threshold = self._threshold(threshold)
        x = self._pseudo_inverse_apply(b, threshold)
        if result is None:
            return x
        result[:] = x
        return result

    def _pseudo_inverse_apply(self, b: np.ndarray, threshold: float) -> np.ndarray:
        w = self._w
        keep = w > threshold
        inv_w = np.zeros_like(w)
        inv_w[keep] = 1.0 / w[keep]
        tmp = self._u._view().T @ b
        if tmp.ndim == 1:
            tmp = tmp * inv_w
        else:
            tmp = tmp * inv_w[:, None]
        return self._v._view() @ tmp


def _rotate(x: np.ndarray, p: int, q: int, c: float, s: float) -> None:
    """Givens rotation of columns p and q of x, in place."""
    xp = x[:, p].copy()
    xq = x[:, q].copy()
    x[:, p] = xp * c + xq * s
    x[:, q] = xq * c - xp * s


def _columns_into(source: Matrix, selected: np.ndarray,
                  result: Optional[Matrix]) -> Matrix:
    block = source._view()[:, selected]
    if result is None:
        result = Matrix(*block.shape)
    elif result.shape != block.shape:
        result.resize(*block.shape)
    result._view()[:, :] = block
    return result
