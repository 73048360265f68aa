# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Optional, Union

import numpy as np

from .exceptions import SingularMatrixError, WrongSizeError
from .matrix import Matrix

logger = logging.getLogger(__name__)


def gauss_jordan(a: Matrix, b: Optional[Union[Matrix, np.ndarray]] = None) -> None:
    """
    Gauss-Jordan elimination with full pivoting, done in place.

    Parameters
    ----------
    a : Matrix                   (n, n)
        Coefficient matrix. Replaced by its inverse.
    b : Matrix | np.ndarray | None   (n, k) or (n,)
        Optional right-hand side(s). Replaced by the solution of a x = b.

    Raises
    ------
    WrongSizeError
        ``a`` is not square or ``b`` does not have n rows.
    SingularMatrixError
        A zero pivot was found. ``a`` and ``b`` are left partially reduced.
    """
    n = a.rows
    if a.columns != n:
        raise WrongSizeError("a must be square")

    vector_b = b is not None and not isinstance(b, Matrix)
    if isinstance(b, Matrix):
        if b.rows != n:
            raise WrongSizeError(f"b must have {n} rows, got {b.rows}")
        rhs = b._view()
    elif b is not None:
        if np.ndim(b) != 1 or len(b) != n:
            raise WrongSizeError(f"b must have length {n}")
        rhs = np.array(b, dtype=float).reshape(-1, 1)
    else:
        rhs = np.zeros((n, 0))

    A = a._view()
    indxr = np.zeros(n, dtype=int)
    indxc = np.zeros(n, dtype=int)
    ipiv = np.zeros(n, dtype=int)

    try:
        for i in range(n):
            # The pivot is the largest remaining element among rows and
            # columns that have not been used as pivots yet.
            candidates = np.abs(A)
            used = ipiv != 0
            candidates[used, :] = -1.0
            candidates[:, used] = -1.0
            irow, icol = np.unravel_index(int(np.argmax(candidates)), candidates.shape)
            ipiv[icol] += 1

            # Move the pivot onto the diagonal, rhs follows the same swap
            if irow != icol:
                A[[irow, icol], :] = A[[icol, irow], :]
                rhs[[irow, icol], :] = rhs[[icol, irow], :]
            indxr[i] = irow
            indxc[i] = icol

            pivot = A[icol, icol]
            if pivot == 0.0:
                logger.debug(f"zero pivot at step {i} of {n}")
                raise SingularMatrixError("matrix is singular")
            pivinv = 1.0 / pivot
            A[icol, icol] = 1.0
            A[icol, :] *= pivinv
            rhs[icol, :] *= pivinv

            # Eliminate column icol from every other row
            others = np.arange(n) != icol
            dum = A[others, icol].copy()
            A[others, icol] = 0.0
            A[others, :] -= np.outer(dum, A[icol, :])
            rhs[others, :] -= np.outer(dum, rhs[icol, :])

        # Undo the column interchanges in reverse order
        for l in range(n - 1, -1, -1):
            if indxr[l] != indxc[l]:
                A[:, [indxr[l], indxc[l]]] = A[:, [indxc[l], indxr[l]]]
    finally:
        if vector_b:
            b[:] = rhs.ravel()


def gauss_jordan_inverse(a: Matrix) -> None:
    """Invert a square Matrix in place."""
    gauss_jordan(a)


def back_substitute(U: np.ndarray, c: np.ndarray) -> np.ndarray:
    """
    Parameters
    ----------
    U : (n, n) ndarray
        Upper-triangular matrix (only the upper triangle is read).
    c : (n,) or (n,k) ndarray
        Right-hand side(s).
    Returns
    -------
    x : (n,) or (n,k) ndarray
        Solution(s) of Ux = c. Callers check the diagonal beforehand.
    """
    U = np.asarray(U, dtype=float)
    c = np.asarray(c, dtype=float)

    vector = c.ndim == 1
    if vector:
        c = c[:, None]
    n, k = c.shape
    x = np.zeros((n, k), dtype=float)

    for i in reversed(range(n)):
        s = c[i] - U[i, i + 1 :] @ x[i + 1 :]
        x[i] = s / U[i, i]

    return x.ravel() if vector else x


def forward_substitute(L: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Solve Lx = c for lower-triangular L (only the lower triangle is read)."""
    L = np.asarray(L, dtype=float)
    c = np.asarray(c, dtype=float)

    vector = c.ndim == 1
    if vector:
        c = c[:, None]
    n, k = c.shape
    x = np.zeros((n, k), dtype=float)

    for i in range(n):
        s = c[i] - L[i, :i] @ x[:i]
        x[i] = s / L[i, i]

    return x.ravel() if vector else x
