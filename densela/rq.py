# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import Optional

import numpy as np

from .decomposer import Decomposer, DecomposerType
from .exceptions import DecomposerError
from .matrix import Matrix
from .qr import QRDecomposer


class RQDecomposer(Decomposer):
    """
    RQ decomposition A = R Q of an m-by-n matrix with n >= m.

    If F flips the row order, then (F A)' = Q2 R2 is an ordinary QR
    problem, and

        R = (P R2 F)'      (m-by-n, upper triangular)
        Q = (Q2 P)'        (n-by-n, orthogonal)

    where P is the n-by-n identity with F in its leading m-by-m block.
    """

    def __init__(self, input_matrix: Optional[Matrix] = None):
        super().__init__(input_matrix)
        self._internal = QRDecomposer()

    @property
    def decomposer_type(self) -> DecomposerType:
        return DecomposerType.RQ

    @property
    def is_decomposition_available(self) -> bool:
        return self._internal.is_decomposition_available

    def _reset(self) -> None:
        self._internal.input_matrix = None

    def _check_input(self, a: Matrix) -> None:
        if a.columns < a.rows:
            raise DecomposerError("RQ needs columns >= rows")

    def _decompose(self, a: Matrix) -> None:
        flipped = a.to_ndarray()[::-1, :].T
        self._internal.input_matrix = Matrix.from_ndarray(flipped)
        self._internal.decompose()

    def _flips(self):
        rows, columns = self._input_matrix.shape
        flip = np.eye(rows)[::-1]
        perm = np.eye(columns)
        perm[:rows, :rows] = flip
        return flip, perm

    @property
    def r(self) -> Matrix:
        self._check_available()
        flip, perm = self._flips()
        r2 = self._internal.r.to_ndarray()
        return Matrix.from_ndarray((perm @ r2 @ flip).T)

    @property
    def q(self) -> Matrix:
        self._check_available()
        _, perm = self._flips()
        q2 = self._internal.q.to_ndarray()
        return Matrix.from_ndarray((q2 @ perm).T)
