# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Common life cycle of every matrix decomposer.

A decomposer borrows an input matrix, runs ``decompose()`` once under a
lock and then serves factor queries until a new input is assigned:

    NOT_READY --(input_matrix = A)--> READY --decompose()--> LOCKED
    LOCKED --success--> DECOMPOSED,  LOCKED --failure--> READY
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from .exceptions import LockedError, NotAvailableError, NotReadyError
from .matrix import Matrix

logger = logging.getLogger(__name__)


class DecomposerType(Enum):
    LU = "lu"
    QR = "qr"
    QR_ECONOMY = "qr_economy"
    RQ = "rq"
    CHOLESKY = "cholesky"
    SVD = "svd"


class Decomposer(ABC):
    """Abstract base class for all decomposers."""

    def __init__(self, input_matrix: Optional[Matrix] = None):
        self._input_matrix = input_matrix
        self._locked = False

    @property
    @abstractmethod
    def decomposer_type(self) -> DecomposerType:
        pass

    @property
    def input_matrix(self) -> Optional[Matrix]:
        return self._input_matrix

    @input_matrix.setter
    def input_matrix(self, matrix: Optional[Matrix]) -> None:
        if self._locked:
            raise LockedError("cannot change the input matrix while decomposing")
        self._input_matrix = matrix
        self._reset()

    @property
    def is_ready(self) -> bool:
        return self._input_matrix is not None

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    @abstractmethod
    def is_decomposition_available(self) -> bool:
        pass

    def _check_locked(self) -> None:
        if self._locked:
            raise LockedError(f"{type(self).__name__} is locked")

    def _check_available(self) -> None:
        if not self.is_decomposition_available:
            raise NotAvailableError("decompose() must succeed first")

    def decompose(self) -> None:
        """
        Factor the input matrix.

        Raises
        ------
        NotReadyError
            No input matrix has been assigned.
        LockedError
            A decomposition is already running on this instance.
        DecomposerError
            The factorization failed. No partial factors are kept.
        """
        if not self.is_ready:
            raise NotReadyError("an input matrix must be provided first")
        self._check_locked()
        self._check_input(self._input_matrix)

        self._locked = True
        logger.debug(
            "%s: decomposing %dx%d matrix",
            self.decomposer_type.name,
            self._input_matrix.rows,
            self._input_matrix.columns,
        )
        try:
            self._decompose(self._input_matrix)
        except Exception:
            self._reset()
            raise
        finally:
            self._locked = False

    def _check_input(self, a: Matrix) -> None:
        """Validate the input shape before locking; no-op by default."""

    @abstractmethod
    def _decompose(self, a: Matrix) -> None:
        pass

    @abstractmethod
    def _reset(self) -> None:
        """Drop every computed factor."""
