# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exception hierarchy shared by the matrix core and every decomposer.

Plain argument mistakes (negative thresholds, bad corners, ...) raise the
builtin ``ValueError``; everything below carries an algebra-specific kind.
"""


class AlgebraError(Exception):
    """Base class of every error raised by densela."""


class WrongSizeError(AlgebraError, ValueError):
    """Operand shapes are incompatible with the requested operation."""


class NotReadyError(AlgebraError):
    """An operation was requested before its inputs were provided."""


class LockedError(AlgebraError):
    """The instance is busy (a decomposition is running)."""


class NotAvailableError(AlgebraError):
    """A result was requested before it was computed."""


class SingularMatrixError(AlgebraError):
    """The matrix is singular and cannot be inverted or solved."""


class RankDeficientMatrixError(AlgebraError):
    """The matrix lacks the rank required by the operation."""


class DecomposerError(AlgebraError):
    """A decomposition could not be computed."""


class NoConvergenceError(DecomposerError):
    """An iterative decomposition exhausted its iteration budget."""


class NonSymmetricPositiveDefiniteMatrixError(DecomposerError):
    """Cholesky solve requested on a matrix that is not SPD."""
