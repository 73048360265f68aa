# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Union

import numpy as np

from .exceptions import WrongSizeError
from .matrix import Matrix


class NormType(Enum):
    FROBENIUS_NORM = "frobenius"
    ONE_NORM = "one"
    INFINITY_NORM = "infinity"


class NormComputer(ABC):
    """
    Norm of a Matrix or of a 1-D array.

    For arrays an optional 1-by-N ``jacobian`` Matrix receives x / norm,
    the derivative of the Euclidean norm with respect to x.
    """

    DEFAULT_NORM_TYPE = NormType.FROBENIUS_NORM

    @property
    @abstractmethod
    def norm_type(self) -> NormType:
        pass

    @abstractmethod
    def _matrix_norm(self, values: np.ndarray) -> float:
        pass

    @abstractmethod
    def _array_norm(self, values: np.ndarray) -> float:
        pass

    def get_norm(self, value: Union[Matrix, np.ndarray],
                 jacobian: Optional[Matrix] = None) -> float:
        if isinstance(value, Matrix):
            return float(self._matrix_norm(value.to_ndarray()))

        array = np.asarray(value, dtype=float).ravel()
        if jacobian is not None and jacobian.shape != (1, len(array)):
            raise WrongSizeError("jacobian must be 1xN, where N is length of array")
        norm = float(self._array_norm(array))
        if jacobian is not None:
            jacobian.from_array(array)
            jacobian.multiply_by_scalar(1.0 / norm)
        return norm

    @classmethod
    def norm(cls, value, jacobian: Optional[Matrix] = None) -> float:
        return cls().get_norm(value, jacobian)

    @staticmethod
    def create(norm_type: NormType = DEFAULT_NORM_TYPE) -> "NormComputer":
        if norm_type == NormType.INFINITY_NORM:
            return InfinityNormComputer()
        if norm_type == NormType.ONE_NORM:
            return OneNormComputer()
        return FrobeniusNormComputer()


class FrobeniusNormComputer(NormComputer):
    """sqrt of the sum of squares."""

    @property
    def norm_type(self) -> NormType:
        return NormType.FROBENIUS_NORM

    def _matrix_norm(self, values: np.ndarray) -> float:
        return np.sqrt(np.sum(values * values))

    def _array_norm(self, values: np.ndarray) -> float:
        return np.sqrt(values @ values)


class OneNormComputer(NormComputer):
    """Maximum absolute column sum (sum of |x_i| for arrays)."""

    @property
    def norm_type(self) -> NormType:
        return NormType.ONE_NORM

    def _matrix_norm(self, values: np.ndarray) -> float:
        return np.max(np.sum(np.abs(values), axis=0))

    def _array_norm(self, values: np.ndarray) -> float:
        return np.sum(np.abs(values))


class InfinityNormComputer(NormComputer):
    """Maximum absolute row sum (max |x_i| for arrays)."""

    @property
    def norm_type(self) -> NormType:
        return NormType.INFINITY_NORM

    def _matrix_norm(self, values: np.ndarray) -> float:
        return np.max(np.sum(np.abs(values), axis=1))

    def _array_norm(self, values: np.ndarray) -> float:
        return np.max(np.abs(values)) if values.size else 0.0
