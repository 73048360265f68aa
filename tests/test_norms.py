# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import math

import numpy as np
import pytest

from densela.exceptions import WrongSizeError
from densela.matrix import Matrix
from densela.norms import (
    FrobeniusNormComputer,
    InfinityNormComputer,
    NormComputer,
    NormType,
    OneNormComputer,
)

A = np.array([[1.0, -2.0, 3.0], [-4.0, 5.0, -6.0]])


@pytest.mark.parametrize(
    "computer,ord_",
    [
        (FrobeniusNormComputer, "fro"),
        (OneNormComputer, 1),
        (InfinityNormComputer, np.inf),
    ],
)
def test_matrix_norms_match_numpy(computer, ord_):
    assert math.isclose(computer.norm(Matrix.from_ndarray(A)), np.linalg.norm(A, ord=ord_))


def test_array_norms():
    x = np.array([3.0, -4.0, 1.0])
    assert math.isclose(FrobeniusNormComputer.norm(x), np.sqrt(26.0))
    assert math.isclose(OneNormComputer.norm(x), 8.0)
    assert math.isclose(InfinityNormComputer.norm(x), 4.0)
    assert InfinityNormComputer.norm(np.array([])) == 0.0


def test_array_norm_jacobian():
    x = np.array([3.0, 4.0])
    jacobian = Matrix(1, 2)
    norm = FrobeniusNormComputer().get_norm(x, jacobian)
    assert norm == 5.0
    np.testing.assert_allclose(jacobian.to_ndarray(), [[0.6, 0.8]])

    with pytest.raises(WrongSizeError):
        FrobeniusNormComputer().get_norm(x, Matrix(2, 1))


def test_factory():
    assert isinstance(NormComputer.create(), FrobeniusNormComputer)
    assert NormComputer.create(NormType.ONE_NORM).norm_type == NormType.ONE_NORM
    assert NormComputer.create(NormType.INFINITY_NORM).norm_type == NormType.INFINITY_NORM
    assert NormComputer.DEFAULT_NORM_TYPE == NormType.FROBENIUS_NORM
