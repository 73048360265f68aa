# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
densela
=======

Dense real matrices in column-major storage and the classic
decompositions built on them.

Public API
~~~~~~~~~~
- Storage
    - `Matrix`
- Decompositions
    - `SingularValueDecomposer`
    - `LUDecomposer`, `CholeskyDecomposer`
    - `QRDecomposer`, `EconomyQRDecomposer`, `RQDecomposer`
- Norms
    - `NormComputer`, `FrobeniusNormComputer`, `OneNormComputer`,
      `InfinityNormComputer`
- Function modules
    - `matrix_functions` (det, solve, inverse, pseudo_inverse, ...)
    - `array_utils` (operations on 1-D arrays)
    - `elimination` (Gauss-Jordan)
    - `statistics` (multivariate normal distribution and sampling)

Example
-------
>>> import numpy as np, densela as dl
>>> A = dl.Matrix.from_ndarray(np.random.randn(5, 3))
>>> svd = dl.SingularValueDecomposer(A)
>>> svd.decompose()
>>> svd.get_rank()
3
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

from . import array_utils, elimination, matrix_functions, statistics
from .cholesky import CholeskyDecomposer
from .decomposer import Decomposer, DecomposerType
from .exceptions import (
    AlgebraError,
    DecomposerError,
    LockedError,
    NoConvergenceError,
    NonSymmetricPositiveDefiniteMatrixError,
    NotAvailableError,
    NotReadyError,
    RankDeficientMatrixError,
    SingularMatrixError,
    WrongSizeError,
)
from .lu import LUDecomposer
from .matrix import Matrix
from .norms import (
    FrobeniusNormComputer,
    InfinityNormComputer,
    NormComputer,
    NormType,
    OneNormComputer,
)
from .qr import EconomyQRDecomposer, QRDecomposer
from .rq import RQDecomposer
from .statistics import (
    InvalidCovarianceMatrixError,
    MultivariateGaussianRandomizer,
    MultivariateNormalDist,
)
from .svd import SingularValueDecomposer

__all__ = [
    "Matrix",
    "Decomposer",
    "DecomposerType",
    "SingularValueDecomposer",
    "LUDecomposer",
    "QRDecomposer",
    "EconomyQRDecomposer",
    "RQDecomposer",
    "CholeskyDecomposer",
    "NormType",
    "NormComputer",
    "FrobeniusNormComputer",
    "OneNormComputer",
    "InfinityNormComputer",
    "MultivariateNormalDist",
    "MultivariateGaussianRandomizer",
    "AlgebraError",
    "WrongSizeError",
    "NotReadyError",
    "LockedError",
    "NotAvailableError",
    "SingularMatrixError",
    "RankDeficientMatrixError",
    "DecomposerError",
    "NoConvergenceError",
    "NonSymmetricPositiveDefiniteMatrixError",
    "InvalidCovarianceMatrixError",
    "array_utils",
    "elimination",
    "matrix_functions",
    "statistics",
]

# ---------------------------------------------------------------------
# Version string (helps "pip show densela", Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except PackageNotFoundError:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Library logging stays silent unless the application configures it.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
