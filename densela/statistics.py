# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Multivariate normal distribution and a Gaussian sample generator.

One-dimensional normal CDF and quantile come from ``scipy.stats.norm``; the
multivariate parts are evaluated along the principal axes of the
covariance (its SVD basis), where the distribution factorises.
"""

import logging
from typing import Callable, Optional, Tuple, Union

import numpy as np
from scipy import stats

from . import matrix_functions
from .cholesky import CholeskyDecomposer
from .exceptions import AlgebraError, NotReadyError, WrongSizeError
from .matrix import Matrix
from .svd import SingularValueDecomposer

logger = logging.getLogger(__name__)

# evaluator(x) -> (y, jacobian of y with respect to x)
JacobianEvaluator = Callable[[np.ndarray], Tuple[np.ndarray, Union[Matrix, np.ndarray]]]


class InvalidCovarianceMatrixError(AlgebraError):
    """Covariance is not square, or not symmetric positive definite."""


def _cholesky_of_covariance(covariance: Matrix) -> CholeskyDecomposer:
    if covariance.rows != covariance.columns:
        raise InvalidCovarianceMatrixError("covariance matrix must be square")
    decomposer = CholeskyDecomposer(covariance)
    decomposer.decompose()
    if not decomposer.is_spd:
        raise InvalidCovarianceMatrixError(
            "covariance matrix must be symmetric positive definite (non singular)"
        )
    return decomposer


class MultivariateNormalDist:
    """
    N(mean, covariance).

    Without arguments this is the standard normal in ``dims`` dimensions
    (zero mean, identity covariance).
    """

    def __init__(self, mean=None, covariance: Optional[Matrix] = None,
                 dims: int = 1, validate_spd: bool = True):
        self._cov_basis: Optional[Matrix] = None
        self._variances: Optional[np.ndarray] = None
        if mean is None and covariance is None:
            if dims <= 0:
                raise ValueError("number of dimensions must be greater than zero")
            self._mu = np.zeros(dims)
            self._cov = Matrix.identity(dims, dims)
        elif mean is None or covariance is None:
            raise ValueError("mean and covariance must be provided together")
        else:
            self.set_mean_and_covariance(mean, covariance, validate_spd)

    @property
    def mean(self) -> np.ndarray:
        return self._mu

    @mean.setter
    def mean(self, mu) -> None:
        mu = np.asarray(mu, dtype=float).ravel()
        if len(mu) == 0:
            raise ValueError("length of mean array must be greater than zero")
        self._mu = mu

    @property
    def covariance(self) -> Matrix:
        """Copy of the covariance matrix."""
        return self._cov.clone()

    @covariance.setter
    def covariance(self, cov: Matrix) -> None:
        self.set_covariance(cov)

    def set_covariance(self, cov: Matrix, validate_spd: bool = True) -> None:
        if cov.rows != cov.columns:
            raise InvalidCovarianceMatrixError("covariance matrix must be square")
        if validate_spd:
            _cholesky_of_covariance(cov)
        self._cov = cov.clone()
        self._cov_basis = None
        self._variances = None

    def set_mean_and_covariance(self, mu, cov: Matrix, validate_spd: bool = True) -> None:
        mu = np.asarray(mu, dtype=float).ravel()
        if len(mu) != cov.rows:
            raise ValueError("mean array length must be equal to covariance number of rows")
        self.set_covariance(cov, validate_spd)
        self.mean = mu

    @staticmethod
    def is_valid_covariance(cov: Matrix) -> bool:
        try:
            _cholesky_of_covariance(cov)
        except AlgebraError:
            return False
        return True

    @property
    def is_ready(self) -> bool:
        return (
            self._mu is not None
            and self._cov is not None
            and len(self._mu) == self._cov.rows
        )

    @property
    def covariance_basis(self) -> Optional[Matrix]:
        """Principal axes (columns), available after process_covariance()."""
        return self._cov_basis

    @property
    def variances(self) -> Optional[np.ndarray]:
        """Variances along the principal axes."""
        return self._variances

    def _check_point(self, x, what: str = "point") -> np.ndarray:
        if not self.is_ready:
            raise NotReadyError("mean and covariance not provided or invalid")
        x = np.asarray(x, dtype=float).ravel()
        if len(x) != len(self._mu):
            raise ValueError(f"length of {what} must be equal to the length of mean")
        return x

    def p(self, x) -> float:
        """Probability density at x."""
        x = self._check_point(x)
        k = len(x)
        det_cov = matrix_functions.det(self._cov)
        factor = 1.0 / np.sqrt((2.0 * np.pi) ** k * det_cov)
        return float(factor * np.exp(-0.5 * self.squared_mahalanobis_distance(x)))

    def process_covariance(self) -> None:
        """Compute (once) the principal axes and variances of the covariance."""
        if self._cov is None:
            raise NotReadyError("covariance must be defined")
        if self._cov_basis is None or self._variances is None:
            decomposer = SingularValueDecomposer(self._cov)
            decomposer.decompose()
            axes = decomposer.v.to_ndarray()
            # orient each axis so that its largest component is positive
            dominant = axes[np.argmax(np.abs(axes), axis=0), np.arange(axes.shape[1])]
            axes *= np.sign(dominant)
            self._cov_basis = Matrix.from_ndarray(axes)
            self._variances = decomposer.singular_values.copy()
            logger.debug(f"covariance variances along principal axes: {self._variances}")

    def cdf(self, x, basis: Optional[Matrix] = None) -> float:
        """
        P(X <= x) measured along the principal axes: the product of the
        marginal CDFs of the projections of x on each axis.
        """
        x = self._check_point(x)
        self.process_covariance()
        if basis is not None:
            basis.copy_from(self._cov_basis)

        axes = self._cov_basis.to_ndarray()
        coord_x = x @ axes
        coord_mu = self._mu @ axes
        marginals = stats.norm.cdf(coord_x, loc=coord_mu, scale=np.sqrt(self._variances))
        return self.joint_probability(marginals)

    @staticmethod
    def joint_probability(p) -> float:
        return float(np.prod(p))

    def invcdf(self, p, result: Optional[np.ndarray] = None,
               basis: Optional[Matrix] = None) -> np.ndarray:
        """
        Point whose principal-axis coordinates have the given marginal
        probabilities.

        A scalar ``p`` in (0, 1) is split evenly across the k axes, each
        taking p ** (1 / k), so that the joint probability equals p.
        """
        if np.ndim(p) == 0:
            if p <= 0.0 or p >= 1.0:
                raise ValueError("probability value must be between 0.0 and 1.0")
            if not self.is_ready:
                raise NotReadyError("mean and covariance not provided or invalid")
            k = len(self._mu)
            p = np.full(k, p ** (1.0 / k))
        p = self._check_point(p, "probabilities")
        k = len(p)
        if result is not None and len(result) != k:
            raise ValueError("length of result must be equal to the length of mean")

        self.process_covariance()
        if basis is not None:
            basis.copy_from(self._cov_basis)

        coords = stats.norm.ppf(p, scale=np.sqrt(self._variances))
        point = self._mu + self._cov_basis.to_ndarray() @ coords
        if result is None:
            return point
        result[:] = point
        return result

    def squared_mahalanobis_distance(self, x) -> float:
        diff = np.asarray(x, dtype=float).ravel() - self._mu
        inv_cov = matrix_functions.inverse(self._cov).to_ndarray()
        return float(diff @ inv_cov @ diff)

    def mahalanobis_distance(self, x) -> float:
        return float(np.sqrt(self.squared_mahalanobis_distance(x)))

    @staticmethod
    def propagate(evaluator: JacobianEvaluator, mean, covariance: Matrix,
                  result: Optional["MultivariateNormalDist"] = None
                  ) -> "MultivariateNormalDist":
        """
        First order propagation of N(mean, covariance) through a function.

        The evaluator returns f(mean) and its Jacobian J; the result is
        N(f(mean), J C J') with the covariance symmetrized and not
        re-validated (J C J' may legitimately be singular).
        """
        mean = np.asarray(mean, dtype=float).ravel()
        evaluation, jacobian = evaluator(mean)
        if isinstance(jacobian, Matrix):
            jacobian = jacobian.to_ndarray()
        jacobian = np.asarray(jacobian, dtype=float)
        if jacobian.shape[1] != len(mean):
            raise WrongSizeError("jacobian must have as many columns as mean length")

        propagated = Matrix.from_ndarray(jacobian @ covariance.to_ndarray() @ jacobian.T)
        propagated.symmetrize()

        if result is None:
            result = MultivariateNormalDist()
        result.mean = evaluation
        result.set_covariance(propagated, validate_spd=False)
        return result

    def propagate_this_distribution(self, evaluator: JacobianEvaluator,
                                    result: Optional["MultivariateNormalDist"] = None
                                    ) -> "MultivariateNormalDist":
        return self.propagate(evaluator, self._mu, self._cov, result)


class MultivariateGaussianRandomizer:
    """
    Draws samples mean + L z, with z standard normal and L the lower
    Cholesky factor of the covariance.
    """

    def __init__(self, mean=None, covariance: Optional[Matrix] = None, rng=None):
        self._rng = np.random.default_rng(rng)
        if mean is None and covariance is None:
            self._mean = np.zeros(1)
            self._covariance = Matrix.identity(1, 1)
            self._l = Matrix.identity(1, 1)
        elif mean is None or covariance is None:
            raise ValueError("mean and covariance must be provided together")
        else:
            self.set_mean_and_covariance(mean, covariance)

    @property
    def mean(self) -> np.ndarray:
        return self._mean

    @property
    def covariance(self) -> Matrix:
        return self._covariance

    def set_mean_and_covariance(self, mean, covariance: Matrix) -> None:
        mean = np.asarray(mean, dtype=float).ravel()
        n = len(mean)
        if covariance.rows != n or covariance.columns != n:
            raise WrongSizeError("mean must have same covariance size")
        decomposer = _cholesky_of_covariance(covariance)
        self._mean = mean
        self._covariance = covariance
        self._l = decomposer.l

    def next(self, result: Optional[np.ndarray] = None) -> np.ndarray:
        n = len(self._mean)
        if result is not None and len(result) != n:
            raise ValueError("values must have mean length")
        z = self._rng.standard_normal(n)
        values = self._mean + self._l.to_ndarray() @ z
        if result is None:
            return values
        result[:] = values
        return result
