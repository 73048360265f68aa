# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Operations on 1-D arrays of real or complex numbers.

Functions taking ``result`` write into it and return it; when ``result``
is omitted the input array is updated in place. The ``*_and_return_new``
variants always allocate. Complex arrays use numpy's complex dtype and
Python's builtin ``complex`` scalars.
"""

from typing import Optional, Tuple

import numpy as np

from .matrix import Matrix

_LARGEST = np.finfo(float).max


def _check_same_length(*arrays) -> None:
    lengths = {len(a) for a in arrays}
    if len(lengths) != 1:
        raise ValueError("all arrays must have the same length")


def multiply_by_scalar(v: np.ndarray, scalar, result: Optional[np.ndarray] = None) -> np.ndarray:
    if result is None:
        result = v
    _check_same_length(v, result)
    np.multiply(v, scalar, out=result)
    return result


def multiply_by_scalar_and_return_new(v: np.ndarray, scalar) -> np.ndarray:
    return np.asarray(v) * scalar


def sum(a: np.ndarray, b: np.ndarray, result: Optional[np.ndarray] = None) -> np.ndarray:
    if result is None:
        result = a
    _check_same_length(a, b, result)
    np.add(a, b, out=result)
    return result


def sum_and_return_new(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    _check_same_length(a, b)
    return np.asarray(a) + np.asarray(b)


def subtract(a: np.ndarray, b: np.ndarray, result: Optional[np.ndarray] = None) -> np.ndarray:
    if result is None:
        result = a
    _check_same_length(a, b, result)
    np.subtract(a, b, out=result)
    return result


def subtract_and_return_new(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    _check_same_length(a, b)
    return np.asarray(a) - np.asarray(b)


def dot_product(a: np.ndarray, b: np.ndarray,
                jacobian_a: Optional[Matrix] = None,
                jacobian_b: Optional[Matrix] = None):
    """
    Plain (non-conjugating) dot product sum(a_i * b_i).

    Optional 1-by-N jacobians receive the derivative with respect to each
    operand, i.e. ``b`` for ``jacobian_a`` and ``a`` for ``jacobian_b``.
    """
    _check_same_length(a, b)
    n = len(a)
    if jacobian_a is not None and jacobian_a.shape != (1, n):
        raise ValueError("jacobian_a must be a 1xN row vector")
    if jacobian_b is not None and jacobian_b.shape != (1, n):
        raise ValueError("jacobian_b must be a 1xN row vector")

    if jacobian_a is not None:
        jacobian_a.from_array(b)
    if jacobian_b is not None:
        jacobian_b.from_array(a)

    result = np.dot(a, b)
    return complex(result) if np.iscomplexobj(result) else float(result)


def angle(a: np.ndarray, b: np.ndarray) -> float:
    """Angle in radians between two real vectors."""
    cos = dot_product(a, b) / np.linalg.norm(a) / np.linalg.norm(b)
    return float(np.arccos(np.clip(cos, -1.0, 1.0)))


def normalize(v: np.ndarray, result: Optional[np.ndarray] = None,
              jacobian: Optional[Matrix] = None) -> np.ndarray:
    """
    v / |v|.  A zero vector maps to the largest float in every component.

    The optional N-by-N ``jacobian`` receives (|v|^2 I - v v') / |v|^3.
    """
    v = np.asarray(v, dtype=float)
    if result is None:
        result = v
    _check_same_length(v, result)
    s = len(v)
    if jacobian is not None and jacobian.shape != (s, s):
        raise ValueError("jacobian must be NxN where N is length of v")

    n2 = v @ v
    n = np.sqrt(n2)

    if jacobian is not None:
        n3 = n * n2
        if n3 != 0.0:
            jacobian.from_array((n2 * np.eye(s) - np.outer(v, v)) / n3, column_order=False)
        else:
            jacobian.initialize(_LARGEST)

    if n != 0.0:
        np.multiply(v, 1.0 / n, out=result)
    else:
        result[:] = _LARGEST
    return result


def normalize_and_return_new(v: np.ndarray, jacobian: Optional[Matrix] = None) -> np.ndarray:
    v = np.asarray(v, dtype=float)
    return normalize(v, np.empty_like(v), jacobian)


def reverse(v: np.ndarray, result: Optional[np.ndarray] = None) -> np.ndarray:
    if result is None:
        result = v
    _check_same_length(v, result)
    result[:] = v[::-1].copy()
    return result


def reverse_and_return_new(v: np.ndarray) -> np.ndarray:
    return np.asarray(v)[::-1].copy()


def sqrt(v: np.ndarray, result: Optional[np.ndarray] = None) -> np.ndarray:
    """Element-wise square root (NaN for negative real entries)."""
    if result is None:
        result = v
    _check_same_length(v, result)
    with np.errstate(invalid="ignore"):
        np.sqrt(v, out=result)
    return result


def sqrt_and_return_new(v: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore"):
        return np.sqrt(np.asarray(v, dtype=float))


def min_value(v: np.ndarray) -> Tuple[float, int]:
    """(smallest value, first position); (largest float, -1) when empty."""
    if len(v) == 0:
        return _LARGEST, -1
    pos = int(np.argmin(v))
    return float(v[pos]), pos


def max_value(v: np.ndarray) -> Tuple[float, int]:
    if len(v) == 0:
        return -_LARGEST, -1
    pos = int(np.argmax(v))
    return float(v[pos]), pos


def min_max(v: np.ndarray) -> Tuple[Tuple[float, float], Tuple[int, int]]:
    """((min, max), (min position, max position))"""
    minimum, min_pos = min_value(v)
    maximum, max_pos = max_value(v)
    return (minimum, maximum), (min_pos, max_pos)
