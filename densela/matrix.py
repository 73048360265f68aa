# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Dense column-major matrix.

Storage is a flat float64 buffer plus a table of column start offsets, so
element (r, c) lives at ``buffer[column_index[c] + r]``.  Vectorised work is
done on a 2-D numpy view of that same buffer; the view never outlives the
call that created it, so resizing can freely swap the buffer out.
"""

from typing import Optional, Tuple

import numpy as np

from .exceptions import WrongSizeError


class Matrix:
    DEFAULT_USE_COLUMN_ORDER: bool = True

    _rows: int
    _columns: int
    _buffer: np.ndarray
    _column_index: np.ndarray

    def __init__(self, rows: int, columns: int):
        self._internal_resize(rows, columns)

    # ------------------------------------------------------------------
    # Shape and raw storage
    # ------------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def shape(self) -> Tuple[int, int]:
        return self._rows, self._columns

    @property
    def buffer(self) -> np.ndarray:
        """Live column-major buffer (not a copy)."""
        return self._buffer

    @property
    def column_index(self) -> np.ndarray:
        return self._column_index

    def get_buffer(self) -> np.ndarray:
        return self._buffer

    def _view(self) -> np.ndarray:
        # (rows, columns) view sharing memory with the buffer
        return self._buffer.reshape((self._columns, self._rows)).T

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def get_element_at(self, row: int, column: int) -> float:
        return float(self._buffer[self._column_index[column] + row])

    def set_element_at(self, row: int, column: int, value: float) -> None:
        self._buffer[self._column_index[column] + row] = value

    def get_index(self, row: int, column: int) -> int:
        return int(self._column_index[column] + row)

    def get_element_at_index(
        self, index: int, column_order: bool = DEFAULT_USE_COLUMN_ORDER
    ) -> float:
        if column_order:
            return float(self._buffer[index])
        row, column = divmod(index, self._columns)
        return float(self._buffer[self._column_index[column] + row])

    def set_element_at_index(
        self, index: int, value: float, column_order: bool = DEFAULT_USE_COLUMN_ORDER
    ) -> None:
        if column_order:
            self._buffer[index] = value
        else:
            row, column = divmod(index, self._columns)
            self._buffer[self._column_index[column] + row] = value

    def __getitem__(self, key: Tuple[int, int]) -> float:
        row, column = key
        return self.get_element_at(row, column)

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        row, column = key
        self.set_element_at(row, column, value)

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------
    def clone(self) -> "Matrix":
        out = Matrix(self._rows, self._columns)
        out.copy_from(self)
        return out

    def copy_to(self, output: "Matrix") -> None:
        # reuse the output buffer when shapes already agree
        if output.shape != self.shape:
            output.resize(self._rows, self._columns)
        output._buffer[:] = self._buffer

    def copy_from(self, input: "Matrix") -> None:
        if input.shape != self.shape:
            self.resize(input.rows, input.columns)
        self._buffer[:] = input._buffer

    # ------------------------------------------------------------------
    # Element-wise arithmetic
    # ------------------------------------------------------------------
    def _check_same_shape(self, other: "Matrix") -> None:
        if other.shape != self.shape:
            raise WrongSizeError(
                f"shape mismatch: {self.shape} vs {other.shape}"
            )

    def _prepare_result(self, result: Optional["Matrix"], rows, columns):
        if result is None:
            return self
        if result.shape != (rows, columns):
            result.resize(rows, columns)
        return result

    def add(self, other: "Matrix", result: Optional["Matrix"] = None) -> None:
        """
        Element-wise sum.  Without ``result`` this instance is updated,
        otherwise ``result`` receives the sum (resized only if needed).
        """
        self._check_same_shape(other)
        out = self._prepare_result(result, self._rows, self._columns)
        np.add(self._buffer, other._buffer, out=out._buffer)

    def add_and_return_new(self, other: "Matrix") -> "Matrix":
        self._check_same_shape(other)
        out = Matrix(self._rows, self._columns)
        np.add(self._buffer, other._buffer, out=out._buffer)
        return out

    def subtract(self, other: "Matrix", result: Optional["Matrix"] = None) -> None:
        self._check_same_shape(other)
        out = self._prepare_result(result, self._rows, self._columns)
        np.subtract(self._buffer, other._buffer, out=out._buffer)

    def subtract_and_return_new(self, other: "Matrix") -> "Matrix":
        self._check_same_shape(other)
        out = Matrix(self._rows, self._columns)
        np.subtract(self._buffer, other._buffer, out=out._buffer)
        return out

    def element_by_element_product(
        self, other: "Matrix", result: Optional["Matrix"] = None
    ) -> None:
        self._check_same_shape(other)
        out = self._prepare_result(result, self._rows, self._columns)
        np.multiply(self._buffer, other._buffer, out=out._buffer)

    def element_by_element_product_and_return_new(self, other: "Matrix") -> "Matrix":
        self._check_same_shape(other)
        out = Matrix(self._rows, self._columns)
        np.multiply(self._buffer, other._buffer, out=out._buffer)
        return out

    def multiply_by_scalar(self, scalar: float) -> None:
        self._buffer *= scalar

    def multiply_by_scalar_and_return_new(self, scalar: float) -> "Matrix":
        out = Matrix(self._rows, self._columns)
        np.multiply(self._buffer, scalar, out=out._buffer)
        return out

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    def _replace_storage(self, values: np.ndarray) -> None:
        # swap in a freshly computed (rows, columns) array as the new storage
        rows, columns = values.shape
        self._rows = rows
        self._columns = columns
        self._buffer = np.asarray(values, dtype=float).flatten(order="F")
        self._column_index = np.arange(columns, dtype=np.intp) * rows

    def multiply(self, other: "Matrix", result: Optional["Matrix"] = None) -> None:
        """
        Matrix product ``self @ other``.

        Without ``result`` this instance takes the product's shape: its
        buffer and column index are replaced, not rewritten in place.
        """
        if self._columns != other.rows:
            raise WrongSizeError(
                f"cannot multiply {self.shape} by {other.shape}"
            )
        product = self._view() @ other._view()
        if result is None:
            self._replace_storage(product)
        else:
            if result.shape != product.shape:
                result.resize(*product.shape)
            result._view()[:, :] = product

    def multiply_and_return_new(self, other: "Matrix") -> "Matrix":
        if self._columns != other.rows:
            raise WrongSizeError(
                f"cannot multiply {self.shape} by {other.shape}"
            )
        out = Matrix(self._rows, other.columns)
        out._view()[:, :] = self._view() @ other._view()
        return out

    def multiply_kronecker(
        self, other: "Matrix", result: Optional["Matrix"] = None
    ) -> None:
        product = np.kron(self._view(), other._view())
        if result is None:
            self._replace_storage(product)
        else:
            if result.shape != product.shape:
                result.resize(*product.shape)
            result._view()[:, :] = product

    def multiply_kronecker_and_return_new(self, other: "Matrix") -> "Matrix":
        return Matrix.from_ndarray(np.kron(self._view(), other._view()))

    # ------------------------------------------------------------------
    # Transposition and symmetry
    # ------------------------------------------------------------------
    def transpose(self, result: Optional["Matrix"] = None) -> None:
        """
        Transpose.  In place the storage is reallocated because the shape
        changes; with ``result`` the transposed values are written there.
        """
        if result is None:
            self._replace_storage(self._view().T)
            return
        transposed = self._view().T.copy()
        if result.shape != (self._columns, self._rows):
            result.resize(self._columns, self._rows)
        result._view()[:, :] = transposed

    def transpose_and_return_new(self) -> "Matrix":
        out = Matrix(self._columns, self._rows)
        out._view()[:, :] = self._view().T
        return out

    def symmetrize(self, result: Optional["Matrix"] = None) -> None:
        """S = (M + M') / 2"""
        if self._rows != self._columns:
            raise WrongSizeError("matrix must be square")
        out = self if result is None else result
        if out.shape != self.shape:
            raise WrongSizeError("result matrix must have the size of this instance")
        values = self._view()
        out._view()[:, :] = 0.5 * (values + values.T)

    def symmetrize_and_return_new(self) -> "Matrix":
        out = Matrix(self._rows, self._columns)
        self.symmetrize(out)
        return out

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------
    def equals(self, other: Optional["Matrix"], threshold: float = 0.0) -> bool:
        """True when shapes agree and no element differs by more than threshold."""
        if not isinstance(other, Matrix):
            return False
        if other.shape != self.shape:
            return False
        return not np.any(np.abs(self._buffer - other._buffer) > threshold)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_ndarray().tolist()})"

    # ------------------------------------------------------------------
    # Size management
    # ------------------------------------------------------------------
    def _internal_resize(self, rows: int, columns: int) -> None:
        if rows < 1 or columns < 1:
            raise WrongSizeError(
                f"rows and columns must be positive, got {rows}x{columns}"
            )
        self._rows = int(rows)
        self._columns = int(columns)
        self._buffer = np.zeros(self._rows * self._columns, dtype=float)
        self._column_index = np.arange(self._columns, dtype=np.intp) * self._rows

    def initialize(self, value: float) -> None:
        self._buffer.fill(value)

    def resize(self, rows: int, columns: int) -> None:
        """Reallocate to rows x columns.  Previous contents are discarded."""
        self._internal_resize(rows, columns)

    def reset(self, rows: int, columns: int, value: float) -> None:
        self._internal_resize(rows, columns)
        self.initialize(value)

    # ------------------------------------------------------------------
    # Flat array conversions
    # ------------------------------------------------------------------
    def to_array(
        self,
        column_order: bool = DEFAULT_USE_COLUMN_ORDER,
        result: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        values = self._buffer if column_order else self._view().flatten(order="C")
        if result is None:
            return values.copy()
        if len(result) != len(self._buffer):
            raise WrongSizeError("result array must be equal to rows x columns")
        result[:] = values
        return result

    def from_array(
        self, array, column_order: bool = DEFAULT_USE_COLUMN_ORDER
    ) -> None:
        array = np.asarray(array, dtype=float)
        if array.size != self._buffer.size:
            raise WrongSizeError("array length must be equal to rows x columns")
        if column_order:
            self._buffer[:] = array.ravel()
        else:
            self._view()[:, :] = array.reshape((self._rows, self._columns))

    @classmethod
    def new_from_array(
        cls, array, column_order: bool = DEFAULT_USE_COLUMN_ORDER
    ) -> "Matrix":
        """Column vector (or row vector when column_order is False)."""
        array = np.asarray(array, dtype=float).ravel()
        out = cls(len(array), 1) if column_order else cls(1, len(array))
        out._buffer[:] = array
        return out

    @classmethod
    def from_ndarray(cls, a) -> "Matrix":
        """Copy a 2-D array (a 1-D array becomes a column vector)."""
        a = np.asarray(a, dtype=float)
        if a.ndim == 1:
            a = a.reshape(-1, 1)
        if a.ndim != 2:
            raise ValueError(f"expected a 2-D array, got {a.ndim} dimensions")
        out = cls(*a.shape)
        out._view()[:, :] = a
        return out

    def to_ndarray(self) -> np.ndarray:
        return self._view().copy()

    # ------------------------------------------------------------------
    # Submatrices
    # ------------------------------------------------------------------
    def _check_corners(self, top_left_row, top_left_column,
                       bottom_right_row, bottom_right_column) -> None:
        if (
            top_left_row < 0
            or top_left_row >= self._rows
            or top_left_column < 0
            or top_left_column >= self._columns
            or bottom_right_row < 0
            or bottom_right_row >= self._rows
            or bottom_right_column < 0
            or bottom_right_column >= self._columns
            or top_left_row > bottom_right_row
            or top_left_column > bottom_right_column
        ):
            raise ValueError(
                f"invalid region ({top_left_row}, {top_left_column})-"
                f"({bottom_right_row}, {bottom_right_column}) for a "
                f"{self._rows}x{self._columns} matrix"
            )

    def _block(self, top_left_row, top_left_column,
               bottom_right_row, bottom_right_column) -> np.ndarray:
        return self._view()[
            top_left_row : bottom_right_row + 1,
            top_left_column : bottom_right_column + 1,
        ]

    def get_submatrix(
        self,
        top_left_row: int,
        top_left_column: int,
        bottom_right_row: int,
        bottom_right_column: int,
        result: Optional["Matrix"] = None,
    ) -> "Matrix":
        """
        Copy the inclusive region [top_left_row..bottom_right_row] x
        [top_left_column..bottom_right_column].

        Returns
        -------
        Matrix
            ``result`` (resized if needed) or a new instance.
        """
        self._check_corners(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        rows = bottom_right_row - top_left_row + 1
        columns = bottom_right_column - top_left_column + 1
        if result is None:
            result = Matrix(rows, columns)
        elif result.shape != (rows, columns):
            result.resize(rows, columns)
        result._view()[:, :] = self._block(top_left_row, top_left_column,
                                           bottom_right_row, bottom_right_column)
        return result

    def get_submatrix_as_array(
        self,
        top_left_row: int,
        top_left_column: int,
        bottom_right_row: int,
        bottom_right_column: int,
        column_order: bool = DEFAULT_USE_COLUMN_ORDER,
        result: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        self._check_corners(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        block = self._block(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        values = block.flatten(order="F" if column_order else "C")
        if result is None:
            return values
        if len(result) != values.size:
            raise WrongSizeError("result length does not match region size")
        result[:] = values
        return result

    def set_submatrix(
        self,
        top_left_row: int,
        top_left_column: int,
        bottom_right_row: int,
        bottom_right_column: int,
        submatrix: "Matrix",
        submatrix_top_left_row: int = 0,
        submatrix_top_left_column: int = 0,
        submatrix_bottom_right_row: Optional[int] = None,
        submatrix_bottom_right_column: Optional[int] = None,
    ) -> None:
        """
        Copy a region of ``submatrix`` (its whole extent by default) into
        the given region of this instance.  Both regions must match in size.
        """
        if submatrix_bottom_right_row is None:
            submatrix_bottom_right_row = submatrix.rows - 1
        if submatrix_bottom_right_column is None:
            submatrix_bottom_right_column = submatrix.columns - 1

        self._check_corners(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        submatrix._check_corners(submatrix_top_left_row, submatrix_top_left_column,
                                 submatrix_bottom_right_row,
                                 submatrix_bottom_right_column)

        source = submatrix._block(submatrix_top_left_row, submatrix_top_left_column,
                                  submatrix_bottom_right_row,
                                  submatrix_bottom_right_column)
        target = self._block(top_left_row, top_left_column,
                             bottom_right_row, bottom_right_column)
        if source.shape != target.shape:
            raise WrongSizeError(
                f"region sizes differ: {target.shape} vs {source.shape}"
            )
        target[:, :] = source

    def fill_submatrix(
        self,
        top_left_row: int,
        top_left_column: int,
        bottom_right_row: int,
        bottom_right_column: int,
        value: float,
    ) -> None:
        self._check_corners(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        self._block(top_left_row, top_left_column,
                    bottom_right_row, bottom_right_column)[:, :] = value

    def set_submatrix_from_array(
        self,
        top_left_row: int,
        top_left_column: int,
        bottom_right_row: int,
        bottom_right_column: int,
        values,
        values_start: int = 0,
        values_end: Optional[int] = None,
        column_order: bool = DEFAULT_USE_COLUMN_ORDER,
    ) -> None:
        """
        Fill a region from ``values[values_start..values_end]`` (inclusive),
        read in column order unless ``column_order`` is False.
        """
        values = np.asarray(values, dtype=float).ravel()
        if values_end is None:
            values_end = len(values) - 1

        self._check_corners(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        if (
            values_start < 0
            or values_start >= len(values)
            or values_end < 0
            or values_end >= len(values)
            or values_start > values_end
        ):
            raise ValueError(
                f"invalid values range [{values_start}, {values_end}]"
            )

        rows = bottom_right_row - top_left_row + 1
        columns = bottom_right_column - top_left_column + 1
        chunk = values[values_start : values_end + 1]
        if chunk.size != rows * columns:
            raise WrongSizeError(
                f"{chunk.size} values cannot fill a {rows}x{columns} region"
            )
        block = self._block(top_left_row, top_left_column,
                            bottom_right_row, bottom_right_column)
        if column_order:
            block[:, :] = chunk.reshape((columns, rows)).T
        else:
            block[:, :] = chunk.reshape((rows, columns))

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    def set_identity(self) -> None:
        self.initialize(0.0)
        idx = np.arange(min(self._rows, self._columns))
        self._buffer[self._column_index[idx] + idx] = 1.0

    @classmethod
    def identity(cls, rows: int, columns: int) -> "Matrix":
        out = cls(rows, columns)
        out.set_identity()
        return out

    def set_diagonal(self, values) -> None:
        """Zero this matrix and write ``values`` on its leading diagonal."""
        values = np.asarray(values, dtype=float).ravel()
        if len(values) > min(self._rows, self._columns):
            raise WrongSizeError(
                f"{len(values)} diagonal values do not fit a "
                f"{self._rows}x{self._columns} matrix"
            )
        self.initialize(0.0)
        idx = np.arange(len(values))
        self._buffer[self._column_index[idx] + idx] = values

    @classmethod
    def diagonal(cls, values) -> "Matrix":
        values = np.asarray(values, dtype=float).ravel()
        out = cls(len(values), len(values))
        out.set_diagonal(values)
        return out

    def fill_with_uniform_random_values(
        self, min_value: float, max_value: float, rng=None
    ) -> None:
        """
        ``rng`` may be a numpy Generator, a seed, or None for a freshly
        seeded generator.
        """
        rng = np.random.default_rng(rng)
        self._buffer[:] = rng.uniform(min_value, max_value, size=self._buffer.size)

    @classmethod
    def create_with_uniform_random_values(
        cls, rows: int, columns: int, min_value: float, max_value: float, rng=None
    ) -> "Matrix":
        out = cls(rows, columns)
        out.fill_with_uniform_random_values(min_value, max_value, rng)
        return out

    def fill_with_gaussian_random_values(
        self, mean: float, standard_deviation: float, rng=None
    ) -> None:
        rng = np.random.default_rng(rng)
        self._buffer[:] = rng.normal(mean, standard_deviation, size=self._buffer.size)

    @classmethod
    def create_with_gaussian_random_values(
        cls, rows: int, columns: int, mean: float, standard_deviation: float, rng=None
    ) -> "Matrix":
        out = cls(rows, columns)
        out.fill_with_gaussian_random_values(mean, standard_deviation, rng)
        return out


