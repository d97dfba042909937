"""
Two-dimensional numeric grid

Dense, resizable rows x cols container backed by a numpy array. The
binomial lattice keeps its asset-price and option-value trees in two of
these and reuses them across pricing calls.
"""

import logging
from typing import Iterator, List, Sequence, Tuple, Union

import numpy as np

from ..exceptions import DimensionMismatchError

logger = logging.getLogger(__name__)

Index = Union[int, Tuple[int, int]]


class Grid:
    """
    Resizable 2D grid of floats

    Row access returns a mutable numpy view of that row:

        g = Grid(3, 3, 0.0)
        g[1][2] = 4.0      # same as g[1, 2] = 4.0
    """

    def __init__(self, rows: int = 0, cols: int = 0, fill: float = 0.0):
        if rows < 0 or cols < 0:
            raise ValueError(f"Grid dimensions must be non-negative, got ({rows}, {cols})")
        if rows == 0:
            cols = 0
        self._data = np.full((rows, cols), fill, dtype=float)

    @classmethod
    def from_rows(cls, values: Sequence[Sequence[float]]) -> "Grid":
        """Build a grid from a rectangular table of rows"""
        rows = len(values)
        cols = len(values[0]) if rows else 0
        for i, row in enumerate(values):
            if len(row) != cols:
                raise DimensionMismatchError((cols,), (len(row),), f"from_rows row {i}")
        grid = cls()
        grid._data = np.array(values, dtype=float).reshape(rows, cols)
        return grid

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    @property
    def data(self) -> np.ndarray:
        """Underlying array (a view, not a copy)"""
        return self._data

    def resize(self, rows: int, cols: int, fill: float = 0.0) -> None:
        """
        Resize in place, keeping every cell whose indices remain valid

        Columns of the existing rows are truncated or padded first, then rows
        are dropped or appended, so appended rows get the new column count.
        New cells are set to fill.
        """
        if rows < 0 or cols < 0:
            raise ValueError(f"Grid dimensions must be non-negative, got ({rows}, {cols})")
        if rows == 0:
            cols = 0
        if (rows, cols) == self.shape:
            return

        logger.debug(f"Resizing grid {self.shape} -> {(rows, cols)}")

        data = self._data
        if cols != self.cols:
            if cols < self.cols:
                data = data[:, :cols]
            else:
                pad = np.full((data.shape[0], cols - data.shape[1]), fill, dtype=float)
                data = np.hstack([data, pad])

        if rows < data.shape[0]:
            data = data[:rows, :]
        elif rows > data.shape[0]:
            extra = np.full((rows - data.shape[0], cols), fill, dtype=float)
            data = np.vstack([data, extra])

        self._data = np.ascontiguousarray(data)

    def clear(self) -> None:
        """Reset to an empty 0 x 0 grid"""
        self._data = np.zeros((0, 0), dtype=float)

    def fill(self, value: float) -> None:
        """Assign value to every cell"""
        self._data.fill(value)

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def _check_row(self, i: int) -> None:
        if not 0 <= i < self.rows:
            raise IndexError(f"Row index {i} out of range for grid with {self.rows} rows")

    def _check_col(self, j: int) -> None:
        if not 0 <= j < self.cols:
            raise IndexError(f"Column index {j} out of range for grid with {self.cols} columns")

    def __getitem__(self, index: Index):
        if isinstance(index, tuple):
            i, j = index
            self._check_row(i)
            self._check_col(j)
            return float(self._data[i, j])
        self._check_row(index)
        return self._data[index]

    def __setitem__(self, index: Index, value) -> None:
        if isinstance(index, tuple):
            i, j = index
            self._check_row(i)
            self._check_col(j)
            self._data[i, j] = value
            return
        self._check_row(index)
        if len(value) != self.cols:
            raise DimensionMismatchError((self.cols,), (len(value),), "row assignment")
        self._data[index, :] = value

    def __len__(self) -> int:
        return self.rows

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._data)

    def column(self, j: int) -> np.ndarray:
        """Copy of column j"""
        self._check_col(j)
        return self._data[:, j].copy()

    def set_column(self, j: int, values: Sequence[float]) -> None:
        """Overwrite column j element-wise"""
        self._check_col(j)
        if len(values) != self.rows:
            raise DimensionMismatchError((self.rows,), (len(values),), "set_column")
        self._data[:, j] = values

    # ------------------------------------------------------------------
    # Derived grids
    # ------------------------------------------------------------------
    def transpose(self) -> "Grid":
        result = Grid()
        result._data = np.ascontiguousarray(self._data.T)
        return result

    def copy(self) -> "Grid":
        result = Grid()
        result._data = self._data.copy()
        return result

    def to_list(self) -> List[List[float]]:
        return self._data.tolist()

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        if self.shape != other.shape:
            raise DimensionMismatchError(self.shape, other.shape, "grid comparison")
        return bool(np.array_equal(self._data, other._data))

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __repr__(self) -> str:
        return f"Grid(rows={self.rows}, cols={self.cols})"
