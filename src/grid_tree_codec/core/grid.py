"""
Grid access interfaces and an in-memory grid.

The codec never owns file storage: spreadsheet adapters implement
GridReader/GridWriter, and InMemoryGrid backs the command line tool and tests.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

MergedRegion = Tuple[int, int, int]  # (row, col_start, col_span)


class GridReader(ABC):
    """Read-only view of a grid (1-based rows and columns)."""

    @abstractmethod
    def cell_value(self, row: int, col: int) -> Any:
        """Return the scalar stored at (row, col), or None when empty."""
        pass

    @property
    @abstractmethod
    def row_count(self) -> int:
        pass

    @property
    @abstractmethod
    def max_column(self) -> int:
        pass

    @abstractmethod
    def merged_regions(self) -> Iterable[MergedRegion]:
        """Merged regions ordered by row then column."""
        pass


class GridWriter(ABC):
    """Write-once grid surface."""

    @abstractmethod
    def set_cell(self, row: int, col: int, value: Any) -> None:
        pass

    @abstractmethod
    def merge_region(self, row: int, col_start: int, col_span: int) -> None:
        pass


class InMemoryGrid(GridReader, GridWriter):
    """Sparse dictionary-backed grid implementing both interfaces."""

    def __init__(self):
        self._cells: Dict[Tuple[int, int], Any] = {}
        self._merged: Dict[int, List[Tuple[int, int]]] = {}
        self._row_count = 0
        self._max_column = 0

    # Reader
    def cell_value(self, row: int, col: int) -> Any:
        return self._cells.get((row, col))

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def max_column(self) -> int:
        return self._max_column

    def merged_regions(self) -> List[MergedRegion]:
        regions = []
        for row in sorted(self._merged):
            for col_start, col_span in sorted(self._merged[row]):
                regions.append((row, col_start, col_span))
        return regions

    # Writer
    def set_cell(self, row: int, col: int, value: Any) -> None:
        self._check_position(row, col)
        if (row, col) in self._cells:
            raise ValueError(f"Cell ({row}, {col}) was already written")
        self._cells[(row, col)] = value
        self._touch(row, col)

    def merge_region(self, row: int, col_start: int, col_span: int) -> None:
        self._check_position(row, col_start)
        if col_span < 1:
            raise ValueError(f"Invalid merge span {col_span} at ({row}, {col_start})")

        col_end = col_start + col_span - 1
        for other_start, other_span in self._merged.get(row, []):
            other_end = other_start + other_span - 1
            if col_start <= other_end and other_start <= col_end:
                raise ValueError(
                    f"Merged region ({row}, {col_start}..{col_end}) overlaps "
                    f"({row}, {other_start}..{other_end})"
                )

        self._merged.setdefault(row, []).append((col_start, col_span))
        self._touch(row, col_end)

    def merged_span(self, row: int, col: int) -> int:
        """Span of the merged region starting at (row, col), 1 if none."""
        for col_start, col_span in self._merged.get(row, []):
            if col_start == col:
                return col_span
        return 1

    # Conversions
    def to_rows(self) -> List[List[Any]]:
        """Dense row-major copy, None for empty cells."""
        return [
            [self._cells.get((row, col)) for col in range(1, self._max_column + 1)]
            for row in range(1, self._row_count + 1)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cells": [
                [row, col, value] for (row, col), value in sorted(self._cells.items())
            ],
            "merged_regions": [list(region) for region in self.merged_regions()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryGrid":
        grid = cls()
        for row, col, value in data.get("cells", []):
            grid.set_cell(int(row), int(col), value)
        for row, col_start, col_span in data.get("merged_regions", []):
            grid.merge_region(int(row), int(col_start), int(col_span))
        return grid

    @classmethod
    def from_rows(
        cls,
        rows: List[List[Any]],
        merged_regions: Optional[Iterable[MergedRegion]] = None,
    ) -> "InMemoryGrid":
        """Build a grid from dense rows; None and '' cells are left empty."""
        grid = cls()
        for row_index, row in enumerate(rows, start=1):
            for col_index, value in enumerate(row, start=1):
                if value is None or value == "":
                    continue
                grid.set_cell(row_index, col_index, value)
        for row, col_start, col_span in merged_regions or []:
            grid.merge_region(row, col_start, col_span)
        return grid

    def _touch(self, row: int, col: int) -> None:
        self._row_count = max(self._row_count, row)
        self._max_column = max(self._max_column, col)

    @staticmethod
    def _check_position(row: int, col: int) -> None:
        if row < 1 or col < 1:
            raise ValueError(f"Grid positions are 1-based, got ({row}, {col})")
