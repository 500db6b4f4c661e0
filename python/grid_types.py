"""
Shared type definitions for the gridstruct system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

DEFAULT_ROWS = 1000
DEFAULT_COLS = 1000


@dataclass(frozen=True)
class ParseRules:
    """Rules governing clustering, annotation and nesting behavior."""

    block_margin: int = 2
    subcluster_margin: int = 1
    clip_rings_to_bounds: bool = False  # Lower bound (>= 1) is always clipped
    cluster_perimeter_margin: int = 2
    cluster_buffer_margin: int = 4
    wrapper_prefix: str = "^"
    nest_separator: str = ","
    enter_focus: tuple[int, int] = (1, 2)

    def validate(self) -> None:
        if self.block_margin < 0:
            raise ValueError("block_margin must be >= 0")
        if self.subcluster_margin < 0:
            raise ValueError("subcluster_margin must be >= 0")
        if self.cluster_perimeter_margin < 0 or self.cluster_buffer_margin < 0:
            raise ValueError("cluster outline margins must be >= 0")
        if len(self.wrapper_prefix) != 1:
            raise ValueError("wrapper_prefix must be a single character")
        if len(self.nest_separator) != 1:
            raise ValueError("nest_separator must be a single character")
        if self.wrapper_prefix == self.nest_separator:
            raise ValueError("wrapper_prefix and nest_separator must differ")
        if self.enter_focus[0] < 1 or self.enter_focus[1] < 1:
            raise ValueError("enter_focus must be a 1-based (row, col) pair")


# =============================================================================
# Coordinates
# =============================================================================


@dataclass(frozen=True, order=True)
class CellPosition:
    """A 1-based position within a grid."""

    row: int
    col: int


@dataclass(frozen=True)
class Rect:
    """An inclusive, axis-aligned rectangle of cells."""

    top: int
    left: int
    bottom: int
    right: int

    @staticmethod
    def around(points: Iterable[CellPosition]) -> Rect:
        """Bounding rectangle of a non-empty collection of points."""
        pts = list(points)
        if not pts:
            raise ValueError("Cannot compute a bounding rectangle of zero points")
        return Rect(
            min(p.row for p in pts),
            min(p.col for p in pts),
            max(p.row for p in pts),
            max(p.col for p in pts),
        )

    def union(self, other: Rect) -> Rect:
        return Rect(
            min(self.top, other.top),
            min(self.left, other.left),
            max(self.bottom, other.bottom),
            max(self.right, other.right),
        )

    def expand(self, margin: int, rows: int | None = None, cols: int | None = None) -> Rect:
        """
        Grow the rectangle by margin on all sides.

        Clipped to row/col >= 1, and to the nominal bounds when given. A side
        that already lies past its bound is not clipped, so records left
        outside a shrunken grid still reach their neighbours.
        """
        bottom = self.bottom + margin
        right = self.right + margin
        if rows is not None and self.bottom <= rows:
            bottom = min(rows, bottom)
        if cols is not None and self.right <= cols:
            right = min(cols, right)
        return Rect(max(1, self.top - margin), max(1, self.left - margin), bottom, right)

    def overlaps(self, other: Rect) -> bool:
        return not (
            self.top > other.bottom
            or other.top > self.bottom
            or self.left > other.right
            or other.left > self.right
        )

    def contains(self, pos: CellPosition) -> bool:
        return self.top <= pos.row <= self.bottom and self.left <= pos.col <= self.right

    def cells(self) -> Iterator[CellPosition]:
        """All cells inside the rectangle, row-major."""
        for r in range(self.top, self.bottom + 1):
            for c in range(self.left, self.right + 1):
                yield CellPosition(r, c)

    def ring(self, offset: int, rows: int | None = None, cols: int | None = None) -> frozenset[CellPosition]:
        """
        Perimeter cells of this rectangle grown by offset (not the interior).

        Cells with row or col < 1 are dropped; cells beyond rows/cols are
        dropped when those bounds are given.
        """
        top = self.top - offset
        left = self.left - offset
        bottom = self.bottom + offset
        right = self.right + offset

        points: set[CellPosition] = set()
        for c in range(left, right + 1):
            points.add(CellPosition(top, c))
            points.add(CellPosition(bottom, c))
        for r in range(top, bottom + 1):
            points.add(CellPosition(r, left))
            points.add(CellPosition(r, right))

        return frozenset(
            p
            for p in points
            if p.row >= 1
            and p.col >= 1
            and (rows is None or p.row <= rows)
            and (cols is None or p.col <= cols)
        )

    def sort_key(self) -> tuple[int, int, int, int]:
        return (self.top, self.left, self.bottom, self.right)


# =============================================================================
# Sparse Grid Store
# =============================================================================


Dataset = list[list[str]]


@dataclass
class Grid:
    """
    A sparse 2D grid of raw cell text keyed by 1-based (row, col).

    rows/cols are nominal bounds, not storage size. Writing beyond them grows
    them. Writing empty text removes the record.
    """

    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    cells: dict[CellPosition, str] = field(default_factory=dict)

    def get(self, row: int, col: int) -> str:
        return self.cells.get(CellPosition(row, col), "")

    def set(self, row: int, col: int, text: str) -> None:
        if row < 1 or col < 1:
            raise ValueError(f"Cell coordinates are 1-based, got ({row}, {col})")
        pos = CellPosition(row, col)
        if text == "":
            self.cells.pop(pos, None)
            return
        self.cells[pos] = text
        self.rows = max(self.rows, row)
        self.cols = max(self.cols, col)

    def resize(self, rows: int, cols: int) -> None:
        """Change the nominal bounds. Records are kept even if outside them."""
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid bounds must be >= 1, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols

    def filled(self) -> list[tuple[int, int, str]]:
        """Non-empty cells as (row, col, text), row-major."""
        return [(pos.row, pos.col, self.cells[pos]) for pos in sorted(self.cells)]

    def filled_positions(self) -> set[CellPosition]:
        return set(self.cells)

    def clear(self) -> None:
        self.cells.clear()

    def load(self, dataset: Dataset) -> None:
        """Replace all contents; dataset[r][c] lands at (r + 1, c + 1)."""
        self.clear()
        for r, row in enumerate(dataset):
            for c, text in enumerate(row):
                if text:
                    self.set(r + 1, c + 1, text)

    def to_dataset(self, skip: CellPosition | None = None) -> Dataset:
        """Dense rows up to the last filled row/col, optionally leaving one cell out."""
        positions = [p for p in self.cells if p != skip]
        if not positions:
            return []
        max_row = max(p.row for p in positions)
        max_col = max(p.col for p in positions)
        dataset = [[""] * max_col for _ in range(max_row)]
        for p in positions:
            dataset[p.row - 1][p.col - 1] = self.cells[p]
        return dataset

    def copy(self) -> Grid:
        return Grid(self.rows, self.cols, dict(self.cells))
