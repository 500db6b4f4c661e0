"""
Per-cell annotations derived from blocks and clusters.

Each annotated cell carries a set of names (canvas, border, frame, ...) that a
presentation layer can map onto styles.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from grid_blocks import Block
from grid_types import CellPosition, Grid, ParseRules
from grid_nesting import WRAPPER_CELL, is_wrapper
from grid_relationships import BlockCluster

logger = logging.getLogger(__name__)

__all__ = ["CellAnnotations", "annotate"]

CANVAS = "canvas"
BORDER = "border"
FRAME = "frame"
CLUSTER_EMPTY = "cluster-empty"
CANVAS_EMPTY = "canvas-empty"
LINKED = "linked"
LOCKED = "locked"
CLUSTER_CANVAS = "cluster-canvas"
CLUSTER_PERIMETER = "cluster-perimeter"
CLUSTER_BUFFER = "cluster-buffer"
WRAPPER = "wrapper"


@dataclass
class CellAnnotations:
    """Annotation names keyed by cell position."""

    names_by_cell: dict[CellPosition, set[str]] = field(default_factory=lambda: defaultdict(set))

    def add(self, points: Iterable[CellPosition], name: str) -> None:
        for p in points:
            if p.row >= 1 and p.col >= 1:
                self.names_by_cell[p].add(name)

    def has(self, row: int, col: int, name: str) -> bool:
        return name in self.names_by_cell.get(CellPosition(row, col), ())

    def names(self, row: int, col: int) -> frozenset[str]:
        return frozenset(self.names_by_cell.get(CellPosition(row, col), ()))

    def cells_with(self, name: str) -> set[CellPosition]:
        return {p for p, names in self.names_by_cell.items() if name in names}

    def is_canvas(self, row: int, col: int) -> bool:
        return self.has(row, col, CANVAS)

    def is_border(self, row: int, col: int) -> bool:
        return self.has(row, col, BORDER)

    def is_frame(self, row: int, col: int) -> bool:
        return self.has(row, col, FRAME)

    def is_cluster_empty(self, row: int, col: int) -> bool:
        return self.has(row, col, CLUSTER_EMPTY)

    def is_canvas_empty(self, row: int, col: int) -> bool:
        return self.has(row, col, CANVAS_EMPTY)

    def is_linked(self, row: int, col: int) -> bool:
        return self.has(row, col, LINKED)

    def is_locked(self, row: int, col: int) -> bool:
        return self.has(row, col, LOCKED)

    def is_wrapper(self, row: int, col: int) -> bool:
        return self.has(row, col, WRAPPER)


def annotate(
    grid: Grid,
    blocks: list[Block],
    clusters: list[BlockCluster],
    rules: ParseRules | None = None,
) -> CellAnnotations:
    """
    Build the annotation map for a grid.

    cluster-empty: inside a sub-cluster's bounds, not one of its points and
    empty in the whole grid. canvas-empty: inside a block's bounds, not
    canvas and not already cluster-empty.
    """
    if rules is None:
        rules = ParseRules()

    annotations = CellAnnotations()

    if is_wrapper(grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col), rules):
        annotations.add([WRAPPER_CELL], WRAPPER)

    filled = grid.filled_positions()

    for block in blocks:
        cluster_empty: set[CellPosition] = set()
        for sub in block.subclusters:
            cluster_empty.update(
                p for p in sub.rect.cells() if p not in sub.points and p not in filled
            )
        canvas_empty = {
            p for p in block.rect.cells() if p not in block.canvas_points and p not in cluster_empty
        }
        annotations.add(cluster_empty, CLUSTER_EMPTY)
        annotations.add(canvas_empty, CANVAS_EMPTY)

    for cluster in clusters:
        annotations.add(cluster.linked_points, LINKED)
        annotations.add(cluster.locked_points, LOCKED)

        annotations.add(cluster.rect.cells(), CLUSTER_CANVAS)
        perimeter = cluster.expand_outline(rules.cluster_perimeter_margin, grid.rows, grid.cols)
        annotations.add(perimeter.ring(0), CLUSTER_PERIMETER)
        buffer = cluster.expand_outline(rules.cluster_buffer_margin, grid.rows, grid.cols)
        annotations.add(buffer.ring(0), CLUSTER_BUFFER)

    for block in blocks:
        annotations.add(block.canvas_points, CANVAS)
        annotations.add(block.border_points, BORDER)
        annotations.add(block.frame_points, FRAME)

    logger.debug("annotate: %d annotated cells", len(annotations.names_by_cell))
    return annotations
