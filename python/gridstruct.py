"""
Structure discovery for sparse text grids, with grids nested inside cells.

Two-phase use: analyze (blocks -> joins -> clusters -> annotations), then
hand the result to whatever presents it. GridSession keeps a grid and its
analysis in step across edits and enter/leave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from grid_annotations import CellAnnotations, annotate
from grid_blocks import Block, Container, SubCluster, compute_blocks, find_containers
from grid_codec import decode, encode
from grid_types import CellPosition, Dataset, Grid, ParseRules, Rect
from grid_nesting import (
    NestFailure,
    NestFailureReason,
    NestResult,
    ancestor_stack,
    build_wrapper,
    enter_nested_grid,
    leave_nested_grid,
    nesting_depth,
)
from grid_relationships import BlockCluster, BlockJoin, JoinKind, compute_relationships

logger = logging.getLogger(__name__)

__all__ = [
    "Block",
    "BlockCluster",
    "BlockJoin",
    "CellAnnotations",
    "CellPosition",
    "Container",
    "Dataset",
    "Grid",
    "GridAnalysis",
    "GridSession",
    "JoinKind",
    "NestFailure",
    "NestFailureReason",
    "NestResult",
    "ParseRules",
    "Rect",
    "SubCluster",
    "analyze",
    "ancestor_stack",
    "build_wrapper",
    "compute_blocks",
    "compute_relationships",
    "decode",
    "encode",
    "enter_nested_grid",
    "find_containers",
    "leave_nested_grid",
    "nesting_depth",
]


@dataclass(frozen=True)
class GridAnalysis:
    """Everything derived from one clustering pass over a grid."""

    blocks: tuple[Block, ...]
    joins: tuple[BlockJoin, ...]
    clusters: tuple[BlockCluster, ...]
    annotations: CellAnnotations
    depth: int

    def block_at(self, pos: CellPosition) -> Block | None:
        for block in self.blocks:
            if pos in block.canvas_points:
                return block
        return None

    def cluster_of(self, block: Block) -> BlockCluster | None:
        for cluster in self.clusters:
            if any(member is block for member in cluster.blocks):
                return cluster
        return None


def analyze(grid: Grid, rules: ParseRules | None = None) -> GridAnalysis:
    """
    Run clustering, relationships and annotation over the grid.

    Idempotent: the same grid contents always give the same analysis.
    """
    if rules is None:
        rules = ParseRules()
    rules.validate()

    blocks = compute_blocks(grid, rules)
    joins, clusters = compute_relationships(blocks)
    annotations = annotate(grid, blocks, clusters, rules)

    return GridAnalysis(
        blocks=tuple(blocks),
        joins=tuple(joins),
        clusters=tuple(clusters),
        annotations=annotations,
        depth=nesting_depth(grid, rules),
    )


class GridSession:
    """
    A grid, its current analysis and a focus cell.

    Re-analysis happens only after an edit or an enter/leave has fully
    completed, never against a half-swapped grid.
    """

    def __init__(self, grid: Grid, rules: ParseRules | None = None) -> None:
        self.grid = grid
        self.rules = rules or ParseRules()
        self.focus = CellPosition(1, 1)
        self.analysis = analyze(self.grid, self.rules)

    @property
    def depth(self) -> int:
        return self.analysis.depth

    def refresh(self) -> GridAnalysis:
        self.analysis = analyze(self.grid, self.rules)
        return self.analysis

    def edit(self, row: int, col: int, text: str) -> GridAnalysis:
        self.grid.set(row, col, text)
        return self.refresh()

    def move_focus(self, row: int, col: int) -> None:
        self.focus = CellPosition(
            min(max(1, row), self.grid.rows),
            min(max(1, col), self.grid.cols),
        )

    def enter(self, target: CellPosition | None = None) -> NestResult:
        """Enter the nested grid at target (default: the focus cell)."""
        result = enter_nested_grid(self.grid, target or self.focus, self.rules)
        return self._settle(result)

    def leave(self) -> NestResult:
        return self._settle(leave_nested_grid(self.grid, self.rules))

    def _settle(self, result: NestResult) -> NestResult:
        if isinstance(result, NestFailure):
            logger.debug("GridSession: %s (%s)", result.reason.value, result.details)
            return result
        self.focus = result
        self.refresh()
        return result
