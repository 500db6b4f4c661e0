"""
Spatial clustering of filled cells into blocks.

Filled cells are grown into Containers by repeatedly expanding a bounding
rectangle by a margin and absorbing whatever falls inside, then merging with
any earlier Container the expanded rectangle touches. Each Container is then
finalized into a Block with its canvas, border and frame point sets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from grid_types import CellPosition, Grid, ParseRules, Rect
from grid_nesting import WRAPPER_CELL, is_wrapper

logger = logging.getLogger(__name__)

__all__ = [
    "Block",
    "Container",
    "SubCluster",
    "compute_blocks",
    "finalize_block",
    "find_containers",
    "structural_points",
]


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class Container:
    """Mutable accumulator used during a single clustering pass."""

    rect: Rect
    points: set[CellPosition] = field(default_factory=set)

    @staticmethod
    def at(seed: CellPosition) -> Container:
        return Container(Rect(seed.row, seed.col, seed.row, seed.col), {seed})

    def absorb(self, points: Iterable[CellPosition]) -> None:
        for p in points:
            self.points.add(p)
            self.rect = self.rect.union(Rect(p.row, p.col, p.row, p.col))

    def merge(self, other: Container) -> None:
        self.rect = self.rect.union(other.rect)
        self.points |= other.points


@dataclass(frozen=True)
class SubCluster:
    """A tighter grouping of a block's filled cells."""

    rect: Rect
    points: frozenset[CellPosition]


@dataclass(frozen=True)
class Block:
    """A rectangular group of filled cells with its border and frame rings."""

    rect: Rect
    canvas_points: frozenset[CellPosition]
    border_points: frozenset[CellPosition]
    frame_points: frozenset[CellPosition]
    subclusters: tuple[SubCluster, ...] = ()

    @property
    def top(self) -> int:
        return self.rect.top

    @property
    def left(self) -> int:
        return self.rect.left

    @property
    def bottom(self) -> int:
        return self.rect.bottom

    @property
    def right(self) -> int:
        return self.rect.right


# =============================================================================
# Clustering
# =============================================================================


def find_containers(
    points: Iterable[CellPosition],
    margin: int,
    rows: int | None = None,
    cols: int | None = None,
) -> list[Container]:
    """
    Group points into Containers by fixpoint expansion and merging.

    Args:
        points: Filled cell positions (any order, duplicates ignored)
        margin: How far a container reaches when looking for neighbours
        rows: Nominal row bound used to clip expansion
        cols: Nominal column bound used to clip expansion

    Returns:
        Containers sorted by (top, left, bottom, right)
    """
    pending = sorted(set(points))
    consumed: set[CellPosition] = set()
    containers: list[Container] = []

    for seed in pending:
        if seed in consumed:
            continue

        container = Container.at(seed)
        consumed.add(seed)

        # Absorb unconsumed points until an expansion finds nothing new
        while True:
            reach = container.rect.expand(margin, rows, cols)
            found = [p for p in pending if p not in consumed and reach.contains(p)]
            if not found:
                break
            container.absorb(found)
            consumed.update(found)

        # Merge with finished containers; a merge can expose new overlaps
        while True:
            reach = container.rect.expand(margin, rows, cols)
            overlapping = [c for c in containers if reach.overlaps(c.rect)]
            if not overlapping:
                break
            containers = [c for c in containers if not reach.overlaps(c.rect)]
            for other in overlapping:
                container.merge(other)

        containers.append(container)

    containers.sort(key=lambda c: c.rect.sort_key())
    return containers


def finalize_block(
    container: Container,
    rules: ParseRules,
    rows: int | None = None,
    cols: int | None = None,
) -> Block:
    """Turn a Container into a Block, computing rings and sub-clusters."""
    ring_rows = rows if rules.clip_rings_to_bounds else None
    ring_cols = cols if rules.clip_rings_to_bounds else None

    subclusters = tuple(
        SubCluster(sub.rect, frozenset(sub.points))
        for sub in find_containers(container.points, rules.subcluster_margin, rows, cols)
    )

    return Block(
        rect=container.rect,
        canvas_points=frozenset(container.points),
        border_points=container.rect.ring(1, ring_rows, ring_cols),
        frame_points=container.rect.ring(2, ring_rows, ring_cols),
        subclusters=subclusters,
    )


def structural_points(grid: Grid, rules: ParseRules) -> set[CellPosition]:
    """Filled positions that take part in clustering (the wrapper cell does not)."""
    points = grid.filled_positions()
    if is_wrapper(grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col), rules):
        points.discard(WRAPPER_CELL)
    return points


def compute_blocks(grid: Grid, rules: ParseRules | None = None) -> list[Block]:
    """
    Cluster the grid's filled cells into Blocks.

    Never fails: an empty grid yields an empty list.
    """
    if rules is None:
        rules = ParseRules()

    points = structural_points(grid, rules)
    containers = find_containers(points, rules.block_margin, grid.rows, grid.cols)
    blocks = [finalize_block(c, rules, grid.rows, grid.cols) for c in containers]

    logger.info(
        "compute_blocks: %d filled cells -> %d blocks (%d sub-clusters)",
        len(points),
        len(blocks),
        sum(len(b.subclusters) for b in blocks),
    )
    return blocks
