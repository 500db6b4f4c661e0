"""
Overlap relationships between blocks.

Two blocks are joined when their frames overlap (linked) or when one block's
border reaches into the other's frame (locked). Blocks connected through
joins form a BlockCluster.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from grid_blocks import Block
from grid_types import CellPosition, Rect

logger = logging.getLogger(__name__)

__all__ = [
    "BlockCluster",
    "BlockJoin",
    "JoinKind",
    "compute_clusters",
    "compute_joins",
    "compute_relationships",
]


class JoinKind(Enum):
    """How tightly two blocks are related."""

    LINKED = "linked"  # Frames overlap only
    LOCKED = "locked"  # A border touches the other block's frame


@dataclass(frozen=True)
class BlockJoin:
    """The overlap between exactly two blocks."""

    blocks: tuple[Block, Block]
    linked_points: frozenset[CellPosition]
    locked_points: frozenset[CellPosition]

    @property
    def kind(self) -> JoinKind:
        return JoinKind.LOCKED if self.locked_points else JoinKind.LINKED

    def other(self, block: Block) -> Block:
        first, second = self.blocks
        return second if block is first else first


@dataclass(frozen=True)
class BlockCluster:
    """A maximal group of blocks connected by joins."""

    blocks: tuple[Block, ...]
    joins: tuple[BlockJoin, ...]
    rect: Rect  # Bounds of all member canvas points
    linked_points: frozenset[CellPosition]
    locked_points: frozenset[CellPosition]

    def expand_outline(self, margin: int, rows: int | None = None, cols: int | None = None) -> Rect:
        """Cluster bounds padded by margin and clamped to the grid, for navigation."""
        return self.rect.expand(margin, rows, cols)

    @property
    def canvas_points(self) -> frozenset[CellPosition]:
        return frozenset().union(*(b.canvas_points for b in self.blocks))


def join_blocks(first: Block, second: Block) -> BlockJoin | None:
    """Return the join between two blocks, or None if they do not touch."""
    linked = first.frame_points & second.frame_points
    locked = (first.border_points & second.frame_points) | (first.frame_points & second.border_points)
    if not linked and not locked:
        return None
    return BlockJoin((first, second), frozenset(linked), frozenset(locked))


def compute_joins(blocks: list[Block]) -> list[BlockJoin]:
    """Test every unordered pair of blocks for overlap."""
    joins: list[BlockJoin] = []
    for i in range(len(blocks)):
        for j in range(i + 1, len(blocks)):
            join = join_blocks(blocks[i], blocks[j])
            if join is not None:
                joins.append(join)
    return joins


def compute_clusters(blocks: list[Block], joins: list[BlockJoin]) -> list[BlockCluster]:
    """
    Group blocks into connected components over their joins.

    Uses an explicit adjacency map and an iterative traversal, so very long
    chains of joined blocks do not hit the recursion limit.
    """
    index = {id(b): i for i, b in enumerate(blocks)}
    adjacency: dict[int, list[BlockJoin]] = {i: [] for i in range(len(blocks))}
    for join in joins:
        first, second = join.blocks
        adjacency[index[id(first)]].append(join)
        adjacency[index[id(second)]].append(join)

    seen: set[int] = set()
    clusters: list[BlockCluster] = []

    for start in range(len(blocks)):
        if start in seen:
            continue

        members: set[int] = set()
        member_joins: dict[int, BlockJoin] = {}
        stack = [start]
        while stack:
            current = stack.pop()
            if current in members:
                continue
            members.add(current)
            for join in adjacency[current]:
                member_joins[id(join)] = join
                neighbour = index[id(join.other(blocks[current]))]
                if neighbour not in members:
                    stack.append(neighbour)
        seen |= members

        ordered = sorted(members)
        cluster_blocks = tuple(blocks[i] for i in ordered)
        cluster_joins = tuple(j for j in joins if id(j) in member_joins)
        clusters.append(
            BlockCluster(
                blocks=cluster_blocks,
                joins=cluster_joins,
                rect=Rect.around(p for b in cluster_blocks for p in b.canvas_points),
                linked_points=frozenset().union(*(j.linked_points for j in cluster_joins)),
                locked_points=frozenset().union(*(j.locked_points for j in cluster_joins)),
            )
        )

    return clusters


def compute_relationships(blocks: list[Block]) -> tuple[list[BlockJoin], list[BlockCluster]]:
    """Compute joins between blocks and the clusters they form."""
    joins = compute_joins(blocks)
    clusters = compute_clusters(blocks, joins)
    logger.info(
        "compute_relationships: %d blocks -> %d joins (%d locked), %d clusters",
        len(blocks),
        len(joins),
        sum(1 for j in joins if j.kind is JoinKind.LOCKED),
        len(clusters),
    )
    return joins, clusters
