"""
Demonstration scripts for gridstruct.
"""

import logging

from ascii_render import render, render_legend
from grid_parser import parse_grid_concise
from gridstruct import (
    CellPosition,
    Grid,
    NestFailure,
    analyze,
    enter_nested_grid,
    leave_nested_grid,
    nesting_depth,
)


def describe(grid: Grid) -> None:
    """Print blocks, joins and clusters for a grid."""
    analysis = analyze(grid)

    print(render(grid, analysis))
    print(render_legend())
    print()

    for i, block in enumerate(analysis.blocks):
        r = block.rect
        print(
            f"Block {i}: rows {r.top}-{r.bottom}, cols {r.left}-{r.right}, "
            f"{len(block.canvas_points)} cells, {len(block.subclusters)} sub-clusters"
        )
    for join in analysis.joins:
        a, b = join.blocks
        print(
            f"Join {analysis.blocks.index(a)}-{analysis.blocks.index(b)}: {join.kind.value} "
            f"({len(join.linked_points)} linked, {len(join.locked_points)} locked)"
        )
    for i, cluster in enumerate(analysis.clusters):
        r = cluster.rect
        print(f"Cluster {i}: {len(cluster.blocks)} blocks, rows {r.top}-{r.bottom}, cols {r.left}-{r.right}")
    print()


def demo() -> None:
    """Demonstrate block detection on a few layouts."""
    print("Example 1: one block, two sub-clusters")
    print("-" * 40)
    describe(parse_grid_concise("ab_c|____|____", rows=12, cols=12))

    print("Example 2: linked blocks (frames overlap)")
    print("-" * 40)
    describe(parse_grid_concise("____|__a___b|____", rows=12, cols=12))

    print("Example 3: locked blocks (border reaches the other frame)")
    print("-" * 40)
    describe(parse_grid_concise("______|__a___|______|______|_____b", rows=12, cols=12))


def nesting_demo() -> None:
    """Walk into two levels of nested grids and back out."""
    grid = Grid(20, 20)
    grid.set(1, 1, "title")
    grid.set(2, 2, ',inner,",x"')

    print("Base grid")
    print(render(grid))

    for target in (CellPosition(2, 2), CellPosition(1, 3)):
        result = enter_nested_grid(grid, target)
        if isinstance(result, NestFailure):
            print(f"Enter {target} failed: {result.reason.value}")
            continue
        print(f"Entered {target}, depth {nesting_depth(grid)}")
        print(render(grid, highlight_pos=result))

    grid.set(1, 3, "new")

    while nesting_depth(grid) > 0:
        result = leave_nested_grid(grid)
        if isinstance(result, NestFailure):
            print(f"Leave failed: {result.reason.value} ({result.details})")
            break
        print(f"Left to depth {nesting_depth(grid)}, focus {result}")
        print(render(grid, highlight_pos=result))

    print(f"(2,2) now holds: {grid.get(2, 2)!r}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    demo()
    nesting_demo()
