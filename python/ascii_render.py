"""
ASCII rendering of a grid and its analysis, for debugging and demos.

One character per cell: the first character of filled cells, "_" for empty
ones. Colour shows the strongest annotation on the cell.
"""

from __future__ import annotations

import logging
from typing import Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from grid_annotations import (
    BORDER,
    CANVAS,
    CANVAS_EMPTY,
    CLUSTER_EMPTY,
    FRAME,
    LINKED,
    LOCKED,
    WRAPPER,
)
from grid_types import CellPosition, Grid, Rect
from gridstruct import GridAnalysis

logger = logging.getLogger(__name__)

__all__ = ["render", "render_legend", "view_window"]

# Highest priority first
STYLES: list[tuple[str, Callable[[str], str]]] = [
    (WRAPPER, chalk.magenta),
    (LOCKED, chalk.red),
    (LINKED, chalk.yellow),
    (CANVAS, chalk.green),
    (CLUSTER_EMPTY, chalk.greenBright),
    (CANVAS_EMPTY, chalk.cyan),
    (BORDER, chalk.blue),
    (FRAME, chalk.blueBright),
]


def view_window(grid: Grid, analysis: GridAnalysis | None = None, pad: int = 1) -> Rect:
    """Smallest window from (1,1) covering every filled or annotated cell, plus padding."""
    positions = set(grid.filled_positions())
    if analysis is not None:
        positions |= set(analysis.annotations.names_by_cell)
    if not positions:
        return Rect(1, 1, 1, 1)
    bottom = min(grid.rows, max(p.row for p in positions) + pad)
    right = min(grid.cols, max(p.col for p in positions) + pad)
    return Rect(1, 1, max(1, bottom), max(1, right))


def _plain(s: str) -> str:
    return s


def _style_for(analysis: GridAnalysis | None, pos: CellPosition) -> Callable[[str], str]:
    if analysis is None:
        return _plain
    names = analysis.annotations.names(pos.row, pos.col)
    for name, colorize in STYLES:
        if name in names:
            return colorize
    return _plain


def render(
    grid: Grid,
    analysis: GridAnalysis | None = None,
    highlight_pos: CellPosition | None = None,
    window: Rect | None = None,
    cell_width: int = 1,
) -> str:
    """
    Render the grid as coloured ASCII.

    Args:
        grid: The grid to draw
        analysis: Optional analysis used to colour cells
        highlight_pos: Optional cell drawn in white
        window: Region to draw (default: view_window)
        cell_width: Characters per cell

    Returns:
        Rendered string with ANSI colour codes
    """
    if window is None:
        window = view_window(grid, analysis)

    logger.debug(
        "render: window rows %d-%d, cols %d-%d",
        window.top,
        window.bottom,
        window.left,
        window.right,
    )

    width = (window.right - window.left + 1) * cell_width
    lines = ["┌" + "─" * width + "┐"]

    for r in range(window.top, window.bottom + 1):
        parts = ["│"]
        for c in range(window.left, window.right + 1):
            pos = CellPosition(r, c)
            text = grid.get(r, c)
            char = text[0] if text else "_"
            content = char.center(cell_width) if cell_width > 1 else char

            if highlight_pos is not None and highlight_pos == pos:
                parts.append(chalk.white(content))
            else:
                parts.append(_style_for(analysis, pos)(content))
        parts.append("│")
        lines.append("".join(parts))

    lines.append("└" + "─" * width + "┘")
    return "\n".join(lines)


def render_legend() -> str:
    return "  ".join(colorize(name) for name, colorize in STYLES)
