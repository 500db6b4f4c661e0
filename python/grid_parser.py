"""
Grid parsing utilities for gridstruct.

Provides two compact formats, mostly for tests and demos:
1. Standard format with space-separated cells and explicit empty markers
2. Concise format with single-character cells
"""

from __future__ import annotations

from grid_types import DEFAULT_COLS, DEFAULT_ROWS, Grid

__all__ = ["parse_grid", "parse_grid_concise"]


def _make_grid(cells: list[list[str]], rows: int | None, cols: int | None) -> Grid:
    grid = Grid(rows or DEFAULT_ROWS, cols or DEFAULT_COLS)
    for r, row in enumerate(cells):
        for c, text in enumerate(row):
            if text:
                grid.set(r + 1, c + 1, text)
    return grid


def parse_grid(definition: str, rows: int | None = None, cols: int | None = None) -> Grid:
    """
    Parse a grid from a compact string format.

    Format:
    - Rows separated by |
    - Cells separated by single spaces
    - Underscore only (_): Empty cell
    - Empty string (from multiple adjacent spaces): Empty cell
    - Anything else: the cell's raw text

    Example:
        "a b _|_ _ c"
        Creates a grid with "a" at (1,1), "b" at (1,2) and "c" at (2,3).

    Args:
        definition: The grid definition
        rows: Nominal row count (default: DEFAULT_ROWS)
        cols: Nominal column count (default: DEFAULT_COLS)

    Returns:
        A Grid holding the parsed cells

    Raises:
        ValueError: If rows have different numbers of cells
    """
    row_strings = definition.split("|")
    parsed: list[list[str]] = []

    for row_str in row_strings:
        parsed.append(["" if cell_str in ("", "_") else cell_str for cell_str in row_str.split(" ")])

    width = len(parsed[0])
    mismatched = [(i, len(row)) for i, row in enumerate(parsed) if len(row) != width]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths in grid definition\n"
            f"  Expected: {width} cells (from row 0)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual in mismatched:
            error_msg += f"    Row {row_idx}: {actual} cells - \"{row_strings[row_idx]}\"\n"
        error_msg += "  All rows must have the same number of cells"
        raise ValueError(error_msg)

    return _make_grid(parsed, rows, cols)


def parse_grid_concise(definition: str, rows: int | None = None, cols: int | None = None) -> Grid:
    """
    Parse a grid where every character is one cell.

    Format:
    - Rows separated by | or by line breaks (surrounding whitespace ignored)
    - Underscore (_): Empty cell
    - Any other non-space character: a cell holding that character
    - Short rows are padded with empty cells

    Example:
        \"\"\"
        ab__
        __c_
        \"\"\"

    Raises:
        ValueError: If a row contains a space, or the definition is empty
    """
    text = definition.strip()
    if not text:
        raise ValueError("Empty grid definition")

    row_strings = [line.strip() for line in text.replace("\n", "|").split("|")]
    parsed: list[list[str]] = []

    for row_idx, row_str in enumerate(row_strings):
        if " " in row_str:
            raise ValueError(
                f"Invalid character ' ' in row {row_idx}: \"{row_str}\"\n"
                f"  Use '_' for empty cells"
            )
        parsed.append(["" if char == "_" else char for char in row_str])

    return _make_grid(parsed, rows, cols)
