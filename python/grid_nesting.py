"""
Entering and leaving a grid nested inside a single cell.

A cell whose text starts with the nest separator (",") holds a whole grid
as CSV. Entering it swaps the grid's contents for the decoded cell, and the
(1,1) cell of the new grid keeps everything needed to get back out: the
"wrapper".

Wrapper grammar, for a grid at depth D (D >= 1):

    (1,1) = "^" + W_D

    W_1     = S_0
    W_(D+1) = W_D with "<<)D(>>" replaced by "<<(D)" + S_D + "(D)>>"

where S_k is the CSV snapshot of the grid at depth k, without its own
wrapper cell, in which the entered cell holds the bare marker "<<)k+1(>>".
A wrapper therefore holds exactly one bare marker, and its number is the
current depth.

Snapshots are embedded verbatim between open/close tokens and are only ever
decoded on their own, so quoting never compounds across levels. Enter and
leave decode the wrapper into an ancestor stack once and serialize it back
only at the end.

Neither operation raises for bad input: both return a NestFailure and leave
the grid untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

import grid_codec
from grid_types import CellPosition, Dataset, Grid, ParseRules

logger = logging.getLogger(__name__)

__all__ = [
    "NestFailure",
    "NestFailureReason",
    "NestResult",
    "ancestor_stack",
    "build_wrapper",
    "close_token",
    "depth_marker",
    "enter_nested_grid",
    "is_nestable",
    "is_wrapper",
    "leave_nested_grid",
    "nesting_depth",
    "open_token",
    "parse_depth",
]

WRAPPER_CELL = CellPosition(1, 1)

_MARKER_PATTERN = re.compile(r"<<\)(\d+)\(>>")


class NestFailureReason(Enum):
    """Why an enter/leave did nothing."""

    NOT_NESTABLE = "not_nestable"  # Target text does not start with the separator
    NOT_NESTED = "not_nested"  # No wrapper in (1,1), or depth 0
    MARKER_NOT_FOUND = "marker_not_found"  # Wrapper text is missing an expected token


@dataclass(frozen=True)
class NestFailure:
    """Result of an enter/leave that left the grid unchanged."""

    reason: NestFailureReason
    position: CellPosition
    details: str = ""


NestResult = CellPosition | NestFailure


# =============================================================================
# Marker grammar
# =============================================================================


def depth_marker(depth: int) -> str:
    """Bare marker left in the cell that was entered at this depth."""
    return f"<<){depth}(>>"


def open_token(depth: int) -> str:
    return f"<<({depth})"


def close_token(depth: int) -> str:
    return f"({depth})>>"


def parse_depth(wrapper: str) -> int:
    """Depth named by the first bare marker in the text, 0 if there is none."""
    match = _MARKER_PATTERN.search(wrapper)
    return int(match.group(1)) if match else 0


def is_nestable(text: str, rules: ParseRules | None = None) -> bool:
    rules = rules or ParseRules()
    return text.startswith(rules.nest_separator)


def is_wrapper(text: str, rules: ParseRules | None = None) -> bool:
    rules = rules or ParseRules()
    return text.startswith(rules.wrapper_prefix)


def nesting_depth(grid: Grid, rules: ParseRules | None = None) -> int:
    """Current depth of the grid; 0 when it is not a nested view."""
    wrapper = grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col)
    if not is_wrapper(wrapper, rules):
        return 0
    return parse_depth(wrapper)


# =============================================================================
# Helpers
# =============================================================================


def _snapshot(grid: Grid, rules: ParseRules) -> Dataset:
    """The whole grid as a dataset, leaving out a wrapper in (1,1)."""
    wrapper = grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col)
    skip = WRAPPER_CELL if is_wrapper(wrapper, rules) else None
    return grid.to_dataset(skip=skip)


def _child_snapshot(grid: Grid, rules: ParseRules) -> str:
    """
    CSV of the grid being left, shaped so it still reads as nestable.

    (1,1) is reserved for the wrapper, so the first field is always empty;
    padding to two columns keeps the leading separator even when only the
    first column holds data.
    """
    dataset = grid.to_dataset(skip=WRAPPER_CELL)
    if not dataset:
        return rules.nest_separator
    if len(dataset[0]) < 2:
        dataset = [row + [""] for row in dataset]
    return grid_codec.encode(dataset)


def _find_marker_cell(dataset: Dataset, marker: str) -> CellPosition | None:
    for r, row in enumerate(dataset):
        for c, text in enumerate(row):
            if text == marker:
                return CellPosition(r + 1, c + 1)
    return None


def _marker_not_found(expected: str, wrapper: str) -> NestFailure:
    logger.warning("%s not found in wrapper %r", expected, wrapper)
    return NestFailure(
        NestFailureReason.MARKER_NOT_FOUND,
        WRAPPER_CELL,
        f"expected {expected} in wrapper",
    )


# =============================================================================
# Ancestor stack
# =============================================================================


def ancestor_stack(wrapper: str, rules: ParseRules | None = None) -> list[Dataset] | NestFailure:
    """
    Decode every ancestor snapshot held by a wrapper, outermost first.

    Entry k is the grid at depth k with its entered cell holding the bare
    marker for depth k + 1, so a depth-D wrapper yields D entries.
    """
    if rules is None:
        rules = ParseRules()

    if not is_wrapper(wrapper, rules):
        return NestFailure(NestFailureReason.NOT_NESTED, WRAPPER_CELL, "no wrapper in (1,1)")
    depth = parse_depth(wrapper)
    if depth < 1:
        return NestFailure(NestFailureReason.NOT_NESTED, WRAPPER_CELL, "wrapper holds no depth marker")
    if wrapper.count(depth_marker(depth)) != 1:
        return _marker_not_found(f"a single {depth_marker(depth)}", wrapper)

    # Peel one open/close span per level; the outer text keeps the bare marker
    texts: list[str] = []
    remaining = wrapper[len(rules.wrapper_prefix):]
    for level in range(1, depth):
        opening, closing = open_token(level), close_token(level)
        start = remaining.find(opening)
        end = remaining.find(closing, start + len(opening)) if start >= 0 else -1
        if start < 0 or end < 0:
            return _marker_not_found(f"{opening}...{closing}", wrapper)
        texts.append(remaining[:start] + depth_marker(level) + remaining[end + len(closing):])
        remaining = remaining[start + len(opening):end]
    texts.append(remaining)

    stack: list[Dataset] = []
    for level, text in enumerate(texts):
        dataset = grid_codec.decode(text)
        if _find_marker_cell(dataset, depth_marker(level + 1)) is None:
            return _marker_not_found(depth_marker(level + 1), wrapper)
        stack.append(dataset)
    return stack


def build_wrapper(stack: list[Dataset], rules: ParseRules | None = None) -> str:
    """Serialize an ancestor stack back into wrapper text."""
    if rules is None:
        rules = ParseRules()
    if not stack:
        raise ValueError("Cannot build a wrapper from an empty ancestor stack")

    text = grid_codec.encode(stack[0])
    for level, dataset in enumerate(stack[1:], start=1):
        text = text.replace(
            depth_marker(level),
            open_token(level) + grid_codec.encode(dataset) + close_token(level),
            1,
        )
    return rules.wrapper_prefix + text


# =============================================================================
# Enter / Leave
# =============================================================================


def enter_nested_grid(
    grid: Grid, target: CellPosition, rules: ParseRules | None = None
) -> NestResult:
    """
    Replace the grid's contents with the grid stored in the target cell.

    An empty target becomes a minimal one-field payload first. The parent
    grid is pushed onto the ancestor stack held by the new (1,1) wrapper.

    Args:
        grid: The active grid (mutated in place on success)
        target: Cell to enter
        rules: ParseRules governing prefixes and focus

    Returns:
        The cell to focus in the new grid, or a NestFailure
    """
    if rules is None:
        rules = ParseRules()

    text = grid.get(target.row, target.col)
    if not text:
        text = rules.nest_separator

    if not is_nestable(text, rules):
        return NestFailure(
            NestFailureReason.NOT_NESTABLE,
            target,
            f"cell text does not start with {rules.nest_separator!r}",
        )

    wrapper = grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col)
    if is_wrapper(wrapper, rules):
        stack = ancestor_stack(wrapper, rules)
        if isinstance(stack, NestFailure):
            # An unreadable wrapper cannot be extended
            return NestFailure(NestFailureReason.MARKER_NOT_FOUND, WRAPPER_CELL, stack.details)
    else:
        stack = []
    depth = len(stack)

    child = grid_codec.decode(text)

    working = grid.copy()
    working.set(target.row, target.col, depth_marker(depth + 1))
    stack.append(_snapshot(working, rules))
    new_wrapper = build_wrapper(stack, rules)

    # Cell text that looks like a marker or token would make the wrapper unreadable
    if ancestor_stack(new_wrapper, rules) != stack:
        return NestFailure(
            NestFailureReason.MARKER_NOT_FOUND,
            target,
            "grid text collides with wrapper markers, entering would not be reversible",
        )

    grid.load(child)
    grid.set(WRAPPER_CELL.row, WRAPPER_CELL.col, new_wrapper)

    logger.info(
        "enter_nested_grid: (%d, %d) depth %d -> %d", target.row, target.col, depth, depth + 1
    )
    return CellPosition(*rules.enter_focus)


def leave_nested_grid(grid: Grid, rules: ParseRules | None = None) -> NestResult:
    """
    Fold the active grid back into its parent and make the parent active.

    The cell that was entered gets the CSV of the grid being left, so it can
    be entered again.

    Returns:
        The parent cell that was entered (new focus), or a NestFailure
    """
    if rules is None:
        rules = ParseRules()

    stack = ancestor_stack(grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col), rules)
    if isinstance(stack, NestFailure):
        return stack
    depth = len(stack)

    parent = stack.pop()
    focus = _find_marker_cell(parent, depth_marker(depth))
    if focus is None:
        return _marker_not_found(depth_marker(depth), grid.get(WRAPPER_CELL.row, WRAPPER_CELL.col))
    parent[focus.row - 1][focus.col - 1] = _child_snapshot(grid, rules)

    if stack:
        parent[0][0] = build_wrapper(stack, rules)

    grid.load(parent)

    logger.info("leave_nested_grid: depth %d -> %d, focus (%d, %d)", depth, depth - 1, focus.row, focus.col)
    return focus
