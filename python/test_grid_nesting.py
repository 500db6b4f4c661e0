"""
Tests for entering and leaving grids nested inside cells.
"""

import pytest

from grid_codec import decode
from grid_nesting import (
    NestFailure,
    NestFailureReason,
    ancestor_stack,
    build_wrapper,
    close_token,
    depth_marker,
    enter_nested_grid,
    is_nestable,
    is_wrapper,
    leave_nested_grid,
    nesting_depth,
    open_token,
    parse_depth,
)
from grid_types import CellPosition, Grid, ParseRules


def P(row: int, col: int) -> CellPosition:
    return CellPosition(row, col)


def base_grid() -> Grid:
    grid = Grid(20, 20)
    grid.set(1, 1, "title")
    grid.set(2, 2, ",a,b")
    grid.set(5, 5, "keep")
    return grid


# =============================================================================
# Marker grammar
# =============================================================================


class TestMarkers:
    """Tests for marker tokens and prefix checks."""

    def test_tokens(self) -> None:
        assert depth_marker(3) == "<<)3(>>"
        assert open_token(3) == "<<(3)"
        assert close_token(3) == "(3)>>"

    def test_parse_depth_first_bare_marker(self) -> None:
        assert parse_depth("^abc<<)2(>>") == 2
        assert parse_depth("^x,<<(1),<<)12(>>(1)>>") == 12

    def test_parse_depth_without_marker(self) -> None:
        assert parse_depth("^hello") == 0
        assert parse_depth("<<(1)") == 0

    def test_is_nestable(self) -> None:
        assert is_nestable(",")
        assert is_nestable(",a,b")
        assert not is_nestable("a,b")
        assert not is_nestable("")

    def test_is_wrapper(self) -> None:
        assert is_wrapper("^x")
        assert not is_wrapper("x^")

    def test_custom_separator(self) -> None:
        rules = ParseRules(nest_separator=";")
        assert is_nestable(";a", rules)
        assert not is_nestable(",a", rules)

    def test_nesting_depth_of_plain_grid(self) -> None:
        assert nesting_depth(base_grid()) == 0


# =============================================================================
# Enter
# =============================================================================


class TestEnter:
    """Tests for entering a nested grid."""

    def test_enter_swaps_contents(self) -> None:
        grid = base_grid()

        focus = enter_nested_grid(grid, P(2, 2))

        assert focus == P(1, 2)
        assert grid.get(1, 2) == "a"
        assert grid.get(1, 3) == "b"
        assert grid.get(5, 5) == ""
        assert nesting_depth(grid) == 1

    def test_first_wrapper_is_base_snapshot(self) -> None:
        """The depth-1 wrapper is the base grid with a marker in the entered cell."""
        grid = base_grid()

        enter_nested_grid(grid, P(2, 2))

        wrapper = grid.get(1, 1)
        assert wrapper.startswith("^")
        assert decode(wrapper[1:]) == [
            ["title", "", "", "", ""],
            ["", depth_marker(1), "", "", ""],
            ["", "", "", "", ""],
            ["", "", "", "", ""],
            ["", "", "", "", "keep"],
        ]

    def test_second_wrapper_nests_snapshot(self) -> None:
        grid = Grid(20, 20)
        grid.set(1, 1, "title")
        grid.set(2, 2, ",a,,,")

        enter_nested_grid(grid, P(2, 2))
        grid.set(1, 3, ",x")
        enter_nested_grid(grid, P(1, 3))

        assert grid.get(1, 1) == "^title,\r\n," + open_token(1) + ",a," + depth_marker(2) + close_token(1)
        assert grid.get(1, 2) == "x"

    def test_empty_cell_enters_empty_grid(self) -> None:
        grid = base_grid()

        focus = enter_nested_grid(grid, P(7, 7))

        assert focus == P(1, 2)
        assert nesting_depth(grid) == 1
        assert [pos for pos in grid.filled_positions() if pos != P(1, 1)] == []

    def test_not_nestable(self) -> None:
        """Entering plain text is a no-op."""
        grid = base_grid()
        before = dict(grid.cells)

        result = enter_nested_grid(grid, P(5, 5))

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.NOT_NESTABLE
        assert result.position == P(5, 5)
        assert grid.cells == before

    def test_unreadable_wrapper(self) -> None:
        """A hand-edited wrapper without a marker cannot be extended."""
        grid = Grid(20, 20)
        grid.set(1, 1, "^hello")
        grid.set(2, 2, ",x")
        before = dict(grid.cells)

        result = enter_nested_grid(grid, P(2, 2))

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.MARKER_NOT_FOUND
        assert grid.cells == before

    def test_whitespace_target_not_nestable(self) -> None:
        """A cell holding only spaces is text, not an empty cell."""
        grid = base_grid()
        grid.set(3, 3, " ")
        before = dict(grid.cells)

        result = enter_nested_grid(grid, P(3, 3))

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.NOT_NESTABLE
        assert grid.cells == before

    def test_marker_text_in_base_grid_refused(self) -> None:
        """A cell that already reads as a depth marker would make leaving impossible."""
        grid = base_grid()
        grid.set(4, 4, depth_marker(1))
        before = dict(grid.cells)

        result = enter_nested_grid(grid, P(2, 2))

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.MARKER_NOT_FOUND
        assert result.position == P(2, 2)
        assert grid.cells == before

    def test_close_token_text_at_depth_one_refused(self) -> None:
        """A close token inside an ancestor snapshot would cut its span short."""
        grid = base_grid()
        enter_nested_grid(grid, P(2, 2))
        grid.set(3, 3, "note " + close_token(1) + " here")
        grid.set(1, 2, ",inner")
        before = dict(grid.cells)

        result = enter_nested_grid(grid, P(1, 2))

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.MARKER_NOT_FOUND
        assert grid.cells == before
        assert nesting_depth(grid) == 1
        assert leave_nested_grid(grid) == P(2, 2)

    def test_custom_focus(self) -> None:
        grid = base_grid()
        assert enter_nested_grid(grid, P(2, 2), ParseRules(enter_focus=(2, 1))) == P(2, 1)

    def test_depth_increases_by_one(self) -> None:
        grid = Grid(20, 20)
        grid.set(3, 3, ",")

        depths = [nesting_depth(grid)]
        enter_nested_grid(grid, P(3, 3))
        depths.append(nesting_depth(grid))
        for _ in range(3):
            grid.set(1, 2, ",")
            enter_nested_grid(grid, P(1, 2))
            depths.append(nesting_depth(grid))

        assert depths == [0, 1, 2, 3, 4]


# =============================================================================
# Leave
# =============================================================================


class TestLeave:
    """Tests for leaving a nested grid."""

    def test_round_trip_unchanged(self) -> None:
        """Enter then leave with no edits restores the grid exactly."""
        grid = base_grid()
        before = dict(grid.cells)

        enter_nested_grid(grid, P(2, 2))
        focus = leave_nested_grid(grid)

        assert focus == P(2, 2)
        assert grid.cells == before
        assert nesting_depth(grid) == 0

    def test_round_trip_with_edits(self) -> None:
        """Edits inside the nested grid end up serialized in the entered cell."""
        grid = base_grid()

        enter_nested_grid(grid, P(2, 2))
        grid.set(1, 3, "")
        grid.set(2, 2, "new")
        leave_nested_grid(grid)

        assert grid.get(1, 1) == "title"
        assert grid.get(5, 5) == "keep"
        assert grid.get(2, 2) == ",a\r\n,new"
        assert decode(grid.get(2, 2)) == [["", "a"], ["", "new"]]

    def test_whitespace_cells_survive(self) -> None:
        """Cells holding only spaces are kept through enter and leave."""
        grid = base_grid()
        grid.set(7, 7, " ")
        before = dict(grid.cells)

        enter_nested_grid(grid, P(2, 2))
        grid.set(3, 3, "  ")
        leave_nested_grid(grid)

        assert grid.get(7, 7) == " "
        assert {p: t for p, t in grid.cells.items() if p != P(2, 2)} == {
            p: t for p, t in before.items() if p != P(2, 2)
        }
        enter_nested_grid(grid, P(2, 2))
        assert grid.get(3, 3) == "  "

    def test_empty_nested_grid_leaves_separator(self) -> None:
        grid = base_grid()

        enter_nested_grid(grid, P(7, 7))
        leave_nested_grid(grid)

        assert grid.get(7, 7) == ","

    def test_first_column_content_stays_nestable(self) -> None:
        """Content only in column 1 is padded so the cell still starts with a separator."""
        grid = base_grid()

        enter_nested_grid(grid, P(7, 7))
        grid.set(2, 1, "a")
        leave_nested_grid(grid)

        assert grid.get(7, 7) == ",\r\na,"
        assert is_nestable(grid.get(7, 7))
        enter_nested_grid(grid, P(7, 7))
        assert grid.get(2, 1) == "a"

    def test_quotes_survive(self) -> None:
        grid = Grid(20, 20)
        grid.set(2, 2, ',"he said ""hi""",x')

        enter_nested_grid(grid, P(2, 2))
        assert grid.get(1, 2) == 'he said "hi"'
        leave_nested_grid(grid)

        assert grid.get(2, 2) == ',"he said ""hi""",x'

    def test_three_levels(self) -> None:
        """Content three levels down survives leaving to the top and coming back."""
        grid = base_grid()
        grid.set(2, 2, ",")
        before = {p: t for p, t in grid.cells.items() if p != P(2, 2)}

        enter_nested_grid(grid, P(2, 2))
        grid.set(1, 2, ",")
        enter_nested_grid(grid, P(1, 2))
        grid.set(1, 2, ",")
        enter_nested_grid(grid, P(1, 2))
        assert nesting_depth(grid) == 3

        grid.set(2, 3, "deep")
        grid.set(3, 2, 'a "quoted", multi\nline')

        assert leave_nested_grid(grid) == P(1, 2)
        assert nesting_depth(grid) == 2
        assert leave_nested_grid(grid) == P(1, 2)
        assert nesting_depth(grid) == 1
        assert leave_nested_grid(grid) == P(2, 2)
        assert nesting_depth(grid) == 0

        assert {p: t for p, t in grid.cells.items() if p != P(2, 2)} == before

        enter_nested_grid(grid, P(2, 2))
        enter_nested_grid(grid, P(1, 2))
        enter_nested_grid(grid, P(1, 2))
        assert grid.get(2, 3) == "deep"
        assert grid.get(3, 2) == 'a "quoted", multi\nline'

    def test_edits_at_middle_level_kept(self) -> None:
        grid = base_grid()

        enter_nested_grid(grid, P(2, 2))
        grid.set(3, 3, "middle")
        grid.set(1, 2, ",inner")
        enter_nested_grid(grid, P(1, 2))
        grid.set(1, 2, "changed")
        leave_nested_grid(grid)

        assert grid.get(3, 3) == "middle"
        assert grid.get(1, 2) == ",changed"
        assert grid.get(1, 3) == "b"
        assert nesting_depth(grid) == 1

    def test_depth_decreases_by_one(self) -> None:
        grid = Grid(20, 20)
        grid.set(3, 3, ",")
        enter_nested_grid(grid, P(3, 3))
        grid.set(2, 2, ",")
        enter_nested_grid(grid, P(2, 2))

        depths = [nesting_depth(grid)]
        while not isinstance(leave_nested_grid(grid), NestFailure):
            depths.append(nesting_depth(grid))

        assert depths == [2, 1, 0]

    def test_leave_at_top_is_noop(self) -> None:
        grid = base_grid()
        before = dict(grid.cells)

        result = leave_nested_grid(grid)

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.NOT_NESTED
        assert grid.cells == before

    def test_wrapper_without_marker_is_not_nested(self) -> None:
        grid = Grid(20, 20)
        grid.set(1, 1, "^hello")

        result = leave_nested_grid(grid)

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.NOT_NESTED
        assert grid.get(1, 1) == "^hello"

    @pytest.mark.parametrize(
        "wrapper",
        [
            "^garbage<<)2(>>",  # no depth-1 span
            "^a,<<(1),b,<<)2(>>",  # unterminated span
            '^"<<)1(>> inside a field"',  # marker is not a whole field
            "^<<)1(>>,<<)1(>>",  # two bare markers
        ],
    )
    def test_marker_not_found_leaves_grid_untouched(self, wrapper: str) -> None:
        grid = Grid(20, 20)
        grid.set(1, 1, wrapper)
        grid.set(3, 3, "child")
        before = dict(grid.cells)

        result = leave_nested_grid(grid)

        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.MARKER_NOT_FOUND
        assert result.position == P(1, 1)
        assert result.details
        assert grid.cells == before


# =============================================================================
# Ancestor stack
# =============================================================================


class TestAncestorStack:
    """Tests for decoding and rebuilding wrapper text."""

    def test_stack_per_level(self) -> None:
        grid = base_grid()
        enter_nested_grid(grid, P(2, 2))
        grid.set(2, 3, ",q")
        enter_nested_grid(grid, P(2, 3))

        stack = ancestor_stack(grid.get(1, 1))

        assert not isinstance(stack, NestFailure)
        assert len(stack) == 2
        assert stack[0][1][1] == depth_marker(1)
        assert stack[1] == [["", "a", "b"], ["", "", depth_marker(2)]]

    def test_build_inverts_stack(self) -> None:
        grid = base_grid()
        enter_nested_grid(grid, P(2, 2))
        grid.set(1, 2, ",z")
        enter_nested_grid(grid, P(1, 2))

        wrapper = grid.get(1, 1)
        stack = ancestor_stack(wrapper)

        assert not isinstance(stack, NestFailure)
        assert build_wrapper(stack) == wrapper

    def test_not_a_wrapper(self) -> None:
        result = ancestor_stack("title")
        assert isinstance(result, NestFailure)
        assert result.reason is NestFailureReason.NOT_NESTED

    def test_build_empty_stack_raises(self) -> None:
        with pytest.raises(ValueError):
            build_wrapper([])
