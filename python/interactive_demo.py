"""
Interactive demo for gridstruct with nested grids.
Move a cursor around a grid, edit cells, and enter/leave grids stored in cells.
"""

import logging
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render, render_legend
from grid_parser import parse_grid
from gridstruct import CellPosition, Grid, GridSession, NestFailure


class InteractiveDemo:
    """Interactive demo for block detection and nesting."""

    def __init__(self, grid: Grid) -> None:
        self.original_cells = dict(grid.cells)  # Keep a copy of the original state
        self.session = GridSession(grid)
        self.console = Console()
        self.status_message = "Ready"

    def generate_display(self) -> Panel:
        """Generate the current display with grid and status."""
        session = self.session
        focus = session.focus
        analysis = session.analysis

        grid_text = render(session.grid, analysis, highlight_pos=focus)

        status = Text()
        status.append("Depth: ", style="bold")
        status.append(f"{session.depth}\n")
        status.append("Cursor: ", style="bold")
        status.append(f"({focus.row}, {focus.col})\n")
        status.append("Cell: ", style="bold")
        status.append(f"{session.grid.get(focus.row, focus.col)!r}\n")

        names = sorted(analysis.annotations.names(focus.row, focus.col))
        status.append("Annotations: ", style="bold")
        status.append(f"{', '.join(names) or '-'}\n")
        status.append("Blocks / joins / clusters: ", style="bold")
        status.append(f"{len(analysis.blocks)} / {len(analysis.joins)} / {len(analysis.clusters)}\n\n")

        status.append(Text.from_ansi(grid_text))
        status.append("\n")
        status.append(Text.from_ansi(render_legend()))
        status.append("\n\n")
        status.append("Keys:\n", style="bold cyan")
        status.append("  W/A/S/D - Move cursor\n")
        status.append("  E - Edit cell\n")
        status.append("  N - Enter nested grid at cursor\n")
        status.append("  X - Leave nested grid\n")
        status.append("  R - Reset to original grid\n")
        status.append("  Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="gridstruct Interactive Demo", border_style="green", width=80)

    def move(self, d_row: int, d_col: int) -> None:
        focus = self.session.focus
        self.session.move_focus(focus.row + d_row, focus.col + d_col)
        self.status_message = "Ready"

    def edit_cell(self, live: Live) -> None:
        """Prompt for new text for the cursor cell."""
        focus = self.session.focus
        live.stop()
        try:
            text = self.console.input(f"Text for ({focus.row}, {focus.col}): ")
        finally:
            live.start()
        self.session.edit(focus.row, focus.col, text)
        self.status_message = f"✓ Set ({focus.row}, {focus.col})"

    def attempt_enter(self) -> None:
        result = self.session.enter()
        if isinstance(result, NestFailure):
            self.status_message = f"✗ Enter failed: {result.reason.value}"
            if result.details:
                self.status_message += f" ({result.details})"
        else:
            self.status_message = f"✓ Entered, now at depth {self.session.depth}"

    def attempt_leave(self) -> None:
        result = self.session.leave()
        if isinstance(result, NestFailure):
            self.status_message = f"✗ Leave failed: {result.reason.value}"
            if result.details:
                self.status_message += f" ({result.details})"
        else:
            self.status_message = (
                f"✓ Left to depth {self.session.depth}, cursor on ({result.row}, {result.col})"
            )

    def reset_grid(self) -> None:
        """Reset the grid to its original state."""
        grid = self.session.grid
        grid.clear()
        for pos, text in self.original_cells.items():
            grid.set(pos.row, pos.col, text)
        self.session.refresh()
        self.session.focus = CellPosition(1, 1)
        self.status_message = "Grid reset to original state"

    def run(self) -> None:
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey()

                    if key.lower() == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key.lower() == "r":
                        self.reset_grid()
                    elif key.lower() == "w":
                        self.move(-1, 0)
                    elif key.lower() == "s":
                        self.move(1, 0)
                    elif key.lower() == "a":
                        self.move(0, -1)
                    elif key.lower() == "d":
                        self.move(0, 1)
                    elif key.lower() == "e":
                        self.edit_cell(live)
                    elif key.lower() == "n":
                        self.attempt_enter()
                    elif key.lower() == "x" or key == readchar.key.ESC:
                        self.attempt_leave()
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


LAYOUTS = dict(
    blocks="a b _ _ _ _ c|_ _ _ _ _ _ d|_ _ _ _ _ _ _|_ _ _ e _ _ _",
    nested='title _ _|_ ,x,y _|_ _ ,,p,q',
)


def main(grid: Grid) -> None:
    """Run interactive demo with a sample grid."""
    demo = InteractiveDemo(grid)
    demo.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "sublime":
        # Running from IDE - just render the initial state
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

        print("Running from IDE - rendering initial state")
        print()

        session = GridSession(parse_grid(LAYOUTS["blocks"], rows=20, cols=20))
        print(render(session.grid, session.analysis))
    else:
        main(parse_grid(LAYOUTS[sys.argv[1] if len(sys.argv) > 1 else "nested"], rows=30, cols=30))
