"""Drawing surfaces the render coordinator writes panels into."""

from __future__ import annotations

import curses
from typing import Optional

STYLES = (
    "default",
    "title",
    "header",
    "row",
    "selected",
    "error",
    "border",
    "status",
    "status_error",
)


class Surface:
    """A grid of character cells that can be written and flushed."""

    def size(self) -> tuple[int, int]:
        """Return (height, width)."""
        raise NotImplementedError

    def write(self, y: int, x: int, text: str, style: str = "default"):
        """Write a run of cells starting at (y, x). Cells off the grid are dropped."""
        raise NotImplementedError

    def flush(self):
        """Push pending writes to the output device."""
        raise NotImplementedError


class MemorySurface(Surface):
    """In-memory surface; keeps the screen as rows of text."""

    def __init__(self, height: int, width: int):
        self.height = height
        self.width = width
        self.cells = [[" "] * width for _ in range(height)]
        self.styles = [["default"] * width for _ in range(height)]
        self.flush_count = 0

    def size(self) -> tuple[int, int]:
        return self.height, self.width

    def write(self, y: int, x: int, text: str, style: str = "default"):
        if y < 0 or y >= self.height:
            return
        for offset, ch in enumerate(text):
            col = x + offset
            if 0 <= col < self.width:
                self.cells[y][col] = ch
                self.styles[y][col] = style

    def flush(self):
        self.flush_count += 1

    def line(self, y: int) -> str:
        return "".join(self.cells[y])


def init_palette() -> dict[str, int]:
    """Map style names to curses attributes."""
    palette = {name: curses.A_NORMAL for name in STYLES}
    palette["title"] = curses.A_REVERSE
    palette["header"] = curses.A_BOLD
    palette["selected"] = curses.A_REVERSE | curses.A_BOLD
    palette["error"] = curses.A_BOLD
    palette["status_error"] = curses.A_REVERSE | curses.A_BOLD

    if not curses.has_colors():
        return palette

    try:
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(1, curses.COLOR_CYAN, -1)
        curses.init_pair(2, curses.COLOR_RED, -1)
        curses.init_pair(3, curses.COLOR_BLUE, -1)
        curses.init_pair(4, curses.COLOR_WHITE, curses.COLOR_RED)
        curses.init_pair(5, curses.COLOR_BLACK, curses.COLOR_WHITE)

        palette["header"] = curses.color_pair(1)
        palette["error"] = curses.color_pair(2)
        palette["border"] = curses.color_pair(3)
        palette["status_error"] = curses.color_pair(4)
        palette["status"] = curses.color_pair(5)
        palette["title"] = curses.color_pair(5)
        palette["selected"] = curses.color_pair(5) | curses.A_BOLD
    except curses.error:
        pass

    return palette


class CursesSurface(Surface):
    """Surface backed by the curses standard screen."""

    def __init__(self, stdscr, palette: Optional[dict[str, int]] = None):
        self.stdscr = stdscr
        self.palette = palette if palette is not None else init_palette()

    def size(self) -> tuple[int, int]:
        return self.stdscr.getmaxyx()

    def write(self, y: int, x: int, text: str, style: str = "default"):
        height, width = self.stdscr.getmaxyx()
        if y < 0 or y >= height or x >= width:
            return
        if x < 0:
            text = text[-x:]
            x = 0
        # Last cell of the screen cannot be written without scrolling
        limit = width - x - (1 if y == height - 1 else 0)
        if limit <= 0:
            return
        try:
            self.stdscr.addnstr(y, x, text, limit, self.palette.get(style, curses.A_NORMAL))
        except curses.error:
            pass

    def flush(self):
        self.stdscr.refresh()
