"""Panel layout and off-screen region buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import DISPLAY_COLUMNS, Column, RecordError, StatRow

PANEL_WIDTH = 110

_COLUMN_SEP = " | "

# line 0 title, line 1 spacer, line 2 column header
_HEADER_LINE = 2
_FIRST_ENTRY_LINE = 3


@dataclass(frozen=True)
class Rect:
    """Position and size of a panel on the shared surface."""
    x: int
    y: int
    width: int
    height: int


def layout_regions(
    screen_height: int,
    screen_width: int,
    count: int,
    panel_width: int = PANEL_WIDTH,
) -> list[Rect]:
    """Split the screen into ``count`` stacked, non-overlapping panels."""
    if count <= 0:
        return []
    height = max(0, screen_height // count)
    width = max(0, min(panel_width, screen_width))
    return [Rect(x=0, y=height * i, width=width, height=height) for i in range(count)]


def _fit(value: str, width: int) -> str:
    return value[:width].rjust(width)


def format_header(columns: Sequence[Column] = DISPLAY_COLUMNS) -> str:
    return "".join(_fit(column.title, column.width) + _COLUMN_SEP for column in columns)


def format_row(row: StatRow, columns: Sequence[Column] = DISPLAY_COLUMNS) -> str:
    values = row.display_values(tuple(columns))
    return "".join(_fit(value, column.width) + _COLUMN_SEP for value, column in zip(values, columns))


class RegionBuffer:
    """Off-screen cell grid for one panel.

    Only the owning session draws into it; the render coordinator copies
    it onto the shared surface.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.cells = [[(" ", "default")] * width for _ in range(height)]

    def put(self, y: int, x: int, text: str, style: str = "default"):
        if y < 0 or y >= self.height:
            return
        line = self.cells[y]
        for offset, ch in enumerate(text):
            col = x + offset
            if 0 <= col < self.width:
                line[col] = (ch, style)

    def fill_line(self, y: int, ch: str = " ", style: str = "default", width: Optional[int] = None):
        self.put(y, 0, ch * (self.width if width is None else width), style)

    def label(self, y: int, text: str, style: str = "default"):
        """Draw text on line y across the inner width, padding the rest."""
        inner = max(0, self.width - 1)
        self.put(y, 0, text[:inner].ljust(inner), style)

    def title(self, text: str):
        self.label(0, text, "title")

    def center(self, text: str, style: str = "status"):
        x = max(0, self.width // 2 - len(text) // 2)
        self.put(self.height // 2, x, text, style)

    def clear_body(self):
        """Blank everything between the title and the bottom border."""
        for y in range(1, self.height - 1):
            self.label(y, "")

    def border(self):
        """Draw the bottom and right edges."""
        if self.height > 0:
            self.fill_line(self.height - 1, "-", "border")
        for y in range(self.height):
            self.put(y, self.width - 1, "|", "border")

    def runs(self, y: int) -> list[tuple[int, str, str]]:
        """Line y as (x, text, style) runs of equally styled cells."""
        result: list[tuple[int, str, str]] = []
        start = 0
        chars: list[str] = []
        current = None
        for x, (ch, style) in enumerate(self.cells[y]):
            if style != current and chars:
                result.append((start, "".join(chars), current))
                chars = []
            if not chars:
                start = x
                current = style
            chars.append(ch)
        if chars:
            result.append((start, "".join(chars), current))
        return result

    def line_text(self, y: int) -> str:
        return "".join(ch for ch, _ in self.cells[y])


def _scroll_offset(selected_line: Optional[int], capacity: int) -> int:
    if selected_line is None or capacity <= 0:
        return 0
    return max(0, selected_line - capacity + 1)


def render_panel(
    buf: RegionBuffer,
    title: str,
    entries: Sequence[StatRow | RecordError],
    cursor: int,
    status: Optional[str] = None,
    status_is_error: bool = False,
):
    """Redraw a whole panel from a session's current state.

    ``cursor`` indexes server rows only; inline errors take a line but
    can never be selected.
    """
    buf.clear_body()
    buf.title(title)
    buf.border()
    buf.label(_HEADER_LINE, format_header(), "header")

    lines: list[tuple[str, str]] = []
    selected_line = None
    row_index = 0
    for entry in entries:
        if isinstance(entry, RecordError):
            lines.append((entry.message, "error"))
            continue
        if row_index == cursor:
            selected_line = len(lines)
            lines.append((format_row(entry), "selected"))
        else:
            lines.append((format_row(entry), "row"))
        row_index += 1

    capacity = buf.height - 1 - _FIRST_ENTRY_LINE
    offset = _scroll_offset(selected_line, capacity)
    for i, (text, style) in enumerate(lines[offset:offset + max(0, capacity)]):
        buf.label(_FIRST_ENTRY_LINE + i, text, style)

    if status:
        buf.center(status, "status_error" if status_is_error else "status")
