"""
Screen painting for the interactive viewer.

The screen is double buffered: :meth:`ScreenRenderer.paint` builds the new
frame in one buffer, compares it row by row with the frame already on screen
and rewrites only the rows that changed. The last terminal row is reserved
for the footer and is written separately.

Text helpers here are the single place where visible width is measured.
They strip ANSI styling first and count East-Asian wide characters as two
columns (via rich's cell width tables).
"""

#region Imports
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from rich.cells import cell_len, get_character_cell_size
from rich.console import Console
from rich.style import Style
from rich.text import Text
#endregion


#region ANSI
CLEAR_SCREEN = "\x1b[2J"
CLEAR_LINE = "\x1b[2K"
CURSOR_HOME = "\x1b[H"

# Semantic colour names used by the views; any rich style string works too
COLORS = {
    "bold": "bold",
    "dim": "dim",
    "underline": "underline",
    "red": "red",
    "green": "green",
    "yellow": "yellow",
    "blue": "blue",
    "magenta": "magenta",
    "cyan": "cyan",
    "white": "white",
    "inverse": "reverse",
}
#endregion


#region Box Styles


@dataclass(frozen=True)
class BoxStyle:
    """Glyph set for drawing a bordered box."""

    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str
    title_left: str
    title_right: str


BOX_DOUBLE = BoxStyle("╔", "╗", "╚", "╝", "═", "║", "╣", "╠")
BOX_SINGLE = BoxStyle("┌", "┐", "└", "┘", "─", "│", "┤", "├")
BOX_ROUND = BoxStyle("╭", "╮", "╰", "╯", "─", "│", "┤", "├")

BOX_STYLES = {
    "double": BOX_DOUBLE,
    "single": BOX_SINGLE,
    "round": BOX_ROUND,
}


def get_box_style(name: Optional[str]) -> BoxStyle:
    """Look up a box style by name, defaulting to double-line."""
    return BOX_STYLES.get(name or "", BOX_DOUBLE)
#endregion


#region Text Utilities


def colorize(text: str, *styles: str) -> str:
    """
    Wrap text in ANSI codes for one or more rich style names.

    Args:
        text: Text to style
        *styles: Style names such as "cyan", "bold", "#ff8800"

    Returns:
        Styled string ending with a reset, or the text unchanged
    """
    if not styles or not text:
        return text
    return Style.parse(" ".join(COLORS.get(s, s) for s in styles)).render(text)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences."""
    if "\x1b" not in text:
        return text
    return Text.from_ansi(text, end="").plain


def visible_width(text: str) -> int:
    """Terminal columns occupied by text once styling is removed."""
    return cell_len(strip_ansi(text))


def pad(text: str, width: int, align: Literal["left", "center", "right"] = "left") -> str:
    """
    Pad text with spaces to a visible width.

    Text already at or beyond the width is returned unchanged.
    """
    padding = width - visible_width(text)
    if padding <= 0:
        return text
    if align == "center":
        left = padding // 2
        return " " * left + text + " " * (padding - left)
    if align == "right":
        return " " * padding + text
    return text + " " * padding


def truncate(text: str, max_width: int, ellipsis: str = "…") -> str:
    """
    Cut text to a visible width, ending with an ellipsis.

    Styling is dropped when the text has to be cut. A wide character that
    would straddle the limit is left out entirely.
    """
    if visible_width(text) <= max_width:
        return text

    plain = strip_ansi(text)
    budget = max(0, max_width - cell_len(ellipsis))
    used = 0
    kept = []
    for char in plain:
        size = get_character_cell_size(char)
        if used + size > budget:
            break
        kept.append(char)
        used += size
    return "".join(kept) + ellipsis
#endregion


#region Box Drawing


def draw_box(width: int, height: int, title: Optional[str] = None, style: BoxStyle = BOX_DOUBLE) -> list[str]:
    """
    Draw an empty box.

    Args:
        width: Total width including borders
        height: Total height including borders
        title: Optional title set into the top border
        style: Glyph set

    Returns:
        List of lines
    """
    inner = width - 2
    top = style.top_left + style.horizontal * inner + style.top_right
    if title:
        title_text = f" {title} "
        title_width = cell_len(title_text)
        if title_width <= width - 4:
            before = style.horizontal * 2
            after = style.horizontal * max(0, inner - 2 - 2 - title_width)
            top = (
                style.top_left + before + style.title_right + title_text
                + style.title_left + after + style.top_right
            )

    lines = [top]
    empty = style.vertical + " " * inner + style.vertical
    lines.extend(empty for _ in range(height - 2))
    lines.append(style.bottom_left + style.horizontal * inner + style.bottom_right)
    return lines


def fill_box(box: Sequence[str], content: Sequence[str], start_row: int = 0, style: BoxStyle = BOX_DOUBLE) -> list[str]:
    """
    Write content lines inside a box drawn by :func:`draw_box`.

    Lines are truncated and padded to the inner width. Rows beyond the box
    interior are dropped.
    """
    result = list(box)
    inner = visible_width(box[0]) - 2
    for i, line in enumerate(content):
        row = start_row + 1 + i
        if 0 < row < len(result) - 1:
            result[row] = style.vertical + pad(truncate(line, inner), inner) + style.vertical
    return result


def frame_lines(content: Sequence[str], width: int, title: Optional[str] = None, style: BoxStyle = BOX_DOUBLE) -> list[str]:
    """Draw a box just tall enough for the content and fill it."""
    return fill_box(draw_box(width, len(content) + 2, title, style), content, 0, style)
#endregion


#region Screen Renderer


class ScreenRenderer:
    """
    Owns the terminal output stream and the two frame buffers.

    One instance belongs to one running application; nothing here is module
    state.

    Args:
        console: rich Console to write to (default: a new stdout console)
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._buffer: list[str] = []
        self._previous: list[str] = []
        self._alt_screen = False

    @property
    def size(self) -> tuple[int, int]:
        """Current (columns, rows) of the terminal."""
        width, height = self.console.size
        return width, height

    @property
    def body_rows(self) -> int:
        """Rows available to :meth:`paint`; the last row belongs to the footer."""
        return max(0, self.size[1] - 1)

    def _write(self, data: str) -> None:
        self.console.file.write(data)

    def _flush_stream(self) -> None:
        self.console.file.flush()

    def move_cursor(self, column: int, row: int) -> None:
        """Move the cursor (1-based)."""
        self._write(f"\x1b[{row};{column}H")

    def clear_screen(self) -> None:
        self._write(CLEAR_SCREEN + CURSOR_HOME)
        self._flush_stream()

    def enter_alt_screen(self) -> None:
        """Switch to the alternate screen and hide the cursor."""
        self._alt_screen = self.console.set_alt_screen(True)
        self.console.show_cursor(False)

    def exit_alt_screen(self) -> None:
        """Show the cursor and restore the main screen."""
        self.console.show_cursor(True)
        if self._alt_screen:
            self.console.set_alt_screen(False)
            self._alt_screen = False

    def init_buffer(self) -> None:
        """Size both buffers to the terminal and forget what is on screen."""
        rows = self.body_rows
        self._buffer = [""] * rows
        self._previous = [""] * rows

    def write_to_buffer(self, row: int, text: str) -> None:
        if 0 <= row < len(self._buffer):
            self._buffer[row] = text

    def clear_buffer(self) -> None:
        self._buffer = [""] * len(self._buffer)

    def flush_buffer(self) -> None:
        """Write only the rows that differ from the previous frame."""
        out = []
        for i, line in enumerate(self._buffer):
            if i >= len(self._previous) or line != self._previous[i]:
                out.append(f"\x1b[{i + 1};1H{CLEAR_LINE}{line}")
        if out:
            self._write("".join(out))
            self._flush_stream()
        self._previous = list(self._buffer)

    def invalidate(self) -> None:
        """Make the next paint redraw the whole screen (after a resize)."""
        self._buffer = []
        self._previous = []

    @property
    def frame(self) -> list[str]:
        """Copy of the frame currently on screen."""
        return list(self._previous)

    def _prepare(self) -> bool:
        """Resize buffers if the terminal changed. Returns True on resize."""
        if len(self._buffer) != self.body_rows:
            self.init_buffer()
            self.clear_screen()
            return True
        self.clear_buffer()
        return False

    def paint(self, lines: Sequence[str]) -> None:
        """
        Replace the visible frame.

        Lines past the available rows are dropped and lines wider than the
        terminal are truncated, so no row ever wraps into the next.

        Args:
            lines: Styled lines, top to bottom
        """
        self._prepare()
        columns = self.size[0]
        for i, line in enumerate(lines[: len(self._buffer)]):
            self.write_to_buffer(i, truncate(line, columns))
        self.flush_buffer()

    def paint_footer(self, text: str) -> None:
        """Rewrite the last terminal row."""
        self.move_cursor(1, self.size[1])
        self._write(f"{CLEAR_LINE}{truncate(text, self.size[0])}")
        self._flush_stream()
#endregion
