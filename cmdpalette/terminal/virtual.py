"""In-memory console with a scroll buffer larger than its window.

Behaves like a classic console host: text wraps at the buffer width, writing
past the last buffer row scrolls the buffer up, and the window follows the
cursor while writing. Geometry changes outside the valid range raise
``GeometryRejected``. Keys come from a scripted queue.
"""

from __future__ import annotations

from collections import deque

from ..errors import GeometryRejected
from ..keys import KeyEvent, keys_for_text

DEFAULT_MAX_BUFFER_HEIGHT = 32766

Cell = tuple[str, str, str]


class VirtualTerminal:
    def __init__(
        self,
        width: int = 80,
        window_height: int = 24,
        buffer_height: int | None = None,
        *,
        max_buffer_height: int = DEFAULT_MAX_BUFFER_HEIGHT,
        max_empty_polls: int | None = 1000,
        foreground: str = "gray",
        background: str = "black",
    ) -> None:
        if width <= 0 or window_height <= 0:
            raise GeometryRejected(f"invalid window {width}x{window_height}")
        self._width = width
        self._window_height = window_height
        self.max_buffer_height = max_buffer_height
        self.max_empty_polls = max_empty_polls
        self.foreground = foreground
        self.background = background
        height = window_height if buffer_height is None else buffer_height
        if not window_height <= height <= max_buffer_height:
            raise GeometryRejected(f"buffer height {height} outside {window_height}..{max_buffer_height}")
        self._rows: list[list[Cell]] = [self._blank_row() for _ in range(height)]
        self._cursor_row = 0
        self._cursor_col = 0
        self._window_top = 0
        self._keys: deque[KeyEvent] = deque()
        self._empty_polls = 0

    # geometry

    @property
    def window_height(self) -> int:
        return self._window_height

    @property
    def buffer_width(self) -> int:
        return self._width

    @property
    def buffer_height(self) -> int:
        return len(self._rows)

    @buffer_height.setter
    def buffer_height(self, value: int) -> None:
        if value > self.max_buffer_height or value < self._window_top + self._window_height:
            raise GeometryRejected(
                f"buffer height {value} outside {self._window_top + self._window_height}..{self.max_buffer_height}"
            )
        if value <= self._cursor_row:
            raise GeometryRejected(f"buffer height {value} would cut off cursor row {self._cursor_row}")
        current = len(self._rows)
        if value > current:
            self._rows.extend(self._blank_row() for _ in range(value - current))
        else:
            del self._rows[value:]

    @property
    def cursor_row(self) -> int:
        return self._cursor_row

    @cursor_row.setter
    def cursor_row(self, value: int) -> None:
        if not 0 <= value < len(self._rows):
            raise GeometryRejected(f"cursor row {value} outside 0..{len(self._rows) - 1}")
        self._cursor_row = value

    @property
    def cursor_col(self) -> int:
        return self._cursor_col

    @cursor_col.setter
    def cursor_col(self, value: int) -> None:
        if not 0 <= value < self._width:
            raise GeometryRejected(f"cursor column {value} outside 0..{self._width - 1}")
        self._cursor_col = value

    @property
    def window_top(self) -> int:
        return self._window_top

    @window_top.setter
    def window_top(self, value: int) -> None:
        limit = len(self._rows) - self._window_height
        if not 0 <= value <= limit:
            raise GeometryRejected(f"window top {value} outside 0..{limit}")
        self._window_top = value

    # output

    def _blank_row(self) -> list[Cell]:
        return [(" ", self.foreground, self.background)] * self._width

    def _newline(self) -> None:
        self._cursor_col = 0
        if self._cursor_row + 1 < len(self._rows):
            self._cursor_row += 1
            return
        self._rows.pop(0)
        self._rows.append(self._blank_row())

    def write(self, text: str) -> None:
        for ch in text:
            if ch == "\n":
                self._newline()
            elif ch == "\r":
                self._cursor_col = 0
            elif ch == "\b":
                if self._cursor_col > 0:
                    self._cursor_col -= 1
            else:
                self._rows[self._cursor_row][self._cursor_col] = (ch, self.foreground, self.background)
                self._cursor_col += 1
                if self._cursor_col >= self._width:
                    self._newline()
        self._follow_cursor()

    def _follow_cursor(self) -> None:
        if self._cursor_row < self._window_top:
            self._window_top = self._cursor_row
        elif self._cursor_row >= self._window_top + self._window_height:
            self._window_top = self._cursor_row - self._window_height + 1

    def flush(self) -> None:
        """Nothing to flush; the grid is the display."""

    # inspection

    def row_text(self, row: int) -> str:
        return "".join(cell[0] for cell in self._rows[row]).rstrip()

    def cell(self, row: int, col: int) -> Cell:
        return self._rows[row][col]

    def visible_lines(self) -> list[str]:
        top = self._window_top
        return [self.row_text(row) for row in range(top, top + self._window_height)]

    def find_row(self, text: str, start: int = 0) -> int:
        """Return the first buffer row at or after ``start`` containing ``text``."""
        for row in range(start, len(self._rows)):
            if text in self.row_text(row):
                return row
        return -1

    # input

    def feed(self, *keys: KeyEvent) -> None:
        self._keys.extend(keys)

    def feed_text(self, text: str) -> None:
        self._keys.extend(keys_for_text(text))

    def key_available(self) -> bool:
        return bool(self._keys)

    def wait_key(self, timeout: float) -> bool:
        """Report whether a key is queued, counting consecutive empty polls.

        Scripted input that never arrives is treated as a closed terminal once
        ``max_empty_polls`` is exceeded.
        """
        if self._keys:
            self._empty_polls = 0
            return True
        self._empty_polls += 1
        if self.max_empty_polls is not None and self._empty_polls > self.max_empty_polls:
            raise EOFError("scripted terminal input exhausted")
        return False

    def read_key(self) -> KeyEvent:
        if not self._keys:
            raise EOFError("scripted terminal input exhausted")
        self._empty_polls = 0
        return self._keys.popleft()
