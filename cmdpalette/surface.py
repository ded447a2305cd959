"""Viewport and scroll-buffer management over a ``TerminalIO``.

The surface owns the coarse output lock: every multi-step sequence (move the
cursor, then write) runs under ``lock`` so writers on other threads never
interleave with a render. Geometry changes go through one retry path that
grows the buffer by a window height when the terminal rejects a request.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from . import keys
from .errors import FaultLog, GeometryRejected, null_fault_log
from .keys import KeyEvent
from .terminal.base import TerminalIO

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER_ROWS = 8000


@dataclass(frozen=True)
class ViewportState:
    cursor_row: int
    cursor_col: int
    window_top: int
    buffer_height: int
    buffer_width: int
    foreground: str
    background: str


class TerminalSurface:
    def __init__(
        self,
        terminal: TerminalIO,
        *,
        max_buffer_rows: int = DEFAULT_MAX_BUFFER_ROWS,
        log: FaultLog = null_fault_log,
    ) -> None:
        self.terminal = terminal
        self.max_buffer_rows = max_buffer_rows
        self.log = log
        self.lock = threading.RLock()
        self.last_row = terminal.cursor_row

    # state

    def save_state(self) -> ViewportState:
        t = self.terminal
        return ViewportState(
            cursor_row=t.cursor_row,
            cursor_col=t.cursor_col,
            window_top=t.window_top,
            buffer_height=t.buffer_height,
            buffer_width=t.buffer_width,
            foreground=t.foreground,
            background=t.background,
        )

    def restore_state(self, state: ViewportState) -> None:
        """Restore colours, cursor, and window top, clamped to the current buffer."""
        with self.lock:
            t = self.terminal
            t.foreground = state.foreground
            t.background = state.background
            t.cursor_row = max(0, min(state.cursor_row, t.buffer_height - 1))
            t.cursor_col = max(0, min(state.cursor_col, t.buffer_width - 1))
            top = max(0, min(state.window_top, t.buffer_height - t.window_height))
            self._apply_geometry(f"window top {top}", lambda: setattr(t, "window_top", top))

    @contextlib.contextmanager
    def session(self) -> Iterator[ViewportState]:
        """Hold the output lock and restore cursor and colours on every exit."""
        with self.lock:
            state = self.save_state()
            try:
                yield state
            finally:
                self.restore_state(state)

    # geometry

    def _apply_geometry(self, description: str, change: Callable[[], None]) -> bool:
        """Run ``change``; on rejection grow the buffer one window and retry once."""
        try:
            change()
            return True
        except GeometryRejected as exc:
            self.log(f"{description} rejected, growing buffer", exc)
        t = self.terminal
        try:
            t.buffer_height = t.buffer_height + t.window_height
            change()
            return True
        except GeometryRejected as exc:
            self.log(f"{description} abandoned", exc)
            return False

    def ensure_capacity(self) -> None:
        """Keep the buffer within ``max_buffer_rows`` with a window of room below the cursor."""
        with self.lock:
            t = self.terminal
            wh = t.window_height
            height = t.buffer_height
            if height > self.max_buffer_rows:
                target = max(self.max_buffer_rows, t.cursor_row + 1, t.window_top + wh)
            elif t.cursor_row + wh >= height:
                target = min(height + wh, self.max_buffer_rows)
            else:
                return
            if target == height:
                return
            logger.debug("buffer height %d -> %d", height, target)
            self._apply_geometry(f"buffer height {target}", lambda: setattr(t, "buffer_height", target))

    def scroll_window_to(self, top: int) -> bool:
        top = max(0, top)
        t = self.terminal
        return self._apply_geometry(f"window top {top}", lambda: setattr(t, "window_top", top))

    def scroll_to_show(self, row: int) -> None:
        """Move the window the least distance that makes buffer ``row`` visible."""
        with self.lock:
            t = self.terminal
            wh = t.window_height
            top = t.window_top
            if row < top:
                top = row
            elif row >= top + wh:
                top = row - wh + 1
            top = max(0, min(top, t.buffer_height - wh))
            if top != t.window_top:
                self.scroll_window_to(top)

    def move_cursor(self, row: int, col: int = 0) -> bool:
        t = self.terminal

        def _move() -> None:
            t.cursor_row = row
            t.cursor_col = col

        return self._apply_geometry(f"cursor {row}:{col}", _move)

    def clear_region(
        self,
        foreground: str | None = None,
        background: str | None = None,
        indicator: str = "",
    ) -> None:
        """Blank one window of rows from the cursor row and return to its start.

        The window keeps the cursor at the same relative height. ``indicator``
        is written right-aligned on the last blanked row.
        """
        with self.lock:
            t = self.terminal
            if foreground is not None:
                t.foreground = foreground
            if background is not None:
                t.background = background
            self.ensure_capacity()
            pos_in_window = max(0, t.cursor_row - t.window_top)
            wh = t.window_height
            t.cursor_col = 0
            # Writing may scroll the buffer, so the start row is recomputed afterwards.
            t.write(" " * (t.buffer_width * wh))
            t.cursor_col = 0
            start = max(0, t.cursor_row - wh)
            t.cursor_row = start
            self.last_row = start
            if indicator:
                self._write_indicator(indicator, min(start + wh - 1, t.buffer_height - 1))
            self.scroll_window_to(start - pos_in_window)

    def _write_indicator(self, indicator: str, row: int) -> None:
        t = self.terminal
        text = indicator[: max(0, t.buffer_width - 1)]
        if not text:
            return
        origin_row, origin_col = t.cursor_row, t.cursor_col
        t.cursor_row = row
        t.cursor_col = t.buffer_width - 1 - len(text)
        t.write(text)
        t.cursor_row = origin_row
        t.cursor_col = origin_col

    # output

    def write(self, text: str, foreground: str | None = None, background: str | None = None) -> None:
        with self.lock:
            t = self.terminal
            if foreground is not None:
                t.foreground = foreground
            if background is not None:
                t.background = background
            t.write(text)

    def write_line(self, text: str = "", foreground: str | None = None, background: str | None = None) -> None:
        self.write(text + "\n", foreground, background)

    def print(self, text: str, foreground: str | None = None, background: str | None = None) -> None:
        """Write one complete line from any thread, starting on a fresh row."""
        with self.lock:
            t = self.terminal
            saved = (t.foreground, t.background)
            if t.cursor_col > 0:
                t.write("\n")
            self.write_line(text, foreground, background)
            t.foreground, t.background = saved
            t.flush()

    # idle scrollback

    def _wait_for_key(self, idle_polls: int, poll_seconds: float) -> KeyEvent | None:
        t = self.terminal
        for _ in range(max(1, idle_polls)):
            if t.wait_key(poll_seconds):
                return t.read_key()
        return None

    def scrollback(self, first_key: KeyEvent, idle_polls: int = 50, poll_seconds: float = 0.1) -> KeyEvent | None:
        """Browse the buffer with Up/Down/PageUp/PageDown, then snap back.

        Returns the non-scroll key that ended browsing, or ``None`` when the
        mode timed out after ``idle_polls`` quiet polls.
        """
        with self.lock:
            t = self.terminal
            origin_row = t.cursor_row
            origin_top = t.window_top
            half = max(1, t.window_height // 2)
            key: KeyEvent | None = first_key
            ended_by: KeyEvent | None = None
            while key is not None:
                row = t.cursor_row
                if key.code == keys.UP:
                    row = max(0, row - 1)
                elif key.code == keys.DOWN:
                    row = min(t.buffer_height - 1, row + 1)
                elif key.code == keys.PAGE_UP:
                    row = max(0, row - half)
                elif key.code == keys.PAGE_DOWN:
                    row = min(t.buffer_height - 1, row + half)
                else:
                    ended_by = key
                    break
                t.cursor_row = row
                self.scroll_to_show(row)
                key = self._wait_for_key(idle_polls, poll_seconds)
            t.cursor_row = min(origin_row, t.buffer_height - 1)
            t.cursor_col = 0
            self.scroll_window_to(min(origin_top, t.buffer_height - t.window_height))
            return ended_by
