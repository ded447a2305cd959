"""Raw-mode tty backend for the launcher.

Keeps the scroll buffer in memory (see ``VirtualTerminal``) and repaints the
visible window on the alternate screen whenever the launcher is about to wait
for input. Colours come from ``pygments.console`` so colour names match the
ones used by themes.
"""

from __future__ import annotations

import contextlib
import os
import re
import select
import shutil
import termios
import tty

from pygments.console import codes as console_codes

from ..keys import KeyEvent, decode_key, has_pending_bytes
from .virtual import DEFAULT_MAX_BUFFER_HEIGHT, VirtualTerminal

_SGR_RE = re.compile(r"\x1b\[(\d+)m")


def foreground_code(color: str) -> str:
    return console_codes.get(color, console_codes["reset"])


def background_code(color: str) -> str:
    """Background SGR sequence for a ``pygments.console`` colour name."""
    match = _SGR_RE.fullmatch(console_codes.get(color, ""))
    if match is None:
        return ""
    value = int(match.group(1))
    # Only plain colours have a background twin; pygments aliases some names to attributes.
    if not (30 <= value <= 37 or 90 <= value <= 97):
        return ""
    return f"\x1b[{value + 10}m"


class AnsiTerminal(VirtualTerminal):
    """Terminal backend bound to real stdin/stdout file descriptors."""

    def __init__(
        self,
        stdin_fd: int,
        stdout_fd: int,
        *,
        buffer_height: int | None = None,
        max_buffer_height: int = DEFAULT_MAX_BUFFER_HEIGHT,
        foreground: str = "gray",
        background: str = "black",
    ) -> None:
        size = shutil.get_terminal_size((80, 24))
        window_height = max(3, size.lines)
        super().__init__(
            width=max(10, size.columns),
            window_height=window_height,
            buffer_height=buffer_height if buffer_height is not None else window_height * 4,
            max_buffer_height=max_buffer_height,
            max_empty_polls=None,
            foreground=foreground,
            background=background,
        )
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._painted: list[str] = []

    def enable_raw_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        # Enter alternate screen and clear it.
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[2J")
        self._painted = []

    def disable_raw_mode(self) -> None:
        # Reset colours and restore the main screen buffer.
        os.write(self.stdout_fd, b"\x1b[0m\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_raw_mode()
            yield self
        finally:
            self.disable_raw_mode()

    def _render_row(self, row: int) -> str:
        out: list[str] = []
        style: tuple[str, str] | None = None
        for ch, fg, bg in self._rows[row]:
            if (fg, bg) != style:
                style = (fg, bg)
                out.append(foreground_code(fg) + background_code(bg))
            out.append(ch)
        out.append(console_codes["reset"])
        return "".join(out)

    def flush(self) -> None:
        """Repaint changed window rows and place the hardware cursor."""
        frame = [self._render_row(row) for row in range(self.window_top, self.window_top + self.window_height)]
        parts: list[str] = []
        for idx, line in enumerate(frame):
            if idx < len(self._painted) and self._painted[idx] == line:
                continue
            parts.append(f"\x1b[{idx + 1};1H{line}")
        self._painted = frame
        screen_row = self.cursor_row - self.window_top
        if 0 <= screen_row < self.window_height:
            parts.append(f"\x1b[{screen_row + 1};{self.cursor_col + 1}H")
        if parts:
            os.write(self.stdout_fd, "".join(parts).encode("utf-8"))

    def key_available(self) -> bool:
        if has_pending_bytes():
            return True
        ready, _, _ = select.select([self.stdin_fd], [], [], 0)
        return bool(ready)

    def wait_key(self, timeout: float) -> bool:
        self.flush()
        if has_pending_bytes():
            return True
        ready, _, _ = select.select([self.stdin_fd], [], [], max(0.0, timeout))
        return bool(ready)

    def read_key(self) -> KeyEvent:
        self.flush()
        while True:
            key = decode_key(self.stdin_fd)
            if key is not None:
                return key
