"""Capability interface the launcher needs from a terminal.

The launcher only ever talks to this protocol. Geometry setters raise
``GeometryRejected`` for requests outside the terminal's limits.
"""

from __future__ import annotations

from typing import Protocol

from ..keys import KeyEvent


class TerminalIO(Protocol):
    cursor_row: int
    cursor_col: int
    window_top: int
    buffer_height: int
    foreground: str
    background: str

    @property
    def window_height(self) -> int: ...

    @property
    def buffer_width(self) -> int: ...

    def write(self, text: str) -> None: ...

    def key_available(self) -> bool: ...

    def wait_key(self, timeout: float) -> bool: ...

    def read_key(self) -> KeyEvent: ...

    def flush(self) -> None: ...
