"""Key events, raw terminal key decoding, and key-code dispatch.

``decode_key`` reads bytes from a raw-mode tty and turns them into
``KeyEvent`` values. Escape sequences are read with a short timeout so a
lone ESC press is still reported promptly.
"""

from __future__ import annotations

import os
import select
from collections.abc import Callable
from dataclasses import dataclass, field

ESC_SEQUENCE_TIMEOUT_MS = 25

CHAR = "CHAR"
ENTER = "ENTER"
ESC = "ESC"
BACKSPACE = "BACKSPACE"
DELETE = "DELETE"
TAB = "TAB"
UP = "UP"
DOWN = "DOWN"
LEFT = "LEFT"
RIGHT = "RIGHT"
HOME = "HOME"
END = "END"
PAGE_UP = "PAGE_UP"
PAGE_DOWN = "PAGE_DOWN"
CTRL_C = "CTRL_C"
UNKNOWN = "UNKNOWN"

SCROLL_KEYS = frozenset({UP, DOWN, PAGE_UP, PAGE_DOWN})

_PENDING_BYTES: list[bytes] = []


@dataclass(frozen=True)
class KeyEvent:
    """One key press: a key code, the typed character, and modifier names."""

    code: str
    char: str = ""
    modifiers: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of_char(cls, ch: str) -> KeyEvent:
        return cls(CHAR, ch)

    @property
    def is_char(self) -> bool:
        return self.code == CHAR and bool(self.char)


def keys_for_text(text: str) -> list[KeyEvent]:
    """Translate typed text into key events; ``\\n`` becomes Enter."""
    return [KeyEvent(ENTER, "\r") if ch == "\n" else KeyEvent.of_char(ch) for ch in text]


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _read_utf8_tail(fd: int, lead: bytes) -> str:
    first = lead[0]
    if first >= 0xF0:
        extra = 3
    elif first >= 0xE0:
        extra = 2
    elif first >= 0xC0:
        extra = 1
    else:
        extra = 0
    data = lead
    for _ in range(extra):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data.decode("utf-8", errors="replace")


def has_pending_bytes() -> bool:
    return bool(_PENDING_BYTES)


def decode_key(fd: int, timeout_ms: int | None = None) -> KeyEvent | None:
    """Read one key from ``fd``; ``None`` when ``timeout_ms`` elapses first."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return None
        ch = os.read(fd, 1)
        if not ch:
            raise EOFError("terminal input closed")

    if ch in {b"\r", b"\n"}:
        return KeyEvent(ENTER, "\r")
    if ch in {b"\x08", b"\x7f"}:
        return KeyEvent(BACKSPACE)
    if ch == b"\t":
        return KeyEvent(TAB, "\t")
    if ch == b"\x03":
        return KeyEvent(CTRL_C, modifiers=frozenset({"ctrl"}))
    if ch != b"\x1b":
        if ch[0] < 0x20:
            return KeyEvent(UNKNOWN, modifiers=frozenset({"ctrl"}))
        return KeyEvent.of_char(_read_utf8_tail(fd, ch))

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyEvent(ESC)
    if seq == b"O":
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        return KeyEvent({b"H": HOME, b"F": END}.get(final or b"", ESC))
    if seq != b"[":
        _PENDING_BYTES.append(seq)
        return KeyEvent(ESC)
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyEvent(ESC)
    simple = {b"A": UP, b"B": DOWN, b"C": RIGHT, b"D": LEFT, b"H": HOME, b"F": END}
    if seq in simple:
        return KeyEvent(simple[seq])
    if seq.isdigit():
        # ESC [ <n> ~ editing keys
        digits = seq
        while True:
            part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if part is None:
                return KeyEvent(ESC)
            if part == b"~":
                break
            digits += part
            if len(digits) > 8:
                return KeyEvent(UNKNOWN)
        tilde = {
            b"1": HOME,
            b"7": HOME,
            b"4": END,
            b"8": END,
            b"3": DELETE,
            b"5": PAGE_UP,
            b"6": PAGE_DOWN,
        }
        return KeyEvent(tilde.get(digits, UNKNOWN))
    return KeyEvent(UNKNOWN)


class KeyBindings:
    """Key-code dispatch table mapping codes to handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[KeyEvent], bool | None]] = {}

    def bind(self, handler: Callable[[KeyEvent], bool | None], *codes: str) -> KeyBindings:
        """Register ``handler`` for every code, overwriting earlier bindings."""
        for code in codes:
            self._handlers[code] = handler
        return self

    def __contains__(self, code: object) -> bool:
        return code in self._handlers

    def dispatch(self, key: KeyEvent) -> bool | None:
        """Invoke the handler bound to ``key.code``; ``None`` when unbound."""
        handler = self._handlers.get(key.code)
        if handler is None:
            return None
        return handler(key)
