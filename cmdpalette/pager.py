"""Paced output with mid-stream user direction.

Long output is written by a generator that yields after every unit of output
(a line, a record). ``Pager.page`` is the single consumer: after each yield it
ticks, and once the user answers a pause with words or numbers it closes the
generator and returns the ``PagerSignal``. Nested output loops delegate with
``yield from``, so closing the outermost generator unwinds all of them
without any frame passing a status code up by hand.

A pause reads one response line. Tokens are separated by commas or spaces:
``next`` is a word, ``7`` a number, ``3-5`` the numbers 3, 4 and 5.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Generator, Iterable, Sequence
from dataclasses import dataclass

from . import keys
from .errors import FaultLog, SelectionOutOfRange, UnparsableResponse, null_fault_log
from .keys import KeyEvent
from .surface import TerminalSurface
from .theme import DEFAULT_THEME, LauncherTheme

logger = logging.getLogger(__name__)

Output = Iterable[object]

_TOKEN_SPLIT_RE = re.compile(r"[,\s]+")
_NUMBER_RE = re.compile(r"\d+")
_RANGE_RE = re.compile(r"(\d+)-(\d+)")

MAX_RANGE_SPAN = 1000


@dataclass(frozen=True)
class PagerSignal:
    """Words and numbers the user typed at a pause."""

    words: tuple[str, ...] = ()
    numbers: tuple[int, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.words and not self.numbers


@dataclass(frozen=True)
class Choice:
    """Result of ``Pager.choose``: zero-based indexes plus any typed words."""

    indexes: tuple[int, ...]
    words: tuple[str, ...] = ()


def parse_response(text: str) -> PagerSignal:
    """Parse a pause response into words and numbers.

    Raises ``UnparsableResponse`` on the first token that is neither an
    alphabetic word, an integer, nor an ``a-b`` range of at most
    ``MAX_RANGE_SPAN`` numbers.
    """
    words: list[str] = []
    numbers: list[int] = []
    for token in _TOKEN_SPLIT_RE.split(text.strip()):
        if not token:
            continue
        if token.isalpha():
            words.append(token)
            continue
        if _NUMBER_RE.fullmatch(token):
            numbers.append(int(token))
            continue
        match = _RANGE_RE.fullmatch(token)
        if match is None:
            raise UnparsableResponse(text, token)
        low, high = sorted((int(match.group(1)), int(match.group(2))))
        if high - low >= MAX_RANGE_SPAN:
            raise UnparsableResponse(text, token)
        numbers.extend(range(low, high + 1))
    return PagerSignal(words=tuple(words), numbers=tuple(numbers))


class Pager:
    def __init__(
        self,
        surface: TerminalSurface,
        *,
        theme: LauncherTheme = DEFAULT_THEME,
        log: FaultLog = null_fault_log,
        idle_polls: int = 50,
        poll_seconds: float = 0.1,
    ) -> None:
        self.surface = surface
        self.theme = theme
        self.log = log
        self.idle_polls = idle_polls
        self.poll_seconds = poll_seconds
        self._ticks = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    def start(self) -> None:
        """Open a fresh page below the cursor and reset the tick count."""
        with self.surface.lock:
            t = self.surface.terminal
            if t.cursor_col > 0:
                t.write("\n")
            self.surface.clear_region(self.theme.text, self.theme.background)
        self._ticks = 0

    def _should_pause(self, force: bool) -> bool:
        if force:
            return True
        if self.surface.terminal.key_available():
            return True
        return self._ticks > self.surface.terminal.window_height - 2

    def tick(self, force: bool = False) -> PagerSignal | None:
        """Count one unit of output and pause when due.

        ``None`` means "keep going". A forced tick always pauses and turns an
        empty response into an empty ``PagerSignal``; an unforced empty
        response continues on a fresh page. Malformed responses are logged
        and produce no signal.
        """
        self._ticks += 1
        if not self._should_pause(force):
            return None
        with self.surface.lock:
            self._ticks = 0
            text = self._read_response()
            if not text.strip():
                if force:
                    return PagerSignal()
                self.surface.clear_region(self.theme.text, self.theme.background, indicator="")
                return None
            try:
                signal = parse_response(text)
            except UnparsableResponse as exc:
                self.log("ignoring pager response", exc)
                self.surface.write_line(f"? {exc}", self.theme.warning)
                return None
            logger.debug("pager signal %r", signal)
            return signal

    def _echo(self, response: str) -> None:
        t = self.surface.terminal
        t.cursor_col = 0
        visible = response[-max(1, t.buffer_width - 3):]
        self.surface.write(f"{visible}  ", self.theme.pager_indicator)
        t.cursor_col = min(len(visible), t.buffer_width - 1)

    def _read_response(self) -> str:
        """Edit one response line; Escape abandons it, arrows browse scrollback."""
        t = self.surface.terminal
        saved_colors = (t.foreground, t.background)
        response = ""
        self._echo(response)
        key: KeyEvent | None = t.read_key()
        try:
            while True:
                if key is None:
                    key = t.read_key()
                    continue
                if key.code == keys.ENTER:
                    t.write("\n")
                    return response
                if key.code in (keys.ESC, keys.CTRL_C):
                    t.write("\n")
                    return ""
                if key.code in keys.SCROLL_KEYS:
                    key = self.surface.scrollback(key, self.idle_polls, self.poll_seconds)
                    self._echo(response)
                    continue
                if key.code == keys.DELETE:
                    response = ""
                elif key.code == keys.BACKSPACE:
                    response = response[:-1]
                elif key.is_char:
                    response += key.char
                self._echo(response)
                key = t.read_key()
        finally:
            t.foreground, t.background = saved_colors

    def page(self, output: Output) -> PagerSignal:
        """Drive ``output`` until the user signals, pausing a page at a time.

        The generator is closed when a signal arrives mid-stream; exhausting it
        ends with forced pauses until the user answers.
        """
        iterator = iter(output)
        self.start()
        try:
            for _ in iterator:
                signal = self.tick()
                if signal is not None:
                    return signal
            while True:
                signal = self.tick(force=True)
                if signal is not None:
                    return signal
        finally:
            close = getattr(iterator, "close", None)
            if close is not None:
                close()

    def _menu_lines(self, labels: Sequence[str]) -> Generator[None, None, None]:
        width = len(str(len(labels)))
        for number, label in enumerate(labels, start=1):
            self.surface.write_line(f"{number:>{width}} {label}", self.theme.text, self.theme.background)
            yield

    def choose(self, labels: Sequence[str]) -> Choice:
        """Offer numbered ``labels`` and return what the user picked.

        Numbers outside ``1..len(labels)`` are reported and the menu is shown
        again; nothing is picked from a response containing one.
        """
        while True:
            signal = self.page(self._menu_lines(labels))
            try:
                indexes = tuple(self._validate(number, len(labels)) for number in signal.numbers)
            except SelectionOutOfRange as exc:
                self.surface.write_line(str(exc), self.theme.warning)
                continue
            return Choice(indexes=indexes, words=signal.words)

    @staticmethod
    def _validate(number: int, count: int) -> int:
        if not 1 <= number <= count:
            raise SelectionOutOfRange(number, count)
        return number - 1
