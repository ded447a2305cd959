"""Interactive command selection loop.

The launcher idles polling for input. Bare scroll keys browse the scroll
buffer; any other key opens a filter session that narrows the registry with
every keystroke, renders the candidates over one window, and runs the chosen
command on Enter. The loop ends when the reserved exit command runs.
"""

from __future__ import annotations

import logging

from . import keys
from .config import LauncherConfig
from .errors import ActionFault, FaultLog
from .fuzzy import filter_commands, highlight_runs
from .keys import KeyBindings, KeyEvent
from .pager import Pager
from .registry import CommandRegistry
from .state import FilterSession, SelectorState
from .surface import TerminalSurface
from .theme import LauncherTheme, get_theme

logger = logging.getLogger(__name__)

MARKER = "»"


def list_scroll_offset(selected: int, count: int, visible_rows: int) -> int:
    """First list index to draw so ``selected`` stays visible.

    The selection sits mid-window when possible; the list never scrolls past
    its first or last entry.
    """
    visible_rows = max(1, visible_rows)
    skip = selected - visible_rows // 2
    skip = min(skip, count - visible_rows)
    return max(0, skip)


class CommandLauncher:
    def __init__(
        self,
        registry: CommandRegistry,
        surface: TerminalSurface,
        *,
        config: LauncherConfig | None = None,
        theme: LauncherTheme | None = None,
        log: FaultLog | None = None,
    ) -> None:
        self.registry = registry
        self.surface = surface
        self.config = config if config is not None else LauncherConfig()
        self.theme = theme if theme is not None else get_theme(self.config.theme)
        self.log = log if log is not None else surface.log
        self._running = False
        self._state = SelectorState.IDLE
        self._current_command: str | None = None
        self._session: FilterSession | None = None
        self._bindings = (
            KeyBindings()
            .bind(self._key_enter, keys.ENTER)
            .bind(self._key_cancel, keys.ESC, keys.CTRL_C)
            .bind(self._key_down, keys.DOWN)
            .bind(self._key_up, keys.UP)
            .bind(self._key_home, keys.HOME)
            .bind(self._key_backspace, keys.BACKSPACE)
        )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> SelectorState:
        return self._state

    @property
    def current_command(self) -> str | None:
        """Name of the command executed most recently."""
        return self._current_command

    def stop(self) -> None:
        """Ask the loop to end; checked before the next poll."""
        self._running = False

    def pager(self) -> Pager:
        """A pager sharing this launcher's surface, theme, and fault log."""
        return Pager(
            self.surface,
            theme=self.theme,
            log=self.log,
            idle_polls=self.config.scrollback_idle_polls,
            poll_seconds=self.config.scrollback_poll_seconds,
        )

    # main loop

    def run(self) -> None:
        """Poll for keys and dispatch them until the exit command runs.

        The surface lock is taken only once a key is pending. Terminal
        failures (closed input, tty errors) propagate to the caller.
        """
        config = self.config
        self._running = True
        self.registry.add(config.exit_command_name, self.stop, config.exit_command_priority)
        terminal = self.surface.terminal
        while self._running:
            if not terminal.wait_key(config.poll_interval_seconds):
                continue
            with self.surface.lock:
                if not terminal.key_available():
                    # Another thread consumed the key while we waited for the lock.
                    continue
                key: KeyEvent | None = terminal.read_key()
                while key is not None and key.code in keys.SCROLL_KEYS:
                    key = self.surface.scrollback(
                        key,
                        config.scrollback_idle_polls,
                        config.scrollback_poll_seconds,
                    )
                if key is not None:
                    self.filter(key)
                terminal.flush()
        logger.debug("command loop ended")

    # filter session

    def open_session(self) -> FilterSession:
        """Clear a window below the cursor and start an empty query there."""
        terminal = self.surface.terminal
        self._state = SelectorState.FILTERING
        if terminal.cursor_col > 0:
            terminal.write("\n")
        self.surface.clear_region(self.theme.prompt_text, self.theme.prompt_background)
        origin = self.surface.save_state()
        # Pull the session start to the top of the window.
        self.surface.scroll_window_to(terminal.cursor_row)
        session = FilterSession(origin=origin)
        session.matches = filter_commands("", self.registry.snapshot())
        self._session = session
        return session

    def filter(self, first_key: KeyEvent) -> None:
        """Run one filter session starting with ``first_key``."""
        with self.surface.lock:
            terminal = self.surface.terminal
            entry = self.surface.save_state()
            session: FilterSession | None = None
            closed = False
            try:
                session = self.open_session()
                key = first_key
                while True:
                    if self.handle_key(session, key):
                        closed = True
                        break
                    self.render(session)
                    key = terminal.read_key()
            finally:
                if not closed:
                    if session is not None:
                        self.surface.restore_state(session.origin)
                    terminal.foreground = entry.foreground
                    terminal.background = entry.background
                self._session = None
                self._state = SelectorState.IDLE

    def handle_key(self, session: FilterSession, key: KeyEvent) -> bool:
        """Apply ``key`` to ``session``; ``True`` once the session is over."""
        self._session = session
        handled = self._bindings.dispatch(key)
        if handled is not None:
            return handled
        if key.is_char and self._accepts(key.char):
            session.query += key.char
            self._refilter(session)
        return False

    def _accepts(self, ch: str) -> bool:
        return ch.isalnum() or ch in self.config.allowed_punctuation

    def _refilter(self, session: FilterSession) -> None:
        """Match the query against a fresh snapshot of the whole registry."""
        snapshot = self.registry.snapshot()
        session.matches = filter_commands(session.query, snapshot)
        session.selected = 0
        if not session.matches and session.query:
            session.message = f"no matching command for {session.query}"
            logger.debug(session.message)
            session.query = ""
            session.matches = filter_commands("", snapshot)

    def _move_selection(self, delta: int) -> bool:
        session = self._session
        last = max(0, len(session.matches) - 1)
        session.selected = max(0, min(last, session.selected + delta))
        return False

    def _key_down(self, _key: KeyEvent) -> bool:
        return self._move_selection(1)

    def _key_up(self, _key: KeyEvent) -> bool:
        return self._move_selection(-1)

    def _key_home(self, _key: KeyEvent) -> bool:
        self._session.selected = 0
        return False

    def _key_backspace(self, _key: KeyEvent) -> bool:
        session = self._session
        if session.query:
            session.query = session.query[:-1]
            self._refilter(session)
        return False

    def _close_session(self, session: FilterSession) -> None:
        self.surface.restore_state(session.origin)
        self.surface.terminal.cursor_col = 0
        self.surface.clear_region(self.theme.text, self.theme.background)

    def _key_cancel(self, _key: KeyEvent) -> bool:
        self._close_session(self._session)
        return True

    def _key_enter(self, _key: KeyEvent) -> bool:
        session = self._session
        self._close_session(session)
        if not session.query.strip():
            return True
        if session.selected < len(session.matches):
            self.execute(session.matches[session.selected].name)
        else:
            self.log(f"selection {session.selected} outside {len(session.matches)} matches", None)
        return True

    # rendering

    def render(self, session: FilterSession) -> None:
        """Draw the candidate list (or a pending message) over one window."""
        self._state = SelectorState.DISPLAYING
        terminal = self.surface.terminal
        theme = self.theme
        self.surface.move_cursor(session.origin.cursor_row)
        if session.message:
            self.surface.clear_region(theme.no_match_text, theme.no_match_background)
            self.surface.write_line(session.message)
            session.message = ""
            self._state = SelectorState.FILTERING
            return

        visible = max(1, terminal.window_height - 1)
        count = len(session.matches)
        session.selected = max(0, min(session.selected, count - 1))
        session.scroll = list_scroll_offset(session.selected, count, visible)
        self.surface.clear_region(theme.list_text, theme.list_background, indicator=session.query)
        top = terminal.cursor_row
        width = max(1, terminal.buffer_width - 2)
        for i in range(visible):
            # A pending key will redraw anyway.
            if terminal.key_available():
                break
            idx = session.scroll + i
            if idx >= count:
                break
            match = session.matches[idx]
            terminal.cursor_row = top + i
            terminal.cursor_col = 1
            for run, matched in highlight_runs(match.name[:width], match.positions):
                terminal.foreground = theme.list_match if matched else theme.list_text
                terminal.write(run)
        if count:
            terminal.cursor_row = top + session.selected - session.scroll
            terminal.cursor_col = 0
            terminal.foreground = theme.marker
            terminal.write(MARKER)
        terminal.cursor_col = 0
        terminal.foreground = theme.list_text
        self._state = SelectorState.FILTERING

    # execution

    def execute(self, name: str) -> bool:
        """Promote and run command ``name``; faults are logged, never raised."""
        command = self.registry.touch(name)
        if command is None:
            self.log(f"command {name!r} is no longer registered", None)
            return False
        self._state = SelectorState.EXECUTING
        self._current_command = name
        theme = self.theme
        self.surface.write(MARKER, theme.executed, theme.background)
        self.surface.write_line(name)
        self.surface.write("", theme.text, theme.background)
        try:
            command.action()
        except Exception as exc:
            fault = ActionFault(name, exc)
            self.log(str(fault), fault)
            return False
        finally:
            self._state = SelectorState.IDLE
        return True
