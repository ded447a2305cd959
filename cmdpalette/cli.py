"""Demo front door: ``python -m cmdpalette``.

Registers a handful of sample commands and runs the launcher on the current
terminal. Press any letter to start filtering, Enter to run, Escape to
cancel; run "Exit application" to leave.
"""

from __future__ import annotations

import argparse
import sys
import uuid
from collections.abc import Generator

from .config import load_launcher_config
from .discovery import CommandTable
from .errors import logging_fault_log
from .launcher import CommandLauncher
from .registry import CommandRegistry
from .surface import TerminalSurface
from .theme import available_theme_names, get_theme


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_demo_table(launcher: CommandLauncher) -> CommandTable:
    """Sample commands exercising output, paging, and live registration."""
    table = CommandTable()
    surface = launcher.surface

    @table.command("hello")
    def hello() -> None:
        surface.write_line("hello")

    @table.command("print a lot of lines")
    def print_lines() -> None:
        terminal = surface.terminal
        for _ in range(50):
            surface.write_line(f"ct={terminal.cursor_row} bh={terminal.buffer_height}")

    @table.command("show terminal geometry")
    def show_geometry() -> None:
        t = surface.terminal
        surface.write_line(
            f"c: {t.cursor_col}/{t.cursor_row} w: {t.window_top} ({t.buffer_width}x{t.window_height}) "
            f"b: {t.buffer_width}x{t.buffer_height}"
        )

    @table.command("pick a number")
    def pick_number() -> None:
        labels = [f"option {idx}" for idx in range(1, 31)]
        choice = launcher.pager().choose(labels)
        picked = ", ".join(labels[idx] for idx in choice.indexes) or "nothing"
        surface.write_line(f"picked {picked}")

    @table.command("add just a few more commands")
    def add_more() -> None:
        surface.write_line("adding more commands")
        for _ in range(3):
            launcher.registry.add(f"new command {uuid.uuid4()}", add_more)

    @table.command("fail on purpose")
    def fail() -> None:
        raise RuntimeError("this command always fails")

    @table.adder
    def add_pages(registry: CommandRegistry) -> None:
        def numbered_lines(count: int) -> Generator[None, None, None]:
            terminal = surface.terminal
            for idx in range(count):
                surface.write_line(f"{idx:>3} ct={terminal.cursor_row} bh={terminal.buffer_height}")
                yield

        def pages() -> None:
            signal = launcher.pager().page(numbered_lines(200))
            surface.write_line(f"got words={list(signal.words)} numbers={list(signal.numbers)}")

        registry.add("pages", pages)

    return table


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Fuzzy command launcher demo.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument(
        "--max-buffer-rows",
        type=_positive_int,
        default=None,
        help="Scroll buffer cap in rows (default: 8000).",
    )
    args = parser.parse_args(argv)

    if not sys.stdin.isatty() or not sys.stdout.isatty():
        raise SystemExit("cmdpalette needs an interactive terminal.")

    from .terminal.ansi import AnsiTerminal

    overrides: dict[str, object] = {}
    if args.theme is not None:
        overrides["theme"] = args.theme
    if args.max_buffer_rows is not None:
        overrides["max_buffer_rows"] = args.max_buffer_rows
    config = load_launcher_config(overrides)
    theme = get_theme(config.theme)

    log = logging_fault_log()
    terminal = AnsiTerminal(
        sys.stdin.fileno(),
        sys.stdout.fileno(),
        foreground=theme.text,
        background=theme.background,
    )
    surface = TerminalSurface(terminal, max_buffer_rows=config.max_buffer_rows, log=log)
    registry = CommandRegistry()
    launcher = CommandLauncher(registry, surface, config=config, theme=theme, log=log)
    build_demo_table(launcher).install(registry, log)

    with terminal.raw_mode():
        surface.print("type to search commands, Enter runs, Esc cancels")
        launcher.run()


if __name__ == "__main__":
    main()
