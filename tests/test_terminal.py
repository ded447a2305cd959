"""Tests for the raw-mode tty backend.

Verifies raw-mode lifecycle safety, colour sequences, and that flushing only
repaints window rows that changed since the last paint.
"""

from __future__ import annotations

import os
import termios
import unittest
from unittest import mock

from cmdpalette.terminal.ansi import AnsiTerminal, background_code, foreground_code


def _terminal(columns: int = 20, lines: int = 5) -> AnsiTerminal:
    with mock.patch("cmdpalette.terminal.ansi.termios.tcgetattr", return_value=[0]), mock.patch(
        "cmdpalette.terminal.ansi.shutil.get_terminal_size", return_value=os.terminal_size((columns, lines))
    ):
        return AnsiTerminal(stdin_fd=0, stdout_fd=1)


class ColorCodeTests(unittest.TestCase):
    def test_background_codes_mirror_foreground_codes(self) -> None:
        self.assertEqual(foreground_code("blue"), "\x1b[34m")
        self.assertEqual(background_code("blue"), "\x1b[44m")
        self.assertEqual(background_code("brightred"), "\x1b[101m")

    def test_unknown_colors_fall_back(self) -> None:
        self.assertEqual(foreground_code("no-such-color"), "\x1b[39;49;00m")
        self.assertEqual(background_code("no-such-color"), "")


class AnsiTerminalTests(unittest.TestCase):
    def test_geometry_follows_terminal_size(self) -> None:
        terminal = _terminal(columns=30, lines=6)

        self.assertEqual(terminal.buffer_width, 30)
        self.assertEqual(terminal.window_height, 6)
        self.assertEqual(terminal.buffer_height, 24)

    def test_enable_and_disable_raw_mode_use_alternate_screen_sequences(self) -> None:
        saved_state = [1, 2, 3]

        with mock.patch("cmdpalette.terminal.ansi.termios.tcgetattr", return_value=saved_state), mock.patch(
            "cmdpalette.terminal.ansi.tty.setraw"
        ) as setraw_mock, mock.patch("cmdpalette.terminal.ansi.os.write") as write_mock, mock.patch(
            "cmdpalette.terminal.ansi.termios.tcsetattr"
        ) as setattr_mock:
            terminal = AnsiTerminal(stdin_fd=0, stdout_fd=1)
            with terminal.raw_mode() as active:
                self.assertIs(active, terminal)

        setraw_mock.assert_called_once_with(0, termios.TCSAFLUSH)
        self.assertEqual(write_mock.call_args_list[0].args, (1, b"\x1b[?1049h\x1b[2J"))
        self.assertEqual(write_mock.call_args_list[1].args, (1, b"\x1b[0m\x1b[?1049l"))
        setattr_mock.assert_called_once_with(0, termios.TCSAFLUSH, saved_state)

    def test_raw_mode_restores_terminal_after_exception(self) -> None:
        terminal = _terminal()

        with mock.patch.object(terminal, "enable_raw_mode") as enable_mock, mock.patch.object(
            terminal, "disable_raw_mode"
        ) as disable_mock:
            with self.assertRaises(RuntimeError):
                with terminal.raw_mode():
                    raise RuntimeError("boom")

        enable_mock.assert_called_once()
        disable_mock.assert_called_once()

    def test_flush_repaints_only_changed_rows(self) -> None:
        terminal = _terminal()
        terminal.write("hi")

        with mock.patch("cmdpalette.terminal.ansi.os.write") as write_mock:
            terminal.flush()
            first = write_mock.call_args.args[1].decode("utf-8")
            terminal.flush()
            second = write_mock.call_args.args[1].decode("utf-8")
            terminal.write("\nyo")
            terminal.flush()
            third = write_mock.call_args.args[1].decode("utf-8")

        self.assertIn("\x1b[1;1H", first)
        self.assertIn("\x1b[5;1H", first)
        self.assertIn("hi", first)
        self.assertEqual(second, "\x1b[1;3H")
        self.assertNotIn("\x1b[1;1H", third)
        self.assertIn("\x1b[2;1H", third)
        self.assertIn("yo", third)
        self.assertTrue(third.endswith("\x1b[2;3H"))


if __name__ == "__main__":
    unittest.main()
