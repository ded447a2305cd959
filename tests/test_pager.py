from __future__ import annotations

import unittest
from unittest import mock

from cmdpalette.errors import UnparsableResponse
from cmdpalette.keys import BACKSPACE, DELETE, ENTER, ESC, UP, KeyEvent
from cmdpalette.pager import Pager, PagerSignal, parse_response
from cmdpalette.surface import TerminalSurface
from cmdpalette.terminal import VirtualTerminal


class ParseResponseTests(unittest.TestCase):
    def test_numbers_and_ranges_expand_in_order(self) -> None:
        self.assertEqual(parse_response("1-3,5"), PagerSignal(numbers=(1, 2, 3, 5)))

    def test_words_and_reversed_range(self) -> None:
        signal = parse_response("next 4, 7-6 all")

        self.assertEqual(signal.words, ("next", "all"))
        self.assertEqual(signal.numbers, (4, 6, 7))

    def test_blank_response_is_empty_signal(self) -> None:
        self.assertTrue(parse_response("").empty)
        self.assertTrue(parse_response(" , ").empty)

    def test_malformed_tokens_raise(self) -> None:
        for text in ("1-", "x1", "-3", "2-x"):
            with self.subTest(text=text):
                with self.assertRaises(UnparsableResponse) as ctx:
                    parse_response(text)
                self.assertEqual(ctx.exception.text, text)

    def test_oversized_range_is_rejected_before_expanding(self) -> None:
        self.assertEqual(len(parse_response("1-1000").numbers), 1000)
        with self.assertRaises(UnparsableResponse) as ctx:
            parse_response("1-999999999")
        self.assertEqual(ctx.exception.token, "1-999999999")


class PagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.terminal = VirtualTerminal(width=30, window_height=5, buffer_height=40)
        self.log = mock.Mock()
        self.surface = TerminalSurface(self.terminal, log=self.log)
        self.pager = Pager(self.surface, log=self.log, idle_polls=2, poll_seconds=0)
        self.written: list[int] = []

    def _lines(self, count: int = 100):
        for idx in range(count):
            self.surface.write_line(f"line {idx}")
            self.written.append(idx)
            yield

    def test_pauses_every_window_and_stops_on_signal(self) -> None:
        with mock.patch.object(self.pager, "_read_response", side_effect=["", "", "quit"]) as read:
            signal = self.pager.page(self._lines())

        self.assertEqual(signal.words, ("quit",))
        self.assertEqual(read.call_count, 3)
        self.assertEqual(len(self.written), 12)

    def test_pending_input_pauses_at_once(self) -> None:
        self.terminal.feed_text("stop\n")

        signal = self.pager.page(self._lines())

        self.assertEqual(signal.words, ("stop",))
        self.assertEqual(self.written, [0])

    def test_exhausted_output_waits_for_an_answer(self) -> None:
        self.terminal.feed_text("done\n")

        signal = self.pager.page(iter(()))

        self.assertEqual(signal, PagerSignal(words=("done",)))

    def test_forced_pause_with_empty_response_returns_empty_signal(self) -> None:
        self.terminal.feed_text("\n")

        signal = self.pager.page(iter(()))

        self.assertTrue(signal.empty)
        self.assertFalse(self.terminal.key_available())

    def test_unforced_empty_response_continues_on_a_fresh_page(self) -> None:
        self.pager.start()
        self.surface.write_line("line a")
        self.terminal.feed_text("\n")

        self.assertIsNone(self.pager.tick())

        self.assertEqual(self.pager.ticks, 0)
        self.assertEqual(self.terminal.cursor_row, 2)
        self.assertEqual(self.surface.last_row, 2)
        self.assertEqual(self.terminal.row_text(0), "line a")

    def test_malformed_response_is_logged_and_output_continues(self) -> None:
        self.terminal.feed_text("x1\n\n\n")

        signal = self.pager.page(self._lines(2))

        self.assertTrue(signal.empty)
        self.assertEqual(self.written, [0, 1])
        self.log.assert_called_once()
        message, cause = self.log.call_args.args
        self.assertEqual(message, "ignoring pager response")
        self.assertIsInstance(cause, UnparsableResponse)

    def test_escape_abandons_typed_response(self) -> None:
        self.terminal.feed(KeyEvent.of_char("7"), KeyEvent(ESC))

        signal = self.pager.page(iter(()))

        self.assertTrue(signal.empty)

    def test_backspace_and_delete_edit_the_response(self) -> None:
        self.terminal.feed_text("12")
        self.terminal.feed(KeyEvent(BACKSPACE))
        self.terminal.feed_text("3")
        self.terminal.feed(KeyEvent(ENTER))

        self.assertEqual(self.pager.page(iter(())).numbers, (13,))

        self.terminal.feed_text("9")
        self.terminal.feed(KeyEvent(DELETE))
        self.terminal.feed_text("4\n")

        self.assertEqual(self.pager.page(iter(())).numbers, (4,))

    def test_scroll_key_browses_then_typing_resumes(self) -> None:
        self.terminal.feed(KeyEvent.of_char("1"), KeyEvent(UP), KeyEvent.of_char("2"), KeyEvent(ENTER))

        signal = self.pager.page(iter(()))

        self.assertEqual(signal.numbers, (12,))
        self.assertFalse(self.terminal.key_available())

    def test_signal_unwinds_nested_generators(self) -> None:
        closed: list[str] = []

        def inner():
            try:
                for idx in range(100):
                    self.surface.write_line(str(idx))
                    yield
            finally:
                closed.append("inner")

        def outer():
            try:
                yield from inner()
            finally:
                closed.append("outer")

        self.terminal.feed_text("next\n")

        signal = self.pager.page(outer())

        self.assertEqual(signal.words, ("next",))
        self.assertEqual(closed, ["inner", "outer"])

    def test_choose_repeats_menu_after_out_of_range_number(self) -> None:
        self.terminal.feed_text("5\n2\n")

        choice = self.pager.choose(["red", "green", "blue"])

        self.assertEqual(choice.indexes, (1,))
        self.assertNotEqual(self.terminal.find_row("no item 5 (choose 1-3)"), -1)

    def test_choose_returns_words_alongside_indexes(self) -> None:
        self.terminal.feed_text("1-2 keep\n")

        choice = self.pager.choose(["red", "green", "blue"])

        self.assertEqual(choice.indexes, (0, 1))
        self.assertEqual(choice.words, ("keep",))


if __name__ == "__main__":
    unittest.main()
