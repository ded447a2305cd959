"""Greedy subsequence matching for command names.

Matching is case-insensitive and strictly left to right: every query
character takes its first occurrence after the previous hit and earlier picks
are never revisited. That keeps each candidate linear in its length and the
highlighted positions deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .registry import Command


@dataclass(frozen=True)
class MatchResult:
    command: Command
    positions: tuple[int, ...]

    @property
    def name(self) -> str:
        return self.command.name


def _fold(text: str) -> str:
    # Offsets must index the unfolded text, so folding may not change length.
    out = []
    for ch in text:
        folded = ch.casefold()
        out.append(folded if len(folded) == 1 else ch.lower()[:1] or ch)
    return "".join(out)


def match_positions(haystack: str, needle: str) -> list[int]:
    """Return offsets of ``needle`` characters found in order in ``haystack``.

    The list has one offset per needle character when the needle is a
    subsequence reachable by greedy picks. Otherwise it stops at the first
    character that could not be placed, so it is shorter than the needle.
    """
    haystack_folded = _fold(haystack)
    needle_folded = _fold(needle)
    positions: list[int] = []
    idx = -1
    for ch in needle_folded:
        idx = haystack_folded.find(ch, idx + 1)
        if idx < 0:
            return positions
        positions.append(idx)
    return positions


def is_match(haystack: str, needle: str) -> bool:
    return len(match_positions(haystack, needle)) == len(needle)


def filter_commands(query: str, commands: Iterable[Command]) -> list[MatchResult]:
    """Keep commands whose name matches ``query``, preserving input order."""
    results: list[MatchResult] = []
    expected = len(query)
    for command in commands:
        positions = match_positions(command.name, query)
        if len(positions) != expected:
            continue
        results.append(MatchResult(command=command, positions=tuple(positions)))
    return results


def highlight_runs(text: str, positions: Iterable[int]) -> list[tuple[str, bool]]:
    """Split ``text`` into ``(run, matched)`` pieces for styled rendering."""
    runs: list[tuple[str, bool]] = []
    pos = 0
    for p in positions:
        if p < pos or p >= len(text):
            continue
        if p > pos:
            runs.append((text[pos:p], False))
        if runs and runs[-1][1]:
            runs[-1] = (runs[-1][0] + text[p], True)
        else:
            runs.append((text[p], True))
        pos = p + 1
    if pos < len(text):
        runs.append((text[pos:], False))
    return runs
