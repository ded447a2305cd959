"""Public package surface for cmdpalette.

An embeddable fuzzy command launcher: hosts register named actions on a
``CommandRegistry`` and hand it to a ``CommandLauncher`` running over a
``TerminalSurface``. ``Pager`` paces long command output.
"""

from __future__ import annotations

import logging

from .config import LauncherConfig, load_launcher_config
from .discovery import CommandTable, discover
from .errors import (
    ActionFault,
    FaultLog,
    GeometryRejected,
    LauncherError,
    SelectionOutOfRange,
    UnparsableResponse,
    logging_fault_log,
    null_fault_log,
)
from .fuzzy import MatchResult, filter_commands, is_match, match_positions
from .keys import KeyEvent
from .launcher import CommandLauncher
from .pager import Choice, Pager, PagerSignal, parse_response
from .registry import Command, CommandRegistry
from .state import SelectorState
from .surface import TerminalSurface, ViewportState
from .terminal import TerminalIO, VirtualTerminal

logging.getLogger(__name__).addHandler(logging.NullHandler())


def main(*args, **kwargs):
    """Lazily import the demo CLI entrypoint."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "ActionFault",
    "Choice",
    "Command",
    "CommandLauncher",
    "CommandRegistry",
    "CommandTable",
    "FaultLog",
    "GeometryRejected",
    "KeyEvent",
    "LauncherConfig",
    "LauncherError",
    "MatchResult",
    "Pager",
    "PagerSignal",
    "SelectionOutOfRange",
    "SelectorState",
    "TerminalIO",
    "TerminalSurface",
    "UnparsableResponse",
    "ViewportState",
    "VirtualTerminal",
    "discover",
    "filter_commands",
    "is_match",
    "load_launcher_config",
    "logging_fault_log",
    "main",
    "match_positions",
    "null_fault_log",
    "parse_response",
]
