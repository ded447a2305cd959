"""Terminal backends behind the ``TerminalIO`` capability interface."""

from .base import TerminalIO
from .virtual import VirtualTerminal

__all__ = ["TerminalIO", "VirtualTerminal"]
