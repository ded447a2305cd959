"""Thread-safe command registry with priority groups.

Commands sort by priority (higher first) and then by name. Priorities grow
monotonically: adding with priority ``0`` opens a new top group, priority
``1`` joins the current top group, and executing a command lifts it above
everything else, so recently added and recently used commands surface first.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

Action = Callable[[], object]

NEW_GROUP = 0
CURRENT_GROUP = 1
DEFAULT_INITIAL_PRIORITY = 10


@dataclass(frozen=True)
class Command:
    name: str
    action: Action
    priority: int


def _order_key(command: Command) -> tuple[int, str]:
    return (-command.priority, command.name)


class CommandRegistry:
    """Named zero-argument actions shared between the host and the launcher.

    All reads and writes take one mutex; ``snapshot`` copies the ordered
    commands out so matching and rendering never hold it.
    """

    def __init__(self, initial_priority: int = DEFAULT_INITIAL_PRIORITY) -> None:
        self._lock = threading.Lock()
        self._commands: dict[str, Command] = {}
        self._max_priority = initial_priority

    @property
    def max_priority(self) -> int:
        with self._lock:
            return self._max_priority

    def add(self, name: str, action: Action, priority: int = NEW_GROUP) -> int:
        """Insert or replace ``name`` and return the priority it received.

        Returning the priority lets a caller add several commands into the
        group the first one opened. Blank names are ignored.
        """
        if not name or not name.strip():
            return priority
        with self._lock:
            if priority == NEW_GROUP:
                self._max_priority += 1
                priority = self._max_priority
            elif priority == CURRENT_GROUP:
                priority = self._max_priority
            elif priority > self._max_priority:
                self._max_priority = priority
            replaced = name in self._commands
            self._commands[name] = Command(name=name, action=action, priority=priority)
        logger.debug("%s command %r at priority %d", "replaced" if replaced else "added", name, priority)
        return priority

    def remove(self, name: str) -> None:
        with self._lock:
            removed = self._commands.pop(name, None)
        if removed is not None:
            logger.debug("removed command %r", name)

    def touch(self, name: str) -> Command | None:
        """Move ``name`` above every other command; ``None`` when it is gone."""
        with self._lock:
            command = self._commands.get(name)
            if command is None:
                return None
            self._max_priority += 1
            command = Command(name=command.name, action=command.action, priority=self._max_priority)
            self._commands[name] = command
            return command

    def get(self, name: str) -> Command | None:
        with self._lock:
            return self._commands.get(name)

    def snapshot(self) -> tuple[Command, ...]:
        with self._lock:
            commands = list(self._commands.values())
        commands.sort(key=_order_key)
        return tuple(commands)

    def names(self) -> list[str]:
        return [command.name for command in self.snapshot()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._commands
