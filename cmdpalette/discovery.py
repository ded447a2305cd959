"""Static command tables built at import time.

Modules declare their commands with decorators on a ``CommandTable`` and the
host installs the table into a registry during setup::

    commands = CommandTable()

    @commands.command("print a lot of lines")
    def print_lines() -> None:
        ...

    @commands.adder
    def add_dynamic(registry: CommandRegistry) -> None:
        registry.add("pages", show_pages)

Commands of one table land in a single priority group; adders run afterwards
and may add whatever they like.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .errors import ActionFault, FaultLog, null_fault_log
from .registry import NEW_GROUP, Action, CommandRegistry

logger = logging.getLogger(__name__)

Adder = Callable[[CommandRegistry], object]


@dataclass(frozen=True)
class TableEntry:
    name: str
    action: Action


class CommandTable:
    def __init__(self) -> None:
        self._entries: list[TableEntry] = []
        self._adders: list[Adder] = []

    def command(self, name: str) -> Callable[[Action], Action]:
        """Decorator registering a zero-argument function under ``name``."""

        def _register(action: Action) -> Action:
            self._entries.append(TableEntry(name=name, action=action))
            return action

        return _register

    def add(self, name: str, action: Action) -> None:
        self._entries.append(TableEntry(name=name, action=action))

    def adder(self, func: Adder) -> Adder:
        """Decorator for functions that add commands to the registry themselves."""
        self._adders.append(func)
        return func

    def install(self, registry: CommandRegistry, log: FaultLog = null_fault_log) -> int:
        """Add every entry as one priority group, then run the adders.

        A failing adder is logged and skipped. Returns the number of table
        entries added.
        """
        added = discover(registry, ((entry.name, entry.action) for entry in self._entries), log)
        for func in self._adders:
            name = getattr(func, "__qualname__", repr(func))
            try:
                func(registry)
            except Exception as exc:
                fault = ActionFault(name, exc)
                log(str(fault), fault)
                continue
            logger.debug("ran command adder %s", name)
        return added


def discover(
    registry: CommandRegistry,
    pairs: Iterable[tuple[str, Action]],
    log: FaultLog = null_fault_log,
) -> int:
    """Add ``(name, action)`` pairs into one new priority group.

    A failure raised while producing the pairs is logged and ends discovery;
    what was added until then stays registered.
    """
    priority = NEW_GROUP
    added = 0
    iterator = iter(pairs)
    while True:
        try:
            pair = next(iterator)
        except StopIteration:
            break
        except Exception as exc:
            fault = ActionFault("discovery", exc)
            log(str(fault), fault)
            break
        name, action = pair
        if not name or not name.strip():
            continue
        priority = registry.add(name, action, priority)
        added += 1
    return added
