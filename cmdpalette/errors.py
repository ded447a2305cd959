"""Fault taxonomy and the injectable fault-log callback.

Every recoverable fault is reported through a ``FaultLog`` callable that
receives a message and the causing exception (or ``None``). The default is a
no-op so embedding hosts opt in to reporting.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

FaultLog = Callable[[str, "BaseException | None"], None]


class LauncherError(Exception):
    """Base class for launcher faults."""


class GeometryRejected(LauncherError, ValueError):
    """The terminal refused a cursor, window, or buffer geometry change."""


class UnparsableResponse(LauncherError, ValueError):
    """A pager response does not follow the word/number/range grammar."""

    def __init__(self, text: str, token: str) -> None:
        super().__init__(f"cannot parse {token!r} in response {text!r}")
        self.text = text
        self.token = token


class SelectionOutOfRange(LauncherError, IndexError):
    """A numeric choice does not name an offered item."""

    def __init__(self, number: int, count: int) -> None:
        super().__init__(f"no item {number} (choose 1-{count})")
        self.number = number
        self.count = count


class ActionFault(LauncherError):
    """A registered action or discovery callback raised."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"command {name!r} failed: {cause}")
        self.name = name
        self.__cause__ = cause


def null_fault_log(message: str, cause: BaseException | None) -> None:
    """Discard a fault report."""


def logging_fault_log(logger: logging.Logger | None = None) -> FaultLog:
    """Return a ``FaultLog`` that forwards reports to ``logger``.

    Reports with a cause are logged at ERROR level with the traceback
    attached; bare messages are logged as warnings.
    """
    target = logger if logger is not None else logging.getLogger("cmdpalette")

    def _log(message: str, cause: BaseException | None) -> None:
        if cause is None:
            target.warning(message)
            return
        target.error(message, exc_info=(type(cause), cause, cause.__traceback__))

    return _log
