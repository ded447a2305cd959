from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .fuzzy import MatchResult
from .surface import ViewportState


class SelectorState(enum.Enum):
    IDLE = "idle"
    FILTERING = "filtering"
    DISPLAYING = "displaying"
    EXECUTING = "executing"


@dataclass
class FilterSession:
    origin: ViewportState
    query: str = ""
    selected: int = 0
    scroll: int = 0
    matches: list[MatchResult] = field(default_factory=list)
    message: str = ""

    @property
    def match_names(self) -> list[str]:
        return [match.name for match in self.matches]
