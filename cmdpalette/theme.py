"""Launcher colour themes.

Colours are ``pygments.console`` colour names; backends translate them into
escape sequences.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LauncherTheme:
    """Semantic palette used by the launcher and pager."""

    name: str
    text: str
    background: str
    prompt_text: str
    prompt_background: str
    list_text: str
    list_background: str
    list_match: str
    marker: str
    no_match_text: str
    no_match_background: str
    executed: str
    pager_indicator: str
    warning: str


DEFAULT_THEME = LauncherTheme(
    name="default",
    text="gray",
    background="black",
    prompt_text="white",
    prompt_background="green",
    list_text="brightblue",
    list_background="blue",
    list_match="brightyellow",
    marker="brightred",
    no_match_text="brightyellow",
    no_match_background="red",
    executed="brightgreen",
    pager_indicator="brightcyan",
    warning="brightred",
)

MONO_THEME = LauncherTheme(
    name="mono",
    text="gray",
    background="black",
    prompt_text="gray",
    prompt_background="black",
    list_text="gray",
    list_background="black",
    list_match="brightblack",
    marker="gray",
    no_match_text="gray",
    no_match_background="black",
    executed="gray",
    pager_indicator="gray",
    warning="gray",
)

_THEMES = {theme.name: theme for theme in (DEFAULT_THEME, MONO_THEME)}


def available_theme_names() -> list[str]:
    return sorted(_THEMES)


def get_theme(name: str | None) -> LauncherTheme:
    """Return the named theme, falling back to ``DEFAULT_THEME``."""
    if not name:
        return DEFAULT_THEME
    return _THEMES.get(name.strip().lower(), DEFAULT_THEME)
