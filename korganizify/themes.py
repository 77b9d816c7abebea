"""Colour themes and the background images that go with them."""

from __future__ import annotations

from types import MappingProxyType

DEFAULT_THEME = "Default"

THEME_COLORS = MappingProxyType(
    {
        "Blue": "#9EAEF8",
        "Green": "#ABD49A",
        "Orange": "#F1BC6A",
        "Pink": "#FFBCE5",
        "Purple": "#D8B7F1",
        "Default": "#A5A9A0",
    }
)

_BACKGROUNDS = MappingProxyType(
    {name: f":/resources/images/background{name}.png" for name in THEME_COLORS}
)


def color_for_theme(name: str) -> str:
    """The colour of a named theme, or an empty string for an unknown name."""
    return THEME_COLORS.get(name, "")


def theme_for_color(color: str) -> str:
    """The name of the theme using a colour, or an empty string if none does."""
    return next((name for name in sorted(THEME_COLORS) if THEME_COLORS[name] == color), "")


def background_for_theme(name: str) -> str:
    """The background image of a theme; unknown names get the default one."""
    return _BACKGROUNDS.get(name, _BACKGROUNDS[DEFAULT_THEME])


def background_for_color(color: str) -> str:
    """The background image of the theme that uses a colour."""
    return background_for_theme(theme_for_color(color))