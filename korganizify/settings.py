"""User preferences: theme colour and notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_COLOR = "#A5A9A0"


@dataclass
class Settings:
    """Theme colour, notification switch and chosen background image."""

    color: str = DEFAULT_COLOR
    notifications: bool = False
    background_path: str = ""

    def to_json(self) -> dict[str, Any]:
        """The stored part of the settings as a JSON object."""
        return {"color": self.color, "notifications": self.notifications}

    def load_json(self, document: dict[str, Any]) -> None:
        """Read the settings from the document's "settings" object."""
        section = document.get("settings")
        if not isinstance(section, dict):
            section = {}
        color = section.get("color")
        notifications = section.get("notifications")
        self.color = color if isinstance(color, str) else ""
        self.notifications = notifications if isinstance(notifications, bool) else False