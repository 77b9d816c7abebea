"""Calendar events: plain titled durations and fully timed events."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, time


class Priority(enum.Enum):
    """How important an event is; the value is its display name."""

    NO_PRIORITY = "No Priority"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def priority_to_string(priority: Priority) -> str:
    """Return the display name of a priority."""
    return priority.value


def priority_from_string(text: str) -> Priority:
    """Parse a display name; anything unknown means no priority."""
    try:
        return Priority(text)
    except ValueError:
        return Priority.NO_PRIORITY


@dataclass
class BasicEvent:
    """An event that only has a title and a duration in minutes."""

    title: str = ""
    duration: int = 0

    def clear(self) -> None:
        """Erase the title."""
        self.title = ""

    def is_valid(self) -> bool:
        """An event is usable once it has a title and a positive duration."""
        return self.title != "" and self.duration > 0


def _msecs_since_midnight(moment: time) -> int:
    seconds = moment.hour * 3600 + moment.minute * 60 + moment.second
    return seconds * 1000 + moment.microsecond // 1000


@dataclass(eq=False)
class Event(BasicEvent):
    """An event placed in time, with optional description and location.

    Two events are equal when their times, description and location match;
    the title takes no part in the comparison.
    """

    start_time: datetime | None = None
    end_time: datetime | None = None
    description: str = ""
    location: str = ""
    priority: Priority = Priority.NO_PRIORITY

    def _identity(self) -> tuple:
        return (self.start_time, self.end_time, self.description, self.location)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def compute_duration(self) -> int:
        """Set the duration to the minutes between start and end time of day."""
        if self.start_time is None or self.end_time is None:
            self.duration = 0
        else:
            msecs = _msecs_since_midnight(self.end_time.time()) - _msecs_since_midnight(
                self.start_time.time()
            )
            self.duration = int(msecs / 60000)
        return self.duration

    def overlaps_with(self, other: Event) -> bool:
        """True when the two events share any stretch of time."""
        return self.end_time > other.start_time and self.start_time < other.end_time

    def clear(self) -> None:
        """Erase the title, description and location."""
        super().clear()
        self.description = ""
        self.location = ""