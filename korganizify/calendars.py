"""A calendar of timed events plus a pool of untimed ones."""

from __future__ import annotations

import copy as _copy
from datetime import date, datetime
from typing import Any

from .events import BasicEvent, Event, priority_from_string, priority_to_string


def _iso(moment: datetime | None) -> str:
    return moment.isoformat(timespec="seconds") if moment is not None else ""


def _parse_iso(text: str) -> datetime | None:
    try:
        return datetime.fromisoformat(text)
    except (TypeError, ValueError):
        return None


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def event_to_json(event: Event, with_priority: bool = True) -> dict[str, str]:
    """Serialise an event to the JSON object used on disk and on the wire."""
    result = {
        "title": event.title,
        "startTime": _iso(event.start_time),
        "endTime": _iso(event.end_time),
        "description": event.description,
        "location": event.location,
    }
    if with_priority:
        result["priority"] = priority_to_string(event.priority)
    return result


def event_from_json(data: Any) -> Event:
    """Build an event from its JSON object; missing fields stay empty."""
    if not isinstance(data, dict):
        data = {}
    return Event(
        title=_text(data, "title"),
        start_time=_parse_iso(_text(data, "startTime")),
        end_time=_parse_iso(_text(data, "endTime")),
        description=_text(data, "description"),
        location=_text(data, "location"),
        priority=priority_from_string(_text(data, "priority")),
    )


def _earlier(a: datetime | None, b: datetime | None) -> bool:
    if a is None:
        return b is not None
    if b is None:
        return False
    return a < b


def _goes_before(new: Event, existing: Event) -> bool:
    return (
        _earlier(new.start_time, existing.start_time)
        or (new.start_time == existing.start_time and _earlier(new.end_time, existing.end_time))
        or (new.end_time == existing.end_time and new.title < existing.title)
    )


class Calendar:
    """Timed events kept in order, and valid untimed events in insertion order."""

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._basic_events: list[BasicEvent] = []

    @property
    def events(self) -> list[Event]:
        """A copy of the timed events, in calendar order."""
        return list(self._events)

    @property
    def basic_events(self) -> list[BasicEvent]:
        """A copy of the untimed events."""
        return list(self._basic_events)

    def __len__(self) -> int:
        return len(self._events)

    def add_event(self, event: BasicEvent) -> None:
        """Insert a timed event in order, or keep an untimed one if it is valid."""
        if isinstance(event, Event):
            index = next(
                (i for i, existing in enumerate(self._events) if _goes_before(event, existing)),
                len(self._events),
            )
            self._events.insert(index, event)
        elif event.is_valid():
            self._basic_events.append(event)

    def remove_event(self, event: BasicEvent) -> None:
        """Remove the first matching event; nothing happens when none matches."""
        pool = self._events if isinstance(event, Event) else self._basic_events
        for index, existing in enumerate(pool):
            if existing == event:
                del pool[index]
                return

    def update_event(self, old_event: Event, new_event: Event) -> None:
        """Replace the first event equal to old_event with new_event."""
        for index, existing in enumerate(self._events):
            if existing == old_event:
                self._events[index] = new_event
                return

    def events_for_week(self, start_date: date, end_date: date) -> list[Event]:
        """Events that start on or after start_date and end on or before end_date."""
        return [
            event
            for event in self._events
            if event.start_time is not None
            and event.end_time is not None
            and event.start_time.date() >= start_date
            and event.end_time.date() <= end_date
        ]

    def has_event_at(self, moment: datetime) -> bool:
        """True when some event starts exactly at the given moment."""
        return any(event.start_time == moment for event in self._events)

    def clear(self) -> None:
        """Drop all timed events."""
        for event in self._events:
            event.clear()
        self._events.clear()

    def copy(self) -> Calendar:
        """A new calendar holding copies of the timed events only."""
        duplicate = Calendar()
        duplicate._events = [_copy.copy(event) for event in self._events]
        return duplicate

    def to_json(self) -> list[dict[str, str]]:
        """The timed events as a JSON array."""
        return [event_to_json(event) for event in self._events]

    def load_json(self, document: dict[str, Any]) -> None:
        """Add the events found under the document's "events" key."""
        entries = document.get("events")
        if not isinstance(entries, list):
            return
        for entry in entries:
            self.add_event(event_from_json(entry))