"""Placing untimed events into the free hours of a week."""

from __future__ import annotations

import random
from datetime import date, datetime, time, timedelta
from typing import Iterator

from .calendars import Calendar
from .events import Event

_DAY_SECONDS = 24 * 3600
_DAY_END = _DAY_SECONDS - 1
_MORNING = 8 * 3600
_NOON = 12 * 3600


class SchedulingError(Exception):
    """No free time is left for an event within the working hours."""


class Scheduler:
    """Puts the untimed events of one calendar into free slots of another."""

    def __init__(
        self,
        calendar: Calendar,
        basic_calendar: Calendar,
        start_date: date,
        rng: random.Random | None = None,
        now: datetime | None = None,
    ) -> None:
        self.calendar = calendar
        self.basic_calendar = basic_calendar
        self.start_date = start_date
        self._rng = rng if rng is not None else random.Random()
        self._now = now
        self._scheduled = Calendar()

    def generate_schedule(self, start_of_workday: time, end_of_workday: time) -> list[Event]:
        """Add every untimed event, longest first, to a random free slot.

        Slots starting at or before the start of the workday, or ending at or
        after its end, are not used. Returns the added events in the order
        they were placed.
        """
        pending = sorted(
            self.basic_calendar.basic_events, key=lambda event: event.duration, reverse=True
        )
        placed = []
        for basic in pending:
            free = [
                slot
                for slot in self.find_free_time(self.calendar, basic.duration)
                if not (
                    slot.start_time.time() <= start_of_workday
                    or slot.end_time.time() >= end_of_workday
                )
            ]
            if not free:
                raise SchedulingError(f"no free time left for {basic.title!r}")
            self._add_random_permutation(free)
            candidates = self._scheduled.events
            chosen = candidates[self._rng.randrange(len(candidates))]
            event = Event(
                title=basic.title, start_time=chosen.start_time, end_time=chosen.end_time
            )
            self.calendar.add_event(event)
            placed.append(event)
        return placed

    def _add_random_permutation(self, free: list[Event]) -> None:
        permutations = []
        for index in range(len(free)):
            order = list(free)
            order[0], order[index] = order[index], order[0]
            permutations.append(order)
        for slot in permutations[self._rng.randrange(len(permutations))]:
            self._scheduled.add_event(slot)

    def find_free_time(self, calendar: Calendar, minutes: int) -> list[Event]:
        """Slots of the given length from the start date to the end of its week.

        The first day starts at the next full hour; other days, and any start
        before noon, start at 08:00. Slots that overlap an event of the
        calendar are left out.
        """
        if minutes <= 0:
            raise ValueError("the slot length must be a positive number of minutes")
        step = minutes * 60
        existing = sorted(
            (e for e in calendar.events if e.start_time is not None and e.end_time is not None),
            key=lambda e: e.start_time,
        )
        first_day = self.start_date
        last_day = first_day + timedelta(days=7 - first_day.isoweekday())
        slots = []
        for offset in range((last_day - first_day).days + 1):
            day = first_day + timedelta(days=offset)
            start = self._first_start(day == first_day)
            if start is not None:
                slots.extend(_day_slots(day, start, step))
        return [
            slot
            for slot in slots
            if not any(
                slot.start_time < event.end_time and slot.end_time > event.start_time
                for event in existing
            )
        ]

    def _first_start(self, is_first_day: bool) -> int | None:
        if is_first_day:
            moment = (self._now if self._now is not None else datetime.now()).time()
            start = moment.hour * 3600
            if moment.minute or moment.second or moment.microsecond:
                if moment.hour == 23:
                    return None
                start += 3600
        else:
            start = _MORNING
        return _MORNING if start < _NOON else start


def _day_slots(day: date, start: int, step: int) -> Iterator[Event]:
    midnight = datetime.combine(day, time())
    latest = _DAY_END - step
    current = start
    while current < _DAY_END:
        if current <= latest:
            yield Event(
                start_time=midnight + timedelta(seconds=current),
                end_time=midnight + timedelta(seconds=current + step),
            )
        following = current + step
        if following >= _DAY_SECONDS or following // 3600 == 23:
            break
        current = following