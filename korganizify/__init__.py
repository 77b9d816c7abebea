"""Weekly planner: events, calendars, to-do lists, user storage, scheduling and calendar sync."""

__version__ = "0.1.0"