# korganizify

A weekly planner library. It has calendar events with priorities, a to-do
list, per-user settings and colour themes, and a "smart plan" scheduler
that fits loose tasks into the free hours of a week. It also has a small
TCP server through which two online users can agree on a shared time
slot.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Events and calendars

`korganizify.events` defines `BasicEvent` (a title and a duration in
minutes), `Event` (a `BasicEvent` with start and end times, description,
location and a `Priority`), and the helpers `priority_to_string` and
`priority_from_string`. An unknown priority name parses as
`Priority.NO_PRIORITY`.

```python
from datetime import datetime
from korganizify.events import Event, Priority, priority_from_string, priority_to_string
from korganizify.calendars import Calendar

priority_from_string("Low")                  # Priority.LOW
priority_to_string(Priority.HIGH)            # "High"

meeting = Event(
    title="Meeting",
    start_time=datetime(2024, 1, 8, 10, 0),
    end_time=datetime(2024, 1, 8, 11, 30),
)
meeting.compute_duration()                   # 90

calendar = Calendar()
calendar.add_event(meeting)
len(calendar)                                # 1
calendar.has_event_at(datetime(2024, 1, 8, 10, 0))   # True
```

Two `Event` objects compare equal when their start and end times,
description and location match; the title is not compared.
`Event.overlaps_with(other)` tells whether two events share any time.

A `Calendar` keeps its timed events ordered by start time, then end
time, then title, and keeps valid untimed `BasicEvent`s in the order they
were added. It offers `add_event`, `remove_event`, `update_event`,
`events_for_week(start_date, end_date)`, `has_event_at(moment)`,
`clear`, `copy`, and `to_json()` / `load_json(document)` for the stored
JSON shape. `event_to_json` and `event_from_json` convert single events.

## To-do lists

```python
from korganizify.todo import Task, ToDoList

todo = ToDoList()
todo.add(Task("Task 1"))
todo.add(Task("Task 2"))
str(todo)                                    # "Task 1\nTask 2"
todo.remove(0)
len(todo)                                    # 1
todo[0].checked                              # False
```

## Users and stored data

Each user's password, events, tasks and settings are kept in one JSON file
named `<username>_data.json` inside a data directory. Without a
`data_dir`, the directory is taken from the `KORGANIZIFY_DATA_DIR`
environment variable, or is `~/.korganizify/user_data`.

```python
from korganizify.user import User

password = "password"
user = User("alice", data_dir="/tmp/korganizify-data")
if not user.exists():
    user.register(password)
    user.save()                              # the file is written on save
user.login(password)                         # loads events, tasks and settings
user.logout()                                # saves again
```

`login` raises `UnknownUserError` when no file is stored and
`WrongPasswordError` when the password does not match; `register` raises
`UserExistsError` for a name already stored. All three derive from
`AuthenticationError`.

`korganizify.storage` offers the lower-level `default_data_dir`,
`data_file_path`, `save_document` and `load_document`. A missing or
unreadable file loads as an empty document.

## Settings and themes

`korganizify.settings.Settings` holds the theme colour (default
`#A5A9A0`), whether notifications are enabled, and a background path.
`korganizify.themes` maps theme names to colours and background images:

```python
from korganizify.themes import background_for_color, color_for_theme, theme_for_color

color_for_theme("Blue")                      # "#9EAEF8"
theme_for_color("#ABD49A")                   # "Green"
background_for_color("#9EAEF8")              # ":/resources/images/backgroundBlue.png"
```

Unknown names and colours give an empty string; `background_for_theme`
falls back to the default theme's image.

## Smart planning

`korganizify.scheduler.Scheduler(calendar, basic_calendar, start_date,
rng=None, now=None)` takes a calendar of fixed events, a calendar whose
untimed events are the tasks to place, and a start date.
`generate_schedule(start_of_workday, end_of_workday)` places each task,
longest first, into a randomly chosen free slot of the week within
working hours, adds it to the calendar and returns the placed events. It
raises `SchedulingError` when no slot is left for a task.
`find_free_time(calendar, minutes)` lists the free slots of a given
length from the start date to the end of its week; the length must be
positive. Pass a seeded `random.Random` as `rng` and a fixed `now` for
repeatable results.

## Syncing with friends

Start the sync server; by default it listens on `127.0.0.1`, port 12345:

```
korganizify-server
korganizify-server --host 0.0.0.0 --port 12345
```

`korganizify.client.Client(username, host, port)` connects with
`connect()`, which announces the user to the server, and reads with
`read_from_server()`, which waits for and handles incoming messages.
It keeps a list of online `friends` and calls the `on_new_user`,
`on_user_disconnected`, `on_sync_request`, `on_sync_denied`,
`on_new_sync_event` and `on_sync_success` callbacks when they are set.
`sync_request`, `sync_response`, `event_response` and `logout` send the
corresponding messages; network failures raise `ConnectionError`.

`korganizify.server.SyncServer` proposes hour-aligned slots in the rest
of the current week that are free in both users' calendars, one at a
time, until both users accept one or none remain. Its `handle`,
`disconnect` and `find_free_time` methods can be used without a network.

## What is not included

There is no graphical interface: no windows for the calendar, to-do list,
settings or sync dialogs, and no pop-up or sound notifications before
events. The package provides the data model, storage, scheduling, client
and server that such an interface would use.