"""The sync server that lets online users find a common free time."""

from __future__ import annotations

import argparse
import asyncio
import codecs
import json
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Iterator, Mapping, Protocol

from .calendars import Calendar
from .client import DEFAULT_HOST, DEFAULT_PORT
from .events import Event

_log = logging.getLogger(__name__)

_DAY_SECONDS = 24 * 3600
_DAY_END = _DAY_SECONDS - 1
_MORNING = 8 * 3600
_NOON = 12 * 3600
_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class Connection(Protocol):
    """Anything bytes can be written to for one client."""

    def write(self, data: bytes) -> object: ...


def _encode(document: Mapping[str, Any]) -> bytes:
    text = json.dumps(document, indent=4, sort_keys=True, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def _text(document: Mapping[str, Any], key: str) -> str:
    value = document.get(key)
    return value if isinstance(value, str) else ""


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def _text_date(moment: datetime | None) -> str:
    if moment is None:
        return ""
    return (
        f"{_DAY_NAMES[moment.weekday()]} {_MONTH_NAMES[moment.month - 1]} {moment.day} "
        f"{moment:%H:%M:%S} {moment.year}"
    )


def _split_documents(text: str) -> tuple[list[dict[str, Any]], str]:
    """Whole JSON objects at the front of text, and what is left after them."""
    decoder = json.JSONDecoder()
    documents: list[dict[str, Any]] = []
    while True:
        text = text.lstrip()
        if not text:
            return documents, ""
        try:
            document, end = decoder.raw_decode(text)
        except json.JSONDecodeError:
            if text.startswith("{"):
                return documents, text
            following = text.find("{", 1)
            if following < 0:
                return documents, ""
            text = text[following:]
            continue
        documents.append(document if isinstance(document, dict) else {})
        text = text[end:]


def _first_start(moment: time) -> int | None:
    start = moment.hour * 3600
    if moment.minute or moment.second or moment.microsecond:
        if moment.hour == 23:
            return None
        start += 3600
    return _MORNING if start < _NOON else start


class SyncServer:
    """Keeps track of online users and runs one sync negotiation at a time."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock if clock is not None else datetime.now
        self.clients: dict[str, Connection] = {}
        self.calendars: dict[str, Calendar] = {}
        self.current_sync_events: list[Event] = []
        self._first_user = ""
        self._second_user = ""
        self._last_response = ""
        self._sync_event_title = ""
        self._sync_event_duration = 0
        self._responses = 0

    def handle(self, connection: Connection, payload: Mapping[str, Any] | str | bytes) -> None:
        """Act on what a client sent: one message, or text holding several."""
        if isinstance(payload, (bytes, bytearray)):
            payload = bytes(payload).decode("utf-8", errors="replace")
        if isinstance(payload, str):
            documents, _ = _split_documents(payload)
            for document in documents:
                self._dispatch(connection, document)
            return
        self._dispatch(connection, payload if isinstance(payload, Mapping) else {})

    def _dispatch(self, connection: Connection, document: Mapping[str, Any]) -> None:
        handlers = {
            "new connection": self._on_new_connection,
            "syncRequest": self._on_sync_request,
            "acceptSync": self._on_accept_sync,
            "rejectSync": self._on_reject_sync,
            "eventResponse": self._on_event_response,
        }
        handler = handlers.get(_text(document, "title"))
        if handler is not None:
            handler(connection, document)

    def _on_new_connection(self, connection: Connection, document: Mapping[str, Any]) -> None:
        for name in self.clients:
            connection.write(_encode({"title": "new connection", "username": name}))
        username = _text(document, "username")
        self.clients[username] = connection
        self._multicast(username)

    def _on_sync_request(self, connection: Connection, document: Mapping[str, Any]) -> None:
        sender = _text(document, "fromUsername")
        recipient = _text(document, "toUsername")
        self._sync_event_title = _text(document, "titleEvent")
        duration = _text(document, "duration")
        self._sync_event_duration = _to_int(duration)
        entries = document.get("events")
        entries = entries if isinstance(entries, list) else []

        calendar = Calendar()
        calendar.load_json({"events": entries})
        self.calendars[sender] = calendar

        self.send_to_client(
            recipient,
            {
                "title": "syncRequest",
                "fromUsername": sender,
                "toUsername": recipient,
                "titleEvent": self._sync_event_title,
                "duration": duration,
                "events": entries,
            },
        )

    def _on_accept_sync(self, connection: Connection, document: Mapping[str, Any]) -> None:
        calendar = Calendar()
        calendar.load_json(dict(document))
        self._first_user = _text(document, "fromUsername")
        self._second_user = _text(document, "toUsername")
        self.calendars[self._first_user] = calendar

        second = self.calendars.get(self._second_user, Calendar())
        self.current_sync_events = self.find_free_time(
            calendar, second, self._sync_event_duration
        )
        self._responses = 0
        self._send_event(0)

    def _on_reject_sync(self, connection: Connection, document: Mapping[str, Any]) -> None:
        sender = _text(document, "fromUsername")
        recipient = _text(document, "toUsername")
        self.send_to_client(
            recipient, {"title": "rejectSync", "fromUsername": sender, "toUsername": recipient}
        )

    def _on_event_response(self, connection: Connection, document: Mapping[str, Any]) -> None:
        self._responses += 1
        answer = _text(document, "answer")
        if self._responses % 2:
            self._last_response = answer
        elif self._last_response == "no" or answer == "no":
            self._send_event(self._responses // 2)
        else:
            self._send_final_event(self._responses // 2 - 1)

    def _send_to_pair(self, message: Mapping[str, Any]) -> None:
        self.send_to_client(self._first_user, message)
        self.send_to_client(self._second_user, message)

    def _send_event(self, index: int) -> None:
        if index >= len(self.current_sync_events):
            self._send_to_pair({"title": "no more events", "from": self._second_user})
            return
        slot = self.current_sync_events[index]
        self._send_to_pair(
            {
                "title": "new sync event",
                "from": self._second_user,
                "startTime": _text_date(slot.start_time),
                "eventTitle": slot.title,
            }
        )

    def _send_final_event(self, index: int) -> None:
        slot = self.current_sync_events[index]
        self._send_to_pair(
            {
                "title": "agreed sync",
                "from": self._second_user,
                "startTime": _text_date(slot.start_time),
                "endTime": _text_date(slot.end_time),
                "eventTitle": slot.title,
            }
        )

    def send_to_client(self, username: str, message: Mapping[str, Any] | str | bytes) -> bool:
        """Send a message to an online user; returns whether the user was found."""
        connection = self.clients.get(username)
        if connection is None:
            _log.warning("No such user exists: %r", username)
            return False
        if isinstance(message, str):
            data = message.encode("utf-8")
        elif isinstance(message, (bytes, bytearray)):
            data = bytes(message)
        else:
            data = _encode(message)
        connection.write(data)
        return True

    def disconnect(self, connection: Connection) -> None:
        """Forget a client and tell everyone else that it left."""
        username = next(
            (name for name, client in self.clients.items() if client is connection), ""
        )
        self.clients.pop(username, None)
        message = _encode({"title": "disconnected", "username": username})
        for client in self.clients.values():
            if client is not connection:
                client.write(message)

    def _multicast(self, username: str) -> None:
        message = _encode({"title": "new connection", "username": username})
        for name, client in self.clients.items():
            if name != username:
                client.write(message)

    def find_free_time(
        self, first: Calendar, second: Calendar, hours: int, now: datetime | None = None
    ) -> list[Event]:
        """Hour-aligned slots free in both calendars until the end of this week.

        The first day starts at the next full hour; other days, and any start
        before noon, start at 08:00.
        """
        moment = now if now is not None else self._clock()
        existing = [
            event
            for event in first.events + second.events
            if event.start_time is not None and event.end_time is not None
        ]
        span = hours * 3600
        latest = (_DAY_END - span) % _DAY_SECONDS
        today = moment.date()
        last_day = today + timedelta(days=7 - today.isoweekday())

        slots: list[Event] = []
        for offset in range((last_day - today).days + 1):
            day = today + timedelta(days=offset)
            start = _first_start(moment.time()) if offset == 0 else _MORNING
            if start is not None:
                slots.extend(self._day_slots(day, start, span, latest))
        return [
            slot
            for slot in slots
            if not any(
                slot.start_time < event.end_time and slot.end_time > event.start_time
                for event in existing
            )
        ]

    def _day_slots(self, day: date, start: int, span: int, latest: int) -> Iterator[Event]:
        midnight = datetime.combine(day, time())
        current = start
        while current < _DAY_END:
            if current <= latest:
                yield Event(
                    title=self._sync_event_title,
                    start_time=midnight + timedelta(seconds=current),
                    end_time=midnight + timedelta(seconds=(current + span) % _DAY_SECONDS),
                )
            if current // 3600 == 23:
                break
            current += 3600

    def serve(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        """Accept clients on the given address until interrupted."""
        asyncio.run(self._serve(host, port))

    async def _serve(self, host: str, port: int) -> None:
        server = await asyncio.start_server(self._on_client, host, port)
        _log.info("Listening on %s:%d", host, port)
        async with server:
            await server.serve_forever()

    async def _on_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        _log.info("New client connected")
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        try:
            while chunk := await reader.read(65536):
                pending += decoder.decode(chunk)
                documents, pending = _split_documents(pending)
                for document in documents:
                    self.handle(writer, document)
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            self.disconnect(writer)
            writer.close()


def main(argv: list[str] | None = None) -> int:
    """Run the sync server."""
    parser = argparse.ArgumentParser(
        prog="korganizify-server", description="Calendar sync server."
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        SyncServer().serve(args.host, args.port)
    except KeyboardInterrupt:
        pass
    return 0