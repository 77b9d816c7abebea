"""Connection to the sync server and the messages exchanged with it."""

from __future__ import annotations

import codecs
import json
import socket
from datetime import datetime
from typing import Any, Callable, Mapping

from .calendars import Calendar, event_to_json

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 12345
_CONNECT_TIMEOUT = 5.0
_TEXT_DATE_FORMAT = "%a %b %d %H:%M:%S %Y"


def _encode_message(document: Mapping[str, Any]) -> bytes:
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


def _parse_date_text(text: str) -> datetime | None:
    try:
        return datetime.strptime(" ".join(text.split()), _TEXT_DATE_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _calendar_events(calendar: Calendar | None) -> list[dict[str, str]]:
    if calendar is None:
        return []
    return [event_to_json(event, with_priority=False) for event in calendar.events]


def _emit(callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is not None:
        callback(*args)


class Client:
    """A user's connection to the sync server.

    Incoming messages update the list of online friends and are passed on
    to the ``on_*`` callbacks, when set.
    """

    def __init__(self, username: str, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.username = username
        self.host = host
        self.port = port
        self.friends: list[str] = []
        self.on_new_user: Callable[[str], Any] | None = None
        self.on_user_disconnected: Callable[[str], Any] | None = None
        self.on_sync_request: Callable[[str, str, int], Any] | None = None
        self.on_sync_denied: Callable[[str], Any] | None = None
        self.on_new_sync_event: Callable[[str, str], Any] | None = None
        self.on_sync_success: Callable[[datetime | None, datetime | None, str], Any] | None = None
        self._socket: socket.socket | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._pending = ""

    @property
    def connected(self) -> bool:
        """True while a connection to the server is open."""
        return self._socket is not None

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def connect(self) -> None:
        """Open the connection and announce this user to the server."""
        try:
            self._socket = socket.create_connection(
                (self.host, self.port), timeout=_CONNECT_TIMEOUT
            )
        except OSError as error:
            raise ConnectionError(f"cannot reach {self.host}:{self.port}: {error}") from error
        self._socket.settimeout(None)
        self._send({"title": "new connection", "username": self.username})

    def handle_message(self, message: Mapping[str, Any] | str | bytes) -> None:
        """Act on one message from the server."""
        if isinstance(message, (str, bytes)):
            try:
                message = json.loads(message)
            except ValueError:
                message = {}
        if not isinstance(message, Mapping):
            message = {}
        title = _text(message, "title")
        if title == "new connection":
            username = _text(message, "username")
            self.friends.append(username)
            _emit(self.on_new_user, username)
        elif title == "disconnected":
            username = _text(message, "username")
            if username in self.friends:
                self.friends.remove(username)
            _emit(self.on_user_disconnected, username)
        elif title == "syncRequest":
            _emit(
                self.on_sync_request,
                _text(message, "fromUsername"),
                _text(message, "titleEvent"),
                _to_int(_text(message, "duration")),
            )
        elif title == "rejectSync":
            _emit(self.on_sync_denied, _text(message, "fromUsername"))
        elif title == "new sync event":
            _emit(self.on_new_sync_event, _text(message, "eventTitle"), _text(message, "startTime"))
        elif title == "agreed sync":
            _emit(
                self.on_sync_success,
                _parse_date_text(_text(message, "startTime")),
                _parse_date_text(_text(message, "endTime")),
                _text(message, "eventTitle"),
            )

    def read_from_server(self) -> list[dict[str, Any]]:
        """Wait for at least one whole message, handle all that arrived, return them."""
        connection = self._require_socket()
        messages: list[dict[str, Any]] = []
        while not messages:
            try:
                chunk = connection.recv(65536)
            except OSError as error:
                self.close()
                raise ConnectionError(f"connection to the server failed: {error}") from error
            if not chunk:
                self.close()
                raise ConnectionError("the server closed the connection")
            self._pending += self._decoder.decode(chunk)
            messages = self._complete_messages()
        for message in messages:
            self.handle_message(message)
        return messages

    def _complete_messages(self) -> list[dict[str, Any]]:
        decoder = json.JSONDecoder()
        found = []
        while True:
            text = self._pending.lstrip()
            if not text:
                self._pending = ""
                break
            try:
                document, end = decoder.raw_decode(text)
            except json.JSONDecodeError:
                self._pending = text
                break
            self._pending = text[end:]
            found.append(document if isinstance(document, dict) else {})
        return found

    def sync_response(
        self,
        accepted: bool,
        username: str,
        friend_name: str,
        duration: int,
        calendar: Calendar | None = None,
    ) -> None:
        """Answer a friend's sync request, sending the calendar when accepting."""
        if not accepted:
            self._send({"title": "rejectSync", "fromUsername": username, "toUsername": friend_name})
            return
        self._send(
            {
                "title": "acceptSync",
                "fromUsername": username,
                "toUsername": friend_name,
                "syncEventDuration": duration,
                "events": _calendar_events(calendar),
            }
        )

    def event_response(self, accepted: bool) -> None:
        """Say whether a proposed time suits this user."""
        self._send({"title": "eventResponse", "answer": "yes" if accepted else "no"})

    def sync_request(
        self, sender: str, recipient: str, title: str, duration: int, calendar: Calendar
    ) -> None:
        """Ask a friend to find a common time for an event of some hours."""
        self._send(
            {
                "title": "syncRequest",
                "fromUsername": sender,
                "toUsername": recipient,
                "titleEvent": title,
                "duration": str(duration),
                "events": _calendar_events(calendar),
            }
        )

    def logout(self, username: str) -> None:
        """Tell the server the user is leaving."""
        self._send({"title": "logout", "username": username})

    def close(self) -> None:
        """Close the connection, if open."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise ConnectionError("not connected to the server")
        return self._socket

    def _send(self, document: Mapping[str, Any]) -> None:
        connection = self._require_socket()
        try:
            connection.sendall(_encode_message(document))
        except OSError as error:
            self.close()
            raise ConnectionError(f"sending to the server failed: {error}") from error