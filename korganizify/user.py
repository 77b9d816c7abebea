"""A user account with its calendar, to-do list and settings."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from .calendars import Calendar
from .settings import Settings
from .storage import data_file_path, load_document, save_document
from .todo import ToDoList

if TYPE_CHECKING:
    from .client import Client


class AuthenticationError(Exception):
    """Logging in or registering did not succeed."""


class UnknownUserError(AuthenticationError):
    """No stored data exists for the user."""


class WrongPasswordError(AuthenticationError):
    """The password does not match the stored one."""


class UserExistsError(AuthenticationError):
    """A user with that name is already stored."""


class User:
    """A named account whose data lives in one JSON file."""

    def __init__(self, username: str, data_dir: str | os.PathLike | None = None) -> None:
        self.username = username
        self.data_dir = data_dir
        self.calendar = Calendar()
        self.todo = ToDoList()
        self.settings = Settings()
        self.client: Client | None = None
        self._password = ""

    def exists(self) -> bool:
        """True when a data file is stored for this user."""
        return data_file_path(self.username, self.data_dir).exists()

    def login(self, password: str) -> None:
        """Check the password against the stored one and load the user's data."""
        if not self.exists():
            raise UnknownUserError(f"user {self.username!r} does not exist")
        document = load_document(self.username, self.data_dir)
        stored = document.get("password")
        self._password = stored if isinstance(stored, str) else ""
        if self._password != password:
            raise WrongPasswordError(f"wrong password for user {self.username!r}")
        self.calendar.load_json(document)
        self.todo.load_json(document)
        self.settings.load_json(document)

    def register(self, password: str) -> None:
        """Start a new account; its data is written on the next save."""
        if self.exists():
            raise UserExistsError(f"user {self.username!r} already exists")
        self._password = password

    def save(self) -> None:
        """Write the user's whole document to disk."""
        save_document(self.username, self.to_json(), self.data_dir)

    def logout(self) -> None:
        """Save the data and drop the server connection."""
        self.save()
        if self.client is not None:
            self.client.close()
            self.client = None

    def to_json(self) -> dict[str, Any]:
        """The document stored for this user."""
        return {
            "username": self.username,
            "password": self._password,
            "events": self.calendar.to_json(),
            "tasks": self.todo.to_json(),
            "settings": self.settings.to_json(),
        }