"""Per-user JSON documents kept in a data directory."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

_DATA_DIR_VARIABLE = "KORGANIZIFY_DATA_DIR"


def default_data_dir() -> Path:
    """Directory that holds user files unless another one is given."""
    configured = os.environ.get(_DATA_DIR_VARIABLE)
    if configured:
        return Path(configured)
    return Path.home() / ".korganizify" / "user_data"


def data_file_path(username: str, data_dir: str | os.PathLike | None = None) -> Path:
    """Path of a user's file, creating the directory when it is missing."""
    directory = Path(data_dir) if data_dir is not None else default_data_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{username}_data.json"


def save_document(
    username: str, document: dict[str, Any], data_dir: str | os.PathLike | None = None
) -> Path:
    """Write a user's document as indented JSON and return where it went."""
    path = data_file_path(username, data_dir)
    with path.open("w", encoding="utf-8") as stream:
        json.dump(document, stream, indent=4, ensure_ascii=False)
        stream.write("\n")
    return path


def load_document(
    username: str, data_dir: str | os.PathLike | None = None
) -> dict[str, Any]:
    """Read a user's document; a missing or unreadable file gives an empty one."""
    path = data_file_path(username, data_dir)
    try:
        with path.open("r", encoding="utf-8") as stream:
            document = json.load(stream)
    except (OSError, ValueError):
        return {}
    return document if isinstance(document, dict) else {}