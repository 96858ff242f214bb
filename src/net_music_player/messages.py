"""User-facing message vocabulary and notification sinks."""

from __future__ import annotations

from collections import deque
from enum import Enum
import json
import logging
from pathlib import Path
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Phrase(Enum):
    """Message keys with replaceable text.

    Placeholders are written as ``REPLACE0``, ``REPLACE1`` ... and filled by
    :meth:`parse`. Texts can be swapped at runtime with :meth:`set_text` or
    :func:`load_phrases`.
    """

    SELECTED_PLAYLIST = "Selected Playlist: REPLACE0"
    PLAYLIST_EMPTY = "The selected playlist is empty!"
    NOW_PLAYING = "Now Playing: REPLACE0"
    PAUSE = "Paused"
    STOP = "Stopped"
    SELECTED = "Selected Track: REPLACE0"
    NONEXISTING_FILE = "File not found: REPLACE0"
    WRONG_FILETYPE = "Wrong filetype! Supported: .mp3, .wav"
    ADDED_TRACK = "Added Track: REPLACE0"
    REMOVED_TRACK = "Removed Track: REPLACE0"
    ALREADY_HAS_TRACK = "The playlist already has this track!"
    ERROR = "An Error has occurred. It has been logged."

    @property
    def text(self) -> str:
        return _TEXTS.get(self, self.value)

    def set_text(self, text: str) -> None:
        _TEXTS[self] = text

    def parse(self, *args: str) -> str:
        result = self.text
        for index, arg in enumerate(args):
            result = result.replace(f"REPLACE{index}", arg)
        return result

    def __str__(self) -> str:
        return self.text


_TEXTS: dict[Phrase, str] = {}


def reset_phrases() -> None:
    """Restore the built-in text of every phrase."""
    _TEXTS.clear()


def load_phrases(path: Path) -> int:
    """Override phrase texts from a JSON object keyed by phrase name.

    Returns the number of phrases changed. Unreadable files and unknown keys
    are logged and skipped.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load phrases from %s", path)
        return 0
    if not isinstance(raw, dict):
        logger.warning("Ignoring phrase file %s: expected a JSON object", path)
        return 0
    changed = 0
    for key, text in raw.items():
        phrase = Phrase.__members__.get(str(key).upper())
        if phrase is None or not isinstance(text, str):
            logger.warning("Ignoring unknown phrase entry %r", key)
            continue
        phrase.set_text(text)
        changed += 1
    return changed


def uppercase_first(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


class NotificationSink(Protocol):
    """Fire-and-forget receiver of short human-readable messages."""

    def send(self, message: str) -> None: ...


class MessageLog:
    """Bounded message history that fans out to subscribers."""

    def __init__(self, limit: int = 200) -> None:
        self._history: deque[str] = deque(maxlen=max(1, limit))
        self._subscribers: list[Callable[[str], None]] = []

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    @property
    def last(self) -> str | None:
        return self._history[-1] if self._history else None

    def subscribe(self, callback: Callable[[str], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[str], None]) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            return

    def send(self, message: str) -> None:
        logger.info("%s", message)
        self._history.append(message)
        for callback in list(self._subscribers):
            try:
                callback(message)
            except Exception:
                logger.exception("Message subscriber failed")
