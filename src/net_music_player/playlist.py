"""Track modeling and playlist selection for NetMusicPlayer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


@dataclass(frozen=True)
class Track:
    """Represents a single track."""

    name: str
    artist: str
    file_path: str

    def __str__(self) -> str:
        return f"{self.artist} - {self.name}"


class DuplicatePolicy(Enum):
    """Whether a playlist may hold the same track more than once."""

    ALLOW = "allow"
    REJECT = "reject"

    @classmethod
    def from_name(cls, name: str) -> "DuplicatePolicy":
        try:
            return cls(name.lower())
        except ValueError:
            return cls.ALLOW


def normalize_index(index: int, length: int) -> int:
    """Wrap any integer index into ``[0, length)``."""
    if length <= 0:
        raise ValueError("cannot normalize an index into an empty playlist")
    return ((index % length) + length) % length


class PlaylistManager:
    """An ordered track list with a current index.

    Tracks compare by value, so with duplicate entries :meth:`get_index_of`
    reports the first match, which is not necessarily the position most
    recently returned by :meth:`select_track`.
    """

    def __init__(
        self,
        tracks: Iterable[Track] = (),
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.ALLOW,
    ) -> None:
        self._tracks: list[Track] = list(tracks)
        self._index = 0
        self.duplicate_policy = duplicate_policy

    def __len__(self) -> int:
        return len(self._tracks)

    @property
    def current_index(self) -> int:
        return self._index

    def set_playlist(self, tracks: Iterable[Track]) -> None:
        self._tracks = list(tracks)
        self._index = 0

    def get_playlist(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    def is_empty(self) -> bool:
        return not self._tracks

    def has_track(self, track: Optional[Track]) -> bool:
        return track is not None and track in self._tracks

    def get_index_of(self, track: Optional[Track]) -> int:
        if track is None:
            return -1
        try:
            return self._tracks.index(track)
        except ValueError:
            return -1

    def select_track(self, index: int) -> Optional[Track]:
        if self.is_empty():
            return None
        self._index = normalize_index(index, len(self._tracks))
        return self._tracks[self._index]

    def add_track_to_playlist(self, track: Track) -> bool:
        """Append a track; returns False when the policy rejects a duplicate."""
        if self.duplicate_policy is DuplicatePolicy.REJECT and self.has_track(track):
            return False
        self._tracks.append(track)
        return True

    def remove_track_from_playlist(self, track: Track) -> int:
        """Remove the first equal track and return where it was, or -1."""
        index = self.get_index_of(track)
        if index == -1:
            return -1
        del self._tracks[index]
        if index < self._index:
            self._index -= 1
        if self._tracks:
            self._index = min(self._index, len(self._tracks) - 1)
        else:
            self._index = 0
        return index
