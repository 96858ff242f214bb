"""Text-file playlist persistence."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import re
from typing import Iterable, Protocol

from net_music_player.metadata import is_supported_file_type
from net_music_player.playlist import Track

logger = logging.getLogger(__name__)

ALL_PLAYLIST = "all"
PLAYLIST_SUFFIX = ".txt"
_UNSAFE_CHARS = re.compile(r"[^\w\- ]+")


class PlaylistStore(Protocol):
    def load(self, name: str) -> list[str]: ...

    def save(self, tracks: Iterable[Track], name: str, append: bool) -> None: ...


def playlist_stem(name: str) -> str:
    """Return a filesystem-safe stem for a playlist name."""
    stem = _UNSAFE_CHARS.sub("_", name.strip()).strip(" .")
    return stem.lower() or "playlist"


def _read_lines(path: Path) -> list[str]:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    entries: list[str] = []
    for line in lines:
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        entries.append(entry)
    return entries


def _unique(paths: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered


class TextPlaylistStore:
    """One ``<name>.txt`` per playlist, one absolute path per line.

    The reserved name ``"all"`` merges every playlist file with the supported
    files found in the tracks folder.
    """

    def __init__(self, playlists_dir: Path, tracks_dir: Path) -> None:
        self.playlists_dir = Path(playlists_dir)
        self.tracks_dir = Path(tracks_dir)

    def path_for(self, name: str) -> Path:
        return self.playlists_dir / f"{playlist_stem(name)}{PLAYLIST_SUFFIX}"

    def names(self) -> list[str]:
        if not self.playlists_dir.is_dir():
            return []
        return sorted(
            path.stem
            for path in self.playlists_dir.iterdir()
            if path.is_file() and path.suffix == PLAYLIST_SUFFIX
        )

    def ensure_dirs(self) -> None:
        self.playlists_dir.mkdir(parents=True, exist_ok=True)
        self.tracks_dir.mkdir(parents=True, exist_ok=True)

    def load(self, name: str) -> list[str]:
        if playlist_stem(name) == ALL_PLAYLIST:
            return self._load_all()
        return _read_lines(self.path_for(name))

    def _load_all(self) -> list[str]:
        paths: list[str] = []
        for stem in self.names():
            paths.extend(_read_lines(self.playlists_dir / f"{stem}{PLAYLIST_SUFFIX}"))
        if self.tracks_dir.is_dir():
            paths.extend(
                str(path.absolute())
                for path in sorted(self.tracks_dir.iterdir())
                if path.is_file() and is_supported_file_type(path)
            )
        return _unique(paths)

    def save(self, tracks: Iterable[Track], name: str, append: bool) -> None:
        """Write track paths in order.

        ``append`` adds the given paths after the existing entries, duplicates
        included; otherwise the file is rewritten with exactly these paths.
        """
        dest = self.path_for(name)
        dest.parent.mkdir(parents=True, exist_ok=True)
        new_paths = [track.file_path for track in tracks]
        if append:
            lines = _read_lines(dest) + new_paths
        else:
            lines = new_paths
        temp_path = dest.with_suffix(".tmp")
        temp_path.write_text(
            "".join(f"{line}\n" for line in lines), encoding="utf-8"
        )
        os.replace(temp_path, dest)
        logger.debug("Saved %d entries to %s", len(lines), dest)
