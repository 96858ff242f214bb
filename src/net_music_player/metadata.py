"""Track metadata resolution from audio files."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from net_music_player.messages import NotificationSink, Phrase
from net_music_player.playlist import Track

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".mp3", ".wav")
DEFAULT_ARTIST = "Artist"
NAME_SEPARATOR = " - "
ID3V1_BLOCK_SIZE = 128

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TrackMeta:
    artist: str | None
    title: str | None


_EMPTY_META = TrackMeta(artist=None, title=None)


def is_supported_file_type(path: PathLike) -> bool:
    """Return True when the file name ends with a supported extension."""
    name = Path(path).name
    return any(name.endswith(ext) for ext in SUPPORTED_EXTENSIONS)


def remove_extension(name: str) -> str:
    """Strip the final ``.suffix`` from a file name, if there is one."""
    dot = name.rfind(".")
    if dot == -1:
        return name
    return name[:dot]


def _extract_text(value: object | None) -> str | None:
    if value is None:
        return None
    if hasattr(value, "text"):
        value = getattr(value, "text")
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value)
    text = text.strip().strip("\x00")
    return text or None


def _read_frame(tags: object | None, keys: tuple[str, ...]) -> str | None:
    if tags is None:
        return None
    getter = getattr(tags, "get", None)
    if getter is None:
        return None
    for key in keys:
        text = _extract_text(getter(key))
        if text:
            return text
    return None


def _meta_from_frames(frames: object | None) -> TrackMeta:
    return TrackMeta(
        artist=_read_frame(frames, ("TPE1", "TPE2")),
        title=_read_frame(frames, ("TIT2",)),
    )


def read_id3v2(path: Path) -> Optional[TrackMeta]:
    """Read the ID3v2 tag, returning None when the file has none."""
    from mutagen.id3 import ID3, ID3NoHeaderError

    try:
        tags = ID3(path, load_v1=False)
    except ID3NoHeaderError:
        return None
    return _meta_from_frames(tags)


def read_id3v1(path: Path) -> Optional[TrackMeta]:
    """Read the legacy fixed-field tag stored in the last 128 bytes."""
    from mutagen.id3 import ParseID3v1

    with open(path, "rb") as handle:
        handle.seek(0, os.SEEK_END)
        size = handle.tell()
        if size < ID3V1_BLOCK_SIZE:
            return None
        handle.seek(size - ID3V1_BLOCK_SIZE)
        block = handle.read(ID3V1_BLOCK_SIZE)
    frames = ParseID3v1(block)
    if not frames:
        return None
    return _meta_from_frames(frames)


def read_embedded_meta(path: PathLike) -> TrackMeta:
    """Best-effort tag extraction for MP3 files.

    ID3v2 wins when present. A missing or unreadable v2 tag falls back to
    ID3v1. Parse errors are logged and reported as empty metadata.
    """
    path = Path(path)
    if not path.name.endswith(".mp3"):
        return _EMPTY_META
    try:
        meta = read_id3v2(path)
    except Exception:
        logger.debug("ID3v2 read failed for %s", path, exc_info=True)
        meta = None
    if meta is not None:
        return meta
    try:
        meta = read_id3v1(path)
    except Exception:
        logger.debug("ID3v1 read failed for %s", path, exc_info=True)
        meta = None
    return meta or _EMPTY_META


def _artist_from(path: Path, meta: TrackMeta) -> str:
    if meta.artist:
        return meta.artist
    name = path.name
    if NAME_SEPARATOR in name:
        artist = name.split(NAME_SEPARATOR, 1)[0]
        if artist:
            return artist
    return DEFAULT_ARTIST


def _title_from(path: Path, meta: TrackMeta) -> str:
    if meta.title:
        return meta.title
    name = path.name
    if NAME_SEPARATOR in name:
        title = remove_extension(name.split(NAME_SEPARATOR, 1)[1])
        if title:
            return title
    return remove_extension(name)


def resolve_artist(path: PathLike) -> str:
    """Artist from tags, then from ``"Artist - Title"`` file names, then a default."""
    path = Path(path)
    return _artist_from(path, read_embedded_meta(path))


def resolve_title(path: PathLike) -> str:
    """Title from tags, then from ``"Artist - Title"`` file names, then the file name."""
    path = Path(path)
    return _title_from(path, read_embedded_meta(path))


def resolve_track(
    path: PathLike | None, sink: Optional[NotificationSink] = None
) -> Optional[Track]:
    """Turn a file path into a Track, or None when the file can't be used."""
    if path is None:
        return None
    path = Path(path)
    if not path.is_file() or not os.access(path, os.R_OK):
        logger.debug("Skipping unreadable path %s", path)
        return None
    if not is_supported_file_type(path):
        if sink is not None:
            sink.send(Phrase.WRONG_FILETYPE.text)
        return None
    meta = read_embedded_meta(path)
    return Track(
        name=_title_from(path, meta),
        artist=_artist_from(path, meta),
        file_path=str(path.absolute()),
    )


def translate_to_tracks(
    paths: Iterable[PathLike], sink: Optional[NotificationSink] = None
) -> list[Track]:
    """Resolve each path in order, dropping the ones that fail."""
    tracks: list[Track] = []
    for path in paths:
        track = resolve_track(path, sink)
        if track is not None:
            tracks.append(track)
    return tracks
