from __future__ import annotations

from typing import Optional

from rich.text import Text

from net_music_player.controller import PlaybackStatus
from net_music_player.playlist import Track


def format_time(seconds: Optional[float]) -> str:
    if seconds is None or seconds < 0:
        return "--:--"
    total_seconds = int(seconds)
    minutes, secs = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_status_time(position: float, duration: float) -> str:
    if duration <= 0:
        return "--:-- / --:--"
    position = max(0.0, min(position, duration))
    return f"{format_time(position)} / {format_time(duration)}"


def status_label(status: PlaybackStatus) -> str:
    return f"[ {status.value.upper().ljust(7)} ]"


def volume_label(volume: float) -> str:
    return f"Vol {int(round(max(0.0, min(1.0, volume)) * 100))}%"


def ellipsize(text: str, max_len: int) -> str:
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return "." * max_len
    return text[: max_len - 3] + "..."


def now_playing_line(
    status: PlaybackStatus,
    track: Optional[Track],
    volume: float,
    *,
    width: int = 80,
) -> str:
    title = str(track) if track is not None else "No track selected"
    prefix = f"{status_label(status)} "
    suffix = f"  {volume_label(volume)}"
    room = max(0, width - len(prefix) - len(suffix))
    return f"{prefix}{ellipsize(title, room)}{suffix}"


_STATUS_STYLES = {
    PlaybackStatus.PLAYING: "#8290ed",
    PlaybackStatus.PAUSED: "#ffcc66",
}


def now_playing_text(
    status: PlaybackStatus,
    track: Optional[Track],
    volume: float,
    *,
    width: int = 80,
    times: str = "",
) -> Text:
    line = now_playing_line(status, track, volume, width=width)
    if times:
        line = f"{line}  {times}"
    style = _STATUS_STYLES.get(status)
    return Text(line, style=style) if style else Text(line)
