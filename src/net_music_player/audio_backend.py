"""Audio output backend interface and its python-vlc implementation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol, cast

logger = logging.getLogger(__name__)

vlc: Any | None = None
_VLC_IMPORT_ERROR: Optional[Exception] = None

Callback = Callable[[], None]


class BackendNotReadyError(RuntimeError):
    """Raised when playback is driven before the backend was initialized."""


class BackendUnavailableError(RuntimeError):
    """Raised when the audio library cannot be loaded."""


class AudioBackendError(RuntimeError):
    """Raised when a media handle cannot be created."""


class AudioHandle(Protocol):
    """Playback session bound to a single media file."""

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def current_time(self) -> float: ...

    def total_duration(self) -> float: ...

    def set_callbacks(
        self,
        *,
        on_ready: Optional[Callback] = None,
        on_time_update: Optional[Callback] = None,
        on_end_of_media: Optional[Callback] = None,
    ) -> None: ...

    def dispose(self) -> None: ...


class AudioBackend(Protocol):
    @property
    def is_ready(self) -> bool: ...

    def initialize(self) -> None: ...

    def create(self, uri: str) -> AudioHandle: ...


def _load_vlc() -> None:
    global vlc
    global _VLC_IMPORT_ERROR
    if vlc is not None or _VLC_IMPORT_ERROR is not None:
        return
    try:
        import vlc as vlc_module  # type: ignore
    except Exception as exc:  # pragma: no cover - platform-dependent import
        vlc = None
        _VLC_IMPORT_ERROR = exc
    else:
        vlc = cast(Any, vlc_module)
        _VLC_IMPORT_ERROR = None


def _volume_percent(volume: float) -> int:
    return int(round(max(0.0, min(1.0, float(volume))) * 100))


class VlcHandle:
    """One python-vlc MediaPlayer playing one media file."""

    def __init__(self, instance: Any, uri: str) -> None:
        self.uri = uri
        self._player = instance.media_player_new()
        self._media = instance.media_new(uri)
        self._player.set_media(self._media)
        self._attached: list[Any] = []
        self._disposed = False

    def set_callbacks(
        self,
        *,
        on_ready: Optional[Callback] = None,
        on_time_update: Optional[Callback] = None,
        on_end_of_media: Optional[Callback] = None,
    ) -> None:
        """Attach zero-argument callbacks to VLC player events.

        VLC invokes them on its own thread; they must not call back into
        libvlc.
        """
        if vlc is None:
            return
        event_type = cast(Any, vlc).EventType
        wiring = (
            (event_type.MediaPlayerLengthChanged, on_ready),
            (event_type.MediaPlayerTimeChanged, on_time_update),
            (event_type.MediaPlayerEndReached, on_end_of_media),
        )
        try:
            event_manager = self._player.event_manager()
        except Exception:
            logger.warning("VLC event manager unavailable for %s", self.uri)
            return
        for kind, callback in wiring:
            if callback is None:
                continue
            try:
                event_manager.event_attach(kind, _drop_event(callback))
            except Exception:
                logger.warning("Failed to attach VLC event %s", kind)
                continue
            self._attached.append(kind)

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.set_pause(1)

    def stop(self) -> None:
        self._player.stop()

    def seek(self, seconds: float) -> None:
        try:
            self._player.set_time(max(0, int(seconds * 1000)))
        except Exception:
            logger.debug("Seek failed for %s", self.uri, exc_info=True)

    def set_volume(self, volume: float) -> None:
        self._player.audio_set_volume(_volume_percent(volume))

    def current_time(self) -> float:
        """Playback position in seconds, 0.0 when unknown."""
        try:
            position = self._player.get_time()
        except Exception:
            return 0.0
        if position is None or position < 0:
            return 0.0
        return position / 1000.0

    def total_duration(self) -> float:
        """Media length in seconds, 0.0 when unknown."""
        try:
            length = self._player.get_length()
        except Exception:
            return 0.0
        if length is None or length < 0:
            return 0.0
        return length / 1000.0

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._detach_events()
        try:
            self._player.stop()
            self._player.release()
            release_media = getattr(self._media, "release", None)
            if release_media is not None:
                release_media()
        except Exception:
            logger.debug("Error releasing VLC player for %s", self.uri, exc_info=True)

    def _detach_events(self) -> None:
        if not self._attached:
            return
        try:
            event_manager = self._player.event_manager()
            for kind in self._attached:
                event_manager.event_detach(kind)
        except Exception:
            logger.debug("Failed to detach VLC events", exc_info=True)
        self._attached.clear()


def _drop_event(callback: Callback) -> Callable[[object], None]:
    def handler(event: object) -> None:
        del event
        callback()

    return handler


class VlcBackend:
    """Creates VlcHandle objects from a shared libvlc instance."""

    def __init__(self) -> None:
        self._instance: Any | None = None

    @property
    def is_ready(self) -> bool:
        return self._instance is not None

    def initialize(self) -> None:
        if self._instance is not None:
            return
        _load_vlc()
        if vlc is None:
            raise BackendUnavailableError(
                "VLC backend is unavailable. Install VLC and the python-vlc package."
            ) from _VLC_IMPORT_ERROR
        instance = cast(Any, vlc).Instance()
        if instance is None:
            raise BackendUnavailableError("libvlc could not be initialized.")
        self._instance = instance
        logger.info("VLC backend initialized")

    def create(self, uri: str) -> VlcHandle:
        if self._instance is None:
            raise BackendNotReadyError("Audio backend has not been initialized.")
        try:
            return VlcHandle(self._instance, uri)
        except Exception as exc:
            raise AudioBackendError(f"Could not open {uri}") from exc

    def close(self) -> None:
        instance = self._instance
        self._instance = None
        if instance is None:
            return
        try:
            instance.release()
        except Exception:
            logger.debug("Error releasing VLC instance", exc_info=True)
