"""Playback state machine for NetMusicPlayer.

One :class:`PlaybackController` owns the playlist selection, the playback
status and the single live :class:`AudioHandle`. It must be created once at
startup and handed to its collaborators; every playlist or track operation
requires :meth:`PlaybackController.initialize` to have run first and raises
:class:`BackendNotReadyError` otherwise.

Backend callbacks can arrive on a backend-owned thread. They never touch
controller state directly: each one posts a :class:`PlayerEvent` onto an
internal queue, and :meth:`PlaybackController.process_events` applies them on
the control thread under the same lock that guards user actions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
import queue
import threading
from typing import Callable, Iterable, Optional, Union

from net_music_player.audio_backend import (
    AudioBackend,
    AudioBackendError,
    AudioHandle,
    BackendNotReadyError,
)
from net_music_player.messages import NotificationSink, Phrase, uppercase_first
from net_music_player.metadata import resolve_track, translate_to_tracks
from net_music_player.playlist import DuplicatePolicy, PlaylistManager, Track
from net_music_player.playlist_store import ALL_PLAYLIST, PlaylistStore

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.75
NO_PLAYLIST = "None"

Listener = Callable[[], None]


class PlaybackStatus(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class EventKind(Enum):
    READY = "ready"
    TIME_UPDATE = "time_update"
    END_OF_MEDIA = "end_of_media"


@dataclass(frozen=True)
class PlayerEvent:
    """A backend notification tagged with the handle generation it came from."""

    kind: EventKind
    generation: int


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class PlaybackController:
    """Drives an audio backend from a playlist selection."""

    def __init__(
        self,
        backend: AudioBackend,
        store: PlaylistStore,
        sink: NotificationSink,
        *,
        volume: float = DEFAULT_VOLUME,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.ALLOW,
    ) -> None:
        self._backend = backend
        self._store = store
        self._sink = sink
        self._playlist = PlaylistManager(duplicate_policy=duplicate_policy)
        self._lock = threading.RLock()
        self._events: queue.SimpleQueue[PlayerEvent] = queue.SimpleQueue()
        self._handle: Optional[AudioHandle] = None
        self._generation = 0
        self._initialized = False
        self._status = PlaybackStatus.STOPPED
        self._current_track: Optional[Track] = None
        self._current_index = 0
        self._selected_playlist = NO_PLAYLIST
        self._volume = _clamp_unit(volume)
        self._progress_listener: Optional[Listener] = None
        self._end_of_media_listener: Optional[Listener] = None

    # --- State accessors ---
    @property
    def status(self) -> PlaybackStatus:
        return self._status

    def is_playing(self) -> bool:
        return self._status is PlaybackStatus.PLAYING

    @property
    def current_track(self) -> Optional[Track]:
        return self._current_track

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def selected_playlist(self) -> str:
        return self._selected_playlist

    @property
    def duplicate_policy(self) -> DuplicatePolicy:
        return self._playlist.duplicate_policy

    @property
    def has_handle(self) -> bool:
        return self._handle is not None

    def get_playlist(self) -> tuple[Track, ...]:
        return self._playlist.get_playlist()

    def set_progress_listener(self, listener: Optional[Listener]) -> None:
        self._progress_listener = listener

    def set_end_of_media_listener(self, listener: Optional[Listener]) -> None:
        self._end_of_media_listener = listener

    # --- Lifecycle ---
    def initialize(self, playlist_name: str = ALL_PLAYLIST) -> None:
        """Initialize the backend and select the starting playlist."""
        with self._lock:
            self._backend.initialize()
            self._initialized = True
            self._status = PlaybackStatus.STOPPED
            logger.info("Playback controller initialized")
            self.select_playlist(playlist_name)

    def shutdown(self) -> None:
        with self._lock:
            self._clear_selection()
            self._initialized = False
            logger.info("Playback controller shut down")

    def _require_ready(self) -> None:
        if not self._initialized or not self._backend.is_ready:
            raise BackendNotReadyError(
                "PlaybackController.initialize() must be called first."
            )

    # --- Playlist selection ---
    def select_playlist(self, name: str) -> None:
        with self._lock:
            self._require_ready()
            self._selected_playlist = name
            try:
                paths = self._store.load(name)
            except OSError:
                logger.exception("Failed to load playlist %s", name)
                self._sink.send(Phrase.ERROR.text)
                paths = []
            self._playlist.set_playlist(translate_to_tracks(paths, self._sink))
            self._current_index = 0
            self._sink.send(Phrase.SELECTED_PLAYLIST.parse(uppercase_first(name)))
            if self._playlist.is_empty():
                self._sink.send(Phrase.PLAYLIST_EMPTY.text)
                self._clear_selection()
                return
            if self._playlist.has_track(self._current_track):
                self._current_index = self._playlist.get_index_of(self._current_track)
            else:
                self.select_track(0)

    def select_track(self, target: Union[Track, int, None]) -> bool:
        """Bind a new audio handle to a track, by value or playlist position.

        Returns True when a new handle was created. Selecting the current track
        again does nothing. A missing file leaves the current selection alone.
        """
        with self._lock:
            self._require_ready()
            if isinstance(target, int):
                track = self._playlist.select_track(target)
                if track is None:
                    return False
                index = self._playlist.current_index
            else:
                track = target
                if track is None:
                    return False
                index = self._playlist.get_index_of(track)
            if track == self._current_track:
                self._current_index = index
                return False
            return self._open(track, index)

    def _open(self, track: Track, index: int) -> bool:
        path = Path(track.file_path)
        if not path.is_file():
            self._sink.send(Phrase.NONEXISTING_FILE.parse(str(track)))
            return False
        self._release_handle()
        try:
            handle = self._backend.create(path.absolute().as_uri())
        except AudioBackendError:
            logger.exception("Could not open %s", path)
            self._sink.send(Phrase.NONEXISTING_FILE.parse(str(track)))
            self._clear_selection()
            return False
        self._generation += 1
        generation = self._generation
        handle.set_volume(self._volume)
        handle.set_callbacks(
            on_ready=self._poster(EventKind.READY, generation),
            on_time_update=self._poster(EventKind.TIME_UPDATE, generation),
            on_end_of_media=self._poster(EventKind.END_OF_MEDIA, generation),
        )
        self._handle = handle
        self._current_track = track
        self._current_index = index
        self._status = PlaybackStatus.STOPPED
        logger.info("Selected track %s (index %d)", track, index)
        return True

    def _release_handle(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        # Pending events from the old handle become stale.
        self._generation += 1
        handle.dispose()

    def _clear_selection(self) -> None:
        self._release_handle()
        self._current_track = None
        self._current_index = 0
        self._status = PlaybackStatus.STOPPED

    # --- Transport ---
    def play(self) -> None:
        with self._lock:
            if self._handle is None:
                return
            self._handle.play()
            self._status = PlaybackStatus.PLAYING
            self._sink.send(Phrase.NOW_PLAYING.parse(str(self._current_track)))

    def pause(self) -> None:
        with self._lock:
            if self._handle is None or self._status is not PlaybackStatus.PLAYING:
                return
            self._handle.pause()
            self._status = PlaybackStatus.PAUSED
            self._sink.send(Phrase.PAUSE.text)

    def stop(self) -> None:
        with self._lock:
            if self._handle is None:
                return
            self._handle.stop()
            self._status = PlaybackStatus.STOPPED
            self._sink.send(Phrase.STOP.text)

    def toggle_playback(self) -> None:
        with self._lock:
            if self._status is PlaybackStatus.PLAYING:
                self.pause()
            else:
                self.play()

    def next_track(self) -> None:
        with self._lock:
            self._require_ready()
            self._advance(1)

    def previous_track(self) -> None:
        with self._lock:
            self._require_ready()
            self._advance(-1)

    def _advance(self, step: int) -> bool:
        if self._current_track is None or self._playlist.is_empty():
            return False
        if self._handle is not None:
            self._handle.stop()
        self._status = PlaybackStatus.STOPPED
        self.select_track(self._current_index + step)
        self.play()
        return True

    # --- Playlist editing ---
    def add_track_to_playlist(self, track: Optional[Track]) -> bool:
        with self._lock:
            self._require_ready()
            if track is None:
                return False
            if not self._playlist.add_track_to_playlist(track):
                self._sink.send(Phrase.ALREADY_HAS_TRACK.text)
                return False
            self._sink.send(Phrase.ADDED_TRACK.parse(str(track)))
            self._save((track,), append=True)
            return True

    def add_file(self, path: Union[str, Path]) -> bool:
        with self._lock:
            self._require_ready()
            return self.add_track_to_playlist(resolve_track(path, self._sink))

    def remove_track_from_playlist(self, track: Track) -> bool:
        with self._lock:
            self._require_ready()
            index = self._playlist.get_index_of(track)
            if index == -1:
                return False
            removing_current = (
                index == self._current_index and track == self._current_track
            )
            if removing_current:
                self.stop()
            self._playlist.remove_track_from_playlist(track)
            if index < self._current_index:
                self._current_index -= 1
            self._sink.send(Phrase.REMOVED_TRACK.parse(str(track)))
            self._save(self._playlist.get_playlist(), append=False)
            if removing_current:
                if self._playlist.is_empty():
                    self._clear_selection()
                else:
                    self.select_track(self._current_index)
            return True

    def _save(self, tracks: Iterable[Track], *, append: bool) -> None:
        try:
            self._store.save(tracks, self._selected_playlist, append)
        except OSError:
            logger.exception("Failed to save playlist %s", self._selected_playlist)
            self._sink.send(Phrase.ERROR.text)

    # --- Volume & position ---
    def get_volume(self) -> float:
        return self._volume

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._volume = _clamp_unit(volume)
            if self._handle is not None:
                self._handle.set_volume(self._volume)

    def get_current_track_progress(self) -> float:
        with self._lock:
            if self._handle is None:
                return 0.0
            duration = self._handle.total_duration()
            if duration <= 0:
                return 0.0
            return _clamp_unit(self._handle.current_time() / duration)

    def get_track_times(self) -> tuple[float, float]:
        """Return ``(position, duration)`` in seconds for the live handle."""
        with self._lock:
            if self._handle is None:
                return 0.0, 0.0
            return self._handle.current_time(), self._handle.total_duration()

    def set_track_position(self, fraction: float) -> None:
        with self._lock:
            if self._handle is None:
                return
            duration = self._handle.total_duration()
            if duration <= 0:
                return
            self._handle.seek(_clamp_unit(fraction) * duration)

    # --- Backend event channel ---
    def _poster(self, kind: EventKind, generation: int) -> Listener:
        def post() -> None:
            self._events.put(PlayerEvent(kind, generation))

        return post

    def post_event(self, event: PlayerEvent) -> None:
        self._events.put(event)

    def process_events(self) -> int:
        """Apply queued backend events on the calling thread.

        Returns the number of events taken off the queue.
        """
        handled = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return handled
            handled += 1
            with self._lock:
                self._dispatch(event)

    def _dispatch(self, event: PlayerEvent) -> None:
        if self._handle is None or event.generation != self._generation:
            logger.debug("Dropping stale %s event", event.kind.value)
            return
        if event.kind is EventKind.END_OF_MEDIA:
            # A stop or pause issued after the media ended wins.
            if self._status is not PlaybackStatus.PLAYING:
                return
            if not self._advance(1):
                self._status = PlaybackStatus.STOPPED
            self._notify(self._end_of_media_listener)
        else:
            self._notify(self._progress_listener)

    def _notify(self, listener: Optional[Listener]) -> None:
        if listener is None:
            return
        try:
            listener()
        except Exception:
            logger.exception("UI update hook failed")
