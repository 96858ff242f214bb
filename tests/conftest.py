"""Pytest configuration and shared fakes for NetMusicPlayer."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, Optional

import pytest

from net_music_player.audio_backend import AudioBackendError, BackendNotReadyError
from net_music_player.controller import PlaybackController
from net_music_player.messages import reset_phrases
from net_music_player.playlist import DuplicatePolicy, Track


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    del config
    if os.environ.get("NM_PLAYER_CI") != "1":
        return
    skip_vlc = pytest.mark.skip(reason="Skipping VLC-dependent tests in CI.")
    for item in items:
        if "vlc" in item.keywords:
            item.add_marker(skip_vlc)


class FakeHandle:
    def __init__(self, uri: str) -> None:
        self.uri = uri
        self.calls: list[str] = []
        self.volume: Optional[float] = None
        self.position = 0.0
        self.duration = 200.0
        self.disposed = False
        self.on_ready: Optional[Callable[[], None]] = None
        self.on_time_update: Optional[Callable[[], None]] = None
        self.on_end_of_media: Optional[Callable[[], None]] = None

    def play(self) -> None:
        self.calls.append("play")

    def pause(self) -> None:
        self.calls.append("pause")

    def stop(self) -> None:
        self.calls.append("stop")
        self.position = 0.0

    def seek(self, seconds: float) -> None:
        self.calls.append("seek")
        self.position = seconds

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def current_time(self) -> float:
        return self.position

    def total_duration(self) -> float:
        return self.duration

    def set_callbacks(self, *, on_ready=None, on_time_update=None, on_end_of_media=None):
        self.on_ready = on_ready
        self.on_time_update = on_time_update
        self.on_end_of_media = on_end_of_media

    def dispose(self) -> None:
        self.disposed = True

    def fire_end(self) -> None:
        assert self.on_end_of_media is not None
        self.on_end_of_media()


class FakeBackend:
    def __init__(self) -> None:
        self.ready = False
        self.handles: list[FakeHandle] = []
        self.fail_next_create = False

    @property
    def is_ready(self) -> bool:
        return self.ready

    def initialize(self) -> None:
        self.ready = True

    def close(self) -> None:
        self.ready = False

    def create(self, uri: str) -> FakeHandle:
        if not self.ready:
            raise BackendNotReadyError("not ready")
        if self.fail_next_create:
            self.fail_next_create = False
            raise AudioBackendError(f"cannot open {uri}")
        handle = FakeHandle(uri)
        self.handles.append(handle)
        return handle

    @property
    def live_handles(self) -> list[FakeHandle]:
        return [handle for handle in self.handles if not handle.disposed]


class MemoryStore:
    def __init__(self, playlists: Optional[dict[str, list[str]]] = None) -> None:
        self.playlists = playlists or {}
        self.saves: list[tuple[list[str], str, bool]] = []

    def load(self, name: str) -> list[str]:
        return list(self.playlists.get(name, []))

    def save(self, tracks: Iterable[Track], name: str, append: bool) -> None:
        self.saves.append(([track.file_path for track in tracks], name, append))


class RecordingSink:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def send(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture(autouse=True)
def default_phrases():
    reset_phrases()
    yield
    reset_phrases()


@pytest.fixture
def track_files(tmp_path: Path) -> list[Path]:
    """Three tagless audio files named after their artist and title."""
    names = ["Band A - One.wav", "Band B - Two.wav", "Band C - Three.wav"]
    paths = []
    for name in names:
        path = tmp_path / name
        path.write_bytes(b"RIFF0000WAVE")
        paths.append(path)
    return paths


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_controller(backend: FakeBackend, sink: RecordingSink):
    def factory(
        paths: Iterable[Path] = (),
        *,
        policy: DuplicatePolicy = DuplicatePolicy.ALLOW,
        initialize: bool = True,
        playlist: str = "all",
    ) -> tuple[PlaybackController, MemoryStore]:
        store = MemoryStore({playlist: [str(path) for path in paths]})
        controller = PlaybackController(
            backend, store, sink, duplicate_policy=policy
        )
        if initialize:
            controller.initialize(playlist)
        return controller, store

    return factory
