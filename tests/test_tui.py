"""Tests for the Textual app wiring."""

from __future__ import annotations

import asyncio
import os
from types import SimpleNamespace

import pytest
from textual.widgets import Input

from net_music_player import tui
from net_music_player.config import AppConfig
from net_music_player.controller import PlaybackStatus
from net_music_player.messages import MessageLog, Phrase
from net_music_player.ui.add_track_prompt import AddTrackPrompt
from net_music_player.ui.tui_widgets import PlaylistTable, TextConsole


@pytest.fixture(autouse=True)
def stub_config(monkeypatch) -> list[AppConfig]:
    saved: list[AppConfig] = []
    monkeypatch.setattr(tui, "load_config", lambda: AppConfig(duplicate_policy="reject"))
    monkeypatch.setattr(tui, "save_config", saved.append)
    monkeypatch.setattr(tui, "set_console_level", lambda level: None)
    return saved


@pytest.fixture
def sink() -> MessageLog:
    return MessageLog()


@pytest.fixture
def app_factory(make_controller, sink, track_files):
    def factory(paths=None):
        message_log = sink
        controller, _ = make_controller(track_files if paths is None else paths)
        app = tui.NetMusicPlayerApp(controller=controller, message_log=message_log)
        return app, controller, message_log

    return factory


def test_app_shows_playlist_and_history(app_factory) -> None:
    app, controller, message_log = app_factory()

    async def runner() -> None:
        async with app.run_test() as pilot:
            await pilot.pause()
            table = app.query_one("#playlist_table", PlaylistTable)
            assert table.row_count == 3
            assert table.get_row_at(0) == [">", "Band A", "One"]
            console = app.query_one("#console", TextConsole)
            assert Phrase.SELECTED_PLAYLIST.parse("All") in console.lines
            message_log.send("hello")
            assert "hello" in console.lines
            assert app.sub_title == "all"

    asyncio.run(runner())


def test_transport_actions_drive_controller(app_factory, backend) -> None:
    app, controller, _ = app_factory()

    async def runner() -> None:
        async with app.run_test() as pilot:
            app.action_toggle_playback()
            assert controller.status is PlaybackStatus.PLAYING
            app.action_toggle_playback()
            assert controller.status is PlaybackStatus.PAUSED
            app.action_stop()
            assert controller.status is PlaybackStatus.STOPPED
            await pilot.press("n")
            assert controller.current_index == 1
            assert controller.status is PlaybackStatus.PLAYING
            await pilot.press("p")
            assert controller.current_index == 0
            await pilot.pause()
            table = app.query_one("#playlist_table", PlaylistTable)
            assert table.get_row_at(0)[0] == ">"

    asyncio.run(runner())


def test_end_of_media_is_applied_by_timer(app_factory, backend) -> None:
    app, controller, _ = app_factory()

    async def runner() -> None:
        async with app.run_test() as pilot:
            app.action_toggle_playback()
            backend.handles[-1].fire_end()
            for _ in range(20):
                await pilot.pause(0.05)
                if controller.current_index == 1:
                    break
            assert controller.current_index == 1
            assert controller.status is PlaybackStatus.PLAYING
            table = app.query_one("#playlist_table", PlaylistTable)
            assert table.get_row_at(1)[0] == ">"

    asyncio.run(runner())


def test_volume_and_seek_actions(app_factory, backend) -> None:
    app, controller, _ = app_factory()

    async def runner() -> None:
        async with app.run_test():
            app.action_volume_up()
            assert controller.get_volume() == pytest.approx(0.8)
            assert backend.handles[-1].volume == pytest.approx(0.8)
            app.action_volume_down()
            app.action_volume_down()
            assert controller.get_volume() == pytest.approx(0.7)
            app.action_seek_forward()
            assert backend.handles[-1].position == pytest.approx(10.0)
            app.action_seek_back()
            assert backend.handles[-1].position == pytest.approx(0.0)

    asyncio.run(runner())


def test_remove_selected_removes_cursor_row(app_factory, track_files) -> None:
    app, controller, _ = app_factory()

    async def runner() -> None:
        async with app.run_test() as pilot:
            await pilot.pause()
            table = app.query_one("#playlist_table", PlaylistTable)
            table.move_cursor(row=1)
            app.action_remove_selected()
            assert [track.name for track in controller.get_playlist()] == ["One", "Three"]
            assert table.row_count == 2

    asyncio.run(runner())


def test_remove_selected_on_empty_playlist(app_factory) -> None:
    app, controller, _ = app_factory(paths=[])

    async def runner() -> None:
        async with app.run_test():
            app.action_remove_selected()
            assert controller.get_playlist() == ()

    asyncio.run(runner())


def test_quit_saves_config_and_shuts_down(app_factory, backend, stub_config) -> None:
    app, controller, _ = app_factory()

    async def runner() -> None:
        async with app.run_test():
            controller.set_volume(0.333)
            app.action_quit_app()

    asyncio.run(runner())
    assert stub_config[-1].volume == 0.33
    assert stub_config[-1].last_playlist == "all"
    assert stub_config[-1].duplicate_policy == "reject"
    assert backend.live_handles == []


def test_add_track_prompt_adds_file(app_factory, track_files) -> None:
    app, controller, message_log = app_factory(paths=track_files[:2])

    async def runner() -> None:
        async with app.run_test() as pilot:
            await pilot.press("a")
            await pilot.pause()
            assert isinstance(app.screen, AddTrackPrompt)
            app.screen.query_one("#add_track_input", Input).value = str(track_files[2])
            await pilot.press("enter")
            await pilot.pause()
            assert not isinstance(app.screen, AddTrackPrompt)
            assert [track.name for track in controller.get_playlist()] == [
                "One",
                "Two",
                "Three",
            ]
            table = app.query_one("#playlist_table", PlaylistTable)
            assert table.row_count == 3
            assert message_log.last == Phrase.ADDED_TRACK.parse("Band C - Three")
            assert app._last_add_dir == f"{track_files[2].parent}{os.sep}"

    asyncio.run(runner())


def test_add_track_prompt_cancel_leaves_playlist(app_factory, track_files) -> None:
    app, controller, _ = app_factory(paths=track_files[:2])

    async def runner() -> None:
        async with app.run_test() as pilot:
            await pilot.press("a")
            await pilot.pause()
            await pilot.press("escape")
            await pilot.pause()
            assert not isinstance(app.screen, AddTrackPrompt)
            assert len(controller.get_playlist()) == 2

    asyncio.run(runner())


def test_add_track_keeps_playback_running(app_factory, backend, track_files) -> None:
    app, controller, _ = app_factory(paths=track_files[:2])

    async def runner() -> None:
        async with app.run_test():
            app.action_toggle_playback()
            handle = backend.handles[-1]
            assert app.add_track(track_files[2])
            assert controller.status is PlaybackStatus.PLAYING
            assert controller.current_index == 0
            assert backend.handles[-1] is handle
            assert handle.calls == ["play", "play"]
            assert app.query_one("#playlist_table", PlaylistTable).row_count == 3

    asyncio.run(runner())


def test_add_track_to_empty_playlist_selects_it(app_factory, track_files) -> None:
    app, controller, _ = app_factory(paths=[])

    async def runner() -> None:
        async with app.run_test():
            assert app.add_track(track_files[0])
            assert controller.current_track is not None
            assert controller.current_track.name == "One"
            assert controller.status is PlaybackStatus.STOPPED

    asyncio.run(runner())


def test_add_track_missing_file_is_ignored(app_factory, track_files, tmp_path) -> None:
    app, controller, _ = app_factory(paths=track_files[:1])

    async def runner() -> None:
        async with app.run_test():
            assert not app.add_track(tmp_path / "Nobody - Nothing.mp3")
            assert len(controller.get_playlist()) == 1
            assert app._last_add_dir == ""

    asyncio.run(runner())


def test_selecting_playing_row_does_not_restart(app_factory, backend) -> None:
    app, controller, message_log = app_factory()

    async def runner() -> None:
        async with app.run_test():
            app.action_toggle_playback()
            handle = backend.handles[-1]
            history = message_log.history
            app.on_data_table_row_selected(SimpleNamespace(cursor_row=0))
            assert handle.calls == ["play"]
            assert message_log.history == history
            assert controller.status is PlaybackStatus.PLAYING

    asyncio.run(runner())


def test_selecting_paused_or_other_row_plays_it(app_factory, backend) -> None:
    app, controller, _ = app_factory()

    async def runner() -> None:
        async with app.run_test():
            app.action_toggle_playback()
            app.action_toggle_playback()
            handle = backend.handles[-1]
            app.on_data_table_row_selected(SimpleNamespace(cursor_row=0))
            assert handle.calls == ["play", "pause", "play"]
            assert controller.status is PlaybackStatus.PLAYING
            app.on_data_table_row_selected(SimpleNamespace(cursor_row=2))
            assert controller.current_index == 2
            assert backend.handles[-1].calls == ["play"]
            app.on_data_table_row_selected(SimpleNamespace(cursor_row=7))
            assert controller.current_index == 2

    asyncio.run(runner())
