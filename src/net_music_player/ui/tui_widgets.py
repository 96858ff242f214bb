from __future__ import annotations

from typing import TYPE_CHECKING, cast

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, DataTable, Log, Static

from net_music_player.controller import PlaybackStatus
from net_music_player.playlist import Track

if TYPE_CHECKING:
    from net_music_player.tui import NetMusicPlayerApp


class PlaylistTable(DataTable):
    """Playlist rows keyed by position, with the current track marked."""

    def show_tracks(self, tracks: tuple[Track, ...], current_index: int) -> None:
        if not self.columns:
            self.add_columns(" ", "Artist", "Title")
        self.clear()
        for index, track in enumerate(tracks):
            marker = ">" if index == current_index else " "
            self.add_row(marker, track.artist, track.name, key=str(index))
        if tracks:
            self.move_cursor(row=max(0, min(current_index, len(tracks) - 1)))


class TextConsole(Log):
    """Read-only console showing notification messages."""

    can_focus = False


class NowPlaying(Static):
    """Status, current track and volume."""


class TransportControls(Static):
    """Transport controls for the playlist pane."""

    def _app(self) -> "NetMusicPlayerApp":
        return cast("NetMusicPlayerApp", self.app)

    def compose(self) -> ComposeResult:
        with Horizontal(id="transport_controls"):
            yield Button("Prev", id="transport_prev", classes="transport_button")
            yield Button("Play", id="transport_playpause", classes="transport_button")
            yield Button("Stop", id="transport_stop", classes="transport_button")
            yield Button("Next", id="transport_next", classes="transport_button")

    def on_mount(self) -> None:
        self.refresh_state()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        control_id = event.button.id
        app = self._app()
        if control_id == "transport_prev":
            app.action_previous_track()
        elif control_id == "transport_playpause":
            app.action_toggle_playback()
        elif control_id == "transport_stop":
            app.action_stop()
        elif control_id == "transport_next":
            app.action_next_track()
        self.refresh_state()

    def refresh_state(self) -> None:
        try:
            label = self.query_one("#transport_playpause", Button)
            prev_button = self.query_one("#transport_prev", Button)
            stop_button = self.query_one("#transport_stop", Button)
            next_button = self.query_one("#transport_next", Button)
        except Exception:
            return
        controller = self._app().controller
        status = controller.status
        has_tracks = bool(controller.get_playlist())
        label.label = "Pause" if status is PlaybackStatus.PLAYING else "Play"
        prev_button.disabled = not has_tracks
        next_button.disabled = not has_tracks
        label.disabled = not controller.has_handle
        stop_button.disabled = status is PlaybackStatus.STOPPED
