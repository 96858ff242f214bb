"""Textual-based TUI for NetMusicPlayer."""

from __future__ import annotations

from dataclasses import replace
import logging
import os
from pathlib import Path
from typing import Optional

try:
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Vertical
    from textual.widgets import DataTable, Footer, Header, ProgressBar
except Exception as exc:  # pragma: no cover - depends on environment
    raise RuntimeError(
        "Textual is required for the TUI. Install the 'textual' dependency."
    ) from exc

from net_music_player.config import AppConfig, load_config, save_config
from net_music_player.controller import PlaybackController
from net_music_player.logging_setup import set_console_level
from net_music_player.messages import MessageLog
from net_music_player.playlist import Track
from net_music_player.ui.add_track_prompt import AddTrackPrompt
from net_music_player.ui.tui_formatters import format_status_time, now_playing_text
from net_music_player.ui.tui_widgets import (
    NowPlaying,
    PlaylistTable,
    TextConsole,
    TransportControls,
)

logger = logging.getLogger(__name__)

VOLUME_STEP = 0.05
SEEK_STEP = 0.05


class NetMusicPlayerApp(App):
    """NetMusicPlayer Textual application."""

    TITLE = "NetMusicPlayer"
    EVENT_POLL_SECONDS = 0.1
    CSS = """
    #playlist_table {
        height: 1fr;
    }
    #now_playing {
        height: 1;
        padding: 0 1;
    }
    #progress_row {
        height: 1;
        padding: 0 1;
    }
    #transport_controls {
        height: 3;
    }
    .transport_button {
        min-width: 8;
        margin: 0 1;
    }
    #console {
        height: 6;
        border-top: solid $primary;
    }
    """

    BINDINGS = [
        Binding("space", "toggle_playback", "Play/Pause"),
        Binding("s", "stop", "Stop"),
        Binding("n", "next_track", "Next"),
        Binding("p", "previous_track", "Previous"),
        Binding("a", "add_track", "Add Track"),
        Binding("d", "remove_selected", "Remove"),
        Binding("left", "seek_back", "Seek -5%", priority=True),
        Binding("right", "seek_forward", "Seek +5%", priority=True),
        Binding("+", "volume_up", "Volume +"),
        Binding("-", "volume_down", "Volume -"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(
        self,
        *,
        controller: PlaybackController,
        message_log: MessageLog,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.message_log = message_log
        self._config: AppConfig = load_config()
        self._last_add_dir = ""
        controller.set_progress_listener(self.refresh_progress)
        controller.set_end_of_media_listener(self.refresh_playlist)

    # --- Layout ---
    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield PlaylistTable(id="playlist_table", cursor_type="row")
            yield NowPlaying(id="now_playing")
            yield ProgressBar(
                total=100, show_eta=False, show_percentage=False, id="progress_row"
            )
            yield TransportControls(id="transport")
            yield TextConsole(id="console", max_lines=200)
        yield Footer()

    def on_mount(self) -> None:
        set_console_level(logging.CRITICAL)
        self.sub_title = self.controller.selected_playlist
        console = self.query_one("#console", TextConsole)
        for message in self.message_log.history:
            console.write_line(message)
        self.message_log.subscribe(self._write_console)
        self.refresh_playlist()
        self.set_interval(self.EVENT_POLL_SECONDS, self._tick)

    def on_unmount(self) -> None:
        self.message_log.unsubscribe(self._write_console)

    def _write_console(self, message: str) -> None:
        try:
            self.query_one("#console", TextConsole).write_line(message)
        except Exception:
            return

    def _tick(self) -> None:
        self.controller.process_events()
        self.refresh_progress()

    # --- UI update hooks ---
    def refresh_progress(self) -> None:
        controller = self.controller
        try:
            now_playing = self.query_one("#now_playing", NowPlaying)
            progress = self.query_one("#progress_row", ProgressBar)
            transport = self.query_one("#transport", TransportControls)
        except Exception:
            return
        position, duration = controller.get_track_times()
        width = max(20, now_playing.size.width)
        now_playing.update(
            now_playing_text(
                controller.status,
                controller.current_track,
                controller.get_volume(),
                width=width - 16,
                times=format_status_time(position, duration),
            )
        )
        progress.update(progress=controller.get_current_track_progress() * 100)
        transport.refresh_state()

    def refresh_playlist(self) -> None:
        try:
            table = self.query_one("#playlist_table", PlaylistTable)
        except Exception:
            return
        table.show_tracks(self.controller.get_playlist(), self.controller.current_index)
        self.sub_title = self.controller.selected_playlist
        self.refresh_progress()

    def _selected_track(self) -> Optional[tuple[int, Track]]:
        try:
            table = self.query_one("#playlist_table", PlaylistTable)
        except Exception:
            return None
        tracks = self.controller.get_playlist()
        row = table.cursor_row
        if not tracks or row < 0 or row >= len(tracks):
            return None
        return row, tracks[row]

    # --- Actions ---
    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        controller = self.controller
        tracks = controller.get_playlist()
        row = event.cursor_row
        if not 0 <= row < len(tracks):
            return
        already_playing = (
            row == controller.current_index
            and tracks[row] == controller.current_track
            and controller.is_playing()
        )
        if already_playing:
            return
        controller.select_track(row)
        controller.play()
        self.refresh_playlist()

    def action_add_track(self) -> None:
        self.push_screen(AddTrackPrompt(self._last_add_dir), self._add_track_from_prompt)

    def _add_track_from_prompt(self, result: Optional[str]) -> None:
        if not result:
            return
        self.add_track(Path(result).expanduser())

    def add_track(self, path: Path) -> bool:
        """Add a file to the selected playlist without interrupting playback."""
        controller = self.controller
        was_playing = controller.is_playing()
        added = controller.add_file(path)
        if added:
            self._last_add_dir = f"{path.absolute().parent}{os.sep}"
            if controller.current_track is None:
                controller.select_track(0)
            elif was_playing:
                controller.play()
        self.refresh_playlist()
        return added

    def action_toggle_playback(self) -> None:
        self.controller.toggle_playback()
        self.refresh_progress()

    def action_stop(self) -> None:
        self.controller.stop()
        self.refresh_progress()

    def action_next_track(self) -> None:
        self.controller.next_track()
        self.refresh_playlist()

    def action_previous_track(self) -> None:
        self.controller.previous_track()
        self.refresh_playlist()

    def action_remove_selected(self) -> None:
        selected = self._selected_track()
        if selected is None:
            return
        _, track = selected
        self.controller.remove_track_from_playlist(track)
        self.refresh_playlist()

    def action_seek_forward(self) -> None:
        self._seek_by(SEEK_STEP)

    def action_seek_back(self) -> None:
        self._seek_by(-SEEK_STEP)

    def _seek_by(self, delta: float) -> None:
        progress = self.controller.get_current_track_progress()
        self.controller.set_track_position(progress + delta)
        self.refresh_progress()

    def action_volume_up(self) -> None:
        self.controller.set_volume(self.controller.get_volume() + VOLUME_STEP)
        self.refresh_progress()

    def action_volume_down(self) -> None:
        self.controller.set_volume(self.controller.get_volume() - VOLUME_STEP)
        self.refresh_progress()

    def action_quit_app(self) -> None:
        self._config = replace(
            self._config,
            volume=round(self.controller.get_volume(), 2),
            last_playlist=self.controller.selected_playlist,
        )
        try:
            save_config(self._config)
        except OSError:
            logger.exception("Failed to save config")
        self.controller.shutdown()
        self.exit()


def run_tui(controller: PlaybackController, message_log: MessageLog) -> int:
    """Run the Textual app until the user quits."""
    app = NetMusicPlayerApp(controller=controller, message_log=message_log)
    app.run()
    return 0
