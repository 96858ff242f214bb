"""File path prompt used to add a track while the player runs."""

from __future__ import annotations

from typing import Optional

from textual import events
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class AddTrackPrompt(ModalScreen[Optional[str]]):
    """Modal prompt returning the entered file path, or None when cancelled."""

    DEFAULT_CSS = """
    AddTrackPrompt {
        align: center middle;
    }
    #add_track_prompt {
        width: 70;
        height: auto;
        border: round $primary;
        padding: 1 2;
    }
    #add_track_buttons {
        height: 3;
    }
    """

    def __init__(self, default_path: str = "") -> None:
        super().__init__()
        self._default_path = default_path

    def compose(self) -> ComposeResult:
        with Container(id="add_track_prompt"):
            yield Static("Add Track (.mp3 / .wav)", id="add_track_title")
            yield Input(value=self._default_path, id="add_track_input")
            with Horizontal(id="add_track_buttons"):
                yield Button("Add", id="add_track_ok")
                yield Button("Cancel", id="add_track_cancel")

    def on_mount(self) -> None:
        self.query_one("#add_track_input", Input).focus()

    def _confirm(self) -> None:
        value = self.query_one("#add_track_input", Input).value.strip()
        self.dismiss(value or None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._confirm()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add_track_ok":
            self._confirm()
            return
        self.dismiss(None)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)
