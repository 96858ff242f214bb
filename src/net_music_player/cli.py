"""Command-line interface for NetMusicPlayer."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
import threading
from types import TracebackType
from typing import Iterable, Optional, Tuple

from net_music_player.audio_backend import BackendUnavailableError, VlcBackend
from net_music_player.config import AppConfig, load_config
from net_music_player.controller import PlaybackController
from net_music_player.logging_setup import init_logging
from net_music_player.messages import MessageLog, load_phrases
from net_music_player.playlist_store import TextPlaylistStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="nm-player", description="NetMusicPlayer")
    parser.add_argument(
        "playlist",
        nargs="?",
        default=None,
        help="Playlist to open ('all' merges every playlist and the tracks folder)",
    )
    parser.add_argument(
        "--add",
        metavar="FILE",
        action="append",
        default=[],
        help="Add an audio file to the selected playlist (repeatable)",
    )
    parser.add_argument(
        "--volume",
        type=float,
        default=None,
        help="Initial volume between 0.0 and 1.0",
    )
    return parser


def build_controller(
    config: AppConfig, message_log: MessageLog, backend: VlcBackend
) -> PlaybackController:
    store = TextPlaylistStore(
        config.resolved_playlists_dir(), config.resolved_tracks_dir()
    )
    store.ensure_dirs()
    return PlaybackController(
        backend,
        store,
        message_log,
        volume=config.volume,
        duplicate_policy=config.resolved_duplicate_policy(),
    )


def _run_tui(controller: PlaybackController, message_log: MessageLog) -> int:
    try:
        from net_music_player.tui import run_tui
    except (ImportError, RuntimeError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return run_tui(controller, message_log)


def _install_exception_hooks() -> None:
    def excepthook(exc_type, exc, tb) -> None:
        logger.exception("Uncaught exception", exc_info=(exc_type, exc, tb))

    sys.excepthook = excepthook

    def thread_hook(args: threading.ExceptHookArgs) -> None:
        exc_value = args.exc_value or RuntimeError("unknown")
        exc_info: Tuple[type[BaseException], BaseException, Optional[TracebackType]] = (
            args.exc_type,
            exc_value,
            args.exc_traceback,
        )
        thread_name = args.thread.name if args.thread else "thread"
        logger.exception("Thread exception in %s", thread_name, exc_info=exc_info)

    threading.excepthook = thread_hook


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    init_logging()
    logger.info("App start")
    _install_exception_hooks()

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    config = load_config()
    if config.phrases_path:
        load_phrases(Path(config.phrases_path))
    message_log = MessageLog()
    backend = VlcBackend()
    controller = build_controller(config, message_log, backend)
    if args.volume is not None:
        controller.set_volume(args.volume)

    try:
        controller.initialize(args.playlist or config.last_playlist)
    except BackendUnavailableError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    for path in args.add:
        controller.add_file(path)

    try:
        exit_code = _run_tui(controller, message_log)
    finally:
        controller.shutdown()
        backend.close()
    logger.info("App exit code=%s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
