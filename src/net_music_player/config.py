"""Configuration persistence for NetMusicPlayer."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from net_music_player.playlist import DuplicatePolicy

logger = logging.getLogger(__name__)

APP_NAME = "net-music-player"
DEFAULT_PLAYLIST = "all"


@dataclass(frozen=True)
class AppConfig:
    """Immutable user configuration loaded from disk."""

    volume: float = 0.75
    last_playlist: str = DEFAULT_PLAYLIST
    duplicate_policy: str = DuplicatePolicy.ALLOW.value
    playlists_dir: Optional[str] = None
    tracks_dir: Optional[str] = None
    phrases_path: Optional[str] = None

    def resolved_playlists_dir(self) -> Path:
        if self.playlists_dir:
            return Path(self.playlists_dir)
        return get_config_dir() / "playlists"

    def resolved_tracks_dir(self) -> Path:
        if self.tracks_dir:
            return Path(self.tracks_dir)
        return get_config_dir() / "tracks"

    def resolved_duplicate_policy(self) -> DuplicatePolicy:
        return DuplicatePolicy.from_name(self.duplicate_policy)


def get_config_dir(app_name: str = APP_NAME) -> Path:
    """Return the per-user config directory for the current platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
        return _ensure_dir(root / app_name)
    if os.name == "posix" and _is_macos():
        return _ensure_dir(Path.home() / "Library" / "Application Support" / app_name)
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return _ensure_dir(root / app_name)


def get_config_path() -> Path:
    """Return the full config file path."""
    return get_config_dir() / "config.json"


def load_config() -> AppConfig:
    """Load configuration from disk, falling back to defaults on error."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load config from %s", path)
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()
    return _config_from_mapping(raw)


def save_config(cfg: AppConfig) -> None:
    """Persist configuration to disk atomically."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    data = {
        "volume": cfg.volume,
        "last_playlist": cfg.last_playlist,
        "duplicate_policy": cfg.duplicate_policy,
        "playlists_dir": cfg.playlists_dir,
        "tracks_dir": cfg.tracks_dir,
        "phrases_path": cfg.phrases_path,
    }
    temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    os.replace(temp_path, path)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def _is_macos() -> bool:
    return os.uname().sysname == "Darwin" if hasattr(os, "uname") else False


def _get_float(
    raw: dict[str, Any],
    key: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Fetch a numeric value with optional clamping."""
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        value = default
    value = float(value)
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def _get_str(
    raw: dict[str, Any],
    key: str,
    default: str,
    *,
    allow_empty: bool = False,
) -> str:
    value = raw.get(key, default)
    if not isinstance(value, str):
        return default
    if not value and not allow_empty:
        return default
    return value


def _get_optional_str(raw: dict[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        return None
    return value


def _config_from_mapping(raw: dict[str, Any]) -> AppConfig:
    """Normalize raw JSON data into an AppConfig."""
    policy = DuplicatePolicy.from_name(
        _get_str(raw, "duplicate_policy", DuplicatePolicy.ALLOW.value)
    )
    return AppConfig(
        volume=_get_float(raw, "volume", 0.75, min_value=0.0, max_value=1.0),
        last_playlist=_get_str(raw, "last_playlist", DEFAULT_PLAYLIST),
        duplicate_policy=policy.value,
        playlists_dir=_get_optional_str(raw, "playlists_dir"),
        tracks_dir=_get_optional_str(raw, "tracks_dir"),
        phrases_path=_get_optional_str(raw, "phrases_path"),
    )
