"""Configuration loading for squeezebot (.squeezebotconfig)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import yaml

from .constants import CONFIG_FILENAME
from .logging import get_logger

_LOGGER = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class RepoConfiguration:
    """Represents the per-repository settings defined in .squeezebotconfig."""

    schedule: Optional[str] = None
    aggressive_compression: bool = False
    ignored_files: Tuple[str, ...] = field(default_factory=tuple)


def load_repo_configuration(repo_path: Path) -> RepoConfiguration:
    """Load the repository configuration, falling back to defaults on any problem."""
    config_file = repo_path / CONFIG_FILENAME
    if not config_file.is_file():
        return RepoConfiguration()

    try:
        data = _read_config(config_file)
        return _build_configuration(data)
    except (ConfigError, OSError, UnicodeDecodeError) as exc:
        _LOGGER.warning("Ignoring unreadable %s: %s", CONFIG_FILENAME, exc)
        return RepoConfiguration()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8-sig")
    if not text.strip():
        return {}

    # JSON documents are valid YAML, so one loader covers both formats.
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _build_configuration(data: Dict[str, Any]) -> RepoConfiguration:
    schedule = _as_str(_lookup(data, "schedule"))
    if schedule is not None:
        schedule = schedule.strip().lower() or None

    aggressive = _as_bool(_lookup(data, "aggressiveCompression", "aggressive_compression"))
    ignored = _as_str_list(_lookup(data, "ignoredFiles", "ignored_files"))

    return RepoConfiguration(
        schedule=schedule,
        aggressive_compression=aggressive or False,
        ignored_files=tuple(ignored),
    )


def _lookup(data: Dict[str, Any], *keys: str) -> Any:
    lowered = {str(key).lower(): value for key, value in data.items()}
    for key in keys:
        if key.lower() in lowered:
            return lowered[key.lower()]
    return None


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["ConfigError", "RepoConfiguration", "load_repo_configuration"]
