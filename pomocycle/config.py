"""Application configuration management."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pomocycle.models import AppConfig, SessionConfig

log = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".config" / "pomocycle"
_CONFIG_FILE = _CONFIG_DIR / "config.json"


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text(encoding="utf-8"))
            return AppConfig(**data)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError, TypeError, ValidationError):
            log.warning("Ignoring unreadable config file %s", _CONFIG_FILE)
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def with_overrides(config: AppConfig, **changes: Any) -> AppConfig:
    """Return a validated copy of *config* with the non-None *changes* applied."""
    data = config.model_dump()
    data.update({key: value for key, value in changes.items() if value is not None})
    return AppConfig(**data)


def update_config(**changes: Any) -> AppConfig:
    """Apply *changes* to the saved defaults and persist them."""
    updated = with_overrides(load_config(), **changes)
    save_config(updated)
    return updated


def reset_config() -> AppConfig:
    """Reset the saved defaults."""
    config = AppConfig()
    save_config(config)
    return config


def session_config(app_config: AppConfig) -> SessionConfig:
    """Translate saved defaults into a session configuration."""
    return SessionConfig.from_flags(
        rounds=app_config.rounds,
        short=app_config.short,
        long=app_config.long,
        focus=app_config.focus,
        auto=app_config.auto,
        seconds=app_config.seconds,
    )
