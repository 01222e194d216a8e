# src/projctx/config/loader.py
"""
Config loader utilities.

This module is intentionally small: it knows how to find and load the YAML
settings file and exposes a few typed getters on top of it. Settings are
resolved in this order:

1. the path in PROJCTX_SETTINGS_FILE, if set;
2. settings.yaml in the user's platform config dir, if it exists;
3. the default settings.yaml shipped inside this package.

The store location has one extra override, PROJCTX_STORE_FILE, so tests and
one-off runs can point the server at a scratch file without writing YAML.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from platformdirs import user_config_dir


APP_NAME = "projctx"
SETTINGS_FILENAME = "settings.yaml"
SETTINGS_ENV_VAR = "PROJCTX_SETTINGS_FILE"
STORE_ENV_VAR = "PROJCTX_STORE_FILE"

DEFAULT_STORE_PATH = Path.home() / ".mcp-project-context.json"
DEFAULT_HISTORY_LIMIT = 20
DEFAULT_DB_PORT = 5432
DEFAULT_CONNECT_TIMEOUT = 10


# ---------------------------------------------------------------------------
# path resolution utilities
# ---------------------------------------------------------------------------

def _package_config_dir() -> Path:
    """
    Return the directory holding the packaged default settings.
    We assume this file lives at: src/projctx/config/loader.py
    """
    return Path(__file__).resolve().parent


def _user_config_dir() -> Path:
    """
    Platform-specific user config directory, e.g.

    macOS:   ~/Library/Application Support/projctx/
    Linux:   ~/.config/projctx/
    Windows: C:\\Users\\<user>\\AppData\\Local\\projctx\\
    """
    return Path(user_config_dir(appname=APP_NAME))


def resolve_settings_path() -> Path:
    env_value = os.getenv(SETTINGS_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser().resolve()
    user_file = _user_config_dir() / SETTINGS_FILENAME
    if user_file.exists():
        return user_file
    return _package_config_dir() / SETTINGS_FILENAME


def _load_yaml(path: Path) -> Dict[str, Any]:
    """
    Load a YAML file from the given path.
    Raises FileNotFoundError if the file is missing.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# ---------------------------------------------------------------------------
# public config loaders
# ---------------------------------------------------------------------------

def load_settings_yaml() -> Dict[str, Any]:
    """
    Load settings.yaml from the first location that applies.

    Expected shape:
    {
        "store": {"path": "~/.mcp-project-context.json", "strict": false},
        "history": {"default_limit": 20},
        "database": {"default_port": 5432, "connect_timeout_seconds": 10},
        "logging": {"level": "INFO"},
    }
    """
    return _load_yaml(resolve_settings_path())


def _section(name: str) -> Dict[str, Any]:
    cfg = load_settings_yaml()
    value = cfg.get(name) if isinstance(cfg, dict) else None
    return value if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# convenience helpers
# ---------------------------------------------------------------------------

def get_store_path() -> Path:
    """
    Return the path of the JSON store file.
    """
    env_value = os.getenv(STORE_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    configured = _section("store").get("path")
    if configured:
        return Path(str(configured)).expanduser()
    return DEFAULT_STORE_PATH


def is_strict_persistence() -> bool:
    """
    True if load/save failures should raise instead of being logged and skipped.
    """
    return bool(_section("store").get("strict", False))


def _positive_int(value: Any, default: int) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def get_history_default_limit() -> int:
    return _positive_int(
        _section("history").get("default_limit", DEFAULT_HISTORY_LIMIT), DEFAULT_HISTORY_LIMIT
    )


def get_database_defaults() -> Dict[str, int]:
    """
    Return {"port": ..., "connect_timeout": ...} for the PostgreSQL pass-through.
    """
    db = _section("database")
    return {
        "port": _positive_int(db.get("default_port"), DEFAULT_DB_PORT),
        "connect_timeout": _positive_int(
            db.get("connect_timeout_seconds"), DEFAULT_CONNECT_TIMEOUT
        ),
    }


def get_log_level() -> str:
    return str(_section("logging").get("level", "INFO")).upper()
