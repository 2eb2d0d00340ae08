"""
Central configuration loader.
Reads from environment variables (via .env) and resolves on-disk locations.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


APP_NAME = "mdnotes"

# ---------------------------------------------------------------------------
# Load .env from install root (if present)
# ---------------------------------------------------------------------------
_INSTALL_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_INSTALL_ROOT / ".env")


def _get(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    val = os.getenv(key, default)
    if required and not val:
        raise EnvironmentError(f"Missing required environment variable: {key}")
    return val


# ---------------------------------------------------------------------------
# Run mode
# ---------------------------------------------------------------------------
class RunMode(str, Enum):
    APP = "app"
    STANDALONE = "standalone"


def get_run_mode() -> RunMode:
    raw = (_get("MDNOTES_RUN_MODE", default="app") or "app").lower()
    try:
        return RunMode(raw)
    except ValueError:
        return RunMode.APP


# ---------------------------------------------------------------------------
# Store config
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StoreConfig:
    db_path: Path
    timeout: float


def get_store_config(mode: Optional[RunMode] = None) -> StoreConfig:
    return StoreConfig(
        db_path=get_db_path(mode),
        timeout=float(_get("MDNOTES_STORE_TIMEOUT", default="10")),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Logging config
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class LogConfig:
    log_dir: Path
    level: str


def get_log_config(mode: Optional[RunMode] = None) -> LogConfig:
    override = _get("MDNOTES_LOG_DIR")
    return LogConfig(
        log_dir=Path(override) if override else get_data_dir(mode) / "logs",
        level=(_get("MDNOTES_LOG_LEVEL", default="INFO") or "INFO").upper(),
    )


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def get_install_root() -> Path:
    return _INSTALL_ROOT


def _user_data_dir() -> Path:
    home = Path.home()
    if sys.platform.startswith("win"):
        base = _get("APPDATA")
        root = Path(base) if base else home / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        root = home / "Library" / "Application Support"
    else:
        base = _get("XDG_DATA_HOME")
        root = Path(base) if base else home / ".local" / "share"
    return root / APP_NAME


def get_data_dir(mode: Optional[RunMode] = None) -> Path:
    """Per-user data dir under the app host, install-root ``data/`` otherwise."""
    mode = mode or get_run_mode()
    if mode is RunMode.STANDALONE:
        return _INSTALL_ROOT / "data"
    return _user_data_dir()


def get_db_path(mode: Optional[RunMode] = None) -> Path:
    override = _get("MDNOTES_DB_PATH")
    if override:
        return Path(override)
    return get_data_dir(mode) / "notes.db"
