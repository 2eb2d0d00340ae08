"""Log-file and console setup for the application host and scripts."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from mdnotes.config import LogConfig, get_log_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def log_file_for_today(log_dir: Path) -> Path:
    return log_dir / f"app-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.log"


def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))


def configure_logging(config: Optional[LogConfig] = None) -> Path:
    """
    Install a console handler and a per-day file handler on the root logger.

    Returns the path of the log file in use. Calling it again replaces the
    handlers installed by the previous call.
    """
    config = config or get_log_config()
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_file_for_today(config.log_dir)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_mdnotes", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler._mdnotes = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.setLevel(config.level)
    sys.excepthook = _log_uncaught
    logger.info(f"Logging to {log_file}")
    return log_file
