"""Process-wide logging setup: an append-mode log file plus a stderr mirror."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .config import Settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"

_installed_handlers: List[logging.Handler] = []


class _UtcIsoFormatter(logging.Formatter):
    """Formats record timestamps as ISO-8601 UTC, e.g. 2024-05-01T12:00:00.123Z."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach the file and console handlers to the root logger.

    Informational lines only reach the log file. The console mirror starts at
    ``LOG_CONSOLE_LEVEL`` (ERROR unless overridden), so errors land in both.
    Calling this again replaces the handlers installed by the previous call.
    """

    return _install_handlers(settings.log_file, settings.LOG_CONSOLE_LEVEL)


def configure_startup_logging() -> logging.Logger:
    """Logging for failures that happen before :class:`Settings` can be built.

    The log file is resolved straight from ``LOG_FILE`` / ``WORK_DIR`` in the
    environment, falling back to ``bridge.log`` in the current directory.
    """

    if os.environ.get("LOG_FILE"):
        log_file = Path(os.environ["LOG_FILE"])
    else:
        log_file = Path(os.environ.get("WORK_DIR") or Path.cwd()) / "bridge.log"
    return _install_handlers(log_file, os.environ.get("LOG_CONSOLE_LEVEL") or "ERROR")


def _install_handlers(log_file: Path, console_level: str) -> logging.Logger:
    shutdown_logging()

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    formatter = _UtcIsoFormatter(LOG_FORMAT)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.getLevelName(console_level.upper()))
    console_handler.setFormatter(formatter)

    for handler in (file_handler, console_handler):
        root.addHandler(handler)
        _installed_handlers.append(handler)

    return root


def shutdown_logging() -> None:
    """Flush and close the handlers installed by :func:`configure_logging`."""

    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.flush()
        handler.close()
