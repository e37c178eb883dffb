"""Root logger configuration for the desktop app."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def default_logs_dir() -> Path:
    return Path.home() / ".config" / "brate_counter" / "logs"


def setup_logging(logs_dir: Path | None = None, verbose: bool = False) -> Path:
    """Log to a rotating file (1 MB x 3) and to stderr.

    Existing root handlers are removed first, so calling this twice does not
    duplicate output. Returns the log file path.
    """
    logs_dir = logs_dir or default_logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    log_file = logs_dir / "brate_counter.log"
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.info("logging initialized: level=%s", logging.getLevelName(level))
    return log_file
