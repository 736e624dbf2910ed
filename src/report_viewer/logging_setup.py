"""
Process-wide logging for the report viewer.

Call ``configure_logging(logs_dir)`` once at process entry. It attaches a
console handler and a file handler writing to ``web_<date>_<time>.log`` in the
logs directory, so every process start gets its own file.

Library modules only use ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

LOGGER_NAME = "report_viewer"
LOG_FORMAT = "%(asctime)s || %(levelname)s || %(message)s"
LOG_DATE_FORMAT = "%m/%d/%Y, %H:%M:%S"


class _ConsoleReportingFileHandler(logging.FileHandler):
    """File handler whose write failures are reported on stderr and dropped."""

    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        sys.stderr.write(f"Failed to write to log file {self.baseFilename}: {exc}\n")


def log_file_name(started_at: datetime) -> str:
    return f"web_{started_at.strftime('%Y-%m-%d_%H-%M-%S')}.log"


def configure_logging(
    logs_dir: str | Path,
    level: str = "INFO",
    started_at: datetime | None = None,
) -> Path | None:
    """Configure the ``report_viewer`` logger.

    Returns the log file path, or ``None`` when the file could not be created
    and logging continues on the console only.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    log_path = Path(logs_dir) / log_file_name(started_at or datetime.now())
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = _ConsoleReportingFileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"Failed to initialize logging: {exc}\n")
        return None

    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    logger.info("Web server logging initialized")
    return log_path
