"""Logging setup and the in-memory capture of a single publishing run."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

LOGGER_NAME = "blob_publisher"


def build_logger(log_path: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console)

    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(fh)

    return logger


class RunLog(logging.Handler):
    """Collects the messages logged during one run so they can be published.

    Use as a context manager: the handler is attached to the package logger
    on entry and detached on exit. ``result()`` renders what was captured as
    a markdown list.
    """

    def __init__(self, logger_name: str = LOGGER_NAME, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.logger = logging.getLogger(logger_name)
        self.lines: list[str] = []
        self._previous_level = logging.NOTSET

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(record.getMessage())

    def __enter__(self) -> "RunLog":
        # The logger may have no level of its own when the CLI did not configure it
        self._previous_level = self.logger.level
        if self.logger.getEffectiveLevel() > self.level:
            self.logger.setLevel(self.level)
        self.logger.addHandler(self)
        return self

    def __exit__(self, *exc_info) -> None:
        self.logger.removeHandler(self)
        self.logger.setLevel(self._previous_level)

    def result(self) -> str:
        return "".join(f"* {line}\n" for line in self.lines)

    def write(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.result(), encoding="utf-8")
        return path
