# src/deadline_penalty/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

APP_LOGGER = "deadline_penalty"

# Minimum console level per logger prefix; the longest matching prefix wins.
# The sweeper runs every second, so it reaches the console only at WARNING+.
# Captured Python warnings and everything outside the app need ERROR.
CONSOLE_THRESHOLDS: dict[str, int] = {
    APP_LOGGER: logging.DEBUG,
    f"{APP_LOGGER}.tasks.task_scheduler": logging.WARNING,
    "py.warnings": logging.ERROR,
}
DEFAULT_THRESHOLD = logging.ERROR

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _matches(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


def console_threshold(name: str) -> int:
    best = ""
    level = DEFAULT_THRESHOLD
    for prefix, prefix_level in CONSOLE_THRESHOLDS.items():
        if _matches(name, prefix) and len(prefix) > len(best):
            best, level = prefix, prefix_level
    return level


class _ConsoleNoiseFilter(logging.Filter):
    """Keep stderr readable next to the console prompt (see CONSOLE_THRESHOLDS)."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_path: str | Path,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure the root logger once, before the first log line:
    - stderr: console_level and up, thinned out by _ConsoleNoiseFilter
    - log_path: everything from file_level, appended across runs

    Returns the resolved log file path.
    """
    log_path = Path(log_path).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))

    # Called again (tests, re-init): drop the previous handlers.
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_path
