from __future__ import annotations

import logging
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from . import config

LOGGER = logging.getLogger("reviewharvest")
_LOGGER_INITIALISED = False


def _configure_logger(log_path: Optional[Path]) -> None:
    """Configure the shared application logger.

    Lines always go to stdout; ``log_path`` adds a file handler when set.
    """

    global _LOGGER_INITIALISED

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    LOGGER.addHandler(stream_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        LOGGER.addHandler(file_handler)

    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    """Initialise the logger lazily from configuration."""

    if _LOGGER_INITIALISED:
        return
    _configure_logger(config.LOG_FILE)


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the optional log file."""

    _ensure_logger()
    LOGGER.info(message)


def log_exception(message: str) -> None:
    """Log ``message`` with the active exception's traceback."""

    _ensure_logger()
    LOGGER.exception(message)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with milliseconds."""

    return now_utc().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def human_delay(bounds: tuple[float, float], rng: Optional[random.Random] = None) -> float:
    """Return a uniform random delay in seconds within ``bounds``."""

    low, high = bounds
    if high < low:
        low, high = high, low
    if high <= 0:
        return 0.0
    return (rng or random).uniform(max(0.0, low), high)


def wait_seconds(page: Any, seconds: Optional[float]) -> None:
    """Wait safely for ``seconds`` only if *page* remains open."""

    if page is None:
        return

    if seconds is None or seconds <= 0:
        return

    if not page.is_closed():
        page.wait_for_timeout(int(seconds * 1000))
