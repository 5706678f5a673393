"""
EventDesk logging.

Every module logs through a child of the 'eventdesk' logger
(logging.getLogger(__name__)); configure_logging() attaches one rotating
file handler to that parent:

  logs/eventdesk.log, rotated at 5 MB, 3 old files kept
  level from LOG_LEVEL, INFO when unset or unrecognised

CLI commands are wrapped in @log_call, which traces each invocation:

    2026-10-18 14:32:01 | DEBUG    | CALL estimate | args=(<click.core.Context ...>, booking_id='b-1', apply_it=True)
    2026-10-18 14:32:01 | INFO     | OK   estimate | 4ms
    2026-10-18 14:32:01 | ERROR    | FAIL push | RuntimeError: webhook down | 3ms

Argument reprs are cut at _MAX_ARG_REPR characters so a whole BookingRecord
never lands on one log line.
"""

import functools
import logging
import logging.handlers
import os
import time
from pathlib import Path

_LOG_DIR = Path(__file__).parent.parent / "logs"
_LOG_FILE = _LOG_DIR / "eventdesk.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3
_MAX_ARG_REPR = 80


def configure_logging() -> logging.Logger:
    """Attach the rotating file handler to the 'eventdesk' logger once and return it."""
    logger = logging.getLogger("eventdesk")
    if logger.handlers:
        return logger

    _LOG_DIR.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.handlers.RotatingFileHandler(
        _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)
    return logger


def _short_repr(value) -> str:
    text = repr(value)
    if len(text) > _MAX_ARG_REPR:
        return text[:_MAX_ARG_REPR - 3] + "..."
    return text


def log_call(func):
    """
    Trace a command: CALL at DEBUG with its arguments, OK at INFO with the
    elapsed time, FAIL at ERROR with the exception (which is re-raised).
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("eventdesk")
        name = func.__name__
        start = time.perf_counter()

        parts = [_short_repr(a) for a in args] + [f"{k}={_short_repr(v)}" for k, v in kwargs.items()]
        logger.debug(f"CALL {name} | args=({', '.join(parts) if parts else '—'})")

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"OK   {name} | {ms}ms")
        return result

    return wrapper
