import builtins
import logging
import os
import time
from typing import Any

from bazbot.settings import parse_log_level

_start_time = time.perf_counter()
_LOG_LEVEL_ENV = "BAZBOT_LOG_LEVEL"
_LOG_LEVEL = parse_log_level(os.getenv(_LOG_LEVEL_ENV, "1"))

# verbosity -> stdlib level for the bazbot package loggers
_STDLIB_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)


def _elapsed() -> float:
    return time.perf_counter() - _start_time


def timestamp_prefix() -> str:
    return f"+[{_elapsed():7.2f}]"


def log(*objects: Any, sep: str = " ", end: str = "\n", file=None, flush: bool = False, prefix: bool = True) -> None:
    message = sep.join(str(obj) for obj in objects)
    if prefix:
        message = f"{timestamp_prefix()} {message}"
    builtins.print(message, end=end, file=file, flush=flush)


def verbose_enabled(level: int) -> bool:
    return _LOG_LEVEL >= level


def log_verbose(level: int, *objects: Any, **kwargs: Any) -> None:
    """Emit a log line only when the configured verbosity is high enough."""
    if verbose_enabled(level):
        log(*objects, **kwargs)


def logging_level(verbosity: int) -> int:
    return _STDLIB_LEVELS[min(max(verbosity, 0), len(_STDLIB_LEVELS) - 1)]


class TimestampFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return f"{timestamp_prefix()} [{record.levelname.lower()}] {record.getMessage()}"


def configure_logging(verbosity: int | None = None) -> None:
    """Set the verbosity and route the bazbot package loggers to stderr with timestamps."""
    global _LOG_LEVEL
    if verbosity is not None:
        _LOG_LEVEL = max(0, verbosity)
    logger = logging.getLogger("bazbot")
    logger.setLevel(logging_level(_LOG_LEVEL))
    if not any(isinstance(handler.formatter, TimestampFormatter) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(TimestampFormatter())
        logger.addHandler(handler)
