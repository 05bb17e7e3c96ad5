"""
Logging for quantumpkg.

All loggers live under the ``quantumpkg`` namespace. Library code only ever
calls :func:`get_logger`; the CLI calls :func:`setup_logging` once, after it
has translated ``-v`` flags with :func:`level_for_verbosity`.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from quantumpkg.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "quantumpkg"

# ANSI foreground colours by level
_LEVEL_COLORS = {
    logging.DEBUG: 36,
    logging.INFO: 32,
    logging.WARNING: 33,
    logging.ERROR: 31,
    logging.CRITICAL: 35,
}

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name when writing to a terminal."""

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        code = _LEVEL_COLORS.get(record.levelno)
        if code is None or not (self.use_color and _stream_supports_color()):
            return super().format(record)

        # Other handlers must still see the plain level name
        plain = record.levelname
        record.levelname = f"\033[{code}m{plain}\033[0m"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def _stream_supports_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stderr.isatty()
    except (AttributeError, OSError):
        return False


def level_for_verbosity(verbose: int) -> int:
    """Map the number of ``-v`` flags to a logging level.

    ``0`` -> WARNING, ``1`` -> INFO, ``2`` or more -> DEBUG.
    """
    return {0: logging.WARNING, 1: logging.INFO}.get(max(verbose, 0), logging.DEBUG)


def _build_handler(
    level: int,
    verbose: bool,
    stream: Optional[IO[str]],
    use_color: bool,
) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        ColoredFormatter(
            LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            use_color=use_color,
        )
    )
    return handler


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
    use_color: Optional[bool] = None,
) -> None:
    """Send ``quantumpkg`` log records to ``stream`` (stderr by default).

    Each call replaces the handler installed by the previous one. ``verbose``
    selects the timestamped format; ``use_color=None`` honours ``NO_COLOR``.
    """
    global _logging_configured

    if use_color is None:
        use_color = not os.environ.get("NO_COLOR")
    handler = _build_handler(level, verbose, stream, use_color)

    with _lock:
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.handlers.clear()
        package_logger.addHandler(handler)
        package_logger.setLevel(level)
        package_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the ``quantumpkg`` namespace.

    ``get_logger("resolver")`` and ``get_logger("quantumpkg.resolver")``
    return the same logger.
    """
    if not name or name == ROOT_LOGGER_NAME:
        qualified = ROOT_LOGGER_NAME
    elif name.startswith(f"{ROOT_LOGGER_NAME}."):
        qualified = name
    else:
        qualified = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(qualified)

    # Stay silent until the CLI configures a handler
    if not logger.handlers and (logger.parent is None or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """True once :func:`setup_logging` has run and :func:`disable_logging` has not."""
    return _logging_configured


def disable_logging() -> None:
    """Drop the installed handler and silence quantumpkg logging."""
    global _logging_configured

    with _lock:
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.handlers.clear()
        package_logger.addHandler(logging.NullHandler())
        package_logger.setLevel(logging.NOTSET)
        _logging_configured = False
