"""Logging for ``expense_insights``.

Library modules log through ``get_logger("expense_insights.<module>")`` and
stay silent until the CLI (or a host application) calls
:func:`configure_logging`. Records go to stderr so JSON and CSV written to
stdout remain machine-readable.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "expense_insights"
_LEVEL_ENV_VAR = "EXPENSE_INSIGHTS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str) -> int:
    """Map an int, a numeric string or a level name to a level; INFO otherwise."""

    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one stream handler to the package logger; later calls are no-ops.

    ``level`` falls back to ``EXPENSE_INSIGHTS_LOG_LEVEL``, then INFO.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    if level is None:
        level = os.getenv(_LEVEL_ENV_VAR) or logging.INFO
    resolved = _parse_level(level)

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = False

    _CONFIGURED = True


def reset_logging() -> None:
    """Undo :func:`configure_logging` (tests configure more than once per process)."""

    global _CONFIGURED
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
    _CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging"]
