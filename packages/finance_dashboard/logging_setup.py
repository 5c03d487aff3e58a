"""Logging configuration shared by every ``finance_dashboard`` entrypoint.

Two helpers are public:

- ``configure_logging(...)`` installs one ``StreamHandler`` on the
  ``"finance_dashboard"`` logger. Entrypoints (the CLI, a web host) call it
  once at startup; repeated calls are no-ops unless ``force=True``.
- ``get_logger(name)`` returns a child logger and makes sure the package
  logger carries a ``NullHandler`` until somebody configures it, so library
  use stays silent.

Modules never attach handlers themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "finance_dashboard"
_LEVEL_ENV = "FINANCE_DASHBOARD_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    # getLevelName returns "Level X" for unknown names
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """Attach the package handler.

    ``level`` accepts an int or a level name; ``None`` reads
    ``FINANCE_DASHBOARD_LOG_LEVEL`` and otherwise uses ``INFO``. ``stream``
    defaults to the current ``sys.stderr``.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        if not force:
            return
        logger.removeHandler(_handler)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with a silent default for library use."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
