"""Centralized logging configuration for the ``credit_ledger`` package.

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  logger (``"credit_ledger"``). Called once by entry points (the CLI) at
  startup.
- ``get_logger(name)``: acquire a module logger, making sure the package
  logger carries a ``NullHandler`` until an entry point configures it.

Library modules never attach handlers themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "credit_ledger"
_LEVEL_ENV = "CREDIT_LEDGER_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_name(value: int | str | None) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        # Numeric strings or standard level names (INFO/DEBUG/etc.).
        name = value.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = getattr(logging, name, None)
        if isinstance(numeric, int):
            return numeric
    return None


def _parse_level(level: int | str | None) -> int:
    resolved = _level_from_name(level)
    if resolved is not None:
        return resolved
    # Env override when explicit ``level`` is None or unrecognized
    resolved = _level_from_name(os.getenv(_LEVEL_ENV))
    return resolved if resolved is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Configure the package logger exactly once.

    Parameters
    ----------
    level:
        ``int`` or level name. When ``None``, ``CREDIT_LEDGER_LOG_LEVEL`` is
        consulted, falling back to ``logging.INFO``.
    fmt:
        Optional format string (defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``).
    stream:
        Output stream for the handler (defaults to ``sys.stderr`` at call time).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False

    _CONFIGURED = True


def reset_logging() -> None:
    """Drop handlers installed by :func:`configure_logging` (used by tests)."""

    global _CONFIGURED
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name with library-safe defaults."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging"]
