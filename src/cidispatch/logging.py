# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers and runtime log configuration."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Final

from rich.text import Text

from .console import status_console

if TYPE_CHECKING:
    from .config import RunnerConfig

__all__ = ["configure_logging", "fail", "ok", "warn"]

PACKAGE_LOGGER_NAME: Final[str] = "cidispatch"
_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_MARKER: Final[str] = "_cidispatch_handler"


def configure_logging(config: RunnerConfig) -> logging.Logger:
    """Attach a single stream handler to the package logger according to ``config``.

    Debug mode lowers the threshold to ``DEBUG``; silent mode routes records to
    a null handler. Repeated calls replace the previously installed handler.

    Returns:
        logging.Logger: The configured package logger.
    """

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            logger.removeHandler(existing)
            existing.close()

    handler: logging.Handler = logging.NullHandler() if config.silent else logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if config.debug else logging.INFO)
    logger.propagate = False
    logger.debug("logging configured (debug=%s, silent=%s)", config.debug, config.silent)
    return logger


_STATUS_MARKS: Final[dict[str, tuple[str, str]]] = {
    "ok": ("✅", "green"),
    "warn": ("⚠️", "yellow"),
    "fail": ("❌", "red"),
}


def _print_status(kind: str, msg: str, use_emoji: bool) -> None:
    mark, style = _STATUS_MARKS[kind]
    status_console().print(Text(f"{mark} {msg}" if use_emoji else msg, style=style))


def ok(msg: str, *, use_emoji: bool) -> None:
    """Report a command that succeeded."""

    _print_status("ok", msg, use_emoji)


def warn(msg: str, *, use_emoji: bool) -> None:
    """Report a command that finished with a non-zero status."""

    _print_status("warn", msg, use_emoji)


def fail(msg: str, *, use_emoji: bool) -> None:
    """Report a command that could not run to completion."""

    _print_status("fail", msg, use_emoji)
