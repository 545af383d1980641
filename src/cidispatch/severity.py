# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Level(StrEnum):
    """Finding levels understood by GitHub workflow commands."""

    DEBUG = "debug"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"


LEVEL_SYNONYMS: Final[dict[str, Level]] = {
    "info": Level.NOTICE,
    "low": Level.NOTICE,
    "medium": Level.WARNING,
    "critical": Level.ERROR,
    "high": Level.ERROR,
}


_VALID_LEVELS: Final[frozenset[str]] = frozenset(level.value for level in Level)


def canonical_level(value: str) -> str:
    """Return ``value`` lower-cased and mapped through :data:`LEVEL_SYNONYMS`.

    The result is not guaranteed to be a valid :class:`Level`; callers use
    :func:`is_valid_level` to decide.
    """

    lowered = value.lower()
    synonym = LEVEL_SYNONYMS.get(lowered)
    return synonym.value if synonym is not None else lowered


def is_valid_level(value: str) -> bool:
    """Return ``True`` when ``value`` names a :class:`Level`."""

    return value in _VALID_LEVELS


__all__ = ["LEVEL_SYNONYMS", "Level", "canonical_level", "is_valid_level"]
