# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Consoles for rendered findings and for status lines.

Findings are printed to stdout exactly as rendered so JSON documents and
GitHub workflow commands stay machine readable. Status lines go to stderr,
where Rich colours them only when stderr is a terminal.
"""

from __future__ import annotations

from functools import lru_cache

from rich.console import Console

__all__ = ["findings_console", "status_console"]


@lru_cache(maxsize=1)
def findings_console() -> Console:
    """Return the stdout console used for rendered findings."""

    return Console(
        color_system=None,
        markup=False,
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )


@lru_cache(maxsize=1)
def status_console() -> Console:
    """Return the stderr console used for command status lines."""

    return Console(stderr=True, markup=False, emoji=False, highlight=False, soft_wrap=True)
