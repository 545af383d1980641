# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Repository hygiene checks producing a single finding."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Final

from .git import Branch, GitService
from .models import EMPTY_FINDING, Finding
from .severity import Level

__all__ = [
    "DAYS_BEFORE_STALE",
    "PR_TITLE_PATTERN",
    "check_pr_title",
    "check_stale_branches",
]

LOGGER = logging.getLogger(__name__)

PR_TITLE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(build|chore|ci|docs|feat|fix|perf|refactor|revert|style|test)"
    r"(\([A-Za-z0-9._-]+\))?(!)?: [A-Za-z0-9]+[\s\x20-\x7e]*$"
)
DAYS_BEFORE_STALE: Final[int] = 0
CONVENTIONAL_COMMITS_URL: Final[str] = "https://www.conventionalcommits.org"
_DATE_FORMAT: Final[str] = "%Y-%m-%d"


def check_pr_title(title: str) -> Finding:
    """Return a finding when ``title`` is not a conventional-commit summary.

    Returns:
        Finding: :data:`EMPTY_FINDING` when the title is valid.
    """

    if PR_TITLE_PATTERN.match(title) is None:
        return Finding(
            tool_name="pr-title-checker",
            rule_id="pr-title-conventional-commit",
            level=Level.ERROR.value,
            file_path="pr-title",
            message=f"PR title does not follow conventional commit format - See {CONVENTIONAL_COMMITS_URL}",
        )
    LOGGER.info("PR title is valid: %s", title)
    return EMPTY_FINDING


def _describe(branch: Branch) -> str:
    return f"{branch.name} (last commit by {branch.committer} on {branch.last_commit.strftime(_DATE_FORMAT)})"


def check_stale_branches(
    git: GitService,
    now: datetime | None = None,
    days_before_stale: int = DAYS_BEFORE_STALE,
) -> Finding:
    """Report local branches whose latest commit predates the staleness threshold.

    The branch currently checked out is never reported.

    Args:
        git: Repository to inspect.
        now: Reference time; defaults to the current time in UTC.
        days_before_stale: Age in days after which a branch is stale.

    Returns:
        Finding: One finding listing every stale branch, or :data:`EMPTY_FINDING`.

    Raises:
        CommandError: If git cannot list branches or the origin remote.
    """

    reference = now or datetime.now().astimezone()
    threshold = reference - timedelta(days=days_before_stale)
    current = git.current_branch()
    stale: list[Branch] = []
    for branch in git.branches(exclude=(current,)):
        LOGGER.debug("checking branch %s", branch.name)
        if branch.last_commit < threshold:
            stale.append(branch)

    if not stale:
        return EMPTY_FINDING

    activity_url = f"https://{git.base_path()}/activity?activity_type=branch_deletion"
    message = (
        "The following branches are stale: "
        + ", ".join(_describe(branch) for branch in stale)
        + ". Please delete these stale branches. You can view recently deleted branches"
        + f" (and optionally restore them) by navigating to [repository activity]({activity_url})"
    )
    return Finding(
        tool_name="stale-branch-checker",
        rule_id="no-stale-branch",
        level=Level.ERROR.value,
        file_path="stale-branch",
        message=message,
    )
