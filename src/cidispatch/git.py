# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Git helpers used by release and branch hygiene commands."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Final

from .errors import CommandError
from .process import ProcessResult, run_process

__all__ = ["Branch", "GitService", "repository_path"]

LOGGER = logging.getLogger(__name__)

_BRANCH_FORMAT: Final[str] = "%(refname:short)\t%(committerdate:iso-strict)\t%(committername)"
_REMOTE_SCHEMES: Final[tuple[str, ...]] = ("https://", "http://", "ssh://")
_SSH_USER: Final[str] = "git@"


@dataclass(frozen=True, slots=True)
class Branch:
    """Local branch with the metadata of its latest commit."""

    name: str
    last_commit: datetime
    committer: str


def repository_path(remote_url: str) -> str:
    """Return ``host/owner/repo`` for an SSH or HTTPS remote URL."""

    path = remote_url.strip()
    for scheme in _REMOTE_SCHEMES:
        if path.startswith(scheme):
            path = path[len(scheme) :]
            break
    path = path.removeprefix(_SSH_USER)
    return path.removesuffix(".git").replace(":", "/", 1)


class GitService:
    """Run git sub-commands inside a repository."""

    def __init__(self, root: Path | str, runner: Callable[..., ProcessResult] = run_process) -> None:
        self._root = Path(root)
        self._runner = runner

    @property
    def root(self) -> Path:
        return self._root

    def _git(self, *args: str) -> str:
        result = self._runner(["git", *args], cwd=self._root)
        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip()
            raise CommandError(f"git {' '.join(args)} failed: {detail}", exit_code=result.returncode)
        return result.stdout.strip()

    def remote_url(self, remote: str = "origin") -> str:
        """Return the configured URL of ``remote``."""

        return self._git("config", "--get", f"remote.{remote}.url")

    def base_path(self, remote: str = "origin") -> str:
        """Return the ``host/owner/repo`` path of ``remote``."""

        return repository_path(self.remote_url(remote))

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD")

    def branches(self, exclude: Sequence[str] = ()) -> list[Branch]:
        """Return the local branches ordered by name.

        Args:
            exclude: Branch names skipped from the listing.

        Returns:
            list[Branch]: Short branch names with their latest commit metadata.

        Raises:
            CommandError: If git fails or prints an unparsable line.
        """

        output = self._git("for-each-ref", f"--format={_BRANCH_FORMAT}", "refs/heads")
        branches: list[Branch] = []
        for line in output.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            if len(parts) != 3:
                raise CommandError(f"unexpected git for-each-ref output: {line!r}")
            name, stamp, committer = parts
            if name in exclude:
                continue
            try:
                last_commit = datetime.fromisoformat(stamp)
            except ValueError as exc:
                raise CommandError(f"invalid commit date {stamp!r} for branch {name}") from exc
            branches.append(Branch(name=name, last_commit=last_commit, committer=committer))
        branches.sort(key=lambda branch: branch.name)
        return branches

    def create_tag(self, tag: str, message: str | None = None, *, push: bool = True) -> None:
        """Create an annotated ``tag`` at ``HEAD`` and optionally push it."""

        if not tag:
            raise CommandError("tag name is required")
        self._git("tag", "-a", tag, "-m", message or tag)
        LOGGER.info("created tag %s", tag)
        if push:
            self._git("push", "origin", tag)
            LOGGER.info("pushed tag %s", tag)
