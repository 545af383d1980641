# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the git service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from cidispatch.errors import CommandError
from cidispatch.git import GitService, repository_path
from cidispatch.process import ProcessResult

if TYPE_CHECKING:
    from conftest import ScriptedRunner


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("git@github.com:acme/widgets.git", "github.com/acme/widgets"),
        ("https://github.com/acme/widgets.git", "github.com/acme/widgets"),
        ("https://github.com/acme/widgets", "github.com/acme/widgets"),
        ("ssh://git@example.org/acme/widgets.git", "example.org/acme/widgets"),
    ],
)
def test_repository_path(url: str, expected: str) -> None:
    assert repository_path(url) == expected


def test_base_path_reads_origin(scripted_runner: ScriptedRunner) -> None:
    scripted_runner.add("git", ProcessResult(returncode=0, stdout="git@github.com:acme/widgets.git\n", stderr=""))
    git = GitService("/repo", runner=scripted_runner)

    assert git.base_path() == "github.com/acme/widgets"
    assert scripted_runner.calls == [(["git", "config", "--get", "remote.origin.url"], "/repo")]


def test_branches_are_parsed_and_sorted(scripted_runner: ScriptedRunner) -> None:
    output = "\n".join(
        [
            "main\t2025-03-01T10:00:00+00:00\tAda",
            "feature/x\t2025-01-15T08:30:00+01:00\tGrace",
            "old\t2024-12-31T23:59:59+00:00\tLinus",
        ]
    )
    scripted_runner.add("git", ProcessResult(returncode=0, stdout=output, stderr=""))
    git = GitService("/repo", runner=scripted_runner)

    branches = git.branches(exclude=("main",))

    assert [branch.name for branch in branches] == ["feature/x", "old"]
    assert branches[0].committer == "Grace"
    assert branches[0].last_commit == datetime(2025, 1, 15, 8, 30, tzinfo=timezone(timedelta(hours=1)))


def test_branches_reject_garbled_output(scripted_runner: ScriptedRunner) -> None:
    scripted_runner.add("git", ProcessResult(returncode=0, stdout="main only", stderr=""))

    with pytest.raises(CommandError):
        GitService("/repo", runner=scripted_runner).branches()


def test_git_failure_raises_command_error(scripted_runner: ScriptedRunner) -> None:
    scripted_runner.add("git", ProcessResult(returncode=128, stdout="", stderr="fatal: not a git repository"))

    with pytest.raises(CommandError, match="not a git repository") as excinfo:
        GitService("/repo", runner=scripted_runner).current_branch()
    assert excinfo.value.exit_code == 128


def test_create_tag_tags_and_pushes(scripted_runner: ScriptedRunner) -> None:
    GitService("/repo", runner=scripted_runner).create_tag("v1.2.0", "Release v1.2.0")

    assert scripted_runner.commands() == [
        ["git", "tag", "-a", "v1.2.0", "-m", "Release v1.2.0"],
        ["git", "push", "origin", "v1.2.0"],
    ]
