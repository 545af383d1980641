# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the cidispatch command line interface."""

from __future__ import annotations

import importlib
from typing import Any

import pytest
from typer.testing import CliRunner

from cidispatch.config import RunnerConfig
from cidispatch.errors import CommandError

app_module = importlib.import_module("cidispatch.cli.app")
runner = CliRunner()


class _RecordingDispatcher:
    calls: list[tuple[str, dict[str, Any]]] = []
    result: int = 0
    error: Exception | None = None

    def __init__(self, config: RunnerConfig) -> None:
        self.config = config

    def run(self, command: str, **kwargs: Any) -> int:
        type(self).calls.append((command, kwargs))
        if type(self).error is not None:
            raise type(self).error
        return type(self).result


@pytest.fixture(autouse=True)
def _fake_dispatcher(monkeypatch: pytest.MonkeyPatch) -> type[_RecordingDispatcher]:
    monkeypatch.setenv("RUNNER_SILENT", "1")
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    monkeypatch.setattr(_RecordingDispatcher, "calls", [])
    monkeypatch.setattr(_RecordingDispatcher, "result", 0)
    monkeypatch.setattr(_RecordingDispatcher, "error", None)
    monkeypatch.setattr(app_module, "Dispatcher", _RecordingDispatcher)
    return _RecordingDispatcher


def test_tool_command_exit_code_is_propagated(_fake_dispatcher: type[_RecordingDispatcher]) -> None:
    _fake_dispatcher.result = 1

    result = runner.invoke(app_module.app, ["shell"])

    assert result.exit_code == 1
    assert _fake_dispatcher.calls == [("shell", {"fix": False, "title": None})]


def test_go_lint_forwards_fix(_fake_dispatcher: type[_RecordingDispatcher]) -> None:
    result = runner.invoke(app_module.app, ["go-lint", "--fix"])

    assert result.exit_code == 0
    assert _fake_dispatcher.calls == [("go-lint", {"fix": True, "title": None})]


def test_pr_title_check_passes_title(_fake_dispatcher: type[_RecordingDispatcher]) -> None:
    result = runner.invoke(app_module.app, ["pr-title-check", "feat: add thing"])

    assert result.exit_code == 0
    assert _fake_dispatcher.calls == [("pr-title-check", {"fix": False, "title": "feat: add thing"})]


def test_errors_are_reported_and_exit_one(_fake_dispatcher: type[_RecordingDispatcher]) -> None:
    _fake_dispatcher.error = CommandError("one or more commands failed: shell", exit_code=3)

    result = runner.invoke(app_module.app, ["ci"])

    assert result.exit_code == 1
    assert "one or more commands failed: shell" in result.output


def test_unknown_subcommand_is_rejected() -> None:
    result = runner.invoke(app_module.app, ["lint-everything"])

    assert result.exit_code != 0


@pytest.mark.parametrize(
    "command",
    [
        "docker",
        "gha",
        "secrets",
        "sast",
        "go-test",
        "go-cover",
        "go-build",
        "go-mod-tidy",
        "go-mod-name",
        "deps",
        "markdown",
        "release",
        "branch-stale-check",
        "deps-bump",
    ],
)
def test_every_command_is_registered(command: str, _fake_dispatcher: type[_RecordingDispatcher]) -> None:
    result = runner.invoke(app_module.app, [command])

    assert result.exit_code == 0
    assert _fake_dispatcher.calls[0][0] == command
