# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from rich.console import Console

from cidispatch.config import RunnerConfig
from cidispatch.logging import PACKAGE_LOGGER_NAME
from cidispatch.process import ProcessResult


@dataclass
class ScriptedRunner:
    """Process runner double returning canned results keyed by executable name."""

    responses: dict[str, list[ProcessResult]] = field(default_factory=dict)
    calls: list[tuple[list[str], str | None]] = field(default_factory=list)
    default: ProcessResult = ProcessResult(returncode=0, stdout="", stderr="")

    def add(self, binary: str, *results: ProcessResult) -> None:
        self.responses.setdefault(binary, []).extend(results)

    def __call__(self, args: Sequence[str], *, cwd: str | Path | None = None, **_: object) -> ProcessResult:
        argv = list(args)
        self.calls.append((argv, str(cwd) if cwd is not None else None))
        queue = self.responses.get(argv[0])
        if queue:
            return queue.pop(0) if len(queue) > 1 else queue[0]
        return self.default

    def commands(self) -> list[list[str]]:
        return [argv for argv, _ in self.calls]


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo handlers and propagation changes made by ``configure_logging``."""

    yield
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_cidispatch_handler", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def scripted_runner() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture
def runner_config() -> RunnerConfig:
    """Return a human-format configuration rooted at ``/repo``."""
    return RunnerConfig(cwd="/repo", output_format="human", use_emoji=False)


@pytest.fixture
def capture_console() -> Callable[[], tuple[Console, io.StringIO]]:
    """Return a factory building plain consoles that write into a buffer."""

    def factory() -> tuple[Console, io.StringIO]:
        buffer = io.StringIO()
        console = Console(file=buffer, force_terminal=False, color_system=None, width=10_000)
        return console, buffer

    return factory
