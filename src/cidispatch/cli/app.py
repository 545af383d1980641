# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands to the dispatcher."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Annotated, Final

import typer

from ..catalog import Command
from ..config import RunnerConfig
from ..dispatch import Dispatcher
from ..errors import CIDispatchError
from ..logging import configure_logging, fail, ok, warn

__all__ = ["app"]

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    help="Run CI linters and checks, reporting findings for humans or GitHub annotations.",
    no_args_is_help=True,
    add_completion=False,
)

_TOOL_COMMANDS: Final[dict[Command, str]] = {
    Command.DOCKER: "Run Dockerfile linter.",
    Command.GHA: "Run GitHub Actions linter.",
    Command.SECRETS: "Run secrets detection.",
    Command.SAST: "Run Static Application Security Testing (SAST).",
    Command.GO_TEST: "Run Go tests.",
    Command.GO_COVER: "Run Go test coverage.",
    Command.GO_BUILD: "Run Go build.",
    Command.GO_MOD_TIDY: "Run Go mod tidiness check.",
    Command.GO_MOD_NAME: "Check Go module names against the repository structure.",
    Command.DEPS: "Run dependency vulnerability analysis.",
    Command.MARKDOWN: "Run Markdown linter.",
    Command.SHELL: "Run shell script linter.",
    Command.RELEASE: "Tag the next semantic version and publish a release.",
    Command.BRANCH_STALE_CHECK: "Check for stale branches.",
    Command.DEPS_BUMP: "Run dependency updates.",
}

FixOption = Annotated[bool, typer.Option("--fix", help="Let tools rewrite files in place.")]


@app.callback()
def main(ctx: typer.Context) -> None:
    """Configure logging and bind a dispatcher to the current repository."""

    config = RunnerConfig.from_environment()
    configure_logging(config)
    ctx.obj = Dispatcher(config)


def _dispatch(ctx: typer.Context, command: str, *, fix: bool = False, title: str | None = None) -> None:
    """Run ``command`` and exit with its status.

    Raises:
        typer.Exit: Always raised to terminate the command with an exit status.
    """

    dispatcher: Dispatcher = ctx.obj
    started = time.perf_counter()
    try:
        returncode = dispatcher.run(command, fix=fix, title=title)
    except CIDispatchError as exc:
        fail(f"error executing command: {exc}", use_emoji=dispatcher.config.use_emoji)
        raise typer.Exit(code=1) from exc
    finally:
        LOGGER.debug("%s finished in %.2fs", command, time.perf_counter() - started)
    use_emoji = dispatcher.config.use_emoji
    if returncode == 0:
        ok(f"{command} succeeded", use_emoji=use_emoji)
    else:
        warn(f"{command} exited with status {returncode}", use_emoji=use_emoji)
    raise typer.Exit(code=returncode)


def _tool_command(command: str) -> Callable[[typer.Context], None]:
    def run(ctx: typer.Context) -> None:
        _dispatch(ctx, command)

    run.__name__ = command.replace("-", "_")
    return run


for _name, _help in _TOOL_COMMANDS.items():
    app.command(name=_name, help=_help)(_tool_command(_name))


@app.command(name=Command.GO_LINT)
def go_lint(ctx: typer.Context, fix: FixOption = False) -> None:
    """Run Go linter."""

    _dispatch(ctx, Command.GO_LINT, fix=fix)


@app.command(name=Command.PR_TITLE_CHECK)
def pr_title_check(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Pull request title to validate.")],
) -> None:
    """Check PR title format."""

    _dispatch(ctx, Command.PR_TITLE_CHECK, title=title)


@app.command(name=Command.CI)
def ci(ctx: typer.Context, fix: FixOption = False) -> None:
    """Run all CI commands concurrently."""

    _dispatch(ctx, Command.CI, fix=fix)
