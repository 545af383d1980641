# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Map command names to tool runs, single checks and the aggregate ``ci`` run."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import cached_property
from pathlib import Path
from typing import Final

from rich.console import Console

from .catalog import CI_COMMANDS, Catalog, CatalogContext, Command
from .checks import check_pr_title, check_stale_branches
from .config import RunnerConfig
from .discovery import find_files_by_extension
from .errors import CIDispatchError, CommandError
from .git import GitService
from .linter import ProcessRunner, run_linter
from .models import Finding, ToolInvocation
from .process import run_process
from .reporting import present_findings

__all__ = ["Dispatcher"]

LOGGER = logging.getLogger(__name__)

_SVU: Final[str] = "svu"
_RENOVATE_LOG_LEVEL_ENV: Final[str] = "LOG_LEVEL"


class Dispatcher:
    """Run dispatcher commands against one repository.

    Repository facts (origin path, ``go.mod`` files) are resolved on first use
    so that commands which never need them, such as ``pr-title-check``, run
    outside a git checkout.
    """

    def __init__(
        self,
        config: RunnerConfig,
        *,
        root: Path | str | None = None,
        runner: ProcessRunner = run_process,
        git: GitService | None = None,
        console: Console | None = None,
    ) -> None:
        self._config = config
        self._root = str(root) if root is not None else os.getcwd()
        self._runner = runner
        self._git = git or GitService(self._root, runner=runner)
        self._console = console
        self._handlers: dict[Command, Callable[[bool], int]] = {
            Command.DEPS: lambda _fix: self._deps(),
            Command.RELEASE: lambda _fix: self._release(),
            Command.BRANCH_STALE_CHECK: lambda _fix: self._branch_stale_check(),
            Command.DEPS_BUMP: lambda _fix: self._deps_bump(),
            Command.CI: self._ci,
        }

    @property
    def config(self) -> RunnerConfig:
        return self._config

    @cached_property
    def catalog(self) -> Catalog:
        """Tool catalog bound to this repository."""

        modules = find_files_by_extension("go.mod", [self._root], recursive=True)
        LOGGER.debug("go modules: %s", modules)
        context = CatalogContext(
            root=self._root,
            repo_path=self._git.base_path(),
            go_modules=tuple(modules),
        )
        return Catalog(context)

    def run(self, command: str, *, fix: bool = False, title: str | None = None) -> int:
        """Run ``command`` and return its exit code.

        Args:
            command: Dispatcher command name.
            fix: Let tools that support it rewrite files in place.
            title: Pull request title, required by ``pr-title-check``.

        Returns:
            int: ``0`` on success, non-zero when a tool failed.

        Raises:
            CommandError: If the command is unknown, a single check reports a
                finding, or a prerequisite step fails.
            CIDispatchError: Any error raised while running a tool.
        """

        LOGGER.info("running %s", command)
        if command == Command.PR_TITLE_CHECK:
            if title is None:
                raise CommandError("pr-title-check requires a title")
            return self._report_check(command, check_pr_title(title))
        handler = self._handlers.get(command)
        if handler is not None:
            return handler(fix)
        return self._run_catalog(command, fix=fix)

    def _lint(self, invocation: ToolInvocation) -> int:
        return run_linter(self._config, invocation, runner=self._runner, console=self._console).returncode

    def _run_catalog(self, command: str, *, fix: bool) -> int:
        returncode = 0
        for invocation in self.catalog.invocations(command, fix=fix):
            if invocation.workdir:
                LOGGER.info("running %s in %s", command, invocation.workdir)
            if self._lint(invocation) != 0:
                returncode = 1
        return returncode

    def _report_check(self, command: str, finding: Finding) -> int:
        if finding.is_empty:
            LOGGER.info("%s passed", command)
            return 0
        present_findings([finding], self._config.output_format, cwd=self._config.cwd, console=self._console)
        raise CommandError(f"{command} failed: {finding.message}")

    def _branch_stale_check(self) -> int:
        return self._report_check(Command.BRANCH_STALE_CHECK, check_stale_branches(self._git))

    def _deps(self) -> int:
        with tempfile.TemporaryDirectory(prefix="sbom-") as workspace:
            sbom_file = str(Path(workspace) / "sbom.json")
            LOGGER.info("generating SBOM into %s", sbom_file)
            returncode = self._lint(self.catalog.sbom(sbom_file))
            if returncode != 0:
                raise CommandError(f"deps: syft exited with status {returncode}", exit_code=returncode)
            LOGGER.info("scanning SBOM %s", sbom_file)
            return self._lint(self.catalog.vulnerabilities(sbom_file))

    def _deps_bump(self) -> int:
        if self._config.debug:
            os.environ[_RENOVATE_LOG_LEVEL_ENV] = "debug"
        return self._lint(self.catalog.deps_bump())

    def _svu(self, subcommand: str) -> str:
        result = self._runner([_SVU, subcommand], cwd=self._root)
        if result.returncode != 0:
            raise CommandError(
                f"svu {subcommand} failed: {result.stderr.strip()}",
                exit_code=result.returncode,
            )
        return result.stdout.strip()

    def _release(self) -> int:
        current = self._svu("current")
        upcoming = self._svu("next")
        if upcoming == current:
            LOGGER.info("skipping release, no new version since %s", current)
            return 0
        self._git.create_tag(upcoming, f"Release {upcoming}")
        returncode = self._lint(self.catalog.release())
        if returncode != 0:
            raise CommandError(f"goreleaser exited with status {returncode}", exit_code=returncode)
        return returncode

    def _ci(self, fix: bool) -> int:
        # Resolve the catalog once before the workers share it.
        _ = self.catalog
        failed: set[str] = set()
        lock = threading.Lock()

        def run_one(command: str) -> None:
            try:
                returncode = self.run(command, fix=fix and command == Command.GO_LINT)
            except CIDispatchError as exc:
                LOGGER.error("error executing %s: %s", command, exc)
                returncode = 1
            if returncode != 0:
                LOGGER.error("%s failed with exit code %d", command, returncode)
                with lock:
                    failed.add(command)
            else:
                LOGGER.debug("%s succeeded", command)

        with ThreadPoolExecutor(max_workers=len(CI_COMMANDS), thread_name_prefix="ci") as executor:
            futures = [executor.submit(run_one, command) for command in CI_COMMANDS]
            for future in as_completed(futures):
                future.result()

        if failed:
            raise CommandError(f"one or more commands failed: {', '.join(sorted(failed))}")
        LOGGER.info("all commands succeeded")
        return 0
