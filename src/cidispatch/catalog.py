# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Catalog of the external tools run by the dispatcher and how their output maps to findings."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .config import select_config_file
from .errors import CommandError
from .models import DocumentShape, ExtractionSpec, FieldMapping, ToolInvocation
from .severity import Level

__all__ = [
    "CI_COMMANDS",
    "Catalog",
    "CatalogContext",
    "Command",
]

LOGGER = logging.getLogger(__name__)


class Command(StrEnum):
    """Names of every command understood by the dispatcher."""

    DOCKER = "docker"
    GHA = "gha"
    SECRETS = "secrets"
    SAST = "sast"
    GO_TEST = "go-test"
    GO_COVER = "go-cover"
    GO_BUILD = "go-build"
    GO_MOD_TIDY = "go-mod-tidy"
    GO_MOD_NAME = "go-mod-name"
    GO_LINT = "go-lint"
    DEPS = "deps"
    MARKDOWN = "markdown"
    SHELL = "shell"
    RELEASE = "release"
    PR_TITLE_CHECK = "pr-title-check"
    BRANCH_STALE_CHECK = "branch-stale-check"
    CI = "ci"
    DEPS_BUMP = "deps-bump"


CI_COMMANDS: Final[tuple[Command, ...]] = (
    Command.DOCKER,
    Command.GHA,
    Command.SECRETS,
    Command.SAST,
    Command.GO_TEST,
    Command.GO_COVER,
    Command.GO_BUILD,
    Command.GO_MOD_TIDY,
    Command.GO_MOD_NAME,
    Command.GO_LINT,
    Command.DEPS,
    Command.MARKDOWN,
    Command.SHELL,
)

_DEPLOY_DIR: Final[str] = "deploy"
_GO_MOD: Final[str] = "go.mod"
_SEMGREP_RULESETS: Final[tuple[str, ...]] = (
    "p/default",
    "p/gitlab",
    "p/golang",
    "p/cwe-top-25",
    "p/owasp-top-ten",
    "p/r2c-security-audit",
    "p/kubernetes",
    "p/dockerfile",
)


def _const(value: str, suffix: FieldMapping | None = None) -> FieldMapping:
    return FieldMapping(override=value, suffix=suffix)


def _key(key: str, **options: object) -> FieldMapping:
    return FieldMapping(key=key, **options)


def _chain(*parts: FieldMapping) -> FieldMapping:
    """Link ``parts`` so that each one is the suffix of the previous one."""

    chained: FieldMapping | None = None
    for part in reversed(parts):
        chained = part.model_copy(update={"suffix": chained})
    if chained is None:
        raise ValueError("at least one mapping is required")
    return chained


@dataclass(frozen=True, slots=True)
class CatalogContext:
    """Repository facts the tool invocations depend on.

    Attributes:
        root: Absolute directory commands run from and discover files in.
        repo_path: ``host/owner/repo`` path of the origin remote.
        go_modules: ``go.mod`` files found beneath ``root``.
    """

    root: str
    repo_path: str
    go_modules: tuple[str, ...] = ()

    def relative(self, path: str) -> str:
        """Return ``path`` relative to :attr:`root` without a leading slash."""

        prefix = self.root.rstrip("/")
        if path.startswith(prefix):
            path = path[len(prefix) :]
        return path.lstrip("/")

    def module_dir(self, module: str) -> str:
        return os.path.dirname(module) or "."


class Catalog:
    """Build :class:`ToolInvocation` objects for the linting commands."""

    def __init__(self, context: CatalogContext) -> None:
        self._context = context
        self._builders: dict[Command, Callable[[bool], list[ToolInvocation]]] = {
            Command.DOCKER: lambda _fix: [self.docker()],
            Command.GHA: lambda _fix: [self.gha()],
            Command.SECRETS: lambda _fix: [self.secrets()],
            Command.SAST: lambda _fix: [self.sast()],
            Command.GO_TEST: lambda _fix: self.go_test(),
            Command.GO_COVER: lambda _fix: self.go_cover(),
            Command.GO_BUILD: lambda _fix: [self.go_build()],
            Command.GO_MOD_TIDY: lambda _fix: self.go_mod_tidy(),
            Command.GO_MOD_NAME: lambda _fix: self.go_mod_name(),
            Command.GO_LINT: lambda fix: [self.go_lint(fix=fix)],
            Command.MARKDOWN: lambda _fix: [self.markdown()],
            Command.SHELL: lambda _fix: [self.shell()],
            Command.DEPS_BUMP: lambda _fix: [self.deps_bump()],
        }

    @property
    def context(self) -> CatalogContext:
        return self._context

    @property
    def names(self) -> tuple[Command, ...]:
        """Commands that map directly to one or more tool invocations."""

        return tuple(self._builders)

    def invocations(self, command: str, *, fix: bool = False) -> list[ToolInvocation]:
        """Return the invocations ``command`` runs, in order.

        Raises:
            CommandError: If ``command`` is not a catalog command.
        """

        builder = self._builders.get(command)
        if builder is None:
            raise CommandError(f"unknown command {command!r}")
        return builder(fix)

    def _eligible_modules(self, *, skip_deploy: bool) -> list[str]:
        modules: list[str] = []
        for module in self._context.go_modules:
            if skip_deploy and self._context.relative(module).startswith(f"{_DEPLOY_DIR}/"):
                LOGGER.info("skipping module %s", module)
                continue
            modules.append(module)
        return modules

    def docker(self) -> ToolInvocation:
        return ToolInvocation(
            binary="hadolint",
            extension="Dockerfile",
            paths=(self._context.root,),
            cli_args=("--format", "json"),
            extraction=ExtractionSpec(
                tool_name=_const("hadolint"),
                rule_id=_key("code"),
                level=_key("level"),
                file_path=_key("file"),
                start_line=_key("line"),
                message=_key("message"),
            ),
        )

    def gha(self) -> ToolInvocation:
        root = self._context.root.rstrip("/")
        return ToolInvocation(
            binary="actionlint",
            extension=".yaml",
            paths=(f"{root}/.github/workflows", f"{root}/.github/actions"),
            cli_args=("-format", "{{json .}}"),
            extraction=ExtractionSpec(
                tool_name=_const("gha-actionlint"),
                rule_id=_key("kind"),
                level=_const(Level.WARNING.value),
                file_path=_key("filepath"),
                start_line=_key("line"),
                start_col=_key("col"),
                message=_key("message"),
            ),
        )

    def secrets(self) -> ToolInvocation:
        return ToolInvocation(
            binary="gitleaks",
            cli_args=(
                "git",
                "--no-banner",
                "--max-decode-depth",
                "3",
                "--redact=80",
                "--report-format",
                "json",
                "--gitleaks-ignore-path",
                select_config_file("gitleaks/.gitleaksignore"),
                "--report-path",
                "-",
            ),
            extraction=ExtractionSpec(
                tool_name=_const("secrets-gitleaks"),
                rule_id=_key("RuleID"),
                level=_const(Level.ERROR.value),
                file_path=_key("File"),
                start_line=_key("StartLine"),
                end_line=_key("EndLine"),
                start_col=_key("StartColumn"),
                end_col=_key("EndColumn"),
                message=_key("Description"),
            ),
        )

    def sast(self) -> ToolInvocation:
        args = ["scan", "--metrics=off", "--error", "--json"]
        for ruleset in _SEMGREP_RULESETS:
            args.extend(("--config", ruleset))
        return ToolInvocation(
            binary="semgrep",
            cli_args=tuple(args),
            extraction=ExtractionSpec(
                base_array_key="results",
                tool_name=_const("sast-semgrep"),
                rule_id=_key("check_id"),
                level=_key("extra.severity"),
                file_path=_key("path"),
                start_line=_key("start.line"),
                end_line=_key("end.line"),
                start_col=_key("start.col"),
                end_col=_key("end.col"),
                message=_key("extra.message"),
            ),
        )

    def _package_path(self) -> FieldMapping:
        return _key("Package", value_transformer_regex=re.escape(self._context.repo_path) + "/(.*)")

    def go_test(self) -> list[ToolInvocation]:
        """Run the test suite of every module outside ``deploy/``, one finding per failing assertion."""

        extraction = ExtractionSpec(
            shape=DocumentShape.STREAM,
            tool_name=_const("go-test"),
            rule_id=_const("no-failing-test"),
            level=_const(Level.ERROR.value),
            file_path=_chain(
                self._package_path(),
                _const("/"),
                _key("Output", value_transformer_regex=r"\s*(\w+_test\.go):"),
            ),
            start_line=_key("Output", value_transformer_regex=r"\s*\w+_test\.go:(\d+):"),
            message=_key(
                "Output",
                global_selector_regex=r"\s*(\w+_test\.go:\d+):",
                value_transformer_regex=r"\s*\w+_test\.go:\d+:\s*(.*)",
            ),
        )
        return [
            ToolInvocation(
                binary="go",
                workdir=self._context.module_dir(module),
                cli_args=("test", "-bench=.", "-benchmem", "-json", "-race", "./..."),
                extraction=extraction,
            )
            for module in self._eligible_modules(skip_deploy=True)
        ]

    def go_cover(self) -> list[ToolInvocation]:
        """Fail every module outside ``deploy/`` whose package coverage is below 70%."""

        extraction = ExtractionSpec(
            shape=DocumentShape.STREAM,
            tool_name=_const("go-cover"),
            rule_id=_const("no-cover-below-70"),
            level=_const(Level.ERROR.value),
            file_path=self._package_path(),
            message=_key(
                "Output",
                global_selector_regex=r"coverage:\s*([0-6](\d)?(\.\d)?)% of statements",
                value_transformer_regex=r"coverage:\s*([0-6](\d)?(\.\d)?%) of statements",
                suffix=_const(" package coverage is below 70%"),
            ),
        )
        return [
            ToolInvocation(
                binary="go",
                workdir=self._context.module_dir(module),
                cli_args=("test", "-covermode=atomic", "-json", "./..."),
                extraction=extraction,
                fail_on_findings=True,
            )
            for module in self._eligible_modules(skip_deploy=True)
        ]

    def go_build(self) -> ToolInvocation:
        return ToolInvocation(
            binary="goreleaser",
            cli_args=(
                "build",
                "--config",
                select_config_file("goreleaser/.goreleaser.yaml"),
                "--clean",
                "--snapshot",
            ),
        )

    def go_mod_tidy(self) -> list[ToolInvocation]:
        invocations: list[ToolInvocation] = []
        for module in self._eligible_modules(skip_deploy=False):
            invocations.append(
                ToolInvocation(
                    binary="go",
                    workdir=self._context.module_dir(module),
                    cli_args=("mod", "tidy", "-diff"),
                    extraction=ExtractionSpec(
                        shape=DocumentShape.PLAIN,
                        tool_name=_const("go-mod-tidy"),
                        rule_id=_const("no-unused-dependency"),
                        level=_const(Level.ERROR.value),
                        file_path=_const(self._context.relative(module)),
                        message=_const(f"Unused dependencies found in {module}"),
                    ),
                )
            )
        return invocations

    def expected_module_name(self, module: str) -> str:
        """Return the module path ``module`` must declare given its location in the repository."""

        directory = os.path.dirname(self._context.relative(module))
        return f"{self._context.repo_path}/{directory}" if directory else self._context.repo_path

    def go_mod_name(self) -> list[ToolInvocation]:
        invocations: list[ToolInvocation] = []
        for module in self._eligible_modules(skip_deploy=False):
            expected = self.expected_module_name(module)
            invocations.append(
                ToolInvocation(
                    binary="go",
                    workdir=self._context.module_dir(module),
                    cli_args=("mod", "edit", "-json"),
                    extraction=ExtractionSpec(
                        shape=DocumentShape.OBJECT,
                        tool_name=_const("go-mod-name"),
                        rule_id=_const("mod-name-must-match-repo-structure"),
                        level=_const(Level.ERROR.value),
                        file_path=_const(self._context.relative(module)),
                        message=_key(
                            "Module.Path",
                            global_selector_regex=re.escape(expected) + "$",
                            invert_global_selector=True,
                            suffix=_chain(
                                _const(" does not match the repository structure, module name should be "),
                                _const(expected),
                            ),
                        ),
                    ),
                )
            )
        return invocations

    def go_lint(self, *, fix: bool = False) -> ToolInvocation:
        args = [
            "run",
            "--config",
            select_config_file("golangci-lint/.golangci.yaml"),
            "--show-stats=false",
            "--output.json.path",
            "stdout",
        ]
        if fix:
            args.append("--fix")
        return ToolInvocation(
            binary="golangci-lint",
            cli_args=tuple(args),
            extraction=ExtractionSpec(
                base_array_key="Issues",
                tool_name=_const("golangci-lint"),
                rule_id=_key("FromLinter"),
                level=_key("Severity"),
                file_path=_key("Pos.Filename"),
                start_line=_key("Pos.Line"),
                start_col=_key("Pos.Column"),
                message=_key("Text"),
            ),
        )

    def sbom(self, output_file: str) -> ToolInvocation:
        """Generate an SPDX SBOM of the repository into ``output_file``."""

        return ToolInvocation(
            binary="syft",
            cli_args=(
                "scan",
                "--config",
                select_config_file("syft/.syft.yaml"),
                "--source-name",
                self._context.repo_path,
                "--output",
                f"spdx-json={output_file}",
                "--enrich",
                "go",
                ".",
            ),
        )

    def vulnerabilities(self, sbom_file: str) -> ToolInvocation:
        """Scan the SBOM in ``sbom_file`` for known vulnerabilities."""

        return ToolInvocation(
            binary="grype",
            cli_args=("--config", select_config_file("grype/.grype.yaml"), "--output", "json", sbom_file),
            extraction=ExtractionSpec(
                base_array_key="matches",
                tool_name=_const("grype"),
                rule_id=_key("vulnerability.id"),
                level=_key("vulnerability.severity", default=Level.ERROR.value),
                file_path=_key("artifact.name"),
                message=_chain(
                    _key("vulnerability.description"),
                    _const(" - "),
                    _key("vulnerability.dataSource"),
                    _const(" - Found version: "),
                    _key("artifact.version"),
                    _const(" - Constraint: "),
                    _key("matchDetails.found.versionConstraint"),
                    _const(" - Suggested version: "),
                    _key("matchDetails.fix.suggestedVersion"),
                ),
            ),
        )

    def markdown(self) -> ToolInvocation:
        return ToolInvocation(
            binary="markdownlint",
            extension=".md",
            paths=(self._context.root,),
            cli_args=("--config", select_config_file("markdownlint/.markdownlint.yaml"), "--json"),
            extraction=ExtractionSpec(
                read_from_stderr=True,
                tool_name=_const("markdownlint"),
                rule_id=_key("ruleNames"),
                level=_const(Level.ERROR.value),
                file_path=_key("fileName"),
                start_line=_key("lineNumber"),
                message=_chain(
                    _key("ruleDescription"),
                    _const(" - "),
                    _key("errorDetail"),
                    _const(" - "),
                    _key("ruleInformation"),
                ),
            ),
        )

    def shell(self) -> ToolInvocation:
        return ToolInvocation(
            binary="shellcheck",
            extension=".sh",
            paths=(self._context.root,),
            cli_args=("--format", "json"),
            extraction=ExtractionSpec(
                tool_name=_const("shellcheck"),
                rule_id=_key("code"),
                level=_key("level"),
                file_path=_key("file"),
                start_line=_key("line"),
                end_line=_key("endLine"),
                start_col=_key("column"),
                end_col=_key("endColumn"),
                message=_key("message"),
            ),
        )

    def release(self) -> ToolInvocation:
        return ToolInvocation(
            binary="goreleaser",
            cli_args=("release", "--config", select_config_file("goreleaser/.goreleaser.yaml"), "--clean"),
        )

    def deps_bump(self) -> ToolInvocation:
        return ToolInvocation(binary="renovate")
