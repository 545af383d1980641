# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run one tool invocation end to end: discover, execute, extract, present."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable

from rich.console import Console

from .config import RunnerConfig
from .discovery import find_files_by_extension
from .errors import ConfigurationError
from .extraction import extract_findings
from .models import DocumentShape, Finding, LinterResult, ToolInvocation
from .process import ProcessResult, run_process
from .reporting import present_findings

__all__ = ["ProcessRunner", "apply_finding_policy", "run_linter"]

LOGGER = logging.getLogger(__name__)

ProcessRunner = Callable[..., ProcessResult]


def _collect_arguments(invocation: ToolInvocation) -> list[str] | None:
    """Return CLI arguments with discovered files appended, or ``None`` when no file matched."""

    args = list(invocation.cli_args)
    if not invocation.paths:
        return args
    if not invocation.extension:
        raise ConfigurationError(f"{invocation.binary}: file extension is required when paths are set")
    files = find_files_by_extension(invocation.extension, list(invocation.paths), recursive=True)
    if not files:
        return None
    return [*args, *files]


def apply_finding_policy(returncode: int, findings: list[Finding], fail_on_findings: bool) -> int:
    """Return the exit code after applying the "fail on at least one finding" policy.

    A non-zero tool exit code is never downgraded.
    """

    if fail_on_findings and findings and returncode == 0:
        LOGGER.error("findings found with fail-on-findings enabled")
        return 1
    return returncode


def run_linter(
    config: RunnerConfig,
    invocation: ToolInvocation,
    *,
    runner: ProcessRunner = run_process,
    console: Console | None = None,
) -> LinterResult:
    """Execute ``invocation`` and present the findings it produced.

    Args:
        config: Runtime configuration (debug echo, output format, path prefix).
        invocation: Tool binary, arguments and extraction specification.
        runner: Process runner, replaceable in tests.
        console: Console receiving rendered findings.

    Returns:
        LinterResult: Exit code, captured output and the presented findings.

    Raises:
        ConfigurationError: If the invocation is incomplete.
        LaunchError: If the tool cannot be started.
        ExtractionError: If the tool output cannot be mapped to findings.
        FindingValidationError: If an extracted finding is invalid.
    """

    if not invocation.binary:
        raise ConfigurationError("linter binary is required")

    args = _collect_arguments(invocation)
    if args is None:
        LOGGER.info("no file found for %s", invocation.binary)
        return LinterResult(returncode=0)

    LOGGER.debug(
        "running linter %s args=%s format=%s fail_on_findings=%s",
        invocation.binary,
        args,
        config.output_format,
        invocation.fail_on_findings,
    )
    result = runner(
        [invocation.binary, *args],
        cwd=invocation.workdir or None,
        echo_stdout=sys.stdout if config.debug else None,
        echo_stderr=sys.stderr if config.debug else None,
    )
    if result.returncode == 0:
        LOGGER.info("%s executed successfully", invocation.binary)
    else:
        LOGGER.error("%s exited with status %d", invocation.binary, result.returncode)

    extraction = invocation.extraction
    if extraction.shape is DocumentShape.NONE:
        LOGGER.debug("no finding parsing requested for %s", invocation.binary)
        findings: list[Finding] = []
    else:
        payload = result.stderr if extraction.read_from_stderr else result.stdout
        findings = extract_findings(payload, extraction)

    returncode = apply_finding_policy(result.returncode, findings, invocation.fail_on_findings)
    present_findings(findings, config.output_format, cwd=config.cwd, console=console)
    return LinterResult(
        returncode=returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        findings=tuple(findings),
    )
