# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Validate findings and render them as text, JSON, or GitHub annotations."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Final

from rich.console import Console

from .config import OutputFormat
from .console import findings_console
from .errors import FindingValidationError, UnknownFormatError
from .models import Finding
from .severity import canonical_level, is_valid_level

__all__ = [
    "normalize_finding",
    "present_findings",
    "render_findings",
    "validate_finding",
]

LOGGER = logging.getLogger(__name__)

Renderer = Callable[[Sequence[Finding]], list[str]]


def normalize_finding(finding: Finding, cwd: str = "") -> Finding:
    """Return a copy of ``finding`` with a repo-relative path and canonical level."""

    file_path = finding.file_path
    prefix = f"{cwd.rstrip('/')}/" if cwd else ""
    if prefix and file_path.startswith(prefix):
        file_path = file_path[len(prefix) :]
    return finding.model_copy(update={"file_path": file_path, "level": canonical_level(finding.level)})


def validate_finding(finding: Finding) -> None:
    """Raise :class:`FindingValidationError` when ``finding`` cannot be presented."""

    if not finding.tool_name:
        raise FindingValidationError(f"tool name is required for finding {finding!r}")
    if not finding.rule_id:
        raise FindingValidationError(f"rule ID is required for finding {finding!r}")
    if not is_valid_level(finding.level):
        raise FindingValidationError(f"invalid level {finding.level!r} for finding {finding!r}")
    if not finding.file_path:
        raise FindingValidationError(f"file path is required for finding {finding!r}")
    if not finding.message:
        raise FindingValidationError(f"message is required for finding {finding!r}")


def _render_human(findings: Sequence[Finding]) -> list[str]:
    lines: list[str] = []
    for finding in findings:
        location = finding.file_path
        if finding.start_line > 0:
            location += f":{finding.start_line}"
        lines.extend(
            [
                f"Tool: {finding.tool_name}",
                f"Rule ID: {finding.rule_id}",
                f"Level: {finding.level}",
                f"File: {location}",
                f"Message: {finding.message}",
                "",
            ]
        )
    return lines


def _render_json(findings: Sequence[Finding]) -> list[str]:
    payload = [finding.model_dump(by_alias=True) for finding in findings]
    return [json.dumps(payload, indent=2, ensure_ascii=False)]


def _render_github(findings: Sequence[Finding]) -> list[str]:
    lines: list[str] = []
    for finding in findings:
        annotation = f"::{finding.level} title={finding.tool_name},file={finding.file_path}"
        if finding.start_line > 0:
            annotation += f",line={finding.start_line}"
            if finding.end_line > finding.start_line:
                annotation += f",endLine={finding.end_line}"
        if finding.start_col > 0:
            annotation += f",col={finding.start_col}"
            if finding.end_col > finding.start_col:
                annotation += f",endColumn={finding.end_col}"
        annotation += "::" + json.dumps(finding.message, ensure_ascii=False)
        lines.append(annotation)
    return lines


_RENDERERS: Final[dict[OutputFormat, Renderer]] = {
    OutputFormat.HUMAN: _render_human,
    OutputFormat.JSON: _render_json,
    OutputFormat.GITHUB: _render_github,
}


def _renderer_for(output_format: str) -> Renderer:
    try:
        return _RENDERERS[OutputFormat(output_format)]
    except ValueError as exc:
        raise UnknownFormatError(f"unknown output format {output_format!r}") from exc


def render_findings(findings: Iterable[Finding], output_format: str, *, cwd: str = "") -> list[str]:
    """Normalise, validate and render ``findings`` into output lines.

    Args:
        findings: Findings to present.
        output_format: One of ``human``, ``json`` or ``github``.
        cwd: Directory prefix stripped from finding paths.

    Returns:
        list[str]: Rendered lines; empty when there is nothing to present.

    Raises:
        UnknownFormatError: If ``output_format`` is not supported.
        FindingValidationError: If any finding is invalid; nothing is rendered.
    """

    renderer = _renderer_for(output_format)
    normalized = [normalize_finding(finding, cwd) for finding in findings]
    for finding in normalized:
        validate_finding(finding)
    if not normalized:
        return []
    return renderer(normalized)


def present_findings(
    findings: Iterable[Finding],
    output_format: str,
    *,
    cwd: str = "",
    console: Console | None = None,
) -> None:
    """Print ``findings`` in ``output_format`` to ``console``.

    Raises:
        UnknownFormatError: If ``output_format`` is not supported.
        FindingValidationError: If any finding is invalid.
    """

    lines = render_findings(findings, output_format, cwd=cwd)
    if not lines:
        LOGGER.info("no finding found")
        return
    target = console or findings_console()
    for line in lines:
        target.print(line, markup=False, highlight=False, emoji=False, soft_wrap=True)
