# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn raw tool output into findings using an :class:`ExtractionSpec`."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Final

from .errors import ExtractionError
from .mapping import JSONObject, JSONValue, Resolution, resolve_int, resolve_string
from .models import DocumentShape, ExtractionSpec, FieldMapping, Finding

__all__ = ["extract_findings", "finding_from_overrides", "finding_from_object"]

LOGGER = logging.getLogger(__name__)

Resolver = Callable[[FieldMapping, JSONObject], Resolution]

# Resolution order matters: the first discarding mapping stops evaluation.
_FIELD_RESOLVERS: Final[tuple[tuple[str, Resolver], ...]] = (
    ("tool_name", resolve_string),
    ("rule_id", resolve_string),
    ("level", resolve_string),
    ("file_path", resolve_string),
    ("start_line", resolve_int),
    ("end_line", resolve_int),
    ("start_col", resolve_int),
    ("end_col", resolve_int),
    ("message", resolve_string),
)


def _as_json_text(text: str, shape: DocumentShape) -> str:
    """Return ``text`` rewritten so that it parses as a JSON array where needed."""

    if shape is DocumentShape.STREAM:
        lines = [line for line in text.split("\n") if line.strip()]
        return "[" + ",".join(lines) + "]"
    if shape is DocumentShape.OBJECT:
        return "[" + text + "]"
    return text


def _reject_constant(name: str) -> JSONValue:
    raise ExtractionError(f"error unmarshalling json: invalid literal {name}")


def _candidate_array(document: JSONValue, base_array_key: str) -> Sequence[JSONValue]:
    """Return the array of candidate objects addressed by ``base_array_key``."""

    if base_array_key:
        if not isinstance(document, Mapping):
            raise ExtractionError(f"json does not contain key {base_array_key!r}: document is not an object")
        if base_array_key not in document:
            raise ExtractionError(f"json does not contain key {base_array_key!r}")
        document = document[base_array_key]
    if not isinstance(document, list):
        raise ExtractionError("json is not an array")
    return document


def finding_from_object(item: JSONObject, spec: ExtractionSpec) -> Finding | None:
    """Build a finding from one candidate object, or ``None`` when it is filtered out.

    Raises:
        MappingError: If any field mapping cannot be resolved.
    """

    values: dict[str, str | int] = {}
    for name, resolver in _FIELD_RESOLVERS:
        mapping: FieldMapping = getattr(spec, name)
        resolution = resolver(mapping, item)
        if not resolution.keep:
            LOGGER.debug("candidate discarded by selector on %s", name)
            return None
        values[name] = resolution.value
    values["level"] = str(values["level"]).lower()
    return Finding.model_validate(values)


def finding_from_overrides(spec: ExtractionSpec) -> Finding:
    """Return the single finding emitted for ``plain`` output, built from override values."""

    return Finding(
        tool_name=spec.tool_name.override,
        rule_id=spec.rule_id.override,
        level=spec.level.override.lower(),
        file_path=spec.file_path.override,
        message=spec.message.override,
    )


def extract_findings(text: str, spec: ExtractionSpec) -> list[Finding]:
    """Convert ``text`` into findings following ``spec``.

    Args:
        text: Raw stdout or stderr captured from the tool.
        spec: Extraction specification for the tool integration.

    Returns:
        list[Finding]: Kept findings in document order. Empty output yields an
        empty list; any ``plain`` output at all, whitespace included, is one finding.

    Raises:
        ExtractionError: If the payload is not valid JSON of the expected shape or
            any candidate fails to map. No partial result is returned.
    """

    if spec.shape is DocumentShape.NONE:
        return []
    if spec.shape is DocumentShape.PLAIN:
        return [finding_from_overrides(spec)] if text else []
    if not text.strip():
        return []

    try:
        document: JSONValue = json.loads(_as_json_text(text, spec.shape), parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"error unmarshalling json: {exc}") from exc

    findings: list[Finding] = []
    for index, item in enumerate(_candidate_array(document, spec.base_array_key)):
        if not isinstance(item, Mapping):
            raise ExtractionError(f"json array element {index} is not an object")
        finding = finding_from_object(item, spec)
        if finding is not None:
            findings.append(finding)
    LOGGER.debug("extracted %d finding(s)", len(findings))
    return findings
