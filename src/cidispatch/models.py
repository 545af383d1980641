# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the cidispatch package."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Finding(BaseModel):
    """Normalized static-analysis result produced by a tool integration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool_name: str = Field(default="", alias="toolName")
    rule_id: str = Field(default="", alias="ruleID")
    level: str = ""
    file_path: str = Field(default="", alias="filePath")
    start_line: int = Field(default=0, alias="startLine")
    end_line: int = Field(default=0, alias="endLine")
    start_col: int = Field(default=0, alias="startCol")
    end_col: int = Field(default=0, alias="endCol")
    message: str = ""

    @property
    def is_empty(self) -> bool:
        """Return ``True`` for the zero-valued "no finding" sentinel."""
        return self == EMPTY_FINDING


EMPTY_FINDING = Finding()


class FieldMapping(BaseModel):
    """Declarative rule computing one finding field from a JSON object.

    Attributes:
        key: Dotted path into the JSON object; empty means "no extraction".
        default: Value used when the key is absent or resolves to an empty value.
        override: Constant value bypassing extraction entirely.
        value_transformer_regex: Regex whose first capture group replaces the raw value.
        global_selector_regex: Regex deciding whether the whole finding is kept.
        invert_global_selector: Keep the finding when the selector does *not* match.
        suffix: Mapping resolved against the same object and appended verbatim.
    """

    model_config = ConfigDict(frozen=True)

    key: str = ""
    default: str = ""
    override: str = ""
    value_transformer_regex: str = ""
    global_selector_regex: str = ""
    invert_global_selector: bool = False
    suffix: FieldMapping | None = None


class DocumentShape(StrEnum):
    """How raw tool output is coerced into an array of candidate objects."""

    ARRAY = "array"
    PLAIN = "plain"
    STREAM = "stream"
    OBJECT = "object"
    NONE = "none"


class ExtractionSpec(BaseModel):
    """Field mappings and document handling for one tool integration."""

    model_config = ConfigDict(frozen=True)

    shape: DocumentShape = DocumentShape.ARRAY
    read_from_stderr: bool = False
    base_array_key: str = ""
    tool_name: FieldMapping = Field(default_factory=FieldMapping)
    rule_id: FieldMapping = Field(default_factory=FieldMapping)
    level: FieldMapping = Field(default_factory=FieldMapping)
    file_path: FieldMapping = Field(default_factory=FieldMapping)
    start_line: FieldMapping = Field(default_factory=FieldMapping)
    end_line: FieldMapping = Field(default_factory=FieldMapping)
    start_col: FieldMapping = Field(default_factory=FieldMapping)
    end_col: FieldMapping = Field(default_factory=FieldMapping)
    message: FieldMapping = Field(default_factory=FieldMapping)


NO_EXTRACTION = ExtractionSpec(shape=DocumentShape.NONE)


class ToolInvocation(BaseModel):
    """Everything required to run one external tool and interpret its output."""

    model_config = ConfigDict(frozen=True)

    binary: str
    extension: str = ""
    paths: tuple[str, ...] = ()
    cli_args: tuple[str, ...] = ()
    workdir: str | None = None
    extraction: ExtractionSpec = NO_EXTRACTION
    fail_on_findings: bool = False


class LinterResult(BaseModel):
    """Outcome of running a tool and presenting its findings."""

    model_config = ConfigDict(frozen=True)

    returncode: int
    stdout: str = ""
    stderr: str = ""
    findings: tuple[Finding, ...] = ()

    @property
    def ok(self) -> bool:
        """Return ``True`` when the run should not fail the build."""
        return self.returncode == 0


__all__ = [
    "EMPTY_FINDING",
    "NO_EXTRACTION",
    "DocumentShape",
    "ExtractionSpec",
    "FieldMapping",
    "Finding",
    "LinterResult",
    "ToolInvocation",
]
