# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for converting tool output into findings."""

from __future__ import annotations

import pytest

from cidispatch.errors import ExtractionError, MappingError
from cidispatch.extraction import extract_findings
from cidispatch.models import DocumentShape, ExtractionSpec, FieldMapping, Finding


def _golangci_spec() -> ExtractionSpec:
    return ExtractionSpec(
        base_array_key="Issues",
        tool_name=FieldMapping(key="FromLinter"),
        level=FieldMapping(key="Severity"),
        file_path=FieldMapping(key="Pos.Filename"),
        start_line=FieldMapping(key="Pos.Line"),
        start_col=FieldMapping(key="Pos.Column"),
        message=FieldMapping(key="Text"),
    )


def _key_spec(shape: DocumentShape) -> ExtractionSpec:
    return ExtractionSpec(
        shape=shape,
        tool_name=FieldMapping(override="example-lint"),
        rule_id=FieldMapping(key="a"),
        level=FieldMapping(override="ERROR"),
        file_path=FieldMapping(override="f"),
        message=FieldMapping(key="a"),
    )


def test_base_array_key_document() -> None:
    payload = (
        '{"Issues":[{"FromLinter":"foo","Severity":"warning",'
        '"Pos":{"Filename":"x.go","Line":3,"Column":1},"Text":"bad thing"}]}'
    )

    findings = extract_findings(payload, _golangci_spec())

    assert findings == [
        Finding(
            tool_name="foo",
            level="warning",
            file_path="x.go",
            start_line=3,
            start_col=1,
            message="bad thing",
        )
    ]


def test_stream_lines_become_array_elements() -> None:
    findings = extract_findings('{"a":1}\n{"a":2}\n', _key_spec(DocumentShape.STREAM))

    assert [finding.rule_id for finding in findings] == ["1", "2"]
    assert all(finding.level == "error" for finding in findings)


def test_stream_ignores_blank_lines() -> None:
    findings = extract_findings('\n{"a":1}\n\n   \n{"a":2}', _key_spec(DocumentShape.STREAM))

    assert len(findings) == 2


def test_single_stream_object_matches_object_shape() -> None:
    text = '{"a":"only"}'

    assert extract_findings(text, _key_spec(DocumentShape.STREAM)) == extract_findings(
        text, _key_spec(DocumentShape.OBJECT)
    )


@pytest.mark.parametrize("shape", list(DocumentShape))
def test_empty_output_has_no_findings(shape: DocumentShape) -> None:
    assert extract_findings("", _key_spec(shape)) == []


@pytest.mark.parametrize("shape", [shape for shape in DocumentShape if shape is not DocumentShape.PLAIN])
def test_blank_output_has_no_findings(shape: DocumentShape) -> None:
    assert extract_findings("   \n", _key_spec(shape)) == []


def test_plain_whitespace_output_is_a_finding() -> None:
    findings = extract_findings("\n", _key_spec(DocumentShape.PLAIN))

    assert [finding.tool_name for finding in findings] == ["example-lint"]


def test_plain_output_builds_one_finding_from_overrides() -> None:
    spec = ExtractionSpec(
        shape=DocumentShape.PLAIN,
        tool_name=FieldMapping(override="go-mod-tidy"),
        rule_id=FieldMapping(override="no-unused-dependency"),
        level=FieldMapping(override="Error"),
        file_path=FieldMapping(override="go.mod"),
        message=FieldMapping(override="Unused dependencies found"),
    )

    findings = extract_findings("diff --git a/go.mod b/go.mod\n", spec)

    assert findings == [
        Finding(
            tool_name="go-mod-tidy",
            rule_id="no-unused-dependency",
            level="error",
            file_path="go.mod",
            message="Unused dependencies found",
        )
    ]


def test_selector_filters_candidates() -> None:
    spec = ExtractionSpec(
        shape=DocumentShape.STREAM,
        tool_name=FieldMapping(override="go-cover"),
        message=FieldMapping(
            key="Output",
            global_selector_regex=r"coverage:\s*([0-6](\d)?(\.\d)?)% of statements",
            value_transformer_regex=r"coverage:\s*([0-6](\d)?(\.\d)?%) of statements",
            suffix=FieldMapping(override=" package coverage is below 70%"),
        ),
    )
    payload = "\n".join(
        [
            '{"Action":"output","Output":"coverage: 45.5% of statements\\n"}',
            '{"Action":"output","Output":"coverage: 91.0% of statements\\n"}',
            '{"Action":"pass"}',
        ]
    )

    findings = extract_findings(payload, spec)

    assert [finding.message for finding in findings] == ["45.5% package coverage is below 70%"]


def test_missing_base_array_key_is_an_error() -> None:
    with pytest.raises(ExtractionError, match="does not contain key"):
        extract_findings('{"Report":{}}', _golangci_spec())


def test_base_array_key_must_hold_an_array() -> None:
    with pytest.raises(ExtractionError, match="not an array"):
        extract_findings('{"Issues":{"Text":"x"}}', _golangci_spec())


def test_array_shape_requires_top_level_array() -> None:
    with pytest.raises(ExtractionError, match="not an array"):
        extract_findings('{"a":1}', _key_spec(DocumentShape.ARRAY))


def test_malformed_json_is_an_error() -> None:
    with pytest.raises(ExtractionError):
        extract_findings("[{", _key_spec(DocumentShape.ARRAY))


def test_non_object_element_aborts_batch() -> None:
    with pytest.raises(ExtractionError):
        extract_findings('[{"a":1}, 2]', _key_spec(DocumentShape.ARRAY))


def test_mapping_error_aborts_batch() -> None:
    spec = ExtractionSpec(
        tool_name=FieldMapping(override="example-lint"),
        start_line=FieldMapping(key="line"),
    )

    with pytest.raises(MappingError):
        extract_findings('[{"line":1},{"line":"abc"}]', spec)


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_non_standard_json_literals_are_parse_errors(literal: str) -> None:
    with pytest.raises(ExtractionError, match="invalid literal"):
        extract_findings(f'[{{"a": {literal}}}]', _key_spec(DocumentShape.ARRAY))


@pytest.mark.parametrize("field", ["start_line", "message"])
def test_out_of_range_number_is_a_mapping_error(field: str) -> None:
    spec = ExtractionSpec(
        tool_name=FieldMapping(override="example-lint"),
        **{field: FieldMapping(key="value")},
    )

    with pytest.raises(MappingError, match="non-finite"):
        extract_findings('[{"value": 1e400}]', spec)
