# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve declarative field mappings against parsed JSON objects."""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, TypeAlias

from .errors import MappingError
from .models import FieldMapping

__all__ = [
    "JSONObject",
    "JSONValue",
    "Resolution",
    "coerce_to_string",
    "resolve_int",
    "resolve_string",
]

LOGGER = logging.getLogger(__name__)

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = Mapping[str, JSONValue]

_PATH_SEPARATOR: Final[str] = "."
_LIST_SEPARATOR: Final[str] = " - "
_REGEX_CACHE_SIZE: Final[int] = 256


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving one mapping: the value and whether to keep the finding."""

    keep: bool
    value: str | int


_DISCARD: Final[Resolution] = Resolution(keep=False, value="")


@lru_cache(maxsize=_REGEX_CACHE_SIZE)
def _compile(pattern: str) -> re.Pattern[str]:
    """Return the compiled form of ``pattern`` raising :class:`MappingError` on failure."""

    try:
        return re.compile(pattern)
    except re.error as exc:
        raise MappingError(f"error compiling regex {pattern!r}: {exc}") from exc


def coerce_to_string(value: JSONValue) -> str:
    """Render a raw JSON value the way findings expect it.

    Strings pass through, numbers render as decimal integers (floats truncate
    toward zero), booleans become ``true``/``false`` and arrays of strings are
    joined with ``" - "``. Anything else falls back to its JSON rendering.
    """

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(_truncate(value))
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return _LIST_SEPARATOR.join(value)
    return json.dumps(value, sort_keys=True)


def _truncate(value: float) -> int:
    if not math.isfinite(value):
        raise MappingError(f"cannot convert non-finite number {value!r} to int")
    return int(value)


def _wrap_scalar(key: str, value: JSONValue) -> dict[str, JSONValue]:
    if isinstance(value, float):
        return {key: _truncate(value)}
    return {key: value}


def _descend(current: JSONObject, segment: str) -> JSONObject:
    """Step into ``current[segment]`` following the first-element rule for arrays."""

    value = current[segment]
    if isinstance(value, Mapping):
        return value
    if isinstance(value, list):
        if not value:
            raise MappingError(f"cannot descend into empty array at {segment!r}")
        first = value[0]
        if isinstance(first, Mapping):
            return first
        raise MappingError(f"cannot descend into array of non-objects at {segment!r}")
    if isinstance(value, (str, int, float, bool)):
        return _wrap_scalar(segment, value)
    raise MappingError(f"cannot descend into value of type {type(value).__name__} at {segment!r}")


def _narrow(document: JSONObject, key: str) -> tuple[JSONObject, str]:
    """Return the innermost object reachable through ``key`` and the final key name.

    Navigation halts silently at the first missing segment; the caller then looks
    up the last segment in whatever object was reached, which normally yields
    nothing and therefore the mapping's default.
    """

    if _PATH_SEPARATOR not in key:
        return document, key
    segments = key.split(_PATH_SEPARATOR)
    current = document
    for segment in segments:
        if current.get(segment) is None:
            break
        current = _descend(current, segment)
    return current, segments[-1]


def _selector_keeps(target: JSONObject, key: str, mapping: FieldMapping) -> bool:
    """Evaluate the global selector regex against the raw value at ``key``."""

    raw = target.get(key)
    if raw is None:
        return False
    text = coerce_to_string(raw)
    if not text:
        return False
    matched = _compile(mapping.global_selector_regex).search(text) is not None
    if mapping.invert_global_selector:
        matched = not matched
    return matched


def _transform(value: str, pattern: str) -> str:
    """Replace ``value`` by the first capture group of ``pattern`` when it matches."""

    if not pattern:
        return value
    compiled = _compile(pattern)
    if compiled.groups < 1:
        return value
    match = compiled.search(value)
    if match is None or match.group(1) is None:
        return value
    return match.group(1)


def _parse_int(value: str, what: str) -> int:
    try:
        return int(value.strip(), 10)
    except ValueError as exc:
        raise MappingError(f"error converting {what} {value!r} to int") from exc


def resolve_string(mapping: FieldMapping, document: JSONObject) -> Resolution:
    """Resolve ``mapping`` to a string against ``document``.

    Args:
        mapping: Field mapping describing the extraction.
        document: Top-level JSON object of the candidate finding.

    Returns:
        Resolution: Resolved text plus the keep/discard signal.

    Raises:
        MappingError: If a regex is invalid, the path cannot be traversed, or
            a suffix mapping fails.
    """

    if mapping.override:
        value = mapping.override
    else:
        target, key = _narrow(document, mapping.key) if mapping.key else (document, "")
        if mapping.global_selector_regex and not _selector_keeps(target, key, mapping):
            return _DISCARD
        raw = target.get(key) if key else None
        if raw is None:
            LOGGER.debug("key %r not found, using default %r", mapping.key, mapping.default)
            value = ""
        else:
            value = _transform(coerce_to_string(raw), mapping.value_transformer_regex)
        if not value:
            value = mapping.default

    if mapping.suffix is not None:
        suffix = resolve_string(mapping.suffix, document)
        value = f"{value}{suffix.value}"
    return Resolution(keep=True, value=value)


def resolve_int(mapping: FieldMapping, document: JSONObject) -> Resolution:
    """Resolve ``mapping`` to an integer against ``document``.

    Numbers are used directly (floats truncate toward zero). Strings must either
    be numeric or yield a numeric first capture group through the transformer
    regex; a transformer that does not match falls back to the default.

    Raises:
        MappingError: If the default, override or extracted value is not numeric.
    """

    if mapping.override:
        return Resolution(keep=True, value=_parse_int(mapping.override, "override value"))

    default = _parse_int(mapping.default, "default value") if mapping.default else 0
    if not mapping.key:
        return Resolution(keep=True, value=default)

    target, key = _narrow(document, mapping.key)
    if mapping.global_selector_regex and not _selector_keeps(target, key, mapping):
        return _DISCARD

    raw = target.get(key)
    if raw is None:
        return Resolution(keep=True, value=default)
    if isinstance(raw, bool):
        raise MappingError(f"cannot convert boolean at {mapping.key!r} to int")
    if isinstance(raw, int):
        return Resolution(keep=True, value=raw)
    if isinstance(raw, float):
        return Resolution(keep=True, value=_truncate(raw))
    if isinstance(raw, str):
        if not mapping.value_transformer_regex:
            return Resolution(keep=True, value=_parse_int(raw, mapping.key))
        match = _compile(mapping.value_transformer_regex).search(raw)
        if match is None or match.re.groups < 1 or match.group(1) is None:
            return Resolution(keep=True, value=default)
        return Resolution(keep=True, value=_parse_int(match.group(1), mapping.key))
    raise MappingError(f"cannot convert {type(raw).__name__} at {mapping.key!r} to int")
