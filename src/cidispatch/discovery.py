# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem discovery of tool inputs by file-name suffix."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .errors import ConfigurationError, DiscoveryError

__all__ = ["FileQuery", "find_files_by_extension", "files_root"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FileQuery:
    """Parameters required to walk the filesystem hierarchy."""

    extension: str
    ignore: frozenset[str]
    recursive: bool


def files_root() -> str:
    """Return the directory file discovery starts from by default."""

    return os.getcwd()


def find_files_by_extension(
    extension: str,
    paths: Sequence[str] | None = None,
    *,
    ignore: Sequence[str] = (),
    recursive: bool = True,
) -> list[str]:
    """Return files under ``paths`` whose name ends with ``extension``.

    Args:
        extension: File-name suffix to match, e.g. ``".sh"`` or ``"Dockerfile"``.
        paths: Root directories to walk; defaults to the working directory.
        ignore: Directory names never descended into.
        recursive: Whether sub-directories are walked.

    Returns:
        list[str]: Matching paths in directory-walk order.

    Raises:
        ConfigurationError: If ``extension`` is empty.
        DiscoveryError: If a directory cannot be read.
    """

    if not extension:
        raise ConfigurationError("file extension is required")
    roots = list(paths) if paths is not None else [files_root()]
    query = FileQuery(extension=extension, ignore=frozenset(ignore), recursive=recursive)
    files: list[str] = []
    for root in roots:
        files.extend(_walk(root, query))
    return files


def _walk(directory: str, query: FileQuery) -> Iterator[str]:
    """Yield matching files beneath ``directory`` in name order."""

    try:
        with os.scandir(directory) as iterator:
            entries = sorted(iterator, key=lambda entry: entry.name)
    except OSError as exc:
        raise DiscoveryError(f"error reading directory {directory}: {exc}") from exc

    for entry in entries:
        path = f"{directory.rstrip('/')}/{entry.name}"
        if entry.is_dir(follow_symlinks=False):
            if not query.recursive or entry.name in query.ignore:
                continue
            yield from _walk(path, query)
        elif entry.name.endswith(query.extension):
            LOGGER.debug("found file %s", path)
            yield path
