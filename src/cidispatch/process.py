# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import logging
import shutil

# Bandit: subprocess usage is intentional. Commands come from the tool catalog
# and are passed as argument lists without ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Final, TextIO

from .errors import DrainError, LaunchError

__all__ = [
    "MAX_LINE_BYTES",
    "ProcessResult",
    "drain_stream",
    "run_process",
]

LOGGER = logging.getLogger(__name__)

MAX_LINE_BYTES: Final[int] = 32 * 1024 * 1024
_DISCARD_CHUNK: Final[int] = 64 * 1024
_DRAIN_WORKERS: Final[int] = 2


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Exit status and fully captured output streams of a finished process."""

    returncode: int
    stdout: str
    stderr: str


def _normalize_args(args: Sequence[str]) -> list[str]:
    """Return ``args`` with the executable resolved on ``PATH``.

    Raises:
        LaunchError: If no arguments are provided or the executable is missing.
    """

    if not args:
        raise LaunchError("subprocess command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute() or head_path.parent != Path():
        if not head_path.exists():
            raise LaunchError(f"Executable '{head}' does not exist")
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise LaunchError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def _echo_line(echo: TextIO, chunk: bytes) -> TextIO | None:
    """Write ``chunk`` to ``echo``, returning ``None`` once the sink has failed."""

    try:
        echo.write(chunk.decode(errors="replace"))
        echo.flush()
    except (OSError, ValueError) as exc:
        LOGGER.error("error echoing subprocess output, live output disabled: %s", exc)
        return None
    return echo


def drain_stream(
    pipe: IO[bytes],
    echo: TextIO | None = None,
    *,
    max_line_bytes: int = MAX_LINE_BYTES,
) -> bytes:
    """Consume ``pipe`` until EOF and return every byte read.

    Each line is appended to the accumulation buffer exactly once and in order,
    and echoed to ``echo`` when provided. A failing echo sink is logged and
    dropped while the pipe keeps draining.

    Args:
        pipe: Binary stream attached to a subprocess.
        echo: Optional text sink receiving each line as it arrives.
        max_line_bytes: Longest accepted line, newline excluded.

    Returns:
        bytes: The complete stream contents.

    Raises:
        DrainError: If a line exceeds ``max_line_bytes`` or reading the pipe fails.
    """

    buffer = bytearray()
    try:
        while True:
            chunk = pipe.readline(max_line_bytes + 1)
            if not chunk:
                break
            if len(chunk) > max_line_bytes and not chunk.endswith(b"\n"):
                # Keep reading so the child never blocks on a full pipe.
                while pipe.read(_DISCARD_CHUNK):
                    pass
                raise DrainError(f"output line exceeds the {max_line_bytes} byte limit")
            buffer.extend(chunk)
            if echo is not None:
                echo = _echo_line(echo, chunk)
    except OSError as exc:
        raise DrainError(f"error reading subprocess output: {exc}") from exc
    return bytes(buffer)


def run_process(
    args: Sequence[str],
    *,
    cwd: str | Path | None = None,
    echo_stdout: TextIO | None = None,
    echo_stderr: TextIO | None = None,
    max_line_bytes: int = MAX_LINE_BYTES,
) -> ProcessResult:
    """Run ``args`` draining stdout and stderr concurrently.

    Both drain tasks complete before the exit status is collected, so the
    returned buffers always hold the full output. A non-zero exit status is
    returned as data, never raised.

    Args:
        args: Command and arguments; the executable is resolved on ``PATH``.
        cwd: Working directory for the child process.
        echo_stdout: Optional live sink for stdout lines.
        echo_stderr: Optional live sink for stderr lines.
        max_line_bytes: Longest line accepted on either stream.

    Returns:
        ProcessResult: Exit status with decoded stdout and stderr.

    Raises:
        LaunchError: If the executable cannot be found or started.
        DrainError: If either stream cannot be captured.
    """

    normalized = _normalize_args(args)
    LOGGER.debug("running %s (cwd=%s)", normalized, cwd)
    try:
        # Bandit: arguments originate from vetted tool configurations.
        process = subprocess.Popen(  # nosec B603
            normalized,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise LaunchError(f"error starting command '{normalized[0]}': {exc}") from exc

    if process.stdout is None or process.stderr is None:  # pragma: no cover - PIPE always yields streams
        process.kill()
        raise LaunchError(f"error creating pipes for '{normalized[0]}'")

    with process.stdout, process.stderr:
        with ThreadPoolExecutor(max_workers=_DRAIN_WORKERS, thread_name_prefix="drain") as executor:
            stdout_future = executor.submit(
                drain_stream, process.stdout, echo_stdout, max_line_bytes=max_line_bytes
            )
            stderr_future = executor.submit(
                drain_stream, process.stderr, echo_stderr, max_line_bytes=max_line_bytes
            )
            try:
                stdout = stdout_future.result()
                stderr = stderr_future.result()
            finally:
                returncode = process.wait()

    LOGGER.debug("command '%s' exited with status %d", normalized[0], returncode)
    return ProcessResult(
        returncode=returncode,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )

