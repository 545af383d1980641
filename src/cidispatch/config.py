# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Environment-driven runtime configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LOCAL_CONFIG_PATH",
    "OutputFormat",
    "RunnerConfig",
    "select_config_file",
]

DEBUG_ENV: Final[str] = "RUNNER_DEBUG"
SILENT_ENV: Final[str] = "RUNNER_SILENT"
CI_MARKER_ENV: Final[str] = "GITHUB_ACTIONS"
PWD_ENV: Final[str] = "PWD"
_ENABLED: Final[str] = "1"

DEFAULT_CONFIG_PATH: Final[Path] = Path("/var/config")
LOCAL_CONFIG_PATH: Final[Path] = Path("config")


class OutputFormat(StrEnum):
    """Presentation styles available for findings."""

    HUMAN = "human"
    JSON = "json"
    GITHUB = "github"


class RunnerConfig(BaseModel):
    """Runtime switches shared by every dispatched command."""

    model_config = ConfigDict(frozen=True)

    debug: bool = False
    silent: bool = False
    output_format: str = OutputFormat.HUMAN.value
    cwd: str = ""
    use_emoji: bool = True

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> RunnerConfig:
        """Build a configuration from ``environ`` (defaults to :data:`os.environ`)."""

        env = os.environ if environ is None else environ
        output_format = OutputFormat.GITHUB if env.get(CI_MARKER_ENV) else OutputFormat.HUMAN
        return cls(
            debug=env.get(DEBUG_ENV) == _ENABLED,
            silent=env.get(SILENT_ENV) == _ENABLED,
            output_format=output_format.value,
            cwd=env.get(PWD_ENV) or os.getcwd(),
            use_emoji=output_format is OutputFormat.HUMAN,
        )


def select_config_file(
    relative: str,
    *,
    local_root: Path = LOCAL_CONFIG_PATH,
    default_root: Path = DEFAULT_CONFIG_PATH,
) -> str:
    """Return the tool configuration file to use, preferring a repository-local copy.

    Args:
        relative: Path of the file below the configuration roots.
        local_root: Repository-local configuration directory.
        default_root: Image-wide configuration directory.

    Returns:
        str: Local path when it exists, otherwise the default path.

    Raises:
        ConfigurationError: If the local candidate cannot be inspected.
    """

    local = local_root / relative
    try:
        local.stat()
    except FileNotFoundError:
        return str(default_root / relative)
    except OSError as exc:
        raise ConfigurationError(f"error finding file {local}: {exc}") from exc
    return str(local)
