# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the runner, extraction and reporting layers."""

from __future__ import annotations

__all__ = [
    "CIDispatchError",
    "CommandError",
    "ConfigurationError",
    "DiscoveryError",
    "DrainError",
    "ExtractionError",
    "FindingValidationError",
    "LaunchError",
    "MappingError",
    "UnknownFormatError",
]


class CIDispatchError(RuntimeError):
    """Base class for every error raised by the dispatcher."""


class ConfigurationError(CIDispatchError):
    """Raised when a tool invocation or configuration file is unusable."""


class DiscoveryError(CIDispatchError):
    """Raised when the file tree cannot be walked."""


class LaunchError(CIDispatchError):
    """Raised when an external tool cannot be started."""


class DrainError(CIDispatchError):
    """Raised when a subprocess stream cannot be fully captured."""


class ExtractionError(CIDispatchError):
    """Raised when tool output cannot be turned into findings."""


class MappingError(ExtractionError):
    """Raised when a field mapping cannot be resolved against a JSON object."""


class FindingValidationError(CIDispatchError):
    """Raised when a finding is not fit for presentation."""


class UnknownFormatError(CIDispatchError):
    """Raised when findings are requested in an unsupported output format."""


class CommandError(CIDispatchError):
    """Raised when a dispatched command fails and should exit non-zero."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code
