# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for environment configuration and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from cidispatch.config import OutputFormat, RunnerConfig, select_config_file
from cidispatch.logging import PACKAGE_LOGGER_NAME, configure_logging


def test_defaults_without_environment(tmp_path: Path) -> None:
    config = RunnerConfig.from_environment({"PWD": str(tmp_path)})

    assert config.debug is False
    assert config.silent is False
    assert config.output_format == OutputFormat.HUMAN
    assert config.cwd == str(tmp_path)
    assert config.use_emoji is True


def test_ci_marker_selects_github_format() -> None:
    config = RunnerConfig.from_environment(
        {"GITHUB_ACTIONS": "true", "RUNNER_DEBUG": "1", "RUNNER_SILENT": "1", "PWD": "/w"}
    )

    assert config.output_format == "github"
    assert config.debug is True
    assert config.silent is True
    assert config.use_emoji is False


def test_flags_require_exact_value() -> None:
    config = RunnerConfig.from_environment({"RUNNER_DEBUG": "true", "PWD": "/w"})

    assert config.debug is False


def test_select_config_file_prefers_local_copy(tmp_path: Path) -> None:
    local_root = tmp_path / "config"
    (local_root / "hadolint").mkdir(parents=True)
    (local_root / "hadolint" / ".hadolint.yaml").write_text("{}", encoding="utf-8")

    chosen = select_config_file("hadolint/.hadolint.yaml", local_root=local_root)
    fallback = select_config_file("grype/.grype.yaml", local_root=local_root)

    assert chosen == str(local_root / "hadolint" / ".hadolint.yaml")
    assert fallback == "/var/config/grype/.grype.yaml"


def _installed_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, "_cidispatch_handler", False)]


def test_configure_logging_levels_and_single_handler() -> None:
    logger = configure_logging(RunnerConfig(debug=True))
    configure_logging(RunnerConfig(debug=True))

    assert logger.name == PACKAGE_LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert len(_installed_handlers(logger)) == 1

    configure_logging(RunnerConfig())
    assert logger.level == logging.INFO


def test_silent_logging_discards_records() -> None:
    logger = configure_logging(RunnerConfig(silent=True))

    assert [type(handler) for handler in _installed_handlers(logger)] == [logging.NullHandler]
