"""Tests for runner configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from scan_bootstrapper.config import (
    RunnerConfig,
    RunnerConfigError,
    default_config_path,
    load_runner_config,
)
from scan_bootstrapper.process import DEFAULT_DRAIN_TIMEOUT, INFINITE_TIMEOUT, ProcessRunner


def _write(tmp_path: Path, content: str) -> Path:
    config_file = default_config_path(tmp_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(content, encoding="utf-8")
    return config_file


def test_missing_file_gives_defaults(tmp_path: Path, caplog) -> None:
    config = load_runner_config(tmp_path / "nope.yaml")

    assert config == RunnerConfig()
    assert config.timeout_ms is INFINITE_TIMEOUT
    assert config.drain_timeout == DEFAULT_DRAIN_TIMEOUT
    assert "Config file not found" in caplog.text


def test_missing_runner_section_gives_defaults(tmp_path: Path) -> None:
    config_file = _write(tmp_path, "agents:\n  available: []\n")

    assert load_runner_config(config_file) == RunnerConfig()


def test_full_runner_section(tmp_path: Path) -> None:
    config_file = _write(
        tmp_path,
        "runner:\n"
        "  timeout_ms: 600000\n"
        "  terminate_on_timeout: true\n"
        "  drain_timeout: 2\n"
        "  env:\n"
        "    SONAR_SCANNER_OPTS: -Xmx512m\n"
        "    RETRIES: 3\n",
    )

    config = load_runner_config(config_file)

    assert config.timeout_ms == 600000
    assert config.terminate_on_timeout is True
    assert config.drain_timeout == 2.0
    assert config.env == {"SONAR_SCANNER_OPTS": "-Xmx512m", "RETRIES": "3"}


def test_null_timeouts_mean_wait_forever(tmp_path: Path) -> None:
    config_file = _write(tmp_path, "runner:\n  timeout_ms: null\n  drain_timeout: null\n")

    config = load_runner_config(config_file)

    assert config.timeout_ms is INFINITE_TIMEOUT
    assert config.drain_timeout is None


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    config_file = _write(tmp_path, "runner: [unclosed\n")

    with pytest.raises(RunnerConfigError, match="Invalid YAML"):
        load_runner_config(config_file)


@pytest.mark.parametrize(
    "content, field",
    [
        ("runner:\n  timeout_ms: soon\n", "timeout_ms"),
        ("runner:\n  timeout_ms: -5\n", "timeout_ms"),
        ("runner:\n  terminate_on_timeout: maybe\n", "terminate_on_timeout"),
        ("runner:\n  drain_timeout: [1]\n", "drain_timeout"),
        ("runner:\n  env: [A, B]\n", "env"),
        ("runner: 5\n", "runner"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, content: str, field: str) -> None:
    config_file = _write(tmp_path, content)

    with pytest.raises(RunnerConfigError, match=field):
        load_runner_config(config_file)


def test_build_runner_applies_settings() -> None:
    runner = RunnerConfig(terminate_on_timeout=True, drain_timeout=1.5).build_runner()

    assert isinstance(runner, ProcessRunner)
    assert runner.terminate_on_timeout is True
    assert runner.drain_timeout == 1.5
