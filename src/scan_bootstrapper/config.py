"""Runner configuration.

Runner defaults are read from the ``runner`` section of a YAML file
(``.scan-bootstrapper/config.yaml`` by default):

    runner:
      timeout_ms: 600000
      terminate_on_timeout: false
      drain_timeout: 10
      env:
        SONAR_SCANNER_OPTS: -Xmx512m
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from scan_bootstrapper.process import DEFAULT_DRAIN_TIMEOUT, INFINITE_TIMEOUT, ProcessRunner

logger = logging.getLogger(__name__)

CONFIG_DIR = ".scan-bootstrapper"
CONFIG_FILE = "config.yaml"


class RunnerConfigError(RuntimeError):
    """Raised when the config file cannot be parsed or validated."""


@dataclass
class RunnerConfig:
    """Runner defaults.

    Attributes:
        timeout_ms: Default timeout, or None to wait indefinitely
        terminate_on_timeout: Terminate children that outlive the timeout
        drain_timeout: Seconds to wait for pending output after exit
        env: Environment overlay applied to every invocation
    """

    timeout_ms: int | None = INFINITE_TIMEOUT
    terminate_on_timeout: bool = False
    drain_timeout: float | None = DEFAULT_DRAIN_TIMEOUT
    env: dict[str, str] = field(default_factory=dict)

    def build_runner(self) -> ProcessRunner:
        return ProcessRunner(
            terminate_on_timeout=self.terminate_on_timeout,
            drain_timeout=self.drain_timeout,
        )


def default_config_path(root: Path) -> Path:
    return root / CONFIG_DIR / CONFIG_FILE


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def load_runner_config(config_file: Path) -> RunnerConfig:
    """Load runner defaults from ``config_file``.

    Args:
        config_file: Path to the YAML file

    Returns:
        RunnerConfig instance (defaults if the file or section is missing)

    Raises:
        RunnerConfigError: If the YAML is invalid or a value has the wrong type
    """
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_file}")
        return RunnerConfig()

    yaml = YAML(typ="safe")
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
    except YAMLError as e:
        logger.error(f"Failed to load config: {e}")
        raise RunnerConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise RunnerConfigError(f"Expected a mapping at the top of {config_file}")

    section = data.get("runner") or {}
    if not isinstance(section, dict):
        raise RunnerConfigError("Invalid 'runner' section: expected a mapping")
    if not section:
        logger.info("No runner section in %s", config_file)
        return RunnerConfig()

    config = RunnerConfig()

    timeout_ms = section.get("timeout_ms", INFINITE_TIMEOUT)
    if timeout_ms is not None and (not isinstance(timeout_ms, int) or isinstance(timeout_ms, bool) or timeout_ms < 0):
        raise RunnerConfigError(f"Invalid runner.timeout_ms: expected a non-negative integer or null, got {timeout_ms!r}")
    config.timeout_ms = timeout_ms

    terminate = section.get("terminate_on_timeout", False)
    if not isinstance(terminate, bool):
        raise RunnerConfigError(f"Invalid runner.terminate_on_timeout: expected true/false, got {terminate!r}")
    config.terminate_on_timeout = terminate

    drain_timeout = section.get("drain_timeout", DEFAULT_DRAIN_TIMEOUT)
    if drain_timeout is not None and (not _is_number(drain_timeout) or drain_timeout < 0):
        raise RunnerConfigError(f"Invalid runner.drain_timeout: expected seconds or null, got {drain_timeout!r}")
    config.drain_timeout = float(drain_timeout) if drain_timeout is not None else None

    env = section.get("env") or {}
    if not isinstance(env, dict):
        raise RunnerConfigError("Invalid runner.env: expected a mapping of variable names to values")
    config.env = {str(name): "" if value is None else str(value) for name, value in env.items()}

    return config


__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "RunnerConfig",
    "RunnerConfigError",
    "default_config_path",
    "load_runner_config",
]
