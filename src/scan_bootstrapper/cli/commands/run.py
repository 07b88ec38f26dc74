"""Run command implementation."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from scan_bootstrapper.config import (
    RunnerConfig,
    RunnerConfigError,
    default_config_path,
    load_runner_config,
)
from scan_bootstrapper.process import (
    ConsoleSink,
    InvalidArgumentError,
    InvocationSpec,
    SpawnFailureError,
)

EXIT_INVALID_ARGUMENTS = 2
EXIT_TIMED_OUT = 124
EXIT_SPAWN_FAILED = 127

console = Console()


def _parse_env(entries: list[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for entry in entries:
        name, sep, value = entry.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{entry}'", param_hint="--env")
        env[name] = value
    return env


def _load_config(config_path: Optional[Path]) -> RunnerConfig:
    if config_path is None:
        default_path = default_config_path(Path.cwd())
        return load_runner_config(default_path) if default_path.exists() else RunnerConfig()
    if not config_path.exists():
        console.print(f"[red]Error:[/red] Config file not found: {config_path}")
        raise typer.Exit(code=EXIT_INVALID_ARGUMENTS)
    return load_runner_config(config_path)


def run_command(
    executable: str = typer.Argument(..., help="Program to run (absolute path or name on PATH)"),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments passed to the program"),
    cwd: Optional[Path] = typer.Option(None, "--cwd", help="Working directory for the program"),
    timeout_ms: Optional[int] = typer.Option(
        None, "--timeout-ms", min=0, help="Stop waiting after this many milliseconds"
    ),
    env: Optional[List[str]] = typer.Option(None, "--env", "-e", help="NAME=VALUE to set in the child environment"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a runner config YAML file"),
    terminate_on_timeout: Optional[bool] = typer.Option(
        None,
        "--terminate-on-timeout/--no-terminate-on-timeout",
        help="Terminate the program if it outlives the timeout (default: leave it running)",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide runner diagnostics"),
) -> None:
    """Run an external program, streaming its output."""
    try:
        config = _load_config(config_path)
    except RunnerConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=EXIT_INVALID_ARGUMENTS) from None

    overlay = dict(config.env)
    overlay.update(_parse_env(env or []))
    if terminate_on_timeout is not None:
        config.terminate_on_timeout = terminate_on_timeout

    spec = InvocationSpec(
        executable=executable,
        args=args or [],
        working_directory=cwd,
        timeout_ms=timeout_ms if timeout_ms is not None else config.timeout_ms,
        env=overlay,
    )
    sink = ConsoleSink(console, show_diagnostics=not quiet)

    try:
        result = config.build_runner().execute(spec, sink)
    except InvalidArgumentError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=EXIT_INVALID_ARGUMENTS) from None
    except SpawnFailureError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=EXIT_SPAWN_FAILED) from None

    if result.timed_out:
        raise typer.Exit(code=EXIT_TIMED_OUT)
    raise typer.Exit(code=result.exit_code)


__all__ = ["run_command", "EXIT_INVALID_ARGUMENTS", "EXIT_TIMED_OUT", "EXIT_SPAWN_FAILED"]
