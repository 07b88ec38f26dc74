"""Invocation descriptors and execution results.

This module defines:
    - InvocationSpec: what to run, where, for how long, with which env overlay
    - ExecutionResult: the outcome of one invocation
    - INFINITE_TIMEOUT: sentinel meaning "wait for natural exit"
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Sequence

__all__ = [
    "INFINITE_TIMEOUT",
    "InvocationSpec",
    "ExecutionResult",
]

INFINITE_TIMEOUT = None


def _normalize_args(args: str | Sequence[str] | None) -> tuple[str, ...]:
    if args is None:
        return ()
    if isinstance(args, str):
        return tuple(shlex.split(args))
    return tuple(str(arg) for arg in args)


@dataclass(frozen=True)
class InvocationSpec:
    """Request to run one external executable.

    Attributes:
        executable: Path or bare name of the program. Bare names are
            resolved through the search path of the child environment.
        args: Command-line arguments. A string is split with POSIX shell
            rules; a sequence is used as-is.
        working_directory: Directory to run in. ``None`` inherits the
            caller's working directory.
        timeout_ms: Milliseconds to wait for the process to exit, or
            ``INFINITE_TIMEOUT`` to wait indefinitely.
        env: Variables overlaid on the inherited environment.
    """

    executable: str
    args: tuple[str, ...] = ()
    working_directory: Path | None = None
    timeout_ms: int | None = INFINITE_TIMEOUT
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", _normalize_args(self.args))
        if self.working_directory is not None:
            object.__setattr__(self, "working_directory", Path(self.working_directory))
        object.__setattr__(
            self,
            "env",
            MappingProxyType({str(k): str(v) for k, v in (self.env or {}).items()}),
        )

    @property
    def command(self) -> list[str]:
        """Full argv for the child process."""
        return [self.executable, *self.args]

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout_ms is INFINITE_TIMEOUT:
            return None
        return self.timeout_ms / 1000.0

    @property
    def args_display(self) -> str:
        return shlex.join(self.args)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one invocation.

    Attributes:
        succeeded: True iff the process exited before the deadline and its
            exit code was exactly zero.
        exit_code: Exit code of the process, or ``None`` when it had not
            exited by the deadline.
        errors_logged: True if at least one line arrived on stderr. This is a
            coarse "something was printed to stderr" heuristic; many tools
            write progress there, so it says nothing about success.
        process_id: Pid of the child, so callers can deal with a child that
            is still running after a timeout.
    """

    succeeded: bool
    exit_code: int | None
    errors_logged: bool
    process_id: int | None = None

    @property
    def timed_out(self) -> bool:
        return self.exit_code is None
