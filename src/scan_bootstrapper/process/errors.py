"""Exceptions raised by the process runner.

Timeouts and non-zero exit codes are not errors here; they are reported
through :class:`~scan_bootstrapper.process.invocation.ExecutionResult`.
"""

from __future__ import annotations

__all__ = [
    "ProcessRunnerError",
    "InvalidArgumentError",
    "SpawnFailureError",
]


class ProcessRunnerError(Exception):
    """Base exception for process runner errors."""

    pass


class InvalidArgumentError(ProcessRunnerError, ValueError):
    """Raised when an invocation request is malformed.

    Always raised before any OS resource is acquired.
    """

    pass


class SpawnFailureError(ProcessRunnerError):
    """Raised when the OS refuses or fails to create the child process."""

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"Failed to start '{executable}': {reason}")
        self.executable = executable
        self.reason = reason
