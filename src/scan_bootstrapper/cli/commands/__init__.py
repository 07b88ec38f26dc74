"""CLI command modules for scan-bootstrapper."""

from .run import run_command

__all__ = ["run_command"]
