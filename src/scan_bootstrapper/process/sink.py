"""Output sinks that receive diagnostics and captured process output.

The runner calls a sink from its drain threads, but always under its own
lock, so implementations do not need to be thread-safe.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from rich.console import Console
from rich.text import Text

__all__ = [
    "OutputSink",
    "LoggingSink",
    "ConsoleSink",
]


@runtime_checkable
class OutputSink(Protocol):
    """Receiver for runner diagnostics and captured lines.

    Captured stdout lines arrive through ``log_message`` and stderr lines
    through ``log_error``, always without arguments. Diagnostics arrive as
    a %-style format string plus arguments.
    """

    def log_message(self, message: str, *args: Any) -> None: ...

    def log_warning(self, message: str, *args: Any) -> None: ...

    def log_error(self, message: str, *args: Any) -> None: ...


def _render(message: str, args: tuple[Any, ...]) -> str:
    # Captured lines come without args and may contain a literal '%'
    return message % args if args else message


class LoggingSink:
    """Sink that forwards everything to a :class:`logging.Logger`."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("scan_bootstrapper.process.output")

    def log_message(self, message: str, *args: Any) -> None:
        self.logger.info(_render(message, args))

    def log_warning(self, message: str, *args: Any) -> None:
        self.logger.warning(_render(message, args))

    def log_error(self, message: str, *args: Any) -> None:
        self.logger.error(_render(message, args))


class ConsoleSink:
    """Sink that prints to a Rich console.

    Text is printed without markup or highlighting so that brackets in
    process output are shown verbatim.
    """

    def __init__(self, console: Console | None = None, *, show_diagnostics: bool = True) -> None:
        self.console = console or Console()
        self.show_diagnostics = show_diagnostics

    def log_message(self, message: str, *args: Any) -> None:
        if args and not self.show_diagnostics:
            return
        style = "dim" if args else ""
        self.console.print(Text(_render(message, args), style=style), highlight=False, soft_wrap=True)

    def log_warning(self, message: str, *args: Any) -> None:
        self.console.print(Text(_render(message, args), style="yellow"), highlight=False, soft_wrap=True)

    def log_error(self, message: str, *args: Any) -> None:
        self.console.print(Text(_render(message, args), style="red"), highlight=False, soft_wrap=True)
