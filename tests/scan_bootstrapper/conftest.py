from __future__ import annotations

import sys
import threading
from typing import Any

import pytest


class RecordingSink:
    """Sink that records every call as (kind, text)."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, message: str, args: tuple[Any, ...]) -> None:
        with self._lock:
            self.events.append((kind, message % args if args else message))

    def log_message(self, message: str, *args: Any) -> None:
        self._record("diagnostic" if args else "output", message, args)

    def log_warning(self, message: str, *args: Any) -> None:
        self._record("warning", message, args)

    def log_error(self, message: str, *args: Any) -> None:
        self._record("error", message, args)

    def of_kind(self, kind: str) -> list[str]:
        with self._lock:
            return [text for event_kind, text in self.events if event_kind == kind]

    @property
    def output(self) -> list[str]:
        return self.of_kind("output")

    @property
    def errors(self) -> list[str]:
        return self.of_kind("error")

    @property
    def diagnostics(self) -> list[str]:
        return self.of_kind("diagnostic")

    @property
    def warnings(self) -> list[str]:
        return self.of_kind("warning")

    def index_of(self, fragment: str) -> int:
        with self._lock:
            for index, (_, text) in enumerate(self.events):
                if fragment in text:
                    return index
        raise AssertionError(f"{fragment!r} was never logged")


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def python_exe() -> str:
    return sys.executable
