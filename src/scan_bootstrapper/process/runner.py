"""Run an external executable and stream its output to a sink.

This module handles:
    - Environment overlay with overwrite diagnostics
    - Process spawning with subprocess.Popen
    - Concurrent stdout/stderr draining on two threads
    - Timeout enforcement (wait abandonment, optional termination)
    - Cleanup on every exit path

A timed-out child is NOT killed unless the runner was created with
``terminate_on_timeout=True``. The caller only stops waiting for it; the
child keeps running and its pipes keep being drained (and discarded) until
it closes them, so it never blocks on a full pipe.
"""

from __future__ import annotations

import enum
import logging
import os
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Any, Callable, Mapping, Sequence

from scan_bootstrapper.process import messages
from scan_bootstrapper.process.errors import InvalidArgumentError, SpawnFailureError
from scan_bootstrapper.process.invocation import (
    INFINITE_TIMEOUT,
    ExecutionResult,
    InvocationSpec,
)
from scan_bootstrapper.process.sink import OutputSink

__all__ = [
    "DEFAULT_DRAIN_TIMEOUT",
    "ProcessState",
    "RunningProcess",
    "ProcessRunner",
    "run_process",
]

logger = logging.getLogger(__name__)

# Seconds to wait for the drain threads once the child has exited
DEFAULT_DRAIN_TIMEOUT = 10.0

# Seconds between terminate() and kill() when terminate_on_timeout is set
TERMINATE_GRACE_SECONDS = 5.0


class ProcessState(str, enum.Enum):
    """Lifecycle of one RunningProcess."""

    CREATED = "created"
    SPAWNED = "spawned"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    CLEANED = "cleaned"


class _StreamDrain(threading.Thread):
    """Reads one pipe until EOF, handing each line to ``deliver``.

    The drain owns its stream and closes it at EOF.
    """

    def __init__(self, stream: IO[str], deliver: Callable[[str], None], name: str) -> None:
        super().__init__(name=name, daemon=True)
        self.stream = stream
        self._deliver = deliver

    def run(self) -> None:
        logger.debug("%s started", self.name)
        try:
            for line in self.stream:
                try:
                    self._deliver(line.rstrip("\r\n"))
                except Exception:
                    # Keep draining so the child never blocks on a full pipe
                    logger.exception("%s: output sink raised", self.name)
        except (ValueError, OSError) as exc:
            logger.debug("%s stopped reading: %s", self.name, exc)
        finally:
            self.stream.close()
            logger.debug("%s reached end of stream", self.name)


class RunningProcess:
    """One spawned child process plus its two drain threads.

    Exists for the duration of a single ``ProcessRunner.execute`` call. Use
    it as a context manager: leaving the block always runs :meth:`cleanup`,
    whether the block returned normally, timed out or raised.

    The stderr flag lives here rather than on the runner so that it is
    scoped to exactly one invocation.
    """

    def __init__(self, spec: InvocationSpec, sink: OutputSink, env: Mapping[str, str]) -> None:
        self.spec = spec
        self.state = ProcessState.CREATED
        self.process: subprocess.Popen[str] | None = None
        self.errors_logged = False
        self._sink = sink
        self._env = dict(env)
        self._lock = threading.Lock()
        self._detached = False
        self._drains: list[_StreamDrain] = []

    def __enter__(self) -> RunningProcess:
        self.spawn()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cleanup()

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    def spawn(self) -> None:
        """Start the child and both drain threads.

        Raises:
            SpawnFailureError: If the OS could not create the process.
        """
        try:
            self.process = subprocess.Popen(
                self.spec.command,
                cwd=str(self.spec.working_directory) if self.spec.working_directory else None,
                env=self._env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise SpawnFailureError(self.spec.executable, exc.strerror or str(exc)) from exc

        self.state = ProcessState.SPAWNED
        try:
            assert self.process.stdout is not None and self.process.stderr is not None
            self._drains = [
                _StreamDrain(
                    self.process.stdout,
                    lambda line: self._forward(line, error=False),
                    f"stdout-drain-{self.process.pid}",
                ),
                _StreamDrain(
                    self.process.stderr,
                    lambda line: self._forward(line, error=True),
                    f"stderr-drain-{self.process.pid}",
                ),
            ]
            for drain in self._drains:
                drain.start()
        except BaseException:
            self.cleanup()
            raise

    def _forward(self, line: str, *, error: bool) -> None:
        with self._lock:
            if self._detached:
                return
            if error:
                self.errors_logged = True
                self._sink.log_error(line)
            else:
                self._sink.log_message(line)

    def emit(self, log: Callable[..., None], message: str, *args: Any) -> None:
        """Send a diagnostic to the sink, serialized with captured output."""
        with self._lock:
            log(message, *args)

    def wait(self) -> bool:
        """Block until the child exits or the deadline passes.

        Returns:
            True if the child exited, False if the deadline passed first.
        """
        assert self.process is not None
        try:
            self.process.wait(timeout=self.spec.timeout_seconds)
        except subprocess.TimeoutExpired:
            self.state = ProcessState.TIMED_OUT
            return False
        self.state = ProcessState.EXITED
        return True

    def join_drains(self, timeout: float | None) -> None:
        """Let output that is already in flight reach the sink."""
        deadline = None if timeout is None else time.monotonic() + timeout
        for drain in self._drains:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            drain.join(remaining)
            if drain.is_alive():
                # A grandchild may still hold the pipe open
                logger.debug("%s still running after %ss; detaching it", drain.name, timeout)

    def terminate(self) -> None:
        assert self.process is not None
        self.process.terminate()
        try:
            self.process.wait(timeout=TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.debug("pid %s ignored SIGTERM; killing", self.process.pid)
            self.process.kill()
            self.process.wait()

    def cleanup(self) -> None:
        """Detach the drains from the sink, then release the process handle."""
        if self.state is ProcessState.CLEANED:
            return
        with self._lock:
            self._detached = True

        if self.process is not None:
            started = {id(drain.stream) for drain in self._drains if drain.ident is not None}
            for stream in (self.process.stdout, self.process.stderr):
                if stream is not None and id(stream) not in started:
                    stream.close()
            # Reaps the child if it has exited; a still-running child is left alone
            self.process.poll()

        logger.debug("Cleaned up %s (pid %s, was %s)", self.spec.executable, self.pid, self.state.value)
        self.state = ProcessState.CLEANED


class ProcessRunner:
    """Runs external executables and streams their output to a sink.

    A runner holds configuration only; every ``execute`` call gets its own
    RunningProcess, so one runner can be reused sequentially or shared.

    Args:
        terminate_on_timeout: Terminate a child that outlives its timeout.
            Off by default: a timed-out child is left running.
        drain_timeout: Seconds to wait for pending output once the child has
            exited. ``None`` waits until both pipes close.
    """

    def __init__(
        self,
        *,
        terminate_on_timeout: bool = False,
        drain_timeout: float | None = DEFAULT_DRAIN_TIMEOUT,
    ) -> None:
        self.terminate_on_timeout = terminate_on_timeout
        self.drain_timeout = drain_timeout

    def execute(self, spec: InvocationSpec, sink: OutputSink) -> ExecutionResult:
        """Run ``spec`` to completion or timeout.

        Returns:
            ExecutionResult; ``succeeded`` is True only if the process exited
            within the deadline with exit code 0.

        Raises:
            InvalidArgumentError: If the request is malformed. Nothing is spawned.
            SpawnFailureError: If the OS could not start the process.
        """
        _validate(spec, sink)
        env = _build_environment(spec.env, sink)

        with RunningProcess(spec, sink, env) as running:
            running.emit(
                sink.log_message,
                messages.EXECUTING_FILE,
                spec.executable,
                spec.args_display,
                spec.working_directory or Path.cwd(),
                _timeout_label(spec),
                running.pid,
            )

            if running.wait():
                running.join_drains(self.drain_timeout)
                exit_code: int | None = running.process.returncode
                running.emit(sink.log_message, messages.EXECUTION_EXIT_CODE, exit_code)
            else:
                exit_code = None
                running.emit(sink.log_warning, messages.EXECUTION_TIMED_OUT, spec.timeout_ms, spec.executable)
                if self.terminate_on_timeout:
                    running.terminate()
                    running.emit(sink.log_message, messages.TERMINATED_AFTER_TIMEOUT, spec.executable, running.pid)

        return ExecutionResult(
            succeeded=exit_code == 0,
            exit_code=exit_code,
            errors_logged=running.errors_logged,
            process_id=running.pid,
        )


def _validate(spec: InvocationSpec, sink: OutputSink | None) -> None:
    if spec is None:
        raise InvalidArgumentError("An invocation spec is required")
    if not spec.executable or not spec.executable.strip():
        raise InvalidArgumentError("executable must not be empty")
    if sink is None:
        raise InvalidArgumentError("sink must not be None")
    if spec.timeout_ms is not INFINITE_TIMEOUT and spec.timeout_ms < 0:
        raise InvalidArgumentError(f"timeout_ms must be >= 0, got {spec.timeout_ms}")
    for name in spec.env:
        if not name or "=" in name:
            raise InvalidArgumentError(f"Invalid environment variable name: {name!r}")


def _build_environment(overlay: Mapping[str, str], sink: OutputSink) -> dict[str, str]:
    env = dict(os.environ)
    for name, value in overlay.items():
        if name in env:
            sink.log_message(messages.OVERWRITING_ENV_VAR, name, env[name], value)
        else:
            sink.log_message(messages.SETTING_ENV_VAR, name, value)
        env[name] = value
    return env


def _timeout_label(spec: InvocationSpec) -> str:
    if spec.timeout_ms is INFINITE_TIMEOUT:
        return messages.INFINITE_LABEL
    return str(spec.timeout_ms)


def run_process(
    executable: str,
    args: str | Sequence[str] = (),
    *,
    sink: OutputSink,
    working_directory: Path | str | None = None,
    timeout_ms: int | None = INFINITE_TIMEOUT,
    env: Mapping[str, str] | None = None,
    terminate_on_timeout: bool = False,
) -> ExecutionResult:
    """Build an InvocationSpec and execute it with a default runner."""
    spec = InvocationSpec(
        executable=executable,
        args=args,
        working_directory=Path(working_directory) if working_directory is not None else None,
        timeout_ms=timeout_ms,
        env=env or {},
    )
    return ProcessRunner(terminate_on_timeout=terminate_on_timeout).execute(spec, sink)
