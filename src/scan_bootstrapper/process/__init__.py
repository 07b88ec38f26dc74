"""External process execution engine.

Launches an external program, streams its stdout and stderr to an
OutputSink on two drain threads, enforces an optional timeout and cleans
up on every exit path.

Usage:
    from scan_bootstrapper.process import InvocationSpec, LoggingSink, ProcessRunner

    spec = InvocationSpec("msbuild", "/t:Rebuild", timeout_ms=60_000)
    result = ProcessRunner().execute(spec, LoggingSink())
    if not result.succeeded:
        ...
"""

from scan_bootstrapper.process.errors import (
    InvalidArgumentError,
    ProcessRunnerError,
    SpawnFailureError,
)
from scan_bootstrapper.process.invocation import (
    INFINITE_TIMEOUT,
    ExecutionResult,
    InvocationSpec,
)
from scan_bootstrapper.process.runner import (
    DEFAULT_DRAIN_TIMEOUT,
    ProcessRunner,
    ProcessState,
    RunningProcess,
    run_process,
)
from scan_bootstrapper.process.sink import ConsoleSink, LoggingSink, OutputSink

__all__ = [
    # Invocation model
    "INFINITE_TIMEOUT",
    "InvocationSpec",
    "ExecutionResult",
    # Runner
    "DEFAULT_DRAIN_TIMEOUT",
    "ProcessRunner",
    "ProcessState",
    "RunningProcess",
    "run_process",
    # Sinks
    "OutputSink",
    "LoggingSink",
    "ConsoleSink",
    # Exceptions
    "ProcessRunnerError",
    "InvalidArgumentError",
    "SpawnFailureError",
]
