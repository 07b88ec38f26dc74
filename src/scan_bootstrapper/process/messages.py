"""Diagnostic messages emitted to output sinks.

Messages use %-style placeholders; sinks format them only when arguments
are supplied.
"""

from __future__ import annotations

EXECUTING_FILE = (
    "Executing file %s\n"
    "  Args: %s\n"
    "  Working directory: %s\n"
    "  Timeout (ms): %s\n"
    "  Process id: %s"
)
EXECUTION_EXIT_CODE = "Process returned exit code %s"
EXECUTION_TIMED_OUT = "Timed out after waiting %s ms for %s to complete"
TERMINATED_AFTER_TIMEOUT = "Terminated timed-out process %s (pid %s)"
OVERWRITING_ENV_VAR = "Overwriting the value of environment variable '%s'. Old value: %s, new value: %s"
SETTING_ENV_VAR = "Setting environment variable '%s'. Value: %s"

INFINITE_LABEL = "infinite"
