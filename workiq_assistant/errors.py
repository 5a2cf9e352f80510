"""Errors raised when talking to the Work IQ CLI."""

from __future__ import annotations

from typing import Optional

from core.cli_errors import CLIError, ExitCode
from core.constants import INSTALL_HINT


class WorkIQError(CLIError):
    """Base class for failures of a single external query."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.ERROR, hint)


class ExternalToolMissing(WorkIQError):
    """The Work IQ binary is not installed or not on PATH."""

    def __init__(self, tool: str):
        super().__init__(f"Work IQ CLI not found: {tool}", hint=INSTALL_HINT)
        self.tool = tool


class ExternalToolError(WorkIQError):
    """The CLI exited non-zero."""

    def __init__(self, message: str, returncode: int, stderr: str = ""):
        super().__init__(f"Work IQ query failed (exit {returncode}): {message}")
        self.returncode = returncode
        self.stderr = stderr


class QueryTimeoutError(WorkIQError):
    """The CLI did not finish within the per-call timeout."""

    def __init__(self, timeout_ms: int):
        super().__init__(f"Work IQ query timed out after {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class OutputTooLargeError(WorkIQError):
    """The CLI produced more output than the executor accepts."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Work IQ output too large ({size} bytes, limit {limit})")
        self.size = size
        self.limit = limit


class ParseError(ValueError):
    """A response could not be interpreted as structured data.

    Never escapes the parsing module; callers get an empty or partial result.
    """
