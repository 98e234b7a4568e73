"""Resolver subsystem exceptions.

Raised inside components and converted to a ``False``/``None`` outcome plus
``RunState.last_error`` at each public operation boundary.
"""

from __future__ import annotations


class ResolverError(Exception):
    """Base class for all resolver-related errors."""


class DownloadError(ResolverError):
    """Raised when the resolver program cannot be fetched from its source URL."""


class InvalidProgramError(ResolverError):
    """Raised when a downloaded program has no resolve entry point."""


class StorageError(ResolverError):
    """Raised when the program or a protocol file cannot be written or read."""


class NotFoundError(ResolverError):
    """Raised when the program is absent on disk during a health check."""


class RuntimeUnavailableError(ResolverError):
    """Raised when the external runtime cannot be invoked at all."""


class InvalidScheduleError(ResolverError):
    """Raised when an update interval is malformed or out of range."""


class ProgramMissingError(ResolverError):
    """Raised when a resolution is attempted with no program installed."""


class OutputMissingError(ResolverError):
    """Raised when the program exited cleanly but wrote no output file."""


class ResultParseError(ResolverError):
    """Raised when the output file is not a JSON object."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class ProcessExecutionError(ResolverError):
    """Raised when the child process cannot be spawned or exits non-zero."""

    def __init__(
        self, message: str, *, returncode: int | None = None, stderr: str = ""
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
