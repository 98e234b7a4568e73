"""Domain entities for the external resolver subsystem.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class ResolveRequest:
    """Input of one resolution: the raw URL plus what the program needs."""

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    display_name: str = "unknown"
    proxy_config: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        # Read-only snapshot; later changes to the caller's dict do not leak in.
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def to_payload(self) -> dict[str, Any]:
        """Wire object written to the program's input file."""
        return {
            "url": self.url,
            "headers": dict(self.headers),
            "channel_name": self.display_name,
            "proxy_config": self.proxy_config,
        }


@dataclass(frozen=True)
class ResolveResult:
    """Output of the resolver program.

    The payload is kept as-is: the program defines its own contract with
    downstream players, we only read the two well-known keys.
    """

    payload: dict[str, Any]

    @property
    def resolved_url(self) -> str:
        value = self.payload.get("resolved_url")
        return value if isinstance(value, str) else ""

    @property
    def headers(self) -> dict[str, str]:
        value = self.payload.get("headers")
        return dict(value) if isinstance(value, dict) else {}

    def to_dict(self) -> dict[str, Any]:
        return self.payload


@dataclass(frozen=True)
class CacheEntry:
    """A memoized result. Never mutated; replaced or dropped instead."""

    fingerprint: str
    result: ResolveResult
    stored_at: float  # epoch seconds

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.stored_at < ttl_seconds


@dataclass
class ProgramState:
    """What is currently installed on disk."""

    path: Path
    source_url: str | None = None
    version: str = "unknown"
    installed_at: datetime | None = None


@dataclass(frozen=True)
class ScheduleState:
    """A validated update interval."""

    cron_expression: str  # e.g. "*/5 * * * *"
    human_interval: str  # operator input, e.g. "0:05"
    interval: timedelta
    active: bool = True


@dataclass
class RunState:
    """Execution bookkeeping shared by store, engine and scheduler.

    Runs may overlap, so in-flight invocations are counted; the subsystem is
    executing while at least one is running.
    """

    last_execution_at: datetime | None = None
    last_error: str | None = None
    _in_flight: int = field(default=0, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    @property
    def is_executing(self) -> bool:
        with self._lock:
            return self._in_flight > 0

    def mark_started(self) -> None:
        with self._lock:
            self._in_flight += 1

    def mark_finished(self) -> None:
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)

    def record_success(self, when: datetime) -> None:
        with self._lock:
            self.last_execution_at = when
            self.last_error = None

    def record_error(self, message: str) -> None:
        with self._lock:
            self.last_error = message


@dataclass(frozen=True)
class ResolverStatus:
    """Point-in-time health snapshot for the admin interface."""

    is_executing: bool
    last_execution_at: datetime | None
    last_error: str | None
    program_exists: bool
    source_url: str | None
    update_interval: str | None
    schedule_active: bool
    cache_items: int
    program_version: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_executing": self.is_executing,
            "last_execution_at": (
                self.last_execution_at.isoformat()
                if self.last_execution_at
                else None
            ),
            "last_error": self.last_error,
            "program_exists": self.program_exists,
            "source_url": self.source_url,
            "update_interval": self.update_interval,
            "schedule_active": self.schedule_active,
            "cache_items": self.cache_items,
            "program_version": self.program_version,
        }


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an admin operation (success flag + user-facing message)."""

    success: bool
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, **self.details}
