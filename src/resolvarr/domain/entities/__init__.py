from __future__ import annotations

from .resolver import (
    CacheEntry,
    OperationResult,
    ProgramState,
    ResolverStatus,
    ResolveRequest,
    ResolveResult,
    RunState,
    ScheduleState,
)

__all__ = [
    "CacheEntry",
    "OperationResult",
    "ProgramState",
    "ResolveRequest",
    "ResolveResult",
    "ResolverStatus",
    "RunState",
    "ScheduleState",
]
