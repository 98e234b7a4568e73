"""External resolver subsystem: program store, cache, engine, scheduler, status."""

from __future__ import annotations

from .program_store import ProgramStore
from .result_cache import ResultCache, fingerprint
from .scheduler import ResolverUpdateScheduler, parse_interval
from .status import StatusReporter
from .subprocess_resolver import SubprocessResolver, cleanup_temp_dir

__all__ = [
    "ProgramStore",
    "ResolverUpdateScheduler",
    "ResultCache",
    "StatusReporter",
    "SubprocessResolver",
    "cleanup_temp_dir",
    "fingerprint",
    "parse_interval",
]
