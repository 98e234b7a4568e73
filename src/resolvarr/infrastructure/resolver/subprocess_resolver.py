"""Execution engine: resolves a request by running the resolver program.

Protocol (per call, isolated by unique temp files)::

    <runtime> <program> --resolve <input.json> <output.json>

The input holds ``{url, headers, channel_name, proxy_config}``; the program
writes a JSON object (``{resolved_url, headers}``) to the output path and
exits 0.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from resolvarr.domain.entities.resolver import ResolveRequest, ResolveResult, RunState
from resolvarr.domain.exceptions import (
    OutputMissingError,
    ProcessExecutionError,
    ProgramMissingError,
    ResolverError,
    ResultParseError,
    StorageError,
)
from resolvarr.infrastructure.resolver.program_store import ProgramStore
from resolvarr.infrastructure.resolver.result_cache import ResultCache, fingerprint

log = structlog.get_logger(__name__)

_ERROR_PREFIX: dict[type[ResolverError], str] = {
    ProcessExecutionError: "Execution error",
    ResultParseError: "Parsing error",
    StorageError: "Storage error",
}


def _describe(error: ResolverError) -> str:
    prefix = _ERROR_PREFIX.get(type(error))
    return f"{prefix}: {error}" if prefix else str(error)


def cleanup_temp_dir(temp_dir: Path) -> int:
    """Delete leftover protocol files; create the directory when missing.

    Returns the number of deleted files.
    """
    if not temp_dir.exists():
        temp_dir.mkdir(parents=True, exist_ok=True)
        log.info("resolver_temp_dir_created", path=str(temp_dir))
        return 0

    deleted = 0
    for path in temp_dir.iterdir():
        if not path.is_file():
            continue
        try:
            path.unlink()
            deleted += 1
        except OSError as e:
            log.warning("resolver_temp_file_delete_failed", path=str(path), error=str(e))
    log.info("resolver_temp_dir_cleaned", path=str(temp_dir), deleted=deleted)
    return deleted


class SubprocessResolver:
    """Runs the installed program as a child process, one process per miss.

    Overlapping calls are throttled, not queued: a call that finds another
    run in flight waits ``busy_backoff_seconds`` once and then proceeds.
    Every call uses its own input/output files, so overlapping runs do not
    collide.

    Args:
        store: Program store (path + runtime).
        cache: Result cache.
        run_state: Shared execution bookkeeping.
        temp_dir: Directory for per-call protocol files.
        timeout_seconds: Kill the child after N seconds (None = no limit).
        busy_backoff_seconds: Pause when another run is in flight.
        sleep: Awaitable sleep (tests inject a fake).
    """

    def __init__(
        self,
        *,
        store: ProgramStore,
        cache: ResultCache,
        run_state: RunState,
        temp_dir: Path,
        timeout_seconds: float | None = None,
        busy_backoff_seconds: float = 0.5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._cache = cache
        self._run_state = run_state
        self._temp_dir = Path(temp_dir)
        self._timeout = timeout_seconds
        self._backoff = busy_backoff_seconds
        self._sleep = sleep
        self._seq = itertools.count(1)

    async def resolve(self, request: ResolveRequest) -> ResolveResult | None:
        """Resolve ``request``; None means "fall back to the raw URL"."""
        key = fingerprint(request.url, request.headers)
        cached = self._cache.get(key)
        if cached is not None:
            log.info("resolver_cache_hit", channel=request.display_name)
            return cached.result

        if not self._store.exists():
            error = ProgramMissingError("Python resolver script not found")
            self._run_state.record_error(str(error))
            log.error("resolver_program_missing", channel=request.display_name)
            return None

        if self._run_state.is_executing:
            log.debug("resolver_busy_backoff", seconds=self._backoff)
            await self._sleep(self._backoff)

        self._run_state.mark_started()
        try:
            result = await self._execute(request)
        except ResolverError as e:
            self._run_state.record_error(_describe(e))
            log.error(
                "resolver_failed",
                channel=request.display_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None
        finally:
            self._run_state.mark_finished()

        self._cache.put(key, result)
        self._run_state.record_success(datetime.now(timezone.utc))
        log.info("resolver_resolved", channel=request.display_name)
        return result

    def _artifact_paths(self) -> tuple[Path, Path]:
        token = f"{time.time_ns()}_{next(self._seq)}"
        return (
            self._temp_dir / f"input_{token}.json",
            self._temp_dir / f"output_{token}.json",
        )

    async def _execute(self, request: ResolveRequest) -> ResolveResult:
        input_path, output_path = self._artifact_paths()
        payload = json.dumps(request.to_payload(), indent=2)
        try:
            await asyncio.to_thread(self._write_input, input_path, payload)
        except OSError as e:
            raise StorageError(f"Cannot write {input_path}: {e}") from e

        log.info("resolver_run_started", channel=request.display_name)
        await self._run_program(input_path, output_path)

        if not output_path.exists():
            raise OutputMissingError("Output file not created")

        try:
            raw = await asyncio.to_thread(output_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {output_path}: {e}") from e

        result = _parse_output(raw)
        self._remove_artifacts(input_path, output_path)
        return result

    def _write_input(self, path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")

    async def _run_program(self, input_path: Path, output_path: Path) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                self._store.runtime,
                str(self._store.path),
                "--resolve",
                str(input_path),
                str(output_path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessExecutionError(f"Cannot start resolver: {e}") from e

        try:
            out, err = await asyncio.wait_for(proc.communicate(), self._timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ProcessExecutionError(
                f"Resolver timed out after {self._timeout}s"
            ) from None

        stdout = out.decode("utf-8", errors="replace").strip()
        stderr = err.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            raise ProcessExecutionError(
                f"Resolver exited with code {proc.returncode}: {stderr or stdout}",
                returncode=proc.returncode,
                stderr=stderr,
            )
        if stderr:
            log.warning("resolver_run_stderr", stderr=stderr)
        if stdout:
            log.debug("resolver_run_stdout", stdout=stdout)

    def _remove_artifacts(self, *paths: Path) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                log.warning("resolver_temp_file_delete_failed", path=str(path), error=str(e))


def _parse_output(raw: str) -> ResolveResult:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        log.error("resolver_output_invalid", content=raw)
        raise ResultParseError(str(e), raw=raw) from e
    if not isinstance(data, dict):
        log.error("resolver_output_invalid", content=raw)
        raise ResultParseError(
            f"expected a JSON object, got {type(data).__name__}", raw=raw
        )
    return ResolveResult(payload=data)
