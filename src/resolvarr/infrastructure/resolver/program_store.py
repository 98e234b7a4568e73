"""Program store: installs, validates and inspects the resolver program.

The program is opaque and untrusted. Validation is shallow:
the source must declare a resolve entry point and the runtime must be able
to run it with ``--check``.
"""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import httpx
import structlog

from resolvarr.domain.entities.resolver import ProgramState, RunState
from resolvarr.domain.exceptions import (
    DownloadError,
    InvalidProgramError,
    NotFoundError,
    ResolverError,
    RuntimeUnavailableError,
    StorageError,
)
from resolvarr.infrastructure.resolver.template import TEMPLATE_SOURCE

log = structlog.get_logger(__name__)

ENTRY_POINT_MARKERS: tuple[str, ...] = ("def resolve_link", "def resolve_stream")
READINESS_TOKEN = "resolver_ready"

_VERSION_RE = re.compile(r"""RESOLVER_VERSION\s*=\s*["']([^"']+)["']""")


def _atomic_write(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` via a sibling temp file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def has_entry_point(source: str) -> bool:
    return any(marker in source for marker in ENTRY_POINT_MARKERS)


class ProgramStore:
    """Owns the single active resolver program and its ProgramState.

    Args:
        program_path: Fixed storage location of the program.
        runtime: Interpreter used to run the program.
        http_client: Shared client used for downloads.
        run_state: Shared execution bookkeeping (``last_error``).
        download_timeout: Per-download HTTP timeout in seconds.
    """

    def __init__(
        self,
        *,
        program_path: Path,
        runtime: str,
        http_client: httpx.AsyncClient,
        run_state: RunState,
        download_timeout: float = 30.0,
    ) -> None:
        self._runtime = runtime
        self._http = http_client
        self._run_state = run_state
        self._download_timeout = download_timeout
        self._state = ProgramState(path=Path(program_path))
        if self.exists():
            self._state.version = self._declared_version()

    @property
    def state(self) -> ProgramState:
        return self._state

    @property
    def path(self) -> Path:
        return self._state.path

    @property
    def runtime(self) -> str:
        return self._runtime

    def exists(self) -> bool:
        return self._state.path.is_file()

    # --- install ---

    async def install(self, source_url: str) -> bool:
        """Download the program from ``source_url`` and install it.

        The URL is recorded before the download so scheduled updates retry
        the same origin. A body without an entry point is still written; the
        failure is reported so the operator can re-install.
        """
        log.info("resolver_install_started", source_url=source_url)
        self._state.source_url = source_url
        try:
            body = await self._download(source_url)
            await asyncio.to_thread(self._write, body)
            if not has_entry_point(body):
                raise InvalidProgramError(
                    "The script must contain a resolve_link or resolve_stream function"
                )
        except ResolverError as e:
            self._run_state.record_error(str(e))
            log.error(
                "resolver_install_failed",
                source_url=source_url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

        log.info(
            "resolver_installed",
            source_url=source_url,
            path=str(self.path),
            version=self._state.version,
        )
        return True

    async def install_template(self) -> bool:
        """Write the bundled reference program, overwriting any existing one."""
        try:
            await asyncio.to_thread(self._write, TEMPLATE_SOURCE)
        except StorageError as e:
            self._run_state.record_error(f"Template creation error: {e}")
            log.error("resolver_template_failed", error=str(e))
            return False

        log.info("resolver_template_created", path=str(self.path))
        return True

    async def _download(self, source_url: str) -> str:
        try:
            resp = await self._http.get(
                source_url,
                follow_redirects=True,
                timeout=self._download_timeout,
            )
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadError(f"Download error: {e}") from e
        return resp.text

    def _write(self, content: str) -> None:
        try:
            _atomic_write(self.path, content)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        self._state.installed_at = datetime.now(timezone.utc)
        self._state.version = self._declared_version()

    def read_program(self) -> str:
        """Return the installed program source.

        Raises:
            NotFoundError: No program installed.
            StorageError: The file exists but cannot be read.
        """
        if not self.exists():
            raise NotFoundError("Python resolver script not found")
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

    # --- health ---

    async def check_health(self) -> bool:
        """Run the program's self-check. Never raises."""
        try:
            await self._check_health()
        except ResolverError as e:
            self._run_state.record_error(str(e))
            log.warning(
                "resolver_health_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return False
        log.info("resolver_health_ok", path=str(self.path))
        return True

    async def _check_health(self) -> None:
        if not self.exists():
            raise NotFoundError("Python resolver script not found")

        try:
            code, _, _ = await _run(self._runtime, "--version")
        except OSError as e:
            raise RuntimeUnavailableError(
                f"Runtime {self._runtime!r} cannot be started: {e}"
            ) from e
        if code != 0:
            raise RuntimeUnavailableError(
                f"Runtime {self._runtime!r} exited with code {code}"
            )

        try:
            code, stdout, stderr = await _run(
                self._runtime, str(self.path), "--check"
            )
        except OSError as e:
            raise RuntimeUnavailableError(f"Verification error: {e}") from e

        if stderr and READINESS_TOKEN not in stderr:
            log.warning("resolver_check_stderr", stderr=stderr.strip())
        if READINESS_TOKEN not in stdout and READINESS_TOKEN not in stderr:
            raise InvalidProgramError(
                f"Verification error: readiness token missing (exit code {code})"
            )

    # --- version ---

    def _declared_version(self) -> str:
        version = self.get_version()
        return "unknown" if version in ("N/A", "Error") else version

    def get_version(self) -> str:
        """Best-effort ``RESOLVER_VERSION`` lookup: value, "N/A" or "Error"."""
        if not self.exists():
            return "N/A"
        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error("resolver_version_read_failed", error=str(e))
            return "Error"
        match = _VERSION_RE.search(content)
        return match.group(1) if match else "N/A"


async def _run(*args: str) -> tuple[int, str, str]:
    """Run a short-lived command and capture both streams."""
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    out, err = await proc.communicate()
    return (
        proc.returncode if proc.returncode is not None else -1,
        out.decode("utf-8", errors="replace"),
        err.decode("utf-8", errors="replace"),
    )
