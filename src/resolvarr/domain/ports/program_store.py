"""Port for the single installed resolver program."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from resolvarr.domain.entities.resolver import ProgramState


@runtime_checkable
class ProgramStorePort(Protocol):
    """Owns the program artifact on disk and its ProgramState.

    Install and health operations report failures through their boolean
    return value (and ``RunState.last_error``), they do not raise.
    """

    @property
    def state(self) -> ProgramState: ...

    def exists(self) -> bool: ...

    async def install(self, source_url: str) -> bool: ...

    async def install_template(self) -> bool: ...

    async def check_health(self) -> bool: ...

    def get_version(self) -> str: ...
