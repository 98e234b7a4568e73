"""Shared fixtures for integration tests.

These tests use real infrastructure components (ProgramStore,
SubprocessResolver, the bundled template program) with mocked HTTP via respx.
"""

from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest
import respx

from resolvarr.infrastructure.config.schema import AppConfig, ResolverConfig


@pytest.fixture()
async def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    """Config with all resolver files under tmp_path."""
    return AppConfig(
        environment="test",
        resolver=ResolverConfig(
            program_path=tmp_path / "data" / "resolver_script.py",
            temp_dir=tmp_path / "data" / "temp",
            runtime=sys.executable,
        ),
    )
