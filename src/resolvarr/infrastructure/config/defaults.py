"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "resolvarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "Resolvarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "resolver": {
        "program_path": "./data/resolver_script.py",
        "temp_dir": "./data/temp",
        "busy_backoff_seconds": 0.5,
        "download_timeout_seconds": 30.0,
    },
}
