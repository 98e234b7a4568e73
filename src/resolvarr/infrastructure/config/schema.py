"""Pydantic configuration models with validation."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _default_runtime() -> str:
    return sys.executable or "python3"


class ResolverConfig(BaseModel):
    """Configuration for the external resolver program.

    All values configurable via YAML (resolver section) or ENV vars.
    """

    program_path: Path = Field(
        default=Path("./data/resolver_script.py"),
        description="Where the installed resolver program lives.",
    )
    temp_dir: Path = Field(
        default=Path("./data/temp"),
        description="Directory for per-call input/output protocol files.",
    )
    runtime: str = Field(
        default_factory=_default_runtime,
        description="Interpreter used to run the program (default: current Python).",
    )
    source_url: str | None = Field(
        default=None,
        description="Install the program from this URL on startup.",
    )
    update_interval: str | None = Field(
        default=None,
        description='Re-install interval on startup, "H:MM" (e.g. "0:30", "2:00").',
    )
    timeout_seconds: float | None = Field(
        default=None,
        description="Kill a resolver run after N seconds. Unset = wait forever.",
    )
    busy_backoff_seconds: float = Field(
        default=0.5,
        description="Pause before starting a run while another one is in flight.",
    )
    download_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout when downloading the program.",
    )

    @field_validator("program_path", "temp_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v

    @field_validator("busy_backoff_seconds")
    @classmethod
    def _validate_backoff(cls, v: float) -> float:
        if v < 0:
            raise ValueError("busy_backoff_seconds must be >= 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/resolver).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="resolvarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default HTTP timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Resolvarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Resolver (YAML section: resolver.*)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "resolver": self.resolver.model_dump(mode="json"),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read RESOLVARR_* variables, converts
    them to a dict of set values and merges that into YAML/defaults before
    validating AppConfig.

    Supported env var examples (flat, explicit):
    - RESOLVARR_LOG_LEVEL
    - RESOLVARR_HTTP_TIMEOUT_SECONDS
    - RESOLVARR_RESOLVER_SOURCE_URL
    - RESOLVARR_RESOLVER_UPDATE_INTERVAL
    """

    model_config = SettingsConfigDict(
        env_prefix="RESOLVARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    resolver_program_path: Optional[Path] = None
    resolver_temp_dir: Optional[Path] = None
    resolver_runtime: Optional[str] = None
    resolver_source_url: Optional[str] = None
    resolver_update_interval: Optional[str] = None
    resolver_timeout_seconds: Optional[float] = None

    @field_validator("resolver_program_path", "resolver_temp_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
