"""Typed configuration models with Pydantic validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from raven_hosting.ravendb.settings import ClientSettings, ServerSettings


class ServiceSettings(BaseModel):
    """Service identification."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Service name")
    version: str = Field(default="0.0.0", min_length=1, description="Service version")
    app_name: str | None = Field(
        default=None,
        min_length=1,
        description="Application name used to scope generated volume names",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="json", description="Log output format")


class ObservabilitySettings(BaseModel):
    """Metrics and tracing settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Enable observability")
    metrics_prefix: str = Field(
        default="raven_hosting", min_length=1, description="Prometheus metric name prefix"
    )
    prometheus_enabled: bool = Field(
        default=False, description="Install the Prometheus recorder at bootstrap"
    )


class RavenDBSettings(BaseModel):
    """RavenDB server and client configuration."""

    model_config = ConfigDict(frozen=True)

    server: ServerSettings | None = None
    client: ClientSettings | None = None

    @classmethod
    def from_env(cls, prefix: str = "RAVEN_HOSTING_") -> RavenDBSettings:
        """Build client settings from ``{prefix}RAVENDB_*`` variables.

        The server section is left empty; servers are declared in code.
        """

        def env(name: str) -> str | None:
            value = os.getenv(f"{prefix}RAVENDB_{name}")
            return value if value not in (None, "") else None

        def env_bool(name: str, default: bool = False) -> bool:
            value = env(name)
            if value is None:
                return default
            return value.strip().lower() in {"1", "true", "yes", "on"}

        def env_optional_int(name: str) -> int | None:
            value = env(name)
            if value is None:
                return None
            try:
                return int(value)
            except ValueError as exc:
                raise ValueError(
                    f"{prefix}RAVENDB_{name} must be an integer, got {value!r}"
                ) from exc

        urls = env("URLS")
        if urls is None:
            return cls()

        certificate_path = env("CERTIFICATE_PATH")
        password = env("CERTIFICATE_PASSWORD")
        client = ClientSettings(
            urls=tuple(url.strip() for url in urls.split(",") if url.strip()),
            database_name=env("DATABASE"),
            create_database_if_missing=env_bool("CREATE_DATABASE_IF_MISSING"),
            certificate_path=Path(certificate_path) if certificate_path else None,
            certificate_password=SecretStr(password) if password else None,
            disable_health_checks=env_bool("DISABLE_HEALTH_CHECKS"),
            disable_tracing=env_bool("DISABLE_TRACING"),
            health_check_timeout_ms=env_optional_int("HEALTH_CHECK_TIMEOUT_MS"),
        )
        return cls(client=client)


class AppSettings(BaseModel):
    """Root application settings."""

    model_config = ConfigDict(frozen=True)

    service: ServiceSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    ravendb: RavenDBSettings = Field(default_factory=RavenDBSettings)
