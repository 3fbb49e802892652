"""Typed RavenDB server and client settings."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_serializer,
    field_validator,
    model_validator,
)

from raven_hosting.ravendb.environment import (
    CERTIFICATE_PASSWORD,
    CERTIFICATE_PATH,
    LICENSE,
    LICENSE_EULA_ACCEPTED,
    PUBLIC_SERVER_URL,
    SERVER_URL,
    SETUP_MODE,
    UNSECURED_ACCESS_ALLOWED,
    UnsecuredDefaults,
)

if TYPE_CHECKING:
    from raven_hosting.ravendb.certificates import ClientCertificate


def _is_http_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


class SecurityMode(StrEnum):
    UNSECURED = "Unsecured"
    SECURED = "Secured"


class SetupMode(StrEnum):
    """RavenDB setup flows supported by the container image."""

    NONE = "None"
    INITIAL = "Initial"
    LETS_ENCRYPT = "LetsEncrypt"
    OWN_CERTIFICATE = "OwnCertificate"

    @property
    def server_value(self) -> str:
        """Value understood by the server's ``Setup.Mode`` option."""
        if self is SetupMode.OWN_CERTIFICATE:
            return "Secured"
        return self.value


_CERTIFICATE_SETUP_MODES = frozenset({SetupMode.LETS_ENCRYPT, SetupMode.OWN_CERTIFICATE})


class ServerSettings(BaseModel):
    """Settings for a RavenDB server container."""

    model_config = ConfigDict(frozen=True)

    security_mode: SecurityMode = Field(
        default=SecurityMode.UNSECURED, description="Whether the server requires TLS"
    )
    setup_mode: SetupMode = Field(default=SetupMode.NONE, description="Server setup flow")
    domain_url: str | None = Field(
        default=None, min_length=1, description="Public URL the server is reachable at"
    )
    server_url: str | None = Field(
        default=None, min_length=1, description="URL the server binds to inside the container"
    )
    certificate_path: str | None = Field(
        default=None, min_length=1, description="Server certificate path inside the container"
    )
    certificate_password: SecretStr | None = Field(
        default=None, description="Server certificate password"
    )
    license: SecretStr | None = Field(default=None, description="RavenDB license JSON")
    environment_overrides: Mapping[str, str] = Field(
        default_factory=dict,
        validate_default=True,
        description="Extra container variables; never overwrite values already present",
    )

    @field_validator("environment_overrides", mode="after")
    @classmethod
    def freeze_environment_overrides(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("environment_overrides")
    def serialize_environment_overrides(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    @model_validator(mode="after")
    def validate_security(self) -> ServerSettings:
        for field_name in ("domain_url", "server_url"):
            value = getattr(self, field_name)
            if value is not None and not _is_http_url(value):
                raise ValueError(f"{field_name} must be an absolute http(s) URL, got {value!r}")

        if self.security_mode is SecurityMode.UNSECURED:
            if self.certificate_path is not None or self.certificate_password is not None:
                raise ValueError("Unsecured servers must not configure a certificate")
            if self.setup_mode is not SetupMode.NONE:
                raise ValueError("Unsecured servers only support setup_mode None")
            return self

        if self.setup_mode is SetupMode.NONE:
            raise ValueError("Secured servers require a setup_mode other than None")
        if self.setup_mode in _CERTIFICATE_SETUP_MODES:
            if self.certificate_path is None:
                raise ValueError(f"setup_mode {self.setup_mode.value} requires certificate_path")
            if self.domain_url is None:
                raise ValueError(f"setup_mode {self.setup_mode.value} requires domain_url")
        if self.domain_url is not None and urlsplit(self.domain_url).scheme != "https":
            raise ValueError("Secured servers require an https domain_url")
        return self

    @property
    def is_secured(self) -> bool:
        return self.security_mode is SecurityMode.SECURED

    @classmethod
    def unsecured(
        cls,
        *,
        license: str | None = None,
        environment_overrides: Mapping[str, str] | None = None,
    ) -> ServerSettings:
        """Build settings for a local server reachable over plain http."""
        return cls(
            security_mode=SecurityMode.UNSECURED,
            license=SecretStr(license) if license is not None else None,
            environment_overrides=dict(environment_overrides or {}),
        )

    @classmethod
    def secured(
        cls,
        setup_mode: SetupMode,
        *,
        domain_url: str | None = None,
        certificate_path: str | None = None,
        certificate_password: str | None = None,
        server_url: str | None = None,
        license: str | None = None,
        environment_overrides: Mapping[str, str] | None = None,
    ) -> ServerSettings:
        """Build settings for a TLS server; every path and URL comes from the caller."""
        return cls(
            security_mode=SecurityMode.SECURED,
            setup_mode=setup_mode,
            domain_url=domain_url,
            certificate_path=certificate_path,
            certificate_password=(
                SecretStr(certificate_password) if certificate_password is not None else None
            ),
            server_url=server_url,
            license=SecretStr(license) if license is not None else None,
            environment_overrides=dict(environment_overrides or {}),
        )

    def with_license(self, license: str) -> ServerSettings:
        if not license:
            raise ValueError("license must not be empty")
        return self.model_copy(update={"license": SecretStr(license)})

    def to_environment_overrides(self) -> dict[str, str] | None:
        """Return the container variables these settings imply.

        ``None`` means the settings imply nothing, which lets environment
        derivation apply the unsecured defaults.
        """
        environment: dict[str, str] = {}
        if self.is_secured:
            environment[SETUP_MODE] = self.setup_mode.server_value
            environment[UNSECURED_ACCESS_ALLOWED] = "None"
            if self.certificate_path is not None:
                environment[CERTIFICATE_PATH] = self.certificate_path
            if self.certificate_password is not None:
                environment[CERTIFICATE_PASSWORD] = self.certificate_password.get_secret_value()
            if self.server_url is not None:
                environment[SERVER_URL] = self.server_url
            if self.domain_url is not None:
                environment[PUBLIC_SERVER_URL] = self.domain_url
        elif self.license is not None:
            environment.update(UnsecuredDefaults().as_environment())

        if self.license is not None:
            environment[LICENSE] = self.license.get_secret_value()
            environment[LICENSE_EULA_ACCEPTED] = "true"

        environment.update(self.environment_overrides)
        return environment or None


StoreCustomizer = Callable[[Any], None]


class ClientSettings(BaseModel):
    """Settings for a RavenDB document store client."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    urls: tuple[str, ...] = Field(..., description="Cluster node URLs")
    database_name: str | None = Field(default=None, description="Default database")
    create_database_if_missing: bool = Field(
        default=False, description="Create the database on startup when it is missing"
    )
    certificate: Any | None = Field(
        default=None, exclude=True, description="Preloaded ClientCertificate"
    )
    certificate_path: Path | None = Field(
        default=None, description="PKCS#12 (or PEM) client certificate path"
    )
    certificate_password: SecretStr | None = Field(
        default=None, description="Client certificate password"
    )
    disable_health_checks: bool = Field(default=False, description="Skip health check wiring")
    disable_tracing: bool = Field(default=False, description="Skip tracing source wiring")
    health_check_timeout_ms: int | None = Field(
        default=None, gt=0, description="Health check timeout in milliseconds"
    )
    store_customizer: StoreCustomizer | None = Field(
        default=None, exclude=True, description="Hook applied before initialize()"
    )

    @field_validator("urls", mode="before")
    @classmethod
    def coerce_urls(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        return value

    @model_validator(mode="after")
    def validate_connection(self) -> ClientSettings:
        if not self.urls:
            raise ValueError("At least one RavenDB URL is required")
        for url in self.urls:
            if not _is_http_url(url):
                raise ValueError(f"Invalid RavenDB URL {url!r}: expected an absolute http(s) URL")
        if self.requires_certificate and not self.has_certificate_source:
            raise ValueError("https URLs require a client certificate or certificate_path")
        if self.create_database_if_missing and not (self.database_name or "").strip():
            raise ValueError("create_database_if_missing requires a database_name")
        return self

    @property
    def requires_certificate(self) -> bool:
        return any(urlsplit(url).scheme == "https" for url in self.urls)

    @property
    def has_certificate_source(self) -> bool:
        return self.certificate is not None or self.certificate_path is not None

    @property
    def health_check_timeout_seconds(self) -> float | None:
        if self.health_check_timeout_ms is None:
            return None
        return self.health_check_timeout_ms / 1000

    def get_certificate(self) -> ClientCertificate | None:
        """Return the configured certificate, loading it from disk when needed."""
        if self.certificate is not None:
            return self.certificate
        if self.certificate_path is None:
            return None

        from raven_hosting.ravendb.certificates import load_certificate

        password = (
            self.certificate_password.get_secret_value()
            if self.certificate_password is not None
            else None
        )
        return load_certificate(self.certificate_path, password)
