"""Registering RavenDB document stores and sessions on a host application."""

from __future__ import annotations

import logging
import weakref
from collections.abc import Sequence
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path
from time import perf_counter
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from raven_hosting.config.errors import ConfigValidationError
from raven_hosting.observability._observable import ObservableMixin
from raven_hosting.observability.otel import start_span
from raven_hosting.ravendb import _driver
from raven_hosting.ravendb.health import RavenDBHealthCheck, RavenDBProbeTarget
from raven_hosting.ravendb.settings import ClientSettings
from raven_hosting.runtime.health import HealthCheckRegistration

if TYPE_CHECKING:
    from raven_hosting.hosting.application import HostApplicationBuilder
    from raven_hosting.ravendb.certificates import ClientCertificate

logger = logging.getLogger(__name__)

DOCUMENT_STORE_SERVICE = "ravendb.document_store"
DOCUMENT_SESSION_SERVICE = "ravendb.document_session"
TRACING_SOURCE_NAME = "RavenDB.Client.DiagnosticSources"
HEALTH_CHECK_NAME = "RavenDB.Client"


def add_ravendb_client(builder: HostApplicationBuilder, settings: ClientSettings) -> None:
    """Register a document store singleton (and a session factory) from ``settings``."""
    _add_ravendb_client(builder, settings, service_key=None)


def add_ravendb_client_from_urls(
    builder: HostApplicationBuilder,
    urls: Sequence[str],
    database_name: str | None = None,
    *,
    certificate: ClientCertificate | None = None,
) -> None:
    """Register a RavenDB client from raw node URLs."""
    settings = _settings_from_urls(urls, database_name, certificate)
    _add_ravendb_client(builder, settings, service_key=None)


def add_keyed_ravendb_client(
    builder: HostApplicationBuilder,
    service_key: object,
    settings: ClientSettings,
) -> None:
    """Same as :func:`add_ravendb_client`, registered under ``service_key``."""
    if service_key is None:
        raise ValueError("service_key must not be None")
    _add_ravendb_client(builder, settings, service_key=service_key)


def add_keyed_ravendb_client_from_urls(
    builder: HostApplicationBuilder,
    service_key: object,
    urls: Sequence[str],
    database_name: str | None = None,
    *,
    certificate: ClientCertificate | None = None,
) -> None:
    if service_key is None:
        raise ValueError("service_key must not be None")
    settings = _settings_from_urls(urls, database_name, certificate)
    _add_ravendb_client(builder, settings, service_key=service_key)


def _settings_from_urls(
    urls: Sequence[str],
    database_name: str | None,
    certificate: ClientCertificate | None,
) -> ClientSettings:
    if isinstance(urls, str):
        urls = [urls]
    try:
        return ClientSettings(
            urls=tuple(urls),
            database_name=database_name,
            certificate=certificate,
        )
    except ValidationError as exc:
        raise ConfigValidationError.from_validation_error(exc) from exc


def _add_ravendb_client(
    builder: HostApplicationBuilder,
    settings: ClientSettings,
    *,
    service_key: object | None,
) -> None:
    factory = DocumentStoreFactory(settings)
    store = factory.create()
    builder.services.add_singleton(DOCUMENT_STORE_SERVICE, store, key=service_key)

    database = getattr(store, "database", None) or settings.database_name
    if database and database.strip():
        builder.services.add_transient(
            DOCUMENT_SESSION_SERVICE,
            lambda _services: factory.open_session(store),
            key=service_key,
        )

    if not settings.disable_tracing:
        builder.add_tracing_source(TRACING_SOURCE_NAME)

    if not settings.disable_health_checks:
        name = HEALTH_CHECK_NAME if service_key is None else f"{HEALTH_CHECK_NAME}_{service_key}"
        target = RavenDBProbeTarget(
            urls=settings.urls,
            database=database or None,
            certificate=factory.certificate,
        )
        added = builder.health_checks.try_add(
            HealthCheckRegistration(
                name=name,
                factory=lambda _services: RavenDBHealthCheck(lambda: target),
                timeout_seconds=settings.health_check_timeout_seconds,
                tags=frozenset({"ravendb", "client"}),
            )
        )
        if not added:
            logger.debug("Health check '%s' already registered", name)


class DocumentStoreFactory(ObservableMixin):
    """Builds and initializes a document store for one set of client settings."""

    def __init__(self, settings: ClientSettings) -> None:
        self._settings = settings
        self._resource_name = "ravendb_client"
        self.certificate = settings.get_certificate()
        self.certificate_file: str | None = None
        self._certificate_cleanup: weakref.finalize | None = None

    def _span(self, name: str, **attributes: Any) -> AbstractContextManager[Any]:
        if self._settings.disable_tracing:
            return nullcontext()
        return start_span(name, tracer_name=TRACING_SOURCE_NAME, attributes=attributes)

    def create(self) -> Any:
        """Create, customize and initialize the store; create the database if asked.

        The client certificate is handed to the driver as a private PEM file.
        It is removed when creation fails, when the store is garbage collected,
        or on :meth:`close`.
        """
        settings = self._settings
        driver = _driver.load_driver()
        started = perf_counter()
        certificate_path: Path | None = None
        try:
            with self._span(
                "ravendb.document_store.initialize",
                **{
                    "db.system": "ravendb",
                    "db.name": settings.database_name,
                    "server.address": ",".join(settings.urls),
                },
            ):
                store = driver.document_store(
                    urls=list(settings.urls),
                    database=settings.database_name,
                )
                if self.certificate is not None:
                    certificate_path = self.certificate.write_pem()
                    self.certificate_file = str(certificate_path)
                    store.certificate_pem_path = self.certificate_file
                if settings.store_customizer is not None:
                    settings.store_customizer(store)
                store.initialize()

                if settings.create_database_if_missing:
                    assert settings.database_name is not None
                    self._ensure_database(store, driver, settings.database_name)
        except Exception as exc:
            if certificate_path is not None:
                certificate_path.unlink(missing_ok=True)
                self.certificate_file = None
            self._observe_error("initialize", started, exc)
            raise

        if certificate_path is not None:
            self._certificate_cleanup = weakref.finalize(
                store, certificate_path.unlink, missing_ok=True
            )
        self._observe_operation("initialize", started, success=True)
        logger.info(
            "Initialized RavenDB document store for %s (database=%s)",
            ",".join(settings.urls),
            settings.database_name,
        )
        return store

    def close(self) -> None:
        """Remove the certificate PEM file written for the store, if any."""
        if self._certificate_cleanup is not None:
            self._certificate_cleanup()
            self._certificate_cleanup = None
        self.certificate_file = None

    def open_session(self, store: Any) -> Any:
        with self._span("ravendb.document_session.open", **{"db.system": "ravendb"}):
            return store.open_session()

    def _ensure_database(self, store: Any, driver: _driver.RavenDriver, database_name: str) -> None:
        server = store.maintenance.server
        record = server.send(driver.get_database_record_operation(database_name))
        if record is not None:
            return
        server.send(driver.create_database_operation(driver.database_record(database_name)))
        logger.info("Created RavenDB database '%s'", database_name)
