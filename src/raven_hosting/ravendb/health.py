"""Health probes for RavenDB servers, databases and client stores."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass
from time import perf_counter
from typing import TYPE_CHECKING, Any

from raven_hosting.ravendb import _driver
from raven_hosting.runtime.errors import (
    ConnectionResolutionError,
    ConnectionStringUnavailableError,
)
from raven_hosting.runtime.health import HealthCheckRegistration, HealthStatus

if TYPE_CHECKING:
    from raven_hosting.ravendb.certificates import ClientCertificate
    from raven_hosting.ravendb.resources import RavenDBDatabaseResource, RavenDBServerResource


@dataclass(slots=True, frozen=True)
class RavenDBProbeTarget:
    """What a single probe run talks to."""

    urls: tuple[str, ...]
    database: str | None = None
    certificate: ClientCertificate | None = None


ProbeTargetProvider = Callable[[], RavenDBProbeTarget]


class RavenDBHealthCheck:
    """Probe whose target is computed each time it runs.

    Targets backed by a connection string that has not resolved yet (or failed
    to resolve) are reported unhealthy without touching the network.
    """

    def __init__(self, target_provider: ProbeTargetProvider, *, resource_name: str | None = None):
        self._target_provider = target_provider
        self._resource_name = resource_name

    async def __call__(self) -> HealthStatus:
        started = perf_counter()
        try:
            target = self._target_provider()
        except ConnectionStringUnavailableError as exc:
            return self._unhealthy(started, "Connection string is unavailable", "pending", exc)
        except ConnectionResolutionError as exc:
            return self._unhealthy(started, str(exc), "failed", exc)

        details = {"urls": ",".join(target.urls)}
        if target.database is not None:
            details["database"] = target.database
        try:
            await asyncio.to_thread(_probe, target)
        except Exception as exc:
            return HealthStatus(
                healthy=False,
                latency_ms=(perf_counter() - started) * 1000,
                message=str(exc) or type(exc).__name__,
                details={"error_type": exc.__class__.__name__, **details},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(perf_counter() - started) * 1000,
            message="ok",
            details=details,
        )

    def _unhealthy(
        self,
        started: float,
        message: str,
        state: str,
        exc: Exception,
    ) -> HealthStatus:
        details = {"state": state, "error_type": exc.__class__.__name__}
        resource_name = self._resource_name or getattr(exc, "resource_name", None)
        if resource_name:
            details["resource"] = resource_name
        return HealthStatus(
            healthy=False,
            latency_ms=(perf_counter() - started) * 1000,
            message=message,
            details=details,
        )


def _probe(target: RavenDBProbeTarget) -> None:
    driver = _driver.load_driver()
    certificate_file: Any = (
        target.certificate.pem_file() if target.certificate is not None else nullcontext()
    )
    with certificate_file as pem_path:
        store = driver.document_store(urls=list(target.urls), database=target.database)
        if pem_path is not None:
            store.certificate_pem_path = str(pem_path)
        try:
            store.initialize()
            if target.database:
                store.maintenance.send(driver.get_statistics_operation())
            else:
                store.maintenance.server.send(driver.get_build_number_operation())
        finally:
            store.close()


def server_health_check(
    resource: RavenDBServerResource,
    *,
    timeout_seconds: float | None = None,
) -> HealthCheckRegistration:
    """Registration named ``{name}_check`` probing the server's resolved URL.

    ``resource.health_check_certificate`` is read on every run.
    """

    def _target() -> RavenDBProbeTarget:
        return RavenDBProbeTarget(
            urls=(resource.connection_string.value,),
            certificate=resource.health_check_certificate,
        )

    return HealthCheckRegistration(
        name=f"{resource.name}_check",
        factory=lambda _services: RavenDBHealthCheck(_target, resource_name=resource.name),
        timeout_seconds=timeout_seconds,
        tags=frozenset({"ravendb", "server"}),
    )


def database_health_check(
    resource: RavenDBDatabaseResource,
    *,
    timeout_seconds: float | None = None,
) -> HealthCheckRegistration:
    """Registration named ``{name}_check`` probing the database on its server."""

    def _target() -> RavenDBProbeTarget:
        server_url, _, _ = resource.connection_string.value.partition(";Database=")
        return RavenDBProbeTarget(
            urls=(server_url,),
            database=resource.database_name,
            certificate=resource.parent.health_check_certificate,
        )

    return HealthCheckRegistration(
        name=f"{resource.name}_check",
        factory=lambda _services: RavenDBHealthCheck(_target, resource_name=resource.name),
        timeout_seconds=timeout_seconds,
        tags=frozenset({"ravendb", "database"}),
    )
