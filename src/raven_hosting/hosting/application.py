"""Application builders: the orchestrator model and the client host."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, TypeVar

from raven_hosting.hosting.eventing import ConnectionStringAvailableEvent, EventBus
from raven_hosting.hosting.resources import ContainerResource, Resource, ResourceBuilder
from raven_hosting.hosting.services import ServiceCollection
from raven_hosting.observability.metrics import MetricsRecorder, get_metrics_recorder
from raven_hosting.runtime.errors import (
    DuplicateResourceError,
    ResourceNotFoundError,
    ResourceStartupError,
)
from raven_hosting.runtime.health import HealthCheckRegistry, HealthReport

logger = logging.getLogger(__name__)

ResourceT = TypeVar("ResourceT", bound=Resource)

_VOLUME_NAME_INVALID = re.compile(r"[^a-zA-Z0-9_.-]")


@dataclass(slots=True)
class DistributedApplicationBuilder:
    """Declarative model of resources, their events and their health checks.

    Example usage::

        builder = DistributedApplicationBuilder(app_name="shop")
        server = add_ravendb(builder, "ravenServer")
        add_database(server, "orders")

        # Once the orchestrator has bound the container port
        await builder.notify_endpoint_allocated("ravenServer", host="localhost", port=32771)

        report = await builder.health_report()
    """

    app_name: str = "app"
    eventing: EventBus = field(default_factory=EventBus)
    health_checks: HealthCheckRegistry = field(default_factory=HealthCheckRegistry)
    services: ServiceCollection = field(default_factory=ServiceCollection)
    _resources: dict[str, Resource] = field(default_factory=dict)
    _metrics: MetricsRecorder | None = None

    def add_resource(self, resource: ResourceT) -> ResourceBuilder[ResourceT]:
        """Register ``resource`` and return a fluent builder for it."""
        if resource.name in self._resources:
            raise DuplicateResourceError(resource.name)
        self._resources[resource.name] = resource
        resource.registered = True
        logger.debug("Registered resource '%s' (%s)", resource.name, type(resource).__name__)
        return ResourceBuilder(self, resource)

    def has_resource(self, name: str) -> bool:
        return name in self._resources

    def get_resource(self, name: str) -> Resource:
        if name not in self._resources:
            raise ResourceNotFoundError(f"Resource not found: {name}")
        return self._resources[name]

    def resources(self) -> Iterator[Resource]:
        return iter(list(self._resources.values()))

    def resources_of_type(self, resource_type: type[ResourceT]) -> list[ResourceT]:
        return [
            resource for resource in self._resources.values() if isinstance(resource, resource_type)
        ]

    def children_of(self, resource: Resource) -> list[Resource]:
        return [
            child
            for child in self._resources.values()
            if getattr(child, "parent", None) is resource
        ]

    def build_environment(
        self,
        name: str,
        base: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Compute the container environment for resource ``name``."""
        resource = self.get_resource(name)
        if not isinstance(resource, ContainerResource):
            raise TypeError(f"Resource '{name}' is not a container resource")
        return resource.build_environment(base)

    def volume_name(self, resource: Resource, suffix: str) -> str:
        """Return a stable volume name scoped to this application and resource."""
        parts = (self.app_name, resource.name, suffix)
        return "-".join(_VOLUME_NAME_INVALID.sub("_", part) for part in parts)

    async def notify_endpoint_allocated(
        self,
        name: str,
        *,
        host: str,
        port: int,
        endpoint_name: str | None = None,
    ) -> None:
        """Bind an endpoint of ``name`` and announce its connection string.

        Publishes :class:`ConnectionStringAvailableEvent` for the resource and
        then for each of its children.
        """
        resource = self.get_resource(name)
        if not isinstance(resource, ContainerResource):
            raise TypeError(f"Resource '{name}' has no endpoints")
        if endpoint_name is None:
            endpoint = next(resource.iter_endpoints(), None)
            if endpoint is None:
                raise ResourceNotFoundError(f"Resource '{name}' declares no endpoints")
        else:
            endpoint = resource.get_endpoint(endpoint_name)

        endpoint.allocate(host, port)
        logger.info(
            "Allocated endpoint '%s' for '%s' at %s:%s",
            endpoint.name,
            name,
            host,
            port,
        )
        await self.publish_connection_string_available(name)

    async def publish_connection_string_available(self, name: str) -> None:
        """Publish connection-string events for ``name`` and its children.

        Every target receives its event even when an earlier one fails; the
        collected failures are raised together as :class:`ResourceStartupError`.
        """
        resource = self.get_resource(name)
        started = perf_counter()
        errors: dict[str, Exception] = {}
        for target in (resource, *self.children_of(resource)):
            try:
                await self.eventing.publish(ConnectionStringAvailableEvent(target))
            except Exception as exc:
                logger.error("Resource '%s' failed to start: %s", target.name, exc)
                errors[target.name] = exc

        metrics = self._metrics_recorder()
        metrics.observe_operation(
            resource=name,
            operation="startup",
            duration_seconds=perf_counter() - started,
            success=not errors,
        )
        if errors:
            error = ResourceStartupError(errors)
            metrics.observe_error(
                resource=name,
                operation="startup",
                error_type=type(error).__name__,
            )
            raise error

    async def health_report(
        self,
        *,
        names: list[str] | None = None,
    ) -> HealthReport:
        """Aggregate every registered health check (or the selected ``names``)."""
        return await self.health_checks.report(self.services, names=names)

    async def health_payload(self, *, names: list[str] | None = None) -> dict[str, Any]:
        """Return a JSON-serializable health payload suitable for `/health` endpoints."""
        report = await self.health_report(names=names)
        return report.to_dict()

    def _metrics_recorder(self) -> MetricsRecorder:
        return get_metrics_recorder() if self._metrics is None else self._metrics


@dataclass(slots=True)
class HostApplicationBuilder:
    """Client-side host: service registry, health checks and tracing sources."""

    services: ServiceCollection = field(default_factory=ServiceCollection)
    health_checks: HealthCheckRegistry = field(default_factory=HealthCheckRegistry)
    tracing_sources: list[str] = field(default_factory=list)

    def add_tracing_source(self, source: str) -> None:
        if source not in self.tracing_sources:
            self.tracing_sources.append(source)

    async def health_report(
        self,
        *,
        names: list[str] | None = None,
    ) -> HealthReport:
        return await self.health_checks.report(self.services, names=names)
