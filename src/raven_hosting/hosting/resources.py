"""Base resource types and the fluent resource builder."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, Literal, Protocol, TypeVar, runtime_checkable

from raven_hosting.hosting.endpoints import EndpointReference, ReferenceExpression
from raven_hosting.runtime.errors import ResourceNotFoundError

if TYPE_CHECKING:
    from raven_hosting.hosting.application import DistributedApplicationBuilder
    from raven_hosting.runtime.resolution import ResolvedValue

ResourceT = TypeVar("ResourceT", bound="Resource")


class ResourceState(StrEnum):
    """Lifecycle of a declared resource."""

    DECLARED = "declared"
    REGISTERED = "registered"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    RESOLUTION_FAILED = "resolution_failed"


@dataclass(slots=True, frozen=True)
class ContainerMount:
    """Bind mount or named volume attached to a container resource."""

    type: Literal["bind", "volume"]
    source: str
    target: str
    read_only: bool = False


@dataclass(slots=True)
class EnvironmentCallbackContext:
    """Mutable environment handed to environment callbacks when a container starts."""

    resource: Resource
    environment_variables: dict[str, str] = field(default_factory=dict)


EnvironmentCallback = Callable[[EnvironmentCallbackContext], None]


class Resource:
    """Named node of the application model."""

    def __init__(self, name: str) -> None:
        if not name or not name.strip():
            raise ValueError("resource name must not be empty")
        self.name = name
        self.registered = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


@runtime_checkable
class ResourceWithConnectionString(Protocol):
    """Resource exposing a deferred connection string and its resolved value."""

    name: str

    @property
    def connection_string_expression(self) -> ReferenceExpression: ...

    @property
    def connection_string(self) -> ResolvedValue: ...


def connection_state(resource: Resource, handle: ResolvedValue) -> ResourceState:
    """Map a resolved-value state onto the resource lifecycle."""
    from raven_hosting.runtime.resolution import ResolutionState

    if not resource.registered:
        return ResourceState.DECLARED
    return {
        ResolutionState.PENDING: ResourceState.REGISTERED,
        ResolutionState.RESOLVING: ResourceState.RESOLVING,
        ResolutionState.RESOLVED: ResourceState.RESOLVED,
        ResolutionState.FAILED: ResourceState.RESOLUTION_FAILED,
    }[handle.state]


class ContainerResource(Resource):
    """Resource backed by a container image with endpoints, mounts and environment."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.image: str | None = None
        self.image_tag: str | None = None
        self.image_registry: str | None = None
        self.endpoints: dict[str, EndpointReference] = {}
        self.environment_callbacks: list[EnvironmentCallback] = []
        self.mounts: list[ContainerMount] = []
        self.health_check_keys: list[str] = []

    @property
    def image_reference(self) -> str | None:
        if self.image is None:
            return None
        reference = self.image
        if self.image_registry:
            reference = f"{self.image_registry}/{reference}"
        if self.image_tag:
            reference = f"{reference}:{self.image_tag}"
        return reference

    def get_endpoint(self, name: str) -> EndpointReference:
        try:
            return self.endpoints[name]
        except KeyError as exc:
            raise ResourceNotFoundError(
                f"Endpoint '{name}' is not declared on resource '{self.name}'"
            ) from exc

    def iter_endpoints(self) -> Iterator[EndpointReference]:
        return iter(list(self.endpoints.values()))

    def build_environment(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Run environment callbacks in registration order against ``base``."""
        context = EnvironmentCallbackContext(
            resource=self,
            environment_variables=dict(base or {}),
        )
        for callback in self.environment_callbacks:
            callback(context)
        return context.environment_variables


class ResourceBuilder(Generic[ResourceT]):
    """Fluent handle over a registered resource."""

    def __init__(self, application_builder: DistributedApplicationBuilder, resource: ResourceT):
        self._application_builder = application_builder
        self._resource = resource

    @property
    def resource(self) -> ResourceT:
        return self._resource

    @property
    def application_builder(self) -> DistributedApplicationBuilder:
        return self._application_builder

    def _container(self) -> ContainerResource:
        if not isinstance(self._resource, ContainerResource):
            raise TypeError(f"Resource '{self._resource.name}' is not a container resource")
        return self._resource

    def with_endpoint(
        self,
        *,
        name: str,
        scheme: str,
        target_port: int,
        port: int | None = None,
    ) -> ResourceBuilder[ResourceT]:
        container = self._container()
        if name in container.endpoints:
            raise ValueError(f"Endpoint '{name}' already declared on '{container.name}'")
        container.endpoints[name] = EndpointReference(
            container.name,
            name=name,
            scheme=scheme,
            target_port=target_port,
            port=port,
        )
        return self

    def with_image(self, image: str, *, tag: str | None = None) -> ResourceBuilder[ResourceT]:
        container = self._container()
        container.image = image
        if tag is not None:
            container.image_tag = tag
        return self

    def with_image_tag(self, tag: str) -> ResourceBuilder[ResourceT]:
        self._container().image_tag = tag
        return self

    def with_image_registry(self, registry: str) -> ResourceBuilder[ResourceT]:
        self._container().image_registry = registry
        return self

    def with_environment(
        self,
        callback_or_name: EnvironmentCallback | str,
        value: Any = None,
    ) -> ResourceBuilder[ResourceT]:
        container = self._container()
        if isinstance(callback_or_name, str):
            name = callback_or_name
            rendered = "" if value is None else str(value)

            def _set_variable(context: EnvironmentCallbackContext) -> None:
                context.environment_variables[name] = rendered

            container.environment_callbacks.append(_set_variable)
        else:
            container.environment_callbacks.append(callback_or_name)
        return self

    def with_health_check(self, key: str) -> ResourceBuilder[ResourceT]:
        if key not in self._application_builder.health_checks:
            raise ValueError(f"Health check '{key}' is not registered")
        container = self._container()
        if key not in container.health_check_keys:
            container.health_check_keys.append(key)
        return self

    def with_bind_mount(
        self,
        source: str,
        target: str,
        *,
        is_read_only: bool = False,
    ) -> ResourceBuilder[ResourceT]:
        if not source:
            raise ValueError("bind mount source must not be empty")
        self._container().mounts.append(
            ContainerMount(type="bind", source=source, target=target, read_only=is_read_only)
        )
        return self

    def with_volume(
        self,
        name: str,
        target: str,
        *,
        is_read_only: bool = False,
    ) -> ResourceBuilder[ResourceT]:
        if not name:
            raise ValueError("volume name must not be empty")
        self._container().mounts.append(
            ContainerMount(type="volume", source=name, target=target, read_only=is_read_only)
        )
        return self
