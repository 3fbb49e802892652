"""Minimal service registry for host applications."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from raven_hosting.runtime.errors import ServiceNotRegisteredError


class ServiceLifetime(StrEnum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


ServiceFactory = Callable[["ServiceCollection"], Any]


@dataclass(slots=True, frozen=True)
class ServiceDescriptor:
    """Describes how a named (and optionally keyed) service is produced."""

    service: str
    lifetime: ServiceLifetime
    key: object | None = None
    instance: Any = None
    factory: ServiceFactory | None = None


class ServiceCollection:
    """Named services with singleton or transient lifetimes.

    Registering the same service and key twice replaces the earlier registration.
    """

    def __init__(self) -> None:
        self._descriptors: dict[tuple[str, object | None], ServiceDescriptor] = {}

    def add_singleton(self, service: str, instance: Any, *, key: object | None = None) -> None:
        self._descriptors[(service, key)] = ServiceDescriptor(
            service=service,
            lifetime=ServiceLifetime.SINGLETON,
            key=key,
            instance=instance,
        )

    def add_transient(
        self,
        service: str,
        factory: ServiceFactory,
        *,
        key: object | None = None,
    ) -> None:
        self._descriptors[(service, key)] = ServiceDescriptor(
            service=service,
            lifetime=ServiceLifetime.TRANSIENT,
            key=key,
            factory=factory,
        )

    def has(self, service: str, *, key: object | None = None) -> bool:
        return (service, key) in self._descriptors

    def descriptor(self, service: str, *, key: object | None = None) -> ServiceDescriptor:
        try:
            return self._descriptors[(service, key)]
        except KeyError as exc:
            raise ServiceNotRegisteredError(service, key) from exc

    def get(self, service: str, *, key: object | None = None) -> Any:
        """Resolve a service; transient services are built on every call."""
        descriptor = self.descriptor(service, key=key)
        if descriptor.lifetime is ServiceLifetime.SINGLETON:
            return descriptor.instance
        assert descriptor.factory is not None
        return descriptor.factory(self)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(list(self._descriptors.values()))

    def __len__(self) -> int:
        return len(self._descriptors)
