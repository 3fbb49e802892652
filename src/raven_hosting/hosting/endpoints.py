"""Endpoint references and deferred string expressions."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from raven_hosting.runtime.errors import RavenHostingError


class EndpointNotAllocatedError(RavenHostingError):
    """Raised when reading host or port of an endpoint that is not bound yet."""

    def __init__(self, resource_name: str, endpoint_name: str) -> None:
        self.resource_name = resource_name
        self.endpoint_name = endpoint_name
        super().__init__(f"Endpoint '{endpoint_name}' on '{resource_name}' is not allocated yet")


@runtime_checkable
class ValueProvider(Protocol):
    """Anything that can asynchronously produce a string value."""

    async def get_value(self, *, timeout: float | None = None) -> str | None: ...


class EndpointReference:
    """Named endpoint of a resource whose host and port are bound at runtime."""

    def __init__(
        self,
        resource_name: str,
        *,
        name: str,
        scheme: str,
        target_port: int,
        port: int | None = None,
    ) -> None:
        if not name:
            raise ValueError("endpoint name must not be empty")
        if target_port <= 0:
            raise ValueError("target_port must be > 0")
        self.resource_name = resource_name
        self.name = name
        self.scheme = scheme
        self.target_port = target_port
        self.port = port
        self._host: str | None = None
        self._allocated_port: int | None = None
        self._allocated = asyncio.Event()

    def __repr__(self) -> str:
        return (
            f"EndpointReference(resource={self.resource_name!r}, name={self.name!r}, "
            f"scheme={self.scheme!r}, allocated={self.is_allocated})"
        )

    @property
    def is_allocated(self) -> bool:
        return self._allocated.is_set()

    @property
    def host(self) -> str:
        if self._host is None:
            raise EndpointNotAllocatedError(self.resource_name, self.name)
        return self._host

    @property
    def allocated_port(self) -> int:
        if self._allocated_port is None:
            raise EndpointNotAllocatedError(self.resource_name, self.name)
        return self._allocated_port

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.allocated_port}"

    def allocate(self, host: str, port: int) -> None:
        """Bind the endpoint to a concrete host and port."""
        if not host:
            raise ValueError("host must not be empty")
        if port <= 0:
            raise ValueError("port must be > 0")
        if self.is_allocated:
            raise RavenHostingError(
                f"Endpoint '{self.name}' on '{self.resource_name}' is already allocated"
            )
        self._host = host
        self._allocated_port = port
        self._allocated.set()

    async def get_value(self, *, timeout: float | None = None) -> str:
        """Wait until the endpoint is allocated and return its URL."""
        if not self.is_allocated:
            if timeout is None:
                await self._allocated.wait()
            else:
                await asyncio.wait_for(self._allocated.wait(), timeout=timeout)
        return self.url


ExpressionPart = str | ValueProvider


@dataclass(slots=True, frozen=True)
class ReferenceExpression:
    """Ordered sequence of literals and value providers evaluated on demand.

    Evaluation awaits each provider in order. A provider yielding ``None``
    makes the whole expression ``None``.
    """

    parts: tuple[ExpressionPart, ...]

    @classmethod
    def create(cls, *parts: ExpressionPart) -> ReferenceExpression:
        for part in parts:
            if not isinstance(part, str) and not isinstance(part, ValueProvider):
                raise TypeError(
                    f"expression parts must be str or value providers, got {type(part).__name__}"
                )
        return cls(parts=tuple(parts))

    @property
    def providers(self) -> Sequence[ValueProvider]:
        return [part for part in self.parts if not isinstance(part, str)]

    async def get_value(self, *, timeout: float | None = None) -> str | None:
        if timeout is None:
            return await self._evaluate()
        return await asyncio.wait_for(self._evaluate(), timeout=timeout)

    async def _evaluate(self) -> str | None:
        pieces: list[str] = []
        for part in self.parts:
            if isinstance(part, str):
                pieces.append(part)
                continue
            value = await part.get_value()
            if value is None:
                return None
            pieces.append(value)
        return "".join(pieces)
