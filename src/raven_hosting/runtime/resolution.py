"""Set-once connection string values and the resolver that fills them."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from time import perf_counter
from typing import TYPE_CHECKING

from raven_hosting.hosting.eventing import ConnectionStringAvailableEvent, EventBus, Subscription
from raven_hosting.observability._observable import ObservableMixin
from raven_hosting.observability.logging import resource_scope
from raven_hosting.runtime.errors import (
    ConnectionAlreadyResolvedError,
    ConnectionResolutionError,
    ConnectionStringUnavailableError,
)

if TYPE_CHECKING:
    from raven_hosting.hosting.resources import ResourceWithConnectionString
    from raven_hosting.observability.metrics import MetricsRecorder

logger = logging.getLogger(__name__)


class ResolutionState(StrEnum):
    PENDING = "pending"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


_TERMINAL_STATES = frozenset({ResolutionState.RESOLVED, ResolutionState.FAILED})


class ResolvedValue:
    """Connection string written exactly once and readable by many.

    Reading :attr:`value` before resolution raises
    :class:`ConnectionStringUnavailableError`; after a failed resolution it
    re-raises the stored :class:`ConnectionResolutionError`. :meth:`get_value`
    waits for a terminal state instead, which lets other expressions depend on
    this value.
    """

    def __init__(self, owner: str) -> None:
        self.owner = owner
        self._state = ResolutionState.PENDING
        self._value: str | None = None
        self._error: ConnectionResolutionError | None = None
        self._done = asyncio.Event()

    def __repr__(self) -> str:
        return f"ResolvedValue(owner={self.owner!r}, state={self._state.value!r})"

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def is_resolved(self) -> bool:
        return self._state is ResolutionState.RESOLVED

    @property
    def error(self) -> ConnectionResolutionError | None:
        return self._error

    @property
    def value(self) -> str:
        if self._state is ResolutionState.RESOLVED:
            assert self._value is not None
            return self._value
        if self._state is ResolutionState.FAILED:
            assert self._error is not None
            raise self._error
        raise ConnectionStringUnavailableError(self.owner)

    def peek(self) -> str | None:
        """Return the value if resolved, otherwise ``None``."""
        return self._value

    def mark_resolving(self) -> None:
        self._ensure_writable()
        self._state = ResolutionState.RESOLVING

    def reset_pending(self) -> None:
        """Return an interrupted resolution to pending so it can be retried."""
        if self._state is ResolutionState.RESOLVING:
            self._state = ResolutionState.PENDING

    def set_result(self, value: str) -> None:
        self._ensure_writable()
        if not value:
            raise ValueError("resolved connection string must not be empty")
        self._value = value
        self._state = ResolutionState.RESOLVED
        self._done.set()

    def set_failed(self, error: ConnectionResolutionError) -> None:
        self._ensure_writable()
        self._error = error
        self._state = ResolutionState.FAILED
        self._done.set()

    async def wait(self, *, timeout: float | None = None) -> str:
        """Wait for a terminal state and return the value (or raise the failure)."""
        if not self._done.is_set():
            if timeout is None:
                await self._done.wait()
            else:
                await asyncio.wait_for(self._done.wait(), timeout=timeout)
        return self.value

    async def get_value(self, *, timeout: float | None = None) -> str:
        return await self.wait(timeout=timeout)

    def _ensure_writable(self) -> None:
        if self._state in _TERMINAL_STATES:
            raise ConnectionAlreadyResolvedError(self.owner)


class ConnectionStringResolver(ObservableMixin):
    """Evaluates a resource's connection string expression into its resolved value."""

    def __init__(
        self,
        resource: ResourceWithConnectionString,
        *,
        timeout: float | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")
        self._resource = resource
        self._timeout = timeout
        self._resource_name = resource.name
        self._metrics = metrics

    async def resolve(self) -> str:
        """Resolve once, storing either the value or a named failure.

        Cancellation and timeouts propagate and leave the value pending.
        """
        handle = self._resource.connection_string
        name = self._resource_name
        started = perf_counter()
        handle.mark_resolving()

        with resource_scope(name):
            try:
                value = await self._resource.connection_string_expression.get_value(
                    timeout=self._timeout
                )
            except (asyncio.CancelledError, TimeoutError) as exc:
                handle.reset_pending()
                self._observe_error("resolve_connection_string", started, exc)
                logger.warning("Connection string resolution for '%s' interrupted", name)
                raise
            except Exception as exc:
                error = ConnectionResolutionError(name, f"{type(exc).__name__}: {exc}")
                error.__cause__ = exc
                self._fail(handle, error, started)
                raise error

            if not value:
                error = ConnectionResolutionError(
                    name,
                    f"{ConnectionStringAvailableEvent.__name__} was published but the "
                    "connection string expression evaluated to an empty value",
                )
                self._fail(handle, error, started)
                raise error

            handle.set_result(value)
            self._observe_operation("resolve_connection_string", started, success=True)
            logger.info("Resolved connection string for '%s'", name)
            return value

    def _fail(self, handle: ResolvedValue, error: ConnectionResolutionError, started: float) -> None:
        handle.set_failed(error)
        self._observe_error("resolve_connection_string", started, error)
        logger.error("%s", error)


def subscribe_connection_string(
    eventing: EventBus,
    resource: ResourceWithConnectionString,
    *,
    timeout: float | None = None,
    metrics: MetricsRecorder | None = None,
) -> Subscription[ConnectionStringAvailableEvent]:
    """Resolve ``resource``'s connection string the first time its endpoints come up.

    The subscription fires once. When resolution is interrupted by cancellation
    or timeout, the value stays pending and the subscription is re-armed so a
    later event can complete it.
    """
    resolver = ConnectionStringResolver(resource, timeout=timeout, metrics=metrics)

    async def _on_connection_string_available(event: ConnectionStringAvailableEvent) -> None:
        del event
        try:
            await resolver.resolve()
        except (asyncio.CancelledError, TimeoutError):
            _subscribe()
            raise

    def _subscribe() -> Subscription[ConnectionStringAvailableEvent]:
        return eventing.subscribe(
            ConnectionStringAvailableEvent,
            resource,  # type: ignore[arg-type]
            _on_connection_string_available,
            once=True,
        )

    return _subscribe()
