"""Resource-scoped event bus used by the application model."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from raven_hosting.hosting.resources import Resource

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound="ResourceEvent")


@dataclass(slots=True, frozen=True)
class ResourceEvent:
    """Base class for events published for a single resource."""

    resource: Resource


@dataclass(slots=True, frozen=True)
class ConnectionStringAvailableEvent(ResourceEvent):
    """Published once the endpoints behind a resource's connection string are bound."""


EventCallback = Callable[[EventT], Awaitable[None]]


@dataclass(slots=True, eq=False)
class Subscription(Generic[EventT]):
    """Handle returned by :meth:`EventBus.subscribe`."""

    event_type: type[EventT]
    resource_name: str
    callback: EventCallback[EventT]
    once: bool = False
    fired: int = 0


class EventBus:
    """Delivers resource events to subscribers keyed by event type and resource name.

    Subscribers run sequentially on the publisher's event loop. A subscriber
    registered with ``once=True`` is removed before its callback is awaited, so
    it can never observe the same resource event twice.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[tuple[type[Any], str], list[Subscription[Any]]] = {}

    def subscribe(
        self,
        event_type: type[EventT],
        resource: Resource,
        callback: EventCallback[EventT],
        *,
        once: bool = False,
    ) -> Subscription[EventT]:
        subscription = Subscription(
            event_type=event_type,
            resource_name=resource.name,
            callback=callback,
            once=once,
        )
        self._subscriptions.setdefault((event_type, resource.name), []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription[Any]) -> None:
        key = (subscription.event_type, subscription.resource_name)
        subscribers = self._subscriptions.get(key, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._subscriptions.pop(key, None)

    def subscribers(self, event_type: type[Any], resource_name: str) -> list[Subscription[Any]]:
        return list(self._subscriptions.get((event_type, resource_name), []))

    async def publish(self, event: ResourceEvent) -> None:
        """Await every subscriber for ``event`` in registration order.

        The first subscriber error stops delivery and propagates to the publisher.
        """
        subscribers = self.subscribers(type(event), event.resource.name)
        if not subscribers:
            logger.debug(
                "No subscribers for %s on '%s'",
                type(event).__name__,
                event.resource.name,
            )
            return

        for subscription in subscribers:
            if subscription.once:
                self.unsubscribe(subscription)
            subscription.fired += 1
            await subscription.callback(event)
