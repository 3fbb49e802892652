"""Application model: resources, endpoints, events, services and builders."""

from raven_hosting.hosting.application import (
    DistributedApplicationBuilder,
    HostApplicationBuilder,
)
from raven_hosting.hosting.endpoints import (
    EndpointNotAllocatedError,
    EndpointReference,
    ReferenceExpression,
    ValueProvider,
)
from raven_hosting.hosting.eventing import (
    ConnectionStringAvailableEvent,
    EventBus,
    ResourceEvent,
    Subscription,
)
from raven_hosting.hosting.resources import (
    ContainerMount,
    ContainerResource,
    EnvironmentCallbackContext,
    Resource,
    ResourceBuilder,
    ResourceState,
    ResourceWithConnectionString,
)
from raven_hosting.hosting.services import (
    ServiceCollection,
    ServiceDescriptor,
    ServiceLifetime,
)

__all__ = [
    "ConnectionStringAvailableEvent",
    "ContainerMount",
    "ContainerResource",
    "DistributedApplicationBuilder",
    "EndpointNotAllocatedError",
    "EndpointReference",
    "EnvironmentCallbackContext",
    "EventBus",
    "HostApplicationBuilder",
    "ReferenceExpression",
    "Resource",
    "ResourceBuilder",
    "ResourceEvent",
    "ResourceState",
    "ResourceWithConnectionString",
    "ServiceCollection",
    "ServiceDescriptor",
    "ServiceLifetime",
    "Subscription",
    "ValueProvider",
]
