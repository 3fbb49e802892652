"""Runtime primitives: errors, health aggregation and connection resolution."""

from raven_hosting.runtime.errors import (
    CertificateLoadError,
    ConnectionAlreadyResolvedError,
    ConnectionResolutionError,
    ConnectionStringUnavailableError,
    DuplicateResourceError,
    MissingDependencyError,
    RavenHostingError,
    ResourceNotFoundError,
    ResourceStartupError,
    ServiceNotRegisteredError,
)
from raven_hosting.runtime.health import (
    HealthCheck,
    HealthCheckRegistration,
    HealthCheckRegistry,
    HealthReport,
    HealthStatus,
    HealthSummary,
    aggregate_health_checks,
)
from raven_hosting.runtime.resolution import (
    ConnectionStringResolver,
    ResolutionState,
    ResolvedValue,
    subscribe_connection_string,
)

__all__ = [
    "CertificateLoadError",
    "ConnectionAlreadyResolvedError",
    "ConnectionResolutionError",
    "ConnectionStringResolver",
    "ConnectionStringUnavailableError",
    "DuplicateResourceError",
    "HealthCheck",
    "HealthCheckRegistration",
    "HealthCheckRegistry",
    "HealthReport",
    "HealthStatus",
    "HealthSummary",
    "MissingDependencyError",
    "RavenHostingError",
    "ResolutionState",
    "ResolvedValue",
    "ResourceNotFoundError",
    "ResourceStartupError",
    "ServiceNotRegisteredError",
    "aggregate_health_checks",
    "subscribe_connection_string",
]
