"""RavenDB server and database resources for distributed applications."""

from raven_hosting.bootstrap import (
    add_configured_ravendb,
    add_configured_ravendb_client,
    bootstrap_observability,
    create_application_builder,
)
from raven_hosting.config import AppSettings, ConfigValidationError, load_config
from raven_hosting.hosting import (
    ConnectionStringAvailableEvent,
    DistributedApplicationBuilder,
    HostApplicationBuilder,
    ResourceBuilder,
)
from raven_hosting.ravendb import (
    ClientSettings,
    RavenDBDatabaseResource,
    RavenDBServerResource,
    ServerSettings,
    SetupMode,
    add_database,
    add_keyed_ravendb_client,
    add_keyed_ravendb_client_from_urls,
    add_ravendb,
    add_ravendb_client,
    add_ravendb_client_from_urls,
    derive_environment,
    with_data_bind_mount,
    with_data_volume,
)
from raven_hosting.runtime import (
    ConnectionResolutionError,
    ConnectionStringUnavailableError,
    HealthReport,
    HealthStatus,
    ResolvedValue,
    ResourceStartupError,
    subscribe_connection_string,
)

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "ClientSettings",
    "ConfigValidationError",
    "ConnectionResolutionError",
    "ConnectionStringAvailableEvent",
    "ConnectionStringUnavailableError",
    "DistributedApplicationBuilder",
    "HealthReport",
    "HealthStatus",
    "HostApplicationBuilder",
    "RavenDBDatabaseResource",
    "RavenDBServerResource",
    "ResolvedValue",
    "ResourceBuilder",
    "ResourceStartupError",
    "ServerSettings",
    "SetupMode",
    "__version__",
    "add_configured_ravendb",
    "add_configured_ravendb_client",
    "add_database",
    "add_keyed_ravendb_client",
    "add_keyed_ravendb_client_from_urls",
    "add_ravendb",
    "add_ravendb_client",
    "add_ravendb_client_from_urls",
    "bootstrap_observability",
    "create_application_builder",
    "derive_environment",
    "load_config",
    "subscribe_connection_string",
    "with_data_bind_mount",
    "with_data_volume",
]
