"""RavenDB server/database resources and client wiring."""

from raven_hosting.ravendb.environment import (
    SETUP_MODE,
    UNSECURED_ACCESS_ALLOWED,
    UnsecuredDefaults,
    configure_environment,
    derive_environment,
)
from raven_hosting.ravendb.settings import (
    ClientSettings,
    SecurityMode,
    ServerSettings,
    SetupMode,
)
from raven_hosting.ravendb.resources import (
    RAVENDB_DATA_PATH,
    RAVENDB_IMAGE,
    RAVENDB_IMAGE_REGISTRY,
    RAVENDB_IMAGE_TAG,
    RAVENDB_TARGET_PORT,
    RavenDBDatabaseResource,
    RavenDBServerResource,
)
from raven_hosting.ravendb.certificates import ClientCertificate, load_certificate
from raven_hosting.ravendb.health import (
    RavenDBHealthCheck,
    RavenDBProbeTarget,
    database_health_check,
    server_health_check,
)
from raven_hosting.ravendb.builder import (
    add_database,
    add_ravendb,
    with_data_bind_mount,
    with_data_volume,
)
from raven_hosting.ravendb.client import (
    DOCUMENT_SESSION_SERVICE,
    DOCUMENT_STORE_SERVICE,
    HEALTH_CHECK_NAME,
    TRACING_SOURCE_NAME,
    DocumentStoreFactory,
    add_keyed_ravendb_client,
    add_keyed_ravendb_client_from_urls,
    add_ravendb_client,
    add_ravendb_client_from_urls,
)

__all__ = [
    "DOCUMENT_SESSION_SERVICE",
    "DOCUMENT_STORE_SERVICE",
    "HEALTH_CHECK_NAME",
    "RAVENDB_DATA_PATH",
    "RAVENDB_IMAGE",
    "RAVENDB_IMAGE_REGISTRY",
    "RAVENDB_IMAGE_TAG",
    "RAVENDB_TARGET_PORT",
    "SETUP_MODE",
    "TRACING_SOURCE_NAME",
    "UNSECURED_ACCESS_ALLOWED",
    "ClientCertificate",
    "ClientSettings",
    "DocumentStoreFactory",
    "RavenDBDatabaseResource",
    "RavenDBHealthCheck",
    "RavenDBProbeTarget",
    "RavenDBServerResource",
    "SecurityMode",
    "ServerSettings",
    "SetupMode",
    "UnsecuredDefaults",
    "add_database",
    "add_keyed_ravendb_client",
    "add_keyed_ravendb_client_from_urls",
    "add_ravendb",
    "add_ravendb_client",
    "add_ravendb_client_from_urls",
    "configure_environment",
    "database_health_check",
    "derive_environment",
    "load_certificate",
    "server_health_check",
    "with_data_bind_mount",
    "with_data_volume",
]
