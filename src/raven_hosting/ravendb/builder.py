"""Declaring RavenDB servers and databases on a distributed application."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from raven_hosting.hosting.application import DistributedApplicationBuilder
from raven_hosting.hosting.resources import EnvironmentCallbackContext, ResourceBuilder
from raven_hosting.ravendb.environment import configure_environment
from raven_hosting.ravendb.health import database_health_check, server_health_check
from raven_hosting.ravendb.resources import (
    RAVENDB_DATA_PATH,
    RAVENDB_IMAGE,
    RAVENDB_IMAGE_REGISTRY,
    RAVENDB_IMAGE_TAG,
    RAVENDB_TARGET_PORT,
    RavenDBDatabaseResource,
    RavenDBServerResource,
)
from raven_hosting.ravendb.settings import ServerSettings
from raven_hosting.runtime.errors import ResourceNotFoundError
from raven_hosting.runtime.resolution import subscribe_connection_string

if TYPE_CHECKING:
    from raven_hosting.ravendb.certificates import ClientCertificate

logger = logging.getLogger(__name__)


def add_ravendb(
    builder: DistributedApplicationBuilder,
    name: str,
    settings: ServerSettings | None = None,
    *,
    secured: bool = False,
    environment_variables: Mapping[str, object] | None = None,
    port: int | None = None,
    resolution_timeout: float | None = None,
    health_check_timeout: float | None = None,
    health_check_certificate: ClientCertificate | None = None,
) -> ResourceBuilder[RavenDBServerResource]:
    """Declare a RavenDB server container.

    Args:
        builder: Application the server is added to.
        name: Unique resource name.
        settings: Typed server settings. Mutually exclusive with
            ``environment_variables``.
        secured: Expose an https endpoint when ``settings`` is not given.
        environment_variables: Raw container variables. When given, the
            unsecured defaults are not applied.
        port: Host port to publish the container port on.
        resolution_timeout: Upper bound in seconds for resolving the
            connection string once the endpoint is allocated.
        health_check_timeout: Upper bound in seconds for one server health
            check run.
        health_check_certificate: Client certificate presented by the server
            and database health checks. Needed when the server is secured.
    """
    if settings is not None and environment_variables is not None:
        raise ValueError(
            "Pass either settings or environment_variables, not both; "
            "use ServerSettings.environment_overrides for extra variables"
        )

    if settings is not None:
        is_secured = settings.is_secured
        overrides = settings.to_environment_overrides()
    else:
        is_secured = secured
        overrides = dict(environment_variables) if environment_variables is not None else None

    resource = RavenDBServerResource(name, is_secured=is_secured)
    resource.health_check_certificate = health_check_certificate
    registration = server_health_check(resource, timeout_seconds=health_check_timeout)
    resource_builder = builder.add_resource(resource)
    subscribe_connection_string(builder.eventing, resource, timeout=resolution_timeout)
    builder.health_checks.add(registration)

    def _configure(context: EnvironmentCallbackContext) -> None:
        configure_environment(context, overrides)

    logger.debug(
        "Declared RavenDB server '%s' (secured=%s, overrides=%s)",
        name,
        is_secured,
        sorted(overrides) if overrides is not None else None,
    )
    return (
        resource_builder.with_endpoint(
            name=resource.primary_endpoint_name,
            scheme=resource.primary_endpoint_name,
            target_port=RAVENDB_TARGET_PORT,
            port=port,
        )
        .with_image(RAVENDB_IMAGE, tag=RAVENDB_IMAGE_TAG)
        .with_image_registry(RAVENDB_IMAGE_REGISTRY)
        .with_environment(_configure)
        .with_health_check(registration.name)
    )


def add_database(
    server_builder: ResourceBuilder[RavenDBServerResource],
    name: str,
    database_name: str | None = None,
    *,
    resolution_timeout: float | None = None,
    health_check_timeout: float | None = None,
) -> ResourceBuilder[RavenDBDatabaseResource]:
    """Declare a database on an already registered server.

    ``database_name`` defaults to the resource ``name``. The database health
    check presents the server's ``health_check_certificate``.
    """
    server = server_builder.resource
    builder = server_builder.application_builder
    if not builder.has_resource(server.name) or builder.get_resource(server.name) is not server:
        raise ResourceNotFoundError(f"Server '{server.name}' is not registered with this builder")

    if database_name is None:
        database_name = name

    resource = RavenDBDatabaseResource(name, database_name, server)
    registration = database_health_check(resource, timeout_seconds=health_check_timeout)
    database_builder = builder.add_resource(resource)
    server.add_database(name, database_name)
    subscribe_connection_string(builder.eventing, resource, timeout=resolution_timeout)
    builder.health_checks.add(registration)
    logger.debug("Declared RavenDB database '%s' on '%s'", database_name, server.name)
    return database_builder


def with_data_bind_mount(
    server_builder: ResourceBuilder[RavenDBServerResource],
    source: str,
    *,
    is_read_only: bool = False,
) -> ResourceBuilder[RavenDBServerResource]:
    """Mount a host directory as the server's data directory."""
    return server_builder.with_bind_mount(source, RAVENDB_DATA_PATH, is_read_only=is_read_only)


def with_data_volume(
    server_builder: ResourceBuilder[RavenDBServerResource],
    name: str | None = None,
    *,
    is_read_only: bool = False,
) -> ResourceBuilder[RavenDBServerResource]:
    """Mount a named volume as the server's data directory."""
    volume_name = name or server_builder.application_builder.volume_name(
        server_builder.resource, "data"
    )
    return server_builder.with_volume(volume_name, RAVENDB_DATA_PATH, is_read_only=is_read_only)
