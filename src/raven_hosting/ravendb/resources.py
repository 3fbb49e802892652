"""RavenDB server and database resources."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from raven_hosting.hosting.endpoints import EndpointReference, ReferenceExpression
from raven_hosting.hosting.resources import (
    ContainerResource,
    Resource,
    ResourceState,
    connection_state,
)
from raven_hosting.runtime.errors import DuplicateResourceError
from raven_hosting.runtime.resolution import ResolvedValue

if TYPE_CHECKING:
    from raven_hosting.ravendb.certificates import ClientCertificate

RAVENDB_IMAGE_REGISTRY = "docker.io"
RAVENDB_IMAGE = "ravendb/ravendb"
RAVENDB_IMAGE_TAG = "6.2-ubuntu-latest"
RAVENDB_TARGET_PORT = 8080
RAVENDB_DATA_PATH = "/var/lib/ravendb/data"


class RavenDBServerResource(ContainerResource):
    """RavenDB server container.

    The connection string is the URL of the primary endpoint, available only
    after the orchestrator has bound that endpoint.
    """

    def __init__(self, name: str, *, is_secured: bool = False) -> None:
        super().__init__(name)
        self.is_secured = is_secured
        self.health_check_certificate: ClientCertificate | None = None
        self.connection_string = ResolvedValue(name)
        self._databases: dict[str, str] = {}

    @property
    def primary_endpoint_name(self) -> str:
        return "https" if self.is_secured else "http"

    @property
    def primary_endpoint(self) -> EndpointReference:
        return self.get_endpoint(self.primary_endpoint_name)

    @property
    def connection_string_expression(self) -> ReferenceExpression:
        return ReferenceExpression.create(self.primary_endpoint)

    @property
    def databases(self) -> Mapping[str, str]:
        """Child resource name to database name."""
        return MappingProxyType(self._databases)

    @property
    def state(self) -> ResourceState:
        return connection_state(self, self.connection_string)

    def add_database(self, name: str, database_name: str) -> None:
        if name in self._databases:
            raise DuplicateResourceError(name)
        self._databases[name] = database_name


class RavenDBDatabaseResource(Resource):
    """Database hosted by a :class:`RavenDBServerResource`."""

    def __init__(self, name: str, database_name: str, parent: RavenDBServerResource) -> None:
        super().__init__(name)
        if not database_name or not database_name.strip():
            raise ValueError("database_name must not be empty")
        self.database_name = database_name
        self.parent = parent
        self.connection_string = ResolvedValue(name)

    @property
    def connection_string_expression(self) -> ReferenceExpression:
        return ReferenceExpression.create(
            self.parent.connection_string,
            ";Database=",
            self.database_name,
        )

    @property
    def state(self) -> ResourceState:
        return connection_state(self, self.connection_string)
