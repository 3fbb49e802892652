"""Custom exceptions for raven hosting resources."""


class RavenHostingError(Exception):
    """Base exception for this package."""


class MissingDependencyError(RavenHostingError):
    """Raised when an optional dependency is required but not installed."""


class ResourceNotFoundError(RavenHostingError):
    """Raised when requesting an unknown resource from the application model."""


class DuplicateResourceError(RavenHostingError):
    """Raised when a resource name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A resource named '{name}' is already registered")


class ServiceNotRegisteredError(RavenHostingError):
    """Raised when resolving a service that was never registered."""

    def __init__(self, service: str, key: object | None = None) -> None:
        self.service = service
        self.key = key
        target = service if key is None else f"{service} (key={key!r})"
        super().__init__(f"Service not registered: {target}")


class ConnectionStringUnavailableError(RavenHostingError):
    """Raised when reading a connection string that has not been resolved yet."""

    def __init__(self, resource_name: str) -> None:
        self.resource_name = resource_name
        super().__init__(f"Connection string is unavailable for '{resource_name}'")


class ConnectionResolutionError(RavenHostingError):
    """Raised when a resource's connection string could not be resolved.

    Resolution failures are configuration defects and are never retried.
    """

    def __init__(self, resource_name: str, message: str) -> None:
        self.resource_name = resource_name
        super().__init__(f"Connection string resolution failed for '{resource_name}': {message}")


class ConnectionAlreadyResolvedError(RavenHostingError):
    """Raised when a connection string is assigned more than once."""

    def __init__(self, resource_name: str) -> None:
        self.resource_name = resource_name
        super().__init__(f"Connection string for '{resource_name}' was already assigned")


class CertificateLoadError(RavenHostingError):
    """Raised when a client certificate cannot be materialized from disk."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to load certificate '{path}': {reason}")


class ResourceStartupError(RavenHostingError):
    """Raised when one or more resources fail while their endpoints come up."""

    def __init__(self, errors: dict[str, Exception]) -> None:
        self.errors = errors
        names = ", ".join(errors.keys())
        super().__init__(f"Failed to start resources: {names}")
