"""Configuration loading and validation module."""

from raven_hosting.config.errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    PlaceholderResolutionError,
)
from raven_hosting.config.loader import deep_merge, load_config
from raven_hosting.config.models import (
    AppSettings,
    LoggingSettings,
    ObservabilitySettings,
    RavenDBSettings,
    ServiceSettings,
)
from raven_hosting.config.placeholders import resolve_placeholders

__all__ = [
    "AppSettings",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    "LoggingSettings",
    "ObservabilitySettings",
    "PlaceholderResolutionError",
    "RavenDBSettings",
    "ServiceSettings",
    "deep_merge",
    "load_config",
    "resolve_placeholders",
]
