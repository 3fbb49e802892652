"""Wiring helpers driven by :class:`AppSettings`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TextIO

from raven_hosting.hosting.application import DistributedApplicationBuilder
from raven_hosting.observability.logging import bootstrap_logging_from_app_settings
from raven_hosting.observability.metrics import (
    MetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
)
from raven_hosting.ravendb.builder import add_ravendb
from raven_hosting.ravendb.client import add_ravendb_client

if TYPE_CHECKING:
    from raven_hosting.config.models import AppSettings
    from raven_hosting.hosting.application import HostApplicationBuilder
    from raven_hosting.hosting.resources import ResourceBuilder
    from raven_hosting.ravendb.resources import RavenDBServerResource


def bootstrap_observability(
    app_settings: AppSettings,
    *,
    env: str | None = None,
    stream: TextIO | None = None,
    registry: Any | None = None,
) -> MetricsRecorder:
    """Configure logging and, when enabled, the Prometheus recorder."""
    bootstrap_logging_from_app_settings(app_settings, env=env, stream=stream)
    observability = app_settings.observability
    if observability.enabled and observability.prometheus_enabled:
        return configure_prometheus_metrics(
            registry=registry,
            prefix=observability.metrics_prefix,
        )
    return get_metrics_recorder()


def create_application_builder(app_settings: AppSettings) -> DistributedApplicationBuilder:
    service = app_settings.service
    return DistributedApplicationBuilder(app_name=service.app_name or service.name)


def add_configured_ravendb(
    builder: DistributedApplicationBuilder,
    name: str,
    app_settings: AppSettings,
    *,
    port: int | None = None,
) -> ResourceBuilder[RavenDBServerResource]:
    """Declare a server using the ``ravendb.server`` section (unsecured when absent)."""
    return add_ravendb(builder, name, app_settings.ravendb.server, port=port)


def add_configured_ravendb_client(
    builder: HostApplicationBuilder,
    app_settings: AppSettings,
) -> bool:
    """Register the client from the ``ravendb.client`` section. Returns False when absent."""
    client = app_settings.ravendb.client
    if client is None:
        return False
    add_ravendb_client(builder, client)
    return True
