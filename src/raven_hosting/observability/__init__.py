"""Logging, metrics and tracing helpers."""

from raven_hosting.observability.logging import (
    bootstrap_logging,
    bootstrap_logging_from_app_settings,
    current_resource,
    resource_scope,
)
from raven_hosting.observability.metrics import (
    MetricsRecorder,
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
    reset_metrics_recorder,
    set_metrics_recorder,
)
from raven_hosting.observability.otel import start_span

__all__ = [
    "MetricsRecorder",
    "NoopMetricsRecorder",
    "PrometheusMetricsRecorder",
    "bootstrap_logging",
    "bootstrap_logging_from_app_settings",
    "configure_prometheus_metrics",
    "current_resource",
    "get_metrics_recorder",
    "reset_metrics_recorder",
    "resource_scope",
    "set_metrics_recorder",
    "start_span",
]
