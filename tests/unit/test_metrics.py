"""Tests for the Prometheus metrics recorder."""

from __future__ import annotations

import pytest

from raven_hosting.observability.metrics import (
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
    set_metrics_recorder,
)

prometheus_client = pytest.importorskip("prometheus_client")


def test_prometheus_metrics_registration_and_samples() -> None:
    registry = prometheus_client.CollectorRegistry()
    recorder = PrometheusMetricsRecorder(registry=registry)

    recorder.observe_operation(
        resource="ravenServer",
        operation="resolve_connection_string",
        duration_seconds=0.015,
        success=True,
    )
    recorder.observe_operation(
        resource="TestDatabase",
        operation="resolve_connection_string",
        duration_seconds=0.022,
        success=False,
    )
    recorder.observe_error(
        resource="TestDatabase",
        operation="resolve_connection_string",
        error_type="ConnectionResolutionError",
    )

    assert registry.get_sample_value(
        "raven_hosting_operation_total",
        {"resource": "ravenserver", "operation": "resolve_connection_string", "status": "success"},
    ) == 1.0
    assert registry.get_sample_value(
        "raven_hosting_operation_total",
        {"resource": "testdatabase", "operation": "resolve_connection_string", "status": "error"},
    ) == 1.0
    assert registry.get_sample_value(
        "raven_hosting_operation_errors_total",
        {
            "resource": "testdatabase",
            "operation": "resolve_connection_string",
            "error_type": "connectionresolutionerror",
        },
    ) == 1.0
    assert registry.get_sample_value(
        "raven_hosting_operation_latency_seconds_count",
        {"resource": "ravenserver", "operation": "resolve_connection_string", "status": "success"},
    ) == 1.0


def test_custom_prefix() -> None:
    registry = prometheus_client.CollectorRegistry()
    recorder = PrometheusMetricsRecorder(registry=registry, prefix="orders-api")

    recorder.observe_operation(
        resource="ravendb_client",
        operation="initialize",
        duration_seconds=0.1,
        success=True,
    )

    assert registry.get_sample_value(
        "orders_api_operation_total",
        {"resource": "ravendb_client", "operation": "initialize", "status": "success"},
    ) == 1.0


def test_recorders_share_collectors_on_one_registry() -> None:
    registry = prometheus_client.CollectorRegistry()
    PrometheusMetricsRecorder(registry=registry)
    second = PrometheusMetricsRecorder(registry=registry)

    second.observe_error(resource="ravenServer", operation="startup", error_type="RuntimeError")

    assert registry.get_sample_value(
        "raven_hosting_operation_errors_total",
        {"resource": "ravenserver", "operation": "startup", "error_type": "runtimeerror"},
    ) == 1.0


def test_configure_prometheus_metrics_sets_default() -> None:
    previous = get_metrics_recorder()
    registry = prometheus_client.CollectorRegistry()
    try:
        recorder = configure_prometheus_metrics(registry=registry)
        assert get_metrics_recorder() is recorder

        set_metrics_recorder(None)
        assert isinstance(get_metrics_recorder(), NoopMetricsRecorder)
    finally:
        set_metrics_recorder(previous)
