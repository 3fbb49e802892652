"""Tests for settings-driven wiring helpers."""

from __future__ import annotations

import logging
from io import StringIO
from typing import Any

import pytest

from raven_hosting import (
    AppSettings,
    add_configured_ravendb,
    add_configured_ravendb_client,
    bootstrap_observability,
    create_application_builder,
)
from raven_hosting.hosting.application import HostApplicationBuilder
from raven_hosting.observability.metrics import (
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    get_metrics_recorder,
    set_metrics_recorder,
)
from raven_hosting.ravendb.client import DOCUMENT_STORE_SERVICE


@pytest.fixture()
def root_logger() -> logging.Logger:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    previous_recorder = get_metrics_recorder()
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    set_metrics_recorder(previous_recorder)


def _settings(**sections: Any) -> AppSettings:
    return AppSettings.model_validate({"service": {"name": "orders-api"}, **sections})


class TestBootstrapObservability:
    def test_logging_only_by_default(self, root_logger: logging.Logger) -> None:
        stream = StringIO()

        recorder = bootstrap_observability(_settings(), env="test", stream=stream)
        logging.getLogger("raven_hosting.test").info("ready")

        assert isinstance(recorder, NoopMetricsRecorder)
        assert '"service": "orders-api"' in stream.getvalue()

    def test_prometheus_when_enabled(self, root_logger: logging.Logger) -> None:
        prometheus_client = pytest.importorskip("prometheus_client")
        registry = prometheus_client.CollectorRegistry()

        recorder = bootstrap_observability(
            _settings(observability={"prometheus_enabled": True, "metrics_prefix": "orders"}),
            env="test",
            stream=StringIO(),
            registry=registry,
        )

        assert isinstance(recorder, PrometheusMetricsRecorder)
        assert get_metrics_recorder() is recorder
        recorder.observe_operation(
            resource="ravenServer", operation="startup", duration_seconds=0.1, success=True
        )
        assert registry.get_sample_value(
            "orders_operation_total",
            {"resource": "ravenserver", "operation": "startup", "status": "success"},
        ) == 1.0

    def test_prometheus_ignored_when_observability_disabled(
        self, root_logger: logging.Logger
    ) -> None:
        recorder = bootstrap_observability(
            _settings(observability={"enabled": False, "prometheus_enabled": True}),
            env="test",
            stream=StringIO(),
        )

        assert isinstance(recorder, NoopMetricsRecorder)


class TestConfiguredResources:
    def test_app_name_scopes_volumes(self) -> None:
        builder = create_application_builder(_settings(service={"name": "api", "app_name": "shop"}))

        assert builder.app_name == "shop"

    def test_app_name_falls_back_to_service_name(self) -> None:
        assert create_application_builder(_settings()).app_name == "orders-api"

    def test_configured_server_without_section_is_unsecured(self) -> None:
        settings = _settings()
        builder = create_application_builder(settings)

        server = add_configured_ravendb(builder, "ravenServer", settings).resource

        assert server.primary_endpoint.scheme == "http"
        assert builder.build_environment("ravenServer") == {
            "RAVEN_Setup_Mode": "None",
            "RAVEN_Security_UnsecuredAccessAllowed": "PrivateNetwork",
        }

    def test_configured_secured_server(self) -> None:
        settings = _settings(
            ravendb={
                "server": {
                    "security_mode": "Secured",
                    "setup_mode": "OwnCertificate",
                    "domain_url": "https://a.example.run",
                    "certificate_path": "/etc/ravendb/security/cluster.pfx",
                }
            }
        )
        builder = create_application_builder(settings)

        server = add_configured_ravendb(builder, "ravenServer", settings, port=443).resource

        assert server.primary_endpoint.scheme == "https"
        assert builder.build_environment("ravenServer")["RAVEN_Setup_Mode"] == "Secured"

    def test_configured_client(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()
        settings = _settings(
            ravendb={"client": {"urls": ["http://localhost:8080"], "database_name": "Orders"}}
        )

        assert add_configured_ravendb_client(builder, settings) is True
        assert builder.services.get(DOCUMENT_STORE_SERVICE).database == "Orders"

    def test_configured_client_absent(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        assert add_configured_ravendb_client(builder, _settings()) is False
        assert len(builder.services) == 0
        assert fake_raven.stores == []
