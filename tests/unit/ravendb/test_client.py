"""Tests for registering RavenDB clients on a host application."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from raven_hosting.config.errors import ConfigValidationError
from raven_hosting.hosting.application import HostApplicationBuilder
from raven_hosting.hosting.services import ServiceLifetime
from raven_hosting.observability.metrics import NoopMetricsRecorder
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
from raven_hosting.ravendb.settings import ClientSettings


class TestAddRavenDBClient:
    def test_registers_store_singleton_and_session_factory(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        add_ravendb_client(
            builder, ClientSettings(urls=("http://localhost:8080",), database_name="Orders")
        )

        store = builder.services.get(DOCUMENT_STORE_SERVICE)
        assert store is fake_raven.stores[0]
        assert store.urls == ["http://localhost:8080"]
        assert store.database == "Orders"
        assert store.initialized is True
        assert builder.services.get(DOCUMENT_STORE_SERVICE) is store

        descriptor = builder.services.descriptor(DOCUMENT_SESSION_SERVICE)
        assert descriptor.lifetime is ServiceLifetime.TRANSIENT
        first = builder.services.get(DOCUMENT_SESSION_SERVICE)
        second = builder.services.get(DOCUMENT_SESSION_SERVICE)
        assert first is not second
        assert store.sessions == [first, second]

    @pytest.mark.parametrize("database_name", [None, "", "   "])
    def test_no_session_without_database(self, fake_raven: Any, database_name: str | None) -> None:
        builder = HostApplicationBuilder()

        add_ravendb_client(
            builder, ClientSettings(urls=("http://localhost:8080",), database_name=database_name)
        )

        assert builder.services.has(DOCUMENT_STORE_SERVICE)
        assert not builder.services.has(DOCUMENT_SESSION_SERVICE)

    def test_tracing_source_and_health_check(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        add_ravendb_client(
            builder,
            ClientSettings(
                urls=("http://localhost:8080",),
                database_name="Orders",
                health_check_timeout_ms=1500,
            ),
        )

        assert builder.tracing_sources == [TRACING_SOURCE_NAME]
        registration = builder.health_checks.get(HEALTH_CHECK_NAME)
        assert registration.timeout_seconds == 1.5
        assert registration.tags == frozenset({"ravendb", "client"})

    def test_disable_flags_skip_wiring(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        add_ravendb_client(
            builder,
            ClientSettings(
                urls=("http://localhost:8080",),
                disable_health_checks=True,
                disable_tracing=True,
            ),
        )

        assert builder.tracing_sources == []
        assert len(builder.health_checks) == 0
        assert builder.services.has(DOCUMENT_STORE_SERVICE)

    def test_second_registration_keeps_first_health_check(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()
        add_ravendb_client(builder, ClientSettings(urls=("http://a:8080",)))
        first = builder.health_checks.get(HEALTH_CHECK_NAME)

        add_ravendb_client(builder, ClientSettings(urls=("http://b:8080",)))

        assert builder.health_checks.get(HEALTH_CHECK_NAME) is first
        assert builder.tracing_sources == [TRACING_SOURCE_NAME]
        assert builder.services.get(DOCUMENT_STORE_SERVICE).urls == ["http://b:8080"]

    async def test_health_check_probes_configured_database(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()
        add_ravendb_client(
            builder, ClientSettings(urls=("http://localhost:8080",), database_name="Orders")
        )

        report = await builder.health_report()

        assert report.status == "ok"
        status = report.checks[HEALTH_CHECK_NAME]
        assert status.details == {"urls": "http://localhost:8080", "database": "Orders"}
        probe_store = fake_raven.stores[-1]
        assert probe_store.database == "Orders"
        assert probe_store.closed is True


class TestKeyedClients:
    def test_keyed_registrations_are_independent(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        add_keyed_ravendb_client(
            builder, "orders", ClientSettings(urls=("http://a:8080",), database_name="Orders")
        )
        add_keyed_ravendb_client(
            builder, "billing", ClientSettings(urls=("http://b:8080",), database_name="Billing")
        )

        orders = builder.services.get(DOCUMENT_STORE_SERVICE, key="orders")
        billing = builder.services.get(DOCUMENT_STORE_SERVICE, key="billing")
        assert orders.database == "Orders"
        assert billing.database == "Billing"
        assert not builder.services.has(DOCUMENT_STORE_SERVICE)
        assert builder.services.has(DOCUMENT_SESSION_SERVICE, key="orders")
        assert set(builder.health_checks.names()) == {
            f"{HEALTH_CHECK_NAME}_orders",
            f"{HEALTH_CHECK_NAME}_billing",
        }

    def test_none_key_rejected(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()
        settings = ClientSettings(urls=("http://a:8080",))

        with pytest.raises(ValueError):
            add_keyed_ravendb_client(builder, None, settings)
        with pytest.raises(ValueError):
            add_keyed_ravendb_client_from_urls(builder, None, ["http://a:8080"])
        assert fake_raven.stores == []

    def test_keyed_from_urls(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        add_keyed_ravendb_client_from_urls(builder, "orders", ["http://a:8080"], "Orders")

        assert builder.services.get(DOCUMENT_STORE_SERVICE, key="orders").database == "Orders"


class TestFromUrls:
    def test_single_url_string(self, fake_raven: Any) -> None:
        builder = HostApplicationBuilder()

        add_ravendb_client_from_urls(builder, "http://localhost:8080", "Orders")  # type: ignore[arg-type]

        assert builder.services.get(DOCUMENT_STORE_SERVICE).urls == ["http://localhost:8080"]

    def test_https_without_certificate_is_a_config_error(self, fake_raven: Any) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            add_ravendb_client_from_urls(HostApplicationBuilder(), ["https://a.example.run"])

        assert "client certificate" in str(exc_info.value)
        assert fake_raven.stores == []

    def test_empty_urls_is_a_config_error(self, fake_raven: Any) -> None:
        with pytest.raises(ConfigValidationError):
            add_ravendb_client_from_urls(HostApplicationBuilder(), [])


class TestDocumentStoreFactory:
    def test_creates_missing_database(self, fake_raven: Any) -> None:
        settings = ClientSettings(
            urls=("http://localhost:8080",),
            database_name="Orders",
            create_database_if_missing=True,
        )

        DocumentStoreFactory(settings).create()

        assert fake_raven.databases == {"Orders"}
        names = [type(op).__name__ for op in fake_raven.operations]
        assert names == ["FakeGetDatabaseRecordOperation", "FakeCreateDatabaseOperation"]

    def test_existing_database_is_left_alone(self, fake_raven: Any) -> None:
        fake_raven.databases.add("Orders")
        settings = ClientSettings(
            urls=("http://localhost:8080",),
            database_name="Orders",
            create_database_if_missing=True,
        )

        DocumentStoreFactory(settings).create()

        assert [type(op).__name__ for op in fake_raven.operations] == [
            "FakeGetDatabaseRecordOperation"
        ]

    def test_customizer_runs_before_initialize(self, fake_raven: Any) -> None:
        seen: list[bool] = []

        def customize(store: Any) -> None:
            seen.append(store.initialized)
            store.conventions = "custom"

        store = DocumentStoreFactory(
            ClientSettings(urls=("http://localhost:8080",), store_customizer=customize)
        ).create()

        assert seen == [False]
        assert store.conventions == "custom"
        assert store.initialized is True

    def test_initialize_failure_is_recorded_and_raised(
        self, fake_raven: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        recorder = MagicMock(spec=NoopMetricsRecorder)
        factory = DocumentStoreFactory(
            ClientSettings(
                urls=("http://localhost:8080",),
                database_name="Orders",
                create_database_if_missing=True,
            )
        )
        monkeypatch.setattr(factory, "_metrics", recorder, raising=False)
        fake_raven.error = ConnectionRefusedError("connection refused")

        with pytest.raises(ConnectionRefusedError):
            factory.create()

        recorder.observe_error.assert_called_once_with(
            resource="ravendb_client",
            operation="initialize",
            error_type="ConnectionRefusedError",
        )

    def test_success_is_recorded(self, fake_raven: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        recorder = MagicMock(spec=NoopMetricsRecorder)
        factory = DocumentStoreFactory(ClientSettings(urls=("http://localhost:8080",)))
        monkeypatch.setattr(factory, "_metrics", recorder, raising=False)

        factory.create()

        call_kwargs = recorder.observe_operation.call_args.kwargs
        assert call_kwargs["resource"] == "ravendb_client"
        assert call_kwargs["operation"] == "initialize"
        assert call_kwargs["success"] is True
