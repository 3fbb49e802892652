"""Tests for ObservableMixin."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, ClassVar
from unittest.mock import MagicMock

import pytest

from raven_hosting.observability._observable import ObservableMixin
from raven_hosting.observability.metrics import (
    NoopMetricsRecorder,
    get_metrics_recorder,
    reset_metrics_recorder,
    set_metrics_recorder,
)


class StoreInitializer(ObservableMixin):
    def __init__(self, *, metrics: Any = None) -> None:
        self._resource_name = "ravendb_client"
        self._metrics = metrics


@dataclass(slots=True)
class SlottedResolver(ObservableMixin):
    _resource_name: ClassVar[str] = "ravenServer"

    timeout: float | None = None
    _metrics: Any = None


@pytest.fixture()
def recorder() -> MagicMock:
    return MagicMock(spec=NoopMetricsRecorder)


@pytest.fixture()
def global_recorder(recorder: MagicMock) -> MagicMock:
    previous = get_metrics_recorder()
    set_metrics_recorder(recorder)
    yield recorder
    set_metrics_recorder(previous)


class TestMetricsRecorder:
    def test_returns_injected_recorder(self, recorder: MagicMock) -> None:
        assert StoreInitializer(metrics=recorder)._metrics_recorder() is recorder

    def test_falls_back_to_process_recorder(self, global_recorder: MagicMock) -> None:
        assert StoreInitializer()._metrics_recorder() is global_recorder

    def test_reset_returns_to_noop(self, global_recorder: MagicMock) -> None:
        reset_metrics_recorder()

        assert isinstance(StoreInitializer()._metrics_recorder(), NoopMetricsRecorder)

    def test_slotted_dataclass(self, recorder: MagicMock) -> None:
        assert SlottedResolver(_metrics=recorder)._metrics_recorder() is recorder


class TestObserve:
    def test_operation_success(self, recorder: MagicMock) -> None:
        StoreInitializer(metrics=recorder)._observe_operation(
            "initialize", perf_counter(), success=True
        )

        call_kwargs = recorder.observe_operation.call_args.kwargs
        assert call_kwargs["resource"] == "ravendb_client"
        assert call_kwargs["operation"] == "initialize"
        assert call_kwargs["success"] is True
        assert call_kwargs["duration_seconds"] >= 0

    def test_error_records_failed_operation_and_error_type(self, recorder: MagicMock) -> None:
        resolver = SlottedResolver(timeout=1.0, _metrics=recorder)

        resolver._observe_error(
            "resolve_connection_string", perf_counter(), TimeoutError("endpoint not allocated")
        )

        assert recorder.observe_operation.call_args.kwargs["success"] is False
        recorder.observe_error.assert_called_once_with(
            resource="ravenServer",
            operation="resolve_connection_string",
            error_type="TimeoutError",
        )
