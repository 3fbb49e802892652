"""OpenTelemetry span helpers (no-op when the API is not installed)."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

AttributeValue = str | bool | int | float

TRACER_NAME = "raven_hosting"


@contextmanager
def start_span(
    span_name: str,
    *,
    tracer_name: str = TRACER_NAME,
    attributes: Mapping[str, AttributeValue | None] | None = None,
) -> Iterator[Any | None]:
    """Start a span when OpenTelemetry API is available; otherwise no-op."""
    trace_module = _import_otel_api_trace_module()
    if trace_module is None:
        yield None
        return

    tracer = trace_module.get_tracer(tracer_name)
    with tracer.start_as_current_span(
        span_name,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as exc:
            _mark_span_error(span, exc)
            raise


def _import_otel_api_trace_module() -> Any | None:
    try:
        from opentelemetry import trace
    except ImportError:
        return None
    return trace


def _set_span_status(
    *,
    span: Any,
    success: bool,
    description: str | None = None,
) -> None:
    try:
        from opentelemetry import trace as otel_trace
    except ImportError:
        return
    else:
        code = otel_trace.StatusCode.OK if success else otel_trace.StatusCode.ERROR
        span.set_status(otel_trace.Status(code, description))


def _mark_span_error(span: Any | None, exc: Exception) -> None:
    if span is None:
        return

    span.record_exception(exc)
    _set_span_status(span=span, success=False, description=str(exc))
