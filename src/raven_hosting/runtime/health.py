"""Health primitives shared by hosted resources and clients."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Literal


@dataclass(slots=True)
class HealthStatus:
    """Represents an infrastructure health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        payload: dict[str, Any] = {
            "healthy": self.healthy,
            "latency_ms": max(0.0, float(self.latency_ms)),
        }
        if self.message is not None:
            payload["message"] = self.message
        if self.details:
            payload["details"] = dict(self.details)
        return payload


@dataclass(slots=True, frozen=True)
class HealthSummary:
    """Summary counters for an aggregated health report."""

    total: int
    healthy: int
    unhealthy: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "healthy": self.healthy,
            "unhealthy": self.unhealthy,
        }


@dataclass(slots=True)
class HealthReport:
    """Aggregated readiness report across multiple checks."""

    status: Literal["ok", "degraded", "down"]
    healthy: bool
    latency_ms: float
    checks: dict[str, HealthStatus]
    summary: HealthSummary

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable payload suitable for `/health` endpoints."""
        return {
            "status": self.status,
            "healthy": self.healthy,
            "latency_ms": max(0.0, float(self.latency_ms)),
            "summary": self.summary.to_dict(),
            "checks": {name: status.to_dict() for name, status in self.checks.items()},
        }


HealthCheck = Callable[[], Awaitable[HealthStatus]]
HealthCheckFactory = Callable[[Any], HealthCheck]


@dataclass(slots=True, frozen=True)
class HealthCheckRegistration:
    """Named probe registration.

    ``factory`` is invoked every time the check runs, so values that only
    exist after registration (such as a resolved connection string) are read
    when the probe executes.
    """

    name: str
    factory: HealthCheckFactory
    timeout_seconds: float | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("health check name must not be empty")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


class HealthCheckRegistry:
    """Ordered collection of health check registrations keyed by name."""

    def __init__(self) -> None:
        self._registrations: dict[str, HealthCheckRegistration] = {}

    def add(self, registration: HealthCheckRegistration) -> None:
        if registration.name in self._registrations:
            raise ValueError(f"Health check already registered: {registration.name}")
        self._registrations[registration.name] = registration

    def try_add(self, registration: HealthCheckRegistration) -> bool:
        """Register unless a check with the same name exists. Returns True when added."""
        if registration.name in self._registrations:
            return False
        self._registrations[registration.name] = registration
        return True

    def get(self, name: str) -> HealthCheckRegistration:
        return self._registrations[name]

    def __contains__(self, name: object) -> bool:
        return name in self._registrations

    def __iter__(self) -> Iterator[HealthCheckRegistration]:
        return iter(list(self._registrations.values()))

    def __len__(self) -> int:
        return len(self._registrations)

    def names(self) -> list[str]:
        return list(self._registrations)

    async def run(self, name: str, services: Any = None) -> HealthStatus:
        """Execute a single registered check."""
        registration = self._registrations[name]
        return await _run_registration(registration, services)

    async def report(
        self,
        services: Any = None,
        *,
        names: list[str] | None = None,
    ) -> HealthReport:
        """Run the selected checks concurrently and aggregate the results."""
        selected = [
            registration
            for registration in self._registrations.values()
            if names is None or registration.name in names
        ]
        checks: dict[str, HealthCheck] = {}
        for registration in selected:
            checks[registration.name] = _bind_registration(registration, services)
        return await aggregate_health_checks(checks)


def _bind_registration(registration: HealthCheckRegistration, services: Any) -> HealthCheck:
    async def _run() -> HealthStatus:
        return await _run_registration(registration, services)

    return _run


async def _run_registration(registration: HealthCheckRegistration, services: Any) -> HealthStatus:
    started = perf_counter()
    try:
        check = registration.factory(services)
    except Exception as exc:
        return HealthStatus(
            healthy=False,
            latency_ms=(perf_counter() - started) * 1000,
            message=str(exc),
            details={"error_type": type(exc).__name__},
        )
    return await _run_health_check(
        check_name=registration.name,
        check=check,
        timeout_seconds=registration.timeout_seconds,
    )


async def aggregate_health_checks(
    checks: Mapping[str, HealthCheck],
    *,
    timeout_seconds: float | None = None,
) -> HealthReport:
    """Run health checks concurrently and aggregate readiness status."""
    if timeout_seconds is not None and timeout_seconds <= 0:
        raise ValueError("timeout_seconds must be > 0")

    started = perf_counter()
    if not checks:
        return HealthReport(
            status="ok",
            healthy=True,
            latency_ms=(perf_counter() - started) * 1000,
            checks={},
            summary=HealthSummary(total=0, healthy=0, unhealthy=0),
        )

    names = list(checks.keys())
    results = await asyncio.gather(
        *(
            _run_health_check(
                check_name=name,
                check=checks[name],
                timeout_seconds=timeout_seconds,
            )
            for name in names
        )
    )
    statuses = dict(zip(names, results, strict=True))

    total = len(statuses)
    healthy_count = sum(1 for status in statuses.values() if status.healthy)
    unhealthy_count = total - healthy_count
    aggregate_status: Literal["ok", "degraded", "down"]
    if unhealthy_count == 0:
        aggregate_status = "ok"
    elif healthy_count > 0:
        aggregate_status = "degraded"
    else:
        aggregate_status = "down"

    return HealthReport(
        status=aggregate_status,
        healthy=unhealthy_count == 0,
        latency_ms=(perf_counter() - started) * 1000,
        checks=statuses,
        summary=HealthSummary(total=total, healthy=healthy_count, unhealthy=unhealthy_count),
    )


async def _run_health_check(
    *,
    check_name: str,
    check: HealthCheck,
    timeout_seconds: float | None,
) -> HealthStatus:
    started = perf_counter()

    try:
        awaitable = check()
        status = (
            await awaitable
            if timeout_seconds is None
            else await asyncio.wait_for(awaitable, timeout=timeout_seconds)
        )
        if not isinstance(status, HealthStatus):
            raise TypeError(
                f"health check '{check_name}' returned {type(status).__name__}, "
                "expected HealthStatus"
            )

        latency_ms = status.latency_ms
        if latency_ms < 0:
            latency_ms = (perf_counter() - started) * 1000

        return HealthStatus(
            healthy=status.healthy,
            latency_ms=latency_ms,
            message=status.message,
            details=dict(status.details) if status.details else None,
        )
    except Exception as exc:
        return HealthStatus(
            healthy=False,
            latency_ms=(perf_counter() - started) * 1000,
            message=str(exc) or type(exc).__name__,
            details={"error_type": type(exc).__name__},
        )
