"""Lazy access to the RavenDB Python client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from raven_hosting.runtime.errors import MissingDependencyError


@dataclass(slots=True, frozen=True)
class RavenDriver:
    """Driver classes used by store wiring and health probes."""

    document_store: Any
    database_record: Any
    create_database_operation: Any
    get_database_record_operation: Any
    get_build_number_operation: Any
    get_statistics_operation: Any


def load_driver() -> RavenDriver:
    try:
        from ravendb import DocumentStore
        from ravendb.documents.operations.statistics import GetStatisticsOperation
        from ravendb.serverwide.database_record import DatabaseRecord
        from ravendb.serverwide.operations.common import (
            CreateDatabaseOperation,
            GetBuildNumberOperation,
            GetDatabaseRecordOperation,
        )
    except ImportError as exc:  # pragma: no cover - depends on optional extras
        raise MissingDependencyError(
            "RavenDB support requires optional dependency 'ravendb'. "
            "Install with: pip install 'raven-hosting[ravendb]'"
        ) from exc

    return RavenDriver(
        document_store=DocumentStore,
        database_record=DatabaseRecord,
        create_database_operation=CreateDatabaseOperation,
        get_database_record_operation=GetDatabaseRecordOperation,
        get_build_number_operation=GetBuildNumberOperation,
        get_statistics_operation=GetStatisticsOperation,
    )
