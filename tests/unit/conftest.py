"""Fake RavenDB driver shared by the RavenDB unit tests."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any

import pytest

from raven_hosting.ravendb import _driver


@dataclass(slots=True)
class FakeDatabaseRecord:
    database_name: str


@dataclass(slots=True)
class FakeCreateDatabaseOperation:
    database_record: FakeDatabaseRecord


@dataclass(slots=True)
class FakeGetDatabaseRecordOperation:
    database_name: str


class FakeGetBuildNumberOperation:
    pass


class FakeGetStatisticsOperation:
    pass


@dataclass
class FakeRaven:
    """Records every store and operation; ``error`` makes operations fail."""

    stores: list[FakeDocumentStore] = field(default_factory=list)
    operations: list[Any] = field(default_factory=list)
    databases: set[str] = field(default_factory=set)
    error: Exception | None = None

    def driver(self) -> _driver.RavenDriver:
        return _driver.RavenDriver(
            document_store=functools.partial(FakeDocumentStore, self),
            database_record=FakeDatabaseRecord,
            create_database_operation=FakeCreateDatabaseOperation,
            get_database_record_operation=FakeGetDatabaseRecordOperation,
            get_build_number_operation=FakeGetBuildNumberOperation,
            get_statistics_operation=FakeGetStatisticsOperation,
        )

    def send(self, operation: Any) -> Any:
        self.operations.append(operation)
        if self.error is not None:
            raise self.error
        if isinstance(operation, FakeGetDatabaseRecordOperation):
            if operation.database_name in self.databases:
                return FakeDatabaseRecord(operation.database_name)
            return None
        if isinstance(operation, FakeCreateDatabaseOperation):
            self.databases.add(operation.database_record.database_name)
            return None
        if isinstance(operation, FakeGetStatisticsOperation):
            return {"CountOfDocuments": 0}
        return {"BuildVersion": 62}


class FakeServerOperations:
    def __init__(self, raven: FakeRaven) -> None:
        self._raven = raven

    def send(self, operation: Any) -> Any:
        return self._raven.send(operation)


class FakeMaintenance:
    def __init__(self, raven: FakeRaven) -> None:
        self._raven = raven
        self.server = FakeServerOperations(raven)

    def send(self, operation: Any) -> Any:
        return self._raven.send(operation)


class FakeSession:
    def __init__(self, store: FakeDocumentStore) -> None:
        self.store = store


class FakeDocumentStore:
    def __init__(
        self,
        raven: FakeRaven,
        urls: list[str] | None = None,
        database: str | None = None,
    ) -> None:
        self.urls = urls
        self.database = database
        self.certificate_pem_path: str | None = None
        self.initialized = False
        self.closed = False
        self.sessions: list[FakeSession] = []
        self.maintenance = FakeMaintenance(raven)
        raven.stores.append(self)

    def initialize(self) -> FakeDocumentStore:
        self.initialized = True
        return self

    def open_session(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_raven(monkeypatch: pytest.MonkeyPatch) -> FakeRaven:
    raven = FakeRaven()
    monkeypatch.setattr(_driver, "load_driver", raven.driver)
    return raven
