"""Shared fixtures: recording fake backend and a mongomock-backed component."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
from bson import ObjectId

from ems_database_mongo import (
    DatabaseComponent,
    DatabaseConfig,
    MotorHandle,
    ObjectIdCodec,
)


class RecordingHandle:
    """Backend handle double that records every call it receives.

    ``documents`` is returned by ``find_many``; ``error`` (if set) is raised
    by every data call.
    """

    def __init__(
        self,
        documents: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.documents = list(documents or [])
        self.error = error
        self.calls: list[tuple[Any, ...]] = []
        self.closed = False

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    async def find_many(self, collection, match, options):
        self._record("find_many", collection, dict(match), dict(options))
        return [dict(d) for d in self.documents]

    async def insert_many(self, collection, documents):
        self._record("insert_many", collection, [dict(d) for d in documents])
        return [ObjectId() for _ in documents]

    async def update_one(self, collection, match, update):
        self._record("update_one", collection, dict(match), dict(update))

    async def delete_one(self, collection, match):
        self._record("delete_one", collection, dict(match))

    async def delete_many(self, collection, match):
        self._record("delete_many", collection, dict(match))

    async def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True


class RecordingClient:
    """Backend client double handing out a fixed handle."""

    def __init__(self, handle: Any = None, error: Exception | None = None) -> None:
        self.handle = handle if handle is not None else RecordingHandle()
        self.error = error
        self.urls: list[str] = []

    async def connect(self, url: str) -> Any:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.handle


@pytest.fixture
def make_client():
    """Factory for recording clients around an arbitrary handle."""
    return RecordingClient


@pytest.fixture
def recording_handle() -> RecordingHandle:
    return RecordingHandle()


@pytest.fixture
def recording_client(recording_handle: RecordingHandle) -> RecordingClient:
    return RecordingClient(recording_handle)


@pytest.fixture
def config() -> DatabaseConfig:
    return DatabaseConfig(host="localhost", port=27017, database="test_db")


@pytest.fixture
async def recording_component(recording_client, config):
    """Connected component over the recording backend."""
    component = DatabaseComponent.create(recording_client, ObjectIdCodec(), config)
    await component.connect()
    yield component
    await component.disconnect()


@pytest.fixture
def mock_client():
    """Create a mock MongoDB client."""
    mongomock_motor = pytest.importorskip("mongomock_motor")
    return mongomock_motor.AsyncMongoMockClient()


@pytest.fixture
def motor_handle(mock_client) -> MotorHandle:
    """Handle over mongomock; closing it only touches a stand-in client."""
    return MotorHandle(Mock(spec=["close"]), mock_client.get_database("test_db"))


@pytest.fixture
async def component(motor_handle, config):
    """Connected component over an in-process mongomock database."""
    component = DatabaseComponent.create(
        RecordingClient(motor_handle), ObjectIdCodec(), config
    )
    await component.connect()
    yield component
    await component.disconnect()
