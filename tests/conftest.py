"""
Shared test configuration and fixtures.

Provides in-memory record and blob stores that record every call and
can be told to fail, so engine tests run without Azure resources.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence

import pytest

from todo_sync import BlobError, ListState, RemoteError, SyncEngine, TodoRecord
from todo_sync.clients import BlobStoreClient, RecordStoreClient



class FakeRecordStore(RecordStoreClient):
    """In-memory record store that assigns uuid ids and logs calls."""

    def __init__(self, records: Sequence[TodoRecord] = ()):
        self.items: list[dict] = [r.to_store_dict() for r in records]
        self.calls: list[tuple[str, object]] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str, record_id: str | None = None) -> None:
        if operation in self.fail_on:
            raise RemoteError(operation, record_id, ConnectionResetError("simulated"))

    async def list(self) -> Sequence[TodoRecord]:
        self.calls.append(("list", None))
        self._maybe_fail("list")
        return [TodoRecord.from_store_dict(item) for item in self.items]

    async def create(self, record: TodoRecord) -> str:
        self.calls.append(("create", record))
        self._maybe_fail("create")
        record_id = uuid.uuid4().hex
        self.items.append({**record.to_store_dict(), "id": record_id})
        return record_id

    async def delete(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        self._maybe_fail("delete", record_id)
        before = len(self.items)
        self.items = [item for item in self.items if item.get("id") != record_id]
        if len(self.items) == before:
            raise RemoteError("delete", record_id, message=f"Todo not found: {record_id}")

    def calls_to(self, operation: str) -> list[object]:
        return [arg for op, arg in self.calls if op == operation]


class FakeBlobStore(BlobStoreClient):
    """In-memory blob store with per-key failures and resolution delay."""

    def __init__(self, resolve_delay: float = 0.0):
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()
        self.fail_keys: set[str] = set()
        self.resolve_delay = resolve_delay
        self.in_flight = 0
        self.max_in_flight = 0

    def _maybe_fail(self, operation: str, key: str) -> None:
        if operation in self.fail_on or key in self.fail_keys:
            raise BlobError(operation, key, ConnectionResetError("simulated"))

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self.calls.append(("put", key))
        self._maybe_fail("put", key)
        self.blobs[key] = (data, content_type)

    async def resolve(self, key: str) -> str:
        self.calls.append(("resolve", key))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.resolve_delay)
            self._maybe_fail("resolve", key)
            return f"https://blobs.example.test/{key}?sig=abc"
        finally:
            self.in_flight -= 1

    async def remove(self, key: str) -> None:
        self.calls.append(("remove", key))
        self._maybe_fail("remove", key)
        self.blobs.pop(key, None)

    def calls_to(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def list_state() -> ListState:
    return ListState()


@pytest.fixture
def engine(record_store: FakeRecordStore, blob_store: FakeBlobStore, list_state: ListState) -> SyncEngine:
    """Engine wired to the in-memory fakes with default policies."""
    return SyncEngine(record_store, blob_store, list_state)
