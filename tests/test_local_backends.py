"""
Tests for the file-backed record and blob stores.

Also runs the sync engine end to end against them.
"""

from pathlib import Path

import pytest

from todo_sync import (
    Attachment,
    BlobError,
    RecordState,
    RemoteError,
    SyncEngine,
    TodoForm,
    TodoRecord,
)
from todo_sync.local import LocalBlobStore, LocalRecordStore


@pytest.fixture
def records_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "todos.json"


@pytest.fixture
def blob_dir(tmp_path: Path) -> Path:
    return tmp_path / "blobs"


class TestLocalRecordStore:
    """Tests for LocalRecordStore."""

    @pytest.mark.asyncio
    async def test_missing_file_lists_nothing(self, records_path: Path) -> None:
        store = LocalRecordStore(records_path)
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, records_path: Path) -> None:
        store = LocalRecordStore(records_path)

        record_id = await store.create(TodoRecord(name="Buy milk", description="2%", image="a.png"))
        (record,) = await store.list()

        assert record.id == record_id
        assert record.state == RecordState.PERSISTED
        assert record.image == "a.png"
        assert record.created_at is not None
        assert record.created_at == record.updated_at

    @pytest.mark.asyncio
    async def test_records_survive_new_instance_in_order(self, records_path: Path) -> None:
        store = LocalRecordStore(records_path)
        for name in ("first", "second", "third"):
            await store.create(TodoRecord(name=name, description="d"))

        reopened = LocalRecordStore(records_path)

        assert [r.name for r in await reopened.list()] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_delete(self, records_path: Path) -> None:
        store = LocalRecordStore(records_path)
        keep = await store.create(TodoRecord(name="keep", description="d"))
        drop = await store.create(TodoRecord(name="drop", description="d"))

        await store.delete(drop)

        assert [r.id for r in await store.list()] == [keep]

    @pytest.mark.asyncio
    async def test_delete_unknown_id_raises(self, records_path: Path) -> None:
        store = LocalRecordStore(records_path)
        await store.create(TodoRecord(name="keep", description="d"))

        with pytest.raises(RemoteError) as exc_info:
            await store.delete("missing")
        assert exc_info.value.record_id == "missing"

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_remote_error(self, records_path: Path) -> None:
        records_path.parent.mkdir(parents=True)
        records_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(RemoteError):
            await LocalRecordStore(records_path).list()


class TestLocalBlobStore:
    """Tests for LocalBlobStore."""

    @pytest.mark.asyncio
    async def test_put_resolve_remove(self, blob_dir: Path) -> None:
        store = LocalBlobStore(blob_dir)

        await store.put("public/a.png", b"png", "image/png")
        locator = await store.resolve("public/a.png")

        assert locator.startswith("file://")
        assert locator.endswith("/public/a.png")
        assert (blob_dir / "public" / "a.png").read_bytes() == b"png"

        await store.remove("public/a.png")
        assert not (blob_dir / "public" / "a.png").exists()

    @pytest.mark.asyncio
    async def test_put_overwrites(self, blob_dir: Path) -> None:
        store = LocalBlobStore(blob_dir)
        await store.put("a.png", b"old", "image/png")
        await store.put("a.png", b"new", "image/png")
        assert (blob_dir / "a.png").read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_resolve_missing_raises(self, blob_dir: Path) -> None:
        with pytest.raises(BlobError) as exc_info:
            await LocalBlobStore(blob_dir).resolve("missing.png")
        assert exc_info.value.key == "missing.png"

    @pytest.mark.asyncio
    async def test_remove_missing_raises(self, blob_dir: Path) -> None:
        with pytest.raises(BlobError):
            await LocalBlobStore(blob_dir).remove("missing.png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["../escape.png", "", "a/../../escape.png"])
    async def test_keys_cannot_escape_directory(self, blob_dir: Path, key: str) -> None:
        with pytest.raises(BlobError):
            await LocalBlobStore(blob_dir).put(key, b"x", "image/png")


class TestEngineWithLocalStores:
    """End-to-end flows over the file-backed stores."""

    @pytest.mark.asyncio
    async def test_create_refresh_delete(self, records_path: Path, blob_dir: Path) -> None:
        engine = SyncEngine(LocalRecordStore(records_path), LocalBlobStore(blob_dir))

        created = await engine.create_todo(
            TodoForm("Buy milk", "2%", Attachment("buy-milk.png", b"png", "image/png"))
        )

        assert created.success
        (todo,) = engine.list_state.records
        assert todo.is_enriched
        assert todo.display_image == (blob_dir / "buy-milk.png").resolve().as_uri()

        deleted = await engine.delete_todo(todo)

        assert deleted.success
        assert len(engine.list_state) == 0
        assert not (blob_dir / "buy-milk.png").exists()
        assert await engine.records.list() == []

    @pytest.mark.asyncio
    async def test_missing_blob_fails_strict_refresh(self, records_path: Path, blob_dir: Path) -> None:
        """A record whose blob never made it to the store breaks a strict refresh."""
        records = LocalRecordStore(records_path)
        await records.create(TodoRecord(name="orphan", description="d", image="gone.png"))
        engine = SyncEngine(records, LocalBlobStore(blob_dir))

        result = await engine.refresh()

        assert not result.success
        assert result.details["failed_keys"] == ["gone.png"]
