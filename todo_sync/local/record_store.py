"""
File-backed record store for development and offline demos.

Keeps all records in one JSON document ({"items": [...]}) rewritten
atomically on every mutation. Ids and timestamps are assigned here, the
same way the remote store assigns them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..clients.base import RecordStoreClient
from ..exceptions import RemoteError
from ..models import TodoRecord
from .file_ops import read_json, write_json_atomic

logger = logging.getLogger(__name__)

DEFAULT_RECORDS_FILE = Path.home() / ".todo_sync" / "todos.json"


class LocalRecordStore(RecordStoreClient):
    """Record store persisted to a local JSON file."""

    def __init__(self, path: Path | None = None):
        """Initialize the local record store.

        Args:
            path: JSON file holding the records
        """
        self.path = path or DEFAULT_RECORDS_FILE
        self._lock = asyncio.Lock()

    async def list(self) -> Sequence[TodoRecord]:
        items = await self._load("list")
        return [TodoRecord.from_store_dict(item) for item in items]

    async def create(self, record: TodoRecord) -> str:
        now = datetime.now(UTC).isoformat()
        doc = {
            **record.to_store_dict(),
            "id": str(uuid.uuid4()),
            "createdAt": now,
            "updatedAt": now,
        }
        async with self._lock:
            items = await self._load("create")
            items.append(doc)
            await self._save("create", items)
        logger.debug(f"Stored todo {doc['id']} in {self.path}")
        return doc["id"]

    async def delete(self, record_id: str) -> None:
        async with self._lock:
            items = await self._load("delete")
            kept = [item for item in items if item.get("id") != record_id]
            if len(kept) == len(items):
                raise RemoteError(
                    "delete", record_id, message=f"Todo not found: {record_id}"
                )
            await self._save("delete", kept)

    async def _load(self, operation: str) -> list[dict[str, Any]]:
        try:
            data = await read_json(self.path)
        except (OSError, ValueError) as e:
            raise RemoteError(operation, cause=e) from e
        if data is None:
            return []
        return list(data.get("items", []))

    async def _save(self, operation: str, items: list[dict[str, Any]]) -> None:
        try:
            await write_json_atomic(self.path, {"items": items})
        except OSError as e:
            raise RemoteError(operation, cause=e) from e
