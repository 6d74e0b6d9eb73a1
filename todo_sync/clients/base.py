"""
Abstract store client interfaces.

Defines the contract every record store and blob store backend must
implement. The sync engine depends only on these interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..models import TodoRecord


class RecordStoreClient(ABC):
    """Typed facade over the remote structured record store.

    Implementations raise RemoteError (or a subclass) for every
    transport, auth or logic failure.
    """

    async def initialize(self) -> None:
        """Open connections. Default is a no-op."""

    async def close(self) -> None:
        """Release connections. Default is a no-op."""

    async def __aenter__(self) -> RecordStoreClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @abstractmethod
    async def list(self) -> Sequence[TodoRecord]:
        """Return all records in persisted form, in store order."""

    @abstractmethod
    async def create(self, record: TodoRecord) -> str | None:
        """Persist a new record.

        Args:
            record: Record without an id

        Returns:
            The id assigned by the store, if the backend reports one
        """

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Delete a record by id.

        Raises:
            RemoteError: If the id does not exist or the call fails
        """


class BlobStoreClient(ABC):
    """Facade over the remote key-addressed object store.

    Implementations raise BlobError for every failure. ``resolve`` must
    be safe to call concurrently for many keys.
    """

    async def initialize(self) -> None:
        """Open connections. Default is a no-op."""

    async def close(self) -> None:
        """Release connections. Default is a no-op."""

    async def __aenter__(self) -> BlobStoreClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload or overwrite the object at ``key``."""

    @abstractmethod
    async def resolve(self, key: str) -> str:
        """Return a fetchable locator (URL or equivalent) for ``key``."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete the object at ``key``."""
