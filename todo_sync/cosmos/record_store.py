"""
Cosmos DB record store.

Stores todo records as documents in one Azure Cosmos DB container:
- Partition key /id (records are independent)
- Ids assigned client-side with uuid4 when a record is created
- Listing in store order, without re-sorting
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential

from ..clients.base import RecordStoreClient
from ..exceptions import AuthenticationError, RemoteError, StorageConnectionError
from ..logging_utils import get_sync_logger
from ..models import TodoRecord

logger = get_sync_logger("cosmos")

DEFAULT_DATABASE = "todo-sync-db"
DEFAULT_CONTAINER = "todos"
RECORD_TYPENAME = "Todo"

# Auth methods
AUTH_KEY = "key"
AUTH_DEFAULT_CREDENTIAL = "default_credential"

_LIST_QUERY = "SELECT c.id, c.name, c.description, c.image, c.createdAt, c.updatedAt FROM c"


@dataclass
class CosmosRecordConfig:
    """Configuration for the Cosmos record store.

    Attributes:
        endpoint: Cosmos DB account endpoint URL
        database_name: Name of the database
        container_name: Name of the todo container
        auth_method: Authentication method ('key' or 'default_credential')
        key: Cosmos DB account key (only needed if auth_method='key')
    """

    endpoint: str
    database_name: str = DEFAULT_DATABASE
    container_name: str = DEFAULT_CONTAINER
    auth_method: str = AUTH_DEFAULT_CREDENTIAL
    key: str | None = None

    @classmethod
    def from_env(cls) -> CosmosRecordConfig:
        """Create config from environment variables.

        Expected environment variables:
        - TODO_SYNC_COSMOS_ENDPOINT: Cosmos DB account endpoint
        - TODO_SYNC_COSMOS_DATABASE: Database name (default: todo-sync-db)
        - TODO_SYNC_COSMOS_CONTAINER: Container name (default: todos)
        - TODO_SYNC_COSMOS_AUTH_METHOD: 'key' or 'default_credential' (default)
        - TODO_SYNC_COSMOS_KEY: Account key (only if auth_method='key')
        """
        endpoint = os.environ.get("TODO_SYNC_COSMOS_ENDPOINT")
        auth_method = os.environ.get("TODO_SYNC_COSMOS_AUTH_METHOD", AUTH_DEFAULT_CREDENTIAL)
        key = os.environ.get("TODO_SYNC_COSMOS_KEY")

        if not endpoint:
            raise AuthenticationError("cosmos", "TODO_SYNC_COSMOS_ENDPOINT environment variable not set")
        if auth_method == AUTH_KEY and not key:
            raise AuthenticationError("cosmos", "TODO_SYNC_COSMOS_KEY required when auth_method='key'")

        return cls(
            endpoint=endpoint,
            database_name=os.environ.get("TODO_SYNC_COSMOS_DATABASE", DEFAULT_DATABASE),
            container_name=os.environ.get("TODO_SYNC_COSMOS_CONTAINER", DEFAULT_CONTAINER),
            auth_method=auth_method,
            key=key,
        )


class CosmosRecordStore(RecordStoreClient):
    """Record store backed by an Azure Cosmos DB container."""

    def __init__(self, config: CosmosRecordConfig):
        self.config = config
        self._client: CosmosClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._database: DatabaseProxy | None = None
        self._container: ContainerProxy | None = None

    @classmethod
    async def create_store(cls, config: CosmosRecordConfig | None = None) -> CosmosRecordStore:
        """Create and initialize a store (config defaults to env vars)."""
        store = cls(config or CosmosRecordConfig.from_env())
        await store.initialize()
        return store

    async def initialize(self) -> None:
        """Connect and ensure the database and container exist."""
        if self._container is not None:
            return

        try:
            if self.config.auth_method == AUTH_KEY:
                self._client = CosmosClient(self.config.endpoint, credential=self.config.key)
            else:
                self._credential = DefaultAzureCredential()
                self._client = CosmosClient(self.config.endpoint, credential=self._credential)

            self._database = await self._client.create_database_if_not_exists(
                id=self.config.database_name
            )
            self._container = await self._database.create_container_if_not_exists(
                id=self.config.container_name,
                partition_key=PartitionKey(path="/id"),
            )
            logger.info(f"Cosmos record store initialized: {self.config.endpoint}")

        except CosmosHttpResponseError as e:
            await self.close()
            if e.status_code in (401, 403):
                raise AuthenticationError(self.config.endpoint, str(e)) from e
            raise StorageConnectionError(self.config.endpoint, e) from e
        except Exception as e:
            await self.close()
            raise StorageConnectionError(self.config.endpoint, e) from e

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None

        if self._credential:
            await self._credential.close()
            self._credential = None

        self._database = None
        self._container = None

    def _get_container(self, operation: str) -> ContainerProxy:
        if self._container is None:
            raise RemoteError(operation, cause=RuntimeError("Record store not initialized"))
        return self._container

    async def list(self) -> Sequence[TodoRecord]:
        container = self._get_container("list")
        records: list[TodoRecord] = []
        try:
            async for item in container.query_items(query=_LIST_QUERY):
                records.append(TodoRecord.from_store_dict(item))
        except CosmosHttpResponseError as e:
            raise RemoteError("list", cause=e) from e
        return records

    async def create(self, record: TodoRecord) -> str:
        container = self._get_container("create")
        now = datetime.now(UTC).isoformat()
        doc: dict[str, Any] = {
            **record.to_store_dict(),
            "id": str(uuid.uuid4()),
            "createdAt": now,
            "updatedAt": now,
            "__typename": RECORD_TYPENAME,
        }
        try:
            await container.create_item(body=doc)
        except CosmosHttpResponseError as e:
            raise RemoteError("create", doc["id"], e) from e
        return doc["id"]

    async def delete(self, record_id: str) -> None:
        container = self._get_container("delete")
        try:
            await container.delete_item(item=record_id, partition_key=record_id)
        except CosmosResourceNotFoundError as e:
            raise RemoteError("delete", record_id, e, message=f"Todo not found: {record_id}") from e
        except CosmosHttpResponseError as e:
            raise RemoteError("delete", record_id, e) from e
