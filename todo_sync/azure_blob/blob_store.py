"""
Azure Blob Storage blob store.

Stores todo attachments as block blobs in one container. Locators are
read-only SAS URLs:
- Account-key auth signs SAS tokens locally
- DefaultAzureCredential auth signs with a cached user delegation key
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import (
    BlobSasPermissions,
    ContentSettings,
    UserDelegationKey,
    generate_blob_sas,
)
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from ..clients.base import BlobStoreClient
from ..exceptions import AuthenticationError, BlobError, StorageConnectionError
from ..logging_utils import SyncLoggerAdapter, get_sync_logger

logger = get_sync_logger("azure_blob")

DEFAULT_CONTAINER = "todo-attachments"
DEFAULT_SAS_EXPIRY_SECONDS = 900

# Auth methods
AUTH_KEY = "key"
AUTH_DEFAULT_CREDENTIAL = "default_credential"

# Renew the user delegation key this long before it expires
_DELEGATION_KEY_MARGIN = timedelta(minutes=5)
_DELEGATION_KEY_LIFETIME = timedelta(hours=1)


@dataclass
class AzureBlobConfig:
    """Configuration for the Azure blob store.

    Attributes:
        account_url: Storage account blob endpoint (https://<account>.blob.core.windows.net)
        container_name: Container holding the attachments
        auth_method: Authentication method ('key' or 'default_credential')
        account_key: Storage account key (only needed if auth_method='key')
        sas_expiry_seconds: Lifetime of generated locators
        validate_existence: Check that the blob exists before returning a locator
    """

    account_url: str
    container_name: str = DEFAULT_CONTAINER
    auth_method: str = AUTH_DEFAULT_CREDENTIAL
    account_key: str | None = None
    sas_expiry_seconds: int = DEFAULT_SAS_EXPIRY_SECONDS
    validate_existence: bool = False

    @property
    def account_name(self) -> str:
        host = self.account_url.split("://", 1)[-1]
        return host.split(".", 1)[0]

    @classmethod
    def from_env(cls) -> AzureBlobConfig:
        """Create config from environment variables.

        Expected environment variables:
        - TODO_SYNC_BLOB_ACCOUNT_URL: Storage account blob endpoint
        - TODO_SYNC_BLOB_CONTAINER: Container name (default: todo-attachments)
        - TODO_SYNC_BLOB_AUTH_METHOD: 'key' or 'default_credential' (default)
        - TODO_SYNC_BLOB_ACCOUNT_KEY: Account key (only if auth_method='key')
        - TODO_SYNC_BLOB_SAS_EXPIRY: Locator lifetime in seconds (default: 900)
        """
        account_url = os.environ.get("TODO_SYNC_BLOB_ACCOUNT_URL")
        auth_method = os.environ.get("TODO_SYNC_BLOB_AUTH_METHOD", AUTH_DEFAULT_CREDENTIAL)
        account_key = os.environ.get("TODO_SYNC_BLOB_ACCOUNT_KEY")

        if not account_url:
            raise AuthenticationError("blob", "TODO_SYNC_BLOB_ACCOUNT_URL environment variable not set")
        if auth_method == AUTH_KEY and not account_key:
            raise AuthenticationError("blob", "TODO_SYNC_BLOB_ACCOUNT_KEY required when auth_method='key'")

        return cls(
            account_url=account_url,
            container_name=os.environ.get("TODO_SYNC_BLOB_CONTAINER", DEFAULT_CONTAINER),
            auth_method=auth_method,
            account_key=account_key,
            sas_expiry_seconds=int(
                os.environ.get("TODO_SYNC_BLOB_SAS_EXPIRY", DEFAULT_SAS_EXPIRY_SECONDS)
            ),
        )


class AzureBlobStore(BlobStoreClient):
    """Blob store backed by an Azure Storage container."""

    def __init__(self, config: AzureBlobConfig):
        self.config = config
        self._service: BlobServiceClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._container: ContainerClient | None = None
        self._delegation_key: UserDelegationKey | None = None
        self._delegation_key_expiry: datetime | None = None
        self._delegation_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Connect and ensure the container exists."""
        if self._container is not None:
            return

        try:
            if self.config.auth_method == AUTH_KEY:
                credential: object = {
                    "account_name": self.config.account_name,
                    "account_key": self.config.account_key,
                }
            else:
                self._credential = DefaultAzureCredential()
                credential = self._credential
            self._service = BlobServiceClient(self.config.account_url, credential=credential)
            container = self._service.get_container_client(self.config.container_name)
            try:
                await container.create_container()
            except ResourceExistsError:
                pass
            self._container = container
            logger.info(f"Azure blob store initialized: {self.config.account_url}")

        except AzureError as e:
            await self.close()
            status = getattr(e, "status_code", None)
            if status in (401, 403):
                raise AuthenticationError(self.config.account_url, str(e)) from e
            raise StorageConnectionError(self.config.account_url, e) from e

    async def close(self) -> None:
        if self._service:
            await self._service.close()
            self._service = None

        if self._credential:
            await self._credential.close()
            self._credential = None

        self._container = None
        self._delegation_key = None
        self._delegation_key_expiry = None

    def _get_container(self, operation: str, key: str) -> ContainerClient:
        if self._container is None:
            raise BlobError(operation, key, RuntimeError("Blob store not initialized"))
        return self._container

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        container = self._get_container("put", key)
        log = SyncLoggerAdapter(logger, {"blob_key": key})
        try:
            await container.upload_blob(
                name=key,
                data=data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            raise BlobError("put", key, e) from e
        log.debug(f"Uploaded {len(data)} bytes")

    async def resolve(self, key: str) -> str:
        container = self._get_container("resolve", key)
        blob = container.get_blob_client(key)
        try:
            if self.config.validate_existence and not await blob.exists():
                raise BlobError("resolve", key, ResourceNotFoundError(f"Blob not found: {key}"))

            expiry = datetime.now(UTC) + timedelta(seconds=self.config.sas_expiry_seconds)
            if self.config.auth_method == AUTH_KEY:
                token = generate_blob_sas(
                    account_name=self.config.account_name,
                    container_name=self.config.container_name,
                    blob_name=key,
                    account_key=self.config.account_key,
                    permission=BlobSasPermissions(read=True),
                    expiry=expiry,
                )
            else:
                delegation_key = await self._get_delegation_key(expiry)
                token = generate_blob_sas(
                    account_name=self.config.account_name,
                    container_name=self.config.container_name,
                    blob_name=key,
                    user_delegation_key=delegation_key,
                    permission=BlobSasPermissions(read=True),
                    expiry=expiry,
                )
        except AzureError as e:
            raise BlobError("resolve", key, e) from e
        return f"{blob.url}?{token}"

    async def _get_delegation_key(self, needed_until: datetime) -> UserDelegationKey:
        """Return a user delegation key valid until ``needed_until``.

        Concurrent resolutions share one request for a fresh key.
        """
        async with self._delegation_lock:
            if (
                self._delegation_key is not None
                and self._delegation_key_expiry is not None
                and self._delegation_key_expiry - _DELEGATION_KEY_MARGIN > needed_until
            ):
                return self._delegation_key

            if self._service is None:
                raise BlobError("resolve", cause=RuntimeError("Blob store not initialized"))
            start = datetime.now(UTC)
            expiry = max(start + _DELEGATION_KEY_LIFETIME, needed_until + _DELEGATION_KEY_MARGIN * 2)
            self._delegation_key = await self._service.get_user_delegation_key(
                key_start_time=start, key_expiry_time=expiry
            )
            self._delegation_key_expiry = expiry
            return self._delegation_key

    async def remove(self, key: str) -> None:
        container = self._get_container("remove", key)
        try:
            await container.delete_blob(key)
        except AzureError as e:
            raise BlobError("remove", key, e) from e
