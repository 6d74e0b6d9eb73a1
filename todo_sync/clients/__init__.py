"""
Store client interfaces.

Backends live in sibling packages:
- todo_sync.cosmos: Azure Cosmos DB record store
- todo_sync.azure_blob: Azure Blob Storage blob store
- todo_sync.local: file-backed record and blob stores for development
"""

from .base import BlobStoreClient, RecordStoreClient

__all__ = ["RecordStoreClient", "BlobStoreClient"]
