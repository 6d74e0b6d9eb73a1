"""
Cosmos DB record store.

Persists todo records in an Azure Cosmos DB container, authenticating
with an account key or DefaultAzureCredential.
"""

from .record_store import CosmosRecordConfig, CosmosRecordStore

__all__ = ["CosmosRecordStore", "CosmosRecordConfig"]
