"""
Todo Sync

Keeps a local list of todo records consistent with two remote stores:
a structured record store and a key-addressed blob store for attachments.

Provides:
- SyncEngine: refresh, create and delete with best-effort blob handling
- ListState: observable in-memory snapshot of the records
- Record store backends (Cosmos DB, local JSON file)
- Blob store backends (Azure Blob Storage, local directory)

Usage:

    >>> from todo_sync import SyncEngine, TodoForm, TodoSyncConfig, open_clients
    >>> config = TodoSyncConfig.load()
    >>> async with open_clients(config) as (records, blobs):
    ...     engine = SyncEngine(records, blobs, config=config.engine_config())
    ...     engine.list_state.subscribe(lambda change: print(len(change.records)))
    ...     result = await engine.create_todo(TodoForm("Buy milk", "2%"))
    ...     if not result.success:
    ...         print(result.kind, result.error)
"""

from .clients import BlobStoreClient, RecordStoreClient
from .config import TodoSyncConfig, open_clients
from .engine import DeletePolicy, EngineConfig, EngineState, ResolutionPolicy, SyncEngine
from .exceptions import (
    AuthenticationError,
    BlobError,
    ConfigurationError,
    RemoteError,
    StorageConnectionError,
    TodoSyncError,
    ValidationError,
)
from .models import Attachment, RecordState, TodoForm, TodoRecord
from .result import ErrorKind, SyncResult
from .state import ChangeType, ListChange, ListState

__all__ = [
    # Engine
    "SyncEngine",
    "EngineConfig",
    "EngineState",
    "ResolutionPolicy",
    "DeletePolicy",
    # State
    "ListState",
    "ListChange",
    "ChangeType",
    # Models
    "TodoRecord",
    "RecordState",
    "TodoForm",
    "Attachment",
    # Results
    "SyncResult",
    "ErrorKind",
    # Clients
    "RecordStoreClient",
    "BlobStoreClient",
    # Config
    "TodoSyncConfig",
    "open_clients",
    # Exceptions
    "TodoSyncError",
    "ValidationError",
    "RemoteError",
    "BlobError",
    "AuthenticationError",
    "StorageConnectionError",
    "ConfigurationError",
]

__version__ = "0.1.0"
