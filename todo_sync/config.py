"""
Configuration for todo sync clients.

Settings come from a YAML file and/or environment variables. The
configured clients are built once at application start and handed to
SyncEngine; nothing here keeps module-level client state.

Settings file (~/.todo_sync/settings.yaml):

```yaml
todo_sync:
  record_backend: cosmos          # cosmos | local
  blob_backend: azure             # azure | local
  cosmos:
    endpoint: "https://myaccount.documents.azure.com:443/"
    database: todo-sync-db
    container: todos
    auth_method: default_credential
  blob:
    account_url: "https://myaccount.blob.core.windows.net"
    container: todo-attachments
    sas_expiry_seconds: 900
    key_prefix: public
  local:
    records_path: ~/.todo_sync/todos.json
    blob_dir: ~/.todo_sync/blobs
  resolution_policy: strict       # strict | lenient
  delete_policy: confirmed        # confirmed | optimistic
```
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .azure_blob.blob_store import AzureBlobConfig, AzureBlobStore
from .clients.base import BlobStoreClient, RecordStoreClient
from .cosmos.record_store import CosmosRecordConfig, CosmosRecordStore
from .engine import DeletePolicy, EngineConfig, ResolutionPolicy
from .exceptions import ConfigurationError
from .local.blob_store import DEFAULT_BLOB_DIR, LocalBlobStore
from .local.record_store import DEFAULT_RECORDS_FILE, LocalRecordStore

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".todo_sync" / "settings.yaml"

RECORD_BACKENDS = ("cosmos", "local")
BLOB_BACKENDS = ("azure", "local")

# Environment variable -> config attribute
_ENV_MAP = {
    "TODO_SYNC_RECORD_BACKEND": "record_backend",
    "TODO_SYNC_BLOB_BACKEND": "blob_backend",
    "TODO_SYNC_COSMOS_ENDPOINT": "cosmos_endpoint",
    "TODO_SYNC_COSMOS_DATABASE": "cosmos_database",
    "TODO_SYNC_COSMOS_CONTAINER": "cosmos_container",
    "TODO_SYNC_COSMOS_AUTH_METHOD": "cosmos_auth_method",
    "TODO_SYNC_COSMOS_KEY": "cosmos_key",
    "TODO_SYNC_BLOB_ACCOUNT_URL": "blob_account_url",
    "TODO_SYNC_BLOB_CONTAINER": "blob_container",
    "TODO_SYNC_BLOB_AUTH_METHOD": "blob_auth_method",
    "TODO_SYNC_BLOB_ACCOUNT_KEY": "blob_account_key",
    "TODO_SYNC_BLOB_SAS_EXPIRY": "blob_sas_expiry_seconds",
    "TODO_SYNC_BLOB_KEY_PREFIX": "blob_key_prefix",
    "TODO_SYNC_LOCAL_RECORDS_PATH": "local_records_path",
    "TODO_SYNC_LOCAL_BLOB_DIR": "local_blob_dir",
    "TODO_SYNC_RESOLUTION_POLICY": "resolution_policy",
    "TODO_SYNC_DELETE_POLICY": "delete_policy",
}


@dataclass
class TodoSyncConfig:
    """Configuration for the record store, blob store and engine.

    Attributes:
        record_backend: 'cosmos' or 'local'
        blob_backend: 'azure' or 'local'
        cosmos_*: Cosmos DB connection settings
        blob_*: Azure Blob Storage connection settings
        blob_key_prefix: Prefix prepended to every attachment key
        local_records_path: JSON file for the local record store
        local_blob_dir: Directory for the local blob store
        resolution_policy: How refresh handles unresolvable image keys
        delete_policy: When delete updates the local list
    """

    record_backend: str = "local"
    blob_backend: str = "local"

    cosmos_endpoint: str | None = None
    cosmos_database: str = "todo-sync-db"
    cosmos_container: str = "todos"
    cosmos_auth_method: str = "default_credential"
    cosmos_key: str | None = None

    blob_account_url: str | None = None
    blob_container: str = "todo-attachments"
    blob_auth_method: str = "default_credential"
    blob_account_key: str | None = None
    blob_sas_expiry_seconds: int = 900
    blob_key_prefix: str = ""

    local_records_path: Path = field(default_factory=lambda: DEFAULT_RECORDS_FILE)
    local_blob_dir: Path = field(default_factory=lambda: DEFAULT_BLOB_DIR)

    resolution_policy: ResolutionPolicy = ResolutionPolicy.STRICT
    delete_policy: DeletePolicy = DeletePolicy.CONFIRMED

    def __post_init__(self) -> None:
        self.local_records_path = Path(self.local_records_path).expanduser()
        self.local_blob_dir = Path(self.local_blob_dir).expanduser()
        try:
            self.blob_sas_expiry_seconds = int(self.blob_sas_expiry_seconds)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("blob_sas_expiry_seconds", "must be an integer") from e
        self.resolution_policy = _parse_enum(ResolutionPolicy, self.resolution_policy, "resolution_policy")
        self.delete_policy = _parse_enum(DeletePolicy, self.delete_policy, "delete_policy")

    @classmethod
    def from_env(cls, base: TodoSyncConfig | None = None) -> TodoSyncConfig:
        """Create config from TODO_SYNC_* environment variables.

        Args:
            base: Config whose values are kept where no variable is set
        """
        values = _as_dict(base) if base else {}
        for env_name, attr in _ENV_MAP.items():
            value = os.environ.get(env_name)
            if value is not None:
                values[attr] = value
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path | None = None) -> TodoSyncConfig:
        """Load config from the ``todo_sync`` section of a YAML settings file.

        A missing file yields the defaults.
        """
        path = path or DEFAULT_SETTINGS_PATH
        if not path.exists():
            logger.debug(f"No settings file at {path}, using defaults")
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(str(path), f"could not read settings: {e}") from e

        section = raw.get("todo_sync", {}) if isinstance(raw, dict) else {}
        if not isinstance(section, dict):
            raise ConfigurationError("todo_sync", "settings section must be a mapping")
        return cls(**_flatten_settings(section))

    @classmethod
    def load(cls, path: Path | None = None) -> TodoSyncConfig:
        """Load the settings file, then apply environment overrides."""
        return cls.from_env(base=cls.from_file(path))

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            resolution_policy=self.resolution_policy,
            delete_policy=self.delete_policy,
            key_prefix=self.blob_key_prefix,
        )

    def build_record_store(self) -> RecordStoreClient:
        """Construct (but do not connect) the configured record store."""
        if self.record_backend == "local":
            return LocalRecordStore(self.local_records_path)
        if self.record_backend == "cosmos":
            if not self.cosmos_endpoint:
                raise ConfigurationError("cosmos_endpoint", "required for the cosmos backend")
            return CosmosRecordStore(
                CosmosRecordConfig(
                    endpoint=self.cosmos_endpoint,
                    database_name=self.cosmos_database,
                    container_name=self.cosmos_container,
                    auth_method=self.cosmos_auth_method,
                    key=self.cosmos_key,
                )
            )
        raise ConfigurationError("record_backend", f"expected one of {RECORD_BACKENDS}")

    def build_blob_store(self) -> BlobStoreClient:
        """Construct (but do not connect) the configured blob store."""
        if self.blob_backend == "local":
            return LocalBlobStore(self.local_blob_dir)
        if self.blob_backend == "azure":
            if not self.blob_account_url:
                raise ConfigurationError("blob_account_url", "required for the azure backend")
            return AzureBlobStore(
                AzureBlobConfig(
                    account_url=self.blob_account_url,
                    container_name=self.blob_container,
                    auth_method=self.blob_auth_method,
                    account_key=self.blob_account_key,
                    sas_expiry_seconds=self.blob_sas_expiry_seconds,
                )
            )
        raise ConfigurationError("blob_backend", f"expected one of {BLOB_BACKENDS}")


@asynccontextmanager
async def open_clients(
    config: TodoSyncConfig,
) -> AsyncIterator[tuple[RecordStoreClient, BlobStoreClient]]:
    """Build, connect and finally close both store clients.

    Example:
        >>> async with open_clients(TodoSyncConfig.load()) as (records, blobs):
        ...     engine = SyncEngine(records, blobs, config=config.engine_config())
    """
    records = config.build_record_store()
    blobs = config.build_blob_store()
    await records.initialize()
    try:
        await blobs.initialize()
        try:
            yield records, blobs
        finally:
            await blobs.close()
    finally:
        await records.close()


def _parse_enum(enum_cls: Any, value: Any, setting: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(setting, f"expected one of {allowed}, got {value!r}") from e


def _as_dict(config: TodoSyncConfig) -> dict[str, Any]:
    return {f.name: getattr(config, f.name) for f in fields(config)}


def _flatten_settings(section: dict[str, Any]) -> dict[str, Any]:
    """Map the nested YAML layout onto flat config attributes."""
    nested = {
        "cosmos": {
            "endpoint": "cosmos_endpoint",
            "database": "cosmos_database",
            "container": "cosmos_container",
            "auth_method": "cosmos_auth_method",
            "key": "cosmos_key",
        },
        "blob": {
            "account_url": "blob_account_url",
            "container": "blob_container",
            "auth_method": "blob_auth_method",
            "account_key": "blob_account_key",
            "sas_expiry_seconds": "blob_sas_expiry_seconds",
            "key_prefix": "blob_key_prefix",
        },
        "local": {
            "records_path": "local_records_path",
            "blob_dir": "local_blob_dir",
        },
    }
    known = {f.name for f in fields(TodoSyncConfig)}
    values: dict[str, Any] = {}
    for key, value in section.items():
        if key in nested:
            if not isinstance(value, dict):
                raise ConfigurationError(key, "settings section must be a mapping")
            for sub_key, sub_value in value.items():
                attr = nested[key].get(sub_key)
                if attr is None:
                    logger.warning(f"Ignoring unknown setting {key}.{sub_key}")
                    continue
                values[attr] = sub_value
        elif key in known:
            values[key] = value
        else:
            logger.warning(f"Ignoring unknown setting {key}")
    return values
