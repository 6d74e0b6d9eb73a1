"""Tests for TodoSyncConfig loading and client construction."""

import os
from pathlib import Path

import pytest

from todo_sync import (
    ConfigurationError,
    DeletePolicy,
    ResolutionPolicy,
    TodoSyncConfig,
    open_clients,
)
from todo_sync.azure_blob import AzureBlobStore
from todo_sync.cosmos import CosmosRecordStore
from todo_sync.local import LocalBlobStore, LocalRecordStore

SETTINGS = """
todo_sync:
  record_backend: cosmos
  blob_backend: azure
  cosmos:
    endpoint: "https://example.documents.azure.com:443/"
    container: my-todos
  blob:
    account_url: "https://example.blob.core.windows.net"
    sas_expiry_seconds: 60
    key_prefix: public
  resolution_policy: lenient
  delete_policy: optimistic
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep TODO_SYNC_* variables from the host out of the tests."""
    for name in list(os.environ):
        if name.startswith("TODO_SYNC_"):
            monkeypatch.delenv(name)


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(SETTINGS, encoding="utf-8")
    return path


class TestTodoSyncConfig:
    """Tests for configuration sources."""

    def test_defaults_use_local_backends(self):
        config = TodoSyncConfig()
        assert config.record_backend == "local"
        assert config.blob_backend == "local"
        assert config.resolution_policy == ResolutionPolicy.STRICT
        assert config.delete_policy == DeletePolicy.CONFIRMED

    def test_from_file(self, settings_file: Path):
        config = TodoSyncConfig.from_file(settings_file)

        assert config.record_backend == "cosmos"
        assert config.cosmos_endpoint == "https://example.documents.azure.com:443/"
        assert config.cosmos_container == "my-todos"
        assert config.cosmos_database == "todo-sync-db"
        assert config.blob_sas_expiry_seconds == 60
        assert config.blob_key_prefix == "public"
        assert config.resolution_policy == ResolutionPolicy.LENIENT
        assert config.delete_policy == DeletePolicy.OPTIMISTIC

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert TodoSyncConfig.from_file(tmp_path / "nope.yaml") == TodoSyncConfig()

    def test_env_overrides_file(self, settings_file: Path, monkeypatch):
        monkeypatch.setenv("TODO_SYNC_COSMOS_CONTAINER", "from-env")
        monkeypatch.setenv("TODO_SYNC_BLOB_SAS_EXPIRY", "120")
        monkeypatch.setenv("TODO_SYNC_RESOLUTION_POLICY", "STRICT")

        config = TodoSyncConfig.load(settings_file)

        assert config.cosmos_container == "from-env"
        assert config.cosmos_endpoint == "https://example.documents.azure.com:443/"
        assert config.blob_sas_expiry_seconds == 120
        assert config.resolution_policy == ResolutionPolicy.STRICT

    def test_invalid_policy(self):
        with pytest.raises(ConfigurationError) as exc_info:
            TodoSyncConfig(delete_policy="eventually")
        assert exc_info.value.setting == "delete_policy"

    def test_invalid_expiry(self, monkeypatch):
        monkeypatch.setenv("TODO_SYNC_BLOB_SAS_EXPIRY", "soon")
        with pytest.raises(ConfigurationError):
            TodoSyncConfig.from_env()

    def test_malformed_yaml(self, tmp_path: Path):
        path = tmp_path / "settings.yaml"
        path.write_text("todo_sync: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            TodoSyncConfig.from_file(path)

    def test_unknown_settings_are_ignored(self, tmp_path: Path, caplog):
        path = tmp_path / "settings.yaml"
        path.write_text("todo_sync:\n  colour: blue\n  cosmos:\n    region: west\n", encoding="utf-8")

        config = TodoSyncConfig.from_file(path)

        assert config == TodoSyncConfig()
        assert "colour" in caplog.text
        assert "cosmos.region" in caplog.text

    def test_engine_config(self, settings_file: Path):
        engine_config = TodoSyncConfig.from_file(settings_file).engine_config()
        assert engine_config.key_prefix == "public"
        assert engine_config.resolution_policy == ResolutionPolicy.LENIENT


class TestClientFactory:
    """Tests for building store clients from config."""

    def test_builds_azure_clients(self, settings_file: Path):
        config = TodoSyncConfig.from_file(settings_file)

        records = config.build_record_store()
        blobs = config.build_blob_store()

        assert isinstance(records, CosmosRecordStore)
        assert records.config.container_name == "my-todos"
        assert isinstance(blobs, AzureBlobStore)
        assert blobs.config.account_name == "example"
        assert blobs.config.sas_expiry_seconds == 60

    def test_cosmos_requires_endpoint(self):
        with pytest.raises(ConfigurationError):
            TodoSyncConfig(record_backend="cosmos").build_record_store()

    def test_azure_requires_account_url(self):
        with pytest.raises(ConfigurationError):
            TodoSyncConfig(blob_backend="azure").build_blob_store()

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            TodoSyncConfig(record_backend="dynamo").build_record_store()

    @pytest.mark.asyncio
    async def test_open_local_clients(self, tmp_path: Path):
        config = TodoSyncConfig(
            local_records_path=tmp_path / "todos.json",
            local_blob_dir=tmp_path / "blobs",
        )

        async with open_clients(config) as (records, blobs):
            assert isinstance(records, LocalRecordStore)
            assert isinstance(blobs, LocalBlobStore)
            assert await records.list() == []
