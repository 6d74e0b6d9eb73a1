"""
Directory-backed blob store for development and offline demos.

Each key maps to a file under the base directory. Locators are
``file://`` URIs.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..clients.base import BlobStoreClient
from ..exceptions import BlobError
from .file_ops import file_exists, remove_file, write_bytes_atomic

logger = logging.getLogger(__name__)

DEFAULT_BLOB_DIR = Path.home() / ".todo_sync" / "blobs"


class LocalBlobStore(BlobStoreClient):
    """Blob store persisted to a local directory."""

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = (base_dir or DEFAULT_BLOB_DIR).resolve()

    def path_for(self, key: str) -> Path:
        """Map a key to a file path inside the base directory.

        Raises:
            BlobError: If the key is empty or escapes the base directory
        """
        if not key:
            raise BlobError("resolve_path", key, ValueError("empty key"))
        path = (self.base_dir / key).resolve()
        if not path.is_relative_to(self.base_dir) or path == self.base_dir:
            raise BlobError("resolve_path", key, ValueError("key escapes blob directory"))
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self.path_for(key)
        try:
            await write_bytes_atomic(path, data)
        except OSError as e:
            raise BlobError("put", key, e) from e
        logger.debug(f"Stored blob {key} ({len(data)} bytes, {content_type})")

    async def resolve(self, key: str) -> str:
        path = self.path_for(key)
        if not await file_exists(path):
            raise BlobError("resolve", key, FileNotFoundError(str(path)))
        return path.as_uri()

    async def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            removed = await remove_file(path)
        except OSError as e:
            raise BlobError("remove", key, e) from e
        if not removed:
            raise BlobError("remove", key, FileNotFoundError(str(path)))
