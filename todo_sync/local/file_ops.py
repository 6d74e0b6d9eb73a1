"""
File operations for the local development backends.

Provides async helpers built on aiofiles:
- Atomic writes using temp file + rename
- JSON documents and raw byte blobs

Helpers raise OSError (and ValueError for malformed JSON); the backends
translate these into RemoteError or BlobError.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary."""
    await aiofiles.os.makedirs(path, exist_ok=True)


async def read_json(path: Path) -> dict[str, Any] | None:
    """Read a JSON file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON data or None if file doesn't exist or is empty
    """
    if not await aiofiles.os.path.exists(path):
        return None
    async with aiofiles.open(path, encoding="utf-8") as f:
        content = await f.read()
    return json.loads(content) if content.strip() else None


async def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON file atomically using temp file + rename."""
    payload = json.dumps(data, indent=2).encode("utf-8")
    await write_bytes_atomic(path, payload, suffix=".json")


async def write_bytes_atomic(path: Path, data: bytes, suffix: str = ".tmp") -> None:
    """Write bytes atomically using temp file + rename.

    Args:
        path: Target path
        data: Content to write
        suffix: Suffix for the temp file
    """
    await ensure_directory(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=suffix)
    try:
        os.close(fd)
        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(data)
            await f.flush()
            os.fsync(f.fileno())

        await aiofiles.os.replace(temp_path, path)
    except Exception:
        try:
            await aiofiles.os.remove(temp_path)
        except OSError:
            pass
        raise


async def file_exists(path: Path) -> bool:
    try:
        return await aiofiles.os.path.isfile(path)
    except OSError:
        return False


async def remove_file(path: Path) -> bool:
    """Remove a file if it exists.

    Returns:
        True if file was removed, False if it didn't exist
    """
    if await aiofiles.os.path.exists(path):
        await aiofiles.os.remove(path)
        return True
    return False
