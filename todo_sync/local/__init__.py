"""
Local file-backed store clients.

Useful for development, demos and tests without Azure resources:
- LocalRecordStore: records in a single JSON document
- LocalBlobStore: attachments as files, file:// locators
"""

from .blob_store import LocalBlobStore
from .record_store import LocalRecordStore

__all__ = ["LocalRecordStore", "LocalBlobStore"]
