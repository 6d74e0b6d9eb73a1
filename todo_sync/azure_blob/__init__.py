"""
Azure Blob Storage blob store.

Uploads todo attachments to a container and resolves their keys to
time-limited SAS URLs.
"""

from .blob_store import AzureBlobConfig, AzureBlobStore

__all__ = ["AzureBlobStore", "AzureBlobConfig"]
