"""Blob key derivation.

One rule, applied by both create and delete: the blob key is the
attachment's own file name (directory components stripped), optionally
under a configured prefix. The key is persisted as the record's ``image``
field, so delete removes exactly the blob that create uploaded.
"""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath

from .exceptions import ValidationError
from .models import Attachment, TodoRecord


def blob_key_for_attachment(attachment: Attachment, prefix: str = "") -> str:
    """Derive the blob key for a new attachment.

    Raises:
        ValidationError: If the file name is empty after stripping directories
    """
    # Browsers may submit "C:\fakepath\photo.png"; keep the base name only
    filename = PureWindowsPath(PurePosixPath(attachment.filename).name).name.strip()
    if not filename or filename in (".", ".."):
        raise ValidationError("attachment", "file name is empty", attachment.filename)
    return join_key(prefix, filename)


def blob_key_for_record(record: TodoRecord) -> str | None:
    """Return the blob key a record's attachment was stored under.

    The persisted ``image`` field is the key; the locator is never used.
    """
    return record.image or None


def join_key(prefix: str, name: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/{name}" if prefix else name
