"""
Todo record types.

A record moves through PENDING -> PERSISTED -> ENRICHED -> DELETED.
Only PERSISTED and DELETED are visible to the record store; ENRICHED
exists solely in the in-memory list and carries a blob locator next to
(never instead of) the persisted blob key.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class RecordState(Enum):
    """Lifecycle state of a todo record as tracked by the engine."""

    PENDING = "pending"
    PERSISTED = "persisted"
    ENRICHED = "enriched"
    DELETED = "deleted"


@dataclass(frozen=True)
class TodoRecord:
    """A single todo record.

    Attributes:
        id: Identifier assigned by the record store (None before creation)
        name: Non-empty display name
        description: Non-empty description
        image: Blob key of the attachment, exactly as persisted
        image_url: Resolved locator for the blob (enriched records only)
        state: Lifecycle state
        created_at: Store-assigned creation timestamp (ISO 8601)
        updated_at: Store-assigned update timestamp (ISO 8601)
        image_error: Reason the locator could not be resolved (lenient refresh only)
    """

    name: str
    description: str
    id: str | None = None
    image: str | None = None
    image_url: str | None = None
    state: RecordState = RecordState.PENDING
    created_at: str | None = None
    updated_at: str | None = None
    image_error: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    @property
    def is_enriched(self) -> bool:
        return self.state == RecordState.ENRICHED

    @property
    def display_image(self) -> str | None:
        """Locator to render, or None when the record is not enriched."""
        return self.image_url if self.is_enriched else None

    def enrich(self, locator: str) -> TodoRecord:
        """Return an enriched copy holding ``locator`` for display.

        Raises:
            ValueError: If the record is already enriched or has no image key
        """
        if self.is_enriched:
            raise ValueError(f"Record {self.id} is already enriched")
        if not self.image:
            raise ValueError(f"Record {self.id} has no image key to resolve")
        return replace(self, image_url=locator, image_error=None, state=RecordState.ENRICHED)

    def with_unresolved_image(self, reason: str) -> TodoRecord:
        """Return a copy flagged as having an image key that failed to resolve."""
        return replace(self, image_url=None, image_error=reason)

    def mark_deleted(self) -> TodoRecord:
        return replace(self, image_url=None, state=RecordState.DELETED)

    def to_store_dict(self) -> dict[str, Any]:
        """Serialize to the persisted form.

        Only the blob key is written; the locator never leaves the process.
        """
        data: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.id is not None:
            data["id"] = self.id
        if self.image:
            data["image"] = self.image
        return data

    @classmethod
    def from_store_dict(cls, data: dict[str, Any]) -> TodoRecord:
        """Deserialize a record as returned by the record store."""
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            description=data.get("description", ""),
            image=data.get("image") or None,
            state=RecordState.PERSISTED,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass(frozen=True)
class Attachment:
    """A file-like attachment submitted with a new todo."""

    filename: str
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def is_empty(self) -> bool:
        """An empty file input (no filename) counts as no attachment."""
        return not self.filename

    @classmethod
    async def from_path(cls, path: Path, content_type: str | None = None) -> Attachment:
        """Read an attachment from disk.

        Args:
            path: File to read
            content_type: Explicit MIME type (guessed from the suffix if omitted)
        """
        async with aiofiles.open(path, "rb") as f:
            data = await f.read()
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
        return cls(filename=path.name, data=data, content_type=content_type)


@dataclass
class TodoForm:
    """Input for creating a todo."""

    name: str
    description: str
    attachment: Attachment | None = None

    @property
    def has_attachment(self) -> bool:
        return self.attachment is not None and not self.attachment.is_empty
