"""
Synchronization engine for todo records and their attachments.

Stitches the record store and the blob store into one consistent list:
- Refresh: list records, resolve blob keys to locators concurrently, replace the list
- Create: upload the attachment (best effort), create the record, refresh
- Delete: remove the attachment (best effort), delete the record, update the list

Blob failures during create and delete are logged and swallowed. Record
store failures are returned as failed results; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from .clients.base import BlobStoreClient, RecordStoreClient
from .exceptions import BlobError, RemoteError, TodoSyncError, ValidationError
from .keys import blob_key_for_attachment, blob_key_for_record
from .models import TodoForm, TodoRecord
from .result import SyncResult
from .state import ListState

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Current state of the sync engine."""

    IDLE = "idle"
    BUSY = "busy"
    ERROR = "error"


class ResolutionPolicy(Enum):
    """How refresh treats a blob key that fails to resolve.

    STRICT: one failure fails the whole refresh and leaves the list untouched
    LENIENT: the record keeps its key unresolved and is flagged via ``image_error``
    """

    STRICT = "strict"
    LENIENT = "lenient"


class DeletePolicy(Enum):
    """When delete updates the local list.

    CONFIRMED: after the record store confirms the delete
    OPTIMISTIC: before the remote calls; not restored if the delete fails
    """

    CONFIRMED = "confirmed"
    OPTIMISTIC = "optimistic"


@dataclass
class EngineConfig:
    """Configuration for the sync engine."""

    resolution_policy: ResolutionPolicy = ResolutionPolicy.STRICT
    delete_policy: DeletePolicy = DeletePolicy.CONFIRMED
    key_prefix: str = ""


class SyncEngine:
    """Orchestrates the record store and blob store for one todo list.

    The engine owns no transport. Clients are constructed once by the
    application and passed in.

    Example:
        >>> async with open_clients(TodoSyncConfig.load()) as (records, blobs):
        ...     engine = SyncEngine(records, blobs)
        ...     result = await engine.create_todo(TodoForm("Buy milk", "2%"))
        ...     for todo in engine.list_state:
        ...         print(todo.name, todo.display_image)
    """

    def __init__(
        self,
        records: RecordStoreClient,
        blobs: BlobStoreClient,
        list_state: ListState | None = None,
        config: EngineConfig | None = None,
    ):
        """Initialize the sync engine.

        Args:
            records: Record store client
            blobs: Blob store client
            list_state: List to maintain (a new empty one by default)
            config: Engine configuration
        """
        self.records = records
        self.blobs = blobs
        self.list_state = list_state if list_state is not None else ListState()
        self.config = config or EngineConfig()

        self._in_flight = 0
        self._last_error: TodoSyncError | None = None
        self._last_refresh: datetime | None = None

    @property
    def state(self) -> EngineState:
        if self._in_flight:
            return EngineState.BUSY
        if self._last_error is not None:
            return EngineState.ERROR
        return EngineState.IDLE

    @property
    def last_error(self) -> TodoSyncError | None:
        return self._last_error

    @property
    def last_refresh(self) -> datetime | None:
        return self._last_refresh

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self) -> SyncResult[tuple[TodoRecord, ...]]:
        """Fetch all records, resolve their blob keys and replace the list.

        Returns:
            Result holding the new list contents. On failure the list keeps
            its previous value.
        """
        start = time.monotonic()
        self._in_flight += 1
        try:
            try:
                persisted = list(await self.records.list())
            except RemoteError as e:
                logger.error(f"Refresh failed listing records: {e}")
                return self._finish(SyncResult.fail(e), start)

            records, failures = await self._enrich_all(persisted)

            if failures and self.config.resolution_policy == ResolutionPolicy.STRICT:
                error = failures[0]
                logger.error(f"Refresh failed: {len(failures)} image key(s) did not resolve")
                result: SyncResult[tuple[TodoRecord, ...]] = SyncResult.fail(error)
                result.details["failed_keys"] = [f.key for f in failures]
                return self._finish(result, start)

            self.list_state.replace(records)
            self._last_refresh = datetime.now(UTC)
            logger.debug(f"Refreshed {len(records)} records")

            result = SyncResult.ok(self.list_state.records, warnings=failures)
            if failures:
                result.details["failed_keys"] = [f.key for f in failures]
            return self._finish(result, start)
        finally:
            self._in_flight -= 1

    async def _enrich_all(
        self, persisted: list[TodoRecord]
    ) -> tuple[list[TodoRecord], list[BlobError]]:
        """Resolve every image key concurrently and wait for all to settle."""
        pending = [i for i, r in enumerate(persisted) if r.has_image and not r.is_enriched]
        outcomes = await asyncio.gather(
            *(self.blobs.resolve(persisted[i].image) for i in pending),  # type: ignore[arg-type]
            return_exceptions=True,
        )

        records = list(persisted)
        failures: list[BlobError] = []
        for index, outcome in zip(pending, outcomes, strict=True):
            record = persisted[index]
            if isinstance(outcome, BlobError):
                failures.append(outcome)
                records[index] = record.with_unresolved_image(outcome.message)
            elif isinstance(outcome, TodoSyncError):
                error = BlobError("resolve", record.image, outcome)
                failures.append(error)
                records[index] = record.with_unresolved_image(error.message)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                records[index] = record.enrich(outcome)

        for failure in failures:
            logger.warning(f"Could not resolve image key {failure.key}: {failure.cause or failure}")
        return records, failures

    # =========================================================================
    # Create
    # =========================================================================

    async def create_todo(self, form: TodoForm) -> SyncResult[tuple[TodoRecord, ...]]:
        """Create a todo with its optional attachment, then refresh.

        The attachment is uploaded first; an upload failure is logged and
        the record is still created with its image key. The new id is
        never synthesized locally; it arrives with the refresh.

        Args:
            form: Name, description and optional attachment

        Returns:
            Result holding the refreshed list
        """
        start = time.monotonic()
        self._in_flight += 1
        try:
            try:
                self._validate(form)
                attachment = form.attachment if form.has_attachment else None
                image_key = None
                if attachment is not None:
                    image_key = blob_key_for_attachment(attachment, self.config.key_prefix)
            except ValidationError as e:
                logger.info(f"Rejected todo: {e}")
                return self._finish(SyncResult.fail(e), start, record_error=False)

            warnings: list[BlobError] = []
            if attachment is not None and image_key is not None:
                try:
                    await self.blobs.put(image_key, attachment.data, attachment.content_type)
                except BlobError as e:
                    logger.warning(f"Error uploading {image_key}, creating todo anyway: {e}")
                    warnings.append(e)

            record = TodoRecord(name=form.name, description=form.description, image=image_key)
            try:
                created_id = await self.records.create(record)
            except RemoteError as e:
                logger.error(f"Failed to create todo {form.name!r}: {e}")
                return self._finish(SyncResult.fail(e, warnings), start)

            logger.info(f"Created todo {form.name!r} (id={created_id}, image={image_key})")

            refreshed = await self.refresh()
            if refreshed.success:
                result = SyncResult.ok(refreshed.value, warnings + refreshed.warnings)
            else:
                error = refreshed.error or RemoteError("refresh")
                result = SyncResult.fail(error, warnings + refreshed.warnings)
                result.details.update(refreshed.details)
            result.details["created"] = True
            result.details["created_id"] = created_id
            return self._finish(result, start)
        finally:
            self._in_flight -= 1

    @staticmethod
    def _validate(form: TodoForm) -> None:
        if not form.name or not form.name.strip():
            raise ValidationError("name", "required field is empty")
        if not form.description or not form.description.strip():
            raise ValidationError("description", "required field is empty")

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete_todo(self, record: TodoRecord) -> SyncResult[TodoRecord]:
        """Delete a todo and its attachment.

        A record without an id is a no-op. The attachment is removed
        first on a best-effort basis; the record delete then decides the
        outcome.

        Args:
            record: Record to delete (persisted or enriched form)

        Returns:
            Result holding the deleted record
        """
        start = time.monotonic()
        if not record.id:
            logger.debug(f"Skipping delete of unsaved todo {record.name!r}")
            result: SyncResult[TodoRecord] = SyncResult.ok(None)
            result.details["noop"] = True
            return result

        self._in_flight += 1
        try:
            removed = None
            if self.config.delete_policy == DeletePolicy.OPTIMISTIC:
                removed = self.list_state.remove(record.id)

            warnings: list[BlobError] = []
            key = blob_key_for_record(record)
            if key:
                try:
                    await self.blobs.remove(key)
                except BlobError as e:
                    logger.warning(f"Error removing attachment {key} of todo {record.id}: {e}")
                    warnings.append(e)

            try:
                await self.records.delete(record.id)
            except RemoteError as e:
                logger.error(f"Failed to delete todo {record.id}: {e}")
                return self._finish(SyncResult.fail(e, warnings), start)

            if self.config.delete_policy == DeletePolicy.CONFIRMED:
                removed = self.list_state.remove(record.id)

            logger.info(f"Deleted todo {record.id}")
            return self._finish(SyncResult.ok((removed or record).mark_deleted(), warnings), start)
        finally:
            self._in_flight -= 1

    def _finish(self, result: SyncResult, start: float, record_error: bool = True) -> SyncResult:
        result.duration_ms = int((time.monotonic() - start) * 1000)
        if result.success:
            self._last_error = None
        elif record_error:
            self._last_error = result.error
        return result
