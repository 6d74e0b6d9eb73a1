"""
Custom exceptions for todo synchronization.

Store clients raise these exceptions so the sync engine can apply one
propagate-or-swallow policy regardless of the backend in use.
"""


class TodoSyncError(Exception):
    """Base exception for all todo sync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(TodoSyncError):
    """Raised when a required field is missing before any network call."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class RemoteError(TodoSyncError):
    """Raised when a record store operation fails (transport, auth or logic)."""

    def __init__(
        self,
        operation: str,
        record_id: str | None = None,
        cause: Exception | None = None,
        message: str | None = None,
    ):
        details = {"operation": operation}
        if record_id:
            details["record_id"] = record_id
        if cause:
            details["cause"] = str(cause)
        if message is None:
            message = f"Record store error during {operation}"
            if record_id:
                message += f": {record_id}"
        super().__init__(message, details)
        self.operation = operation
        self.record_id = record_id
        self.cause = cause


class StorageConnectionError(RemoteError):
    """Raised when connection to a remote store fails.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        super().__init__("connect", cause=cause, message=f"Connection failed to {endpoint}")
        self.details["endpoint"] = endpoint
        self.endpoint = endpoint


class AuthenticationError(RemoteError):
    """Raised when authentication to a remote store fails."""

    def __init__(self, endpoint: str, reason: str | None = None):
        super().__init__("authenticate", message=f"Authentication failed for {endpoint}")
        self.details["endpoint"] = endpoint
        if reason:
            self.details["reason"] = reason
        self.endpoint = endpoint
        self.reason = reason


class BlobError(TodoSyncError):
    """Raised when a blob store operation fails."""

    def __init__(self, operation: str, key: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if key:
            details["key"] = key
        if cause:
            details["cause"] = str(cause)
        message = f"Blob store error during {operation}"
        if key:
            message += f": {key}"
        super().__init__(message, details)
        self.operation = operation
        self.key = key
        self.cause = cause


class ConfigurationError(TodoSyncError):
    """Raised when client configuration is missing or invalid."""

    def __init__(self, setting: str, reason: str):
        super().__init__(
            f"Invalid configuration for {setting}: {reason}",
            {"setting": setting, "reason": reason},
        )
        self.setting = setting
        self.reason = reason
