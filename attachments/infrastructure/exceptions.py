"""Storage backend errors.

Backends raise these for I/O failures on put/get/delete and metadata reads.
A missing target on delete is not an error and never raises.
"""

from typing import Any

from attachments.domain.exceptions import AttachmentsException


class StorageException(AttachmentsException):
    """Base for storage failures; details carry the backend-relative path."""

    code = "STORAGE_ERROR"
    action = "access"

    def __init__(self, file_path: str, reason: str | None = None, **extra: Any) -> None:
        details: dict[str, Any] = {"file_path": file_path, **extra}
        if reason:
            details["reason"] = reason
        super().__init__(self.describe(file_path, **extra), self.code, details)

    def describe(self, file_path: str, **extra: Any) -> str:
        return f"Failed to {self.action} file: {file_path}"


class StorageNotFoundError(StorageException):
    code = "STORAGE_NOT_FOUND"

    def describe(self, file_path: str, **extra: Any) -> str:
        return f"File not found: {file_path}"


class StorageUploadError(StorageException):
    code = "STORAGE_UPLOAD_ERROR"
    action = "write"


class StorageDownloadError(StorageException):
    """Reading content or metadata (size, type, listing) failed."""

    code = "STORAGE_DOWNLOAD_ERROR"
    action = "read"


class StorageDeleteError(StorageException):
    code = "STORAGE_DELETE_ERROR"
    action = "delete"


class StoragePermissionError(StorageException):
    """Path escapes the storage root, or the operation would remove the root itself."""

    code = "STORAGE_PERMISSION_ERROR"

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(file_path, operation=operation)

    def describe(self, file_path: str, **extra: Any) -> str:
        return f"Permission denied for {extra['operation']} on {file_path}"


class StorageNotSupportedError(AttachmentsException):
    """The backend has no such capability (e.g. public URLs on a local disk)."""

    def __init__(self, operation: str, backend: str) -> None:
        super().__init__(
            f"Operation '{operation}' not supported by {backend} backend",
            "STORAGE_NOT_SUPPORTED",
            {"operation": operation, "backend": backend},
        )
