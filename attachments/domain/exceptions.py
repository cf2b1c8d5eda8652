"""Errors raised by attachment records and services.

The API layer turns them into JSON responses through error_code
(see core.exception_handlers); the CLI reports them on stderr.
"""

from typing import Any


class AttachmentsException(Exception):
    """Base error: a message, a machine-readable error_code and context details."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ValidationException(AttachmentsException):
    """A record or request is invalid: empty uuid, write-once field changed,
    missing upload source, unknown disposition, negative cleanup window.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", {"field": field} if field else None)


class ConfigurationException(AttachmentsException):
    """No usable UUID provider (or other required setting) is configured."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(
            message, "CONFIGURATION_ERROR", {"setting": setting} if setting else None
        )


class AuthenticationException(AttachmentsException):
    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class InvalidTokenException(AuthenticationException):
    """A signed download token failed to decode, decrypt or parse.

    Callers treat this exactly like a missing attachment.
    """

    def __init__(self, reason: str = "invalid token") -> None:
        super().__init__(f"Invalid download token: {reason}")
        self.details = {"reason": reason}


class ResourceNotFoundException(AttachmentsException):
    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SqlNotConfiguredException(AttachmentsException):
    """The SQL repository was requested but DATABASE_URL is empty."""

    def __init__(self) -> None:
        super().__init__(
            "Attachment records need a SQL database; set DATABASE_URL.",
            "SERVICE_UNAVAILABLE",
        )
