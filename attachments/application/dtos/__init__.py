"""Application DTOs (no dependency on ORM)."""

from attachments.application.dtos.attachment import CleanupResult, SignedUrlPayload

__all__ = ["CleanupResult", "SignedUrlPayload"]
