"""ORM models."""

from attachments.infrastructure.persistence.models.attachment import AttachmentModel

__all__ = ["AttachmentModel"]
