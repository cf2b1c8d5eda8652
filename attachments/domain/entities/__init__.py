"""Domain entities."""

from attachments.domain.entities.attachment import Attachment, Owner, file_extension

__all__ = ["Attachment", "Owner", "file_extension"]
