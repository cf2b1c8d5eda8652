"""Application ports (Protocols implemented by infrastructure)."""

from attachments.application.interfaces.repositories import IAttachmentRepository

__all__ = ["IAttachmentRepository"]
