"""Repositories (SQLAlchemy implementations of application ports)."""

from attachments.infrastructure.persistence.repositories.attachment_repo import (
    AttachmentRepository,
)

__all__ = ["AttachmentRepository"]
