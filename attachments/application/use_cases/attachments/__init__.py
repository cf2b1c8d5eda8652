"""Attachment use cases: create, bind, deliver, delete (with cascade) and orphan cleanup."""

from attachments.application.use_cases.attachments.attachment_operations import (
    AttachmentBindingService,
    AttachmentDeletionService,
    AttachmentDeliveryService,
    AttachmentMetadataService,
    AttachmentUploadService,
)
from attachments.application.use_cases.attachments.cleanup_orphans import CleanupSweeper
from attachments.application.use_cases.attachments.delete_cascade import DeleteCascade

__all__ = [
    "AttachmentBindingService",
    "AttachmentDeletionService",
    "AttachmentDeliveryService",
    "AttachmentMetadataService",
    "AttachmentUploadService",
    "CleanupSweeper",
    "DeleteCascade",
]
