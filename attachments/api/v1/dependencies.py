"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for DB sessions, storage, signing and attachment
use cases. Routes depend only on these dependencies, not on infra directly.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from attachments.application.interfaces.repositories import IAttachmentRepository
from attachments.application.services.url_signer import UrlSigner
from attachments.application.use_cases.attachments import AttachmentDeliveryService
from attachments.core.config import get_settings
from attachments.infrastructure.external.storage.factory import StorageFactory
from attachments.infrastructure.persistence.database import get_db
from attachments.infrastructure.persistence.repositories import AttachmentRepository


@lru_cache
def get_storage_factory() -> StorageFactory:
    """One StorageFactory per process (backends are cached per disk)."""
    return StorageFactory(get_settings())


@lru_cache
def get_url_signer() -> UrlSigner:
    """One UrlSigner per process (key derivation runs once)."""
    return UrlSigner(get_settings())


async def get_attachment_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IAttachmentRepository:
    """Read-only attachment repository for download routes."""
    return AttachmentRepository(db)


async def get_delivery_service(
    storage_factory: Annotated[StorageFactory, Depends(get_storage_factory)],
) -> AttachmentDeliveryService:
    """Build AttachmentDeliveryService (storage lookup per record disk)."""
    return AttachmentDeliveryService(storage_factory)
