"""Attachment repository: SQLAlchemy implementation of IAttachmentRepository.

Maps AttachmentModel rows to Attachment domain entities; callers never see
ORM objects. Datetimes are normalized to UTC at this boundary.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attachments.domain.entities.attachment import Attachment, Owner
from attachments.domain.exceptions import ResourceNotFoundException, ValidationException
from attachments.infrastructure.persistence.models.attachment import AttachmentModel
from attachments.infrastructure.persistence.repositories.base import BaseRepository
from attachments.shared.utils.datetime import ensure_utc, utc_now
from attachments.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

# Columns copied from the entity on save; uuid, disk and filepath never change after create.
_MUTABLE_COLUMNS = (
    "owner_type",
    "owner_id",
    "filename",
    "filetype",
    "filesize",
    "key",
    "group",
    "title",
    "description",
)

# NOT NULL columns describing the stored file.
_STORED_FILE_COLUMNS = ("disk", "filepath", "filename", "filetype", "filesize")


def _to_entity(model: AttachmentModel) -> Attachment:
    return Attachment(
        id=model.id,
        uuid=model.uuid,
        owner_type=model.owner_type,
        owner_id=model.owner_id,
        disk=model.disk,
        filepath=model.filepath,
        filename=model.filename,
        filetype=model.filetype,
        filesize=model.filesize,
        key=model.key,
        group=model.group,
        title=model.title,
        description=model.description,
        metadata=dict(model.metadata_ or {}),
        created_at=ensure_utc(model.created_at),
        updated_at=ensure_utc(model.updated_at),
    )


def _orphan_filter(cutoff: datetime) -> tuple:
    return (
        AttachmentModel.owner_type.is_(None),
        AttachmentModel.owner_id.is_(None),
        AttachmentModel.updated_at <= cutoff,
    )


class AttachmentRepository(BaseRepository[AttachmentModel]):
    """Attachment persistence. All methods accept and return domain entities."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AttachmentModel)

    async def _get_model(self, uuid: str | None) -> AttachmentModel | None:
        if not uuid:
            return None
        result = await self.db.execute(
            select(AttachmentModel).where(AttachmentModel.uuid == uuid)
        )
        return result.scalar_one_or_none()

    async def get_by_uuid(self, uuid: str) -> Attachment | None:
        model = await self._get_model(uuid)
        return _to_entity(model) if model else None

    async def get_by_owner_and_key(self, owner: Owner, key: str) -> Attachment | None:
        result = await self.db.execute(
            select(AttachmentModel)
            .where(
                AttachmentModel.owner_type == owner.type,
                AttachmentModel.owner_id == owner.id,
                AttachmentModel.key == key,
            )
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def list_by_owner(self, owner: Owner) -> list[Attachment]:
        result = await self.db.execute(
            select(AttachmentModel)
            .where(
                AttachmentModel.owner_type == owner.type,
                AttachmentModel.owner_id == owner.id,
            )
            .order_by(AttachmentModel.created_at, AttachmentModel.id)
        )
        return [_to_entity(m) for m in result.scalars().all()]

    async def create(self, attachment: Attachment) -> Attachment:
        """Insert the record. A missing key gets a generated CUID.

        Raises:
            ValidationException: uuid is empty, or a stored-file column
                (disk, filepath, filename, filetype, filesize) is missing.
        """
        attachment.validate()
        for name in _STORED_FILE_COLUMNS:
            if getattr(attachment, name) is None:
                raise ValidationException(
                    f"Attachment {attachment.uuid} has no {name}", field=name
                )
        if not attachment.key:
            attachment.key = generate_cuid()
        model = AttachmentModel(
            uuid=attachment.uuid,
            disk=attachment.disk,
            filepath=attachment.filepath,
            metadata_=dict(attachment.metadata or {}),
            **{name: getattr(attachment, name) for name in _MUTABLE_COLUMNS},
        )
        if attachment.created_at is not None:
            model.created_at = attachment.created_at
        if attachment.updated_at is not None:
            model.updated_at = attachment.updated_at
        created = _to_entity(await self._add(model))
        attachment.id = created.id
        attachment.created_at = created.created_at
        attachment.updated_at = created.updated_at
        return created

    async def save(self, attachment: Attachment) -> Attachment:
        """Persist mutable fields and refresh updated_at.

        Raises:
            ResourceNotFoundException: No row with the record's uuid.
        """
        model = await self._get_model(attachment.uuid)
        if model is None:
            raise ResourceNotFoundException("attachment", attachment.uuid or "")
        for name in _MUTABLE_COLUMNS:
            setattr(model, name, getattr(attachment, name))
        model.metadata_ = dict(attachment.metadata or {})
        model.updated_at = utc_now()
        saved = _to_entity(await self._update(model))
        attachment.updated_at = saved.updated_at
        return saved

    async def delete(self, attachment: Attachment) -> bool:
        model = await self._get_model(attachment.uuid)
        if model is None:
            return False
        await self._remove(model)
        return True

    async def count_orphans(self, cutoff: datetime) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(AttachmentModel).where(*_orphan_filter(cutoff))
        )
        return int(result.scalar_one())

    async def list_orphans(
        self, cutoff: datetime, after_id: str | None = None, limit: int = 100
    ) -> list[Attachment]:
        stmt = select(AttachmentModel).where(*_orphan_filter(cutoff))
        if after_id is not None:
            stmt = stmt.where(AttachmentModel.id > after_id)
        result = await self.db.execute(stmt.order_by(AttachmentModel.id).limit(limit))
        return [_to_entity(m) for m in result.scalars().all()]

    async def _on_before_delete(self, obj: AttachmentModel) -> None:
        logger.debug("Deleting attachment row %s (%s)", obj.id, obj.uuid)

    async def _on_after_create(self, obj: AttachmentModel) -> None:
        logger.debug("Inserted attachment row %s (%s) on disk %s", obj.id, obj.uuid, obj.disk)
