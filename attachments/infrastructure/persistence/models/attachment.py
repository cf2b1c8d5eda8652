"""Attachment ORM model. Storage location and descriptive metadata of one file."""

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from attachments.infrastructure.persistence.database import Base
from attachments.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class AttachmentModel(CuidMixin, TimestampMixin, Base):
    """Attachment entity. Table: attachments. Owner columns are null for orphans."""

    __tablename__ = "attachments"

    uuid: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    owner_type: Mapped[str | None] = mapped_column(String, nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String, nullable=True)
    disk: Mapped[str] = mapped_column(String(32), nullable=False)
    filepath: Mapped[str] = mapped_column(String(512), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    filetype: Mapped[str] = mapped_column(String(512), nullable=False)
    filesize: Mapped[int] = mapped_column(BigInteger, nullable=False)
    key: Mapped[str | None] = mapped_column(String, nullable=True)
    group: Mapped[str | None] = mapped_column(String, nullable=True)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes; column keeps the name.
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    __table_args__ = (
        Index("ix_attachments_owner", "owner_type", "owner_id"),
        UniqueConstraint("owner_type", "owner_id", "key", name="ux_attachments_owner_key"),
    )
