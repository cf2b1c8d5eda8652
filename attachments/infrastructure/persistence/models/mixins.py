"""Column mixins shared by persistence models."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from attachments.shared.utils.datetime import utc_now
from attachments.shared.utils.generators import generate_cuid


class CuidMixin:
    """String primary key `id`, a CUID unless the caller sets one.

    Orphan batches page through ids in order, so ids must be unique and comparable.
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String(32), primary_key=True, default=generate_cuid)


class TimestampMixin:
    """Aware created_at / updated_at.

    The ORM fills both with utc_now unless given explicit values; updated_at
    is indexed because the orphan sweep filters on it.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            onupdate=utc_now,
            server_default=func.now(),
            nullable=False,
            index=True,
        )
