"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
Types reference domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from attachments.domain.entities.attachment import Attachment, Owner


class IAttachmentRepository(Protocol):
    """Protocol for attachment record persistence (DIP)."""

    async def get_by_uuid(self, uuid: str) -> Attachment | None:
        """Return the record with uuid, or None."""

    async def get_by_owner_and_key(self, owner: Owner, key: str) -> Attachment | None:
        """Return the record bound to owner under key, or None."""

    async def list_by_owner(self, owner: Owner) -> list[Attachment]:
        """Return all records bound to owner, ordered by creation."""

    async def create(self, attachment: Attachment) -> Attachment:
        """Insert a new record (assigns id, timestamps and a key when missing)."""

    async def save(self, attachment: Attachment) -> Attachment:
        """Persist changes to an existing record (refreshes updated_at)."""

    async def delete(self, attachment: Attachment) -> bool:
        """Delete the row. Returns False if it did not exist."""

    async def count_orphans(self, cutoff: datetime) -> int:
        """Count records without owner whose updated_at <= cutoff."""

    async def list_orphans(
        self, cutoff: datetime, after_id: str | None = None, limit: int = 100
    ) -> list[Attachment]:
        """Return up to limit orphans (updated_at <= cutoff), ordered by id, with id > after_id."""
