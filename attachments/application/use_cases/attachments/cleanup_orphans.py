"""Sweep orphaned attachments (no owner) older than a cutoff."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from attachments.application.dtos.attachment import CleanupResult
from attachments.core.constants import CLEANUP_BATCH_SIZE
from attachments.domain.enums import SweepState
from attachments.domain.exceptions import ValidationException
from attachments.shared.telemetry.tracing import add_span_attributes, traced
from attachments.shared.utils.datetime import minutes_ago

if TYPE_CHECKING:
    from attachments.application.interfaces.repositories import IAttachmentRepository
    from attachments.application.use_cases.attachments.attachment_operations import (
        AttachmentDeletionService,
    )
    from attachments.core.config import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
BatchCallback = Callable[[], Awaitable[None]]


class CleanupSweeper:
    """Deletes orphans whose updated_at is at or before now - since_minutes.

    States: IDLE -> COUNTING -> (EMPTY | SWEEPING) -> DONE. Orphans are fetched
    in id-ordered batches; each batch is fully deleted (file cascade included)
    before the next fetch. An interrupted sweep is resumed by running it again.
    """

    def __init__(
        self,
        attachment_repo: "IAttachmentRepository",
        deletion_service: "AttachmentDeletionService",
        settings: "Settings | None" = None,
        batch_size: int = CLEANUP_BATCH_SIZE,
        after_batch: BatchCallback | None = None,
    ) -> None:
        """after_batch is awaited once each batch is deleted (e.g. session commit)."""
        if settings is None:
            from attachments.core.config import get_settings

            settings = get_settings()
        self._attachment_repo = attachment_repo
        self._deletion_service = deletion_service
        self._default_since_minutes = settings.cleanup_since_minutes
        self._batch_size = batch_size
        self._after_batch = after_batch
        self.state = SweepState.IDLE

    @traced("attachments.cleanup.sweep")
    async def sweep(
        self,
        since_minutes: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> CleanupResult:
        """Run one sweep.

        Args:
            since_minutes: Minimum orphan age; defaults to Settings.cleanup_since_minutes.
            on_progress: Called with (processed, total) after each deletion.

        Returns:
            CleanupResult; is_empty when nothing matched.
        """
        minutes = self._default_since_minutes if since_minutes is None else since_minutes
        if minutes < 0:
            raise ValidationException("since_minutes must be >= 0", field="since_minutes")
        cutoff = minutes_ago(minutes)

        self.state = SweepState.COUNTING
        total = await self._attachment_repo.count_orphans(cutoff)
        add_span_attributes(**{"cleanup.matched": total, "cleanup.since_minutes": minutes})
        if total == 0:
            self.state = SweepState.EMPTY
            logger.info("No orphaned attachments older than %s minutes", minutes)
            return CleanupResult(state=self.state, matched=0, deleted=0, cutoff=cutoff)

        self.state = SweepState.SWEEPING
        logger.info("Sweeping %s orphaned attachments older than %s", total, cutoff.isoformat())
        processed = 0
        after_id: str | None = None
        while True:
            batch = await self._attachment_repo.list_orphans(
                cutoff, after_id=after_id, limit=self._batch_size
            )
            if not batch:
                break
            for record in batch:
                await self._deletion_service.delete(record)
                processed += 1
                if on_progress is not None:
                    on_progress(processed, total)
            if self._after_batch is not None:
                await self._after_batch()
            after_id = batch[-1].id
            if len(batch) < self._batch_size:
                break

        self.state = SweepState.DONE
        logger.info("Deleted %s orphaned attachments", processed)
        return CleanupResult(
            state=self.state, matched=total, deleted=processed, cutoff=cutoff
        )
