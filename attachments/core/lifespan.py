"""Startup and shutdown for the download API."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from attachments.core.config import get_settings
from attachments.infrastructure.persistence.database import dispose_engine
from attachments.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    settings = get_settings()
    logger.info(
        "Attachments API starting (default disk %s, prefix %r, cascade delete %s)",
        settings.default_disk,
        settings.storage_prefix,
        settings.cascade_delete,
    )
    yield
    await dispose_engine()
