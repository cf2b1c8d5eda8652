"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from attachments.api.v1.dependencies.
"""

from fastapi import APIRouter

from attachments.api.v1.endpoints import downloads

api_router = APIRouter()

api_router.include_router(downloads.router, prefix="/attachments", tags=["attachments"])
