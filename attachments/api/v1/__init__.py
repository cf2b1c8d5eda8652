"""API v1: download routes."""

from attachments.api.v1.router import api_router

__all__ = ["api_router"]
