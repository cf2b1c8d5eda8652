"""ASGI entry point: `uvicorn --factory attachments.main:create_app`.

Settings are read when the app is built, not at import, so tests can set
the environment (or override dependencies) first.
"""

from fastapi import FastAPI

from attachments.api.v1 import api_router
from attachments.core.config import get_settings
from attachments.core.exception_handlers import register_exception_handlers
from attachments.core.lifespan import create_lifespan


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app
