"""JSON error responses for the download API.

Every body has the shape {"error", "message", "details"}. Storage errors
never expose the on-disk path or backend reason to clients; both are logged.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from attachments.core.config import get_settings
from attachments.domain.exceptions import AttachmentsException
from attachments.infrastructure.exceptions import StorageException

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_CODE: dict[str, int] = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "AUTHENTICATION_ERROR": status.HTTP_401_UNAUTHORIZED,
    "STORAGE_PERMISSION_ERROR": status.HTTP_403_FORBIDDEN,
    "RESOURCE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "STORAGE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFIGURATION_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "STORAGE_NOT_SUPPORTED": status.HTTP_501_NOT_IMPLEMENTED,
    "STORAGE_UPLOAD_ERROR": status.HTTP_502_BAD_GATEWAY,
    "STORAGE_DOWNLOAD_ERROR": status.HTTP_502_BAD_GATEWAY,
    "STORAGE_DELETE_ERROR": status.HTTP_502_BAD_GATEWAY,
    "SERVICE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _body(error: str, message: str, details: object = None) -> dict:
    return {"error": error, "message": message, "details": details or {}}


def _attachments_exception_handler(
    request: Request, exc: AttachmentsException
) -> JSONResponse:
    code = STATUS_BY_ERROR_CODE.get(exc.error_code, status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, StorageException):
        logger.warning(
            "%s on %s: %s %s", exc.error_code, request.url.path, exc.message, exc.details
        )
        return JSONResponse(
            status_code=code,
            content=_body(exc.error_code, "Attachment file is not available"),
        )
    if code >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(status_code=code, content=exc.to_dict())


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_body("VALIDATION_ERROR", "Request validation failed", exc.errors()),
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_body("HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500; the exception text is only returned when debug is on."""
    logger.exception("Unhandled exception on %s", request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body("INTERNAL_ERROR", message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AttachmentsException, _attachments_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
