"""Download API: thin routes delegating to UrlSigner and AttachmentDeliveryService.

Unknown records, invalid tokens and expired tokens all answer 404 so a
caller cannot tell them apart.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from attachments.api.v1.dependencies import (
    get_attachment_repo,
    get_delivery_service,
    get_url_signer,
)
from attachments.application.interfaces.repositories import IAttachmentRepository
from attachments.application.services.url_signer import UrlSigner
from attachments.application.use_cases.attachments import AttachmentDeliveryService
from attachments.domain.entities.attachment import Attachment
from attachments.domain.enums import Disposition
from attachments.domain.exceptions import InvalidTokenException, ResourceNotFoundException

logger = logging.getLogger(__name__)

router = APIRouter()


async def _deliver(
    record: Attachment,
    disposition: Disposition,
    delivery: AttachmentDeliveryService,
) -> Response:
    response = await delivery.output(record, disposition)
    if response is False:
        raise HTTPException(status_code=403, detail="Download refused")
    return response


@router.get("/shared/{token}")
async def download_shared(
    token: str,
    signer: Annotated[UrlSigner, Depends(get_url_signer)],
    repo: Annotated[IAttachmentRepository, Depends(get_attachment_repo)],
    delivery: Annotated[AttachmentDeliveryService, Depends(get_delivery_service)],
) -> Response:
    """Serve a file through a temporary (signed) URL."""
    try:
        payload = signer.resolve(token)
    except InvalidTokenException as e:
        logger.info("Rejected shared download token: %s", e.details.get("reason"))
        raise ResourceNotFoundException("attachment", "shared") from e
    if payload.is_expired():
        logger.info("Expired shared download token for %s", payload.identifier)
        raise ResourceNotFoundException("attachment", "shared")
    record = await repo.get_by_uuid(payload.identifier)
    if record is None:
        raise ResourceNotFoundException("attachment", payload.identifier)
    return await _deliver(record, payload.disposition, delivery)


@router.get("/{uuid}/{name}")
async def download(
    uuid: str,
    name: str,
    repo: Annotated[IAttachmentRepository, Depends(get_attachment_repo)],
    delivery: Annotated[AttachmentDeliveryService, Depends(get_delivery_service)],
    disposition: Annotated[Disposition, Query()] = Disposition.ATTACHMENT,
) -> Response:
    """Serve a file through its permanent proxy URL. name is cosmetic."""
    record = await repo.get_by_uuid(uuid)
    if record is None:
        raise ResourceNotFoundException("attachment", uuid)
    return await _deliver(record, disposition, delivery)
