"""Download URLs for attachment records: permanent proxy, temporary (signed) and storage URLs."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlencode

from attachments.domain.enums import Disposition
from attachments.shared.utils.sanitization import slugify

if TYPE_CHECKING:
    from attachments.application.services.url_signer import UrlSigner
    from attachments.core.config import Settings
    from attachments.domain.entities.attachment import Attachment
    from attachments.infrastructure.external.storage.factory import StorageFactory

# Used when a filename stem has no ASCII-representable characters.
FALLBACK_SLUG = "file"


def download_name(record: "Attachment") -> str:
    """Slugified filename stem plus ".ext" (the name segment of the proxy URL)."""
    filename = record.filename or ""
    ext = record.extension
    stem = filename[: -(len(ext) + 1)] if ext else filename
    slug = slugify(stem) or FALLBACK_SLUG
    return f"{slug}.{ext}" if ext else slug


class AttachmentUrlBuilder:
    """Builds the public URLs of a record.

    Proxy URLs are permanent and embed no secret. Temporary URLs carry an
    encrypted token and stop working after their expiry. Remote disks are
    linked directly through the storage backend.
    """

    def __init__(
        self,
        signer: "UrlSigner",
        storage_factory: "StorageFactory",
        settings: "Settings | None" = None,
    ) -> None:
        if settings is None:
            from attachments.core.config import get_settings

            settings = get_settings()
        self.signer = signer
        self.storage_factory = storage_factory
        self.root = settings.download_url_root

    def proxy_url(self, record: "Attachment") -> str:
        uuid = quote(record.uuid or "", safe="")
        return f"{self.root}/attachments/{uuid}/{quote(download_name(record))}"

    def proxy_url_inline(self, record: "Attachment") -> str:
        query = urlencode({"disposition": Disposition.INLINE.value})
        return f"{self.proxy_url(record)}?{query}"

    def temporary_url(
        self, record: "Attachment", expire: datetime, inline: bool = False
    ) -> str:
        """URL valid until expire; resolved by the shared download route."""
        token = self.signer.issue(
            record.uuid or "", expire, Disposition.from_inline(inline)
        )
        return f"{self.root}/attachments/shared/{quote(token, safe='')}"

    def url(self, record: "Attachment") -> str:
        if record.is_local:
            return self.proxy_url(record)
        return self.storage_factory.for_disk(record.disk).url(record.filepath or "")

    def url_inline(self, record: "Attachment") -> str:
        if record.is_local:
            return self.proxy_url_inline(record)
        return self.storage_factory.for_disk(record.disk).url(record.filepath or "")

    def to_dict(self, record: "Attachment") -> dict[str, Any]:
        """Serializable record fields plus url and url_inline."""
        data = asdict(record)
        for name in ("created_at", "updated_at"):
            value = data.get(name)
            data[name] = value.isoformat() if value is not None else None
        data["extension"] = record.extension
        data["url"] = self.url(record)
        data["url_inline"] = self.url_inline(record)
        return data
