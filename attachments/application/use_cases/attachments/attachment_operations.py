"""Attachment operations: create (file/upload/stream), bind, delete, deliver and describe."""

from __future__ import annotations

import inspect
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, ClassVar, Literal
from urllib.parse import quote

import aiofiles
from starlette.datastructures import UploadFile
from starlette.responses import Response

from attachments.core.constants import DEFAULT_MIME_TYPE, UPLOAD_SESSION_METADATA_KEY
from attachments.domain.entities.attachment import Attachment, Owner
from attachments.domain.enums import Disposition
from attachments.domain.exceptions import ValidationException
from attachments.shared.utils.generators import get_uuid_provider
from attachments.shared.utils.sanitization import FilenameSanitizer

if TYPE_CHECKING:
    from attachments.application.interfaces.repositories import IAttachmentRepository
    from attachments.application.services.path_partitioner import PathPartitioner
    from attachments.application.use_cases.attachments.delete_cascade import DeleteCascade
    from attachments.core.config import Settings
    from attachments.infrastructure.external.storage.factory import StorageFactory
    from attachments.shared.utils.generators import UuidProvider

logger = logging.getLogger(__name__)

# Descriptive fields a caller may set when creating a record.
CREATE_FIELDS = frozenset({"key", "group", "title", "description", "metadata"})

# Fields that binding options may fill (further narrowed by Settings.attach_attributes).
FILLABLE_FIELDS = CREATE_FIELDS

CACHE_CONTROL = (
    "private, no-store, no-cache, must-revalidate, pre-check=0, post-check=0, max-age=0"
)

OutputtingHook = Callable[[Attachment], "bool | None | Awaitable[bool | None]"]


def _get_settings(settings: "Settings | None") -> "Settings":
    if settings is not None:
        return settings
    from attachments.core.config import get_settings

    return get_settings()


def _guess_mime_type(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_MIME_TYPE


class AttachmentUploadService:
    """Single responsibility: store new content and create its record.

    Each entry point assigns a uuid from the configured provider, computes
    the partitioned filepath once, writes the bytes to the record's disk and
    persists the record.
    """

    def __init__(
        self,
        storage_factory: "StorageFactory",
        attachment_repo: "IAttachmentRepository",
        partitioner: "PathPartitioner",
        settings: "Settings | None" = None,
        uuid_provider: "UuidProvider | None" = None,
    ) -> None:
        self.settings = _get_settings(settings)
        self.storage_factory = storage_factory
        self.attachment_repo = attachment_repo
        self.partitioner = partitioner
        self.uuid_provider = uuid_provider or get_uuid_provider(
            self.settings.uuid_provider
        )

    def _new_record(
        self, filename: str, disk: str | None, fields: dict[str, Any]
    ) -> Attachment:
        unknown = set(fields) - CREATE_FIELDS
        if unknown:
            raise ValidationException(
                f"Unsupported attachment fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        name = FilenameSanitizer.basename(filename or "")
        if not name:
            raise ValidationException("Filename is empty or invalid", field="filename")
        metadata = fields.pop("metadata", None) or {}
        record = Attachment(
            uuid=self.uuid_provider.generate(),
            disk=disk or self.settings.default_disk,
            filename=name,
            metadata=dict(metadata),
            **fields,
        )
        record.validate()
        record.filepath = record.filepath or self.partitioner.storage_path(
            record.uuid or "", record.extension
        )
        return record

    async def _persist(self, record: Attachment) -> Attachment:
        created = await self.attachment_repo.create(record)
        logger.info(
            "Stored attachment %s on disk %s at %s (%s bytes)",
            created.uuid,
            created.disk,
            created.filepath,
            created.filesize,
        )
        return created

    async def from_file(
        self, path: str | Path | None, *, disk: str | None = None, **fields: Any
    ) -> Attachment:
        """Create an attachment from a file on the local filesystem.

        Raises:
            ValidationException: path is None or not a regular file.
        """
        if path is None:
            raise ValidationException("Source file is required", field="path")
        source = Path(path)
        if not source.is_file():
            raise ValidationException(f"Source file not found: {source}", field="path")
        record = self._new_record(source.name, disk, fields)
        record.filesize = source.stat().st_size
        record.filetype = _guess_mime_type(source.name)
        async with aiofiles.open(source, "rb") as f:
            data = await f.read()
        storage = self.storage_factory.for_disk(record.disk)
        await storage.put(record.filepath or "", data)
        return await self._persist(record)

    async def from_upload(
        self, upload: UploadFile | None, *, disk: str | None = None, **fields: Any
    ) -> Attachment:
        """Create an attachment from an uploaded file (client filename and content type).

        Raises:
            ValidationException: upload is None or has no usable filename.
        """
        if upload is None:
            raise ValidationException("Uploaded file is required", field="upload")
        record = self._new_record(upload.filename or "", disk, fields)
        record.filetype = upload.content_type or _guess_mime_type(record.filename or "")
        await upload.seek(0)
        storage = self.storage_factory.for_disk(record.disk)
        await storage.put_stream(record.filepath or "", upload.file)
        record.filesize = (
            upload.size
            if upload.size is not None
            else await storage.size(record.filepath or "")
        )
        return await self._persist(record)

    async def from_stream(
        self,
        stream: BinaryIO | None,
        filename: str,
        *,
        disk: str | None = None,
        **fields: Any,
    ) -> Attachment:
        """Create an attachment from a readable binary stream.

        Size and MIME type are read back from the storage backend after the write.

        Raises:
            ValidationException: stream is None or filename is empty.
        """
        if stream is None:
            raise ValidationException("Source stream is required", field="stream")
        record = self._new_record(filename, disk, fields)
        storage = self.storage_factory.for_disk(record.disk)
        await storage.put_stream(record.filepath or "", stream)
        record.filesize = await storage.size(record.filepath or "")
        record.filetype = await storage.mime_type(record.filepath or "")
        return await self._persist(record)


class AttachmentDeletionService:
    """Single responsibility: delete a record, cascading to its file when enabled."""

    def __init__(
        self,
        attachment_repo: "IAttachmentRepository",
        cascade: "DeleteCascade",
        settings: "Settings | None" = None,
    ) -> None:
        self.attachment_repo = attachment_repo
        self.cascade = cascade
        self.cascade_delete = _get_settings(settings).cascade_delete

    async def delete(self, record: Attachment) -> bool:
        """Delete the record (file first when cascade_delete). Returns False if the row was gone."""
        if self.cascade_delete:
            await self.cascade.on_delete(record)
        deleted = await self.attachment_repo.delete(record)
        logger.info("Deleted attachment %s (row removed: %s)", record.uuid, deleted)
        return deleted


class AttachmentBindingService:
    """Single responsibility: bind an uploaded attachment to its owner."""

    def __init__(
        self,
        attachment_repo: "IAttachmentRepository",
        deletion_service: AttachmentDeletionService,
        settings: "Settings | None" = None,
    ) -> None:
        self.attachment_repo = attachment_repo
        self.deletion_service = deletion_service
        self.allowed_options = frozenset(_get_settings(settings).attach_attribute_list)

    async def attach(
        self, uuid: str, owner: Owner, options: dict[str, Any] | None = None
    ) -> Attachment | None:
        """Bind the record with uuid to owner. Returns None for an unknown uuid.

        Options are filtered to Settings.attach_attributes. A different record
        already bound to owner under the same key is deleted (with cascade),
        so each key stays unique per owner.
        """
        record = await self.attachment_repo.get_by_uuid(uuid)
        if record is None:
            return None

        record.without_metadata_key(UPLOAD_SESSION_METADATA_KEY)

        for name, value in (options or {}).items():
            if name in self.allowed_options and name in FILLABLE_FIELDS:
                setattr(record, name, value)
            else:
                logger.debug("Ignoring attach option %r for attachment %s", name, uuid)

        if record.key:
            found = await self.attachment_repo.get_by_owner_and_key(owner, record.key)
            if found is not None and found.uuid != record.uuid:
                await self.deletion_service.delete(found)

        record.bind_to(owner)
        return await self.attachment_repo.save(record)


class AttachmentDeliveryService:
    """Single responsibility: read stored content and build the download response.

    Hooks registered with outputting() run before every output(); a hook
    returning False vetoes delivery.
    """

    _outputting_hooks: ClassVar[list[OutputtingHook]] = []

    def __init__(self, storage_factory: "StorageFactory") -> None:
        self.storage_factory = storage_factory

    @classmethod
    def outputting(cls, hook: OutputtingHook) -> OutputtingHook:
        """Register a hook (usable as a decorator). Hooks may be sync or async."""
        cls._outputting_hooks.append(hook)
        return hook

    @classmethod
    def clear_outputting_hooks(cls) -> None:
        cls._outputting_hooks.clear()

    async def get_contents(self, record: Attachment) -> bytes:
        """Return the stored bytes of record.

        Raises:
            StorageNotFoundError: The file is missing on its disk.
        """
        storage = self.storage_factory.for_disk(record.disk)
        return await storage.get(record.filepath or "")

    async def _fire_outputting(self, record: Attachment) -> bool:
        for hook in list(self._outputting_hooks):
            result = hook(record)
            if inspect.isawaitable(result):
                result = await result
            if result is False:
                logger.info("Output of attachment %s vetoed by hook", record.uuid)
                return False
        return True

    async def output(
        self, record: Attachment, disposition: Disposition | str = Disposition.INLINE
    ) -> Response | Literal[False]:
        """Build the file response, or return False when a hook vetoes it.

        Raises:
            ValidationException: Unknown disposition.
        """
        try:
            mode = Disposition(disposition)
        except ValueError as e:
            raise ValidationException(
                f"disposition must be one of {Disposition.values()}",
                field="disposition",
            ) from e

        if not await self._fire_outputting(record):
            return False

        content = await self.get_contents(record)
        headers = {
            "Content-Disposition": self._content_disposition(mode, record.filename or ""),
            "Cache-Control": CACHE_CONTROL,
            "Accept-Ranges": "bytes",
            "Content-Length": str(len(content)),
        }
        return Response(
            content=content,
            media_type=record.filetype or DEFAULT_MIME_TYPE,
            headers=headers,
        )

    @staticmethod
    def _content_disposition(mode: Disposition, filename: str) -> str:
        quoted = FilenameSanitizer.quote_header_value(filename)
        if quoted.isascii():
            return f'{mode.value}; filename="{quoted}"'
        fallback = quoted.encode("ascii", "replace").decode("ascii")
        return (
            f'{mode.value}; filename="{fallback}"; '
            f"filename*=utf-8''{quote(filename, safe='')}"
        )


class AttachmentMetadataService:
    """Single responsibility: update the descriptive fields of a record."""

    def __init__(self, attachment_repo: "IAttachmentRepository") -> None:
        self.attachment_repo = attachment_repo

    async def update(
        self,
        record: Attachment,
        title: str | None = None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Attachment:
        """Apply the given fields (None leaves a field unchanged) and save."""
        if title is not None:
            record.title = title
        if description is not None:
            record.description = description
        if metadata is not None:
            record.metadata = dict(metadata)
        return await self.attachment_repo.save(record)
