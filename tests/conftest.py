"""Pytest configuration and fixtures for attachments.

Key material and a throwaway storage root are set in the environment before
any attachments module reads settings. Unit tests use an in-memory
repository; integration tests use SQLite (aiosqlite).
"""

import copy
import os
import tempfile
from datetime import datetime
from io import BytesIO

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef")
os.environ.setdefault("ENCRYPTION_SALT", "test-salt-0123456789")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="attachments-test-"))

from attachments.application.services.attachment_urls import AttachmentUrlBuilder  # noqa: E402
from attachments.application.services.path_partitioner import PathPartitioner  # noqa: E402
from attachments.application.services.url_signer import UrlSigner  # noqa: E402
from attachments.application.use_cases.attachments import (  # noqa: E402
    AttachmentBindingService,
    AttachmentDeletionService,
    AttachmentDeliveryService,
    AttachmentMetadataService,
    AttachmentUploadService,
    DeleteCascade,
)
from attachments.core.config import Settings, get_settings  # noqa: E402
from attachments.domain.entities.attachment import Attachment, Owner  # noqa: E402
from attachments.infrastructure.external.storage.factory import StorageFactory  # noqa: E402
from attachments.shared.utils.datetime import utc_now  # noqa: E402
from attachments.shared.utils.generators import generate_cuid  # noqa: E402


class InMemoryAttachmentRepository:
    """IAttachmentRepository backed by a dict; stores copies like a real database."""

    def __init__(self) -> None:
        self.rows: dict[str, Attachment] = {}
        self._next_id = 0

    async def get_by_uuid(self, uuid: str) -> Attachment | None:
        row = self.rows.get(uuid)
        return copy.deepcopy(row) if row else None

    async def get_by_owner_and_key(self, owner: Owner, key: str) -> Attachment | None:
        for row in self.rows.values():
            if row.belongs_to(owner) and row.key == key:
                return copy.deepcopy(row)
        return None

    async def list_by_owner(self, owner: Owner) -> list[Attachment]:
        return [copy.deepcopy(r) for r in self.rows.values() if r.belongs_to(owner)]

    async def create(self, attachment: Attachment) -> Attachment:
        attachment.validate()
        if not attachment.key:
            attachment.key = generate_cuid()
        self._next_id += 1
        attachment.id = attachment.id or f"{self._next_id:08d}"
        now = utc_now()
        attachment.created_at = attachment.created_at or now
        attachment.updated_at = attachment.updated_at or now
        self.rows[attachment.uuid] = copy.deepcopy(attachment)
        return copy.deepcopy(attachment)

    async def save(self, attachment: Attachment) -> Attachment:
        attachment.updated_at = utc_now()
        self.rows[attachment.uuid] = copy.deepcopy(attachment)
        return copy.deepcopy(attachment)

    async def delete(self, attachment: Attachment) -> bool:
        return self.rows.pop(attachment.uuid, None) is not None

    def _orphans(self, cutoff: datetime) -> list[Attachment]:
        return sorted(
            (r for r in self.rows.values() if r.is_orphaned and r.updated_at <= cutoff),
            key=lambda r: r.id,
        )

    async def count_orphans(self, cutoff: datetime) -> int:
        return len(self._orphans(cutoff))

    async def list_orphans(
        self, cutoff: datetime, after_id: str | None = None, limit: int = 100
    ) -> list[Attachment]:
        rows = [r for r in self._orphans(cutoff) if after_id is None or r.id > after_id]
        return [copy.deepcopy(r) for r in rows[:limit]]


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Clear cached settings and registered output hooks around every test."""
    get_settings.cache_clear()
    AttachmentDeliveryService.clear_outputting_hooks()
    yield
    get_settings.cache_clear()
    AttachmentDeliveryService.clear_outputting_hooks()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        secret_key="unit-test-secret",
        encryption_salt="unit-test-salt",
        storage_root=str(tmp_path / "storage"),
        storage_prefix="attachments",
        database_url="",
        download_base_url="http://files.test",
        uuid_provider="hex",
    )


@pytest.fixture
def storage_factory(settings: Settings) -> StorageFactory:
    return StorageFactory(settings)


@pytest.fixture
def local_storage(storage_factory: StorageFactory):
    return storage_factory.for_disk("local")


@pytest.fixture
def attachment_repo() -> InMemoryAttachmentRepository:
    return InMemoryAttachmentRepository()


@pytest.fixture
def partitioner(settings: Settings) -> PathPartitioner:
    return PathPartitioner(settings.storage_prefix)


@pytest.fixture
def cascade(storage_factory: StorageFactory, settings: Settings) -> DeleteCascade:
    return DeleteCascade(storage_factory, settings.storage_prefix)


@pytest.fixture
def upload_service(storage_factory, attachment_repo, partitioner, settings) -> AttachmentUploadService:
    return AttachmentUploadService(storage_factory, attachment_repo, partitioner, settings)


@pytest.fixture
def deletion_service(attachment_repo, cascade, settings) -> AttachmentDeletionService:
    return AttachmentDeletionService(attachment_repo, cascade, settings)


@pytest.fixture
def binding_service(attachment_repo, deletion_service, settings) -> AttachmentBindingService:
    return AttachmentBindingService(attachment_repo, deletion_service, settings)


@pytest.fixture
def delivery_service(storage_factory) -> AttachmentDeliveryService:
    return AttachmentDeliveryService(storage_factory)


@pytest.fixture
def metadata_service(attachment_repo) -> AttachmentMetadataService:
    return AttachmentMetadataService(attachment_repo)


@pytest.fixture
def url_signer(settings: Settings) -> UrlSigner:
    return UrlSigner(settings)


@pytest.fixture
def url_builder(url_signer, storage_factory, settings) -> AttachmentUrlBuilder:
    return AttachmentUrlBuilder(url_signer, storage_factory, settings)


@pytest.fixture
async def stored_attachment(upload_service: AttachmentUploadService) -> Attachment:
    """A stored, orphaned attachment named "Quarterly Report.PDF"."""
    return await upload_service.from_stream(
        BytesIO(b"%PDF-1.4 quarterly"), "Quarterly Report.PDF", title="Q3"
    )
