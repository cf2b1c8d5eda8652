"""Storage backend factory: resolves a record's disk to a local or S3 backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from attachments.core.constants import LOCAL_DISK
from attachments.infrastructure.external.storage.protocol import StorageProtocol

if TYPE_CHECKING:
    from attachments.core.config import Settings


class StorageFactory:
    """Creates and caches one storage backend per disk name.

    "local" selects LocalStorageBackend rooted at storage_root; any other
    disk selects S3StorageBackend with the configured bucket.
    """

    def __init__(self, settings: "Settings | None" = None) -> None:
        from attachments.core.config import get_settings

        self.settings = settings or get_settings()
        self._backends: dict[str, StorageProtocol] = {}

    def register(self, disk: str, backend: StorageProtocol) -> None:
        """Install a pre-built backend for disk (e.g. a custom client in tests)."""
        self._backends[disk] = backend

    def for_disk(self, disk: str | None) -> StorageProtocol:
        """Return the backend for disk, creating it on first use.

        Args:
            disk: Disk name; None uses settings.default_disk.

        Raises:
            ValueError: Missing required config for a remote disk.
        """
        name = disk or self.settings.default_disk
        backend = self._backends.get(name)
        if backend is None:
            backend = self.create_storage_backend(name, self.settings)
            self._backends[name] = backend
        return backend

    @staticmethod
    def create_storage_backend(disk: str, settings: "Settings") -> StorageProtocol:
        """Create a backend for disk from settings.

        Raises:
            ValueError: Missing required config.
        """
        if disk == LOCAL_DISK:
            from attachments.infrastructure.external.storage.local_storage import (
                LocalStorageBackend,
            )

            if not settings.storage_root:
                raise ValueError("STORAGE_ROOT required for local disk")
            return LocalStorageBackend(storage_root=settings.storage_root, name=disk)

        if not settings.s3_bucket:
            raise ValueError(f"S3_BUCKET required for remote disk {disk!r}")
        try:
            from attachments.infrastructure.external.storage.s3_storage import (
                S3StorageBackend,
            )
        except ImportError as e:
            raise ValueError(
                "Remote disks require boto3. Install with: pip install 'attachments[storage]'"
            ) from e
        return S3StorageBackend(
            bucket=settings.s3_bucket,
            name=disk,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key,
            secret_key=(
                settings.s3_secret_key.get_secret_value()
                if settings.s3_secret_key
                else None
            ),
            public_url=settings.s3_public_url,
        )
