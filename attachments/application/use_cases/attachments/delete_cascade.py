"""Delete a record's file and prune the partition directories it leaves empty."""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from attachments.core.constants import PARTITION_SEGMENTS
from attachments.infrastructure.exceptions import StorageException

if TYPE_CHECKING:
    from attachments.domain.entities.attachment import Attachment
    from attachments.infrastructure.external.storage.factory import StorageFactory
    from attachments.infrastructure.external.storage.protocol import StorageProtocol

logger = logging.getLogger(__name__)


class DeleteCascade:
    """File removal that runs before an attachment row is deleted.

    After deleting the file, walks up from its directory at most as many
    levels as the partition is deep, deleting each directory that holds no
    files. Never touches the storage prefix or anything outside it.
    """

    def __init__(self, storage_factory: "StorageFactory", prefix: str) -> None:
        self.storage_factory = storage_factory
        self.prefix = prefix.strip("/")

    async def on_delete(self, record: "Attachment") -> None:
        """Delete the stored file (absence is fine) and prune empty parents.

        Raises:
            StorageException: The file delete itself failed.
        """
        if not record.filepath:
            return
        storage = self.storage_factory.for_disk(record.disk)
        await storage.delete(record.filepath)
        await self._prune(storage, posixpath.dirname(record.filepath))

    def _is_inside_prefix(self, directory: str) -> bool:
        """True for a strict descendant of the prefix (prefix itself excluded)."""
        directory = directory.strip("/")
        if not directory or directory == ".":
            return False
        if not self.prefix:
            return True
        return directory.startswith(f"{self.prefix}/")

    async def _is_directory_empty(
        self, storage: "StorageProtocol", directory: str
    ) -> bool | None:
        """None when the directory is absent, else whether it holds no files (recursive)."""
        if not await storage.exists(directory):
            return None
        return not await storage.list_files(directory)

    async def _prune(self, storage: "StorageProtocol", directory: str) -> None:
        for _ in range(PARTITION_SEGMENTS):
            if not self._is_inside_prefix(directory):
                return
            try:
                if await self._is_directory_empty(storage, directory) is not True:
                    return
                await storage.delete_directory(directory)
            except StorageException as e:
                logger.warning(
                    "Pruning %s on disk %s failed: %s",
                    directory,
                    storage.name,
                    e.message,
                )
                return
            logger.debug("Pruned empty directory %s on disk %s", directory, storage.name)
            directory = posixpath.dirname(directory)
