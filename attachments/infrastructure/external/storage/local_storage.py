"""Local filesystem storage with path validation and atomic writes."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
import shutil
import tempfile
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

import aiofiles
import aiofiles.os

from attachments.core.constants import DEFAULT_MIME_TYPE, LOCAL_DISK
from attachments.infrastructure.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StorageNotSupportedError,
    StoragePermissionError,
    StorageUploadError,
)
from attachments.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)


class LocalStorageBackend:
    """Local filesystem storage with atomic writes and path traversal protection.

    Every path is resolved relative to storage_root. Directory creation is
    implicit and idempotent. Writes use temp file + rename.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, storage_root: str, name: str = LOCAL_DISK) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all files.
            name: Disk name (for logs and errors).
        """
        self.name = name
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, path: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / path.lstrip("/")).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(path, "path_validation") from e
        return full_path

    def _relative(self, full_path: Path) -> str:
        return full_path.relative_to(self.storage_root).as_posix()

    def _ensure_directory(self, directory: Path) -> None:
        """Create directory (and parents). A failed mkdir is only a warning if the directory exists anyway."""
        if directory.is_dir():
            return
        try:
            directory.mkdir(parents=True, exist_ok=True, mode=0o750)
        except OSError as e:
            if not directory.is_dir():
                raise
            logger.warning(
                "Directory creation for %s failed but directory exists: %s",
                directory,
                e,
            )

    async def _write_atomic(self, path: str, stream: BinaryIO) -> None:
        target_path = self._get_full_path(path)
        try:
            self._ensure_directory(target_path.parent)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent,
                prefix=".tmp_",
                suffix=target_path.suffix,
            )
            os.close(temp_fd)
            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    while chunk := stream.read(self.CHUNK_SIZE):
                        await f.write(chunk)
                os.chmod(temp_path, 0o640)
                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageUploadError(path, str(e)) from e

    @traced("storage.local.put")
    async def put(self, path: str, data: bytes) -> None:
        """Write bytes to path atomically."""
        await self._write_atomic(path, BytesIO(data))

    @traced("storage.local.put_stream")
    async def put_stream(self, path: str, stream: BinaryIO) -> None:
        """Copy a binary stream to path atomically."""
        await self._write_atomic(path, stream)

    @traced("storage.local.get")
    async def get(self, path: str) -> bytes:
        """Return file content."""
        file_path = self._get_full_path(path)
        if not file_path.is_file():
            raise StorageNotFoundError(path)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except Exception as e:
            raise StorageDownloadError(path, str(e)) from e

    @traced("storage.local.delete")
    async def delete(self, path: str) -> bool:
        """Delete file. Returns True if deleted, False if it did not exist."""
        file_path = self._get_full_path(path)
        if not file_path.is_file():
            return False
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            return False
        except Exception as e:
            raise StorageDeleteError(path, str(e)) from e
        return True

    async def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""
        try:
            return self._get_full_path(path).exists()
        except StoragePermissionError:
            return False

    async def list_files(self, path: str) -> list[str]:
        """Return all file paths under path (recursive), relative to storage_root."""
        directory = self._get_full_path(path)
        if not directory.is_dir():
            return []

        def _walk() -> list[str]:
            return sorted(
                self._relative(p) for p in directory.rglob("*") if p.is_file()
            )

        return await asyncio.to_thread(_walk)

    async def size(self, path: str) -> int:
        """Return file size in bytes."""
        file_path = self._get_full_path(path)
        if not file_path.is_file():
            raise StorageNotFoundError(path)
        return file_path.stat().st_size

    async def mime_type(self, path: str) -> str:
        """Guess MIME type from the file name."""
        file_path = self._get_full_path(path)
        if not file_path.is_file():
            raise StorageNotFoundError(path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return guessed or DEFAULT_MIME_TYPE

    @traced("storage.local.delete_directory")
    async def delete_directory(self, path: str) -> bool:
        """Delete directory recursively. Returns False if it did not exist."""
        directory = self._get_full_path(path)
        if directory == self.storage_root:
            raise StoragePermissionError(path, "delete_root")
        if not directory.is_dir():
            return False
        try:
            await asyncio.to_thread(shutil.rmtree, directory)
        except FileNotFoundError:
            return False
        except Exception as e:
            raise StorageDeleteError(path, str(e)) from e
        return True

    def url(self, path: str) -> str:
        """Local files have no public URL; they are served through the proxy route."""
        raise StorageNotSupportedError("url", self.name)
