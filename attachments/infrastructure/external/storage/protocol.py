"""Storage backend protocol (DIP). Implementations: LocalStorageBackend, S3StorageBackend."""

from typing import BinaryIO, Protocol


class StorageProtocol(Protocol):
    """Uniform file operations over a storage disk.

    Paths are disk-relative ("attachments/ABC/DE1/234/x.jpg"). Absence is
    never an error for delete/delete_directory/exists.
    """

    name: str

    async def put(self, path: str, data: bytes) -> None:
        """Write bytes to path, creating parent directories as needed."""
        ...

    async def put_stream(self, path: str, stream: BinaryIO) -> None:
        """Write a readable binary stream to path."""
        ...

    async def get(self, path: str) -> bytes:
        """Return file content. Raises StorageNotFoundError when absent."""
        ...

    async def delete(self, path: str) -> bool:
        """Delete file. Returns True if deleted, False if not found."""
        ...

    async def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""
        ...

    async def list_files(self, path: str) -> list[str]:
        """Return all file paths under path, recursively."""
        ...

    async def size(self, path: str) -> int:
        """Return file size in bytes."""
        ...

    async def mime_type(self, path: str) -> str:
        """Return the MIME type of the stored file."""
        ...

    async def delete_directory(self, path: str) -> bool:
        """Delete a directory and its content. Returns False if not found."""
        ...

    def url(self, path: str) -> str:
        """Return a public URL for path (remote disks only)."""
        ...
