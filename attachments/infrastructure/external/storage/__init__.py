"""Storage: local filesystem and S3-compatible backends.

StorageFactory.for_disk() resolves a record's disk to a backend. S3 is
loaded lazily so the local disk only requires aiofiles; install boto3 with
the "storage" extra for remote disks.

Implementations implement StorageProtocol (put, put_stream, get, delete,
exists, list_files, size, mime_type, delete_directory, url).
"""

from attachments.infrastructure.external.storage.factory import StorageFactory
from attachments.infrastructure.external.storage.protocol import StorageProtocol

__all__ = [
    "StorageFactory",
    "StorageProtocol",
]
