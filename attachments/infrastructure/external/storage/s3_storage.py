"""S3-compatible object storage (AWS S3, MinIO, etc.)."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import ClientError

from attachments.core.constants import DEFAULT_MIME_TYPE
from attachments.infrastructure.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageNotFoundError,
    StorageUploadError,
)
from attachments.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

# delete_objects accepts at most 1000 keys per request
_DELETE_BATCH = 1000


def content_type_for(path: str) -> str:
    """MIME type guessed from the object name, as the local disk reports it."""
    guessed, _ = mimetypes.guess_type(path)
    return guessed or DEFAULT_MIME_TYPE


def remote_path(path: str) -> str:
    """Return path with a leading separator, as handed to the remote client."""
    return path if path.startswith("/") else f"/{path}"


def _is_not_found(e: ClientError) -> bool:
    return e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3StorageBackend:
    """S3-compatible storage.

    Every path gets a leading "/" (remote_path); the object key is that path
    without the separator. Uses boto3 (sync) via asyncio.to_thread for the
    async API. Compatible with AWS S3, MinIO, DigitalOcean Spaces.
    """

    def __init__(
        self,
        bucket: str,
        name: str = "s3",
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        public_url: str | None = None,
        client: Any = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            name: Disk name (for logs and errors).
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            public_url: Base URL for public object links; defaults to path-style endpoint URL.
            client: Pre-built boto3 S3 client (tests).
        """
        self.name = name
        self.bucket = bucket
        self.region = region
        self.public_url = public_url.rstrip("/") if public_url else None
        if client is None:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                **extra,
            )
        self._client = client

    @staticmethod
    def _key(path: str) -> str:
        return remote_path(path)[1:]

    @staticmethod
    def _prefix(path: str) -> str:
        key = S3StorageBackend._key(path).rstrip("/")
        return f"{key}/" if key else ""

    def _head(self, path: str) -> dict[str, Any]:
        try:
            return self._client.head_object(Bucket=self.bucket, Key=self._key(path))
        except ClientError as e:
            if _is_not_found(e):
                raise StorageNotFoundError(remote_path(path)) from e
            raise StorageDownloadError(remote_path(path), str(e)) from e

    def _iter_keys(self, path: str) -> list[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self._prefix(path)):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    @traced("storage.s3.put")
    async def put(self, path: str, data: bytes) -> None:
        """Upload bytes to the object key for path."""
        def _put() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=self._key(path),
                Body=data,
                ContentType=content_type_for(path),
            )

        try:
            await asyncio.to_thread(_put)
        except Exception as e:
            raise StorageUploadError(remote_path(path), str(e)) from e

    @traced("storage.s3.put_stream")
    async def put_stream(self, path: str, stream: BinaryIO) -> None:
        """Upload a binary stream (multipart handled by boto3)."""
        def _upload() -> None:
            self._client.upload_fileobj(
                stream,
                self.bucket,
                self._key(path),
                ExtraArgs={"ContentType": content_type_for(path)},
            )

        try:
            await asyncio.to_thread(_upload)
        except Exception as e:
            raise StorageUploadError(remote_path(path), str(e)) from e

    @traced("storage.s3.get")
    async def get(self, path: str) -> bytes:
        """Return object content."""
        def _get() -> bytes:
            try:
                resp = self._client.get_object(Bucket=self.bucket, Key=self._key(path))
                return resp["Body"].read()
            except ClientError as e:
                if _is_not_found(e):
                    raise StorageNotFoundError(remote_path(path)) from e
                raise StorageDownloadError(remote_path(path), str(e)) from e

        return await asyncio.to_thread(_get)

    @traced("storage.s3.delete")
    async def delete(self, path: str) -> bool:
        """Delete object. Returns True if deleted, False if not found."""
        def _delete() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=self._key(path))
            except ClientError as e:
                if _is_not_found(e):
                    return False
                raise StorageDeleteError(remote_path(path), str(e)) from e
            try:
                self._client.delete_object(Bucket=self.bucket, Key=self._key(path))
            except ClientError as e:
                raise StorageDeleteError(remote_path(path), str(e)) from e
            return True

        return await asyncio.to_thread(_delete)

    async def exists(self, path: str) -> bool:
        """Return True if an object exists at path or any object exists under it."""
        def _exists() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=self._key(path))
                return True
            except ClientError as e:
                if not _is_not_found(e):
                    raise StorageDownloadError(remote_path(path), str(e)) from e
            resp = self._client.list_objects_v2(
                Bucket=self.bucket, Prefix=self._prefix(path), MaxKeys=1
            )
            return resp.get("KeyCount", len(resp.get("Contents", []))) > 0

        return await asyncio.to_thread(_exists)

    async def list_files(self, path: str) -> list[str]:
        """Return all object paths under path (recursive), without the leading separator."""
        try:
            return sorted(await asyncio.to_thread(self._iter_keys, path))
        except ClientError as e:
            raise StorageDownloadError(remote_path(path), str(e)) from e

    async def size(self, path: str) -> int:
        """Return object size in bytes."""
        head = await asyncio.to_thread(self._head, path)
        return int(head["ContentLength"])

    async def mime_type(self, path: str) -> str:
        """Return the stored Content-Type."""
        head = await asyncio.to_thread(self._head, path)
        return head.get("ContentType") or DEFAULT_MIME_TYPE

    @traced("storage.s3.delete_directory")
    async def delete_directory(self, path: str) -> bool:
        """Delete every object under path. Returns False if there were none."""
        def _delete_all() -> bool:
            keys = self._iter_keys(path)
            if not keys:
                return False
            for start in range(0, len(keys), _DELETE_BATCH):
                batch = keys[start : start + _DELETE_BATCH]
                resp = self._client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
                failed = resp.get("Errors") or []
                if failed:
                    first = failed[0]
                    raise StorageDeleteError(
                        remote_path(path),
                        f"{len(failed)} object(s) not deleted, first {first.get('Key')}: "
                        f"{first.get('Code')}",
                    )
            return True

        try:
            return await asyncio.to_thread(_delete_all)
        except ClientError as e:
            raise StorageDeleteError(remote_path(path), str(e)) from e

    def url(self, path: str) -> str:
        """Public object URL (public_url base or path-style endpoint URL)."""
        key = self._key(path)
        if self.public_url:
            return f"{self.public_url}/{key}"
        endpoint = str(self._client.meta.endpoint_url).rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"
