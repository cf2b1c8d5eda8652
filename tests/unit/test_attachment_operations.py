"""Tests for attachment operations: create, attach, delete, deliver, update."""

from io import BytesIO
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from starlette.datastructures import Headers, UploadFile

from attachments.application.use_cases.attachments import (
    AttachmentDeletionService,
    AttachmentDeliveryService,
)
from attachments.core.constants import UPLOAD_SESSION_METADATA_KEY
from attachments.domain.entities.attachment import Attachment, Owner
from attachments.domain.exceptions import ValidationException
from attachments.infrastructure.exceptions import StorageNotFoundError
from attachments.infrastructure.external.storage.s3_storage import S3StorageBackend


class TestUpload:
    async def test_from_stream_reads_size_and_type_back(self, stored_attachment, local_storage) -> None:
        record = stored_attachment
        assert record.id
        assert record.key
        assert record.disk == "local"
        assert record.filename == "Quarterly Report.PDF"
        assert record.filesize == len(b"%PDF-1.4 quarterly")
        assert record.filetype == "application/pdf"
        assert record.title == "Q3"
        uuid = record.uuid
        assert record.filepath == f"attachments/{uuid[0:3]}/{uuid[3:6]}/{uuid[6:9]}/{uuid}.pdf"
        assert await local_storage.get(record.filepath) == b"%PDF-1.4 quarterly"

    async def test_from_file(self, upload_service, attachment_repo, local_storage, tmp_path: Path) -> None:
        source = tmp_path / "notes.TXT"
        source.write_bytes(b"remember")

        record = await upload_service.from_file(source, key="notes")

        assert record.filename == "notes.TXT"
        assert record.filesize == 8
        assert record.filetype == "text/plain"
        assert record.filepath.endswith(f"{record.uuid}.txt")
        assert record.key == "notes"
        assert await local_storage.get(record.filepath) == b"remember"
        assert record.uuid in attachment_repo.rows

    async def test_from_upload_uses_client_name_and_type(self, upload_service, local_storage) -> None:
        upload = UploadFile(
            file=BytesIO(b"\x89PNG..."),
            filename="C:\\Users\\me\\avatar.png",
            size=7,
            headers=Headers({"content-type": "image/png"}),
        )

        record = await upload_service.from_upload(upload, metadata={"width": 1})

        assert record.filename == "avatar.png"
        assert record.filetype == "image/png"
        assert record.filesize == 7
        assert record.metadata == {"width": 1}
        assert await local_storage.get(record.filepath) == b"\x89PNG..."

    async def test_explicit_disk_is_used(self, upload_service, storage_factory) -> None:
        remote = MagicMock()
        remote.name = "s3"

        async def _noop(*args, **kwargs):
            return None

        async def _size(path):
            return 3

        async def _mime(path):
            return "text/plain"

        remote.put_stream = _noop
        remote.size = _size
        remote.mime_type = _mime
        storage_factory.register("s3", remote)

        record = await upload_service.from_stream(BytesIO(b"abc"), "a.txt", disk="s3")

        assert record.disk == "s3"
        assert record.is_local is False

    @pytest.mark.parametrize(
        ("method", "args"),
        [("from_file", (None,)), ("from_upload", (None,)), ("from_stream", (None, "a.txt"))],
    )
    async def test_none_source_rejected(self, upload_service, method, args) -> None:
        with pytest.raises(ValidationException):
            await getattr(upload_service, method)(*args)

    async def test_missing_source_file_rejected(self, upload_service, tmp_path: Path) -> None:
        with pytest.raises(ValidationException, match="not found"):
            await upload_service.from_file(tmp_path / "absent.bin")

    async def test_empty_filename_rejected(self, upload_service) -> None:
        with pytest.raises(ValidationException):
            await upload_service.from_stream(BytesIO(b"x"), "")

    async def test_unknown_field_rejected(self, upload_service) -> None:
        with pytest.raises(ValidationException, match="uuid"):
            await upload_service.from_stream(BytesIO(b"x"), "a.txt", uuid="forced")

    async def test_empty_generated_uuid_rejected(
        self, storage_factory, attachment_repo, partitioner, settings
    ) -> None:
        from attachments.application.use_cases.attachments import AttachmentUploadService

        provider = MagicMock()
        provider.generate.return_value = ""
        service = AttachmentUploadService(
            storage_factory, attachment_repo, partitioner, settings, uuid_provider=provider
        )
        with pytest.raises(ValidationException, match="Failed to generate a UUID value"):
            await service.from_stream(BytesIO(b"x"), "a.txt")

    async def test_from_stream_on_s3_disk_records_content_type(
        self, upload_service, storage_factory
    ) -> None:
        objects: dict[str, dict] = {}

        def upload_fileobj(stream, bucket, key, ExtraArgs=None):
            data = stream.read()
            objects[key] = {"ContentLength": len(data), **(ExtraArgs or {})}

        client = MagicMock()
        client.upload_fileobj.side_effect = upload_fileobj
        client.head_object.side_effect = lambda Bucket, Key: objects[Key]
        storage_factory.register("s3", S3StorageBackend(bucket="files", client=client))

        record = await upload_service.from_stream(
            BytesIO(b"\x89PNG\r\n"), "photo.png", disk="s3"
        )

        assert record.filetype == "image/png"
        assert record.filesize == 6
        assert objects[record.filepath]["ContentType"] == "image/png"


class TestAttach:
    async def test_colliding_key_replaces_previous_record(
        self, upload_service, binding_service, attachment_repo, local_storage
    ) -> None:
        owner = Owner("Post", "1")
        old = await upload_service.from_stream(BytesIO(b"old"), "old.jpg")
        await binding_service.attach(old.uuid, owner, {"key": "cover"})
        new = await upload_service.from_stream(BytesIO(b"new"), "new.jpg")

        bound = await binding_service.attach(new.uuid, owner, {"key": "cover"})

        assert bound is not None
        assert bound.belongs_to(owner)
        covers = [r for r in await attachment_repo.list_by_owner(owner) if r.key == "cover"]
        assert [r.uuid for r in covers] == [new.uuid]
        assert old.uuid not in attachment_repo.rows
        assert await local_storage.exists(old.filepath) is False

    async def test_other_owner_keeps_its_key(self, upload_service, binding_service, attachment_repo) -> None:
        first = await upload_service.from_stream(BytesIO(b"1"), "a.jpg")
        second = await upload_service.from_stream(BytesIO(b"2"), "b.jpg")
        await binding_service.attach(first.uuid, Owner("Post", "1"), {"key": "cover"})
        await binding_service.attach(second.uuid, Owner("Post", "2"), {"key": "cover"})
        assert {first.uuid, second.uuid} <= set(attachment_repo.rows)

    async def test_reattaching_same_record_keeps_it(self, stored_attachment, binding_service, attachment_repo) -> None:
        owner = Owner("Post", "1")
        await binding_service.attach(stored_attachment.uuid, owner, {"key": "cover"})
        again = await binding_service.attach(stored_attachment.uuid, owner, {"key": "cover"})
        assert again is not None
        assert stored_attachment.uuid in attachment_repo.rows

    async def test_unknown_uuid_returns_none(self, binding_service) -> None:
        assert await binding_service.attach("missing", Owner("Post", "1")) is None

    async def test_strips_upload_session_key_and_filters_options(
        self, upload_service, binding_service
    ) -> None:
        record = await upload_service.from_stream(
            BytesIO(b"x"),
            "a.txt",
            metadata={UPLOAD_SESSION_METADATA_KEY: "abc", "source": "web"},
        )

        bound = await binding_service.attach(
            record.uuid,
            Owner("User", "7"),
            {"title": "Avatar", "filepath": "evil/path", "owner_id": "99"},
        )

        assert bound.metadata == {"source": "web"}
        assert bound.title == "Avatar"
        assert bound.filepath == record.filepath
        assert bound.owner_id == "7"


class TestDelete:
    async def test_delete_cascades_to_file(self, stored_attachment, deletion_service, local_storage, attachment_repo) -> None:
        assert await deletion_service.delete(stored_attachment) is True
        assert await local_storage.exists(stored_attachment.filepath) is False
        assert stored_attachment.uuid not in attachment_repo.rows

    async def test_cascade_disabled_keeps_file(
        self, stored_attachment, attachment_repo, cascade, settings, local_storage
    ) -> None:
        service = AttachmentDeletionService(
            attachment_repo, cascade, settings.model_copy(update={"cascade_delete": False})
        )
        assert await service.delete(stored_attachment) is True
        assert await local_storage.exists(stored_attachment.filepath) is True

    async def test_delete_twice(self, stored_attachment, deletion_service) -> None:
        await deletion_service.delete(stored_attachment)
        assert await deletion_service.delete(stored_attachment) is False


class TestDelivery:
    async def test_get_contents(self, stored_attachment, delivery_service) -> None:
        assert await delivery_service.get_contents(stored_attachment) == b"%PDF-1.4 quarterly"

    async def test_output_headers(self, stored_attachment, delivery_service) -> None:
        response = await delivery_service.output(stored_attachment)

        assert response.body == b"%PDF-1.4 quarterly"
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == 'inline; filename="Quarterly Report.PDF"'
        assert response.headers["cache-control"] == (
            "private, no-store, no-cache, must-revalidate, pre-check=0, post-check=0, max-age=0"
        )
        assert response.headers["accept-ranges"] == "bytes"
        assert response.headers["content-length"] == str(stored_attachment.filesize)

    async def test_output_attachment_disposition(self, stored_attachment, delivery_service) -> None:
        response = await delivery_service.output(stored_attachment, "attachment")
        assert response.headers["content-disposition"].startswith("attachment;")

    async def test_non_ascii_filename_gets_extended_parameter(self, upload_service, delivery_service) -> None:
        record = await upload_service.from_stream(BytesIO(b"x"), "résumé.txt")
        response = await delivery_service.output(record)
        assert "filename*=utf-8''r%C3%A9sum%C3%A9.txt" in response.headers["content-disposition"]

    async def test_invalid_disposition_rejected(self, stored_attachment, delivery_service) -> None:
        with pytest.raises(ValidationException):
            await delivery_service.output(stored_attachment, "download")

    async def test_hook_veto(self, stored_attachment, delivery_service) -> None:
        seen: list[str] = []

        @AttachmentDeliveryService.outputting
        def deny(record: Attachment) -> bool:
            seen.append(record.uuid)
            return False

        assert await delivery_service.output(stored_attachment) is False
        assert seen == [stored_attachment.uuid]

    async def test_async_hook_allowing_delivery(self, stored_attachment, delivery_service) -> None:
        async def allow(record: Attachment) -> None:
            return None

        AttachmentDeliveryService.outputting(allow)
        response = await delivery_service.output(stored_attachment)
        assert response is not False
        assert response.status_code == 200

    async def test_missing_file_raises(self, delivery_service) -> None:
        record = Attachment(uuid="gone", disk="local", filename="a.txt", filepath="attachments/gon/gone.txt")
        with pytest.raises(StorageNotFoundError):
            await delivery_service.output(record)


class TestMetadataUpdate:
    async def test_update_descriptive_fields(self, stored_attachment, metadata_service, attachment_repo) -> None:
        updated = await metadata_service.update(
            stored_attachment, title="Q4", metadata={"pages": 3}
        )
        assert updated.title == "Q4"
        assert updated.description is None
        assert attachment_repo.rows[stored_attachment.uuid].metadata == {"pages": 3}
