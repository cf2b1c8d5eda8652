"""Attachment domain entity.

Represents one stored file, independent of persistence. Derived values
(extension, directory) are computed from immutable fields on access.
"""

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from attachments.core.constants import LOCAL_DISK
from attachments.domain.exceptions import ValidationException

# Fields that may be assigned once and never changed afterwards.
_WRITE_ONCE_FIELDS = ("uuid", "filepath")

_MISSING = object()


def file_extension(filename: str | None) -> str | None:
    """Return the extension of filename without the dot, or None.

    Dotfiles such as ".env" have no extension.
    """
    if not filename:
        return None
    base = posixpath.basename(filename)
    stem, dot, ext = base.rpartition(".")
    if not dot or not stem or not ext:
        return None
    return ext.lower()


@dataclass(frozen=True)
class Owner:
    """Entity an attachment is bound to (polymorphic type + id)."""

    type: str
    id: str

    def __post_init__(self) -> None:
        if not self.type or not self.id:
            raise ValidationException("Owner type and id are required", field="owner")


@dataclass
class Attachment:
    """Domain entity for one stored file.

    uuid and filepath are write-once; disk is frozen once the file has been
    stored (filepath set). Violations raise ValidationException.
    """

    uuid: str | None = None
    id: str | None = None
    owner_type: str | None = None
    owner_id: str | None = None
    disk: str | None = None
    filepath: str | None = None
    filename: str | None = None
    filetype: str | None = None
    filesize: int | None = None
    key: str | None = None
    group: str | None = None
    title: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        current = self.__dict__.get(name, _MISSING)
        if current is not _MISSING and current and value != current:
            if name in _WRITE_ONCE_FIELDS:
                raise ValidationException(
                    f"Attachment {name} cannot be changed once set", field=name
                )
            if name == "disk" and self.__dict__.get("filepath"):
                raise ValidationException(
                    "Attachment disk cannot be changed once the file is stored",
                    field="disk",
                )
        super().__setattr__(name, value)

    def validate(self) -> None:
        """Pre-persist validation. Raises ValidationException if invalid."""
        if not self.uuid:
            raise ValidationException("Failed to generate a UUID value", field="uuid")

    @property
    def extension(self) -> str | None:
        return file_extension(self.filename)

    @property
    def path(self) -> str | None:
        """Directory of filepath on the storage disk."""
        if not self.filepath:
            return None
        return posixpath.dirname(self.filepath)

    @property
    def is_local(self) -> bool:
        return self.disk == LOCAL_DISK

    @property
    def is_orphaned(self) -> bool:
        """True when the attachment is not bound to any owner."""
        return self.owner_type is None and self.owner_id is None

    def belongs_to(self, owner: Owner) -> bool:
        return self.owner_type == owner.type and self.owner_id == owner.id

    def bind_to(self, owner: Owner) -> None:
        self.owner_type = owner.type
        self.owner_id = owner.id

    def metadata_value(self, key: str | None, default: Any = None) -> Any:
        """Read a metadata value by dot-notation key ("a.b.c").

        Args:
            key: Dotted key; None returns the whole mapping.
            default: Returned when any segment is missing.
        """
        if key is None:
            return self.metadata
        node: Any = self.metadata or {}
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def without_metadata_key(self, key: str) -> bool:
        """Drop a top-level metadata key. Returns True if it was present."""
        if not self.metadata or key not in self.metadata:
            return False
        self.metadata = {k: v for k, v in self.metadata.items() if k != key}
        return True
