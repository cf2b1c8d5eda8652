"""Shared utilities: datetime, generators, sanitization."""

from attachments.shared.utils.datetime import (
    ensure_utc,
    from_timestamp_utc,
    minutes_ago,
    to_timestamp,
    utc_now,
)
from attachments.shared.utils.generators import (
    UUID_PROVIDERS,
    UuidProvider,
    generate_cuid,
    get_uuid_provider,
)
from attachments.shared.utils.sanitization import FilenameSanitizer, slugify

__all__ = [
    "generate_cuid",
    "get_uuid_provider",
    "UuidProvider",
    "UUID_PROVIDERS",
    "utc_now",
    "minutes_ago",
    "ensure_utc",
    "to_timestamp",
    "from_timestamp_utc",
    "FilenameSanitizer",
    "slugify",
]
