"""Filename sanitization and slug helpers for download URLs and headers."""

import os
import re
import unicodedata
from typing import ClassVar


class FilenameSanitizer:
    """Normalize user-supplied filenames for storage metadata and URLs."""

    SLUG_STRIP_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"[^\w\s-]")
    SLUG_SEPARATOR_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"[-\s_]+")

    @classmethod
    def slugify(cls, value: str, separator: str = "-") -> str:
        """ASCII-fold, lowercase and collapse runs of separators.

        Args:
            value: Arbitrary text (usually a filename stem).
            separator: Character joining words.

        Returns:
            Slug, possibly empty when value has no ASCII-representable content.
        """
        if not value:
            return ""
        folded = (
            unicodedata.normalize("NFKD", value)
            .encode("ascii", "ignore")
            .decode("ascii")
        )
        cleaned = cls.SLUG_STRIP_PATTERN.sub("", folded).strip().lower()
        return cls.SLUG_SEPARATOR_PATTERN.sub(separator, cleaned).strip(separator)

    @classmethod
    def basename(cls, filename: str) -> str:
        """Strip directories and NUL bytes from a client-supplied filename."""
        name = os.path.basename(filename.replace("\\", "/"))
        return name.replace("\x00", "").strip()

    @classmethod
    def quote_header_value(cls, value: str) -> str:
        """Escape a filename for a quoted Content-Disposition parameter."""
        return value.replace("\\", "\\\\").replace('"', '\\"').replace("\r", "").replace("\n", "")


def slugify(value: str, separator: str = "-") -> str:
    """Convenience function for FilenameSanitizer.slugify."""
    return FilenameSanitizer.slugify(value, separator)
