"""Deterministic storage paths derived from an attachment uuid."""

from attachments.core.constants import PARTITION_SEGMENT_LENGTH, PARTITION_SEGMENTS

_STRIPPED_CHARS = str.maketrans("", "", "./\\")


class PathPartitioner:
    """Spread files over a three-level directory tree keyed on the uuid.

    ABCDE1234F with extension jpg and prefix "attachments" is stored at
    attachments/ABC/DE1/234/ABCDE1234F.jpg. The result depends only on its
    inputs.
    """

    def __init__(self, prefix: str = "attachments") -> None:
        self.prefix = prefix.strip("/")

    def partition_directory(self, uuid: str) -> str:
        """First three 3-character chunks of uuid joined by "/", with a trailing "/".

        Identifiers shorter than nine characters produce fewer segments.
        """
        head = uuid[: PARTITION_SEGMENT_LENGTH * PARTITION_SEGMENTS]
        segments = [
            head[i : i + PARTITION_SEGMENT_LENGTH]
            for i in range(0, len(head), PARTITION_SEGMENT_LENGTH)
        ]
        if not segments:
            return ""
        return "/".join(segments) + "/"

    def disk_name(self, uuid: str, extension: str | None) -> str:
        """File name on disk: uuid without separators or dots, plus the lowercased extension."""
        name = uuid.translate(_STRIPPED_CHARS)
        if extension:
            return f"{name}.{extension.lower()}"
        return name

    def storage_path(self, uuid: str, extension: str | None) -> str:
        """Full disk-relative path: prefix/partition/disk_name."""
        relative = self.partition_directory(uuid) + self.disk_name(uuid, extension)
        if not self.prefix:
            return relative
        return f"{self.prefix}/{relative}"
