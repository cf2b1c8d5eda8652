"""Core constants shared by storage, records and cleanup."""

# Disk name that selects the local filesystem backend; any other disk is remote.
LOCAL_DISK = "local"

# Partition depth: ABCDE1234 -> ABC/DE1/234/
PARTITION_SEGMENTS = 3
PARTITION_SEGMENT_LENGTH = 3

# Metadata key set by the upload widget for session checks; never persisted on attach.
UPLOAD_SESSION_METADATA_KEY = "upload_session_key"

# Orphan cleanup
CLEANUP_BATCH_SIZE = 100
DEFAULT_CLEANUP_SINCE_MINUTES = 1440

DEFAULT_MIME_TYPE = "application/octet-stream"
