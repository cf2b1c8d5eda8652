"""External integrations (object storage)."""
