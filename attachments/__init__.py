"""Attachments: partitioned file storage, signed download URLs and orphan cleanup."""
