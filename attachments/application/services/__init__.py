"""Application services: path partitioning, URL signing and URL building."""

from attachments.application.services.attachment_urls import AttachmentUrlBuilder
from attachments.application.services.path_partitioner import PathPartitioner
from attachments.application.services.url_signer import UrlSigner

__all__ = ["AttachmentUrlBuilder", "PathPartitioner", "UrlSigner"]
