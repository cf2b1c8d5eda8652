"""Logging setup and tracing helpers."""

from attachments.shared.telemetry.logging import setup_logging
from attachments.shared.telemetry.tracing import add_span_attributes, traced

__all__ = ["setup_logging", "traced", "add_span_attributes"]
