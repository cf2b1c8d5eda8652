"""Tests for the traced decorator (no SDK installed: spans are no-ops)."""

import pytest

from attachments.shared.telemetry.tracing import add_span_attributes, traced


@traced("test.sync")
def double(value: int) -> int:
    return value * 2


@traced()
async def fetch(path: str) -> str:
    add_span_attributes(**{"test.path": path})
    if not path:
        raise ValueError("empty path")
    return path.upper()


def test_sync_result_passes_through() -> None:
    assert double(4) == 8
    assert double.__name__ == "double"


async def test_async_result_and_errors_pass_through() -> None:
    assert await fetch(path="a/b") == "A/B"
    with pytest.raises(ValueError, match="empty path"):
        await fetch(path="")
