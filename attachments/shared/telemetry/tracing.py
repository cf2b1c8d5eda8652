"""OpenTelemetry spans around storage and cleanup operations.

Only the API package is used; spans are no-ops unless the host process
installs an SDK tracer provider.
"""

import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

AttributeValue = str | int | float | bool

# Keyword arguments copied onto spans. Paths and uuids are fine to record;
# file contents, tokens and metadata are not.
SPAN_ARGUMENTS = frozenset({"path", "prefix", "disk", "uuid", "since_minutes", "disposition"})

_tracer = trace.get_tracer("attachments")


@contextmanager
def _span(name: str, kwargs: dict[str, Any]) -> Iterator[trace.Span]:
    with _tracer.start_as_current_span(name, record_exception=False) as span:
        for key, value in kwargs.items():
            if key in SPAN_ARGUMENTS and value is not None:
                span.set_attribute(f"attachments.{key}", str(value))
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.record_exception(e)
            raise


def traced(name: str | None = None) -> Callable[[Callable], Callable]:
    """Run the decorated function (sync or async) inside a span.

    The span is named name, or module.qualname when omitted.
    """

    def decorator(func: Callable) -> Callable:
        span_name = name or f"{func.__module__}.{func.__qualname__}"

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(span_name, kwargs):
                    return await func(*args, **kwargs)

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(span_name, kwargs):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: AttributeValue) -> None:
    """Set attributes on the current span when it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)
