"""Context propagation for correlating build logs with trace spans."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span

trace_context: ContextVar[dict | None] = ContextVar("docmapper_trace_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Get current trace context with trace_id and span_id."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def bind_span(span: Span, **extra: object) -> None:
    """Adopt an OpenTelemetry span's ids as the current log correlation context."""
    ctx = span.get_span_context()
    set_trace_context(format(ctx.trace_id, "032x"), format(ctx.span_id, "016x"), **extra)


@contextmanager
def bound_context(**extra: object) -> Iterator[dict]:
    """Add extra keys (e.g. record_type) to the current trace context for the duration of the block."""
    ctx = {**get_trace_context(), **extra}
    token = trace_context.set(ctx)
    try:
        yield ctx
    finally:
        trace_context.reset(token)
