"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from docmapper.observability.context import bound_context, get_trace_context, set_trace_context, trace_context
from docmapper.observability.logging import JsonFormatter, configure_logging, configure_logging_from_settings
from docmapper.observability.metrics import (
    BUILD_COUNT,
    BUILD_LATENCY,
    FIELDS_MAPPED,
    FIELDS_SKIPPED,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from docmapper.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "BUILD_COUNT",
    "BUILD_LATENCY",
    "FIELDS_MAPPED",
    "FIELDS_SKIPPED",
    "JsonFormatter",
    "bound_context",
    "configure_logging",
    "configure_logging_from_settings",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
