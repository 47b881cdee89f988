"""Prometheus metrics for mapping builds."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


BUILD_COUNT = Counter(
    "docmapper_builds_total",
    "Index mapping builds",
    ["status"],
)

BUILD_LATENCY = Histogram(
    "docmapper_build_latency_seconds",
    "Index mapping build latency in seconds",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
)

FIELDS_MAPPED = Counter(
    "docmapper_fields_mapped_total",
    "Leaf field mappings added",
    ["field_type"],
)

FIELDS_SKIPPED = Counter(
    "docmapper_fields_skipped_total",
    "Fields left out of a mapping",
    ["reason"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
