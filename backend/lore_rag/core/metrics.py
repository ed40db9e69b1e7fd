"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "lrag_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "lrag_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

JOBS_PROCESSED = Counter(
    "lrag_jobs_processed_total",
    "Indexing jobs by type and outcome",
    labelnames=("job_type", "outcome"),
    registry=REGISTRY,
)

JOB_DURATION = Histogram(
    "lrag_job_duration_seconds",
    "Indexing job execution time",
    labelnames=("job_type",),
    registry=REGISTRY,
)

CACHE_EVENTS = Counter(
    "lrag_embedding_cache_events_total",
    "Embedding cache hits, misses, evictions and expiries",
    labelnames=("event",),
    registry=REGISTRY,
)

RETRIEVE_LATENCY = Histogram(
    "lrag_retrieve_latency_seconds",
    "Latency of retrieval calls",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "lrag_index_chunks",
    "Number of chunks stored in index",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "JOBS_PROCESSED",
    "JOB_DURATION",
    "CACHE_EVENTS",
    "RETRIEVE_LATENCY",
    "INDEX_SIZE",
    "metrics_response",
]
