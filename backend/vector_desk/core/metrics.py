"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

GATEWAY_CALLS = Counter(
    "vdesk_gateway_calls_total",
    "Calls made across the vector database boundary",
    labelnames=("operation", "status"),
    registry=REGISTRY,
)

GATEWAY_LATENCY = Histogram(
    "vdesk_gateway_latency_seconds",
    "Latency of vector database calls",
    labelnames=("operation",),
    registry=REGISTRY,
)

CACHE_LOOKUPS = Counter(
    "vdesk_cache_lookups_total",
    "Query cache lookups",
    labelnames=("kind", "result"),
    registry=REGISTRY,
)

CLIPBOARD_COPIES = Counter(
    "vdesk_clipboard_copies_total",
    "Clipboard copy operations",
    labelnames=("kind",),
    registry=REGISTRY,
)

PASTED_DOCUMENTS = Counter(
    "vdesk_pasted_documents_total",
    "Documents staged as drafts by paste",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "GATEWAY_CALLS",
    "GATEWAY_LATENCY",
    "CACHE_LOOKUPS",
    "CLIPBOARD_COPIES",
    "PASTED_DOCUMENTS",
    "metrics_response",
]
