"""Prometheus metrics for popsigner.

Collectors live on a dedicated registry so that embedding applications can
expose them alongside (or separately from) their own metrics.
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "popsigner_build_info",
    "Build information about popsigner",
    registry=REGISTRY,
)
APP_INFO.info({"version": "0.1.0"})

SIGNING_REQUESTS_TOTAL = Counter(
    "signing_requests_total",
    "Total number of remote signing requests",
    ["operation"],
    registry=REGISTRY,
)

SIGNING_DURATION_SECONDS = Histogram(
    "signing_duration_seconds",
    "Time spent waiting for remote signatures in seconds",
    ["operation"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

SIGNING_ERRORS_TOTAL = Counter(
    "signing_errors_total",
    "Total number of signing errors",
    ["error_type"],
    registry=REGISTRY,
)

BATCH_ITEMS_TOTAL = Counter(
    "batch_items_total",
    "Batch signing items by outcome",
    ["outcome"],
    registry=REGISTRY,
)


def get_metrics() -> tuple[bytes, str]:
    """Render all collectors in the text exposition format.

    Returns:
        Tuple of (body, content type)

    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
