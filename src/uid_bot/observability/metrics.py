"""Prometheus metrics for uid-bot.

Usage::

    from uid_bot.observability.metrics import UNITS_TOTAL

    UNITS_TOTAL.labels(outcome="issued").inc()
"""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# Provisioning metrics
# ---------------------------------------------------------------------------

UNITS_TOTAL = Counter(
    "uid_bot_units_total",
    "Guest account issuance attempts by outcome.",
    labelnames=["outcome"],
    registry=REGISTRY,
)

BATCHES_TOTAL = Counter(
    "uid_bot_batches_total",
    "Completed /uid requests by terminal outcome.",
    labelnames=["outcome"],
    registry=REGISTRY,
)

ISSUER_REQUEST_DURATION_SECONDS = Histogram(
    "uid_bot_issuer_request_duration_seconds",
    "Latency of single requests to the account issuer.",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY,
)

ARCHIVE_BYTES = Histogram(
    "uid_bot_archive_bytes",
    "Size of delivered account archives in bytes.",
    buckets=(512, 1024, 4096, 16384, 65536, 262144),
    registry=REGISTRY,
)


def metrics_text() -> tuple[bytes, str]:
    """Generate Prometheus exposition text and content-type header."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
