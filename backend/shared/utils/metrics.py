"""
Lightweight metrics collection for Data Weaver.
Wraps prometheus_client with async-safe patterns.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
PROVIDER_REQUESTS = Counter(
    "dw_provider_requests_total",
    "Total upstream HTTP requests",
    ["provider", "status"],
)
PROVIDER_OUTCOMES = Counter(
    "dw_provider_outcomes_total",
    "Cascade strategy outcomes (ok, empty, skipped, or a failure kind)",
    ["provider", "outcome"],
)
FALLBACK_ACTIVATIONS = Counter(
    "dw_fallback_activations_total",
    "Terminal fallback strategy activations",
    ["resolver", "provider"],
)
SYNTHETIC_POINTS = Counter(
    "dw_synthetic_points_total",
    "Synthetic interest points generated",
    ["match_day"],
)
DASHBOARD_LOADS = Counter(
    "dw_dashboard_loads_total",
    "Dashboard loads by outcome",
    ["status"],
)

# ── Histograms ──────────────────────────────────────────────────────────
PROVIDER_LATENCY = Histogram(
    "dw_provider_latency_seconds",
    "Upstream request latency in seconds",
    ["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
DASHBOARD_LATENCY = Histogram(
    "dw_dashboard_load_seconds",
    "Time to resolve, merge and summarize one dashboard load",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if labels:
            histogram.labels(**labels).observe(elapsed)
        else:
            histogram.observe(elapsed)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)
