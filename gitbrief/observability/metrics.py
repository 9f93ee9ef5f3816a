"""
Prometheus metrics for Daily Git Brief.

Covers collection runs, per-repository outcomes, remote call latency and
retries, and summary generation.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


# Create a custom registry for this application
metrics_registry = CollectorRegistry()


# ============================================================================
# Collection Metrics
# ============================================================================

collection_runs_counter = Counter(
    "collection_runs_total",
    "Total number of collection runs",
    ["status"],  # completed, failed
    registry=metrics_registry,
)

collection_running_gauge = Gauge(
    "collection_running",
    "1 while a collection run is in progress",
    registry=metrics_registry,
)

repos_processed_counter = Counter(
    "repos_processed_total",
    "Repositories processed by collection runs",
    ["outcome"],  # full, partial, skipped, failed
    registry=metrics_registry,
)

summaries_generated_counter = Counter(
    "summaries_generated_total",
    "README summaries requested from the LLM",
    ["status"],  # success, sentinel, failure
    registry=metrics_registry,
)

# ============================================================================
# Remote Call Metrics
# ============================================================================

remote_request_duration = Histogram(
    "remote_request_duration_seconds",
    "Remote request duration in seconds",
    ["service"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

remote_request_retries_counter = Counter(
    "remote_request_retries_total",
    "Retries of transient remote failures",
    ["service"],
    registry=metrics_registry,
)


def render_metrics() -> tuple:
    """Return (payload, content_type) for the /metrics endpoint."""
    return generate_latest(metrics_registry), CONTENT_TYPE_LATEST
