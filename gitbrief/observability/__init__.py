"""
Observability module: Prometheus metrics and structured logging.
"""

from gitbrief.observability.metrics import (
    metrics_registry,
    collection_runs_counter,
    collection_running_gauge,
    repos_processed_counter,
    summaries_generated_counter,
    remote_request_duration,
    remote_request_retries_counter,
    render_metrics,
)

from gitbrief.observability.logging import (
    setup_logging,
    log_context,
)

__all__ = [
    # Metrics
    "metrics_registry",
    "collection_runs_counter",
    "collection_running_gauge",
    "repos_processed_counter",
    "summaries_generated_counter",
    "remote_request_duration",
    "remote_request_retries_counter",
    "render_metrics",
    # Logging
    "setup_logging",
    "log_context",
]
