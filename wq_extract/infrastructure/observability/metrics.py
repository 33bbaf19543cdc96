"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

catalog_fetches = Counter(
    "wq_catalog_fetches_total",
    "Total number of catalog documents fetched",
    ["status"],
)

deployments_read = Counter(
    "wq_deployments_read_total",
    "Total number of deployment datasets opened successfully",
)

deployment_failures = Counter(
    "wq_deployment_failures_total",
    "Total number of deployment datasets that could not be opened",
    ["error_code"],
)

extracts_completed = Counter(
    "wq_extracts_completed_total",
    "Total number of extractions completed",
)

rows_extracted = Counter(
    "wq_rows_extracted_total",
    "Total number of rows returned by extractions",
)

fetch_duration_seconds = Histogram(
    "wq_fetch_duration_seconds",
    "Duration of catalog and dataset fetches in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1, 5, 10, 30, 60, 120, 300],
)
