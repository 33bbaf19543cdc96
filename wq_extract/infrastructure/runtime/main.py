"""Runtime wiring of adapters and the extraction pipeline."""

import asyncio
from collections.abc import Iterable

import structlog

from wq_extract.application.use_cases.handle_extract_request import extract
from wq_extract.domain.entities import ExtractResult
from wq_extract.infrastructure.config.settings import Settings
from wq_extract.infrastructure.http.catalog_client import HttpCatalogClient
from wq_extract.infrastructure.io.arrow_export import to_parquet_bytes
from wq_extract.infrastructure.netcdf.dataset_reader import NetcdfDatasetReader
from wq_extract.infrastructure.observability.logging import configure_logging
from wq_extract.infrastructure.observability.metrics import extracts_completed, rows_extracted
from wq_extract.infrastructure.runtime.health import start_metrics_server

logger = structlog.get_logger()


def configure_runtime(settings: Settings) -> None:
    """Configure logging and expose metrics for a long-lived process."""
    configure_logging(settings.log_level, settings.json_logs)
    metrics_started = start_metrics_server(settings)
    logger.info(
        "settings_loaded",
        catalog_base_url=settings.catalog_base_url,
        dataset_base_url=settings.dataset_base_url,
        request_timeout_seconds=settings.request_timeout_seconds,
        retry_attempts=settings.retry_attempts,
        max_concurrent_requests=settings.max_concurrent_requests,
        deployment_failure_policy=settings.deployment_failure_policy.value,
        metrics_server=metrics_started,
    )


async def extract_with_settings(
    years: Iterable[int],
    loggers: Iterable[str],
    settings: Settings | None = None,
    **options,
) -> ExtractResult:
    """Run an extraction against the configured THREDDS server.

    options are the filtering, aggregation and partitioning keyword arguments
    of handle_extract_request.extract.
    """
    settings = settings or Settings()
    dataset_reader = NetcdfDatasetReader.from_settings(settings)

    async with HttpCatalogClient.from_settings(settings) as catalog:
        result = await extract(
            years,
            loggers,
            catalog=catalog,
            dataset_reader=dataset_reader,
            templates=settings.source_templates(),
            failure_policy=settings.deployment_failure_policy,
            max_concurrency=settings.max_concurrent_requests,
            **options,
        )

    extracts_completed.inc()
    rows_extracted.inc(result.row_count)
    return result


def run_extract(
    years: Iterable[int],
    loggers: Iterable[str],
    settings: Settings | None = None,
    **options,
) -> ExtractResult:
    """Blocking wrapper around extract_with_settings."""
    return asyncio.run(extract_with_settings(years, loggers, settings, **options))


def export_tables(result: ExtractResult, compression: str = "snappy") -> dict[str, bytes]:
    """Encode every output table of result as in-memory Parquet, keyed by table name."""
    payloads = {name: to_parquet_bytes(table, compression=compression) for name, table in result.items()}
    logger.info(
        "tables_exported",
        table_count=len(payloads),
        size_bytes=sum(len(payload) for payload in payloads.values()),
    )
    return payloads
