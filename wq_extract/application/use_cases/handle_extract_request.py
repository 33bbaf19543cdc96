"""Handle an extraction request - main orchestration."""

import asyncio
from collections.abc import Iterable

import pandas as pd
import structlog
from pydantic import ValidationError as PydanticValidationError

from wq_extract.application.dto.request import DEFAULT_FLAG_TAGS, DEFAULT_ROW_COUNT, ExtractRequest
from wq_extract.application.services.filter_ops import aggregate as aggregate_buckets
from wq_extract.application.services.filter_ops import filter_flags as filter_by_flags
from wq_extract.application.services.filter_ops import select_indicators
from wq_extract.application.services.partitioner import group_tables, partition_tables
from wq_extract.application.services.planner import PlannedDeployment, ReadPlan, plan_reads
from wq_extract.application.services.reshape import empty_long_frame
from wq_extract.application.use_cases.read_deployment import run as read_deployment
from wq_extract.application.use_cases.resolve_catalog import run as resolve_catalog
from wq_extract.domain.entities import (
    CatalogEntry,
    ExtractResult,
    Query,
    SkippedDeployment,
    SourceTemplates,
)
from wq_extract.domain.enums import AggregationType, DeploymentFailurePolicy, Indicator
from wq_extract.domain.errors import DomainError, ValidationError
from wq_extract.domain.ports import CatalogFetchPort, DatasetReaderPort
from wq_extract.domain.types import RecordFrame

logger = structlog.get_logger()

DEFAULT_MAX_CONCURRENCY = 4


def build_request(**params) -> ExtractRequest:
    """Validate extraction parameters.

    Raises:
        ValidationError: a parameter is missing, empty or out of range.
    """
    try:
        return ExtractRequest(**params)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid extraction request: {problems}") from e


async def extract(
    years: Iterable[int],
    loggers: Iterable[str],
    *,
    catalog: CatalogFetchPort,
    dataset_reader: DatasetReaderPort,
    templates: SourceTemplates,
    indicators: Iterable[Indicator | str] | None = None,
    filter_flags: bool = True,
    flag_tags: Iterable[int] = DEFAULT_FLAG_TAGS,
    aggregate: bool = False,
    aggregation_type: AggregationType | str | None = None,
    small_tables: bool = False,
    row_count: int = DEFAULT_ROW_COUNT,
    failure_policy: DeploymentFailurePolicy = DeploymentFailurePolicy.ABORT,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> ExtractResult:
    """Retrieve, reshape, filter and optionally aggregate and partition logger data.

    Parameters are validated before any network activity.
    """
    request = build_request(
        years=years,
        loggers=loggers,
        indicators=indicators,
        filter_flags=filter_flags,
        flag_tags=flag_tags,
        aggregate=aggregate,
        aggregation_type=aggregation_type,
        small_tables=small_tables,
        row_count=row_count,
    )
    return await run(
        request,
        catalog,
        dataset_reader,
        templates,
        failure_policy=failure_policy,
        max_concurrency=max_concurrency,
    )


async def run(
    request: ExtractRequest,
    catalog: CatalogFetchPort,
    dataset_reader: DatasetReaderPort,
    templates: SourceTemplates,
    failure_policy: DeploymentFailurePolicy = DeploymentFailurePolicy.ABORT,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> ExtractResult:
    """Run a validated extraction request."""
    if max_concurrency < 1:
        raise ValidationError(f"max_concurrency must be >= 1, got {max_concurrency}")

    queries = request.queries()
    semaphore = asyncio.Semaphore(max_concurrency)
    logger.info(
        "processing_extract",
        years=sorted(request.years),
        loggers=sorted(request.loggers),
        query_count=len(queries),
        failure_policy=DeploymentFailurePolicy(failure_policy).value,
    )

    entries_by_query = await _resolve_all_catalogs(queries, request, catalog, templates, semaphore)
    read_plan = plan_reads(templates, entries_by_query)

    frames, skipped = await _read_all_deployments(
        read_plan,
        dataset_reader,
        semaphore,
        DeploymentFailurePolicy(failure_policy),
    )

    source = _concat(frames)
    frame = _filter_and_aggregate(source, request)

    if request.small_tables:
        tables = partition_tables(frame, request.row_count)
    else:
        tables = group_tables(frame)

    result = ExtractResult(
        tables=tables,
        frame=frame,
        query_count=len(queries),
        catalog_entry_count=len(read_plan),
        deployment_count=len(frames),
        source_row_count=len(source),
        skipped=skipped,
    )

    logger.info(
        "extract_completed",
        table_count=len(result),
        row_count=result.row_count,
        source_row_count=result.source_row_count,
        deployment_count=result.deployment_count,
        skipped_count=len(skipped),
        empty_reason=result.empty_reason.value if result.empty_reason else None,
    )
    return result


# ============================================================================
# Catalog Resolution
# ============================================================================


async def _resolve_all_catalogs(
    queries: list[Query],
    request: ExtractRequest,
    catalog: CatalogFetchPort,
    templates: SourceTemplates,
    semaphore: asyncio.Semaphore,
) -> list[tuple[Query, list[CatalogEntry]]]:
    """Fetch each requested year's catalog once and share it across its queries."""
    years = sorted(request.years)

    async def resolve_year(year: int) -> list[CatalogEntry]:
        async with semaphore:
            return await resolve_catalog(year, request.loggers, catalog, templates)

    results = await asyncio.gather(*[resolve_year(year) for year in years], return_exceptions=True)

    entries_by_year: dict[int, list[CatalogEntry]] = {}
    for year, result in zip(years, results):
        if isinstance(result, BaseException):
            logger.error("catalog_resolution_failed", year=year, error=str(result))
            raise result
        entries_by_year[year] = result

    return [(query, entries_by_year[query.year]) for query in queries]


# ============================================================================
# Deployment Reading
# ============================================================================


async def _read_all_deployments(
    read_plan: ReadPlan,
    dataset_reader: DatasetReaderPort,
    semaphore: asyncio.Semaphore,
    failure_policy: DeploymentFailurePolicy,
) -> tuple[list[RecordFrame], list[SkippedDeployment]]:
    """Read every planned deployment concurrently, keeping plan order.

    Under the abort policy the first failure cancels the reads still pending.
    """

    async def read_one(deployment: PlannedDeployment) -> RecordFrame:
        async with semaphore:
            return await read_deployment(deployment, dataset_reader)

    tasks = [asyncio.create_task(read_one(deployment)) for deployment in read_plan.deployments]

    if failure_policy is DeploymentFailurePolicy.ABORT:
        try:
            read_frames = await asyncio.gather(*tasks)
        except Exception as e:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            failed = next(
                deployment
                for deployment, task in zip(read_plan.deployments, tasks)
                if not task.cancelled() and task.exception() is e
            )
            _log_read_failure(failed, e)
            raise
        return list(read_frames), []

    results = await asyncio.gather(*tasks, return_exceptions=True)

    frames: list[RecordFrame] = []
    skipped: list[SkippedDeployment] = []
    for deployment, result in zip(read_plan.deployments, results):
        if not isinstance(result, BaseException):
            frames.append(result)
            continue

        if isinstance(result, DomainError):
            logger.warning(
                "deployment_skipped",
                year=deployment.query.year,
                logger_name=deployment.query.logger,
                deployment_date=deployment.entry.deployment_date,
                url=deployment.url,
                error=str(result),
            )
            skipped.append(
                SkippedDeployment(
                    year=deployment.query.year,
                    logger=deployment.query.logger,
                    deployment_date=deployment.entry.deployment_date,
                    url=getattr(result, "url", None) or deployment.url,
                    error=str(result),
                )
            )
            continue

        _log_read_failure(deployment, result)
        raise result

    return frames, skipped


def _log_read_failure(deployment: PlannedDeployment, error: BaseException) -> None:
    logger.error(
        "deployment_read_failed",
        year=deployment.query.year,
        logger_name=deployment.query.logger,
        deployment_date=deployment.entry.deployment_date,
        url=deployment.url,
        error=str(error),
    )


# ============================================================================
# Transform
# ============================================================================


def _concat(frames: list[RecordFrame]) -> RecordFrame:
    """Concatenate deployment tables in plan order."""
    non_empty = [frame for frame in frames if not frame.empty]
    if not non_empty:
        return empty_long_frame()
    return pd.concat(non_empty, ignore_index=True)


def _filter_and_aggregate(frame: RecordFrame, request: ExtractRequest) -> RecordFrame:
    """Apply indicator selection, flag filtering and aggregation in that order."""
    frame = select_indicators(frame, request.indicators)
    if request.filter_flags:
        frame = filter_by_flags(frame, request.flag_tags)
    if request.aggregate:
        frame = aggregate_buckets(frame, request.aggregation_type)
    return frame
