"""Resolve catalog entries for one year."""

from collections.abc import Iterable

import structlog

from wq_extract.application.services.catalog_parser import parse_catalog
from wq_extract.domain.entities import CatalogEntry, SourceTemplates
from wq_extract.domain.ports import CatalogFetchPort

logger = structlog.get_logger()


async def run(
    year: int,
    loggers: Iterable[str],
    catalog: CatalogFetchPort,
    templates: SourceTemplates,
) -> list[CatalogEntry]:
    """Deployment entries of the requested loggers listed in the catalog of year.

    A catalog without matching dataset entries yields an empty list. A
    catalog that cannot be fetched raises RetrievalError.
    """
    loggers = sorted(set(loggers))
    catalog_url = templates.catalog_url(year)
    document = await catalog.fetch_document(catalog_url)
    entries = parse_catalog(document, loggers)

    if not entries:
        logger.warning(
            "catalog_no_matching_deployments",
            year=year,
            loggers=loggers,
            catalog_url=catalog_url,
        )
    else:
        logger.info(
            "catalog_resolved",
            year=year,
            loggers=loggers,
            entry_count=len(entries),
            deployment_dates=[entry.deployment_date for entry in entries],
        )
    return entries
