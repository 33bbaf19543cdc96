"""THREDDS catalog parsing."""

import re
from collections.abc import Iterable

import structlog
from lxml import etree

from wq_extract.domain.entities import CatalogEntry

logger = structlog.get_logger()

# Logger token between underscores right before the FV01 processing level marker
LOGGER_PATTERN = re.compile(r"_([^_]{3,5})_(?=FV01)")
# Deployment start date right before the UTC marker
DATE_PATTERN = re.compile(r"(\d{8})(?=Z)")


def extract_dataset_ids(document: str) -> list[str]:
    """Return the id of every dataset element, at any depth, in document order.

    An unparsable document yields an empty list.
    """
    if not document or not document.strip():
        return []

    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(document.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError:
        return []
    if root is None:
        return []

    # THREDDS catalogs are namespaced; match on local name only
    datasets = root.xpath("//*[local-name()='dataset']")
    dataset_ids = []
    for dataset in datasets:
        # THREDDS writes ID, HTML-style listings write id
        dataset_id = dataset.get("ID") or dataset.get("id")
        if dataset_id:
            dataset_ids.append(dataset_id)
    return dataset_ids


def parse_dataset_id(dataset_id: str) -> CatalogEntry | None:
    """Derive logger name and deployment date from a dataset identifier."""
    logger_match = LOGGER_PATTERN.search(dataset_id)
    date_match = DATE_PATTERN.search(dataset_id)
    if logger_match is None or date_match is None:
        return None
    return CatalogEntry(
        dataset_id=dataset_id,
        logger=logger_match.group(1),
        deployment_date=date_match.group(1),
    )


def parse_catalog(document: str, loggers: Iterable[str]) -> list[CatalogEntry]:
    """Entries of document whose logger is requested, in catalog order.

    Several deployments of one logger are all kept, including repeats.
    """
    requested = set(loggers)
    dataset_ids = extract_dataset_ids(document)

    entries: list[CatalogEntry] = []
    unmatched = 0
    for dataset_id in dataset_ids:
        entry = parse_dataset_id(dataset_id)
        if entry is None:
            unmatched += 1
            continue
        if entry.logger in requested:
            entries.append(entry)

    logger.debug(
        "catalog_parsed",
        dataset_count=len(dataset_ids),
        unmatched_count=unmatched,
        entry_count=len(entries),
    )
    return entries
