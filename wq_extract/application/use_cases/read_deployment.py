"""Read one deployment into long-format records."""

import re

import structlog

from wq_extract.application.services.planner import PlannedDeployment
from wq_extract.application.services.record_builder import TIME_VARIABLE, build_wide_records
from wq_extract.application.services.reshape import to_long
from wq_extract.domain.entities import DeploymentDataset
from wq_extract.domain.errors import MalformedDatasetError
from wq_extract.domain.ports import DatasetReaderPort
from wq_extract.domain.types import ArrayMap, RecordFrame

logger = structlog.get_logger()

TIMESERIES_VARIABLE = "TIMESERIES"
ATTRIBUTION_ATTRIBUTE = "acknowledgement"
QUOTED = re.compile(r'"([^"]*)"')


def resolve_data_names(variable_names: list[str], dimension_names: list[str]) -> list[str]:
    """Names to extract, with the TIMESERIES placeholder swapped for the time dimension.

    The time axis is stored as a dimension rather than a data variable, so it
    is addressed through the dimension name. It is appended when no
    placeholder is present.
    """
    if TIME_VARIABLE not in dimension_names:
        return list(variable_names)

    names = [TIME_VARIABLE if name == TIMESERIES_VARIABLE else name for name in variable_names]
    if TIME_VARIABLE not in names:
        names.append(TIME_VARIABLE)
    return names


def extract_arrays(dataset: DeploymentDataset) -> ArrayMap:
    """Arrays of every resolved name, looked up in variables then dimensions."""
    names = resolve_data_names(list(dataset.variables), list(dataset.dimensions))

    arrays: ArrayMap = {}
    for name in names:
        if name in dataset.variables:
            arrays[name] = dataset.variables[name]
        elif name in dataset.dimensions:
            arrays[name] = dataset.dimensions[name]
        else:
            raise MalformedDatasetError(f"Deployment has no variable or dimension {name}", dataset.location)
    return arrays


def extract_attribution(global_attributes: dict[str, str]) -> str | None:
    """Quoted attribution inside the acknowledgement attribute, if any."""
    acknowledgement = global_attributes.get(ATTRIBUTION_ATTRIBUTE)
    if not isinstance(acknowledgement, str):
        return None
    match = QUOTED.search(acknowledgement)
    if match is None:
        return None
    return match.group(1).strip() or None


async def run(deployment: PlannedDeployment, dataset_reader: DatasetReaderPort) -> RecordFrame:
    """Open, extract and reshape one deployment.

    Raises:
        RetrievalError: the dataset could not be opened.
        MalformedDatasetError: the dataset lacks expected arrays or its
            arrays have inconsistent lengths.
    """
    query = deployment.query
    logger.info(
        "reading_deployment",
        year=query.year,
        logger_name=query.logger,
        deployment_date=deployment.entry.deployment_date,
        url=deployment.url,
    )

    dataset = await dataset_reader.open_dataset(deployment.url)
    arrays = extract_arrays(dataset)
    attribution = extract_attribution(dataset.global_attributes)

    wide = build_wide_records(
        arrays,
        logger=query.logger,
        year=query.year,
        attribution=attribution,
        location=deployment.url,
    )
    long = to_long(wide)

    logger.info(
        "deployment_read_success",
        year=query.year,
        logger_name=query.logger,
        deployment_date=deployment.entry.deployment_date,
        sample_count=len(wide),
        row_count=len(long),
    )
    return long
