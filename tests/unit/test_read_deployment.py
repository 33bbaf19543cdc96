"""Unit tests for the read_deployment use case."""

from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from wq_extract.application.services.planner import PlannedDeployment
from wq_extract.application.use_cases.read_deployment import (
    extract_arrays,
    extract_attribution,
    resolve_data_names,
    run,
)
from wq_extract.domain.entities import CatalogEntry, DeploymentDataset, Query
from wq_extract.domain.errors import MalformedDatasetError, RetrievalError
from wq_extract.domain.ports import DatasetReaderPort
from wq_extract.domain.types import RECORD_COLUMNS

URL = "https://thredds.example.org/dodsC/2025/AIMS_MMP-WQ_KUZ_20250101Z_BUR2_FV01_timeSeries_FLNTU.nc"


@pytest.fixture
def sample_dataset():
    """Create a deployment dataset with the time axis stored as a dimension."""
    return DeploymentDataset(
        location=URL,
        variables={
            "TIMESERIES": np.array(1),
            "CPHL": np.array([0.3, 0.5]),
            "CPHL_quality_control": np.array([1, 2], dtype="int8"),
            "TURB": np.array([1.1, 1.4]),
            "TURB_quality_control": np.array([1, 4], dtype="int8"),
            "LATITUDE": np.array(-19.16),
            "LONGITUDE": np.array(146.82),
        },
        dimensions={"TIME": np.array([27760.0, 27760.25])},
        global_attributes={
            "acknowledgement": 'Any users of IMOS data are required to clearly acknowledge '
            'the source of the material: "Australian Institute of Marine Science (AIMS)".',
        },
    )


@pytest.fixture
def sample_deployment():
    """Create a planned deployment for BUR2 in 2025."""
    return PlannedDeployment(
        query=Query(year=2025, logger="BUR2"),
        entry=CatalogEntry(
            dataset_id="AIMS_MMP-WQ_KUZ_20250101Z_BUR2_FV01_timeSeries_FLNTU.nc",
            logger="BUR2",
            deployment_date="20250101",
        ),
        url=URL,
    )


@pytest.fixture
def mock_dataset_reader():
    """Create mock dataset reader."""
    reader = MagicMock(spec=DatasetReaderPort)
    reader.open_dataset = AsyncMock()
    return reader


def test_resolve_data_names_replaces_placeholder():
    """Test the TIMESERIES placeholder is swapped for the time dimension."""
    names = resolve_data_names(["TIMESERIES", "CPHL", "TURB"], ["TIME"])

    assert names == ["TIME", "CPHL", "TURB"]


def test_resolve_data_names_appends_time():
    """Test the time dimension is added when no placeholder exists."""
    names = resolve_data_names(["CPHL", "TURB"], ["TIME"])

    assert names == ["CPHL", "TURB", "TIME"]


def test_resolve_data_names_without_time_dimension():
    """Test names are left alone when TIME is not a dimension."""
    assert resolve_data_names(["TIMESERIES", "TIME", "CPHL"], ["OBS"]) == [
        "TIMESERIES",
        "TIME",
        "CPHL",
    ]


def test_extract_arrays(sample_dataset):
    """Test TIME is looked up among dimensions."""
    arrays = extract_arrays(sample_dataset)

    assert "TIMESERIES" not in arrays
    np.testing.assert_array_equal(arrays["TIME"], [27760.0, 27760.25])
    np.testing.assert_array_equal(arrays["CPHL"], [0.3, 0.5])


def test_extract_arrays_time_as_variable():
    """Test a time variable is used when TIME is not a dimension."""
    dataset = DeploymentDataset(
        location=URL,
        variables={"TIME": np.array([1.0]), "CPHL": np.array([0.2])},
        dimensions={"OBS": np.array([0])},
    )

    arrays = extract_arrays(dataset)

    assert set(arrays) == {"TIME", "CPHL"}


@pytest.mark.parametrize(
    "attributes,expected",
    [
        ({"acknowledgement": 'Data: "AIMS and JCU".'}, "AIMS and JCU"),
        ({"acknowledgement": 'first "A" then "B"'}, "A"),
        ({"acknowledgement": "no quotes here"}, None),
        ({"acknowledgement": 'empty ""'}, None),
        ({}, None),
    ],
)
def test_extract_attribution(attributes, expected):
    """Test the first quoted substring of the acknowledgement is used."""
    assert extract_attribution(attributes) == expected


@pytest.mark.asyncio
async def test_run_success(mock_dataset_reader, sample_dataset, sample_deployment):
    """Test reading a deployment into long records."""
    mock_dataset_reader.open_dataset.return_value = sample_dataset

    records = await run(sample_deployment, mock_dataset_reader)

    mock_dataset_reader.open_dataset.assert_called_once_with(URL)
    assert list(records.columns) == RECORD_COLUMNS
    assert len(records) == 4
    assert records["indicator"].tolist() == ["Chlorophyll", "Turbidity"] * 2
    assert records["flag"].tolist() == [1, 1, 2, 4]
    assert (records["logger"] == "BUR2").all()
    assert (records["year"] == 2025).all()
    assert (records["attribution"] == "Australian Institute of Marine Science (AIMS)").all()


@pytest.mark.asyncio
async def test_run_missing_variable(mock_dataset_reader, sample_dataset, sample_deployment):
    """Test a deployment lacking an indicator is malformed."""
    del sample_dataset.variables["TURB_quality_control"]
    mock_dataset_reader.open_dataset.return_value = sample_dataset

    with pytest.raises(MalformedDatasetError, match="TURB_quality_control") as exc_info:
        await run(sample_deployment, mock_dataset_reader)

    assert exc_info.value.url == URL


@pytest.mark.asyncio
async def test_run_retrieval_error_propagates(mock_dataset_reader, sample_deployment):
    """Test open failures are raised unchanged."""
    mock_dataset_reader.open_dataset.side_effect = RetrievalError("Failed to open dataset", URL)

    with pytest.raises(RetrievalError):
        await run(sample_deployment, mock_dataset_reader)
