"""Unit tests for settings and runtime wiring."""

import io
from unittest.mock import AsyncMock, MagicMock

import pandas as pd
import pyarrow.parquet as pq
import pytest

from wq_extract.domain.entities import ExtractResult
from wq_extract.domain.enums import DeploymentFailurePolicy
from wq_extract.infrastructure.config.settings import Settings
from wq_extract.infrastructure.http.catalog_client import HttpCatalogClient
from wq_extract.infrastructure.netcdf.dataset_reader import NetcdfDatasetReader
from wq_extract.infrastructure.observability.logging import configure_logging
from wq_extract.infrastructure.runtime import main
from wq_extract.infrastructure.runtime.health import start_metrics_server


def test_settings_defaults():
    """Test default settings point at the AODN THREDDS server."""
    settings = Settings(_env_file=None)

    assert settings.request_timeout_seconds == 60.0
    assert settings.retry_attempts == 3
    assert settings.max_concurrent_requests == 4
    assert settings.deployment_failure_policy is DeploymentFailurePolicy.ABORT
    assert settings.prometheus_port is None

    templates = settings.source_templates()
    assert templates.catalog_url(2025) == (
        "https://thredds.aodn.org.au/thredds/catalog/AIMS/Marine_Monitoring_Program/"
        "FLNTU_timeseries/2025/catalog.xml"
    )
    assert templates.dataset_url(2025, "BUR2", "20250101") == (
        "https://thredds.aodn.org.au/thredds/dodsC/AIMS/Marine_Monitoring_Program/"
        "FLNTU_timeseries/2025/AIMS_MMP-WQ_KUZ_20250101Z_BUR2_FV01_timeSeries_FLNTU.nc"
    )


def test_settings_from_environment(monkeypatch):
    """Test WQ_ prefixed environment variables override defaults."""
    monkeypatch.setenv("WQ_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("WQ_DEPLOYMENT_FAILURE_POLICY", "skip")
    monkeypatch.setenv("WQ_CATALOG_BASE_URL", "http://localhost:8080/catalog")

    settings = Settings(_env_file=None)

    assert settings.retry_attempts == 5
    assert settings.deployment_failure_policy is DeploymentFailurePolicy.SKIP
    assert settings.source_templates().catalog_url(2024) == "http://localhost:8080/catalog/2024/catalog.xml"


def test_adapters_from_settings():
    """Test adapters take their timeouts and retries from settings."""
    settings = Settings(_env_file=None, request_timeout_seconds=12.5, retry_attempts=2)

    catalog = HttpCatalogClient.from_settings(settings)
    reader = NetcdfDatasetReader.from_settings(settings)

    assert catalog.timeout == 12.5
    assert catalog.retry_attempts == 2
    assert reader.timeout == 12.5


def test_metrics_server_disabled_without_port():
    """Test no metrics server starts when no port is configured."""
    assert start_metrics_server(Settings(_env_file=None)) is False


def test_metrics_server_started(monkeypatch):
    """Test the metrics server starts on the configured port."""
    start_http_server = MagicMock()
    monkeypatch.setattr("wq_extract.infrastructure.runtime.health.start_http_server", start_http_server)

    assert start_metrics_server(Settings(_env_file=None, prometheus_port=9100)) is True
    start_http_server.assert_called_once_with(9100)


def test_configure_logging_rejects_unknown_level():
    """Test an unknown log level is reported."""
    with pytest.raises(ValueError, match="VERBOSE"):
        configure_logging("verbose")


def test_configure_logging_console():
    """Test console logging can be configured."""
    configure_logging("debug", json_logs=False)


@pytest.mark.asyncio
async def test_extract_with_settings(monkeypatch):
    """Test settings are wired into the extraction."""
    result = ExtractResult(
        tables={},
        frame=pd.DataFrame(),
        query_count=1,
        catalog_entry_count=0,
        deployment_count=0,
        source_row_count=0,
    )
    extract = AsyncMock(return_value=result)
    monkeypatch.setattr(main, "extract", extract)
    settings = Settings(
        _env_file=None,
        deployment_failure_policy="skip",
        max_concurrent_requests=2,
    )

    returned = await main.extract_with_settings([2025], ["BUR2"], settings, aggregate=False)

    assert returned is result
    kwargs = extract.call_args.kwargs
    assert isinstance(kwargs["catalog"], HttpCatalogClient)
    assert isinstance(kwargs["dataset_reader"], NetcdfDatasetReader)
    assert kwargs["templates"] == settings.source_templates()
    assert kwargs["failure_policy"] is DeploymentFailurePolicy.SKIP
    assert kwargs["max_concurrency"] == 2
    assert kwargs["aggregate"] is False


def test_export_tables():
    """Test every output table is encoded as Parquet under its name."""
    table = pd.DataFrame(
        {
            "timestamp": pd.to_datetime(["2025-01-01 10:00", "2025-01-01 10:10"]),
            "logger": ["BUR2", "BUR2"],
            "year": [2025, 2025],
            "concentration": [0.3, 0.4],
        }
    )
    result = ExtractResult(
        tables={"BUR2_2025": table},
        frame=table,
        query_count=1,
        catalog_entry_count=1,
        deployment_count=1,
        source_row_count=2,
    )

    payloads = main.export_tables(result)

    assert list(payloads) == ["BUR2_2025"]
    exported = pq.read_table(io.BytesIO(payloads["BUR2_2025"]))
    assert exported.column("concentration").to_pylist() == [0.3, 0.4]
