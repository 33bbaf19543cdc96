"""NetCDF deployment reader with netCDF4 (local paths and OPeNDAP URLs)."""

import asyncio
import time

import netCDF4
import numpy as np
import structlog

from wq_extract.domain.entities import DeploymentDataset
from wq_extract.domain.errors import RetrievalError
from wq_extract.domain.ports import DatasetReaderPort
from wq_extract.domain.types import ArrayMap, AttributeMap
from wq_extract.infrastructure.config.settings import Settings
from wq_extract.infrastructure.observability.metrics import (
    deployment_failures,
    deployments_read,
    fetch_duration_seconds,
)

logger = structlog.get_logger()


def _to_array(variable: netCDF4.Variable) -> np.ndarray:
    """Read a variable into a plain ndarray, masked numeric values becoming NaN."""
    values = variable[:]
    if not np.ma.isMaskedArray(values):
        return np.asarray(values)
    if values.dtype.kind in "fiu" and np.ma.is_masked(values):
        return values.astype("float64").filled(np.nan)
    return np.ma.getdata(values)


def _to_text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value if isinstance(value, str) else str(value)


class NetcdfDatasetReader(DatasetReaderPort):
    """Reads every variable, dimension and global attribute of a deployment file."""

    def __init__(self, timeout: float = 60.0) -> None:
        """Initialize dataset reader."""
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "NetcdfDatasetReader":
        return cls(timeout=settings.request_timeout_seconds)

    async def open_dataset(self, url: str) -> DeploymentDataset:
        """Open url in a worker thread, bounded by the reader timeout."""
        started = time.perf_counter()
        try:
            dataset = await asyncio.wait_for(asyncio.to_thread(self._read, url), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            deployment_failures.labels(error_code="timeout").inc()
            logger.error("dataset_open_timeout", url=url, timeout=self.timeout)
            raise RetrievalError(f"Dataset open timed out after {self.timeout}s", url) from e
        except (OSError, RuntimeError, ValueError) as e:
            deployment_failures.labels(error_code="open_error").inc()
            logger.error("dataset_open_failed", url=url, error=str(e))
            raise RetrievalError(f"Failed to open dataset: {e}", url) from e
        finally:
            fetch_duration_seconds.labels(kind="dataset").observe(time.perf_counter() - started)

        deployments_read.inc()
        logger.debug(
            "dataset_opened",
            url=url,
            variable_count=len(dataset.variables),
            dimension_names=list(dataset.dimensions),
        )
        return dataset

    def _read(self, url: str) -> DeploymentDataset:
        """Read the dataset; the handle is closed on every exit path."""
        with netCDF4.Dataset(url, mode="r") as nc:
            dimension_names = list(nc.dimensions)

            variables: ArrayMap = {
                name: _to_array(variable)
                for name, variable in nc.variables.items()
                if name not in dimension_names
            }
            dimensions: ArrayMap = {}
            for name, dimension in nc.dimensions.items():
                if name in nc.variables:
                    dimensions[name] = _to_array(nc.variables[name])
                else:
                    dimensions[name] = np.arange(len(dimension))
            attributes: AttributeMap = {name: _to_text(nc.getncattr(name)) for name in nc.ncattrs()}

        return DeploymentDataset(
            location=url,
            variables=variables,
            dimensions=dimensions,
            global_attributes=attributes,
        )
