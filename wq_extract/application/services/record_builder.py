"""Wide record construction from one deployment's arrays."""

import numpy as np
import pandas as pd

from wq_extract.domain.entities import INDICATOR_SCHEMAS, IndicatorSchema
from wq_extract.domain.errors import MalformedDatasetError
from wq_extract.domain.types import (
    ArrayMap,
    ATTRIBUTION,
    LATITUDE,
    LOGGER,
    LONGITUDE,
    RecordFrame,
    TIMESTAMP,
    YEAR,
)

TIME_VARIABLE = "TIME"
LATITUDE_VARIABLE = "LATITUDE"
LONGITUDE_VARIABLE = "LONGITUDE"

TIME_ORIGIN = pd.Timestamp("1950-01-01 00:00:00")
# Fixed local-time shift (UTC+10), not a timezone conversion
LOCAL_TIME_SHIFT = pd.Timedelta(hours=10)


def to_local_timestamps(day_offsets: np.ndarray) -> pd.DatetimeIndex:
    """Convert day offsets from the 1950 epoch into UTC+10 wall-clock timestamps."""
    offsets = pd.to_timedelta(np.asarray(day_offsets, dtype="float64"), unit="D")
    return pd.DatetimeIndex(TIME_ORIGIN + offsets + LOCAL_TIME_SHIFT, name=TIMESTAMP)


def _require(arrays: ArrayMap, name: str, location: str | None) -> np.ndarray:
    if name not in arrays:
        raise MalformedDatasetError(f"Deployment is missing variable {name}", location)
    return np.asarray(arrays[name])


def _sample_array(
    arrays: ArrayMap,
    name: str,
    length: int,
    location: str | None,
    allow_scalar: bool = False,
) -> np.ndarray:
    """Per-sample values of a variable, broadcasting scalars when allowed."""
    values = np.ravel(_require(arrays, name, location))
    if allow_scalar and values.size == 1:
        return np.repeat(values, length)
    if values.size != length:
        raise MalformedDatasetError(
            f"Variable {name} has {values.size} values, expected {length}",
            location,
        )
    return values


def _flags(values: np.ndarray) -> pd.Series:
    series = pd.Series(values, dtype="float64")
    return series.astype("Int64")


def build_wide_records(
    arrays: ArrayMap,
    logger: str,
    year: int,
    attribution: str | None = None,
    location: str | None = None,
    schemas: tuple[IndicatorSchema, ...] = INDICATOR_SCHEMAS,
) -> RecordFrame:
    """One row per sample with every indicator's concentration, flag and unit.

    Raises:
        MalformedDatasetError: a required variable is missing or its length
            does not match the time axis.
    """
    raw_time = np.ravel(_require(arrays, TIME_VARIABLE, location))
    length = raw_time.size

    latitude = _sample_array(arrays, LATITUDE_VARIABLE, length, location, allow_scalar=True)
    longitude = _sample_array(arrays, LONGITUDE_VARIABLE, length, location, allow_scalar=True)

    columns: dict[str, object] = {
        TIMESTAMP: to_local_timestamps(raw_time),
        LATITUDE: latitude.astype("float64"),
        LONGITUDE: longitude.astype("float64"),
        LOGGER: logger,
        YEAR: int(year),
        ATTRIBUTION: attribution,
    }

    for schema in schemas:
        concentration = _sample_array(arrays, schema.concentration_variable, length, location)
        flags = _sample_array(arrays, schema.flag_variable, length, location)
        columns[schema.concentration_column] = concentration.astype("float64")
        columns[schema.flag_column] = _flags(flags).array
        columns[schema.unit_column] = schema.unit

    frame = pd.DataFrame(columns, index=pd.RangeIndex(length))
    frame[YEAR] = frame[YEAR].astype("int64")
    return frame
