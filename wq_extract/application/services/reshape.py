"""Wide/long reshaping of deployment records."""

import pandas as pd

from wq_extract.domain.entities import INDICATOR_SCHEMAS, IndicatorSchema
from wq_extract.domain.types import (
    CONCENTRATION,
    FLAG,
    INDICATOR,
    LATITUDE,
    LONGITUDE,
    RECORD_COLUMNS,
    RecordFrame,
    SHARED_COLUMNS,
    TIMESTAMP,
    UNIT,
    YEAR,
)

_ROW_ID = "_row_id"
_POSITION = "_position"


def empty_long_frame() -> RecordFrame:
    """Empty long table with the record schema."""
    frame = pd.DataFrame({column: pd.Series(dtype="object") for column in RECORD_COLUMNS})
    return frame.astype(
        {
            TIMESTAMP: "datetime64[ns]",
            LATITUDE: "float64",
            LONGITUDE: "float64",
            YEAR: "int64",
            CONCENTRATION: "float64",
            FLAG: "Int64",
        }
    )


def to_long(
    wide: RecordFrame,
    schemas: tuple[IndicatorSchema, ...] = INDICATOR_SCHEMAS,
) -> RecordFrame:
    """Expand every wide row into one row per indicator, preserving row order.

    Rows of sample i come before rows of sample i + 1; within a sample the
    indicators follow the order of schemas.
    """
    if wide.empty:
        return empty_long_frame()

    parts = []
    for position, schema in enumerate(schemas):
        part = wide[SHARED_COLUMNS].copy()
        part[INDICATOR] = schema.indicator.value
        part[UNIT] = wide[schema.unit_column].to_numpy()
        part[CONCENTRATION] = wide[schema.concentration_column].astype("float64").to_numpy()
        part[FLAG] = wide[schema.flag_column].astype("Int64").array
        part[_ROW_ID] = range(len(wide))
        part[_POSITION] = position
        parts.append(part)

    long = pd.concat(parts, ignore_index=True)
    long = long.sort_values([_ROW_ID, _POSITION], kind="stable")
    return long.drop(columns=[_ROW_ID, _POSITION])[RECORD_COLUMNS].reset_index(drop=True)


def to_wide(
    long: RecordFrame,
    schemas: tuple[IndicatorSchema, ...] = INDICATOR_SCHEMAS,
) -> RecordFrame:
    """Inverse of to_long: one row per sample, indicator fields side by side.

    Samples are matched by their position within each indicator, so long must
    hold the same number of rows per indicator in the same sample order.
    """
    result: pd.DataFrame | None = None
    for schema in schemas:
        rows = long[long[INDICATOR] == schema.indicator.value].reset_index(drop=True)
        if result is None:
            result = rows[SHARED_COLUMNS].copy()
        elif len(rows) != len(result):
            raise ValueError(
                f"Indicator {schema.indicator.value} has {len(rows)} rows, expected {len(result)}"
            )
        result[schema.concentration_column] = rows[CONCENTRATION].to_numpy()
        result[schema.flag_column] = rows[FLAG].astype("Int64").array
        result[schema.unit_column] = rows[UNIT].to_numpy()
    if result is None:
        raise ValueError("No indicator schemas given")
    return result
