"""Indicator selection, QC flag filtering and time-bucket aggregation."""

from collections.abc import Iterable

import numpy as np
import pandas as pd

from wq_extract.domain.enums import AggregationType, Indicator
from wq_extract.domain.errors import ValidationError
from wq_extract.domain.types import (
    AGGREGATE_KEYS,
    AGGREGATED_COLUMNS,
    ATTRIBUTION,
    CONCENTRATION,
    FLAG,
    FLAGS,
    INDICATOR,
    RecordFrame,
    TIMESTAMP,
)

BUCKET_FREQUENCIES = {
    AggregationType.HOURLY: "h",
    AggregationType.DAILY: "D",
}


def parse_aggregation_type(value: AggregationType | str) -> AggregationType:
    """Coerce value to an AggregationType, rejecting unknown granularities."""
    if isinstance(value, AggregationType):
        return value
    try:
        return AggregationType(str(value).strip().lower())
    except ValueError as e:
        allowed = ", ".join(member.value for member in AggregationType)
        raise ValidationError(
            f"Unknown aggregation type {value!r}, expected one of: {allowed}"
        ) from e


def select_indicators(frame: RecordFrame, indicators: Iterable[Indicator | str]) -> RecordFrame:
    """Keep rows of the selected indicators; selecting all keeps every row."""
    selected = {Indicator(indicator).value for indicator in indicators}
    if selected >= {indicator.value for indicator in Indicator}:
        return frame
    return frame[frame[INDICATOR].isin(selected)].reset_index(drop=True)


def filter_flags(frame: RecordFrame, flag_tags: Iterable[int]) -> RecordFrame:
    """Keep rows whose QC flag is one of flag_tags. Missing flags never match."""
    tags = [int(tag) for tag in flag_tags]
    mask = frame[FLAG].isin(tags).fillna(False).astype(bool)
    return frame[mask].reset_index(drop=True)


def round_to_bucket(
    timestamps: pd.Series,
    aggregation_type: AggregationType | str,
) -> pd.Series:
    """Round timestamps to the nearest bucket boundary, half-way rounding up."""
    freq = BUCKET_FREQUENCIES[parse_aggregation_type(aggregation_type)]
    half = pd.Timedelta(1, unit=freq) / 2
    return (pd.to_datetime(timestamps) + half).dt.floor(freq)


def _distinct_flags(values: Iterable) -> tuple[int, ...]:
    """Distinct flags in order of first appearance.

    Values may be single flags or tuples of flags from an earlier aggregation.
    """
    seen: list[int] = []
    for value in values:
        items = value if isinstance(value, (tuple, list)) else (value,)
        for item in items:
            if pd.isna(item):
                continue
            flag = int(item)
            if flag not in seen:
                seen.append(flag)
    return tuple(seen)


def _object_column(values: list) -> np.ndarray:
    column = np.empty(len(values), dtype=object)
    for position, value in enumerate(values):
        column[position] = value
    return column


def empty_aggregated_frame() -> RecordFrame:
    """Empty aggregated table with the aggregated schema."""
    return pd.DataFrame({column: pd.Series(dtype="object") for column in AGGREGATED_COLUMNS})


def aggregate(frame: RecordFrame, aggregation_type: AggregationType | str) -> RecordFrame:
    """Mean concentration and distinct flags per time bucket.

    Groups are keyed by bucket, coordinates, logger, year, indicator, unit and
    attribution, and are returned in order of first appearance. Aggregating an
    already aggregated table by the same granularity returns it unchanged.
    """
    aggregation_type = parse_aggregation_type(aggregation_type)
    if frame.empty:
        return empty_aggregated_frame()

    data = frame.copy()
    data[CONCENTRATION] = data[CONCENTRATION].astype("float64")
    data[TIMESTAMP] = round_to_bucket(data[TIMESTAMP], aggregation_type)
    flag_column = FLAGS if FLAGS in data.columns else FLAG

    grouped = data.groupby(AGGREGATE_KEYS, dropna=False, sort=False)
    result = grouped[CONCENTRATION].mean().reset_index()
    result[FLAGS] = _object_column([_distinct_flags(values) for _, values in grouped[flag_column]])

    attribution = result[ATTRIBUTION].astype(object)
    result[ATTRIBUTION] = attribution.where(attribution.notna(), None)
    return result[AGGREGATED_COLUMNS]
