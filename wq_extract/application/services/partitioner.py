"""Row-bounded partitioning of final tables."""

from wq_extract.domain.entities import Partition
from wq_extract.domain.errors import ValidationError
from wq_extract.domain.types import LOGGER, RecordFrame, YEAR


def table_name(logger: str, year: int) -> str:
    """Name of the full table of one (logger, year) group."""
    return f"{logger}_{year}"


def partition_name(logger: str, year: int, start: int, end: int) -> str:
    """Name of a chunk covering 1-based inclusive rows start..end."""
    return f"{table_name(logger, year)}_rows_{start}_to_{end}"


def split_rows(frame: RecordFrame, logger: str, year: int, row_count: int) -> list[Partition]:
    """Split frame into consecutive chunks of at most row_count rows.

    Chunks keep the original row order, do not overlap and together cover
    every row; only the last chunk may be shorter. An empty frame has no
    chunks.
    """
    if row_count < 1:
        raise ValidationError(f"row_count must be >= 1, got {row_count}")

    partitions = []
    for offset in range(0, len(frame), row_count):
        rows = frame.iloc[offset:offset + row_count].reset_index(drop=True)
        start = offset + 1
        end = offset + len(rows)
        partitions.append(
            Partition(
                name=partition_name(logger, year, start, end),
                rows=rows,
                start=start,
                end=end,
            )
        )
    return partitions


def group_tables(frame: RecordFrame) -> dict[str, RecordFrame]:
    """One table per (logger, year) group, keeping each group's row order."""
    tables: dict[str, RecordFrame] = {}
    if frame.empty:
        return tables
    for (logger, year), rows in frame.groupby([LOGGER, YEAR], sort=False):
        tables[table_name(logger, int(year))] = rows.reset_index(drop=True)
    return tables


def partition_tables(frame: RecordFrame, row_count: int) -> dict[str, RecordFrame]:
    """Chunks of every (logger, year) group of frame, keyed by chunk name."""
    if row_count < 1:
        raise ValidationError(f"row_count must be >= 1, got {row_count}")

    chunks: dict[str, RecordFrame] = {}
    if frame.empty:
        return chunks
    for (logger, year), rows in frame.groupby([LOGGER, YEAR], sort=False):
        for partition in split_rows(rows.reset_index(drop=True), logger, int(year), row_count):
            chunks[partition.name] = partition.rows
    return chunks

