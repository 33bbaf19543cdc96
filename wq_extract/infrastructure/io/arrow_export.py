"""In-memory Arrow/Parquet encoding of output tables."""

import io
from collections.abc import Mapping

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from wq_extract.domain.types import FLAGS, ExportTable, RecordFrame


def to_arrow(frame: RecordFrame) -> ExportTable:
    """Convert one output table to an Arrow table.

    Aggregated flag tuples become Arrow list<int64> values.
    """
    data = frame.copy()
    if FLAGS in data.columns:
        data[FLAGS] = [list(flags) if flags is not None else None for flags in data[FLAGS]]
    return pa.Table.from_pandas(data, preserve_index=False)


def to_arrow_tables(tables: Mapping[str, RecordFrame]) -> dict[str, ExportTable]:
    """Convert every named table, keeping the names."""
    return {name: to_arrow(frame) for name, frame in tables.items()}


def to_parquet_bytes(data: RecordFrame | ExportTable, compression: str = "snappy") -> bytes:
    """Encode a table as a Parquet file held in memory."""
    if isinstance(data, pd.DataFrame):
        table = to_arrow(data)
    else:
        table = data

    buffer = io.BytesIO()
    pq.write_table(
        table,
        buffer,
        compression=compression,
        use_dictionary=True,
    )
    return buffer.getvalue()
