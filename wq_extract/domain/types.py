"""Domain types and aliases."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pyarrow as pa

RecordFrame = pd.DataFrame
ExportTable = pa.Table
ArrayMap = dict[str, np.ndarray]
AttributeMap = dict[str, str]

# Long-format record columns, in output order
TIMESTAMP = "timestamp"
LATITUDE = "latitude"
LONGITUDE = "longitude"
LOGGER = "logger"
YEAR = "year"
INDICATOR = "indicator"
UNIT = "unit"
CONCENTRATION = "concentration"
FLAG = "flag"
FLAGS = "flags"
ATTRIBUTION = "attribution"

SHARED_COLUMNS = [TIMESTAMP, LATITUDE, LONGITUDE, LOGGER, YEAR, ATTRIBUTION]

RECORD_COLUMNS = [
    TIMESTAMP,
    LATITUDE,
    LONGITUDE,
    LOGGER,
    YEAR,
    INDICATOR,
    UNIT,
    CONCENTRATION,
    FLAG,
    ATTRIBUTION,
]

AGGREGATE_KEYS = [TIMESTAMP, LATITUDE, LONGITUDE, LOGGER, YEAR, INDICATOR, UNIT, ATTRIBUTION]

AGGREGATED_COLUMNS = AGGREGATE_KEYS + [CONCENTRATION, FLAGS]
