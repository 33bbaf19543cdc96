"""Domain enums for indicators, QC flags and aggregation."""

from enum import Enum, IntEnum


class Indicator(str, Enum):
    """Measured quantity."""

    CHLOROPHYLL = "Chlorophyll"
    TURBIDITY = "Turbidity"


class QcFlag(IntEnum):
    """IMOS quality-control flag codes."""

    NO_QC = 0
    GOOD = 1
    PROBABLY_GOOD = 2
    CORRECTABLE_BAD = 3  # Potentially correctable bad data
    BAD = 4
    VALUE_CHANGED = 5


class AggregationType(str, Enum):
    """Time bucket granularity."""

    HOURLY = "hourly"
    DAILY = "daily"


class DeploymentFailurePolicy(str, Enum):
    """What to do when a single deployment cannot be read."""

    ABORT = "abort"
    SKIP = "skip"


class EmptyReason(str, Enum):
    """Why an extraction produced no rows."""

    NO_DEPLOYMENTS = "no_deployments"
    ALL_SKIPPED = "all_skipped"
    NO_ROWS = "no_rows"
    ALL_FILTERED = "all_filtered"
