"""Domain entities."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from wq_extract.domain.enums import EmptyReason, Indicator
from wq_extract.domain.types import ArrayMap, AttributeMap, RecordFrame


@dataclass(frozen=True)
class Query:
    """One (year, logger) pair of an extraction request."""

    year: int
    logger: str


@dataclass(frozen=True)
class CatalogEntry:
    """Deployment dataset listed in a yearly catalog."""

    dataset_id: str
    logger: str
    deployment_date: str  # YYYYMMDD


@dataclass(frozen=True)
class DeploymentDataset:
    """Arrays and global attributes read from one deployment file."""

    location: str
    variables: ArrayMap
    dimensions: ArrayMap
    global_attributes: AttributeMap = field(default_factory=dict)


@dataclass(frozen=True)
class IndicatorSchema:
    """Field identities of one indicator, in the source file and the wide table."""

    indicator: Indicator
    concentration_variable: str
    flag_variable: str
    unit: str

    @property
    def concentration_column(self) -> str:
        return f"{self.indicator.value.lower()}_concentration"

    @property
    def flag_column(self) -> str:
        return f"{self.indicator.value.lower()}_flag"

    @property
    def unit_column(self) -> str:
        return f"{self.indicator.value.lower()}_unit"


CHLOROPHYLL_SCHEMA = IndicatorSchema(
    indicator=Indicator.CHLOROPHYLL,
    concentration_variable="CPHL",
    flag_variable="CPHL_quality_control",
    unit="mgm3",
)

TURBIDITY_SCHEMA = IndicatorSchema(
    indicator=Indicator.TURBIDITY,
    concentration_variable="TURB",
    flag_variable="TURB_quality_control",
    unit="ntu",
)

INDICATOR_SCHEMAS: tuple[IndicatorSchema, ...] = (CHLOROPHYLL_SCHEMA, TURBIDITY_SCHEMA)


@dataclass(frozen=True)
class SourceTemplates:
    """URL templates for the yearly catalog and the deployment files."""

    catalog_base_url: str
    dataset_base_url: str

    def catalog_url(self, year: int) -> str:
        return f"{self.catalog_base_url.rstrip('/')}/{year}/catalog.xml"

    def dataset_url(self, year: int, logger: str, deployment_date: str) -> str:
        return (
            f"{self.dataset_base_url.rstrip('/')}/{year}/"
            f"AIMS_MMP-WQ_KUZ_{deployment_date}Z_{logger}_FV01_timeSeries_FLNTU.nc"
        )


@dataclass(frozen=True)
class Partition:
    """Named, row-bounded slice of a final table."""

    name: str
    rows: RecordFrame
    start: int  # 1-based, inclusive
    end: int  # 1-based, inclusive


@dataclass(frozen=True)
class SkippedDeployment:
    """Deployment left out of a result under the skip failure policy."""

    year: int
    logger: str
    deployment_date: str
    url: str | None
    error: str


class ExtractResult(Mapping[str, RecordFrame]):
    """Named output tables of one extraction, with provenance counters.

    Behaves as a read-only mapping from table name to table. The counters make
    an empty result explainable: ``empty_reason`` tells whether nothing was
    found, every found deployment was skipped, found deployments were empty,
    or every row was filtered out.
    """

    def __init__(
        self,
        tables: dict[str, RecordFrame],
        frame: RecordFrame,
        query_count: int,
        catalog_entry_count: int,
        deployment_count: int,
        source_row_count: int,
        skipped: list[SkippedDeployment] | None = None,
    ) -> None:
        self._tables = dict(tables)
        self.frame = frame
        self.query_count = query_count
        self.catalog_entry_count = catalog_entry_count
        self.deployment_count = deployment_count
        self.source_row_count = source_row_count
        self.skipped = list(skipped or [])

    def __getitem__(self, name: str) -> RecordFrame:
        return self._tables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    @property
    def row_count(self) -> int:
        return len(self.frame)

    @property
    def empty_reason(self) -> EmptyReason | None:
        """Reason for an empty result, or None when rows were produced."""
        if len(self.frame) > 0:
            return None
        if self.deployment_count == 0:
            # Every deployment found in the catalogs failed and was skipped
            if self.skipped:
                return EmptyReason.ALL_SKIPPED
            return EmptyReason.NO_DEPLOYMENTS
        if self.source_row_count == 0:
            return EmptyReason.NO_ROWS
        return EmptyReason.ALL_FILTERED

    def __repr__(self) -> str:
        return (
            f"ExtractResult(tables={list(self._tables)}, rows={len(self.frame)}, "
            f"deployments={self.deployment_count}, skipped={len(self.skipped)})"
        )
