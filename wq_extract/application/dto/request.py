"""Extraction request DTO."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wq_extract.domain.entities import Query
from wq_extract.domain.enums import AggregationType, Indicator, QcFlag

DEFAULT_FLAG_TAGS = frozenset({int(QcFlag.GOOD), int(QcFlag.PROBABLY_GOOD)})
DEFAULT_ROW_COUNT = 1500


class ExtractRequest(BaseModel):
    """Validated parameters of one extraction."""

    model_config = ConfigDict(frozen=True)

    years: frozenset[int] = Field(min_length=1)
    loggers: frozenset[str] = Field(min_length=1)
    indicators: frozenset[Indicator] = frozenset(Indicator)
    filter_flags: bool = True
    flag_tags: frozenset[int] = DEFAULT_FLAG_TAGS
    aggregate: bool = False
    aggregation_type: AggregationType | None = None
    small_tables: bool = False
    row_count: int = Field(DEFAULT_ROW_COUNT, gt=0)

    @field_validator("loggers")
    @classmethod
    def _strip_loggers(cls, value: frozenset[str]) -> frozenset[str]:
        loggers = frozenset(name.strip() for name in value)
        if "" in loggers:
            raise ValueError("logger names must not be blank")
        return loggers

    @field_validator("indicators", mode="before")
    @classmethod
    def _default_indicators(cls, value):
        # None means "not restricted"
        if value is None:
            return frozenset(Indicator)
        if isinstance(value, (str, Indicator)):
            return [value]
        return value

    @field_validator("indicators")
    @classmethod
    def _require_indicator(cls, value: frozenset[Indicator]) -> frozenset[Indicator]:
        if not value:
            raise ValueError("at least one indicator must be selected")
        return value

    @field_validator("flag_tags")
    @classmethod
    def _known_flags(cls, value: frozenset[int]) -> frozenset[int]:
        unknown = sorted(tag for tag in value if tag not in {flag.value for flag in QcFlag})
        if unknown:
            raise ValueError(f"unknown QC flag codes: {unknown}")
        return frozenset(int(tag) for tag in value)

    @field_validator("aggregation_type", mode="before")
    @classmethod
    def _normalize_aggregation_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _aggregation_requires_type(self) -> "ExtractRequest":
        if self.aggregate and self.aggregation_type is None:
            raise ValueError("aggregation_type is required when aggregate is enabled")
        return self

    def queries(self) -> list[Query]:
        """Cross product of years and loggers, in sorted order."""
        return [
            Query(year=year, logger=logger)
            for year in sorted(self.years)
            for logger in sorted(self.loggers)
        ]
