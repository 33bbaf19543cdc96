"""Unit tests for planner service."""

from wq_extract.application.services.planner import ReadPlan, plan_reads
from wq_extract.domain.entities import CatalogEntry, Query, SourceTemplates

TEMPLATES = SourceTemplates(
    catalog_base_url="https://thredds.example.org/thredds/catalog/FLNTU/",
    dataset_base_url="https://thredds.example.org/thredds/dodsC/FLNTU",
)


def _entry(logger: str, date: str) -> CatalogEntry:
    return CatalogEntry(
        dataset_id=f"AIMS_MMP-WQ_KUZ_{date}Z_{logger}_FV01_timeSeries_FLNTU.nc",
        logger=logger,
        deployment_date=date,
    )


def test_source_templates_urls():
    """Test catalog and dataset URLs built from the templates."""
    assert TEMPLATES.catalog_url(2025) == (
        "https://thredds.example.org/thredds/catalog/FLNTU/2025/catalog.xml"
    )
    assert TEMPLATES.dataset_url(2025, "BUR2", "20250301") == (
        "https://thredds.example.org/thredds/dodsC/FLNTU/2025/"
        "AIMS_MMP-WQ_KUZ_20250301Z_BUR2_FV01_timeSeries_FLNTU.nc"
    )


def test_read_plan_add_entries():
    """Test entries of the query logger become planned reads."""
    plan = ReadPlan(TEMPLATES)
    query = Query(year=2025, logger="BUR2")

    plan.add_entries(query, [_entry("BUR2", "20250101"), _entry("BUR2", "20250301")])

    assert len(plan) == 2
    assert [d.entry.deployment_date for d in plan.deployments] == ["20250101", "20250301"]
    assert all(d.query == query for d in plan.deployments)
    assert plan.deployments[1].url.endswith("/2025/AIMS_MMP-WQ_KUZ_20250301Z_BUR2_FV01_timeSeries_FLNTU.nc")


def test_read_plan_ignores_other_loggers():
    """Test entries of another logger are not planned for a query."""
    plan = ReadPlan(TEMPLATES)

    plan.add_entries(Query(year=2025, logger="BUR2"), [_entry("WHI4", "20250101")])

    assert len(plan) == 0


def test_read_plan_keeps_repeated_dates():
    """Test repeated deployment dates are all read."""
    plan = ReadPlan(TEMPLATES)
    entry = _entry("BUR2", "20250101")

    plan.add_entries(Query(year=2025, logger="BUR2"), [entry, entry])

    assert len(plan) == 2


def test_plan_reads_query_order():
    """Test planned reads follow query order then catalog order."""
    entries_2024 = [_entry("BUR2", "20240601"), _entry("WHI4", "20240101")]
    entries_2025 = [_entry("WHI4", "20250201"), _entry("BUR2", "20250101")]

    plan = plan_reads(
        TEMPLATES,
        [
            (Query(year=2024, logger="BUR2"), entries_2024),
            (Query(year=2024, logger="WHI4"), entries_2024),
            (Query(year=2025, logger="BUR2"), entries_2025),
            (Query(year=2025, logger="WHI4"), entries_2025),
        ],
    )

    assert [(d.query.year, d.entry.logger, d.entry.deployment_date) for d in plan.deployments] == [
        (2024, "BUR2", "20240601"),
        (2024, "WHI4", "20240101"),
        (2025, "BUR2", "20250101"),
        (2025, "WHI4", "20250201"),
    ]


def test_plan_reads_empty():
    """Test planning without entries gives an empty plan."""
    plan = plan_reads(TEMPLATES, [(Query(year=2025, logger="BUR2"), [])])

    assert len(plan) == 0
    assert plan.deployments == []
