"""Planning service for deployment reads."""

from dataclasses import dataclass

from wq_extract.domain.entities import CatalogEntry, Query, SourceTemplates


@dataclass(frozen=True)
class PlannedDeployment:
    """One deployment file to read for a query."""

    query: Query
    entry: CatalogEntry
    url: str


class ReadPlan:
    """Plan for reading deployment datasets, in query then catalog order."""

    def __init__(self, templates: SourceTemplates) -> None:
        """Initialize read plan."""
        self.templates = templates
        self.deployments: list[PlannedDeployment] = []

    def add_entries(self, query: Query, entries: list[CatalogEntry]) -> None:
        """Add the catalog entries resolved for query.

        Entries of another logger are ignored; repeated dates are kept.
        """
        for entry in entries:
            if entry.logger != query.logger:
                continue
            self.deployments.append(
                PlannedDeployment(
                    query=query,
                    entry=entry,
                    url=self.templates.dataset_url(query.year, query.logger, entry.deployment_date),
                )
            )

    def __len__(self) -> int:
        return len(self.deployments)


def plan_reads(
    templates: SourceTemplates,
    entries_by_query: list[tuple[Query, list[CatalogEntry]]],
) -> ReadPlan:
    """Plan deployment reads from the catalog entries of every query."""
    plan = ReadPlan(templates)
    for query, entries in entries_by_query:
        plan.add_entries(query, entries)
    return plan
