"""Metric descriptors and samples.

Descriptors are fixed for the process lifetime and created once, here, at
import. Sample names are unprefixed; the exporter adds the namespace on
exposition (github_organization_projects by default).
"""

from dataclasses import dataclass
from typing import NamedTuple

from project_exporter.models import ScopeKind


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text and label names of one gauge."""

    name: str
    documentation: str
    labels: tuple[str, ...]

    def sample(self, value: float, *label_values: str) -> "Sample":
        """Build a sample, pairing label values with label names in order."""
        if len(label_values) != len(self.labels):
            raise ValueError(
                f"{self.name} takes {len(self.labels)} label values, got {len(label_values)}"
            )
        return Sample(self.name, dict(zip(self.labels, label_values)), float(value))


@dataclass(frozen=True)
class Sample:
    """One gauge value emitted during a scrape."""

    name: str
    labels: dict[str, str]
    value: float


class ScopeMetrics(NamedTuple):
    """The three gauges of one scope namespace, shallowest first."""

    projects: MetricDescriptor
    columns: MetricDescriptor
    cards: MetricDescriptor


ORGANIZATION_PROJECTS = MetricDescriptor(
    "organization_projects",
    "How many projects are in the organization.",
    ("organization",),
)
ORGANIZATION_PROJECT_COLUMNS = MetricDescriptor(
    "organization_project_columns",
    "How many columns are in the organization project.",
    ("organization", "project"),
)
ORGANIZATION_PROJECT_CARDS = MetricDescriptor(
    "organization_project_cards",
    "How many cards are in the organization project.",
    ("organization", "project", "column"),
)
REPOSITORY_PROJECTS = MetricDescriptor(
    "repository_projects",
    "How many projects are in the repository.",
    ("repository",),
)
REPOSITORY_PROJECT_COLUMNS = MetricDescriptor(
    "repository_project_columns",
    "How many columns are in the repository project.",
    ("repository", "project"),
)
REPOSITORY_PROJECT_CARDS = MetricDescriptor(
    "repository_project_cards",
    "How many cards are in the repository project.",
    ("repository", "project", "column"),
)

SCOPE_METRICS: dict[ScopeKind, ScopeMetrics] = {
    ScopeKind.ORGANIZATION: ScopeMetrics(
        ORGANIZATION_PROJECTS, ORGANIZATION_PROJECT_COLUMNS, ORGANIZATION_PROJECT_CARDS,
    ),
    ScopeKind.REPOSITORY: ScopeMetrics(
        REPOSITORY_PROJECTS, REPOSITORY_PROJECT_COLUMNS, REPOSITORY_PROJECT_CARDS,
    ),
}

DESCRIPTORS: tuple[MetricDescriptor, ...] = (
    *SCOPE_METRICS[ScopeKind.ORGANIZATION],
    *SCOPE_METRICS[ScopeKind.REPOSITORY],
)
