"""Prometheus collector for GitHub Projects.

Validates the configuration at construction, then turns every `collect()`
call (one per scrape) into an Orchestrator run and exposes the samples as
gauge families.

Usage:
    from prometheus_client import CollectorRegistry

    exporter = Exporter(token="ghp_...", organizations=["acme"], repositories=[])
    registry = CollectorRegistry()
    registry.register(exporter)
"""

import logging
from collections.abc import Iterator, Sequence
from functools import partial

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from project_exporter.cache import ScrapeCache
from project_exporter.clients import GitHubClient
from project_exporter.clients.github import DEFAULT_API_URL
from project_exporter.config import ConfigurationError, Settings
from project_exporter.metrics import DESCRIPTORS, MetricDescriptor
from project_exporter.models import Scope
from project_exporter.pipeline import Orchestrator

logger = logging.getLogger(__name__)


class Exporter(Collector):
    """Collector exposing project, column and card counts.

    Args:
        token: GitHub access token (required)
        organizations: Organization names to export
        repositories: Repository slugs (owner/name) to export
        cache_ttl: Cache TTL in seconds (0 = fetch on every scrape)
        api_url: GitHub API base URL
        rate_limit: Max upstream requests per second
        request_timeout: Timeout per upstream request in seconds
        scrape_timeout: Upper bound for one scrape in seconds
        namespace: Prefix for exposed metric names ("" for none)

    Raises:
        ConfigurationError: On a missing token, no scopes, a malformed
            repository slug, an empty organization name or a negative TTL
    """

    def __init__(
        self,
        token: str,
        organizations: Sequence[str],
        repositories: Sequence[str],
        cache_ttl: int = 60,
        *,
        api_url: str = DEFAULT_API_URL,
        rate_limit: int = 10,
        request_timeout: float = 30.0,
        scrape_timeout: float | None = 120.0,
        namespace: str = "github",
    ) -> None:
        if not token:
            raise ConfigurationError("invalid token")
        if not organizations and not repositories:
            raise ConfigurationError(
                "at least one organization name or repository name is required"
            )

        scopes = [Scope.organization(org) for org in organizations]
        scopes += [Scope.repository(repo) for repo in repositories]

        self.namespace = namespace
        self.orchestrator = Orchestrator(
            scopes=scopes,
            cache=ScrapeCache(ttl=cache_ttl),
            client_factory=partial(
                GitHubClient,
                token=token,
                base_url=api_url,
                rate_limit=rate_limit,
                timeout=request_timeout,
            ),
            scrape_timeout=scrape_timeout,
        )
        logger.info(
            "Exporting %d organization(s) and %d repository(ies), cache TTL %ds",
            len(organizations), len(repositories), cache_ttl,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "Exporter":
        """Build an exporter from Settings; keyword overrides win (e.g. CLI flags)."""
        kwargs = {
            "token": settings.github_token,
            "organizations": settings.github_organizations,
            "repositories": settings.github_repositories,
            "cache_ttl": settings.github_cache_ttl,
            "api_url": settings.github_api_url,
            "rate_limit": settings.github_rate_limit,
            "request_timeout": settings.github_request_timeout,
            "scrape_timeout": settings.scrape_timeout,
            "namespace": settings.metrics_namespace,
        }
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    def metric_name(self, descriptor: MetricDescriptor) -> str:
        """Fully qualified exposition name of a descriptor."""
        if not self.namespace:
            return descriptor.name
        return f"{self.namespace}_{descriptor.name}"

    def _families(self) -> dict[str, GaugeMetricFamily]:
        return {
            d.name: GaugeMetricFamily(self.metric_name(d), d.documentation, labels=list(d.labels))
            for d in DESCRIPTORS
        }

    def describe(self) -> Iterator[GaugeMetricFamily]:
        """Yield sample-less families so registration does not trigger a scrape."""
        yield from self._families().values()

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """Run one scrape and yield every gauge family."""
        families = self._families()
        try:
            samples = self.orchestrator.run()
        except Exception as e:
            # The metrics endpoint must still answer
            logger.error("Scrape failed: %s", e, exc_info=True)
            samples = []

        by_name = {d.name: d for d in DESCRIPTORS}
        for sample in samples:
            descriptor = by_name[sample.name]
            families[sample.name].add_metric(
                [sample.labels[label] for label in descriptor.labels], sample.value,
            )

        yield from families.values()
