"""Orchestrator: one scrape, depth-first through the project hierarchy.

Per scrape:
  1. Swap the cache snapshot if it has expired
  2. For each organization, then each repository (configuration order):
     projects → emit count → for each project: columns → emit count →
     for each column: cards → emit count

Every lookup goes through the cache. A failure at any node is logged and
skips that node's subtree only; samples already produced stand and siblings
are still visited. A scrape where everything failed is still a successful
scrape with zero samples.

Usage:
    orchestrator = Orchestrator(scopes, ScrapeCache(ttl=60), client_factory)
    samples = orchestrator.run()
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from functools import partial

from project_exporter.cache import CacheLevel, ScrapeCache
from project_exporter.clients import GitHubClient
from project_exporter.metrics import SCOPE_METRICS, Sample
from project_exporter.models import Scope, ScopeKind
from project_exporter.pipeline.fetcher import HierarchyFetcher, UpstreamFetchError

logger = logging.getLogger(__name__)

_PROJECT_LEVELS = {
    ScopeKind.ORGANIZATION: CacheLevel.ORGANIZATION_PROJECTS,
    ScopeKind.REPOSITORY: CacheLevel.REPOSITORY_PROJECTS,
}


class Orchestrator:
    """Walks configured scopes and turns the hierarchy into samples.

    Args:
        scopes: Organizations and repositories to export, in traversal order
        cache: Snapshot cache shared by every scrape of this orchestrator
        client_factory: Builds a fresh GitHubClient for each scrape
        scrape_timeout: Upper bound in seconds for one scrape (None = unbounded)
    """

    def __init__(
        self,
        scopes: Sequence[Scope],
        cache: ScrapeCache,
        client_factory: Callable[[], GitHubClient],
        scrape_timeout: float | None = 120.0,
    ) -> None:
        self.scopes = tuple(scopes)
        self.cache = cache
        self.client_factory = client_factory
        self.scrape_timeout = scrape_timeout
        # Held for a whole scrape: covers the snapshot swap and every
        # lookup-or-populate against it.
        self._lock = threading.Lock()

    def run(self) -> list[Sample]:
        """Run one scrape from synchronous code (e.g. a collector thread).

        Overlapping calls from other threads wait for the running scrape.
        """
        with self._lock:
            return asyncio.run(self.scrape())

    async def scrape(self) -> list[Sample]:
        """Open a client for this scrape and collect through it."""
        async with self.client_factory() as client:
            return await self.collect(HierarchyFetcher(client))

    async def collect(self, fetcher: HierarchyFetcher) -> list[Sample]:
        """Walk every scope with `fetcher`, returning samples in traversal order.

        If the scrape times out, in-flight fetches are cancelled and the
        samples produced so far are returned.
        """
        samples: list[Sample] = []
        snapshot = self.cache.get_or_create()

        try:
            async with asyncio.timeout(self.scrape_timeout):
                for scope in self.scopes:
                    await self._walk_scope(fetcher, scope, samples)
        except TimeoutError:
            logger.error(
                "Scrape timed out after %.1fs; exposing %d samples collected so far",
                self.scrape_timeout, len(samples),
            )

        logger.debug(
            "Scrape finished: %d samples, %d cached keys", len(samples), snapshot.size(),
        )
        return samples

    async def _walk_scope(
        self,
        fetcher: HierarchyFetcher,
        scope: Scope,
        samples: list[Sample],
    ) -> None:
        metrics = SCOPE_METRICS[scope.kind]

        try:
            projects = await self.cache.lookup_or_fetch(
                _PROJECT_LEVELS[scope.kind], scope.name, partial(fetcher.list_projects, scope),
            )
        except UpstreamFetchError as e:
            logger.error("Skipping %s: %s", scope, e)
            return

        samples.append(metrics.projects.sample(len(projects), scope.name))

        for project in projects:
            project_label = str(project.number)
            try:
                columns = await self.cache.lookup_or_fetch(
                    CacheLevel.PROJECT_COLUMNS, project.id, partial(fetcher.list_columns, project.id),
                )
            except UpstreamFetchError as e:
                logger.error("Skipping project %d (#%s) of %s: %s", project.id, project_label, scope, e)
                continue

            samples.append(metrics.columns.sample(len(columns), scope.name, project_label))

            for column in columns:
                try:
                    cards = await self.cache.lookup_or_fetch(
                        CacheLevel.COLUMN_CARDS, column.id, partial(fetcher.list_cards, column.id),
                    )
                except UpstreamFetchError as e:
                    logger.error(
                        "Skipping column %d (%s) of project #%s in %s: %s",
                        column.id, column.name, project_label, scope, e,
                    )
                    continue

                samples.append(
                    metrics.cards.sample(len(cards), scope.name, project_label, column.name)
                )
