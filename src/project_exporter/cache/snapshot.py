"""Time-boxed snapshot cache shared across scrapes.

One CacheSnapshot holds everything fetched since it was created, keyed by the
parent identifier at each hierarchy level:

    organization name   -> [Project]
    repository slug     -> [Project]
    project id          -> [Column]
    column id           -> [Card]

Keys are populated lazily and never removed. The whole snapshot expires at
one instant and is replaced by an empty one on the next scrape. Failed fetches
are never stored, so they are retried on the next lookup.

The cache itself is not thread-safe; the orchestrator serializes scrapes.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from project_exporter.config import ConfigurationError
from project_exporter.models import Card, Column, Project

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheLevel(Enum):
    """Hierarchy level; the value names the snapshot mapping."""

    ORGANIZATION_PROJECTS = "organization_projects"
    REPOSITORY_PROJECTS = "repository_projects"
    PROJECT_COLUMNS = "project_columns"
    COLUMN_CARDS = "column_cards"


@dataclass
class CacheSnapshot:
    """Everything fetched during one validity window."""

    expires: float
    organization_projects: dict[str, list[Project]] = field(default_factory=dict)
    repository_projects: dict[str, list[Project]] = field(default_factory=dict)
    project_columns: dict[int, list[Column]] = field(default_factory=dict)
    column_cards: dict[int, list[Card]] = field(default_factory=dict)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires

    def mapping(self, level: CacheLevel) -> dict[Any, Any]:
        return getattr(self, level.value)

    def size(self) -> int:
        """Total number of cached keys across all levels."""
        return sum(len(self.mapping(level)) for level in CacheLevel)


class ScrapeCache:
    """Holds the current CacheSnapshot and swaps it once it has expired.

    Args:
        ttl: Snapshot validity in seconds. 0 disables caching across scrapes.
        clock: Monotonic time source in seconds (injectable for tests)

    Raises:
        ConfigurationError: If ttl is negative

    Usage:
        cache = ScrapeCache(ttl=60)
        cache.get_or_create()  # once, at the start of each scrape
        projects = await cache.lookup_or_fetch(
            CacheLevel.ORGANIZATION_PROJECTS, "acme",
            lambda: fetcher.list_projects(scope),
        )
    """

    def __init__(self, ttl: int, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl < 0:
            raise ConfigurationError(f"invalid TTL: {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._snapshot: CacheSnapshot | None = None

    @property
    def snapshot(self) -> CacheSnapshot | None:
        return self._snapshot

    def get_or_create(self) -> CacheSnapshot:
        """Return the live snapshot, replacing it first if it has expired."""
        now = self._clock()
        if self._snapshot is None or self._snapshot.is_expired(now):
            self._snapshot = CacheSnapshot(expires=now + self.ttl)
            logger.debug("Reset cache (ttl=%ds)", self.ttl)
        return self._snapshot

    async def lookup_or_fetch(
        self,
        level: CacheLevel,
        key: Any,
        fetch: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached value for `key`, fetching and storing it on a miss.

        Exceptions raised by `fetch` propagate and leave the snapshot untouched.

        Raises:
            RuntimeError: If called before get_or_create()
        """
        if self._snapshot is None:
            raise RuntimeError("get_or_create() must be called before lookup_or_fetch()")

        mapping = self._snapshot.mapping(level)
        if key in mapping:
            return mapping[key]

        value = await fetch()
        mapping[key] = value
        return value
