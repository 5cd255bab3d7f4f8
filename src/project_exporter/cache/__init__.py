"""Time-boxed in-memory cache of upstream responses, shared across scrapes."""

from project_exporter.cache.snapshot import CacheLevel, CacheSnapshot, ScrapeCache

__all__ = ["CacheLevel", "CacheSnapshot", "ScrapeCache"]
