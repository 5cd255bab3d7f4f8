"""Scrape-time collection pipeline: API → Cache → Samples.

Components:
- HierarchyFetcher: paginated projects / columns / cards
- Orchestrator: per-scrape depth-first walk with failure isolation
"""

from project_exporter.pipeline.fetcher import HierarchyFetcher, UpstreamFetchError
from project_exporter.pipeline.orchestrator import Orchestrator

__all__ = ["HierarchyFetcher", "Orchestrator", "UpstreamFetchError"]
