"""API client layer for the exporter.

Async HTTP clients for the upstream project-tracking API:
- BaseAsyncClient: pooling, rate limiting, retries
- GitHubClient: Projects (classic) list endpoints, one page per call
"""

from project_exporter.clients.base import BaseAsyncClient, RateLimiter, APIProviderError
from project_exporter.clients.github import GitHubClient, Page

__all__ = [
    "BaseAsyncClient",
    "RateLimiter",
    "APIProviderError",
    "GitHubClient",
    "Page",
]
