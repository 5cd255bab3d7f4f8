"""HierarchyFetcher: paginated API → domain objects.

Hides the upstream pagination protocol behind "fetch all" calls: callers get
every item for a key, or an UpstreamFetchError. A failure on any page discards
the pages already read, so partial lists never escape.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from project_exporter.clients import APIProviderError, GitHubClient, Page
from project_exporter.models import Card, Column, Project, Scope, ScopeKind, split_repository_slug

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UpstreamFetchError(Exception):
    """Listing one hierarchy node failed (transport, HTTP status or payload).

    Attributes:
        key: Identifier of the node whose children could not be listed
        status_code: HTTP status of the failing response, if any
    """

    def __init__(self, message: str, key: Any = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.status_code = status_code


class HierarchyFetcher:
    """Fetches projects, columns and cards, following every page.

    Stateless apart from the client it wraps; nothing is kept between calls.

    Usage:
        async with GitHubClient(token=token) as client:
            fetcher = HierarchyFetcher(client)
            projects = await fetcher.list_projects(Scope.organization("acme"))
    """

    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    async def list_projects(self, scope: Scope) -> list[Project]:
        """List all open projects of an organization or repository.

        Raises:
            UpstreamFetchError: If the scope is malformed or any page fails
        """
        if scope.kind is ScopeKind.ORGANIZATION:
            if not scope.name:
                raise UpstreamFetchError(f"invalid organization name: {scope.name!r}", key=scope.name)

            def fetch_page(page: int) -> Awaitable[Page]:
                return self.client.list_organization_projects(scope.name, page=page)
        else:
            parts = split_repository_slug(scope.name)
            if parts is None:
                raise UpstreamFetchError(f"invalid repository name: {scope.name}", key=scope.name)
            owner, repo = parts

            def fetch_page(page: int) -> Awaitable[Page]:
                return self.client.list_repository_projects(owner, repo, page=page)

        items = await self._fetch_all(fetch_page, f"{scope.kind.value} projects", scope.name)
        return self._parse(Project, items, f"{scope.kind.value} projects", scope.name)

    async def list_columns(self, project_id: int) -> list[Column]:
        """List all columns of a project.

        Raises:
            UpstreamFetchError: If any page fails
        """
        def fetch_page(page: int) -> Awaitable[Page]:
            return self.client.list_project_columns(project_id, page=page)

        items = await self._fetch_all(fetch_page, "project columns", project_id)
        return self._parse(Column, items, "project columns", project_id)

    async def list_cards(self, column_id: int) -> list[Card]:
        """List all cards of a project column.

        Raises:
            UpstreamFetchError: If any page fails
        """
        def fetch_page(page: int) -> Awaitable[Page]:
            return self.client.list_project_cards(column_id, page=page)

        items = await self._fetch_all(fetch_page, "project cards", column_id)
        return self._parse(Card, items, "project cards", column_id)

    async def _fetch_all(
        self,
        fetch_page: Callable[[int], Awaitable[Page]],
        what: str,
        key: Any,
    ) -> list[dict[str, Any]]:
        """Follow the next-page cursor from page 1 until it is exhausted."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            try:
                result = await fetch_page(page)
            except APIProviderError as e:
                raise UpstreamFetchError(
                    f"unable to get {what}: {key} ({e})", key=key, status_code=e.status_code,
                ) from e

            items.extend(result.items)
            if result.next_page == 0:
                break
            if result.next_page <= page:
                raise UpstreamFetchError(
                    f"unable to get {what}: {key} (page cursor went from {page} to {result.next_page})",
                    key=key,
                )
            page = result.next_page

        logger.debug("Fetched %d %s for %s across %d page(s)", len(items), what, key, page)
        return items

    @staticmethod
    def _parse(model: type[T], items: list[dict[str, Any]], what: str, key: Any) -> list[T]:
        try:
            return [model.from_api(item) for item in items]
        except ValueError as e:
            raise UpstreamFetchError(f"unable to parse {what}: {key} ({e})", key=key) from e
