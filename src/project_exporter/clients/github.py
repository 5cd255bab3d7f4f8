"""GitHub REST API client for Projects (classic).

Provides single-page access to the four list endpoints the exporter walks:
- Organization projects
- Repository projects
- Project columns
- Column cards

Every call returns one `Page`; following the cursor is the caller's job.

API Documentation: https://docs.github.com/en/rest/projects

Usage:
    from project_exporter.clients.github import GitHubClient

    async with GitHubClient(token="ghp_...") as client:
        page = await client.list_organization_projects("acme")
        while page.next_page:
            page = await client.list_organization_projects("acme", page=page.next_page)
"""

from dataclasses import dataclass
from typing import Any

import httpx

from project_exporter.clients.base import APIProviderError, BaseAsyncClient

DEFAULT_API_URL = "https://api.github.com"
PER_PAGE = 100


@dataclass
class Page:
    """One page of a paginated list endpoint.

    Attributes:
        items: Raw JSON objects on this page
        next_page: Number of the next page, 0 when this is the last one
    """

    items: list[dict[str, Any]]
    next_page: int = 0


def next_page_number(response: httpx.Response) -> int:
    """Read the next page number from the Link header (0 if there is none)."""
    link = response.links.get("next")
    if not link or not link.get("url"):
        return 0
    page = httpx.URL(link["url"]).params.get("page", "")
    return int(page) if page.isdigit() else 0


class GitHubClient(BaseAsyncClient):
    """Async client for the GitHub Projects (classic) REST API.

    Args:
        token: Access token, sent as a bearer credential
        base_url: API base URL (default: https://api.github.com)
        rate_limit: Max requests per second (default: 10)
        timeout: Per-request timeout in seconds (default: 30)
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        rate_limit: int = 10,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            rate_limit=rate_limit,
            timeout=timeout,
        )

    async def get_page(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        page: int = 1,
    ) -> Page:
        """Fetch one page of a list endpoint.

        Args:
            endpoint: API path, e.g. /orgs/acme/projects
            params: Extra query parameters (per_page and page are added)
            page: 1-based page number

        Returns:
            The page items and the next page number

        Raises:
            APIProviderError: If the request fails or the body is not a JSON list
        """
        query = dict(params or {})
        query["per_page"] = PER_PAGE
        query["page"] = page

        response = await self._send("GET", endpoint, params=query)
        body = self._parse_json(response)
        if not isinstance(body, list):
            raise APIProviderError(
                message=f"Expected a JSON list from {endpoint}, got {type(body).__name__}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )
        return Page(items=body, next_page=next_page_number(response))

    async def list_organization_projects(self, org: str, page: int = 1) -> Page:
        """List open projects of an organization."""
        return await self.get_page(f"/orgs/{org}/projects", {"state": "open"}, page)

    async def list_repository_projects(self, owner: str, repo: str, page: int = 1) -> Page:
        """List open projects of a repository."""
        return await self.get_page(f"/repos/{owner}/{repo}/projects", {"state": "open"}, page)

    async def list_project_columns(self, project_id: int, page: int = 1) -> Page:
        """List columns of a project."""
        return await self.get_page(f"/projects/{project_id}/columns", page=page)

    async def list_project_cards(self, column_id: int, page: int = 1) -> Page:
        """List cards of a project column."""
        return await self.get_page(f"/projects/columns/{column_id}/cards", page=page)
