"""Tests for HierarchyFetcher: pagination and error mapping."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from project_exporter.clients import GitHubClient
from project_exporter.models import Card, Column, Project, Scope, ScopeKind
from project_exporter.pipeline.fetcher import HierarchyFetcher, UpstreamFetchError

BASE = "https://api.github.com"


def paged_responses(path: str, items: list[dict], per_page: int = 100) -> list[httpx.Response]:
    """Split `items` into GitHub-style pages linked by rel="next"."""
    chunks = [items[i:i + per_page] for i in range(0, len(items), per_page)] or [[]]
    responses = []
    for number, chunk in enumerate(chunks, start=1):
        headers = {}
        if number < len(chunks):
            headers["Link"] = (
                f'<{BASE}{path}?per_page={per_page}&page={number + 1}>; rel="next", '
                f'<{BASE}{path}?per_page={per_page}&page={len(chunks)}>; rel="last"'
            )
        responses.append(httpx.Response(200, json=chunk, headers=headers))
    return responses


def projects(n: int) -> list[dict]:
    return [{"id": 1000 + i, "number": i + 1, "name": f"Board {i + 1}"} for i in range(n)]


def columns(n: int) -> list[dict]:
    return [{"id": 2000 + i, "name": f"Column {i}"} for i in range(n)]


def cards(n: int) -> list[dict]:
    return [{"id": 3000 + i} for i in range(n)]


@pytest.fixture
def no_sleep():
    with patch("project_exporter.clients.base.asyncio.sleep", new=AsyncMock()):
        yield


class TestPaginationCompleteness:
    """Three pages of 100/100/37 yield 237 items in page order."""

    @pytest.mark.asyncio
    async def test_organization_projects(self, respx_mock):
        path = "/orgs/acme/projects"
        route = respx_mock.get(f"{BASE}{path}")
        route.side_effect = paged_responses(path, projects(237))

        async with GitHubClient(token="t") as client:
            result = await HierarchyFetcher(client).list_projects(Scope.organization("acme"))

        assert len(result) == 237
        assert [p.number for p in result] == list(range(1, 238))
        assert route.call_count == 3
        pages = [call.request.url.params["page"] for call in route.calls]
        assert pages == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_repository_projects(self, respx_mock):
        path = "/repos/acme/widgets/projects"
        route = respx_mock.get(f"{BASE}{path}")
        route.side_effect = paged_responses(path, projects(237))

        async with GitHubClient(token="t") as client:
            result = await HierarchyFetcher(client).list_projects(Scope.repository("acme/widgets"))

        assert len(result) == 237
        assert all(call.request.url.params["state"] == "open" for call in route.calls)

    @pytest.mark.asyncio
    async def test_columns(self, respx_mock):
        path = "/projects/1/columns"
        respx_mock.get(f"{BASE}{path}").side_effect = paged_responses(path, columns(237))

        async with GitHubClient(token="t") as client:
            result = await HierarchyFetcher(client).list_columns(1)

        assert len(result) == 237
        assert result[0] == Column(id=2000, name="Column 0")
        assert result[-1] == Column(id=2236, name="Column 236")

    @pytest.mark.asyncio
    async def test_cards(self, respx_mock):
        path = "/projects/columns/10/cards"
        respx_mock.get(f"{BASE}{path}").side_effect = paged_responses(path, cards(237))

        async with GitHubClient(token="t") as client:
            result = await HierarchyFetcher(client).list_cards(10)

        assert len(result) == 237
        assert [c.id for c in result] == list(range(3000, 3237))

    @pytest.mark.asyncio
    async def test_single_empty_page(self, respx_mock):
        respx_mock.get(f"{BASE}/projects/columns/11/cards").mock(
            return_value=httpx.Response(200, json=[])
        )

        async with GitHubClient(token="t") as client:
            assert await HierarchyFetcher(client).list_cards(11) == []


class TestScopeValidation:
    """Malformed scopes fail without touching the network."""

    @pytest.mark.asyncio
    async def test_empty_organization(self, respx_mock):
        async with GitHubClient(token="t") as client:
            with pytest.raises(UpstreamFetchError, match="invalid organization name"):
                await HierarchyFetcher(client).list_projects(Scope(ScopeKind.ORGANIZATION, ""))

        assert respx_mock.calls.call_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slug", ["owneronly", "/name", "a/b/c"])
    async def test_malformed_repository(self, respx_mock, slug):
        async with GitHubClient(token="t") as client:
            with pytest.raises(UpstreamFetchError, match="invalid repository name"):
                await HierarchyFetcher(client).list_projects(Scope(ScopeKind.REPOSITORY, slug))

        assert respx_mock.calls.call_count == 0


class TestFailures:
    """Any failing page fails the whole call."""

    @pytest.mark.asyncio
    async def test_failure_on_later_page_discards_earlier_pages(self, respx_mock):
        path = "/projects/1/columns"
        first, *_ = paged_responses(path, columns(237))
        respx_mock.get(f"{BASE}{path}").side_effect = [
            first,
            httpx.Response(404, json={"message": "Not Found"}),
        ]

        async with GitHubClient(token="t") as client:
            with pytest.raises(UpstreamFetchError) as exc_info:
                await HierarchyFetcher(client).list_columns(1)

        assert exc_info.value.key == 1
        assert exc_info.value.status_code == 404
        assert "unable to get project columns: 1" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_failure(self, respx_mock, no_sleep):
        respx_mock.get(f"{BASE}/orgs/acme/projects").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        async with GitHubClient(token="t") as client:
            with pytest.raises(UpstreamFetchError, match="organization projects: acme"):
                await HierarchyFetcher(client).list_projects(Scope.organization("acme"))

    @pytest.mark.asyncio
    async def test_malformed_item(self, respx_mock):
        """Items missing required fields are a fetch failure."""
        respx_mock.get(f"{BASE}/orgs/acme/projects").mock(
            return_value=httpx.Response(200, json=[{"id": 1, "number": 1}, {"id": 2}])
        )

        async with GitHubClient(token="t") as client:
            with pytest.raises(UpstreamFetchError, match="unable to parse organization projects"):
                await HierarchyFetcher(client).list_projects(Scope.organization("acme"))

    @pytest.mark.asyncio
    async def test_cursor_must_advance(self, respx_mock):
        """A next link pointing backwards is rejected instead of looping."""
        path = "/projects/columns/10/cards"
        respx_mock.get(f"{BASE}{path}").mock(
            return_value=httpx.Response(
                200, json=cards(1),
                headers={"Link": f'<{BASE}{path}?page=1>; rel="next"'},
            )
        )

        async with GitHubClient(token="t") as client:
            with pytest.raises(UpstreamFetchError, match="page cursor"):
                await HierarchyFetcher(client).list_cards(10)


class TestParsedTypes:
    @pytest.mark.asyncio
    async def test_returns_domain_objects(self, respx_mock):
        respx_mock.get(f"{BASE}/orgs/acme/projects").mock(
            return_value=httpx.Response(200, json=[{"id": 1, "number": 7, "name": "Roadmap"}])
        )

        async with GitHubClient(token="t") as client:
            result = await HierarchyFetcher(client).list_projects(Scope.organization("acme"))

        assert result == [Project(id=1, number=7, name="Roadmap")]
        assert isinstance(result[0], Project)
        assert not isinstance(result[0], Card)
