"""Tests for the hosted search adapter."""

import json

import httpx
import pytest
import pytest_asyncio

from feedback_market.domain.errors import IndexUnavailable
from feedback_market.domain.models.claim import Claim
from feedback_market.infrastructure.search.hosted_search_adapter import (
    HostedSearchAdapter,
    HostedSearchConfig,
)


class SearchService:
    """Records requests and answers with canned search results."""

    def __init__(self, results=None, status=200):
        self.results = results or []
        self.status = status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.url.path, json.loads(request.content)))
        if self.status != 200:
            return httpx.Response(self.status, json={"error": "unavailable"})
        if request.url.path == "/search":
            return httpx.Response(200, json={"results": self.results})
        return httpx.Response(200, json={"ok": True})


def attach(adapter: HostedSearchAdapter, service: SearchService) -> HostedSearchAdapter:
    adapter._client = httpx.AsyncClient(
        base_url="http://search.test",
        transport=httpx.MockTransport(service),
    )
    adapter._initialized = True
    return adapter


@pytest_asyncio.fixture
async def service():
    return SearchService(results=[
        {"id": 3, "score": 0.7},
        {"id": 1, "score": 0.92},
        {"id": 2, "score": 1.3},
        {"id": 4, "score": 0.1},
    ])


@pytest_asyncio.fixture
async def adapter(service):
    adapter = attach(HostedSearchAdapter(HostedSearchConfig(base_url="http://search.test")), service)
    yield adapter
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_find_similar_sorts_clips_and_limits(adapter, service):
    matches = await adapter.find_similar("Docs are confusing")

    assert [m.claim_id for m in matches] == [2, 1, 3]
    assert matches[0].score == 1.0
    assert service.requests[0] == ("/search", {"query": "Docs are confusing", "limit": 3})


@pytest.mark.asyncio
async def test_results_are_cached(adapter, service):
    await adapter.find_similar("Docs are confusing")
    await adapter.find_similar("Docs are confusing")

    assert len(service.requests) == 1


@pytest.mark.asyncio
async def test_index_claim_posts_document_and_clears_cache(adapter, service):
    await adapter.find_similar("Docs are confusing")

    await adapter.index_claim(Claim(id=9, text="Docs are confusing"))
    await adapter.find_similar("Docs are confusing")

    paths = [path for path, _ in service.requests]
    assert paths == ["/search", "/documents", "/search"]
    assert service.requests[1][1] == {"id": 9, "text": "Docs are confusing"}


@pytest.mark.asyncio
async def test_server_error_raises_index_unavailable():
    adapter = attach(HostedSearchAdapter(), SearchService(status=503))

    with pytest.raises(IndexUnavailable):
        await adapter.find_similar("anything")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_malformed_response_raises_index_unavailable():
    adapter = attach(HostedSearchAdapter(), SearchService(results=[{"id": "abc"}]))

    with pytest.raises(IndexUnavailable):
        await adapter.find_similar("anything")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_uninitialized_adapter_is_unavailable():
    adapter = HostedSearchAdapter()

    assert not adapter.is_available
    with pytest.raises(IndexUnavailable):
        await adapter.find_similar("anything")


@pytest.mark.asyncio
async def test_initialize_and_shutdown():
    adapter = HostedSearchAdapter(HostedSearchConfig(base_url="http://search.test", api_key="k"))
    await adapter.initialize()
    assert adapter.is_available
    assert adapter._client.headers["Authorization"] == "Bearer k"

    await adapter.shutdown()
    assert not adapter.is_available
