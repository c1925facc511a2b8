"""Hosted semantic search implementation of the similarity index."""

import logging
from typing import List, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field, ValidationError

from ...domain.errors import IndexUnavailable
from ...domain.models.actions import SimilarMatch
from ...domain.models.claim import Claim
from ...domain.ports.similarity_index import DEFAULT_SEARCH_LIMIT, SimilarityIndex

logger = logging.getLogger(__name__)


class HostedSearchConfig(BaseModel):
    """Configuration for the hosted search adapter."""

    base_url: str = Field(..., description="Base URL of the search service")
    api_key: str = Field(default="", description="Bearer token for the search service")
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    cache_ttl: int = Field(default=300, description="Cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cache size")


class _SearchHit(BaseModel):
    id: int
    score: float


class HostedSearchAdapter(SimilarityIndex):
    """Talks to a hosted semantic search API.

    The service exposes ``POST /search`` taking ``{"query", "limit"}`` and
    answering ``{"results": [{"id", "score"}]}``, and ``POST /documents``
    taking ``{"id", "text"}`` to index a claim.
    """

    def __init__(
        self,
        config: Optional[HostedSearchConfig] = None,
        provider_name: str = "HostedSearch",
    ):
        self._config = config or HostedSearchConfig(base_url="http://localhost:8787")
        self._name = provider_name
        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False
        self._cache = TTLCache(
            maxsize=self._config.cache_maxsize,
            ttl=self._config.cache_ttl,
        )

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._config.api_key:
                headers["Authorization"] = f"Bearer {self._config.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers=headers,
            )
        self._initialized = True

    async def find_similar(
        self,
        claim_text: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[SimilarMatch]:
        """Search for claims similar to ``claim_text``.

        Raises:
            IndexUnavailable: If the service cannot be reached or errors
        """
        cache_key = f"search:{limit}:{claim_text}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        payload = await self._post("/search", {"query": claim_text, "limit": limit})
        try:
            hits = [_SearchHit.model_validate(h) for h in payload.get("results") or []]
        except (AttributeError, ValidationError) as e:
            raise IndexUnavailable(f"Malformed search response: {e}") from e

        hits.sort(key=lambda h: h.score, reverse=True)
        matches = [
            SimilarMatch(claim_id=h.id, score=min(1.0, max(0.0, h.score)))
            for h in hits[:limit]
        ]
        self._cache[cache_key] = matches
        return matches

    async def index_claim(self, claim: Claim) -> None:
        """Add a claim to the search index."""
        await self._post("/documents", {"id": claim.id, "text": claim.text})
        # New documents change search results
        self._cache.clear()
        logger.debug(f"🔎 Indexed claim {claim.id}")

    async def _post(self, path: str, body: dict) -> dict:
        if not self._client:
            raise IndexUnavailable("Search client not initialized")
        try:
            response = await self._client.post(path, json=body)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"⚠️ Search service error on {path}: {type(e).__name__}: {e}")
            raise IndexUnavailable(f"Search service error: {e}") from e

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._initialized = False

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return self._initialized and self._client is not None
