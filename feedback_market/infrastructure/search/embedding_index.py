"""Embedding-based similarity index using the OpenAI embeddings API."""

import logging
import math
from typing import Dict, List, Optional, Sequence

from cachetools import TTLCache
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field

from ...domain.errors import IndexUnavailable
from ...domain.models.actions import SimilarMatch
from ...domain.models.claim import Claim
from ...domain.ports.similarity_index import DEFAULT_SEARCH_LIMIT, SimilarityIndex

logger = logging.getLogger(__name__)


class EmbeddingIndexConfig(BaseModel):
    """Configuration for the embedding index."""

    api_key: str = Field(default="", description="OpenAI API key")
    model: str = Field(default="text-embedding-3-small", description="Embedding model")
    cache_ttl: int = Field(default=3600, description="Query embedding cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cache size")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity clipped to [0, 1]."""
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return max(0.0, min(1.0, dot / norm))


class EmbeddingIndex(SimilarityIndex):
    """Keeps claim embeddings in memory and ranks them by cosine similarity.

    Claims must be added through ``index_claim`` (or ``rebuild``) before
    they can be found.
    """

    def __init__(
        self,
        config: Optional[EmbeddingIndexConfig] = None,
        client: Optional[AsyncOpenAI] = None,
        provider_name: str = "Embeddings",
    ):
        self._config = config or EmbeddingIndexConfig()
        self._client = client
        self._name = provider_name
        self._vectors: Dict[int, List[float]] = {}
        self._cache = TTLCache(
            maxsize=self._config.cache_maxsize,
            ttl=self._config.cache_ttl,
        )

    async def initialize(self) -> None:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._config.api_key or None)

    async def _embed(self, text: str) -> List[float]:
        if text in self._cache:
            return self._cache[text]
        if self._client is None:
            raise IndexUnavailable("Embedding client not initialized")
        try:
            response = await self._client.embeddings.create(
                model=self._config.model,
                input=text,
            )
        except OpenAIError as e:
            logger.warning(f"⚠️ Embedding request failed: {type(e).__name__}: {e}")
            raise IndexUnavailable(f"Embedding service error: {e}") from e

        vector = list(response.data[0].embedding)
        self._cache[text] = vector
        return vector

    async def find_similar(
        self,
        claim_text: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[SimilarMatch]:
        if not self._vectors:
            return []
        query = await self._embed(claim_text)
        scored = [
            SimilarMatch(claim_id=claim_id, score=cosine_similarity(query, vector))
            for claim_id, vector in self._vectors.items()
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:limit]

    async def index_claim(self, claim: Claim) -> None:
        self._vectors[claim.id] = await self._embed(claim.text)
        logger.debug(f"🔎 Indexed claim {claim.id}")

    async def rebuild(self, claims: Sequence[Claim]) -> int:
        """Index every given claim, returning how many were indexed."""
        for claim in claims:
            await self.index_claim(claim)
        logger.info(f"🔎 Embedding index rebuilt with {len(claims)} claim(s)")
        return len(claims)

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return self._client is not None
