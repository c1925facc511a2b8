"""Similarity search endpoint."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...domain.errors import IndexUnavailable
from ...domain.models.actions import SimilarMatch
from ...domain.ports.similarity_index import DEFAULT_SEARCH_LIMIT, SimilarityIndex
from ..dependencies import get_similarity_index

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])


class SearchRequest(BaseModel):
    """Request model for similarity search."""

    query: str = Field(..., min_length=1, description="Claim text to search for")
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1, le=50, description="Maximum results")

    class Config:
        """Pydantic model configuration."""
        str_strip_whitespace = True


class SearchResponse(BaseModel):
    """Response model for similarity search."""

    results: List[SimilarMatch]
    available: bool = True


@router.post("/search-similar", response_model=SearchResponse)
async def search_similar(
    request: SearchRequest,
    index: SimilarityIndex = Depends(get_similarity_index),
) -> SearchResponse:
    """Find recorded claims similar to the query.

    An unreachable index yields an empty result instead of an error.
    """
    try:
        results = await index.find_similar(request.query, request.limit)
    except IndexUnavailable as e:
        logger.error(f"❌ Similarity search error: {e}")
        return SearchResponse(results=[], available=False)
    return SearchResponse(results=results[: request.limit])
