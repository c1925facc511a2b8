"""Claim listing and creation endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.errors import StoreWriteFailure
from ...domain.models.claim import ClaimReport
from ...domain.ports.claim_store import ClaimStore
from ...domain.services.feedback_pipeline import FeedbackPipeline
from ...domain.services.reinforcement_engine import ReinforcementEngine
from ..dependencies import get_claim_store, get_feedback_pipeline, get_reinforcement_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/claims", tags=["claims"])


class CreateClaimRequest(BaseModel):
    """Request model for creating a claim directly."""

    text: str = Field(..., min_length=1, description="Claim statement")
    sources: List[str] = Field(default_factory=list, description="Origin tags")
    segments: List[str] = Field(default_factory=list, description="User segment tags")

    class Config:
        """Pydantic model configuration."""
        str_strip_whitespace = True


class CreateClaimResponse(BaseModel):
    """Response model for claim creation."""

    id: int


@router.get("", response_model=List[ClaimReport])
async def list_claims(
    store: ClaimStore = Depends(get_claim_store),
    engine: ReinforcementEngine = Depends(get_reinforcement_engine),
) -> List[ClaimReport]:
    """List claims by signal weight, annotated with their decay status."""
    claims = await store.list_claims()
    return [engine.classify(claim) for claim in claims]


@router.get("/{claim_id}", response_model=ClaimReport)
async def get_claim(
    claim_id: int,
    store: ClaimStore = Depends(get_claim_store),
    engine: ReinforcementEngine = Depends(get_reinforcement_engine),
) -> ClaimReport:
    """Get one claim with its decay status."""
    claim = await store.get(claim_id)
    if claim is None:
        raise HTTPException(status_code=404, detail=f"Claim not found: {claim_id}")
    return engine.classify(claim)


@router.post("", response_model=CreateClaimResponse)
async def create_claim(
    request: CreateClaimRequest,
    pipeline: FeedbackPipeline = Depends(get_feedback_pipeline),
) -> CreateClaimResponse:
    """Create a claim at the baseline signal weight and index it for search."""
    try:
        claim = await pipeline.create_claim(
            request.text,
            sources=request.sources,
            segments=request.segments,
        )
    except StoreWriteFailure as e:
        raise HTTPException(status_code=503, detail=str(e))
    logger.info(f"📝 Created claim {claim.id} via API")
    return CreateClaimResponse(id=claim.id)
