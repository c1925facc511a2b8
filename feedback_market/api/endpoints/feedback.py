"""Feedback analysis and synchronous processing endpoints."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.errors import ClaimNotFound, ExtractionFailure, StepFailed, StoreWriteFailure
from ...domain.models.actions import PipelineResult
from ...domain.models.feedback import FeedbackEvent
from ...domain.services.feedback_analysis_service import FeedbackAnalysis, FeedbackAnalysisService
from ...domain.services.feedback_pipeline import FeedbackPipeline
from ..dependencies import get_analysis_service, get_feedback_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["feedback"])


class AnalyzeFeedbackRequest(BaseModel):
    """Request model for feedback analysis."""

    feedback: str = Field(..., min_length=1, description="Raw feedback text")
    source: Optional[str] = Field(None, description="Origin tag")

    class Config:
        """Pydantic model configuration."""
        str_strip_whitespace = True


class ProcessFeedbackRequest(BaseModel):
    """Request model for synchronous pipeline processing."""

    text: str = Field(..., min_length=1, description="Raw feedback text")
    source: str = Field(..., min_length=1, description="Origin tag")
    event_id: Optional[str] = Field(None, description="Idempotency token; generated if omitted")

    class Config:
        """Pydantic model configuration."""
        str_strip_whitespace = True


def step_failure_error(error: StepFailed) -> HTTPException:
    """Map an exhausted pipeline step to a retryable HTTP error."""
    if isinstance(error.last_error, asyncio.TimeoutError):
        return HTTPException(status_code=504, detail=str(error))
    return HTTPException(status_code=503, detail=str(error))


@router.post("/analyze-feedback", response_model=FeedbackAnalysis)
async def analyze_feedback(
    request: AnalyzeFeedbackRequest,
    service: FeedbackAnalysisService = Depends(get_analysis_service),
) -> FeedbackAnalysis:
    """Extract a claim from feedback and show similar recorded claims."""
    try:
        return await service.analyze(request.feedback, request.source)
    except ExtractionFailure as e:
        raise HTTPException(status_code=422, detail=f"Extraction failed: {e.reason}")
    except StoreWriteFailure as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/feedback", response_model=PipelineResult)
async def process_feedback(
    request: ProcessFeedbackRequest,
    pipeline: FeedbackPipeline = Depends(get_feedback_pipeline),
) -> PipelineResult:
    """Run the full pipeline for one piece of feedback and wait for the result."""
    fields = {"text": request.text, "source": request.source}
    if request.event_id:
        fields["event_id"] = request.event_id
    event = FeedbackEvent(**fields)

    try:
        return await pipeline.process(event)
    except ExtractionFailure as e:
        raise HTTPException(status_code=422, detail=f"Extraction failed: {e.reason}")
    except ClaimNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreWriteFailure as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StepFailed as e:
        raise step_failure_error(e)
