"""Background workflow endpoints."""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.models.feedback import FeedbackEvent
from ...domain.services.workflow_service import WorkflowRun, WorkflowService
from ..dependencies import get_workflow_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workflow", tags=["workflow"])


class WorkflowTriggerRequest(BaseModel):
    """Request model for triggering a workflow."""

    source: str = Field(..., min_length=1, description="Origin tag")
    data: str = Field(..., min_length=1, description="Raw feedback text")
    event_id: Optional[str] = Field(
        None, description="Idempotency token; resubmitting it resumes the same run"
    )

    class Config:
        """Pydantic model configuration."""
        str_strip_whitespace = True


class WorkflowTriggerResponse(BaseModel):
    """Response model for a triggered workflow."""

    workflowId: str
    status: str
    timestamp: int


@router.post("/process", response_model=WorkflowTriggerResponse)
async def trigger_workflow(
    request: WorkflowTriggerRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkflowTriggerResponse:
    """Start processing feedback in the background."""
    fields = {"text": request.data, "source": request.source}
    if request.event_id:
        fields["event_id"] = request.event_id
    run = service.submit(FeedbackEvent(**fields))
    return WorkflowTriggerResponse(
        workflowId=run.workflow_id,
        status=run.status.value,
        timestamp=int(time.time() * 1000),
    )


@router.get("/{workflow_id}", response_model=WorkflowRun)
async def get_workflow(
    workflow_id: str,
    wait: bool = False,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkflowRun:
    """Report the status of a workflow, optionally waiting for it to finish."""
    run = await service.wait(workflow_id) if wait else service.get(workflow_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Workflow not found: {workflow_id}")
    return run
