"""Service for running the feedback pipeline in the background."""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from cachetools import TTLCache
from pydantic import BaseModel, Field

from ..models.actions import PipelineResult
from ..models.claim import utcnow
from ..models.feedback import FeedbackEvent
from .feedback_pipeline import FeedbackPipeline

logger = logging.getLogger(__name__)


class WorkflowStatus(str, Enum):
    """Lifecycle of a background pipeline run."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowRun(BaseModel):
    """Status of one background pipeline run."""

    workflow_id: str
    status: WorkflowStatus = WorkflowStatus.PROCESSING
    source: str
    submitted_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    result: Optional[PipelineResult] = None
    error: Optional[str] = None


class WorkflowService:
    """Submits feedback events to the pipeline without waiting for them.

    Finished runs are remembered for ``history_ttl`` seconds, up to
    ``history_size`` of them.
    """

    def __init__(
        self,
        pipeline: FeedbackPipeline,
        history_size: int = 10000,
        history_ttl: float = 3600.0,
    ):
        self.pipeline = pipeline
        self._runs: TTLCache = TTLCache(maxsize=history_size, ttl=history_ttl)
        self._tasks: Dict[str, asyncio.Task] = {}

    def submit(self, event: FeedbackEvent) -> WorkflowRun:
        """Schedule a pipeline run and return immediately.

        Resubmitting an event id that is running or completed returns its
        run; a failed run is started again.
        """
        workflow_id = event.event_id
        existing = self._runs.get(workflow_id)
        if workflow_id in self._tasks:
            if existing is None:
                # Still running, but the history dropped its record
                existing = WorkflowRun(workflow_id=workflow_id, source=event.source)
                self._runs[workflow_id] = existing
            return existing
        if existing is not None and existing.status is not WorkflowStatus.FAILED:
            return existing

        run = WorkflowRun(workflow_id=workflow_id, source=event.source)
        self._runs[workflow_id] = run
        task = asyncio.create_task(self._execute(run, event))
        self._tasks[workflow_id] = task
        task.add_done_callback(lambda t: self._forget(workflow_id, t))
        logger.info(f"🚀 Workflow {workflow_id} submitted")
        return run

    def _forget(self, workflow_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(workflow_id) is task:
            del self._tasks[workflow_id]

    def get(self, workflow_id: str) -> Optional[WorkflowRun]:
        return self._runs.get(workflow_id)

    async def wait(self, workflow_id: str) -> Optional[WorkflowRun]:
        """Wait for the requested run to finish, then return it."""
        task = self._tasks.get(workflow_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.get(workflow_id)

    async def shutdown(self) -> None:
        """Let outstanding runs finish."""
        if self._tasks:
            logger.info(f"⏳ Waiting for {len(self._tasks)} workflow(s) to finish")
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def _execute(self, run: WorkflowRun, event: FeedbackEvent) -> None:
        try:
            result = await self.pipeline.process(event)
        except Exception as e:
            logger.error(f"❌ Workflow {run.workflow_id} failed: {type(e).__name__}: {e}")
            self._runs[run.workflow_id] = run.model_copy(update={
                "status": WorkflowStatus.FAILED,
                "error": f"{type(e).__name__}: {e}",
                "finished_at": utcnow(),
            })
            return

        self._runs[run.workflow_id] = run.model_copy(update={
            "status": WorkflowStatus.COMPLETED,
            "result": result,
            "finished_at": utcnow(),
        })
        logger.info(f"✅ Workflow {run.workflow_id} completed")
