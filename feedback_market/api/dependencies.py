"""FastAPI dependencies resolving services from the app's container."""

from fastapi import HTTPException, Request

from ..domain.ports.claim_store import ClaimStore
from ..domain.ports.similarity_index import SimilarityIndex
from ..domain.services.feedback_analysis_service import FeedbackAnalysisService
from ..domain.services.feedback_pipeline import FeedbackPipeline
from ..domain.services.reinforcement_engine import ReinforcementEngine
from ..domain.services.workflow_service import WorkflowService
from ..infrastructure.dependencies import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """Container attached to the running application."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(status_code=503, detail="Service not started")
    return container


def get_claim_store(request: Request) -> ClaimStore:
    """FastAPI dependency for the claim store."""
    return get_container(request).get('claim_store')


def get_reinforcement_engine(request: Request) -> ReinforcementEngine:
    """FastAPI dependency for the reinforcement engine."""
    return get_container(request).get('reinforcement_engine')


def get_feedback_pipeline(request: Request) -> FeedbackPipeline:
    """FastAPI dependency for the feedback pipeline."""
    return get_container(request).get('feedback_pipeline')


def get_analysis_service(request: Request) -> FeedbackAnalysisService:
    """FastAPI dependency for the feedback analysis service."""
    return get_container(request).get('analysis_service')


def get_workflow_service(request: Request) -> WorkflowService:
    """FastAPI dependency for the workflow service."""
    return get_container(request).get('workflow_service')


def get_similarity_index(request: Request) -> SimilarityIndex:
    """FastAPI dependency for the similarity index."""
    return get_container(request).get('similarity_index')
