"""Health check endpoints."""

from typing import Dict

from fastapi import APIRouter, Depends

from ...infrastructure.dependencies import ServiceContainer
from ..dependencies import get_container

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, object]:
    """Check the health of all service components.

    Returns:
        Overall status and availability of each collaborator
    """
    components = container.status()
    return {
        "status": "healthy" if components["claim_store"] else "starting",
        "components": components,
        "extractors": container.extractor_factory.available_providers,
        "search_providers": container.search_factory.available_providers,
    }
