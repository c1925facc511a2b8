"""FastAPI application for the Feedback Market service."""

import contextlib
import logging
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..infrastructure.dependencies import ServiceContainer, get_service_container
from .endpoints import claims, feedback, health, search, ui, workflow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    container: Optional[ServiceContainer] = None,
    container_provider: Callable[[], ServiceContainer] = get_service_container,
) -> FastAPI:
    """Build the application.

    Args:
        container: Ready-made service container (tests pass one in)
        container_provider: Builds the container at startup when none is given
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start collaborators on startup and release them on shutdown."""
        if getattr(app.state, "container", None) is None:
            app.state.container = container_provider()
        logging.getLogger().setLevel(app.state.container.settings.log_level)
        logger.info("🚀 Starting Feedback Market service")
        await app.state.container.startup()

        yield  # Application runs here

        logger.info("🛑 Shutting down Feedback Market service")
        await app.state.container.shutdown()

    app = FastAPI(
        title="Feedback Market API",
        description="Turns raw product feedback into reinforced, deduplicated claims",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(health.router)
    app.include_router(claims.router)
    app.include_router(feedback.router)
    app.include_router(workflow.router)
    app.include_router(search.router)
    app.include_router(ui.router)
    return app


app = create_app()
