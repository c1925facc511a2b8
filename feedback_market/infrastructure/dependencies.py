"""Dependency injection configuration for hexagonal architecture."""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from ..domain.ports.claim_store import ClaimStore
from ..domain.ports.extractor import Extractor
from ..domain.ports.similarity_index import SimilarityIndex
from ..domain.ports.step_runner import StepRunner
from ..domain.services.feedback_analysis_service import FeedbackAnalysisService
from ..domain.services.feedback_pipeline import FeedbackPipeline
from ..domain.services.reinforcement_engine import ReinforcementEngine
from ..domain.services.workflow_service import WorkflowService
from .ai.factory import ExtractorFactory
from .config import Settings
from .orchestration.memory_runner import InMemoryStepRunner
from .orchestration.sqlite_runner import SQLiteStepRunner
from .search.embedding_index import EmbeddingIndex, EmbeddingIndexConfig
from .search.factory import SearchProviderFactory
from .search.hosted_search_adapter import HostedSearchConfig
from .storage.memory_store import InMemoryClaimStore
from .storage.sqlite_store import SQLiteClaimStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Service container for dependency injection.

    Adapters passed to the constructor are used as-is; anything omitted is
    built from ``settings``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        extractor: Optional[Extractor] = None,
        index: Optional[SimilarityIndex] = None,
        store: Optional[ClaimStore] = None,
        runner: Optional[StepRunner] = None,
    ):
        """Initialize service container."""
        self.settings = settings or Settings.from_env()
        self.extractor_factory = ExtractorFactory()
        self.search_factory = SearchProviderFactory()
        self._services: Dict[str, Any] = {}
        self._started = False
        self._setup_services(extractor, index, store, runner)

    def _setup_services(self, extractor, index, store, runner) -> None:
        """Setup all services and their dependencies."""
        logger.info("🔧 Setting up service container...")
        settings = self.settings

        if store is None:
            if settings.claim_store == "sqlite":
                store = SQLiteClaimStore(settings.database_path)
            else:
                store = InMemoryClaimStore()

        if runner is None:
            if settings.step_runner == "sqlite":
                runner = SQLiteStepRunner(settings.database_path, settings.retry_config())
            else:
                runner = InMemoryStepRunner(settings.retry_config())

        if extractor is None:
            extractor = self.extractor_factory.build_provider(
                "chatgpt",
                api_key=settings.openai_api_key,
                model=settings.openai_model,
            )

        if index is None:
            index = self._build_index()

        engine = ReinforcementEngine(settings.reinforcement_policy())
        pipeline = FeedbackPipeline(
            extractor, index, store, engine, runner, search_limit=settings.search_limit
        )

        self._services = {
            'claim_store': store,
            'step_runner': runner,
            'extractor': extractor,
            'similarity_index': index,
            'reinforcement_engine': engine,
            'feedback_pipeline': pipeline,
            'analysis_service': FeedbackAnalysisService(
                extractor, index, store, search_limit=settings.search_limit
            ),
            'workflow_service': WorkflowService(pipeline),
        }
        logger.info("✅ Service container setup completed")

    def _build_index(self) -> SimilarityIndex:
        if self.settings.search_provider == "embedding":
            return self.search_factory.build_provider(
                "embedding",
                config=EmbeddingIndexConfig(
                    api_key=self.settings.openai_api_key,
                    model=self.settings.openai_embedding_model,
                ),
            )
        return self.search_factory.build_provider(
            "hosted",
            config=HostedSearchConfig(
                base_url=self.settings.search_base_url,
                api_key=self.settings.search_api_key,
            ),
        )

    async def startup(self) -> None:
        """Initialize every adapter.

        A collaborator that fails to initialize is logged and left
        unavailable; the index is fail-open and the extractor reports
        failures per request.
        """
        if self._started:
            return
        await self.get('claim_store').initialize()
        await self.get('step_runner').initialize()

        for name in ('extractor', 'similarity_index'):
            try:
                await self.get(name).initialize()
                logger.info(f"✅ {name} ready")
            except Exception as e:
                logger.warning(f"⚠️ Failed to initialize {name}: {e}")

        index = self.get('similarity_index')
        if isinstance(index, EmbeddingIndex) and index.is_available:
            claims = await self.get('claim_store').list_claims()
            try:
                await index.rebuild(claims)
            except Exception as e:
                logger.warning(f"⚠️ Could not rebuild embedding index: {e}")
        self._started = True

    async def shutdown(self) -> None:
        """Finish background work and release resources."""
        await self.get('workflow_service').shutdown()
        await self.get('extractor').shutdown()
        await self.get('similarity_index').shutdown()
        await self.get('step_runner').shutdown()
        await self.get('claim_store').shutdown()
        self._started = False

    def get(self, service_name: str) -> Any:
        """Get a service by name.

        Raises:
            KeyError: If service not found
        """
        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found")
        return self._services[service_name]

    def status(self) -> Dict[str, bool]:
        """Availability of the external collaborators."""
        return {
            'extractor': bool(self.get('extractor').is_available),
            'similarity_index': bool(self.get('similarity_index').is_available),
            'claim_store': self._started,
        }


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance."""
    return ServiceContainer()

