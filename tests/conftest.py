"""Test configuration and common fixtures."""

from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Union
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from feedback_market.domain.errors import IndexUnavailable
from feedback_market.domain.models.actions import SimilarMatch
from feedback_market.domain.models.claim import Claim
from feedback_market.domain.models.feedback import (
    Extracted,
    ExtractedClaim,
    ExtractionFailed,
    ExtractionResult,
)
from feedback_market.domain.services.reinforcement_engine import ReinforcementEngine
from feedback_market.infrastructure.orchestration.memory_runner import InMemoryStepRunner
from feedback_market.infrastructure.orchestration.retry import RetryConfig
from feedback_market.infrastructure.storage.memory_store import InMemoryClaimStore


class FakeExtractor:
    """Extractor returning scripted results.

    Unscripted text is turned into a claim equal to the text itself.
    """

    def __init__(self, scripted: Optional[Dict[str, Union[ExtractionResult, List]]] = None):
        self.scripted = scripted or {}
        self.calls: List[str] = []
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True

    async def shutdown(self) -> None:
        self._initialized = False

    async def extract(self, raw_text: str) -> ExtractionResult:
        self.calls.append(raw_text)
        result = self.scripted.get(raw_text)
        if isinstance(result, list):
            # Successive calls consume the list
            return result.pop(0) if len(result) > 1 else result[0]
        if result is not None:
            return result
        return Extracted(claim=ExtractedClaim(claim=raw_text, segment="new_users"))

    @property
    def provider_name(self) -> str:
        return "Fake"

    @property
    def is_available(self) -> bool:
        return self._initialized

    @property
    def capabilities(self) -> dict:
        return {"claim_extraction": True}


class FakeIndex:
    """Similarity index returning scripted matches."""

    def __init__(self):
        self.results: Dict[str, List[SimilarMatch]] = {}
        self.resolver: Optional[Callable[[str], List[SimilarMatch]]] = None
        self.fail = False
        self.indexed: List[Claim] = []
        self.queries: List[str] = []
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True

    async def shutdown(self) -> None:
        self._initialized = False

    async def find_similar(self, claim_text: str, limit: int = 3) -> List[SimilarMatch]:
        self.queries.append(claim_text)
        if self.fail:
            raise IndexUnavailable("search service down")
        if self.resolver is not None:
            return self.resolver(claim_text)[:limit]
        return self.results.get(claim_text, [])[:limit]

    async def index_claim(self, claim: Claim) -> None:
        if self.fail:
            raise IndexUnavailable("search service down")
        self.indexed.append(claim)

    @property
    def provider_name(self) -> str:
        return "FakeIndex"

    @property
    def is_available(self) -> bool:
        return self._initialized


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry settings that keep tests quick."""
    return RetryConfig(timeout=2.0, max_attempts=3, backoff=0.0)


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def failed_extraction() -> Callable[[str], ExtractionFailed]:
    return lambda reason: ExtractionFailed(reason=reason, raw="not json")


@pytest.fixture
def index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def engine() -> ReinforcementEngine:
    return ReinforcementEngine()


@pytest_asyncio.fixture
async def memory_store() -> InMemoryClaimStore:
    store = InMemoryClaimStore()
    await store.initialize()
    yield store
    await store.shutdown()


@pytest.fixture
def runner(fast_retry: RetryConfig) -> InMemoryStepRunner:
    return InMemoryStepRunner(fast_retry)


EMBEDDINGS = {
    "Docs are confusing": [1.0, 0.0, 0.0],
    "Documentation is unclear": [0.9, 0.1, 0.0],
    "Login is slow": [0.0, 1.0, 0.0],
    "Billing crashes": [0.0, 0.0, 1.0],
}


@pytest.fixture
def embedding_client() -> MagicMock:
    """Mock AsyncOpenAI client returning fixed embeddings."""
    async def create(model, input):
        return SimpleNamespace(data=[SimpleNamespace(embedding=EMBEDDINGS[input])])

    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=create)
    client.close = AsyncMock()
    return client
