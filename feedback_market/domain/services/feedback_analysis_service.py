"""Service for one-off feedback analysis without mutating claims."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import ExtractionFailure, IndexUnavailable
from ..models.actions import SimilarMatch
from ..models.feedback import ExtractedClaim, ExtractionFailed
from ..ports.claim_store import ClaimStore
from ..ports.extractor import Extractor
from ..ports.similarity_index import DEFAULT_SEARCH_LIMIT, SimilarityIndex

logger = logging.getLogger(__name__)


class FeedbackAnalysis(BaseModel):
    """Extracted claim plus the recorded claims it resembles."""

    analysis: ExtractedClaim
    similar: List[SimilarMatch] = Field(default_factory=list)
    feedback_id: Optional[int] = None


class FeedbackAnalysisService:
    """Extracts a claim, keeps the raw feedback, and looks up similar claims."""

    def __init__(
        self,
        extractor: Extractor,
        index: SimilarityIndex,
        store: ClaimStore,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self.extractor = extractor
        self.index = index
        self.store = store
        self.search_limit = search_limit
        logger.info("🔧 FeedbackAnalysisService initialized")

    async def analyze(self, text: str, source: Optional[str] = None) -> FeedbackAnalysis:
        """Analyze a piece of feedback.

        Args:
            text: Raw feedback text
            source: Optional origin tag

        Returns:
            The extracted claim, the id of the stored feedback record, and
            similar claims (empty if the index is unavailable)

        Raises:
            ExtractionFailure: If the model output could not be parsed
        """
        logger.info(f"🔍 Analyzing feedback: {text[:100]}...")
        outcome = await self.extractor.extract(text)
        if isinstance(outcome, ExtractionFailed):
            raise ExtractionFailure(outcome.reason, outcome.raw)

        extracted = outcome.claim
        record = await self.store.record_feedback(
            text, source, extracted.model_dump(mode="json")
        )

        try:
            similar = await self.index.find_similar(extracted.claim, self.search_limit)
        except IndexUnavailable as e:
            logger.warning(f"⚠️ Similarity search failed: {e}")
            similar = []

        logger.info(f"📝 Feedback {record.id} analyzed, {len(similar)} similar claim(s)")
        return FeedbackAnalysis(analysis=extracted, similar=similar, feedback_id=record.id)
