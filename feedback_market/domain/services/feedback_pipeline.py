"""Multi-step pipeline: extract, search, decide, apply."""

import logging
from typing import Iterable, List

from ..errors import ExtractionFailure, FeedbackMarketError, IndexUnavailable, StepFailed
from ..models.actions import ApplyResult, CreateClaim, PipelineResult, SimilarMatch
from ..models.claim import Claim
from ..models.feedback import ExtractedClaim, ExtractionFailed, FeedbackEvent
from ..ports.claim_store import ClaimStore
from ..ports.extractor import Extractor
from ..ports.similarity_index import DEFAULT_SEARCH_LIMIT, SimilarityIndex
from ..ports.step_runner import StepRunner
from .reinforcement_engine import ReinforcementEngine

logger = logging.getLogger(__name__)


def _encode_matches(matches: List[SimilarMatch]) -> list:
    return [m.model_dump(mode="json") for m in matches]


def _decode_matches(data: list) -> List[SimilarMatch]:
    return [SimilarMatch.model_validate(m) for m in data]


class FeedbackPipeline:
    """Processes one feedback event at a time through checkpointed steps.

    ``extract`` and ``search`` only read, so the step runner may retry them
    freely. ``apply`` is the sole mutation and is keyed by the event id, so
    a replayed apply is a no-op at the store.
    """

    def __init__(
        self,
        extractor: Extractor,
        index: SimilarityIndex,
        store: ClaimStore,
        engine: ReinforcementEngine,
        runner: StepRunner,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self.extractor = extractor
        self.index = index
        self.store = store
        self.engine = engine
        self.runner = runner
        self.search_limit = search_limit

    async def process(self, event: FeedbackEvent) -> PipelineResult:
        """Run the pipeline for one event.

        Raises:
            ExtractionFailure: If the claim could not be extracted after retries
            StoreWriteFailure: If the mutation could not be committed after retries
            StepFailed: If a step kept failing for any other reason, such as timeouts
        """
        run_id = event.event_id
        logger.info(f"📥 Processing feedback {run_id} from {event.source}")

        try:
            extracted = await self.runner.run_step(
                run_id, "extract", lambda: self._extract(event),
                encode=lambda c: c.model_dump(mode="json"),
                decode=ExtractedClaim.model_validate,
            )
            matches = await self.runner.run_step(
                run_id, "search", lambda: self._search(extracted),
                encode=_encode_matches,
                decode=_decode_matches,
            )
            action = self.engine.decide(extracted, event.source, matches)
            logger.info(f"⚖️ Decision for {run_id}: {action.kind}")

            result = await self.runner.run_step(
                run_id, "apply", lambda: self.store.apply(action, idempotency_token=run_id),
                encode=lambda r: r.model_dump(mode="json"),
                decode=ApplyResult.model_validate,
            )
        except StepFailed as e:
            logger.error(f"❌ Pipeline {run_id} failed at step '{e.step}': {e.last_error}")
            if isinstance(e.last_error, FeedbackMarketError):
                raise e.last_error from e
            raise

        # index_claim is an upsert; replayed creates are indexed too
        if isinstance(result.action, CreateClaim):
            await self._index_claim(result.claim)

        logger.info(
            f"✅ Pipeline {run_id} applied {result.action.kind} to claim {result.claim.id} "
            f"(weight={result.claim.signal_weight}, replayed={result.replayed})"
        )
        return PipelineResult(
            applied=result.action,
            claim_id=result.claim.id,
            replayed=result.replayed,
            matches=matches,
        )

    async def _extract(self, event: FeedbackEvent) -> ExtractedClaim:
        outcome = await self.extractor.extract(event.text)
        if isinstance(outcome, ExtractionFailed):
            logger.warning(f"⚠️ Extraction failed for {event.event_id}: {outcome.reason}")
            raise ExtractionFailure(outcome.reason, outcome.raw)
        return outcome.claim

    async def _search(self, extracted: ExtractedClaim) -> List[SimilarMatch]:
        try:
            matches = await self.index.find_similar(extracted.claim, self.search_limit)
            matches = matches[: self.search_limit]
        except IndexUnavailable as e:
            logger.warning(f"⚠️ Similarity index unavailable, treating as no matches: {e}")
            return []

        claims = await self.store.get_many(m.claim_id for m in matches)
        hydrated = []
        for match in matches:
            claim = claims.get(match.claim_id)
            if claim is None:
                logger.debug(f"Dropping match for unknown claim {match.claim_id}")
                continue
            hydrated.append(match.model_copy(update={
                "last_reinforced_at": claim.last_reinforced_at,
                "reinforcement_count": claim.reinforcement_count,
            }))
        return hydrated

    async def create_claim(
        self,
        text: str,
        sources: Iterable[str] = (),
        segments: Iterable[str] = (),
    ) -> Claim:
        """Record a claim directly and make it searchable.

        Raises:
            StoreWriteFailure: If the claim could not be stored
        """
        claim = await self.store.create(
            text,
            sources=sources,
            segments=segments,
            initial_weight=self.engine.policy.initial_weight,
        )
        await self._index_claim(claim)
        return claim

    async def _index_claim(self, claim: Claim) -> None:
        try:
            await self.index.index_claim(claim)
        except IndexUnavailable as e:
            logger.warning(f"⚠️ Could not index claim {claim.id}: {e}")
