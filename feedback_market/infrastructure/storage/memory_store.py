"""In-memory claim store."""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from ...domain.errors import ClaimNotFound
from ...domain.models.actions import Action, ApplyResult, CreateClaim, ReinforceClaim
from ...domain.models.claim import BASELINE_SIGNAL_WEIGHT, Claim, utcnow
from ...domain.models.feedback import FeedbackRecord

logger = logging.getLogger(__name__)


class InMemoryClaimStore:
    """Claim store kept in process memory.

    All mutations run under a single lock, so concurrent reinforcements of
    the same claim are serialized and no increment is lost.
    """

    def __init__(self):
        self._claims: Dict[int, Claim] = {}
        self._applied: Dict[str, ApplyResult] = {}
        self._feedback: List[FeedbackRecord] = []
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        logger.info("🧠 Using in-memory claim store")

    async def shutdown(self) -> None:
        pass

    async def get(self, claim_id: int) -> Optional[Claim]:
        return self._claims.get(claim_id)

    async def get_many(self, claim_ids: Iterable[int]) -> Dict[int, Claim]:
        return {cid: self._claims[cid] for cid in claim_ids if cid in self._claims}

    async def list_claims(self) -> List[Claim]:
        return sorted(self._claims.values(), key=lambda c: (-c.signal_weight, c.id))

    async def create(
        self,
        text: str,
        sources: Iterable[str] = (),
        segments: Iterable[str] = (),
        initial_weight: int = BASELINE_SIGNAL_WEIGHT,
    ) -> Claim:
        async with self._lock:
            return self._insert(text, frozenset(sources), frozenset(segments), initial_weight)

    async def apply(self, action: Action, idempotency_token: str) -> ApplyResult:
        async with self._lock:
            committed = self._applied.get(idempotency_token)
            if committed is not None:
                logger.info(f"↩️ Token {idempotency_token} already applied, skipping")
                current = self._claims.get(committed.claim.id, committed.claim)
                return ApplyResult(action=committed.action, claim=current, replayed=True)

            if isinstance(action, CreateClaim):
                claim = self._insert(
                    action.text, action.sources, action.segments, action.initial_weight
                )
            elif isinstance(action, ReinforceClaim):
                claim = self._reinforce(action)
            else:
                raise TypeError(f"Unsupported action: {action!r}")

            result = ApplyResult(action=action, claim=claim)
            self._applied[idempotency_token] = result
            return result

    async def record_feedback(
        self,
        text: str,
        source: Optional[str],
        analysis: Optional[Dict[str, Any]],
    ) -> FeedbackRecord:
        async with self._lock:
            record = FeedbackRecord(
                id=len(self._feedback) + 1, text=text, source=source, analysis=analysis
            )
            self._feedback.append(record)
            return record

    def _insert(self, text, sources, segments, initial_weight) -> Claim:
        now = utcnow()
        claim = Claim(
            id=self._next_id,
            text=text,
            signal_weight=initial_weight,
            sources=sources,
            segments=segments,
            created_at=now,
            last_reinforced_at=now,
        )
        self._claims[claim.id] = claim
        self._next_id += 1
        logger.debug(f"📝 Created claim {claim.id}: {text[:50]}")
        return claim

    def _reinforce(self, action: ReinforceClaim) -> Claim:
        claim = self._claims.get(action.claim_id)
        if claim is None:
            raise ClaimNotFound(action.claim_id)

        sources = claim.sources | ({action.add_source} if action.add_source else set())
        segments = claim.segments | ({action.add_segment} if action.add_segment else set())
        updated = claim.model_copy(update={
            "signal_weight": claim.signal_weight + action.weight_delta,
            "sources": frozenset(sources),
            "segments": frozenset(segments),
            "reinforcement_count": claim.reinforcement_count + 1,
            "last_reinforced_at": utcnow(),
        })
        self._claims[claim.id] = updated
        return updated
