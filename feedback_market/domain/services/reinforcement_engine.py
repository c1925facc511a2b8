"""Decision logic that turns extracted feedback into claim mutations."""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..models.actions import Action, CreateClaim, ReinforceClaim, SimilarMatch
from ..models.claim import (
    BASELINE_SIGNAL_WEIGHT,
    DEFAULT_STALENESS_WINDOW,
    Claim,
    ClaimReport,
    utcnow,
)
from ..models.feedback import ExtractedClaim

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class ReinforcementPolicy(BaseModel):
    """Tunable parameters for the reinforcement engine."""

    similarity_threshold: float = Field(
        default=0.75, ge=0.0, le=1.0,
        description="Top match score at or above which a claim is reinforced",
    )
    weight_delta: int = Field(default=5, gt=0, description="Increment per reinforcement")
    initial_weight: int = Field(default=BASELINE_SIGNAL_WEIGHT, description="Weight of new claims")
    staleness_window: timedelta = Field(
        default=DEFAULT_STALENESS_WINDOW,
        description="Age after which an unreinforced claim is reported as decaying",
    )
    diminishing_returns: bool = Field(
        default=False,
        description="Shrink the increment as a claim accumulates reinforcements",
    )
    diminishing_step: int = Field(
        default=10, gt=0,
        description="Reinforcements per halving band when diminishing_returns is on",
    )

    class Config:
        """Pydantic model configuration."""
        frozen = True


class ReinforcementEngine:
    """Decides whether feedback reinforces an existing claim or creates one.

    The engine is a pure function of its inputs: it performs no I/O and
    holds no state beyond its policy.
    """

    def __init__(self, policy: Optional[ReinforcementPolicy] = None):
        self.policy = policy or ReinforcementPolicy()

    def decide(
        self,
        extracted: ExtractedClaim,
        source: Optional[str],
        matches: Sequence[SimilarMatch],
    ) -> Action:
        """Choose the action for one extracted claim.

        Args:
            extracted: Claim extracted from the feedback
            source: Origin tag of the feedback
            matches: Similar existing claims, most relevant first

        Returns:
            ``ReinforceClaim`` for the best match when its score meets the
            threshold (inclusive), ``CreateClaim`` otherwise
        """
        for match in matches:
            if not 0.0 <= match.score <= 1.0:
                raise ValueError(f"Relevance score out of range: {match.score}")

        best = self.select_match(matches)
        if best is None or best.score < self.policy.similarity_threshold:
            return CreateClaim(
                text=extracted.claim,
                initial_weight=self.policy.initial_weight,
                sources=frozenset([source]) if source else frozenset(),
                segments=frozenset([extracted.segment]),
            )

        return ReinforceClaim(
            claim_id=best.claim_id,
            weight_delta=self.weight_delta_for(best.reinforcement_count),
            add_source=source,
            add_segment=extracted.segment,
        )

    @staticmethod
    def select_match(matches: Sequence[SimilarMatch]) -> Optional[SimilarMatch]:
        """Pick the highest-scoring match, preferring the warmer claim on ties."""
        if not matches:
            return None
        top_score = max(m.score for m in matches)
        tied: List[SimilarMatch] = [m for m in matches if m.score == top_score]
        # max() keeps the first of equal keys, so search order breaks the rest
        return max(tied, key=lambda m: m.last_reinforced_at or _OLDEST)

    def weight_delta_for(self, reinforcement_count: int) -> int:
        """Increment for a claim that has been reinforced ``reinforcement_count`` times."""
        base = self.policy.weight_delta
        if not self.policy.diminishing_returns:
            return base
        band = reinforcement_count // self.policy.diminishing_step
        return max(1, base // (1 + band))

    def is_decaying(self, claim: Claim, now: Optional[datetime] = None) -> bool:
        return claim.is_decaying(now, self.policy.staleness_window)

    def classify(self, claim: Claim, now: Optional[datetime] = None) -> ClaimReport:
        """Annotate a claim for read-side reporting without changing it."""
        return ClaimReport.from_claim(claim, now or utcnow(), self.policy.staleness_window)
