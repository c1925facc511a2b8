"""Protocol for durable claim storage."""

from typing import Any, Dict, Iterable, List, Optional, Protocol

from ..models.actions import Action, ApplyResult
from ..models.claim import BASELINE_SIGNAL_WEIGHT, Claim
from ..models.feedback import FeedbackRecord


class ClaimStore(Protocol):
    """Protocol defining the interface for claim stores.

    ``apply`` is the only operation the pipeline uses to mutate claims. It
    must be atomic, must serialize concurrent reinforcements of the same
    claim without losing increments, and must treat a repeated
    ``idempotency_token`` as a no-op that returns the committed result.
    """

    async def initialize(self) -> None:
        """Prepare the store for use."""
        ...

    async def shutdown(self) -> None:
        """Release resources."""
        ...

    async def get(self, claim_id: int) -> Optional[Claim]:
        """Get a claim by id."""
        ...

    async def get_many(self, claim_ids: Iterable[int]) -> Dict[int, Claim]:
        """Get the claims that exist among ``claim_ids``."""
        ...

    async def list_claims(self) -> List[Claim]:
        """List all claims, highest signal weight first."""
        ...

    async def create(
        self,
        text: str,
        sources: Iterable[str] = (),
        segments: Iterable[str] = (),
        initial_weight: int = BASELINE_SIGNAL_WEIGHT,
    ) -> Claim:
        """Create a claim directly, outside the pipeline."""
        ...

    async def apply(self, action: Action, idempotency_token: str) -> ApplyResult:
        """Apply a decision atomically and exactly once per token."""
        ...

    async def record_feedback(
        self,
        text: str,
        source: Optional[str],
        analysis: Optional[Dict[str, Any]],
    ) -> FeedbackRecord:
        """Keep raw feedback together with its analysis."""
        ...
