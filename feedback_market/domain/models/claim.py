"""Domain model for feedback claims."""

from datetime import datetime, timedelta, timezone
from typing import FrozenSet, Optional

from pydantic import BaseModel, Field

BASELINE_SIGNAL_WEIGHT = 50
DEFAULT_STALENESS_WINDOW = timedelta(days=14)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Claim(BaseModel):
    """A long-lived belief about the product, backed by user feedback."""

    id: int = Field(..., description="Store-assigned identifier")
    text: str = Field(..., description="Normalized claim statement")
    signal_weight: int = Field(
        default=BASELINE_SIGNAL_WEIGHT,
        description="Aggregated signal score, adjusted only by reinforcement",
    )
    sources: FrozenSet[str] = Field(default_factory=frozenset, description="Origin tags")
    segments: FrozenSet[str] = Field(default_factory=frozenset, description="User segment tags")
    reinforcement_count: int = Field(default=0, description="Reinforcements applied so far")
    created_at: datetime = Field(default_factory=utcnow, description="When the claim was created")
    last_reinforced_at: datetime = Field(
        default_factory=utcnow,
        description="When the claim was created or last reinforced",
    )

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "text": "API documentation is confusing",
                "signal_weight": 55,
                "sources": ["support", "discord"],
                "segments": ["new_users"],
                "reinforcement_count": 1,
            }
        }

    def age_since_reinforced(self, now: Optional[datetime] = None) -> timedelta:
        """Time elapsed since the last reinforcement."""
        return (now or utcnow()) - self.last_reinforced_at

    def is_decaying(
        self,
        now: Optional[datetime] = None,
        staleness_window: timedelta = DEFAULT_STALENESS_WINDOW,
    ) -> bool:
        """Whether the claim has gone unreinforced for longer than the window."""
        return self.age_since_reinforced(now) > staleness_window


class ClaimReport(BaseModel):
    """Read-side view of a claim with its decay annotation."""

    id: int
    text: str
    signal_weight: int
    sources: FrozenSet[str]
    segments: FrozenSet[str]
    reinforcement_count: int
    created_at: datetime
    last_reinforced_at: datetime
    decaying: bool
    days_since_reinforced: float

    @classmethod
    def from_claim(
        cls,
        claim: Claim,
        now: Optional[datetime] = None,
        staleness_window: timedelta = DEFAULT_STALENESS_WINDOW,
    ) -> "ClaimReport":
        now = now or utcnow()
        age = claim.age_since_reinforced(now)
        return cls(
            **claim.model_dump(),
            decaying=claim.is_decaying(now, staleness_window),
            days_since_reinforced=round(age.total_seconds() / 86400, 2),
        )
