"""Decisions produced by the reinforcement engine and their outcomes."""

from datetime import datetime
from typing import FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .claim import BASELINE_SIGNAL_WEIGHT, Claim


class SimilarMatch(BaseModel):
    """An existing claim returned by similarity search."""

    claim_id: int = Field(..., description="Id of the matching claim")
    score: float = Field(..., description="Relevance score (0-1)")
    last_reinforced_at: Optional[datetime] = Field(
        None, description="Filled in from the store before deciding"
    )
    reinforcement_count: int = Field(default=0)


class CreateClaim(BaseModel):
    """Record a new claim."""

    kind: Literal["create"] = "create"
    text: str
    initial_weight: int = BASELINE_SIGNAL_WEIGHT
    sources: FrozenSet[str] = Field(default_factory=frozenset)
    segments: FrozenSet[str] = Field(default_factory=frozenset)

    class Config:
        """Pydantic model configuration."""
        frozen = True


class ReinforceClaim(BaseModel):
    """Add weight to an existing claim and widen its sources and segments."""

    kind: Literal["reinforce"] = "reinforce"
    claim_id: int
    weight_delta: int = Field(..., gt=0)
    add_source: Optional[str] = None
    add_segment: Optional[str] = None

    class Config:
        """Pydantic model configuration."""
        frozen = True


Action = Union[CreateClaim, ReinforceClaim]


class ApplyResult(BaseModel):
    """Outcome of a store mutation."""

    action: Action = Field(..., discriminator="kind")
    claim: Claim
    replayed: bool = Field(default=False, description="True if the token was already committed")


class PipelineResult(BaseModel):
    """Outcome of one feedback pipeline run."""

    applied: Action = Field(..., discriminator="kind")
    claim_id: int
    replayed: bool = False
    matches: List[SimilarMatch] = Field(default_factory=list)
