"""Domain models for incoming feedback and extracted claims."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .claim import utcnow


class Sentiment(str, Enum):
    """Sentiment expressed by a piece of feedback."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Urgency(str, Enum):
    """How urgently the feedback asks for action."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FeedbackEvent(BaseModel):
    """A single piece of raw feedback entering the pipeline.

    The event id doubles as the idempotency token for the apply step, so a
    retried or replayed run never applies the same event twice.
    """

    event_id: str = Field(default_factory=lambda: uuid4().hex, description="Unique event id")
    text: str = Field(..., description="Raw feedback text")
    source: str = Field(..., description="Origin tag, e.g. support or discord")
    received_at: datetime = Field(default_factory=utcnow, description="Arrival time")

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @field_validator("text", "source")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()


class ExtractedClaim(BaseModel):
    """Structured claim pulled out of raw feedback by the language model."""

    claim: str = Field(..., description="Normalized claim statement")
    sentiment: Sentiment = Field(default=Sentiment.NEUTRAL)
    urgency: Urgency = Field(default=Urgency.LOW)
    segment: str = Field(default="general", description="User segment tag")

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "claim": "API documentation is confusing",
                "sentiment": "negative",
                "urgency": "medium",
                "segment": "new_users",
            }
        }

    @field_validator("claim", "segment")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class Extracted(BaseModel):
    """Successful extraction."""

    claim: ExtractedClaim
    ok: bool = True


class ExtractionFailed(BaseModel):
    """Extraction whose model output could not be parsed."""

    reason: str
    raw: Optional[str] = None
    ok: bool = False


ExtractionResult = Union[Extracted, ExtractionFailed]


class FeedbackRecord(BaseModel):
    """Raw feedback kept alongside its analysis."""

    id: int
    text: str
    source: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utcnow)
