"""Domain errors for the feedback market."""

from typing import Optional


class FeedbackMarketError(Exception):
    """Base class for all feedback market errors."""


class ExtractionFailure(FeedbackMarketError):
    """The language model returned output that is not a valid claim."""

    def __init__(self, reason: str, raw: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.raw = raw


class IndexUnavailable(FeedbackMarketError):
    """The similarity index could not be reached.

    Callers treat this as "no similar claims" instead of failing.
    """


class StoreWriteFailure(FeedbackMarketError):
    """A claim store mutation could not be committed."""


class ClaimNotFound(FeedbackMarketError):
    """No claim exists with the requested id."""

    def __init__(self, claim_id: int):
        super().__init__(f"Claim not found: {claim_id}")
        self.claim_id = claim_id


class StepFailed(FeedbackMarketError):
    """A pipeline step exhausted its retry attempts."""

    def __init__(self, step: str, attempts: int, last_error: BaseException):
        super().__init__(
            f"Step '{step}' failed after {attempts} attempt(s): "
            f"{type(last_error).__name__}: {last_error}"
        )
        self.step = step
        self.attempts = attempts
        self.last_error = last_error
