"""Retry loop shared by the step runners."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field

from ...domain.errors import StepFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig(BaseModel):
    """Timeout and backoff settings for step execution."""

    timeout: float = Field(default=30.0, gt=0, description="Per-attempt timeout in seconds")
    max_attempts: int = Field(default=3, ge=1, description="Attempts before giving up")
    backoff: float = Field(default=0.5, ge=0, description="Initial delay between attempts in seconds")
    backoff_multiplier: float = Field(default=2.0, ge=1, description="Delay growth per attempt")
    max_backoff: float = Field(default=10.0, ge=0, description="Upper bound on the delay")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        return min(self.max_backoff, self.backoff * self.backoff_multiplier ** (attempt - 1))


async def run_with_retry(
    name: str,
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig,
) -> T:
    """Await ``fn`` under a timeout, retrying with exponential backoff.

    Raises:
        StepFailed: When every attempt failed or timed out
    """
    last_error: BaseException = RuntimeError("no attempts made")
    for attempt in range(1, config.max_attempts + 1):
        try:
            return await asyncio.wait_for(fn(), timeout=config.timeout)
        except asyncio.TimeoutError as e:
            last_error = e
            logger.warning(f"⏱️ Step '{name}' timed out (attempt {attempt}/{config.max_attempts})")
        except Exception as e:
            last_error = e
            logger.warning(
                f"⚠️ Step '{name}' failed (attempt {attempt}/{config.max_attempts}): "
                f"{type(e).__name__}: {e}"
            )

        if attempt < config.max_attempts:
            await asyncio.sleep(config.delay_for(attempt))

    raise StepFailed(name, config.max_attempts, last_error)
