"""In-memory step runner for tests and local runs."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from .retry import RetryConfig, run_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryStepRunner:
    """Checkpoints step results in a dict.

    Results survive for the lifetime of the runner only, which is enough to
    replay a run inside one process.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()
        self._results: Dict[Tuple[str, str], Any] = {}
        self._lock = asyncio.Lock()

    async def run_step(
        self,
        run_id: str,
        name: str,
        fn: Callable[[], Awaitable[T]],
        *,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
    ) -> T:
        key = (run_id, name)
        async with self._lock:
            if key in self._results:
                logger.debug(f"↩️ Replaying step '{name}' for run {run_id}")
                return decode(self._results[key])

        result = await run_with_retry(name, fn, self._config)
        async with self._lock:
            self._results.setdefault(key, encode(result))
        return result

    def committed_steps(self, run_id: str) -> list:
        """Names of the steps committed for a run."""
        return [name for (rid, name) in self._results if rid == run_id]

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        self._results.clear()
