"""Protocol for checkpointed step execution."""

from typing import Any, Awaitable, Callable, Protocol, TypeVar

T = TypeVar("T")


class StepRunner(Protocol):
    """Runs named pipeline steps with checkpointing and retries.

    A step whose result was already committed for ``run_id`` is not executed
    again; its decoded result is returned instead. Otherwise the step is
    retried with backoff under a per-attempt timeout, and its encoded result
    is committed before ``run_step`` returns. Exhausted retries raise
    ``StepFailed``.
    """

    async def run_step(
        self,
        run_id: str,
        name: str,
        fn: Callable[[], Awaitable[T]],
        *,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
    ) -> T:
        """Run or replay a step."""
        ...

    async def initialize(self) -> None:
        """Prepare checkpoint storage."""
        ...

    async def shutdown(self) -> None:
        """Release resources."""
        ...
