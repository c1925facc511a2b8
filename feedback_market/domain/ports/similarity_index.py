"""Protocol for semantic similarity search over claims."""

from typing import List, Protocol

from ..models.actions import SimilarMatch
from ..models.claim import Claim

DEFAULT_SEARCH_LIMIT = 3


class SimilarityIndex(Protocol):
    """Finds recorded claims that say the same thing as a new one.

    Both operations raise ``IndexUnavailable`` when the backing service
    cannot be reached.
    """

    async def initialize(self) -> None:
        """Initialize the index client."""
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    async def find_similar(
        self,
        claim_text: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[SimilarMatch]:
        """Return at most ``limit`` matches, most relevant first."""
        ...

    async def index_claim(self, claim: Claim) -> None:
        """Make a claim searchable."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the index is ready."""
        ...
