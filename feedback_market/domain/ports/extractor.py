"""Protocol for claim extractors."""

from typing import Dict, Protocol

from ..models.feedback import ExtractionResult


class Extractor(Protocol):
    """Turns raw feedback text into a structured claim.

    Implementations never raise on malformed model output; they return
    ``ExtractionFailed`` instead. Retrying is left to the caller.
    """

    async def initialize(self) -> None:
        """Initialize the extractor."""
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    async def extract(self, raw_text: str) -> ExtractionResult:
        """Extract a claim from raw feedback."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the extractor is ready."""
        ...

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the extractor's capabilities."""
        ...
