"""ChatGPT implementation of the claim extractor interface."""

import json
import logging
from typing import Dict, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from ...domain.models.feedback import (
    Extracted,
    ExtractedClaim,
    ExtractionFailed,
    ExtractionResult,
)
from ...domain.ports.extractor import Extractor

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
Extract the product feedback claim from the user input.
Rewrite it as one short, neutral statement about the product so that
different users saying the same thing produce the same claim.

Respond in JSON format with:
{
    "claim": "Normalized claim statement",
    "sentiment": "positive/negative/neutral",
    "urgency": "low/medium/high",
    "segment": "new_users/power_users/enterprise"
}
"""


class ChatGPTConfig(BaseModel):
    """Configuration for ChatGPT extractor."""

    api_key: str = Field(..., description="OpenAI API key")
    base_url: str = Field(default="https://api.openai.com/v1", description="API base URL")
    model: str = Field(default="gpt-4o-mini", description="Model to use")
    temperature: float = Field(default=0.0, description="Temperature for responses")
    max_tokens: int = Field(default=300, description="Maximum tokens per response")
    timeout: float = Field(default=30.0, description="API timeout in seconds")


class ChatGPTExtractor(Extractor):
    """Extracts structured claims from feedback with the OpenAI chat API."""

    def __init__(
        self,
        config: Optional[ChatGPTConfig] = None,
    ):
        """Initialize the extractor."""
        self._config = config or ChatGPTConfig(api_key="")
        self._client: Optional[httpx.AsyncClient] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={
                    "Authorization": f"Bearer {self._config.api_key}",
                    "Content-Type": "application/json",
                },
            )
        self._initialized = True

    async def extract(self, raw_text: str) -> ExtractionResult:
        """Extract a claim from raw feedback.

        Transport errors and unparseable output both come back as
        ``ExtractionFailed``; nothing is raised for them.
        """
        if not self._client:
            raise RuntimeError("Extractor not initialized")

        try:
            response = await self._client.post(
                "/chat/completions",
                json={
                    "model": self._config.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": raw_text},
                    ],
                    "temperature": self._config.temperature,
                    "max_tokens": self._config.max_tokens,
                    "response_format": {"type": "json_object"},
                },
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ ChatGPT request failed: {type(e).__name__}: {e}")
            return ExtractionFailed(reason=f"request failed: {e}")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            return ExtractionFailed(reason=f"unexpected response shape: {e}")

        return parse_extraction(content)

    async def shutdown(self) -> None:
        """Clean up resources and shut down the extractor."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._initialized = False

    @property
    def provider_name(self) -> str:
        """Get the name of the AI provider."""
        return "ChatGPT"

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        return self._initialized and self._client is not None

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        return {
            "claim_extraction": True,
            "sentiment": True,
            "urgency": True,
            "segmentation": True,
        }


def parse_extraction(content: Optional[str]) -> ExtractionResult:
    """Parse model output into an extraction result."""
    if not content:
        return ExtractionFailed(reason="empty model output", raw=content)

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        return ExtractionFailed(reason=f"malformed JSON: {e.msg}", raw=content)

    if not isinstance(payload, dict):
        return ExtractionFailed(reason="model output is not a JSON object", raw=content)
    if "claim" not in payload:
        return ExtractionFailed(reason="missing required field: claim", raw=content)

    # Models often answer in capitals
    for key in ("sentiment", "urgency"):
        if isinstance(payload.get(key), str):
            payload[key] = payload[key].strip().lower()

    try:
        return Extracted(claim=ExtractedClaim.model_validate(payload))
    except ValidationError as e:
        return ExtractionFailed(reason=f"invalid claim: {e.errors()[0]['msg']}", raw=content)
