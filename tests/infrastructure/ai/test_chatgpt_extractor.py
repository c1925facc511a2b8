"""Tests for the ChatGPT extractor."""

import json

import httpx
import pytest
import pytest_asyncio

from feedback_market.domain.models.feedback import (
    Extracted,
    ExtractionFailed,
    Sentiment,
    Urgency,
)
from feedback_market.infrastructure.ai.chatgpt_extractor import (
    ChatGPTConfig,
    ChatGPTExtractor,
    parse_extraction,
)


def completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="https://api.openai.com/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest_asyncio.fixture
async def chatgpt_extractor():
    """Create a ChatGPT extractor with a mock transport."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=completion(json.dumps({
            "claim": "API documentation is confusing",
            "sentiment": "Negative",
            "urgency": "medium",
            "segment": "new_users",
        })))

    extractor = ChatGPTExtractor(config=ChatGPTConfig(api_key="test_key"))
    extractor._client = make_client(handler)
    extractor._initialized = True
    extractor.requests = requests
    yield extractor
    await extractor.shutdown()


@pytest.mark.asyncio
async def test_extract_success(chatgpt_extractor):
    result = await chatgpt_extractor.extract("the API docs make no sense")

    assert isinstance(result, Extracted)
    assert result.claim.claim == "API documentation is confusing"
    assert result.claim.sentiment is Sentiment.NEGATIVE
    assert result.claim.urgency is Urgency.MEDIUM
    assert result.claim.segment == "new_users"


@pytest.mark.asyncio
async def test_extract_sends_json_mode_request(chatgpt_extractor):
    await chatgpt_extractor.extract("the API docs make no sense")

    body = chatgpt_extractor.requests[0]
    assert body["model"] == "gpt-4o-mini"
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0]["role"] == "system"
    assert body["messages"][1] == {"role": "user", "content": "the API docs make no sense"}


@pytest.mark.asyncio
async def test_http_error_becomes_failed_result():
    extractor = ChatGPTExtractor(config=ChatGPTConfig(api_key="bad"))
    extractor._client = make_client(lambda request: httpx.Response(401, json={"error": "nope"}))

    result = await extractor.extract("anything")

    assert isinstance(result, ExtractionFailed)
    assert "request failed" in result.reason
    await extractor.shutdown()


@pytest.mark.asyncio
async def test_unexpected_response_shape():
    extractor = ChatGPTExtractor(config=ChatGPTConfig(api_key="k"))
    extractor._client = make_client(lambda request: httpx.Response(200, json={"choices": []}))

    result = await extractor.extract("anything")

    assert isinstance(result, ExtractionFailed)
    await extractor.shutdown()


@pytest.mark.asyncio
async def test_extract_requires_initialization():
    extractor = ChatGPTExtractor(config=ChatGPTConfig(api_key="k"))
    with pytest.raises(RuntimeError):
        await extractor.extract("anything")


@pytest.mark.asyncio
async def test_initialize_and_shutdown():
    extractor = ChatGPTExtractor(config=ChatGPTConfig(api_key="k"))
    await extractor.initialize()
    assert extractor.is_available

    await extractor.shutdown()
    assert not extractor.is_available


def test_provider_properties():
    extractor = ChatGPTExtractor()
    assert extractor.provider_name == "ChatGPT"
    assert extractor.capabilities["claim_extraction"]


@pytest.mark.parametrize(
    "content, reason",
    [
        (None, "empty model output"),
        ("", "empty model output"),
        ("Sure! Here is the claim: docs bad", "malformed JSON"),
        ("[1, 2]", "not a JSON object"),
        ('{"sentiment": "negative"}', "missing required field: claim"),
        ('{"claim": "   "}', "invalid claim"),
        ('{"claim": "Docs bad", "sentiment": "furious"}', "invalid claim"),
    ],
)
def test_parse_extraction_failures(content, reason):
    result = parse_extraction(content)

    assert isinstance(result, ExtractionFailed)
    assert reason in result.reason
    assert result.raw == content


def test_parse_extraction_defaults_optional_fields():
    result = parse_extraction('{"claim": "Export is slow"}')

    assert isinstance(result, Extracted)
    assert result.claim.sentiment is Sentiment.NEUTRAL
    assert result.claim.urgency is Urgency.LOW
    assert result.claim.segment == "general"
