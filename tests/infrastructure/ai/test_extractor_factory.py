"""Tests for the extractor factory."""

import pytest

from feedback_market.infrastructure.ai.chatgpt_extractor import ChatGPTExtractor
from feedback_market.infrastructure.ai.factory import ExtractorFactory


@pytest.fixture
def factory():
    return ExtractorFactory()


def test_chatgpt_registered_by_default(factory):
    assert factory.available_providers == {"chatgpt": False}


def test_build_reads_api_key_from_environment(factory, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "env-key")

    provider = factory.build_provider("chatgpt", model="gpt-4o")

    assert isinstance(provider, ChatGPTExtractor)
    assert provider._config.api_key == "env-key"
    assert provider._config.model == "gpt-4o"
    assert factory.build_provider("chatgpt") is provider


def test_unknown_provider(factory):
    with pytest.raises(ValueError):
        factory.build_provider("claude")


@pytest.mark.asyncio
async def test_availability_follows_instance(factory):
    provider = factory.build_provider("chatgpt", api_key="k")
    await provider.initialize()

    assert factory.available_providers == {"chatgpt": True}

    await provider.shutdown()
    assert factory.available_providers == {"chatgpt": False}


def test_custom_provider(factory, extractor):
    factory.register_provider("fake", lambda: extractor)

    assert factory.build_provider("fake") is extractor
