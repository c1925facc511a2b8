"""Factory for building claim extractors by name."""

import os
from typing import Dict, Type

from ...domain.ports.extractor import Extractor
from .chatgpt_extractor import ChatGPTConfig, ChatGPTExtractor


class ExtractorFactory:
    """Factory for building claim extractors.

    Instances are cached per name; the service container initializes and
    shuts down the one it uses.
    """

    def __init__(self):
        """Initialize the factory."""
        self._providers: Dict[str, Type[Extractor]] = {}
        self._instances: Dict[str, Extractor] = {}

        # Register default providers
        self.register_provider("chatgpt", ChatGPTExtractor)

    def register_provider(self, name: str, provider_class: Type[Extractor]) -> None:
        """Register a new extractor.

        Args:
            name: Provider name
            provider_class: Provider class
        """
        self._providers[name] = provider_class

    def build_provider(self, name: str, **kwargs) -> Extractor:
        """Construct an extractor without initializing it.

        Args:
            name: Provider name
            **kwargs: Provider-specific configuration

        Returns:
            The cached extractor instance for ``name``

        Raises:
            ValueError: If provider not found
        """
        if name not in self._providers:
            raise ValueError(f"Provider '{name}' not found")

        if name not in self._instances:
            if name == "chatgpt":
                kwargs.setdefault("api_key", os.getenv("OPENAI_API_KEY", ""))
                provider = self._providers[name](config=ChatGPTConfig(**kwargs))
            else:
                provider = self._providers[name](**kwargs)
            self._instances[name] = provider

        return self._instances[name]

    @property
    def available_providers(self) -> Dict[str, bool]:
        """Get dictionary of registered providers and their availability."""
        return {
            name: name in self._instances and self._instances[name].is_available
            for name in self._providers
        }
