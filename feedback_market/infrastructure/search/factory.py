"""Factory for building similarity indexes by name."""

from typing import Callable, Dict

from ...domain.ports.similarity_index import SimilarityIndex
from .embedding_index import EmbeddingIndex
from .hosted_search_adapter import HostedSearchAdapter


class SearchProviderFactory:
    """Maps index names to constructors and remembers what it built.

    Lifecycle (initialize, shutdown) belongs to the service container, which
    owns the one index the pipeline uses.
    """

    def __init__(self):
        self._registry: Dict[str, Callable[..., SimilarityIndex]] = {
            "hosted": HostedSearchAdapter,
            "embedding": EmbeddingIndex,
        }
        self._built: Dict[str, SimilarityIndex] = {}

    def register_provider(self, name: str, builder: Callable[..., SimilarityIndex]) -> None:
        if name in self._registry:
            raise ValueError(f"Provider {name} already registered")
        self._registry[name] = builder

    def build_provider(self, name: str, **config) -> SimilarityIndex:
        """Construct an index without initializing it.

        Raises:
            ValueError: If provider not found
        """
        if name not in self._registry:
            raise ValueError(f"Provider {name} not registered")
        index = self._registry[name](**config)
        self._built[name] = index
        return index

    @property
    def available_providers(self) -> Dict[str, bool]:
        """Registered index names and whether the built one is ready."""
        return {
            name: name in self._built and self._built[name].is_available
            for name in self._registry
        }
