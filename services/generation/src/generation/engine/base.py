"""Generation engine interface."""
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from shared.schemas import GenerationRequest


class GenerationEngine(ABC):
    @abstractmethod
    def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        """Yield the generated text as consecutive deltas."""
        ...

    def citations(self, request: GenerationRequest) -> list[str]:
        """Citation identifiers for a finished request that asked for sources."""
        return []
