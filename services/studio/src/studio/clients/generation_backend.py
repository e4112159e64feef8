"""Generation backends: where the studio sends requests."""
from abc import ABC, abstractmethod

from generation.service import GenerationService
from shared.schemas import GenerationRequest, SessionContext
from shared.streaming import GenerationStream


class GenerationBackend(ABC):
    mode: str

    @property
    def available(self) -> bool:
        """False while calls are known to fail fast (e.g. an open circuit)."""
        return True

    @abstractmethod
    async def open(self, session: SessionContext, request: GenerationRequest) -> GenerationStream:
        """Start a request. Raises GenerationError if it is rejected up front."""
        ...

    @abstractmethod
    async def quota(self, session: SessionContext) -> dict:
        ...

    async def aclose(self) -> None:
        return None


class LocalGenerationBackend(GenerationBackend):
    """Runs the generation service in-process."""

    mode = "local"

    def __init__(self, service: GenerationService) -> None:
        self._service = service

    async def open(self, session: SessionContext, request: GenerationRequest) -> GenerationStream:
        return self._service.start(request, session)

    async def quota(self, session: SessionContext) -> dict:
        return self._service.quota.status(session).model_dump(mode="json")

    async def aclose(self) -> None:
        await self._service.aclose()
