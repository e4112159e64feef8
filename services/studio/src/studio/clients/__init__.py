from studio.clients.generation_backend import GenerationBackend, LocalGenerationBackend
from studio.clients.http_backend import HTTPGenerationBackend

__all__ = ["GenerationBackend", "HTTPGenerationBackend", "LocalGenerationBackend"]
