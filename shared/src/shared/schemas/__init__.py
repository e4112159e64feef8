"""Common DTOs and schemas."""
from shared.schemas.generation import (
    ContentType,
    GenerationConfig,
    GenerationProgressEvent,
    GenerationRequest,
    GenerationResult,
    Language,
)
from shared.schemas.health import HealthResponse
from shared.schemas.session import Plan, SessionContext, UserRole

__all__ = [
    "ContentType",
    "GenerationConfig",
    "GenerationProgressEvent",
    "GenerationRequest",
    "GenerationResult",
    "HealthResponse",
    "Language",
    "Plan",
    "SessionContext",
    "UserRole",
]
