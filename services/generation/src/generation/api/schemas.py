"""Wire schemas of the generation API."""
from pydantic import BaseModel, Field

from shared.errors import GenerationError


class GenerateResponse(BaseModel):
    request_id: str
    text: str
    citations: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of an error response, and payload of the SSE ``error`` event (with request_id)."""

    code: str
    message: str
    request_id: str | None = None

    @classmethod
    def from_error(cls, error: GenerationError, request_id: str | None = None) -> "ErrorResponse":
        return cls(code=error.code, message=error.message, request_id=request_id)
