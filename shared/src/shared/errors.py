"""Generation error taxonomy shared by the generation service and its clients."""
from typing import Any


class GenerationError(Exception):
    """Base for every terminal failure of a generation request."""

    code = "generation_error"
    status_code = 500
    default_message = "Generation failed"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class QuotaExceededError(GenerationError):
    """Caller has used up the generations allowed by their plan."""

    code = "quota_exceeded"
    status_code = 429
    default_message = "Generation quota exceeded for the current plan"


class EmptyInputError(GenerationError):
    code = "empty_input"
    status_code = 422
    default_message = "Nothing to generate: prompt is empty"


class ServiceFailureError(GenerationError):
    """Opaque catch-all: engine errors, timeouts, transport failures."""

    code = "service_failure"
    status_code = 502
    default_message = "Generation service failed"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        super().__init__(message, code=code)
        if self.code == "timeout":
            self.status_code = 504


class GenerationCancelledError(ServiceFailureError):
    code = "cancelled"
    default_message = "Generation was cancelled"


_BY_CODE: dict[str, type[GenerationError]] = {
    QuotaExceededError.code: QuotaExceededError,
    EmptyInputError.code: EmptyInputError,
    GenerationCancelledError.code: GenerationCancelledError,
}


def error_from_dict(data: dict[str, Any]) -> GenerationError:
    """Rebuild a taxonomy error from its wire form ({"code", "message"}).

    Unknown codes (including "timeout") come back as ServiceFailureError
    with the code preserved.
    """
    code = str(data.get("code") or ServiceFailureError.code)
    message = data.get("message") or None
    cls = _BY_CODE.get(code)
    if cls is not None:
        return cls(message)
    return ServiceFailureError(message, code=code)
