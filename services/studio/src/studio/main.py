"""Studio service entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from generation.config import GenerationSettings
from generation.service import build_generation_service
from shared.errors import GenerationError
from shared.http_client import CircuitBreaker
from shared.logging import configure_logging
from shared.middleware import RequestIdMiddleware
from shared.schemas import HealthResponse

from studio.api.routes import router
from studio.clients import GenerationBackend, HTTPGenerationBackend, LocalGenerationBackend
from studio.config import StudioSettings
from studio.errors import StudioError
from studio.repositories import ConversationRepository
from studio.service import ChatService, GenerationClient, ToolService, WizardService

_settings: StudioSettings | None = None


def get_settings() -> StudioSettings:
    global _settings
    if _settings is None:
        _settings = StudioSettings()
    return _settings


def build_backend(settings: StudioSettings) -> GenerationBackend:
    if settings.generation_mode == "http":
        breaker = CircuitBreaker(
            failure_threshold=settings.circuit_failure_threshold,
            reset_after_seconds=settings.circuit_reset_seconds,
        )
        return HTTPGenerationBackend(
            settings.generation_url,
            timeout=settings.generation_timeout_seconds,
            circuit_breaker=breaker,
        )
    return LocalGenerationBackend(build_generation_service(GenerationSettings()))


def create_app(backend: GenerationBackend | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(json_logs=settings.json_logs, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = backend or build_backend(settings)
        conversations = ConversationRepository()
        generation_client = GenerationClient(active)
        app.state.backend = active
        app.state.conversations = conversations
        app.state.generation_client = generation_client
        app.state.chat_service = ChatService(
            conversations,
            generation_client,
            max_history_messages=settings.max_history_messages,
            answer_words=settings.chat_answer_words,
        )
        app.state.tool_service = ToolService(conversations, generation_client)
        app.state.wizard_service = WizardService(conversations, generation_client)
        yield
        await active.aclose()

    app = FastAPI(title="Studio Service", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(StudioError)
    async def _studio_error(request: Request, exc: StudioError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(GenerationError)
    async def _generation_error(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(router)

    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(status="ok", service="studio")

    @app.get("/readyz", response_model=HealthResponse)
    async def readyz(request: Request) -> HealthResponse:
        active: GenerationBackend = request.app.state.backend
        available = active.available
        return HealthResponse(
            status="ok" if available else "degraded",
            service="studio",
            generation_mode=active.mode,
            generation_available=available,
        )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "studio.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
