"""Generation service entrypoint - streams mock model output over HTTP/SSE."""
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from prometheus_client import make_asgi_app

from shared.errors import GenerationError
from shared.logging import configure_logging
from shared.middleware import RequestIdMiddleware, get_session
from shared.schemas import GenerationProgressEvent, GenerationRequest, HealthResponse, SessionContext
from shared.sse import format_sse

from generation.api.schemas import ErrorResponse, GenerateResponse
from generation.config import GenerationSettings
from generation.quota import QuotaStatus
from generation.service import GenerationService, build_generation_service

_settings: GenerationSettings | None = None

_ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in (422, 429, 502, 504)
}


def get_settings() -> GenerationSettings:
    global _settings
    if _settings is None:
        _settings = GenerationSettings()
    return _settings


def create_app(generation_service: GenerationService | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(json_logs=settings.json_logs, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = generation_service or build_generation_service(settings)
        app.state.generation_service = service
        yield
        await service.aclose()

    app = FastAPI(title="Generation Service", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)

    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    @app.exception_handler(GenerationError)
    async def _generation_error(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse.from_error(exc).model_dump(exclude_none=True),
        )

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(status="ok", service="generation")

    @app.get("/readyz", response_model=HealthResponse)
    async def readyz(request: Request) -> HealthResponse:
        service: GenerationService = request.app.state.generation_service
        return HealthResponse(status="ok", service="generation", in_flight=service.in_flight)

    @app.get("/quota", response_model=QuotaStatus)
    async def quota(request: Request, session: SessionContext = Depends(get_session)) -> QuotaStatus:
        return request.app.state.generation_service.quota.status(session)

    @app.post("/generate", response_model=GenerateResponse, responses=_ERROR_RESPONSES)
    async def generate(
        body: GenerationRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> GenerateResponse:
        service: GenerationService = request.app.state.generation_service
        result = await service.run(body, session)
        return GenerateResponse(**result.model_dump())

    @app.post("/generate/stream", responses=_ERROR_RESPONSES)
    async def generate_stream(
        body: GenerationRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> StreamingResponse:
        """SSE: progress events with cumulative text, then one complete or error event."""
        service: GenerationService = request.app.state.generation_service
        stream = service.start(body, session)

        async def event_stream():
            try:
                async for text in stream:
                    progress = GenerationProgressEvent(request_id=stream.request_id, text=text)
                    yield format_sse("progress", progress.model_dump())
                result = await stream.result()
            except GenerationError as e:
                yield format_sse("error", ErrorResponse.from_error(e, stream.request_id).model_dump())
            else:
                yield format_sse("complete", result.model_dump())
            finally:
                if not stream.done:
                    structlog.get_logger().info(
                        "generation_client_disconnected", generation_id=stream.request_id
                    )
                    stream.cancel()

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Generation-ID": stream.request_id},
        )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "generation.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
