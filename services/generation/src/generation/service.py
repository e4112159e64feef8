"""Generation service: validation, quota, engine draining and the callback adapter."""
import asyncio
import functools
import inspect
import time
import uuid
from collections.abc import Awaitable, Callable
from contextlib import aclosing

import structlog

from generation.config import GenerationSettings
from generation.engine import GenerationEngine, MockGenerationEngine
from generation.metrics import GENERATION_DURATION, GENERATION_IN_FLIGHT, GENERATION_REQUESTS
from generation.quota import QuotaLedger
from shared.errors import (
    EmptyInputError,
    GenerationCancelledError,
    GenerationError,
    ServiceFailureError,
)
from shared.schemas import GenerationRequest, GenerationResult, Plan, SessionContext
from shared.streaming import GenerationStream

logger = structlog.get_logger()

ProgressCallback = Callable[[str], Awaitable[None] | None]
CompleteCallback = Callable[[GenerationResult], Awaitable[None] | None]


async def _invoke(callback: Callable, arg: object) -> None:
    out = callback(arg)
    if inspect.isawaitable(out):
        await out


class GenerationService:
    """Runs each request as its own task feeding a GenerationStream.

    Requests are independent: none cancels, supersedes or shares state with
    another. Quota is reserved when a request starts and refunded if it fails.
    """

    def __init__(
        self,
        engine: GenerationEngine,
        quota: QuotaLedger | None = None,
        timeout_seconds: float | None = 120.0,
    ) -> None:
        self._engine = engine
        self._quota = quota or QuotaLedger()
        self._timeout = timeout_seconds
        self._tasks: set[asyncio.Task] = set()

    @property
    def quota(self) -> QuotaLedger:
        return self._quota

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def start(self, request: GenerationRequest, session: SessionContext) -> GenerationStream:
        """Validate, reserve quota and schedule the request. Must run inside an event loop.

        Raises EmptyInputError or QuotaExceededError before any stream exists.
        """
        try:
            if not request.prompt.strip():
                raise EmptyInputError()
            self._quota.reserve(session)
        except GenerationError as e:
            GENERATION_REQUESTS.labels(outcome=e.code).inc()
            logger.info("generation_rejected", user_id=session.user_id, code=e.code)
            raise

        stream = GenerationStream(uuid.uuid4().hex)
        task = asyncio.create_task(
            self._run(request, session, stream), name=f"generation-{stream.request_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._task_done, stream, session))
        logger.info(
            "generation_started",
            generation_id=stream.request_id,
            user_id=session.user_id,
            words=request.config.words,
            cite_sources=request.cite_sources,
        )
        return stream

    async def generate(
        self,
        request: GenerationRequest,
        session: SessionContext,
        on_progress: ProgressCallback,
        on_complete: CompleteCallback,
    ) -> GenerationResult:
        """Callback form: on_progress per snapshot, on_complete once; failures raise instead."""
        stream = self.start(request, session)
        try:
            async for text in stream:
                await _invoke(on_progress, text)
            result = await stream.result()
        finally:
            stream.cancel()
        await _invoke(on_complete, result)
        return result

    async def run(self, request: GenerationRequest, session: SessionContext) -> GenerationResult:
        """Wait for the final result. Cancelling the caller cancels the request."""
        stream = self.start(request, session)
        try:
            async for _ in stream:
                pass
            return await stream.result()
        finally:
            stream.cancel()

    async def aclose(self) -> None:
        """Cancel every running request; each settles as cancelled."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _task_done(
        self, stream: GenerationStream, session: SessionContext, task: asyncio.Task
    ) -> None:
        self._tasks.discard(task)
        if not stream.done:
            # cancelled before the task got to run
            log = logger.bind(generation_id=stream.request_id, user_id=session.user_id)
            self._settle_failure(stream, session, GenerationCancelledError(), log)

    async def _drain(self, request: GenerationRequest, stream: GenerationStream) -> str:
        text = ""
        async with aclosing(self._engine.stream(request)) as deltas:
            async for delta in deltas:
                if stream.cancel_requested:
                    raise GenerationCancelledError()
                text += delta
                stream.publish(text)
        if stream.cancel_requested:
            raise GenerationCancelledError()
        return text

    async def _run(
        self,
        request: GenerationRequest,
        session: SessionContext,
        stream: GenerationStream,
    ) -> None:
        log = logger.bind(generation_id=stream.request_id, user_id=session.user_id)
        t0 = time.perf_counter()
        GENERATION_IN_FLIGHT.inc()
        try:
            text = await asyncio.wait_for(self._drain(request, stream), timeout=self._timeout)
            citations = self._engine.citations(request) if request.cite_sources else []
        except asyncio.TimeoutError:
            error: GenerationError = ServiceFailureError(
                f"No completion within {self._timeout}s", code="timeout"
            )
        except GenerationError as e:
            error = e
        except asyncio.CancelledError:
            self._settle_failure(stream, session, GenerationCancelledError(), log)
            raise
        except Exception as e:
            log.exception("generation_engine_error")
            error = ServiceFailureError(str(e) or type(e).__name__)
            error.__cause__ = e
        else:
            stream.complete(
                GenerationResult(request_id=stream.request_id, text=text, citations=citations)
            )
            GENERATION_REQUESTS.labels(outcome="completed").inc()
            log.info(
                "generation_completed",
                chars=len(text),
                citations=len(citations),
                latency_ms=int((time.perf_counter() - t0) * 1000),
            )
            return
        finally:
            GENERATION_IN_FLIGHT.dec()
            GENERATION_DURATION.observe(time.perf_counter() - t0)
        self._settle_failure(stream, session, error, log)

    def _settle_failure(
        self,
        stream: GenerationStream,
        session: SessionContext,
        error: GenerationError,
        log: structlog.typing.FilteringBoundLogger,
    ) -> None:
        self._quota.refund(session)
        stream.fail(error)
        GENERATION_REQUESTS.labels(outcome=error.code).inc()
        log.warning("generation_failed", code=error.code, partial_chars=len(stream.text))


def build_generation_service(settings: GenerationSettings) -> GenerationService:
    engine = MockGenerationEngine(
        chunk_words=settings.chunk_words,
        chunk_delay_seconds=settings.chunk_delay_seconds,
        max_words=settings.max_words,
    )
    quota = QuotaLedger(
        {
            Plan.FREE: settings.free_limit,
            Plan.STARTER: settings.starter_limit,
            Plan.PRO: settings.pro_limit,
        }
    )
    return GenerationService(engine, quota, timeout_seconds=settings.generate_timeout_seconds)
