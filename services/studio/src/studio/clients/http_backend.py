"""HTTP/SSE backend for the generation service."""
import asyncio
import functools

import httpx
import structlog

from shared.errors import (
    GenerationCancelledError,
    GenerationError,
    ServiceFailureError,
    error_from_dict,
)
from shared.http_client import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    create_http_client,
    request_with_retries,
)
from shared.middleware import session_headers
from shared.schemas import GenerationProgressEvent, GenerationRequest, GenerationResult, SessionContext
from shared.sse import iter_sse_events
from shared.streaming import GenerationStream
from studio.clients.generation_backend import GenerationBackend

logger = structlog.get_logger()


def _error_from_response(resp: httpx.Response) -> GenerationError:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and "code" in data:
        return error_from_dict(data)
    return ServiceFailureError(f"Generation service returned HTTP {resp.status_code}")


class HTTPGenerationBackend(GenerationBackend):
    """Opens /generate/stream and feeds its SSE events into a GenerationStream.

    Opening a stream is never retried; only idempotent reads (quota) are.
    """

    mode = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        circuit_breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait_max: float = 10.0,
    ) -> None:
        self._client = create_http_client(base_url, timeout=timeout, transport=transport)
        self._breaker = circuit_breaker or CircuitBreaker()
        self._retry_wait_max = retry_wait_max
        self._tasks: set[asyncio.Task] = set()

    @property
    def available(self) -> bool:
        return not self._breaker.is_open()

    async def open(self, session: SessionContext, request: GenerationRequest) -> GenerationStream:
        if self._breaker.is_open():
            raise ServiceFailureError("Generation service unavailable (circuit open)")
        http_request = self._client.build_request(
            "POST",
            "/generate/stream",
            json=request.model_dump(mode="json"),
            headers=session_headers(session),
        )
        try:
            resp = await self._client.send(http_request, stream=True)
        except httpx.TransportError as e:
            self._breaker.record_failure()
            raise ServiceFailureError(f"Generation service unreachable: {e}") from e

        if resp.status_code != 200:
            await resp.aread()
            await resp.aclose()
            if resp.status_code >= 500:
                self._breaker.record_failure()
            raise _error_from_response(resp)

        self._breaker.record_success()
        stream = GenerationStream(resp.headers.get("X-Generation-ID", ""))
        task = asyncio.create_task(self._pump(resp, stream))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._task_done, stream))
        return stream

    async def quota(self, session: SessionContext) -> dict:
        try:
            resp = await request_with_retries(
                self._client,
                "GET",
                "/quota",
                headers=session_headers(session),
                wait_max=self._retry_wait_max,
                circuit_breaker=self._breaker,
            )
        except (httpx.HTTPError, CircuitBreakerOpenError) as e:
            raise ServiceFailureError(f"Quota lookup failed: {e}") from e
        return resp.json()

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()

    def _task_done(self, stream: GenerationStream, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not stream.done:
            stream.fail(GenerationCancelledError())

    async def _pump(self, resp: httpx.Response, stream: GenerationStream) -> None:
        try:
            async for event in iter_sse_events(resp.aiter_lines()):
                if stream.cancel_requested:
                    raise GenerationCancelledError()
                if event.event == "progress":
                    stream.publish(GenerationProgressEvent.model_validate(event.data).text)
                elif event.event == "complete":
                    stream.complete(GenerationResult.model_validate(event.data))
                    return
                elif event.event == "error":
                    stream.fail(error_from_dict(event.data))
                    return
            raise ServiceFailureError("Generation stream ended without a terminal event")
        except GenerationError as e:
            stream.fail(e)
        except httpx.HTTPError as e:
            logger.warning("generation_stream_broken", generation_id=stream.request_id, error=str(e))
            stream.fail(ServiceFailureError(f"Generation stream broken: {e}"))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("generation_stream_malformed", generation_id=stream.request_id, error=str(e))
            stream.fail(ServiceFailureError("Malformed event from generation service"))
        finally:
            await resp.aclose()
