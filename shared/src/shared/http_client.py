"""HTTP helpers: async client factory, retries and a simple circuit breaker."""
import time
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)


class CircuitBreakerOpenError(Exception):
    """Raised when circuit breaker is open."""


class CircuitBreaker:
    """In-memory circuit breaker: opens after failure_threshold consecutive failures."""

    def __init__(self, failure_threshold: int = 5, reset_after_seconds: float = 60.0) -> None:
        self.failure_threshold = failure_threshold
        self.reset_after_seconds = reset_after_seconds
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def failures(self) -> int:
        return self._failures

    def record_success(self) -> None:
        self._failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold:
            self._opened_at = time.monotonic()

    def is_open(self) -> bool:
        if self._opened_at is None:
            return False
        if time.monotonic() - self._opened_at >= self.reset_after_seconds:
            # half-open: let the next call through
            self._failures = self.failure_threshold - 1
            self._opened_at = None
            return False
        return True


def create_http_client(
    base_url: str = "",
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create async HTTP client; retries are handled by request_with_retries, not the transport."""
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=httpx.Timeout(timeout),
        transport=transport or httpx.AsyncHTTPTransport(retries=0),
    )


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


async def request_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    json: Any = None,
    headers: dict[str, str] | None = None,
    retries: int = 3,
    wait_max: float = 10.0,
    circuit_breaker: CircuitBreaker | None = None,
) -> httpx.Response:
    """Perform request with tenacity retries (transport errors and 5xx) and optional circuit breaker."""
    if circuit_breaker and circuit_breaker.is_open():
        raise CircuitBreakerOpenError("Circuit breaker is open")

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(retries),
        wait=wait_exponential(multiplier=1, min=0, max=wait_max),
        reraise=True,
    )
    async def _do() -> httpx.Response:
        resp = await client.request(method, url, json=json, headers=headers)
        resp.raise_for_status()
        return resp

    try:
        resp = await _do()
    except (httpx.TransportError, httpx.HTTPStatusError) as e:
        if circuit_breaker and _is_retryable(e):
            circuit_breaker.record_failure()
        raise
    if circuit_breaker:
        circuit_breaker.record_success()
    return resp
