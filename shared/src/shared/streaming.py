"""Channel/future pair carrying one generation from producer to consumer.

The producer publishes cumulative snapshots and then settles the request
exactly once, either with ``complete()`` or ``fail()``. The consumer iterates
the snapshots (once) and then awaits ``result()``, which returns the
GenerationResult or raises the GenerationError the request failed with.
"""
import asyncio
from collections.abc import AsyncIterator

from shared.errors import GenerationError
from shared.schemas.generation import GenerationResult

_END = object()


class GenerationStream:
    """Finite, non-restartable stream of text snapshots for one request."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._outcome: asyncio.Future[GenerationResult] = asyncio.get_running_loop().create_future()
        self._text = ""
        self._cancel_requested = False
        self._iterated = False

    @property
    def text(self) -> str:
        """Latest published snapshot."""
        return self._text

    @property
    def done(self) -> bool:
        return self._outcome.done()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def cancel(self) -> None:
        """Ask the producer to stop before its next continuation."""
        if not self.done:
            self._cancel_requested = True

    def publish(self, text: str) -> None:
        if self.done:
            raise RuntimeError(f"stream {self.request_id} is already settled")
        if not text.startswith(self._text):
            raise ValueError("snapshot must extend the previously published text")
        if text == self._text:
            return
        self._text = text
        self._queue.put_nowait(text)

    def complete(self, result: GenerationResult) -> None:
        if self.done:
            raise RuntimeError(f"stream {self.request_id} is already settled")
        # The last snapshot always carries the completed text.
        if result.text != self._text:
            self.publish(result.text)
        self._outcome.set_result(result)
        self._queue.put_nowait(_END)

    def fail(self, error: GenerationError) -> None:
        if self.done:
            raise RuntimeError(f"stream {self.request_id} is already settled")
        self._outcome.set_exception(error)
        self._queue.put_nowait(_END)

    def __aiter__(self) -> AsyncIterator[str]:
        if self._iterated:
            raise RuntimeError("a generation stream can only be iterated once")
        self._iterated = True
        return self._snapshots()

    async def _snapshots(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            yield item  # type: ignore[misc]

    async def result(self) -> GenerationResult:
        return await asyncio.shield(self._outcome)
