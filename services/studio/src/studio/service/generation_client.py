"""Generation client: renders a request into a placeholder entry as text arrives."""
from collections.abc import AsyncIterator

import structlog

from shared.errors import GenerationCancelledError, GenerationError
from shared.schemas import GenerationRequest, SessionContext
from studio.clients import GenerationBackend
from studio.errors import ConversationBusyError, EntryNotFoundError, InvalidRetryError
from studio.repositories.models import Conversation, Entry, EntryStatus

logger = structlog.get_logger()


class GenerationClient:
    """Drives one request per assistant entry.

    Failures never raise out of ``run``/``retry``: they are recorded on the entry,
    which keeps its id (and any partial text) so it can be retried.
    """

    def __init__(self, backend: GenerationBackend) -> None:
        self._backend = backend

    def open(self, conversation: Conversation, request: GenerationRequest) -> Entry:
        """Add the placeholder entry a request will write into."""
        entry = Entry(role="assistant", status=EntryStatus.PENDING, request=request)
        return conversation.add_entry(entry)

    def prepare_retry(
        self,
        conversation: Conversation,
        entry_id: str,
        request: GenerationRequest | None = None,
    ) -> Entry:
        """Clear a failed entry for a new attempt, optionally with corrected input.

        Refused while any other entry of the conversation is still pending or streaming.
        """
        entry = conversation.find_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        if entry.status is not EntryStatus.FAILED:
            raise InvalidRetryError(f"Entry {entry_id} is {entry.status.value}; only failed entries can be retried")
        new_request = request or entry.request
        if new_request is None:
            raise InvalidRetryError(f"Entry {entry_id} has no request to re-issue")
        if conversation.has_streaming_entry():
            raise ConversationBusyError("Another reply is still being written in this conversation")
        entry.reset(new_request)
        return entry

    async def follow(self, session: SessionContext, entry: Entry) -> AsyncIterator[Entry]:
        """Run entry.request, yielding the entry after every change, ending on its terminal state."""
        assert entry.request is not None
        log = logger.bind(entry_id=entry.id, user_id=session.user_id)
        stream = None
        try:
            stream = await self._backend.open(session, entry.request)
            async for text in stream:
                entry.update(text)
                yield entry
            result = await stream.result()
        except GenerationError as e:
            entry.fail(e)
            log.warning("entry_generation_failed", code=e.code, partial_chars=len(entry.content))
        else:
            entry.finalize(result.text, result.citations)
            log.info("entry_generation_completed", chars=len(entry.content), citations=len(entry.citations))
        finally:
            # consumer went away mid-stream
            if entry.is_streaming:
                if stream is not None:
                    stream.cancel()
                entry.fail(GenerationCancelledError("Stopped before completion"))
                log.info("entry_generation_abandoned", partial_chars=len(entry.content))
        yield entry

    async def run(
        self,
        session: SessionContext,
        conversation: Conversation,
        request: GenerationRequest,
    ) -> Entry:
        entry = self.open(conversation, request)
        async for _ in self.follow(session, entry):
            pass
        return entry

    async def retry(
        self,
        session: SessionContext,
        conversation: Conversation,
        entry_id: str,
        request: GenerationRequest | None = None,
    ) -> Entry:
        entry = self.prepare_retry(conversation, entry_id, request)
        async for _ in self.follow(session, entry):
            pass
        return entry

    async def quota(self, session: SessionContext) -> dict:
        return await self._backend.quota(session)
