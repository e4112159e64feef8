"""Studio API routes."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response, StreamingResponse

from shared.middleware import get_session
from shared.schemas import SessionContext
from shared.sse import format_sse
from studio.api.schemas import (
    ChatMessageRequest,
    ConversationResponse,
    DirectGenerateRequest,
    EntryResponse,
    RetryRequest,
    RunResponse,
    ToolRunRequest,
    WizardActionRequest,
    WizardCreateRequest,
    WizardDraftRequest,
    WizardResponse,
)
from studio.errors import ConversationBusyError, ConversationNotFoundError
from studio.repositories import Conversation, Entry
from studio.service import ChatService, GenerationClient, ToolService, WizardService
from studio.service.prompts import ToolType

router = APIRouter(prefix="/api/v1", tags=["studio"])


async def _deliver(
    request: Request,
    session: SessionContext,
    conv: Conversation,
    entry: Entry,
    stream: bool,
) -> Response | RunResponse:
    """Stream entry snapshots as SSE, or wait for the terminal state and return it."""
    client: GenerationClient = request.app.state.generation_client
    if stream:
        async def event_stream():
            async for snapshot in client.follow(session, entry):
                payload = EntryResponse.from_entry(snapshot).model_dump(mode="json")
                yield format_sse("entry", {"conversation_id": conv.id, **payload})

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Entry-ID": entry.id},
        )
    async for _ in client.follow(session, entry):
        pass
    return RunResponse(conversation_id=conv.id, entry=EntryResponse.from_entry(entry))


@router.post("/chat", response_model=ConversationResponse)
async def chat_create(
    request: Request, session: SessionContext = Depends(get_session)
) -> ConversationResponse:
    service: ChatService = request.app.state.chat_service
    conv = await service.start_conversation(session)
    return ConversationResponse.from_conversation(conv)


@router.post("/chat/{conversation_id}/messages", response_model=None)
async def chat_message(
    conversation_id: str,
    body: ChatMessageRequest,
    request: Request,
    session: SessionContext = Depends(get_session),
) -> Response | RunResponse:
    service: ChatService = request.app.state.chat_service
    conv, entry = await service.post_message(session, conversation_id, body.message)
    return await _deliver(request, session, conv, entry, body.stream)


@router.get("/conversations", response_model=list[ConversationResponse])
async def conversations_list(
    request: Request,
    kind: str | None = None,
    session: SessionContext = Depends(get_session),
) -> list[ConversationResponse]:
    repo = request.app.state.conversations
    items = await repo.list_for_owner(session.user_id, kind=kind)
    return [ConversationResponse.from_conversation(c) for c in items]


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def conversations_get(
    conversation_id: str, request: Request, session: SessionContext = Depends(get_session)
) -> ConversationResponse:
    conv = await request.app.state.conversations.get_by_id(conversation_id, session.user_id)
    if conv is None:
        raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
    return ConversationResponse.from_conversation(conv)


@router.delete("/conversations/{conversation_id}", status_code=204)
async def conversations_delete(
    conversation_id: str, request: Request, session: SessionContext = Depends(get_session)
) -> Response:
    repo = request.app.state.conversations
    conv = await repo.get_by_id(conversation_id, session.user_id)
    if conv is None:
        raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
    if conv.has_streaming_entry():
        raise ConversationBusyError("A reply is still being written in this conversation")
    await repo.delete(conversation_id, session.user_id)
    return Response(status_code=204)


@router.post("/conversations/{conversation_id}/entries/{entry_id}/retry", response_model=None)
async def entries_retry(
    conversation_id: str,
    entry_id: str,
    body: RetryRequest,
    request: Request,
    session: SessionContext = Depends(get_session),
) -> Response | RunResponse:
    conv = await request.app.state.conversations.get_by_id(conversation_id, session.user_id)
    if conv is None:
        raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
    client: GenerationClient = request.app.state.generation_client
    corrected = None
    previous = conv.find_entry(entry_id)
    has_corrections = body.prompt is not None or body.config is not None
    if previous is not None and previous.request is not None and has_corrections:
        updates: dict = {}
        if body.prompt is not None:
            updates["prompt"] = body.prompt
        if body.config is not None:
            updates["config"] = body.config
        corrected = previous.request.model_copy(update=updates)
    entry = client.prepare_retry(conv, entry_id, corrected)
    return await _deliver(request, session, conv, entry, body.stream)


@router.post("/tools/{tool}/run", response_model=None)
async def tools_run(
    tool: ToolType,
    body: ToolRunRequest,
    request: Request,
    session: SessionContext = Depends(get_session),
) -> Response | RunResponse:
    service: ToolService = request.app.state.tool_service
    conv, entry = await service.start(session, tool, body.text, body.config)
    return await _deliver(request, session, conv, entry, body.stream)


@router.post("/wizards", response_model=WizardResponse)
async def wizards_create(
    body: WizardCreateRequest, request: Request, session: SessionContext = Depends(get_session)
) -> WizardResponse:
    service: WizardService = request.app.state.wizard_service
    return WizardResponse.from_wizard(service.create(session, ToolType(body.kind)))


@router.post("/wizards/direct", response_model=None)
async def wizards_direct(
    body: DirectGenerateRequest, request: Request, session: SessionContext = Depends(get_session)
) -> Response | RunResponse:
    service: WizardService = request.app.state.wizard_service
    conv, entry = await service.start_direct(session, ToolType(body.kind), body.instruction, body.config)
    return await _deliver(request, session, conv, entry, body.stream)


@router.get("/wizards/{wizard_id}", response_model=WizardResponse)
async def wizards_get(
    wizard_id: str, request: Request, session: SessionContext = Depends(get_session)
) -> WizardResponse:
    service: WizardService = request.app.state.wizard_service
    return WizardResponse.from_wizard(service.get(session, wizard_id))


@router.post("/wizards/{wizard_id}/actions", response_model=WizardResponse)
async def wizards_action(
    wizard_id: str,
    body: WizardActionRequest,
    request: Request,
    session: SessionContext = Depends(get_session),
) -> WizardResponse:
    service: WizardService = request.app.state.wizard_service
    wizard = service.apply(service.get(session, wizard_id), body.action, body.text, body.items)
    return WizardResponse.from_wizard(wizard)


@router.post("/wizards/{wizard_id}/draft", response_model=None)
async def wizards_draft(
    wizard_id: str,
    body: WizardDraftRequest,
    request: Request,
    session: SessionContext = Depends(get_session),
) -> Response | RunResponse:
    service: WizardService = request.app.state.wizard_service
    conv, entry = await service.start_draft(session, service.get(session, wizard_id), body.config)
    return await _deliver(request, session, conv, entry, body.stream)


@router.get("/quota")
async def quota(request: Request, session: SessionContext = Depends(get_session)) -> dict:
    client: GenerationClient = request.app.state.generation_client
    return await client.quota(session)
