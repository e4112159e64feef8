"""Refine and topic tools: one conversation per run, holding the input and the generated output."""
from shared.errors import EmptyInputError
from shared.schemas import GenerationConfig, GenerationRequest, SessionContext
from studio.errors import StudioError
from studio.repositories import Conversation, ConversationRepository, Entry
from studio.service.generation_client import GenerationClient
from studio.service.prompts import (
    REFINE_PREFIXES,
    TOPIC_INSTRUCTIONS,
    ToolType,
    build_refine_prompt,
    build_topic_prompt,
)

RUNNABLE_TOOLS = frozenset(REFINE_PREFIXES) | frozenset(TOPIC_INSTRUCTIONS)


def build_tool_request(tool: ToolType, text: str, config: GenerationConfig) -> GenerationRequest:
    if tool not in RUNNABLE_TOOLS:
        raise StudioError(f"{tool.value} is not a single-step tool")
    if not text.strip():
        raise EmptyInputError()
    if tool in REFINE_PREFIXES:
        prompt = build_refine_prompt(tool, text, config)
    else:
        prompt = build_topic_prompt(tool, text.strip(), config)
    return GenerationRequest(prompt=prompt, config=config)


class ToolService:
    def __init__(self, conversations: ConversationRepository, generation: GenerationClient) -> None:
        self._conversations = conversations
        self._generation = generation

    async def start(
        self,
        session: SessionContext,
        tool: ToolType,
        text: str,
        config: GenerationConfig,
    ) -> tuple[Conversation, Entry]:
        request = build_tool_request(tool, text, config)
        conv = await self._conversations.create(session.user_id, tool.value)
        conv.add_entry(Entry(role="user", content=text))
        return conv, self._generation.open(conv, request)

    async def run(
        self,
        session: SessionContext,
        tool: ToolType,
        text: str,
        config: GenerationConfig,
    ) -> tuple[Conversation, Entry]:
        conv, entry = await self.start(session, tool, text, config)
        async for _ in self._generation.follow(session, entry):
            pass
        return conv, entry
