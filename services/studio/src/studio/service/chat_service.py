"""Scholar chat: conversation bookkeeping + prompt assembly + streamed replies with citations."""
from shared.errors import EmptyInputError
from shared.schemas import GenerationConfig, GenerationRequest, SessionContext
from studio.errors import ConversationBusyError, ConversationNotFoundError
from studio.repositories import Conversation, ConversationRepository, Entry, EntryStatus
from studio.service.generation_client import GenerationClient
from studio.service.prompts import CHAT_GREETING, ToolType, build_chat_prompt


class ChatService:
    def __init__(
        self,
        conversations: ConversationRepository,
        generation: GenerationClient,
        max_history_messages: int = 10,
        answer_words: int = 150,
    ) -> None:
        self._conversations = conversations
        self._generation = generation
        self._max_history_messages = max_history_messages
        self._answer_words = answer_words

    async def start_conversation(self, session: SessionContext) -> Conversation:
        conv = await self._conversations.create(session.user_id, ToolType.SCHOLAR_CHAT.value)
        conv.add_entry(Entry(role="assistant", content=CHAT_GREETING))
        return conv

    async def get_conversation(self, session: SessionContext, conversation_id: str) -> Conversation:
        conv = await self._conversations.get_by_id(conversation_id, session.user_id)
        if conv is None or conv.kind != ToolType.SCHOLAR_CHAT.value:
            raise ConversationNotFoundError(f"Chat {conversation_id} not found")
        return conv

    def _history(self, conv: Conversation) -> list[tuple[str, str]]:
        done = [
            (e.role, e.content) for e in conv.entries
            if e.status is EntryStatus.COMPLETE and e.content
        ]
        return done[-self._max_history_messages:]

    async def post_message(
        self,
        session: SessionContext,
        conversation_id: str,
        user_message: str,
    ) -> tuple[Conversation, Entry]:
        """Record the user's message and open the assistant placeholder for the reply.

        One reply streams at a time per conversation.
        """
        if not user_message.strip():
            raise EmptyInputError()
        conv = await self.get_conversation(session, conversation_id)
        if conv.has_streaming_entry():
            raise ConversationBusyError("A reply is still being written in this conversation")

        history = self._history(conv)
        conv.add_entry(Entry(role="user", content=user_message))
        request = GenerationRequest(
            prompt=build_chat_prompt(user_message, history),
            config=GenerationConfig(words=self._answer_words),
            cite_sources=True,
        )
        return conv, self._generation.open(conv, request)

    async def reply(self, session: SessionContext, conversation_id: str, user_message: str) -> Entry:
        """Post a message and wait for the finished (or failed) assistant entry."""
        _, entry = await self.post_message(session, conversation_id, user_message)
        async for _ in self._generation.follow(session, entry):
            pass
        return entry
