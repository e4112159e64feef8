"""Conversation repository (in-memory)."""
from studio.repositories.models import Conversation


class ConversationRepository:
    def __init__(self) -> None:
        self._items: dict[str, Conversation] = {}

    async def create(self, owner_id: str, kind: str) -> Conversation:
        conv = Conversation(owner_id=owner_id, kind=kind)
        self._items[conv.id] = conv
        return conv

    async def get_by_id(self, conversation_id: str, owner_id: str) -> Conversation | None:
        """Conversation owned by owner_id, or None."""
        conv = self._items.get(conversation_id)
        if conv is None or conv.owner_id != owner_id:
            return None
        return conv

    async def list_for_owner(self, owner_id: str, kind: str | None = None) -> list[Conversation]:
        items = [
            c for c in self._items.values()
            if c.owner_id == owner_id and (kind is None or c.kind == kind)
        ]
        return sorted(items, key=lambda c: c.created_at, reverse=True)

    async def delete(self, conversation_id: str, owner_id: str) -> bool:
        """Remove a conversation owned by owner_id. Conversations are otherwise kept for the process lifetime."""
        conv = await self.get_by_id(conversation_id, owner_id)
        if conv is None:
            return False
        del self._items[conversation_id]
        return True
