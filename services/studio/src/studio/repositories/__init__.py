"""Repositories."""
from studio.repositories.conversation_repository import ConversationRepository
from studio.repositories.models import Conversation, Entry, EntryStatus

__all__ = ["Conversation", "ConversationRepository", "Entry", "EntryStatus"]
