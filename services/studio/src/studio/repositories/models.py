"""In-memory models for conversations and their entries."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from shared.errors import GenerationError
from shared.schemas import GenerationRequest


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class EntryStatus(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class Entry:
    """One transcript item. Assistant entries double as generation placeholders."""

    role: str  # user | assistant
    content: str = ""
    status: EntryStatus = EntryStatus.COMPLETE
    citations: list[str] = field(default_factory=list)
    error: dict[str, str] | None = None
    request: GenerationRequest | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_streaming(self) -> bool:
        return self.status in (EntryStatus.PENDING, EntryStatus.STREAMING)

    def update(self, text: str) -> None:
        self.content = text
        self.status = EntryStatus.STREAMING
        self.updated_at = _utcnow()

    def finalize(self, text: str, citations: list[str]) -> None:
        self.content = text
        self.citations = list(citations)
        self.status = EntryStatus.COMPLETE
        self.error = None
        self.updated_at = _utcnow()

    def fail(self, error: GenerationError) -> None:
        # partial content stays for inspection
        self.status = EntryStatus.FAILED
        self.error = error.to_dict()
        self.updated_at = _utcnow()

    def reset(self, request: GenerationRequest) -> None:
        self.content = ""
        self.citations = []
        self.error = None
        self.request = request
        self.status = EntryStatus.PENDING
        self.updated_at = _utcnow()


@dataclass
class Conversation:
    owner_id: str
    kind: str  # "chat" or a tool name
    id: str = field(default_factory=_new_id)
    entries: list[Entry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)

    def add_entry(self, entry: Entry) -> Entry:
        self.entries.append(entry)
        return entry

    def find_entry(self, entry_id: str) -> Entry | None:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def has_streaming_entry(self) -> bool:
        return any(e.is_streaming for e in self.entries)
