"""API request/response schemas."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from shared.schemas import GenerationConfig
from studio.repositories import Conversation, Entry, EntryStatus
from studio.service.wizard import CapstoneWizard, Wizard


class EntryResponse(BaseModel):
    id: str
    role: str
    content: str
    status: EntryStatus
    citations: list[str] = Field(default_factory=list)
    error: dict[str, str] | None = None
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryResponse":
        return cls(
            id=entry.id,
            role=entry.role,
            content=entry.content,
            status=entry.status,
            citations=entry.citations,
            error=entry.error,
            updated_at=entry.updated_at,
        )


class ConversationResponse(BaseModel):
    id: str
    kind: str
    entries: list[EntryResponse] = Field(default_factory=list)

    @classmethod
    def from_conversation(cls, conv: Conversation) -> "ConversationResponse":
        return cls(id=conv.id, kind=conv.kind, entries=[EntryResponse.from_entry(e) for e in conv.entries])


class RunResponse(BaseModel):
    """Result of a non-streamed run: the conversation and its generated entry."""

    conversation_id: str
    entry: EntryResponse


class ChatMessageRequest(BaseModel):
    message: str
    stream: bool = False


class ToolRunRequest(BaseModel):
    text: str
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    stream: bool = False


class WizardCreateRequest(BaseModel):
    kind: Literal["WIZARD", "CAPSTONE_GEN"] = "WIZARD"


class WizardActionRequest(BaseModel):
    action: str = Field(..., min_length=1)
    text: str | None = None
    items: list[str] | None = None


class WizardDraftRequest(BaseModel):
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    stream: bool = False


class DirectGenerateRequest(BaseModel):
    kind: Literal["WIZARD", "CAPSTONE_GEN"] = "WIZARD"
    instruction: str
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    stream: bool = False


class RetryRequest(BaseModel):
    """Optional corrections applied to the failed entry's original request."""

    prompt: str | None = None
    config: GenerationConfig | None = None
    stream: bool = False


class WizardResponse(BaseModel):
    id: str
    kind: str
    step: str
    data: dict
    conversation_id: str | None = None

    @classmethod
    def from_wizard(cls, wizard: Wizard) -> "WizardResponse":
        if isinstance(wizard, CapstoneWizard):
            data = {
                "topic": wizard.topic,
                "milestones": wizard.milestones,
                "literature": wizard.literature,
                "methodology": wizard.methodology,
            }
        else:
            data = {
                "brief": wizard.brief,
                "titles": wizard.titles,
                "title": wizard.title,
                "outline": wizard.outline,
            }
        return cls(
            id=wizard.id,
            kind=wizard.kind.value,
            step=wizard.step.name,
            data=data,
            conversation_id=wizard.conversation_id,
        )
