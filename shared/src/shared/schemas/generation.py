"""Generation DTOs: request, configuration, progress and result."""
from enum import Enum

from pydantic import BaseModel, Field


class Language(str, Enum):
    ENGLISH_US = "English (US)"
    SPANISH = "Spanish"
    FRENCH = "French"
    ARABIC = "Arabic"
    GERMAN = "German"
    CHINESE = "Chinese"


class ContentType(str, Enum):
    ARGUMENTATIVE = "Argumentative"
    EXPOSITORY = "Expository"
    PERSUASIVE = "Persuasive"
    NARRATIVE = "Narrative"
    DESCRIPTIVE = "Descriptive"
    ANALYTICAL = "Analytical"


class GenerationConfig(BaseModel):
    """Output settings chosen in the toolbar."""

    words: int = Field(default=1000, gt=0, le=20000)
    language: Language = Language.ENGLISH_US
    type: ContentType = ContentType.ARGUMENTATIVE
    undetectable: bool = False


class GenerationRequest(BaseModel):
    # Empty prompts are accepted here and rejected by the service as EmptyInputError.
    prompt: str = ""
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    cite_sources: bool = Field(default=False, description="Attach citation identifiers to the result.")


class GenerationProgressEvent(BaseModel):
    """Cumulative text produced so far (not a delta)."""

    request_id: str
    text: str


class GenerationResult(BaseModel):
    request_id: str
    text: str
    citations: list[str] = Field(default_factory=list)
