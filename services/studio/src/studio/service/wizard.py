"""Essay and capstone wizards: step-by-step briefs that end in one generation request."""
from dataclasses import dataclass, field
from enum import IntEnum
from uuid import uuid4

from shared.errors import EmptyInputError
from shared.schemas import GenerationConfig, GenerationRequest, SessionContext
from studio.errors import StudioError, WizardNotFoundError, WizardStepError
from studio.repositories import Conversation, ConversationRepository, Entry
from studio.service.generation_client import GenerationClient
from studio.service.prompts import (
    ToolType,
    build_capstone_direct_prompt,
    build_capstone_step_prompt,
    build_essay_direct_prompt,
    build_essay_outline_prompt,
)

TITLE_SUGGESTIONS = (
    "The Impact of AI on Modern Education",
    "Artificial Intelligence: A New Era of Learning",
    "Education 2.0: Integrating Machine Learning",
    "Challenges and Opportunities of AI in Schools",
)

OUTLINE_SUGGESTION = (
    "Introduction: The Rise of AI",
    "Body 1: Productivity Benefits",
    "Body 2: Ethical Concerns",
    "Conclusion: Future Outlook",
)

MILESTONE_SUGGESTIONS = (
    "Phase 1: Research Proposal & Approval",
    "Phase 2: Comprehensive Literature Review",
    "Phase 3: Data Collection & Field Work",
    "Phase 4: Statistical Analysis",
    "Phase 5: Final Drafting & Defense",
)

LITERATURE_SUGGESTION = "Recent studies (Smith 2023, Al-Fayed 2024) indicate a correlation between..."

METHODOLOGIES = ("Quantitative Survey", "Qualitative Interviews", "Mixed Methods", "Case Study")


def _require_text(value: str | None) -> str:
    if value is None or not value.strip():
        raise EmptyInputError()
    return value.strip()


class EssayStep(IntEnum):
    BRIEF = 0
    TITLE = 1
    OUTLINE = 2
    GENERATE = 3


class CapstoneStep(IntEnum):
    TOPIC = 0
    MILESTONES = 1
    LITERATURE = 2
    METHODOLOGY = 3
    GENERATE = 4


@dataclass
class EssayWizard:
    owner_id: str
    id: str = field(default_factory=lambda: uuid4().hex)
    step: EssayStep = EssayStep.BRIEF
    brief: str = ""
    titles: list[str] = field(default_factory=list)
    title: str = ""
    outline: list[str] = field(default_factory=list)
    conversation_id: str | None = None

    kind = ToolType.WIZARD

    def _expect(self, *steps: EssayStep) -> None:
        if self.step not in steps:
            raise WizardStepError(f"Essay wizard is at {self.step.name}, expected {'/'.join(s.name for s in steps)}")

    def submit_brief(self, brief: str) -> None:
        self._expect(EssayStep.BRIEF, EssayStep.TITLE)
        self.brief = _require_text(brief)
        self.titles = list(TITLE_SUGGESTIONS)
        self.step = EssayStep.TITLE

    def choose_title(self, title: str) -> None:
        self._expect(EssayStep.TITLE, EssayStep.OUTLINE)
        self.title = _require_text(title)
        self.outline = list(OUTLINE_SUGGESTION)
        self.step = EssayStep.OUTLINE

    def edit_outline(self, outline: list[str]) -> None:
        self._expect(EssayStep.OUTLINE)
        items = [item.strip() for item in outline if item.strip()]
        if not items:
            raise EmptyInputError("Outline needs at least one section")
        self.outline = items

    def draft_request(self, config: GenerationConfig) -> GenerationRequest:
        self._expect(EssayStep.OUTLINE, EssayStep.GENERATE)
        self.step = EssayStep.GENERATE
        return GenerationRequest(prompt=build_essay_outline_prompt(self.title, self.outline, config), config=config)


@dataclass
class CapstoneWizard:
    owner_id: str
    id: str = field(default_factory=lambda: uuid4().hex)
    step: CapstoneStep = CapstoneStep.TOPIC
    topic: str = ""
    milestones: list[str] = field(default_factory=list)
    literature: str = ""
    methodology: str = ""
    conversation_id: str | None = None

    kind = ToolType.CAPSTONE_GEN

    def _expect(self, *steps: CapstoneStep) -> None:
        if self.step not in steps:
            raise WizardStepError(
                f"Capstone wizard is at {self.step.name}, expected {'/'.join(s.name for s in steps)}"
            )

    def submit_topic(self, topic: str) -> None:
        self._expect(CapstoneStep.TOPIC, CapstoneStep.MILESTONES)
        self.topic = _require_text(topic)
        self.milestones = list(MILESTONE_SUGGESTIONS)
        self.step = CapstoneStep.MILESTONES

    def review_literature(self) -> None:
        self._expect(CapstoneStep.MILESTONES)
        self.literature = LITERATURE_SUGGESTION
        self.step = CapstoneStep.LITERATURE

    def edit_literature(self, text: str) -> None:
        self._expect(CapstoneStep.LITERATURE)
        self.literature = _require_text(text)

    def to_methodology(self) -> None:
        self._expect(CapstoneStep.LITERATURE)
        self.step = CapstoneStep.METHODOLOGY

    def choose_methodology(self, methodology: str) -> None:
        self._expect(CapstoneStep.METHODOLOGY)
        if methodology not in METHODOLOGIES:
            raise StudioError(f"Unknown methodology {methodology!r}; choose one of {', '.join(METHODOLOGIES)}")
        self.methodology = methodology

    def draft_request(self, config: GenerationConfig) -> GenerationRequest:
        self._expect(CapstoneStep.METHODOLOGY, CapstoneStep.GENERATE)
        if not self.methodology:
            raise WizardStepError("Choose a methodology before generating")
        self.step = CapstoneStep.GENERATE
        prompt = build_capstone_step_prompt(
            self.topic, self.milestones, self.literature, self.methodology, config
        )
        return GenerationRequest(prompt=prompt, config=config)


Wizard = EssayWizard | CapstoneWizard


class WizardService:
    """Keeps wizard state per user and turns the final step into a generation.

    A wizard is dropped once its draft starts; the draft lives on in its conversation.
    """

    def __init__(self, conversations: ConversationRepository, generation: GenerationClient) -> None:
        self._conversations = conversations
        self._generation = generation
        self._wizards: dict[str, Wizard] = {}

    def create(self, session: SessionContext, kind: ToolType) -> Wizard:
        if kind is ToolType.WIZARD:
            wizard: Wizard = EssayWizard(owner_id=session.user_id)
        elif kind is ToolType.CAPSTONE_GEN:
            wizard = CapstoneWizard(owner_id=session.user_id)
        else:
            raise StudioError(f"{kind.value} has no wizard")
        self._wizards[wizard.id] = wizard
        return wizard

    def get(self, session: SessionContext, wizard_id: str) -> Wizard:
        wizard = self._wizards.get(wizard_id)
        if wizard is None or wizard.owner_id != session.user_id:
            raise WizardNotFoundError(f"Wizard {wizard_id} not found")
        return wizard

    def apply(self, wizard: Wizard, action: str, text: str | None = None, items: list[str] | None = None) -> Wizard:
        """Run one named step action (e.g. "brief", "title", "topic", "methodology")."""
        if isinstance(wizard, EssayWizard):
            actions = {
                "brief": lambda: wizard.submit_brief(text or ""),
                "title": lambda: wizard.choose_title(text or ""),
                "outline": lambda: wizard.edit_outline(items or []),
            }
        else:
            actions = {
                "topic": lambda: wizard.submit_topic(text or ""),
                "literature": wizard.review_literature,
                "edit_literature": lambda: wizard.edit_literature(text or ""),
                "methodology_step": wizard.to_methodology,
                "methodology": lambda: wizard.choose_methodology(text or ""),
            }
        if action not in actions:
            raise StudioError(f"Unknown action {action!r} for {wizard.kind.value}")
        actions[action]()
        return wizard

    async def start_draft(
        self,
        session: SessionContext,
        wizard: Wizard,
        config: GenerationConfig,
    ) -> tuple[Conversation, Entry]:
        request = wizard.draft_request(config)
        conv = await self._conversations.create(session.user_id, wizard.kind.value)
        wizard.conversation_id = conv.id
        self._wizards.pop(wizard.id, None)
        return conv, self._generation.open(conv, request)

    async def start_direct(
        self,
        session: SessionContext,
        kind: ToolType,
        instruction: str,
        config: GenerationConfig,
    ) -> tuple[Conversation, Entry]:
        """Direct mode: skip the steps and generate from a single instruction."""
        instruction = _require_text(instruction)
        if kind is ToolType.WIZARD:
            prompt = build_essay_direct_prompt(instruction, config)
        elif kind is ToolType.CAPSTONE_GEN:
            prompt = build_capstone_direct_prompt(instruction, config)
        else:
            raise StudioError(f"{kind.value} has no direct mode")
        conv = await self._conversations.create(session.user_id, kind.value)
        conv.add_entry(Entry(role="user", content=instruction))
        return conv, self._generation.open(conv, GenerationRequest(prompt=prompt, config=config))
