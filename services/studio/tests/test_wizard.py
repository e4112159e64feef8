"""Tests for the essay and capstone wizards."""
import pytest

from generation.engine import ScriptedGenerationEngine
from generation.service import GenerationService
from shared.errors import EmptyInputError
from shared.schemas import GenerationConfig, SessionContext
from studio.clients import LocalGenerationBackend
from studio.errors import StudioError, WizardNotFoundError, WizardStepError
from studio.repositories import ConversationRepository, EntryStatus
from studio.service import GenerationClient, WizardService
from studio.service.prompts import ToolType
from studio.service.wizard import (
    METHODOLOGIES,
    MILESTONE_SUGGESTIONS,
    OUTLINE_SUGGESTION,
    TITLE_SUGGESTIONS,
    CapstoneStep,
    CapstoneWizard,
    EssayStep,
    EssayWizard,
)

SESSION = SessionContext(user_id="student-1")


@pytest.fixture
def wizards() -> WizardService:
    engine = ScriptedGenerationEngine(["Draft", " body"])
    client = GenerationClient(LocalGenerationBackend(GenerationService(engine)))
    return WizardService(ConversationRepository(), client)


def test_essay_wizard_steps() -> None:
    wizard = EssayWizard(owner_id="student-1")
    wizard.submit_brief("AI in education")
    assert wizard.step is EssayStep.TITLE
    assert wizard.titles == list(TITLE_SUGGESTIONS)

    wizard.choose_title(TITLE_SUGGESTIONS[1])
    assert wizard.step is EssayStep.OUTLINE
    assert wizard.outline == list(OUTLINE_SUGGESTION)

    wizard.edit_outline(["Intro", " ", "Conclusion"])
    assert wizard.outline == ["Intro", "Conclusion"]

    request = wizard.draft_request(GenerationConfig(words=900))
    assert wizard.step is EssayStep.GENERATE
    assert TITLE_SUGGESTIONS[1] in request.prompt
    assert "Intro, Conclusion" in request.prompt


def test_essay_wizard_rejects_out_of_order_and_blank() -> None:
    wizard = EssayWizard(owner_id="student-1")
    with pytest.raises(WizardStepError):
        wizard.choose_title("Too early")
    with pytest.raises(WizardStepError):
        wizard.draft_request(GenerationConfig())
    with pytest.raises(EmptyInputError):
        wizard.submit_brief("  ")


def test_capstone_wizard_steps() -> None:
    wizard = CapstoneWizard(owner_id="student-1")
    wizard.submit_topic("Urban heat islands")
    assert wizard.milestones == list(MILESTONE_SUGGESTIONS)
    wizard.review_literature()
    assert wizard.step is CapstoneStep.LITERATURE
    wizard.edit_literature("Smith (2023) finds...")
    wizard.to_methodology()

    with pytest.raises(WizardStepError):
        wizard.draft_request(GenerationConfig())
    with pytest.raises(StudioError):
        wizard.choose_methodology("Astrology")

    wizard.choose_methodology(METHODOLOGIES[2])
    request = wizard.draft_request(GenerationConfig(words=4000))
    assert "Topic: Urban heat islands" in request.prompt
    assert "Lit: Smith (2023) finds..." in request.prompt
    assert f"Method: {METHODOLOGIES[2]}" in request.prompt


def test_service_apply_and_lookup(wizards: WizardService) -> None:
    wizard = wizards.create(SESSION, ToolType.WIZARD)
    assert wizards.get(SESSION, wizard.id) is wizard
    wizards.apply(wizard, "brief", text="Climate change")
    assert wizard.brief == "Climate change"

    with pytest.raises(StudioError):
        wizards.apply(wizard, "methodology", text="Case Study")
    with pytest.raises(WizardNotFoundError):
        wizards.get(SessionContext(user_id="someone-else"), wizard.id)
    with pytest.raises(StudioError):
        wizards.create(SESSION, ToolType.REWRITER)


@pytest.mark.asyncio
async def test_start_draft_opens_generation(wizards: WizardService) -> None:
    wizard = wizards.create(SESSION, ToolType.CAPSTONE_GEN)
    wizards.apply(wizard, "topic", text="Microplastics")
    wizards.apply(wizard, "literature")
    wizards.apply(wizard, "methodology_step")
    wizards.apply(wizard, "methodology", text="Case Study")

    conv, entry = await wizards.start_draft(SESSION, wizard, GenerationConfig())

    assert wizard.conversation_id == conv.id
    assert conv.kind == "CAPSTONE_GEN"
    assert entry.status is EntryStatus.PENDING
    with pytest.raises(WizardNotFoundError):
        wizards.get(SESSION, wizard.id)


@pytest.mark.asyncio
async def test_start_direct_requires_instruction(wizards: WizardService) -> None:
    with pytest.raises(EmptyInputError):
        await wizards.start_direct(SESSION, ToolType.WIZARD, "", GenerationConfig())

    conv, entry = await wizards.start_direct(SESSION, ToolType.WIZARD, "Essay on bees", GenerationConfig())
    assert conv.entries[0].content == "Essay on bees"
    assert entry.request.prompt.startswith("INSTRUCTION: Essay on bees")
