"""Prompt assembly for the writing tools, wizards and scholar chat."""
from enum import Enum

from shared.schemas import GenerationConfig


class ToolType(str, Enum):
    WIZARD = "WIZARD"
    CAPSTONE_GEN = "CAPSTONE_GEN"
    THESIS_GEN = "THESIS_GEN"
    RESEARCH_TITLE = "RESEARCH_TITLE"
    ABSTRACT_GEN = "ABSTRACT_GEN"
    OUTLINE_GEN = "OUTLINE_GEN"
    REWRITER = "REWRITER"
    EXTENDER = "EXTENDER"
    CHECKER = "CHECKER"
    SHORTENER = "SHORTENER"
    HOOK_GEN = "HOOK_GEN"
    CONCLUSION_GEN = "CONCLUSION_GEN"
    SCHOLAR_CHAT = "SCHOLAR_CHAT"


REFINE_PREFIXES: dict[ToolType, str] = {
    ToolType.REWRITER: "Rewrite the following text to be more academic and coherent:",
    ToolType.EXTENDER: "Expand upon the following text with more details, evidence, and examples:",
    ToolType.CHECKER: (
        "Analyze the following text for structure, clarity, and grammar. "
        "Provide specific improvements:"
    ),
    ToolType.SHORTENER: "Summarize and shorten the following text while retaining key points:",
}

TOPIC_INSTRUCTIONS: dict[ToolType, str] = {
    ToolType.THESIS_GEN: "Write a clear, arguable thesis statement about",
    ToolType.RESEARCH_TITLE: "Suggest five concise academic research titles about",
    ToolType.ABSTRACT_GEN: "Write a structured academic abstract (background, methods, results, conclusion) about",
    ToolType.OUTLINE_GEN: "Produce a detailed essay outline with introduction, body sections and conclusion about",
    ToolType.HOOK_GEN: "Write three engaging opening hooks for an essay about",
    ToolType.CONCLUSION_GEN: "Write a strong concluding paragraph that synthesizes the main points about",
}

CHAT_SYSTEM_PROMPT = (
    "You are ScholarChat, an academic writing assistant. "
    "Answer precisely and cite real, verifiable papers."
)

CHAT_GREETING = "Hello! I am ScholarChat. I cite real papers in my answers. How can I help?"


def config_json(config: GenerationConfig) -> str:
    return config.model_dump_json()


def build_refine_prompt(tool: ToolType, text: str, config: GenerationConfig) -> str:
    prefix = REFINE_PREFIXES.get(tool, "Process:")
    return f'{prefix} "{text}"\n\nConfiguration: {config_json(config)}'


def build_topic_prompt(tool: ToolType, topic: str, config: GenerationConfig) -> str:
    instruction = TOPIC_INSTRUCTIONS[tool]
    return (
        f"{topic}\n\n"
        f"INSTRUCTION: {instruction} the topic above. "
        f"Write in {config.language.value}. Style: {config.type.value}."
    )


def build_essay_direct_prompt(instruction: str, config: GenerationConfig) -> str:
    return (
        f"INSTRUCTION: {instruction}\n\n"
        f"CONTEXT: Write a full essay in {config.language.value}. "
        f"Target words: {config.words}. Undetectable: {str(config.undetectable).lower()}."
    )


def build_essay_outline_prompt(title: str, outline: list[str], config: GenerationConfig) -> str:
    return (
        f"Write an essay about {title} based on outline: {', '.join(outline)}. "
        f"Config: {config_json(config)}"
    )


def build_capstone_direct_prompt(instruction: str, config: GenerationConfig) -> str:
    return (
        f"{instruction}\n\n"
        "INSTRUCTION: Generate a complete capstone/thesis from the brief above.\n\n"
        f"CONFIG: Language {config.language.value}, Words {config.words}"
    )


def build_capstone_step_prompt(
    topic: str,
    milestones: list[str],
    literature: str,
    methodology: str,
    config: GenerationConfig,
) -> str:
    return (
        f"CAPSTONE PROJECT. Topic: {topic}. Milestones: {';'.join(milestones)}. "
        f"Lit: {literature}. Method: {methodology}. Config: {config_json(config)}"
    )


def build_messages_context(messages: list[tuple[str, str]]) -> str:
    if not messages:
        return ""
    parts = []
    for role, content in messages:
        prefix = "Student" if role == "user" else "ScholarChat"
        parts.append(f"{prefix}: {content}")
    return "\n".join(parts)


def build_chat_prompt(user_message: str, history: list[tuple[str, str]]) -> str:
    """Current question first, then the conversation so far and the system rules."""
    prompt_parts = [f"Question: {user_message}", ""]
    history_context = build_messages_context(history)
    if history_context:
        prompt_parts.extend(["Conversation so far:", history_context, ""])
    prompt_parts.extend(["Instructions: " + CHAT_SYSTEM_PROMPT])
    return "\n".join(prompt_parts)
