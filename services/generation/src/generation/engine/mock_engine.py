"""Mock engines: timer-driven text emitters standing in for a hosted model."""
import asyncio
import re
from collections.abc import AsyncIterator, Sequence

from generation.engine.base import GenerationEngine
from shared.schemas import ContentType, GenerationRequest

DEFAULT_CITATIONS = (
    "10.1038/s41586-023-00000",
    "10.1145/3411764.3445520",
    "10.1016/j.ai.2024.01.001",
)

_LABEL = re.compile(r"^(instruction|context|config|configuration|question)\s*:\s*", re.IGNORECASE)

_OPENINGS = {
    ContentType.ARGUMENTATIVE: "This essay argues a clear position on",
    ContentType.EXPOSITORY: "This essay explains the key facts behind",
    ContentType.PERSUASIVE: "This essay sets out to convince the reader about",
    ContentType.NARRATIVE: "This essay tells the story of",
    ContentType.DESCRIPTIVE: "This essay describes in detail",
    ContentType.ANALYTICAL: "This essay analyses the structure and causes of",
}

_ACADEMIC = (
    "Recent scholarship frames the question within a broader theoretical debate.",
    "Empirical evidence from several independent studies supports this reading.",
    "A closer examination of the methodology reveals important limitations.",
    "Counterarguments deserve attention, since they expose hidden assumptions.",
    "Taken together, these findings point toward a more nuanced conclusion.",
)

_HUMANIZED = (
    "Honestly, the debate here is messier than most textbooks admit.",
    "Some studies back this up, though not always for the same reasons.",
    "Look closely at how the data was gathered and a few cracks appear.",
    "The other side has a point, and it is worth taking seriously.",
    "So where does that leave us? Somewhere more interesting than expected.",
)


def _extract_topic(prompt: str) -> str:
    """First meaningful line of the prompt, without instruction labels or quotes."""
    topic = ""
    for line in prompt.splitlines():
        line = _LABEL.sub("", line.strip()).strip(' "')
        if line:
            topic = line
            break
    topic = re.sub(r"\s+", " ", topic).rstrip(".:")
    if len(topic) > 120:
        topic = topic[:120].rsplit(" ", 1)[0] + "…"
    return topic or "the assigned topic"


def compose_draft(request: GenerationRequest, max_words: int) -> list[str]:
    """Words of a deterministic draft sized to the configured word target."""
    cfg = request.config
    target = min(cfg.words, max_words)
    pool = _HUMANIZED if cfg.undetectable else _ACADEMIC
    words = f"[{cfg.language.value}] {_OPENINGS[cfg.type]} {_extract_topic(request.prompt)}.".split()
    i = 0
    while len(words) < target:
        words.extend(pool[i % len(pool)].split())
        i += 1
    return words[:target]


class MockGenerationEngine(GenerationEngine):
    """Emits a composed draft a few words at a time, sleeping between chunks."""

    def __init__(
        self,
        chunk_words: int = 3,
        chunk_delay_seconds: float = 0.05,
        max_words: int = 600,
    ) -> None:
        self._chunk_words = max(1, chunk_words)
        self._delay = chunk_delay_seconds
        self._max_words = max_words

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        words = compose_draft(request, self._max_words)
        for start in range(0, len(words), self._chunk_words):
            await asyncio.sleep(self._delay)
            chunk = " ".join(words[start : start + self._chunk_words])
            yield chunk if start == 0 else " " + chunk

    def citations(self, request: GenerationRequest) -> list[str]:
        return list(DEFAULT_CITATIONS)


class ScriptedGenerationEngine(GenerationEngine):
    """Replays a fixed list of deltas; useful for demos and deterministic runs."""

    def __init__(
        self,
        deltas: Sequence[str],
        delay_seconds: float = 0.0,
        citations: Sequence[str] = DEFAULT_CITATIONS,
    ) -> None:
        self._deltas = list(deltas)
        self._delay = delay_seconds
        self._citations = list(citations)

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        for delta in self._deltas:
            await asyncio.sleep(self._delay)
            yield delta

    def citations(self, request: GenerationRequest) -> list[str]:
        return list(self._citations)
