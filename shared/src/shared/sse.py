"""Server-sent events framing and parsing."""
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any


@dataclass
class SSEEvent:
    event: str
    data: Any


def format_sse(event: str, data: Any) -> str:
    """One SSE frame with a JSON payload."""
    payload = json.dumps(data, ensure_ascii=False)
    return f"event: {event}\ndata: {payload}\n\n"


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[SSEEvent]:
    """Parse SSE frames from an async iterator of lines (e.g. httpx aiter_lines)."""
    event = "message"
    data_lines: list[str] = []
    async for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            if data_lines:
                yield SSEEvent(event=event, data=json.loads("\n".join(data_lines)))
            event = "message"
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event = value
        elif field == "data":
            data_lines.append(value)
    if data_lines:
        yield SSEEvent(event=event, data=json.loads("\n".join(data_lines)))
