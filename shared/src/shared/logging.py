"""structlog setup. Every event carries the request, trace and user ids of the HTTP call that emitted it."""
import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

_request_context: ContextVar[dict[str, str]] = ContextVar("request_context", default={})


def set_request_context(request_id: str, trace_id: str | None = None, user_id: str | None = None) -> None:
    context = {"request_id": request_id, "trace_id": trace_id or request_id}
    if user_id:
        context["user_id"] = user_id
    _request_context.set(context)


def clear_request_context() -> None:
    _request_context.set({})


def current_trace_id() -> str:
    return _request_context.get().get("trace_id", "")


def add_request_context(
    logger: Any,
    method: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor: copy the current request context into the event (explicit binds win)."""
    for key, value in _request_context.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def configure_logging(json_logs: bool = True, level: str = "INFO") -> None:
    renderer: Any = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
