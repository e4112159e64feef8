"""FastAPI middleware for request_id/trace_id and the session header dependency."""
import uuid
from typing import Callable

from fastapi import HTTPException
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from shared.logging import clear_request_context, current_trace_id, set_request_context
from shared.schemas.session import SessionContext

USER_ID_HEADER = "X-User-ID"
USER_PLAN_HEADER = "X-User-Plan"
USER_ROLE_HEADER = "X-User-Role"


def get_request_id_from_headers(request: Request) -> str | None:
    """Extract X-Request-ID from request headers."""
    return request.headers.get("X-Request-ID")


def get_trace_id_from_headers(request: Request) -> str | None:
    """Extract X-Trace-ID from request headers."""
    return request.headers.get("X-Trace-ID")


def session_headers(session: SessionContext) -> dict[str, str]:
    """Headers that carry a session, and the current trace id, to another service."""
    headers = {
        USER_ID_HEADER: session.user_id,
        USER_PLAN_HEADER: session.plan.value,
        USER_ROLE_HEADER: session.role.value,
    }
    trace_id = current_trace_id()
    if trace_id:
        headers["X-Trace-ID"] = trace_id
    return headers


def get_session(request: Request) -> SessionContext:
    """FastAPI dependency: build the caller's SessionContext from headers."""
    user_id = request.headers.get(USER_ID_HEADER)
    if not user_id:
        raise HTTPException(status_code=401, detail=f"Missing {USER_ID_HEADER} header")
    data: dict[str, str] = {"user_id": user_id}
    plan = request.headers.get(USER_PLAN_HEADER)
    role = request.headers.get(USER_ROLE_HEADER)
    if plan:
        data["plan"] = plan.upper()
    if role:
        data["role"] = role.upper()
    try:
        return SessionContext(**data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="Invalid session headers") from e


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Put request, trace and user ids into the log context; echo the ids back as headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = get_request_id_from_headers(request) or uuid.uuid4().hex
        trace_id = get_trace_id_from_headers(request) or request_id
        set_request_context(request_id, trace_id, request.headers.get(USER_ID_HEADER))
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Trace-ID"] = trace_id
            return response
        finally:
            clear_request_context()
