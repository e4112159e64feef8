"""Liveness and readiness payloads."""
from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = "ok"
    service: str
    in_flight: int | None = None  # generation tasks still running
    generation_mode: Literal["local", "http"] | None = None
    generation_available: bool | None = None
