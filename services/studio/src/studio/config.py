"""Studio service configuration."""
from typing import Literal

from pydantic_settings import SettingsConfigDict

from shared.config import BaseAppSettings


class StudioSettings(BaseAppSettings):
    model_config = SettingsConfigDict(env_prefix="STUDIO_")

    host: str = "0.0.0.0"
    port: int = 8000
    # "local" runs the generation service in-process, "http" calls it over SSE
    generation_mode: Literal["local", "http"] = "local"
    generation_url: str = "http://generation:8002"
    generation_timeout_seconds: float = 120.0
    circuit_failure_threshold: int = 5
    circuit_reset_seconds: float = 60.0
    max_history_messages: int = 10
    chat_answer_words: int = 150
