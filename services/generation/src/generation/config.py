"""Generation service configuration."""
from pydantic import Field
from pydantic_settings import SettingsConfigDict

from shared.config import BaseAppSettings


class GenerationSettings(BaseAppSettings):
    model_config = SettingsConfigDict(env_prefix="GENERATION_")

    host: str = "0.0.0.0"
    port: int = 8002
    generate_timeout_seconds: float = 120.0
    # mock engine pacing
    chunk_words: int = Field(default=3, ge=1)
    chunk_delay_seconds: float = Field(default=0.05, ge=0.0)
    max_words: int = Field(default=600, ge=1)
    # generations per plan
    free_limit: int = 10
    starter_limit: int = 500
    pro_limit: int = 2000
