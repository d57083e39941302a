"""Application configuration loaded from environment variables.

Settings for the LLM provider, per-task sampling, prompt size limits and the
HTTP surface. Uses pydantic-settings for validation and .env file support.
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MAX_TEMPERATURE = 2.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Identity (no auth layer; requests may name a user with X-User-ID)
    default_user_id: str = "local-user"

    # CORS
    allowed_origins: list[str] = ["http://localhost:3000"]

    # LLM Providers
    llm_provider: Literal["openai", "claude"] = "openai"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    llm_max_retries: int = 2
    default_max_tokens: int = 2048

    # Per-call deadline. A timeout is handled like unparseable output.
    llm_timeout_seconds: float = 30.0

    # Sampling per task: routing and scoring want consistency, writing wants range
    intent_temperature: float = 0.3
    assessment_temperature: float = 0.2
    matching_temperature: float = 0.2
    tracking_temperature: float = 0.1
    letter_temperature: float = 0.7

    # Prompt size limits (characters)
    max_message_chars: int = 2000
    max_description_chars: int = 1000
    max_cv_prompt_chars: int = 6000
    max_job_postings: int = 20

    # Idle sessions are dropped after this long
    session_ttl_minutes: int = 60

    @model_validator(mode="after")
    def check_limits(self) -> "Settings":
        """Reject timeouts and sampling values the providers cannot honour."""
        if self.llm_timeout_seconds <= 0:
            msg = f"LLM_TIMEOUT_SECONDS must be positive. Got: {self.llm_timeout_seconds}"
            raise ValueError(msg)

        if self.session_ttl_minutes <= 0:
            msg = f"SESSION_TTL_MINUTES must be positive. Got: {self.session_ttl_minutes}"
            raise ValueError(msg)

        if self.llm_max_retries < 0:
            msg = f"LLM_MAX_RETRIES cannot be negative. Got: {self.llm_max_retries}"
            raise ValueError(msg)

        for name in (
            "intent_temperature",
            "assessment_temperature",
            "matching_temperature",
            "tracking_temperature",
            "letter_temperature",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= _MAX_TEMPERATURE:
                msg = f"{name.upper()} must be between 0 and {_MAX_TEMPERATURE}. Got: {value}"
                raise ValueError(msg)

        return self


settings = Settings()
