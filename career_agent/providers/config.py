"""Settings subset the provider layer needs, frozen at construction."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from career_agent.core.config import Settings


@dataclass(frozen=True)
class ProviderConfig:
    """Provider options.

    Attributes:
        llm_provider: "openai" or "claude"; the test double uses "mock".
        openai_api_key: Key for the OpenAI adapter.
        anthropic_api_key: Key for the Claude adapter.
        openai_model_routing: TaskType value to model overrides for OpenAI.
        claude_model_routing: TaskType value to model overrides for Claude.
        default_max_tokens: Output cap when a call passes none.
        default_temperature: Sampling temperature used when a call passes none.
        max_retries: Max retry attempts for transient errors.
        retry_base_delay_ms: Base delay for exponential backoff.
        retry_max_delay_ms: Max delay cap for exponential backoff.
    """

    llm_provider: str = "openai"
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    openai_model_routing: dict[str, str] | None = None
    claude_model_routing: dict[str, str] | None = None
    default_max_tokens: int = 2048
    default_temperature: float = 0.3
    max_retries: int = 2
    retry_base_delay_ms: int = 500
    retry_max_delay_ms: int = 8000

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ProviderConfig":
        """Build provider configuration from application settings.

        Args:
            settings: Loaded application settings.

        Returns:
            ProviderConfig instance.
        """
        return cls(
            llm_provider=settings.llm_provider,
            openai_api_key=settings.openai_api_key or None,
            anthropic_api_key=settings.anthropic_api_key or None,
            default_max_tokens=settings.default_max_tokens,
            max_retries=settings.llm_max_retries,
        )
