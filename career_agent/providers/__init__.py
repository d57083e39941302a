"""Model providers: the error taxonomy, their configuration and the factory
the API uses to pick an adapter."""

from career_agent.providers.config import ProviderConfig
from career_agent.providers.errors import (
    AuthenticationError,
    ContentFilterError,
    ContextLengthError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from career_agent.providers.factory import create_llm_provider

__all__ = [
    # Config
    "ProviderConfig",
    # Errors
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ModelNotFoundError",
    "ContentFilterError",
    "ContextLengthError",
    "TransientError",
    # Factory
    "create_llm_provider",
]
