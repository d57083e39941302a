"""Provider factory.

Builds a provider instance from configuration. There is no module-level
singleton: callers construct a provider once and inject it into the agents.
"""

from career_agent.providers.config import ProviderConfig
from career_agent.providers.llm.base import LLMProvider
from career_agent.providers.llm.claude_adapter import ClaudeAdapter
from career_agent.providers.llm.openai_adapter import OpenAIAdapter


def create_llm_provider(config: ProviderConfig) -> LLMProvider:
    """Create the LLM provider named by the configuration.

    Args:
        config: Provider configuration.

    Returns:
        LLMProvider instance.

    Raises:
        ValueError: If the configured provider is unknown.
    """
    if config.llm_provider == "openai":
        return OpenAIAdapter(config)
    if config.llm_provider == "claude":
        return ClaudeAdapter(config)
    raise ValueError(f"Unknown LLM provider: {config.llm_provider}")
