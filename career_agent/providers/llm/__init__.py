"""LLM provider interface and adapters."""

from career_agent.providers.llm.base import (
    CompletionRequest,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    RawCompletion,
    TaskType,
)
from career_agent.providers.llm.claude_adapter import ClaudeAdapter
from career_agent.providers.llm.mock_adapter import MockLLMProvider
from career_agent.providers.llm.openai_adapter import OpenAIAdapter

__all__ = [
    # Base types
    "CompletionRequest",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "RawCompletion",
    "TaskType",
    # Adapters
    "ClaudeAdapter",
    "MockLLMProvider",
    "OpenAIAdapter",
]
