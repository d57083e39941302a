"""Anthropic adapter, selected with LLM_PROVIDER=claude.

Anthropic takes the system prompt as a separate parameter and has no JSON
response mode; json_mode is expressed as an extra system instruction.
"""

from typing import TYPE_CHECKING

import anthropic
from anthropic import AsyncAnthropic

from career_agent.providers.errors import ProviderError, classify_sdk_error
from career_agent.providers.llm.base import (
    CompletionRequest,
    LLMMessage,
    LLMProvider,
    RawCompletion,
    TaskType,
)

if TYPE_CHECKING:
    from career_agent.providers.config import ProviderConfig


_HAIKU = "claude-3-5-haiku-20241022"
_SONNET = "claude-3-5-sonnet-20241022"

DEFAULT_CLAUDE_ROUTING: dict[str, str] = {
    TaskType.INTENT_CLASSIFICATION.value: _HAIKU,
    TaskType.APPLICATION_TRACKING.value: _HAIKU,
    TaskType.JOB_MATCHING.value: _SONNET,
    TaskType.ATS_ASSESSMENT.value: _SONNET,
    TaskType.COVER_LETTER.value: _SONNET,
}

DEFAULT_CLAUDE_MODEL = _SONNET

JSON_ONLY_INSTRUCTION = (
    "Respond ONLY with a single valid JSON object. No prose, no markdown fences."
)


def _classify_claude_error(error: Exception) -> ProviderError:
    return classify_sdk_error(
        error, anthropic, context_markers=("context_length", "prompt is too long")
    )


def _convert_claude_messages(
    messages: list[LLMMessage],
) -> tuple[str | None, list[dict]]:
    """Split out the system prompt; Anthropic takes it as its own parameter."""
    system = [m.content for m in messages if m.role == "system"]
    turns = [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]
    return ("\n\n".join(system) if system else None), turns


class ClaudeAdapter(LLMProvider):
    """Messages-API adapter built on the Anthropic SDK."""

    @property
    def provider_name(self) -> str:
        return "claude"

    def __init__(self, config: "ProviderConfig") -> None:
        super().__init__(config)
        self.client = AsyncAnthropic(api_key=config.anthropic_api_key)
        self.model_routing = {**DEFAULT_CLAUDE_ROUTING, **(config.claude_model_routing or {})}

    def get_model_for_task(self, task: TaskType) -> str:
        return self.model_routing.get(task.value, DEFAULT_CLAUDE_MODEL)

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        system, turns = _convert_claude_messages(request.messages)
        if request.json_mode:
            system = f"{system}\n\n{JSON_ONLY_INSTRUCTION}" if system else JSON_ONLY_INSTRUCTION

        try:
            response = await self.client.messages.create(
                model=request.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                system=system or anthropic.NOT_GIVEN,
                messages=turns,  # type: ignore[arg-type]
            )
        except anthropic.AnthropicError as e:
            raise _classify_claude_error(e) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        return RawCompletion(
            content=text or None,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            finish_reason=response.stop_reason or "unknown",
        )
