"""OpenAI adapter (default provider).

Every task goes through chat completions. json_mode maps to the native
``response_format={"type": "json_object"}``.
"""

from typing import TYPE_CHECKING

import openai
from openai import AsyncOpenAI

from career_agent.providers.errors import ProviderError, classify_sdk_error
from career_agent.providers.llm.base import (
    CompletionRequest,
    LLMProvider,
    RawCompletion,
    TaskType,
)

if TYPE_CHECKING:
    from career_agent.providers.config import ProviderConfig


# Extraction-style tasks are cheap and frequent; scoring and writing need the larger model
DEFAULT_OPENAI_ROUTING: dict[str, str] = {
    TaskType.INTENT_CLASSIFICATION.value: "gpt-4o-mini",
    TaskType.APPLICATION_TRACKING.value: "gpt-4o-mini",
    TaskType.JOB_MATCHING.value: "gpt-4o",
    TaskType.ATS_ASSESSMENT.value: "gpt-4o",
    TaskType.COVER_LETTER.value: "gpt-4o",
}

DEFAULT_OPENAI_MODEL = "gpt-4o"


def _classify_openai_error(error: Exception) -> ProviderError:
    return classify_sdk_error(error, openai)


class OpenAIAdapter(LLMProvider):
    """Chat-completions adapter built on the OpenAI SDK."""

    @property
    def provider_name(self) -> str:
        return "openai"

    def __init__(self, config: "ProviderConfig") -> None:
        super().__init__(config)
        self.client = AsyncOpenAI(api_key=config.openai_api_key)
        self.model_routing = {**DEFAULT_OPENAI_ROUTING, **(config.openai_model_routing or {})}

    def get_model_for_task(self, task: TaskType) -> str:
        return self.model_routing.get(task.value, DEFAULT_OPENAI_MODEL)

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                messages=[{"role": m.role, "content": m.content} for m in request.messages],
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                response_format={"type": "json_object"} if request.json_mode else openai.NOT_GIVEN,
            )
        except openai.OpenAIError as e:
            raise _classify_openai_error(e) from e

        choice = response.choices[0]
        return RawCompletion(
            content=choice.message.content,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
            finish_reason=choice.finish_reason or "unknown",
        )
