"""LLM provider interface.

LLMProvider is the injected collaborator every agent talks to. Agents build a
system + user message pair, pick a TaskType for model routing and receive the
model's free text back; nothing in the agents depends on a vendor SDK.

    agent → complete(messages, task)
              ├─ route task → model
              ├─ with_retries(_send)   ← adapter: one vendor request
              └─ LLMResponse (+ structlog usage events)

Adapters implement ``_send`` and ``get_model_for_task``; the request
lifecycle (routing, defaults, retries, timing, logging) lives here once.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from career_agent.providers.errors import ProviderError
from career_agent.providers.retry import with_retries

if TYPE_CHECKING:
    from career_agent.providers.config import ProviderConfig

logger = structlog.get_logger()


class TaskType(Enum):
    """Model calls the agents make. Each adapter routes these to a model."""

    INTENT_CLASSIFICATION = "intent_classification"
    ATS_ASSESSMENT = "ats_assessment"
    COVER_LETTER = "cover_letter"
    JOB_MATCHING = "job_matching"
    APPLICATION_TRACKING = "application_tracking"


@dataclass
class LLMMessage:
    """One prompt message. ``role`` is "system", "user" or "assistant"."""

    role: str
    content: str


@dataclass
class LLMResponse:
    """What a completion produced.

    Attributes:
        content: Text response (None if the provider returned no text).
        model: Model that served the request.
        input_tokens: Prompt tokens billed.
        output_tokens: Completion tokens billed.
        finish_reason: Why generation stopped ("stop", "max_tokens", ...).
        latency_ms: Wall time across all attempts.
    """

    content: str | None
    model: str
    input_tokens: int
    output_tokens: int
    finish_reason: str
    latency_ms: float


@dataclass(frozen=True)
class CompletionRequest:
    """A fully resolved request handed to an adapter's ``_send``."""

    task: TaskType
    model: str
    messages: list[LLMMessage]
    max_tokens: int
    temperature: float
    json_mode: bool


@dataclass(frozen=True)
class RawCompletion:
    """Vendor-neutral result of one successful ``_send``."""

    content: str | None
    input_tokens: int
    output_tokens: int
    finish_reason: str


class LLMProvider(ABC):
    """Base class for model providers."""

    def __init__(self, config: "ProviderConfig") -> None:
        self.config = config

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier used in logs ("openai", "claude", ...)."""
        ...

    @abstractmethod
    def get_model_for_task(self, task: TaskType) -> str:
        """Model identifier the routing table assigns to ``task``."""
        ...

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        """Perform one vendor request.

        Adapters that rely on the default ``complete()`` implement this and
        raise a ProviderError subclass for any SDK failure.
        """
        raise NotImplementedError

    async def complete(
        self,
        messages: list[LLMMessage],
        task: TaskType,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Prompt messages, system first.
            task: Task type for model routing.
            max_tokens: Override ``config.default_max_tokens``.
            temperature: Override ``config.default_temperature``.
            json_mode: Ask the provider to emit a JSON object. The caller
                still treats the output as untrusted text.

        Returns:
            LLMResponse with the model's text.

        Raises:
            ProviderError: On failure, after retrying transient errors.
        """
        request = CompletionRequest(
            task=task,
            model=self.get_model_for_task(task),
            messages=messages,
            max_tokens=max_tokens if max_tokens is not None else self.config.default_max_tokens,
            temperature=temperature
            if temperature is not None
            else self.config.default_temperature,
            json_mode=json_mode,
        )
        log = logger.bind(provider=self.provider_name, model=request.model, task=task.value)
        log.info("llm_request_start", message_count=len(messages), json_mode=json_mode)

        async def attempt() -> RawCompletion:
            try:
                return await self._send(request)
            except ProviderError as e:
                log.error("llm_request_failed", error_type=type(e).__name__)
                raise

        start = time.monotonic()
        raw = await with_retries(
            attempt, self.config, operation=f"{self.provider_name}:{task.value}"
        )
        latency_ms = (time.monotonic() - start) * 1000

        log.info(
            "llm_request_complete",
            input_tokens=raw.input_tokens,
            output_tokens=raw.output_tokens,
            finish_reason=raw.finish_reason,
            latency_ms=round(latency_ms, 1),
        )
        return LLMResponse(
            content=raw.content,
            model=request.model,
            input_tokens=raw.input_tokens,
            output_tokens=raw.output_tokens,
            finish_reason=raw.finish_reason,
            latency_ms=latency_ms,
        )
