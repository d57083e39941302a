"""Deterministic provider for tests.

Canned responses and errors are configured per TaskType. Requests go through
the normal ``complete()`` lifecycle with retries disabled, and each resolved
request is recorded so tests can assert on prompts and sampling settings.
"""

from typing import Any

from career_agent.providers.config import ProviderConfig
from career_agent.providers.llm.base import (
    CompletionRequest,
    LLMProvider,
    RawCompletion,
    TaskType,
)


class MockLLMProvider(LLMProvider):
    """Provider double.

    Unconfigured tasks answer "Mock response for <task>", which contains no
    JSON and so reads as unusable output to every agent.

    Attributes:
        responses: Canned response text per task.
        errors: Exception to raise per task; takes precedence over responses.
        calls: One record per request: task, messages and sampling kwargs.
        last_task: Task of the most recent request.
    """

    def __init__(
        self,
        responses: dict[TaskType, str] | None = None,
        errors: dict[TaskType, Exception] | None = None,
    ) -> None:
        super().__init__(ProviderConfig(llm_provider="mock", max_retries=0))
        self.responses: dict[TaskType, str] = dict(responses or {})
        self.errors: dict[TaskType, Exception] = dict(errors or {})
        self.calls: list[dict[str, Any]] = []
        self.last_task: TaskType | None = None

    @property
    def provider_name(self) -> str:
        return "mock"

    def get_model_for_task(self, _task: TaskType) -> str:
        return "mock-model"

    def set_response(self, task: TaskType, content: str) -> None:
        self.responses[task] = content

    def set_error(self, task: TaskType, error: Exception) -> None:
        self.errors[task] = error

    async def _send(self, request: CompletionRequest) -> RawCompletion:
        self.calls.append(
            {
                "task": request.task,
                "messages": request.messages,
                "kwargs": {
                    "max_tokens": request.max_tokens,
                    "temperature": request.temperature,
                    "json_mode": request.json_mode,
                },
            }
        )
        self.last_task = request.task

        error = self.errors.get(request.task)
        if error is not None:
            raise error

        return RawCompletion(
            content=self.responses.get(request.task, f"Mock response for {request.task.value}"),
            input_tokens=100,
            output_tokens=50,
            finish_reason="stop",
        )

    # -------------------------------------------------------------------------
    # Assertions
    # -------------------------------------------------------------------------

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def tasks_called(self) -> list[TaskType]:
        """Tasks of all recorded requests, in order."""
        return [c["task"] for c in self.calls]

    def assert_called_with_task(self, task: TaskType) -> None:
        called = self.tasks_called()
        assert task in called, f"Expected a {task} request, got {called}"

    def assert_not_called_with_task(self, task: TaskType) -> None:
        called = self.tasks_called()
        assert task not in called, f"Unexpected {task} request in {called}"
