"""Shared collaborators for the agents.

Agents never reach for globals. Everything they talk to is bundled into an
AgentContext and passed in:

    ┌──────────────┐
    │ AgentContext │
    └──────┬───────┘
           ├── llm       LLMProvider (OpenAI, Claude, Mock)
           ├── store     DocumentStore (CV / job / application records)
           └── settings  Settings (timeouts, temperatures, prompt limits)

The document store is consumed through a Protocol. InMemoryDocumentStore backs
tests and the default app; a database-backed store only has to satisfy the
same methods.

request_structured() is the single path for a model call that must yield a
validated object: it applies the per-call deadline, extracts the JSON object
and validates it, raising ModelOutputError for anything unusable.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from career_agent.agents.validation import FieldIssue, parse_model_output
from career_agent.core.config import Settings
from career_agent.providers.llm.base import LLMMessage, LLMProvider, TaskType
from career_agent.schemas.agent_outputs import ApplicationStatus
from career_agent.schemas.applications import ApplicationRecord

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


# =============================================================================
# Errors
# =============================================================================


class ModelOutputError(Exception):
    """Model output was unusable: empty, no JSON, schema-invalid or timed out.

    Attributes:
        reason: Short internal description, safe to log.
        issues: Field-level validation issues, if any.
    """

    def __init__(self, reason: str, issues: tuple[FieldIssue, ...] = ()) -> None:
        self.reason = reason
        self.issues = issues
        super().__init__(reason)


# =============================================================================
# Document Store
# =============================================================================


class DocumentStore(Protocol):
    """Persistence the agents consume. Every method is scoped by user_id."""

    async def get_cv(self, user_id: str, cv_id: str) -> dict[str, Any] | None:
        """Raw CV document, or None if the user has no such CV."""
        ...

    async def list_job_postings(
        self, user_id: str, *, limit: int = 20
    ) -> list[dict[str, Any]]:
        """Candidate postings for matching, newest first."""
        ...

    async def save_cv_analysis(
        self, user_id: str, cv_id: str, analysis: dict[str, Any]
    ) -> None:
        """Persist an assessment result."""
        ...

    async def create_application(
        self, user_id: str, data: dict[str, Any]
    ) -> ApplicationRecord:
        """Create a tracked application."""
        ...

    async def get_application(
        self, user_id: str, application_id: str
    ) -> ApplicationRecord | None:
        """Application by id, or None (also when owned by another user)."""
        ...

    async def update_application(
        self, user_id: str, application_id: str, changes: dict[str, Any]
    ) -> ApplicationRecord | None:
        """Apply field changes; None if the application does not exist."""
        ...

    async def list_applications(
        self, user_id: str, *, status: ApplicationStatus | None = None
    ) -> list[ApplicationRecord]:
        """Applications for a user, most recently updated first."""
        ...


class InMemoryDocumentStore:
    """Dict-backed DocumentStore.

    Attributes:
        cvs: (user_id, cv_id) → raw CV document.
        job_postings: user_id → postings.
        analyses: Saved assessments in insertion order.
        applications: application_id → record.
    """

    def __init__(self) -> None:
        self.cvs: dict[tuple[str, str], dict[str, Any]] = {}
        self.job_postings: dict[str, list[dict[str, Any]]] = {}
        self.analyses: list[dict[str, Any]] = []
        self.applications: dict[str, ApplicationRecord] = {}

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def add_cv(self, user_id: str, cv_id: str, data: dict[str, Any]) -> None:
        self.cvs[(user_id, cv_id)] = data

    def add_job_posting(self, user_id: str, posting: dict[str, Any]) -> None:
        self.job_postings.setdefault(user_id, []).append(posting)

    # -------------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------------

    async def get_cv(self, user_id: str, cv_id: str) -> dict[str, Any] | None:
        return self.cvs.get((user_id, cv_id))

    async def list_job_postings(
        self, user_id: str, *, limit: int = 20
    ) -> list[dict[str, Any]]:
        return list(reversed(self.job_postings.get(user_id, [])))[:limit]

    async def save_cv_analysis(
        self, user_id: str, cv_id: str, analysis: dict[str, Any]
    ) -> None:
        self.analyses.append(
            {
                "user_id": user_id,
                "cv_id": cv_id,
                "analysis": analysis,
                "created_at": datetime.now(UTC),
            }
        )

    async def create_application(
        self, user_id: str, data: dict[str, Any]
    ) -> ApplicationRecord:
        now = datetime.now(UTC)
        record = ApplicationRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **data,
        )
        self.applications[record.id] = record
        return record

    async def get_application(
        self, user_id: str, application_id: str
    ) -> ApplicationRecord | None:
        record = self.applications.get(application_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    async def update_application(
        self, user_id: str, application_id: str, changes: dict[str, Any]
    ) -> ApplicationRecord | None:
        record = await self.get_application(user_id, application_id)
        if record is None:
            return None
        updated = record.model_copy(
            update={**changes, "updated_at": datetime.now(UTC)}
        )
        self.applications[application_id] = updated
        return updated

    async def list_applications(
        self, user_id: str, *, status: ApplicationStatus | None = None
    ) -> list[ApplicationRecord]:
        records = [
            r
            for r in self.applications.values()
            if r.user_id == user_id and (status is None or r.status == status)
        ]
        return sorted(records, key=lambda r: r.updated_at, reverse=True)


# =============================================================================
# Agent Context
# =============================================================================


@dataclass(frozen=True)
class AgentContext:
    """Collaborators injected into every agent node."""

    llm: LLMProvider
    store: DocumentStore
    settings: Settings


async def request_structured(
    ctx: AgentContext,
    *,
    system_prompt: str,
    user_prompt: str,
    task: TaskType,
    schema: type[T],
    temperature: float,
) -> T:
    """Call the model once and return its validated JSON output.

    Args:
        ctx: Agent collaborators.
        system_prompt: System instruction.
        user_prompt: User instruction (already sanitized by the caller).
        task: TaskType for model routing.
        schema: Pydantic model the output must satisfy.
        temperature: Sampling temperature.

    Returns:
        Validated schema instance.

    Raises:
        ModelOutputError: On timeout, empty output, missing JSON or schema
            violations.
        ProviderError: On provider failure after retries.
    """
    messages = [
        LLMMessage(role="system", content=system_prompt),
        LLMMessage(role="user", content=user_prompt),
    ]
    try:
        response = await asyncio.wait_for(
            ctx.llm.complete(
                messages, task, temperature=temperature, json_mode=True
            ),
            timeout=ctx.settings.llm_timeout_seconds,
        )
    except TimeoutError as e:
        raise ModelOutputError(
            f"model call timed out after {ctx.settings.llm_timeout_seconds}s"
        ) from e

    if not response.content:
        raise ModelOutputError("empty model response")

    result = parse_model_output(response.content, schema)
    if not result.ok:
        raise ModelOutputError(
            f"invalid {schema.__name__}: {result.describe()}", result.issues
        )
    return result.value  # type: ignore[return-value]
