"""Chat API request/response schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from career_agent.agents.state import ConversationState

# =============================================================================
# Request Schemas
# =============================================================================


class TargetJobInput(BaseModel):
    """Job the user wants help with."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=300)
    company: str = Field(..., min_length=1, max_length=300)
    description: str = Field(default="", max_length=50000)
    url: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=300)
    salary: str | None = Field(default=None, max_length=100)
    remote: bool | None = None


class CreateSessionRequest(BaseModel):
    """Request body for POST /chat/sessions. Every field is optional."""

    model_config = ConfigDict(extra="forbid")

    cv_id: str | None = Field(default=None, max_length=100)
    target_job: TargetJobInput | None = None
    application_id: str | None = Field(default=None, max_length=100)


class ChatMessageRequest(BaseModel):
    """Request body for POST /chat/sessions/{session_id}/messages.

    Attributes:
        content: The user's message text.
    """

    model_config = ConfigDict(extra="forbid")

    content: str = Field(..., max_length=10000, description="User message content")

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: str) -> str:
        """Strip whitespace from content."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        """Validate content is not empty after stripping."""
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


class SessionContextRequest(BaseModel):
    """Request body for PUT /chat/sessions/{session_id}/context.

    Only the fields present in the body change. Sending null clears a field.
    Changing target_job without a cover_letter clears the stored letter,
    since it was written for the previous job.
    """

    model_config = ConfigDict(extra="forbid")

    cv_id: str | None = Field(default=None, max_length=100)
    target_job: TargetJobInput | None = None
    cover_letter: str | None = Field(default=None, max_length=20000)
    application_id: str | None = Field(default=None, max_length=100)


# =============================================================================
# Response Schemas
# =============================================================================


class ChatMessageOut(BaseModel):
    role: str
    content: str
    timestamp: str


class SessionResponse(BaseModel):
    """Client view of a conversation.

    Raw CV data is never echoed back; has_cv says whether one is loaded.
    Internal failure causes are not exposed either.
    """

    session_id: str
    messages: list[ChatMessageOut]
    current_intent: str | None = None
    cv_id: str | None = None
    has_cv: bool = False
    target_job: dict[str, Any] | None = None
    cv_analysis: dict[str, Any] | None = None
    job_matches: list[dict[str, Any]] | None = None
    application_id: str | None = None
    cover_letter: str | None = None
    next_action: str
    timestamp: str | None = None

    @classmethod
    def from_state(cls, state: ConversationState) -> "SessionResponse":
        return cls(
            session_id=state["session_id"],
            messages=[ChatMessageOut(**m) for m in state.get("messages") or []],
            current_intent=state.get("current_intent"),
            cv_id=state.get("cv_id"),
            has_cv=bool(state.get("cv_data")),
            target_job=state.get("target_job"),
            cv_analysis=state.get("cv_analysis"),
            job_matches=state.get("job_matches"),
            application_id=state.get("application_id"),
            cover_letter=state.get("cover_letter"),
            next_action=state["next_action"],
            timestamp=state.get("timestamp"),
        )


class TurnResponse(BaseModel):
    """Result of one chat turn.

    Attributes:
        replies: Assistant messages produced by this turn, in order.
        session: Session after the turn.
    """

    replies: list[ChatMessageOut]
    session: SessionResponse
