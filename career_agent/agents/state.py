"""Conversation state schema and pure update functions.

ConversationState is the single record threaded through every step of a turn.
It is declared as a TypedDict so the same shape drives a LangGraph StateGraph;
``messages`` carries its reducer via ``Annotated`` and every other field falls
back to whole-value replacement.

Handlers and the orchestrator never return a full state. They return a partial
update (``StateUpdate``) which the driver folds in with ``apply_update``:

    state = create_initial_state("user-1", "session-1")
    state = apply_update(state, {"messages": [make_message("user", "hi")]})
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal, TypedDict, get_args, get_origin, get_type_hints

from career_agent.agents.transitions import Reducer, append_messages, replace_value

# =============================================================================
# Enums
# =============================================================================


class WorkflowAction(str, Enum):
    """Routing decision held in ``next_action``.

    Exactly one value is active at a time. WAIT_FOR_USER, ERROR and END are
    terminal for a turn; the rest name a handler.
    """

    ANALYZE_CV = "analyze_cv"
    FIND_JOBS = "find_jobs"
    TRACK_APPLICATION = "track_application"
    ENHANCE_LETTER = "enhance_letter"
    RESPOND_GENERAL = "respond_general"
    WAIT_FOR_USER = "wait_for_user"
    ERROR = "error"
    END = "end"


TERMINAL_ACTIONS = frozenset(
    {WorkflowAction.WAIT_FOR_USER, WorkflowAction.ERROR, WorkflowAction.END}
)

Role = Literal["user", "assistant", "system"]


# =============================================================================
# Records
# =============================================================================


class Message(TypedDict):
    """One conversation message. Never modified after it is appended."""

    role: Role
    content: str
    timestamp: str


class TargetJob(TypedDict, total=False):
    """Job the user is focused on. title, company and description are expected."""

    title: str
    company: str
    description: str
    url: str | None
    location: str | None
    salary: str | None
    remote: bool | None


class CVAnalysisResult(TypedDict, total=False):
    """Latest CV assessment. Replaced wholesale, no history is kept.

    Attributes:
        details: Four-part breakdown (experience_quality, skills_relevance,
            formatting, ats_compatibility) when the model supplied it.
        ats_details: Nine-part ATS breakdown when supplied.
        explanation: Grade/ATS/content explanations plus key findings.
    """

    overall_score: int
    ats_score: int
    content_score: int
    strengths: list[str]
    weaknesses: list[str]
    suggestions: list[str]
    details: dict[str, int] | None
    ats_details: dict[str, int | None] | None
    explanation: dict[str, Any] | None


class JobMatchResult(TypedDict, total=False):
    """One ranked job match."""

    id: str
    title: str
    company: str
    location: str
    salary: str | None
    remote: bool
    description: str
    url: str
    match_score: int
    match_reason: str
    keyword_matches: list[str]
    source: str


class ConversationState(TypedDict, total=False):
    """State threaded through a conversation.

    Attributes:
        user_id: Owner of the session.
        session_id: Session identifier.
        messages: Append-only, chronologically ordered history.
        current_intent: Last classified intent value.
        cv_id: Identifier of the selected CV in the document store.
        cv_data: Raw CV document as supplied by the store or caller.
        target_job: Job the user is focused on.
        cv_analysis: Latest assessment result.
        job_matches: Latest ranked match list.
        application_id: Tracked application the conversation refers to.
        cover_letter: Latest letter draft. When present, the letter handler
            revises it instead of writing from scratch.
        next_action: Routing decision (a WorkflowAction value).
        error: Internal description of the last failure, never shown verbatim.
        timestamp: ISO-8601 time of the last update.
    """

    user_id: str
    session_id: str
    messages: Annotated[list[dict[str, Any]], append_messages]
    current_intent: str | None
    cv_id: str | None
    # Any: CV documents carry many historical field aliases; normalize_cv
    # resolves them before any handler reads the content.
    cv_data: dict[str, Any] | None
    target_job: TargetJob | None
    cv_analysis: CVAnalysisResult | None
    job_matches: list[JobMatchResult] | None
    application_id: str | None
    cover_letter: str | None
    next_action: str
    error: str | None
    timestamp: str


StateUpdate = dict[str, Any]


def _build_reducers() -> dict[str, Reducer]:
    reducers: dict[str, Reducer] = {}
    hints = get_type_hints(ConversationState, include_extras=True)
    for field, hint in hints.items():
        if get_origin(hint) is Annotated:
            reducers[field] = get_args(hint)[1]
        else:
            reducers[field] = replace_value
    return reducers


STATE_REDUCERS: dict[str, Reducer] = _build_reducers()
STATE_FIELDS = frozenset(STATE_REDUCERS)


# =============================================================================
# Construction
# =============================================================================


def now_iso() -> str:
    """Current UTC time as ISO-8601."""
    return datetime.now(UTC).isoformat()


def make_message(role: Role, content: str) -> Message:
    """Build a timestamped message.

    Messages are plain dicts so state stays JSON-serializable. Nothing writes
    to one after this returns; reducers share existing message dicts and only
    ever build new lists around them.
    """
    return {"role": role, "content": content, "timestamp": now_iso()}


def create_initial_state(
    user_id: str,
    session_id: str,
    *,
    cv_id: str | None = None,
    cv_data: dict[str, Any] | None = None,
    target_job: TargetJob | None = None,
    application_id: str | None = None,
) -> ConversationState:
    """Create the empty state for a new session."""
    return {
        "user_id": user_id,
        "session_id": session_id,
        "messages": [],
        "current_intent": None,
        "cv_id": cv_id,
        "cv_data": cv_data,
        "target_job": target_job,
        "cv_analysis": None,
        "job_matches": None,
        "application_id": application_id,
        "cover_letter": None,
        "next_action": WorkflowAction.WAIT_FOR_USER.value,
        "error": None,
        "timestamp": now_iso(),
    }


# =============================================================================
# Updates
# =============================================================================


def apply_update(state: ConversationState, update: StateUpdate) -> ConversationState:
    """Combine a partial update into state, returning a new state.

    Neither argument is modified.

    Args:
        state: Current conversation state.
        update: Partial state keyed by field name.

    Returns:
        New ConversationState with each field combined by its reducer.

    Raises:
        ValueError: If the update names a field the state does not declare.
    """
    unknown = sorted(set(update) - STATE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown state field(s): {', '.join(unknown)}")

    new_state: ConversationState = dict(state)  # type: ignore[assignment]
    for field, value in update.items():
        new_state[field] = STATE_REDUCERS[field](state.get(field), value)  # type: ignore[literal-required]
    return new_state


def apply_updates(
    state: ConversationState, updates: list[StateUpdate]
) -> ConversationState:
    """Apply partial updates left to right."""
    for update in updates:
        state = apply_update(state, update)
    return state


def user_messages(state: ConversationState) -> list[dict[str, Any]]:
    """All user-authored messages in order."""
    return [m for m in state.get("messages") or [] if m.get("role") == "user"]


def latest_user_message(state: ConversationState) -> str | None:
    """Content of the most recent user message, or None."""
    messages = user_messages(state)
    return messages[-1]["content"] if messages else None
