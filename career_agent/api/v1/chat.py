"""Chat API router.

Endpoints:
- POST /sessions: Start a conversation (returns the welcome message)
- GET /sessions/{session_id}: Current session snapshot
- POST /sessions/{session_id}/messages: Run one turn with a user message
- PUT /sessions/{session_id}/context: Set CV, target job, letter or application
- DELETE /sessions/{session_id}: End a conversation

Turns on the same session are serialized by the session lock; the context
endpoint takes the same lock so it never interleaves with a running turn.
"""

import logging

from fastapi import APIRouter, Response, status

from career_agent.agents.base import DocumentStore
from career_agent.agents.state import StateUpdate, apply_update, now_iso
from career_agent.agents.workflow import run_turn
from career_agent.api.deps import LLM, AppSettings, CurrentUserId, Sessions, Store
from career_agent.core.errors import NotFoundError
from career_agent.core.responses import DataResponse
from career_agent.schemas.chat import (
    ChatMessageOut,
    ChatMessageRequest,
    CreateSessionRequest,
    SessionContextRequest,
    SessionResponse,
    TurnResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _load_cv(store: DocumentStore, user_id: str, cv_id: str) -> dict:
    cv_data = await store.get_cv(user_id, cv_id)
    if cv_data is None:
        raise NotFoundError("CV", cv_id)
    return cv_data


async def _check_application(
    store: DocumentStore, user_id: str, application_id: str
) -> None:
    if await store.get_application(user_id, application_id) is None:
        raise NotFoundError("Application", application_id)


# =============================================================================
# Sessions
# =============================================================================


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    user_id: CurrentUserId,
    sessions: Sessions,
    store: Store,
    llm: LLM,
    app_settings: AppSettings,
    body: CreateSessionRequest | None = None,
) -> DataResponse[SessionResponse]:
    """Start a conversation.

    The new session runs one turn without a user message, which produces
    the welcome message without calling the model.

    Raises:
        NotFoundError: If cv_id or application_id does not exist for the user.
    """
    body = body or CreateSessionRequest()

    context: dict = {}
    if body.cv_id:
        context["cv_id"] = body.cv_id
        context["cv_data"] = await _load_cv(store, user_id, body.cv_id)
    if body.target_job is not None:
        context["target_job"] = body.target_job.model_dump()
    if body.application_id:
        await _check_application(store, user_id, body.application_id)
        context["application_id"] = body.application_id

    state = sessions.create(user_id, **context)
    async with sessions.locked(user_id, state["session_id"]) as handle:
        result = await run_turn(
            handle.state, None, llm=llm, store=store, settings=app_settings
        )
        handle.save(result.state)

    logger.info("Chat session created")
    return DataResponse(data=SessionResponse.from_state(result.state))


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    user_id: CurrentUserId,
    sessions: Sessions,
) -> DataResponse[SessionResponse]:
    """Current state of a conversation.

    Raises:
        NotFoundError: If the session does not exist for this user.
    """
    return DataResponse(
        data=SessionResponse.from_state(sessions.get(user_id, session_id))
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    user_id: CurrentUserId,
    sessions: Sessions,
) -> Response:
    """End a conversation and drop its state."""
    async with sessions.locked(user_id, session_id):
        pass
    sessions.delete(user_id, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Turns
# =============================================================================


@router.post("/sessions/{session_id}/messages")
async def send_chat_message(
    session_id: str,
    body: ChatMessageRequest,
    user_id: CurrentUserId,
    sessions: Sessions,
    store: Store,
    llm: LLM,
    app_settings: AppSettings,
) -> DataResponse[TurnResponse]:
    """Send a message and run one turn.

    Returns:
        DataResponse with the assistant replies from this turn and the
        updated session.

    Raises:
        NotFoundError: If the session does not exist for this user.
    """
    async with sessions.locked(user_id, session_id) as handle:
        result = await run_turn(
            handle.state, body.content, llm=llm, store=store, settings=app_settings
        )
        handle.save(result.state)

    return DataResponse(
        data=TurnResponse(
            replies=[ChatMessageOut(**m) for m in result.new_messages],
            session=SessionResponse.from_state(result.state),
        )
    )


# =============================================================================
# Context
# =============================================================================


@router.put("/sessions/{session_id}/context")
async def update_session_context(
    session_id: str,
    body: SessionContextRequest,
    user_id: CurrentUserId,
    sessions: Sessions,
    store: Store,
) -> DataResponse[SessionResponse]:
    """Set or clear the CV, target job, current letter or application.

    A new CV drops the previous assessment and job matches. A new target
    job drops the stored letter unless the same request supplies one.

    Raises:
        NotFoundError: If the session, CV or application does not exist.
    """
    sessions.get(user_id, session_id)

    fields = body.model_fields_set
    update: StateUpdate = {}

    if "cv_id" in fields:
        update["cv_id"] = body.cv_id
        update["cv_data"] = (
            await _load_cv(store, user_id, body.cv_id) if body.cv_id else None
        )
        update["cv_analysis"] = None
        update["job_matches"] = None

    if "target_job" in fields:
        update["target_job"] = (
            body.target_job.model_dump() if body.target_job is not None else None
        )
        if "cover_letter" not in fields:
            update["cover_letter"] = None

    if "cover_letter" in fields:
        update["cover_letter"] = body.cover_letter

    if "application_id" in fields:
        if body.application_id:
            await _check_application(store, user_id, body.application_id)
        update["application_id"] = body.application_id

    async with sessions.locked(user_id, session_id) as handle:
        if update:
            handle.save(apply_update(handle.state, {**update, "timestamp": now_iso()}))
        state = handle.state

    return DataResponse(data=SessionResponse.from_state(state))
