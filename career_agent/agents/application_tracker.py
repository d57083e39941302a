"""Application Tracker: records applications and status changes from chat.

The model extracts company, title, status and notes from the latest user
message. With an application_id in state that application's status is
updated; otherwise a new application is created and its id becomes the
conversation's application_id.
"""

import logging

from career_agent.agents.base import AgentContext, ModelOutputError, request_structured
from career_agent.agents.state import (
    ConversationState,
    StateUpdate,
    WorkflowAction,
    latest_user_message,
    make_message,
)
from career_agent.prompts.application_tracking import (
    APPLICATION_TRACKING_SYSTEM_PROMPT,
    build_application_tracking_prompt,
)
from career_agent.providers.errors import ProviderError
from career_agent.providers.llm.base import TaskType
from career_agent.schemas.agent_outputs import ApplicationUpdatePayload
from career_agent.schemas.applications import ApplicationRecord
from career_agent.services.application_tracking import update_application_status

logger = logging.getLogger(__name__)

MISSING_DETAILS_MESSAGE = (
    "Which company and role is this application for? Tell me the job title and "
    "company and I'll start tracking it."
)

TRACKING_ERROR_MESSAGE = (
    "I encountered an error while updating your application. "
    "Please try again in a moment."
)


def _status_label(status: str) -> str:
    return status.replace("_", " ")


def _describe(record: ApplicationRecord) -> str:
    return f"**{record.job_title}** at **{record.company}**"


async def track_application(
    state: ConversationState, ctx: AgentContext
) -> StateUpdate:
    """Create or update a tracked application from the latest user message.

    Args:
        state: Current conversation state.
        ctx: Agent collaborators.

    Returns:
        Partial state update; application_id is replaced when a new
        application is created.
    """
    user_id = state.get("user_id") or ""
    job = state.get("target_job") or {}

    try:
        existing = None
        if state.get("application_id"):
            existing = await ctx.store.get_application(user_id, state["application_id"])

        prompt = build_application_tracking_prompt(
            latest_user_message(state) or "",
            job_title=existing.job_title if existing else job.get("title"),
            company=existing.company if existing else job.get("company"),
            current_status=existing.status.value if existing else None,
            max_message_chars=ctx.settings.max_message_chars,
        )
        payload = await request_structured(
            ctx,
            system_prompt=APPLICATION_TRACKING_SYSTEM_PROMPT,
            user_prompt=prompt,
            task=TaskType.APPLICATION_TRACKING,
            schema=ApplicationUpdatePayload,
            temperature=ctx.settings.tracking_temperature,
        )

        if existing is not None:
            result = await update_application_status(
                ctx.store, user_id, existing.id, payload.status, payload.notes
            )
            if result.changed:
                text = (
                    f"📌 Updated {_describe(result.application)}: "
                    f"{_status_label(result.previous_status.value)} → "
                    f"{_status_label(result.application.status.value)}."
                )
            else:
                text = (
                    f"📌 {_describe(result.application)} is already marked as "
                    f"{_status_label(result.application.status.value)}."
                )
            return {
                "messages": [make_message("assistant", text)],
                "next_action": WorkflowAction.WAIT_FOR_USER.value,
                "error": None,
            }

        company = payload.company or job.get("company")
        job_title = payload.job_title or job.get("title")
        if not (company and job_title):
            return {
                "messages": [make_message("assistant", MISSING_DETAILS_MESSAGE)],
                "next_action": WorkflowAction.WAIT_FOR_USER.value,
            }

        record = await ctx.store.create_application(
            user_id,
            {
                "company": company,
                "job_title": job_title,
                "status": payload.status,
                "notes": payload.notes,
                "cv_id": state.get("cv_id"),
                "job_url": job.get("url"),
            },
        )
        logger.info("Application created with status %s", record.status.value)
        text = (
            f"📌 Now tracking your application for {_describe(record)} "
            f"(status: {_status_label(record.status.value)}). Tell me when "
            "anything changes and I'll keep it up to date."
        )
        return {
            "application_id": record.id,
            "messages": [make_message("assistant", text)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
            "error": None,
        }

    except ModelOutputError as e:
        logger.warning("Application tracking output rejected: %s", e.reason)
        error = f"application_tracker: {e.reason}"
    except ProviderError as e:
        logger.warning("Application tracking provider failure: %s", type(e).__name__)
        error = f"application_tracker: provider error ({type(e).__name__})"
    except Exception as e:
        logger.exception("Application tracking failed")
        error = f"application_tracker: {type(e).__name__}"

    return {
        "error": error,
        "messages": [make_message("assistant", TRACKING_ERROR_MESSAGE)],
        "next_action": WorkflowAction.ERROR.value,
    }
