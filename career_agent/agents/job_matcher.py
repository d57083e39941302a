"""Job Matcher: ranks stored postings against the user's CV.

Postings come from the document store; the model only scores them. Scores
for ids that are not among the postings are dropped, so the model cannot
invent jobs. The ranked list replaces job_matches wholesale.
"""

import logging
from typing import Any

from career_agent.agents.base import AgentContext, ModelOutputError, request_structured
from career_agent.agents.state import (
    ConversationState,
    JobMatchResult,
    StateUpdate,
    WorkflowAction,
    make_message,
)
from career_agent.prompts.job_matching import (
    JOB_MATCHING_SYSTEM_PROMPT,
    build_job_matching_prompt,
)
from career_agent.providers.errors import ProviderError
from career_agent.providers.llm.base import TaskType
from career_agent.schemas.agent_outputs import JobMatchItem, JobMatchPayload
from career_agent.services.cv_normalization import normalize_cv
from career_agent.services.cv_sanitization import summarize_cv_for_prompt

logger = logging.getLogger(__name__)

MISSING_CV_MESSAGE = (
    "I need your CV to find matching jobs. Please select or upload your CV first."
)

NO_POSTINGS_MESSAGE = (
    "I don't have any job postings to compare against yet. Save a few postings "
    "you're interested in and ask me again."
)

MATCHING_ERROR_MESSAGE = (
    "I encountered an error while matching jobs to your profile. "
    "Please try again in a moment."
)

_MESSAGE_TOP_N = 5


def rank_matches(
    items: list[JobMatchItem], postings: list[dict[str, Any]]
) -> list[JobMatchResult]:
    """Join model scores with postings and sort by score, best first.

    Unknown ids are dropped; a posting scored twice keeps its first score.
    """
    by_id = {str(p.get("id")): p for p in postings if p.get("id") is not None}
    seen: set[str] = set()
    results: list[JobMatchResult] = []

    for item in items:
        posting = by_id.get(item.job_id)
        if posting is None or item.job_id in seen:
            continue
        seen.add(item.job_id)
        results.append(
            {
                "id": item.job_id,
                "title": posting.get("title") or "",
                "company": posting.get("company") or "",
                "location": posting.get("location") or "",
                "salary": posting.get("salary"),
                "remote": bool(posting.get("remote")),
                "description": posting.get("description") or "",
                "url": posting.get("url") or "",
                "match_score": item.match_score,
                "match_reason": item.match_reason,
                "keyword_matches": list(item.keyword_matches),
                "source": posting.get("source") or "saved",
            }
        )

    # sorted() is stable, so equal scores keep the model's order
    return sorted(results, key=lambda r: r["match_score"], reverse=True)


def format_matches_message(matches: list[JobMatchResult]) -> str:
    if not matches:
        return (
            "None of the saved postings looked like a match for your profile. "
            "Try adding a few more postings."
        )
    lines = ["## 🎯 Job Matches", ""]
    for i, match in enumerate(matches[:_MESSAGE_TOP_N], start=1):
        lines.append(
            f"{i}. **{match['title']}** at {match['company']} "
            f"({match['match_score']}% match)"
        )
        lines.append(f"   {match['match_reason']}")
        if match["keyword_matches"]:
            lines.append(f"   Matching: {', '.join(match['keyword_matches'])}")
    if len(matches) > _MESSAGE_TOP_N:
        lines += ["", f"...and {len(matches) - _MESSAGE_TOP_N} more."]
    return "\n".join(lines)


async def find_jobs(state: ConversationState, ctx: AgentContext) -> StateUpdate:
    """Rank the user's stored postings against their CV.

    Args:
        state: Current conversation state.
        ctx: Agent collaborators.

    Returns:
        Partial state update with job_matches on success. Failures leave
        job_matches untouched.
    """
    cv_data = state.get("cv_data")
    if not cv_data:
        return {
            "messages": [make_message("assistant", MISSING_CV_MESSAGE)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
        }

    try:
        postings = await ctx.store.list_job_postings(
            state.get("user_id") or "", limit=ctx.settings.max_job_postings
        )
        if not postings:
            return {
                "messages": [make_message("assistant", NO_POSTINGS_MESSAGE)],
                "next_action": WorkflowAction.WAIT_FOR_USER.value,
            }

        prompt = build_job_matching_prompt(
            cv_facts=summarize_cv_for_prompt(normalize_cv(cv_data)),
            postings=postings,
        )
        payload = await request_structured(
            ctx,
            system_prompt=JOB_MATCHING_SYSTEM_PROMPT,
            user_prompt=prompt,
            task=TaskType.JOB_MATCHING,
            schema=JobMatchPayload,
            temperature=ctx.settings.matching_temperature,
        )
        matches = rank_matches(payload.matches, postings)
        logger.info(
            "Job matching complete (%d postings, %d matches)",
            len(postings),
            len(matches),
        )
        return {
            "job_matches": matches,
            "messages": [make_message("assistant", format_matches_message(matches))],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
            "error": None,
        }

    except ModelOutputError as e:
        logger.warning("Job matching output rejected: %s", e.reason)
        error = f"job_matcher: {e.reason}"
    except ProviderError as e:
        logger.warning("Job matching provider failure: %s", type(e).__name__)
        error = f"job_matcher: provider error ({type(e).__name__})"
    except Exception as e:
        logger.exception("Job matching failed")
        error = f"job_matcher: {type(e).__name__}"

    return {
        "error": error,
        "messages": [make_message("assistant", MATCHING_ERROR_MESSAGE)],
        "next_action": WorkflowAction.ERROR.value,
    }
