"""ATS Assessor: structured CV quality report.

The CV is normalized, then rendered through cv_sanitization so that no
literal email, phone number or name reaches the model. The model's JSON is
validated strictly; an assessment that fails validation is a hard error for
the turn and the previous cv_analysis stays in place.
"""

import logging
from typing import Any

from career_agent.agents.base import AgentContext, ModelOutputError, request_structured
from career_agent.agents.state import (
    ConversationState,
    CVAnalysisResult,
    StateUpdate,
    WorkflowAction,
    make_message,
)
from career_agent.prompts.ats_assessment import ATS_SYSTEM_PROMPT, build_ats_prompt
from career_agent.providers.errors import ProviderError
from career_agent.providers.llm.base import TaskType
from career_agent.schemas.agent_outputs import ATSAssessmentPayload, CVAnalysisSchema
from career_agent.services.cv_normalization import normalize_cv
from career_agent.services.cv_sanitization import format_cv_for_analysis

logger = logging.getLogger(__name__)

MISSING_CV_MESSAGE = (
    "I need your CV data to perform an ATS assessment. "
    "Please select or upload a CV first."
)

ASSESSMENT_ERROR_MESSAGE = (
    "I encountered an error while assessing your CV. Please try again or "
    "contact support if the problem persists."
)

_SUMMARY_ITEMS = 3


def to_analysis_result(payload: ATSAssessmentPayload) -> CVAnalysisResult:
    """Convert validated model output into the state representation.

    The core record goes through CVAnalysisSchema, so a value that entered
    state always satisfies the state schema. The raw ATS breakdown and the
    explanation ride along for the UI.
    """
    analysis = CVAnalysisSchema(
        overall_score=payload.overall_score,
        ats_score=payload.ats_score,
        content_score=payload.content_score,
        strengths=payload.strengths,
        weaknesses=payload.weaknesses,
        suggestions=payload.suggestions,
        details=payload.score_details(),
    )
    result: CVAnalysisResult = analysis.model_dump()  # type: ignore[assignment]
    result["ats_details"] = payload.details.model_dump() if payload.details else None
    result["explanation"] = (
        payload.explanation.model_dump() if payload.explanation else None
    )
    return result


def format_assessment_message(analysis: CVAnalysisResult) -> str:
    """User-facing summary of an assessment."""
    lines = [
        "## 📊 CV Assessment Complete",
        "",
        f"**Overall:** {analysis['overall_score']}/100 | "
        f"**ATS:** {analysis['ats_score']}/100 | "
        f"**Content:** {analysis['content_score']}/100",
        "",
        "### Strengths",
        *(f"- {s}" for s in analysis["strengths"][:_SUMMARY_ITEMS]),
        "",
        "### Areas to Improve",
        *(f"- {w}" for w in analysis["weaknesses"][:_SUMMARY_ITEMS]),
        "",
        "### Top Suggestions",
        *(
            f"{i}. {s}"
            for i, s in enumerate(analysis["suggestions"][:_SUMMARY_ITEMS], start=1)
        ),
    ]
    explanation = analysis.get("explanation") or {}
    if explanation.get("grade_explanation"):
        lines += ["", explanation["grade_explanation"]]
    lines += ["", "Review the detailed analysis in the assessment panel."]
    return "\n".join(lines)


async def _persist(
    state: ConversationState, analysis: dict[str, Any], ctx: AgentContext
) -> None:
    user_id = state.get("user_id")
    cv_id = state.get("cv_id")
    if not (user_id and cv_id):
        return
    try:
        await ctx.store.save_cv_analysis(user_id, cv_id, analysis)
    except Exception:
        # A storage failure does not invalidate the assessment itself
        logger.exception("Failed to save CV analysis")


async def assess_cv(state: ConversationState, ctx: AgentContext) -> StateUpdate:
    """Produce a CV assessment for the CV in state.

    Args:
        state: Current conversation state.
        ctx: Agent collaborators.

    Returns:
        Partial state update. On success it carries cv_analysis; on failure
        next_action is "error" and cv_analysis is absent from the update.
    """
    cv_data = state.get("cv_data")
    if not cv_data:
        return {
            "messages": [make_message("assistant", MISSING_CV_MESSAGE)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
        }

    try:
        cv = normalize_cv(cv_data)
        prompt = build_ats_prompt(
            format_cv_for_analysis(cv),
            max_chars=ctx.settings.max_cv_prompt_chars,
        )
        payload = await request_structured(
            ctx,
            system_prompt=ATS_SYSTEM_PROMPT,
            user_prompt=prompt,
            task=TaskType.ATS_ASSESSMENT,
            schema=ATSAssessmentPayload,
            temperature=ctx.settings.assessment_temperature,
        )
        analysis = to_analysis_result(payload)
        await _persist(state, dict(analysis), ctx)

        logger.info(
            "ATS assessment complete (overall=%d, ats=%d, content=%d)",
            analysis["overall_score"],
            analysis["ats_score"],
            analysis["content_score"],
        )
        return {
            "cv_analysis": analysis,
            "messages": [make_message("assistant", format_assessment_message(analysis))],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
            "error": None,
        }

    except ModelOutputError as e:
        logger.warning("ATS assessment output rejected: %s", e.reason)
        error = f"ats_assessor: {e.reason}"
    except ProviderError as e:
        logger.warning("ATS assessment provider failure: %s", type(e).__name__)
        error = f"ats_assessor: provider error ({type(e).__name__})"
    except Exception as e:
        logger.exception("ATS assessment failed")
        error = f"ats_assessor: {type(e).__name__}"

    return {
        "error": error,
        "messages": [make_message("assistant", ASSESSMENT_ERROR_MESSAGE)],
        "next_action": WorkflowAction.ERROR.value,
    }
