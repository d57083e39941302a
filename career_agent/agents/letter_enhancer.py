"""Letter Enhancer: cover letters tied to a CV and a target job.

Writes a new letter, or revises the draft held in ``cover_letter`` when one
exists. After validation the content is scanned again for blocklisted
clichés; matches are reported as warnings and the letter is still returned.
"""

import logging

from career_agent.agents.base import AgentContext, ModelOutputError, request_structured
from career_agent.agents.state import (
    ConversationState,
    StateUpdate,
    WorkflowAction,
    make_message,
)
from career_agent.prompts.cover_letter import (
    COVER_LETTER_SYSTEM_PROMPT,
    build_cover_letter_prompt,
)
from career_agent.providers.errors import ProviderError
from career_agent.providers.llm.base import TaskType
from career_agent.schemas.agent_outputs import CoverLetterSchema
from career_agent.services.cover_letter_quality import (
    ACCEPTABLE_WORD_RANGE,
    cliche_warning,
    find_cliches,
    format_letter_message,
    validate_letter_quality,
)
from career_agent.services.cv_normalization import normalize_cv
from career_agent.services.cv_sanitization import summarize_cv_for_prompt

logger = logging.getLogger(__name__)

MISSING_CV_MESSAGE = (
    "I need your CV data to create a personalized cover letter. "
    "Please select or upload a CV first."
)

MISSING_JOB_MESSAGE = (
    "Please provide the job details (title, company, description) so I can "
    "tailor the cover letter appropriately."
)

LETTER_ERROR_MESSAGE = (
    "I encountered an error while writing your cover letter. "
    "Please try again in a moment."
)


def review_letter(letter: CoverLetterSchema) -> CoverLetterSchema:
    """Re-scan a validated letter and append warnings for what the model missed.

    Returns a new CoverLetterSchema; content is never altered.
    """
    warnings = list(letter.warnings)

    cliches = find_cliches(letter.content)
    if cliches:
        logger.warning("Generated letter contains clichés: %s", ", ".join(cliches))
        warnings.append(cliche_warning(cliches))

    quality = validate_letter_quality(letter.content)
    if not quality.is_good_length:
        low, high = ACCEPTABLE_WORD_RANGE
        warnings.append(
            f"Letter is {quality.word_count} words; aim for {low}-{high}."
        )

    return letter.model_copy(update={"warnings": warnings})


async def enhance_letter(state: ConversationState, ctx: AgentContext) -> StateUpdate:
    """Generate or revise a cover letter for the target job.

    Callable on its own: missing CV or job data yields a clarifying message
    without a model call.

    Args:
        state: Current conversation state.
        ctx: Agent collaborators.

    Returns:
        Partial state update with the letter in cover_letter on success.
    """
    cv_data = state.get("cv_data")
    if not cv_data:
        return {
            "messages": [make_message("assistant", MISSING_CV_MESSAGE)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
        }

    job = state.get("target_job")
    if not job:
        return {
            "messages": [make_message("assistant", MISSING_JOB_MESSAGE)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
        }

    existing_letter = state.get("cover_letter")

    try:
        prompt = build_cover_letter_prompt(
            cv_facts=summarize_cv_for_prompt(normalize_cv(cv_data)),
            job_title=job.get("title") or "",
            company=job.get("company") or "",
            description=job.get("description") or "",
            max_description_chars=ctx.settings.max_description_chars,
            existing_letter=existing_letter,
        )
        letter = await request_structured(
            ctx,
            system_prompt=COVER_LETTER_SYSTEM_PROMPT,
            user_prompt=prompt,
            task=TaskType.COVER_LETTER,
            schema=CoverLetterSchema,
            temperature=ctx.settings.letter_temperature,
        )
        letter = review_letter(letter)

        message = format_letter_message(
            letter.content,
            letter.warnings,
            job.get("title") or "the role",
            job.get("company") or "the company",
            revised=bool(existing_letter),
        )
        return {
            "cover_letter": letter.content,
            "messages": [make_message("assistant", message)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
            "error": None,
        }

    except ModelOutputError as e:
        logger.warning("Cover letter output rejected: %s", e.reason)
        error = f"letter_enhancer: {e.reason}"
    except ProviderError as e:
        logger.warning("Cover letter provider failure: %s", type(e).__name__)
        error = f"letter_enhancer: provider error ({type(e).__name__})"
    except Exception as e:
        logger.exception("Cover letter generation failed")
        error = f"letter_enhancer: {type(e).__name__}"

    return {
        "error": error,
        "messages": [make_message("assistant", LETTER_ERROR_MESSAGE)],
        "next_action": WorkflowAction.ERROR.value,
    }
