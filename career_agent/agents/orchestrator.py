"""Orchestrator: intent classification, prerequisite gate and routing.

Entry point for every user turn:

    latest user message → classify_intent → prerequisite gate →
        ├─ missing cv/job   → clarifying message, wait_for_user
        ├─ general_chat     → respond_to_general_chat, wait_for_user
        └─ handler intent   → next_action = analyze_cv | find_jobs |
                              track_application | enhance_letter

Classification favours availability over strictness: unparseable or invalid
model output, and timeouts, fall back to a medium-confidence general_chat
verdict instead of failing the turn. Any other failure produces an apology
and leaves the conversation waiting for the user.
"""

import logging
import re

from career_agent.agents.base import (
    AgentContext,
    ModelOutputError,
    request_structured,
)
from career_agent.agents.state import (
    ConversationState,
    StateUpdate,
    WorkflowAction,
    latest_user_message,
    make_message,
)
from career_agent.prompts.orchestrator import INTENT_SYSTEM_PROMPT, build_intent_prompt
from career_agent.providers.llm.base import TaskType
from career_agent.schemas.agent_outputs import Intent, IntentClassification, RequiredData

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

FALLBACK_CLASSIFICATION = IntentClassification(
    intent=Intent.GENERAL_CHAT, confidence=0.5, required_data=[]
)

INTENT_TO_ACTION: dict[Intent, WorkflowAction] = {
    Intent.ANALYZE_CV: WorkflowAction.ANALYZE_CV,
    Intent.FIND_JOBS: WorkflowAction.FIND_JOBS,
    Intent.TRACK_APPLICATION: WorkflowAction.TRACK_APPLICATION,
    Intent.ENHANCE_COVER_LETTER: WorkflowAction.ENHANCE_LETTER,
    Intent.GENERAL_CHAT: WorkflowAction.RESPOND_GENERAL,
}

# Enforced even when the model leaves requiredData empty
INTENT_REQUIREMENTS: dict[Intent, tuple[RequiredData, ...]] = {
    Intent.ANALYZE_CV: (RequiredData.CV,),
    Intent.FIND_JOBS: (RequiredData.CV,),
    Intent.ENHANCE_COVER_LETTER: (RequiredData.CV, RequiredData.JOB),
}

MISSING_DATA_MESSAGES: dict[RequiredData, str] = {
    RequiredData.CV: (
        "I need your CV to help with that. Please select or upload your CV first."
    ),
    RequiredData.JOB: (
        "I need details about the job you're interested in. Please provide the "
        "job title, company, and description."
    ),
}

WELCOME_MESSAGE = (
    "Hello! I'm your AI career assistant. I can help you with:\n\n"
    "📊 **CV Analysis** - Get quality scores and improvement suggestions\n"
    "🎯 **Job Matching** - Find opportunities that fit your profile\n"
    "📝 **Cover Letters** - Generate personalized cover letters\n"
    "📌 **Application Tracking** - Keep track of your applications\n\n"
    "What would you like to do?"
)

REPHRASE_MESSAGE = (
    "I encountered an error understanding your request. "
    "Could you please rephrase that?"
)

# =============================================================================
# General Chat
# =============================================================================

_GREETING_PATTERN = re.compile(r"^(hi|hello|hey|greetings)\b")

_GREETING_REPLY = (
    "Hello! I'm your AI career assistant. I can help you with CV analysis, job "
    "matching, cover letter writing, and application tracking. What would you "
    "like to do today?"
)

_HELP_REPLY = (
    "I can assist you with:\n\n"
    "📊 **CV Analysis** - Evaluate your CV quality and ATS compatibility\n"
    "🎯 **Job Matching** - Find jobs that match your skills and experience\n"
    "📝 **Cover Letters** - Create tailored cover letters for specific jobs\n"
    "📌 **Application Tracking** - Keep track of your job applications\n\n"
    "Just tell me what you'd like to do!"
)

_THANKS_REPLY = "You're welcome! Let me know if you need anything else."

_FALLBACK_REPLY = (
    "I'm here to help with your job search! You can ask me to:\n"
    "- Analyze your CV\n"
    "- Find matching jobs\n"
    "- Write a cover letter\n"
    "- Track an application\n\n"
    "What would you like to do?"
)


def respond_to_general_chat(message: str) -> str:
    """Deterministic small-talk reply. Never calls a model.

    Checks greeting, then help, then thanks; anything else gets the
    capabilities overview.
    """
    lowered = message.strip().lower()
    if _GREETING_PATTERN.match(lowered):
        return _GREETING_REPLY
    if "what can you do" in lowered or "help" in lowered:
        return _HELP_REPLY
    if "thank" in lowered:
        return _THANKS_REPLY
    return _FALLBACK_REPLY


# =============================================================================
# Classification
# =============================================================================


async def classify_intent(
    message: str, state: ConversationState, ctx: AgentContext
) -> IntentClassification:
    """Classify a user message, falling back to general_chat on bad output.

    Args:
        message: Latest user message.
        state: Current state (for the context flags).
        ctx: Agent collaborators.

    Returns:
        Validated classification, or FALLBACK_CLASSIFICATION when the model
        output is unusable or the call timed out.

    Raises:
        ProviderError: Provider failures are not masked as a classification.
    """
    prompt = build_intent_prompt(
        message,
        has_cv=bool(state.get("cv_data")),
        has_job=bool(state.get("target_job")),
        has_application=bool(state.get("application_id")),
        max_message_chars=ctx.settings.max_message_chars,
    )
    try:
        return await request_structured(
            ctx,
            system_prompt=INTENT_SYSTEM_PROMPT,
            user_prompt=prompt,
            task=TaskType.INTENT_CLASSIFICATION,
            schema=IntentClassification,
            temperature=ctx.settings.intent_temperature,
        )
    except ModelOutputError as e:
        logger.warning("Intent classification fell back to general_chat: %s", e.reason)
        return FALLBACK_CLASSIFICATION


def missing_prerequisites(
    classification: IntentClassification, state: ConversationState
) -> list[RequiredData]:
    """Required artifacts absent from state, in a stable cv-then-job order."""
    required = set(classification.required_data)
    required.update(INTENT_REQUIREMENTS.get(classification.intent, ()))

    present = {
        RequiredData.CV: bool(state.get("cv_data")),
        RequiredData.JOB: bool(state.get("target_job")),
    }
    return [item for item in RequiredData if item in required and not present[item]]


def build_missing_data_message(missing: list[RequiredData]) -> str:
    return " ".join(MISSING_DATA_MESSAGES[item] for item in missing)


# =============================================================================
# Node
# =============================================================================


async def orchestrate(state: ConversationState, ctx: AgentContext) -> StateUpdate:
    """Classify the latest user message and decide what happens next.

    Args:
        state: Current conversation state.
        ctx: Agent collaborators.

    Returns:
        Partial state update with current_intent, next_action and possibly an
        assistant message.
    """
    try:
        message = latest_user_message(state)
        if message is None:
            return {
                "messages": [make_message("assistant", WELCOME_MESSAGE)],
                "next_action": WorkflowAction.WAIT_FOR_USER.value,
            }

        classification = await classify_intent(message, state, ctx)
        intent = classification.intent
        logger.info(
            "Classified intent: %s (confidence: %.2f)",
            intent.value,
            classification.confidence,
        )

        missing = missing_prerequisites(classification, state)
        if missing:
            return {
                "current_intent": intent.value,
                "messages": [
                    make_message("assistant", build_missing_data_message(missing))
                ],
                "next_action": WorkflowAction.WAIT_FOR_USER.value,
            }

        action = INTENT_TO_ACTION[intent]
        if action is WorkflowAction.RESPOND_GENERAL:
            return {
                "current_intent": intent.value,
                "messages": [
                    make_message("assistant", respond_to_general_chat(message))
                ],
                "next_action": WorkflowAction.WAIT_FOR_USER.value,
            }

        return {
            "current_intent": intent.value,
            "next_action": action.value,
            "error": None,
        }

    except Exception as e:
        logger.exception("Orchestration failed")
        return {
            "error": f"orchestrator: {type(e).__name__}",
            "messages": [make_message("assistant", REPHRASE_MESSAGE)],
            "next_action": WorkflowAction.WAIT_FOR_USER.value,
        }
