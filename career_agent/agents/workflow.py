"""Workflow driver: one user turn from message to final state.

    user message → append → orchestrate → [next_action]
        ├─ wait_for_user / error / end → done
        └─ analyze_cv | find_jobs | track_application | enhance_letter
               → handler → done

A turn runs at most one handler. When the handler finishes the turn ends;
the orchestrator runs again only when the next user message arrives. A
handler that leaves a non-terminal next_action behind is treated as
wait_for_user.

The loop in run_turn() is plain Python over the pure reducers in
agents.state. create_career_graph() builds the same flow as a LangGraph
StateGraph for callers that want checkpointing or streaming.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from langgraph.graph import END, StateGraph

from career_agent.agents.application_tracker import track_application
from career_agent.agents.ats_assessor import assess_cv
from career_agent.agents.base import AgentContext, DocumentStore
from career_agent.agents.job_matcher import find_jobs
from career_agent.agents.letter_enhancer import enhance_letter
from career_agent.agents.orchestrator import orchestrate
from career_agent.agents.state import (
    TERMINAL_ACTIONS,
    ConversationState,
    StateUpdate,
    WorkflowAction,
    apply_update,
    make_message,
    now_iso,
)
from career_agent.core.config import Settings
from career_agent.providers.llm.base import LLMProvider

logger = logging.getLogger(__name__)

Handler = Callable[[ConversationState, AgentContext], Awaitable[StateUpdate]]

HANDLERS: dict[WorkflowAction, Handler] = {
    WorkflowAction.ANALYZE_CV: assess_cv,
    WorkflowAction.FIND_JOBS: find_jobs,
    WorkflowAction.TRACK_APPLICATION: track_application,
    WorkflowAction.ENHANCE_LETTER: enhance_letter,
}

# Orchestrator plus one handler
MAX_STEPS_PER_TURN = 2


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one turn.

    Attributes:
        state: State after the turn.
        new_messages: Messages the assistant added during the turn.
    """

    state: ConversationState
    new_messages: list[dict[str, Any]]

    @property
    def next_action(self) -> str:
        return self.state["next_action"]


def _current_action(state: ConversationState) -> WorkflowAction:
    try:
        return WorkflowAction(state.get("next_action"))
    except ValueError:
        logger.warning("Unknown next_action %r treated as wait_for_user", state.get("next_action"))
        return WorkflowAction.WAIT_FOR_USER


def _apply(state: ConversationState, update: StateUpdate) -> ConversationState:
    return apply_update(state, {**update, "timestamp": now_iso()})


async def run_turn(
    state: ConversationState,
    user_message: str | None,
    *,
    llm: LLMProvider,
    store: DocumentStore,
    settings: Settings,
) -> TurnResult:
    """Run one turn of the conversation.

    Args:
        state: State at the start of the turn. Not modified.
        user_message: New user message. None runs the orchestrator on the
            state as is (an empty conversation yields the welcome message).
        llm: Model provider.
        store: Document store.
        settings: Application settings.

    Returns:
        TurnResult with the final state and the assistant messages added.

    Raises:
        ValueError: If user_message is blank.
    """
    ctx = AgentContext(llm=llm, store=store, settings=settings)

    if user_message is not None:
        if not user_message.strip():
            raise ValueError("user_message must not be blank")
        state = _apply(
            state,
            {"messages": [make_message("user", user_message)], "error": None},
        )
    start = len(state.get("messages") or [])

    state = _apply(state, await orchestrate(state, ctx))
    action = _current_action(state)
    steps = 1

    while action not in TERMINAL_ACTIONS and steps < MAX_STEPS_PER_TURN:
        handler = HANDLERS.get(action)
        if handler is None:
            break
        logger.info("Dispatching %s", action.value)
        state = _apply(state, await handler(state, ctx))
        action = _current_action(state)
        steps += 1

    if action not in TERMINAL_ACTIONS or state.get("next_action") != action.value:
        state = _apply(state, {"next_action": WorkflowAction.WAIT_FOR_USER.value})

    return TurnResult(state=state, new_messages=list(state["messages"][start:]))


# =============================================================================
# LangGraph
# =============================================================================


def _bind(node: Handler, ctx: AgentContext) -> Callable[[ConversationState], Awaitable[StateUpdate]]:
    async def run(state: ConversationState) -> StateUpdate:
        return await node(state, ctx)

    run.__name__ = node.__name__
    return run


def route_next_action(state: ConversationState) -> str:
    """Conditional edge after the orchestrator: a handler node or END."""
    action = _current_action(state)
    if action in HANDLERS:
        return action.value
    return END


def create_career_graph(
    llm: LLMProvider, store: DocumentStore, settings: Settings
) -> StateGraph:
    """Create the career assistant LangGraph graph.

    Graph structure:
        orchestrator → [route_next_action]
            ├─ analyze_cv        → END
            ├─ find_jobs         → END
            ├─ track_application → END
            ├─ enhance_letter    → END
            └─ anything else     → END

    Nodes return partial updates; ``messages`` is combined by the same
    append reducer run_turn() uses.

    Returns:
        Configured StateGraph (not compiled).
    """
    ctx = AgentContext(llm=llm, store=store, settings=settings)
    graph = StateGraph(ConversationState)

    graph.add_node("orchestrator", _bind(orchestrate, ctx))
    for action, handler in HANDLERS.items():
        graph.add_node(action.value, _bind(handler, ctx))
        graph.add_edge(action.value, END)

    graph.set_entry_point("orchestrator")
    graph.add_conditional_edges(
        "orchestrator",
        route_next_action,
        {**{action.value: action.value for action in HANDLERS}, END: END},
    )
    return graph
