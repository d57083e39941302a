"""Tests for conversation state and transition rules.

These tests verify:
- messages accumulate in arrival order
- every other field is replaced wholesale
- updates never mutate their inputs
- unknown fields are rejected
"""

import copy
from typing import get_type_hints

import pytest

from career_agent.agents.state import (
    STATE_FIELDS,
    STATE_REDUCERS,
    TERMINAL_ACTIONS,
    ConversationState,
    WorkflowAction,
    apply_update,
    apply_updates,
    create_initial_state,
    latest_user_message,
    make_message,
    user_messages,
)
from career_agent.agents.transitions import append_messages, replace_value

# =============================================================================
# Reducers
# =============================================================================


class TestReducers:
    """Tests for the per-field reducers."""

    def test_append_messages_concatenates_in_order(self):
        """Incoming messages go after the existing ones."""
        current = [{"content": "a"}, {"content": "b"}]
        update = [{"content": "c"}]
        assert [m["content"] for m in append_messages(current, update)] == ["a", "b", "c"]

    def test_append_messages_returns_new_list(self):
        """Neither argument is modified."""
        current = [{"content": "a"}]
        update = [{"content": "b"}]
        result = append_messages(current, update)
        assert result is not current
        assert current == [{"content": "a"}]
        assert update == [{"content": "b"}]

    def test_append_messages_handles_none(self):
        """A missing list counts as empty."""
        assert append_messages(None, [{"content": "a"}]) == [{"content": "a"}]
        assert append_messages([{"content": "a"}], None) == [{"content": "a"}]

    def test_replace_value_ignores_current(self):
        """Last write wins, even for dicts (no merge)."""
        assert replace_value({"a": 1, "b": 2}, {"c": 3}) == {"c": 3}

    def test_messages_uses_append_reducer(self):
        """messages is the only append-style field."""
        assert STATE_REDUCERS["messages"] is append_messages
        others = {f for f, r in STATE_REDUCERS.items() if r is not replace_value}
        assert others == {"messages"}

    def test_reducers_cover_every_declared_field(self):
        """Every ConversationState field has a reducer."""
        assert set(get_type_hints(ConversationState)) == STATE_FIELDS


# =============================================================================
# Construction
# =============================================================================


class TestCreateInitialState:
    """Tests for create_initial_state."""

    def test_starts_empty_and_waiting(self):
        """New sessions have no messages and wait for the user."""
        state = create_initial_state("u1", "s1")
        assert state["messages"] == []
        assert state["next_action"] == WorkflowAction.WAIT_FOR_USER.value
        assert state["cv_analysis"] is None
        assert state["error"] is None

    def test_accepts_initial_context(self):
        """CV, job and application can be supplied up front."""
        state = create_initial_state(
            "u1",
            "s1",
            cv_id="cv",
            cv_data={"skills": ["Go"]},
            target_job={"title": "T", "company": "C", "description": "D"},
            application_id="app",
        )
        assert state["cv_id"] == "cv"
        assert state["target_job"]["company"] == "C"
        assert state["application_id"] == "app"

    def test_make_message_is_timestamped(self):
        """Messages carry role, content and an ISO timestamp."""
        message = make_message("user", "hello")
        assert message["role"] == "user"
        assert message["content"] == "hello"
        assert "T" in message["timestamp"]


# =============================================================================
# apply_update
# =============================================================================


class TestApplyUpdate:
    """Tests for apply_update."""

    def test_messages_are_appended_in_arrival_order(self):
        """Two updates with one message each yield both, in order."""
        state = create_initial_state("u1", "s1")
        state = apply_update(state, {"messages": [make_message("user", "first")]})
        state = apply_update(state, {"messages": [make_message("assistant", "second")]})
        assert [m["content"] for m in state["messages"]] == ["first", "second"]

    def test_analysis_is_replaced_wholesale(self):
        """A new cv_analysis replaces the old one with no merge."""
        state = create_initial_state("u1", "s1")
        state = apply_update(
            state, {"cv_analysis": {"overall_score": 50, "strengths": ["a"]}}
        )
        state = apply_update(state, {"cv_analysis": {"overall_score": 90}})
        assert state["cv_analysis"] == {"overall_score": 90}

    def test_fields_absent_from_update_are_untouched(self):
        """Only named fields change."""
        state = create_initial_state("u1", "s1", cv_id="cv")
        state = apply_update(state, {"current_intent": "find_jobs"})
        assert state["cv_id"] == "cv"
        assert state["current_intent"] == "find_jobs"

    def test_does_not_mutate_inputs(self):
        """The previous state and the update are left intact."""
        state = create_initial_state("u1", "s1")
        before = copy.deepcopy(state)
        update = {"messages": [make_message("user", "hi")], "next_action": "end"}
        update_before = copy.deepcopy(update)

        new_state = apply_update(state, update)

        assert state == before
        assert update == update_before
        assert new_state is not state
        assert new_state["messages"] is not state["messages"]

    def test_appended_messages_are_never_rewritten(self):
        """Later updates keep earlier message dicts as they were created."""
        first = make_message("user", "first")
        snapshot = dict(first)
        state = apply_update(create_initial_state("u1", "s1"), {"messages": [first]})

        state = apply_updates(
            state,
            [
                {"messages": [make_message("assistant", "second")]},
                {"messages": [], "next_action": "end"},
                {"current_intent": "general_chat"},
            ],
        )

        assert state["messages"][0] is first
        assert first == snapshot
        assert [m["content"] for m in state["messages"]] == ["first", "second"]

    def test_unknown_field_is_rejected(self):
        """Updates may only name declared fields."""
        state = create_initial_state("u1", "s1")
        with pytest.raises(ValueError, match="not_a_field"):
            apply_update(state, {"not_a_field": 1})

    def test_none_is_a_real_value(self):
        """Writing None clears a field."""
        state = create_initial_state("u1", "s1", cv_id="cv")
        state = apply_update(state, {"cv_id": None})
        assert state["cv_id"] is None

    def test_apply_updates_left_to_right(self):
        """Later updates win for replace fields."""
        state = apply_updates(
            create_initial_state("u1", "s1"),
            [{"next_action": "analyze_cv"}, {"next_action": "wait_for_user"}],
        )
        assert state["next_action"] == "wait_for_user"


# =============================================================================
# Helpers
# =============================================================================


class TestMessageHelpers:
    """Tests for user_messages and latest_user_message."""

    def test_latest_user_message_skips_assistant(self):
        """The assistant's reply is not the latest user message."""
        state = apply_update(
            create_initial_state("u1", "s1"),
            {
                "messages": [
                    make_message("user", "one"),
                    make_message("user", "two"),
                    make_message("assistant", "reply"),
                ]
            },
        )
        assert latest_user_message(state) == "two"
        assert len(user_messages(state)) == 2

    def test_latest_user_message_none_for_empty(self):
        """An empty conversation has no user message."""
        assert latest_user_message(create_initial_state("u1", "s1")) is None

    def test_terminal_actions(self):
        """wait_for_user, error and end stop a turn; routing actions do not."""
        assert WorkflowAction.WAIT_FOR_USER in TERMINAL_ACTIONS
        assert WorkflowAction.ERROR in TERMINAL_ACTIONS
        assert WorkflowAction.END in TERMINAL_ACTIONS
        assert WorkflowAction.ANALYZE_CV not in TERMINAL_ACTIONS
