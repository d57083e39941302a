"""Tests for the Job Matcher agent."""

import json

import pytest

from career_agent.agents.job_matcher import (
    MATCHING_ERROR_MESSAGE,
    MISSING_CV_MESSAGE,
    NO_POSTINGS_MESSAGE,
    find_jobs,
    format_matches_message,
    rank_matches,
)
from career_agent.agents.state import WorkflowAction, apply_update
from career_agent.providers.llm.base import TaskType
from career_agent.schemas.agent_outputs import JobMatchItem
from tests.conftest import CANDIDATE_EMAIL, TEST_USER_ID, prompt_text

POSTINGS = [
    {"id": "job-1", "title": "Backend Engineer", "company": "Initech", "description": "Python APIs"},
    {"id": "job-2", "title": "Data Engineer", "company": "Hooli", "location": "Remote", "remote": True},
    {"id": "job-3", "title": "iOS Developer", "company": "Pied Piper"},
]


def item(job_id: str, score: int, reason: str = "fit") -> JobMatchItem:
    return JobMatchItem(job_id=job_id, match_score=score, match_reason=reason)


def matches_json(*items: tuple[str, int]) -> str:
    return json.dumps(
        {
            "matches": [
                {
                    "jobId": job_id,
                    "matchScore": score,
                    "matchReason": f"reason {job_id}",
                    "keywordMatches": ["Python"],
                }
                for job_id, score in items
            ]
        }
    )


@pytest.fixture
def seeded_store(store):
    for posting in POSTINGS:
        store.add_job_posting(TEST_USER_ID, posting)
    return store


# =============================================================================
# Ranking
# =============================================================================


class TestRankMatches:
    """Tests for rank_matches."""

    def test_sorted_by_score(self):
        """Best match first."""
        ranked = rank_matches([item("job-1", 40), item("job-2", 90)], POSTINGS)
        assert [r["id"] for r in ranked] == ["job-2", "job-1"]

    def test_unknown_ids_dropped(self):
        """Scores for postings that do not exist are discarded."""
        ranked = rank_matches([item("job-99", 99), item("job-3", 10)], POSTINGS)
        assert [r["id"] for r in ranked] == ["job-3"]

    def test_duplicate_ids_keep_first(self):
        """A posting scored twice keeps its first score."""
        ranked = rank_matches([item("job-1", 30), item("job-1", 95)], POSTINGS)
        assert len(ranked) == 1
        assert ranked[0]["match_score"] == 30

    def test_ties_keep_model_order(self):
        """Equal scores stay in the order the model gave them."""
        ranked = rank_matches([item("job-3", 70), item("job-1", 70)], POSTINGS)
        assert [r["id"] for r in ranked] == ["job-3", "job-1"]

    def test_posting_fields_copied(self):
        """Results carry the stored posting details, not the model's."""
        ranked = rank_matches([item("job-2", 80)], POSTINGS)
        assert ranked[0]["company"] == "Hooli"
        assert ranked[0]["remote"] is True
        assert ranked[0]["source"] == "saved"

    def test_message_for_no_matches(self):
        """An empty ranking explains itself."""
        assert "None of the saved postings" in format_matches_message([])


# =============================================================================
# find_jobs
# =============================================================================


class TestFindJobs:
    """Tests for the job matcher node."""

    @pytest.mark.asyncio
    async def test_success(self, ctx, mock_llm, seeded_store, cv_state):  # noqa: ARG002
        """Ranked matches replace job_matches."""
        mock_llm.set_response(
            TaskType.JOB_MATCHING, matches_json(("job-1", 88), ("job-3", 20), ("ghost", 99))
        )
        state = apply_update(cv_state, {"job_matches": [{"id": "old"}]})
        update = await find_jobs(state, ctx)

        assert [m["id"] for m in update["job_matches"]] == ["job-1", "job-3"]
        assert update["next_action"] == WorkflowAction.WAIT_FOR_USER.value
        message = update["messages"][0]["content"]
        assert message.startswith("## 🎯 Job Matches")
        assert "1. **Backend Engineer** at Initech (88% match)" in message

    @pytest.mark.asyncio
    async def test_prompt_lists_postings_without_contact_data(
        self, ctx, mock_llm, seeded_store, cv_state  # noqa: ARG002
    ):
        """Every posting id is offered; the CV is scrubbed."""
        mock_llm.set_response(TaskType.JOB_MATCHING, matches_json(("job-1", 50)))
        await find_jobs(cv_state, ctx)

        prompt = prompt_text(mock_llm, TaskType.JOB_MATCHING)
        for posting in POSTINGS:
            assert f"[id: {posting['id']}]" in prompt
        assert CANDIDATE_EMAIL not in prompt

    @pytest.mark.asyncio
    async def test_no_postings_skips_model(self, ctx, mock_llm, cv_state):
        """With nothing to rank there is no model call."""
        update = await find_jobs(cv_state, ctx)

        assert mock_llm.call_count == 0
        assert update["messages"][0]["content"] == NO_POSTINGS_MESSAGE
        assert "job_matches" not in update

    @pytest.mark.asyncio
    async def test_missing_cv(self, ctx, mock_llm, empty_state):
        """Without a CV the handler asks for one."""
        update = await find_jobs(empty_state, ctx)

        assert mock_llm.call_count == 0
        assert update["messages"][0]["content"] == MISSING_CV_MESSAGE

    @pytest.mark.asyncio
    async def test_invalid_output_keeps_previous_matches(
        self, ctx, mock_llm, seeded_store, cv_state  # noqa: ARG002
    ):
        """A bad ranking leaves job_matches untouched."""
        mock_llm.set_response(TaskType.JOB_MATCHING, '{"matches": [{"jobId": "job-1"}]}')
        update = await find_jobs(cv_state, ctx)

        assert "job_matches" not in update
        assert update["next_action"] == WorkflowAction.ERROR.value
        assert update["messages"][0]["content"] == MATCHING_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_posting_limit_from_settings(
        self, ctx, mock_llm, store, cv_state, test_settings
    ):
        """At most max_job_postings postings are offered."""
        for i in range(test_settings.max_job_postings + 5):
            store.add_job_posting(TEST_USER_ID, {"id": f"p{i}", "title": "Role"})
        mock_llm.set_response(TaskType.JOB_MATCHING, matches_json(("p0", 10)))
        await find_jobs(cv_state, ctx)

        prompt = prompt_text(mock_llm, TaskType.JOB_MATCHING)
        assert prompt.count("[id: ") == test_settings.max_job_postings
