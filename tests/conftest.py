import json
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from career_agent.agents.base import AgentContext, InMemoryDocumentStore
from career_agent.agents.state import (
    ConversationState,
    apply_update,
    create_initial_state,
    make_message,
)
from career_agent.core.config import Settings
from career_agent.providers.llm.base import TaskType
from career_agent.providers.llm.mock_adapter import MockLLMProvider
from career_agent.services.session_store import SessionStore, reset_session_store

TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TEST_SESSION_ID = "session-1"
TEST_CV_ID = "cv-1"

# Personal data that must never appear in a prompt
CANDIDATE_NAME = "Priya Ramaswamy"
CANDIDATE_EMAIL = "priya.ramaswamy@example.com"
CANDIDATE_PHONE = "+1 512-555-0187"

SAMPLE_CV: dict = {
    "personalInfo": {
        "fullName": CANDIDATE_NAME,
        "email": CANDIDATE_EMAIL,
        "phone": CANDIDATE_PHONE,
        "location": "Austin, TX, USA",
        "linkedin": "https://www.linkedin.com/in/priya-r",
    },
    "professionalHeadline": "Senior Backend Engineer",
    "summary": (
        f"{CANDIDATE_NAME} builds reliable APIs. Contact {CANDIDATE_EMAIL} "
        f"or call {CANDIDATE_PHONE}."
    ),
    "experience": [
        {
            "title": "Backend Engineer",
            "company": "Acme Corp",
            "startDate": "2019",
            "endDate": "2023",
            "description": "Designed payment APIs serving 2 million users",
            "achievements": ["Cut p95 latency by 40%", "Led a team of 4"],
        }
    ],
    "education": [
        {"degree": "BSc Computer Science", "institution": "UT Austin", "year": "2018"}
    ],
    "skills": ["Python", "PostgreSQL", "FastAPI"],
}

SAMPLE_JOB: dict = {
    "title": "Staff Engineer",
    "company": "Globex",
    "description": "Own the design of our Python services and mentor engineers.",
}

INTENT_JSON = '{{"intent": "{intent}", "confidence": {confidence}, "requiredData": {required}}}'

ATS_PAYLOAD: dict = {
    "overallScore": 78,
    "atsScore": 82,
    "contentScore": 74,
    "strengths": ["Clear structure", "Relevant stack", "Quantified impact"],
    "weaknesses": ["Short summary", "Few keywords"],
    "suggestions": ["Expand the summary", "Add cloud keywords", "List certifications"],
    "details": {
        "parseability": 85,
        "contactInfo": 90,
        "formatting": 80,
        "contentQuality": 70,
        "quantification": 60,
        "summaryQuality": 55,
        "skillsSupport": 72,
        "keywordContext": 68,
        "coherence": 81,
    },
    "explanation": {
        "gradeExplanation": "A solid CV held back by a thin summary.",
        "keyFindings": ["Metrics present in the most recent role"],
    },
}


def intent_response(
    intent: str, confidence: float = 0.9, required: list[str] | None = None
) -> str:
    """Classifier output as the model would return it."""
    return INTENT_JSON.format(
        intent=intent, confidence=confidence, required=json.dumps(required or [])
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any .env file."""
    return Settings(_env_file=None, llm_timeout_seconds=5.0)


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    """Mock provider with no configured responses.

    Unconfigured tasks return plain text with no JSON in it, which every
    caller treats as unusable output.
    """
    return MockLLMProvider()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Document store seeded with the sample CV for TEST_USER_ID."""
    document_store = InMemoryDocumentStore()
    document_store.add_cv(TEST_USER_ID, TEST_CV_ID, SAMPLE_CV)
    return document_store


@pytest.fixture
def ctx(mock_llm, store, test_settings) -> AgentContext:
    return AgentContext(llm=mock_llm, store=store, settings=test_settings)


@pytest.fixture
def empty_state() -> ConversationState:
    return create_initial_state(TEST_USER_ID, TEST_SESSION_ID)


@pytest.fixture
def cv_state() -> ConversationState:
    """State with the sample CV loaded and no messages."""
    return create_initial_state(
        TEST_USER_ID, TEST_SESSION_ID, cv_id=TEST_CV_ID, cv_data=SAMPLE_CV
    )


def with_user_message(state: ConversationState, content: str) -> ConversationState:
    return apply_update(state, {"messages": [make_message("user", content)]})


def prompt_text(llm: MockLLMProvider, task: TaskType) -> str:
    """Everything sent to the model for the first call of a task."""
    call = next(c for c in llm.calls if c["task"] == task)
    return "\n".join(m.content for m in call["messages"])


@pytest.fixture(autouse=True)
def reset_sessions() -> Iterator[None]:
    """Reset the session store singleton between tests."""
    reset_session_store()
    yield
    reset_session_store()


@pytest_asyncio.fixture
async def client(
    mock_llm, store, test_settings
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the mock provider and in-memory stores.

    Requests act as TEST_USER_ID unless a test sends its own X-User-ID.
    """
    from career_agent.api.deps import get_llm_provider, get_sessions, get_settings
    from career_agent.main import create_app

    app = create_app(store)
    sessions = SessionStore()
    app.dependency_overrides[get_llm_provider] = lambda: mock_llm
    app.dependency_overrides[get_sessions] = lambda: sessions
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-ID": TEST_USER_ID},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
