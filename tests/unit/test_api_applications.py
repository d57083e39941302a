"""Tests for the applications API endpoints and app-level behaviour."""

import pytest

from career_agent.schemas.agent_outputs import ApplicationStatus
from tests.conftest import OTHER_USER_ID, TEST_USER_ID

APPLICATIONS_URL = "/api/v1/applications"


async def _create(store, user_id=TEST_USER_ID, status=ApplicationStatus.APPLIED, **extra):
    return await store.create_application(
        user_id,
        {"company": "Globex", "job_title": "Staff Engineer", "status": status, **extra},
    )


# =============================================================================
# Applications
# =============================================================================


class TestListApplications:
    """Tests for GET /applications."""

    @pytest.mark.asyncio
    async def test_lists_own_applications(self, client, store):
        """Only the caller's applications are returned."""
        mine = await _create(store)
        await _create(store, user_id=OTHER_USER_ID)

        response = await client.get(APPLICATIONS_URL)

        assert response.status_code == 200
        assert [a["id"] for a in response.json()["data"]] == [mine.id]

    @pytest.mark.asyncio
    async def test_status_filter(self, client, store):
        """The status query narrows the list."""
        await _create(store, status=ApplicationStatus.SAVED)
        offer = await _create(store, status=ApplicationStatus.OFFER)

        response = await client.get(APPLICATIONS_URL, params={"status": "offer"})

        assert [a["id"] for a in response.json()["data"]] == [offer.id]

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, client):
        """Unknown statuses fail validation."""
        response = await client.get(APPLICATIONS_URL, params={"status": "hired"})
        assert response.status_code == 400


class TestApplicationAnalytics:
    """Tests for GET /applications/analytics."""

    @pytest.mark.asyncio
    async def test_analytics(self, client, store):
        """Counts and rates come back in the data envelope."""
        await _create(store, status=ApplicationStatus.APPLIED)
        await _create(store, status=ApplicationStatus.INTERVIEW_SCHEDULED)

        response = await client.get(f"{APPLICATIONS_URL}/analytics")

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["total"] == 2
        assert data["by_status"]["interview_scheduled"] == 1
        assert data["response_rate"] == 50.0
        assert data["interview_rate"] == 50.0


class TestGetApplication:
    """Tests for GET /applications/{id}."""

    @pytest.mark.asyncio
    async def test_get(self, client, store):
        """A single application is returned."""
        record = await _create(store, notes="Referral")
        response = await client.get(f"{APPLICATIONS_URL}/{record.id}")

        data = response.json()["data"]
        assert data["company"] == "Globex"
        assert data["status"] == "applied"
        assert data["notes"] == "Referral"

    @pytest.mark.asyncio
    async def test_other_users_application(self, client, store):
        """Another user's application is reported as missing."""
        record = await _create(store, user_id=OTHER_USER_ID)
        response = await client.get(f"{APPLICATIONS_URL}/{record.id}")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Application not found"


class TestUpdateApplication:
    """Tests for PUT /applications/{id}."""

    @pytest.mark.asyncio
    async def test_update_status(self, client, store):
        """Status and notes are changed."""
        record = await _create(store)
        response = await client.put(
            f"{APPLICATIONS_URL}/{record.id}",
            json={"status": "rejected", "notes": "Position filled"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"
        assert store.applications[record.id].notes == "Position filled"

    @pytest.mark.asyncio
    async def test_invalid_status(self, client, store):
        """Statuses outside the lifecycle are rejected."""
        record = await _create(store)
        response = await client.put(
            f"{APPLICATIONS_URL}/{record.id}", json={"status": "hired"}
        )

        assert response.status_code == 400
        assert store.applications[record.id].status is ApplicationStatus.APPLIED

    @pytest.mark.asyncio
    async def test_missing(self, client):
        """Unknown ids are a 404."""
        response = await client.put(f"{APPLICATIONS_URL}/nope", json={"status": "viewed"})
        assert response.status_code == 404


# =============================================================================
# App
# =============================================================================


class TestApp:
    """Tests for app-level routes and middleware."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """The health check needs no user."""
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_security_headers(self, client):
        """API responses are not framed or cached."""
        response = await client.get(APPLICATIONS_URL)

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store, max-age=0"

    @pytest.mark.asyncio
    async def test_default_user_without_header(self, client, store, test_settings):
        """Requests without X-User-ID act as the default user."""
        record = await _create(store, user_id=test_settings.default_user_id)
        del client.headers["X-User-ID"]
        response = await client.get(APPLICATIONS_URL)
        assert [a["id"] for a in response.json()["data"]] == [record.id]
