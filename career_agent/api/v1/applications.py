"""Applications API router.

Endpoints:
- GET /applications: List tracked applications, optionally by status
- GET /applications/analytics: Counts and response rates
- GET /applications/{application_id}: One application
- PUT /applications/{application_id}: Change status and notes

All reads and writes are scoped to the current user; another user's
application is reported as not found.
"""

from fastapi import APIRouter

from career_agent.api.deps import CurrentUserId, Store
from career_agent.core.errors import NotFoundError
from career_agent.core.responses import DataResponse
from career_agent.schemas.agent_outputs import ApplicationStatus
from career_agent.schemas.applications import (
    ApplicationAnalytics,
    ApplicationRecord,
    ApplicationStatusUpdate,
)
from career_agent.services.application_tracking import (
    get_application_analytics,
    get_user_applications,
    update_application_status,
)

router = APIRouter()


@router.get("")
async def list_applications(
    user_id: CurrentUserId,
    store: Store,
    status: ApplicationStatus | None = None,
) -> DataResponse[list[ApplicationRecord]]:
    """List applications for the current user, most recently updated first."""
    applications = await get_user_applications(store, user_id, status)
    return DataResponse(data=applications)


# Declared before /{application_id} so "analytics" is not taken as an id
@router.get("/analytics")
async def application_analytics(
    user_id: CurrentUserId,
    store: Store,
) -> DataResponse[ApplicationAnalytics]:
    return DataResponse(data=await get_application_analytics(store, user_id))


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    user_id: CurrentUserId,
    store: Store,
) -> DataResponse[ApplicationRecord]:
    """Get one application.

    Raises:
        NotFoundError: If the application does not exist for this user.
    """
    application = await store.get_application(user_id, application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    return DataResponse(data=application)


@router.put("/{application_id}")
async def update_application(
    application_id: str,
    request: ApplicationStatusUpdate,
    user_id: CurrentUserId,
    store: Store,
) -> DataResponse[ApplicationRecord]:
    """Change an application's status, optionally replacing its notes.

    Raises:
        NotFoundError: If the application does not exist for this user.
    """
    result = await update_application_status(
        store, user_id, application_id, request.status, request.notes
    )
    return DataResponse(data=result.application)
