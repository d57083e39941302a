"""Application tracking service.

Three public functions used by both the Application Tracker agent and the
HTTP surface:

1. get_user_applications: list a user's applications, optionally by status
2. update_application_status: move an application to a new status
3. get_application_analytics: totals, per-status counts and response rates

Any status may follow any other; the tracker records what the user reports.
"""

import logging
from dataclasses import dataclass

from career_agent.agents.base import DocumentStore
from career_agent.core.errors import NotFoundError
from career_agent.schemas.agent_outputs import ApplicationStatus
from career_agent.schemas.applications import ApplicationAnalytics, ApplicationRecord

logger = logging.getLogger(__name__)

# Employer has reacted in some way
RESPONDED_STATUSES = frozenset(
    {
        ApplicationStatus.VIEWED,
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.INTERVIEW_COMPLETED,
        ApplicationStatus.OFFER,
        ApplicationStatus.REJECTED,
    }
)

INTERVIEW_STATUSES = frozenset(
    {
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.INTERVIEW_COMPLETED,
        ApplicationStatus.OFFER,
    }
)

# Not yet sent to the employer
UNSUBMITTED_STATUSES = frozenset({ApplicationStatus.SAVED})


# =============================================================================
# Result Dataclasses
# =============================================================================


@dataclass(frozen=True)
class StatusUpdateResult:
    """Summary of a status change."""

    application: ApplicationRecord
    previous_status: ApplicationStatus
    changed: bool


# =============================================================================
# Public API
# =============================================================================


async def get_user_applications(
    store: DocumentStore,
    user_id: str,
    status: ApplicationStatus | None = None,
) -> list[ApplicationRecord]:
    """Applications owned by the user, most recently updated first."""
    return await store.list_applications(user_id, status=status)


async def update_application_status(
    store: DocumentStore,
    user_id: str,
    application_id: str,
    status: ApplicationStatus,
    notes: str | None = None,
) -> StatusUpdateResult:
    """Set an application's status, optionally replacing its notes.

    Args:
        store: Document store.
        user_id: Owner (tenant isolation).
        application_id: Application to update.
        status: New status.
        notes: New notes; None keeps the existing notes.

    Returns:
        StatusUpdateResult with the stored record.

    Raises:
        NotFoundError: If the application does not exist for this user.
    """
    current = await store.get_application(user_id, application_id)
    if current is None:
        raise NotFoundError("Application", application_id)

    changes: dict[str, object] = {"status": status}
    if notes is not None:
        changes["notes"] = notes

    updated = await store.update_application(user_id, application_id, changes)
    if updated is None:
        # Deleted between read and write
        raise NotFoundError("Application", application_id)

    changed = current.status != status
    if changed:
        logger.info(
            "Application status changed: %s -> %s",
            current.status.value,
            status.value,
        )
    return StatusUpdateResult(
        application=updated, previous_status=current.status, changed=changed
    )


def _rate(part: int, whole: int) -> float:
    return round(part * 100 / whole, 1) if whole else 0.0


async def get_application_analytics(
    store: DocumentStore, user_id: str
) -> ApplicationAnalytics:
    """Aggregate a user's applications.

    Rates are computed over submitted applications (anything past "saved").
    """
    applications = await store.list_applications(user_id)

    by_status = dict.fromkeys(ApplicationStatus, 0)
    for application in applications:
        by_status[application.status] += 1

    submitted = sum(
        count for s, count in by_status.items() if s not in UNSUBMITTED_STATUSES
    )
    responded = sum(by_status[s] for s in RESPONDED_STATUSES)
    interviews = sum(by_status[s] for s in INTERVIEW_STATUSES)

    return ApplicationAnalytics(
        total=len(applications),
        by_status=by_status,
        response_rate=_rate(responded, submitted),
        interview_rate=_rate(interviews, submitted),
    )
