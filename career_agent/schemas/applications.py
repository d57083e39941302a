"""Application tracking records and request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from career_agent.schemas.agent_outputs import ApplicationStatus


class ApplicationRecord(BaseModel):
    """A job application the user is tracking."""

    model_config = ConfigDict(extra="forbid")

    id: str
    user_id: str
    company: str
    job_title: str
    status: ApplicationStatus = ApplicationStatus.SAVED
    notes: str | None = None
    cv_id: str | None = None
    job_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationStatusUpdate(BaseModel):
    """Request body for changing an application's status."""

    model_config = ConfigDict(extra="forbid")

    status: ApplicationStatus
    notes: str | None = Field(default=None, max_length=5000)


class ApplicationAnalytics(BaseModel):
    """Aggregate counts over a user's applications.

    Attributes:
        total: Number of tracked applications.
        by_status: Count per status; every status is present.
        response_rate: Share of submitted applications that got any employer
            response (viewed, interview, offer or rejection), 0-100.
        interview_rate: Share of submitted applications that reached an
            interview or offer, 0-100.
    """

    total: int
    by_status: dict[ApplicationStatus, int]
    response_rate: float
    interview_rate: float
