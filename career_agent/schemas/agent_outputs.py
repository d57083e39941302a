"""Schemas for structured model output.

Every JSON object a model returns is validated against one of these before any
of it reaches conversation state or the user. Unknown keys are ignored; ranges
and required fields are strict.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Intent Classification
# =============================================================================


class Intent(str, Enum):
    """Fixed set of user intents the orchestrator can classify."""

    ANALYZE_CV = "analyze_cv"
    FIND_JOBS = "find_jobs"
    TRACK_APPLICATION = "track_application"
    ENHANCE_COVER_LETTER = "enhance_cover_letter"
    GENERAL_CHAT = "general_chat"


class RequiredData(str, Enum):
    """Artifacts an intent may need before its handler can run."""

    CV = "cv"
    JOB = "job"


class IntentClassification(BaseModel):
    """Classifier verdict for one user message."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)
    required_data: list[RequiredData] = Field(
        default_factory=list, validation_alias="requiredData"
    )


# =============================================================================
# ATS Assessment
# =============================================================================


class CVScoreDetails(BaseModel):
    """Four-part sub-score breakdown (0-100 each)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    experience_quality: int = Field(ge=0, le=100, validation_alias="experienceQuality")
    skills_relevance: int = Field(ge=0, le=100, validation_alias="skillsRelevance")
    formatting: int = Field(ge=0, le=100)
    ats_compatibility: int = Field(ge=0, le=100, validation_alias="atsCompatibility")


class ATSDetails(BaseModel):
    """Nine-part ATS breakdown. Every part is optional."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    parseability: int | None = Field(default=None, ge=0, le=100)
    contact_info: int | None = Field(
        default=None, ge=0, le=100, validation_alias="contactInfo"
    )
    formatting: int | None = Field(default=None, ge=0, le=100)
    content_quality: int | None = Field(
        default=None, ge=0, le=100, validation_alias="contentQuality"
    )
    quantification: int | None = Field(default=None, ge=0, le=100)
    summary_quality: int | None = Field(
        default=None, ge=0, le=100, validation_alias="summaryQuality"
    )
    skills_support: int | None = Field(
        default=None, ge=0, le=100, validation_alias="skillsSupport"
    )
    keyword_context: int | None = Field(
        default=None, ge=0, le=100, validation_alias="keywordContext"
    )
    coherence: int | None = Field(default=None, ge=0, le=100)


class AssessmentExplanation(BaseModel):
    """Plain-language explanation of the scores."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    grade_explanation: str = Field(default="", validation_alias="gradeExplanation")
    ats_explanation: str = Field(default="", validation_alias="atsExplanation")
    content_explanation: str = Field(
        default="", validation_alias="contentExplanation"
    )
    key_findings: list[str] = Field(
        default_factory=list, validation_alias="keyFindings"
    )


class _ScoredAnalysis(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    overall_score: int = Field(ge=0, le=100, validation_alias="overallScore")
    ats_score: int = Field(ge=0, le=100, validation_alias="atsScore")
    content_score: int = Field(ge=0, le=100, validation_alias="contentScore")
    strengths: list[str] = Field(min_length=1)
    weaknesses: list[str] = Field(min_length=1)
    suggestions: list[str] = Field(min_length=1)


class CVAnalysisSchema(_ScoredAnalysis):
    """CV analysis as kept in conversation state."""

    details: CVScoreDetails | None = None


class ATSAssessmentPayload(_ScoredAnalysis):
    """Raw ATS assessor output.

    ``details`` here is the nine-part ATS breakdown the prompt asks for; the
    assessor derives the four-part CVScoreDetails from it.
    """

    details: ATSDetails | None = None
    explanation: AssessmentExplanation | None = None

    def score_details(self) -> CVScoreDetails | None:
        """Project the ATS breakdown onto the four-part summary.

        Parts the model left out are not invented; if any of the four source
        scores is missing there is no summary.
        """
        if self.details is None:
            return None
        sources = (
            self.details.content_quality,
            self.details.skills_support,
            self.details.formatting,
            self.details.parseability,
        )
        if any(score is None for score in sources):
            return None
        return CVScoreDetails(
            experience_quality=self.details.content_quality,
            skills_relevance=self.details.skills_support,
            formatting=self.details.formatting,
            ats_compatibility=self.details.parseability,
        )


# =============================================================================
# Cover Letter
# =============================================================================


class CoverLetterSchema(BaseModel):
    """Letter enhancer output."""

    model_config = ConfigDict(extra="ignore")

    content: str = Field(min_length=1)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# Job Matching
# =============================================================================


class JobMatchItem(BaseModel):
    """Model's verdict on one candidate posting."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    job_id: str = Field(min_length=1, validation_alias="jobId")
    match_score: int = Field(ge=0, le=100, validation_alias="matchScore")
    match_reason: str = Field(min_length=1, validation_alias="matchReason")
    keyword_matches: list[str] = Field(
        default_factory=list, validation_alias="keywordMatches"
    )


class JobMatchPayload(BaseModel):
    """Job matcher output."""

    model_config = ConfigDict(extra="ignore")

    matches: list[JobMatchItem]


# =============================================================================
# Application Tracking
# =============================================================================


class ApplicationStatus(str, Enum):
    """Lifecycle status of a tracked application."""

    SAVED = "saved"
    APPLIED = "applied"
    VIEWED = "viewed"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    GHOSTED = "ghosted"


class ApplicationUpdatePayload(BaseModel):
    """Application tracker output extracted from the user's message."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    company: str | None = None
    job_title: str | None = Field(default=None, validation_alias="jobTitle")
    status: ApplicationStatus
    notes: str | None = None
