"""CV normalization.

CV documents arrive in several historical shapes: contact details at the top
level, under ``personalInfo`` or under ``contact``; roles with ``title`` or
``position``; bullet points as ``achievements`` or ``content``. This module is
the one place that knows about those aliases. Everything downstream reads the
canonical record it produces.
"""

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Canonical Record
# =============================================================================


@dataclass(frozen=True)
class ExperienceEntry:
    title: str | None = None
    company: str | None = None
    start: str | None = None
    end: str | None = None
    current: bool = False
    location: str | None = None
    description: str | None = None
    achievements: tuple[str, ...] = ()


@dataclass(frozen=True)
class EducationEntry:
    degree: str | None = None
    institution: str | None = None
    year: str | None = None
    gpa: str | None = None


@dataclass(frozen=True)
class CanonicalCV:
    """CV with every alias resolved.

    Contact fields hold raw personal data. Only cv_sanitization may turn them
    into text that leaves the process.
    """

    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    headline: str | None = None
    summary: str | None = None
    experience: tuple[ExperienceEntry, ...] = ()
    education: tuple[EducationEntry, ...] = ()
    skills: tuple[str, ...] = ()
    technical_skills: tuple[str, ...] = ()
    soft_skills: tuple[str, ...] = ()
    certifications: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()
    extra_names: tuple[str, ...] = field(default=())

    @property
    def has_contact_section(self) -> bool:
        return any(
            (self.full_name, self.email, self.phone, self.location, self.linkedin)
        )

    @property
    def all_skills(self) -> tuple[str, ...]:
        return self.skills + self.technical_skills + self.soft_skills


# =============================================================================
# Helpers
# =============================================================================


def _text(value: Any) -> str | None:
    """Non-empty stripped string, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _first(*values: Any) -> str | None:
    for value in values:
        text = _text(value)
        if text is not None:
            return text
    return None


def _strings(value: Any) -> tuple[str, ...]:
    """Coerce a list or comma-separated string into a tuple of strings.

    Objects in a list contribute their ``title`` or ``name``.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if not isinstance(value, list):
        return ()
    items: list[str] = []
    for item in value:
        if isinstance(item, dict):
            text = _first(item.get("title"), item.get("name"), item.get("language"))
        else:
            text = _text(item)
        if text is not None:
            items.append(text)
    return tuple(items)


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _experience(raw: Any) -> tuple[ExperienceEntry, ...]:
    if not isinstance(raw, list):
        return ()
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        achievements = item.get("achievements")
        if not isinstance(achievements, list):
            achievements = item.get("content")
        entries.append(
            ExperienceEntry(
                title=_first(item.get("title"), item.get("position")),
                company=_text(item.get("company")),
                start=_first(item.get("startDate"), item.get("start_date"), item.get("dates")),
                end=_first(item.get("endDate"), item.get("end_date")),
                current=bool(item.get("current")),
                location=_text(item.get("location")),
                description=_text(item.get("description")),
                achievements=_strings(achievements),
            )
        )
    return tuple(entries)


def _education(raw: Any) -> tuple[EducationEntry, ...]:
    if not isinstance(raw, list):
        return ()
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        entries.append(
            EducationEntry(
                degree=_first(item.get("degree"), item.get("field")),
                institution=_first(item.get("institution"), item.get("school")),
                year=_first(
                    item.get("year"),
                    item.get("graduationYear"),
                    item.get("graduation_year"),
                    item.get("dates"),
                ),
                gpa=_text(item.get("gpa")),
            )
        )
    return tuple(entries)


# =============================================================================
# Public API
# =============================================================================


def normalize_cv(raw: dict[str, Any] | None) -> CanonicalCV:
    """Resolve a raw CV document into a CanonicalCV.

    Missing or malformed sections become empty values; nothing raises.

    Args:
        raw: CV document in any supported shape.

    Returns:
        CanonicalCV instance.
    """
    if not raw:
        return CanonicalCV()

    personal = _mapping(raw.get("personalInfo") or raw.get("personal_info"))
    contact = _mapping(raw.get("contact"))
    social = _mapping(raw.get("social"))

    full_name = _first(
        raw.get("fullName"),
        raw.get("full_name"),
        personal.get("fullName"),
        personal.get("full_name"),
        raw.get("name"),
        personal.get("name"),
    )
    # Split names are kept so sanitization can scrub each part
    extra_names = tuple(
        name
        for name in (
            _first(personal.get("firstName"), raw.get("firstName")),
            _first(personal.get("lastName"), raw.get("lastName")),
        )
        if name
    )
    if full_name is None and extra_names:
        full_name = " ".join(extra_names)

    return CanonicalCV(
        full_name=full_name,
        email=_first(personal.get("email"), raw.get("email"), contact.get("email")),
        phone=_first(personal.get("phone"), raw.get("phone"), contact.get("phone")),
        location=_first(
            personal.get("location"), raw.get("location"), contact.get("location")
        ),
        linkedin=_first(
            personal.get("linkedin"), raw.get("linkedin"), social.get("linkedin")
        ),
        headline=_first(
            raw.get("professionalHeadline"),
            raw.get("professional_headline"),
            personal.get("professionalHeadline"),
            raw.get("headline"),
        ),
        summary=_first(
            raw.get("summary"),
            raw.get("objective"),
            raw.get("careerObjective"),
            raw.get("career_objective"),
        ),
        experience=_experience(raw.get("experience")),
        education=_education(raw.get("education")),
        skills=_strings(raw.get("skills")),
        technical_skills=_strings(
            raw.get("technicalSkills") or raw.get("technical_skills")
        ),
        soft_skills=_strings(raw.get("softSkills") or raw.get("soft_skills")),
        certifications=_strings(raw.get("certifications")),
        languages=_strings(raw.get("languages")),
        extra_names=extra_names,
    )
