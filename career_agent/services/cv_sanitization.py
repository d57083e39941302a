"""Privacy-preserving CV rendering for model prompts.

Contact details never leave the process as literal values. They are replaced
by availability and format indicators, for example::

    - Email: Available | Format: Valid | Professional format: Yes
    - Phone: Available | Format: International (+country code)

Every other rendered field goes through ``scrub_text``: anything that looks
like an email address or phone number is masked, and every token of the
candidate's name is removed. Text is NFKC-folded and stripped of invisible
characters before matching, so split or fullwidth names are caught too.
The assessment only needs to know whether contact data exists and how it is
formatted.
"""

import re
from collections.abc import Iterable

from career_agent.core.llm_sanitization import normalize_untrusted
from career_agent.services.cv_normalization import CanonicalCV

EMAIL_MARKER = "[email removed]"
PHONE_MARKER = "[phone removed]"
NAME_MARKER = "[name removed]"

_VALID_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_INTERNATIONAL_PHONE_RE = re.compile(r"^\+?\d{1,3}[\s-]?\d")
_LINKEDIN_RE = re.compile(r"linkedin\.com/in/[a-zA-Z0-9_-]+", re.IGNORECASE)

_EMAIL_IN_TEXT_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PHONE_IN_TEXT_RE = re.compile(
    r"(?:\+\d{1,3}[\s.-]?)?(?:\(\d{1,4}\)[\s.-]?)?\d{2,4}[\s.-]?\d{3,4}(?:[\s.-]?\d{2,4})?"
)
_YEAR_RANGE_RE = re.compile(r"^(?:19|20)\d{2}\s*[-.]\s*(?:19|20)\d{2}$")
_PHONE_SEPARATORS = r"[\s().+-]*"

# Name parts shorter than this (initials) are left alone
_MIN_NAME_TOKEN = 2


# =============================================================================
# Contact Indicators
# =============================================================================


def is_valid_email_format(email: str) -> bool:
    return bool(_VALID_EMAIL_RE.match(email))


def has_international_format(phone: str) -> bool:
    return bool(_INTERNATIONAL_PHONE_RE.match(phone))


def general_location(location: str) -> str:
    """City and region only; street-level detail is dropped."""
    parts = [part.strip() for part in location.split(",") if part.strip()]
    return ", ".join(parts[:2])


def describe_contact(cv: CanonicalCV) -> list[str]:
    """Availability and format indicators for each contact field.

    Args:
        cv: Normalized CV.

    Returns:
        One line per contact field. No line contains a literal email, phone
        number or name.
    """
    lines = ["- Name: Provided" if cv.full_name else "- Name: Not provided"]

    if cv.email:
        valid = "Valid" if is_valid_email_format(cv.email) else "Invalid"
        # Domain choice is not judged, only the format
        professional = "Yes" if valid == "Valid" else "No"
        lines.append(
            f"- Email: Available | Format: {valid} | Professional format: {professional}"
        )
    else:
        lines.append("- Email: Not provided")

    if cv.phone:
        phone_format = (
            "International (+country code)"
            if has_international_format(cv.phone)
            else "Local format"
        )
        lines.append(f"- Phone: Available | Format: {phone_format}")
    else:
        lines.append("- Phone: Not provided")

    if cv.location:
        location = scrub_text(general_location(cv.location), cv)
        lines.append(f"- Location: {location} [General location provided]")
    else:
        lines.append("- Location: Not provided")

    if cv.linkedin:
        link_format = "Valid URL" if _LINKEDIN_RE.search(cv.linkedin) else "Invalid format"
        lines.append(f"- LinkedIn: Available | Format: {link_format}")
    else:
        lines.append("- LinkedIn: Not provided")

    if cv.headline:
        lines.append(f"- Professional Headline: {scrub_text(cv.headline, cv)}")
    else:
        lines.append("- Professional Headline: Not provided")

    return lines


# =============================================================================
# Free-Text Scrubbing
# =============================================================================


def _name_tokens(cv: CanonicalCV) -> list[str]:
    names = [cv.full_name, *cv.extra_names]
    tokens = {
        token
        for name in names
        if name
        for token in re.split(r"[\s,]+", normalize_untrusted(name))
        if len(token.strip(".")) >= _MIN_NAME_TOKEN
    }
    # Longest first so "Anne-Marie" is removed before "Anne"
    return sorted(tokens, key=len, reverse=True)


def _literal_phone_pattern(phone: str) -> re.Pattern[str] | None:
    digits = re.sub(r"\D", "", normalize_untrusted(phone))
    if len(digits) < 6:
        return None
    return re.compile(_PHONE_SEPARATORS.join(digits))


def _mask_phone(match: re.Match[str]) -> str:
    text = match.group(0)
    digit_count = sum(ch.isdigit() for ch in text)
    if digit_count < 7 or _YEAR_RANGE_RE.match(text):
        return text
    return PHONE_MARKER


def scrub_text(text: str, cv: CanonicalCV) -> str:
    """Mask emails, phone numbers and name tokens in free text.

    The result is already normalized, so later prompt sanitization cannot
    rejoin a value that was split to dodge the patterns.
    """
    result = _EMAIL_IN_TEXT_RE.sub(EMAIL_MARKER, normalize_untrusted(text))

    if cv.phone:
        literal = _literal_phone_pattern(cv.phone)
        if literal is not None:
            result = literal.sub(PHONE_MARKER, result)
    result = _PHONE_IN_TEXT_RE.sub(_mask_phone, result)

    for token in _name_tokens(cv):
        result = re.sub(
            rf"(?<![\w-]){re.escape(token)}(?![\w-])",
            NAME_MARKER,
            result,
            flags=re.IGNORECASE,
        )
    return result


def scrub_all(values: Iterable[str], cv: CanonicalCV) -> list[str]:
    return [scrub_text(value, cv) for value in values]


# =============================================================================
# Prompt Body
# =============================================================================


def _experience_section(cv: CanonicalCV) -> str | None:
    if not cv.experience:
        return None
    lines = ["## Work Experience"]
    for i, exp in enumerate(cv.experience, start=1):
        end = "Present" if exp.current else (exp.end or "End")
        achievements = ", ".join(scrub_all(exp.achievements, cv)) or "None listed"
        lines.append(
            f"\n### {i}. {scrub_text(exp.title or 'Position', cv)} at "
            f"{scrub_text(exp.company or 'Company', cv)}\n"
            f"- Duration: {scrub_text(exp.start or 'Start', cv)} - {scrub_text(end, cv)}\n"
            f"- Location: {scrub_text(exp.location or 'Not specified', cv)}\n"
            f"- Description: {scrub_text(exp.description or 'No description', cv)}\n"
            f"- Achievements: {achievements}"
        )
    return "\n".join(lines)


def _education_section(cv: CanonicalCV) -> str | None:
    if not cv.education:
        return None
    lines = ["## Education"]
    for i, edu in enumerate(cv.education, start=1):
        lines.append(
            f"\n### {i}. {scrub_text(edu.degree or 'Degree', cv)} - "
            f"{scrub_text(edu.institution or 'Institution', cv)}\n"
            f"- Year: {scrub_text(edu.year or 'Not specified', cv)}\n"
            f"- GPA: {scrub_text(edu.gpa or 'Not specified', cv)}"
        )
    return "\n".join(lines)


def _skills_section(cv: CanonicalCV) -> str | None:
    if not (cv.skills or cv.technical_skills or cv.soft_skills):
        return None
    parts = list(cv.skills)
    if cv.technical_skills:
        parts.append(f"Technical: {', '.join(cv.technical_skills)}")
    if cv.soft_skills:
        parts.append(f"Soft Skills: {', '.join(cv.soft_skills)}")
    return f"## Skills\n{', '.join(scrub_all(parts, cv))}"


def format_cv_for_analysis(cv: CanonicalCV, max_chars: int | None = None) -> str:
    """Render a CV as the body of an assessment prompt.

    Sections the CV does not have are omitted entirely.

    Args:
        cv: Normalized CV.
        max_chars: Optional cap on the rendered length.

    Returns:
        Markdown-ish text free of literal contact data.
    """
    sections: list[str] = []

    if cv.has_contact_section or cv.headline:
        sections.append("## Personal Information\n" + "\n".join(describe_contact(cv)))

    if cv.summary:
        sections.append(f"## Professional Summary\n{scrub_text(cv.summary, cv)}")

    for section in (_experience_section(cv), _education_section(cv), _skills_section(cv)):
        if section:
            sections.append(section)

    if cv.certifications:
        sections.append(
            f"## Certifications\n{', '.join(scrub_all(cv.certifications, cv))}"
        )

    if cv.languages:
        sections.append(f"## Languages\n{', '.join(scrub_all(cv.languages, cv))}")

    body = "\n\n".join(sections) or "CV data is minimal or empty."
    if max_chars is not None and len(body) > max_chars:
        body = body[:max_chars] + "..."
    return body


def summarize_cv_for_prompt(cv: CanonicalCV) -> dict[str, str]:
    """Condensed, scrubbed facts for letter and matching prompts.

    Most recent role, skills and most recent education only.
    """
    recent = cv.experience[0] if cv.experience else None
    education = cv.education[0] if cv.education else None

    role = "Not provided"
    if recent:
        role = f"{recent.title or 'Role'} at {recent.company or 'a company'}"
        if recent.description:
            role += f": {recent.description}"
        if recent.achievements:
            role += f" Achievements: {'; '.join(recent.achievements)}"

    degree = "Not provided"
    if education:
        degree = f"{education.degree or 'Degree'}, {education.institution or 'Institution'}"
        if education.year:
            degree += f" ({education.year})"

    return {
        "headline": scrub_text(cv.headline or "Professional", cv),
        "recent_experience": scrub_text(role, cv),
        "skills": ", ".join(scrub_all(cv.all_skills, cv)) or "Not provided",
        "education": scrub_text(degree, cv),
        "summary": scrub_text(cv.summary or "Not provided", cv),
    }
