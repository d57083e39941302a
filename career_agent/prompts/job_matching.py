"""Job matching prompt."""

from typing import Any

from career_agent.core.llm_sanitization import sanitize_llm_input

_MAX_POSTING_DESCRIPTION = 600
_MAX_FIELD_LENGTH = 500

JOB_MATCHING_SYSTEM_PROMPT = (
    "You are a recruiter matching a candidate to open positions. Always respond "
    "with valid JSON matching the requested format."
)

_JOB_MATCHING_USER_TEMPLATE = """Score how well the candidate fits each posting.

<candidate>
Professional Headline: {headline}
Summary: {summary}
Recent Experience: {recent_experience}
Skills: {skills}
Education: {education}
</candidate>

<postings>
{postings}
</postings>

For each posting give a match score from 0 to 100, one or two sentences on why,
and the candidate skills or keywords that match the posting.

OUTPUT FORMAT (JSON only):
{{
  "matches": [
    {{
      "jobId": "<id exactly as given>",
      "matchScore": <integer 0-100>,
      "matchReason": "<why this is or is not a fit>",
      "keywordMatches": ["<matching keyword>"]
    }}
  ]
}}

Only use job ids from the list above. Return ONLY valid JSON."""


def _format_posting(posting: dict[str, Any]) -> str:
    description = sanitize_llm_input(
        str(posting.get("description") or ""), max_length=_MAX_POSTING_DESCRIPTION
    )
    return (
        f"[id: {sanitize_llm_input(str(posting.get('id', '')))}]\n"
        f"Title: {sanitize_llm_input(str(posting.get('title') or 'Untitled'))}\n"
        f"Company: {sanitize_llm_input(str(posting.get('company') or 'Unknown'))}\n"
        f"Location: {sanitize_llm_input(str(posting.get('location') or 'Not specified'))}\n"
        f"Description: {description}"
    )


def build_job_matching_prompt(
    *, cv_facts: dict[str, str], postings: list[dict[str, Any]]
) -> str:
    """Build the matching user prompt from scrubbed CV facts and postings."""
    return _JOB_MATCHING_USER_TEMPLATE.format(
        headline=sanitize_llm_input(cv_facts["headline"], max_length=_MAX_FIELD_LENGTH),
        summary=sanitize_llm_input(cv_facts["summary"], max_length=_MAX_FIELD_LENGTH),
        recent_experience=sanitize_llm_input(
            cv_facts["recent_experience"], max_length=_MAX_FIELD_LENGTH
        ),
        skills=sanitize_llm_input(cv_facts["skills"], max_length=_MAX_FIELD_LENGTH),
        education=sanitize_llm_input(cv_facts["education"], max_length=_MAX_FIELD_LENGTH),
        postings="\n\n".join(_format_posting(p) for p in postings),
    )
