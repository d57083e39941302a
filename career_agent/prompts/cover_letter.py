"""Cover letter prompts.

Generate mode writes from scratch; enhance mode revises an existing draft.
Both carry the same structure rules and the cliché blocklist as explicit
negative constraints.
"""

from career_agent.core.llm_sanitization import sanitize_llm_input
from career_agent.services.cover_letter_quality import COVER_LETTER_CLICHES

_MAX_FIELD_LENGTH = 500
"""Maximum characters for each condensed CV fact."""

_MAX_EXISTING_LETTER_LENGTH = 4000

COVER_LETTER_SYSTEM_PROMPT = (
    "You are an expert cover letter writer. Always respond with valid JSON "
    "containing the letter and any warnings."
)

_COVER_LETTER_USER_TEMPLATE = """TASK: {task}

<candidate>
Professional Headline: {headline}
Recent Experience: {recent_experience}
Key Skills: {skills}
Education: {education}
</candidate>

<target_job>
Position: {job_title}
Company: {company}
Job Description: {description}
</target_job>
{existing_letter_block}
REQUIREMENTS

Structure (3 paragraphs, 300-400 words total):
1. Opening (strong hook): genuine interest in this specific role, something specific about the company, immediate relevance. No generic openings like "I am writing to apply".
2. Qualifications (specific evidence): connect 2-3 experiences to the job requirements, with quantified achievements where possible.
3. Closing (clear call to action): enthusiasm for next steps and the contribution the candidate will make.

NEVER USE THESE CLICHÉS:
{cliches}

DO:
- Be specific: "Increased API performance by 45%" not "improved systems"
- Name the company more than once
- Reference specific responsibilities from the job description
- Use active voice and strong verbs
- Sign off with "[Your Name]"; do not invent the candidate's name or contact details

OUTPUT FORMAT (JSON only):
{{
  "content": "<cover letter text with paragraphs separated by blank lines>",
  "warnings": ["<any writing issues found>"]
}}

Return ONLY valid JSON."""

_EXISTING_LETTER_TEMPLATE = """
<current_letter>
{letter}
</current_letter>
"""


def build_cover_letter_prompt(
    *,
    cv_facts: dict[str, str],
    job_title: str,
    company: str,
    description: str,
    max_description_chars: int,
    existing_letter: str | None = None,
) -> str:
    """Build the cover letter user prompt.

    Args:
        cv_facts: Scrubbed facts from summarize_cv_for_prompt().
        job_title: Target job title.
        company: Target company.
        description: Raw job description (truncated here).
        max_description_chars: Cap on the description excerpt.
        existing_letter: Draft to revise; switches the prompt to enhance mode.

    Returns:
        Formatted user prompt.
    """
    task = (
        "Enhance this cover letter"
        if existing_letter
        else "Generate a cover letter"
    )
    existing_block = (
        _EXISTING_LETTER_TEMPLATE.format(
            letter=sanitize_llm_input(
                existing_letter, max_length=_MAX_EXISTING_LETTER_LENGTH
            )
        )
        if existing_letter
        else ""
    )

    return _COVER_LETTER_USER_TEMPLATE.format(
        task=task,
        headline=sanitize_llm_input(cv_facts["headline"], max_length=_MAX_FIELD_LENGTH),
        recent_experience=sanitize_llm_input(
            cv_facts["recent_experience"], max_length=_MAX_FIELD_LENGTH
        ),
        skills=sanitize_llm_input(cv_facts["skills"], max_length=_MAX_FIELD_LENGTH),
        education=sanitize_llm_input(cv_facts["education"], max_length=_MAX_FIELD_LENGTH),
        job_title=sanitize_llm_input(job_title, max_length=_MAX_FIELD_LENGTH),
        company=sanitize_llm_input(company, max_length=_MAX_FIELD_LENGTH),
        description=sanitize_llm_input(description or "Not provided")[
            :max_description_chars
        ],
        existing_letter_block=existing_block,
        cliches="\n".join(f'- "{c}"' for c in COVER_LETTER_CLICHES),
    )
