"""ATS assessment prompts.

The CV body handed to build_ats_prompt() must already be the sanitized
rendering from cv_sanitization.format_cv_for_analysis(); this module never
sees raw contact data.
"""

from career_agent.core.llm_sanitization import sanitize_llm_input

ATS_SYSTEM_PROMPT = (
    "You are an expert ATS and CV assessment specialist. Always respond with "
    "valid JSON matching the requested format. Provide detailed explanations "
    "that help candidates understand their grades."
)

_ATS_USER_TEMPLATE = """Provide a comprehensive ATS assessment that evaluates both technical parseability and human reading effectiveness of the CV below.

Contact information is described by availability and format only; actual values are withheld for privacy. Do not penalize the absence of literal values.

<cv>
{cv_body}
</cv>

ASSESSMENT FRAMEWORK

1. ATS TECHNICAL PARSEABILITY
- Sequential parsing: multi-column layouts, tables and text boxes confuse parsers
- Contact information must be present and well formatted
- Standard section headers (Experience, Education, Skills) are recognized reliably

2. CONTENT QUALITY
- Achievements with metrics beat lists of responsibilities
- Strong action verbs ("implemented", "reduced", "led") beat passive phrasing
- A summary should state what value the candidate creates, for whom, on what evidence
- Education prominence should fit the career stage

3. KEYWORD CONTEXT
- Keywords should appear in context (projects, achievements), not only in a skills list
- Keyword stuffing reads as manipulative

4. COHERENCE
- Skills listed should be demonstrated in the experience
- Seniority claims should match the language and scope of achievements

REQUIRED JSON OUTPUT FORMAT:
{{
  "overallScore": <integer 0-100>,
  "atsScore": <integer 0-100>,
  "contentScore": <integer 0-100>,
  "strengths": [<3-5 specific strengths>],
  "weaknesses": [<3-5 specific weaknesses>],
  "suggestions": [<5-7 specific, actionable suggestions>],
  "details": {{
    "parseability": <integer 0-100>,
    "contactInfo": <integer 0-100>,
    "formatting": <integer 0-100>,
    "contentQuality": <integer 0-100>,
    "quantification": <integer 0-100>,
    "summaryQuality": <integer 0-100>,
    "skillsSupport": <integer 0-100>,
    "keywordContext": <integer 0-100>,
    "coherence": <integer 0-100>
  }},
  "explanation": {{
    "gradeExplanation": "<what the overall grade means>",
    "atsExplanation": "<ATS score and parseability issues>",
    "contentExplanation": "<content quality and effectiveness>",
    "keyFindings": [<3-5 key findings>]
  }}
}}

Be specific and evidence-based: cite what in the CV led to each finding.
Return ONLY valid JSON."""


def build_ats_prompt(cv_body: str, *, max_chars: int) -> str:
    """Build the ATS assessment user prompt.

    Args:
        cv_body: Sanitized CV rendering.
        max_chars: Cap on the embedded CV length.

    Returns:
        Formatted user prompt.
    """
    return _ATS_USER_TEMPLATE.format(
        cv_body=sanitize_llm_input(cv_body, max_length=max_chars)
    )
