"""Cover letter quality checks and presentation.

The cliché scan runs on every generated letter regardless of what the prompt
asked for. Matches become warnings; the letter itself is never rejected for
style.
"""

import re
from dataclasses import dataclass

COVER_LETTER_CLICHES: tuple[str, ...] = (
    "passionate about",
    "team player",
    "think outside the box",
    "hit the ground running",
    "go-getter",
    "results-driven",
    "self-starter",
    "detail-oriented",
    "work hard, play hard",
    "unique opportunity",
    "perfect fit",
    "dream job",
)

IDEAL_WORD_RANGE = (300, 400)
ACCEPTABLE_WORD_RANGE = (250, 450)

_SPECIFICS_RE = re.compile(r"\d+%|\d+x|increased|decreased|improved", re.IGNORECASE)

NEXT_STEPS = (
    "Review and personalize the letter",
    "Save it to your dashboard",
    "Copy and paste into your application",
    "Track your application with me",
)


@dataclass(frozen=True)
class LetterQuality:
    """Heuristic quality report for a letter.

    Attributes:
        word_count: Whitespace-delimited word count.
        has_specifics: True if the letter cites numbers or measurable change.
        cliches: Blocklisted phrases found, in blocklist order.
        is_good_length: True if word_count is within ACCEPTABLE_WORD_RANGE.
    """

    word_count: int
    has_specifics: bool
    cliches: tuple[str, ...]
    is_good_length: bool


def count_words(text: str) -> int:
    return len(text.split())


def find_cliches(text: str) -> list[str]:
    """Blocklisted phrases present in text (case-insensitive)."""
    lowered = text.lower()
    return [cliche for cliche in COVER_LETTER_CLICHES if cliche in lowered]


def cliche_warning(cliches: list[str]) -> str:
    return f"Warning: Letter contains clichés: {', '.join(cliches)}"


def validate_letter_quality(text: str) -> LetterQuality:
    word_count = count_words(text)
    low, high = ACCEPTABLE_WORD_RANGE
    return LetterQuality(
        word_count=word_count,
        has_specifics=bool(_SPECIFICS_RE.search(text)),
        cliches=tuple(find_cliches(text)),
        is_good_length=low <= word_count <= high,
    )


def format_letter_message(
    content: str,
    warnings: list[str],
    title: str,
    company: str,
    *,
    revised: bool = False,
) -> str:
    """Wrap a validated letter in the chat message shown to the user."""
    heading = "## 📝 Cover Letter Revised" if revised else "## 📝 Cover Letter Generated"
    parts = [heading, "", f"**For:** {title} at {company}", "", "---", "", content, "", "---"]

    if warnings:
        parts += ["", "### ⚠️ Writing Notes", *(f"- {w}" for w in warnings)]

    parts += ["", "### Next Steps", *(f"{i}. {step}" for i, step in enumerate(NEXT_STEPS, 1))]

    low, high = IDEAL_WORD_RANGE
    parts += ["", f"*This letter is {count_words(content)} words (ideal: {low}-{high})*"]
    return "\n".join(parts)
