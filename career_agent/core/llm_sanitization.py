"""Neutralize prompt-injection markers in untrusted text.

Chat messages, job descriptions and CV free text all end up inside prompts.
``sanitize_llm_input`` rewrites the markers a model might read as a role
switch or a new instruction. Prompts additionally fence untrusted text in
named sections, so this is not the only line of defence.
"""

import re
import unicodedata

# Invisible characters that can split a keyword so that no pattern below matches
_INVISIBLE = re.compile(
    "["
    "\u00ad"  # soft hyphen
    "\u200b-\u200f"  # zero-width space/joiners, LRM, RLM
    "\u202a-\u202e"  # bidi embeddings and overrides
    "\u2060-\u2064"  # word joiner, invisible operators
    "\u2066-\u2069"  # bidi isolates
    "\ufeff"  # zero-width no-break space
    "]"
)

# C0 controls and DEL, except tab, newline and carriage return
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_TAG = "[TAG]"
_FILTERED = "[FILTERED]"

_LINE_START = re.IGNORECASE | re.MULTILINE

_REWRITES: list[tuple[re.Pattern[str], str]] = [
    # "SYSTEM:", "Human:", "Assistant:" opening a line
    (re.compile(r"^\s*(?:system|human|assistant)\s*:", _LINE_START), f"{_FILTERED}:"),
    # Role tags and the section tags our own prompt templates use
    (
        re.compile(
            r"<\s*/?\s*(?:system|user|assistant|user_message|cv|candidate"
            r"|target_job|postings|current_letter)\s*>",
            re.IGNORECASE,
        ),
        _TAG,
    ),
    (re.compile(r"<\|(?:system|user|assistant|im_start|im_end)\|>", re.IGNORECASE), _TAG),
    (
        re.compile(
            r"ignore\s+(?:all\s+)?(?:the\s+)?previous\s+instructions?", re.IGNORECASE
        ),
        _FILTERED,
    ),
    (re.compile(r"disregard\s+(?:all\s+)?(?:prior|previous)", re.IGNORECASE), _FILTERED),
    (re.compile(r"forget\s+everything", re.IGNORECASE), _FILTERED),
    (re.compile(r"new\s+instructions?\s*:", re.IGNORECASE), f"{_FILTERED}:"),
    (re.compile(r"\[/?INST\]", re.IGNORECASE), _FILTERED),
    # A whole line shaped like one of our "=== SECTION ===" headers
    (re.compile(r"^\s*===[^=\n]*===\s*$", re.MULTILINE), _FILTERED),
]


def normalize_untrusted(text: str) -> str:
    """NFKC-fold ``text`` and drop invisible and control characters.

    Run this before any pattern match on untrusted text, so that a keyword
    split by a zero-width space or written in fullwidth letters still matches.
    """
    # NFKC first so fullwidth letters (Ｓ) match the ASCII patterns
    folded = unicodedata.normalize("NFKC", text)
    return _CONTROL.sub("", _INVISIBLE.sub("", folded))


def sanitize_llm_input(text: str | None, max_length: int | None = None) -> str:
    """Return ``text`` with injection markers rewritten.

    Args:
        text: Untrusted text, or None.
        max_length: Truncate the cleaned text to this many characters and
            mark the cut with "...".

    Returns:
        The cleaned text; "" for None or empty input.
    """
    if not text:
        return ""

    cleaned = normalize_untrusted(text)

    for pattern, replacement in _REWRITES:
        cleaned = pattern.sub(replacement, cleaned)

    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length].rstrip() + "..."
    return cleaned
