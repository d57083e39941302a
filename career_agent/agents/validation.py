"""Two-stage gate for untrusted model output.

Stage one pulls a JSON object out of free text. Stage two validates that
candidate against a pydantic schema. Neither stage raises: callers branch on
``ok`` and decide whether a failure is recoverable.

    extraction = extract_json_candidate(response.content)
    if not extraction.ok:
        ...
    result = validate_candidate(extraction.candidate, IntentClassification)
    if result.ok:
        use(result.value)
"""

import json
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class FieldIssue:
    """One validation failure.

    Attributes:
        path: Dotted location of the offending value ("" for the root).
        reason: What is wrong with it.
    """

    path: str
    reason: str


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of pulling a JSON object out of free text."""

    candidate: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.candidate is not None


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of schema validation: either a typed value or issues."""

    value: T | None = None
    issues: tuple[FieldIssue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.value is not None

    def describe(self) -> str:
        """Issues joined as ``path: reason`` for logging."""
        return "; ".join(f"{i.path or '<root>'}: {i.reason}" for i in self.issues)


# =============================================================================
# Stage 1: extraction
# =============================================================================


def _find_object_end(text: str, start: int) -> int | None:
    """Index of the brace closing the object opened at ``start``.

    Braces inside JSON string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_candidate(text: str | None) -> ExtractionResult:
    """Find and parse the first top-level JSON object in free text.

    Models often wrap their JSON in prose or markdown fences. Each ``{`` is
    tried in order until one opens a balanced block that parses as an object.

    Args:
        text: Raw model output.

    Returns:
        ExtractionResult with the parsed dict, or an error description.
    """
    if not text:
        return ExtractionResult(error="empty response")

    start = text.find("{")
    if start == -1:
        return ExtractionResult(error="no JSON object found")

    last_error = "unbalanced braces"
    while start != -1:
        end = _find_object_end(text, start)
        if end is not None:
            try:
                parsed = json.loads(text[start : end + 1])
            except json.JSONDecodeError as e:
                last_error = f"invalid JSON: {e.msg}"
            else:
                if isinstance(parsed, dict):
                    return ExtractionResult(candidate=parsed)
                last_error = "JSON value is not an object"
        start = text.find("{", start + 1)

    return ExtractionResult(error=last_error)


# =============================================================================
# Stage 2: validation
# =============================================================================


def validate_candidate(candidate: Any, schema: type[T]) -> ValidationResult[T]:
    """Validate a candidate value against a pydantic schema.

    Args:
        candidate: Value produced by extraction (normally a dict).
        schema: Pydantic model class describing the expected shape.

    Returns:
        ValidationResult carrying the typed value or a tuple of FieldIssue.
    """
    if not isinstance(candidate, dict):
        return ValidationResult(
            issues=(FieldIssue(path="", reason="expected a JSON object"),)
        )

    try:
        value = schema.model_validate(candidate)
    except PydanticValidationError as e:
        issues = tuple(
            FieldIssue(
                path=".".join(str(part) for part in err["loc"]),
                reason=err["msg"],
            )
            for err in e.errors()
        )
        return ValidationResult(issues=issues)

    return ValidationResult(value=value)


def parse_model_output(text: str | None, schema: type[T]) -> ValidationResult[T]:
    """Extract then validate. Extraction failure becomes a root-level issue."""
    extraction = extract_json_candidate(text)
    if not extraction.ok:
        return ValidationResult(
            issues=(FieldIssue(path="", reason=extraction.error or "no JSON"),)
        )
    return validate_candidate(extraction.candidate, schema)
