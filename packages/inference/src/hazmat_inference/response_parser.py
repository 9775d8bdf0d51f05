"""Permissive parsing of model responses.

Models wrap JSON in Markdown fences or surround it with prose. Parsing
tries, in order:
    1. The fenced block (or the whole text when unfenced)
    2. The first balanced ``{...}`` (or ``[...]``) span, string-aware
and raises MalformedResponse when neither yields valid JSON.
"""

import json
import re
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from hazmat_common import MalformedResponse, get_logger
from hazmat_contracts import Severity, Suggestion, ValidationResult, ValidationStatus

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE = re.compile(r"```[A-Za-z]*[ \t]*\n?(.*?)```", re.DOTALL)

_BRACKETS = {dict: ("{", "}"), list: ("[", "]")}

# Higher is stricter
STATUS_STRICTNESS = {
    ValidationStatus.PASS: 0,
    ValidationStatus.WARNINGS: 1,
    ValidationStatus.FAIL: 2,
}


def strip_code_fences(text: str) -> str:
    """Return the body of the first Markdown code fence, or the trimmed text."""
    match = _FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def find_balanced_span(text: str, open_char: str = "{", close_char: str = "}") -> Optional[str]:
    """Find the first balanced bracket span, ignoring brackets inside strings.

    Example:
        >>> find_balanced_span('Result: {"a": "}"} done')
        '{"a": "}"}'
    """
    start = text.find(open_char)
    if start == -1:
        return None

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
        elif char == '"':
            in_string = True
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def parse_json_payload(raw: str, expect: type = dict) -> Any:
    """Extract a JSON object (or array) from a model response.

    Args:
        raw: Raw response text
        expect: ``dict`` for an object, ``list`` for an array

    Returns:
        Parsed JSON value of the expected type

    Raises:
        MalformedResponse: If no valid JSON of that type can be found
    """
    open_char, close_char = _BRACKETS[expect]

    data = _loads(strip_code_fences(raw), expect)
    if data is not None:
        return data

    span = find_balanced_span(raw, open_char, close_char)
    if span is not None:
        data = _loads(span, expect)
        if data is not None:
            return data

    logger.error("json_parse_error", response=raw[:500])
    raise MalformedResponse("Invalid response format from AI model", raw=raw)


def _loads(text: str, expect: type) -> Any:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, expect) else None


def parse_model(raw: str, model: type[ModelT]) -> ModelT:
    """Parse a response into a pydantic model.

    Raises:
        MalformedResponse: If the JSON is missing or doesn't fit the model
    """
    data = parse_json_payload(raw)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(
            "response_shape_error",
            model=model.__name__,
            errors=e.error_count(),
            response=raw[:500],
        )
        raise MalformedResponse(
            f"AI response does not match {model.__name__}: {e.error_count()} invalid field(s)",
            raw=raw,
        ) from e


def status_from_issues(issues) -> ValidationStatus:
    """Status implied by the worst issue severity."""
    severities = {issue.severity for issue in issues}
    if Severity.CRITICAL in severities:
        return ValidationStatus.FAIL
    if Severity.WARNING in severities:
        return ValidationStatus.WARNINGS
    return ValidationStatus.PASS


def reconcile_status(result: ValidationResult) -> ValidationResult:
    """Make the status at least as strict as the issues imply.

    A model status more lenient than its own issues is overridden; the
    original value is kept in ``metadata["model_status"]``.
    """
    derived = status_from_issues(result.issues)
    if STATUS_STRICTNESS[derived] <= STATUS_STRICTNESS[result.status]:
        return result

    logger.warning(
        "model_status_overridden",
        model_status=result.status.value,
        effective_status=derived.value,
        issues=len(result.issues),
    )
    metadata = {**(result.metadata or {}), "model_status": result.status.value}
    return result.model_copy(update={"status": derived, "metadata": metadata})


def normalize_json_response(raw: str) -> ValidationResult:
    """Parse a validation response into a ValidationResult.

    Raises:
        MalformedResponse: If the response has no usable JSON object or it
            doesn't have the validation result shape
    """
    return reconcile_status(parse_model(raw, ValidationResult))


def parse_suggestions(raw: str, limit: int = 3) -> list[Suggestion]:
    """Parse a suggestion array, highest confidence first.

    Entries that don't fit the Suggestion shape are dropped.

    Raises:
        MalformedResponse: If no JSON array can be found
    """
    suggestions = []
    for entry in parse_json_payload(raw, expect=list):
        try:
            suggestions.append(Suggestion.model_validate(entry))
        except ValidationError:
            logger.debug("suggestion_dropped", entry=str(entry)[:200])

    suggestions.sort(key=lambda s: -s.confidence)
    return suggestions[:limit]
