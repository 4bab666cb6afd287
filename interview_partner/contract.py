"""
Response contract parsing.

Extracts structured objects from raw generator text. The generator is
instructed to answer with a bare JSON object but frequently wraps it in
prose or Markdown fences, so parsing is two-step:

    1. Strict JSON parse of the whole text.
    2. Scan for a balanced ``{...}`` span and parse that.

The scan tracks JSON string literals and escapes, so braces inside string
values never terminate the object early.

Example:
    >>> parsed = parse_agent_response(
    ...     'Sure! {"reply": "hi", "phase": "in_progress", "question_type": "intro"}',
    ...     SessionPhase.IN_PROGRESS,
    ... )
    >>> parsed.response.reply
    'hi'

Last Grunted: 10/17/2026
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from pydantic import ValidationError

from .errors import ContractViolation, InvalidShape
from .models import (
    RATING_MAX,
    RATING_MIN,
    AgentResponse,
    ParsedAgentResponse,
    ParsedValidationResult,
    QuestionType,
    SessionPhase,
    ValidationResult,
)
from .phases import phase_requires_rating


__all__ = [
    "DEFAULT_RATING",
    "UNPARSABLE_REVIEW_TEXT",
    "find_balanced_object",
    "extract_json_object",
    "parse_agent_response",
    "parse_validation_result",
    "parse_validation_review",
    "degraded_validation_result",
]


logger = logging.getLogger(__name__)


DEFAULT_RATING = 5
PASSING_RATING = 7
UNPARSABLE_REVIEW_TEXT = "Unable to parse AI response"

_PHASE_VALUES = {phase.value for phase in SessionPhase}
_QUESTION_TYPE_VALUES = {question_type.value for question_type in QuestionType}


# =============================================================================
# JSON Extraction
# =============================================================================


def _match_closing_brace(text: str, start: int) -> int | None:
    """Return the index of the brace closing the one at ``start``."""
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


def _loads_object(text: str) -> dict[str, Any] | None:
    """Parse ``text`` as JSON; None unless it is an object."""
    # ValueError covers JSONDecodeError and the int digit limit.
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def find_balanced_object(text: str) -> dict[str, Any] | None:
    """
    Find the first balanced ``{...}`` span that parses as a JSON object.

    Candidate spans are tried in order of their opening brace. A span that
    balances but is not valid JSON (for example ``{draft}`` in leading
    prose) is skipped.

    Args:
        text: Raw generator text.

    Returns:
        The parsed object, or None if no span parses.
    """
    start = text.find("{")
    while start != -1:
        end = _match_closing_brace(text, start)
        if end is not None:
            parsed = _loads_object(text[start : end + 1])
            if parsed is not None:
                return parsed
        start = text.find("{", start + 1)
    return None


def extract_json_object(raw_text: str | None) -> dict[str, Any]:
    """
    Extract a JSON object from raw generator text.

    Args:
        raw_text: Text returned by the generator.

    Returns:
        The parsed object.

    Raises:
        ContractViolation: If neither the strict parse nor the balanced
            brace scan yields a JSON object.
    """
    text = (raw_text or "").strip()
    if not text:
        raise ContractViolation("Generator returned an empty response", raw_text=raw_text)

    parsed = _loads_object(text)
    if parsed is not None:
        return parsed

    parsed = find_balanced_object(text)
    if parsed is None:
        raise ContractViolation(raw_text=raw_text)

    logger.debug("Recovered JSON object from wrapped generator output")
    return parsed


# =============================================================================
# Field Coercion
# =============================================================================


def _coerce_rating(value: Any) -> tuple[int | None, bool]:
    """
    Coerce a raw rating into the 1-10 range.

    Returns:
        Tuple of (rating_or_none, clamped). ``clamped`` is True when the
        rounded rating fell outside 1-10.
    """
    if value is None or isinstance(value, bool):
        return None, False

    if isinstance(value, int):
        rating = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None, False

        if math.isnan(number) or math.isinf(number):
            return None, False
        rating = int(round(number))

    clamped = min(max(rating, RATING_MIN), RATING_MAX)
    return clamped, clamped != rating


def _normalize_enum_value(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip().lower()


# =============================================================================
# Agent Response Contract
# =============================================================================


def parse_agent_response(raw_text: str | None, phase: SessionPhase) -> ParsedAgentResponse:
    """
    Parse generator output for an interview turn.

    Args:
        raw_text: Text returned by the generator.
        phase: Phase the turn was requested in.

    Returns:
        ParsedAgentResponse. ``degraded`` is set when a feedback rating
        was missing (defaulted to 5) or had to be clamped into range.

    Raises:
        ContractViolation: If no JSON object can be extracted.
        InvalidShape: If reply, phase or question_type is missing or
            outside its allowed values.
    """
    data = extract_json_object(raw_text)

    reply = data.get("reply")
    if not isinstance(reply, str) or not reply.strip():
        raise InvalidShape()

    reported_phase = _normalize_enum_value(data.get("phase"))
    if reported_phase not in _PHASE_VALUES:
        raise InvalidShape()

    question_type = _normalize_enum_value(data.get("question_type"))
    if question_type not in _QUESTION_TYPE_VALUES:
        raise InvalidShape()

    response_phase = SessionPhase(reported_phase)
    rating, degraded = _coerce_rating(data.get("rating"))

    if rating is None and (
        phase_requires_rating(phase) or phase_requires_rating(response_phase)
    ):
        logger.warning(
            "Generator omitted the feedback rating; defaulting to %d (degraded)",
            DEFAULT_RATING,
        )
        rating = DEFAULT_RATING
        degraded = True
    elif degraded:
        logger.warning("Generator rating %r clamped to %d (degraded)", data.get("rating"), rating)

    expect_answer = data.get("expect_candidate_answer")
    if not isinstance(expect_answer, bool):
        expect_answer = response_phase is not SessionPhase.FINAL_FEEDBACK

    response = AgentResponse(
        reply=reply,
        phase=response_phase,
        question_type=QuestionType(question_type),
        expect_answer=expect_answer,
        rating=rating,
    )
    return ParsedAgentResponse(response=response, degraded=degraded)


# =============================================================================
# Code Review Contract
# =============================================================================


def degraded_validation_result() -> ValidationResult:
    """Fixed result returned whenever a code review cannot be parsed."""
    return ValidationResult(
        is_valid=False,
        rating=DEFAULT_RATING,
        syntax_check=UNPARSABLE_REVIEW_TEXT,
        logic_check=UNPARSABLE_REVIEW_TEXT,
        best_practices=UNPARSABLE_REVIEW_TEXT,
        issues=["Failed to parse validation response"],
        suggestions=["Please check the code manually"],
        summary="Validation service encountered an error. Please review the code manually.",
    )


def parse_validation_review(raw_text: str | None) -> ParsedValidationResult:
    """
    Parse generator output for a code review.

    Never raises: any extraction or validation failure yields
    :func:`degraded_validation_result` with ``degraded`` set.

    Args:
        raw_text: Text returned by the generator.

    Returns:
        ParsedValidationResult whose result has missing lists defaulted to
        empty and a missing ``isValid`` derived from the rating
        (``rating >= 7``).
    """
    try:
        data = extract_json_object(raw_text)
    except ContractViolation:
        logger.warning("Code review output unparsable; returning degraded result")
        return ParsedValidationResult(result=degraded_validation_result(), degraded=True)

    rating, _ = _coerce_rating(data.get("rating"))
    if rating is None:
        rating = DEFAULT_RATING

    is_valid = data.get("isValid")
    if is_valid is None:
        is_valid = rating >= PASSING_RATING

    payload = {
        "isValid": is_valid,
        "rating": rating,
        "syntaxCheck": data.get("syntaxCheck") or "",
        "logicCheck": data.get("logicCheck") or "",
        "bestPractices": data.get("bestPractices") or "",
        "issues": data.get("issues") or [],
        "suggestions": data.get("suggestions") or [],
        "summary": data.get("summary") or "",
    }

    try:
        result = ValidationResult.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Code review output has an invalid shape (%s); returning degraded result", exc)
        return ParsedValidationResult(result=degraded_validation_result(), degraded=True)
    return ParsedValidationResult(result=result)


def parse_validation_result(raw_text: str | None) -> ValidationResult:
    """Parse a code review, returning just the ValidationResult."""
    return parse_validation_review(raw_text).result
