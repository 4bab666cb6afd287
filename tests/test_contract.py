"""
Tests for response contract parsing.

Covers the two-step JSON extraction, agent response shape validation,
rating defaults and the code review fallback.

Last Grunted: 10/17/2026
"""

from __future__ import annotations

import pytest

from interview_partner.contract import (
    DEFAULT_RATING,
    degraded_validation_result,
    extract_json_object,
    find_balanced_object,
    parse_agent_response,
    parse_validation_result,
    parse_validation_review,
)
from interview_partner.errors import ContractViolation, InvalidShape
from interview_partner.models import QuestionType, SessionPhase
from tests.mock_data import (
    CLEAN_INTRO,
    CLEAN_REVIEW,
    FEEDBACK_WITHOUT_RATING,
    FENCED_TECHNICAL,
    MALFORMED_OUTPUTS,
    WRAPPED_INTRO,
    generate_agent_json,
    generate_feedback_json,
)


# =============================================================================
# JSON Extraction
# =============================================================================


class TestExtractJsonObject:
    """Tests for the strict-then-scan extraction."""

    def test_strict_object(self):
        """A bare JSON object parses directly."""
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_surrounding_whitespace(self):
        """Leading and trailing whitespace is tolerated."""
        assert extract_json_object('\n\n  {"a": 1}  \n') == {"a": 1}

    def test_object_after_prose(self):
        """An object embedded after prose is recovered."""
        assert extract_json_object('Sure! Here you go: {"a": {"b": 2}} Thanks.') == {"a": {"b": 2}}

    def test_markdown_fence(self):
        """An object inside a Markdown code fence is recovered."""
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_braces_inside_strings(self):
        """Braces inside string values do not end the object early."""
        text = 'prefix {"reply": "use } and { freely", "n": 1} suffix'
        assert extract_json_object(text) == {"reply": "use } and { freely", "n": 1}

    def test_escaped_quotes_inside_strings(self):
        """Escaped quotes keep the scanner inside the string literal."""
        text = 'ok {"reply": "she said \\"}\\" twice"} done'
        assert extract_json_object(text) == {"reply": 'she said "}" twice'}

    def test_skips_unparsable_balanced_span(self):
        """A balanced but invalid span is skipped for a later valid one."""
        text = 'Draft {not json} final {"a": 1}'
        assert extract_json_object(text) == {"a": 1}

    def test_skips_unbalanced_opener(self):
        """An opener that never closes does not hide a later object."""
        assert find_balanced_object('{"a": {"b": 1}') == {"b": 1}

    def test_first_object_wins(self):
        """The first complete object is returned, not the largest."""
        assert extract_json_object('{"first": 1} and {"second": 2}') == {"first": 1}

    @pytest.mark.parametrize("raw", MALFORMED_OUTPUTS)
    def test_malformed_raises_contract_violation(self, raw):
        """Text without a JSON object raises ContractViolation."""
        with pytest.raises(ContractViolation) as exc_info:
            extract_json_object(raw)
        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "CONTRACT_VIOLATION"

    def test_none_raises_contract_violation(self):
        """None input is treated as empty."""
        with pytest.raises(ContractViolation):
            extract_json_object(None)

    @pytest.mark.parametrize(
        "raw",
        [
            '{"rating": ' + "9" * 5000 + "}",
            "[" * 100000 + "]" * 100000,
            'Sure! {"reply": ' + "[" * 100000 + "]" * 100000 + "}",
        ],
    )
    def test_undecodable_json_raises_contract_violation(self, raw):
        """Over-long integers and deep nesting fail as ContractViolation."""
        with pytest.raises(ContractViolation):
            extract_json_object(raw)


# =============================================================================
# Agent Response Contract
# =============================================================================


class TestParseAgentResponse:
    """Tests for interview turn parsing."""

    def test_clean_object(self):
        """A clean object yields its fields and is not degraded."""
        parsed = parse_agent_response(CLEAN_INTRO, SessionPhase.IN_PROGRESS)

        assert parsed.response.reply == "hi"
        assert parsed.response.phase is SessionPhase.IN_PROGRESS
        assert parsed.response.question_type is QuestionType.INTRO
        assert parsed.response.expect_answer is True
        assert parsed.response.rating is None
        assert parsed.degraded is False

    def test_wrapped_object_recovered_identically(self):
        """Prose before the object does not change the parse."""
        clean = parse_agent_response(CLEAN_INTRO, SessionPhase.IN_PROGRESS)
        wrapped = parse_agent_response(WRAPPED_INTRO, SessionPhase.IN_PROGRESS)

        assert wrapped.response == clean.response
        assert wrapped.degraded is False

    def test_fenced_object_with_braces_in_reply(self):
        """A fenced object whose reply contains braces parses intact."""
        parsed = parse_agent_response(FENCED_TECHNICAL, SessionPhase.IN_PROGRESS)

        assert parsed.response.reply == "How would you use a {dict} comprehension here?"
        assert parsed.response.question_type is QuestionType.TECHNICAL

    def test_feedback_without_rating_defaults_and_degrades(self):
        """Missing feedback rating becomes 5 and is flagged degraded."""
        parsed = parse_agent_response(FEEDBACK_WITHOUT_RATING, SessionPhase.FINAL_FEEDBACK)

        assert parsed.response.rating == DEFAULT_RATING == 5
        assert parsed.degraded is True
        assert parsed.response.expect_answer is False

    def test_reported_feedback_phase_requires_rating(self):
        """A feedback phase reported by the generator also gets the default."""
        parsed = parse_agent_response(FEEDBACK_WITHOUT_RATING, SessionPhase.IN_PROGRESS)

        assert parsed.response.rating == 5
        assert parsed.degraded is True

    def test_feedback_with_rating_is_clean(self):
        """A feedback object with a valid rating is not degraded."""
        parsed = parse_agent_response(generate_feedback_json(rating=8), SessionPhase.FINAL_FEEDBACK)

        assert parsed.response.rating == 8
        assert parsed.degraded is False

    def test_absent_rating_stays_absent_outside_feedback(self):
        """Question turns never get a default rating."""
        parsed = parse_agent_response(CLEAN_INTRO, SessionPhase.IN_PROGRESS)
        assert parsed.response.rating is None

    @pytest.mark.parametrize(
        "raw_rating, expected",
        [(7.4, 7), (7.6, 8), ("9", 9)],
    )
    def test_numeric_rating_rounded(self, raw_rating, expected):
        """Numeric ratings are rounded to integers without degrading."""
        parsed = parse_agent_response(generate_feedback_json(rating=raw_rating), SessionPhase.FINAL_FEEDBACK)
        assert parsed.response.rating == expected
        assert parsed.degraded is False

    @pytest.mark.parametrize("raw_rating, expected", [(0, 1), (-3, 1), (11, 10), (42.5, 10)])
    def test_out_of_range_rating_clamped_and_degraded(self, raw_rating, expected):
        """Out-of-range ratings are clamped and flagged degraded."""
        parsed = parse_agent_response(generate_feedback_json(rating=raw_rating), SessionPhase.FINAL_FEEDBACK)

        assert parsed.response.rating == expected
        assert parsed.degraded is True

    def test_huge_integer_rating_clamped(self):
        """An integer rating too large for a float is clamped to 10."""
        parsed = parse_agent_response(generate_feedback_json(rating=10**400), SessionPhase.FINAL_FEEDBACK)

        assert parsed.response.rating == 10
        assert parsed.degraded is True

    def test_non_numeric_rating_treated_as_absent(self):
        """A non-numeric feedback rating falls back to the default."""
        parsed = parse_agent_response(generate_feedback_json(rating="great"), SessionPhase.FINAL_FEEDBACK)

        assert parsed.response.rating == 5
        assert parsed.degraded is True

    def test_expect_answer_defaults_by_phase(self):
        """Missing expect_candidate_answer is true except for feedback."""
        question = parse_agent_response(
            generate_agent_json(expect_candidate_answer=None),
            SessionPhase.IN_PROGRESS,
        )
        feedback = parse_agent_response(
            generate_agent_json(
                phase="final_feedback",
                question_type="feedback",
                expect_candidate_answer=None,
                rating=6,
            ),
            SessionPhase.FINAL_FEEDBACK,
        )

        assert question.response.expect_answer is True
        assert feedback.response.expect_answer is False

    def test_enum_values_case_insensitive(self):
        """Phase and question type are matched after lowercasing."""
        parsed = parse_agent_response(
            generate_agent_json(phase=" In_Progress ", question_type="TECHNICAL"),
            SessionPhase.IN_PROGRESS,
        )
        assert parsed.response.phase is SessionPhase.IN_PROGRESS
        assert parsed.response.question_type is QuestionType.TECHNICAL

    @pytest.mark.parametrize(
        "raw",
        [
            '{"phase": "in_progress", "question_type": "intro"}',
            '{"reply": "", "phase": "in_progress", "question_type": "intro"}',
            '{"reply": "   ", "phase": "in_progress", "question_type": "intro"}',
            '{"reply": 42, "phase": "in_progress", "question_type": "intro"}',
            '{"reply": "hi", "question_type": "intro"}',
            '{"reply": "hi", "phase": "wrapping_up", "question_type": "intro"}',
            '{"reply": "hi", "phase": "in_progress"}',
            '{"reply": "hi", "phase": "in_progress", "question_type": "small_talk"}',
        ],
    )
    def test_missing_or_invalid_fields_raise_invalid_shape(self, raw):
        """Missing reply, phase or question type raises InvalidShape."""
        with pytest.raises(InvalidShape) as exc_info:
            parse_agent_response(raw, SessionPhase.IN_PROGRESS)
        assert exc_info.value.message == "Invalid response format from LLM"

    def test_no_object_raises_contract_violation(self):
        """Plain prose raises ContractViolation, not InvalidShape."""
        with pytest.raises(ContractViolation):
            parse_agent_response("Let's start the interview!", SessionPhase.IDLE)


# =============================================================================
# Code Review Contract
# =============================================================================


class TestParseValidationResult:
    """Tests for code review parsing."""

    def test_clean_review(self):
        """A complete review parses field by field."""
        result = parse_validation_result(CLEAN_REVIEW)

        assert result.is_valid is True
        assert result.rating == 8
        assert result.syntax_check == "No syntax errors"
        assert result.suggestions == ["Add a docstring"]
        assert result.summary == "Clean, working code."

    def test_wire_keys_are_camel_case(self):
        """Serialization uses the camelCase keys."""
        data = parse_validation_result(CLEAN_REVIEW).model_dump(by_alias=True)
        assert set(data) == {
            "isValid",
            "rating",
            "syntaxCheck",
            "logicCheck",
            "bestPractices",
            "issues",
            "suggestions",
            "summary",
        }

    @pytest.mark.parametrize("rating, expected", [(7, True), (6, False), (10, True)])
    def test_missing_is_valid_derived_from_rating(self, rating, expected):
        """Absent isValid becomes rating >= 7."""
        result = parse_validation_result(f'{{"rating": {rating}, "summary": "ok"}}')
        assert result.is_valid is expected

    def test_missing_fields_default(self):
        """Missing lists, checks and rating get their defaults."""
        result = parse_validation_result('{"isValid": false}')

        assert result.rating == 5
        assert result.issues == []
        assert result.suggestions == []
        assert result.syntax_check == ""
        assert result.logic_check == ""
        assert result.best_practices == ""
        assert result.summary == ""

    def test_wrapped_review_recovered(self):
        """A review wrapped in prose is recovered."""
        result = parse_validation_result(f"Here is the review:\n```json\n{CLEAN_REVIEW}\n```")
        assert result.rating == 8

    @pytest.mark.parametrize("raw", MALFORMED_OUTPUTS + [None])
    def test_malformed_output_yields_degraded_result(self, raw):
        """Unparsable output yields the fixed degraded result."""
        result = parse_validation_result(raw)

        assert result == degraded_validation_result()
        assert result.is_valid is False
        assert result.rating == 5
        assert result.syntax_check == "Unable to parse AI response"
        assert result.logic_check == "Unable to parse AI response"
        assert result.best_practices == "Unable to parse AI response"
        assert result.issues == ["Failed to parse validation response"]
        assert result.suggestions == ["Please check the code manually"]
        assert result.summary == (
            "Validation service encountered an error. Please review the code manually."
        )

    def test_wrong_field_types_yield_degraded_result(self):
        """A parsable object with unusable field types degrades."""
        result = parse_validation_result('{"isValid": true, "rating": 8, "issues": "none"}')
        assert result == degraded_validation_result()

    def test_review_degraded_flag(self):
        """Only the fallback carries the degraded flag."""
        assert parse_validation_review(CLEAN_REVIEW).degraded is False
        assert parse_validation_review("no json here").degraded is True

    def test_huge_integer_rating_clamped(self):
        """An integer rating too large for a float is clamped to 10."""
        parsed = parse_validation_review('{"isValid": true, "rating": 1' + "0" * 400 + "}")

        assert parsed.result.rating == 10
        assert parsed.degraded is False
