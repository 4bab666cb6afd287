"""
Tests for the interview orchestrator.

Runs turns against a scripted generator and checks the generation
request, history handling and phase transitions.

Last Grunted: 10/17/2026
"""

from __future__ import annotations

import pytest

from interview_partner.errors import ContractViolation, GeneratorUnavailable, InvalidShape
from interview_partner.interview import (
    INTERVIEW_TEMPERATURE,
    InterviewOrchestrator,
    advance_turn,
    build_interview_messages,
    operation_for,
)
from interview_partner.models import SessionPhase, Speaker, Turn
from interview_partner.phases import PhaseMachine, SessionOperation
from interview_partner.prompts import FEEDBACK_INSTRUCTION, JSON_REMINDER
from tests.mock_data import (
    CLEAN_INTRO,
    FEEDBACK_WITHOUT_RATING,
    TECHNICAL_QUESTION,
    ScriptedGenerator,
    generate_agent_json,
    generate_feedback_json,
    generate_history,
)


# =============================================================================
# Request Building
# =============================================================================


class TestBuildInterviewMessages:
    """Tests for converting history to chat messages."""

    def test_roles_mapped_in_order(self):
        """User turns become user messages, agent turns assistant messages."""
        history = [Turn.agent("Question?"), Turn.user("Answer.")]

        messages = build_interview_messages(SessionPhase.IN_PROGRESS, history)

        assert messages[0] == {"role": "assistant", "content": "Question?"}
        assert messages[1] == {"role": "user", "content": "Answer."}

    def test_json_reminder_closes_question_turns(self):
        """Non-feedback requests end with the JSON reminder."""
        messages = build_interview_messages(SessionPhase.IDLE, [])
        assert messages == [{"role": "user", "content": JSON_REMINDER}]

    def test_feedback_instruction_closes_feedback_turns(self):
        """Feedback requests end with the feedback instruction."""
        messages = build_interview_messages(SessionPhase.FINAL_FEEDBACK, generate_history(1))
        assert messages[-1] == {"role": "user", "content": FEEDBACK_INSTRUCTION}

    def test_operation_for_phase(self):
        """The requested phase identifies the operation."""
        assert operation_for(SessionPhase.IDLE) is SessionOperation.START_SESSION
        assert operation_for(SessionPhase.IN_PROGRESS) is SessionOperation.SUBMIT_ANSWER
        assert operation_for(SessionPhase.FINAL_FEEDBACK) is SessionOperation.REQUEST_FEEDBACK


# =============================================================================
# InterviewOrchestrator
# =============================================================================


class TestInterviewOrchestrator:
    """Tests for running turns through the orchestrator."""

    @pytest.mark.asyncio
    async def test_request_includes_context(self):
        """Role, experience and phase reach the system instructions."""
        generator = ScriptedGenerator([CLEAN_INTRO])
        orchestrator = InterviewOrchestrator(generator)

        await orchestrator.request_agent_response(SessionPhase.IDLE, "Data Engineer", 4, [])

        call = generator.calls[0]
        assert "- Role: Data Engineer" in call["instructions"]
        assert "- Experience: 4 years" in call["instructions"]
        assert "- Current phase: idle" in call["instructions"]
        assert call["temperature"] == INTERVIEW_TEMPERATURE

    @pytest.mark.asyncio
    async def test_start_discards_history(self):
        """Starting ignores any previous history."""
        generator = ScriptedGenerator([CLEAN_INTRO])
        orchestrator = InterviewOrchestrator(generator)

        result = await orchestrator.advance_turn(
            SessionPhase.IDLE, "Backend Developer", 2, generate_history(3)
        )

        assert result.phase is SessionPhase.IN_PROGRESS
        assert len(result.history) == 1
        assert result.agent_turn.text == "hi"
        assert generator.calls[0]["messages"] == [{"role": "user", "content": JSON_REMINDER}]

    @pytest.mark.asyncio
    async def test_answer_appends_two_turns(self):
        """An answer adds the user turn and the next question."""
        history = generate_history(1)
        generator = ScriptedGenerator([TECHNICAL_QUESTION])
        orchestrator = InterviewOrchestrator(generator)

        result = await orchestrator.advance_turn(
            SessionPhase.IN_PROGRESS,
            "Backend Developer",
            2,
            history,
            new_user_text="I use FastAPI daily.",
        )

        assert len(result.history) == len(history) + 2
        assert result.history[-2] == Turn.user("I use FastAPI daily.")
        assert result.history[-1].speaker is Speaker.AGENT
        assert result.phase is SessionPhase.IN_PROGRESS
        assert generator.calls[0]["messages"][-2] == {"role": "user", "content": "I use FastAPI daily."}

    @pytest.mark.asyncio
    async def test_input_history_not_mutated(self):
        """The caller's history list is left alone."""
        history = generate_history(1)
        snapshot = list(history)
        orchestrator = InterviewOrchestrator(ScriptedGenerator([TECHNICAL_QUESTION]))

        await orchestrator.advance_turn(SessionPhase.IN_PROGRESS, "QA", 1, history, "Answer")

        assert history == snapshot

    @pytest.mark.asyncio
    async def test_feedback_turn_is_rated_and_final(self):
        """Feedback moves to final_feedback with a rating."""
        orchestrator = InterviewOrchestrator(ScriptedGenerator([generate_feedback_json(rating=8)]))

        result = await orchestrator.advance_turn(
            SessionPhase.FINAL_FEEDBACK, "QA", 1, generate_history(2)
        )

        assert result.phase is SessionPhase.FINAL_FEEDBACK
        assert result.agent_turn.rating == 8
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_feedback_without_rating_is_degraded(self):
        """Missing feedback rating is defaulted, not a failure."""
        orchestrator = InterviewOrchestrator(ScriptedGenerator([FEEDBACK_WITHOUT_RATING]))

        result = await orchestrator.advance_turn(
            SessionPhase.FINAL_FEEDBACK, "QA", 1, generate_history(2)
        )

        assert result.agent_turn.rating == 5
        assert result.degraded is True

    @pytest.mark.asyncio
    async def test_generator_phase_overridden(self):
        """A question reported as feedback does not end the interview."""
        early_feedback = generate_agent_json(phase="final_feedback", question_type="feedback", rating=6)
        orchestrator = InterviewOrchestrator(ScriptedGenerator([early_feedback]))

        result = await orchestrator.advance_turn(
            SessionPhase.IN_PROGRESS, "QA", 1, generate_history(1), "Answer"
        )

        assert result.phase is SessionPhase.IN_PROGRESS

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply, error_type",
        [
            (GeneratorUnavailable("connection reset"), GeneratorUnavailable),
            ("I'd love to help!", ContractViolation),
            ('{"reply": "", "phase": "in_progress", "question_type": "intro"}', InvalidShape),
        ],
    )
    async def test_failures_propagate_and_leave_machine(self, reply, error_type):
        """Failures raise and never advance the phase machine."""
        machine = PhaseMachine(SessionPhase.IN_PROGRESS)

        with pytest.raises(error_type):
            await advance_turn(
                InterviewOrchestrator(ScriptedGenerator([reply])),
                SessionPhase.FINAL_FEEDBACK,
                "QA",
                1,
                generate_history(1),
                machine=machine,
            )

        assert machine.phase is SessionPhase.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_disallowed_operation_raises(self):
        """A machine that forbids the operation rejects the turn up front."""
        generator = ScriptedGenerator([TECHNICAL_QUESTION])

        with pytest.raises(ValueError):
            await advance_turn(
                InterviewOrchestrator(generator),
                SessionPhase.IN_PROGRESS,
                "QA",
                1,
                [],
                new_user_text="Hello",
                machine=PhaseMachine(SessionPhase.FINAL_FEEDBACK),
            )
        assert generator.calls == []
