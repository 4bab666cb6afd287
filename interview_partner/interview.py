"""
Interview Orchestrator.

Drives one interview turn: builds the generation request from the
interview context and full history, invokes the generator, parses the
response contract and applies the resulting phase transition.

Example:
    >>> orchestrator = InterviewOrchestrator(generator)
    >>> result = await orchestrator.advance_turn(
    ...     phase=SessionPhase.IN_PROGRESS,
    ...     role="Backend Developer",
    ...     experience_years=3,
    ...     history=history,
    ...     new_user_text="I built our billing service in Python.",
    ... )
    >>> result.phase, len(result.history) - len(history)
    (<SessionPhase.IN_PROGRESS: 'in_progress'>, 2)

Last Grunted: 10/17/2026
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .contract import parse_agent_response
from .generator import ChatMessage, TextGenerator
from .models import ParsedAgentResponse, SessionPhase, Speaker, Turn
from .phases import PhaseMachine, SessionOperation
from .prompts import build_interview_instructions, closing_instruction


__all__ = [
    "INTERVIEW_TEMPERATURE",
    "TurnResponder",
    "TurnResult",
    "InterviewOrchestrator",
    "advance_turn",
    "build_interview_messages",
    "operation_for",
]


logger = logging.getLogger(__name__)


INTERVIEW_TEMPERATURE = 0.7


class TurnResponder(Protocol):
    """Source of agent responses (the local orchestrator or the HTTP client)."""

    async def request_agent_response(
        self,
        phase: SessionPhase,
        role: str,
        experience_years: int,
        history: Sequence[Turn],
    ) -> ParsedAgentResponse:
        """Request the next agent response for ``history``."""


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a successful :meth:`InterviewOrchestrator.advance_turn`."""

    history: tuple[Turn, ...]
    phase: SessionPhase
    response: ParsedAgentResponse

    @property
    def agent_turn(self) -> Turn:
        return self.history[-1]

    @property
    def degraded(self) -> bool:
        return self.response.degraded


def build_interview_messages(phase: SessionPhase, history: Sequence[Turn]) -> list[ChatMessage]:
    """
    Convert history into chat messages, oldest first.

    User turns become ``user`` messages and agent turns ``assistant``
    messages. A phase-specific instruction is appended last.
    """
    messages: list[ChatMessage] = [
        {
            "role": "user" if turn.speaker is Speaker.USER else "assistant",
            "content": turn.text,
        }
        for turn in history
    ]
    messages.append({"role": "user", "content": closing_instruction(phase)})
    return messages


def operation_for(phase: SessionPhase) -> SessionOperation:
    """Infer the session operation from the phase a turn is requested in."""
    if phase is SessionPhase.IDLE:
        return SessionOperation.START_SESSION
    if phase is SessionPhase.FINAL_FEEDBACK:
        return SessionOperation.REQUEST_FEEDBACK
    return SessionOperation.SUBMIT_ANSWER


class InterviewOrchestrator:
    """
    Runs interview turns against a text generator.

    Stateless between calls: the caller owns history and phase.
    """

    def __init__(self, generator: TextGenerator, temperature: float = INTERVIEW_TEMPERATURE) -> None:
        self._generator = generator
        self.temperature = temperature

    async def request_agent_response(
        self,
        phase: SessionPhase,
        role: str,
        experience_years: int,
        history: Sequence[Turn],
    ) -> ParsedAgentResponse:
        """
        Ask the generator for the next agent response.

        Args:
            phase: Phase the request is made in (idle to start,
                final_feedback to request feedback).
            role: Job role being interviewed for.
            experience_years: Candidate's years of experience.
            history: Full ordered history including the latest user turn.

        Returns:
            The parsed response.

        Raises:
            GeneratorUnavailable: If the generator call fails.
            ContractViolation: If the output holds no JSON object.
            InvalidShape: If mandatory contract fields are missing.
        """
        instructions = build_interview_instructions(role, experience_years, phase)
        messages = build_interview_messages(phase, history)

        logger.debug(
            "Requesting agent response: phase=%s role=%s history=%d",
            phase.value,
            role,
            len(history),
        )
        raw_text = await self._generator.generate(instructions, messages, self.temperature)
        parsed = parse_agent_response(raw_text, phase)

        logger.info(
            "Agent response: phase=%s question_type=%s rating=%s degraded=%s",
            parsed.response.phase.value,
            parsed.response.question_type.value,
            parsed.response.rating,
            parsed.degraded,
        )
        return parsed

    async def advance_turn(
        self,
        phase: SessionPhase,
        role: str,
        experience_years: int,
        history: Sequence[Turn],
        new_user_text: Optional[str] = None,
    ) -> TurnResult:
        """
        Run one full turn and return the updated history and phase.

        The input history is not modified. On any failure nothing is
        returned and the caller's history and phase stay as they were.

        Args:
            phase: Current session phase.
            role: Job role being interviewed for.
            experience_years: Candidate's years of experience.
            history: Current history.
            new_user_text: Candidate answer to append before requesting.

        Returns:
            TurnResult with the new history (user turn, if any, plus the
            agent turn) and the new phase.
        """
        return await advance_turn(
            self,
            phase=phase,
            role=role,
            experience_years=experience_years,
            history=history,
            new_user_text=new_user_text,
        )


async def advance_turn(
    responder: TurnResponder,
    phase: SessionPhase,
    role: str,
    experience_years: int,
    history: Sequence[Turn],
    new_user_text: Optional[str] = None,
    machine: Optional[PhaseMachine] = None,
) -> TurnResult:
    """
    Run one turn against any :class:`TurnResponder`.

    ``phase`` is the phase the turn is requested in: idle starts a new
    interview (history is discarded), in_progress submits an answer and
    final_feedback requests the closing feedback.

    When ``machine`` is given it is only advanced after the responder
    succeeds, so a failed turn leaves it untouched.

    Raises:
        ValueError: If ``machine`` does not allow the operation.
    """
    operation = operation_for(phase)
    if machine is None:
        machine = PhaseMachine(
            SessionPhase.IDLE
            if operation is SessionOperation.START_SESSION
            else SessionPhase.IN_PROGRESS
        )
    elif not machine.allows(operation):
        raise ValueError(
            f"Operation '{operation.value}' is not allowed in phase '{machine.phase.value}'"
        )

    working = [] if operation is SessionOperation.START_SESSION else list(history)
    if new_user_text is not None:
        working.append(Turn.user(new_user_text))

    parsed = await responder.request_agent_response(phase, role, experience_years, working)
    new_phase = machine.transition(operation, parsed.response.phase)
    working.append(parsed.response.to_turn())

    return TurnResult(history=tuple(working), phase=new_phase, response=parsed)
