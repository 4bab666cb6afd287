"""
Interview Session.

Holds the state of one practice interview: phase, turn history, the
in-flight guard and the optional speech capture. Every mutation goes
through the session's operations; engine callbacks only forward here.

Thread Safety:
    This class is NOT thread-safe. It is meant for a single asyncio event
    loop. Concurrent tasks on that loop are handled: a second turn
    submitted while one is in flight is rejected, not queued.

Last Grunted: 10/17/2026
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .capture import RecognitionEngine
from .errors import (
    GeneratorFailureKind,
    GeneratorUnavailable,
    InterviewServiceError,
    RecognitionAborted,
    classify_failure_message,
)
from .interview import TurnResponder, TurnResult, advance_turn
from .models import RecognitionEvent, SessionPhase, Turn
from .phases import PhaseMachine, SessionOperation
from .transcript import TranscriptAssembler


__all__ = [
    "QUOTA_NOTICE",
    "TurnOutcome",
    "InterviewSession",
    "failure_notice",
]


logger = logging.getLogger(__name__)


QUOTA_NOTICE = (
    "Your OpenAI API key has exceeded its quota or billing is not set up. "
    "Please check your OpenAI account billing and add credits."
)

_GENERIC_NOTICES: dict[SessionOperation, str] = {
    SessionOperation.START_SESSION: (
        "Sorry, there was an error starting the interview. "
        "Please check your API key and try again."
    ),
    SessionOperation.SUBMIT_ANSWER: "Sorry, there was an error. Please try again.",
}


@dataclass(frozen=True)
class TurnOutcome:
    """
    Result of a session operation.

    ``accepted`` is False when the operation was rejected or was a no-op;
    nothing changed in that case. A failed generator call is accepted but
    carries a ``notice`` instead of an ``agent_turn``.
    """

    accepted: bool
    agent_turn: Optional[Turn] = None
    notice: Optional[Turn] = None
    degraded: bool = False

    @classmethod
    def rejected(cls) -> "TurnOutcome":
        return cls(accepted=False)


def failure_notice(operation: SessionOperation, error: InterviewServiceError) -> str:
    """
    User-facing text for a failed turn.

    Quota and billing problems get a fixed message, auth and model
    problems show the generator's own message, anything else gets an
    apology specific to the operation.
    """
    if isinstance(error, GeneratorUnavailable):
        kind = error.kind
        if kind is GeneratorFailureKind.GENERIC:
            kind = classify_failure_message(error.message)
    else:
        kind = classify_failure_message(error.message)

    if kind is GeneratorFailureKind.QUOTA:
        return QUOTA_NOTICE
    if kind is GeneratorFailureKind.AUTH:
        return error.message
    if operation is SessionOperation.REQUEST_FEEDBACK:
        return f"Error: {error.message}"
    return _GENERIC_NOTICES[operation]


class InterviewSession:
    """
    One practice interview driven against a turn responder.

    The responder is either an :class:`InterviewOrchestrator` (in-process
    generator) or an :class:`InterviewApiClient` (remote service).

    Example:
        >>> session = InterviewSession(orchestrator, "Backend Developer", 3)
        >>> await session.start_session()
        >>> await session.submit_answer("I mostly write Go and Python.")
        >>> outcome = await session.request_feedback()
        >>> outcome.agent_turn.rating
        7
    """

    def __init__(
        self,
        responder: TurnResponder,
        role: str,
        experience_years: int,
        recognition_engine: Optional[RecognitionEngine] = None,
    ) -> None:
        self._responder = responder
        self._role = role
        self._experience_years = experience_years
        self._machine = PhaseMachine()
        self._history: tuple[Turn, ...] = ()
        self._turn_lock = asyncio.Lock()
        self._engine = recognition_engine
        self._assembler = TranscriptAssembler()
        self.notices: list[Turn] = []

        if recognition_engine is None:
            logger.info("Speech recognition unavailable; text input only")
        else:
            logger.info("Speech recognition available (%s)", recognition_engine.locale)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def phase(self) -> SessionPhase:
        return self._machine.phase

    @property
    def history(self) -> tuple[Turn, ...]:
        return self._history

    @property
    def role(self) -> str:
        return self._role

    @role.setter
    def role(self, value: str) -> None:
        self._require_idle("role")
        self._role = value

    @property
    def experience_years(self) -> int:
        return self._experience_years

    @experience_years.setter
    def experience_years(self, value: int) -> None:
        self._require_idle("experience_years")
        if value < 0:
            raise ValueError("experience_years must be >= 0")
        self._experience_years = value

    @property
    def is_busy(self) -> bool:
        """True while a generation request is in flight."""
        return self._turn_lock.locked()

    @property
    def voice_available(self) -> bool:
        return self._engine is not None

    @property
    def is_capturing(self) -> bool:
        return self._assembler.is_active

    @property
    def live_transcript(self) -> str:
        """Committed plus interim speech for the active capture."""
        return self._assembler.display_text

    def _require_idle(self, field: str) -> None:
        if self._machine.phase is not SessionPhase.IDLE:
            raise ValueError(f"{field} can only be changed before the interview starts")

    # =========================================================================
    # Turn operations
    # =========================================================================

    async def start_session(self) -> TurnOutcome:
        """
        Start (or restart) the interview with a greeting and first question.

        Any active capture is discarded. History and phase are only reset
        once the generator answers; a failed start leaves them as they were.
        """
        if self.is_busy:
            logger.warning("Start rejected: a turn is already in flight")
            return TurnOutcome.rejected()
        self._discard_capture()
        return await self._run_turn(SessionOperation.START_SESSION)

    async def submit_answer(self, text: str) -> TurnOutcome:
        """
        Submit a candidate answer and fetch the next question.

        Rejected when busy, when the text is blank, outside in_progress, or
        while a speech capture is active. A voice commit ends the capture
        before it gets here.
        """
        answer = text.strip()
        if not answer:
            return TurnOutcome.rejected()
        if self.is_busy:
            logger.warning("Answer rejected: a turn is already in flight")
            return TurnOutcome.rejected()
        if self._assembler.is_active:
            logger.info("Typed answer rejected: speech capture is active")
            return TurnOutcome.rejected()
        if not self._machine.allows(SessionOperation.SUBMIT_ANSWER):
            logger.info("Answer ignored in phase %s", self.phase.value)
            return TurnOutcome.rejected()
        return await self._run_turn(SessionOperation.SUBMIT_ANSWER, answer)

    async def request_feedback(self) -> TurnOutcome:
        """
        End the interview and fetch the rated feedback.

        A no-op unless the interview is in progress with a non-empty
        history.
        """
        if self.is_busy:
            logger.warning("Feedback rejected: a turn is already in flight")
            return TurnOutcome.rejected()
        if not self._machine.allows(SessionOperation.REQUEST_FEEDBACK) or not self._history:
            logger.info("Feedback ignored in phase %s", self.phase.value)
            return TurnOutcome.rejected()
        self._discard_capture()
        return await self._run_turn(SessionOperation.REQUEST_FEEDBACK)

    async def _run_turn(
        self,
        operation: SessionOperation,
        new_user_text: Optional[str] = None,
    ) -> TurnOutcome:
        async with self._turn_lock:
            try:
                result: TurnResult = await advance_turn(
                    self._responder,
                    phase=self._machine.request_phase(operation),
                    role=self._role,
                    experience_years=self._experience_years,
                    history=self._history,
                    new_user_text=new_user_text,
                    machine=self._machine,
                )
            except InterviewServiceError as exc:
                notice = Turn.agent(failure_notice(operation, exc))
                self.notices.append(notice)
                logger.error(
                    "%s failed (%s): %s", operation.value, exc.error_code, exc.message
                )
                return TurnOutcome(accepted=True, notice=notice)

            self._history = result.history
            if result.degraded:
                logger.warning("%s completed with a degraded response", operation.value)
            logger.info(
                "%s complete: phase=%s turns=%d",
                operation.value,
                result.phase.value,
                len(self._history),
            )
            return TurnOutcome(
                accepted=True,
                agent_turn=result.agent_turn,
                degraded=result.degraded,
            )

    # =========================================================================
    # Speech capture
    # =========================================================================

    def start_capture(self) -> bool:
        """
        Begin a speech capture.

        Returns:
            False if speech is unavailable, a capture is already active, a
            turn is in flight, the interview is over, or the engine fails
            to start.
        """
        if self._engine is None:
            return False
        if self._assembler.is_active or self.is_busy or self._machine.is_terminal:
            logger.info("Capture start rejected")
            return False

        self._assembler.begin()
        try:
            self._engine.start(self)
        except RuntimeError as exc:
            self._assembler.cancel()
            notice = Turn.agent(f"Could not start speech recognition: {exc}")
            self.notices.append(notice)
            logger.warning("Speech recognition failed to start: %s", exc)
            return False
        return True

    async def stop_capture(self) -> TurnOutcome:
        """Stop capturing and submit whatever was finalized."""
        if not self._assembler.is_active:
            return TurnOutcome.rejected()
        if self._engine is not None:
            self._engine.stop()
        return await self._commit_capture()

    async def on_recognition_result(self, event: RecognitionEvent) -> None:
        self._assembler.handle_result(event)

    async def on_recognition_error(self, code: str) -> Optional[Turn]:
        """Abort the capture; returns the notice, if the error warrants one."""
        try:
            self._assembler.handle_error(code)
        except RecognitionAborted as exc:
            if exc.silent:
                return None
            notice = Turn.agent(exc.notice)
            self.notices.append(notice)
            return notice
        return None

    async def on_recognition_end(self) -> TurnOutcome:
        """The engine ended on its own; commit the utterance."""
        return await self._commit_capture()

    async def _commit_capture(self) -> TurnOutcome:
        turn = self._assembler.finish()
        if turn is None:
            return TurnOutcome.rejected()
        return await self.submit_answer(turn.text)

    def _discard_capture(self) -> None:
        if not self._assembler.is_active:
            return
        if self._engine is not None:
            self._engine.stop()
        self._assembler.cancel()
