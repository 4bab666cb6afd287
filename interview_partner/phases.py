"""Interview phase machine: forward-only phase transitions per session."""

from __future__ import annotations

import logging
from enum import Enum

from .models import SessionPhase


__all__ = [
    "PHASE_ORDER",
    "SessionOperation",
    "PhaseMachine",
    "phase_requires_rating",
    "is_forward",
]


logger = logging.getLogger(__name__)


PHASE_ORDER: tuple[SessionPhase, ...] = (
    SessionPhase.IDLE,
    SessionPhase.IN_PROGRESS,
    SessionPhase.FINAL_FEEDBACK,
)


class SessionOperation(str, Enum):
    """Operations that move a session through its phases."""

    START_SESSION = "start_session"
    SUBMIT_ANSWER = "submit_answer"
    REQUEST_FEEDBACK = "request_feedback"


# Phase each operation must be requested from, and the phase it lands in.
# START_SESSION is accepted from any phase.
_REQUIRED_PHASE: dict[SessionOperation, SessionPhase | None] = {
    SessionOperation.START_SESSION: None,
    SessionOperation.SUBMIT_ANSWER: SessionPhase.IN_PROGRESS,
    SessionOperation.REQUEST_FEEDBACK: SessionPhase.IN_PROGRESS,
}

_TARGET_PHASE: dict[SessionOperation, SessionPhase] = {
    SessionOperation.START_SESSION: SessionPhase.IN_PROGRESS,
    SessionOperation.SUBMIT_ANSWER: SessionPhase.IN_PROGRESS,
    SessionOperation.REQUEST_FEEDBACK: SessionPhase.FINAL_FEEDBACK,
}


def phase_requires_rating(phase: SessionPhase) -> bool:
    """Only final feedback turns must carry a rating."""
    return phase is SessionPhase.FINAL_FEEDBACK


def is_forward(current: SessionPhase, target: SessionPhase) -> bool:
    """True when ``target`` does not come before ``current``."""
    return PHASE_ORDER.index(target) >= PHASE_ORDER.index(current)


class PhaseMachine:
    """
    Tracks the phase of one interview session.

    The requesting operation decides the destination phase. A phase
    reported by the generator is advisory: when it disagrees with the
    destination it is logged and overridden, so the session can never be
    pushed backwards or skipped ahead by generator output.

    Example:
        >>> machine = PhaseMachine()
        >>> machine.allows(SessionOperation.SUBMIT_ANSWER)
        False
        >>> machine.transition(SessionOperation.START_SESSION, SessionPhase.IN_PROGRESS)
        <SessionPhase.IN_PROGRESS: 'in_progress'>
    """

    def __init__(self, phase: SessionPhase = SessionPhase.IDLE) -> None:
        self._phase = phase

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_terminal(self) -> bool:
        return self._phase is SessionPhase.FINAL_FEEDBACK

    def reset(self) -> None:
        """Return to idle. Only used when a new session starts."""
        self._phase = SessionPhase.IDLE

    def allows(self, operation: SessionOperation) -> bool:
        """Check whether ``operation`` may run from the current phase."""
        required = _REQUIRED_PHASE[operation]
        return required is None or self._phase is required

    def request_phase(self, operation: SessionOperation) -> SessionPhase:
        """Phase to send to the generator when running ``operation``."""
        if operation is SessionOperation.START_SESSION:
            return SessionPhase.IDLE
        return _TARGET_PHASE[operation]

    def target_phase(self, operation: SessionOperation) -> SessionPhase:
        return _TARGET_PHASE[operation]

    def transition(
        self,
        operation: SessionOperation,
        reported_phase: SessionPhase | None = None,
    ) -> SessionPhase:
        """
        Apply the transition for a completed operation.

        Args:
            operation: The operation whose generator call succeeded.
            reported_phase: Phase the generator claimed in its response.

        Returns:
            The new current phase.

        Raises:
            ValueError: If the operation is not allowed from the current
                phase (callers check :meth:`allows` first).
        """
        if operation is SessionOperation.START_SESSION:
            self.reset()
        elif not self.allows(operation):
            raise ValueError(
                f"Operation '{operation.value}' is not allowed in phase '{self._phase.value}'"
            )

        target = _TARGET_PHASE[operation]
        if reported_phase is not None and reported_phase is not target:
            logger.warning(
                "Generator reported phase %s for %s; keeping %s",
                reported_phase.value,
                operation.value,
                target.value,
            )

        if not is_forward(self._phase, target):
            raise ValueError(f"Refusing to move from {self._phase.value} back to {target.value}")

        self._phase = target
        return self._phase
