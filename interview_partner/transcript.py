"""
Transcript Assembler.

Merges incremental speech recognition events into one committed user
utterance per capture session.

Thread Safety:
    Not thread-safe. Events must be delivered in arrival order from a
    single task; the owning session serializes all callbacks.

Last Grunted: 10/17/2026
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import RecognitionAborted
from .models import RecognitionEvent, Turn


__all__ = ["TranscriptState", "TranscriptAssembler"]


logger = logging.getLogger(__name__)


@dataclass
class TranscriptState:
    """Finalized vs provisional speech-to-text for the active capture."""

    committed: str = ""
    pending: str = ""

    def clear(self) -> None:
        self.committed = ""
        self.pending = ""


def _normalize_segment(segment: str) -> str:
    return " ".join(segment.split())


class TranscriptAssembler:
    """
    Assembles one utterance from a stream of recognition events.

    Finalized segments are appended to ``committed`` separated by single
    spaces. Interim text replaces ``pending`` on every event and is never
    appended. Ending the capture commits the trimmed text as one user turn.

    Example:
        >>> assembler = TranscriptAssembler()
        >>> assembler.begin()
        >>> assembler.handle_result(RecognitionEvent(final_segments=["hello "]))
        >>> assembler.handle_result(RecognitionEvent(interim="world"))
        >>> assembler.display_text
        'hello world'
        >>> assembler.handle_result(RecognitionEvent(final_segments=["world done"]))
        >>> assembler.finish().text
        'hello world done'
    """

    def __init__(self) -> None:
        self._state = TranscriptState()
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def committed(self) -> str:
        return self._state.committed

    @property
    def pending(self) -> str:
        return self._state.pending

    @property
    def display_text(self) -> str:
        """Committed text followed by the current interim text."""
        return " ".join(part for part in (self._state.committed, self._state.pending) if part)

    def begin(self) -> None:
        """Start a new capture with empty committed and pending text."""
        self._state.clear()
        self._active = True
        logger.debug("Transcript capture started")

    def handle_result(self, event: RecognitionEvent) -> None:
        """
        Apply one recognition event.

        Args:
            event: Finalized segments (appended in order) and interim text
                (replaces the previous interim text).
        """
        if not self._active:
            logger.debug("Ignoring recognition result outside an active capture")
            return

        for segment in event.final_segments:
            normalized = _normalize_segment(segment)
            if not normalized:
                continue
            if self._state.committed:
                self._state.committed = f"{self._state.committed} {normalized}"
            else:
                self._state.committed = normalized

        self._state.pending = _normalize_segment(event.interim)

    def handle_error(self, code: str) -> None:
        """
        Abort the capture after an engine error.

        Both committed and pending text are discarded.

        Raises:
            RecognitionAborted: Always. ``silent`` is True for ``no-speech``.
        """
        was_active = self._active
        self._active = False
        self._state.clear()

        error = RecognitionAborted(code)
        if error.silent:
            logger.info("Speech capture ended without speech")
        else:
            logger.warning("Speech capture aborted: %s (active=%s)", code, was_active)
        raise error

    def cancel(self) -> None:
        """Drop the active capture without committing anything."""
        if self._active:
            logger.debug("Transcript capture cancelled")
        self._active = False
        self._state.clear()

    def finish(self) -> Optional[Turn]:
        """
        End the capture and commit the utterance.

        Returns:
            One user Turn with the trimmed committed text, or None if
            nothing was finalized or no capture was active.
        """
        if not self._active:
            return None

        text = self._state.committed.strip()
        self._active = False
        self._state.clear()

        if not text:
            logger.debug("Capture ended with no finalized speech")
            return None

        logger.info("Committed spoken answer (%d chars)", len(text))
        return Turn.user(text)
