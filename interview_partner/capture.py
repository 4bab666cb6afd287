"""
Speech capture engine interface.

The session talks to speech recognition through :class:`RecognitionEngine`.
Platforms without speech support simply pass no engine and the session
stays text-only.

:class:`ScriptedRecognitionEngine` replays recorded recognition events and
is used by the console client's demo mode and by the tests.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, Sequence, Union

from .models import RecognitionEvent


__all__ = [
    "DEFAULT_LOCALE",
    "RecognitionListener",
    "RecognitionEngine",
    "ScriptedRecognitionEngine",
    "ScriptStep",
]


logger = logging.getLogger(__name__)


DEFAULT_LOCALE = "en-US"


class RecognitionListener(Protocol):
    """Receiver of engine callbacks (implemented by the interview session)."""

    async def on_recognition_result(self, event: RecognitionEvent) -> None:
        """Handle one batch of final/interim results."""

    async def on_recognition_error(self, code: str) -> None:
        """Handle an engine error such as ``no-speech`` or ``network``."""

    async def on_recognition_end(self) -> Any:
        """Handle the engine ending on its own (e.g. silence timeout)."""


class RecognitionEngine(Protocol):
    """
    Continuous, interim-results-enabled speech recognizer.

    ``start`` raises RuntimeError when the engine cannot start. After
    ``stop`` the engine must not deliver further callbacks; the caller
    finalizes the capture itself.
    """

    locale: str

    def start(self, listener: RecognitionListener) -> None:
        """Begin capturing and deliver callbacks to ``listener``."""

    def stop(self) -> None:
        """Stop capturing."""


# An event to deliver, or an error code string.
ScriptStep = Union[RecognitionEvent, str]


class ScriptedRecognitionEngine:
    """
    Replays a fixed sequence of recognition callbacks.

    Each step is either a :class:`RecognitionEvent` or an error code
    string. After the last step the engine ends itself, as a real engine
    does on a silence timeout, unless it was stopped or errored first.

    Example:
        >>> engine = ScriptedRecognitionEngine([
        ...     RecognitionEvent(final_segments=["I led the migration"]),
        ... ])
        >>> session.start_capture()  # engine.start(session)
        >>> await engine.play()
    """

    def __init__(
        self,
        steps: Sequence[ScriptStep],
        locale: str = DEFAULT_LOCALE,
        delay_seconds: float = 0.0,
    ) -> None:
        self.locale = locale
        self._steps = tuple(steps)
        self._delay_seconds = delay_seconds
        self._listener: RecognitionListener | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def load(self, steps: Sequence[ScriptStep]) -> None:
        """Replace the script for the next capture."""
        if self._running:
            raise RuntimeError("Cannot load a script while recognition is running")
        self._steps = tuple(steps)

    def start(self, listener: RecognitionListener) -> None:
        if self._running:
            raise RuntimeError("Recognition engine already started")
        self._listener = listener
        self._running = True
        logger.debug("Scripted recognition started (%s, %d steps)", self.locale, len(self._steps))

    def stop(self) -> None:
        self._running = False

    async def play(self) -> Any:
        """
        Deliver the scripted callbacks to the listener.

        Returns:
            Whatever the listener's end handler returned, or None when the
            capture was stopped or aborted before the script finished.
        """
        if self._listener is None or not self._running:
            raise RuntimeError("Recognition engine is not running")

        listener = self._listener
        for step in self._steps:
            if not self._running:
                return None
            if self._delay_seconds:
                await asyncio.sleep(self._delay_seconds)
            if isinstance(step, str):
                self._running = False
                await listener.on_recognition_error(step)
                return None
            await listener.on_recognition_result(step)

        if not self._running:
            return None
        self._running = False
        return await listener.on_recognition_end()
