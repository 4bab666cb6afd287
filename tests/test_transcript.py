"""
Tests for the transcript assembler and the scripted recognition engine.

Last Grunted: 10/17/2026
"""

from __future__ import annotations

import pytest

from interview_partner.capture import ScriptedRecognitionEngine
from interview_partner.errors import RecognitionAborted
from interview_partner.models import RecognitionEvent, Speaker
from interview_partner.transcript import TranscriptAssembler
from tests.mock_data import HELLO_WORLD_EVENTS, INTERIM_ONLY_EVENTS, SPOKEN_ANSWER_EVENTS


# =============================================================================
# TranscriptAssembler
# =============================================================================


class TestTranscriptAssembler:
    """Tests for merging recognition events."""

    @pytest.fixture
    def assembler(self):
        assembler = TranscriptAssembler()
        assembler.begin()
        return assembler

    def test_hello_world_stream(self, assembler):
        """Final/interim/final stream commits one turn with single spaces."""
        for event in HELLO_WORLD_EVENTS:
            assembler.handle_result(event)

        turn = assembler.finish()

        assert turn is not None
        assert turn.speaker is Speaker.USER
        assert turn.text == "hello world done"
        assert assembler.pending == ""
        assert assembler.committed == ""
        assert assembler.is_active is False

    def test_interim_replaced_not_appended(self, assembler):
        """Each event replaces the interim text wholesale."""
        assembler.handle_result(RecognitionEvent(interim="I led"))
        assembler.handle_result(RecognitionEvent(interim="I led the migration"))

        assert assembler.pending == "I led the migration"
        assert assembler.committed == ""

    def test_display_text_combines_committed_and_pending(self, assembler):
        """Live text is committed followed by interim."""
        assembler.handle_result(RecognitionEvent(final_segments=["hello "]))
        assembler.handle_result(RecognitionEvent(interim="world"))

        assert assembler.display_text == "hello world"

    def test_multiple_segments_in_one_event(self, assembler):
        """Several finalized segments in one event append in order."""
        assembler.handle_result(RecognitionEvent(final_segments=["first", "  second  ", ""]))
        assert assembler.committed == "first second"

    def test_spoken_answer_stream(self, assembler):
        """A realistic stream commits only the finalized sentences."""
        for event in SPOKEN_ANSWER_EVENTS:
            assembler.handle_result(event)

        assert assembler.finish().text == "I led the migration to Kubernetes. It took three months."

    def test_interim_only_commits_nothing(self, assembler):
        """Ending with only interim text yields no turn."""
        for event in INTERIM_ONLY_EVENTS:
            assembler.handle_result(event)

        assert assembler.finish() is None
        assert assembler.pending == ""

    def test_finish_inactive_returns_none(self):
        """Ending a capture that never began yields nothing."""
        assert TranscriptAssembler().finish() is None

    def test_results_ignored_when_inactive(self):
        """Events outside a capture are dropped."""
        assembler = TranscriptAssembler()
        assembler.handle_result(RecognitionEvent(final_segments=["stray"]))
        assert assembler.committed == ""

    def test_begin_resets_previous_text(self, assembler):
        """Starting a capture clears leftovers."""
        assembler.handle_result(RecognitionEvent(final_segments=["old"], interim="older"))
        assembler.begin()

        assert assembler.committed == ""
        assert assembler.pending == ""

    def test_no_speech_error_is_silent(self, assembler):
        """no-speech aborts silently and discards text."""
        assembler.handle_result(RecognitionEvent(final_segments=["partial"]))

        with pytest.raises(RecognitionAborted) as exc_info:
            assembler.handle_error("no-speech")

        assert exc_info.value.silent is True
        assert exc_info.value.notice is None
        assert assembler.committed == ""
        assert assembler.is_active is False
        assert assembler.finish() is None

    def test_other_error_carries_notice(self, assembler):
        """Other engine errors carry a user-visible notice."""
        with pytest.raises(RecognitionAborted) as exc_info:
            assembler.handle_error("network")

        assert exc_info.value.silent is False
        assert exc_info.value.notice == "Speech recognition error: network. Please try again."

    def test_cancel_discards(self, assembler):
        """Cancelling drops the capture without a turn."""
        assembler.handle_result(RecognitionEvent(final_segments=["keep?"]))
        assembler.cancel()

        assert assembler.is_active is False
        assert assembler.finish() is None


# =============================================================================
# ScriptedRecognitionEngine
# =============================================================================


class RecordingListener:
    """Listener that records callbacks."""

    def __init__(self) -> None:
        self.results: list[RecognitionEvent] = []
        self.errors: list[str] = []
        self.ended = 0

    async def on_recognition_result(self, event):
        self.results.append(event)

    async def on_recognition_error(self, code):
        self.errors.append(code)

    async def on_recognition_end(self):
        self.ended += 1
        return "ended"


class TestScriptedRecognitionEngine:
    """Tests for replaying recorded recognition callbacks."""

    @pytest.mark.asyncio
    async def test_plays_events_then_ends(self):
        """Events are delivered in order, then the engine ends itself."""
        engine = ScriptedRecognitionEngine(HELLO_WORLD_EVENTS)
        listener = RecordingListener()
        engine.start(listener)

        result = await engine.play()

        assert listener.results == HELLO_WORLD_EVENTS
        assert listener.ended == 1
        assert result == "ended"
        assert engine.is_running is False

    @pytest.mark.asyncio
    async def test_error_step_stops_playback(self):
        """An error code step aborts without an end callback."""
        engine = ScriptedRecognitionEngine([HELLO_WORLD_EVENTS[0], "audio-capture", HELLO_WORLD_EVENTS[1]])
        listener = RecordingListener()
        engine.start(listener)

        assert await engine.play() is None
        assert listener.errors == ["audio-capture"]
        assert len(listener.results) == 1
        assert listener.ended == 0

    def test_start_twice_rejected(self):
        """A running engine cannot be started again."""
        engine = ScriptedRecognitionEngine([])
        engine.start(RecordingListener())

        with pytest.raises(RuntimeError):
            engine.start(RecordingListener())

    def test_load_replaces_script(self):
        """A new script can be loaded between captures."""
        engine = ScriptedRecognitionEngine([], locale="en-GB")
        engine.load(HELLO_WORLD_EVENTS)

        assert engine.locale == "en-GB"
        engine.start(RecordingListener())
        with pytest.raises(RuntimeError):
            engine.load([])

    @pytest.mark.asyncio
    async def test_play_requires_start(self):
        """Playing before start raises."""
        with pytest.raises(RuntimeError):
            await ScriptedRecognitionEngine([]).play()
