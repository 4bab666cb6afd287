"""
Pydantic models for the Interview Practice Partner.

Defines the turn history, interview phases, the agent response contract,
speech recognition events and code review results.

Last Grunted: 10/17/2026
"""

from enum import Enum
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


class Speaker(str, Enum):
    """Who produced a turn."""

    USER = "user"
    AGENT = "agent"


class SessionPhase(str, Enum):
    """
    Interview lifecycle stage.

    Phases only move forward (idle -> in_progress -> final_feedback).
    Going back to idle requires starting a new session.
    """

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    FINAL_FEEDBACK = "final_feedback"


class QuestionType(str, Enum):
    """Kind of question (or feedback) the agent produced."""

    INTRO = "intro"
    BACKGROUND = "background"
    PROJECT = "project"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    CLOSING = "closing"
    FEEDBACK = "feedback"


RATING_MIN = 1
RATING_MAX = 10


class Turn(BaseModel):
    """
    One exchanged message in the interview history.

    Turns are frozen once created so history entries can never be edited
    in place. The legacy browser payload (``{"from": "bot", ...}``) is
    accepted as an alias of ``speaker``.

    Example:
        >>> turn = Turn(speaker="agent", text="Tell me about yourself.")
        >>> turn.speaker
        <Speaker.AGENT: 'agent'>
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    speaker: Speaker = Field(
        ...,
        validation_alias=AliasChoices("speaker", "from"),
        description="Who produced the turn: 'user' or 'agent'",
    )
    text: str = Field(..., description="Message text shown in the chat")
    rating: Optional[int] = Field(
        default=None,
        ge=RATING_MIN,
        le=RATING_MAX,
        description="Overall rating (1-10), only on feedback turns",
    )

    @field_validator("speaker", mode="before")
    @classmethod
    def _normalize_speaker(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in {"bot", "assistant"}:
            return Speaker.AGENT
        return value

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(speaker=Speaker.USER, text=text)

    @classmethod
    def agent(cls, text: str, rating: Optional[int] = None) -> "Turn":
        return cls(speaker=Speaker.AGENT, text=text, rating=rating)


class AgentResponse(BaseModel):
    """
    Structured reply produced by the generator for one interview turn.

    Field names follow the JSON contract the generator is instructed to
    emit (``question_type``, ``expect_candidate_answer``). A rating is
    required when ``phase`` is ``final_feedback``; the contract parser
    guarantees this before constructing the model.
    """

    model_config = ConfigDict(populate_by_name=True)

    reply: str = Field(..., min_length=1, description="Text to show in chat")
    phase: SessionPhase = Field(..., description="Phase reported by the generator")
    question_type: QuestionType = Field(..., description="Kind of question asked")
    expect_answer: bool = Field(
        default=True,
        validation_alias=AliasChoices("expect_candidate_answer", "expect_answer"),
        serialization_alias="expect_candidate_answer",
        description="Whether the agent waits for a candidate answer",
    )
    rating: Optional[int] = Field(
        default=None,
        ge=RATING_MIN,
        le=RATING_MAX,
        description="Overall rating (1-10), mandatory for final feedback",
    )

    def to_turn(self) -> Turn:
        """Convert this response into an agent history turn."""
        return Turn.agent(self.reply, rating=self.rating)


class ParsedAgentResponse(BaseModel):
    """
    Successful parse of generator output.

    ``degraded`` is True when the parser had to fill in or repair a
    required field (for example a missing feedback rating), so callers can
    tell a lenient outcome apart from a clean one.
    """

    response: AgentResponse
    degraded: bool = False


class RecognitionEvent(BaseModel):
    """
    One speech recognition callback.

    Carries the segments the engine finalized in this callback (in order)
    and the latest interim text. Interim text is provisional and is
    replaced wholesale by the next event.

    Example:
        >>> RecognitionEvent(final_segments=["hello "], interim="")
        >>> RecognitionEvent(interim="world")
    """

    final_segments: list[str] = Field(
        default_factory=list,
        description="Finalized transcript segments, in arrival order",
    )
    interim: str = Field(default="", description="Latest provisional text")


class ValidationResult(BaseModel):
    """
    Advisory code review produced by the generator.

    Serialized with the camelCase keys the code panel expects
    (``isValid``, ``syntaxCheck``, ``logicCheck``, ``bestPractices``).
    """

    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    rating: int = Field(..., ge=RATING_MIN, le=RATING_MAX)
    syntax_check: str = Field(default="", alias="syntaxCheck")
    logic_check: str = Field(default="", alias="logicCheck")
    best_practices: str = Field(default="", alias="bestPractices")
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    summary: str = Field(default="")


class ParsedValidationResult(BaseModel):
    """Code review outcome; ``degraded`` marks the fixed fallback result."""

    result: ValidationResult
    degraded: bool = False
