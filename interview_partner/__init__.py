"""
Interview Practice Partner Package.

Runs mock job interviews against an LLM text generator and reviews code
snippets, using the OpenAI Agents SDK over any OpenAI-compatible
endpoint (Groq by default).

Components:
    - InterviewSession: One interview's phase, history and speech capture
    - InterviewOrchestrator: Runs a single interview turn
    - CodeReviewOrchestrator: Single-shot advisory code review
    - PhaseMachine: Forward-only interview phase transitions
    - TranscriptAssembler: Merges speech recognition events into answers
    - AgentTextGenerator: Agents SDK adapter for the text generator
    - InterviewApiClient: httpx client for the interview service
    - Models: Pydantic models for turns, agent responses and reviews

Example:
    >>> from interview_partner import (
    ...     InterviewOrchestrator, InterviewSession, create_text_generator, load_generator_config,
    ... )
    >>>
    >>> generator = create_text_generator(load_generator_config())
    >>> session = InterviewSession(InterviewOrchestrator(generator), "Data Engineer", 4)
    >>> outcome = await session.start_session()
    >>> print(outcome.agent_turn.text)

Last Grunted: 10/17/2026
"""

from .models import (
    Speaker,
    SessionPhase,
    QuestionType,
    Turn,
    AgentResponse,
    ParsedAgentResponse,
    ParsedValidationResult,
    RecognitionEvent,
    ValidationResult,
)

from .errors import (
    InterviewServiceError,
    RequestRejected,
    GeneratorFailureKind,
    GeneratorUnavailable,
    ContractViolation,
    InvalidShape,
    RecognitionAborted,
)

from .config import (
    GeneratorConfig,
    RuntimeConfig,
    load_generator_config,
    load_runtime_config,
)

from .contract import (
    extract_json_object,
    parse_agent_response,
    parse_validation_result,
    parse_validation_review,
)

from .phases import PhaseMachine, SessionOperation

from .transcript import TranscriptAssembler

from .capture import RecognitionEngine, ScriptedRecognitionEngine

from .generator import (
    TextGenerator,
    AgentTextGenerator,
    create_text_generator,
)

from .interview import InterviewOrchestrator, TurnResult, advance_turn

from .code_review import CodeReviewOrchestrator

from .session import InterviewSession, TurnOutcome

from .client import InterviewApiClient


__all__ = [
    # Models
    "Speaker",
    "SessionPhase",
    "QuestionType",
    "Turn",
    "AgentResponse",
    "ParsedAgentResponse",
    "ParsedValidationResult",
    "RecognitionEvent",
    "ValidationResult",
    # Errors
    "InterviewServiceError",
    "RequestRejected",
    "GeneratorFailureKind",
    "GeneratorUnavailable",
    "ContractViolation",
    "InvalidShape",
    "RecognitionAborted",
    # Config
    "GeneratorConfig",
    "RuntimeConfig",
    "load_generator_config",
    "load_runtime_config",
    # Parsing
    "extract_json_object",
    "parse_agent_response",
    "parse_validation_result",
    "parse_validation_review",
    # Phases
    "PhaseMachine",
    "SessionOperation",
    # Speech
    "TranscriptAssembler",
    "RecognitionEngine",
    "ScriptedRecognitionEngine",
    # Generator
    "TextGenerator",
    "AgentTextGenerator",
    "create_text_generator",
    # Orchestrators
    "InterviewOrchestrator",
    "TurnResult",
    "advance_turn",
    "CodeReviewOrchestrator",
    # Session
    "InterviewSession",
    "TurnOutcome",
    # HTTP client
    "InterviewApiClient",
]

__version__ = "0.1.0"
