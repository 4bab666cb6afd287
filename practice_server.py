"""
Interview Practice Partner Service

Runs mock interview turns and advisory code reviews against an LLM text
generator (Groq by default) for the practice client.

Endpoints:
    POST /api/interview      - Next interview turn (greeting, question or feedback)
    POST /api/validate-code  - Advisory review of a code snippet
    GET  /health             - Health check
    GET  /stats              - Statistics

Internal binding: configured by SERVER_HOST/PORT (default 0.0.0.0:3000)
"""

from __future__ import annotations

import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any, AsyncIterator, Optional, TypedDict

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from interview_partner import __version__
from interview_partner.code_review import CodeReviewOrchestrator
from interview_partner.config import GeneratorConfig, load_runtime_config
from interview_partner.errors import (
    GeneratorFailureKind,
    GeneratorUnavailable,
    InterviewServiceError,
    RequestRejected,
)
from interview_partner.generator import TextGenerator, create_text_generator
from interview_partner.interview import InterviewOrchestrator
from interview_partner.models import (
    ParsedValidationResult,
    QuestionType,
    SessionPhase,
    Turn,
)

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

SERVICE_NAME = "Interview Practice Partner"
CODE_REVIEW_PATH = "/api/validate-code"
CODE_REVIEW_FAILURE_SUMMARY = "An error occurred during code validation. Please try again."
GENERATOR_NOT_CONFIGURED = (
    "Generator API key is not configured. Set GROQ_API_KEY (or OPENAI_API_KEY) and restart."
)

RUNTIME_CONFIG = load_runtime_config()


# =============================================================================
# Request Models
# =============================================================================


class InterviewRequest(BaseModel):
    """
    One interview turn request.

    ``role`` and ``experienceYears`` are optional at the model level so a
    missing value produces the service's own 400 message.
    """

    model_config = ConfigDict(populate_by_name=True)

    phase: SessionPhase = Field(default=SessionPhase.IDLE, description="Phase the turn is requested in")
    role: Optional[str] = Field(default=None, description="Job role being interviewed for")
    experience_years: Optional[int] = Field(
        default=None,
        alias="experienceYears",
        ge=0,
        description="Candidate's years of experience",
    )
    history: list[Turn] = Field(default_factory=list, description="Full ordered turn history")


class CodeReviewRequest(BaseModel):
    """Code snippet to review."""

    code: Optional[str] = Field(default=None, description="Source code to review")
    language: Optional[str] = Field(default=None, description="Language of the snippet")


# =============================================================================
# Response Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error description")
    error_code: Optional[str] = Field(default=None, description="Machine-readable error code")
    details: Optional[str] = Field(default=None, description="Diagnostics (debug only)")


class CodeReviewErrorResponse(ErrorResponse):
    """Error response for code review, shaped like a failed review."""

    is_valid: bool = Field(default=False, serialization_alias="isValid")
    summary: str = Field(default=CODE_REVIEW_FAILURE_SUMMARY)


class InterviewResponse(BaseModel):
    """Agent response for one interview turn."""

    reply: str
    phase: SessionPhase
    question_type: QuestionType
    expect_candidate_answer: bool
    rating: Optional[int] = None
    degraded: bool = Field(default=False, description="True when fields were default-filled")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: str = Field(..., description="Current server timestamp")
    generator_configured: bool = Field(..., description="Whether an API key is configured")
    model: str = Field(..., description="Generator model name")


class StatsResponse(BaseModel):
    """Statistics response."""

    stats: dict[str, Any] = Field(..., description="Service statistics")
    generator_configured: bool = Field(..., description="Whether an API key is configured")
    model: str = Field(..., description="Generator model name")


# =============================================================================
# Application State (Type-safe Lifespan State)
# =============================================================================


class AppStats(TypedDict):
    """Application statistics tracking."""

    interview_requests: int
    interview_clean: int
    interview_degraded: int
    interview_failures: int
    code_reviews: int
    code_reviews_degraded: int
    code_review_failures: int
    rejected_requests: int
    started_at: str


class AppState(TypedDict):
    """Type-safe application state managed by lifespan."""

    generator: TextGenerator | None
    generator_config: GeneratorConfig
    stats: AppStats


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_initial_stats() -> AppStats:
    """Create initial statistics dictionary."""
    return AppStats(
        interview_requests=0,
        interview_clean=0,
        interview_degraded=0,
        interview_failures=0,
        code_reviews=0,
        code_reviews_degraded=0,
        code_review_failures=0,
        rejected_requests=0,
        started_at=_utc_now(),
    )


# =============================================================================
# Dependencies
# =============================================================================


def get_app_state(request: Request) -> AppState:
    """
    Dependency to retrieve application state from request.

    Raises:
        RuntimeError: If state is not properly initialized.
    """
    state = getattr(request, "state", None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return AppState(
        generator=state.generator,
        generator_config=state.generator_config,
        stats=state.stats,
    )


AppStateDep = Annotated[AppState, Depends(get_app_state)]


def get_generator(state: AppStateDep) -> TextGenerator:
    """
    Dependency returning the configured text generator.

    Raises:
        GeneratorUnavailable: If no API key was configured at startup.
    """
    generator = state["generator"]
    if generator is None:
        raise GeneratorUnavailable(GENERATOR_NOT_CONFIGURED, kind=GeneratorFailureKind.AUTH)
    return generator


GeneratorDep = Annotated[TextGenerator, Depends(get_generator)]


def get_interview_orchestrator(generator: GeneratorDep) -> InterviewOrchestrator:
    return InterviewOrchestrator(generator)


def get_code_review_orchestrator(generator: GeneratorDep) -> CodeReviewOrchestrator:
    return CodeReviewOrchestrator(generator)


InterviewDep = Annotated[InterviewOrchestrator, Depends(get_interview_orchestrator)]
CodeReviewDep = Annotated[CodeReviewOrchestrator, Depends(get_code_review_orchestrator)]


# =============================================================================
# Exception Handlers
# =============================================================================


def _error_content(
    request: Request,
    message: str,
    error_code: str | None,
    exc: BaseException,
) -> dict[str, Any]:
    details = None
    if RUNTIME_CONFIG.debug:
        details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    model_cls = CodeReviewErrorResponse if request.url.path == CODE_REVIEW_PATH else ErrorResponse
    return model_cls(error=message, error_code=error_code, details=details).model_dump(
        by_alias=True,
        exclude_none=True,
    )


async def interview_service_error_handler(
    request: Request, exc: InterviewServiceError
) -> JSONResponse:
    """
    Handle InterviewServiceError exceptions.

    Args:
        request: The incoming request.
        exc: The exception that was raised.

    Returns:
        JSONResponse with error details.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.message, exc.error_code, exc),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map malformed request bodies to 400 with the standard error body."""
    logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_content(request, "Invalid request body", "REQUEST_REJECTED", exc),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: The incoming request.
        exc: The exception that was raised.

    Returns:
        JSONResponse with generic error message.
    """
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(request, "Internal server error", "INTERNAL_ERROR", exc),
    )


# =============================================================================
# FastAPI App Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[dict[str, Any]]:
    """
    Manage application lifespan with type-safe state.

    Builds the text generator once on startup. A missing API key is
    logged, not fatal: requests then fail with GENERATOR_UNAVAILABLE.

    Yields:
        Dictionary of application state to be attached to requests.
    """
    generator_config = RUNTIME_CONFIG.generator
    logger.info("Starting %s v%s", SERVICE_NAME, __version__)
    logger.info(
        "Runtime: model=%s endpoint=%s timeout=%.0fs host=%s port=%d",
        generator_config.model,
        generator_config.base_url or "api.openai.com",
        generator_config.timeout_seconds,
        RUNTIME_CONFIG.host,
        RUNTIME_CONFIG.port,
    )

    generator = create_text_generator(generator_config)

    state = {
        "generator": generator,
        "generator_config": generator_config,
        "stats": get_initial_stats(),
    }

    yield state

    logger.info("Shutting down...")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title=f"{SERVICE_NAME} Service",
    version=__version__,
    description="Mock interview turns and advisory code review backed by an LLM",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(RUNTIME_CONFIG.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=3600,
)

app.add_exception_handler(InterviewServiceError, interview_service_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)


# =============================================================================
# Endpoints
# =============================================================================


@app.post("/api/interview", response_model=InterviewResponse)
async def interview_turn(
    body: InterviewRequest,
    state: AppStateDep,
    orchestrator: InterviewDep,
) -> InterviewResponse:
    """
    Produce the next agent turn.

    ``phase`` idle starts a new interview (history is ignored),
    in_progress asks the next question for a history ending in the
    candidate's answer, final_feedback returns the rated feedback.

    Raises:
        RequestRejected: If role or experienceYears is missing.
        GeneratorUnavailable: If the generator call fails.
        ContractViolation: If the generator output holds no JSON object.
        InvalidShape: If mandatory response fields are missing.
    """
    stats = state["stats"]
    stats["interview_requests"] += 1

    if not body.role or body.experience_years is None:
        stats["rejected_requests"] += 1
        raise RequestRejected("role and experienceYears are required")

    try:
        result = await orchestrator.advance_turn(
            phase=body.phase,
            role=body.role,
            experience_years=body.experience_years,
            history=body.history,
        )
    except InterviewServiceError:
        stats["interview_failures"] += 1
        raise

    if result.degraded:
        stats["interview_degraded"] += 1
    else:
        stats["interview_clean"] += 1

    response = result.response.response
    return InterviewResponse(
        reply=response.reply,
        phase=result.phase,
        question_type=response.question_type,
        expect_candidate_answer=response.expect_answer,
        rating=response.rating,
        degraded=result.degraded,
    )


@app.post(CODE_REVIEW_PATH)
async def validate_code(
    body: CodeReviewRequest,
    state: AppStateDep,
    orchestrator: CodeReviewDep,
) -> JSONResponse:
    """
    Review a code snippet.

    Unparsable generator output yields the fixed degraded review with
    status 200; only a failed generator call is an error.
    """
    stats = state["stats"]
    stats["code_reviews"] += 1

    if not body.code or not body.language:
        stats["rejected_requests"] += 1
        raise RequestRejected("code and language are required")

    try:
        parsed: ParsedValidationResult = await orchestrator.review(body.code, body.language)
    except InterviewServiceError:
        stats["code_review_failures"] += 1
        raise

    if parsed.degraded:
        stats["code_reviews_degraded"] += 1

    return JSONResponse(content=parsed.result.model_dump(by_alias=True))


@app.get("/health", response_model=HealthResponse)
async def health(state: AppStateDep) -> HealthResponse:
    """Health check endpoint."""
    generator_config = state["generator_config"]
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=__version__,
        timestamp=_utc_now(),
        generator_configured=state["generator"] is not None,
        model=generator_config.model,
    )


@app.get("/stats", response_model=StatsResponse)
async def get_stats(state: AppStateDep) -> StatsResponse:
    """Get current statistics."""
    return StatsResponse(
        stats=dict(state["stats"]),
        generator_configured=state["generator"] is not None,
        model=state["generator_config"].model,
    )


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    logger.info("=" * 60)
    logger.info("%s v%s", SERVICE_NAME, __version__)
    logger.info("=" * 60)
    logger.info("Binding to: http://%s:%d", RUNTIME_CONFIG.host, RUNTIME_CONFIG.port)
    logger.info("Model: %s", RUNTIME_CONFIG.generator.model)
    logger.info("")
    logger.info("Endpoints:")
    logger.info("  POST /api/interview      - Next interview turn")
    logger.info("  POST /api/validate-code  - Code review")
    logger.info("  GET  /health             - Health check")
    logger.info("  GET  /stats              - Statistics")
    logger.info("=" * 60)

    uvicorn.run(
        app,
        host=RUNTIME_CONFIG.host,
        port=RUNTIME_CONFIG.port,
        log_level="info",
    )
