"""
Error taxonomy for the interview service.

Every error carries a human-readable message, the HTTP status the service
layer maps it to, and a machine-readable error code.
"""

from __future__ import annotations

from enum import Enum

from fastapi import status


__all__ = [
    "InterviewServiceError",
    "RequestRejected",
    "GeneratorFailureKind",
    "GeneratorUnavailable",
    "classify_failure_message",
    "ContractViolation",
    "InvalidShape",
    "RecognitionAborted",
    "NO_SPEECH",
]


NO_SPEECH = "no-speech"


class InterviewServiceError(Exception):
    """Base exception for interview service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class RequestRejected(InterviewServiceError):
    """Raised when a request is missing required fields."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="REQUEST_REJECTED",
        )


class GeneratorFailureKind(str, Enum):
    """Classification of a failed generator call."""

    QUOTA = "quota"
    AUTH = "auth"
    GENERIC = "generic"


def classify_failure_message(message: str | None) -> GeneratorFailureKind:
    """
    Classify a generator failure from its message text.

    Used where only the message survives (e.g. an HTTP error body).
    """
    lowered = (message or "").lower()
    if "quota" in lowered or "billing" in lowered:
        return GeneratorFailureKind.QUOTA
    if "api key" in lowered or "model" in lowered:
        return GeneratorFailureKind.AUTH
    return GeneratorFailureKind.GENERIC


class GeneratorUnavailable(InterviewServiceError):
    """Raised when the text generator could not be invoked."""

    def __init__(
        self,
        message: str,
        kind: GeneratorFailureKind = GeneratorFailureKind.GENERIC,
    ) -> None:
        self.kind = kind
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="GENERATOR_UNAVAILABLE",
        )


class ContractViolation(InterviewServiceError):
    """Raised when generator output contains no parsable JSON object."""

    def __init__(
        self,
        message: str = "Failed to parse JSON response from LLM",
        raw_text: str | None = None,
    ) -> None:
        self.raw_text = raw_text
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="CONTRACT_VIOLATION",
        )


class InvalidShape(InterviewServiceError):
    """Raised when a parsed object is missing mandatory contract fields."""

    def __init__(self, message: str = "Invalid response format from LLM") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INVALID_SHAPE",
        )


class RecognitionAborted(InterviewServiceError):
    """
    Raised when speech capture ends early because of an engine error.

    Never fatal. ``no-speech`` is silent; every other code carries a
    notice for the user.
    """

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(
            message=f"Speech recognition error: {code}. Please try again.",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="RECOGNITION_ABORTED",
        )

    @property
    def silent(self) -> bool:
        return self.code == NO_SPEECH

    @property
    def notice(self) -> str | None:
        return None if self.silent else self.message
