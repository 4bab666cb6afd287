"""
HTTP client for the interview service.

Speaks the two JSON contracts of ``practice_server.py`` and can stand in
for the in-process orchestrator as an :class:`InterviewSession`'s turn
responder.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from pydantic import ValidationError

from .config import DEFAULT_TIMEOUT_SECONDS
from .errors import (
    GeneratorUnavailable,
    InvalidShape,
    RequestRejected,
    classify_failure_message,
)
from .models import (
    AgentResponse,
    ParsedAgentResponse,
    SessionPhase,
    Turn,
    ValidationResult,
)


__all__ = ["InterviewApiClient", "TIMEOUT_MARGIN_SECONDS"]


logger = logging.getLogger(__name__)


# Lets the service report its own generator timeout before ours fires.
TIMEOUT_MARGIN_SECONDS = 5.0


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Server error: {response.status_code}"


class InterviewApiClient:
    """
    Client for ``/api/interview`` and ``/api/validate-code``.

    Example:
        >>> client = InterviewApiClient("http://localhost:3000")
        >>> session = InterviewSession(client, "Frontend Developer", 1)
        >>> review = await client.validate_code("print('hi')", "python")
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS + TIMEOUT_MARGIN_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(path, json=payload)
        except httpx.TimeoutException as exc:
            logger.error("Request to %s timed out", path)
            raise GeneratorUnavailable(f"Request to {path} timed out") from exc
        except httpx.RequestError as exc:
            logger.error("Request to %s failed: %s", path, exc)
            raise GeneratorUnavailable(f"Cannot reach interview service: {exc}") from exc

        if response.status_code >= 400:
            message = _error_text(response)
            logger.error("%s returned HTTP %d: %s", path, response.status_code, message)
            if response.status_code == httpx.codes.BAD_REQUEST:
                raise RequestRejected(message)
            raise GeneratorUnavailable(message, kind=classify_failure_message(message))

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidShape(f"{path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise InvalidShape(f"{path} returned a non-object body")
        return data

    async def health(self) -> dict[str, Any]:
        """Fetch ``/health``; raises GeneratorUnavailable if unreachable."""
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get("/health")
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GeneratorUnavailable(f"Service unhealthy: HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise GeneratorUnavailable(f"Cannot reach interview service: {exc}") from exc
        return response.json()

    async def request_agent_response(
        self,
        phase: SessionPhase,
        role: str,
        experience_years: int,
        history: Sequence[Turn],
    ) -> ParsedAgentResponse:
        """
        POST one interview turn and parse the reply.

        Raises:
            GeneratorUnavailable: On transport failure or an error status.
            InvalidShape: If the body is not a valid agent response.
        """
        payload = {
            "phase": phase.value,
            "role": role,
            "experienceYears": experience_years,
            "history": [turn.model_dump(mode="json", exclude_none=True) for turn in history],
        }
        data = await self._post("/api/interview", payload)

        try:
            response = AgentResponse.model_validate(data)
        except ValidationError as exc:
            raise InvalidShape("Invalid response format from interview service") from exc
        return ParsedAgentResponse(response=response, degraded=bool(data.get("degraded", False)))

    async def validate_code(self, code: str, language: str) -> ValidationResult:
        """
        POST code for review.

        Raises:
            GeneratorUnavailable: On transport failure or an error status.
            InvalidShape: If the body is not a valid review.
        """
        data = await self._post("/api/validate-code", {"code": code, "language": language})
        try:
            return ValidationResult.model_validate(data)
        except ValidationError as exc:
            raise InvalidShape("Invalid review format from interview service") from exc
