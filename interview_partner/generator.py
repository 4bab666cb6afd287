"""
Text generator adapter using the OpenAI Agents SDK.

Wraps an ``agents.Agent`` running on any OpenAI-compatible chat
completions endpoint (Groq by default, OpenAI or Azure OpenAI as well).
Every call is attempted exactly once and bounded by a timeout; failures
are raised as :class:`GeneratorUnavailable` with a classified kind.

Supports:
  - Groq: Set GROQ_API_KEY (GROQ_MODEL optional)
  - OpenAI: Set OPENAI_API_KEY
  - Any compatible endpoint: Set GENERATOR_API_KEY and GENERATOR_BASE_URL

Last Grunted: 10/17/2026
"""

import asyncio
import logging
from typing import Any, Optional, Protocol, Sequence

import openai
from agents import (
    Agent,
    ModelSettings,
    OpenAIChatCompletionsModel,
    Runner,
    set_tracing_disabled,
)
from openai import AsyncOpenAI

from .config import GeneratorConfig
from .errors import (
    GeneratorFailureKind,
    GeneratorUnavailable,
    classify_failure_message,
)


__all__ = [
    "ChatMessage",
    "TextGenerator",
    "AgentTextGenerator",
    "classify_generator_error",
    "to_generator_unavailable",
    "create_text_generator",
]


logger = logging.getLogger(__name__)


# {"role": "user" | "assistant", "content": "..."}
ChatMessage = dict[str, str]


class TextGenerator(Protocol):
    """Anything that turns instructions plus chat messages into raw text."""

    async def generate(
        self,
        instructions: str,
        messages: Sequence[ChatMessage],
        temperature: float,
    ) -> str:
        """Return the generator's raw text for one request."""


# =============================================================================
# Error Classification
# =============================================================================


def _error_message(exc: BaseException) -> str:
    """
    Pull the most specific message out of an SDK error.

    Provider error bodies usually look like ``{"error": {"message": ...}}``.
    """
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        if body.get("message"):
            return str(body["message"])
    message = getattr(exc, "message", None)
    if message:
        return str(message)
    return str(exc) or exc.__class__.__name__


def classify_generator_error(exc: BaseException) -> GeneratorFailureKind:
    """Classify a generator exception as quota/billing, auth or generic."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return GeneratorFailureKind.AUTH
    if getattr(exc, "code", None) == "insufficient_quota":
        return GeneratorFailureKind.QUOTA
    return classify_failure_message(_error_message(exc))


def to_generator_unavailable(exc: BaseException) -> GeneratorUnavailable:
    """Convert any generator exception into a classified GeneratorUnavailable."""
    if isinstance(exc, GeneratorUnavailable):
        return exc
    return GeneratorUnavailable(_error_message(exc), kind=classify_generator_error(exc))


# =============================================================================
# Agents SDK Generator
# =============================================================================


class AgentTextGenerator:
    """
    Generates raw text with an ``agents.Agent`` per request.

    The agent has no output type, so ``final_output`` is the model's raw
    text; structure is recovered by the contract parser.

    Example:
        >>> client = AsyncOpenAI(api_key="...", base_url=GROQ_BASE_URL, max_retries=0)
        >>> generator = AgentTextGenerator(model="llama-3.1-8b-instant", client=client)
        >>> text = await generator.generate(
        ...     "You are an interviewer.",
        ...     [{"role": "user", "content": "Respond with JSON."}],
        ...     temperature=0.7,
        ... )
    """

    def __init__(
        self,
        model: str,
        client: AsyncOpenAI,
        timeout_seconds: float = 60.0,
        name: str = "Interview Practice Partner",
    ) -> None:
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._name = name
        self._model = OpenAIChatCompletionsModel(model=model, openai_client=client)
        logger.info("AgentTextGenerator initialized with model: %s", model)

    async def generate(
        self,
        instructions: str,
        messages: Sequence[ChatMessage],
        temperature: float,
    ) -> str:
        """
        Run one generation request.

        Args:
            instructions: System prompt for the agent.
            messages: Conversation messages, oldest first.
            temperature: Sampling temperature.

        Returns:
            The raw text produced by the model.

        Raises:
            GeneratorUnavailable: On network, auth, quota or timeout failure.
        """
        agent = Agent(
            name=self._name,
            instructions=instructions,
            model=self._model,
            model_settings=ModelSettings(temperature=temperature),
        )
        run_input: list[Any] = [dict(message) for message in messages]

        try:
            result = await asyncio.wait_for(
                Runner.run(agent, run_input),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Generator timed out after %.1fs", self.timeout_seconds)
            raise GeneratorUnavailable(
                f"The generator did not respond within {self.timeout_seconds:g} seconds"
            ) from exc
        except Exception as exc:
            error = to_generator_unavailable(exc)
            logger.error(
                "Generator call failed (%s): %s", error.kind.value, error.message, exc_info=True
            )
            raise error from exc

        output = result.final_output
        if output is None:
            return ""
        return output if isinstance(output, str) else str(output)


def create_text_generator(config: GeneratorConfig) -> Optional[AgentTextGenerator]:
    """
    Factory for the configured generator.

    Returns:
        An AgentTextGenerator, or None when no API key is configured.
    """
    if not config.is_configured:
        logger.error(
            "No generator credentials configured. Set one of:\n"
            "  - GROQ_API_KEY (free key at https://console.groq.com/keys)\n"
            "  - OPENAI_API_KEY\n"
            "  - GENERATOR_API_KEY with GENERATOR_BASE_URL"
        )
        return None

    if config.base_url:
        # Traces are exported to the OpenAI platform, which rejects other providers' keys.
        set_tracing_disabled(True)

    client = AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout_seconds,
        max_retries=0,
    )
    logger.info(
        "Generator configured: model=%s endpoint=%s",
        config.model,
        config.base_url or "api.openai.com",
    )
    return AgentTextGenerator(
        model=config.model,
        client=client,
        timeout_seconds=config.timeout_seconds,
    )
