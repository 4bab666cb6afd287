"""Code Review Orchestrator: single-shot advisory review of a code snippet."""

from __future__ import annotations

import logging

from .contract import parse_validation_review
from .generator import TextGenerator
from .models import ParsedValidationResult, ValidationResult
from .prompts import CODE_REVIEW_REQUEST, build_code_review_instructions


__all__ = ["REVIEW_TEMPERATURE", "CodeReviewOrchestrator"]


logger = logging.getLogger(__name__)


REVIEW_TEMPERATURE = 0.3


class CodeReviewOrchestrator:
    """
    Reviews code with the generator and always returns a ValidationResult.

    Unparsable output never escapes as an error: it becomes the fixed
    degraded result. Only a failed generator call raises
    (GeneratorUnavailable).
    """

    def __init__(self, generator: TextGenerator, temperature: float = REVIEW_TEMPERATURE) -> None:
        self._generator = generator
        self.temperature = temperature

    async def review(self, code: str, language: str) -> ParsedValidationResult:
        """
        Review ``code`` written in ``language``.

        Args:
            code: Source code to review.
            language: Language name used for the prompt and code fence.

        Returns:
            The parsed review; ``degraded`` is set when the output was
            unparsable and the fixed fallback was returned.

        Raises:
            GeneratorUnavailable: If the generator call fails.
        """
        instructions = build_code_review_instructions(code, language)
        messages = [{"role": "user", "content": CODE_REVIEW_REQUEST}]

        logger.info("Reviewing %d chars of %s", len(code), language)
        raw_text = await self._generator.generate(instructions, messages, self.temperature)
        parsed = parse_validation_review(raw_text)

        logger.info(
            "Code review complete: valid=%s rating=%d degraded=%s",
            parsed.result.is_valid,
            parsed.result.rating,
            parsed.degraded,
        )
        return parsed

    async def validate(self, code: str, language: str) -> ValidationResult:
        """Review ``code`` and return just the ValidationResult."""
        return (await self.review(code, language)).result
