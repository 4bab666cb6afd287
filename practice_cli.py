#!/usr/bin/env python3
"""
Interview Practice Console.

Runs a practice interview or a one-shot code review from the terminal,
either against a running ``practice_server.py`` or directly against the
configured generator.

Usage:
    # Interactive interview using the generator from .env:
    uv run python practice_cli.py interview --role "Backend Developer" --years 3

    # Against a running service:
    uv run python practice_cli.py --server http://localhost:3000 interview

    # Review a file:
    uv run python practice_cli.py review solution.py --language python

Interview commands:
    /feedback      End the interview and get rated feedback
    /restart       Start a new interview
    /voice <text>  Answer through the simulated speech engine
    /quit          Leave
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Final, Optional

from interview_partner.capture import ScriptedRecognitionEngine
from interview_partner.client import InterviewApiClient
from interview_partner.code_review import CodeReviewOrchestrator
from interview_partner.config import load_runtime_config
from interview_partner.errors import GeneratorUnavailable, InterviewServiceError
from interview_partner.generator import create_text_generator
from interview_partner.interview import InterviewOrchestrator, TurnResponder
from interview_partner.models import RecognitionEvent, SessionPhase, ValidationResult
from interview_partner.session import InterviewSession, TurnOutcome

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger: logging.Logger = logging.getLogger(__name__)


# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS: Final[int] = 0
EXIT_CONNECTION_ERROR: Final[int] = 1
EXIT_NOT_CONFIGURED: Final[int] = 2
EXIT_REVIEW_ERROR: Final[int] = 3
EXIT_INPUT_ERROR: Final[int] = 4
EXIT_INTERRUPTED: Final[int] = 130  # Standard SIGINT exit code


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_ROLE: Final[str] = "Frontend Developer"
DEFAULT_YEARS: Final[int] = 1


def speech_script(text: str) -> list[RecognitionEvent]:
    """
    Turn typed text into recognition events, one word of interim text at
    a time, finalized per sentence.
    """
    events: list[RecognitionEvent] = []
    for sentence in text.replace("?", "?.").split("."):
        words = sentence.split()
        if not words:
            continue
        for count in range(1, len(words)):
            events.append(RecognitionEvent(interim=" ".join(words[:count])))
        events.append(RecognitionEvent(final_segments=[" ".join(words)]))
    return events


# =============================================================================
# Responder Setup
# =============================================================================


def build_responder(server_url: Optional[str]) -> Optional[TurnResponder]:
    """Remote client when a server URL is given, else the local orchestrator."""
    if server_url:
        return InterviewApiClient(server_url)
    generator = create_text_generator(load_runtime_config().generator)
    if generator is None:
        return None
    return InterviewOrchestrator(generator)


def print_outcome(session: InterviewSession, outcome: TurnOutcome) -> None:
    if not outcome.accepted:
        if session.phase is SessionPhase.FINAL_FEEDBACK:
            print("(The interview is over. Type /restart to begin again.)")
        else:
            print("(Nothing to send.)")
        return
    if outcome.notice is not None:
        print(f"\n[!] {outcome.notice.text}\n")
        return
    turn = outcome.agent_turn
    if turn is None:
        return
    print(f"\nInterviewer: {turn.text}")
    if turn.rating is not None:
        print(f"\nOverall rating: {turn.rating}/10")
    if outcome.degraded:
        print("(Some response fields were missing and were filled with defaults.)")
    print()


# =============================================================================
# Interview Mode
# =============================================================================


async def run_interview(
    server_url: Optional[str],
    role: str,
    experience_years: int,
    locale: str,
) -> int:
    """
    Run an interactive interview until /quit or end of input.

    Returns:
        Exit code indicating success or failure.
    """
    if server_url:
        try:
            health = await InterviewApiClient(server_url).health()
        except GeneratorUnavailable as exc:
            logger.error("%s", exc.message)
            return EXIT_CONNECTION_ERROR
        if not health.get("generator_configured"):
            logger.warning("Service reports no generator API key; turns will fail")

    responder = build_responder(server_url)
    if responder is None:
        return EXIT_NOT_CONFIGURED

    engine = ScriptedRecognitionEngine([], locale=locale)
    session = InterviewSession(responder, role, experience_years, recognition_engine=engine)

    print(f"Practice interview: {role}, {experience_years} year(s) of experience")
    print("Commands: /feedback  /restart  /voice <text>  /quit\n")
    print_outcome(session, await session.start_session())

    while True:
        try:
            line = await asyncio.to_thread(input, "You: ")
        except EOFError:
            break

        command, _, argument = line.strip().partition(" ")
        if command == "/quit":
            break
        if command == "/restart":
            print_outcome(session, await session.start_session())
        elif command == "/feedback":
            print_outcome(session, await session.request_feedback())
        elif command == "/voice":
            engine.load(speech_script(argument))
            if not session.start_capture():
                print("(Voice input is not available right now.)")
                continue
            outcome = await engine.play()
            if isinstance(outcome, TurnOutcome) and outcome.accepted:
                print_outcome(session, outcome)
            else:
                print("(No speech captured.)")
        else:
            print_outcome(session, await session.submit_answer(line))

    print(f"Session ended with {len(session.history)} turns.")
    return EXIT_SUCCESS


# =============================================================================
# Review Mode
# =============================================================================


def format_review(result: ValidationResult) -> str:
    lines = [
        f"Valid: {'yes' if result.is_valid else 'no'}    Rating: {result.rating}/10",
        "",
        f"Syntax: {result.syntax_check}",
        f"Logic: {result.logic_check}",
        f"Best practices: {result.best_practices}",
    ]
    if result.issues:
        lines += ["", "Issues:"] + [f"  - {issue}" for issue in result.issues]
    if result.suggestions:
        lines += ["", "Suggestions:"] + [f"  - {tip}" for tip in result.suggestions]
    lines += ["", result.summary]
    return "\n".join(lines)


async def run_review(
    server_url: Optional[str],
    code: str,
    language: str,
    as_json: bool,
) -> int:
    """Review ``code`` once and print the result."""
    if server_url:
        reviewer = InterviewApiClient(server_url)
        review = reviewer.validate_code
    else:
        generator = create_text_generator(load_runtime_config().generator)
        if generator is None:
            return EXIT_NOT_CONFIGURED
        review = CodeReviewOrchestrator(generator).validate

    try:
        result = await review(code, language)
    except InterviewServiceError as exc:
        logger.error("Code review failed: %s", exc.message)
        return EXIT_REVIEW_ERROR

    if as_json:
        print(json.dumps(result.model_dump(by_alias=True), indent=2))
    else:
        print(format_review(result))
    return EXIT_SUCCESS


# =============================================================================
# Entry Points
# =============================================================================


def main(args: argparse.Namespace) -> int:
    """
    Dispatch the parsed command.

    Returns:
        Exit code indicating success or failure.
    """
    try:
        if args.command == "review":
            if args.path == "-":
                code = sys.stdin.read()
            else:
                try:
                    code = Path(args.path).read_text(encoding="utf-8")
                except OSError as exc:
                    logger.error("Cannot read %s: %s", args.path, exc)
                    return EXIT_INPUT_ERROR
            if not code.strip():
                logger.error("Please write some code before validating.")
                return EXIT_INPUT_ERROR
            return asyncio.run(run_review(args.server, code, args.language, args.json))

        locale = load_runtime_config().speech_locale
        return asyncio.run(run_interview(args.server, args.role, args.years, locale))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_INTERRUPTED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Practice interviews and code reviews from the terminal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    uv run python practice_cli.py interview --role "Data Engineer" --years 4
    uv run python practice_cli.py --server http://localhost:3000 review main.go --language go

Environment Variables:
    GROQ_API_KEY     Generator API key when running without --server
    GROQ_MODEL       Model name (default: llama-3.1-8b-instant)
        """,
    )
    parser.add_argument(
        "--server",
        type=str,
        default=None,
        help="URL of a running practice_server.py (default: call the generator directly)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    interview = subparsers.add_parser("interview", help="Run an interactive practice interview")
    interview.add_argument("--role", default=DEFAULT_ROLE, help=f"Job role (default: {DEFAULT_ROLE})")
    interview.add_argument(
        "--years",
        type=int,
        default=DEFAULT_YEARS,
        help=f"Years of experience (default: {DEFAULT_YEARS})",
    )

    review = subparsers.add_parser("review", help="Review a code file")
    review.add_argument("path", help="File to review, or - for stdin")
    review.add_argument("--language", required=True, help="Language of the code")
    review.add_argument("--json", action="store_true", help="Print the raw JSON result")

    return parser


def cli() -> None:
    """Command-line interface entry point with argument parsing."""
    args = build_parser().parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.command == "interview" and args.years < 0:
        logger.error("--years must be >= 0")
        sys.exit(EXIT_INPUT_ERROR)

    sys.exit(main(args))


if __name__ == "__main__":
    cli()
