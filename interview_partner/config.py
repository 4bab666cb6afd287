"""
Runtime configuration.

Values come from environment variables, optionally loaded from a ``.env``
file in the project root. ``load_runtime_config`` validates strictly and
raises RuntimeError on malformed values.

Generator credentials are resolved in order:
    GENERATOR_API_KEY, GROQ_API_KEY, OPENAI_API_KEY

When a Groq key is used and no GENERATOR_BASE_URL is set, Groq's
OpenAI-compatible endpoint is used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


_env_path = Path(__file__).parent.parent / ".env"
load_dotenv(_env_path)


DEFAULT_MODEL = "llama-3.1-8b-instant"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class GeneratorConfig:
    """Connection settings for the text generator."""

    api_key: str | None
    base_url: str | None
    model: str
    timeout_seconds: float

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime config for the interview service and console client."""

    generator: GeneratorConfig
    host: str
    port: int
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))
    debug: bool = False
    speech_locale: str = "en-US"


def _env(name: str) -> str:
    return (os.environ.get(name) or "").strip()


def _parse_bool(name: str) -> bool:
    return _env(name).lower() in _TRUTHY


def load_generator_config() -> GeneratorConfig:
    """Resolve generator credentials, endpoint, model and timeout."""
    api_key = _env("GENERATOR_API_KEY") or None
    base_url = _env("GENERATOR_BASE_URL") or None

    if api_key is None and _env("GROQ_API_KEY"):
        api_key = _env("GROQ_API_KEY")
        base_url = base_url or GROQ_BASE_URL
    if api_key is None and _env("OPENAI_API_KEY"):
        api_key = _env("OPENAI_API_KEY")

    model = _env("GENERATOR_MODEL") or _env("GROQ_MODEL") or DEFAULT_MODEL

    timeout_raw = _env("GENERATOR_TIMEOUT_SECONDS") or str(DEFAULT_TIMEOUT_SECONDS)
    try:
        timeout_seconds = float(timeout_raw)
    except ValueError as exc:
        raise RuntimeError(
            f"GENERATOR_TIMEOUT_SECONDS must be a number. Got: {timeout_raw}"
        ) from exc
    if timeout_seconds <= 0:
        raise RuntimeError(
            f"GENERATOR_TIMEOUT_SECONDS must be positive. Got: {timeout_seconds}."
        )

    return GeneratorConfig(
        api_key=api_key,
        base_url=base_url,
        model=model,
        timeout_seconds=timeout_seconds,
    )


def load_runtime_config() -> RuntimeConfig:
    """Load runtime config from environment with strict validation."""
    host = _env("SERVER_HOST") or DEFAULT_HOST

    port_raw = _env("PORT") or str(DEFAULT_PORT)
    try:
        port = int(port_raw)
    except ValueError as exc:
        raise RuntimeError(f"PORT must be an integer. Got: {port_raw}") from exc
    if port < 1 or port > 65535:
        raise RuntimeError(f"PORT must be in range 1-65535. Got: {port}.")

    origins = tuple(
        origin.strip() for origin in (_env("CORS_ORIGINS") or "*").split(",") if origin.strip()
    )
    if not origins:
        raise RuntimeError("CORS_ORIGINS resolved to empty value.")

    speech_locale = _env("SPEECH_LOCALE") or "en-US"

    return RuntimeConfig(
        generator=load_generator_config(),
        host=host,
        port=port,
        cors_origins=origins,
        debug=_parse_bool("APP_DEBUG"),
        speech_locale=speech_locale,
    )
