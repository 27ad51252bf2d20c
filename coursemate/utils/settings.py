"""Runtime settings read from the environment (and an optional ``.env`` file)."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from coursemate.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from coursemate.constants.study_constants import (
    DEFAULT_MAX_RESPONSE_TOKENS,
    DEFAULT_MAX_SESSIONS,
    DEFAULT_OPENAI_MODEL,
    FEEDBACK_DELAY_SECONDS,
)


@dataclass(slots=True)
class AppSettings:
    """Settings for the API server and its collaborators.

    An empty ``openai_api_key`` means explanations are unavailable and the
    Q&A flow answers with its fallback message.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL
    max_response_tokens: int = DEFAULT_MAX_RESPONSE_TOKENS
    feedback_delay_seconds: float = FEEDBACK_DELAY_SECONDS
    max_sessions: int = DEFAULT_MAX_SESSIONS
    question_bank_dir: Path | None = None
    analytics_path: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppSettings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        def optional_path(name: str) -> Path | None:
            value = environ.get(name, "").strip()
            return Path(value) if value else None

        return cls(
            host=environ.get("COURSEMATE_HOST", DEFAULT_HOST),
            port=_parse_number(environ, "COURSEMATE_PORT", DEFAULT_PORT, int),
            log_level=environ.get("COURSEMATE_LOG_LEVEL", "INFO"),
            openai_api_key=environ.get("OPENAI_API_KEY", "").strip(),
            openai_model=environ.get("COURSEMATE_OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            max_response_tokens=_parse_number(
                environ, "COURSEMATE_MAX_RESPONSE_TOKENS", DEFAULT_MAX_RESPONSE_TOKENS, int
            ),
            feedback_delay_seconds=_parse_number(
                environ, "COURSEMATE_FEEDBACK_DELAY_SECONDS", FEEDBACK_DELAY_SECONDS, float
            ),
            max_sessions=_parse_number(environ, "COURSEMATE_MAX_SESSIONS", DEFAULT_MAX_SESSIONS, int),
            question_bank_dir=optional_path("COURSEMATE_QUESTION_BANK_DIR"),
            analytics_path=optional_path("COURSEMATE_ANALYTICS_PATH"),
        )


def _parse_number(environ: Mapping[str, str], name: str, default, convert):
    raw_value = environ.get(name, "").strip()
    if not raw_value:
        return default
    try:
        value = convert(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw_value!r}.") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative.")
    return value
