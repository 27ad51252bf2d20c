"""Application entry point for the CourseMate API server."""

from __future__ import annotations

import logging

from coursemate.core.course_catalog import CourseCatalog
from coursemate.core.explanation_provider import (
    ExplanationProvider,
    OpenAIExplanationProvider,
    UnavailableExplanationProvider,
)
from coursemate.core.services.analytics import AnalyticsSink
from coursemate.core.services.question_bank import QuestionBank
from coursemate.core.study_manager import StudyManager
from coursemate.server.api_server import run_api_server
from coursemate.utils.logging_config import configure_logging
from coursemate.utils.settings import AppSettings

logger = logging.getLogger("coursemate")


def build_explanation_provider(settings: AppSettings) -> ExplanationProvider:
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; concept explanations are disabled.")
        return UnavailableExplanationProvider()
    return OpenAIExplanationProvider.from_api_key(
        settings.openai_api_key,
        model=settings.openai_model,
        max_tokens=settings.max_response_tokens,
    )


def build_study_manager(settings: AppSettings) -> StudyManager:
    """Wire the core services according to the settings."""
    if settings.question_bank_dir is not None:
        question_bank = QuestionBank.from_directory(settings.question_bank_dir)
    else:
        question_bank = QuestionBank.with_mock_questions()
    return StudyManager(
        catalog=CourseCatalog(),
        question_bank=question_bank,
        explanation_provider=build_explanation_provider(settings),
        analytics=AnalyticsSink(storage_path=settings.analytics_path),
        feedback_delay=settings.feedback_delay_seconds,
        max_sessions=settings.max_sessions,
    )


def main() -> None:
    """Load settings, initialize logging and serve the API."""
    settings = AppSettings.from_env()
    configure_logging(settings.log_level)
    logger.info("Starting CourseMate API on %s:%d", settings.host, settings.port)

    study_manager = build_study_manager(settings)
    run_api_server(
        study_manager,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
