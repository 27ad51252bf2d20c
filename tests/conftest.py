"""Shared fixtures: a manually driven scheduler and fake explanation providers."""

from __future__ import annotations

from typing import Callable

import pytest
from fastapi.testclient import TestClient

from coursemate.core.course_catalog import CourseCatalog
from coursemate.core.explanation_provider import ExplanationProviderError
from coursemate.core.models import CourseContext, ExplanationResult, Question
from coursemate.core.services.analytics import AnalyticsSink
from coursemate.core.services.question_bank import QuestionBank
from coursemate.core.study_manager import StudyManager
from coursemate.server.api_server import create_api_app


class ManualCall:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Collects scheduled callbacks so tests decide when (and whether) they fire."""

    def __init__(self) -> None:
        self.calls: list[ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualCall:
        call = ManualCall(delay, callback)
        self.calls.append(call)
        return call

    def run_pending(self) -> None:
        pending = [call for call in self.calls if not call.cancelled]
        self.calls = []
        for call in pending:
            call.callback()


class FakeExplanationProvider:
    def __init__(self, text: str = "Mitochondria make **ATP**.") -> None:
        self.text = text
        self.calls: list[tuple[str, CourseContext]] = []

    def explain(self, question_text: str, course_context: CourseContext) -> ExplanationResult:
        self.calls.append((question_text, course_context))
        return ExplanationResult(explanation_text=self.text, confidence_score=0.9, request_id="req-1")


class FailingExplanationProvider:
    def __init__(self) -> None:
        self.calls = 0

    def explain(self, question_text: str, course_context: CourseContext) -> ExplanationResult:
        self.calls += 1
        raise ExplanationProviderError("service unavailable")


def make_question(question_id: str, correct_index: int, option_count: int = 3) -> Question:
    return Question(
        id=question_id,
        text=f"Question {question_id}?",
        options=tuple(f"Option {i}" for i in range(option_count)),
        correct_index=correct_index,
        explanation=f"Because of {question_id}.",
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def analytics() -> AnalyticsSink:
    return AnalyticsSink()


@pytest.fixture
def catalog() -> CourseCatalog:
    return CourseCatalog()


@pytest.fixture
def course_context(catalog: CourseCatalog) -> CourseContext:
    return catalog.get_context("BIO101", "unit1")


@pytest.fixture
def questions() -> list[Question]:
    return [make_question("a", 1), make_question("b", 0), make_question("c", 2)]


@pytest.fixture
def provider() -> FakeExplanationProvider:
    return FakeExplanationProvider()


@pytest.fixture
def manager(catalog, analytics, scheduler, provider) -> StudyManager:
    return StudyManager(
        catalog=catalog,
        question_bank=QuestionBank.with_mock_questions(),
        explanation_provider=provider,
        analytics=analytics,
        scheduler=scheduler,
    )


@pytest.fixture
def client(manager: StudyManager) -> TestClient:
    return TestClient(create_api_app(manager))
