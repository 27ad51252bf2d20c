"""Domain models for the study assistant."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice practice question. Immutable once loaded."""

    id: str
    text: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str | None = None


@dataclass(frozen=True, slots=True)
class AnswerCheck:
    """Result of grading a single stateless practice answer."""

    is_correct: bool
    correct_answer: int | None
    explanation: str | None


@dataclass(frozen=True, slots=True)
class AnswerFeedback:
    """Feedback shown after a quiz answer until the session advances."""

    question_id: str
    selected_answer: int
    correct_answer: int
    is_correct: bool
    message: str


@dataclass(frozen=True, slots=True)
class Unit:
    unit_id: str
    name: str


@dataclass(frozen=True, slots=True)
class Topic:
    name: str
    description: str


@dataclass(frozen=True, slots=True)
class Course:
    """Static course description supplied by the hosting environment."""

    course_id: str
    course_name: str
    units: tuple[Unit, ...]
    topics: tuple[Topic, ...]


@dataclass(frozen=True, slots=True)
class CourseContext:
    """The slice of a course that sessions and prompts consume."""

    course_id: str
    course_name: str
    unit_id: str
    current_unit_name: str
    topics: tuple[Topic, ...] = ()


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ChatTurn:
    """One entry of a concept Q&A transcript."""

    role: ChatRole
    content: str


@dataclass(frozen=True, slots=True)
class ExplanationResult:
    """Answer returned by an explanation provider."""

    explanation_text: str
    confidence_score: float
    request_id: str


@dataclass(frozen=True, slots=True)
class AnalyticsEvent:
    """Write-once record of something a student did."""

    name: str
    payload: dict[str, object] = field(default_factory=dict)
    timestamp: str = ""
