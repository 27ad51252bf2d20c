"""State machine driving one practice quiz, one question at a time."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from threading import RLock
import time

from coursemate.constants.study_constants import (
    CORRECT_FEEDBACK_MESSAGE,
    EVENT_PRACTICE_ANSWER_SUBMITTED,
    EVENT_PRACTICE_SESSION_COMPLETED,
    EVENT_PRACTICE_SESSION_RESTARTED,
    EVENT_PRACTICE_SESSION_STARTED,
    FEEDBACK_DELAY_SECONDS,
    INCORRECT_FEEDBACK_TEMPLATE,
    PERFORMANCE_MESSAGES,
)
from coursemate.core.models import AnswerFeedback, Question
from coursemate.core.services.analytics import AnalyticsSink
from coursemate.core.services.scheduler import ScheduledCall, Scheduler

logger = logging.getLogger(__name__)


class QuizValidationError(ValueError):
    """Raised for submissions that can never be valid for the loaded questions."""


class QuizStateError(RuntimeError):
    """Raised when an operation is not allowed in the session's current state."""


class QuizState(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    IN_PROGRESS = "in_progress"
    ANSWERED = "answered"
    COMPLETED = "completed"


def percentage_of(score: int, total: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if total <= 0:
        return 0
    return math.floor(score * 100 / total + 0.5)


def performance_message_for(percentage: int) -> str:
    for threshold, message in PERFORMANCE_MESSAGES:
        if percentage >= threshold:
            return message
    return PERFORMANCE_MESSAGES[-1][1]


@dataclass(frozen=True, slots=True)
class QuizSnapshot:
    """Immutable view of a quiz session for rendering."""

    state: QuizState
    question_count: int
    current_index: int
    current_question: Question | None
    selected_answer: int | None
    score: int
    completed: bool
    feedback: AnswerFeedback | None

    @property
    def completion_percentage(self) -> int:
        return percentage_of(self.score, self.question_count)

    @property
    def performance_message(self) -> str | None:
        """Grade shown on the results screen, or None before completion."""
        if not self.completed:
            return None
        return performance_message_for(self.completion_percentage)


class QuizSession:
    """Scores answers, holds feedback for a fixed delay, then advances.

    Every submission schedules an advance tagged with the session generation.
    Restarting or disposing the session bumps the generation, so advances
    scheduled earlier find a mismatch and do nothing.
    """

    def __init__(
        self,
        analytics: AnalyticsSink,
        scheduler: Scheduler,
        feedback_delay: float = FEEDBACK_DELAY_SECONDS,
        course_id: str | None = None,
        unit_id: str | None = None,
    ) -> None:
        self._lock = RLock()
        self._analytics = analytics
        self._scheduler = scheduler
        self._feedback_delay = feedback_delay
        self._course_id = course_id
        self._unit_id = unit_id

        self._state = QuizState.LOADING
        self._questions: tuple[Question, ...] = ()
        self._current_index: int = 0
        self._selected_answer: int | None = None
        self._score: int = 0
        self._completed: bool = False
        self._feedback: AnswerFeedback | None = None

        self._generation: int = 0
        self._disposed: bool = False
        self._pending: ScheduledCall | None = None
        self._question_presented_at: float = time.monotonic()

    # --- Lifecycle ---

    def load(self, questions: list[Question]) -> None:
        with self._lock:
            self._ensure_not_disposed()
            if self._state is not QuizState.LOADING:
                raise QuizStateError("Questions have already been loaded for this session.")
            self._questions = tuple(questions)
            self._state = QuizState.IN_PROGRESS if self._questions else QuizState.EMPTY
            self._question_presented_at = time.monotonic()
            self._analytics.record(
                EVENT_PRACTICE_SESSION_STARTED,
                {
                    "courseId": self._course_id,
                    "unitId": self._unit_id,
                    "questionCount": len(self._questions),
                },
            )

    def restart(self) -> None:
        with self._lock:
            self._ensure_not_disposed()
            if self._state is not QuizState.COMPLETED:
                raise QuizStateError("Only a completed quiz can be restarted.")
            previous_score = self._score
            self._cancel_pending()
            self._generation += 1
            self._current_index = 0
            self._selected_answer = None
            self._score = 0
            self._completed = False
            self._feedback = None
            self._state = QuizState.IN_PROGRESS
            self._question_presented_at = time.monotonic()
            self._analytics.record(
                EVENT_PRACTICE_SESSION_RESTARTED,
                {"previousScore": previous_score, "totalQuestions": len(self._questions)},
            )

    def dispose(self) -> None:
        """Tear the session down. Safe to call more than once."""
        with self._lock:
            if self._disposed:
                return
            self._cancel_pending()
            self._generation += 1
            self._disposed = True

    def is_disposed(self) -> bool:
        with self._lock:
            return self._disposed

    # --- Answering ---

    def submit_answer(self, selection: int) -> AnswerFeedback:
        with self._lock:
            self._ensure_not_disposed()
            if self._state in (QuizState.LOADING, QuizState.EMPTY):
                raise QuizValidationError("No questions are loaded for this session.")
            if self._state is QuizState.ANSWERED:
                raise QuizStateError("Feedback for the previous answer is still being shown.")
            if self._state is QuizState.COMPLETED:
                raise QuizStateError("The quiz is already completed.")

            question = self._questions[self._current_index]
            if isinstance(selection, bool) or not isinstance(selection, int):
                raise QuizValidationError("Selected answer must be an option index.")
            if not 0 <= selection < len(question.options):
                raise QuizValidationError(
                    f"Selected answer must be between 0 and {len(question.options) - 1}."
                )

            is_correct = selection == question.correct_index
            if is_correct:
                self._score += 1
            message = (
                CORRECT_FEEDBACK_MESSAGE
                if is_correct
                else INCORRECT_FEEDBACK_TEMPLATE.format(option=question.options[question.correct_index])
            )
            feedback = AnswerFeedback(
                question_id=question.id,
                selected_answer=selection,
                correct_answer=question.correct_index,
                is_correct=is_correct,
                message=message,
            )
            self._selected_answer = selection
            self._feedback = feedback
            self._state = QuizState.ANSWERED

            self._analytics.record(
                EVENT_PRACTICE_ANSWER_SUBMITTED,
                {
                    "questionId": question.id,
                    "isCorrect": is_correct,
                    "selectedAnswer": selection,
                    "correctAnswer": question.correct_index,
                    "timeSpent": round(time.monotonic() - self._question_presented_at, 3),
                },
            )

            self._generation += 1
            generation = self._generation
            self._pending = self._scheduler.call_later(
                self._feedback_delay, lambda: self._advance_if_current(generation)
            )
            return feedback

    def advance(self) -> None:
        """Apply the pending advance immediately instead of waiting for the timer."""
        with self._lock:
            self._ensure_not_disposed()
            if self._state is not QuizState.ANSWERED:
                raise QuizStateError("There is no answered question to advance from.")
            self._cancel_pending()
            self._apply_advance()

    def _advance_if_current(self, generation: int) -> None:
        with self._lock:
            if self._disposed or generation != self._generation or self._state is not QuizState.ANSWERED:
                logger.debug("Ignoring stale quiz advance (generation %d)", generation)
                return
            self._pending = None
            self._apply_advance()

    def _apply_advance(self) -> None:
        if self._current_index < len(self._questions) - 1:
            self._current_index += 1
            self._selected_answer = None
            self._feedback = None
            self._state = QuizState.IN_PROGRESS
            self._question_presented_at = time.monotonic()
            return

        self._completed = True
        self._state = QuizState.COMPLETED
        total = len(self._questions)
        self._analytics.record(
            EVENT_PRACTICE_SESSION_COMPLETED,
            {
                "score": self._score,
                "totalQuestions": total,
                "percentageCorrect": percentage_of(self._score, total),
            },
        )

    # --- Queries ---

    def snapshot(self) -> QuizSnapshot:
        with self._lock:
            current = self._questions[self._current_index] if self._questions else None
            return QuizSnapshot(
                state=self._state,
                question_count=len(self._questions),
                current_index=self._current_index,
                current_question=current,
                selected_answer=self._selected_answer,
                score=self._score,
                completed=self._completed,
                feedback=self._feedback,
            )

    @property
    def state(self) -> QuizState:
        with self._lock:
            return self._state

    @property
    def score(self) -> int:
        with self._lock:
            return self._score

    # --- Internals ---

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise QuizStateError("This quiz session has been closed.")
