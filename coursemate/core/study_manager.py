"""Business logic shared by the API: course data, grading, analytics and live sessions."""

from __future__ import annotations

import logging
from collections import OrderedDict
from threading import Lock
from uuid import uuid4

from coursemate.constants.study_constants import DEFAULT_MAX_SESSIONS, FEEDBACK_DELAY_SECONDS
from coursemate.core.course_catalog import CourseCatalog
from coursemate.core.explanation_provider import ExplanationProvider
from coursemate.core.models import AnalyticsEvent, AnswerCheck, CourseContext, ExplanationResult, Question
from coursemate.core.services.analytics import AnalyticsSink
from coursemate.core.services.concept_session import ConceptSession
from coursemate.core.services.question_bank import QuestionBank
from coursemate.core.services.quiz_session import QuizSession
from coursemate.core.services.scheduler import Scheduler, TimerScheduler

logger = logging.getLogger(__name__)


class StudyManager:
    """Facade for the catalog, question bank, explanation provider, analytics and sessions."""

    def __init__(
        self,
        catalog: CourseCatalog,
        question_bank: QuestionBank,
        explanation_provider: ExplanationProvider,
        analytics: AnalyticsSink,
        scheduler: Scheduler | None = None,
        feedback_delay: float = FEEDBACK_DELAY_SECONDS,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        self._lock = Lock()
        if max_sessions <= 0:
            raise ValueError("max_sessions must be positive.")

        # Services
        self._catalog = catalog
        self._question_bank = question_bank
        self._explanation_provider = explanation_provider
        self._analytics = analytics
        self._scheduler = scheduler or TimerScheduler()
        self._feedback_delay = feedback_delay

        # Least recently used first; the oldest entry is evicted past max_sessions.
        self._max_sessions = max_sessions
        self._quiz_sessions: OrderedDict[str, QuizSession] = OrderedDict()
        self._concept_sessions: OrderedDict[str, ConceptSession] = OrderedDict()

    # --- Course Context ---

    def get_course_context(self, course_id: str | None = None, unit_id: str | None = None) -> CourseContext:
        return self._catalog.get_context(course_id, unit_id)

    # --- Stateless Endpoints ---

    def explain_concept(
        self, question: str, course_id: str | None = None, unit_id: str | None = None
    ) -> ExplanationResult:
        if not question or not question.strip():
            raise ValueError("Question must not be empty.")
        context = self._catalog.get_context(course_id, unit_id)
        return self._explanation_provider.explain(question.strip(), context)

    def get_practice_questions(self, unit_id: str) -> list[Question]:
        return self._question_bank.get_questions(unit_id)

    def check_practice_answer(self, question_id: str, selected_answer: int | None) -> AnswerCheck:
        return self._question_bank.check_answer(question_id, selected_answer)

    # --- Analytics Delegation ---

    def record_event(self, name: str, data: dict[str, object] | None = None) -> None:
        self._analytics.record(name, data)

    def read_events(self) -> list[AnalyticsEvent]:
        return self._analytics.read_all()

    def clear_events(self) -> None:
        self._analytics.clear()

    # --- Quiz Sessions ---

    def start_quiz_session(
        self, course_id: str | None = None, unit_id: str | None = None
    ) -> tuple[str, QuizSession]:
        context = self._catalog.get_context(course_id, unit_id)
        session = QuizSession(
            analytics=self._analytics,
            scheduler=self._scheduler,
            feedback_delay=self._feedback_delay,
            course_id=context.course_id,
            unit_id=context.unit_id,
        )
        try:
            questions = self._question_bank.get_questions(context.unit_id)
        except Exception:
            logger.exception("Error fetching questions for unit %s", context.unit_id)
            questions = []
        session.load(questions)

        session_id = uuid4().hex
        with self._lock:
            self._quiz_sessions[session_id] = session
            evicted = self._evict_oldest(self._quiz_sessions)
        for stale in evicted:
            stale.dispose()
        logger.info("Started quiz session %s for %s/%s", session_id, context.course_id, context.unit_id)
        return session_id, session

    def get_quiz_session(self, session_id: str) -> QuizSession:
        with self._lock:
            try:
                self._quiz_sessions.move_to_end(session_id)
            except KeyError:
                raise KeyError(f"Unknown quiz session: {session_id}") from None
            return self._quiz_sessions[session_id]

    def end_quiz_session(self, session_id: str) -> None:
        with self._lock:
            session = self._quiz_sessions.pop(session_id, None)
        if session is not None:
            session.dispose()

    # --- Concept Sessions ---

    def start_concept_session(
        self, course_id: str | None = None, unit_id: str | None = None
    ) -> tuple[str, ConceptSession]:
        context = self._catalog.get_context(course_id, unit_id)
        session = ConceptSession(context, self._explanation_provider, self._analytics)
        session_id = uuid4().hex
        with self._lock:
            self._concept_sessions[session_id] = session
            self._evict_oldest(self._concept_sessions)
        return session_id, session

    def get_concept_session(self, session_id: str) -> ConceptSession:
        with self._lock:
            try:
                self._concept_sessions.move_to_end(session_id)
            except KeyError:
                raise KeyError(f"Unknown concept session: {session_id}") from None
            return self._concept_sessions[session_id]

    def end_concept_session(self, session_id: str) -> None:
        with self._lock:
            self._concept_sessions.pop(session_id, None)

    def shutdown(self) -> None:
        """Dispose every live session."""
        with self._lock:
            quiz_sessions = list(self._quiz_sessions.values())
            self._quiz_sessions.clear()
            self._concept_sessions.clear()
        for session in quiz_sessions:
            session.dispose()

    def _evict_oldest(self, sessions: OrderedDict) -> list:
        """Drop least recently used sessions past the cap. Caller holds the lock."""
        evicted = []
        while len(sessions) > self._max_sessions:
            session_id, session = sessions.popitem(last=False)
            logger.info("Evicting idle session %s", session_id)
            evicted.append(session)
        return evicted
