"""Chat-style concept Q&A session backed by an explanation provider."""

from __future__ import annotations

import logging
from threading import Lock

from coursemate.constants.study_constants import (
    EVENT_CONCEPT_EXPLANATION_ERROR,
    EVENT_CONCEPT_EXPLANATION_RECEIVED,
    EVENT_CONCEPT_QUESTION_ASKED,
    FALLBACK_ASSISTANT_MESSAGE,
    SUGGESTED_QUESTIONS,
    SUGGESTION_TRANSCRIPT_LIMIT,
    WELCOME_MESSAGE_TEMPLATE,
)
from coursemate.core.explanation_provider import ExplanationProvider
from coursemate.core.models import ChatRole, ChatTurn, CourseContext
from coursemate.core.services.analytics import AnalyticsSink

logger = logging.getLogger(__name__)


class ConceptSessionBusyError(RuntimeError):
    """Raised when a question is asked while another one is still being answered."""


class ConceptSession:
    """Keeps a linear transcript of questions and explanations.

    Provider failures never reach the caller: they are logged, recorded as an
    analytics event and replaced by a fixed apology in the transcript.
    """

    def __init__(
        self,
        course_context: CourseContext,
        provider: ExplanationProvider,
        analytics: AnalyticsSink,
    ) -> None:
        self._lock = Lock()
        self._course_context = course_context
        self._provider = provider
        self._analytics = analytics
        self._busy = False
        self._transcript: list[ChatTurn] = [self._welcome_turn()]

    @property
    def course_context(self) -> CourseContext:
        return self._course_context

    @property
    def transcript(self) -> list[ChatTurn]:
        with self._lock:
            return list(self._transcript)

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._busy

    @property
    def suggested_questions(self) -> list[str]:
        return list(SUGGESTED_QUESTIONS)

    @property
    def show_suggestions(self) -> bool:
        with self._lock:
            return len(self._transcript) <= SUGGESTION_TRANSCRIPT_LIMIT

    def reset(self) -> None:
        with self._lock:
            if self._busy:
                raise ConceptSessionBusyError("Cannot reset while a question is being answered.")
            self._transcript = [self._welcome_turn()]

    def ask(self, question: str) -> ChatTurn | None:
        """Ask a question and return the assistant turn that was appended.

        Blank questions are ignored and return None.
        """
        if not question or not question.strip():
            return None
        question = question.strip()

        with self._lock:
            if self._busy:
                raise ConceptSessionBusyError("A question is already being answered.")
            self._busy = True
            self._transcript.append(ChatTurn(role=ChatRole.USER, content=question))

        try:
            self._analytics.record(
                EVENT_CONCEPT_QUESTION_ASKED,
                {"question": question, "courseId": self._course_context.course_id},
            )
            try:
                result = self._provider.explain(question, self._course_context)
                answer = ChatTurn(role=ChatRole.ASSISTANT, content=result.explanation_text)
            except Exception as exc:
                logger.exception("Error getting explanation")
                answer = ChatTurn(role=ChatRole.ASSISTANT, content=FALLBACK_ASSISTANT_MESSAGE)
                self._analytics.record(EVENT_CONCEPT_EXPLANATION_ERROR, {"error": str(exc)})
            else:
                self._analytics.record(
                    EVENT_CONCEPT_EXPLANATION_RECEIVED,
                    {
                        "questionId": result.request_id,
                        "responseLength": len(result.explanation_text),
                        "confidence": result.confidence_score,
                    },
                )
            with self._lock:
                self._transcript.append(answer)
            return answer
        finally:
            with self._lock:
                self._busy = False

    def _welcome_turn(self) -> ChatTurn:
        return ChatTurn(
            role=ChatRole.ASSISTANT,
            content=WELCOME_MESSAGE_TEMPLATE.format(course_name=self._course_context.course_name),
        )
