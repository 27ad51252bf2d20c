"""FastAPI server that exposes the study assistant endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel
import uvicorn

from coursemate.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from coursemate.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from coursemate.constants.study_constants import EXPLANATION_FAILED_MESSAGE
from coursemate.core.explanation_provider import ExplanationProviderError
from coursemate.core.markdown_renderer import renderer
from coursemate.core.models import AnswerFeedback, ChatTurn, CourseContext, Question
from coursemate.core.services.concept_session import ConceptSession, ConceptSessionBusyError
from coursemate.core.services.quiz_session import QuizSession
from coursemate.core.study_manager import StudyManager

logger = logging.getLogger(__name__)


class ApiModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Request payloads ---


class ExplainConceptPayload(ApiModel):
    question: str
    course_id: str | None = None
    unit_id: str | None = None


class PracticeAnswerPayload(ApiModel):
    question_id: str
    selected_answer: StrictInt | None = None


class AnalyticsPayload(ApiModel):
    event_name: str
    event_data: dict[str, Any] = Field(default_factory=dict)


class SessionPayload(ApiModel):
    course_id: str | None = None
    unit_id: str | None = None


class QuizAnswerPayload(ApiModel):
    selected_answer: StrictInt


class ConceptQuestionPayload(ApiModel):
    question: str


# --- Responses ---


class ExplainConceptResponse(ApiModel):
    question_id: str
    explanation: str
    confidence: float


class PracticeQuestionOut(ApiModel):
    id: str
    text: str
    options: list[str]
    correct_answer: int
    explanation: str | None = None


class PracticeAnswerResponse(ApiModel):
    is_correct: bool
    correct_answer: int | None
    explanation: str | None


class AnalyticsAck(ApiModel):
    success: bool = True


class AnalyticsEventOut(ApiModel):
    name: str
    data: dict[str, Any]
    timestamp: str


class TopicOut(ApiModel):
    name: str
    description: str


class CourseContextOut(ApiModel):
    course_id: str
    course_name: str
    unit_id: str
    current_unit_name: str
    topics: list[TopicOut]


class QuizQuestionOut(ApiModel):
    id: str
    text: str
    question_html: str
    options: list[str]


class FeedbackOut(ApiModel):
    question_id: str
    selected_answer: int
    correct_answer: int
    is_correct: bool
    message: str


class QuizSessionOut(ApiModel):
    session_id: str
    state: str
    question_count: int
    current_index: int
    current_question: QuizQuestionOut | None
    selected_answer: int | None
    score: int
    completed: bool
    completion_percentage: int
    performance_message: str | None
    feedback: FeedbackOut | None


class ChatTurnOut(ApiModel):
    role: str
    content: str
    content_html: str


class ConceptSessionOut(ApiModel):
    session_id: str
    course_name: str
    current_unit_name: str
    transcript: list[ChatTurnOut]
    suggested_questions: list[str]


# --- Serialization helpers ---


def _practice_question_out(question: Question) -> PracticeQuestionOut:
    return PracticeQuestionOut(
        id=question.id,
        text=question.text,
        options=list(question.options),
        correct_answer=question.correct_index,
        explanation=question.explanation,
    )


def _feedback_out(feedback: AnswerFeedback) -> FeedbackOut:
    return FeedbackOut(
        question_id=feedback.question_id,
        selected_answer=feedback.selected_answer,
        correct_answer=feedback.correct_answer,
        is_correct=feedback.is_correct,
        message=feedback.message,
    )


def _quiz_session_out(session_id: str, session: QuizSession) -> QuizSessionOut:
    snapshot = session.snapshot()
    question = snapshot.current_question
    question_out = None
    if question is not None:
        question_out = QuizQuestionOut(
            id=question.id,
            text=question.text,
            question_html=renderer.render_question(question.text),
            options=list(question.options),
        )
    return QuizSessionOut(
        session_id=session_id,
        state=snapshot.state.value,
        question_count=snapshot.question_count,
        current_index=snapshot.current_index,
        current_question=question_out,
        selected_answer=snapshot.selected_answer,
        score=snapshot.score,
        completed=snapshot.completed,
        completion_percentage=snapshot.completion_percentage,
        performance_message=snapshot.performance_message,
        feedback=_feedback_out(snapshot.feedback) if snapshot.feedback else None,
    )


def _chat_turn_out(turn: ChatTurn) -> ChatTurnOut:
    return ChatTurnOut(
        role=turn.role.value,
        content=turn.content,
        content_html=renderer.render_chat_turn(turn),
    )


def _concept_session_out(session_id: str, session: ConceptSession) -> ConceptSessionOut:
    context = session.course_context
    return ConceptSessionOut(
        session_id=session_id,
        course_name=context.course_name,
        current_unit_name=context.current_unit_name,
        transcript=[_chat_turn_out(turn) for turn in session.transcript],
        suggested_questions=session.suggested_questions if session.show_suggestions else [],
    )


def _course_context_out(context: CourseContext) -> CourseContextOut:
    return CourseContextOut(
        course_id=context.course_id,
        course_name=context.course_name,
        unit_id=context.unit_id,
        current_unit_name=context.current_unit_name,
        topics=[TopicOut(name=t.name, description=t.description) for t in context.topics],
    )


def _get_study_manager_dependency(study_manager: StudyManager):
    def dependency() -> StudyManager:
        return study_manager

    return dependency


def create_api_app(study_manager: StudyManager) -> FastAPI:
    """Create a FastAPI application wired to the provided study manager."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        study_manager.shutdown()

    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        lifespan=lifespan,
    )
    manager_dep = _get_study_manager_dependency(study_manager)

    def quiz_session_or_404(manager: StudyManager, session_id: str) -> QuizSession:
        try:
            return manager.get_quiz_session(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Quiz session not found.") from exc

    def concept_session_or_404(manager: StudyManager, session_id: str) -> ConceptSession:
        try:
            return manager.get_concept_session(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Concept session not found.") from exc

    # --- Concept explanations ---

    @app.post("/api/explain-concept", response_model=ExplainConceptResponse)
    def explain_concept(
        payload: ExplainConceptPayload,
        manager: StudyManager = Depends(manager_dep),
    ):
        try:
            result = manager.explain_concept(payload.question, payload.course_id, payload.unit_id)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except ExplanationProviderError:
            logger.exception("Error explaining concept")
            return JSONResponse(status_code=500, content={"error": EXPLANATION_FAILED_MESSAGE})
        return ExplainConceptResponse(
            question_id=result.request_id,
            explanation=result.explanation_text,
            confidence=result.confidence_score,
        )

    # --- Practice questions ---

    @app.get("/api/practice-questions/{unit_id}")
    def get_practice_questions(
        unit_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> list[PracticeQuestionOut]:
        return [_practice_question_out(q) for q in manager.get_practice_questions(unit_id)]

    @app.post("/api/practice-answers")
    def check_practice_answer(
        payload: PracticeAnswerPayload,
        manager: StudyManager = Depends(manager_dep),
    ) -> PracticeAnswerResponse:
        check = manager.check_practice_answer(payload.question_id, payload.selected_answer)
        return PracticeAnswerResponse(
            is_correct=check.is_correct,
            correct_answer=check.correct_answer,
            explanation=check.explanation,
        )

    # --- Analytics ---

    @app.post("/api/analytics")
    def record_analytics(
        payload: AnalyticsPayload,
        manager: StudyManager = Depends(manager_dep),
    ) -> AnalyticsAck:
        manager.record_event(payload.event_name, payload.event_data)
        return AnalyticsAck(success=True)

    @app.get("/api/analytics")
    def read_analytics(manager: StudyManager = Depends(manager_dep)) -> list[AnalyticsEventOut]:
        return [
            AnalyticsEventOut(name=event.name, data=event.payload, timestamp=event.timestamp)
            for event in manager.read_events()
        ]

    @app.delete("/api/analytics", status_code=204)
    def clear_analytics(manager: StudyManager = Depends(manager_dep)) -> Response:
        manager.clear_events()
        return Response(status_code=204)

    # --- Course context ---

    @app.get("/api/course-context")
    def get_course_context(
        course_id: str | None = Query(default=None, alias="courseId"),
        unit_id: str | None = Query(default=None, alias="unitId"),
        manager: StudyManager = Depends(manager_dep),
    ) -> CourseContextOut:
        return _course_context_out(manager.get_course_context(course_id, unit_id))

    # --- Quiz sessions ---

    @app.post("/api/quiz-sessions", status_code=201)
    def start_quiz_session(
        payload: SessionPayload,
        manager: StudyManager = Depends(manager_dep),
    ) -> QuizSessionOut:
        session_id, session = manager.start_quiz_session(payload.course_id, payload.unit_id)
        return _quiz_session_out(session_id, session)

    @app.get("/api/quiz-sessions/{session_id}")
    def get_quiz_session(
        session_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> QuizSessionOut:
        return _quiz_session_out(session_id, quiz_session_or_404(manager, session_id))

    @app.post("/api/quiz-sessions/{session_id}/answers", status_code=201)
    def submit_quiz_answer(
        session_id: str,
        payload: QuizAnswerPayload,
        manager: StudyManager = Depends(manager_dep),
    ) -> FeedbackOut:
        session = quiz_session_or_404(manager, session_id)
        try:
            feedback = session.submit_answer(payload.selected_answer)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _feedback_out(feedback)

    @app.post("/api/quiz-sessions/{session_id}/advance")
    def advance_quiz_session(
        session_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> QuizSessionOut:
        session = quiz_session_or_404(manager, session_id)
        try:
            session.advance()
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _quiz_session_out(session_id, session)

    @app.post("/api/quiz-sessions/{session_id}/restart")
    def restart_quiz_session(
        session_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> QuizSessionOut:
        session = quiz_session_or_404(manager, session_id)
        try:
            session.restart()
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _quiz_session_out(session_id, session)

    @app.delete("/api/quiz-sessions/{session_id}", status_code=204)
    def end_quiz_session(
        session_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> Response:
        manager.end_quiz_session(session_id)
        return Response(status_code=204)

    # --- Concept sessions ---

    @app.post("/api/concept-sessions", status_code=201)
    def start_concept_session(
        payload: SessionPayload,
        manager: StudyManager = Depends(manager_dep),
    ) -> ConceptSessionOut:
        session_id, session = manager.start_concept_session(payload.course_id, payload.unit_id)
        return _concept_session_out(session_id, session)

    @app.get("/api/concept-sessions/{session_id}")
    def get_concept_session(
        session_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> ConceptSessionOut:
        return _concept_session_out(session_id, concept_session_or_404(manager, session_id))

    @app.post("/api/concept-sessions/{session_id}/questions")
    def ask_concept_question(
        session_id: str,
        payload: ConceptQuestionPayload,
        manager: StudyManager = Depends(manager_dep),
    ) -> ConceptSessionOut:
        session = concept_session_or_404(manager, session_id)
        try:
            session.ask(payload.question)
        except ConceptSessionBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _concept_session_out(session_id, session)

    @app.delete("/api/concept-sessions/{session_id}", status_code=204)
    def end_concept_session(
        session_id: str,
        manager: StudyManager = Depends(manager_dep),
    ) -> Response:
        manager.end_concept_session(session_id)
        return Response(status_code=204)

    return app


def run_api_server(
    study_manager: StudyManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(study_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    server.run()
