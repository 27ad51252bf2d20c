"""Tests for the FastAPI endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from coursemate.core.services.question_bank import QuestionBank
from coursemate.core.study_manager import StudyManager
from coursemate.server.api_server import create_api_app
from tests.conftest import FailingExplanationProvider


def test_openapi_ok(client):
    assert client.get("/openapi.json").status_code == 200


# --- Contract endpoints ---


def test_explain_concept(client, provider):
    response = client.post(
        "/api/explain-concept",
        json={"question": "What do mitochondria do?", "courseId": "BIO101", "unitId": "unit1"},
    )
    assert response.status_code == 200
    assert response.json() == {
        "questionId": "req-1",
        "explanation": "Mitochondria make **ATP**.",
        "confidence": 0.9,
    }
    assert provider.calls[0][1].course_id == "BIO101"


def test_explain_concept_provider_failure_returns_500(catalog, analytics, scheduler):
    manager = StudyManager(catalog, QuestionBank.with_mock_questions(), FailingExplanationProvider(), analytics, scheduler)
    client = TestClient(create_api_app(manager))
    response = client.post("/api/explain-concept", json={"question": "Why?"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate explanation"}


def test_explain_concept_blank_question_is_422(client):
    assert client.post("/api/explain-concept", json={"question": "  "}).status_code == 422
    assert client.post("/api/explain-concept", json={}).status_code == 422


def test_practice_questions(client):
    response = client.get("/api/practice-questions/unit1")
    assert response.status_code == 200
    questions = response.json()
    assert [q["id"] for q in questions] == ["q1", "q2", "q3"]
    assert questions[0]["correctAnswer"] == 1
    assert questions[0]["options"][1] == "Cell membrane"
    assert questions[0]["explanation"]


def test_practice_questions_unknown_unit_is_empty(client):
    response = client.get("/api/practice-questions/unit42")
    assert response.status_code == 200
    assert response.json() == []


def test_practice_answers(client):
    right = client.post("/api/practice-answers", json={"questionId": "q2", "selectedAnswer": 0})
    assert right.json() == {
        "isCorrect": True,
        "correctAnswer": 0,
        "explanation": "DNA is housed in the nucleus, the control center of the cell.",
    }
    wrong = client.post("/api/practice-answers", json={"questionId": "q2", "selectedAnswer": 3})
    assert wrong.json()["isCorrect"] is False


def test_practice_answers_unknown_question(client):
    response = client.post("/api/practice-answers", json={"questionId": "nope", "selectedAnswer": 0})
    assert response.json() == {"isCorrect": False, "correctAnswer": None, "explanation": None}


def test_analytics_round_trip(client):
    response = client.post("/api/analytics", json={"eventName": "tab_opened", "eventData": {"tab": "quiz"}})
    assert response.status_code == 200
    assert response.json() == {"success": True}

    [event] = client.get("/api/analytics").json()
    assert event["name"] == "tab_opened"
    assert event["data"]["tab"] == "quiz"
    assert event["timestamp"]

    assert client.delete("/api/analytics").status_code == 204
    assert client.get("/api/analytics").json() == []


def test_course_context(client):
    body = client.get("/api/course-context", params={"courseId": "BIO101", "unitId": "unit2"}).json()
    assert body["courseName"] == "Introduction to Biology"
    assert body["currentUnitName"] == "Photosynthesis"
    assert body["topics"][0]["name"] == "Cell Membrane"


# --- Quiz sessions ---


def test_quiz_session_flow(client):
    created = client.post("/api/quiz-sessions", json={"courseId": "BIO101", "unitId": "unit1"})
    assert created.status_code == 201
    body = created.json()
    session_id = body["sessionId"]
    assert body["state"] == "in_progress"
    assert body["questionCount"] == 3
    assert body["currentQuestion"]["id"] == "q1"
    assert "<p>" in body["currentQuestion"]["questionHtml"]
    assert "correctAnswer" not in body["currentQuestion"]

    for selection in [1, 1, 2]:
        feedback = client.post(f"/api/quiz-sessions/{session_id}/answers", json={"selectedAnswer": selection})
        assert feedback.status_code == 201
        advanced = client.post(f"/api/quiz-sessions/{session_id}/advance")
        assert advanced.status_code == 200

    final = client.get(f"/api/quiz-sessions/{session_id}").json()
    assert final["state"] == "completed"
    assert final["score"] == 2
    assert final["completionPercentage"] == 67

    restarted = client.post(f"/api/quiz-sessions/{session_id}/restart").json()
    assert restarted["state"] == "in_progress"
    assert restarted["score"] == 0
    assert restarted["currentIndex"] == 0


def test_quiz_answer_feedback_payload(client):
    session_id = client.post("/api/quiz-sessions", json={}).json()["sessionId"]
    feedback = client.post(f"/api/quiz-sessions/{session_id}/answers", json={"selectedAnswer": 0}).json()
    assert feedback == {
        "questionId": "q1",
        "selectedAnswer": 0,
        "correctAnswer": 1,
        "isCorrect": False,
        "message": "Incorrect. The right answer is: Cell membrane",
    }


def test_quiz_session_errors(client):
    session_id = client.post("/api/quiz-sessions", json={"unitId": "unit1"}).json()["sessionId"]
    answers = f"/api/quiz-sessions/{session_id}/answers"

    assert client.post(answers, json={"selectedAnswer": 7}).status_code == 422
    assert client.post(answers, json={"selectedAnswer": 1}).status_code == 201
    assert client.post(answers, json={"selectedAnswer": 1}).status_code == 409
    assert client.post(f"/api/quiz-sessions/{session_id}/restart").status_code == 409


def test_quiz_session_advance_without_answer_is_409(client):
    session_id = client.post("/api/quiz-sessions", json={}).json()["sessionId"]
    assert client.post(f"/api/quiz-sessions/{session_id}/advance").status_code == 409


def test_unknown_quiz_session_is_404(client):
    assert client.get("/api/quiz-sessions/missing").status_code == 404
    assert client.post("/api/quiz-sessions/missing/answers", json={"selectedAnswer": 0}).status_code == 404


def test_ending_a_quiz_session(client):
    session_id = client.post("/api/quiz-sessions", json={}).json()["sessionId"]
    assert client.delete(f"/api/quiz-sessions/{session_id}").status_code == 204
    assert client.get(f"/api/quiz-sessions/{session_id}").status_code == 404
    assert client.delete(f"/api/quiz-sessions/{session_id}").status_code == 204


# --- Concept sessions ---


def test_concept_session_flow(client):
    created = client.post("/api/concept-sessions", json={"courseId": "BIO101"})
    assert created.status_code == 201
    body = created.json()
    session_id = body["sessionId"]
    assert body["currentUnitName"] == "Cell Structure"
    assert [turn["role"] for turn in body["transcript"]] == ["assistant"]
    assert len(body["suggestedQuestions"]) == 4

    asked = client.post(f"/api/concept-sessions/{session_id}/questions", json={"question": "What is ATP?"})
    assert asked.status_code == 200
    transcript = asked.json()["transcript"]
    assert [turn["role"] for turn in transcript] == ["assistant", "user", "assistant"]
    assert "<strong>ATP</strong>" in transcript[2]["contentHtml"]
    assert asked.json()["suggestedQuestions"] == []

    blank = client.post(f"/api/concept-sessions/{session_id}/questions", json={"question": "  "})
    assert len(blank.json()["transcript"]) == 3


def test_concept_session_failure_uses_fallback(catalog, analytics, scheduler):
    manager = StudyManager(catalog, QuestionBank.with_mock_questions(), FailingExplanationProvider(), analytics, scheduler)
    client = TestClient(create_api_app(manager))
    session_id = client.post("/api/concept-sessions", json={}).json()["sessionId"]
    response = client.post(f"/api/concept-sessions/{session_id}/questions", json={"question": "Why?"})
    assert response.status_code == 200
    assert response.json()["transcript"][-1]["content"].startswith("I'm sorry")


def test_unknown_concept_session_is_404(client):
    assert client.get("/api/concept-sessions/missing").status_code == 404
    assert client.post("/api/concept-sessions/missing/questions", json={"question": "Hi"}).status_code == 404


def test_ending_a_concept_session(client):
    session_id = client.post("/api/concept-sessions", json={}).json()["sessionId"]
    assert client.delete(f"/api/concept-sessions/{session_id}").status_code == 204
    assert client.get(f"/api/concept-sessions/{session_id}").status_code == 404


# --- Strict answer indices ---


@pytest.mark.parametrize("selection", ["1", 1.0, True])
def test_practice_answer_requires_integer_index(client, selection):
    response = client.post("/api/practice-answers", json={"questionId": "q1", "selectedAnswer": selection})
    assert response.status_code == 422


@pytest.mark.parametrize("selection", ["1", 1.0, True])
def test_quiz_answer_requires_integer_index(client, selection):
    session_id = client.post("/api/quiz-sessions", json={}).json()["sessionId"]
    response = client.post(f"/api/quiz-sessions/{session_id}/answers", json={"selectedAnswer": selection})
    assert response.status_code == 422
    assert client.get(f"/api/quiz-sessions/{session_id}").json()["state"] == "in_progress"


def test_completed_quiz_reports_performance_message(client):
    session_id = client.post("/api/quiz-sessions", json={"unitId": "unit1"}).json()["sessionId"]
    assert client.get(f"/api/quiz-sessions/{session_id}").json()["performanceMessage"] is None
    for selection in [1, 0, 2]:
        client.post(f"/api/quiz-sessions/{session_id}/answers", json={"selectedAnswer": selection})
        client.post(f"/api/quiz-sessions/{session_id}/advance")
    body = client.get(f"/api/quiz-sessions/{session_id}").json()
    assert body["completionPercentage"] == 100
    assert body["performanceMessage"] == "Excellent! You've mastered this material."
