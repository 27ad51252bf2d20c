"""Messages, defaults and analytics event names shared by the core and the API."""

FEEDBACK_DELAY_SECONDS: float = 2.0

DEFAULT_OPENAI_MODEL: str = "gpt-3.5-turbo"
DEFAULT_MAX_RESPONSE_TOKENS: int = 500
DEFAULT_CONFIDENCE_SCORE: float = 0.9
DEFAULT_MAX_SESSIONS: int = 500

WELCOME_MESSAGE_TEMPLATE: str = (
    "Hi there! I'm your learning assistant for {course_name}. "
    "What concept would you like me to explain?"
)
FALLBACK_ASSISTANT_MESSAGE: str = (
    "I'm sorry, I couldn't process your question right now. Please try again later."
)
SUGGESTED_QUESTIONS: tuple[str, ...] = (
    "What is a cell membrane?",
    "How does photosynthesis work?",
    "What is the function of mitochondria?",
    "Explain the difference between prokaryotic and eukaryotic cells.",
)
SUGGESTION_TRANSCRIPT_LIMIT: int = 2

CORRECT_FEEDBACK_MESSAGE: str = "Correct! Well done."
INCORRECT_FEEDBACK_TEMPLATE: str = "Incorrect. The right answer is: {option}"

# Completion grades, highest threshold first
PERFORMANCE_MESSAGES: tuple[tuple[int, str], ...] = (
    (80, "Excellent! You've mastered this material."),
    (60, "Good job! You're on the right track."),
    (0, "Keep practicing! Review the concepts and try again."),
)

EXPLANATION_FAILED_MESSAGE: str = "Failed to generate explanation"

# Analytics event names
EVENT_CONCEPT_QUESTION_ASKED = "concept_question_asked"
EVENT_CONCEPT_EXPLANATION_RECEIVED = "concept_explanation_received"
EVENT_CONCEPT_EXPLANATION_ERROR = "concept_explanation_error"
EVENT_PRACTICE_SESSION_STARTED = "practice_session_started"
EVENT_PRACTICE_ANSWER_SUBMITTED = "practice_answer_submitted"
EVENT_PRACTICE_SESSION_COMPLETED = "practice_session_completed"
EVENT_PRACTICE_SESSION_RESTARTED = "practice_session_restarted"
