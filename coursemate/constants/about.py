"""Static metadata describing CourseMate."""

APP_NAME = "CourseMate"
APP_VERSION = "0.1.0"
APP_ABOUT_TEXT = (
    "CourseMate is a classroom study assistant. Students ask course questions that are "
    "explained by a hosted language model and take multiple-choice practice quizzes per unit."
)
