"""Prompt templates for the concept explainer.

The system prompt scopes the model to the current course and unit and keeps it
explaining concepts rather than doing the student's work.
"""

from __future__ import annotations

from coursemate.core.models import CourseContext

TUTOR_PROMPT_TEMPLATE = """You are an AI tutor for the course "{course_name}".

Key concepts in this course include:
{topic_lines}

Current unit: {unit_name}

Provide a clear, concise explanation of the concept. Use simple language
appropriate for students. Focus only on explaining the concept, not on
completing assignments for the student."""


def build_tutor_prompt(context: CourseContext) -> str:
    topic_lines = "\n".join(f"- {topic.name}: {topic.description}" for topic in context.topics)
    return TUTOR_PROMPT_TEMPLATE.format(
        course_name=context.course_name,
        topic_lines=topic_lines or "- (no topics listed)",
        unit_name=context.current_unit_name,
    )
