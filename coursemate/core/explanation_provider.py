"""Explanation providers backed by a hosted chat-completion model."""

from __future__ import annotations

import logging
from typing import Any, Protocol
from uuid import uuid4

from openai import OpenAI, OpenAIError

from coursemate.constants.study_constants import (
    DEFAULT_CONFIDENCE_SCORE,
    DEFAULT_MAX_RESPONSE_TOKENS,
    DEFAULT_OPENAI_MODEL,
)
from coursemate.core.models import CourseContext, ExplanationResult
from coursemate.core.prompts import build_tutor_prompt

logger = logging.getLogger(__name__)


class ExplanationProviderError(RuntimeError):
    """Raised when an explanation could not be produced."""


class ExplanationProvider(Protocol):
    def explain(self, question_text: str, course_context: CourseContext) -> ExplanationResult: ...


class OpenAIExplanationProvider:
    """Answers concept questions with the OpenAI chat completions API."""

    def __init__(
        self,
        client: Any,
        model: str = DEFAULT_OPENAI_MODEL,
        max_tokens: int = DEFAULT_MAX_RESPONSE_TOKENS,
    ) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be a positive integer.")
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    @classmethod
    def from_api_key(
        cls,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        max_tokens: int = DEFAULT_MAX_RESPONSE_TOKENS,
    ) -> "OpenAIExplanationProvider":
        return cls(OpenAI(api_key=api_key), model=model, max_tokens=max_tokens)

    def explain(self, question_text: str, course_context: CourseContext) -> ExplanationResult:
        messages = [
            {"role": "system", "content": build_tutor_prompt(course_context)},
            {"role": "user", "content": question_text},
        ]
        try:
            completion = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
            )
        except OpenAIError as exc:
            raise ExplanationProviderError(f"Completion request failed: {exc}") from exc

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise ExplanationProviderError("Completion returned no explanation text.")

        request_id = uuid4().hex
        logger.info("Explained question for %s with %s (request %s)", course_context.course_id, self._model, request_id)
        return ExplanationResult(
            explanation_text=content.strip(),
            confidence_score=DEFAULT_CONFIDENCE_SCORE,
            request_id=request_id,
        )


class UnavailableExplanationProvider:
    """Stand-in used when no completion API key is configured."""

    def __init__(self, reason: str = "No completion API key is configured.") -> None:
        self._reason = reason

    def explain(self, question_text: str, course_context: CourseContext) -> ExplanationResult:
        raise ExplanationProviderError(self._reason)
