"""Service for holding the practice questions of each unit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from coursemate.core.models import AnswerCheck, Question
from coursemate.core.question_importer import load_units_from_directory

logger = logging.getLogger(__name__)


_MOCK_QUESTIONS: dict[str, list[Question]] = {
    "unit1": [
        Question(
            id="q1",
            text="Which structure controls what enters and exits the cell?",
            options=("Nucleus", "Cell membrane", "Ribosome", "Cell wall"),
            correct_index=1,
            explanation="The cell membrane is selectively permeable and regulates the passage of substances.",
        ),
        Question(
            id="q2",
            text="Where is most of a eukaryotic cell's genetic material stored?",
            options=("Nucleus", "Mitochondria", "Golgi apparatus", "Cytoplasm"),
            correct_index=0,
            explanation="DNA is housed in the nucleus, the control center of the cell.",
        ),
        Question(
            id="q3",
            text="Which organelle produces most of the cell's usable energy?",
            options=("Lysosome", "Endoplasmic reticulum", "Mitochondria", "Vacuole"),
            correct_index=2,
            explanation="Mitochondria generate ATP through cellular respiration.",
        ),
    ],
    "unit2": [
        Question(
            id="q4",
            text="In which organelle does photosynthesis take place?",
            options=("Chloroplast", "Mitochondria", "Nucleus", "Ribosome"),
            correct_index=0,
            explanation="Chloroplasts contain chlorophyll, which captures light energy.",
        ),
        Question(
            id="q5",
            text="Which gas do plants absorb for photosynthesis?",
            options=("Oxygen", "Nitrogen", "Carbon dioxide", "Hydrogen"),
            correct_index=2,
            explanation="Carbon dioxide is fixed into glucose during the Calvin cycle.",
        ),
        Question(
            id="q6",
            text="What is released as a by-product of the light-dependent reactions?",
            options=("Glucose", "Oxygen", "Carbon dioxide", "Water"),
            correct_index=1,
            explanation="Splitting water molecules releases oxygen.",
        ),
    ],
}


class QuestionBank:
    """In-memory question bank keyed by unit id."""

    def __init__(self, units: Mapping[str, list[Question]] | None = None) -> None:
        self._units: dict[str, list[Question]] = {}
        self._by_id: dict[str, Question] = {}
        for unit_id, questions in (units or {}).items():
            self.load_unit(unit_id, questions)

    @classmethod
    def with_mock_questions(cls) -> "QuestionBank":
        return cls(_MOCK_QUESTIONS)

    @classmethod
    def from_directory(cls, directory: Path) -> "QuestionBank":
        """Build a bank from ``<unit_id>.txt`` files, keeping mock units the directory lacks."""
        bank = cls()
        imported = load_units_from_directory(directory)
        for unit in imported:
            bank.load_unit(unit.unit_id, unit.questions)
            logger.info("Loaded %d question(s) for %s from %s", len(unit.questions), unit.unit_id, unit.source_path)
        for unit_id, questions in _MOCK_QUESTIONS.items():
            if unit_id not in bank.unit_ids():
                bank.load_unit(unit_id, questions)
        return bank

    def load_unit(self, unit_id: str, questions: list[Question]) -> None:
        """Replace the questions of a unit after validating each of them."""
        if not unit_id.strip():
            raise ValueError("Unit id must not be empty.")
        previous_ids = {q.id for q in self._units.get(unit_id, [])}
        prepared: list[Question] = []
        seen: set[str] = set()
        for question in questions:
            self._validate_question(question)
            if question.id in seen or (question.id in self._by_id and question.id not in previous_ids):
                raise ValueError(f"Duplicate question id: {question.id}")
            seen.add(question.id)
            prepared.append(question)

        for question_id in previous_ids:
            self._by_id.pop(question_id, None)
        self._units[unit_id] = prepared
        for question in prepared:
            self._by_id[question.id] = question

    def unit_ids(self) -> list[str]:
        return list(self._units)

    def get_questions(self, unit_id: str) -> list[Question]:
        """Return the ordered questions of a unit, or an empty list when none exist."""
        return list(self._units.get(unit_id, []))

    def get_question(self, question_id: str) -> Question | None:
        return self._by_id.get(question_id)

    def check_answer(self, question_id: str, selected_answer: int | None) -> AnswerCheck:
        question = self._by_id.get(question_id)
        if question is None:
            return AnswerCheck(is_correct=False, correct_answer=None, explanation=None)
        return AnswerCheck(
            is_correct=selected_answer == question.correct_index,
            correct_answer=question.correct_index,
            explanation=question.explanation,
        )

    @staticmethod
    def _validate_question(question: Question) -> None:
        if not question.id.strip():
            raise ValueError("Question id must not be empty.")
        if not question.text.strip():
            raise ValueError("Question text must not be empty.")
        if len(question.options) < 2:
            raise ValueError("Each question must have at least two options.")
        if any(not option.strip() for option in question.options):
            raise ValueError("Option text cannot be empty.")
        if not 0 <= question.correct_index < len(question.options):
            raise ValueError(
                f"Correct option index must be between 0 and {len(question.options) - 1}."
            )
