"""Utilities for importing a unit's practice questions from a text file.

File format (repeat blocks separated by blank lines or '---'):

    ID: cell-1          (optional, generated from the unit id otherwise)
    Q: Question text. Additional lines until the next marker are treated
       as part of the question.
    A: First option text
    B: Second option text
    ...                 (two to six options, letters A-F in order)
    CORRECT: A-F        (required)
    EXPLANATION: Why the correct option is right (optional, may continue
       on following lines)

Example:

    Q: Which organelle contains the cell's genetic material?
    A: Ribosome
    B: Nucleus
    C: Cell wall
    CORRECT: B
    EXPLANATION: The nucleus stores DNA and controls cell activity.

The file name (without suffix) is the unit id the questions belong to.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from coursemate.core.models import Question


class QuestionImportError(ValueError):
    """Raised when a question bank file cannot be parsed."""


@dataclass(slots=True)
class ImportedUnit:
    """Container for questions imported for one unit."""

    source_path: Path
    unit_id: str
    questions: list[Question]


_OPTION_LETTERS = ("A", "B", "C", "D", "E", "F")
_MIN_OPTIONS = 2


def load_unit_from_file(file_path: Path) -> ImportedUnit:
    unit_id = file_path.stem
    text = file_path.read_text(encoding="utf-8")
    questions = parse_questions(text, unit_id)
    if not questions:
        raise QuestionImportError(f"{file_path.name} did not contain any questions.")
    return ImportedUnit(source_path=file_path, unit_id=unit_id, questions=questions)


def load_units_from_directory(directory: Path) -> list[ImportedUnit]:
    """Import every ``*.txt`` file in ``directory``, sorted by file name."""
    if not directory.is_dir():
        raise QuestionImportError(f"Question bank directory not found: {directory}")
    return [load_unit_from_file(path) for path in sorted(directory.glob("*.txt"))]


def parse_questions(text: str, unit_id: str) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions: list[Question] = []
    for block in blocks:
        if block:
            questions.append(_parse_block(block, default_id=f"{unit_id}-q{len(questions) + 1}"))
    return questions


def _parse_block(block: str, default_id: str) -> Question:
    question_id: str | None = None
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("ID:"):
            question_id = line[3:].strip()
            current_section = None
            continue

        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [line.split(":", 1)[1].strip()]
            current_section = "EXPLANATION"
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in _OPTION_LETTERS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text missing (Q: ...)")

    letters = _OPTION_LETTERS[: len(options)]
    if len(options) < _MIN_OPTIONS or set(options) != set(letters):
        raise QuestionImportError(
            "Each question must define at least two options with consecutive letters starting at A."
        )
    option_list = tuple(options[letter].strip() for letter in letters)
    if any(not opt for opt in option_list):
        raise QuestionImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuestionImportError(f"CORRECT missing for question: '{question_text}'.")
    if correct_letter not in letters:
        raise QuestionImportError(f"CORRECT must be one of {', '.join(letters)}.")

    if question_id is not None and not question_id:
        raise QuestionImportError("ID cannot be empty.")

    explanation = "\n".join(explanation_lines).strip() or None

    return Question(
        id=question_id or default_id,
        text=question_text,
        options=option_list,
        correct_index=letters.index(correct_letter),
        explanation=explanation,
    )
