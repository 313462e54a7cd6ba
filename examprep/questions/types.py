from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class QuestionCategory(str, Enum):
    VERBAL_ABILITY = "VERBAL_ABILITY"
    NUMERICAL_ABILITY = "NUMERICAL_ABILITY"
    ANALYTICAL_ABILITY = "ANALYTICAL_ABILITY"
    GENERAL_INFORMATION = "GENERAL_INFORMATION"
    CLERICAL_ABILITY = "CLERICAL_ABILITY"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


MIXED_CATEGORIES = "MIXED"


@dataclass(slots=True)
class QuestionView:
    """A question as shown to a test taker: no correct option, no explanation."""

    id: int
    category: str
    difficulty: str
    question_text: str
    options: list[dict[str, Any]]


def as_question_view(question: Any) -> QuestionView:
    return QuestionView(
        id=int(question.id),
        category=str(question.category),
        difficulty=str(question.difficulty),
        question_text=str(question.question_text),
        options=list(question.options),
    )


def option_ids(question: Any) -> set[str]:
    return {str(option["id"]) for option in question.options}
