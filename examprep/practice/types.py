from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PracticeAnswerResult:
    question_id: int
    is_correct: bool
    correct_option_id: str
    selected_option_id: str
    explanation: str
    points_earned: int
    used_today: int
    current_streak: int


@dataclass(slots=True)
class ExplanationResult:
    question_id: int
    explanation: str
    views_used_today: int
