from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from examprep.questions.types import QuestionView


class ExamStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"


TERMINAL_STATUSES = frozenset({ExamStatus.COMPLETED, ExamStatus.ABANDONED})


@dataclass(frozen=True, slots=True)
class ExamCreateOptions:
    """Parameters of a new mock exam.

    ``categories`` empty means mixed (every category); ``difficulty`` ``None``
    means every difficulty.
    """

    total_questions: int
    time_limit_minutes: int
    passing_score: int
    categories: tuple[str, ...] = ()
    difficulty: str | None = None


@dataclass(slots=True)
class ExamStartResult:
    exam_id: UUID
    total_questions: int
    time_limit_minutes: int
    passing_score: int
    status: str
    started_at: datetime
    questions: list[QuestionView]


@dataclass(slots=True)
class ExamState:
    exam_id: UUID
    status: str
    total_questions: int
    time_limit_minutes: int
    passing_score: int
    categories: list[str]
    difficulty: str | None
    started_at: datetime
    completed_at: datetime | None
    time_remaining_seconds: int
    answers: dict[str, str]
    flagged_question_ids: list[int]
    answered_count: int
    flagged_count: int
    unanswered_count: int
    score: int | None
    questions: list[QuestionView]


@dataclass(slots=True)
class ScoreBreakdown:
    score: int
    correct_answers: int
    incorrect_answers: int
    unanswered_questions: int


@dataclass(slots=True)
class QuestionReview:
    question_id: int
    question_text: str
    options: list[dict[str, Any]]
    selected_option_id: str | None
    correct_option_id: str
    is_correct: bool
    explanation: str
    is_flagged: bool


@dataclass(slots=True)
class ExamResults:
    exam_id: UUID
    score: int
    passing_score: int
    passed: bool
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered_questions: int
    started_at: datetime
    completed_at: datetime
    time_spent_seconds: int
    time_spent_minutes: int
    questions: list[QuestionReview] = field(default_factory=list)


@dataclass(slots=True)
class ExamHistoryItem:
    exam_id: UUID
    status: str
    total_questions: int
    passing_score: int
    score: int | None
    passed: bool | None
    started_at: datetime
    completed_at: datetime | None


@dataclass(slots=True)
class ExamHistory:
    exams: list[ExamHistoryItem]
    total_completed: int
    average_score: int
    pass_rate: int


@dataclass(slots=True)
class ExamLimits:
    is_premium: bool
    max_questions_per_exam: int
    exams_used_this_month: int
    remaining_exams_this_month: int
