from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class PerformanceStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


@dataclass(frozen=True, slots=True)
class ExamAttempt:
    """One completed exam reduced to what the analytics read."""

    question_ids: list[int]
    answers: dict[str, str]
    score: int
    passing_score: int
    time_spent_seconds: int
    completed_local_date: date


@dataclass(frozen=True, slots=True)
class QuestionFacts:
    category: str
    difficulty: str
    correct_option_id: str


@dataclass(slots=True)
class CategoryTally:
    attempted: int = 0
    correct: int = 0
    difficulty_points: int = 0
    time_seconds: int = 0


@dataclass(slots=True)
class CategoryPerformance:
    category: str
    total_attempted: int
    correct_answers: int
    accuracy: int
    average_difficulty: str | None
    status: PerformanceStatus


@dataclass(slots=True)
class WeakArea:
    category: str
    accuracy: int
    total_attempted: int
    recommendation: str


@dataclass(slots=True)
class StrengthsWeaknesses:
    strengths: list[CategoryPerformance]
    weaknesses: list[WeakArea]


@dataclass(slots=True)
class DayActivity:
    day: date
    label: str
    practice_questions: int
    exam_questions_answered: int
    questions_attempted: int
    correct_answers: int
    accuracy: int


@dataclass(slots=True)
class WeeklyActivity:
    labels: list[str]
    data: list[DayActivity]


@dataclass(slots=True)
class CategoryTime:
    category: str
    minutes: int
    percentage: int


@dataclass(slots=True)
class TimeTracking:
    total_minutes: int
    hours: int
    minutes: int
    breakdown: list[CategoryTime] = field(default_factory=list)


@dataclass(slots=True)
class StreakSummary:
    current_streak: int
    longest_streak: int


@dataclass(slots=True)
class MockExamSummary:
    completed: int
    average_score: int
    pass_rate: int
    best_score: int | None


@dataclass(slots=True)
class Dashboard:
    total_questions: int
    practice_questions: int
    exam_questions_answered: int
    accuracy: int
    study_time: TimeTracking
    streak: StreakSummary
    mock_exams: MockExamSummary


@dataclass(slots=True)
class AnalyticsOverview:
    dashboard: Dashboard
    weekly_activity: WeeklyActivity
    strengths_weaknesses: StrengthsWeaknesses
    performance_by_category: list[CategoryPerformance]
    time_tracking: TimeTracking
