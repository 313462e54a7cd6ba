from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import date, timedelta

from examprep.analytics.types import (
    CategoryPerformance,
    CategoryTally,
    CategoryTime,
    DayActivity,
    ExamAttempt,
    MockExamSummary,
    PerformanceStatus,
    QuestionFacts,
    StrengthsWeaknesses,
    TimeTracking,
    WeakArea,
    WeeklyActivity,
)
from examprep.exams.scoring import percent_half_up, round_half_up_ratio

EXCELLENT_ACCURACY = 80
GOOD_ACCURACY = 60
HIGHLIGHT_COUNT = 3
WEEK_DAYS = 7

DIFFICULTY_POINTS = {"EASY": 1, "MEDIUM": 2, "HARD": 3}
_DIFFICULTY_BY_POINTS = {points: label for label, points in DIFFICULTY_POINTS.items()}


def performance_status(accuracy: int) -> PerformanceStatus:
    if accuracy >= EXCELLENT_ACCURACY:
        return PerformanceStatus.EXCELLENT
    if accuracy >= GOOD_ACCURACY:
        return PerformanceStatus.GOOD
    return PerformanceStatus.NEEDS_IMPROVEMENT


def average_difficulty(*, points: int, attempted: int) -> str | None:
    if attempted <= 0:
        return None
    return _DIFFICULTY_BY_POINTS[round_half_up_ratio(points, attempted)]


def category_label(category: str) -> str:
    return category.replace("_", " ").title()


def _answered(attempt: ExamAttempt, facts: Mapping[int, QuestionFacts]):
    for question_id in attempt.question_ids:
        selected = attempt.answers.get(str(question_id))
        question = facts.get(question_id)
        if selected is None or question is None:
            continue
        yield question, selected == question.correct_option_id


def tally_by_category(
    attempts: Sequence[ExamAttempt],
    facts: Mapping[int, QuestionFacts],
) -> dict[str, CategoryTally]:
    """Folds completed exams into per-category counters.

    Only answered questions count as attempted. Exam time is split across
    categories by each category's share of the exam's questions, answered or
    not.
    """
    tallies: dict[str, CategoryTally] = {}
    for attempt in attempts:
        for question, is_correct in _answered(attempt, facts):
            tally = tallies.setdefault(question.category, CategoryTally())
            tally.attempted += 1
            tally.correct += int(is_correct)
            tally.difficulty_points += DIFFICULTY_POINTS.get(question.difficulty, DIFFICULTY_POINTS["MEDIUM"])

        question_counts = Counter(
            facts[question_id].category for question_id in attempt.question_ids if question_id in facts
        )
        known_total = sum(question_counts.values())
        if known_total == 0:
            continue
        for category, count in question_counts.items():
            tally = tallies.setdefault(category, CategoryTally())
            tally.time_seconds += attempt.time_spent_seconds * count // known_total
    return tallies


def category_performance(tallies: Mapping[str, CategoryTally]) -> list[CategoryPerformance]:
    items = []
    for category in sorted(tallies):
        tally = tallies[category]
        if tally.attempted == 0:
            continue
        accuracy = percent_half_up(tally.correct, tally.attempted)
        items.append(
            CategoryPerformance(
                category=category,
                total_attempted=tally.attempted,
                correct_answers=tally.correct,
                accuracy=accuracy,
                average_difficulty=average_difficulty(points=tally.difficulty_points, attempted=tally.attempted),
                status=performance_status(accuracy),
            )
        )
    return items


def strengths_and_weaknesses(
    performance: Sequence[CategoryPerformance],
    *,
    count: int = HIGHLIGHT_COUNT,
) -> StrengthsWeaknesses:
    """Best and worst categories by accuracy; a category is never listed as both."""
    ranked = sorted(performance, key=lambda item: (-item.accuracy, -item.total_attempted, item.category))
    strengths = ranked[:count]
    strong = {item.category for item in strengths}
    weakest_first = sorted(
        (item for item in performance if item.category not in strong),
        key=lambda item: (item.accuracy, -item.total_attempted, item.category),
    )
    weaknesses = [
        WeakArea(
            category=item.category,
            accuracy=item.accuracy,
            total_attempted=item.total_attempted,
            recommendation=(
                f"Review explanations for missed {category_label(item.category)} questions "
                "and add a short practice set to your daily routine."
            ),
        )
        for item in weakest_first[:count]
    ]
    return StrengthsWeaknesses(strengths=strengths, weaknesses=weaknesses)


def weekly_activity(
    *,
    today: date,
    attempts: Sequence[ExamAttempt],
    facts: Mapping[int, QuestionFacts],
    practice_by_date: Mapping[date, int],
) -> WeeklyActivity:
    """The last seven usage days ending today, oldest first."""
    days = [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]
    answered: Counter[date] = Counter()
    correct: Counter[date] = Counter()
    for attempt in attempts:
        if attempt.completed_local_date < days[0] or attempt.completed_local_date > today:
            continue
        for _question, is_correct in _answered(attempt, facts):
            answered[attempt.completed_local_date] += 1
            correct[attempt.completed_local_date] += int(is_correct)

    data = []
    for day in days:
        practice = practice_by_date.get(day, 0)
        data.append(
            DayActivity(
                day=day,
                label=day.strftime("%a"),
                practice_questions=practice,
                exam_questions_answered=answered[day],
                questions_attempted=practice + answered[day],
                correct_answers=correct[day],
                accuracy=percent_half_up(correct[day], answered[day]),
            )
        )
    return WeeklyActivity(labels=[item.label for item in data], data=data)


def time_tracking(tallies: Mapping[str, CategoryTally]) -> TimeTracking:
    total_seconds = sum(tally.time_seconds for tally in tallies.values())
    total_minutes = round_half_up_ratio(total_seconds, 60)
    breakdown = [
        CategoryTime(
            category=category,
            minutes=round_half_up_ratio(tally.time_seconds, 60),
            percentage=percent_half_up(tally.time_seconds, total_seconds),
        )
        for category, tally in sorted(tallies.items(), key=lambda item: (-item[1].time_seconds, item[0]))
        if tally.time_seconds > 0
    ]
    return TimeTracking(
        total_minutes=total_minutes,
        hours=total_minutes // 60,
        minutes=total_minutes % 60,
        breakdown=breakdown,
    )


def exam_summary(attempts: Sequence[ExamAttempt]) -> MockExamSummary:
    completed = len(attempts)
    passed = sum(1 for attempt in attempts if attempt.score >= attempt.passing_score)
    return MockExamSummary(
        completed=completed,
        average_score=round_half_up_ratio(sum(attempt.score for attempt in attempts), completed),
        pass_rate=percent_half_up(passed, completed),
        best_score=max((attempt.score for attempt in attempts), default=None),
    )


def overall_accuracy(tallies: Mapping[str, CategoryTally]) -> tuple[int, int]:
    """Returns (answered exam questions, accuracy percent)."""
    attempted = sum(tally.attempted for tally in tallies.values())
    correct = sum(tally.correct for tally in tallies.values())
    return attempted, percent_half_up(correct, attempted)
