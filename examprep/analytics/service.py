from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.analytics import aggregation
from examprep.analytics.types import (
    AnalyticsOverview,
    CategoryPerformance,
    CategoryTally,
    Dashboard,
    ExamAttempt,
    QuestionFacts,
    StreakSummary,
    StrengthsWeaknesses,
    TimeTracking,
    WeeklyActivity,
)
from examprep.db.models.mock_exam_sessions import MockExamSession
from examprep.db.repo.daily_usage_repo import DailyUsageRepo
from examprep.db.repo.mock_exam_sessions_repo import MockExamSessionsRepo
from examprep.db.repo.questions_repo import QuestionsRepo
from examprep.quota.service import today_for_usage
from examprep.streak.service import StreakService

logger = structlog.get_logger(__name__)

# most recent completed exams the analytics read
EXAM_WINDOW = 200
PRACTICE_COUNTER = "PRACTICE"


def _as_attempt(exam: MockExamSession) -> ExamAttempt:
    completed_at = exam.completed_at or exam.started_at
    elapsed = max(int((completed_at - exam.started_at).total_seconds()), 0)
    return ExamAttempt(
        question_ids=[int(question_id) for question_id in exam.question_ids],
        answers={str(key): str(value) for key, value in (exam.answers or {}).items()},
        score=int(exam.score or 0),
        passing_score=int(exam.passing_score),
        time_spent_seconds=min(elapsed, exam.time_limit_minutes * 60),
        completed_local_date=today_for_usage(completed_at),
    )


async def _load_exam_data(
    session: AsyncSession,
    *,
    user_id: int,
) -> tuple[list[ExamAttempt], dict[int, QuestionFacts]]:
    exams = await MockExamSessionsRepo.list_for_user(session, user_id=user_id, status="COMPLETED", limit=EXAM_WINDOW)
    attempts = [_as_attempt(exam) for exam in exams]
    question_ids = {question_id for attempt in attempts for question_id in attempt.question_ids}
    questions = await QuestionsRepo.list_by_ids(session, sorted(question_ids))
    facts = {
        int(question.id): QuestionFacts(
            category=str(question.category),
            difficulty=str(question.difficulty),
            correct_option_id=str(question.correct_option_id),
        )
        for question in questions
    }
    return attempts, facts


async def _tallies(session: AsyncSession, *, user_id: int) -> dict[str, CategoryTally]:
    attempts, facts = await _load_exam_data(session, user_id=user_id)
    return aggregation.tally_by_category(attempts, facts)


async def _weekly_activity(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
    attempts: list[ExamAttempt],
    facts: dict[int, QuestionFacts],
) -> WeeklyActivity:
    today = today_for_usage(now_utc)
    practice_by_date = await DailyUsageRepo.list_counts_between(
        session,
        kind=PRACTICE_COUNTER,
        user_id=user_id,
        from_date=today - timedelta(days=aggregation.WEEK_DAYS - 1),
        to_date=today,
    )
    return aggregation.weekly_activity(
        today=today,
        attempts=attempts,
        facts=facts,
        practice_by_date=practice_by_date,
    )


async def _dashboard(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
    attempts: list[ExamAttempt],
    tallies: dict[str, CategoryTally],
) -> Dashboard:
    practice_total = await DailyUsageRepo.total_count(session, kind=PRACTICE_COUNTER, user_id=user_id)
    exam_answered, accuracy = aggregation.overall_accuracy(tallies)
    streak = await StreakService.get_status(session, user_id=user_id, now_utc=now_utc)
    return Dashboard(
        total_questions=practice_total + exam_answered,
        practice_questions=practice_total,
        exam_questions_answered=exam_answered,
        accuracy=accuracy,
        study_time=aggregation.time_tracking(tallies),
        streak=StreakSummary(current_streak=streak.current_streak, longest_streak=streak.longest_streak),
        mock_exams=aggregation.exam_summary(attempts),
    )


class AnalyticsService:
    @staticmethod
    async def performance_by_category(session: AsyncSession, *, user_id: int) -> list[CategoryPerformance]:
        return aggregation.category_performance(await _tallies(session, user_id=user_id))

    @staticmethod
    async def strengths_weaknesses(session: AsyncSession, *, user_id: int) -> StrengthsWeaknesses:
        performance = aggregation.category_performance(await _tallies(session, user_id=user_id))
        return aggregation.strengths_and_weaknesses(performance)

    @staticmethod
    async def time_tracking(session: AsyncSession, *, user_id: int) -> TimeTracking:
        return aggregation.time_tracking(await _tallies(session, user_id=user_id))

    @staticmethod
    async def weekly_activity(session: AsyncSession, *, user_id: int, now_utc: datetime) -> WeeklyActivity:
        attempts, facts = await _load_exam_data(session, user_id=user_id)
        return await _weekly_activity(session, user_id=user_id, now_utc=now_utc, attempts=attempts, facts=facts)

    @staticmethod
    async def dashboard(session: AsyncSession, *, user_id: int, now_utc: datetime) -> Dashboard:
        attempts, facts = await _load_exam_data(session, user_id=user_id)
        tallies = aggregation.tally_by_category(attempts, facts)
        return await _dashboard(session, user_id=user_id, now_utc=now_utc, attempts=attempts, tallies=tallies)

    @staticmethod
    async def overview(session: AsyncSession, *, user_id: int, now_utc: datetime) -> AnalyticsOverview:
        """Every analytics view from a single read of the user's exams."""
        attempts, facts = await _load_exam_data(session, user_id=user_id)
        tallies = aggregation.tally_by_category(attempts, facts)
        performance = aggregation.category_performance(tallies)
        overview = AnalyticsOverview(
            dashboard=await _dashboard(session, user_id=user_id, now_utc=now_utc, attempts=attempts, tallies=tallies),
            weekly_activity=await _weekly_activity(
                session,
                user_id=user_id,
                now_utc=now_utc,
                attempts=attempts,
                facts=facts,
            ),
            strengths_weaknesses=aggregation.strengths_and_weaknesses(performance),
            performance_by_category=performance,
            time_tracking=aggregation.time_tracking(tallies),
        )
        logger.info(
            "analytics_overview_built",
            user_id=user_id,
            exams_read=len(attempts),
            categories=len(performance),
        )
        return overview
