from __future__ import annotations

import random
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.policy import remaining
from examprep.access.service import load_user_limits
from examprep.db.repo.questions_repo import QuestionFilter, QuestionsRepo
from examprep.practice.types import ExplanationResult, PracticeAnswerResult
from examprep.questions.errors import InsufficientQuestionsError, InvalidOptionError, QuestionNotFoundError
from examprep.questions.selection import select_random_question_ids
from examprep.questions.types import QuestionView, as_question_view, option_ids
from examprep.quota.service import QuotaLedger
from examprep.quota.types import DailyUsage, UsageCounter
from examprep.services.explanation_cache import ExplanationCache
from examprep.streak.service import StreakService

logger = structlog.get_logger(__name__)

POINTS_PER_CORRECT_ANSWER = 10


async def _daily_usage(
    session: AsyncSession,
    *,
    user_id: int,
    kind: UsageCounter,
    now_utc: datetime,
) -> DailyUsage:
    _, limits = await load_user_limits(session, user_id=user_id, now_utc=now_utc)
    limit = limits.practice_daily_limit if kind == UsageCounter.PRACTICE else limits.explanation_daily_limit
    used = await QuotaLedger.get_today_count(session, user_id=user_id, kind=kind, now_utc=now_utc)
    return DailyUsage(
        is_premium=limits.is_premium,
        daily_limit=limit,
        used_today=used,
        remaining_today=remaining(limit=limit, used=used),
    )


class PracticeService:
    @staticmethod
    async def submit_answer(
        session: AsyncSession,
        *,
        user_id: int,
        question_id: int,
        selected_option_id: str,
        now_utc: datetime,
    ) -> PracticeAnswerResult:
        _, limits = await load_user_limits(session, user_id=user_id, now_utc=now_utc)

        question = await QuestionsRepo.get_by_id(session, question_id)
        if question is None:
            raise QuestionNotFoundError
        if selected_option_id not in option_ids(question):
            raise InvalidOptionError

        used_today = await QuotaLedger.consume_today(
            session,
            user_id=user_id,
            kind=UsageCounter.PRACTICE,
            limit=limits.practice_daily_limit,
            now_utc=now_utc,
        )
        streak = await StreakService.record_activity(session, user_id=user_id, now_utc=now_utc)

        is_correct = selected_option_id == question.correct_option_id
        logger.info(
            "practice_answer_recorded",
            user_id=user_id,
            question_id=question_id,
            is_correct=is_correct,
            used_today=used_today,
        )
        return PracticeAnswerResult(
            question_id=question.id,
            is_correct=is_correct,
            correct_option_id=question.correct_option_id,
            selected_option_id=selected_option_id,
            explanation=question.explanation,
            points_earned=POINTS_PER_CORRECT_ANSWER if is_correct else 0,
            used_today=used_today,
            current_streak=streak.current_streak,
        )

    @staticmethod
    async def get_daily_limits(session: AsyncSession, *, user_id: int, now_utc: datetime) -> DailyUsage:
        return await _daily_usage(session, user_id=user_id, kind=UsageCounter.PRACTICE, now_utc=now_utc)

    @staticmethod
    async def get_explanation_limits(session: AsyncSession, *, user_id: int, now_utc: datetime) -> DailyUsage:
        return await _daily_usage(session, user_id=user_id, kind=UsageCounter.EXPLANATION, now_utc=now_utc)

    @staticmethod
    async def get_explanation(
        session: AsyncSession,
        cache: ExplanationCache,
        *,
        user_id: int,
        question_id: int,
        now_utc: datetime,
    ) -> ExplanationResult:
        _, limits = await load_user_limits(session, user_id=user_id, now_utc=now_utc)
        views_used = await QuotaLedger.consume_today(
            session,
            user_id=user_id,
            kind=UsageCounter.EXPLANATION,
            limit=limits.explanation_daily_limit,
            now_utc=now_utc,
        )

        explanation = await cache.get(question_id)
        if explanation is None:
            question = await QuestionsRepo.get_by_id(session, question_id)
            if question is None:
                raise QuestionNotFoundError
            explanation = question.ai_explanation or question.explanation
            await cache.set(question_id, explanation)

        return ExplanationResult(
            question_id=question_id,
            explanation=explanation,
            views_used_today=views_used,
        )

    @staticmethod
    async def next_question(
        session: AsyncSession,
        *,
        category: str | None = None,
        difficulty: str | None = None,
        rng: random.Random | None = None,
    ) -> QuestionView:
        try:
            question_ids = await select_random_question_ids(
                session,
                question_filter=QuestionFilter(
                    categories=(category,) if category is not None else None,
                    difficulty=difficulty,
                ),
                count=1,
                rng=rng,
            )
        except InsufficientQuestionsError as exc:
            raise QuestionNotFoundError("No questions match the selected filters") from exc
        question = await QuestionsRepo.get_by_id(session, question_ids[0])
        if question is None:
            raise QuestionNotFoundError
        return as_question_view(question)
