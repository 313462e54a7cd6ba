from __future__ import annotations

from datetime import date, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.policy import is_unlimited
from examprep.core.config import get_settings
from examprep.core.time import usage_local_date, usage_month_start_utc
from examprep.db.repo.daily_usage_repo import DailyUsageRepo
from examprep.db.repo.mock_exam_sessions_repo import MockExamSessionsRepo
from examprep.quota.errors import QuotaExceededError
from examprep.quota.types import DAILY_COUNTERS, MONTHLY_COUNTERS, MONTHLY_EXAM_COUNTED_STATUSES, UsageCounter

logger = structlog.get_logger(__name__)

_COUNTER_LABELS = {
    UsageCounter.PRACTICE: "practice questions",
    UsageCounter.EXPLANATION: "explanation views",
    UsageCounter.MOCK_EXAM: "mock exams",
}


def _usage_timezone() -> str:
    return get_settings().usage_timezone


def _require_daily(kind: UsageCounter) -> None:
    if kind not in DAILY_COUNTERS:
        raise ValueError(f"{kind.value} is not a daily counter")


def today_for_usage(now_utc: datetime) -> date:
    return usage_local_date(now_utc, tz_name=_usage_timezone())


class QuotaLedger:
    @staticmethod
    async def get_today_count(
        session: AsyncSession,
        *,
        user_id: int,
        kind: UsageCounter,
        now_utc: datetime,
    ) -> int:
        _require_daily(kind)
        return await DailyUsageRepo.get_count(
            session,
            kind=kind.value,
            user_id=user_id,
            local_date=today_for_usage(now_utc),
        )

    @staticmethod
    async def increment_today_count(
        session: AsyncSession,
        *,
        user_id: int,
        kind: UsageCounter,
        now_utc: datetime,
    ) -> int:
        _require_daily(kind)
        return await DailyUsageRepo.increment(
            session,
            kind=kind.value,
            user_id=user_id,
            local_date=today_for_usage(now_utc),
        )

    @staticmethod
    async def get_month_count(
        session: AsyncSession,
        *,
        user_id: int,
        kind: UsageCounter,
        now_utc: datetime,
    ) -> int:
        if kind not in MONTHLY_COUNTERS:
            raise ValueError(f"{kind.value} is not a monthly counter")
        return await MockExamSessionsRepo.count_started_since(
            session,
            user_id=user_id,
            since_utc=usage_month_start_utc(now_utc, tz_name=_usage_timezone()),
            statuses=MONTHLY_EXAM_COUNTED_STATUSES,
        )

    @staticmethod
    def ensure_within_limit(*, kind: UsageCounter, limit: int, used: int, period: str) -> None:
        """Check half of check-then-act; raises before the caller performs the action."""
        if is_unlimited(limit):
            return
        if used >= limit:
            raise QuotaExceededError(what=_COUNTER_LABELS[kind], limit=limit, period=period)

    @staticmethod
    async def consume_today(
        session: AsyncSession,
        *,
        user_id: int,
        kind: UsageCounter,
        limit: int,
        now_utc: datetime,
    ) -> int:
        """Takes one unit of today's quota and returns the new count.

        Check and increment are one conditional upsert, so concurrent requests
        cannot overshoot ``limit``. Run it in the same transaction as the
        guarded action: a failing action rolls the unit back.
        """
        _require_daily(kind)
        local_date = today_for_usage(now_utc)
        if is_unlimited(limit):
            return await DailyUsageRepo.increment(
                session,
                kind=kind.value,
                user_id=user_id,
                local_date=local_date,
            )

        new_count = await DailyUsageRepo.increment_below_limit(
            session,
            kind=kind.value,
            user_id=user_id,
            local_date=local_date,
            limit=limit,
        )
        if new_count is None:
            logger.info(
                "quota_exhausted",
                user_id=user_id,
                counter=kind.value,
                limit=limit,
                local_date=local_date.isoformat(),
            )
            raise QuotaExceededError(what=_COUNTER_LABELS[kind], limit=limit, period="day")
        return new_count
