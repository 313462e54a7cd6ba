from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.user_streaks import UserStreak
from examprep.db.repo.streaks_repo import StreaksRepo
from examprep.quota.service import today_for_usage
from examprep.streak import rules
from examprep.streak.errors import StreakRepairNotAllowedError
from examprep.streak.types import StreakSnapshot, StreakView

logger = structlog.get_logger(__name__)


def _snapshot(streak: UserStreak) -> StreakSnapshot:
    return StreakSnapshot(
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        last_activity_date=streak.last_activity_date,
        streak_repaired_at=streak.streak_repaired_at,
    )


def _apply(streak: UserStreak, snapshot: StreakSnapshot, *, now_utc: datetime) -> None:
    streak.current_streak = snapshot.current_streak
    streak.longest_streak = snapshot.longest_streak
    streak.last_activity_date = snapshot.last_activity_date
    streak.streak_repaired_at = snapshot.streak_repaired_at
    streak.updated_at = now_utc


async def _get_or_create_for_update(session: AsyncSession, *, user_id: int, now_utc: datetime) -> UserStreak:
    streak = await StreaksRepo.get_by_user_id_for_update(session, user_id)
    if streak is None:
        streak = await StreaksRepo.create_default(session, user_id=user_id, now_utc=now_utc)
    return streak


class StreakService:
    @staticmethod
    async def record_activity(session: AsyncSession, *, user_id: int, now_utc: datetime) -> StreakSnapshot:
        streak = await _get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        before = _snapshot(streak)
        after = rules.record_activity(before, day=today_for_usage(now_utc))
        if after != before:
            _apply(streak, after, now_utc=now_utc)
            await session.flush()
        return after

    @staticmethod
    async def get_status(session: AsyncSession, *, user_id: int, now_utc: datetime) -> StreakView:
        streak = await StreaksRepo.get_by_user_id(session, user_id)
        snapshot = (
            _snapshot(streak)
            if streak is not None
            else StreakSnapshot(current_streak=0, longest_streak=0, last_activity_date=None, streak_repaired_at=None)
        )
        day = today_for_usage(now_utc)
        return StreakView(
            current_streak=rules.effective_current_streak(snapshot, day=day),
            longest_streak=snapshot.longest_streak,
            last_activity_date=snapshot.last_activity_date,
            status=rules.classify(snapshot, day=day),
            can_repair=rules.can_repair(snapshot, day=day, now_utc=now_utc),
        )

    @staticmethod
    async def repair(session: AsyncSession, *, user_id: int, now_utc: datetime) -> StreakView:
        streak = await _get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        snapshot = _snapshot(streak)
        day = today_for_usage(now_utc)
        if not rules.can_repair(snapshot, day=day, now_utc=now_utc):
            raise StreakRepairNotAllowedError

        repaired = rules.repair(snapshot, day=day, now_utc=now_utc)
        _apply(streak, repaired, now_utc=now_utc)
        await session.flush()
        logger.info("streak_repaired", user_id=user_id, current_streak=repaired.current_streak)
        return StreakView(
            current_streak=repaired.current_streak,
            longest_streak=repaired.longest_streak,
            last_activity_date=repaired.last_activity_date,
            status=rules.classify(repaired, day=day),
            can_repair=False,
        )
