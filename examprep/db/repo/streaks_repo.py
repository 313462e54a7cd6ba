from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.user_streaks import UserStreak


class StreaksRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> UserStreak | None:
        return await session.get(UserStreak, user_id)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: int) -> UserStreak | None:
        stmt = select(UserStreak).where(UserStreak.user_id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_default(session: AsyncSession, *, user_id: int, now_utc: datetime) -> UserStreak:
        streak = UserStreak(
            user_id=user_id,
            current_streak=0,
            longest_streak=0,
            last_activity_date=None,
            streak_repaired_at=None,
            updated_at=now_utc,
        )
        session.add(streak)
        await session.flush()
        return streak
