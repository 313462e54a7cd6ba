from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_premium(
        session: AsyncSession,
        *,
        user: User,
        premium_expiry: datetime | None,
        now_utc: datetime,
    ) -> User:
        user.is_premium = True
        user.premium_expiry = premium_expiry
        user.updated_at = now_utc
        await session.flush()
        return user

    @staticmethod
    async def list_expired_premium_ids(
        session: AsyncSession,
        *,
        now_utc: datetime,
        limit: int,
    ) -> list[int]:
        stmt = (
            select(User.id)
            .where(
                User.is_premium.is_(True),
                User.premium_expiry.is_not(None),
                User.premium_expiry <= now_utc,
            )
            .order_by(User.premium_expiry.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [int(user_id) for user_id in result.scalars().all()]

    @staticmethod
    async def clear_premium(
        session: AsyncSession,
        *,
        user_ids: list[int],
        now_utc: datetime,
    ) -> int:
        if not user_ids:
            return 0
        stmt = (
            update(User)
            .where(User.id.in_(user_ids), User.is_premium.is_(True))
            .values(is_premium=False, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
