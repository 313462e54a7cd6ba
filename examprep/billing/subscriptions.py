from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.service import load_user_limits
from examprep.db.models.subscriptions import Subscription
from examprep.db.repo.subscriptions_repo import SubscriptionsRepo
from examprep.db.repo.users_repo import UsersRepo


class SubscriptionService:
    @staticmethod
    async def get_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> tuple[bool, Subscription | None]:
        """Returns (effective premium, subscription row if any)."""
        _, limits = await load_user_limits(session, user_id=user_id, now_utc=now_utc)
        subscription = await SubscriptionsRepo.get_by_user_id(session, user_id)
        return limits.is_premium, subscription

    @staticmethod
    async def expire_lapsed(session: AsyncSession, *, now_utc: datetime, batch_size: int) -> dict[str, int]:
        user_ids = await UsersRepo.list_expired_premium_ids(session, now_utc=now_utc, limit=batch_size)
        users_updated = await UsersRepo.clear_premium(session, user_ids=user_ids, now_utc=now_utc)
        subscriptions_expired = await SubscriptionsRepo.expire_for_users(session, user_ids=user_ids, now_utc=now_utc)
        return {
            "users_deactivated": users_updated,
            "subscriptions_expired": subscriptions_expired,
        }
