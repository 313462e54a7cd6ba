from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.subscriptions import Subscription


class SubscriptionsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: int) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.user_id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_reference_number(session: AsyncSession, reference_number: str) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.reference_number == reference_number).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_active(
        session: AsyncSession,
        *,
        user_id: int,
        plan_name: str,
        plan_price: Decimal,
        amount_paid: Decimal,
        payment_method: str,
        payment_provider: str,
        transaction_id: str | None,
        reference_number: str | None,
        expires_at: datetime | None,
        now_utc: datetime,
    ) -> Subscription:
        subscription = await SubscriptionsRepo.get_by_user_id_for_update(session, user_id)
        if subscription is None:
            subscription = Subscription(user_id=user_id)
            session.add(subscription)

        subscription.plan_name = plan_name
        subscription.plan_price = plan_price
        subscription.amount_paid = amount_paid
        subscription.payment_method = payment_method
        subscription.payment_provider = payment_provider
        subscription.transaction_id = transaction_id
        subscription.reference_number = reference_number
        subscription.status = "active"
        subscription.purchase_date = now_utc
        subscription.expires_at = expires_at
        subscription.updated_at = now_utc
        await session.flush()
        return subscription

    @staticmethod
    async def expire_for_users(session: AsyncSession, *, user_ids: list[int], now_utc: datetime) -> int:
        if not user_ids:
            return 0
        stmt = (
            update(Subscription)
            .where(Subscription.user_id.in_(user_ids), Subscription.status == "active")
            .values(status="expired", updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
