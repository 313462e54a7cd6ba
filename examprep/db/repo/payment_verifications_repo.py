from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.payment_verifications import PaymentVerification


class PaymentVerificationsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, verification: PaymentVerification) -> PaymentVerification:
        session.add(verification)
        await session.flush()
        return verification

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, verification_id: int) -> PaymentVerification | None:
        stmt = select(PaymentVerification).where(PaymentVerification.id == verification_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_user_and_reference(
        session: AsyncSession,
        *,
        user_id: int,
        reference_number: str,
    ) -> PaymentVerification | None:
        stmt = select(PaymentVerification).where(
            PaymentVerification.user_id == user_id,
            PaymentVerification.reference_number == reference_number,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def get_latest_for_user(session: AsyncSession, *, user_id: int) -> PaymentVerification | None:
        stmt = (
            select(PaymentVerification)
            .where(PaymentVerification.user_id == user_id)
            .order_by(PaymentVerification.created_at.desc(), PaymentVerification.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_status(
        session: AsyncSession,
        *,
        status: str | None,
        limit: int,
        offset: int,
        oldest_first: bool = False,
    ) -> list[PaymentVerification]:
        stmt = select(PaymentVerification)
        if status is not None:
            stmt = stmt.where(PaymentVerification.status == status)
        order = PaymentVerification.created_at.asc() if oldest_first else PaymentVerification.created_at.desc()
        stmt = stmt.order_by(order, PaymentVerification.id.asc()).limit(limit).offset(offset)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def counts_by_status(session: AsyncSession) -> dict[str, int]:
        stmt = select(PaymentVerification.status, func.count(PaymentVerification.id)).group_by(
            PaymentVerification.status
        )
        result = await session.execute(stmt)
        return {str(status): int(total) for status, total in result.all()}

    @staticmethod
    async def approved_amount_total(session: AsyncSession) -> Decimal:
        stmt = select(func.coalesce(func.sum(PaymentVerification.amount), 0)).where(
            PaymentVerification.status == "approved"
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one())

    @staticmethod
    async def activation_code_exists(session: AsyncSession, activation_code: str) -> bool:
        stmt = select(PaymentVerification.id).where(PaymentVerification.activation_code == activation_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
