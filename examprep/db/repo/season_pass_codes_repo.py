from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.season_pass_codes import SeasonPassCode


class SeasonPassCodesRepo:
    @staticmethod
    async def insert_new_codes(
        session: AsyncSession,
        *,
        codes: Sequence[str],
        batch_id: str,
        expires_at: datetime | None,
        notes: str | None,
        now_utc: datetime,
    ) -> list[str]:
        """Inserts codes, skipping ones that already exist. Returns the inserted codes."""
        if not codes:
            return []
        stmt = (
            insert(SeasonPassCode)
            .values(
                [
                    {
                        "code": code,
                        "is_redeemed": False,
                        "batch_id": batch_id,
                        "expires_at": expires_at,
                        "notes": notes,
                        "created_at": now_utc,
                    }
                    for code in codes
                ]
            )
            .on_conflict_do_nothing(index_elements=[SeasonPassCode.code])
            .returning(SeasonPassCode.code)
        )
        result = await session.execute(stmt)
        return [str(code) for code in result.scalars().all()]

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> SeasonPassCode | None:
        stmt = select(SeasonPassCode).where(SeasonPassCode.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code_for_update(session: AsyncSession, code: str) -> SeasonPassCode | None:
        stmt = select(SeasonPassCode).where(SeasonPassCode.code == code).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_redeemed(
        session: AsyncSession,
        *,
        code: SeasonPassCode,
        user_id: int,
        now_utc: datetime,
    ) -> SeasonPassCode:
        code.is_redeemed = True
        code.redeemed_by_user_id = user_id
        code.redeemed_at = now_utc
        await session.flush()
        return code

    @staticmethod
    async def batch_counts(session: AsyncSession, *, batch_id: str) -> tuple[int, int]:
        """Returns (total, redeemed) for a batch."""
        stmt = select(
            func.count(SeasonPassCode.id),
            func.count(SeasonPassCode.id).filter(SeasonPassCode.is_redeemed.is_(True)),
        ).where(SeasonPassCode.batch_id == batch_id)
        result = await session.execute(stmt)
        total, redeemed = result.one()
        return int(total), int(redeemed)

    @staticmethod
    async def list_codes(
        session: AsyncSession,
        *,
        is_redeemed: bool,
        batch_id: str | None,
        limit: int,
        offset: int,
    ) -> list[SeasonPassCode]:
        stmt = select(SeasonPassCode).where(SeasonPassCode.is_redeemed.is_(is_redeemed))
        if batch_id is not None:
            stmt = stmt.where(SeasonPassCode.batch_id == batch_id)
        order_column = SeasonPassCode.redeemed_at if is_redeemed else SeasonPassCode.created_at
        stmt = stmt.order_by(order_column.desc(), SeasonPassCode.id.desc()).limit(limit).offset(offset)
        result = await session.execute(stmt)
        return list(result.scalars().all())
