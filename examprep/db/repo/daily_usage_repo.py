from __future__ import annotations

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from examprep.db.models.daily_usage import DailyExplanationView, DailyPracticeUsage

_COUNTERS: dict[str, tuple[type, InstrumentedAttribute]] = {
    "PRACTICE": (DailyPracticeUsage, DailyPracticeUsage.questions_count),
    "EXPLANATION": (DailyExplanationView, DailyExplanationView.view_count),
}


def _counter(kind: str) -> tuple[type, InstrumentedAttribute]:
    try:
        return _COUNTERS[kind]
    except KeyError as exc:
        raise ValueError(f"unknown usage counter: {kind}") from exc


class DailyUsageRepo:
    @staticmethod
    async def get_count(session: AsyncSession, *, kind: str, user_id: int, local_date: date) -> int:
        model, column = _counter(kind)
        stmt = select(column).where(model.user_id == user_id, model.date == local_date)
        result = await session.execute(stmt)
        value = result.scalar_one_or_none()
        return int(value) if value is not None else 0

    @staticmethod
    async def increment(session: AsyncSession, *, kind: str, user_id: int, local_date: date) -> int:
        model, column = _counter(kind)
        stmt = (
            insert(model)
            .values(user_id=user_id, date=local_date, **{column.key: 1})
            .on_conflict_do_update(
                index_elements=[model.user_id, model.date],
                set_={column.key: column + 1},
            )
            .returning(column)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def increment_below_limit(
        session: AsyncSession,
        *,
        kind: str,
        user_id: int,
        local_date: date,
        limit: int,
    ) -> int | None:
        """Increments the day's counter only while it stays within ``limit``.

        Returns the new count, or ``None`` when the counter is already at the
        limit. The conflict branch holds the row lock, so concurrent callers
        for the same user and day are serialized.
        """
        if limit <= 0:
            return None

        model, column = _counter(kind)
        stmt = (
            insert(model)
            .values(user_id=user_id, date=local_date, **{column.key: 1})
            .on_conflict_do_update(
                index_elements=[model.user_id, model.date],
                set_={column.key: column + 1},
                where=column < limit,
            )
            .returning(column)
        )
        result = await session.execute(stmt)
        value = result.scalar_one_or_none()
        return int(value) if value is not None else None

    @staticmethod
    async def list_counts_between(
        session: AsyncSession,
        *,
        kind: str,
        user_id: int,
        from_date: date,
        to_date: date,
    ) -> dict[date, int]:
        """Per-day counts for ``from_date`` through ``to_date`` inclusive; days without a row are absent."""
        model, column = _counter(kind)
        stmt = select(model.date, column).where(
            model.user_id == user_id,
            model.date >= from_date,
            model.date <= to_date,
        )
        result = await session.execute(stmt)
        return {row_date: int(count) for row_date, count in result.all()}

    @staticmethod
    async def total_count(session: AsyncSession, *, kind: str, user_id: int) -> int:
        model, column = _counter(kind)
        stmt = select(func.coalesce(func.sum(column), 0)).where(model.user_id == user_id)
        result = await session.execute(stmt)
        return int(result.scalar_one())
