from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.mock_exam_sessions import MockExamSession


class MockExamSessionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, exam: MockExamSession) -> MockExamSession:
        session.add(exam)
        await session.flush()
        return exam

    @staticmethod
    async def get_by_id(session: AsyncSession, exam_id: UUID) -> MockExamSession | None:
        return await session.get(MockExamSession, exam_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, exam_id: UUID) -> MockExamSession | None:
        stmt = select(MockExamSession).where(MockExamSession.id == exam_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_in_progress_for_user(session: AsyncSession, *, user_id: int) -> MockExamSession | None:
        stmt = (
            select(MockExamSession)
            .where(
                MockExamSession.user_id == user_id,
                MockExamSession.status == "IN_PROGRESS",
            )
            .order_by(MockExamSession.started_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_started_since(
        session: AsyncSession,
        *,
        user_id: int,
        since_utc: datetime,
        statuses: Sequence[str],
    ) -> int:
        stmt = select(func.count(MockExamSession.id)).where(
            MockExamSession.user_id == user_id,
            MockExamSession.started_at >= since_utc,
            MockExamSession.status.in_(tuple(statuses)),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        status: str | None,
        limit: int,
    ) -> list[MockExamSession]:
        stmt = select(MockExamSession).where(MockExamSession.user_id == user_id)
        if status is not None:
            stmt = stmt.where(MockExamSession.status == status)
        stmt = stmt.order_by(MockExamSession.started_at.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def completed_summary(session: AsyncSession, *, user_id: int) -> tuple[int, int, int]:
        """Returns (completed total, score sum, passed total) over all completed exams."""
        stmt = select(
            func.count(MockExamSession.id),
            func.coalesce(func.sum(MockExamSession.score), 0),
            func.count(MockExamSession.id).filter(MockExamSession.score >= MockExamSession.passing_score),
        ).where(
            MockExamSession.user_id == user_id,
            MockExamSession.status == "COMPLETED",
        )
        result = await session.execute(stmt)
        total, score_sum, passed = result.one()
        return int(total), int(score_sum), int(passed)

    @staticmethod
    async def list_timed_out_ids_for_update(
        session: AsyncSession,
        *,
        now_utc: datetime,
        grace: timedelta,
        limit: int,
    ) -> list[UUID]:
        # make_interval(years, months, weeks, days, hours, mins)
        deadline = MockExamSession.started_at + func.make_interval(
            0, 0, 0, 0, 0, MockExamSession.time_limit_minutes
        )
        stmt = (
            select(MockExamSession.id)
            .where(
                MockExamSession.status == "IN_PROGRESS",
                deadline <= now_utc - grace,
            )
            .order_by(MockExamSession.started_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
