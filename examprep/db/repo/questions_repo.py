from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.questions import Question


@dataclass(frozen=True, slots=True)
class QuestionFilter:
    """Pool filter for random selection.

    ``categories`` of ``None`` means every category ("mixed"); ``difficulty``
    of ``None`` means every difficulty.
    """

    categories: tuple[str, ...] | None = None
    difficulty: str | None = None


def _apply_filter(stmt: Select, question_filter: QuestionFilter) -> Select:
    if question_filter.categories:
        stmt = stmt.where(Question.category.in_(question_filter.categories))
    if question_filter.difficulty is not None:
        stmt = stmt.where(Question.difficulty == question_filter.difficulty)
    return stmt


class QuestionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, question_id: int) -> Question | None:
        return await session.get(Question, question_id)

    @staticmethod
    async def count(session: AsyncSession, *, question_filter: QuestionFilter) -> int:
        stmt = _apply_filter(select(func.count(Question.id)), question_filter)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def list_ids_by_offsets(
        session: AsyncSession,
        *,
        question_filter: QuestionFilter,
        offsets: Sequence[int],
    ) -> list[int]:
        """Returns ids found at ``offsets`` of the filtered pool ordered by id.

        Only the chosen rows leave the database; the result follows the order
        of ``offsets``.
        """
        if not offsets:
            return []

        position = (func.row_number().over(order_by=Question.id.asc()) - 1).label("position")
        ranked = _apply_filter(select(Question.id.label("id"), position), question_filter).subquery()
        stmt = select(ranked.c.id, ranked.c.position).where(ranked.c.position.in_(tuple(offsets)))
        result = await session.execute(stmt)
        id_by_position = {int(row.position): int(row.id) for row in result}
        return [id_by_position[offset] for offset in offsets if offset in id_by_position]

    @staticmethod
    async def list_by_ids(session: AsyncSession, question_ids: Sequence[int]) -> list[Question]:
        ids = tuple({int(question_id) for question_id in question_ids})
        if not ids:
            return []
        stmt = select(Question).where(Question.id.in_(ids))
        result = await session.execute(stmt)
        return list(result.scalars().all())
