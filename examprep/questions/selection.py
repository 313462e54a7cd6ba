from __future__ import annotations

import random
import secrets

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.repo.questions_repo import QuestionFilter, QuestionsRepo
from examprep.questions.errors import InsufficientQuestionsError

logger = structlog.get_logger(__name__)

_SYSTEM_RANDOM = secrets.SystemRandom()


def choose_offsets(*, pool_size: int, count: int, rng: random.Random | None = None) -> list[int]:
    """Picks ``count`` distinct positions of a pool, uniformly, without materializing it."""
    if count < 0 or count > pool_size:
        raise ValueError(f"cannot choose {count} of {pool_size}")
    return (rng or _SYSTEM_RANDOM).sample(range(pool_size), count)


async def select_random_question_ids(
    session: AsyncSession,
    *,
    question_filter: QuestionFilter,
    count: int,
    rng: random.Random | None = None,
) -> list[int]:
    pool_size = await QuestionsRepo.count(session, question_filter=question_filter)
    if pool_size < count:
        raise InsufficientQuestionsError(requested=count, available=pool_size)

    offsets = choose_offsets(pool_size=pool_size, count=count, rng=rng)
    question_ids = await QuestionsRepo.list_ids_by_offsets(
        session,
        question_filter=question_filter,
        offsets=offsets,
    )
    if len(question_ids) != count:
        # pool shrank between count and fetch
        logger.warning(
            "question_pool_changed_during_selection",
            requested=count,
            fetched=len(question_ids),
        )
        raise InsufficientQuestionsError(requested=count, available=len(question_ids))
    return question_ids
